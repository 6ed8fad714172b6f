"""Authenticated caller passed explicitly into every core operation"""

from dataclasses import dataclass
from typing import Optional

ADMIN = "admin"
DOCTOR = "doctor"
PATIENT = "patient"

ROLES = (ADMIN, DOCTOR, PATIENT)


@dataclass(frozen=True)
class AuthContext:
    role: str
    subject_id: Optional[int] = None  # None for the admin

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN

    @property
    def is_doctor(self) -> bool:
        return self.role == DOCTOR

    @property
    def is_patient(self) -> bool:
        return self.role == PATIENT

    @classmethod
    def admin(cls) -> "AuthContext":
        return cls(role=ADMIN)

    @classmethod
    def doctor(cls, doctor_id: int) -> "AuthContext":
        return cls(role=DOCTOR, subject_id=doctor_id)

    @classmethod
    def patient(cls, patient_id: int) -> "AuthContext":
        return cls(role=PATIENT, subject_id=patient_id)
