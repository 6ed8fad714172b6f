"""Scheduling domain schemas - Pydantic models for validation and responses"""

import datetime as dt
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, field_validator

from ...models import Appointment, Doctor, Patient

T = TypeVar("T")


class BookAppointmentRequest(BaseModel):
    """Schema for booking on behalf of a patient (admin console)"""

    doctorId: Optional[int] = None
    patientId: Optional[int] = None
    date: Optional[str] = None  # "YYYY-MM-DD" or ISO timestamp
    slot: Optional[str] = None
    symptoms: Optional[str] = None


class PatientBookAppointmentRequest(BaseModel):
    """Schema for a patient booking for themself"""

    doctorId: Optional[int] = None
    date: Optional[str] = None
    slot: Optional[str] = None
    symptoms: Optional[str] = None


class StatusUpdateRequest(BaseModel):
    """Schema for changing an appointment's status"""

    status: str
    notes: Optional[str] = None

    @field_validator("status")
    @classmethod
    def normalize_status(cls, v):
        return v.strip().lower()


class DoctorSummary(BaseModel):
    id: int
    name: str
    email: str
    speciality: str
    fees: float
    image: Optional[str] = None


class PatientSummary(BaseModel):
    id: int
    name: str
    email: str
    phone: Optional[str] = None
    gender: Optional[str] = None
    image: Optional[str] = None


class AppointmentResponse(BaseModel):
    """Appointment joined with the current doctor and patient profiles"""

    id: int
    doctorId: int
    patientId: Optional[int]
    date: dt.date
    slot: str
    status: str
    symptoms: str
    notes: str
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None
    doctor: Optional[DoctorSummary] = None
    patient: Optional[PatientSummary] = None

    @classmethod
    def from_model(cls, appointment: Appointment) -> "AppointmentResponse":
        return cls(
            id=appointment.id,
            doctorId=appointment.doctor_id,
            patientId=appointment.patient_id,
            date=appointment.appointment_date,
            slot=appointment.slot,
            status=appointment.status,
            symptoms=appointment.symptoms or "",
            notes=appointment.notes or "",
            createdAt=appointment.created_at,
            updatedAt=appointment.updated_at,
            doctor=doctor_summary(appointment.doctor) if appointment.doctor else None,
            patient=patient_summary(appointment.patient) if appointment.patient else None,
        )


def doctor_summary(doctor: Doctor) -> DoctorSummary:
    return DoctorSummary(
        id=doctor.id,
        name=doctor.name,
        email=doctor.email,
        speciality=doctor.speciality,
        fees=doctor.fees,
        image=doctor.image_url,
    )


def patient_summary(patient: Patient) -> PatientSummary:
    return PatientSummary(
        id=patient.id,
        name=patient.name,
        email=patient.email,
        phone=patient.phone,
        gender=patient.gender,
        image=patient.image_url,
    )


@dataclass(frozen=True)
class SlotAvailability:
    date: date
    free: list[str]
    booked: list[str]


@dataclass
class AppointmentFilter:
    doctor_id: Optional[int] = None
    patient_id: Optional[int] = None
    status: Optional[str] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    today: bool = False
    upcoming_days: Optional[int] = None


@dataclass
class Page(Generic[T]):
    items: list[T] = field(default_factory=list)
    page: int = 1
    page_size: int = 10
    total: int = 0

    @property
    def total_pages(self) -> int:
        return (self.total + self.page_size - 1) // self.page_size
