"""Patient service - Business logic for patient accounts"""

import logging

from sqlalchemy.orm import Session

from ...errors import AuthenticationFailed, InvalidRequest, NotFound
from ...models import Patient
from ...security_utils import hash_password_bcrypt, mask_email, verify_password_bcrypt
from .repository import PatientRepository
from .schemas import PatientCreate, PatientRegister, PatientUpdate

logger = logging.getLogger(__name__)


class PatientService:
    """Service layer for patient business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = PatientRepository()

    def get_patient(self, patient_id: int) -> Patient:
        patient = self.repo.get_patient_by_id(self.db, patient_id)
        if not patient:
            raise NotFound("Patient not found")
        return patient

    def get_patients(self) -> list[Patient]:
        return self.repo.get_patients(self.db)

    def register(self, data: PatientRegister) -> Patient:
        """Self-registration from the patient app"""
        if self.repo.email_taken(self.db, data.email):
            logger.warning(f"⚠️ Registration with existing email {mask_email(data.email)}")
            raise InvalidRequest("Email already in use")

        patient = self.repo.create_patient(
            self.db,
            name=data.fullName,
            email=data.email,
            password_hash=hash_password_bcrypt(data.password),
            phone=data.phoneNumber or None,
            dob=data.dateOfBirth,
            gender=data.gender or "Not Selected",
        )
        logger.info(f"✅ Patient {patient.id} registered")
        return patient

    def authenticate(self, email: str, password: str) -> Patient:
        """Check patient credentials; unknown email and wrong password look the same"""
        email = (email or "").strip().lower()
        patient = self.repo.get_patient_by_email(self.db, email)
        if not patient or not verify_password_bcrypt(password or "", patient.password_hash):
            logger.warning(f"⚠️ Failed patient login for {mask_email(email)}")
            raise AuthenticationFailed("Invalid email or password")

        logger.info(f"✅ Patient {patient.id} logged in")
        return patient

    def create_patient(self, data: PatientCreate) -> Patient:
        """Admin adds a patient"""
        if self.repo.email_taken(self.db, data.email):
            raise InvalidRequest("Email already in use")

        address = data.address
        patient = self.repo.create_patient(
            self.db,
            name=data.name,
            email=data.email,
            password_hash=hash_password_bcrypt(data.password),
            phone=data.phone or None,
            dob=data.dob,
            gender=data.gender or "Not Selected",
            address_line1=address.line1 if address else "",
            address_line2=address.line2 if address else "",
            image_url=data.image,
        )
        logger.info(f"✅ Patient {patient.id} added by admin")
        return patient

    def update_patient(self, patient_id: int, data: PatientUpdate) -> Patient:
        """Apply the provided fields to a patient (admin edit or own profile)"""
        if not data.model_dump(exclude_unset=True):
            raise InvalidRequest("No data received")

        patient = self.get_patient(patient_id)

        if data.email and self.repo.email_taken(self.db, data.email, exclude_id=patient_id):
            raise InvalidRequest("Email already in use")

        updates = {
            "name": data.name.strip() if data.name else None,
            "email": data.email,
            "phone": data.phone,
            "dob": data.dob,
            "gender": data.gender,
            "image_url": data.image,
        }
        if data.password:
            updates["password_hash"] = hash_password_bcrypt(data.password)
        if data.address is not None:
            updates["address_line1"] = data.address.line1
            updates["address_line2"] = data.address.line2

        patient = self.repo.update_patient(self.db, patient, **updates)
        logger.info(f"✅ Patient {patient_id} updated")
        return patient

    def delete_patient(self, patient_id: int) -> None:
        """
        Delete a patient account.

        Refused while the patient still holds pending or confirmed
        appointments, so no live booking loses its patient. Completed and
        cancelled appointments are kept with the patient reference cleared.
        """
        patient = self.get_patient(patient_id)

        open_count = self.repo.count_open_appointments(self.db, patient_id)
        if open_count:
            logger.warning(
                f"⚠️ Refusing to delete patient {patient_id} with {open_count} open appointment(s)"
            )
            raise InvalidRequest(
                "Patient has pending or confirmed appointments; cancel them before deleting"
            )

        self.repo.delete_patient(self.db, patient)
        logger.info(f"🗑️ Patient {patient_id} deleted")
