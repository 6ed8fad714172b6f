"""Doctor service - Business logic for doctor accounts and the public directory"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...errors import AuthenticationFailed, InvalidRequest, NotFound
from ...models import Doctor
from ...security_utils import hash_password_bcrypt, mask_email, verify_password_bcrypt
from .repository import DoctorRepository
from .schemas import (
    DOCTOR_SORTS,
    AvailabilityUpdate,
    DoctorCreate,
    DoctorProfileUpdate,
    DoctorUpdate,
    experience_years,
)

logger = logging.getLogger(__name__)

TOP_DOCTORS_LIMIT = 10


class DoctorService:
    """Service layer for doctor business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = DoctorRepository()

    def get_doctor(self, doctor_id: int) -> Doctor:
        doctor = self.repo.get_doctor_by_id(self.db, doctor_id)
        if not doctor:
            raise NotFound("Doctor not found")
        return doctor

    def authenticate(self, email: str, password: str) -> Doctor:
        """Check doctor credentials; unknown email and wrong password look the same"""
        email = (email or "").strip().lower()
        doctor = self.repo.get_doctor_by_email(self.db, email)
        if not doctor or not verify_password_bcrypt(password or "", doctor.password_hash):
            logger.warning(f"⚠️ Failed doctor login for {mask_email(email)}")
            raise AuthenticationFailed("Invalid email or password")

        logger.info(f"✅ Doctor {doctor.id} logged in")
        return doctor

    # Admin operations
    def create_doctor(self, data: DoctorCreate) -> Doctor:
        """Create a doctor account on behalf of the admin"""
        logger.info(f"📥 Adding doctor {mask_email(data.email)}")

        if self.repo.email_taken(self.db, data.email):
            logger.warning(f"⚠️ Doctor email already registered: {mask_email(data.email)}")
            raise InvalidRequest("Email already in use")

        doctor = self.repo.create_doctor(
            self.db,
            name=data.name,
            email=data.email,
            password_hash=hash_password_bcrypt(data.password),
            speciality=data.speciality,
            degree=data.degree,
            experience=data.experience,
            about=data.about,
            fees=data.fees,
            address_line1=data.address.line1,
            address_line2=data.address.line2,
            image_url=data.image,
            available=True,
            slots_booked={},
        )
        logger.info(f"✅ Doctor {doctor.id} added")
        return doctor

    def update_doctor(self, doctor_id: int, data: DoctorUpdate) -> Doctor:
        """Admin edit of any doctor field"""
        doctor = self.get_doctor(doctor_id)

        if data.email and self.repo.email_taken(self.db, data.email, exclude_id=doctor_id):
            raise InvalidRequest("Email already in use")

        updates = {
            "name": data.name,
            "email": data.email,
            "speciality": data.speciality,
            "degree": data.degree,
            "experience": data.experience,
            "about": data.about,
            "fees": data.fees,
            "image_url": data.image,
            "available": data.available,
        }
        if data.password:
            updates["password_hash"] = hash_password_bcrypt(data.password)
        if data.address is not None:
            updates["address_line1"] = data.address.line1
            updates["address_line2"] = data.address.line2

        doctor = self.repo.update_doctor(self.db, doctor, **updates)
        logger.info(f"✅ Doctor {doctor_id} updated by admin")
        return doctor

    def get_doctors(self) -> list[Doctor]:
        return self.repo.get_doctors(self.db)

    # Doctor self-service
    def update_profile(self, doctor_id: int, data: DoctorProfileUpdate) -> Doctor:
        doctor = self.get_doctor(doctor_id)

        if self.repo.email_taken(self.db, data.email, exclude_id=doctor_id):
            logger.warning(f"⚠️ Doctor {doctor_id} tried to take email {mask_email(data.email)}")
            raise InvalidRequest("Email already in use")
        if data.fees <= 0:
            raise InvalidRequest("Fees must be greater than zero")

        updates = {
            "name": data.name,
            "email": data.email,
            "speciality": data.speciality,
            "degree": data.degree,
            "experience": data.experience,
            "about": data.about,
            "fees": data.fees,
            "image_url": data.image,
            "available": data.available,
        }
        if data.address is not None:
            updates["address_line1"] = data.address.line1
            updates["address_line2"] = data.address.line2

        doctor = self.repo.update_doctor(self.db, doctor, **updates)
        logger.info(f"✅ Doctor {doctor_id} updated their profile")
        return doctor

    def set_availability(self, doctor_id: int, data: AvailabilityUpdate) -> Doctor:
        """Open or close a doctor for new bookings; existing appointments are untouched"""
        if data.available is None:
            raise InvalidRequest("Availability status is required")

        doctor = self.get_doctor(doctor_id)
        doctor.available = data.available
        self.db.commit()
        self.db.refresh(doctor)

        logger.info(f"✅ Doctor {doctor_id} is now {'available' if doctor.available else 'unavailable'}")
        return doctor

    # Public directory
    def list_directory(
        self,
        speciality: Optional[str] = None,
        name: Optional[str] = None,
        available: Optional[bool] = True,
        sort_by: Optional[str] = None,
    ) -> list[Doctor]:
        """Filtered doctor directory, available doctors only unless asked otherwise"""
        if sort_by and sort_by not in DOCTOR_SORTS:
            raise InvalidRequest(f"Unknown sort option: {sort_by}")

        doctors = self.repo.search_doctors(self.db, speciality, name, available)

        if sort_by == "fees-low-to-high":
            doctors.sort(key=lambda d: (d.fees, d.name))
        elif sort_by == "fees-high-to-low":
            doctors.sort(key=lambda d: (-d.fees, d.name))
        elif sort_by == "experience-high":
            doctors.sort(key=lambda d: (-experience_years(d.experience), d.name))
        else:
            doctors.sort(key=lambda d: d.name.lower())

        return doctors

    def top_doctors(self) -> list[Doctor]:
        """Most experienced available doctors for the home page"""
        doctors = self.repo.search_doctors(self.db, available=True)
        doctors.sort(key=lambda d: (-experience_years(d.experience), d.name))
        return doctors[:TOP_DOCTORS_LIMIT]

    def get_public_doctor(self, doctor_id: int) -> Doctor:
        return self.get_doctor(doctor_id)

    def specialities(self) -> list[str]:
        return self.repo.get_specialities(self.db)
