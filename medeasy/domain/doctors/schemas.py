"""Doctor domain schemas - Pydantic models for validation and responses"""

import re
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...models import Doctor
from ...shared.validators import validate_email, validate_password

DOCTOR_SORTS = ("fees-low-to-high", "fees-high-to-low", "experience-high", "name")


def _required_text(v):
    if v is None or not str(v).strip():
        raise ValueError("Please fill all the fields")
    return str(v).strip()


class Address(BaseModel):
    line1: str = ""
    line2: str = ""


class DoctorCreate(BaseModel):
    """Schema for the admin adding a doctor"""

    name: str
    email: str
    password: str
    speciality: str
    degree: str
    experience: str
    about: str
    fees: float
    address: Address
    image: Optional[str] = None  # already-uploaded image URL

    @field_validator("name", "speciality", "degree", "experience", "about")
    @classmethod
    def not_blank(cls, v):
        return _required_text(v)

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(_required_text(v))

    @field_validator("password")
    @classmethod
    def check_password(cls, v):
        return validate_password(v)

    @field_validator("fees")
    @classmethod
    def positive_fees(cls, v):
        if v <= 0:
            raise ValueError("Fees must be greater than zero")
        return v


class DoctorUpdate(BaseModel):
    """Schema for the admin editing any doctor field"""

    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    speciality: Optional[str] = None
    degree: Optional[str] = None
    experience: Optional[str] = None
    about: Optional[str] = None
    fees: Optional[float] = None
    address: Optional[Address] = None
    image: Optional[str] = None
    available: Optional[bool] = None

    @field_validator("name", "speciality", "degree", "experience", "about")
    @classmethod
    def not_blank(cls, v):
        # Omitted fields stay unchanged; sent ones must carry text
        return None if v is None else _required_text(v)

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)

    @field_validator("password")
    @classmethod
    def check_password(cls, v):
        return validate_password(v)

    @field_validator("fees")
    @classmethod
    def positive_fees(cls, v):
        if v is not None and v <= 0:
            raise ValueError("Fees must be greater than zero")
        return v


class DoctorProfileUpdate(BaseModel):
    """Schema for a doctor editing their own profile"""

    name: str
    email: str
    speciality: str
    degree: str
    experience: str
    about: str
    fees: float
    address: Optional[Address] = None
    image: Optional[str] = None
    available: Optional[bool] = None

    @field_validator("name", "speciality", "degree", "experience", "about")
    @classmethod
    def not_blank(cls, v):
        if v is None or not str(v).strip():
            raise ValueError("All fields are required")
        return str(v).strip()

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(_required_text(v))

    @field_validator("fees")
    @classmethod
    def positive_fees(cls, v):
        if v <= 0:
            raise ValueError("Fees must be greater than zero")
        return v


class AvailabilityUpdate(BaseModel):
    available: Optional[bool] = None


class DoctorLogin(BaseModel):
    email: str
    password: str


class DoctorResponse(BaseModel):
    """Doctor profile as returned by the API (never carries the password hash)"""

    id: int
    name: str
    email: str
    speciality: str
    degree: str
    experience: str
    about: str
    fees: float
    address: Address
    image: Optional[str] = None
    available: bool
    createdAt: Optional[datetime] = None

    @classmethod
    def from_model(cls, doctor: Doctor) -> "DoctorResponse":
        return cls(
            id=doctor.id,
            name=doctor.name,
            email=doctor.email,
            speciality=doctor.speciality,
            degree=doctor.degree,
            experience=doctor.experience,
            about=doctor.about,
            fees=doctor.fees,
            address=Address(line1=doctor.address_line1 or "", line2=doctor.address_line2 or ""),
            image=doctor.image_url,
            available=bool(doctor.available),
            createdAt=doctor.created_at,
        )


class AdminDoctorResponse(DoctorResponse):
    """Admin view, including the booked-slots ledger"""

    slotsBooked: dict[str, list[str]] = {}

    @classmethod
    def from_model(cls, doctor: Doctor) -> "AdminDoctorResponse":
        base = DoctorResponse.from_model(doctor)
        return cls(**base.model_dump(), slotsBooked=dict(doctor.slots_booked or {}))


class TopDoctorResponse(BaseModel):
    id: int
    name: str
    speciality: str
    experience: str
    fees: float
    image: Optional[str] = None


def experience_years(experience: Optional[str]) -> int:
    """Leading number of an experience string such as "4 Years" (0 if none)"""
    match = re.match(r"\s*(\d+)", experience or "")
    return int(match.group(1)) if match else 0
