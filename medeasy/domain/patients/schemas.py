"""Patient domain schemas - Pydantic models for validation and responses"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...models import GENDERS, Patient
from ...shared.validators import validate_dob, validate_email, validate_password, validate_phone
from ..doctors.schemas import Address


def _check_gender(v):
    if v and v not in GENDERS:
        raise ValueError(f"Gender must be one of: {', '.join(GENDERS)}")
    return v


class PatientRegister(BaseModel):
    """Schema for patient self-registration"""

    fullName: str
    email: str
    password: str
    phoneNumber: Optional[str] = None
    dateOfBirth: Optional[date] = None
    gender: Optional[str] = None

    @field_validator("fullName")
    @classmethod
    def check_name(cls, v):
        if not v or not v.strip():
            raise ValueError("Name, email and password are required")
        return v.strip()

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)

    @field_validator("password")
    @classmethod
    def check_password(cls, v):
        return validate_password(v)

    @field_validator("phoneNumber")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)

    @field_validator("dateOfBirth")
    @classmethod
    def check_dob(cls, v):
        return validate_dob(v)

    @field_validator("gender")
    @classmethod
    def check_gender(cls, v):
        return _check_gender(v)


class PatientCreate(BaseModel):
    """Schema for the admin adding a patient"""

    name: str
    email: str
    password: str
    phone: Optional[str] = None
    dob: Optional[date] = None
    gender: Optional[str] = None
    address: Optional[Address] = None
    image: Optional[str] = None

    @field_validator("name")
    @classmethod
    def check_name(cls, v):
        if not v or not v.strip():
            raise ValueError("Name, email and password are required")
        return v.strip()

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)

    @field_validator("password")
    @classmethod
    def check_password(cls, v):
        return validate_password(v)

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)

    @field_validator("dob")
    @classmethod
    def check_dob(cls, v):
        return validate_dob(v)

    @field_validator("gender")
    @classmethod
    def check_gender(cls, v):
        return _check_gender(v)


class PatientUpdate(BaseModel):
    """Schema for updating a patient (admin edit or own profile)"""

    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    phone: Optional[str] = None
    dob: Optional[date] = None
    gender: Optional[str] = None
    address: Optional[Address] = None
    image: Optional[str] = None

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)

    @field_validator("password")
    @classmethod
    def check_password(cls, v):
        return validate_password(v)

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)

    @field_validator("dob")
    @classmethod
    def check_dob(cls, v):
        return validate_dob(v)

    @field_validator("gender")
    @classmethod
    def check_gender(cls, v):
        return _check_gender(v)


class PatientLogin(BaseModel):
    email: str
    password: str


class PatientResponse(BaseModel):
    """Patient profile as returned by the API (never carries the password hash)"""

    id: int
    name: str
    email: str
    phone: Optional[str] = None
    dob: Optional[date] = None
    gender: str
    address: Address
    image: Optional[str] = None
    createdAt: Optional[datetime] = None

    @classmethod
    def from_model(cls, patient: Patient) -> "PatientResponse":
        return cls(
            id=patient.id,
            name=patient.name,
            email=patient.email,
            phone=patient.phone,
            dob=patient.dob,
            gender=patient.gender or "Not Selected",
            address=Address(line1=patient.address_line1 or "", line2=patient.address_line2 or ""),
            image=patient.image_url,
            createdAt=patient.created_at,
        )
