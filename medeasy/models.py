from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base

# Appointment status workflow: pending → confirmed → completed
# pending/confirmed can also move to cancelled; completed and cancelled are terminal.
APPOINTMENT_STATUSES = ("pending", "confirmed", "cancelled", "completed")

GENDERS = ("Male", "Female", "Not Selected")


class Doctor(Base):
    __tablename__ = "doctors"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)

    # Profile
    speciality = Column(String(100), nullable=False, index=True)
    degree = Column(String(100), nullable=False)
    experience = Column(String(50), nullable=False)  # e.g. "4 Years"
    about = Column(Text, nullable=False)
    fees = Column(Float, nullable=False)
    address_line1 = Column(String(255), nullable=True)
    address_line2 = Column(String(255), nullable=True)
    image_url = Column(String(500), nullable=True)  # URL from the media host

    # When false no new bookings are accepted
    available = Column(Boolean, default=True, nullable=False)

    # Booked-slots ledger: {"YYYY-MM-DD": ["09:00 AM", ...]}
    # Mirrors the doctor's non-cancelled appointments; written in the same
    # transaction as the appointment it reflects.
    slots_booked = Column(JSON, default=dict, nullable=False)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    appointments = relationship("Appointment", back_populates="doctor")


class Patient(Base):
    __tablename__ = "patients"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)

    phone = Column(String(20), nullable=True)  # E.164
    dob = Column(Date, nullable=True)
    gender = Column(String(20), default="Not Selected", nullable=False)
    address_line1 = Column(String(255), nullable=True)
    address_line2 = Column(String(255), nullable=True)
    image_url = Column(String(500), nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Deleting a patient clears patient_id on their historical appointments
    appointments = relationship("Appointment", back_populates="patient")


class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True, index=True)
    doctor_id = Column(Integer, ForeignKey("doctors.id"), nullable=False, index=True)
    patient_id = Column(
        Integer, ForeignKey("patients.id", ondelete="SET NULL"), nullable=True, index=True
    )

    # Day-key (date only) and a label from the slot catalog
    appointment_date = Column(Date, nullable=False)
    slot = Column(String(20), nullable=False)

    status = Column(String(20), default="pending", nullable=False, index=True)
    symptoms = Column(Text, default="", nullable=False)  # patient-supplied
    notes = Column(Text, default="", nullable=False)  # doctor-supplied

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    doctor = relationship("Doctor", back_populates="appointments")
    patient = relationship("Patient", back_populates="appointments")

    __table_args__ = (
        # At most one live (non-cancelled) appointment per doctor, day and slot
        Index(
            "uq_appointments_active_slot",
            "doctor_id",
            "appointment_date",
            "slot",
            unique=True,
            postgresql_where=text("status <> 'cancelled'"),
            sqlite_where=text("status <> 'cancelled'"),
        ),
        Index("ix_appointments_doctor_date", "doctor_id", "appointment_date"),
    )
