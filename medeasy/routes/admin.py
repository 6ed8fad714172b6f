"""Admin console router - Doctor and patient management plus clinic-wide scheduling"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..auth import authenticate_admin, issue_token, require_admin
from ..config import LOGIN_RATE_LIMIT, LOGIN_RATE_WINDOW_SECONDS
from ..database import get_db
from ..domain.doctors.schemas import (
    AdminDoctorResponse,
    AvailabilityUpdate,
    DoctorCreate,
    DoctorUpdate,
)
from ..domain.doctors.service import DoctorService
from ..domain.patients.schemas import PatientCreate, PatientResponse, PatientUpdate
from ..domain.patients.service import PatientService
from ..domain.scheduling.availability_service import AvailabilityService
from ..domain.scheduling.booking_service import BookingService
from ..domain.scheduling.lifecycle_service import LifecycleService
from ..domain.scheduling.query_service import QueryService
from ..domain.scheduling.schemas import (
    AppointmentFilter,
    AppointmentResponse,
    BookAppointmentRequest,
    StatusUpdateRequest,
)
from ..domain.scheduling.slots import to_day_key
from ..rate_limiter import create_rate_limiter
from ..shared.context import AuthContext
from ..shared.responses import page_payload, success

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["Admin"])

admin_login_limit = create_rate_limiter(
    limit=LOGIN_RATE_LIMIT, window_seconds=LOGIN_RATE_WINDOW_SECONDS, key_prefix="login:admin"
)


class AdminLogin(BaseModel):
    email: str
    password: str


@router.post("/login")
def login(data: AdminLogin, _: None = Depends(admin_login_limit)):
    ctx = authenticate_admin(data.email, data.password)
    return success("Login successful", token=issue_token(ctx))


# ============================================================================
# DOCTORS
# ============================================================================


@router.post("/add-doctor", status_code=201)
def add_doctor(
    data: DoctorCreate,
    _: AuthContext = Depends(require_admin),
    db: Session = Depends(get_db),
):
    doctor = DoctorService(db).create_doctor(data)
    return success("Doctor added successfully", doctor=AdminDoctorResponse.from_model(doctor))


@router.get("/doctors")
def list_doctors(_: AuthContext = Depends(require_admin), db: Session = Depends(get_db)):
    doctors = DoctorService(db).get_doctors()
    return success(
        "Doctors retrieved",
        count=len(doctors),
        doctors=[AdminDoctorResponse.from_model(d) for d in doctors],
    )


@router.put("/doctor/{doctor_id}")
def update_doctor(
    doctor_id: int,
    data: DoctorUpdate,
    _: AuthContext = Depends(require_admin),
    db: Session = Depends(get_db),
):
    doctor = DoctorService(db).update_doctor(doctor_id, data)
    return success("Doctor updated successfully", doctor=AdminDoctorResponse.from_model(doctor))


@router.put("/doctor/{doctor_id}/availability")
def set_doctor_availability(
    doctor_id: int,
    data: AvailabilityUpdate,
    _: AuthContext = Depends(require_admin),
    db: Session = Depends(get_db),
):
    doctor = DoctorService(db).set_availability(doctor_id, data)
    return success("Availability updated", available=doctor.available)


@router.post("/doctor/{doctor_id}/rebuild-ledger")
def rebuild_ledger(
    doctor_id: int,
    _: AuthContext = Depends(require_admin),
    db: Session = Depends(get_db),
):
    ledger = LifecycleService(db).rebuild_ledger(doctor_id)
    return success("Booked slots rebuilt", slotsBooked=ledger)


# ============================================================================
# PATIENTS
# ============================================================================


@router.get("/patients")
def list_patients(_: AuthContext = Depends(require_admin), db: Session = Depends(get_db)):
    patients = PatientService(db).get_patients()
    return success(
        "Patients retrieved",
        count=len(patients),
        patients=[PatientResponse.from_model(p) for p in patients],
    )


@router.get("/patient/{patient_id}")
def get_patient(
    patient_id: int,
    _: AuthContext = Depends(require_admin),
    db: Session = Depends(get_db),
):
    patient = PatientService(db).get_patient(patient_id)
    return success("Patient retrieved", patient=PatientResponse.from_model(patient))


@router.post("/patient", status_code=201)
def add_patient(
    data: PatientCreate,
    _: AuthContext = Depends(require_admin),
    db: Session = Depends(get_db),
):
    patient = PatientService(db).create_patient(data)
    return success("Patient added successfully", patient=PatientResponse.from_model(patient))


@router.put("/patient/{patient_id}")
def update_patient(
    patient_id: int,
    data: PatientUpdate,
    _: AuthContext = Depends(require_admin),
    db: Session = Depends(get_db),
):
    patient = PatientService(db).update_patient(patient_id, data)
    return success("Patient updated successfully", patient=PatientResponse.from_model(patient))


@router.delete("/patient/{patient_id}")
def delete_patient(
    patient_id: int,
    _: AuthContext = Depends(require_admin),
    db: Session = Depends(get_db),
):
    PatientService(db).delete_patient(patient_id)
    return success("Patient deleted successfully")


# ============================================================================
# APPOINTMENTS
# ============================================================================


@router.get("/appointments")
def list_appointments(
    ctx: AuthContext = Depends(require_admin),
    db: Session = Depends(get_db),
    doctorId: Optional[int] = Query(None),
    patientId: Optional[int] = Query(None),
    status: Optional[str] = Query(None),
    dateFrom: Optional[str] = Query(None),
    dateTo: Optional[str] = Query(None),
    today: bool = Query(False),
    upcomingDays: Optional[int] = Query(None),
    page: int = Query(1),
):
    filters = AppointmentFilter(
        doctor_id=doctorId,
        patient_id=patientId,
        status=status,
        date_from=to_day_key(dateFrom) if dateFrom else None,
        date_to=to_day_key(dateTo) if dateTo else None,
        today=today,
        upcoming_days=upcomingDays,
    )
    result = QueryService(db).list_appointments(ctx, filters, page)
    return success("Appointments retrieved", **page_payload(result))


@router.post("/appointment", status_code=201)
def book_appointment(
    data: BookAppointmentRequest,
    ctx: AuthContext = Depends(require_admin),
    db: Session = Depends(get_db),
):
    appointment = BookingService(db).book(
        ctx, data.doctorId, data.patientId, data.date, data.slot, data.symptoms
    )
    return success(
        "Appointment booked successfully",
        appointment=AppointmentResponse.from_model(appointment),
    )


@router.put("/appointment/{appointment_id}")
def update_appointment_status(
    appointment_id: int,
    data: StatusUpdateRequest,
    ctx: AuthContext = Depends(require_admin),
    db: Session = Depends(get_db),
):
    appointment = LifecycleService(db).update_status(ctx, appointment_id, data.status, data.notes)
    return success(
        f"Appointment {appointment.status}",
        appointment=AppointmentResponse.from_model(appointment),
    )


@router.get("/available-slots/{doctor_id}/{day}")
def available_slots(
    doctor_id: int,
    day: str,
    _: AuthContext = Depends(require_admin),
    db: Session = Depends(get_db),
):
    slots = AvailabilityService(db).available_slots(doctor_id, day)
    return success(
        "Slots retrieved",
        date=slots.date,
        availableSlots=slots.free,
        bookedSlots=slots.booked,
    )


@router.get("/dashboard-stats")
def dashboard_stats(_: AuthContext = Depends(require_admin), db: Session = Depends(get_db)):
    return success("Dashboard stats retrieved", **QueryService(db).dashboard_stats())
