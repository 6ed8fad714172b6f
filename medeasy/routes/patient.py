"""Patient app router - Public doctor directory and the patient's own bookings"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..auth import issue_token, require_patient
from ..config import LOGIN_RATE_LIMIT, LOGIN_RATE_WINDOW_SECONDS
from ..database import get_db
from ..domain.doctors.schemas import DoctorResponse, TopDoctorResponse
from ..domain.doctors.service import DoctorService
from ..domain.patients.schemas import PatientLogin, PatientRegister, PatientResponse, PatientUpdate
from ..domain.patients.service import PatientService
from ..domain.scheduling.availability_service import AvailabilityService
from ..domain.scheduling.booking_service import BookingService
from ..domain.scheduling.lifecycle_service import LifecycleService
from ..domain.scheduling.query_service import QueryService
from ..domain.scheduling.schemas import (
    AppointmentFilter,
    AppointmentResponse,
    PatientBookAppointmentRequest,
)
from ..rate_limiter import create_rate_limiter
from ..shared.context import AuthContext
from ..shared.responses import page_payload, success

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/patient", tags=["Patient"])

patient_login_limit = create_rate_limiter(
    limit=LOGIN_RATE_LIMIT, window_seconds=LOGIN_RATE_WINDOW_SECONDS, key_prefix="login:patient"
)
register_limit = create_rate_limiter(
    limit=LOGIN_RATE_LIMIT, window_seconds=LOGIN_RATE_WINDOW_SECONDS, key_prefix="register"
)


# ============================================================================
# PUBLIC DIRECTORY
# ============================================================================


@router.get("/top-doctors")
def top_doctors(db: Session = Depends(get_db)):
    doctors = DoctorService(db).top_doctors()
    return success(
        "Top doctors retrieved",
        topDoctors=[
            TopDoctorResponse(
                id=d.id,
                name=d.name,
                speciality=d.speciality,
                experience=d.experience,
                fees=d.fees,
                image=d.image_url,
            )
            for d in doctors
        ],
    )


@router.get("/doctors")
def list_doctors(
    db: Session = Depends(get_db),
    speciality: Optional[str] = Query(None),
    name: Optional[str] = Query(None),
    available: Optional[str] = Query(None),
    sortBy: Optional[str] = Query(None),
):
    # Only "false" lists unavailable doctors; anything else means available ones
    only_available = available != "false"
    doctors = DoctorService(db).list_directory(speciality, name, only_available, sortBy)
    return success(
        "Doctors retrieved",
        count=len(doctors),
        doctors=[DoctorResponse.from_model(d) for d in doctors],
    )


@router.get("/doctors/{doctor_id}")
def doctor_details(doctor_id: int, db: Session = Depends(get_db)):
    doctor = DoctorService(db).get_public_doctor(doctor_id)
    return success("Doctor retrieved", doctor=DoctorResponse.from_model(doctor))


@router.get("/doctors/{doctor_id}/available-slots/{day}")
def available_slots(doctor_id: int, day: str, db: Session = Depends(get_db)):
    slots = AvailabilityService(db).available_slots(doctor_id, day)
    return success(
        "Slots retrieved",
        date=slots.date,
        availableSlots=slots.free,
        bookedSlots=slots.booked,
    )


@router.get("/specialities")
def specialities(db: Session = Depends(get_db)):
    return success("Specialities retrieved", specialities=DoctorService(db).specialities())


# ============================================================================
# ACCOUNT
# ============================================================================


@router.post("/login")
def login(
    data: PatientLogin,
    _: None = Depends(patient_login_limit),
    db: Session = Depends(get_db),
):
    patient = PatientService(db).authenticate(data.email, data.password)
    return success(
        "Login successful",
        token=issue_token(AuthContext.patient(patient.id)),
        user=PatientResponse.from_model(patient),
    )


@router.post("/register", status_code=201)
def register(
    data: PatientRegister,
    _: None = Depends(register_limit),
    db: Session = Depends(get_db),
):
    patient = PatientService(db).register(data)
    return success(
        "Registration successful",
        token=issue_token(AuthContext.patient(patient.id)),
        user=PatientResponse.from_model(patient),
    )


@router.get("/profile")
def get_profile(ctx: AuthContext = Depends(require_patient), db: Session = Depends(get_db)):
    patient = PatientService(db).get_patient(ctx.subject_id)
    return success("Profile retrieved", patient=PatientResponse.from_model(patient))


@router.put("/profile")
def update_profile(
    data: PatientUpdate,
    ctx: AuthContext = Depends(require_patient),
    db: Session = Depends(get_db),
):
    patient = PatientService(db).update_patient(ctx.subject_id, data)
    return success("Profile updated successfully", patient=PatientResponse.from_model(patient))


# ============================================================================
# APPOINTMENTS
# ============================================================================


@router.post("/book-appointment", status_code=201)
def book_appointment(
    data: PatientBookAppointmentRequest,
    ctx: AuthContext = Depends(require_patient),
    db: Session = Depends(get_db),
):
    appointment = BookingService(db).book(
        ctx, data.doctorId, ctx.subject_id, data.date, data.slot, data.symptoms
    )
    return success(
        "Appointment booked successfully",
        appointment=AppointmentResponse.from_model(appointment),
    )


@router.get("/my-appointments")
def my_appointments(
    ctx: AuthContext = Depends(require_patient),
    db: Session = Depends(get_db),
    status: Optional[str] = Query(None),
    page: int = Query(1),
):
    result = QueryService(db).list_appointments(ctx, AppointmentFilter(status=status), page)
    return success("Appointments retrieved", **page_payload(result))


@router.put("/cancel-appointment/{appointment_id}")
def cancel_appointment(
    appointment_id: int,
    ctx: AuthContext = Depends(require_patient),
    db: Session = Depends(get_db),
):
    appointment = LifecycleService(db).cancel(ctx, appointment_id)
    return success(
        "Appointment cancelled successfully",
        appointment=AppointmentResponse.from_model(appointment),
    )
