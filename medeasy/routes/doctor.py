"""Doctor console router - Own profile, availability and appointments"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..auth import issue_token, require_doctor
from ..config import LOGIN_RATE_LIMIT, LOGIN_RATE_WINDOW_SECONDS
from ..database import get_db
from ..domain.doctors.schemas import (
    AvailabilityUpdate,
    DoctorLogin,
    DoctorProfileUpdate,
    DoctorResponse,
)
from ..domain.doctors.service import DoctorService
from ..domain.scheduling.availability_service import AvailabilityService
from ..domain.scheduling.lifecycle_service import LifecycleService
from ..domain.scheduling.query_service import QueryService
from ..domain.scheduling.schemas import AppointmentFilter, AppointmentResponse, StatusUpdateRequest
from ..domain.scheduling.slots import to_day_key
from ..rate_limiter import create_rate_limiter
from ..shared.context import AuthContext
from ..shared.responses import page_payload, success

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/doctor", tags=["Doctor"])

doctor_login_limit = create_rate_limiter(
    limit=LOGIN_RATE_LIMIT, window_seconds=LOGIN_RATE_WINDOW_SECONDS, key_prefix="login:doctor"
)


@router.post("/login")
def login(
    data: DoctorLogin,
    _: None = Depends(doctor_login_limit),
    db: Session = Depends(get_db),
):
    doctor = DoctorService(db).authenticate(data.email, data.password)
    return success(
        "Login successful",
        token=issue_token(AuthContext.doctor(doctor.id)),
        doctor=DoctorResponse.from_model(doctor),
    )


@router.get("/profile")
def get_profile(ctx: AuthContext = Depends(require_doctor), db: Session = Depends(get_db)):
    doctor = DoctorService(db).get_doctor(ctx.subject_id)
    return success("Profile retrieved", doctor=DoctorResponse.from_model(doctor))


@router.put("/profile")
def update_profile(
    data: DoctorProfileUpdate,
    ctx: AuthContext = Depends(require_doctor),
    db: Session = Depends(get_db),
):
    doctor = DoctorService(db).update_profile(ctx.subject_id, data)
    return success("Profile updated successfully", doctor=DoctorResponse.from_model(doctor))


@router.put("/availability")
def set_availability(
    data: AvailabilityUpdate,
    ctx: AuthContext = Depends(require_doctor),
    db: Session = Depends(get_db),
):
    doctor = DoctorService(db).set_availability(ctx.subject_id, data)
    state = "available" if doctor.available else "unavailable"
    return success(f"You are now {state} for appointments", available=doctor.available)


@router.get("/stats")
def get_stats(ctx: AuthContext = Depends(require_doctor), db: Session = Depends(get_db)):
    return success("Stats retrieved", stats=QueryService(db).doctor_stats(ctx.subject_id))


@router.get("/patients")
def get_patients(ctx: AuthContext = Depends(require_doctor), db: Session = Depends(get_db)):
    patients = QueryService(db).doctor_patients(ctx.subject_id)
    return success("Patients retrieved", count=len(patients), patients=patients)


@router.get("/appointments")
def list_appointments(
    ctx: AuthContext = Depends(require_doctor),
    db: Session = Depends(get_db),
    status: Optional[str] = Query(None),
    dateFrom: Optional[str] = Query(None),
    dateTo: Optional[str] = Query(None),
    today: bool = Query(False),
    upcomingDays: Optional[int] = Query(None),
    page: int = Query(1),
):
    filters = AppointmentFilter(
        status=status,
        date_from=to_day_key(dateFrom) if dateFrom else None,
        date_to=to_day_key(dateTo) if dateTo else None,
        today=today,
        upcoming_days=upcomingDays,
    )
    result = QueryService(db).list_appointments(ctx, filters, page)
    return success("Appointments retrieved", **page_payload(result))


@router.put("/appointment/{appointment_id}")
def update_appointment_status(
    appointment_id: int,
    data: StatusUpdateRequest,
    ctx: AuthContext = Depends(require_doctor),
    db: Session = Depends(get_db),
):
    appointment = LifecycleService(db).update_status(ctx, appointment_id, data.status, data.notes)
    return success(
        f"Appointment {appointment.status}",
        appointment=AppointmentResponse.from_model(appointment),
    )


@router.get("/available-slots/{day}")
def available_slots(
    day: str,
    ctx: AuthContext = Depends(require_doctor),
    db: Session = Depends(get_db),
):
    slots = AvailabilityService(db).available_slots(ctx.subject_id, day)
    return success(
        "Slots retrieved",
        date=slots.date,
        availableSlots=slots.free,
        bookedSlots=slots.booked,
    )
