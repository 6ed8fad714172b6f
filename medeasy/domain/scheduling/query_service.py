"""Query service - Appointment listings and console reporting (read only)"""

import logging
from datetime import timedelta
from typing import Optional

from sqlalchemy.orm import Session

from ...errors import InvalidRequest, NotFound
from ...models import APPOINTMENT_STATUSES
from ...shared.context import AuthContext
from .repository import SchedulingRepository
from .schemas import AppointmentFilter, AppointmentResponse, Page, patient_summary
from .slots import day_range, today_key

logger = logging.getLogger(__name__)

PAGE_SIZE = 10

UPCOMING_STATUSES = ("pending", "confirmed")


class QueryService:
    """Service layer for appointment listings and dashboards"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = SchedulingRepository()

    def list_appointments(
        self, ctx: AuthContext, filters: Optional[AppointmentFilter] = None, page: int = 1
    ) -> Page[AppointmentResponse]:
        """
        One page of appointments visible to the caller.

        Doctors only ever see their own appointments and patients theirs,
        whatever ids the filter carries. ``today`` and ``upcoming_days`` replace
        the date range; upcoming views default to pending/confirmed and sort
        soonest first, everything else sorts newest first.
        """
        filters = filters or AppointmentFilter()
        if page is None or page < 1:
            raise InvalidRequest("Page must be 1 or greater")

        doctor_id = filters.doctor_id
        patient_id = filters.patient_id
        if ctx.is_doctor:
            doctor_id = ctx.subject_id
        elif ctx.is_patient:
            patient_id = ctx.subject_id

        statuses: Optional[tuple[str, ...]] = None
        status = (filters.status or "").strip().lower()
        if status and status != "all":
            if status not in APPOINTMENT_STATUSES:
                raise InvalidRequest(f"Invalid status filter: {filters.status}")
            statuses = (status,)

        date_from, date_to = filters.date_from, filters.date_to
        upcoming = False
        if filters.today:
            date_from = date_to = today_key()
        elif filters.upcoming_days is not None:
            date_from, date_to = day_range(today_key(), filters.upcoming_days)
            upcoming = True
            statuses = statuses or UPCOMING_STATUSES

        if date_from and date_to and date_from > date_to:
            raise InvalidRequest("dateFrom must not be after dateTo")

        query = self.repo.search_appointments(
            self.db,
            doctor_id=doctor_id,
            patient_id=patient_id,
            statuses=statuses,
            date_from=date_from,
            date_to=date_to,
        )
        total = query.order_by(None).count()

        ordered = self.repo.soonest_first(query) if upcoming else self.repo.newest_first(query)
        rows = ordered.offset((page - 1) * PAGE_SIZE).limit(PAGE_SIZE).all()

        return Page(
            items=[AppointmentResponse.from_model(a) for a in rows],
            page=page,
            page_size=PAGE_SIZE,
            total=total,
        )

    def doctor_stats(self, doctor_id: int) -> dict:
        """Status counts plus today's and the coming week's open appointments"""
        if not self.repo.get_doctor(self.db, doctor_id):
            raise NotFound("Doctor not found")

        counts = self.repo.count_by_status(self.db, doctor_id)
        today = today_key()

        todays = self.repo.soonest_first(
            self.repo.search_appointments(
                self.db,
                doctor_id=doctor_id,
                statuses=UPCOMING_STATUSES,
                date_from=today,
                date_to=today,
            )
        ).all()

        upcoming = self.repo.soonest_first(
            self.repo.search_appointments(
                self.db,
                doctor_id=doctor_id,
                statuses=UPCOMING_STATUSES,
                date_from=today + timedelta(days=1),
                date_to=today + timedelta(days=7),
            )
        ).all()

        return {
            "totalAppointments": sum(counts.values()),
            "pendingAppointments": counts.get("pending", 0),
            "confirmedAppointments": counts.get("confirmed", 0),
            "completedAppointments": counts.get("completed", 0),
            "cancelledAppointments": counts.get("cancelled", 0),
            "uniquePatientsCount": len(self.repo.patient_visit_summary(self.db, doctor_id)),
            "todayAppointments": [AppointmentResponse.from_model(a) for a in todays],
            "upcomingAppointments": [AppointmentResponse.from_model(a) for a in upcoming],
        }

    def doctor_patients(self, doctor_id: int) -> list[dict]:
        """Patients the doctor has seen or will see, most recent visit first"""
        if not self.repo.get_doctor(self.db, doctor_id):
            raise NotFound("Doctor not found")

        patients = []
        for patient, count, last_date in self.repo.patient_visit_summary(self.db, doctor_id):
            patients.append(
                {
                    "patient": patient_summary(patient),
                    "appointmentCount": count,
                    "lastAppointment": last_date,
                }
            )

        patients.sort(key=lambda entry: entry["lastAppointment"], reverse=True)
        return patients

    def dashboard_stats(self) -> dict:
        """Clinic-wide totals for the admin console"""
        today = today_key()
        start, end = day_range(today, 7)

        appointments_today = (
            self.repo.search_appointments(self.db, date_from=today, date_to=today)
            .order_by(None)
            .count()
        )
        upcoming = (
            self.repo.soonest_first(
                self.repo.search_appointments(
                    self.db, statuses=UPCOMING_STATUSES, date_from=start, date_to=end
                )
            )
            .limit(5)
            .all()
        )

        return {
            "stats": {
                "totalPatients": self.repo.count_patients(self.db),
                "totalDoctors": self.repo.count_doctors(self.db),
                "appointmentsToday": appointments_today,
            },
            "upcomingAppointments": [AppointmentResponse.from_model(a) for a in upcoming],
            "recentActivities": [
                AppointmentResponse.from_model(a)
                for a in self.repo.recent_appointments(self.db, limit=5)
            ],
        }
