"""
Appointment status lifecycle

    pending ──► confirmed ──► completed
       │            │
       ├────────────┴──► cancelled
       └──► completed

completed and cancelled are terminal. Cancelling releases the slot from the
doctor's booked-slots ledger in the same transaction as the status change.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...errors import InvalidRequest, NotFound, TerminalState, Unauthorized
from ...models import APPOINTMENT_STATUSES, Appointment
from ...shared.context import AuthContext
from .repository import SchedulingRepository

logger = logging.getLogger(__name__)

TERMINAL_STATUSES = frozenset({"completed", "cancelled"})

ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    "pending": frozenset({"confirmed", "cancelled", "completed"}),
    "confirmed": frozenset({"cancelled", "completed"}),
    "completed": frozenset(),
    "cancelled": frozenset(),
}


def validate_status_transition(current_status: str, new_status: str) -> None:
    """
    Raise unless ``current_status`` may move to ``new_status``.

    Raises:
        InvalidRequest: Unknown status, or a move the workflow does not allow
        TerminalState: The appointment is already completed or cancelled
    """
    if new_status not in APPOINTMENT_STATUSES:
        raise InvalidRequest("Invalid status value")

    if current_status in TERMINAL_STATUSES:
        raise TerminalState(f"Cannot change status of {current_status} appointments")

    if new_status not in ALLOWED_TRANSITIONS.get(current_status, frozenset()):
        raise InvalidRequest(f"Cannot change status from {current_status} to {new_status}")


class LifecycleService:
    """Service layer for appointment status changes"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = SchedulingRepository()

    def _check_actor(self, ctx: AuthContext, appointment: Appointment, cancelling: bool) -> None:
        if ctx.is_admin:
            return
        if ctx.is_doctor:
            if appointment.doctor_id != ctx.subject_id:
                logger.warning(
                    f"⚠️ Doctor {ctx.subject_id} tried to modify appointment {appointment.id} "
                    f"of doctor {appointment.doctor_id}"
                )
                raise Unauthorized("Not authorized to update this appointment")
            return
        if ctx.is_patient:
            if not cancelling:
                raise Unauthorized("Patients can only cancel appointments")
            if appointment.patient_id != ctx.subject_id:
                logger.warning(
                    f"⚠️ Patient {ctx.subject_id} tried to cancel appointment {appointment.id}"
                )
                raise Unauthorized("You are not authorized to cancel this appointment")
            return
        raise Unauthorized("Unknown role")

    def update_status(
        self,
        ctx: AuthContext,
        appointment_id: int,
        status: str,
        notes: Optional[str] = None,
    ) -> Appointment:
        """Move an appointment to a new status (admin: any appointment, doctor: their own)"""
        return self._transition(ctx, appointment_id, status, notes, cancelling=False)

    def cancel(self, ctx: AuthContext, appointment_id: int) -> Appointment:
        """Cancel an appointment and free its slot (patients may cancel their own)"""
        return self._transition(ctx, appointment_id, "cancelled", None, cancelling=True)

    def _transition(
        self,
        ctx: AuthContext,
        appointment_id: int,
        status: Optional[str],
        notes: Optional[str],
        cancelling: bool,
    ) -> Appointment:
        if not status:
            raise InvalidRequest("Invalid status value")
        status = status.strip().lower()

        appointment = self.repo.get_appointment(self.db, appointment_id)
        if not appointment:
            raise NotFound("Appointment not found")

        self._check_actor(ctx, appointment, cancelling)

        try:
            # Lock the doctor first so ledger edits from bookings and
            # cancellations on the same doctor serialize.
            doctor = self.repo.get_doctor_for_update(self.db, appointment.doctor_id)
            self.db.refresh(appointment)

            previous = appointment.status
            validate_status_transition(previous, status)

            appointment.status = status
            if notes is not None:
                appointment.notes = notes.strip()

            if status == "cancelled" and doctor is not None:
                self.repo.ledger_remove(doctor, appointment.appointment_date, appointment.slot)

            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            f"✅ Appointment {appointment_id} status: {previous} → {status} (by {ctx.role})"
        )
        return self.repo.get_appointment(self.db, appointment_id)

    def rebuild_ledger(self, doctor_id: int) -> dict[str, list[str]]:
        """Recompute a doctor's booked-slots ledger from live appointments"""
        try:
            doctor = self.repo.get_doctor_for_update(self.db, doctor_id)
            if not doctor:
                raise NotFound("Doctor not found")

            ledger = self.repo.ledger_from_appointments(self.db, doctor_id)
            if ledger != (doctor.slots_booked or {}):
                logger.warning(f"⚠️ Ledger drift repaired for doctor {doctor_id}")
            doctor.slots_booked = ledger
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        return ledger
