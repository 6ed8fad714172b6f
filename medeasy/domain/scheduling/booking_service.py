"""Booking service - Creates appointments and keeps the booked-slots ledger in step"""

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...errors import InvalidRequest, NotFound, SlotConflict, Unauthorized, Unavailable
from ...models import Appointment
from ...shared.context import AuthContext
from .repository import SchedulingRepository
from .slots import DayLike, is_valid_slot, to_day_key

logger = logging.getLogger(__name__)


class BookingService:
    """Service layer for appointment booking"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = SchedulingRepository()

    def book(
        self,
        ctx: AuthContext,
        doctor_id: Optional[int],
        patient_id: Optional[int],
        day: Optional[DayLike],
        slot: Optional[str],
        symptoms: Optional[str] = None,
    ) -> Appointment:
        """
        Book a slot with a doctor for a patient.

        Checks run in a fixed order, each with its own failure: missing input,
        unknown doctor, unavailable doctor, unknown patient, slot taken. The
        appointment insert and the ledger update commit together while the
        doctor row is locked; the partial unique index on (doctor, day, slot)
        turns a lost race into a SlotConflict.
        """
        if ctx.is_doctor:
            raise Unauthorized("Doctors cannot book appointments")
        if ctx.is_patient and patient_id != ctx.subject_id:
            raise Unauthorized("Patients can only book appointments for themselves")

        if not doctor_id or not patient_id or not day or not slot:
            raise InvalidRequest("Doctor ID, Patient ID, date and slot are required")
        day_key = to_day_key(day)
        if not is_valid_slot(slot):
            raise InvalidRequest(f"Unknown slot: {slot}")

        try:
            doctor = self.repo.get_doctor_for_update(self.db, doctor_id)
            if not doctor:
                raise NotFound("Doctor not found")

            if not doctor.available:
                raise Unavailable("Doctor is not available for appointments")

            patient = self.repo.get_patient(self.db, patient_id)
            if not patient:
                raise NotFound("Patient not found")

            if self.repo.find_active_booking(self.db, doctor_id, day_key, slot):
                raise SlotConflict("This slot is already booked")

            appointment = self.repo.add_appointment(
                self.db,
                doctor_id=doctor_id,
                patient_id=patient_id,
                appointment_date=day_key,
                slot=slot,
                symptoms=(symptoms or "").strip(),
                notes="",
                status="pending",
            )
            self.repo.ledger_add(doctor, day_key, slot)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(
                f"⚠️ Lost booking race for doctor {doctor_id} on {day_key} at {slot}: {e.orig}"
            )
            raise SlotConflict("This slot is already booked") from e
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            f"✅ Appointment {appointment.id} booked: doctor {doctor_id}, patient {patient_id}, "
            f"{day_key} {slot} (by {ctx.role})"
        )
        return self.repo.get_appointment(self.db, appointment.id)
