"""Availability service - Free and booked slots for a doctor on a day"""

import logging

from sqlalchemy.orm import Session

from ...errors import NotFound, Unavailable
from .repository import SchedulingRepository
from .schemas import SlotAvailability
from .slots import SLOT_CATALOG, DayLike, to_day_key

logger = logging.getLogger(__name__)


class AvailabilityService:
    """Computes a doctor's free slots from live appointments"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = SchedulingRepository()

    def available_slots(self, doctor_id: int, day: DayLike) -> SlotAvailability:
        """
        Free and booked slots for the doctor on the given day.

        An unavailable doctor is an error, not an empty list of free slots.
        """
        day_key = to_day_key(day)

        doctor = self.repo.get_doctor(self.db, doctor_id)
        if not doctor:
            raise NotFound("Doctor not found")

        if not doctor.available:
            logger.info(f"Slots requested for unavailable doctor {doctor_id}")
            raise Unavailable("Doctor is not available for appointments")

        booked = self.repo.booked_slots(self.db, doctor_id, day_key)
        taken = set(booked)
        free = [slot for slot in SLOT_CATALOG if slot not in taken]

        return SlotAvailability(date=day_key, free=free, booked=booked)
