"""Scheduling repository - Database operations for appointments and the booked-slots ledger"""

from datetime import date
from typing import Optional

from sqlalchemy import case, func
from sqlalchemy.orm import Query, Session, joinedload

from ...models import Appointment, Doctor, Patient
from .slots import SLOT_CATALOG, day_key_str, order_slots

ACTIVE_STATUSES = ("pending", "confirmed", "completed")

# SQL expression ordering slots by catalog position rather than by label text
slot_order = case(
    {label: index for index, label in enumerate(SLOT_CATALOG)},
    value=Appointment.slot,
    else_=len(SLOT_CATALOG),
)


class SchedulingRepository:
    """Repository for appointment database operations"""

    # Lookups
    @staticmethod
    def get_doctor(db: Session, doctor_id: int) -> Optional[Doctor]:
        return db.query(Doctor).filter(Doctor.id == doctor_id).first()

    @staticmethod
    def get_doctor_for_update(db: Session, doctor_id: int) -> Optional[Doctor]:
        """Load a doctor and lock the row until the transaction ends"""
        return (
            db.query(Doctor)
            .filter(Doctor.id == doctor_id)
            .with_for_update()
            .populate_existing()
            .first()
        )

    @staticmethod
    def get_patient(db: Session, patient_id: int) -> Optional[Patient]:
        return db.query(Patient).filter(Patient.id == patient_id).first()

    @staticmethod
    def get_appointment(db: Session, appointment_id: int) -> Optional[Appointment]:
        return (
            db.query(Appointment)
            .options(joinedload(Appointment.doctor), joinedload(Appointment.patient))
            .populate_existing()
            .filter(Appointment.id == appointment_id)
            .first()
        )

    @staticmethod
    def find_active_booking(
        db: Session, doctor_id: int, day: date, slot: str
    ) -> Optional[Appointment]:
        """The non-cancelled appointment holding (doctor, day, slot), if any"""
        return (
            db.query(Appointment)
            .filter(
                Appointment.doctor_id == doctor_id,
                Appointment.appointment_date == day,
                Appointment.slot == slot,
                Appointment.status != "cancelled",
            )
            .first()
        )

    @staticmethod
    def booked_slots(db: Session, doctor_id: int, day: date) -> list[str]:
        """Slot labels of the doctor's non-cancelled appointments on a day, in catalog order"""
        rows = (
            db.query(Appointment.slot)
            .filter(
                Appointment.doctor_id == doctor_id,
                Appointment.appointment_date == day,
                Appointment.status != "cancelled",
            )
            .all()
        )
        return order_slots(row.slot for row in rows)

    # Writes (callers own the transaction)
    @staticmethod
    def add_appointment(db: Session, **appointment_data) -> Appointment:
        appointment = Appointment(**appointment_data)
        db.add(appointment)
        db.flush()
        return appointment

    # Booked-slots ledger
    @staticmethod
    def ledger_add(doctor: Doctor, day: date, slot: str) -> None:
        ledger = dict(doctor.slots_booked or {})
        key = day_key_str(day)
        ledger[key] = order_slots([*ledger.get(key, []), slot])
        # Reassign so SQLAlchemy sees the JSON column change
        doctor.slots_booked = ledger

    @staticmethod
    def ledger_remove(doctor: Doctor, day: date, slot: str) -> None:
        ledger = dict(doctor.slots_booked or {})
        key = day_key_str(day)
        remaining = [label for label in ledger.get(key, []) if label != slot]
        if remaining:
            ledger[key] = remaining
        else:
            ledger.pop(key, None)
        doctor.slots_booked = ledger

    @staticmethod
    def ledger_from_appointments(db: Session, doctor_id: int) -> dict[str, list[str]]:
        rows = (
            db.query(Appointment.appointment_date, Appointment.slot)
            .filter(Appointment.doctor_id == doctor_id, Appointment.status != "cancelled")
            .all()
        )
        grouped: dict[str, list[str]] = {}
        for row in rows:
            grouped.setdefault(day_key_str(row.appointment_date), []).append(row.slot)
        return {key: order_slots(labels) for key, labels in sorted(grouped.items())}

    # Search and Filter Methods
    @staticmethod
    def search_appointments(
        db: Session,
        doctor_id: Optional[int] = None,
        patient_id: Optional[int] = None,
        statuses: Optional[tuple[str, ...]] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> Query:
        """Filtered appointment query with doctor and patient joined in"""
        # Reload joined rows so a doctor or patient deleted in this session reads as gone
        query = (
            db.query(Appointment)
            .options(joinedload(Appointment.doctor), joinedload(Appointment.patient))
            .populate_existing()
        )

        if doctor_id is not None:
            query = query.filter(Appointment.doctor_id == doctor_id)

        if patient_id is not None:
            query = query.filter(Appointment.patient_id == patient_id)

        if statuses:
            query = query.filter(Appointment.status.in_(statuses))

        if date_from:
            query = query.filter(Appointment.appointment_date >= date_from)

        if date_to:
            query = query.filter(Appointment.appointment_date <= date_to)

        return query

    @staticmethod
    def newest_first(query: Query) -> Query:
        return query.order_by(Appointment.appointment_date.desc(), slot_order, Appointment.id.desc())

    @staticmethod
    def soonest_first(query: Query) -> Query:
        return query.order_by(Appointment.appointment_date.asc(), slot_order, Appointment.id.asc())

    # Reporting
    @staticmethod
    def count_by_status(db: Session, doctor_id: Optional[int] = None) -> dict[str, int]:
        query = db.query(Appointment.status, func.count(Appointment.id))
        if doctor_id is not None:
            query = query.filter(Appointment.doctor_id == doctor_id)
        return {status: count for status, count in query.group_by(Appointment.status).all()}

    @staticmethod
    def patient_visit_summary(db: Session, doctor_id: int) -> list[tuple[Patient, int, date]]:
        """(patient, appointment count, last appointment date) for confirmed/completed visits"""
        return (
            db.query(
                Patient,
                func.count(Appointment.id),
                func.max(Appointment.appointment_date),
            )
            .join(Appointment, Appointment.patient_id == Patient.id)
            .filter(
                Appointment.doctor_id == doctor_id,
                Appointment.status.in_(("confirmed", "completed")),
            )
            .group_by(Patient.id)
            .all()
        )

    @staticmethod
    def recent_appointments(db: Session, limit: int = 5) -> list[Appointment]:
        return (
            db.query(Appointment)
            .options(joinedload(Appointment.doctor), joinedload(Appointment.patient))
            .populate_existing()
            .order_by(Appointment.created_at.desc(), Appointment.id.desc())
            .limit(limit)
            .all()
        )

    @staticmethod
    def count_doctors(db: Session) -> int:
        return db.query(func.count(Doctor.id)).scalar() or 0

    @staticmethod
    def count_patients(db: Session) -> int:
        return db.query(func.count(Patient.id)).scalar() or 0
