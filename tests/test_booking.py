from datetime import date

import pytest

from medeasy.domain.scheduling.booking_service import BookingService
from medeasy.domain.scheduling.repository import SchedulingRepository
from medeasy.errors import InvalidRequest, NotFound, SlotConflict, Unauthorized, Unavailable
from medeasy.models import Appointment, Doctor
from medeasy.shared.context import AuthContext

DAY = date(2031, 3, 10)
ADMIN = AuthContext.admin()


def test_booking_creates_pending_appointment_and_updates_ledger(db, make_doctor, make_patient):
    doctor = make_doctor()
    patient = make_patient()

    appointment = BookingService(db).book(
        ADMIN, doctor.id, patient.id, "2031-03-10", "10:00 AM", symptoms="  cough  "
    )

    assert appointment.status == "pending"
    assert appointment.appointment_date == DAY
    assert appointment.slot == "10:00 AM"
    assert appointment.symptoms == "cough"
    assert appointment.doctor.name == doctor.name
    assert appointment.patient.email == patient.email

    db.expire_all()
    stored = db.query(Doctor).filter(Doctor.id == doctor.id).one()
    assert stored.slots_booked == {"2031-03-10": ["10:00 AM"]}


def test_ledger_keeps_catalog_order(db, make_doctor, make_patient):
    doctor = make_doctor()
    patient = make_patient()
    booking = BookingService(db)
    booking.book(ADMIN, doctor.id, patient.id, DAY, "03:00 PM")
    booking.book(ADMIN, doctor.id, patient.id, DAY, "09:00 AM")

    db.expire_all()
    stored = db.query(Doctor).filter(Doctor.id == doctor.id).one()
    assert stored.slots_booked["2031-03-10"] == ["09:00 AM", "03:00 PM"]


def test_second_booking_of_same_slot_conflicts_without_new_row(db, make_doctor, make_patient):
    doctor = make_doctor()
    first = make_patient()
    second = make_patient()
    booking = BookingService(db)
    booking.book(ADMIN, doctor.id, first.id, DAY, "10:00 AM")

    with pytest.raises(SlotConflict):
        booking.book(ADMIN, doctor.id, second.id, DAY, "10:00 AM")

    assert db.query(Appointment).count() == 1


def test_same_slot_with_different_doctor_or_day_is_fine(db, make_doctor, make_patient):
    doctor = make_doctor()
    other = make_doctor()
    patient = make_patient()
    booking = BookingService(db)
    booking.book(ADMIN, doctor.id, patient.id, DAY, "10:00 AM")
    booking.book(ADMIN, other.id, patient.id, DAY, "10:00 AM")
    booking.book(ADMIN, doctor.id, patient.id, date(2031, 3, 11), "10:00 AM")

    assert db.query(Appointment).count() == 3


@pytest.mark.parametrize(
    "doctor_id, patient_id, day, slot",
    [
        (None, 1, DAY, "10:00 AM"),
        (1, None, DAY, "10:00 AM"),
        (1, 1, None, "10:00 AM"),
        (1, 1, DAY, None),
        (1, 1, DAY, "05:00 PM"),
        (1, 1, "garbage", "10:00 AM"),
    ],
)
def test_invalid_input_is_rejected_first(db, doctor_id, patient_id, day, slot):
    # No doctor or patient exists: input validation must win over NotFound
    with pytest.raises(InvalidRequest):
        BookingService(db).book(ADMIN, doctor_id, patient_id, day, slot)


def test_unknown_doctor(db, make_patient):
    patient = make_patient()
    with pytest.raises(NotFound, match="Doctor"):
        BookingService(db).book(ADMIN, 999, patient.id, DAY, "10:00 AM")


def test_unavailable_doctor_checked_before_patient(db, make_doctor):
    doctor = make_doctor(available=False)
    with pytest.raises(Unavailable):
        BookingService(db).book(ADMIN, doctor.id, 999, DAY, "10:00 AM")


def test_unknown_patient(db, make_doctor):
    doctor = make_doctor()
    with pytest.raises(NotFound, match="Patient"):
        BookingService(db).book(ADMIN, doctor.id, 999, DAY, "10:00 AM")


def test_doctors_cannot_book(db, make_doctor, make_patient):
    doctor = make_doctor()
    patient = make_patient()
    with pytest.raises(Unauthorized):
        BookingService(db).book(AuthContext.doctor(doctor.id), doctor.id, patient.id, DAY, "10:00 AM")


def test_patients_book_only_for_themselves(db, make_doctor, make_patient):
    doctor = make_doctor()
    me = make_patient()
    someone_else = make_patient()
    booking = BookingService(db)

    with pytest.raises(Unauthorized):
        booking.book(AuthContext.patient(me.id), doctor.id, someone_else.id, DAY, "10:00 AM")

    appointment = booking.book(AuthContext.patient(me.id), doctor.id, me.id, DAY, "10:00 AM")
    assert appointment.patient_id == me.id


def test_lost_race_on_unique_index_reports_slot_conflict(db, make_doctor, make_patient, monkeypatch):
    doctor = make_doctor()
    patient = make_patient()
    booking = BookingService(db)
    booking.book(ADMIN, doctor.id, patient.id, DAY, "10:00 AM")

    # Simulate a concurrent writer that passed the existence check
    monkeypatch.setattr(SchedulingRepository, "find_active_booking", staticmethod(lambda *a: None))

    with pytest.raises(SlotConflict):
        booking.book(ADMIN, doctor.id, patient.id, DAY, "10:00 AM")

    db.expire_all()
    assert db.query(Appointment).count() == 1
    stored = db.query(Doctor).filter(Doctor.id == doctor.id).one()
    assert stored.slots_booked == {"2031-03-10": ["10:00 AM"]}
