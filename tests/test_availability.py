from datetime import date

import pytest

from medeasy.domain.scheduling.availability_service import AvailabilityService
from medeasy.domain.scheduling.booking_service import BookingService
from medeasy.domain.scheduling.lifecycle_service import LifecycleService
from medeasy.domain.scheduling.slots import SLOT_CATALOG
from medeasy.errors import InvalidRequest, NotFound, Unavailable
from medeasy.shared.context import AuthContext

DAY = date(2031, 3, 10)
ADMIN = AuthContext.admin()


def test_fresh_doctor_has_every_slot_free(db, make_doctor):
    doctor = make_doctor()

    slots = AvailabilityService(db).available_slots(doctor.id, DAY)

    assert slots.date == DAY
    assert slots.free == list(SLOT_CATALOG)
    assert slots.booked == []


def test_free_and_booked_partition_the_catalog(db, make_doctor, make_patient):
    doctor = make_doctor()
    patient = make_patient()
    booking = BookingService(db)
    for slot in ("02:00 PM", "09:00 AM", "11:00 AM"):
        booking.book(ADMIN, doctor.id, patient.id, DAY, slot)

    slots = AvailabilityService(db).available_slots(doctor.id, DAY)

    assert slots.booked == ["09:00 AM", "11:00 AM", "02:00 PM"]
    assert set(slots.free).isdisjoint(slots.booked)
    assert sorted(slots.free + slots.booked) == sorted(SLOT_CATALOG)
    assert slots.free == [s for s in SLOT_CATALOG if s not in slots.booked]


def test_bookings_on_other_days_and_doctors_do_not_leak(db, make_doctor, make_patient):
    doctor = make_doctor()
    other = make_doctor()
    patient = make_patient()
    booking = BookingService(db)
    booking.book(ADMIN, doctor.id, patient.id, date(2031, 3, 11), "09:00 AM")
    booking.book(ADMIN, other.id, patient.id, DAY, "09:00 AM")

    slots = AvailabilityService(db).available_slots(doctor.id, DAY)

    assert slots.booked == []


def test_cancelled_appointments_free_their_slot(db, make_doctor, make_patient):
    doctor = make_doctor()
    patient = make_patient()
    appointment = BookingService(db).book(ADMIN, doctor.id, patient.id, DAY, "10:00 AM")
    LifecycleService(db).cancel(ADMIN, appointment.id)

    slots = AvailabilityService(db).available_slots(doctor.id, DAY)

    assert "10:00 AM" in slots.free
    assert slots.booked == []


def test_timestamp_input_resolves_to_the_same_day(db, make_doctor, make_patient):
    doctor = make_doctor()
    patient = make_patient()
    BookingService(db).book(ADMIN, doctor.id, patient.id, "2031-03-10", "09:00 AM")

    slots = AvailabilityService(db).available_slots(doctor.id, "2031-03-10T15:45:00.000Z")

    assert slots.booked == ["09:00 AM"]


def test_unknown_doctor(db):
    with pytest.raises(NotFound):
        AvailabilityService(db).available_slots(999, DAY)


def test_unavailable_doctor_is_an_error_not_an_empty_list(db, make_doctor):
    doctor = make_doctor(available=False)

    with pytest.raises(Unavailable):
        AvailabilityService(db).available_slots(doctor.id, DAY)


def test_bad_date(db, make_doctor):
    doctor = make_doctor()

    with pytest.raises(InvalidRequest):
        AvailabilityService(db).available_slots(doctor.id, "not-a-date")
