import threading
from datetime import date

from medeasy.database import SessionLocal
from medeasy.domain.scheduling.availability_service import AvailabilityService
from medeasy.domain.scheduling.booking_service import BookingService
from medeasy.errors import SlotConflict
from medeasy.models import Appointment, Doctor
from medeasy.shared.context import AuthContext

DAY = date(2031, 3, 10)
WORKERS = 8


def test_concurrent_bookings_of_one_slot_yield_exactly_one_success(db, make_doctor, make_patient):
    doctor = make_doctor()
    patients = [make_patient() for _ in range(WORKERS)]
    barrier = threading.Barrier(WORKERS)
    results: list[str] = []
    lock = threading.Lock()

    def attempt(patient_id: int) -> None:
        session = SessionLocal()
        try:
            barrier.wait()
            BookingService(session).book(
                AuthContext.admin(), doctor.id, patient_id, DAY, "10:00 AM"
            )
            outcome = "booked"
        except SlotConflict:
            outcome = "conflict"
        except Exception as e:  # surfaced through the assertion below
            outcome = f"error: {e!r}"
        finally:
            session.close()
        with lock:
            results.append(outcome)

    threads = [threading.Thread(target=attempt, args=(p.id,)) for p in patients]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=60)

    assert sorted(results) == ["booked"] + ["conflict"] * (WORKERS - 1)

    db.expire_all()
    assert db.query(Appointment).count() == 1
    stored = db.query(Doctor).filter(Doctor.id == doctor.id).one()
    assert stored.slots_booked == {"2031-03-10": ["10:00 AM"]}
    assert AvailabilityService(db).available_slots(doctor.id, DAY).booked == ["10:00 AM"]


def test_concurrent_bookings_of_different_slots_all_succeed(db, make_doctor, make_patient):
    doctor = make_doctor()
    patient = make_patient()
    slots = ["09:00 AM", "10:00 AM", "11:00 AM", "12:00 PM"]
    barrier = threading.Barrier(len(slots))
    errors: list[Exception] = []

    def attempt(slot: str) -> None:
        session = SessionLocal()
        try:
            barrier.wait()
            BookingService(session).book(AuthContext.admin(), doctor.id, patient.id, DAY, slot)
        except Exception as e:
            errors.append(e)
        finally:
            session.close()

    threads = [threading.Thread(target=attempt, args=(s,)) for s in slots]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=60)

    assert errors == []
    db.expire_all()
    stored = db.query(Doctor).filter(Doctor.id == doctor.id).one()
    # Every ledger update survived: no lost read-modify-write
    assert stored.slots_booked == {"2031-03-10": slots}
