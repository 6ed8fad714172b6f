from datetime import date, timedelta

import pytest

from medeasy.domain.scheduling.booking_service import BookingService
from medeasy.domain.scheduling.lifecycle_service import LifecycleService
from medeasy.domain.scheduling.query_service import PAGE_SIZE, QueryService
from medeasy.domain.scheduling.schemas import AppointmentFilter
from medeasy.domain.scheduling.slots import SLOT_CATALOG, today_key
from medeasy.errors import InvalidRequest, NotFound
from medeasy.models import Patient
from medeasy.shared.context import AuthContext

ADMIN = AuthContext.admin()


def test_listing_orders_by_date_desc_then_slot_order(db, make_doctor, make_patient):
    doctor = make_doctor()
    patient = make_patient()
    booking = BookingService(db)
    booking.book(ADMIN, doctor.id, patient.id, date(2031, 3, 10), "01:00 PM")
    booking.book(ADMIN, doctor.id, patient.id, date(2031, 3, 10), "09:00 AM")
    booking.book(ADMIN, doctor.id, patient.id, date(2031, 3, 12), "10:00 AM")

    page = QueryService(db).list_appointments(ADMIN)

    assert [(a.date, a.slot) for a in page.items] == [
        (date(2031, 3, 12), "10:00 AM"),
        (date(2031, 3, 10), "09:00 AM"),
        (date(2031, 3, 10), "01:00 PM"),
    ]


def test_pagination_is_one_indexed_with_fixed_size(db, make_doctor, make_patient):
    patient = make_patient()
    booking = BookingService(db)
    for doctor in (make_doctor(), make_doctor()):
        for slot in SLOT_CATALOG:
            booking.book(ADMIN, doctor.id, patient.id, date(2031, 3, 10), slot)

    service = QueryService(db)
    first = service.list_appointments(ADMIN, page=1)
    second = service.list_appointments(ADMIN, page=2)
    third = service.list_appointments(ADMIN, page=3)

    assert first.total == 16
    assert first.total_pages == 2
    assert len(first.items) == PAGE_SIZE == 10
    assert len(second.items) == 6
    assert third.items == []
    assert {a.id for a in first.items}.isdisjoint(a.id for a in second.items)

    with pytest.raises(InvalidRequest):
        service.list_appointments(ADMIN, page=0)


def test_filters(db, make_doctor, make_patient):
    doctor = make_doctor()
    other_doctor = make_doctor()
    patient = make_patient()
    other_patient = make_patient()
    booking = BookingService(db)
    a = booking.book(ADMIN, doctor.id, patient.id, date(2031, 3, 10), "09:00 AM")
    booking.book(ADMIN, doctor.id, other_patient.id, date(2031, 3, 11), "09:00 AM")
    booking.book(ADMIN, other_doctor.id, patient.id, date(2031, 3, 20), "09:00 AM")
    LifecycleService(db).update_status(ADMIN, a.id, "confirmed")

    service = QueryService(db)

    by_doctor = service.list_appointments(ADMIN, AppointmentFilter(doctor_id=doctor.id))
    assert by_doctor.total == 2

    by_patient = service.list_appointments(ADMIN, AppointmentFilter(patient_id=patient.id))
    assert by_patient.total == 2

    by_status = service.list_appointments(ADMIN, AppointmentFilter(status="confirmed"))
    assert [x.id for x in by_status.items] == [a.id]

    mixed_case = service.list_appointments(ADMIN, AppointmentFilter(status=" Confirmed "))
    assert [x.id for x in mixed_case.items] == [a.id]

    by_range = service.list_appointments(
        ADMIN, AppointmentFilter(date_from=date(2031, 3, 11), date_to=date(2031, 3, 20))
    )
    assert by_range.total == 2

    with pytest.raises(InvalidRequest):
        service.list_appointments(ADMIN, AppointmentFilter(status="archived"))

    with pytest.raises(InvalidRequest):
        service.list_appointments(
            ADMIN, AppointmentFilter(date_from=date(2031, 3, 20), date_to=date(2031, 3, 1))
        )


def test_role_scoping_ignores_foreign_ids(db, make_doctor, make_patient):
    doctor = make_doctor()
    other_doctor = make_doctor()
    patient = make_patient()
    other_patient = make_patient()
    booking = BookingService(db)
    booking.book(ADMIN, doctor.id, patient.id, date(2031, 3, 10), "09:00 AM")
    booking.book(ADMIN, other_doctor.id, other_patient.id, date(2031, 3, 10), "09:00 AM")

    service = QueryService(db)

    as_doctor = service.list_appointments(
        AuthContext.doctor(doctor.id), AppointmentFilter(doctor_id=other_doctor.id)
    )
    assert [a.doctorId for a in as_doctor.items] == [doctor.id]

    as_patient = service.list_appointments(
        AuthContext.patient(patient.id), AppointmentFilter(patient_id=other_patient.id)
    )
    assert [a.patientId for a in as_patient.items] == [patient.id]


def test_upcoming_view_is_ascending_and_open_only(db, make_doctor, make_patient):
    doctor = make_doctor()
    patient = make_patient()
    today = today_key()
    booking = BookingService(db)
    later = booking.book(ADMIN, doctor.id, patient.id, today + timedelta(days=2), "09:00 AM")
    sooner = booking.book(ADMIN, doctor.id, patient.id, today, "04:00 PM")
    cancelled = booking.book(ADMIN, doctor.id, patient.id, today + timedelta(days=1), "09:00 AM")
    booking.book(ADMIN, doctor.id, patient.id, today + timedelta(days=10), "09:00 AM")
    LifecycleService(db).cancel(ADMIN, cancelled.id)

    page = QueryService(db).list_appointments(ADMIN, AppointmentFilter(upcoming_days=7))

    assert [a.id for a in page.items] == [sooner.id, later.id]


def test_today_filter(db, make_doctor, make_patient):
    doctor = make_doctor()
    patient = make_patient()
    today = today_key()
    booking = BookingService(db)
    todays = booking.book(ADMIN, doctor.id, patient.id, today, "09:00 AM")
    booking.book(ADMIN, doctor.id, patient.id, today + timedelta(days=1), "09:00 AM")

    page = QueryService(db).list_appointments(ADMIN, AppointmentFilter(today=True))

    assert [a.id for a in page.items] == [todays.id]


def test_joined_profiles_reflect_current_rows(db, make_doctor, make_patient):
    doctor = make_doctor(name="Dr. Old Name")
    patient = make_patient()
    BookingService(db).book(ADMIN, doctor.id, patient.id, date(2031, 3, 10), "09:00 AM")

    doctor.name = "Dr. New Name"
    db.commit()

    page = QueryService(db).list_appointments(ADMIN)
    assert page.items[0].doctor.name == "Dr. New Name"


def test_doctor_stats(db, make_doctor, make_patient):
    doctor = make_doctor()
    p1, p2, p3 = make_patient(), make_patient(), make_patient()
    today = today_key()
    booking = BookingService(db)
    lifecycle = LifecycleService(db)

    t1 = booking.book(ADMIN, doctor.id, p1.id, today, "02:00 PM")
    booking.book(ADMIN, doctor.id, p2.id, today, "09:00 AM")
    up = booking.book(ADMIN, doctor.id, p1.id, today + timedelta(days=3), "09:00 AM")
    done = booking.book(ADMIN, doctor.id, p3.id, today - timedelta(days=3), "09:00 AM")
    gone = booking.book(ADMIN, doctor.id, p2.id, today + timedelta(days=1), "09:00 AM")
    booking.book(ADMIN, doctor.id, p1.id, today + timedelta(days=8), "09:00 AM")
    lifecycle.update_status(ADMIN, t1.id, "confirmed")
    lifecycle.update_status(ADMIN, done.id, "completed")
    lifecycle.cancel(ADMIN, gone.id)

    stats = QueryService(db).doctor_stats(doctor.id)

    assert stats["totalAppointments"] == 6
    assert stats["pendingAppointments"] == 3
    assert stats["confirmedAppointments"] == 1
    assert stats["completedAppointments"] == 1
    assert stats["cancelledAppointments"] == 1
    # p1 (confirmed) and p3 (completed)
    assert stats["uniquePatientsCount"] == 2
    assert [a.slot for a in stats["todayAppointments"]] == ["09:00 AM", "02:00 PM"]
    assert [a.id for a in stats["upcomingAppointments"]] == [up.id]

    with pytest.raises(NotFound):
        QueryService(db).doctor_stats(999)


def test_doctor_patients(db, make_doctor, make_patient):
    doctor = make_doctor()
    regular, newcomer = make_patient(), make_patient()
    booking = BookingService(db)
    lifecycle = LifecycleService(db)

    for day in (date(2031, 3, 1), date(2031, 3, 5)):
        a = booking.book(ADMIN, doctor.id, regular.id, day, "09:00 AM")
        lifecycle.update_status(ADMIN, a.id, "completed")
    booking.book(ADMIN, doctor.id, newcomer.id, date(2031, 3, 9), "09:00 AM")  # still pending

    patients = QueryService(db).doctor_patients(doctor.id)

    assert len(patients) == 1
    assert patients[0]["patient"].id == regular.id
    assert patients[0]["appointmentCount"] == 2
    assert patients[0]["lastAppointment"] == date(2031, 3, 5)


def test_dashboard_stats(db, make_doctor, make_patient):
    doctor = make_doctor()
    make_doctor()
    patient = make_patient()
    today = today_key()
    booking = BookingService(db)
    for slot in SLOT_CATALOG[:6]:
        booking.book(ADMIN, doctor.id, patient.id, today + timedelta(days=1), slot)
    booking.book(ADMIN, doctor.id, patient.id, today, "09:00 AM")

    dashboard = QueryService(db).dashboard_stats()

    assert dashboard["stats"] == {"totalPatients": 1, "totalDoctors": 2, "appointmentsToday": 1}
    assert len(dashboard["upcomingAppointments"]) == 5
    assert dashboard["upcomingAppointments"][0].date == today
    assert len(dashboard["recentActivities"]) == 5


def test_deleted_patient_leaves_history_without_profile(db, make_doctor, make_patient):
    doctor = make_doctor()
    patient = make_patient()
    a = BookingService(db).book(ADMIN, doctor.id, patient.id, date(2031, 3, 10), "09:00 AM")
    LifecycleService(db).update_status(ADMIN, a.id, "completed")

    db.delete(db.get(Patient, patient.id))
    db.commit()

    page = QueryService(db).list_appointments(ADMIN)
    assert page.total == 1
    assert page.items[0].patientId is None
    assert page.items[0].patient is None


def test_doctor_patients_skips_deleted_patients(db, make_doctor, make_patient):
    doctor = make_doctor()
    kept, removed = make_patient(), make_patient()
    booking = BookingService(db)
    lifecycle = LifecycleService(db)
    for patient, slot in ((kept, "09:00 AM"), (removed, "10:00 AM")):
        a = booking.book(ADMIN, doctor.id, patient.id, date(2031, 3, 10), slot)
        lifecycle.update_status(ADMIN, a.id, "completed")

    db.delete(db.get(Patient, removed.id))
    db.commit()

    service = QueryService(db)
    patients = service.doctor_patients(doctor.id)
    assert [entry["patient"].id for entry in patients] == [kept.id]
    assert service.doctor_stats(doctor.id)["uniquePatientsCount"] == 1
