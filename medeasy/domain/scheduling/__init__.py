"""
Scheduling Domain

Slot catalog, availability, booking, status lifecycle and appointment queries.
Every operation takes an explicit AuthContext; the role routers in
medeasy/routes are thin adapters over these services.

    slots.py                 Slot catalog and day-key helpers
    repository.py            Appointment queries and the booked-slots ledger
    availability_service.py  Free/booked slots for a doctor and day
    booking_service.py       Atomic booking (row lock + partial unique index)
    lifecycle_service.py     Status transitions and cancellation
    query_service.py         Paginated listings and console dashboards
"""
