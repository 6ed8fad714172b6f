"""
Slot catalog and day-key helpers.

Every doctor shares the same eight one-hour slots each day. A day-key is a
plain ``date``; timestamps are reduced to their UTC calendar date.
"""

from datetime import date, datetime, timedelta, timezone
from typing import Optional, Union

from ...errors import InvalidRequest

SLOT_CATALOG: tuple[str, ...] = (
    "09:00 AM",
    "10:00 AM",
    "11:00 AM",
    "12:00 PM",
    "01:00 PM",
    "02:00 PM",
    "03:00 PM",
    "04:00 PM",
)

_SLOT_ORDER = {label: index for index, label in enumerate(SLOT_CATALOG)}

DayLike = Union[date, datetime, str]


def is_valid_slot(label: Optional[str]) -> bool:
    return label in _SLOT_ORDER


def slot_position(label: str) -> int:
    """Position of a slot in the catalog; unknown labels sort last"""
    return _SLOT_ORDER.get(label, len(SLOT_CATALOG))


def order_slots(labels) -> list[str]:
    """Return the distinct labels in catalog order"""
    return sorted(set(labels), key=slot_position)


def to_day_key(value: Optional[DayLike]) -> date:
    """
    Normalize a date, datetime or ISO-8601 string to a day-key.

    Aware datetimes are converted to UTC before truncation; naive datetimes are
    taken as UTC.

    Raises:
        InvalidRequest: If the value is missing or cannot be parsed
    """
    if value is None or value == "":
        raise InvalidRequest("Date is required")

    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()

    if isinstance(value, date):
        return value

    if isinstance(value, str):
        raw = value.strip()
        try:
            if len(raw) == 10:
                return date.fromisoformat(raw)
            return to_day_key(datetime.fromisoformat(raw.replace("Z", "+00:00")))
        except ValueError as e:
            raise InvalidRequest(f"Invalid date: {value}") from e

    raise InvalidRequest(f"Invalid date: {value!r}")


def day_key_str(day: date) -> str:
    return day.isoformat()


def today_key() -> date:
    return datetime.now(timezone.utc).date()


def day_range(start: date, days: int) -> tuple[date, date]:
    """Inclusive range covering ``days`` days starting at ``start``"""
    if days < 1:
        raise InvalidRequest("Day window must be at least 1")
    return start, start + timedelta(days=days - 1)
