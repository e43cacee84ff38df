# Day slot and reservation record types used by the reservation calendar
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum


class DayStatus(str, Enum):
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"


def day_key(value: date) -> tuple[int, int, int]:
    """
    Calendar-day key used for every day comparison.

    Input: a date or datetime. Time of day and tzinfo are ignored, so two datetimes on the same calendar day share a key.

    Returns: (year, month, day)
    """
    return (value.year, value.month, value.day)


def as_calendar_day(value: date) -> date:
    # datetime is a subclass of date, so strip it down explicitly
    if isinstance(value, datetime):
        return value.date()
    return value


"""
Defined as a calendar day and its booking status. One per day of the displayed month.
"""
@dataclass(frozen=True)
class DaySlot:
    date: date
    status: DayStatus

    @property
    def key(self) -> tuple[int, int, int]:
        return day_key(self.date)

    @property
    def is_available(self) -> bool:
        return self.status is DayStatus.AVAILABLE

    def to_dict(self) -> dict[str, str]:
        return {"date": self.date.isoformat(), "status": self.status.value}


@dataclass(frozen=True)
class ReservationRecord:
    name: str
    email: str
    phone: str
    date: date

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "email": self.email, "phone": self.phone, "date": self.date.isoformat()}
