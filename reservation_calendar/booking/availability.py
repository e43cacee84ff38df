# Availability model: derive day statuses for a month and mark reserved days
import calendar
import logging
from datetime import date
from typing import Iterable

from .error_utils import SlotNotFound
from .slot import DaySlot, DayStatus, as_calendar_day, day_key

logger = logging.getLogger(__name__)

# Python weekday numbering, Monday == 0
SUNDAY = calendar.SUNDAY

WEEKDAY_NAMES = {name.lower(): index for index, name in enumerate(calendar.day_name)}


def parse_weekday(value) -> int:
    """
    Converts a weekday name ("sunday") or number (0-6, Monday == 0) into calendar's weekday number.
    Used for the closed weekday configuration value.
    """
    if isinstance(value, int):
        if not 0 <= value <= 6:
            raise ValueError(f"Weekday out of range: {value}")
        return value
    text = str(value).strip().lower()
    if text.isdigit():
        return parse_weekday(int(text))
    try:
        return WEEKDAY_NAMES[text]
    except KeyError:
        raise ValueError(f"Unknown weekday: {value!r}") from None


def derive_status(day: date, today: date, closed_weekday: int = SUNDAY) -> DayStatus:
    if day.weekday() == closed_weekday or day_key(day) < day_key(today):
        return DayStatus.UNAVAILABLE
    return DayStatus.AVAILABLE


def generate(month_start: date, today: date, closed_weekday: int = SUNDAY) -> tuple[DaySlot, ...]:
    """
    Builds one slot per day of month_start's month. Any day of the month may be passed as month_start.

    A day is unavailable if it falls on the closed weekday or is strictly before today's calendar day, otherwise available.

    Returns: tuple of DaySlot ordered by date.
    """
    year, month = month_start.year, month_start.month
    _, days_in_month = calendar.monthrange(year, month)
    today = as_calendar_day(today)
    return tuple(
        DaySlot(date(year, month, day), derive_status(date(year, month, day), today, closed_weekday))
        for day in range(1, days_in_month + 1)
    )


def lookup(slots: Iterable[DaySlot], day: date) -> DayStatus:
    """
    Returns the status of the slot whose calendar day matches day.
    Raises SlotNotFound when day is outside the generated month.
    """
    key = day_key(day)
    for slot in slots:
        if slot.key == key:
            return slot.status
    raise SlotNotFound(as_calendar_day(day))


def mark_reserved(slots: Iterable[DaySlot], day: date) -> tuple[DaySlot, ...]:
    """
    Returns a new slot tuple where the slot matching day is unavailable. Other slots are passed through unchanged.
    A day with no matching slot leaves the sequence as is.
    """
    slots = tuple(slots)
    key = day_key(day)
    if not any(slot.key == key for slot in slots):
        logger.warning("No slot to reserve for %s, slots unchanged", as_calendar_day(day))
        return slots
    return tuple(
        DaySlot(slot.date, DayStatus.UNAVAILABLE) if slot.key == key else slot
        for slot in slots
    )


def carry_over(slots: Iterable[DaySlot], today: date, closed_weekday: int = SUNDAY) -> tuple[DaySlot, ...]:
    """
    Rebuilds the slots for a new today.

    Within the same month, days that were unavailable stay unavailable, so reservations survive
    and days that have since passed are closed. When the month has rolled over the new month
    is generated from scratch.
    """
    slots = tuple(slots)
    fresh = generate(today, today, closed_weekday)
    if not slots or slots[0].key[:2] != fresh[0].key[:2]:
        return fresh
    unavailable = {slot.key for slot in slots if not slot.is_available}
    return tuple(
        DaySlot(slot.date, DayStatus.UNAVAILABLE) if slot.key in unavailable else slot
        for slot in fresh
    )
