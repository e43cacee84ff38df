"""
Calendar grid for the reservation page.

Lays out the month or week around an anchor day, with each cell carrying its booking status,
and works out where the previous / next navigation buttons point.
"""
import calendar
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Callable

from .slot import DayStatus

MONTH = "month"
WEEK = "week"
VIEWS = (MONTH, WEEK)

# Weeks start on Sunday
booking_calendar = calendar.Calendar(firstweekday=calendar.SUNDAY)


@dataclass(frozen=True)
class DayCell:
    date: date
    status: DayStatus
    in_month: bool
    is_today: bool

    @property
    def is_available(self) -> bool:
        return self.status is DayStatus.AVAILABLE


@dataclass(frozen=True)
class CalendarPage:
    view: str
    anchor: date
    weeks: list[list[DayCell]]

    @property
    def first_day(self) -> date:
        return self.weeks[0][0].date

    @property
    def last_day(self) -> date:
        return self.weeks[-1][-1].date


def _week_start(day: date) -> date:
    # date.weekday() has Monday == 0, shift so Sunday opens the week
    return day - timedelta(days=(day.weekday() + 1) % 7)


def _add_months(day: date, months: int) -> date:
    month_index = day.year * 12 + day.month - 1 + months
    year, month = divmod(month_index, 12)
    # Clamp to the last day of the target month
    return date(year, month + 1, min(day.day, calendar.monthrange(year, month + 1)[1]))


def shift(view: str, anchor: date, step: int) -> date:
    """
    Anchor for the previous (step=-1) or next (step=1) page of the given view.
    """
    if view == WEEK:
        return anchor + timedelta(weeks=step)
    return _add_months(anchor, step)


def build_view(view: str, anchor: date, status_of: Callable[[date], DayStatus], today: date) -> CalendarPage:
    if view not in VIEWS:
        raise ValueError(f"Unknown calendar view: {view}")
    if view == MONTH:
        weeks = booking_calendar.monthdatescalendar(anchor.year, anchor.month)
    else:
        start = _week_start(anchor)
        weeks = [[start + timedelta(days=offset) for offset in range(7)]]
    return CalendarPage(
        view=view,
        anchor=anchor,
        weeks=[
            [DayCell(day, status_of(day), day.month == anchor.month, day == today) for day in week]
            for week in weeks
        ],
    )
