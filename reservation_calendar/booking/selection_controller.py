from datetime import date
from enum import Enum
from typing import Callable, Mapping, Optional
import logging
import threading

from . import availability, messages
from .error_utils import ReservationStateError, SlotNotFound
from .reservation_form import ReservationForm
from .slot import DaySlot, DayStatus, ReservationRecord, as_calendar_day, day_key

logger = logging.getLogger(__name__)


class SelectionState(str, Enum):
    IDLE = "idle"
    COLLECTING = "collecting"


def log_submission(record: ReservationRecord):
    # Default sink. Nothing is persisted, the record is only logged.
    logger.info("Reservation submitted: %s", record.to_dict())


class SlotBoard:
    """
    The month's slots shared by every visitor. Holds no selection or form state.
    Callers hold the lock while they read, replace and write back the slot tuple.
    """

    def __init__(self, today: date, closed_weekday: int = availability.SUNDAY):
        self.today = as_calendar_day(today)
        self.closed_weekday = closed_weekday
        self.slots: tuple[DaySlot, ...] = availability.generate(self.today, self.today, closed_weekday)
        self.lock = threading.Lock()


class SelectionController:
    """
    Owns a slot tuple for the displayed month and one visitor's reservation form state.

    Two states: IDLE (no form) and COLLECTING (form open for a selected day).
        IDLE --select available day--> COLLECTING
        COLLECTING --submit--> IDLE, reserved day becomes unavailable
        COLLECTING --cancel--> IDLE

    Passing slots starts the controller from an existing slot tuple instead of generating the month.
    """

    def __init__(self, today: date, closed_weekday: int = availability.SUNDAY,
                 sink: Callable[[ReservationRecord], None] = log_submission,
                 phone_region: str = "JP", check_deliverability: bool = False,
                 locale: str = messages.DEFAULT_LOCALE, slots: Optional[tuple[DaySlot, ...]] = None):
        self.closed_weekday = closed_weekday
        self.sink = sink
        self.phone_region = phone_region
        self.check_deliverability = check_deliverability
        self.locale = locale
        self.form: Optional[ReservationForm] = None
        if slots is None:
            self.reset(today)
        else:
            self.today = as_calendar_day(today)
            self.slots: tuple[DaySlot, ...] = tuple(slots)

    def reset(self, today: Optional[date] = None):
        """
        (Re)computes the month's slots from today and closes any open form.
        """
        if today is not None:
            self.today = as_calendar_day(today)
        self.slots = availability.generate(self.today, self.today, self.closed_weekday)
        self.form = None
        logger.info("Generated %d slots for %s", len(self.slots), self.today.strftime("%Y-%m"))

    def refresh(self, today: date) -> bool:
        """
        Moves the controller to a new today. Days that have passed become unavailable, reservations
        in the same month are kept and a new month is generated once the month rolls over.
        An open form whose day is no longer available is closed.

        Returns True if the slots were rebuilt.
        """
        if day_key(today) == day_key(self.today):
            return False
        self.today = as_calendar_day(today)
        self.slots = availability.carry_over(self.slots, self.today, self.closed_weekday)
        logger.info("Slots refreshed for %s", self.today)
        if self.form is not None and self.status_of(self.form.date) is not DayStatus.AVAILABLE:
            self.form = None
        return True

    @property
    def state(self) -> SelectionState:
        return SelectionState.IDLE if self.form is None else SelectionState.COLLECTING

    @property
    def selected_date(self) -> Optional[date]:
        return self.form.date if self.form else None

    def status_of(self, day: date) -> DayStatus:
        # Days outside the generated month are never bookable
        try:
            return availability.lookup(self.slots, day)
        except SlotNotFound:
            logger.debug("%s is outside the generated month, treating as unavailable", as_calendar_day(day))
            return DayStatus.UNAVAILABLE

    def on_day_selected(self, day: date) -> bool:
        """
        Opens the reservation form for day if it is available. Clicks on unavailable days are ignored.

        Returns True if the form was opened.
        """
        if self.status_of(day) is not DayStatus.AVAILABLE:
            logger.info("Ignoring selection of unavailable day %s", as_calendar_day(day))
            return False
        self.form = ReservationForm(day, self.phone_region, self.check_deliverability, self.locale)
        logger.info("Reservation form opened for %s", self.form.date)
        return True

    def restore(self, day: date, fields: Mapping[str, str]) -> bool:
        """
        Reopens a form the visitor had open in an earlier request, with the values they entered.
        Goes through the same availability check as a click, so a day booked in the meantime stays closed.
        """
        if not self.on_day_selected(day):
            return False
        self.form.fields.update({field: fields.get(field, "") for field in self.form.fields})
        return True

    def on_reservation_submitted(self, record: ReservationRecord):
        self.slots = availability.mark_reserved(self.slots, record.date)
        self.form = None
        self.sink(record)

    def submit(self, fields: Mapping[str, str]) -> ReservationRecord:
        """
        Submits the open form. On success the reserved day becomes unavailable and the record goes to the sink.

        Raises ReservationStateError if no form is open. ValidationError from the form propagates and leaves the form open.
        """
        if self.form is None:
            raise ReservationStateError("No reservation form is open")
        record = self.form.submit(fields)
        self.on_reservation_submitted(record)
        return record

    def cancel(self):
        if self.form is not None:
            logger.info("Reservation form for %s cancelled", self.form.date)
            self.form.cancel()
        self.form = None
