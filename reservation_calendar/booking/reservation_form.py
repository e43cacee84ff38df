from datetime import date
from typing import Mapping
import logging

from . import booking_utils as util
from . import messages
from .error_utils import ValidationError
from .slot import ReservationRecord, as_calendar_day

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("name", "email", "phone")


class ReservationForm:
    """
    Reservation form bound to a single preselected day.

    Collects the contact fields, validates them and produces a ReservationRecord.
    Knows nothing about slot availability; the selection controller applies the result.
    Validation messages are written in the form's locale.
    """

    def __init__(self, bound_date: date, phone_region: str = "JP", check_deliverability: bool = False,
                 locale: str = messages.DEFAULT_LOCALE):
        self._date = as_calendar_day(bound_date)
        self.phone_region = phone_region
        self.check_deliverability = check_deliverability
        self.locale = locale
        self.fields = {field: "" for field in REQUIRED_FIELDS}

    # Read only, the date is fixed when the form opens
    @property
    def date(self) -> date:
        return self._date

    def _clean(self, fields: Mapping[str, str]) -> tuple[dict[str, str], dict[str, str]]:
        values = {field: (fields.get(field) or "").strip() for field in REQUIRED_FIELDS}
        errors = {}
        cleaned = {}
        for field, value in values.items():
            if not value:
                errors[field] = messages.validation_message("required", field, self.locale)
                continue
            try:
                match field:
                    case "name":
                        cleaned[field] = util.sanitize_name(value, self.locale)
                    case "email":
                        cleaned[field] = util.sanitize_email(value, self.check_deliverability, self.locale)
                    case "phone":
                        cleaned[field] = util.sanitize_phone(value, self.phone_region, self.locale)
            except ValidationError as e:
                errors.update(e.errors)
        return cleaned, errors

    def validate(self, fields: Mapping[str, str]) -> dict[str, str]:
        """
        Returns one message per failing field. Empty dict means the fields can be submitted.
        """
        _, errors = self._clean(fields)
        return errors

    def submit(self, fields: Mapping[str, str]) -> ReservationRecord:
        """
        Validates the fields and returns the reservation record for the bound date.

        Raises ValidationError with every failing field. Field values are kept on the form so they can be shown again.
        """
        self.fields = {field: (fields.get(field) or "") for field in REQUIRED_FIELDS}
        cleaned, errors = self._clean(fields)
        if errors:
            logger.info("Reservation form rejected for %s: %s", self._date, ", ".join(errors))
            raise ValidationError(errors)
        return ReservationRecord(name=cleaned["name"], email=cleaned["email"], phone=cleaned["phone"], date=self._date)

    def cancel(self):
        self.fields = {field: "" for field in REQUIRED_FIELDS}
