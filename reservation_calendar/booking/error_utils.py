# Custom exceptions to be used throughout the project.

class ReservationError(Exception):
    """
    Base class for every error raised by the reservation calendar.
    All of them are local and recoverable by the user correcting their input.
    """
    # By default Exception class takes a tuple of arguments
    def __init__(self, *args):
        super().__init__(*args)


class ValidationError(ReservationError):
    """
    To be raised when a reservation form submission is rejected.
    Holds one message per failing field, e.g. {"name": "Name is required."}.
    May be raised under the following circumstances:
        1. A required field (name, email, phone) was left empty
        2. The email address is not well formed
        3. The phone number can't be parsed or is not a valid number
        4. A field exceeds its maximum length
    """
    def __init__(self, errors: dict[str, str]):
        self.errors = dict(errors)
        super().__init__("; ".join(self.errors.values()))

    @property
    def fields(self) -> list[str]:
        return list(self.errors)


class SlotNotFound(ReservationError):
    """
    To be raised when a day has no slot in the generated month, i.e. the day lies outside the generation window.
    """
    def __init__(self, day):
        self.day = day
        super().__init__(f"No reservation slot for {day}")


class ReservationStateError(ReservationError):
    """
    To be raised when a form action arrives while no reservation form is open.
    """
