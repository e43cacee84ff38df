# Utility functions for reservation form input handling
import logging
import re
from datetime import date

import phonenumbers
from email_validator import validate_email, EmailNotValidError

from . import messages
from .error_utils import ValidationError

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 100
# Maximum allowed input length to avoid oversized input injections.
MAX_PHONE_LENGTH = 50
# 254 characters is a common maximum for email addresses by RFC 5321 / 5322 standards
MAX_EMAIL_LENGTH = 254

# Allowed characters: an optional leading '+', digits, spaces, hyphens, and parentheses.
PHONE_PATTERN = re.compile(r'^\+?[0-9\-\(\)\s]+$')


def parse_day(value: str) -> date:
    """
    Parses a YYYY-MM-DD string from a route or query parameter.

    Raises ValueError if the string is not a valid calendar day.
    """
    return date.fromisoformat(value.strip())


def _reject(field: str, key: str, locale: str, **params):
    return ValidationError({field: messages.validation_message(key, field, locale, **params)})


def sanitize_name(name: str, locale: str = messages.DEFAULT_LOCALE) -> str:
    name = name.strip()
    if len(name) > MAX_NAME_LENGTH:
        raise _reject("name", "too_long", locale, max=MAX_NAME_LENGTH)
    # Reject control characters, names are single line
    if any(ord(ch) < 32 for ch in name):
        raise _reject("name", "disallowed_characters", locale)
    return name


def sanitize_phone(phone: str, region: str = "JP", locale: str = messages.DEFAULT_LOCALE) -> str:
    """
    Validates a phone number and returns it in E.164 format.

    Input: raw phone string, the default region for numbers without an international prefix, and the message locale.

    Raises ValidationError keyed on "phone" when the number is rejected.
    """
    # Step 1: Remove any leading or trailing whitespace.
    phone = phone.strip()

    # Step 2: Ensure the input does not exceed the allowed length.
    if len(phone) > MAX_PHONE_LENGTH:
        raise _reject("phone", "too_long", locale, max=MAX_PHONE_LENGTH)

    # Step 3: Only allowed characters may be present.
    if not PHONE_PATTERN.fullmatch(phone):
        raise _reject("phone", "disallowed_characters", locale)

    # Step 4: Parse with the phonenumbers library.
    try:
        # If the number starts with '+', it's in international format and carries its own region.
        parsed_phone = phonenumbers.parse(phone, None if phone.startswith('+') else region)
    except phonenumbers.NumberParseException:
        raise _reject("phone", "invalid_phone", locale) from None

    # Step 5: The number must be both "possible" and "valid".
    if not phonenumbers.is_possible_number(parsed_phone) or not phonenumbers.is_valid_number(parsed_phone):
        raise _reject("phone", "invalid_phone", locale)

    return phonenumbers.format_number(parsed_phone, phonenumbers.PhoneNumberFormat.E164)


def sanitize_email(email: str, check_deliverability: bool = False, locale: str = messages.DEFAULT_LOCALE) -> str:
    """
    Validates an email address and returns its normalized form.

    Raises ValidationError keyed on "email" when the address is rejected.
    """
    email = email.strip()

    if len(email) > MAX_EMAIL_LENGTH:
        raise _reject("email", "too_long", locale, max=MAX_EMAIL_LENGTH)

    # email_validator parses, validates and normalizes the address.
    try:
        valid = validate_email(email, check_deliverability=check_deliverability)
    except EmailNotValidError as e:
        logger.info(f"Email rejected: {e}")
        raise _reject("email", "invalid_email", locale) from None

    return valid.normalized
