"""Shared validation utilities"""

import re
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

TIME_OF_DAY_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)(:[0-5]\d)?$")
END_OF_DAY_PATTERN = re.compile(r"^24:00(:00)?$")


def validate_phone(phone: Optional[str]) -> Optional[str]:
    """
    Normalize a phone number to digits with an optional leading "+".

    Raises:
        ValueError: If the number has fewer than 7 or more than 15 digits
    """
    if not phone:
        return phone

    prefix = "+" if phone.strip().startswith("+") else ""
    digits = re.sub(r"\D", "", phone)

    if not 7 <= len(digits) <= 15:
        raise ValueError("Phone number must contain between 7 and 15 digits")

    return f"{prefix}{digits}"


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Args:
        email: Email address string

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()

    # Basic email validation pattern
    email_pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"

    if not re.match(email_pattern, email):
        raise ValueError("Invalid email format")

    return email


def validate_timezone(tz: str) -> str:
    """Validate an IANA time zone name (e.g. Africa/Lagos)"""
    if not tz:
        raise ValueError("Timezone is required")
    try:
        ZoneInfo(tz)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValueError(f"Unknown timezone: {tz}") from e
    return tz


def validate_currency(currency: str) -> str:
    """Validate a three-letter ISO 4217 currency code"""
    if not currency or not re.match(r"^[A-Za-z]{3}$", currency):
        raise ValueError("Currency must be a 3-letter ISO code")
    return currency.upper()


def validate_time_of_day(value: str, allow_end_of_day: bool = False) -> str:
    """
    Validate an "HH:MM" (or "HH:MM:SS") wall-clock time and return it as "HH:MM".

    With ``allow_end_of_day`` "24:00" is also accepted, for shifts ending at midnight.
    """
    if value and allow_end_of_day and END_OF_DAY_PATTERN.match(value):
        return "24:00"
    if not value or not TIME_OF_DAY_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM format")
    return value[:5]
