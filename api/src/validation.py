"""
Registration input validation.

Pure functions; every rule is checked independently and all failures are
reported together.
"""

import re
from datetime import date
from typing import Any, List, Mapping, Optional

USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_]{4,20}$")
PASSWORD_PATTERN = re.compile(
    r"^(?=.*[A-Z])(?=.*[0-9])(?=.*[!@#$%^&*])[A-Za-z0-9!@#$%^&*]{8,}$"
)
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
PHONE_PATTERN = re.compile(r"^\d{3}-\d{3}-\d{4}$")
DATE_OF_BIRTH_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")

MINIMUM_AGE = 13

USERNAME_ERROR = "Username must be alphanumeric and between 4 to 20 characters."
PASSWORD_ERROR = (
    "Password must have at least 8 characters, including one uppercase letter, "
    "one number, and one special character."
)
EMAIL_ERROR = "Invalid email address format."
PHONE_ERROR = "Phone number must match the format 123-456-7890."
DATE_OF_BIRTH_ERROR = "Date of birth must be in YYYY-MM-DD format."
AGE_ERROR = f"User must be at least {MINIMUM_AGE} years old."


def _matches(pattern: re.Pattern, value: Any) -> bool:
    return isinstance(value, str) and pattern.fullmatch(value) is not None


def parse_date_of_birth(value: str) -> Optional[date]:
    """Parse a ``YYYY-MM-DD`` string, returning None when it is not a real date."""
    if not _matches(DATE_OF_BIRTH_PATTERN, value):
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def calculate_age(birth_date: date, today: date) -> int:
    """Whole years between ``birth_date`` and ``today``."""
    age = today.year - birth_date.year
    if (today.month, today.day) < (birth_date.month, birth_date.day):
        age -= 1
    return age


def validate_registration_input(
    data: Mapping[str, Any],
    today: Optional[date] = None,
) -> List[str]:
    """
    Validate a registration payload.

    Args:
        data: Registration fields keyed by their API names
            (username, password, email, phoneNumber, dateOfBirth)
        today: Reference date for the age check (defaults to today)

    Returns:
        Human-readable error messages; empty when the input is valid
    """
    errors: List[str] = []

    if not _matches(USERNAME_PATTERN, data.get("username")):
        errors.append(USERNAME_ERROR)

    if not _matches(PASSWORD_PATTERN, data.get("password")):
        errors.append(PASSWORD_ERROR)

    if not _matches(EMAIL_PATTERN, data.get("email")):
        errors.append(EMAIL_ERROR)

    phone_number = data.get("phoneNumber")
    if phone_number and not _matches(PHONE_PATTERN, phone_number):
        errors.append(PHONE_ERROR)

    date_of_birth = data.get("dateOfBirth")
    if date_of_birth:
        birth_date = parse_date_of_birth(date_of_birth)
        if birth_date is None:
            errors.append(DATE_OF_BIRTH_ERROR)
        elif calculate_age(birth_date, today or date.today()) < MINIMUM_AGE:
            errors.append(AGE_ERROR)

    return errors
