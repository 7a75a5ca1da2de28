"""Shared validation utilities"""

import re
from typing import Optional

DAYS_OF_WEEK = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]

_TIME_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")
_EMAIL_RE = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")

MIN_NAME_LENGTH = 2


def validate_name(name: Optional[str], field: str = "Name") -> Optional[str]:
    """Trim a display name and require at least two characters"""
    if name is None:
        return name
    name = name.strip()
    if len(name) < MIN_NAME_LENGTH:
        raise ValueError(f"{field} must be at least {MIN_NAME_LENGTH} characters long")
    return name


def validate_day_of_week(day: str) -> str:
    """Normalize a weekday name ("Monday", "mon") to its lowercase full form"""
    value = (day or "").strip().lower()
    for full in DAYS_OF_WEEK:
        if value == full or (len(value) >= 3 and full.startswith(value)):
            return full
    raise ValueError(f"Invalid day of week: {day}")


def validate_time_of_day(value: str) -> str:
    """Validate a 24h HH:MM time string"""
    value = (value or "").strip()
    if not _TIME_RE.match(value):
        raise ValueError("Time must be in HH:MM 24-hour format")
    return value


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email
    email = email.strip().lower()
    if not _EMAIL_RE.match(email):
        raise ValueError("Invalid email format")
    return email
