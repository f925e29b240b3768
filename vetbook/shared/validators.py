"""Shared validation utilities"""

import re
from datetime import datetime
from typing import Optional, Union

from dateutil import parser as date_parser

TIME_PATTERN = re.compile(r"^([01]?\d|2[0-3]):([0-5]\d)$")


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


def parse_datetime(value: Union[str, datetime, None]) -> Optional[datetime]:
    """
    Parse an ISO or human readable date/time string into a naive datetime.

    Timezone-aware inputs are converted to local time first so stored values
    stay comparable with datetime.now().

    Raises:
        ValueError: If the value cannot be parsed
    """
    if value is None or isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if not text:
            raise ValueError("Date is required")
        try:
            parsed = date_parser.parse(text)
        except (ValueError, OverflowError) as e:
            raise ValueError(f"Invalid date: {value}") from e

    if parsed is not None and parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def parse_time_of_day(value: str) -> tuple[int, int]:
    """
    Parse "HH:MM" into (hour, minute).

    Raises:
        ValueError: If the value is not a 24-hour HH:MM string
    """
    match = TIME_PATTERN.match(value.strip())
    if not match:
        raise ValueError("Time must be in HH:MM format")
    return int(match.group(1)), int(match.group(2))
