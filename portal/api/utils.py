"""Utilities for working with the doctor portal API."""

import re
from datetime import date, datetime
from typing import Any, Dict, Optional, Union

from loguru import logger

PHONE_PATTERN = re.compile(r"\+?[1-9][0-9]{1,14}")


def parse_date(date_str: str) -> Optional[date]:
    """
    Parse the calendar day of an ISO date string.

    Args:
        date_str: Date string (e.g., "1990-05-15" or "2026-01-05T00:00:00.000Z")

    Returns:
        date object or None on error
    """
    if not date_str:
        return None

    # ISO strings carry the calendar day in their first 10 characters
    try:
        return date.fromisoformat(date_str[:10])
    except ValueError:
        logger.warning(f"Failed to parse date: {date_str}")
        return None


def to_date(value: Union[date, datetime, str, None]) -> Optional[date]:
    """Calendar day of a date, datetime or date string.

    Datetimes keep the day they were sent with, no timezone conversion.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return parse_date(value)


def validate_phone(phone: str) -> bool:
    """
    Validate phone number.

    Args:
        phone: Phone number

    Returns:
        True if number matches the E.164-like format the backend accepts
    """
    if not phone:
        return False

    return PHONE_PATTERN.fullmatch(format_phone(phone)) is not None


def format_phone(phone: str) -> str:
    """
    Format phone number to the compact form the backend stores.

    Args:
        phone: Phone number

    Returns:
        Number without spaces, brackets and dashes
    """
    if not phone:
        return phone

    return re.sub(r"[\s\(\)\-]", "", phone)


def build_query(**params: Any) -> Dict[str, str]:
    """
    Build query params for list endpoints.

    Empty values are dropped, the rest are sent as strings. Booleans are
    sent lower-cased, as the backend reads them.

    Args:
        **params: Query params in wire names

    Returns:
        Params ready for aiohttp
    """
    query: Dict[str, str] = {}
    for key, value in params.items():
        if value is None or value == "":
            continue
        if isinstance(value, bool):
            value = "true" if value else "false"
        elif isinstance(value, (date, datetime)):
            value = value.isoformat()
        elif isinstance(value, (list, tuple, set, frozenset)):
            if not value:
                continue
            value = ",".join(str(item) for item in value)
        query[key] = str(value)
    return query
