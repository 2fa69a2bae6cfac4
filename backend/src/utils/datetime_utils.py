"""
Datetime utilities for consistent timezone handling across the application.

This module provides utilities to ensure all datetime operations use timezone-aware
datetimes consistently. Timestamps are stored and compared in UTC; user-facing
text is rendered in the clinic's local timezone (CLINIC_UTC_OFFSET_HOURS).
"""

import logging
from datetime import datetime, timezone, timedelta
from typing import Optional

from core.config import CLINIC_UTC_OFFSET_HOURS

logger = logging.getLogger(__name__)

# Clinic timezone constant (fixed offset from UTC)
CLINIC_TZ = timezone(timedelta(hours=CLINIC_UTC_OFFSET_HOURS))


def utc_now() -> datetime:
    """
    Get current UTC datetime.

    All stored timestamps and due-time comparisons use UTC.

    Returns:
        Current datetime with UTC timezone
    """
    return datetime.now(timezone.utc)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Ensure a datetime is timezone-aware with UTC timezone.

    Naive datetimes (SQLite drops tzinfo on read) are assumed to already be UTC.

    Args:
        dt: Datetime to normalise

    Returns:
        Timezone-aware datetime in UTC, or None if input is None
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_clinic_time(dt: datetime) -> datetime:
    """Convert a datetime to the clinic's local timezone."""
    local_datetime = ensure_utc(dt)
    if local_datetime is None:
        raise ValueError("Cannot convert None datetime")
    return local_datetime.astimezone(CLINIC_TZ)


def _format_time_12h(local_datetime: datetime) -> str:
    hour = local_datetime.hour
    period = 'AM' if hour < 12 else 'PM'
    hour_12 = hour % 12 or 12
    return f"{hour_12}:{local_datetime.minute:02d} {period}"


def format_long_date(dt: datetime, include_year: bool = True) -> str:
    """
    Format a date for patient-facing messages in the clinic timezone.

    Formats as "Monday, January 5, 2026", or "Monday, January 5" when
    include_year is False.

    Args:
        dt: Datetime to format (naive values are treated as UTC)
        include_year: Whether to append the year

    Returns:
        Formatted date string
    """
    local_datetime = to_clinic_time(dt)
    text = f"{local_datetime.strftime('%A')}, {local_datetime.strftime('%B')} {local_datetime.day}"
    if include_year:
        text = f"{text}, {local_datetime.year}"
    return text


def format_time(dt: datetime) -> str:
    """
    Format a time of day for patient-facing messages in the clinic timezone.

    Formats as "3:30 PM" (12-hour clock, no leading zero on the hour).
    """
    return _format_time_12h(to_clinic_time(dt))


def parse_iso_datetime(dt_str: str) -> datetime:
    """
    Parse an ISO format datetime string and convert to UTC.

    Handles various datetime string formats:
    - ISO format with timezone (e.g., "2026-01-01T09:00:00+08:00")
    - ISO format with Z (UTC) (e.g., "2026-01-01T01:00:00Z")
    - ISO format without timezone (assumes UTC)

    Args:
        dt_str: ISO format datetime string

    Returns:
        Datetime object in UTC

    Raises:
        ValueError: If datetime string cannot be parsed
    """
    if not dt_str or not dt_str.strip():
        raise ValueError("Datetime string cannot be empty")

    try:
        # Replace Z with +00:00 for UTC
        dt = datetime.fromisoformat(dt_str.strip().replace('Z', '+00:00'))
    except ValueError as e:
        raise ValueError(f"Invalid datetime string format: {dt_str}") from e

    result = ensure_utc(dt)
    if result is None:
        raise ValueError(f"Invalid datetime string format: {dt_str}")
    return result
