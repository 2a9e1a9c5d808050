"""
Timestamp utility functions for billing dates.

This module provides utilities for:
- Getting the current time as an aware UTC datetime
- Normalizing naive/aware datetimes to UTC
- Calendar-month comparison used by the monthly credit guard
"""

from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """Return current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """
    Normalize a datetime to UTC.

    Naive values are assumed to already be UTC (Supabase `timestamp` columns
    come back without an offset); aware values are converted.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def is_same_calendar_month(value: Optional[datetime], reference: datetime) -> bool:
    """
    True when `value` falls in the same UTC (year, month) as `reference`.

    Examples:
        2026-10-03 vs 2026-10-18 -> True
        2026-09-30 vs 2026-10-18 -> False
        2025-10-03 vs 2026-10-18 -> False
        None       vs anything   -> False
    """
    if value is None:
        return False
    value = ensure_utc(value)
    reference = ensure_utc(reference)
    return (value.year, value.month) == (reference.year, reference.month)


def format_iso(value: datetime) -> str:
    """Format a datetime as an ISO-8601 UTC string for Supabase writes."""
    return ensure_utc(value).isoformat()
