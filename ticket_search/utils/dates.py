"""
Date helpers for relative-day filtering and labels
"""
from datetime import date, datetime, timedelta
from typing import Any, Optional

from dateutil import parser as date_parser


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO timestamp string; None for empty or malformed values"""
    if isinstance(value, datetime):
        return value
    if not value:
        return None
    try:
        return date_parser.isoparse(str(value))
    except (ValueError, OverflowError):
        return None


def local_date(value: Any) -> Optional[date]:
    """
    Calendar day of a timestamp in local time

    Aware timestamps are converted to the local timezone; naive ones are
    already local.
    """
    parsed = parse_timestamp(value)
    if parsed is None:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone()
    return parsed.date()


def relative_date_label(day: date, today: date) -> str:
    """'today', 'yesterday', or M/D/YYYY"""
    if day == today:
        return "today"
    if day == today - timedelta(days=1):
        return "yesterday"
    return f"{day.month}/{day.day}/{day.year}"
