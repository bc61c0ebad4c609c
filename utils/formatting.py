"""Output formatting utilities for the form viewer templates.

Provides reusable functions for:
- Calendar dates from upstream ISO timestamps
- Submission picker labels
- Percent labels for the zoom control
"""

from datetime import datetime
from typing import Optional


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp, accepting a trailing ``Z``.

    Returns:
        datetime, or None if *value* is empty or unparseable
    """
    if not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def format_date(value: Optional[str]) -> str:
    """Format an ISO timestamp as a US short date.

    Examples:
        format_date("2025-03-07T12:00:00Z") -> "3/7/2025"
        format_date(None) -> "-"
    """
    dt = parse_timestamp(value)
    if dt is None:
        return "-"
    return f"{dt.month}/{dt.day}/{dt.year}"


def submission_label(status: str, created_at: Optional[str]) -> str:
    """Label for the submission picker, e.g. ``"draft — 3/7/2025"``."""
    return f"{status} — {format_date(created_at)}"


def format_percent(value: Optional[float], precision: int = 0) -> str:
    """Format a ratio as a percentage.

    Examples:
        format_percent(1.2) -> "120%"
        format_percent(None) -> "-"
    """
    if value is None:
        return "-"
    return f"{value * 100:.{precision}f}%"
