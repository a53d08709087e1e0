"""Time Utilities - UTC timestamps, durations and formatting"""
from datetime import datetime, timezone, timedelta
from typing import Callable, Optional
from dateutil import parser as date_parser


Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Get current UTC datetime"""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """Attach UTC to naive datetimes (records written by older clients carry none)"""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def format_iso(dt: datetime) -> str:
    """
    Format datetime to ISO 8601 string

    Args:
        dt: Datetime object

    Returns:
        ISO formatted string with Z suffix for UTC
    """
    return ensure_utc(dt).isoformat().replace("+00:00", "Z")


def parse_iso(iso_string: str) -> datetime:
    """
    Parse ISO 8601 string to datetime

    Args:
        iso_string: ISO formatted datetime string

    Returns:
        Datetime object in UTC
    """
    return ensure_utc(date_parser.isoparse(iso_string))


def millis_between(start: Optional[datetime], end: Optional[datetime]) -> int:
    """Milliseconds from start to end, 0 when either side is missing"""
    if start is None or end is None:
        return 0
    delta = ensure_utc(end) - ensure_utc(start)
    return int(delta.total_seconds() * 1000)


def days_ago(days: int, now: Optional[datetime] = None) -> datetime:
    """Datetime `days` before now"""
    return (now or utc_now()) - timedelta(days=days)


def format_duration_ms(ms: float) -> str:
    """
    Format a millisecond duration the way the analytics dashboard shows it

    Examples:
        >>> format_duration_ms(5 * 60 * 60 * 1000)
        '5h'
        >>> format_duration_ms(30 * 60 * 60 * 1000)
        '1d 6h'
    """
    hours = int(ms // (1000 * 60 * 60))
    days = hours // 24
    if days > 0:
        return f"{days}d {hours % 24}h"
    return f"{hours}h"
