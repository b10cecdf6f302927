"""Date parsing helpers shared by validation and query building.

User-supplied dates without an offset are read in the reference time zone.
Everything handed to the store is converted to UTC.
"""
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Union

_LAST_MILLISECOND = time(23, 59, 59, 999000)


def is_date_only(value: str) -> bool:
    """Return True for plain calendar dates such as ``2023-10-01``."""
    try:
        date.fromisoformat(value.strip())
    except ValueError:
        return False
    return True


def parse_datetime(value: Union[str, datetime, date], tz: tzinfo) -> datetime:
    """Parse an ISO 8601 date or date-time into an aware UTC datetime.

    Raises:
        ValueError: if the value cannot be parsed.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValueError("empty date")
        parsed = datetime.fromisoformat(text)
    else:
        raise ValueError(f"unsupported date value: {value!r}")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=tz)
    return parsed.astimezone(timezone.utc)


def parse_calendar_date(value: str, tz: tzinfo) -> date:
    """Return the calendar day a date or date-time string falls on in ``tz``."""
    text = value.strip()
    if is_date_only(text):
        return date.fromisoformat(text)
    return parse_datetime(text, tz).astimezone(tz).date()


def start_of_day(day: date, tz: tzinfo) -> datetime:
    return datetime.combine(day, time.min, tzinfo=tz).astimezone(timezone.utc)


def start_of_next_day(day: date, tz: tzinfo) -> datetime:
    return start_of_day(day + timedelta(days=1), tz)


def end_of_day(day: date, tz: tzinfo) -> datetime:
    """Last instant of ``day`` that a BSON date can represent."""
    return datetime.combine(day, _LAST_MILLISECOND, tzinfo=tz).astimezone(timezone.utc)


def truncate_to_millis(value: datetime) -> datetime:
    """BSON dates carry millisecond precision; drop anything finer."""
    return value.replace(microsecond=value.microsecond // 1000 * 1000)
