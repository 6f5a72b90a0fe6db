"""Time helpers.

Timestamps are stored in UTC; calendar dates (article dates, the item of
the day) follow the site's timezone.
"""

from datetime import UTC, date, datetime, time
from zoneinfo import ZoneInfo

from src.config import get_settings


def utcnow() -> datetime:
    return datetime.now(UTC)


def site_today(timezone: str | None = None) -> date:
    """Return today's date on the site calendar."""
    tz = ZoneInfo(timezone or get_settings().site_timezone)
    return datetime.now(tz).date()


def site_midnight(day: date, timezone: str | None = None) -> datetime:
    """Start of ``day`` on the site calendar, as a UTC timestamp."""
    tz = ZoneInfo(timezone or get_settings().site_timezone)
    return datetime.combine(day, time.min, tzinfo=tz).astimezone(UTC)


def parse_datetime(value: object) -> datetime | None:
    return datetime.fromisoformat(str(value)) if value else None


def parse_date(value: object) -> date | None:
    return date.fromisoformat(str(value)) if value else None


def iso(value: date | datetime | None) -> str | None:
    return value.isoformat() if value is not None else None
