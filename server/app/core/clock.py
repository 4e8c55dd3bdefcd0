from __future__ import annotations

from datetime import date, datetime, time, timezone
from functools import lru_cache
from zoneinfo import ZoneInfo

from app.core.config import settings


def utcnow() -> datetime:
    """Current time as naive UTC, the form every timestamp column stores."""

    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


@lru_cache(maxsize=8)
def _zone(name: str) -> ZoneInfo:
    return ZoneInfo(name)


def local_date(moment: datetime) -> date:
    """Calendar date of a naive UTC ``moment`` in the library's time zone."""

    aware = moment.replace(tzinfo=timezone.utc)
    return aware.astimezone(_zone(settings.LIBRARY_TIMEZONE)).date()


def local_today(now: datetime | None = None) -> date:
    return local_date(now or utcnow())


def local_day_start(day: date) -> datetime:
    """Naive UTC instant at which ``day`` begins in the library's time zone."""

    aware = datetime.combine(day, time.min, tzinfo=_zone(settings.LIBRARY_TIMEZONE))
    return to_naive_utc(aware)


def month_start(day: date) -> date:
    return day.replace(day=1)


def next_month_start(day: date) -> date:
    if day.month == 12:
        return date(day.year + 1, 1, 1)
    return date(day.year, day.month + 1, 1)
