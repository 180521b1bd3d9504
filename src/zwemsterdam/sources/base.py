"""Common adapter plumbing: the adapter base class and calendar helpers."""

import asyncio
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from src.zwemsterdam.errors import NormalizationError
from src.zwemsterdam.models import RawRecord
from src.zwemsterdam.normalize import normalize_day

ENGLISH_DAY_NAMES = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)


class SourceAdapter:
    """One upstream family. Subclasses implement fetch().

    fetch() returns every record the source yielded this run. Failures of a
    single item (a date, a page, a pool) are handled inside the adapter;
    anything raised out of fetch() means the whole source failed and is
    handled by the orchestrator.
    """

    name: str = "source"

    def fetch(self) -> list[RawRecord]:
        raise NotImplementedError

    async def fetch_async(self) -> list[RawRecord]:
        """Run fetch() without blocking the event loop."""
        return await asyncio.to_thread(self.fetch)


def local_today(tz_name: str) -> date:
    return datetime.now(ZoneInfo(tz_name)).date()


def week_monday(today: date) -> date:
    """Monday of the ISO week containing ``today``."""
    return today - timedelta(days=today.weekday())


def date_in_week(monday: date, day_label: str) -> date | None:
    """Date of the named weekday in the week starting at ``monday``.

    Returns None for an unrecognized label; the record then reaches the
    normalizer without a date and is dropped there with a logged reason.
    """
    try:
        weekday = normalize_day(day_label)
    except NormalizationError:
        return None
    return monday + timedelta(days=weekday.order)


def parse_timestamp(value: str, tz_name: str) -> datetime:
    """Parse an ISO 8601 timestamp into local wall-clock time.

    Naive timestamps are taken to be local already; aware ones (including a
    trailing "Z") are converted to ``tz_name``.

    Raises:
        ValueError: If the value is not an ISO timestamp.
    """
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(ZoneInfo(tz_name))
    return parsed
