"""CMS admin-ajax adapter for Het Marnix.

The WordPress site answers a single lessons query for a time range:

    GET https://hetmarnix.nl/wp-admin/admin-ajax.php
        ?action=getlessons&start=<ISO>&end=<ISO>

The range is the current ISO week (Monday 00:00 up to the following Monday
23:59, local time, sent as UTC). Each lesson carries absolute start/end
timestamps; weekday and date come from the start timestamp.
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import Any
from zoneinfo import ZoneInfo

import requests

from src.zwemsterdam.config import ZwemsterdamConfig, get_config
from src.zwemsterdam.errors import ParseFailure
from src.zwemsterdam.http import get_json
from src.zwemsterdam.logging import get_logger
from src.zwemsterdam.models import RawRecord, TimeFormat
from src.zwemsterdam.sources.base import (
    ENGLISH_DAY_NAMES,
    SourceAdapter,
    local_today,
    parse_timestamp,
    week_monday,
)

log = get_logger(__name__)

ADMIN_AJAX_URL = "https://hetmarnix.nl/wp-admin/admin-ajax.php"
POOL_NAME = "Het Marnix"

REQUEST_HEADERS = {
    "Referer": "https://hetmarnix.nl/schedule/tijden/",
    "X-Requested-With": "XMLHttpRequest",
}


def week_query(today: date, tz_name: str) -> dict[str, str]:
    """Build the {action, start, end} query for the ISO week containing today."""
    tz = ZoneInfo(tz_name)
    monday = week_monday(today)
    start = datetime.combine(monday, time(0, 0), tzinfo=tz)
    end = datetime.combine(monday + timedelta(days=7), time(23, 59), tzinfo=tz)
    fmt = "%Y-%m-%dT%H:%M:%S.000Z"
    return {
        "action": "getlessons",
        "start": start.astimezone(timezone.utc).strftime(fmt),
        "end": end.astimezone(timezone.utc).strftime(fmt),
    }


def _lesson_list(payload: Any) -> list:
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in ("lessons", "data"):
            if isinstance(payload.get(key), list):
                return payload[key]
    raise ParseFailure("Expected a list of lessons", path="$|$.lessons|$.data")


def parse_lessons(payload: Any, tz_name: str, week_start: date) -> list[RawRecord]:
    """Convert the admin-ajax lesson list into raw records.

    Lessons outside the Monday-Sunday week are ignored: the query's end bound
    reaches into the next Monday.

    Raises:
        ParseFailure: If the payload is not a lesson list.
    """
    week_end = week_start + timedelta(days=6)
    records: list[RawRecord] = []
    for lesson in _lesson_list(payload):
        if not isinstance(lesson, dict):
            continue
        title = lesson.get("title")
        try:
            start = parse_timestamp(str(lesson["start"]), tz_name)
            end = parse_timestamp(str(lesson["end"]), tz_name)
        except (KeyError, ValueError) as e:
            log.warning("marnix_lesson_skipped", title=title, error=str(e))
            continue
        if not title:
            log.warning("marnix_lesson_skipped", start=lesson.get("start"), error="no title")
            continue
        if not week_start <= start.date() <= week_end:
            continue

        # Lessons running to midnight end on the next day
        end_token = "24:00" if end.date() > start.date() else end.strftime("%H:%M")
        records.append(
            RawRecord(
                source=MarnixAdapter.name,
                pool=POOL_NAME,
                day=ENGLISH_DAY_NAMES[start.weekday()],
                date=start.date(),
                start=start.strftime("%H:%M"),
                end=end_token,
                time_format=TimeFormat.COLON,
                activity=str(title),
                note=str(
                    lesson.get("note") or lesson.get("description") or lesson.get("location") or ""
                ),
            )
        )
    return records


class MarnixAdapter(SourceAdapter):
    """Het Marnix lessons for the current week."""

    name = "marnix"

    def __init__(
        self,
        client: requests.Session,
        *,
        today: date | None = None,
        config: ZwemsterdamConfig | None = None,
    ) -> None:
        self.client = client
        self.config = config or get_config()
        self.today = today or local_today(self.config.timezone)

    def fetch(self) -> list[RawRecord]:
        params = week_query(self.today, self.config.timezone)
        payload = get_json(
            self.client,
            ADMIN_AJAX_URL,
            params=params,
            headers=REQUEST_HEADERS,
            timeout=self.config.request_timeout_seconds,
        )
        records = parse_lessons(payload, self.config.timezone, week_monday(self.today))
        log.info("source_fetched", source=self.name, records=len(records))
        return records
