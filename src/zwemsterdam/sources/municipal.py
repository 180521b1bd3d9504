"""Municipal-API adapter for the Amsterdam city pools.

The city's zwembaden API serves one JSON document per pool per date:

    GET https://zwembaden.api-amsterdam.nl/nl/api/{slug}/date/{YYYY-MM-DD}/

Two response shapes are in circulation and both are accepted:

    {"schedule": [{"start": "7.00", "end": "9.00", "activity": ..., "extra": ...}]}
    {"days": [{"name": "maandag", "date": "2025-01-06", "schedule": [...]}]}

Times are decimal-dot ("7.00", "15.30"). This is the only source that
reports real dates for every entry.
"""

from datetime import date, timedelta
from typing import Any

import requests

from src.zwemsterdam.config import ZwemsterdamConfig, get_config
from src.zwemsterdam.errors import FetchFailure, ParseFailure
from src.zwemsterdam.http import get_json
from src.zwemsterdam.logging import get_logger
from src.zwemsterdam.models import RawRecord, TimeFormat
from src.zwemsterdam.sources.base import SourceAdapter, local_today

log = get_logger(__name__)

API_URL = "https://zwembaden.api-amsterdam.nl/nl/api/{slug}/date/{day}/"

# Only these pools are served by the city API
MUNICIPAL_POOLS: tuple[str, ...] = (
    "zuiderbad",
    "noorderparkbad",
    "de-mirandabad",
    "flevoparkbad",
    "brediusbad",
)

REQUEST_HEADERS = {
    "Origin": "https://www.amsterdam.nl",
    "Referer": "https://www.amsterdam.nl/",
}


def pool_name_from_slug(slug: str) -> str:
    """'de-mirandabad' -> 'De Mirandabad'."""
    return " ".join(part.capitalize() for part in slug.split("-") if part)


def _entries_for_date(payload: Any, day: date) -> list[dict]:
    """Pick the schedule entries for ``day`` out of either response shape."""
    if not isinstance(payload, dict):
        raise ParseFailure("Expected a JSON object", path="$")

    if isinstance(payload.get("schedule"), list):
        return payload["schedule"]

    days = payload.get("days")
    if not isinstance(days, list):
        raise ParseFailure("Neither 'schedule' nor 'days' present", path="$.schedule|$.days")

    entries: list[dict] = []
    for block in days:
        if not isinstance(block, dict) or not isinstance(block.get("schedule"), list):
            continue
        block_date = block.get("date")
        if block_date and str(block_date)[:10] != day.isoformat():
            continue
        entries.extend(block["schedule"])
    return entries


def parse_municipal_payload(payload: Any, slug: str, day: date) -> list[RawRecord]:
    """Convert one per-date API response into raw records.

    Entries missing a start, end or activity are skipped with a warning.

    Raises:
        ParseFailure: If the payload has neither known shape.
    """
    pool = pool_name_from_slug(slug)
    records: list[RawRecord] = []
    for entry in _entries_for_date(payload, day):
        if not isinstance(entry, dict):
            continue
        start, end = entry.get("start"), entry.get("end")
        activity = entry.get("activity") or entry.get("title")
        if start is None or end is None or not activity:
            log.warning("municipal_entry_incomplete", pool=pool, date=day.isoformat(), entry=entry)
            continue
        records.append(
            RawRecord(
                source=MunicipalAdapter.name,
                pool=pool,
                date=day,
                start=str(start),
                end=str(end),
                time_format=TimeFormat.DECIMAL_DOT,
                activity=str(activity),
                note=str(entry.get("extra") or ""),
            )
        )
    return records


class MunicipalAdapter(SourceAdapter):
    """Fetches a forward-looking window of dates for each city pool."""

    name = "municipal"

    def __init__(
        self,
        client: requests.Session,
        *,
        slugs: tuple[str, ...] = MUNICIPAL_POOLS,
        today: date | None = None,
        config: ZwemsterdamConfig | None = None,
    ) -> None:
        self.client = client
        self.slugs = slugs
        self.config = config or get_config()
        self.today = today or local_today(self.config.timezone)

    def window(self) -> list[date]:
        return [
            self.today + timedelta(days=offset)
            for offset in range(self.config.municipal_window_days)
        ]

    def fetch_date(self, slug: str, day: date) -> list[RawRecord]:
        url = API_URL.format(slug=slug, day=day.isoformat())
        payload = get_json(
            self.client,
            url,
            headers=REQUEST_HEADERS,
            timeout=self.config.request_timeout_seconds,
        )
        return parse_municipal_payload(payload, slug, day)

    def fetch(self) -> list[RawRecord]:
        records: list[RawRecord] = []
        failed = 0
        for slug in self.slugs:
            for day in self.window():
                try:
                    records.extend(self.fetch_date(slug, day))
                except (FetchFailure, ParseFailure) as e:
                    failed += 1
                    log.warning(
                        "municipal_date_skipped",
                        pool=slug,
                        date=day.isoformat(),
                        error=str(e),
                        type=type(e).__name__,
                    )
        log.info("source_fetched", source=self.name, records=len(records), failed_items=failed)
        return records
