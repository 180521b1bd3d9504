"""Embedded-JSON adapter for the Sportfondsen Next.js sites.

The schedule page ships its data in ``<script id="__NEXT_DATA__">``. The
time slots live under one of two paths depending on the deployment:

    props.pageProps.extraPageProps.scheduleData.timeSlots   (current)
    props.pageProps.scheduleData.timeSlots                  (older builds)

Each slot names a weekday but no date; the date is reconstructed inside the
current week. Times are "HH:MM".
"""

import json
from datetime import date
from typing import Any, NamedTuple

import requests
from bs4 import BeautifulSoup

from src.zwemsterdam.config import ZwemsterdamConfig, get_config
from src.zwemsterdam.errors import FetchFailure, ParseFailure
from src.zwemsterdam.http import get_text
from src.zwemsterdam.logging import get_logger
from src.zwemsterdam.models import RawRecord, TimeFormat
from src.zwemsterdam.sources.base import (
    SourceAdapter,
    date_in_week,
    local_today,
    week_monday,
)

log = get_logger(__name__)


class SportfondsenPool(NamedTuple):
    name: str
    base_url: str
    path: str

    @property
    def url(self) -> str:
        return f"{self.base_url}{self.path}"


# The sites moved from sportfondsenbadamsterdamoost.nl / sportplazamercator.nl
# to subdomains of sportfondsen.nl, each with its own page slug.
SPORTFONDSEN_POOLS: tuple[SportfondsenPool, ...] = (
    SportfondsenPool("Sportfondsenbad Oost", "https://amsterdamoost.sportfondsen.nl", "/tijden-tarieven/"),
    SportfondsenPool("Sportplaza Mercator", "https://mercator.sportfondsen.nl", "/tijden-tarieven-van-mercator/"),
)

PRIMARY_PATH = ("props", "pageProps", "extraPageProps", "scheduleData", "timeSlots")
FALLBACK_PATH = ("props", "pageProps", "scheduleData", "timeSlots")


def extract_next_data(html: str) -> dict:
    """Return the parsed __NEXT_DATA__ payload of a Next.js page.

    Raises:
        ParseFailure: If the script tag is missing or does not hold JSON.
    """
    soup = BeautifulSoup(html, "html.parser")
    script = soup.find("script", id="__NEXT_DATA__")
    if script is None or not script.string:
        raise ParseFailure("No __NEXT_DATA__ script on page", path="script#__NEXT_DATA__")
    try:
        payload = json.loads(script.string)
    except json.JSONDecodeError as e:
        raise ParseFailure(f"__NEXT_DATA__ is not valid JSON: {e}", path="script#__NEXT_DATA__") from e
    if not isinstance(payload, dict):
        raise ParseFailure("__NEXT_DATA__ is not an object", path="script#__NEXT_DATA__")
    return payload


def walk_path(payload: Any, path: tuple[str, ...]) -> Any:
    """Follow ``path`` through nested dicts.

    Raises:
        ParseFailure: At the first missing key, naming the full path.
    """
    node = payload
    for key in path:
        if not isinstance(node, dict) or key not in node or node[key] is None:
            raise ParseFailure(f"Missing key {key!r}", path=".".join(path))
        node = node[key]
    return node


def find_time_slots(payload: dict) -> list:
    """Locate the time-slot list, trying the primary path then the fallback.

    Raises:
        ParseFailure: If neither path leads to a list.
    """
    for path in (PRIMARY_PATH, FALLBACK_PATH):
        try:
            slots = walk_path(payload, path)
        except ParseFailure:
            continue
        if isinstance(slots, list):
            if path is FALLBACK_PATH:
                log.info("sportfondsen_fallback_path", path=".".join(path))
            return slots
    raise ParseFailure(
        "No timeSlots list under either known path",
        path=" | ".join(".".join(p) for p in (PRIMARY_PATH, FALLBACK_PATH)),
    )


def _slot_activity(slot: dict) -> str | None:
    try:
        title = walk_path(slot, ("activitySchedule", "activity", "title"))
    except ParseFailure:
        return None
    return str(title) if title else None


def parse_time_slots(slots: list, pool: str, monday: date) -> list[RawRecord]:
    """Convert Sportfondsen time slots into raw records dated within the week."""
    records: list[RawRecord] = []
    for slot in slots:
        if not isinstance(slot, dict):
            continue
        day = slot.get("day")
        activity = _slot_activity(slot)
        start, end = slot.get("startTime"), slot.get("endTime")
        if not day or not activity or not start or not end:
            log.warning("sportfondsen_slot_incomplete", pool=pool, day=day, activity=activity)
            continue
        records.append(
            RawRecord(
                source=SportfondsenAdapter.name,
                pool=pool,
                day=str(day),
                date=date_in_week(monday, str(day)),
                start=str(start),
                end=str(end),
                time_format=TimeFormat.COLON,
                activity=activity,
                note=str(slot.get("occupationDisplay") or ""),
            )
        )
    return records


class SportfondsenAdapter(SourceAdapter):
    """Reads each Sportfondsen pool page and its embedded schedule."""

    name = "sportfondsen"

    def __init__(
        self,
        client: requests.Session,
        *,
        pools: tuple[SportfondsenPool, ...] = SPORTFONDSEN_POOLS,
        today: date | None = None,
        config: ZwemsterdamConfig | None = None,
    ) -> None:
        self.client = client
        self.pools = pools
        self.config = config or get_config()
        self.today = today or local_today(self.config.timezone)

    def fetch_pool(self, pool: SportfondsenPool) -> list[RawRecord]:
        html = get_text(self.client, pool.url, timeout=self.config.request_timeout_seconds)
        slots = find_time_slots(extract_next_data(html))
        return parse_time_slots(slots, pool.name, week_monday(self.today))

    def fetch(self) -> list[RawRecord]:
        records: list[RawRecord] = []
        failed = 0
        for pool in self.pools:
            try:
                records.extend(self.fetch_pool(pool))
            except (FetchFailure, ParseFailure) as e:
                failed += 1
                log.warning(
                    "sportfondsen_pool_skipped",
                    pool=pool.name,
                    url=pool.url,
                    error=str(e),
                    path=getattr(e, "path", None),
                    type=type(e).__name__,
                )
        log.info("source_fetched", source=self.name, records=len(records), failed_items=failed)
        return records
