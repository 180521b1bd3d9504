"""Cloudflare-protected Optisport schedule API, reached through one browser session.

Optisport answers API calls only for a browser that has passed the bot
challenge. The work is split in two steps:

1. Browser step (expensive, rate-limited): OptisportSession opens Chromium,
   loads a pool page until the challenge title disappears, asks the site for
   a CSRF token, then POSTs to the paginated schedule API once per location,
   sequentially, from inside that same page. The result is written to a JSON
   cache file.
2. Adapter step (cheap): OptisportAdapter reads the cache and yields raw
   records like any other source.

    POST https://www.optisport.nl/api/optisport/v1/schedule
    {"page": 0, "locationId": 2202, "results": 50}
    -> {"schedule": [{"date": ..., "day": ..., "events": [...]}], "next_page": 2}
"""

import asyncio
import json
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Any, NamedTuple

from playwright.async_api import (
    Browser,
    BrowserContext,
    Error as PlaywrightError,
    Page,
    Playwright,
    async_playwright,
)
from tenacity import (
    AsyncRetrying,
    RetryError,
    retry_if_exception_type,
    retry_if_result,
    stop_after_delay,
    wait_fixed,
)

from src.zwemsterdam.config import ZwemsterdamConfig, get_config
from src.zwemsterdam.errors import ChallengeTimeout, FetchFailure, ParseFailure
from src.zwemsterdam.logging import get_logger
from src.zwemsterdam.models import RawRecord, TimeFormat
from src.zwemsterdam.sources.base import (
    ENGLISH_DAY_NAMES,
    SourceAdapter,
    local_today,
    parse_timestamp,
)
from src.zwemsterdam.sources.browser import configure_page_for_scraping

log = get_logger(__name__)


class OptisportLocation(NamedTuple):
    name: str
    url: str
    location_id: int


OPTISPORT_LOCATIONS: tuple[OptisportLocation, ...] = (
    OptisportLocation("Bijlmer Sportcentrum", "https://www.optisport.nl/zwembad-bijlmer-amsterdam-zuidoost", 2202),
    OptisportLocation("Sloterparkbad", "https://www.optisport.nl/zwembad-het-sloterparkbad-amsterdam", 2305),
)

SCHEDULE_API_URL = "https://www.optisport.nl/api/optisport/v1/schedule"
TOKEN_PATHS: tuple[str, ...] = ("/session/token", "/api/optisport/token")
CHALLENGE_MARKERS: tuple[str, ...] = ("Just a moment", "Even geduld", "Attention Required")

# Let the page finish its post-challenge redirects before issuing fetches
SETTLE_MS = 2000

_FETCH_TOKEN_JS = """async (path) => {
    const res = await fetch(path, { credentials: 'same-origin' });
    return res.ok ? await res.text() : null;
}"""

_FETCH_SCHEDULE_JS = """async ({ url, body, token }) => {
    const headers = { 'Content-Type': 'application/json', 'Accept': 'application/json' };
    if (token) headers['X-CSRF-Token'] = token;
    const res = await fetch(url, {
        method: 'POST',
        credentials: 'same-origin',
        headers,
        body: JSON.stringify(body),
    });
    return { status: res.status, text: await res.text() };
}"""


def is_challenge_title(title: str) -> bool:
    return any(marker.lower() in title.lower() for marker in CHALLENGE_MARKERS)


class OptisportSession:
    """One Chromium session shared by every Optisport location.

    Lifecycle: acquire -> bootstrap (challenge + token) -> fetch_location()
    for each location -> release. Use it as an async context manager to get
    acquire/release automatically. Calls on one session are serialized; the
    token and cookies belong to a single page.
    """

    def __init__(self, config: ZwemsterdamConfig | None = None, *, headless: bool | None = None) -> None:
        self.config = config or get_config()
        self.headless = self.config.headless if headless is None else headless
        self.token: str | None = None
        self.page: Page | None = None
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None
        self._bootstrapped = False
        self._lock = asyncio.Lock()

    async def __aenter__(self) -> "OptisportSession":
        await self.acquire()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.release()

    async def acquire(self) -> None:
        """Launch the browser and open the page all calls will share.

        If any step after the driver starts fails, whatever was opened is
        released before the error propagates.
        """
        self._playwright = await async_playwright().start()
        try:
            self._browser = await self._playwright.chromium.launch(headless=self.headless)
            self._context = await self._browser.new_context(user_agent=self.config.user_agent)
            self.page = await self._context.new_page()
            await configure_page_for_scraping(self.page, timeout_ms=self.config.browser_timeout_ms)
        except BaseException:
            await self.release()
            raise
        log.info("browser_session_acquired", headless=self.headless)

    async def release(self) -> None:
        """Close the page's context, the browser and the driver.

        Each close runs even if an earlier one raised.
        """
        context, browser, playwright = self._context, self._browser, self._playwright
        self.page = self._context = self._browser = self._playwright = None
        self._bootstrapped = False
        try:
            if context is not None:
                await context.close()
        finally:
            try:
                if browser is not None:
                    await browser.close()
            finally:
                if playwright is not None:
                    await playwright.stop()
        log.info("browser_session_released")

    async def bootstrap(self, entry_url: str) -> None:
        """Pass the bot challenge on ``entry_url`` and obtain the CSRF token.

        Raises:
            FetchFailure: If the entry page does not load.
            ChallengeTimeout: If the challenge is still showing after
                ``challenge_timeout_seconds``.
        """
        if self.page is None:
            raise RuntimeError("OptisportSession.bootstrap() called before acquire()")

        log.info("challenge_bootstrap_started", url=entry_url)
        try:
            await self.page.goto(
                entry_url,
                wait_until="domcontentloaded",
                timeout=self.config.browser_timeout_ms,
            )
        except PlaywrightError as e:
            # Timeouts and net::ERR_* failures alike
            raise FetchFailure(f"Entry page {entry_url} did not load: {e}", url=entry_url) from e

        await self.wait_for_challenge()
        await self.page.wait_for_timeout(SETTLE_MS)
        self.token = await self._fetch_token()
        self._bootstrapped = True
        log.info("challenge_passed", token=bool(self.token))

    async def _challenge_cleared(self) -> bool:
        return not is_challenge_title(await self.page.title())

    async def wait_for_challenge(self) -> None:
        """Poll the page title until no challenge marker is left in it."""
        poll = AsyncRetrying(
            stop=stop_after_delay(self.config.challenge_timeout_seconds),
            wait=wait_fixed(1),
            # Title reads can fail while the challenge navigates; keep polling
            retry=retry_if_result(lambda cleared: not cleared)
            | retry_if_exception_type(PlaywrightError),
        )
        try:
            await poll(self._challenge_cleared)
        except RetryError as e:
            raise ChallengeTimeout(
                f"Bot challenge still active after {self.config.challenge_timeout_seconds}s",
                url=self.page.url if self.page else None,
            ) from e

    async def _fetch_token(self) -> str | None:
        for path in TOKEN_PATHS:
            try:
                token = await self.page.evaluate(_FETCH_TOKEN_JS, path)
            except PlaywrightError as e:
                log.debug("token_endpoint_failed", path=path, error=str(e))
                continue
            if token and token.strip():
                return token.strip()
        log.warning("token_missing", paths=list(TOKEN_PATHS))
        return None

    async def fetch_page(self, location_id: int, page_index: int) -> dict:
        """POST one schedule page (0-indexed) for a location.

        Raises:
            FetchFailure: On a non-2xx status or a failed in-page fetch.
            ParseFailure: If the body is not a JSON object.
        """
        body = {
            "page": page_index,
            "locationId": location_id,
            "results": self.config.optisport_page_size,
        }
        try:
            result = await self.page.evaluate(
                _FETCH_SCHEDULE_JS,
                {"url": SCHEDULE_API_URL, "body": body, "token": self.token},
            )
        except PlaywrightError as e:
            raise FetchFailure(f"Schedule fetch failed: {e}", url=SCHEDULE_API_URL) from e

        status = result.get("status", 0)
        if not 200 <= status < 300:
            raise FetchFailure(
                f"Schedule API returned {status} for location {location_id}",
                url=SCHEDULE_API_URL,
                status=status,
            )
        try:
            payload = json.loads(result.get("text") or "")
        except ValueError as e:
            raise ParseFailure(f"Schedule API body is not JSON: {e}", path="$") from e
        if not isinstance(payload, dict):
            raise ParseFailure("Schedule API body is not an object", path="$")
        return payload

    async def fetch_location(self, location: OptisportLocation) -> list[dict]:
        """Collect every schedule day for a location, following ``next_page``.

        A failed page ends pagination for this location; the days collected
        so far are returned.
        """
        if not self._bootstrapped:
            raise RuntimeError("OptisportSession.fetch_location() called before bootstrap()")

        async with self._lock:
            days: list[dict] = []
            page_number = 1
            while page_number <= self.config.optisport_max_pages:
                try:
                    payload = await self.fetch_page(location.location_id, page_number - 1)
                except (FetchFailure, ParseFailure) as e:
                    log.warning(
                        "optisport_page_failed",
                        pool=location.name,
                        page=page_number,
                        error=str(e),
                    )
                    break

                schedule = payload.get("schedule") or []
                if isinstance(schedule, list):
                    days.extend(day for day in schedule if isinstance(day, dict))
                log.debug("optisport_page_fetched", pool=location.name, page=page_number, days=len(schedule))

                next_page = payload.get("next_page")
                if isinstance(next_page, int) and next_page > page_number:
                    page_number = next_page
                else:
                    break
            else:
                log.warning("optisport_page_ceiling", pool=location.name, max_pages=self.config.optisport_max_pages)
            return days


def flatten_events(days: list[dict]) -> list[dict]:
    """List every event, tagged with its day's date label and day name."""
    events: list[dict] = []
    for day in days:
        for event in day.get("events") or []:
            if isinstance(event, dict):
                events.append({**event, "dateLabel": day.get("date"), "dayName": day.get("day")})
    return events


async def collect_optisport(
    config: ZwemsterdamConfig | None = None,
    locations: tuple[OptisportLocation, ...] = OPTISPORT_LOCATIONS,
    *,
    headless: bool | None = None,
) -> dict[str, dict]:
    """Run the browser step for all locations on one session.

    Returns:
        Cache document keyed by pool name.

    Raises:
        ChallengeTimeout: If the bot challenge does not clear; no location is
            fetched in that case.
    """
    config = config or get_config()
    cache: dict[str, dict] = {}
    async with OptisportSession(config, headless=headless) as session:
        await session.bootstrap(locations[0].url)
        for location in locations:
            days = await session.fetch_location(location)
            events = flatten_events(days)
            if not events:
                log.warning("optisport_location_empty", pool=location.name, location_id=location.location_id)
                continue
            cache[location.name] = {
                "locationId": location.location_id,
                "schedule": days,
                "events": events,
                "fetchedAt": datetime.now(timezone.utc).isoformat(),
            }
            log.info("optisport_location_fetched", pool=location.name, days=len(days), events=len(events))
    return cache


def write_cache(cache: dict[str, dict], path: str | Path) -> Path | None:
    """Write the browser step's result; an empty result leaves the old cache alone."""
    path = Path(path)
    if not cache:
        log.warning("optisport_cache_not_written", path=str(path), reason="no_data")
        return None
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(cache, f, indent=2, ensure_ascii=False)
    log.info("optisport_cache_written", path=str(path), pools=list(cache))
    return path


def load_cache(path: str | Path) -> dict[str, Any]:
    """Read the cache written by the browser step.

    Raises:
        FetchFailure: If the browser step never produced a cache file.
        ParseFailure: If the file is not a JSON object.
    """
    path = Path(path)
    if not path.exists():
        raise FetchFailure(f"Optisport cache {path} not found; run scripts/fetch_optisport.py")
    try:
        with open(path, encoding="utf-8") as f:
            cache = json.load(f)
    except json.JSONDecodeError as e:
        raise ParseFailure(f"Optisport cache is not valid JSON: {e}", path=str(path)) from e
    if not isinstance(cache, dict):
        raise ParseFailure("Optisport cache is not an object", path=str(path))
    return cache


def _event_note(event: dict) -> str:
    for key in ("note", "description", "subtitle"):
        value = event.get(key)
        if isinstance(value, str) and value.strip():
            return value
    return ""


def parse_cached_events(cache: dict[str, Any], tz_name: str, today: date) -> list[RawRecord]:
    """Convert cached events dated within the next 7 days (today included) into raw records."""
    horizon = today + timedelta(days=6)
    records: list[RawRecord] = []
    for pool, entry in cache.items():
        if not isinstance(entry, dict):
            log.warning("optisport_cache_entry_invalid", pool=pool)
            continue
        events = entry.get("events")
        if not isinstance(events, list):
            events = flatten_events(entry.get("schedule") or [])

        for event in events:
            title = event.get("title")
            try:
                start = parse_timestamp(str(event["start"]), tz_name)
                end = parse_timestamp(str(event["end"]), tz_name)
            except (KeyError, ValueError) as e:
                log.warning("optisport_event_skipped", pool=pool, title=title, error=str(e))
                continue
            if not title or not today <= start.date() <= horizon:
                continue

            end_token = "24:00" if end.date() > start.date() else end.strftime("%H:%M")
            records.append(
                RawRecord(
                    source=OptisportAdapter.name,
                    pool=pool,
                    day=ENGLISH_DAY_NAMES[start.weekday()],
                    date=start.date(),
                    start=start.strftime("%H:%M"),
                    end=end_token,
                    time_format=TimeFormat.COLON,
                    activity=str(title),
                    note=_event_note(event),
                )
            )
    return records


class OptisportAdapter(SourceAdapter):
    """Optisport pools, read from the browser step's cache.

    With ``refresh=True`` the browser step runs first (as one unit for all
    locations) and rewrites the cache before it is read.
    """

    name = "optisport"

    def __init__(
        self,
        *,
        cache_path: str | Path | None = None,
        refresh: bool = False,
        today: date | None = None,
        config: ZwemsterdamConfig | None = None,
        locations: tuple[OptisportLocation, ...] = OPTISPORT_LOCATIONS,
    ) -> None:
        self.config = config or get_config()
        self.cache_path = Path(cache_path or self.config.optisport_cache_file)
        self.refresh = refresh
        self.today = today or local_today(self.config.timezone)
        self.locations = locations

    def fetch(self) -> list[RawRecord]:
        cache = load_cache(self.cache_path)
        for pool, entry in cache.items():
            if isinstance(entry, dict):
                log.debug("optisport_cache_pool", pool=pool, fetched_at=entry.get("fetchedAt"))
        records = parse_cached_events(cache, self.config.timezone, self.today)
        log.info("source_fetched", source=self.name, records=len(records), cache=str(self.cache_path))
        return records

    async def fetch_async(self) -> list[RawRecord]:
        if self.refresh:
            cache = await collect_optisport(self.config, self.locations)
            write_cache(cache, self.cache_path)
        return await super().fetch_async()
