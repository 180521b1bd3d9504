"""HTML text adapter for the Duranbad (Diemen).

The municipality publishes the timetable as plain paragraphs:

    Maandag
    07:00-09:00 uur Banenzwemmen
    09:00 - 12:00 uur Recreatiezwemmen (ondiep bad)
    Dinsdag
    ...

A day-name line opens a new day; every ``HH:MM-HH:MM uur <label>`` line
below it is a session. During holidays the site announces a date range
("aangepaste openingstijden van 20-12-2025 t/m 04-01-2026") and publishes a
separate page whose entries replace the regular ones for those dates.

parse_schedule_lines() and find_override_range() work on text lines only,
so they can be tested without any HTTP.
"""

import re
from collections.abc import Iterable
from datetime import date, timedelta
from typing import NamedTuple

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

POOL_NAME = "Duranbad (Diemen)"
REGULAR_URL = "https://www.diemen.nl/zwembad/Openingstijden"
ANNOUNCEMENT_URL = "https://www.diemen.nl/zwembad"
OVERRIDE_URL = "https://www.diemen.nl/zwembad/Aangepaste_openingstijden"

PARAGRAPH_TAGS = ["p", "li", "h1", "h2", "h3", "h4", "h5", "h6", "td"]

DUTCH_MONTHS = {
    "januari": 1,
    "februari": 2,
    "maart": 3,
    "april": 4,
    "mei": 5,
    "juni": 6,
    "juli": 7,
    "augustus": 8,
    "september": 9,
    "oktober": 10,
    "november": 11,
    "december": 12,
}
OVERRIDE_KEYWORDS = ("aangepast", "afwijkend", "vakantie", "feestdagen")

_DAYS = "maandag|dinsdag|woensdag|donderdag|vrijdag|zaterdag|zondag"
_MONTHS = "|".join(DUTCH_MONTHS)
_UNTIL = r"(?:t/m|tot en met|tot|-|–)"

DAY_HEADER_RE = re.compile(rf"^({_DAYS})\b[\s:,]*(.*)$", re.IGNORECASE)
TIME_LINE_RE = re.compile(
    r"^(\d{1,2}[:.]\d{2})\s*[-–]\s*(\d{1,2}[:.]\d{2})\s*uur\b[\s:]*(.*)$",
    re.IGNORECASE,
)
NUMERIC_DATE_RE = re.compile(r"(\d{1,2})-(\d{1,2})-(\d{4})")
TEXT_DATE_RE = re.compile(rf"(\d{{1,2}})\s+({_MONTHS})(?:\s+(\d{{4}}))?", re.IGNORECASE)
NUMERIC_RANGE_RE = re.compile(
    rf"(\d{{1,2}})-(\d{{1,2}})-(\d{{4}})\s*{_UNTIL}\s*(\d{{1,2}})-(\d{{1,2}})-(\d{{4}})",
    re.IGNORECASE,
)
TEXT_RANGE_RE = re.compile(
    rf"(\d{{1,2}})\s+({_MONTHS})(?:\s+(\d{{4}}))?\s*{_UNTIL}\s*(\d{{1,2}})\s+({_MONTHS})\s+(\d{{4}})",
    re.IGNORECASE,
)


class DateRange(NamedTuple):
    """Inclusive range of dates."""

    start: date
    end: date

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end


def extract_text_lines(html: str) -> list[str]:
    """Return the text of every paragraph-like element, one entry per line.

    ``<br>`` breaks become line breaks; whitespace runs collapse to a
    single space. Elements nested in another paragraph-like element are
    read through their parent only.
    """
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(["script", "style"]):
        tag.decompose()

    lines: list[str] = []
    for element in soup.find_all(PARAGRAPH_TAGS):
        if element.find_parent(PARAGRAPH_TAGS) is not None:
            continue
        for br in element.find_all("br"):
            br.replace_with("\n")
        for raw_line in element.get_text().splitlines():
            line = " ".join(raw_line.split())
            if line:
                lines.append(line)
    return lines


def split_label(label: str) -> tuple[str, str]:
    """Split 'Banenzwemmen (3 banen)' into ('Banenzwemmen', '3 banen').

    Without parentheses, ' - ' or ', ' separates activity from note.
    """
    label = label.strip().rstrip(".").strip()
    match = re.match(r"^([^(]*?)\s*\(([^)]*)\)\s*(.*)$", label)
    if match and match.group(1):
        activity, note, rest = match.groups()
        note = " ".join(part for part in (note.strip(), rest.strip()) if part)
        return activity.strip(), note
    for separator in (" - ", " – ", ", "):
        if separator in label:
            activity, note = label.split(separator, 1)
            return activity.strip(), note.strip()
    return label, ""


def _safe_date(year: int, month: int, day: int) -> date | None:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def _resolve_year(day: int, month: int, date_range: DateRange | None, fallback_year: int) -> date | None:
    """Pick the year for a year-less date, preferring one inside ``date_range``."""
    if date_range is not None:
        for year in (date_range.start.year, date_range.end.year):
            candidate = _safe_date(year, month, day)
            if candidate is not None and date_range.contains(candidate):
                return candidate
    return _safe_date(fallback_year, month, day)


def parse_header_date(text: str, *, date_range: DateRange | None = None, fallback_year: int | None = None) -> date | None:
    """Parse '22-12-2025' or '22 december [2025]' out of a day header remainder."""
    match = NUMERIC_DATE_RE.search(text)
    if match:
        day, month, year = (int(part) for part in match.groups())
        return _safe_date(year, month, day)

    match = TEXT_DATE_RE.search(text)
    if match:
        day = int(match.group(1))
        month = DUTCH_MONTHS[match.group(2).lower()]
        if match.group(3):
            return _safe_date(int(match.group(3)), month, day)
        year = fallback_year or (date_range.start.year if date_range else date.today().year)
        return _resolve_year(day, month, date_range, year)
    return None


def _colon_time(token: str) -> str:
    return token.replace(".", ":")


def parse_schedule_lines(
    lines: Iterable[str],
    *,
    date_range: DateRange | None = None,
    fallback_year: int | None = None,
) -> list[RawRecord]:
    """Turn timetable text lines into raw records.

    Args:
        lines: Text lines in page order.
        date_range: Override period, used to pick the year of dates written
            without one ("Maandag 29 december").
        fallback_year: Year for year-less dates when no range applies.

    Returns:
        One record per time line that follows a day header. Records carry a
        date only when the header names one.
    """
    records: list[RawRecord] = []
    current_day: str | None = None
    current_date: date | None = None

    for line in lines:
        header = DAY_HEADER_RE.match(line)
        if header:
            current_day = header.group(1).capitalize()
            rest = header.group(2)
            current_date = parse_header_date(rest, date_range=date_range, fallback_year=fallback_year)
            # "Maandag 07:00-09:00 uur Banenzwemmen" carries its own entry
            line = rest
            if not TIME_LINE_RE.match(line):
                continue

        entry = TIME_LINE_RE.match(line)
        if not entry:
            continue
        if current_day is None:
            log.debug("duranbad_line_without_day", line=line)
            continue

        start, end, label = entry.groups()
        activity, note = split_label(label)
        records.append(
            RawRecord(
                source=DuranbadAdapter.name,
                pool=POOL_NAME,
                day=current_day,
                date=current_date,
                start=_colon_time(start),
                end=_colon_time(end),
                time_format=TimeFormat.COLON,
                activity=activity,
                note=note,
            )
        )
    return records


def find_override_range(lines: Iterable[str]) -> DateRange | None:
    """Find an announced override period in lines mentioning a changed schedule."""
    for line in lines:
        if not any(keyword in line.lower() for keyword in OVERRIDE_KEYWORDS):
            continue

        match = NUMERIC_RANGE_RE.search(line)
        if match:
            d1, m1, y1, d2, m2, y2 = (int(part) for part in match.groups())
            start, end = _safe_date(y1, m1, d1), _safe_date(y2, m2, d2)
            if start and end and start <= end:
                return DateRange(start, end)

        match = TEXT_RANGE_RE.search(line)
        if match:
            d1, month1, y1, d2, month2, y2 = match.groups()
            m1, m2 = DUTCH_MONTHS[month1.lower()], DUTCH_MONTHS[month2.lower()]
            end_year = int(y2)
            # "20 december t/m 4 januari 2026" starts in the previous year
            start_year = int(y1) if y1 else (end_year - 1 if m1 > m2 else end_year)
            start, end = _safe_date(start_year, m1, int(d1)), _safe_date(end_year, m2, int(d2))
            if start and end and start <= end:
                return DateRange(start, end)
    return None


def with_week_dates(records: list[RawRecord], monday: date) -> list[RawRecord]:
    """Date undated records inside the week that starts at ``monday``."""
    dated: list[RawRecord] = []
    for record in records:
        if record.date is None and record.day:
            record = record.model_copy(update={"date": date_in_week(monday, record.day)})
        dated.append(record)
    return dated


def within_week(records: list[RawRecord], monday: date) -> list[RawRecord]:
    """Drop records dated outside the week that starts at ``monday``."""
    sunday = monday + timedelta(days=6)
    return [r for r in records if r.date is None or monday <= r.date <= sunday]


def apply_override(
    regular: list[RawRecord],
    override: list[RawRecord],
    date_range: DateRange,
    monday: date,
) -> list[RawRecord]:
    """Replace regular entries with override entries for dates in the range.

    Regular entries dated inside the range are removed, whether or not the
    override page lists that date. Override entries are kept only for dates
    inside both the range and the current week.
    """
    kept = [r for r in regular if r.date is None or not date_range.contains(r.date)]
    replacements = within_week(
        [o for o in override if o.date is not None and date_range.contains(o.date)],
        monday,
    )
    return kept + replacements


class DuranbadAdapter(SourceAdapter):
    """Regular timetable, superseded by the holiday timetable when one is active."""

    name = "duranbad"

    def __init__(
        self,
        client: requests.Session,
        *,
        today: date | None = None,
        config: ZwemsterdamConfig | None = None,
        regular_url: str = REGULAR_URL,
        announcement_url: str = ANNOUNCEMENT_URL,
        override_url: str = OVERRIDE_URL,
    ) -> None:
        self.client = client
        self.config = config or get_config()
        self.today = today or local_today(self.config.timezone)
        self.regular_url = regular_url
        self.announcement_url = announcement_url
        self.override_url = override_url

    def fetch_lines(self, url: str) -> list[str]:
        html = get_text(self.client, url, timeout=self.config.request_timeout_seconds)
        return extract_text_lines(html)

    def active_override(self) -> DateRange | None:
        """Return the announced override period if today falls inside it."""
        try:
            lines = self.fetch_lines(self.announcement_url)
        except (FetchFailure, ParseFailure) as e:
            log.warning("duranbad_announcement_unavailable", url=self.announcement_url, error=str(e))
            return None

        date_range = find_override_range(lines)
        if date_range is None or not date_range.contains(self.today):
            log.debug("duranbad_no_active_override", announced=date_range)
            return None
        log.info(
            "duranbad_override_active",
            start=date_range.start.isoformat(),
            end=date_range.end.isoformat(),
        )
        return date_range

    def fetch(self) -> list[RawRecord]:
        monday = week_monday(self.today)
        parsed = parse_schedule_lines(self.fetch_lines(self.regular_url), fallback_year=self.today.year)
        # A header naming its own date may belong to another week
        regular = within_week(with_week_dates(parsed, monday), monday)
        if not regular:
            log.warning("duranbad_schedule_empty", url=self.regular_url)

        records = regular
        date_range = self.active_override()
        if date_range is not None:
            try:
                override_lines = self.fetch_lines(self.override_url)
            except (FetchFailure, ParseFailure) as e:
                log.warning("duranbad_override_unavailable", url=self.override_url, error=str(e))
                override_lines = []
            override = with_week_dates(
                parse_schedule_lines(override_lines, date_range=date_range),
                monday,
            )
            records = apply_override(regular, override, date_range, monday)

        log.info("source_fetched", source=self.name, records=len(records))
        return records
