"""Time/day normalization: source tokens -> canonical Session fields.

Sources encode clock times three ways and name weekdays in two languages.
Everything funnels through normalize_time() and normalize_day() so that the
rest of the pipeline only ever sees fractional hours and Weekday members.

Minutes are always base-60: "15.30" is half past three (15.5), never 15.3.
"""

import re
from collections.abc import Iterable

from pydantic import ValidationError

from src.zwemsterdam.errors import NormalizationError
from src.zwemsterdam.logging import get_logger
from src.zwemsterdam.models import RawRecord, Session, TimeFormat, Weekday

log = get_logger(__name__)

_DECIMAL_DOT_RE = re.compile(r"^(\d{1,2})(?:\.(\d+))?$")
_COLON_RE = re.compile(r"^(\d{1,2}):(\d{2})(?::\d{2})?$")
_PACKED_RE = re.compile(r"^\d{3,4}$")

_DAY_ALIASES: dict[str, Weekday] = {}
for _weekday, _aliases in {
    Weekday.MAANDAG: ("maandag", "ma", "maa", "monday", "mon", "mo"),
    Weekday.DINSDAG: ("dinsdag", "di", "din", "tuesday", "tue", "tues", "tu"),
    Weekday.WOENSDAG: ("woensdag", "wo", "woe", "wednesday", "wed", "we"),
    Weekday.DONDERDAG: ("donderdag", "do", "don", "thursday", "thu", "thur", "thurs", "th"),
    Weekday.VRIJDAG: ("vrijdag", "vr", "vrij", "friday", "fri", "fr"),
    Weekday.ZATERDAG: ("zaterdag", "za", "zat", "saturday", "sat", "sa"),
    Weekday.ZONDAG: ("zondag", "zo", "zon", "sunday", "sun", "su"),
}.items():
    for _alias in _aliases:
        _DAY_ALIASES[_alias] = _weekday


def normalize_day(label: str) -> Weekday:
    """Map an English or Dutch weekday name (full or abbreviated) to a Weekday.

    Case, surrounding whitespace and a trailing period are ignored.

    Raises:
        NormalizationError: If the label is not a known weekday name.
    """
    key = label.strip().rstrip(".").lower()
    try:
        return _DAY_ALIASES[key]
    except KeyError:
        raise NormalizationError(f"Unrecognized weekday {label!r}") from None


def _to_hours(hour: int, minute: int, token: str, *, allow_end_of_day: bool) -> float:
    if minute >= 60:
        raise NormalizationError(f"Minute component out of range in {token!r}")
    value = hour + minute / 60
    if value < 24 or (allow_end_of_day and value == 24):
        return value
    raise NormalizationError(f"Time {token!r} is past the end of the day")


def normalize_time(
    token: str | int,
    time_format: TimeFormat,
    *,
    allow_end_of_day: bool = False,
) -> float:
    """Convert a raw time token to fractional hours.

    Args:
        token: Source value, e.g. "7.00", "12:45", "0930" or 930.
        time_format: Encoding the source uses for this field.
        allow_end_of_day: Accept exactly 24:00 (only valid as an end time).

    Returns:
        Hours as a float, e.g. 14.5 for half past two in the afternoon.

    Raises:
        NormalizationError: If the token does not match ``time_format``, the
            minute part is not a two-digit base-60 value, or the time does not
            fall within the day.
    """
    text = str(token).strip()

    if time_format is TimeFormat.DECIMAL_DOT:
        match = _DECIMAL_DOT_RE.match(text)
        if not match:
            raise NormalizationError(f"Not a decimal-dot time: {token!r}")
        hour_part, minute_part = match.groups()
        # ".5" could mean 5 minutes, 30 minutes or a trimmed ".50": refuse it
        if minute_part is not None and len(minute_part) != 2:
            raise NormalizationError(
                f"Ambiguous minute component in {token!r}; expected two digits"
            )
        minute = int(minute_part) if minute_part else 0
        return _to_hours(int(hour_part), minute, text, allow_end_of_day=allow_end_of_day)

    if time_format is TimeFormat.COLON:
        match = _COLON_RE.match(text)
        if not match:
            raise NormalizationError(f"Not a colon time: {token!r}")
        return _to_hours(
            int(match.group(1)),
            int(match.group(2)),
            text,
            allow_end_of_day=allow_end_of_day,
        )

    if time_format is TimeFormat.PACKED:
        if not _PACKED_RE.match(text):
            raise NormalizationError(f"Not a packed HHMM time: {token!r}")
        # 1230 -> 12.30 -> 12 h + 30 min
        hour, minute = divmod(int(text), 100)
        return _to_hours(hour, minute, text, allow_end_of_day=allow_end_of_day)

    raise NormalizationError(f"Unknown time format {time_format!r}")


def _clean_text(value: str) -> str:
    return re.sub(r"\s+", " ", value).strip()


def normalize_record(raw: RawRecord) -> Session:
    """Turn one RawRecord into a Session.

    The weekday comes from ``raw.date`` when present; a ``raw.day`` that
    disagrees with the date is an error rather than a silent override.

    Raises:
        NormalizationError: If any field cannot be normalized or the interval
            is empty or inverted.
    """
    if raw.date is not None:
        weekday = Weekday.from_date(raw.date)
        if raw.day and normalize_day(raw.day) is not weekday:
            raise NormalizationError(
                f"Day {raw.day!r} does not match date {raw.date.isoformat()}"
            )
    elif raw.day:
        weekday = normalize_day(raw.day)
    else:
        raise NormalizationError("Record has neither a day nor a date")

    start = normalize_time(raw.start, raw.time_format)
    end = normalize_time(raw.end, raw.time_format, allow_end_of_day=True)
    if end <= start:
        raise NormalizationError(f"Empty or inverted interval {raw.start!r}-{raw.end!r}")

    activity = _clean_text(raw.activity)
    if not activity:
        raise NormalizationError("Record has no activity label")

    try:
        return Session(
            pool=_clean_text(raw.pool),
            weekday=weekday,
            date=raw.date,
            activity=activity,
            note=_clean_text(raw.note),
            start=start,
            end=end,
        )
    except ValidationError as e:
        raise NormalizationError(str(e)) from e


def normalize_records(records: Iterable[RawRecord]) -> list[Session]:
    """Normalize a batch, dropping (and logging) records that do not normalize."""
    sessions: list[Session] = []
    dropped = 0
    for raw in records:
        try:
            sessions.append(normalize_record(raw))
        except NormalizationError as e:
            dropped += 1
            log.warning(
                "record_dropped",
                source=raw.source,
                pool=raw.pool,
                day=raw.day,
                start=raw.start,
                end=raw.end,
                reason=str(e),
            )
    if dropped:
        log.info("records_normalized", kept=len(sessions), dropped=dropped)
    return sessions
