from datetime import date

import pytest

from src.zwemsterdam.errors import NormalizationError
from src.zwemsterdam.models import RawRecord, TimeFormat, Weekday
from src.zwemsterdam.normalize import (
    normalize_day,
    normalize_record,
    normalize_records,
    normalize_time,
)


def _raw(**overrides) -> RawRecord:
    fields = {
        "source": "test",
        "pool": "Zuiderbad",
        "day": "maandag",
        "start": "7.00",
        "end": "9.00",
        "time_format": TimeFormat.DECIMAL_DOT,
        "activity": "Banenzwemmen",
    }
    fields.update(overrides)
    return RawRecord(**fields)


def test_decimal_dot_whole_hour():
    assert normalize_time("7.00", TimeFormat.DECIMAL_DOT) == 7.0


def test_decimal_dot_minutes_are_base_60():
    assert normalize_time("15.30", TimeFormat.DECIMAL_DOT) == 15.5
    assert normalize_time("7.05", TimeFormat.DECIMAL_DOT) == pytest.approx(7 + 5 / 60)
    assert normalize_time("7.50", TimeFormat.DECIMAL_DOT) == pytest.approx(7 + 50 / 60)


def test_decimal_dot_without_fraction():
    assert normalize_time("9", TimeFormat.DECIMAL_DOT) == 9.0


def test_decimal_dot_single_digit_fraction_is_rejected():
    with pytest.raises(NormalizationError, match="Ambiguous"):
        normalize_time("7.5", TimeFormat.DECIMAL_DOT)


def test_colon_times():
    assert normalize_time("12:45", TimeFormat.COLON) == 12.75
    assert normalize_time("07:00", TimeFormat.COLON) == 7.0
    assert normalize_time("12:05", TimeFormat.COLON) == pytest.approx(12 + 5 / 60)
    assert normalize_time("12:50", TimeFormat.COLON) == pytest.approx(12 + 50 / 60)
    assert normalize_time("18:15:00", TimeFormat.COLON) == 18.25


def test_packed_times():
    assert normalize_time("0930", TimeFormat.PACKED) == 9.5
    assert normalize_time("930", TimeFormat.PACKED) == 9.5
    assert normalize_time("1230", TimeFormat.PACKED) == 12.5
    assert normalize_time(1545, TimeFormat.PACKED) == 15.75


def test_packed_and_colon_agree():
    assert normalize_time("0930", TimeFormat.PACKED) == normalize_time("09:30", TimeFormat.COLON)


@pytest.mark.parametrize(
    "token, time_format",
    [
        ("7.75", TimeFormat.DECIMAL_DOT),
        ("12:60", TimeFormat.COLON),
        ("1275", TimeFormat.PACKED),
        ("25:00", TimeFormat.COLON),
        ("abc", TimeFormat.COLON),
        ("7.00", TimeFormat.COLON),
        ("07:00", TimeFormat.DECIMAL_DOT),
        ("12", TimeFormat.PACKED),
    ],
)
def test_invalid_tokens_raise(token, time_format):
    with pytest.raises(NormalizationError):
        normalize_time(token, time_format)


def test_end_of_day_only_allowed_for_end_times():
    with pytest.raises(NormalizationError):
        normalize_time("24:00", TimeFormat.COLON)
    assert normalize_time("24:00", TimeFormat.COLON, allow_end_of_day=True) == 24.0


def test_normalize_day_english_and_dutch():
    assert normalize_day("Monday") == normalize_day("maandag") == Weekday.MAANDAG
    assert normalize_day("Monday").value == "Maandag"


@pytest.mark.parametrize(
    "label, expected",
    [
        ("MA", Weekday.MAANDAG),
        ("di", Weekday.DINSDAG),
        ("Wed", Weekday.WOENSDAG),
        ("thurs.", Weekday.DONDERDAG),
        ("VRIJDAG", Weekday.VRIJDAG),
        ("Sat", Weekday.ZATERDAG),
        ("  Zondag ", Weekday.ZONDAG),
    ],
)
def test_normalize_day_variants(label, expected):
    assert normalize_day(label) is expected


def test_normalize_day_unknown_raises():
    with pytest.raises(NormalizationError):
        normalize_day("Funday")


def test_normalize_record_basic():
    session = normalize_record(_raw(note="  3   banen "))
    assert session.weekday is Weekday.MAANDAG
    assert (session.start, session.end) == (7.0, 9.0)
    assert session.note == "3 banen"
    assert session.date is None


def test_normalize_record_derives_weekday_from_date():
    session = normalize_record(_raw(day=None, date=date(2025, 1, 8)))
    assert session.weekday is Weekday.WOENSDAG
    assert session.date == date(2025, 1, 8)


def test_normalize_record_day_date_mismatch_raises():
    with pytest.raises(NormalizationError, match="does not match"):
        normalize_record(_raw(day="Monday", date=date(2025, 1, 8)))


def test_normalize_record_inverted_interval_raises():
    with pytest.raises(NormalizationError):
        normalize_record(_raw(start="9.00", end="9.00"))
    with pytest.raises(NormalizationError):
        normalize_record(_raw(start="10.00", end="9.00"))


def test_normalize_record_requires_day_or_date():
    with pytest.raises(NormalizationError):
        normalize_record(_raw(day=None))


def test_normalize_records_drops_bad_records():
    records = [
        _raw(),
        _raw(day="Blursday"),
        _raw(start="7.5"),
        _raw(day="dinsdag", start="12.00", end="13.30"),
    ]
    sessions = normalize_records(records)
    assert [(s.weekday, s.start, s.end) for s in sessions] == [
        (Weekday.MAANDAG, 7.0, 9.0),
        (Weekday.DINSDAG, 12.0, 13.5),
    ]
