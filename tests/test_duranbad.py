from datetime import date

from src.zwemsterdam.models import RawRecord, TimeFormat
from src.zwemsterdam.normalize import normalize_records
from src.zwemsterdam.sources.duranbad import (
    ANNOUNCEMENT_URL,
    OVERRIDE_URL,
    REGULAR_URL,
    DateRange,
    DuranbadAdapter,
    apply_override,
    extract_text_lines,
    find_override_range,
    parse_header_date,
    parse_schedule_lines,
    split_label,
    within_week,
)

from tests.conftest import FakeClient, FakeResponse, load_fixture

HOLIDAYS = DateRange(date(2024, 12, 20), date(2025, 1, 5))


def _client(**overrides):
    routes = {
        REGULAR_URL: FakeResponse(text=load_fixture("duranbad_regular.html")),
        ANNOUNCEMENT_URL: FakeResponse(text=load_fixture("duranbad_announcement.html")),
        OVERRIDE_URL: FakeResponse(text=load_fixture("duranbad_override.html")),
    }
    routes.update(overrides)
    return FakeClient(routes)


def _record(day, start, end, activity="Recreatiezwemmen"):
    return RawRecord(
        source="duranbad",
        pool="Duranbad (Diemen)",
        day=day.strftime("%A"),
        date=day,
        start=start,
        end=end,
        time_format=TimeFormat.COLON,
        activity=activity,
    )


def test_extract_text_lines_splits_breaks_and_skips_scripts():
    lines = extract_text_lines(load_fixture("duranbad_regular.html"))
    assert lines[:4] == [
        "Openingstijden Duranbad",
        "Maandag",
        "07:00-09:00 uur Banenzwemmen",
        "09:00 - 12:00 uur Recreatiezwemmen (ondiep bad)",
    ]
    assert not any("var tijden" in line for line in lines)


def test_split_label():
    assert split_label("Banenzwemmen (3 banen)") == ("Banenzwemmen", "3 banen")
    assert split_label("Aquajoggen - diep bad") == ("Aquajoggen", "diep bad")
    assert split_label("Recreatiezwemmen.") == ("Recreatiezwemmen", "")


def test_parse_regular_schedule():
    records = parse_schedule_lines(extract_text_lines(load_fixture("duranbad_regular.html")))
    assert [(r.day, r.start, r.end, r.activity, r.note) for r in records] == [
        ("Maandag", "07:00", "09:00", "Banenzwemmen", ""),
        ("Maandag", "09:00", "12:00", "Recreatiezwemmen", "ondiep bad"),
        ("Woensdag", "19:00", "21:00", "Banenzwemmen", "3 banen"),
        ("Zaterdag", "10:00", "12:00", "Recreatiezwemmen", ""),
        ("Zaterdag", "12:00", "13:00", "Aquajoggen", "diep bad"),
    ]
    assert all(r.date is None for r in records)


def test_time_lines_before_any_day_are_ignored():
    assert parse_schedule_lines(["10:00-11:00 uur Banenzwemmen", "Dinsdag"]) == []


def test_day_header_with_inline_entry():
    records = parse_schedule_lines(["Vrijdag 18:00-19:00 uur Aquafit"])
    assert [(r.day, r.start, r.activity) for r in records] == [("Vrijdag", "18:00", "Aquafit")]


def test_parse_header_date_picks_year_inside_range():
    assert parse_header_date("30 december", date_range=HOLIDAYS) == date(2024, 12, 30)
    assert parse_header_date("2 januari", date_range=HOLIDAYS) == date(2025, 1, 2)
    assert parse_header_date("02-01-2025") == date(2025, 1, 2)
    assert parse_header_date("31 februari", fallback_year=2025) is None
    assert parse_header_date("gesloten") is None


def test_find_override_range_numeric():
    lines = extract_text_lines(load_fixture("duranbad_announcement.html"))
    assert find_override_range(lines) == HOLIDAYS


def test_find_override_range_textual_across_new_year():
    lines = ["Tijdens de feestdagen: 20 december t/m 4 januari 2026 afwijkende tijden"]
    assert find_override_range(lines) == DateRange(date(2025, 12, 20), date(2026, 1, 4))


def test_find_override_range_requires_keyword():
    assert find_override_range(["Kassa open van 20-12-2024 t/m 05-01-2025"]) is None


def test_apply_override_replaces_dates_in_range():
    monday = date(2024, 12, 30)
    regular = [
        _record(date(2024, 12, 30), "07:00", "09:00", "Banenzwemmen"),
        _record(date(2025, 1, 4), "10:00", "12:00"),
    ]
    override = [
        _record(date(2024, 12, 23), "10:00", "14:00"),  # in range, previous week
        _record(date(2024, 12, 30), "10:00", "14:00"),
    ]
    date_range = DateRange(date(2024, 12, 20), date(2025, 1, 1))

    result = apply_override(regular, override, date_range, monday)

    assert [(r.date, r.start) for r in result] == [
        (date(2025, 1, 4), "10:00"),
        (date(2024, 12, 30), "10:00"),
    ]


def test_apply_override_removes_regular_dates_missing_from_override():
    monday = date(2024, 12, 30)
    regular = [_record(date(2025, 1, 1), "10:00", "12:00")]
    assert apply_override(regular, [], HOLIDAYS, monday) == []


def test_adapter_without_active_override_returns_regular_week():
    client = _client()
    records = DuranbadAdapter(client, today=date(2024, 12, 18)).fetch()

    assert OVERRIDE_URL not in client.urls
    assert [(r.day, r.date) for r in records][:2] == [
        ("Maandag", date(2024, 12, 16)),
        ("Maandag", date(2024, 12, 16)),
    ]
    assert len(records) == 5
    assert {r.date for r in records} == {date(2024, 12, 16), date(2024, 12, 18), date(2024, 12, 21)}


def test_adapter_with_active_override_uses_holiday_schedule():
    client = _client()
    records = DuranbadAdapter(client, today=date(2024, 12, 31)).fetch()

    assert client.urls == [REGULAR_URL, ANNOUNCEMENT_URL, OVERRIDE_URL]
    assert [(r.date, r.start, r.end, r.activity, r.note) for r in records] == [
        (date(2024, 12, 30), "10:00", "14:00", "Recreatiezwemmen", ""),
        (date(2024, 12, 31), "10:00", "12:00", "Banenzwemmen", ""),
        (date(2025, 1, 2), "10:00", "16:00", "Recreatiezwemmen", "hele bad"),
    ]
    # override records normalize cleanly: stated weekday matches the date
    assert len(normalize_records(records)) == 3


def test_adapter_override_page_down_still_suppresses_regular_entries():
    announcement = (
        "<p>Aangepaste openingstijden van 20-12-2024 t/m 01-01-2025.</p>"
    )
    client = _client(
        **{
            ANNOUNCEMENT_URL: FakeResponse(text=announcement),
            OVERRIDE_URL: FakeResponse(status_code=404),
        }
    )
    records = DuranbadAdapter(client, today=date(2024, 12, 31)).fetch()

    # Maandag 30-12 and Woensdag 01-01 fall inside the range; Zaterdag 04-01 does not
    assert {r.date for r in records} == {date(2025, 1, 4)}
    assert len(records) == 2


def test_adapter_announcement_down_keeps_regular_schedule():
    client = _client(**{ANNOUNCEMENT_URL: FakeResponse(status_code=500)})
    records = DuranbadAdapter(client, today=date(2024, 12, 31)).fetch()
    assert len(records) == 5
    assert OVERRIDE_URL not in client.urls


def test_within_week_drops_records_dated_elsewhere():
    monday = date(2025, 1, 6)
    records = [
        _record(date(2024, 12, 30), "07:00", "09:00"),
        _record(date(2025, 1, 7), "07:00", "09:00"),
        _record(date(2025, 1, 13), "07:00", "09:00"),
    ]
    assert [r.date for r in within_week(records, monday)] == [date(2025, 1, 7)]


def test_adapter_ignores_regular_entries_dated_in_another_week():
    regular = (
        "<p>Maandag 30-12-2024<br>07:00-09:00 uur Banenzwemmen</p>"
        "<p>Dinsdag<br>07:00-08:00 uur Banenzwemmen</p>"
    )
    client = _client(**{REGULAR_URL: FakeResponse(text=regular)})

    records = DuranbadAdapter(client, today=date(2025, 1, 8)).fetch()

    assert [(r.day, r.date) for r in records] == [("Dinsdag", date(2025, 1, 7))]
