from datetime import date

import pytest
import requests

from src.zwemsterdam.config import ZwemsterdamConfig
from src.zwemsterdam.errors import ParseFailure
from src.zwemsterdam.models import TimeFormat
from src.zwemsterdam.sources.municipal import (
    API_URL,
    MunicipalAdapter,
    parse_municipal_payload,
    pool_name_from_slug,
)

from tests.conftest import FakeClient, FakeResponse

TODAY = date(2025, 1, 8)


def _url(slug, day):
    return API_URL.format(slug=slug, day=day.isoformat())


def test_pool_name_from_slug():
    assert pool_name_from_slug("de-mirandabad") == "De Mirandabad"
    assert pool_name_from_slug("zuiderbad") == "Zuiderbad"


def test_parse_flat_schedule():
    payload = {
        "schedule": [
            {"start": "7.00", "end": "9.00", "activity": "Banenzwemmen", "extra": "4 banen"},
            {"start": "12.30", "end": "13.30", "activity": "Banenzwemmen", "extra": None},
        ]
    }
    records = parse_municipal_payload(payload, "zuiderbad", TODAY)
    assert len(records) == 2
    assert records[0].pool == "Zuiderbad"
    assert records[0].date == TODAY
    assert records[0].time_format is TimeFormat.DECIMAL_DOT
    assert records[0].note == "4 banen"
    assert records[1].note == ""


def test_parse_days_shape_keeps_requested_date_only():
    payload = {
        "days": [
            {"name": "woensdag", "date": "2025-01-08", "schedule": [
                {"start": "7.00", "end": "8.00", "activity": "Banenzwemmen", "extra": ""},
            ]},
            {"name": "donderdag", "date": "2025-01-09", "schedule": [
                {"start": "7.00", "end": "8.00", "activity": "Banenzwemmen", "extra": ""},
            ]},
        ]
    }
    records = parse_municipal_payload(payload, "brediusbad", TODAY)
    assert [r.date for r in records] == [TODAY]


def test_parse_skips_incomplete_entries():
    payload = {"schedule": [{"start": "7.00", "activity": "Banenzwemmen"}, "garbage"]}
    assert parse_municipal_payload(payload, "zuiderbad", TODAY) == []


def test_parse_unknown_shape_raises():
    with pytest.raises(ParseFailure):
        parse_municipal_payload({"unexpected": True}, "zuiderbad", TODAY)
    with pytest.raises(ParseFailure):
        parse_municipal_payload(["not", "a", "dict"], "zuiderbad", TODAY)


def test_adapter_requests_one_url_per_date_and_skips_failures():
    config = ZwemsterdamConfig(municipal_window_days=3)
    ok = {"schedule": [{"start": "7.00", "end": "9.00", "activity": "Banenzwemmen", "extra": ""}]}
    client = FakeClient(
        {
            _url("zuiderbad", date(2025, 1, 8)): FakeResponse(json_data=ok),
            # 2025-01-09 missing -> 404
            _url("zuiderbad", date(2025, 1, 10)): requests.ConnectionError("reset"),
        }
    )
    adapter = MunicipalAdapter(client, slugs=("zuiderbad",), today=TODAY, config=config)

    records = adapter.fetch()

    assert client.urls == [
        _url("zuiderbad", date(2025, 1, 8)),
        _url("zuiderbad", date(2025, 1, 9)),
        _url("zuiderbad", date(2025, 1, 10)),
    ]
    assert [r.date for r in records] == [date(2025, 1, 8)]


def test_adapter_skips_non_json_response():
    config = ZwemsterdamConfig(municipal_window_days=1)
    client = FakeClient({_url("flevoparkbad", TODAY): FakeResponse(text="<html>")})
    adapter = MunicipalAdapter(client, slugs=("flevoparkbad",), today=TODAY, config=config)
    assert adapter.fetch() == []
