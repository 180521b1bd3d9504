import json
from datetime import date, datetime, timezone

from src.zwemsterdam.export import build_metadata, sessions_to_json, write_outputs
from src.zwemsterdam.models import Session, Weekday
from src.zwemsterdam.pools import DATA_SOURCES

NOW = datetime(2025, 1, 8, 12, 0, tzinfo=timezone.utc)


def _session(pool, id_, **kwargs):
    return Session(
        id=id_,
        pool=pool,
        weekday=Weekday.WOENSDAG,
        activity="Banenzwemmen",
        start=7,
        end=9,
        **kwargs,
    )


def test_metadata_timestamps():
    metadata = build_metadata([], NOW)
    assert metadata.last_updated == "2025-01-08T12:00:00Z"
    assert metadata.last_updated_local == "08-01-2025 13:00"
    assert metadata.total_sessions == 0
    assert metadata.pools == []


def test_metadata_local_time_in_summer():
    summer = datetime(2025, 7, 1, 22, 30, tzinfo=timezone.utc)
    assert build_metadata([], summer).last_updated_local == "02-07-2025 00:30"


def test_metadata_pools_in_first_seen_order():
    sessions = [_session("Zuiderbad", 1), _session("Brediusbad", 2), _session("Zuiderbad", 3)]
    metadata = build_metadata(sessions, NOW)
    assert metadata.pools == ["Zuiderbad", "Brediusbad"]
    assert metadata.total_sessions == 3


def test_sessions_to_json_uses_dashboard_field_names():
    dated = _session("Zuiderbad", 1, date=date(2025, 1, 8), note="4 banen")
    undated = _session("Het Marnix", 2)

    first, second = sessions_to_json([dated, undated])

    assert first["bad"] == "Zuiderbad"
    assert first["dag"] == "Woensdag"
    assert first["extra"] == "4 banen"
    assert first["date"] == "2025-01-08"
    assert "date" not in second
    assert second["website"] is None


def test_write_outputs(tmp_path):
    sessions = [_session("Zuiderbad", 1)]
    metadata = build_metadata(sessions, NOW)

    data_path, metadata_path = write_outputs(sessions, metadata, tmp_path / "public")

    assert json.loads(data_path.read_text(encoding="utf-8"))[0]["id"] == 1
    written = json.loads(metadata_path.read_text(encoding="utf-8"))
    assert set(written) == {"lastUpdated", "lastUpdatedLocal", "totalSessions", "pools", "dataSources"}
    assert [s["name"] for s in written["dataSources"]] == [s.name for s in DATA_SOURCES]
