"""Canonical output: data.json (sessions) and metadata.json (run summary).

Both files are rewritten in full on every run.
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from zoneinfo import ZoneInfo

from src.zwemsterdam.logging import get_logger
from src.zwemsterdam.models import DataSource, Metadata, Session
from src.zwemsterdam.pools import DATA_SOURCES

log = get_logger(__name__)

DATA_FILENAME = "data.json"
METADATA_FILENAME = "metadata.json"


def build_metadata(
    sessions: list[Session],
    generated_at: datetime,
    *,
    tz_name: str = "Europe/Amsterdam",
    data_sources: list[DataSource] = DATA_SOURCES,
) -> Metadata:
    """Summarize an export.

    Args:
        sessions: Final, id-stamped sessions.
        generated_at: Timezone-aware generation time.
        tz_name: Timezone of the human-readable timestamp.
        data_sources: Static source catalog.
    """
    pools: list[str] = []
    for session in sessions:
        if session.pool not in pools:
            pools.append(session.pool)

    return Metadata(
        last_updated=generated_at.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
        last_updated_local=generated_at.astimezone(ZoneInfo(tz_name)).strftime("%d-%m-%Y %H:%M"),
        total_sessions=len(sessions),
        pools=pools,
        data_sources=data_sources,
    )


def sessions_to_json(sessions: list[Session]) -> list[dict]:
    return [session.to_export_dict() for session in sessions]


def write_outputs(sessions: list[Session], metadata: Metadata, output_dir: str | Path) -> tuple[Path, Path]:
    """Write data.json and metadata.json into ``output_dir``.

    Returns:
        Paths of the data file and the metadata file.
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    data_path = output_dir / DATA_FILENAME
    with open(data_path, "w", encoding="utf-8") as f:
        json.dump(sessions_to_json(sessions), f, indent=2, ensure_ascii=False)

    metadata_path = output_dir / METADATA_FILENAME
    with open(metadata_path, "w", encoding="utf-8") as f:
        json.dump(metadata.model_dump(mode="json", by_alias=True), f, indent=2, ensure_ascii=False)

    log.info(
        "outputs_written",
        data=str(data_path),
        metadata=str(metadata_path),
        sessions=len(sessions),
    )
    return data_path, metadata_path
