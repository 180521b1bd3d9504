"""Pipeline orchestrator: adapters -> normalizer -> aggregator -> export.

All adapters run concurrently. The Optisport browser step counts as one
adapter, so its locations never run concurrently with each other. An adapter
that raises contributes nothing and is reported in the result; the export
always happens with whatever the other sources delivered.
"""

import asyncio
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from pathlib import Path

from src.zwemsterdam.aggregate import aggregate_sessions
from src.zwemsterdam.config import ZwemsterdamConfig, get_config
from src.zwemsterdam.export import build_metadata, write_outputs
from src.zwemsterdam.http import build_http_session
from src.zwemsterdam.logging import get_logger, source_context
from src.zwemsterdam.models import Metadata, RawRecord, Session
from src.zwemsterdam.normalize import normalize_records
from src.zwemsterdam.pools import website_for
from src.zwemsterdam.sources.base import SourceAdapter, local_today
from src.zwemsterdam.sources.duranbad import DuranbadAdapter
from src.zwemsterdam.sources.marnix import MarnixAdapter
from src.zwemsterdam.sources.municipal import MunicipalAdapter
from src.zwemsterdam.sources.optisport import OptisportAdapter
from src.zwemsterdam.sources.sportfondsen import SportfondsenAdapter

log = get_logger(__name__)


@dataclass
class AdapterResult:
    """What one adapter delivered this run."""

    name: str
    records: list[RawRecord] = field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class PipelineResult:
    sessions: list[Session]
    metadata: Metadata
    adapter_results: list[AdapterResult]
    output_paths: tuple[Path, Path] | None = None

    @property
    def failed_sources(self) -> list[str]:
        return [r.name for r in self.adapter_results if not r.ok]


def build_default_adapters(
    config: ZwemsterdamConfig | None = None,
    *,
    today: date | None = None,
    refresh_optisport: bool = False,
) -> list[SourceAdapter]:
    """One adapter per source family, each with its own HTTP session."""
    config = config or get_config()
    today = today or local_today(config.timezone)
    return [
        MunicipalAdapter(build_http_session(config), today=today, config=config),
        MarnixAdapter(build_http_session(config), today=today, config=config),
        SportfondsenAdapter(build_http_session(config), today=today, config=config),
        DuranbadAdapter(build_http_session(config), today=today, config=config),
        OptisportAdapter(refresh=refresh_optisport, today=today, config=config),
    ]


async def run_adapter(adapter: SourceAdapter) -> AdapterResult:
    """Run one adapter, turning any exception into a failed AdapterResult."""
    try:
        with source_context(adapter.name):
            records = await adapter.fetch_async()
    except Exception as e:
        log.error(
            "adapter_failed",
            source=adapter.name,
            error=str(e),
            type=type(e).__name__,
        )
        return AdapterResult(name=adapter.name, error=f"{type(e).__name__}: {e}")
    return AdapterResult(name=adapter.name, records=records)


async def collect(adapters: Sequence[SourceAdapter]) -> list[AdapterResult]:
    """Run all adapters concurrently; results come back in adapter order."""
    return list(await asyncio.gather(*(run_adapter(adapter) for adapter in adapters)))


def _export_order(session: Session) -> tuple:
    return (
        session.pool,
        session.weekday.order,
        session.date or date.min,
        session.start,
        session.end,
        session.activity,
        session.note,
    )


def assign_ids(sessions: Iterable[Session]) -> list[Session]:
    """Order sessions deterministically, number them from 1 and attach websites.

    Pools missing from the website lookup keep ``website=None``.
    """
    ordered = sorted(sessions, key=_export_order)
    return [
        session.model_copy(update={"id": index, "website": website_for(session.pool)})
        for index, session in enumerate(ordered, start=1)
    ]


def build_sessions(
    results: Iterable[AdapterResult],
    *,
    activities: Sequence[str] | None = None,
) -> list[Session]:
    """Normalize, filter, aggregate and number every successful adapter's records.

    Args:
        results: Adapter results, failed ones included (they are skipped).
        activities: Keep only sessions whose activity contains one of these
            labels (case-insensitive). None keeps everything.
    """
    sessions: list[Session] = []
    for result in results:
        if not result.ok:
            continue
        normalized = normalize_records(result.records)
        log.info(
            "source_normalized",
            source=result.name,
            raw=len(result.records),
            sessions=len(normalized),
        )
        sessions.extend(normalized)

    if activities:
        wanted = [label.lower() for label in activities]
        sessions = [s for s in sessions if any(label in s.activity.lower() for label in wanted)]

    return assign_ids(aggregate_sessions(sessions))


async def run_pipeline(
    config: ZwemsterdamConfig | None = None,
    *,
    adapters: Sequence[SourceAdapter] | None = None,
    activities: Sequence[str] | None = None,
    refresh_optisport: bool = False,
    output_dir: str | Path | None = None,
    write: bool = True,
    now: datetime | None = None,
) -> PipelineResult:
    """Run a full rebuild of the dataset.

    Args:
        config: Pipeline configuration (defaults to the environment).
        adapters: Adapters to run; defaults to every known source.
        activities: Optional activity filter, see build_sessions().
        refresh_optisport: Run the Optisport browser step before reading its cache.
        output_dir: Where to write data.json/metadata.json (default from config).
        write: Set False to skip writing files.
        now: Generation timestamp (defaults to the current UTC time).

    Returns:
        PipelineResult with sessions, metadata and per-adapter outcomes.
    """
    config = config or get_config()
    now = now or datetime.now(timezone.utc)
    if adapters is None:
        adapters = build_default_adapters(config, refresh_optisport=refresh_optisport)

    log.info("pipeline_started", sources=[a.name for a in adapters])
    results = await collect(adapters)
    sessions = build_sessions(results, activities=activities)
    metadata = build_metadata(sessions, now, tz_name=config.timezone)

    paths = None
    if write:
        paths = write_outputs(sessions, metadata, output_dir or config.output_dir)

    result = PipelineResult(
        sessions=sessions,
        metadata=metadata,
        adapter_results=results,
        output_paths=paths,
    )
    log.info(
        "pipeline_finished",
        sessions=len(sessions),
        pools=len(metadata.pools),
        failed_sources=result.failed_sources,
    )
    return result
