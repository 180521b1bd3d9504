"""Pydantic models for swim-schedule data.

All data structures use Pydantic v2 for validation, serialization, and type safety.
Field names follow the pipeline's vocabulary (pool, weekday, note); the
dashboard's Dutch/legacy names (bad, dag, extra) only appear as
serialization aliases in the exported JSON.
"""

from datetime import date as Date
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Weekday(str, Enum):
    """Canonical Dutch weekday, in ISO order (Monday first)."""

    MAANDAG = "Maandag"
    DINSDAG = "Dinsdag"
    WOENSDAG = "Woensdag"
    DONDERDAG = "Donderdag"
    VRIJDAG = "Vrijdag"
    ZATERDAG = "Zaterdag"
    ZONDAG = "Zondag"

    @property
    def order(self) -> int:
        """0 for Maandag through 6 for Zondag, matching date.weekday()."""
        return list(Weekday).index(self)

    @classmethod
    def from_date(cls, day: Date) -> "Weekday":
        return list(cls)[day.weekday()]


class TimeFormat(str, Enum):
    """How a source encodes clock times."""

    DECIMAL_DOT = "decimal_dot"  # "7.00", "15.30"
    COLON = "colon"  # "07:00", "15:30"
    PACKED = "packed"  # "0700", 1530


class RawRecord(BaseModel):
    """One session as an adapter extracted it, before normalization.

    Times stay in their source encoding and are tagged with ``time_format``.
    ``day`` is whatever the source wrote (English or Dutch, any case); it may
    be omitted when ``date`` is known.
    """

    source: str  # adapter name, e.g. "municipal"
    pool: str  # canonical display name, e.g. "Zuiderbad"
    start: str | int
    end: str | int
    time_format: TimeFormat
    activity: str
    note: str = ""
    day: str | None = None  # "maandag", "Monday", "ma", ...
    date: Date | None = None


class Session(BaseModel):
    """A normalized schedule slot: one activity at one pool on one weekday.

    Sessions are immutable. The orchestrator derives new instances with
    ``model_copy(update=...)`` when it attaches ids and websites.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: int | None = None
    pool: str = Field(serialization_alias="bad")
    weekday: Weekday = Field(serialization_alias="dag")
    date: Date | None = None
    activity: str
    note: str = Field(default="", serialization_alias="extra")
    start: float
    end: float
    website: str | None = None

    @model_validator(mode="after")
    def _check_bounds(self) -> "Session":
        if not 0 <= self.start < self.end <= 24:
            raise ValueError(
                f"invalid interval [{self.start}, {self.end}) for {self.pool}"
            )
        if self.date is not None and Weekday.from_date(self.date) != self.weekday:
            raise ValueError(
                f"date {self.date.isoformat()} is not a {self.weekday.value}"
            )
        return self

    @property
    def group_key(self) -> tuple[str, Weekday, str, str]:
        """Grouping key used by the interval aggregator."""
        return (self.pool, self.weekday, self.activity, self.note)

    @property
    def identity(self) -> tuple[str, Weekday, str, str, float, float]:
        """Exact-duplicate key: the same slot reported twice."""
        return (self.pool, self.weekday, self.activity, self.note, self.start, self.end)

    def to_export_dict(self) -> dict[str, Any]:
        """Serialize to the dashboard's data.json object shape."""
        data = self.model_dump(mode="json", by_alias=True)
        if data["date"] is None:
            del data["date"]
        return data


class DataSource(BaseModel):
    """Static description of an upstream, listed in metadata.json."""

    name: str
    description: str
    url: str
    pools: list[str]


class Metadata(BaseModel):
    """Summary document written next to data.json."""

    model_config = ConfigDict(populate_by_name=True)

    last_updated: str = Field(serialization_alias="lastUpdated")
    last_updated_local: str = Field(serialization_alias="lastUpdatedLocal")
    total_sessions: int = Field(serialization_alias="totalSessions")
    pools: list[str]
    data_sources: list[DataSource] = Field(serialization_alias="dataSources")
