"""Zwemsterdam: swim-schedule collection for Amsterdam-area pools.

Fetches timetables from the city API, Het Marnix, the Sportfondsen sites,
the Duranbad pages and Optisport, and normalizes them into one dataset for
the dashboard.
"""

from src.zwemsterdam.models import RawRecord, Session, TimeFormat, Weekday
from src.zwemsterdam.normalize import normalize_day, normalize_time
from src.zwemsterdam.pipeline import run_pipeline

__all__ = [
    "RawRecord",
    "Session",
    "TimeFormat",
    "Weekday",
    "normalize_day",
    "normalize_time",
    "run_pipeline",
]
