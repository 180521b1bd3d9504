"""Interval aggregation for normalized sessions.

Sessions sharing a (pool, weekday, activity, note) key are collapsed into the
minimal set of spans covering the same time. Overlapping spans merge, and so
do exactly touching spans: [9, 10) and [10, 11) become [9, 11).

The key has no date: the exported schedule is one week long, so a weekday
never carries two different slots for the same activity. When spans from
different dates do meet, the merged span keeps the earliest date.
"""

from collections.abc import Iterable
from datetime import date

from src.zwemsterdam.logging import get_logger
from src.zwemsterdam.models import Session

log = get_logger(__name__)


def _earliest(a: date | None, b: date | None) -> date | None:
    if a is None or b is None:
        return a or b
    return min(a, b)


def dedupe_sessions(sessions: Iterable[Session]) -> list[Session]:
    """Drop repeats of the same slot.

    Each slot stays at the position of its first occurrence and carries the
    earliest date any copy reported.
    """
    unique: dict[tuple, Session] = {}
    for session in sessions:
        kept = unique.get(session.identity)
        if kept is None:
            unique[session.identity] = session
            continue
        earliest = _earliest(kept.date, session.date)
        if earliest != kept.date:
            unique[session.identity] = kept.model_copy(update={"date": earliest})
    return list(unique.values())


def merge_intervals(sessions: list[Session]) -> list[Session]:
    """Sweep-merge sessions that all share one grouping key.

    Sorted by start (then end); the open span absorbs every following
    session whose start is at or before its end.

    Returns:
        Non-overlapping, non-adjacent sessions in start order.
    """
    ordered = sorted(sessions, key=lambda s: (s.start, s.end))
    merged: list[Session] = []
    for session in ordered:
        if merged and session.start <= merged[-1].end:
            current = merged[-1]
            end = max(current.end, session.end)
            earliest = _earliest(current.date, session.date)
            if end != current.end or earliest != current.date:
                merged[-1] = current.model_copy(update={"end": end, "date": earliest})
        else:
            merged.append(session)
    return merged


def aggregate_sessions(sessions: Iterable[Session]) -> list[Session]:
    """Group sessions by key and merge each group.

    Groups keep the order in which their first session appeared; inside a
    group spans are ordered by start. Aggregating an already minimal list
    returns it unchanged.
    """
    groups: dict[tuple, list[Session]] = {}
    total = 0
    for session in dedupe_sessions(sessions):
        groups.setdefault(session.group_key, []).append(session)
        total += 1

    result: list[Session] = []
    for members in groups.values():
        result.extend(merge_intervals(members))

    if len(result) != total:
        log.debug("sessions_aggregated", before=total, after=len(result))
    return result
