"""History query contract shared by the bundled stores.

Stores hand their entries, in insertion order, to :func:`select`, which
applies the filters of a :class:`HistoryQuery` and returns a deterministic
projection:

1. Keep entries matching every present filter (time bounds inclusive).
2. With ``only_latest``, keep only the newest entry per token.  Ties on
   ``time`` go to the entry inserted last.
3. Order ascending by ``time``; ties keep insertion order.
"""
from __future__ import annotations

from collections.abc import Iterable

from access_gate.core.types import HistoryEntry, HistoryQuery


def matches(entry: HistoryEntry, query: HistoryQuery) -> bool:
    """Return ``True`` if *entry* passes every filter set on *query*."""
    if query.time_min is not None and entry.time < query.time_min:
        return False
    if query.time_max is not None and entry.time > query.time_max:
        return False
    if query.token is not None and entry.token != query.token:
        return False
    if query.name is not None and entry.response.name != query.name:
        return False
    if query.outcome is not None and entry.response.outcome != query.outcome:
        return False
    return True


def select(entries: Iterable[HistoryEntry], query: HistoryQuery) -> list[HistoryEntry]:
    """Filter *entries* (given in insertion order) according to *query*."""
    selected = [entry for entry in entries if matches(entry, query)]

    if query.only_latest:
        latest: dict[str, tuple[int, HistoryEntry]] = {}
        for position, entry in enumerate(selected):
            current = latest.get(entry.token)
            if current is None or entry.time >= current[1].time:
                latest[entry.token] = (position, entry)
        ranked = sorted(latest.values(), key=lambda pair: pair[0])
        selected = [entry for _, entry in ranked]

    # sorted() is stable, so equal times keep insertion order.
    return sorted(selected, key=lambda entry: entry.time)
