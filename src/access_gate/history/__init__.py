"""Access history stores.

* **Query contract** -- filtering, only-latest projection and ordering
  shared by every bundled store (:mod:`~access_gate.history.query`).
* **NDJSON store** -- append-only history file
  (:mod:`~access_gate.history.ndjson`).

The in-memory store lives with the interfaces in
:mod:`access_gate.core.interfaces`.
"""
from __future__ import annotations

from access_gate.history.ndjson import JsonLinesHistoryStore
from access_gate.history.query import matches, select

__all__ = [
    "JsonLinesHistoryStore",
    "matches",
    "select",
]
