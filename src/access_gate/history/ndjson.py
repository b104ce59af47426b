"""Append-only history store backed by a newline-delimited JSON file.

Each :class:`HistoryEntry` is written as a single line of JSON followed by
``\\n``.  Empty lines are ignored when reading; any other line that is not
a valid entry makes the store unavailable rather than silently dropping
audit records.

File I/O runs in a worker thread so the event loop is never blocked by a
slow disk.
"""
from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path

from pydantic import ValidationError

from access_gate.core.errors import StoreError
from access_gate.core.types import HistoryEntry, HistoryQuery
from access_gate.history.query import select

logger = logging.getLogger(__name__)


class JsonLinesHistoryStore:
    """History store that appends entries to an NDJSON file.

    Parameters
    ----------
    path:
        The history file.  It is created on the first insert; a missing
        file reads as an empty history.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    # ------------------------------------------------------------------
    # HistoryStore protocol
    # ------------------------------------------------------------------

    async def insert(self, entry: HistoryEntry) -> None:
        """Append *entry* as one line and fsync the file.

        An existing file must end in a newline; a torn final record left by
        a crash or a full disk is refused, never appended to.

        Raises
        ------
        StoreError
            If the file cannot be opened or written, or ends in a torn
            record.
        """
        line = entry.model_dump_json() + "\n"
        try:
            await asyncio.to_thread(self._append_line, line)
        except OSError as exc:
            raise StoreError(
                f"Cannot append to history file: {exc.strerror or exc}",
                details={"path": str(self._path)},
            ) from exc
        logger.debug("appended history entry at time %d to %s", entry.time, self._path)

    async def query(self, query: HistoryQuery) -> list[HistoryEntry]:
        """Read the whole file and return the entries selected by *query*.

        Raises
        ------
        StoreError
            If the file cannot be read or holds a corrupt line.
        """
        try:
            entries = await asyncio.to_thread(self._read_entries)
        except OSError as exc:
            raise StoreError(
                f"Cannot read history file: {exc.strerror or exc}",
                details={"path": str(self._path)},
            ) from exc
        except UnicodeDecodeError as exc:
            raise StoreError(
                "History file is not valid UTF-8",
                details={"path": str(self._path), "offset": exc.start},
            ) from exc
        return select(entries, query)

    # ------------------------------------------------------------------
    # Blocking helpers (run in a worker thread)
    # ------------------------------------------------------------------

    def _append_line(self, line: str) -> None:
        with self._path.open("a+b") as fh:
            size = fh.seek(0, os.SEEK_END)
            if size:
                fh.seek(size - 1)
                if fh.read(1) != b"\n":
                    raise StoreError(
                        "History file ends in an incomplete record",
                        details={"path": str(self._path), "size": size},
                    )
            fh.write(line.encode("utf-8"))
            fh.flush()
            os.fsync(fh.fileno())

    def _read_entries(self) -> list[HistoryEntry]:
        if not self._path.exists():
            return []
        entries: list[HistoryEntry] = []
        with self._path.open("r", encoding="utf-8") as fh:
            for lineno, raw in enumerate(fh, start=1):
                stripped = raw.strip()
                if not stripped:
                    continue
                try:
                    entries.append(HistoryEntry.model_validate_json(stripped))
                except ValidationError as exc:
                    raise StoreError(
                        f"Corrupt history record on line {lineno}",
                        details={"path": str(self._path), "line": lineno},
                    ) from exc
        logger.debug("read %d history entries from %s", len(entries), self._path)
        return entries
