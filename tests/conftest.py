"""Shared fixtures and collaborator fakes for the access gate tests.

Provides counting and failing implementations of the three collaborator
interfaces, a deterministic clock, and ready-made gates.
"""
from __future__ import annotations

import pytest

from access_gate.core.errors import CallbackError, StoreError, VerifierError
from access_gate.core.interfaces import (
    InMemoryHistoryStore,
    InMemoryIdentityVerifier,
    StaticIdentityVerifier,
)
from access_gate.core.types import AccessResponse, HistoryEntry, HistoryQuery, Outcome
from access_gate.gate import AccessGate, GateContext

HMAC_KEY = "access-gate-test-hmac-key-0123456789abcdef"


# ---------------------------------------------------------------------------
# Collaborator fakes
# ---------------------------------------------------------------------------

class CountingCallback:
    """Callback that counts its invocations."""

    def __init__(self) -> None:
        self.calls = 0

    async def call(self) -> None:
        self.calls += 1


class FailingCallback:
    """Callback that always fails, after counting the attempt."""

    def __init__(self, exc: Exception | None = None) -> None:
        self.calls = 0
        self._exc = exc or CallbackError("relay unreachable")

    async def call(self) -> None:
        self.calls += 1
        raise self._exc


class FailingVerifier:
    """Verifier whose mechanism is broken."""

    def __init__(self, exc: Exception | None = None) -> None:
        self._exc = exc or VerifierError("identity backend unreachable")

    async def access(self, token: str) -> AccessResponse:
        raise self._exc


class FailingHistoryStore(InMemoryHistoryStore):
    """In-memory store whose inserts and/or queries fail on demand."""

    def __init__(self, *, fail_insert: bool = True, fail_query: bool = False) -> None:
        super().__init__()
        self.fail_insert = fail_insert
        self.fail_query = fail_query

    async def insert(self, entry: HistoryEntry) -> None:
        if self.fail_insert:
            raise StoreError("disk full")
        await super().insert(entry)

    async def query(self, query: HistoryQuery) -> list[HistoryEntry]:
        if self.fail_query:
            raise StoreError("history backend offline")
        return await super().query(query)


class SteppingClock:
    """Deterministic clock returning *start*, *start + step*, ..."""

    def __init__(self, start: int = 1_700_000_000, step: int = 1) -> None:
        self.now = start
        self._step = step

    def __call__(self) -> int:
        value = self.now
        self.now += self._step
        return value


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def history() -> InMemoryHistoryStore:
    return InMemoryHistoryStore()


@pytest.fixture()
def callback() -> CountingCallback:
    return CountingCallback()


@pytest.fixture()
def clock() -> SteppingClock:
    return SteppingClock()


@pytest.fixture()
def allow_gate(history: InMemoryHistoryStore, callback: CountingCallback) -> AccessGate:
    """Gate whose verifier accepts every token."""
    context = GateContext(
        identity_store=StaticIdentityVerifier(Outcome.SUCCESS),
        history=history,
    )
    return AccessGate(context, callback)


@pytest.fixture()
def deny_gate(history: InMemoryHistoryStore, callback: CountingCallback) -> AccessGate:
    """Gate whose verifier rejects every token."""
    context = GateContext(
        identity_store=StaticIdentityVerifier(Outcome.FAILURE),
        history=history,
    )
    return AccessGate(context, callback)


@pytest.fixture()
def table_gate(
    history: InMemoryHistoryStore,
    callback: CountingCallback,
    clock: SteppingClock,
) -> AccessGate:
    """Gate with a token table and a deterministic clock."""
    verifier = InMemoryIdentityVerifier({"tok-alice": "alice", "tok-bob": "bob"})
    context = GateContext(identity_store=verifier, history=history)
    return AccessGate(context, callback, clock=clock)
