"""Access gate collaborator interfaces and in-memory implementations.

This module defines the *structural* interfaces (``typing.Protocol``) for
the three collaborators the gate drives:

* :class:`IdentityVerifier` -- turns a token into an :class:`AccessResponse`.
* :class:`HistoryStore` -- append-only audit log with a filtered read.
* :class:`Callback` -- the side effect triggered on successful access.

It also provides lightweight in-memory implementations suitable for
testing and local development.

Every Protocol class is decorated with ``@runtime_checkable`` so that
``isinstance`` checks work at run-time in addition to static analysis.

In-memory implementations rely on the gate's context lock for ordering;
they do no locking of their own.
"""
from __future__ import annotations

from typing import Protocol, runtime_checkable

from access_gate.core.types import (
    AccessResponse,
    HistoryEntry,
    HistoryQuery,
    Outcome,
)
from access_gate.history.query import select

# ===================================================================
# Protocol (interface) definitions
# ===================================================================

@runtime_checkable
class IdentityVerifier(Protocol):
    """Decides Success or Failure for a token.

    An unknown or invalid token MUST produce a ``Failure`` response.
    Implementations raise :class:`~access_gate.core.errors.VerifierError`
    only when the verification mechanism itself is broken.
    """

    async def access(self, token: str) -> AccessResponse:
        """Verify *token* and return the decision payload."""
        ...


@runtime_checkable
class HistoryStore(Protocol):
    """Backend for the append-only access history."""

    async def insert(self, entry: HistoryEntry) -> None:
        """Append *entry* to the history.

        Raises :class:`~access_gate.core.errors.StoreError` if the entry
        could not be durably recorded.
        """
        ...

    async def query(self, query: HistoryQuery) -> list[HistoryEntry]:
        """Return the entries selected by *query*, in a deterministic order.

        Raises :class:`~access_gate.core.errors.StoreError` if the store
        cannot be read.  An empty list is a valid result.
        """
        ...


@runtime_checkable
class Callback(Protocol):
    """Side effect triggered once per successful access."""

    async def call(self) -> None:
        """Trigger the side effect.

        Raises :class:`~access_gate.core.errors.CallbackError` on failure.
        """
        ...


# ===================================================================
# In-memory implementations (testing / development)
# ===================================================================

class StaticIdentityVerifier:
    """Verifier that returns the same outcome for every token."""

    def __init__(self, outcome: Outcome = Outcome.SUCCESS, *, name: str | None = None) -> None:
        self._outcome = outcome
        self._name = name

    async def access(self, token: str) -> AccessResponse:
        reason = None if self._outcome is Outcome.SUCCESS else "denied by static verifier"
        return AccessResponse(outcome=self._outcome, name=self._name, reason=reason)


class InMemoryIdentityVerifier:
    """Token table verifier for testing and development.

    Tokens map to the name of the identity they belong to.  Unknown and
    revoked tokens are denied.  This implementation is NOT suitable for
    production use.
    """

    def __init__(self, tokens: dict[str, str] | None = None) -> None:
        self._tokens: dict[str, str] = dict(tokens or {})
        self._revoked: set[str] = set()

    # -- mutation helpers (not part of the Protocol) --------------------

    def put(self, token: str, name: str) -> None:
        """Register *token* for *name* (test helper)."""
        self._tokens[token] = name
        self._revoked.discard(token)

    def revoke(self, token: str) -> None:
        """Deny *token* from now on without forgetting its owner."""
        if token in self._tokens:
            self._revoked.add(token)

    # -- Protocol implementation ---------------------------------------

    async def access(self, token: str) -> AccessResponse:
        """Look up *token* in the table."""
        name = self._tokens.get(token)
        if name is None:
            return AccessResponse(outcome=Outcome.FAILURE, reason="unknown token")
        if token in self._revoked:
            return AccessResponse(outcome=Outcome.FAILURE, name=name, reason="token revoked")
        return AccessResponse(outcome=Outcome.SUCCESS, name=name)


class InMemoryHistoryStore:
    """In-memory history store for testing and development.

    Entries are kept in append order; filtering is delegated to
    :func:`access_gate.history.query.select`.
    """

    def __init__(self) -> None:
        self._entries: list[HistoryEntry] = []

    def __len__(self) -> int:
        return len(self._entries)

    async def insert(self, entry: HistoryEntry) -> None:
        """Append *entry*."""
        self._entries.append(entry)

    async def query(self, query: HistoryQuery) -> list[HistoryEntry]:
        """Return the entries selected by *query*."""
        return select(self._entries, query)


class NullCallback:
    """Callback that does nothing."""

    async def call(self) -> None:
        return None
