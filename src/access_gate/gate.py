"""Access gate -- the request orchestrator.

This module implements :class:`AccessGate`, which drives the identity
verifier, the history store and the success callback through a fixed
sequence for every access attempt.

Access pipeline
---------------

1. **Lock** -- acquire the shared :class:`GateContext`.
2. **Verify** -- ask the identity verifier for a decision.
3. **Timestamp** -- read the wall clock as epoch seconds.
4. **Record** -- append the :class:`HistoryEntry` to the history store.
5. **Unlock** -- release the context.
6. **Notify** -- on ``Success`` only, invoke the callback.
7. **Return** -- ``ok`` for Success, ``forbidden`` for Failure.

A failure in steps 2-4 aborts the request with nothing recorded after the
failing step and no decision reported.  A callback failure is reported as
a gateway error, but the history entry stays recorded.

Usage
-----
::

    from access_gate.core.interfaces import (
        InMemoryHistoryStore,
        NullCallback,
        StaticIdentityVerifier,
    )
    from access_gate.gate import AccessGate, GateContext

    context = GateContext(
        identity_store=StaticIdentityVerifier(),
        history=InMemoryHistoryStore(),
    )
    gate = AccessGate(context, NullCallback())

    result = await gate.access("tok-1")
"""
from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from access_gate.core.errors import (
    CallbackError,
    ClockError,
    StoreError,
    VerifierError,
)
from access_gate.core.types import (
    AccessResponse,
    AccessResult,
    AccessStatus,
    HistoryEntry,
    HistoryQuery,
)

if TYPE_CHECKING:
    from access_gate.core.interfaces import Callback, HistoryStore, IdentityVerifier

logger = logging.getLogger(__name__)

Clock = Callable[[], int]


def epoch_seconds() -> int:
    """Return the current wall-clock time in whole seconds since the epoch.

    Raises
    ------
    ClockError
        If the system clock cannot be read or is set before the epoch.
    """
    try:
        now = time.time()
    except OSError as exc:
        raise ClockError(f"Cannot read system clock: {exc}") from exc
    if now < 0:
        raise ClockError(
            "System clock is set before the Unix epoch",
            details={"clock_value": now},
        )
    return int(now)


@dataclass
class GateContext:
    """The shared ``{identity_store, history}`` aggregate.

    One instance exists per running service.  Every verify/record sequence
    and every history read goes through :attr:`lock`.
    """

    identity_store: IdentityVerifier
    history: HistoryStore
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)


class AccessGate:
    """Orchestrates verify -> record -> notify for every access attempt.

    Parameters
    ----------
    context:
        The shared context holding the identity verifier and history store.
    callback:
        Side effect invoked once for each successful access, after the
        context lock has been released.
    clock:
        Source of epoch-second timestamps for history entries.  Defaults to
        :func:`epoch_seconds`.
    """

    def __init__(
        self,
        context: GateContext,
        callback: Callback,
        *,
        clock: Clock = epoch_seconds,
    ) -> None:
        self._context = context
        self._callback = callback
        self._clock = clock

    @property
    def context(self) -> GateContext:
        """The shared context."""
        return self._context

    @property
    def callback(self) -> Callback:
        """The success callback."""
        return self._callback

    # ------------------------------------------------------------------
    # Access handler
    # ------------------------------------------------------------------

    async def access(self, token: str) -> AccessResult:
        """Verify *token*, record the attempt and trigger the callback.

        Parameters
        ----------
        token:
            The raw credential submitted by the caller.

        Returns
        -------
        AccessResult
            ``ok`` with a Success response, or ``forbidden`` with a Failure
            response.  Either way the attempt has been recorded.

        Raises
        ------
        VerifierError
            The verifier could not reach a decision.  Nothing was recorded.
        ClockError
            No timestamp could be obtained.  Nothing was recorded.
        StoreError
            The attempt could not be recorded.  No decision is reported and
            the callback is not invoked.
        CallbackError
            Access was granted and recorded, but the callback failed.
        """
        context = self._context
        async with context.lock:
            response = await self._verify(token)
            timestamp = self._timestamp()
            entry = HistoryEntry(
                time=timestamp,
                token=token,
                response=response.model_copy(deep=True),
            )
            await self._record(entry)

        status = AccessStatus.from_outcome(response.outcome)
        logger.info(
            "access attempt recorded at %d: outcome=%s status=%s",
            timestamp,
            response.outcome,
            status,
        )

        if response.granted:
            await self._notify()

        return AccessResult(status=status, response=response)

    async def _verify(self, token: str) -> AccessResponse:
        try:
            return await self._context.identity_store.access(token)
        except VerifierError:
            logger.exception("identity verification failed")
            raise
        except Exception as exc:
            logger.exception("identity verifier raised unexpectedly")
            raise VerifierError(
                f"Identity verifier error: {type(exc).__name__}: {exc}",
                details={"exception_type": type(exc).__name__},
            ) from exc

    def _timestamp(self) -> int:
        try:
            value = self._clock()
        except ClockError:
            logger.error("clock unavailable, access attempt not recorded")
            raise
        except Exception as exc:
            logger.error("clock raised %s, access attempt not recorded", type(exc).__name__)
            raise ClockError(f"Cannot read clock: {exc}") from exc
        # bool is an int subclass and is never a valid timestamp
        if not isinstance(value, int) or isinstance(value, bool) or value < 0:
            logger.error("clock returned invalid value %r", value)
            raise ClockError(
                "Clock returned an invalid timestamp",
                details={"clock_value": repr(value)},
            )
        return value

    async def _record(self, entry: HistoryEntry) -> None:
        try:
            await self._context.history.insert(entry)
        except StoreError:
            logger.error("history append failed, decision withheld")
            raise
        except Exception as exc:
            logger.exception("history store raised unexpectedly on append")
            raise StoreError(
                f"History store error: {type(exc).__name__}: {exc}",
                details={"exception_type": type(exc).__name__},
            ) from exc

    async def _notify(self) -> None:
        try:
            await self._callback.call()
        except CallbackError as exc:
            logger.warning("success callback failed: %s", exc.message)
            raise
        except Exception as exc:
            logger.warning("success callback raised %s: %s", type(exc).__name__, exc)
            raise CallbackError(
                f"Callback error: {type(exc).__name__}: {exc}",
                details={"exception_type": type(exc).__name__},
            ) from exc

    # ------------------------------------------------------------------
    # History query handler
    # ------------------------------------------------------------------

    async def history(self, query: HistoryQuery | None = None) -> list[HistoryEntry]:
        """Return the recorded attempts selected by *query*.

        The query is forwarded to the history store unmodified.  An empty
        list is a valid result.

        Raises
        ------
        StoreError
            If the history store cannot service the read.
        """
        query = query or HistoryQuery()
        async with self._context.lock:
            try:
                return await self._context.history.query(query)
            except StoreError:
                logger.error("history query failed")
                raise
            except Exception as exc:
                logger.exception("history store raised unexpectedly on query")
                raise StoreError(
                    f"History store error: {type(exc).__name__}: {exc}",
                    details={"exception_type": type(exc).__name__},
                ) from exc
