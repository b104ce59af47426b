"""Access gate shared domain types.

This module defines every value type, enum, and Pydantic model that is shared
across the gate, its collaborators, and the wire layer.

Key design decisions:
* ``AccessResponse`` allows extra fields so that verifiers can attach their
  own auxiliary data; the gate never interprets anything but ``outcome``.
* ``HistoryEntry`` and ``HistoryQuery`` are frozen: entries are append-only
  and queries are forwarded to the store exactly as the caller built them.
* Enums use *string* values so they serialise cleanly to JSON.
"""
from __future__ import annotations

import enum

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class Outcome(enum.StrEnum):
    """Binary verification result produced by an identity verifier."""

    SUCCESS = "Success"
    FAILURE = "Failure"


class AccessStatus(enum.StrEnum):
    """Request-level status of a record-access-attempt call.

    ``ok`` and ``forbidden`` are successful completions of the request;
    the remaining members are failures raised as
    :class:`~access_gate.core.errors.GateError` subclasses.
    """

    OK = "ok"
    FORBIDDEN = "forbidden"
    INTERNAL_ERROR = "internal-error"
    SERVICE_UNAVAILABLE = "service-unavailable"
    GATEWAY_ERROR = "gateway-error"

    @classmethod
    def from_outcome(cls, outcome: Outcome) -> AccessStatus:
        """Map a verification outcome onto its request status."""
        return cls.OK if outcome is Outcome.SUCCESS else cls.FORBIDDEN

    @property
    def http_status(self) -> int:
        """Return the HTTP status code for this request status."""
        return {
            AccessStatus.OK: 200,
            AccessStatus.FORBIDDEN: 403,
            AccessStatus.INTERNAL_ERROR: 500,
            AccessStatus.SERVICE_UNAVAILABLE: 503,
            AccessStatus.GATEWAY_ERROR: 502,
        }[self]


# ---------------------------------------------------------------------------
# Access models
# ---------------------------------------------------------------------------

class AccessResponse(BaseModel):
    """The verifier's decision payload.

    Only ``outcome`` carries meaning for the gate.  ``name`` and ``reason``
    are the auxiliary fields filled by the bundled verifiers; any other
    verifier-defined field is kept as an extra.
    """

    model_config = ConfigDict(extra="allow")

    outcome: Outcome
    name: str | None = Field(
        default=None,
        description="Identity the token resolved to, if the verifier knows it.",
    )
    reason: str | None = Field(
        default=None,
        description="Why a Failure outcome was reached.",
    )

    @property
    def granted(self) -> bool:
        return self.outcome is Outcome.SUCCESS


class AccessResult(BaseModel):
    """Successful return value of :meth:`AccessGate.access`."""

    model_config = ConfigDict(frozen=True)

    status: AccessStatus
    response: AccessResponse


# ---------------------------------------------------------------------------
# History models
# ---------------------------------------------------------------------------

class HistoryEntry(BaseModel):
    """One immutable, timestamped record of an access attempt.

    ``time`` is assigned by the gate when the attempt is recorded, in
    whole seconds since the Unix epoch.
    """

    model_config = ConfigDict(frozen=True)

    time: int = Field(ge=0, description="Epoch seconds at which the attempt was recorded.")
    token: str
    response: AccessResponse


class HistoryQuery(BaseModel):
    """Filters for a history read.

    Every filter is optional; ``None`` matches every entry on that
    dimension.  Time bounds are inclusive.
    """

    model_config = ConfigDict(frozen=True)

    time_min: int | None = Field(default=None, ge=0)
    time_max: int | None = Field(default=None, ge=0)
    token: str | None = None
    name: str | None = None
    outcome: Outcome | None = None
    only_latest: bool = False
