"""Access gate error hierarchy.

Every failure the gate can report to a caller is a concrete subclass of
:class:`GateError`.  Each class carries the HTTP status and request-level
status it maps to, so transports never need their own lookup table.

Hierarchy
---------
::

    GateError
    +-- MalformedRequest     (GATE-E400)
    +-- VerifierError        (GATE-E500)
    +-- ClockError           (GATE-E501)
    +-- CallbackError        (GATE-E502)
    +-- StoreError           (GATE-E503)
    +-- ConfigurationError   (GATE-E900)

Usage
-----
Raise concrete subclasses directly::

    raise StoreError("history file is not writable")

Catch everything the gate reports::

    try:
        result = await gate.access(token)
    except GateError as exc:
        return exc.http_status, exc.to_dict()
"""
from __future__ import annotations

from typing import Any

# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------

class GateError(Exception):
    """Base exception for all access gate errors.

    Attributes
    ----------
    code : str
        Gate error code, e.g. ``"GATE-E503"``.
    http_status : int
        HTTP status code for this error.
    status : str
        Request-level status reported to the caller.
    message : str
        Human-readable description.  MUST NOT contain the raw token.
    details : dict[str, Any]
        Machine-readable context specific to the error instance.
    resolution : str
        Suggested action for the operator or caller.
    """

    code: str = "GATE-E000"
    http_status: int = 500
    status: str = "internal-error"
    message: str = "Unknown access gate error"
    resolution: str = ""

    def __init__(
        self,
        message: str | None = None,
        *,
        details: dict[str, Any] | None = None,
        resolution: str | None = None,
    ) -> None:
        self.details: dict[str, Any] = details or {}
        if message is not None:
            self.message = message
        if resolution is not None:
            self.resolution = resolution
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Serialise the error to the wire error format."""
        payload: dict[str, Any] = {
            "code": self.code,
            "message": self.message,
            "status": self.status,
        }
        if self.details:
            payload["detail"] = self.details
        if self.resolution:
            payload["resolution"] = self.resolution
        return {"error": payload}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


# ===================================================================
# Request errors
# ===================================================================

class MalformedRequest(GateError):
    """GATE-E400 -- The request is missing a parameter or has a bad value."""

    code = "GATE-E400"
    http_status = 400
    status = "bad-request"
    message = "Malformed request"
    resolution = "Check the query parameters against the gate API."


# ===================================================================
# Collaborator errors
# ===================================================================

class VerifierError(GateError):
    """GATE-E500 -- The identity verification mechanism itself failed.

    This is never raised for an unknown or invalid token; those are a
    normal ``Failure`` outcome.
    """

    code = "GATE-E500"
    http_status = 500
    status = "internal-error"
    message = "Identity verification failed"
    resolution = "Check the identity verifier backend and its configuration."


class ClockError(GateError):
    """GATE-E501 -- The wall clock could not produce an epoch timestamp."""

    code = "GATE-E501"
    http_status = 500
    status = "internal-error"
    message = "System clock is unavailable"
    resolution = "Check the host clock; it must be set after the Unix epoch."


class CallbackError(GateError):
    """GATE-E502 -- The post-success side effect failed.

    The access attempt has already been recorded when this is raised.
    """

    code = "GATE-E502"
    http_status = 502
    status = "gateway-error"
    message = "Access was granted but the downstream callback failed"
    resolution = "Check the downstream service; the attempt is recorded in history."


class StoreError(GateError):
    """GATE-E503 -- The history store cannot service a read or write."""

    code = "GATE-E503"
    http_status = 503
    status = "service-unavailable"
    message = "Access history is unavailable"
    resolution = (
        "The history store must be writable for access decisions to be "
        "reported. Retry once the store is available."
    )


class ConfigurationError(GateError):
    """GATE-E900 -- The service configuration is invalid."""

    code = "GATE-E900"
    http_status = 500
    status = "internal-error"
    message = "Invalid access gate configuration"


# ---------------------------------------------------------------------------
# Lookup helper
# ---------------------------------------------------------------------------

_CODE_MAP: dict[str, type[GateError]] = {
    cls.code: cls
    for cls in [
        MalformedRequest,
        VerifierError,
        ClockError,
        CallbackError,
        StoreError,
        ConfigurationError,
    ]
}


def error_from_code(code: str, message: str | None = None) -> GateError:
    """Instantiate the correct exception class for a gate error code.

    Unknown codes fall back to a plain :class:`GateError` carrying the
    code, so that a client never loses an error it does not recognise.
    """
    cls = _CODE_MAP.get(code)
    if cls is None:
        error = GateError(message)
        error.code = code
        return error
    return cls(message) if message else cls()
