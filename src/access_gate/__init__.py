"""Access Gate.

Turns an opaque token into an accept/deny decision, records every attempt
in an append-only history, and triggers a side effect exactly when access
is granted.

Layout
------
* Core types, errors, config, interfaces (:mod:`access_gate.core`)
* Request orchestration (:mod:`access_gate.gate`)
* Identity verifiers (:mod:`access_gate.identity`)
* History stores (:mod:`access_gate.history`)
* Success callbacks (:mod:`access_gate.callbacks`)
* HTTP binding (:mod:`access_gate.wire`)
"""
from __future__ import annotations

__version__ = "0.1.0"

from access_gate.core.config import GateSettings, load_settings
from access_gate.core.errors import (
    CallbackError,
    ClockError,
    ConfigurationError,
    GateError,
    MalformedRequest,
    StoreError,
    VerifierError,
)
from access_gate.core.interfaces import (
    Callback,
    HistoryStore,
    IdentityVerifier,
    InMemoryHistoryStore,
    InMemoryIdentityVerifier,
    NullCallback,
    StaticIdentityVerifier,
)
from access_gate.core.types import (
    AccessResponse,
    AccessResult,
    AccessStatus,
    HistoryEntry,
    HistoryQuery,
    Outcome,
)
from access_gate.gate import AccessGate, GateContext, epoch_seconds

__all__ = [
    "__version__",
    # Orchestration
    "AccessGate",
    "GateContext",
    "epoch_seconds",
    # Config
    "GateSettings",
    "load_settings",
    # Errors
    "CallbackError",
    "ClockError",
    "ConfigurationError",
    "GateError",
    "MalformedRequest",
    "StoreError",
    "VerifierError",
    # Interfaces
    "Callback",
    "HistoryStore",
    "IdentityVerifier",
    "InMemoryHistoryStore",
    "InMemoryIdentityVerifier",
    "NullCallback",
    "StaticIdentityVerifier",
    # Types
    "AccessResponse",
    "AccessResult",
    "AccessStatus",
    "HistoryEntry",
    "HistoryQuery",
    "Outcome",
]
