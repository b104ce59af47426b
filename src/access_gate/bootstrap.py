"""Startup wiring.

Builds the process-wide singletons -- the :class:`GateContext` and the
success callback -- from :class:`GateSettings`.  Implementations are chosen
by explicit construction here; nothing downstream looks them up again.
"""
from __future__ import annotations

import logging

from access_gate.callbacks import CommandCallback, WebhookCallback
from access_gate.core.config import (
    CallbackSettings,
    GateSettings,
    HistorySettings,
    VerifierSettings,
)
from access_gate.core.errors import ConfigurationError
from access_gate.core.interfaces import (
    Callback,
    HistoryStore,
    IdentityVerifier,
    InMemoryHistoryStore,
    InMemoryIdentityVerifier,
    NullCallback,
    StaticIdentityVerifier,
)
from access_gate.gate import AccessGate, GateContext
from access_gate.history.ndjson import JsonLinesHistoryStore
from access_gate.identity.jwt import JwtIdentityVerifier

logger = logging.getLogger(__name__)


def build_verifier(settings: VerifierSettings) -> IdentityVerifier:
    if settings.kind == "static":
        return StaticIdentityVerifier(settings.outcome)
    if settings.kind == "table":
        return InMemoryIdentityVerifier(settings.tokens)
    if settings.key is None:
        raise ConfigurationError(
            "verifier.key is required when verifier.kind is 'jwt'",
            details={"section": "verifier"},
        )
    try:
        return JwtIdentityVerifier(
            settings.key,
            algorithms=settings.algorithms,
            audience=settings.audience,
            issuer=settings.issuer,
            name_claim=settings.name_claim,
            leeway=settings.leeway,
        )
    except ValueError as exc:
        raise ConfigurationError(str(exc), details={"section": "verifier"}) from exc


def build_history(settings: HistorySettings) -> HistoryStore:
    if settings.kind == "ndjson":
        if settings.path is None:
            raise ConfigurationError(
                "history.path is required when history.kind is 'ndjson'",
                details={"section": "history"},
            )
        return JsonLinesHistoryStore(settings.path)
    return InMemoryHistoryStore()


def build_callback(settings: CallbackSettings) -> Callback:
    if settings.kind == "webhook":
        if settings.url is None:
            raise ConfigurationError(
                "callback.url is required when callback.kind is 'webhook'",
                details={"section": "callback"},
            )
        return WebhookCallback(
            settings.url,
            method=settings.method,
            headers=settings.headers,
            timeout=settings.timeout,
        )
    if settings.kind == "command":
        return CommandCallback(settings.command, timeout=settings.timeout)
    return NullCallback()


def build_gate(settings: GateSettings) -> AccessGate:
    """Construct the context, callback and gate for one running service."""
    context = GateContext(
        identity_store=build_verifier(settings.verifier),
        history=build_history(settings.history),
    )
    callback = build_callback(settings.callback)
    logger.info(
        "gate built: verifier=%s history=%s callback=%s",
        settings.verifier.kind,
        settings.history.kind,
        settings.callback.kind,
    )
    return AccessGate(context, callback)
