"""Access gate service configuration.

Defines the validated configuration model read once at startup.  The core
only needs the mount point and port; the verifier, history and callback
sections select which bundled collaborator implementation the service is
built with (see :mod:`access_gate.bootstrap`).

Configuration is stored as TOML::

    mount_point = "/gate"
    port = 8080

    [verifier]
    kind = "table"
    tokens = { "tok-1" = "alice" }

    [history]
    kind = "ndjson"
    path = "/var/lib/access-gate/history.ndjson"

    [callback]
    kind = "webhook"
    url = "http://relay.local/open"
"""
from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from access_gate.core.errors import ConfigurationError
from access_gate.core.types import Outcome


class VerifierSettings(BaseModel):
    """Selects and configures the identity verifier."""

    model_config = ConfigDict(extra="forbid")

    kind: Literal["static", "table", "jwt"] = "table"
    outcome: Outcome = Field(
        default=Outcome.FAILURE,
        description="Outcome returned for every token by the static verifier.",
    )
    tokens: dict[str, str] = Field(
        default_factory=dict,
        description="Token -> identity name table for the table verifier.",
    )
    key: str | None = Field(
        default=None,
        description="HMAC secret or PEM public key for the jwt verifier.",
    )
    algorithms: list[str] = Field(default_factory=lambda: ["HS256"])
    audience: str | None = None
    issuer: str | None = None
    name_claim: str = "sub"
    leeway: float = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _jwt_needs_key(self) -> VerifierSettings:
        if self.kind == "jwt" and not self.key:
            raise ValueError("verifier.key is required when verifier.kind is 'jwt'")
        return self


class HistorySettings(BaseModel):
    """Selects and configures the history store."""

    model_config = ConfigDict(extra="forbid")

    kind: Literal["memory", "ndjson"] = "memory"
    path: Path | None = Field(
        default=None,
        description="History file for the ndjson store.",
    )

    @model_validator(mode="after")
    def _ndjson_needs_path(self) -> HistorySettings:
        if self.kind == "ndjson" and self.path is None:
            raise ValueError("history.path is required when history.kind is 'ndjson'")
        return self


class CallbackSettings(BaseModel):
    """Selects and configures the success callback."""

    model_config = ConfigDict(extra="forbid")

    kind: Literal["none", "webhook", "command"] = "none"
    url: str | None = None
    method: str = "POST"
    headers: dict[str, str] = Field(default_factory=dict)
    command: list[str] = Field(default_factory=list)
    timeout: float = Field(default=10.0, gt=0)

    @model_validator(mode="after")
    def _kind_needs_target(self) -> CallbackSettings:
        if self.kind == "webhook" and not self.url:
            raise ValueError("callback.url is required when callback.kind is 'webhook'")
        if self.kind == "command" and not self.command:
            raise ValueError("callback.command is required when callback.kind is 'command'")
        return self


class GateSettings(BaseModel):
    """Top-level configuration for an access gate service.

    Every field carries a default so that an empty file is a valid
    development configuration: a table verifier with no tokens (every
    attempt is denied), in-memory history and no callback.
    """

    model_config = ConfigDict(extra="forbid")

    mount_point: str = Field(
        default="/",
        description="Path prefix under which the gate routes are mounted.",
    )
    port: int = Field(default=8000, ge=1, le=65535)
    host: str = "127.0.0.1"
    log_level: Literal["debug", "info", "warning", "error", "critical"] = "info"

    verifier: VerifierSettings = Field(default_factory=VerifierSettings)
    history: HistorySettings = Field(default_factory=HistorySettings)
    callback: CallbackSettings = Field(default_factory=CallbackSettings)

    @field_validator("mount_point")
    @classmethod
    def _absolute_mount_point(cls, value: str) -> str:
        if not value.startswith("/"):
            raise ValueError("mount_point must start with '/'")
        return value

    @property
    def route_prefix(self) -> str:
        """The mount point without its trailing slash (``"/"`` -> ``""``)."""
        return self.mount_point.rstrip("/")


def parse_settings(data: dict[str, Any]) -> GateSettings:
    """Validate a configuration mapping.

    Raises
    ------
    ConfigurationError
        If the mapping does not describe a valid configuration.
    """
    try:
        return GateSettings.model_validate(data)
    except ValidationError as exc:
        raise ConfigurationError(
            f"Invalid configuration: {exc.error_count()} error(s)",
            details={"errors": exc.errors(include_url=False, include_context=False)},
        ) from exc


def load_settings(path: str | Path) -> GateSettings:
    """Read and validate a TOML configuration file.

    Raises
    ------
    ConfigurationError
        If the file cannot be read, is not valid TOML, or fails validation.
    """
    path = Path(path)
    try:
        with path.open("rb") as fh:
            data = tomllib.load(fh)
    except OSError as exc:
        raise ConfigurationError(
            f"Cannot read configuration file: {exc.strerror or exc}",
            details={"path": str(path)},
        ) from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationError(
            f"Configuration file is not valid TOML: {exc}",
            details={"path": str(path)},
        ) from exc
    return parse_settings(data)
