"""HTTP client for a running access gate.

:class:`GateClient` speaks the HTTP binding served by
:mod:`access_gate.wire.server` and turns error bodies back into the
matching :class:`~access_gate.core.errors.GateError` subclass, so callers
handle remote and in-process gates the same way.
"""
from __future__ import annotations

import json
from typing import Any

import httpx
from pydantic import TypeAdapter, ValidationError

from access_gate.core.errors import GateError, error_from_code
from access_gate.core.types import (
    AccessResponse,
    AccessResult,
    AccessStatus,
    HistoryEntry,
    HistoryQuery,
)

_ENTRIES = TypeAdapter(list[HistoryEntry])

_DECISION_STATUSES: dict[int, AccessStatus] = {
    200: AccessStatus.OK,
    403: AccessStatus.FORBIDDEN,
}


class GateClient:
    """Async HTTP client for the access gate API.

    Parameters
    ----------
    base_url:
        Scheme, host and port of the gate, e.g. ``http://gate.local:8000``.
    mount_point:
        The gate's configured mount point (default: ``/``).
    timeout:
        Request timeout in seconds (default: 30).
    transport:
        Optional ``httpx`` transport, e.g. :class:`httpx.ASGITransport`
        to talk to an in-process app.
    """

    def __init__(
        self,
        base_url: str,
        *,
        mount_point: str = "/",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._prefix = mount_point.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    @property
    def access_url(self) -> str:
        return f"{self._base_url}{self._prefix}/access"

    async def access(self, token: str) -> AccessResult:
        """Record an access attempt for *token*.

        Returns
        -------
        AccessResult
            ``ok`` or ``forbidden`` together with the decision.

        Raises
        ------
        GateError
            The matching subclass for any error answered by the gate.
        """
        response = await self._send("POST", params={"token": token})
        status = _DECISION_STATUSES.get(response.status_code)
        if status is None:
            raise _error_from_response(response)
        try:
            decision = AccessResponse.model_validate_json(response.content)
        except ValidationError as exc:
            raise GateError(
                "Gate answered with an invalid access response",
                details={"status_code": response.status_code},
            ) from exc
        return AccessResult(status=status, response=decision)

    async def history(self, query: HistoryQuery | None = None, **filters: Any) -> list[HistoryEntry]:
        """Query the access history.

        Filters may be given as a :class:`HistoryQuery` or as keyword
        arguments with the same names.
        """
        if query is None:
            query = HistoryQuery(**filters)
        params = {
            key: value
            for key, value in query.model_dump(mode="json").items()
            if value is not None
        }
        response = await self._send("GET", params=params)
        if response.status_code != 200:
            raise _error_from_response(response)
        try:
            return _ENTRIES.validate_json(response.content)
        except ValidationError as exc:
            raise GateError(
                "Gate answered with an invalid history listing",
                details={"status_code": response.status_code},
            ) from exc

    async def _send(self, method: str, *, params: dict[str, Any]) -> httpx.Response:
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            return await client.request(method, self.access_url, params=params)


def _error_from_response(response: httpx.Response) -> GateError:
    try:
        payload = response.json()["error"]
        code = payload["code"]
        message = payload.get("message")
    except (json.JSONDecodeError, KeyError, TypeError, ValueError):
        return GateError(
            f"Gate answered HTTP {response.status_code} without an error body",
            details={"status_code": response.status_code},
        )
    error = error_from_code(code, message)
    error.details = dict(payload.get("detail") or {})
    return error
