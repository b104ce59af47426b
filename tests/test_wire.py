"""Tests for the HTTP binding.

Covers:

1. **Access route** -- status codes for every outcome and failure,
   response bodies, malformed requests.
2. **History route** -- filters from query parameters, error bodies.
3. **Mount point** -- routes live under the configured prefix.
4. **GateClient** -- round trip against the in-process app and typed
   error reconstruction.
"""
from __future__ import annotations

import httpx
import pytest
from conftest import (
    CountingCallback,
    FailingCallback,
    FailingHistoryStore,
    FailingVerifier,
    SteppingClock,
)

from access_gate.core.config import GateSettings
from access_gate.core.errors import CallbackError, GateError, StoreError, VerifierError
from access_gate.core.interfaces import (
    InMemoryHistoryStore,
    InMemoryIdentityVerifier,
    StaticIdentityVerifier,
)
from access_gate.core.types import AccessStatus, HistoryQuery, Outcome
from access_gate.gate import AccessGate, GateContext
from access_gate.wire.client import GateClient
from access_gate.wire.server import create_app

BASE_URL = "http://gate.test"

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _gate(*, verifier=None, history=None, callback=None) -> AccessGate:
    context = GateContext(
        identity_store=verifier
        or InMemoryIdentityVerifier({"tok-alice": "alice", "tok-bob": "bob"}),
        history=history if history is not None else InMemoryHistoryStore(),
    )
    return AccessGate(context, callback or CountingCallback(), clock=SteppingClock())


def _http(gate: AccessGate, settings: GateSettings | None = None) -> httpx.AsyncClient:
    app = create_app(gate, settings)
    return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url=BASE_URL)


# ===================================================================
# 1. Access route
# ===================================================================

class TestAccessRoute:
    """POST /access."""

    @pytest.mark.asyncio
    async def test_granted(self) -> None:
        """A Success outcome answers 200 with the decision body."""
        callback = CountingCallback()
        async with _http(_gate(callback=callback)) as client:
            response = await client.post("/access", params={"token": "tok-alice"})
        assert response.status_code == 200
        body = response.json()
        assert body["outcome"] == "Success"
        assert body["name"] == "alice"
        assert callback.calls == 1

    @pytest.mark.asyncio
    async def test_denied(self) -> None:
        """A Failure outcome answers 403 with the decision body."""
        callback = CountingCallback()
        async with _http(_gate(callback=callback)) as client:
            response = await client.post("/access", params={"token": "tok-mallory"})
        assert response.status_code == 403
        assert response.json()["outcome"] == "Failure"
        assert callback.calls == 0

    @pytest.mark.asyncio
    async def test_missing_token(self) -> None:
        """A request without a token is malformed."""
        async with _http(_gate()) as client:
            response = await client.post("/access")
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "GATE-E400"

    @pytest.mark.asyncio
    async def test_verifier_error(self) -> None:
        """A broken verifier answers 500 internal-error."""
        async with _http(_gate(verifier=FailingVerifier())) as client:
            response = await client.post("/access", params={"token": "tok-alice"})
        assert response.status_code == 500
        error = response.json()["error"]
        assert error["code"] == "GATE-E500"
        assert error["status"] == "internal-error"

    @pytest.mark.asyncio
    async def test_store_error_withholds_decision(self) -> None:
        """An unwritable history answers 503 without any outcome."""
        async with _http(_gate(history=FailingHistoryStore())) as client:
            response = await client.post("/access", params={"token": "tok-alice"})
        assert response.status_code == 503
        body = response.json()
        assert "outcome" not in body
        assert body["error"]["status"] == "service-unavailable"

    @pytest.mark.asyncio
    async def test_callback_error(self) -> None:
        """A failing callback answers 502 and the attempt stays recorded."""
        gate = _gate(callback=FailingCallback())
        async with _http(gate) as client:
            response = await client.post("/access", params={"token": "tok-alice"})
            listing = await client.get("/access", params={"token": "tok-alice"})
        assert response.status_code == 502
        assert response.json()["error"]["status"] == "gateway-error"
        assert len(listing.json()) == 1


# ===================================================================
# 2. History route
# ===================================================================

class TestHistoryRoute:
    """GET /access."""

    @pytest.mark.asyncio
    async def test_lists_entries(self) -> None:
        """All attempts are listed with time, token and response."""
        async with _http(_gate()) as client:
            for token in ("tok-alice", "tok-mallory"):
                await client.post("/access", params={"token": token})
            response = await client.get("/access")
        assert response.status_code == 200
        entries = response.json()
        assert [e["token"] for e in entries] == ["tok-alice", "tok-mallory"]
        assert [e["response"]["outcome"] for e in entries] == ["Success", "Failure"]
        assert all(isinstance(e["time"], int) for e in entries)

    @pytest.mark.asyncio
    async def test_filters(self) -> None:
        """Query parameters reach the store as filters."""
        async with _http(_gate()) as client:
            for token in ("tok-alice", "tok-bob", "tok-alice", "tok-mallory"):
                await client.post("/access", params={"token": token})
            latest = await client.get(
                "/access", params={"token": "tok-alice", "only_latest": "true"}
            )
            named = await client.get("/access", params={"name": "bob"})
            denied = await client.get("/access", params={"outcome": "Failure"})
        assert len(latest.json()) == 1
        assert [e["token"] for e in named.json()] == ["tok-bob"]
        assert [e["token"] for e in denied.json()] == ["tok-mallory"]

    @pytest.mark.asyncio
    async def test_empty_listing(self) -> None:
        """No entries is an empty array, not an error."""
        async with _http(_gate()) as client:
            response = await client.get("/access", params={"token": "nobody"})
        assert response.status_code == 200
        assert response.json() == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "params",
        [{"time_min": "yesterday"}, {"time_max": "-5"}, {"outcome": "Maybe"}],
    )
    async def test_bad_parameters(self, params: dict[str, str]) -> None:
        """Unparseable filters are malformed requests."""
        async with _http(_gate()) as client:
            response = await client.get("/access", params=params)
        assert response.status_code == 400
        assert response.json()["error"]["detail"]["errors"]

    @pytest.mark.asyncio
    async def test_store_unavailable(self) -> None:
        """A failing read answers 503."""
        history = FailingHistoryStore(fail_insert=False, fail_query=True)
        async with _http(_gate(history=history)) as client:
            response = await client.get("/access")
        assert response.status_code == 503
        assert response.json()["error"]["code"] == "GATE-E503"


# ===================================================================
# 3. Mount point
# ===================================================================

class TestMountPoint:
    """Routes are mounted under the configured prefix."""

    @pytest.mark.asyncio
    async def test_prefixed_routes(self) -> None:
        """With mount_point '/gate/' the routes live at /gate/access."""
        settings = GateSettings(mount_point="/gate/")
        async with _http(_gate(), settings) as client:
            hit = await client.post("/gate/access", params={"token": "tok-alice"})
            miss = await client.post("/access", params={"token": "tok-alice"})
        assert hit.status_code == 200
        assert miss.status_code == 404


# ===================================================================
# 4. GateClient
# ===================================================================

class TestGateClient:
    """httpx client against the in-process app."""

    def _client(self, gate: AccessGate, mount_point: str = "/door") -> GateClient:
        app = create_app(gate, GateSettings(mount_point=mount_point))
        return GateClient(
            BASE_URL,
            mount_point=mount_point,
            transport=httpx.ASGITransport(app=app),
        )

    @pytest.mark.asyncio
    async def test_access_results(self) -> None:
        """ok and forbidden come back as AccessResult values."""
        client = self._client(_gate())
        granted = await client.access("tok-alice")
        denied = await client.access("tok-mallory")
        assert granted.status is AccessStatus.OK
        assert granted.response.name == "alice"
        assert denied.status is AccessStatus.FORBIDDEN
        assert denied.response.outcome is Outcome.FAILURE

    @pytest.mark.asyncio
    async def test_history(self) -> None:
        """history() accepts a HistoryQuery or keyword filters."""
        client = self._client(_gate())
        for token in ("tok-alice", "tok-alice", "tok-bob"):
            await client.access(token)
        everything = await client.history()
        latest = await client.history(HistoryQuery(token="tok-alice", only_latest=True))
        bob = await client.history(name="bob")
        assert len(everything) == 3
        assert len(latest) == 1
        assert latest[0].time == max(e.time for e in everything if e.token == "tok-alice")
        assert [e.token for e in bob] == ["tok-bob"]

    @pytest.mark.asyncio
    async def test_typed_errors(self) -> None:
        """Error bodies are turned back into the matching GateError."""
        with pytest.raises(VerifierError):
            await self._client(_gate(verifier=FailingVerifier())).access("tok-alice")
        with pytest.raises(StoreError):
            await self._client(_gate(history=FailingHistoryStore())).access("tok-alice")
        with pytest.raises(CallbackError):
            await self._client(_gate(callback=FailingCallback())).access("tok-alice")

    @pytest.mark.asyncio
    async def test_history_error_details(self) -> None:
        """Details from the error body are kept on the raised error."""
        history = FailingHistoryStore(fail_insert=False, fail_query=True)
        with pytest.raises(StoreError) as exc_info:
            await self._client(_gate(history=history)).history()
        assert exc_info.value.message == "history backend offline"

    @pytest.mark.asyncio
    async def test_non_gate_error_body(self) -> None:
        """A response without an error body still raises a GateError."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(504, text="upstream timeout")

        client = GateClient(BASE_URL, transport=httpx.MockTransport(handler))
        with pytest.raises(GateError) as exc_info:
            await client.access("tok-alice")
        assert exc_info.value.details["status_code"] == 504

    @pytest.mark.asyncio
    async def test_static_verifier_round_trip(self) -> None:
        """A gate mounted at the root answers through the client."""
        client = self._client(_gate(verifier=StaticIdentityVerifier(Outcome.SUCCESS)), "/")
        result = await client.access("anything")
        assert result.status is AccessStatus.OK
