"""HTTP binding for the access gate.

This module exposes an :class:`~access_gate.gate.AccessGate` as a FastAPI
application and runs it under uvicorn.  Two routes are mounted under the
configured mount point:

* ``POST {mount_point}/access?token=...`` -- record an access attempt.
  Answers 200 with the decision for ``Success`` and 403 for ``Failure``.
* ``GET {mount_point}/access?time_min=&time_max=&token=&name=&outcome=&only_latest=``
  -- query the access history.

Every :class:`~access_gate.core.errors.GateError` is answered with its own
``http_status`` and the structured body from ``GateError.to_dict()``.
Parameter validation failures are answered as ``MalformedRequest`` (400).
"""
from __future__ import annotations

import logging
from typing import Annotated

import uvicorn
from fastapi import APIRouter, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from access_gate import __version__
from access_gate.core.config import GateSettings
from access_gate.core.errors import GateError, MalformedRequest
from access_gate.core.types import HistoryQuery, Outcome
from access_gate.gate import AccessGate

logger = logging.getLogger(__name__)

APP_TITLE = "access-gate"


def create_app(gate: AccessGate, settings: GateSettings | None = None) -> FastAPI:
    """Create the FastAPI application for *gate*.

    Parameters
    ----------
    gate:
        The gate every request is routed to.  One instance per process.
    settings:
        Service settings; only ``mount_point`` is read here.
    """
    settings = settings or GateSettings()
    app = FastAPI(title=APP_TITLE, version=__version__)
    router = APIRouter(prefix=settings.route_prefix)

    @router.get("/access")
    async def query_history(
        time_min: Annotated[int | None, Query(ge=0)] = None,
        time_max: Annotated[int | None, Query(ge=0)] = None,
        token: str | None = None,
        name: str | None = None,
        outcome: Outcome | None = None,
        only_latest: bool = False,
    ) -> JSONResponse:
        query = HistoryQuery(
            time_min=time_min,
            time_max=time_max,
            token=token,
            name=name,
            outcome=outcome,
            only_latest=only_latest,
        )
        entries = await gate.history(query)
        return JSONResponse(
            status_code=200,
            content=[entry.model_dump(mode="json") for entry in entries],
        )

    @router.post("/access")
    async def record_access(token: Annotated[str, Query()]) -> JSONResponse:
        result = await gate.access(token)
        return JSONResponse(
            status_code=result.status.http_status,
            content=result.response.model_dump(mode="json"),
        )

    app.include_router(router)
    app.add_exception_handler(GateError, _gate_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(
        RequestValidationError, _validation_error_handler  # type: ignore[arg-type]
    )
    return app


async def _gate_error_handler(request: Request, exc: GateError) -> JSONResponse:
    logger.debug("%s %s -> %d %s", request.method, request.url.path, exc.http_status, exc.code)
    return JSONResponse(status_code=exc.http_status, content=exc.to_dict())


async def _validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    problems = [
        {
            "location": ".".join(str(part) for part in error.get("loc", ())),
            "message": error.get("msg", ""),
        }
        for error in exc.errors()
    ]
    error = MalformedRequest(
        f"Invalid request parameters: {len(problems)} error(s)",
        details={"errors": problems},
    )
    return JSONResponse(status_code=error.http_status, content=error.to_dict())


def run(settings: GateSettings, gate: AccessGate) -> None:
    """Serve *gate* on ``settings.host:settings.port`` until interrupted."""
    app = create_app(gate, settings)
    logger.info(
        "serving access gate on %s:%d under %r",
        settings.host,
        settings.port,
        settings.mount_point,
    )
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level)
