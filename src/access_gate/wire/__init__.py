"""Access gate HTTP binding.

* **create_app / run** -- FastAPI application and uvicorn runner
  (:mod:`~access_gate.wire.server`).
* **GateClient** -- async httpx client for a running gate
  (:mod:`~access_gate.wire.client`).
"""
from __future__ import annotations

from access_gate.wire.client import GateClient
from access_gate.wire.server import create_app, run

__all__ = [
    "GateClient",
    "create_app",
    "run",
]
