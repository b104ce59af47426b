#!/usr/bin/env python3
"""Access gate quickstart.

Demonstrates the core workflow of the gate:

1. Build a gate with a token table, in-memory history and a callback.
2. Submit a known token (granted, callback fires).
3. Submit an unknown token (denied, callback does not fire).
4. Read the recorded history back.

Run:
    python examples/quickstart.py
"""
from __future__ import annotations

import asyncio

from access_gate import (
    AccessGate,
    GateContext,
    HistoryQuery,
    InMemoryHistoryStore,
    InMemoryIdentityVerifier,
)


class PrintingCallback:
    """Stands in for the door relay."""

    async def call(self) -> None:
        print("    >> door opened")


async def main() -> None:
    # -- Step 1: Build the gate ----------------------------------------------
    context = GateContext(
        identity_store=InMemoryIdentityVerifier({"tok-alice": "alice"}),
        history=InMemoryHistoryStore(),
    )
    gate = AccessGate(context, PrintingCallback())
    print("[1] Gate ready")

    # -- Step 2: A known token -------------------------------------------------
    result = await gate.access("tok-alice")
    print(f"[2] tok-alice -> {result.status} ({result.response.outcome}, name={result.response.name})")

    # -- Step 3: An unknown token ----------------------------------------------
    result = await gate.access("tok-mallory")
    print(f"[3] tok-mallory -> {result.status} ({result.response.reason})")

    # -- Step 4: Read the history ------------------------------------------------
    print("[4] History:")
    for entry in await gate.history(HistoryQuery()):
        print(f"    t={entry.time} token={entry.token} outcome={entry.response.outcome}")


if __name__ == "__main__":
    asyncio.run(main())
