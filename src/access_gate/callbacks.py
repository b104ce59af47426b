"""Success callbacks.

The gate invokes exactly one callback after each granted access, once the
attempt has been recorded and the context lock released.  This module
provides the two bundled side effects:

* :class:`WebhookCallback` -- sends an HTTP request to a downstream
  service (requires ``httpx``).
* :class:`CommandCallback` -- runs a local command in a child process.

Both raise :class:`~access_gate.core.errors.CallbackError` on failure and
enforce their own timeout; the gate itself imposes none.
"""
from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Sequence

import httpx

from access_gate.core.errors import CallbackError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 10.0

# Grace period before SIGKILL after SIGTERM.
GRACEFUL_SHUTDOWN_S = 2.0


# ---------------------------------------------------------------------------
# WebhookCallback
# ---------------------------------------------------------------------------


class WebhookCallback:
    """Notify a downstream service over HTTP.

    Parameters
    ----------
    url:
        The URL to call on every granted access.
    method:
        HTTP method (default: ``POST``).
    headers:
        Extra request headers.
    timeout:
        Request timeout in seconds.
    transport:
        Optional ``httpx`` transport, e.g. :class:`httpx.MockTransport`
        in tests.
    """

    def __init__(
        self,
        url: str,
        *,
        method: str = "POST",
        headers: dict[str, str] | None = None,
        timeout: float = DEFAULT_TIMEOUT_S,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._url = url
        self._method = method.upper()
        self._headers = dict(headers or {})
        self._timeout = timeout
        self._transport = transport

    @property
    def url(self) -> str:
        return self._url

    async def call(self) -> None:
        """Send the request.

        Raises
        ------
        CallbackError
            On transport errors, timeouts, and non-2xx responses.
        """
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                response = await client.request(
                    self._method, self._url, headers=self._headers
                )
        except httpx.HTTPError as exc:
            raise CallbackError(
                f"Webhook request failed: {type(exc).__name__}: {exc}",
                details={"url": self._url, "method": self._method},
            ) from exc

        if not response.is_success:
            raise CallbackError(
                f"Webhook returned HTTP {response.status_code}",
                details={
                    "url": self._url,
                    "method": self._method,
                    "status_code": response.status_code,
                },
            )
        logger.debug("webhook %s %s -> %d", self._method, self._url, response.status_code)


# ---------------------------------------------------------------------------
# CommandCallback
# ---------------------------------------------------------------------------


class CommandCallback:
    """Run a local command on every granted access.

    The command is executed directly (no shell).  A non-zero exit code,
    a spawn failure, or exceeding *timeout* is a callback failure; a
    command that times out is terminated.
    """

    def __init__(self, command: Sequence[str], *, timeout: float = DEFAULT_TIMEOUT_S) -> None:
        if not command:
            raise ValueError("CommandCallback requires a non-empty command")
        self._command = list(command)
        self._timeout = timeout

    @property
    def command(self) -> list[str]:
        return list(self._command)

    async def call(self) -> None:
        try:
            proc = await asyncio.create_subprocess_exec(
                *self._command,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
                stdin=asyncio.subprocess.DEVNULL,
            )
        except OSError as exc:
            raise CallbackError(
                f"Failed to start callback command: {exc}",
                details={"command": self._command[0]},
            ) from exc

        try:
            _, stderr_bytes = await asyncio.wait_for(
                proc.communicate(), timeout=self._timeout
            )
        except TimeoutError as exc:
            await _terminate_process(proc)
            raise CallbackError(
                f"Callback command exceeded timeout of {self._timeout}s",
                details={"command": self._command[0], "timeout_s": self._timeout},
            ) from exc

        if proc.returncode != 0:
            raise CallbackError(
                f"Callback command exited with status {proc.returncode}",
                details={
                    "command": self._command[0],
                    "exit_code": proc.returncode,
                    "stderr": stderr_bytes.decode("utf-8", errors="replace")[-1024:],
                },
            )
        logger.debug("callback command %s completed", self._command[0])


async def _terminate_process(proc: asyncio.subprocess.Process) -> None:
    """SIGTERM, wait briefly, then SIGKILL."""
    try:
        proc.terminate()
    except ProcessLookupError:
        return

    try:
        await asyncio.wait_for(proc.wait(), timeout=GRACEFUL_SHUTDOWN_S)
    except TimeoutError:
        with contextlib.suppress(ProcessLookupError):
            proc.kill()
        with contextlib.suppress(TimeoutError):
            await asyncio.wait_for(proc.wait(), timeout=1.0)
