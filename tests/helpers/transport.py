"""Scripted httpx transports for probe tests."""

from collections import defaultdict
from collections.abc import Sequence

import httpx


# A scripted step is a body (served with 200), a (status_code, body) pair,
# or an exception instance to raise from the transport.
Step = str | tuple[int, str] | Exception


class ScriptedTransport:
    """Serves per-host response scripts and records every request.

    Each host replays its script one step per request; the last step
    repeats once the script runs out.
    """

    def __init__(self, scripts: dict[str, Sequence[Step]]) -> None:
        self._scripts = {host: list(steps) for host, steps in scripts.items()}
        self.requests: dict[str, list[httpx.Request]] = defaultdict(list)
        self.transport = httpx.MockTransport(self._handle)

    def count(self, host: str) -> int:
        """Get the number of requests made to a host."""
        return len(self.requests[host])

    def _handle(self, request: httpx.Request) -> httpx.Response:
        host = request.url.host
        if request.url.port:
            host = f"{host}:{request.url.port}"
        self.requests[host].append(request)

        steps = self._scripts.get(host)
        if not steps:
            raise httpx.ConnectError("Connection refused", request=request)

        step = steps[min(len(self.requests[host]), len(steps)) - 1]
        if isinstance(step, Exception):
            raise step
        if isinstance(step, tuple):
            status_code, body = step
            return httpx.Response(status_code, text=body)
        return httpx.Response(200, text=step)
