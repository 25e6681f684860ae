# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""In-memory HttpClient used for tests and dry runs."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence

from .client import HttpClient
from .models import HttpRequest, HttpResponse


class StubHttpClient(HttpClient):
    """
    Deterministic, programmable HttpClient.

    Each URL maps to one response or to a sequence consumed one per request (the last
    entry repeats). An optional per-URL delay simulates network latency.
    """

    def __init__(self, responses: dict[str, HttpResponse | Sequence[HttpResponse]] | None = None):
        self._responses: dict[str, list[HttpResponse]] = {}
        self._delays: dict[str, float] = {}
        self.requests: list[HttpRequest] = []
        self.closed = False
        for url, response in (responses or {}).items():
            self.add(url, response)

    def add(self, url: str, response: HttpResponse | Sequence[HttpResponse], *, delay: float = 0.0) -> None:
        if isinstance(response, HttpResponse):
            self._responses[url] = [response]
        else:
            self._responses[url] = list(response)
        if delay:
            self._delays[url] = delay

    def calls_for(self, url: str) -> int:
        return sum(1 for request in self.requests if request.url == url)

    async def request(self, request: HttpRequest) -> HttpResponse:
        self.requests.append(request)
        delay = self._delays.get(request.url)
        if delay:
            await asyncio.sleep(delay)
        queue = self._responses.get(request.url)
        if not queue:
            return HttpResponse(ok=False, url=request.url, error_message="No stubbed response configured")
        if len(queue) > 1:
            return queue.pop(0)
        return queue[0]

    async def aclose(self) -> None:
        self.closed = True
