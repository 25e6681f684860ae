# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""httpx-backed HttpClient implementation."""

from __future__ import annotations

import asyncio

import httpx

from ..config import HttpSettings, load_http_settings
from ..errors import ErrorCategory, categorize_exception
from .client import HttpClient
from .models import HttpRequest, HttpResponse


class HttpxClient(HttpClient):
    """Asynchronous httpx client wrapper shared by every probe task."""

    def __init__(self, settings: HttpSettings | None = None, client: httpx.AsyncClient | None = None):
        self.settings = settings or load_http_settings()
        self._client = client or httpx.AsyncClient(
            follow_redirects=self.settings.allow_redirects,
            verify=self.settings.verify_ssl,
        )

    async def request(self, request: HttpRequest) -> HttpResponse:
        headers = dict(request.headers or {})
        headers.setdefault("User-Agent", self.settings.user_agent)
        timeout = request.timeout

        try:
            extra = {"timeout": timeout} if timeout is not None else {}
            outgoing = self._client.build_request(request.method, request.url, headers=headers, **extra)
            # The overall deadline covers connect + response head, not just each socket op.
            resp = await asyncio.wait_for(
                self._client.send(outgoing, stream=True, follow_redirects=request.allow_redirects),
                timeout,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            return HttpResponse(
                ok=False,
                url=request.url,
                error_message=str(exc) or f"no response within {timeout}s",
                error_category=ErrorCategory.TIMEOUT,
            )
        except Exception as exc:  # noqa: BLE001
            return HttpResponse(
                ok=False,
                url=request.url,
                error_message=str(exc) or type(exc).__name__,
                error_category=categorize_exception(exc),
            )

        text = ""
        body_error: str | None = None
        truncated = False
        try:
            content, truncated = await asyncio.wait_for(self._read_body(resp), timeout)
            encoding = resp.encoding or "utf-8"
            try:
                text = content.decode(encoding, errors="replace")
            except LookupError:
                text = content.decode("utf-8", errors="replace")
        except Exception as exc:  # noqa: BLE001
            body_error = str(exc) or type(exc).__name__
        finally:
            await resp.aclose()

        return HttpResponse(
            ok=True,
            status_code=resp.status_code,
            headers=httpx.Headers(resp.headers),
            text=text,
            url=str(resp.url),
            body_error=body_error,
            meta={"body_truncated": truncated},
        )

    async def _read_body(self, resp: httpx.Response) -> tuple[bytes, bool]:
        max_body_bytes = self.settings.max_body_bytes
        content = bytearray()
        async for chunk in resp.aiter_bytes():
            remaining = max_body_bytes - len(content)
            if len(chunk) > remaining:
                content.extend(chunk[:remaining])
                return bytes(content), True
            content.extend(chunk)
        return bytes(content), False

    async def aclose(self) -> None:
        await self._client.aclose()
