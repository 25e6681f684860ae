# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Per-URL probe state machine.

One probe drives up to ``retries + 1`` attempts. Each attempt resolves the host first and
only sends the HTTP request when resolution succeeds. DNS failures back off on a doubling
track (0.5s, 1s, 2s, ...); transport failures and timeouts wait a uniformly random delay
instead. The two tracks never reset each other. The attempt that receives a response ends
the probe immediately, with or without a result.
"""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable, Sequence
from enum import Enum

from ..config import DEFAULT_CACHE_HEADERS, HttpSettings, load_http_settings
from ..errors import (
    DnsResolutionError,
    ErrorCategory,
    RequestTimeout,
    RetriesExhausted,
    TransportError,
    categorize_exception,
)
from ..http.client import HttpClient
from ..http.models import HttpRequest, HttpResponse
from ..models.probe import CacheProbeResult, ProbeAttempt, ProbeRequest
from .dns import Resolver, extract_host
from .inspect import collect_cache_signals

logger = logging.getLogger(__name__)

SleepFunc = Callable[[float], Awaitable[None]]


class ProbeState(str, Enum):
    ATTEMPTING = "attempting"
    DNS_FAILED = "dns_failed"
    REQUEST_FAILED = "request_failed"
    TIMED_OUT = "timed_out"
    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"


TransitionObserver = Callable[[ProbeRequest, ProbeState, ProbeAttempt], None]


class CacheProber:
    """Runs the attempt loop for one URL at a time; safe to share between tasks."""

    def __init__(
        self,
        http_client: HttpClient,
        resolver: Resolver,
        *,
        header_names: Sequence[str] = DEFAULT_CACHE_HEADERS,
        timeout: float = 20,
        retries: int = 3,
        settings: HttpSettings | None = None,
        sleep: SleepFunc | None = None,
        rng: random.Random | None = None,
        observer: TransitionObserver | None = None,
    ):
        self.http_client = http_client
        self.resolver = resolver
        self.header_names = list(header_names)
        self.timeout = timeout
        self.retries = max(0, retries)
        self.settings = settings or load_http_settings()
        self._sleep = sleep or asyncio.sleep
        self._rng = rng or random.Random()
        self._observer = observer

    async def probe(self, request: ProbeRequest) -> CacheProbeResult | None:
        """Probe one URL; every failure kind collapses into ``None``."""
        try:
            return await self._run(request)
        except RetriesExhausted as exc:
            logger.debug("%s", exc)
            return None

    async def _run(self, request: ProbeRequest) -> CacheProbeResult | None:
        url = request.url
        host = extract_host(url)
        dns_backoff = self.settings.dns_initial_backoff
        logger.debug("Requesting URL: %s", url)

        for index in range(self.retries + 1):
            attempt = ProbeAttempt(index=index)
            self._notify(request, ProbeState.ATTEMPTING, attempt)
            last_attempt = index >= self.retries

            try:
                await self.resolver.resolve(host)
            except DnsResolutionError as exc:
                logger.debug("DNS error for %s: %s", url, exc)
                attempt = ProbeAttempt(index=index, backoff_delay=0.0 if last_attempt else dns_backoff)
                self._notify(request, ProbeState.DNS_FAILED, attempt)
                if last_attempt:
                    self._notify(request, ProbeState.EXHAUSTED, attempt)
                    raise RetriesExhausted(url, index + 1, exc) from exc
                await self._sleep(dns_backoff)
                dns_backoff *= 2
                continue

            response = await self._send(request)
            if response.ok:
                logger.debug("Received response for URL: %s (status %s)", url, response.status_code)
                self._notify(request, ProbeState.SUCCEEDED, attempt)
                return self._build_result(request, response)

            error = self._transport_error(response)
            state = ProbeState.TIMED_OUT if isinstance(error, RequestTimeout) else ProbeState.REQUEST_FAILED
            if state is ProbeState.TIMED_OUT:
                logger.debug("Timeout requesting %s: %s", url, error)
            else:
                logger.debug("Error requesting %s: %s", url, error)

            if last_attempt:
                self._notify(request, state, attempt)
                self._notify(request, ProbeState.EXHAUSTED, attempt)
                raise RetriesExhausted(url, index + 1, error)

            delay = self._jitter()
            self._notify(request, state, ProbeAttempt(index=index, backoff_delay=delay))
            logger.debug("Retrying %s (attempt %d/%d)", url, index + 1, self.retries)
            logger.debug("Waiting for %d milliseconds before next attempt", int(delay * 1000))
            await self._sleep(delay)

        return None

    async def _send(self, request: ProbeRequest) -> HttpResponse:
        http_request = HttpRequest(
            url=request.url,
            method=request.wire_method,
            timeout=self.timeout,
            allow_redirects=self.settings.allow_redirects,
        )
        try:
            return await self.http_client.request(http_request)
        except Exception as exc:  # noqa: BLE001
            return HttpResponse(
                ok=False,
                url=request.url,
                error_message=str(exc) or type(exc).__name__,
                error_category=categorize_exception(exc),
            )

    def _build_result(self, request: ProbeRequest, response: HttpResponse) -> CacheProbeResult | None:
        if response.body_error:
            logger.debug("Could not read body for %s: %s", request.url, response.body_error)
        if response.meta.get("body_truncated"):
            logger.debug(
                "Body of %s exceeded %d bytes; markers past the cap are not checked",
                request.url,
                self.settings.max_body_bytes,
            )
        signals = collect_cache_signals(response, self.header_names)
        if not signals:
            logger.debug("No caching headers found for URL: %s", request.url)
            return None
        for name, value in signals.items():
            logger.debug("Found header %s: %s", name, value)
        return CacheProbeResult(url=request.url, method=request.method, headers=signals)

    @staticmethod
    def _transport_error(response: HttpResponse) -> TransportError:
        message = response.error_message or "request failed"
        if response.timed_out:
            return RequestTimeout(message)
        return TransportError(message, response.error_category or ErrorCategory.UNKNOWN_ERROR)

    def _jitter(self) -> float:
        low, high = self.settings.jitter_min, self.settings.jitter_max
        return low + self._rng.random() * (high - low)

    def _notify(self, request: ProbeRequest, state: ProbeState, attempt: ProbeAttempt) -> None:
        if self._observer is not None:
            self._observer(request, state, attempt)


__all__ = ["CacheProber", "ProbeState", "TransitionObserver"]
