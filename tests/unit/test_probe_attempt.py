# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

import asyncio
import logging
import random

import pytest

from cacheprobe.config import HttpSettings
from cacheprobe.errors import DnsResolutionError, ErrorCategory
from cacheprobe.http import HttpRequest, HttpResponse, StubHttpClient
from cacheprobe.models import CacheProbeResult, ProbeRequest
from cacheprobe.probe import CacheProber, ProbeState, StubResolver
from cacheprobe.probe.inspect import BODY_INDICATOR_HEADER, body_has_cache_marker

URL = "https://example.com/"


class SleepRecorder:
    def __init__(self):
        self.delays = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class FlakyResolver:
    """Fails the first ``failures`` lookups, then succeeds."""

    def __init__(self, failures: int):
        self.failures = failures
        self.lookups = 0

    async def resolve(self, host: str) -> None:
        self.lookups += 1
        if self.lookups <= self.failures:
            raise DnsResolutionError(host, "temporary failure")


class ScriptedResolver:
    def __init__(self, outcomes):
        self.outcomes = list(outcomes)

    async def resolve(self, host: str) -> None:
        if not self.outcomes.pop(0):
            raise DnsResolutionError(host, "temporary failure")


class RaisingClient:
    async def request(self, request: HttpRequest) -> HttpResponse:
        raise RuntimeError("socket exploded")


def _ok(headers=None, text="", body_error=None):
    return HttpResponse(ok=True, status_code=200, headers=headers or {}, text=text, body_error=body_error)


def _fail(category=ErrorCategory.CONNECTION_ERROR):
    return HttpResponse(ok=False, error_message="boom", error_category=category)


def _prober(client, resolver, *, retries=3, sleep=None, headers=("Cache-Control", "Age", "X-Cache"), observer=None):
    return CacheProber(
        client,
        resolver,
        header_names=headers,
        timeout=7,
        retries=retries,
        settings=HttpSettings(),
        sleep=sleep or SleepRecorder(),
        rng=random.Random(1234),
        observer=observer,
    )


@pytest.mark.parametrize("retries", [0, 1, 3, 5])
def test_dns_failure_exhausts_with_doubling_backoff(retries):
    client = StubHttpClient({URL: _ok({"Age": "1"})})
    resolver = StubResolver(fail_all=True)
    sleep = SleepRecorder()

    result = asyncio.run(_prober(client, resolver, retries=retries, sleep=sleep).probe(ProbeRequest(URL)))

    assert result is None
    assert len(resolver.lookups) == retries + 1
    assert sleep.delays == [0.5 * 2**i for i in range(retries)]
    assert client.requests == []


def test_dns_preflight_uses_host_token():
    resolver = StubResolver()
    client = StubHttpClient({"https://cdn.example.com:8443/x": _ok()})
    asyncio.run(_prober(client, resolver).probe(ProbeRequest("https://cdn.example.com:8443/x")))
    assert resolver.lookups == ["cdn.example.com:8443"]


def test_malformed_url_fails_resolution():
    client = StubHttpClient()
    resolver = StubResolver()
    result = asyncio.run(_prober(client, resolver, retries=1).probe(ProbeRequest("not-a-url")))
    assert result is None
    assert resolver.lookups == ["", ""]
    assert client.requests == []


def test_transport_failures_use_jitter_and_exhaust():
    client = StubHttpClient({URL: _fail()})
    sleep = SleepRecorder()

    result = asyncio.run(_prober(client, StubResolver(), retries=2, sleep=sleep).probe(ProbeRequest(URL)))

    assert result is None
    assert client.calls_for(URL) == 3
    assert len(sleep.delays) == 2
    assert all(1.0 <= delay < 5.0 for delay in sleep.delays)


def test_timeouts_retry_like_transport_errors():
    client = StubHttpClient({URL: [_fail(ErrorCategory.TIMEOUT), _ok({"Age": "30"})]})
    states = []
    sleep = SleepRecorder()
    prober = _prober(client, StubResolver(), sleep=sleep, observer=lambda req, state, attempt: states.append(state))

    result = asyncio.run(prober.probe(ProbeRequest(URL)))

    assert result == CacheProbeResult(url=URL, method="GET", headers={"Age": "30"})
    assert states == [ProbeState.ATTEMPTING, ProbeState.TIMED_OUT, ProbeState.ATTEMPTING, ProbeState.SUCCEEDED]
    assert len(sleep.delays) == 1


def test_success_returns_without_delay():
    client = StubHttpClient({URL: _ok({"Cache-Control": "no-cache"})})
    sleep = SleepRecorder()
    result = asyncio.run(_prober(client, StubResolver(), sleep=sleep).probe(ProbeRequest(URL)))
    assert result is not None
    assert result.headers == {"Cache-Control": "no-cache"}
    assert sleep.delays == []
    assert client.calls_for(URL) == 1


def test_response_without_signals_is_absent_and_not_retried():
    client = StubHttpClient({URL: _ok({"Content-Type": "text/html"}, text="<html>plain</html>")})
    result = asyncio.run(_prober(client, StubResolver()).probe(ProbeRequest(URL)))
    assert result is None
    assert client.calls_for(URL) == 1


def test_dns_and_jitter_tracks_are_independent():
    # DNS fail, DNS ok + request fail, DNS fail, DNS ok + success.
    resolver = ScriptedResolver([False, True, False, True])
    client = StubHttpClient({URL: [_fail(), _ok({"Age": "5"})]})
    sleep = SleepRecorder()

    result = asyncio.run(_prober(client, resolver, retries=3, sleep=sleep).probe(ProbeRequest(URL)))

    assert result is not None
    assert sleep.delays[0] == 0.5
    assert 1.0 <= sleep.delays[1] < 5.0
    assert sleep.delays[2] == 1.0
    assert len(sleep.delays) == 3


def test_dns_recovers_after_failures():
    resolver = FlakyResolver(failures=2)
    client = StubHttpClient({URL: _ok({"X-Cache": "MISS"})})
    sleep = SleepRecorder()
    result = asyncio.run(_prober(client, resolver, retries=3, sleep=sleep).probe(ProbeRequest(URL)))
    assert result.headers == {"X-Cache": "MISS"}
    assert sleep.delays == [0.5, 1.0]


def test_unsupported_method_is_sent_as_get_but_reported_as_configured():
    client = StubHttpClient({URL: _ok({"Age": "1"})})
    result = asyncio.run(_prober(client, StubResolver()).probe(ProbeRequest(URL, method="PUT")))
    assert client.requests[0].method == "GET"
    assert client.requests[0].timeout == 7
    assert result.method == "PUT"


def test_post_method_is_sent():
    client = StubHttpClient({URL: _ok({"Age": "1"})})
    asyncio.run(_prober(client, StubResolver()).probe(ProbeRequest(URL, method="POST")))
    assert client.requests[0].method == "POST"


@pytest.mark.parametrize(
    ("body", "expected"),
    [
        ("page served from cache by edge", True),
        ("debug: X-Cache: HIT", True),
        ("x-cache: hit", False),
        ("Served From Cache", False),
        ("", False),
    ],
)
def test_body_cache_markers(body, expected):
    assert body_has_cache_marker(body) is expected


def test_header_present_iff_on_response_or_body_marker():
    headers = {"Cache-Control": "max-age=0", "X-Other": "1"}
    client = StubHttpClient({URL: _ok(headers, text="served from cache")})
    result = asyncio.run(_prober(client, StubResolver()).probe(ProbeRequest(URL)))
    assert result.headers == {"Cache-Control": "max-age=0", BODY_INDICATOR_HEADER: "Detected"}


def test_body_marker_alone_produces_result():
    client = StubHttpClient({URL: _ok(text="X-Cache: HIT")})
    result = asyncio.run(_prober(client, StubResolver()).probe(ProbeRequest(URL)))
    assert result.headers == {BODY_INDICATOR_HEADER: "Detected"}


def test_body_read_failure_is_not_retried():
    client = StubHttpClient({URL: _ok({"Age": "3"}, body_error="connection reset")})
    result = asyncio.run(_prober(client, StubResolver()).probe(ProbeRequest(URL)))
    assert result.headers == {"Age": "3"}
    assert client.calls_for(URL) == 1


def test_truncated_body_is_logged(caplog):
    response = _ok({"Age": "3"}, text="partial")
    response.meta["body_truncated"] = True
    client = StubHttpClient({URL: response})
    with caplog.at_level(logging.DEBUG, logger="cacheprobe.probe.attempt"):
        result = asyncio.run(_prober(client, StubResolver()).probe(ProbeRequest(URL)))
    assert result.headers == {"Age": "3"}
    assert any("exceeded" in record.getMessage() for record in caplog.records)


def test_client_exception_counts_as_request_failure():
    states = []
    prober = _prober(RaisingClient(), StubResolver(), retries=1, observer=lambda req, state, attempt: states.append(state))
    assert asyncio.run(prober.probe(ProbeRequest(URL))) is None
    assert states[-2:] == [ProbeState.REQUEST_FAILED, ProbeState.EXHAUSTED]


def test_observer_sees_backoff_delays():
    attempts = []
    prober = _prober(
        StubHttpClient(),
        StubResolver(fail_all=True),
        retries=2,
        observer=lambda req, state, attempt: attempts.append((state, attempt.index, attempt.backoff_delay)),
    )
    asyncio.run(prober.probe(ProbeRequest(URL)))
    assert (ProbeState.DNS_FAILED, 0, 0.5) in attempts
    assert (ProbeState.DNS_FAILED, 1, 1.0) in attempts
    assert attempts[-1] == (ProbeState.EXHAUSTED, 2, 0.0)
