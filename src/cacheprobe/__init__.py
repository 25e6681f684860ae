# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
cacheprobe package entrypoint.

Probes many URLs concurrently for HTTP caching signals (``Cache-Control``, ``Age``,
``X-Cache``, CDN status headers and body cache markers) and streams the findings into a
JSON array that stays well-formed even when the run is interrupted. HTTP and DNS access
sit behind injectable client/resolver interfaces.
"""

from .config import DEFAULT_CACHE_HEADERS, HttpSettings, ProbeConfig, load_http_settings, normalize_url
from .errors import (
    CacheProbeError,
    ConfigError,
    DnsResolutionError,
    RequestTimeout,
    RetriesExhausted,
    SinkWriteError,
    StartupIoError,
    TransportError,
)
from .http import HttpClient, HttpRequest, HttpResponse, HttpxClient, StubHttpClient, create_default_http_client
from .log import setup_logging
from .models import CacheProbeResult, ProbeRequest, RunSummary
from .probe import CacheProber, ProbeState, StubResolver, SystemResolver
from .runtime import CacheProbe
from .scan import Scheduler, ShutdownCoordinator, ShutdownState
from .sink import ResultSink
from .version import __version__

__all__ = [
    "DEFAULT_CACHE_HEADERS",
    "CacheProbe",
    "CacheProbeError",
    "CacheProbeResult",
    "CacheProber",
    "ConfigError",
    "DnsResolutionError",
    "HttpClient",
    "HttpRequest",
    "HttpResponse",
    "HttpSettings",
    "HttpxClient",
    "ProbeConfig",
    "ProbeRequest",
    "ProbeState",
    "RequestTimeout",
    "ResultSink",
    "RetriesExhausted",
    "RunSummary",
    "Scheduler",
    "ShutdownCoordinator",
    "ShutdownState",
    "SinkWriteError",
    "StartupIoError",
    "StubHttpClient",
    "StubResolver",
    "SystemResolver",
    "TransportError",
    "create_default_http_client",
    "load_http_settings",
    "normalize_url",
    "setup_logging",
    "__version__",
]
