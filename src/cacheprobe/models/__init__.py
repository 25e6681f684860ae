# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Dataclass exports for cacheprobe."""

from ..http.models import Headers, HttpRequest, HttpResponse
from .probe import CacheProbeResult, ProbeAttempt, ProbeRequest
from .report import RunSummary

__all__ = [
    "CacheProbeResult",
    "Headers",
    "HttpRequest",
    "HttpResponse",
    "ProbeAttempt",
    "ProbeRequest",
    "RunSummary",
]
