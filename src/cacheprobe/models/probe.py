# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Probe request/result models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..config import SUPPORTED_METHODS


@dataclass(frozen=True)
class ProbeRequest:
    """One URL to probe. ``method`` is reported as configured; unsupported methods are sent as GET."""

    url: str
    method: str = "GET"

    @property
    def wire_method(self) -> str:
        method = self.method.upper()
        return method if method in SUPPORTED_METHODS else "GET"


@dataclass(frozen=True)
class ProbeAttempt:
    index: int
    backoff_delay: float = 0.0


@dataclass
class CacheProbeResult:
    """Cache signals found for one URL. Only built when ``headers`` is non-empty."""

    url: str
    method: str
    headers: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"url": self.url, "headers": dict(self.headers), "method": self.method}
