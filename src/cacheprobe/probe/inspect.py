# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Extract cache signals from a received response."""

from __future__ import annotations

from collections.abc import Iterable

from ..http.headers import pick_headers
from ..http.models import HttpResponse

BODY_CACHE_MARKERS = ("served from cache", "X-Cache: HIT")
BODY_INDICATOR_HEADER = "Body-Cache-Indicator"
BODY_INDICATOR_VALUE = "Detected"


def body_has_cache_marker(text: str | None) -> bool:
    if not text:
        return False
    return any(marker in text for marker in BODY_CACHE_MARKERS)


def collect_cache_signals(response: HttpResponse, header_names: Iterable[str]) -> dict[str, str]:
    """
    Return the configured headers present on ``response`` plus the synthetic body indicator.

    A body that failed to read simply contributes nothing.
    """
    signals = pick_headers(response.headers, header_names)
    if body_has_cache_marker(response.text):
        signals[BODY_INDICATOR_HEADER] = BODY_INDICATOR_VALUE
    return signals


__all__ = [
    "BODY_CACHE_MARKERS",
    "BODY_INDICATOR_HEADER",
    "BODY_INDICATOR_VALUE",
    "body_has_cache_marker",
    "collect_cache_signals",
]
