# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""DNS preflight, attempt state machine and response inspection."""

from .attempt import CacheProber, ProbeState
from .dns import Resolver, StubResolver, SystemResolver, extract_host
from .inspect import BODY_INDICATOR_HEADER, collect_cache_signals

__all__ = [
    "BODY_INDICATOR_HEADER",
    "CacheProber",
    "ProbeState",
    "Resolver",
    "StubResolver",
    "SystemResolver",
    "collect_cache_signals",
    "extract_host",
]
