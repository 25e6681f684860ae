# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Run summary returned by the scheduler and the runtime facade."""

from __future__ import annotations

from dataclasses import dataclass, field

from .probe import CacheProbeResult


@dataclass
class RunSummary:
    total: int = 0
    completed: int = 0
    results: list[CacheProbeResult] = field(default_factory=list)
    interrupted: bool = False
    sink_errors: list[str] = field(default_factory=list)

    @property
    def positives(self) -> int:
        return len(self.results)

    @property
    def ok(self) -> bool:
        """True unless a found result could not be written out."""
        return not self.sink_errors

