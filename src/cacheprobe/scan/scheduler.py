# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Bounded worker pool: one task per URL, at most ``concurrency`` probe lifecycles at once."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from typing import Optional

from ..errors import ConfigError, SinkWriteError
from ..models.probe import CacheProbeResult, ProbeRequest
from ..models.report import RunSummary
from ..probe.attempt import CacheProber
from ..sink import ResultSink

logger = logging.getLogger(__name__)

OutcomeCallback = Callable[[ProbeRequest, Optional[CacheProbeResult]], None]
_Outcome = tuple[ProbeRequest, Optional[CacheProbeResult]]


class Scheduler:
    """
    Dispatches probes under a shared permit pool.

    A task holds its permit for the whole probe, sleeps included. After releasing it, a
    found result is appended to the sink and every outcome (found or not) goes to the
    aggregation queue, which ``run`` drains until each URL has reported once.
    """

    def __init__(
        self,
        prober: CacheProber,
        sink: ResultSink,
        *,
        concurrency: int = 10,
        on_outcome: OutcomeCallback | None = None,
    ):
        if concurrency < 1:
            raise ConfigError(f"Concurrency must be at least 1, got {concurrency}")
        self.prober = prober
        self.sink = sink
        self.concurrency = concurrency
        self.on_outcome = on_outcome
        self.summary = RunSummary()
        self.active = 0
        self.peak_active = 0

    async def run(self, requests: Sequence[ProbeRequest]) -> RunSummary:
        permits = asyncio.Semaphore(self.concurrency)
        outcomes: asyncio.Queue[_Outcome] = asyncio.Queue()
        self.summary = RunSummary(total=len(requests))

        tasks = [asyncio.create_task(self._unit(request, permits, outcomes)) for request in requests]
        try:
            for _ in range(len(tasks)):
                request, result = await outcomes.get()
                self.summary.completed += 1
                if result is not None:
                    self.summary.results.append(result)
                if self.on_outcome is not None:
                    self.on_outcome(request, result)
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            self.summary.sink_errors = list(self.sink.errors)

        return self.summary

    async def _unit(
        self,
        request: ProbeRequest,
        permits: asyncio.Semaphore,
        outcomes: asyncio.Queue[_Outcome],
    ) -> None:
        result: CacheProbeResult | None = None
        try:
            async with permits:
                self.active += 1
                self.peak_active = max(self.peak_active, self.active)
                try:
                    result = await self.prober.probe(request)
                finally:
                    self.active -= 1
        except Exception:  # noqa: BLE001
            logger.exception("Probe for %s failed unexpectedly", request.url)
            result = None

        if result is not None:
            try:
                self.sink.emit(result)
            except SinkWriteError as exc:
                logger.error("%s", exc)
        outcomes.put_nowait((request, result))


__all__ = ["OutcomeCallback", "Scheduler"]
