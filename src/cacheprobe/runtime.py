# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""High-level cacheprobe facade wiring client, resolver, sink, scheduler and shutdown."""

from __future__ import annotations

import asyncio
import logging
import os
import random
from collections.abc import Callable
from contextlib import suppress

from .config import HttpSettings, ProbeConfig, load_http_settings
from .errors import SinkWriteError
from .http.client import HttpClient, create_default_http_client
from .models.probe import ProbeRequest
from .models.report import RunSummary
from .probe.attempt import CacheProber, SleepFunc, TransitionObserver
from .probe.dns import Resolver, SystemResolver
from .scan.scheduler import OutcomeCallback, Scheduler
from .scan.shutdown import ShutdownCoordinator
from .sink import ResultSink

logger = logging.getLogger(__name__)


class CacheProbe:
    """
    Runs one probe pass over ``config.urls`` and writes findings to ``config.output``.

    The HTTP client and resolver are injectable; when omitted, an httpx client and the
    system resolver are created per run and closed afterwards.
    """

    def __init__(
        self,
        config: ProbeConfig,
        *,
        http_client: HttpClient | None = None,
        resolver: Resolver | None = None,
        settings: HttpSettings | None = None,
        on_outcome: OutcomeCallback | None = None,
        observer: TransitionObserver | None = None,
        sleep: SleepFunc | None = None,
        rng: random.Random | None = None,
        exit_func: Callable[[int], object] = os._exit,
    ):
        self.config = config.validate()
        self.settings = settings or load_http_settings()
        self.http_client = http_client
        self.resolver = resolver or SystemResolver(timeout=self.settings.dns_timeout)
        self.on_outcome = on_outcome
        self.observer = observer
        self.sleep = sleep
        self.rng = rng
        self.exit_func = exit_func
        self.sink: ResultSink | None = None
        self.scheduler: Scheduler | None = None
        self.coordinator: ShutdownCoordinator | None = None

    def requests(self) -> list[ProbeRequest]:
        return [ProbeRequest(url=url, method=self.config.method) for url in self.config.normalized_urls()]

    async def run_async(self) -> RunSummary:
        # Raises StartupIoError before any probing if the output cannot be opened.
        self.sink = ResultSink(self.config.output)
        owns_client = self.http_client is None
        http_client = self.http_client or create_default_http_client(self.settings)

        prober = CacheProber(
            http_client,
            self.resolver,
            header_names=self.config.headers,
            timeout=self.config.timeout,
            retries=self.config.retries,
            settings=self.settings,
            sleep=self.sleep,
            rng=self.rng,
            observer=self.observer,
        )
        self.scheduler = Scheduler(
            prober,
            self.sink,
            concurrency=self.config.concurrency,
            on_outcome=self.on_outcome,
        )
        self.coordinator = ShutdownCoordinator(
            self.sink,
            graceful=self.config.graceful_shutdown,
            exit_func=self.exit_func,
        )

        run_task = asyncio.create_task(self.scheduler.run(self.requests()))
        self.coordinator.install(task=run_task)
        try:
            summary = await run_task
        except asyncio.CancelledError:
            if not (self.coordinator.interrupted and run_task.cancelled()):
                raise
            summary = self.scheduler.summary
            summary.interrupted = True
        finally:
            self.coordinator.uninstall()
            if owns_client:
                with suppress(Exception):
                    await http_client.aclose()
            # No-op when an interrupt already closed the document.
            try:
                self.coordinator.complete()
            except SinkWriteError as exc:
                logger.error("%s", exc)

        summary.sink_errors = list(self.sink.errors)

        logger.info(
            "Probed %d/%d URL(s), %d with cache signals%s",
            summary.completed,
            summary.total,
            summary.positives,
            " (interrupted)" if summary.interrupted else "",
        )
        return summary

    def run(self) -> RunSummary:
        return asyncio.run(self.run_async())


__all__ = ["CacheProbe"]
