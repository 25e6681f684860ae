# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Interrupt handling for a probe run.

Whichever comes first, an interrupt or normal completion, moves the coordinator from
RUNNING to FINALIZING and closes the output document. By default an interrupt then ends
the process on the spot and in-flight probes are dropped; in graceful mode the run task
is cancelled instead, so cancellation reaches every pending DNS lookup, request and sleep.
"""

from __future__ import annotations

import asyncio
import logging
import os
import signal
import threading
from collections.abc import Callable
from enum import Enum
from types import FrameType

from ..errors import SinkWriteError
from ..sink import ResultSink

logger = logging.getLogger(__name__)

HANDLED_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class ShutdownState(str, Enum):
    RUNNING = "running"
    FINALIZING = "finalizing"


class ShutdownCoordinator:
    def __init__(
        self,
        sink: ResultSink,
        *,
        graceful: bool = False,
        exit_func: Callable[[int], object] = os._exit,
    ):
        self.sink = sink
        self.graceful = graceful
        self.interrupted = False
        self._exit = exit_func
        self._state = ShutdownState.RUNNING
        self._lock = threading.Lock()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._task: asyncio.Task | None = None
        self._loop_signals: list[signal.Signals] = []
        self._previous_handlers: dict[signal.Signals, object] = {}

    @property
    def state(self) -> ShutdownState:
        return self._state

    def install(self, task: asyncio.Task | None = None, loop: asyncio.AbstractEventLoop | None = None) -> None:
        """Route SIGINT/SIGTERM to ``interrupt``; ``task`` is what graceful mode cancels."""
        self._loop = loop or asyncio.get_running_loop()
        self._task = task
        for sig in HANDLED_SIGNALS:
            try:
                self._loop.add_signal_handler(sig, self.interrupt, sig)
                self._loop_signals.append(sig)
            except (NotImplementedError, RuntimeError):
                # No loop-level signal support (e.g. Windows); hop onto the loop from the handler.
                try:
                    self._previous_handlers[sig] = signal.signal(sig, self._handle_signal)
                except ValueError:
                    logger.warning("Cannot install %s handler outside the main thread", sig.name)

    def uninstall(self) -> None:
        if self._loop is not None:
            for sig in self._loop_signals:
                self._loop.remove_signal_handler(sig)
        for sig, previous in self._previous_handlers.items():
            signal.signal(sig, previous)
        self._loop_signals.clear()
        self._previous_handlers.clear()

    def _handle_signal(self, signum: int, _frame: FrameType | None) -> None:
        if self._loop is not None and not self._loop.is_closed():
            self._loop.call_soon_threadsafe(self.interrupt, signal.Signals(signum))
        else:
            self.interrupt(signal.Signals(signum))

    def _begin_finalizing(self) -> bool:
        with self._lock:
            if self._state is not ShutdownState.RUNNING:
                return False
            self._state = ShutdownState.FINALIZING
            return True

    def interrupt(self, sig: signal.Signals = signal.SIGINT) -> None:
        if not self._begin_finalizing():
            return
        self.interrupted = True
        logger.warning("Received %s, closing %s", sig.name, self.sink.path)
        try:
            self.sink.finalize()
        except SinkWriteError as exc:
            logger.error("%s", exc)
        # Results lost earlier in the run fail the process as well.
        exit_code = 1 if self.sink.errors else 0

        if self.graceful:
            if self._task is not None and not self._task.done():
                self._task.cancel()
            return
        self._exit(exit_code)

    def complete(self) -> None:
        """Normal end of run. Raises SinkWriteError if the closing bracket cannot be written."""
        if not self._begin_finalizing():
            return
        self.sink.finalize()


__all__ = ["HANDLED_SIGNALS", "ShutdownCoordinator", "ShutdownState"]
