# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Streaming JSON array writer for probe results.

The sink owns the output file, the "first element" flag and the "finalized" flag. Every
write (element or closing bracket) happens under one lock, so the closing bracket can
never land inside a half-written element and the document is valid JSON once
``finalize()`` has run.

Writes go through an unbuffered binary handle. A chunk that fails part-way is cut back
off the file, so the file only ever holds whole elements and ``errors`` lists exactly
the results that never reached it.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from typing import BinaryIO

from .errors import SinkWriteError, StartupIoError
from .models.probe import CacheProbeResult

logger = logging.getLogger(__name__)


class ResultSink:
    def __init__(self, path: str | os.PathLike[str]):
        self.path = os.fspath(path)
        self.errors: list[str] = []
        self._lock = threading.Lock()
        self._first = True
        self._finalized = False
        self._count = 0
        try:
            self._file: BinaryIO = open(self.path, "wb", buffering=0)
        except OSError as exc:
            raise StartupIoError(f"Cannot open output file {self.path}: {exc}") from exc
        try:
            self._write("[\n")
        except OSError as exc:
            self._file.close()
            raise StartupIoError(f"Cannot write to output file {self.path}: {exc}") from exc

    @property
    def count(self) -> int:
        """Number of elements written so far."""
        return self._count

    @property
    def finalized(self) -> bool:
        return self._finalized

    def _write(self, text: str) -> None:
        """Write ``text`` completely or not at all."""
        start = self._file.tell()
        view = memoryview(text.encode("utf-8"))
        try:
            while view:
                written = self._file.write(view)
                view = view[written or 0 :]
        except OSError:
            try:
                self._file.truncate(start)
                self._file.seek(start)
            except OSError as exc:
                logger.error("Could not roll back partial write to %s: %s", self.path, exc)
            raise

    def emit(self, result: CacheProbeResult) -> bool:
        """
        Append one result. Returns False when the document is already finalized.

        Raises SinkWriteError when the write fails; the failure is also kept on ``errors``.
        """
        payload = json.dumps(result.to_dict(), ensure_ascii=False)
        with self._lock:
            if self._finalized:
                logger.debug("Output already finalized; dropping result for %s", result.url)
                return False
            chunk = payload if self._first else f",\n{payload}"
            try:
                self._write(chunk)
            except OSError as exc:
                message = f"Failed to write result for {result.url} to {self.path}: {exc}"
                self.errors.append(message)
                raise SinkWriteError(message) from exc
            self._first = False
            self._count += 1
            return True

    def finalize(self) -> bool:
        """Write the closing bracket and close the file. Only the first call does anything."""
        with self._lock:
            if self._finalized:
                return False
            self._finalized = True
            try:
                self._write("\n]\n")
            except OSError as exc:
                message = f"Failed to write closing bracket to {self.path}: {exc}"
                self.errors.append(message)
                raise SinkWriteError(message) from exc
            finally:
                self._file.close()
            return True

    def __enter__(self) -> ResultSink:
        return self

    def __exit__(self, _exc_type, _exc, _tb) -> None:  # noqa: ANN001
        self.finalize()


__all__ = ["ResultSink"]
