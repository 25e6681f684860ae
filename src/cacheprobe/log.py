# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Logging helpers for cacheprobe."""

from __future__ import annotations

import logging
import os

DEFAULT_LOG_LEVEL = os.getenv("CACHEPROBE_LOG_LEVEL", "WARNING").upper()


def setup_logging(level: str | None = None, *, verbose: bool = False) -> None:
    """Configure standard logging for CLI/library use."""
    effective_level = "DEBUG" if verbose else (level or DEFAULT_LOG_LEVEL).upper()
    logging.basicConfig(
        level=getattr(logging, effective_level, logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
    )
    # httpx logs every request at INFO; keep that out of verbose probe output.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


__all__ = ["setup_logging"]
