# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Run orchestration: bounded scheduling and shutdown handling."""

from .scheduler import Scheduler
from .shutdown import ShutdownCoordinator, ShutdownState

__all__ = ["Scheduler", "ShutdownCoordinator", "ShutdownState"]
