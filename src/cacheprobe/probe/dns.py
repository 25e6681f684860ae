# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""DNS preflight run before every HTTP attempt."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from typing import Protocol

from ..errors import DnsResolutionError


def extract_host(url: str) -> str:
    """
    Return the authority token of ``scheme://host/...`` (the third ``/``-separated field).

    Malformed URLs yield an empty string, which then fails resolution.
    """
    parts = url.split("/")
    return parts[2] if len(parts) > 2 else ""


def lookup_name(host: str) -> str:
    """Strip userinfo, port and IPv6 brackets from an authority token."""
    name = host.rpartition("@")[2]
    if name.startswith("["):
        return name[1:].partition("]")[0]
    if name.count(":") == 1:
        name = name.partition(":")[0]
    return name


class Resolver(Protocol):
    async def resolve(self, host: str) -> None: ...


class SystemResolver:
    """Resolve through the platform resolver via the event loop's getaddrinfo."""

    def __init__(self, timeout: float | None = 5.0):
        self.timeout = timeout

    async def resolve(self, host: str) -> None:
        name = lookup_name(host)
        if not name:
            raise DnsResolutionError(host, "empty host")
        loop = asyncio.get_running_loop()
        try:
            await asyncio.wait_for(loop.getaddrinfo(name, None), self.timeout)
        except asyncio.TimeoutError as exc:
            raise DnsResolutionError(host, f"lookup timed out after {self.timeout}s") from exc
        except (OSError, UnicodeError) as exc:
            raise DnsResolutionError(host, str(exc)) from exc


class StubResolver:
    """Resolver with a fixed set of failing hosts; records every lookup."""

    def __init__(self, failing: Iterable[str] = (), *, fail_all: bool = False):
        self.failing = set(failing)
        self.fail_all = fail_all
        self.lookups: list[str] = []

    async def resolve(self, host: str) -> None:
        self.lookups.append(host)
        if self.fail_all or not host or host in self.failing:
            raise DnsResolutionError(host, "name or service not known")


__all__ = ["Resolver", "StubResolver", "SystemResolver", "extract_host", "lookup_name"]
