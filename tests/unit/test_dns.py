# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

import asyncio
import socket

import pytest

from cacheprobe.errors import DnsResolutionError
from cacheprobe.probe.dns import StubResolver, SystemResolver, extract_host, lookup_name


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("https://example.com/a/b", "example.com"),
        ("http://example.com", "example.com"),
        ("https://example.com:8443/", "example.com:8443"),
        ("example.com", ""),
        ("", ""),
    ],
)
def test_extract_host_takes_third_slash_token(url, expected):
    assert extract_host(url) == expected


@pytest.mark.parametrize(
    ("host", "expected"),
    [
        ("example.com", "example.com"),
        ("example.com:8080", "example.com"),
        ("user:pw@example.com:8080", "example.com"),
        ("[::1]:443", "::1"),
        ("", ""),
    ],
)
def test_lookup_name_strips_port_and_userinfo(host, expected):
    assert lookup_name(host) == expected


def test_system_resolver_rejects_empty_host():
    with pytest.raises(DnsResolutionError):
        asyncio.run(SystemResolver().resolve(""))


def test_system_resolver_maps_gaierror(monkeypatch):
    async def run():
        loop = asyncio.get_running_loop()
        calls = []

        async def fake_getaddrinfo(host, port, *args, **kwargs):
            calls.append(host)
            raise socket.gaierror(socket.EAI_NONAME, "Name or service not known")

        monkeypatch.setattr(loop, "getaddrinfo", fake_getaddrinfo)
        with pytest.raises(DnsResolutionError) as excinfo:
            await SystemResolver().resolve("nowhere.example:8080")
        return calls, excinfo.value

    calls, error = asyncio.run(run())
    assert calls == ["nowhere.example"]
    assert error.host == "nowhere.example:8080"


def test_system_resolver_lookup_timeout(monkeypatch):
    async def run():
        loop = asyncio.get_running_loop()

        async def slow_getaddrinfo(host, port, *args, **kwargs):
            await asyncio.sleep(1)

        monkeypatch.setattr(loop, "getaddrinfo", slow_getaddrinfo)
        await SystemResolver(timeout=0.01).resolve("slow.example")

    with pytest.raises(DnsResolutionError, match="timed out"):
        asyncio.run(run())


def test_system_resolver_success(monkeypatch):
    async def run():
        loop = asyncio.get_running_loop()

        async def fake_getaddrinfo(host, port, *args, **kwargs):
            return [(socket.AF_INET, socket.SOCK_STREAM, 6, "", ("192.0.2.1", 0))]

        monkeypatch.setattr(loop, "getaddrinfo", fake_getaddrinfo)
        return await SystemResolver().resolve("example.com")

    assert asyncio.run(run()) is None


def test_stub_resolver_records_lookups():
    resolver = StubResolver(failing={"bad.example"})

    async def run():
        await resolver.resolve("good.example")
        with pytest.raises(DnsResolutionError):
            await resolver.resolve("bad.example")
        with pytest.raises(DnsResolutionError):
            await resolver.resolve("")

    asyncio.run(run())
    assert resolver.lookups == ["good.example", "bad.example", ""]
