# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Error taxonomy and exception helpers."""

from __future__ import annotations

import socket
import ssl
from enum import Enum

import httpx


class ErrorCategory(str, Enum):
    TIMEOUT = "TIMEOUT"
    SSL_ERROR = "SSL_ERROR"
    CONNECTION_ERROR = "CONNECTION_ERROR"
    DNS_ERROR = "DNS_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


class CacheProbeError(Exception):
    """Base class for cacheprobe errors."""


class ConfigError(CacheProbeError):
    """Invalid configuration or unreadable input file."""


class DnsResolutionError(CacheProbeError):
    """Host lookup failed; retried with doubling backoff."""

    def __init__(self, host: str, reason: str = ""):
        self.host = host
        self.reason = reason
        super().__init__(f"DNS resolution failed for {host!r}" + (f": {reason}" if reason else ""))


class TransportError(CacheProbeError):
    """The HTTP request failed before a response arrived; retried with jitter."""

    def __init__(self, message: str, category: ErrorCategory = ErrorCategory.UNKNOWN_ERROR):
        self.category = category
        super().__init__(message)


class RequestTimeout(TransportError):
    """The HTTP request did not complete within the per-attempt timeout."""

    def __init__(self, message: str):
        super().__init__(message, ErrorCategory.TIMEOUT)


class RetriesExhausted(CacheProbeError):
    """Every attempt for one URL failed."""

    def __init__(self, url: str, attempts: int, last_error: BaseException | None = None):
        self.url = url
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"{url}: gave up after {attempts} attempt(s): {last_error}")


class SinkWriteError(CacheProbeError):
    """Writing to the output document failed."""


class StartupIoError(CacheProbeError):
    """The output document could not be opened."""


def categorize_exception(exc: BaseException) -> ErrorCategory:
    """
    Map Python/httpx exceptions to ErrorCategory.
    """
    if isinstance(exc, (httpx.TimeoutException, TimeoutError)):
        return ErrorCategory.TIMEOUT

    if isinstance(exc, DnsResolutionError):
        return ErrorCategory.DNS_ERROR

    if isinstance(exc, TransportError):
        return exc.category

    # httpx wraps TLS failures in ConnectError; look at the cause first.
    cause = exc.__cause__ or exc.__context__
    if isinstance(exc, (ssl.SSLError, ssl.CertificateError)) or isinstance(cause, ssl.SSLError):
        return ErrorCategory.SSL_ERROR

    if isinstance(exc, (socket.gaierror, socket.herror)):
        return ErrorCategory.DNS_ERROR

    if isinstance(
        exc, (httpx.ConnectError, httpx.RemoteProtocolError, httpx.NetworkError, httpx.ProxyError)
    ):
        return ErrorCategory.CONNECTION_ERROR

    if isinstance(exc, (ConnectionError, ConnectionRefusedError, ConnectionResetError)):
        return ErrorCategory.CONNECTION_ERROR

    return ErrorCategory.UNKNOWN_ERROR


__all__ = [
    "CacheProbeError",
    "ConfigError",
    "DnsResolutionError",
    "ErrorCategory",
    "RequestTimeout",
    "RetriesExhausted",
    "SinkWriteError",
    "StartupIoError",
    "TransportError",
    "categorize_exception",
]
