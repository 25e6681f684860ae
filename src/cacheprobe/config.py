# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Configuration helpers for cacheprobe."""

from __future__ import annotations

import json
import os
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

from .errors import ConfigError
from .version import __version__

DEFAULT_USER_AGENT = f"cacheprobe/{__version__}"

DEFAULT_CACHE_HEADERS: tuple[str, ...] = (
    "Cache-Control",
    "Expires",
    "ETag",
    "Last-Modified",
    "Age",
    "Pragma",
    "Vary",
    "Server-Timing",
    "CF-Cache-Status",
    "CF-Ray",
    "X-Cache",
    "X-Cache-Lookup",
    "X-Varnish",
    "X-Cache-Remote",
)

SUPPORTED_METHODS = ("GET", "POST")


def _float_env(name: str, default: float) -> float:
    try:
        value = os.getenv(name)
        return float(value) if value is not None else default
    except ValueError:
        return default


def _int_env(name: str, default: int) -> int:
    try:
        value = os.getenv(name)
        return int(value) if value is not None else default
    except ValueError:
        return default


def _bool_env(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class HttpSettings:
    """HTTP client and retry timing defaults."""

    user_agent: str = DEFAULT_USER_AGENT
    allow_redirects: bool = True
    verify_ssl: bool = True
    max_body_bytes: int = 16 * 1024 * 1024
    dns_timeout: float = 5.0
    dns_initial_backoff: float = 0.5
    jitter_min: float = 1.0
    jitter_max: float = 5.0

    @classmethod
    def from_env(cls) -> HttpSettings:
        """Create settings from environment variables (evaluated at call time)."""
        max_body_bytes = _int_env("CACHEPROBE_HTTP_MAX_BODY_BYTES", cls.max_body_bytes)
        if max_body_bytes <= 0:
            max_body_bytes = cls.max_body_bytes
        jitter_min = _float_env("CACHEPROBE_JITTER_MIN", cls.jitter_min)
        jitter_max = _float_env("CACHEPROBE_JITTER_MAX", cls.jitter_max)
        if jitter_min < 0 or jitter_max < jitter_min:
            jitter_min, jitter_max = cls.jitter_min, cls.jitter_max
        return cls(
            user_agent=os.getenv("CACHEPROBE_USER_AGENT", cls.user_agent),
            allow_redirects=_bool_env("CACHEPROBE_HTTP_REDIRECTS", cls.allow_redirects),
            verify_ssl=_bool_env("CACHEPROBE_HTTP_VERIFY_SSL", cls.verify_ssl),
            max_body_bytes=max_body_bytes,
            dns_timeout=_float_env("CACHEPROBE_DNS_TIMEOUT", cls.dns_timeout),
            dns_initial_backoff=_float_env("CACHEPROBE_DNS_BACKOFF", cls.dns_initial_backoff),
            jitter_min=jitter_min,
            jitter_max=jitter_max,
        )


def load_http_settings() -> HttpSettings:
    """Load HTTP settings from environment with sensible defaults."""
    return HttpSettings.from_env()


def normalize_url(url: str, force_http: bool = False) -> str:
    """
    Add or rewrite the scheme of a target URL.

    Bare hosts get ``https://`` (``http://`` with force_http). Already-prefixed URLs are
    only touched when force_http is set, in which case ``https://`` becomes ``http://``.
    """
    if url.startswith("http://") or url.startswith("https://"):
        if force_http:
            return url.replace("https://", "http://", 1)
        return url
    if force_http:
        return f"http://{url}"
    return f"https://{url}"


@dataclass
class ProbeConfig:
    """Validated run configuration."""

    urls: list[str]
    output: str
    method: str = "GET"
    timeout: float = 20
    retries: int = 3
    verbose: bool = False
    force_http: bool = False
    concurrency: int = 10
    headers: list[str] = field(default_factory=lambda: list(DEFAULT_CACHE_HEADERS))
    graceful_shutdown: bool = False

    def validate(self) -> ProbeConfig:
        if not self.urls:
            raise ConfigError("No URLs to probe")
        if not self.output:
            raise ConfigError("Output path is required")
        if self.concurrency < 1:
            raise ConfigError(f"Concurrency must be at least 1, got {self.concurrency}")
        if self.retries < 0:
            raise ConfigError(f"Retries cannot be negative, got {self.retries}")
        if self.timeout <= 0:
            raise ConfigError(f"Timeout must be positive, got {self.timeout}")
        return self

    def normalize_url(self, url: str) -> str:
        return normalize_url(url, self.force_http)

    def normalized_urls(self) -> list[str]:
        return [self.normalize_url(url) for url in self.urls]


def read_urls(path: str | os.PathLike[str]) -> list[str]:
    """
    Load target URLs from a file.

    ``.json`` files must contain ``{"urls": [...]}``; anything else is read as one URL per
    line with blank lines skipped.
    """
    file_path = Path(path)
    try:
        raw = file_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read URL list {file_path}: {exc}") from exc

    if file_path.suffix.lower() == ".json":
        try:
            data = json.loads(raw)
        except ValueError as exc:
            raise ConfigError(f"Invalid JSON in {file_path}: {exc}") from exc
        urls = data.get("urls") if isinstance(data, dict) else None
        if not isinstance(urls, list):
            raise ConfigError(f"{file_path} must contain an object with a 'urls' list")
        return [str(url).strip() for url in urls if str(url).strip()]

    return [line.strip() for line in raw.splitlines() if line.strip()]


def read_header_names(arg: str | None) -> list[str]:
    """
    Resolve the header names to look for.

    ``None`` selects the defaults; a path to an existing file is read one header per line;
    anything else is treated as a comma-separated list.
    """
    if arg is None:
        return list(DEFAULT_CACHE_HEADERS)

    path = Path(arg)
    if path.is_file():
        try:
            lines: Sequence[str] = path.read_text(encoding="utf-8").splitlines()
        except OSError as exc:
            raise ConfigError(f"Cannot read header list {path}: {exc}") from exc
    else:
        lines = arg.split(",")

    names = [name.strip() for name in lines if name.strip()]
    if not names:
        raise ConfigError("Header list is empty")
    return names


__all__ = [
    "DEFAULT_CACHE_HEADERS",
    "DEFAULT_USER_AGENT",
    "HttpSettings",
    "ProbeConfig",
    "SUPPORTED_METHODS",
    "load_http_settings",
    "normalize_url",
    "read_header_names",
    "read_urls",
]
