# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""HTTP request/response data models used by the prober."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from ..errors import ErrorCategory

Headers = Mapping[str, str]


@dataclass
class HttpRequest:
    """Normalized request representation consumed by HttpClient implementations."""

    url: str
    method: str = "GET"
    headers: dict[str, str] | None = None
    timeout: float | None = None
    allow_redirects: bool = True


@dataclass
class HttpResponse:
    """
    Normalized HTTP response.

    ``ok`` is False only for transport-level failures (no response at all); an HTTP error
    status still counts as a received response. ``headers`` keeps whatever mapping the
    client produced, so header lookups follow that container's matching rules.
    """

    ok: bool
    status_code: int | None = None
    headers: Headers = field(default_factory=dict)
    text: str = ""
    url: str | None = None
    error_message: str | None = None
    error_category: ErrorCategory | None = None
    body_error: str | None = None
    meta: dict[str, Any] = field(default_factory=dict)

    @property
    def timed_out(self) -> bool:
        return not self.ok and self.error_category == ErrorCategory.TIMEOUT
