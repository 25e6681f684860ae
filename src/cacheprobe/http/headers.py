# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Header lookup utilities.

Configured header names are looked up on the response's own header container and recorded
under the name exactly as configured. httpx.Headers matches field names case-insensitively
(RFC 9110); a plain dict, as returned by stub clients, matches exactly.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping


def pick_headers(headers: Mapping[str, str] | None, names: Iterable[str]) -> dict[str, str]:
    """Return ``{name: value}`` for every configured name present in ``headers``."""
    if not headers:
        return {}
    found: dict[str, str] = {}
    for name in names:
        if not name or name in found:
            continue
        value = headers.get(name)
        if value is not None:
            found[name] = str(value)
    return found


__all__ = ["pick_headers"]
