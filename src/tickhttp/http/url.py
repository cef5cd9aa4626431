# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""URL helpers: splitting request URLs and serializing form data."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import httpx

DEFAULT_PORT = 80


@dataclass(frozen=True)
class UrlParts:
    scheme: str
    host: str
    port: int = DEFAULT_PORT
    path: str = "/"
    query: str = ""

    @property
    def target(self) -> str:
        """Origin-form request target: ``path[?query]``."""
        return f"{self.path}?{self.query}" if self.query else self.path

    @property
    def host_header(self) -> str:
        return self.host if self.port == DEFAULT_PORT else f"{self.host}:{self.port}"

    def with_query(self, query_string: str) -> UrlParts:
        """Append ``query_string`` to the existing query, joining with ``&``."""
        if not query_string:
            return self
        query = f"{self.query}&{query_string}" if self.query else query_string
        return UrlParts(self.scheme, self.host, self.port, self.path, query)

    def geturl(self) -> str:
        return f"{self.scheme}://{self.host_header}{self.target}"


def split_url(url: str) -> UrlParts:
    """
    Split a request URL into host, port, path and query.

    A URL without a scheme is treated as ``http://``. Raises ValueError for a
    URL without a host.
    """
    raw = str(url or "").strip()
    if raw and "://" not in raw:
        raw = f"http://{raw}"
    try:
        parsed = httpx.URL(raw)
    except httpx.InvalidURL as exc:
        raise ValueError(f"Invalid URL {url!r}: {exc}") from exc
    if not parsed.host:
        raise ValueError(f"Invalid URL {url!r}: missing host")

    raw_path = parsed.raw_path.decode("ascii")
    path, _, query = raw_path.partition("?")
    return UrlParts(
        scheme=parsed.scheme or "http",
        host=parsed.host,
        port=parsed.port or DEFAULT_PORT,
        path=path or "/",
        query=query,
    )


def _param_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def build_query_string(data: Mapping[str, Any] | None, *, traditional: bool = False) -> str:
    """
    URL-encode form data.

    Sequence values repeat the key: ``a=1&a=2`` with ``traditional`` set,
    ``a[]=1&a[]=2`` otherwise. Spaces are encoded as ``+``.
    """
    if not data:
        return ""
    items: list[tuple[str, str]] = []
    for key, value in data.items():
        if isinstance(value, (list, tuple)):
            name = str(key) if traditional else f"{key}[]"
            items.extend((name, _param_value(item)) for item in value)
        else:
            items.append((str(key), _param_value(value)))
    return str(httpx.QueryParams(items))


__all__ = ["DEFAULT_PORT", "UrlParts", "build_query_string", "split_url"]
