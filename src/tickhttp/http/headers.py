# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Header codec.

Builds the request line and header block sent to the server and reads the
response header block back, one line at a time, with a bounded timeout.
HTTP header field names are case-insensitive (RFC 9110), so lookups go through
``header_value`` instead of plain dict access.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any

from ..errors import InvalidHeader, TransportError

if TYPE_CHECKING:
    from .models import ResponseHeader
    from .transport import Connection

logger = logging.getLogger(__name__)

_STATUS_LINE_RE = re.compile(r"^(?P<version>HTTP/\d+(?:\.\d+)?)\s+(?P<code>\d{3})(?:\s+(?P<reason>.*))?$")


def _coerce_headers_mapping(headers: Any) -> Mapping[object, object] | None:
    """
    Best-effort coercion of "dict-like" header containers into a Mapping.

    Accepts plain dicts, objects exposing ``.items()`` and iterables of pairs.
    """
    if not headers:
        return None
    if isinstance(headers, Mapping):
        return headers

    items = getattr(headers, "items", None)
    if callable(items):
        try:
            return dict(items())
        except (TypeError, ValueError):
            pass

    try:
        return dict(headers)
    except (TypeError, ValueError):
        return None


def header_value(headers: Mapping[object, object] | None, name: str, default: str = "") -> str:
    """
    Return a header value using case-insensitive key matching.

    Fast-paths common key casings before falling back to a full scan.
    """
    if not headers or not name:
        return default

    coerced = _coerce_headers_mapping(headers)
    if not coerced:
        return default

    lower = str(name).lower()
    for key in (name, lower, lower.title()):
        if key in coerced:
            value = coerced.get(key)
            return default if value is None else str(value).strip()

    for key, value in coerced.items():
        if key is None:
            continue
        if str(key).lower() == lower:
            return default if value is None else str(value).strip()

    return default


def set_header(header_map: dict[str, str], name: str, value: object) -> None:
    """Insert or override a header, keeping the position of an existing name."""
    lower = name.lower()
    for existing in header_map:
        if existing.lower() == lower:
            header_map[existing] = str(value)
            return
    header_map[name] = str(value)


def build_request_head(method: str, target: str, header_map: Mapping[str, str]) -> bytes:
    """Format the request line and header block, terminated by the mandatory empty line."""
    lines = [f"{method} {target} HTTP/1.1"]
    lines.extend(f"{name}: {value}" for name, value in header_map.items())
    return ("\r\n".join(lines) + "\r\n\r\n").encode("latin-1")


def read_header_lines(connection: Connection, timeout: float) -> list[str] | None:
    """
    Read the response header block line by line.

    Stops at the empty line ending the block, at EOF, or when a line does not
    arrive within ``timeout`` seconds. Returns None when nothing usable arrived:
    no terminator and no line collected.
    """
    lines: list[str] = []
    terminated = False
    while True:
        try:
            line = connection.receive_line(timeout)
        except TransportError as exc:
            logger.debug("Header read failed: %s", exc)
            break
        if line is None:
            # unexpected EOF or line timeout
            break
        if line == "":
            terminated = True
            break
        lines.append(line)

    if not lines and not terminated:
        return None
    return lines


def parse_header_lines(lines: Iterable[str] | None) -> ResponseHeader:
    """
    Split ``Name: Value`` lines into a ResponseHeader.

    Lines without a colon are kept under their 1-based line number; the first
    one that looks like a status line fills in version, status code and reason.
    """
    from .models import ResponseHeader

    if lines is None:
        raise InvalidHeader()

    header = ResponseHeader()
    for number, raw in enumerate(lines, start=1):
        line = raw.rstrip("\r\n")
        match = _STATUS_LINE_RE.match(line.strip())
        if match and header.status_line is None:
            header.status_line = line.strip()
            header.version = match.group("version")
            header.status_code = int(match.group("code"))
            header.reason = (match.group("reason") or "").strip()
            header.unparsed[number] = line
            continue
        name, sep, value = line.partition(":")
        if not sep or not name.strip():
            header.unparsed[number] = line
            continue
        name = name.strip()
        value = value.strip()
        existing = next((key for key in header.fields if key.lower() == name.lower()), None)
        if existing is None:
            header.fields[name] = value
        else:
            header.fields[existing] = f"{header.fields[existing]}, {value}"
    return header


def read_response_header(connection: Connection, timeout: float) -> ResponseHeader:
    """Read and parse the response header block, raising InvalidHeader on failure."""
    return parse_header_lines(read_header_lines(connection, timeout))


__all__ = [
    "build_request_head",
    "header_value",
    "parse_header_lines",
    "read_header_lines",
    "read_response_header",
    "set_header",
]
