# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""HTTP data models shared by the codec, the request state machine and the pool."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from ..errors import TextStatus
from .headers import header_value

Headers = dict[str, str]

# Responses that never carry a body regardless of their framing headers.
BODYLESS_STATUSES = frozenset({204, 304})


class RequestState(str, Enum):
    SETUP = "SETUP"
    HEADERS_SENT = "HEADERS_SENT"
    READING_BODY = "READING_BODY"
    DECODING = "DECODING"
    DONE = "DONE"
    FAILED = "FAILED"


@dataclass
class ResponseHeader:
    """Parsed response header block."""

    fields: Headers = field(default_factory=dict)
    unparsed: dict[int, str] = field(default_factory=dict)
    status_line: str | None = None
    version: str | None = None
    status_code: int | None = None
    reason: str | None = None

    def get(self, name: str, default: str = "") -> str:
        return header_value(self.fields, name, default)

    @property
    def content_length(self) -> int | None:
        raw = self.get("Content-Length")
        if not raw:
            return None
        try:
            value = int(raw)
        except ValueError:
            return None
        return value if value >= 0 else None

    @property
    def chunked(self) -> bool:
        encodings = [item.strip().lower() for item in self.get("Transfer-Encoding").split(",")]
        return "chunked" in encodings

    @property
    def charset(self) -> str:
        for param in self.get("Content-Type").split(";")[1:]:
            name, _, value = param.partition("=")
            if name.strip().lower() == "charset" and value.strip():
                return value.strip().strip('"')
        return "utf-8"

    @property
    def has_body(self) -> bool:
        if self.status_code is None:
            return True
        return not (100 <= self.status_code < 200 or self.status_code in BODYLESS_STATUSES)


__all__ = [
    "BODYLESS_STATUSES",
    "Headers",
    "RequestState",
    "ResponseHeader",
    "TextStatus",
]
