# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Error taxonomy and exception helpers."""

from __future__ import annotations

import socket
from enum import Enum


class TextStatus(str, Enum):
    """Outcome reported to callbacks. ``None`` stands for "pending or succeeded"."""

    TIMEOUT = "TIMEOUT"
    ERROR = "ERROR"
    NOTMODIFIED = "NOTMODIFIED"
    PARSERERROR = "PARSERERROR"
    ABORT = "ABORT"


class TickHttpError(Exception):
    """Base class for every error raised by tickhttp."""


class TransportError(TickHttpError):
    """The stream socket failed."""


class ConnectError(TransportError):
    """A connection to the remote host could not be created."""


class SendError(TransportError):
    """Writing the request head or body failed."""


class ReadTimeout(TransportError):
    """No bytes were available within the read timeout."""

    def __init__(self, message: str = "timeout"):
        super().__init__(message)


class ConnectionClosed(TransportError):
    """The peer closed the connection."""

    def __init__(self, message: str = "closed"):
        super().__init__(message)


class InvalidHeader(TickHttpError):
    """The response header block could not be read or parsed."""

    def __init__(self, message: str = "Invalid page header"):
        super().__init__(message)


class ChunkedEncodingError(TickHttpError):
    """A chunk-size line was not valid hexadecimal."""


class ParserError(TickHttpError):
    """A content decoder rejected the response body."""


def categorize_exception(exc: BaseException) -> TextStatus:
    """
    Map transport/decoder exceptions to the status handed to callbacks.
    """
    if isinstance(exc, ParserError):
        return TextStatus.PARSERERROR
    if isinstance(exc, (ReadTimeout, socket.timeout, TimeoutError)):
        return TextStatus.TIMEOUT
    return TextStatus.ERROR


def status_to_reason(status: TextStatus | None) -> str:
    """User-facing reason string."""
    mapping = {
        TextStatus.TIMEOUT: "Read timed out",
        TextStatus.ERROR: "Request failed",
        TextStatus.NOTMODIFIED: "Not modified",
        TextStatus.PARSERERROR: "Response body could not be decoded",
        TextStatus.ABORT: "Request cancelled",
        None: "",
    }
    return mapping.get(status, "Request failed")


__all__ = [
    "ChunkedEncodingError",
    "ConnectError",
    "ConnectionClosed",
    "InvalidHeader",
    "ParserError",
    "ReadTimeout",
    "SendError",
    "TextStatus",
    "TickHttpError",
    "TransportError",
    "categorize_exception",
    "status_to_reason",
]
