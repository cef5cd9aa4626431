# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
tickhttp package entrypoint.

A non-blocking HTTP/1.1 client over plain stream sockets. Requests are driven
by periodic ticks from a host event loop instead of threads or blocking reads:
each tick reads whatever bytes are available, decodes content-length or
chunked bodies incrementally and, on completion, hands the decoded body to
success/error/complete callbacks.
"""

from .config import RequestSettings, load_request_settings
from .errors import (
    ChunkedEncodingError,
    ConnectError,
    ConnectionClosed,
    InvalidHeader,
    ParserError,
    ReadTimeout,
    SendError,
    TextStatus,
    TickHttpError,
    TransportError,
)
from .http import (
    CallbackHandler,
    DataType,
    ManualTickSource,
    Request,
    RequestHandler,
    RequestPool,
    RequestState,
    ScriptedConnection,
    ScriptedTransport,
    SocketTransport,
    send,
)
from .log import setup_logging
from .runtime import TickHttp
from .utils.context import client_context
from .version import __version__

__all__ = [
    "CallbackHandler",
    "ChunkedEncodingError",
    "ConnectError",
    "ConnectionClosed",
    "DataType",
    "InvalidHeader",
    "ManualTickSource",
    "ParserError",
    "ReadTimeout",
    "Request",
    "RequestHandler",
    "RequestPool",
    "RequestSettings",
    "RequestState",
    "ScriptedConnection",
    "ScriptedTransport",
    "SendError",
    "SocketTransport",
    "TextStatus",
    "TickHttp",
    "TickHttpError",
    "TransportError",
    "client_context",
    "load_request_settings",
    "send",
    "setup_logging",
    "__version__",
]
