# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""HTTP engine exports."""

from .adapters import ScriptedConnection, ScriptedTransport
from .chunked import ChunkPhase, ChunkState, decode_chunked
from .decoders import DataType, decode_content, register_decoder
from .handlers import CallbackHandler, RequestHandler
from .headers import (
    build_request_head,
    header_value,
    parse_header_lines,
    read_response_header,
)
from .models import Headers, RequestState, ResponseHeader, TextStatus
from .pool import ManualTickSource, RequestPool, TickSource, default_pool
from .request import Request, send
from .retry import ReadRetryTracker, RetryConfig
from .transport import Connection, SocketTransport, Transport, create_default_transport
from .url import UrlParts, build_query_string, split_url

__all__ = [
    "CallbackHandler",
    "ChunkPhase",
    "ChunkState",
    "Connection",
    "DataType",
    "Headers",
    "ManualTickSource",
    "ReadRetryTracker",
    "Request",
    "RequestHandler",
    "RequestPool",
    "RequestState",
    "ResponseHeader",
    "RetryConfig",
    "ScriptedConnection",
    "ScriptedTransport",
    "SocketTransport",
    "TextStatus",
    "TickSource",
    "Transport",
    "UrlParts",
    "build_query_string",
    "build_request_head",
    "create_default_transport",
    "decode_chunked",
    "decode_content",
    "default_pool",
    "header_value",
    "parse_header_lines",
    "read_response_header",
    "register_decoder",
    "send",
    "split_url",
]
