# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
One HTTP/1.1 transaction driven by ticks.

``start()`` connects, sends the request and reads the response header
synchronously, each step bounded by a timeout. The body is then read one slice
per tick by ``step()``, called from the RequestPool, until the framing says it
is complete. On completion the connection is released, the body is decoded
for the configured data type and the handler is notified.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from contextlib import suppress
from typing import TYPE_CHECKING, Any

from ..config import RequestSettings
from ..errors import (
    ChunkedEncodingError,
    ConnectError,
    ConnectionClosed,
    ParserError,
    ReadTimeout,
    SendError,
    TextStatus,
    TickHttpError,
    TransportError,
    categorize_exception,
)
from ..utils.context import get_pool, get_request_settings, get_transport
from .chunked import ChunkState, decode_chunked
from .decoders import DataType, decode_content
from .handlers import CallbackHandler, RequestHandler
from .headers import build_request_head, read_response_header, set_header
from .models import RequestState, ResponseHeader
from .retry import ReadRetryTracker, RetryConfig
from .url import UrlParts, build_query_string, split_url

if TYPE_CHECKING:
    from .pool import RequestPool
    from .transport import Connection, Transport

logger = logging.getLogger(__name__)

_KBYTE = 1024


class Request:
    """State machine and buffers for one HTTP transaction."""

    GET = "GET"
    POST = "POST"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"

    def __init__(
        self,
        settings: RequestSettings | None = None,
        *,
        transport: Transport | None = None,
        pool: RequestPool | None = None,
        handler: RequestHandler | None = None,
        clock: Callable[[], float] | None = None,
        **overrides: Any,
    ):
        self.settings = (settings or get_request_settings()).merge(**overrides)
        self.data_type = DataType.parse(self.settings.data_type)
        self.handler: RequestHandler = handler or CallbackHandler.from_settings(self.settings)
        self._transport = transport
        self._pool = pool

        self.connection: Connection | None = None
        self.header_map: dict[str, str] = {}
        self.response: ResponseHeader | None = None
        self.content_length: int | None = None
        self.contents: list[bytes] = []
        self.length = 0
        self.text_status: TextStatus | None = None
        self.error: str | None = None
        self.data: Any = None
        self.state = RequestState.SETUP
        self.complete = False
        self.chunk_state = ChunkState()

        self._tracker = ReadRetryTracker(RetryConfig.from_settings(self.settings), clock)
        self._chunked = False
        self._until_close = False
        self._started = False
        self._notified = False

        self.query_string = build_query_string(self.settings.data, traditional=self.settings.traditional)
        self.body = b""
        self.url_parts: UrlParts | None = None
        self._url_error: str | None = None
        try:
            parts = split_url(self.settings.url)
        except ValueError as exc:
            self._url_error = str(exc)
            self.url = self.settings.url
        else:
            if self.settings.method == self.POST:
                self.body = self.query_string.encode("ascii")
            else:
                parts = parts.with_query(self.query_string)
            self.url_parts = parts
            self.url = parts.geturl()

    def __repr__(self) -> str:
        return f"<Request {self.settings.method} {self.url} state={self.state.value}>"

    @property
    def retries(self) -> int:
        return self._tracker.retries

    @property
    def status_code(self) -> int | None:
        return self.response.status_code if self.response is not None else None

    @property
    def chunked(self) -> bool:
        return self._chunked

    # -- setup -------------------------------------------------------------

    def start(self) -> Request:
        """
        Connect, send the request and read the response header.

        On success the request is added to its pool and read on later ticks. On
        failure the handler is notified immediately and the pool is never
        touched.
        """
        if self._started:
            raise RuntimeError("Request already started")
        self._started = True
        if self.complete:
            # cancelled before it started
            return self

        try:
            self._open()
        except (TickHttpError, OSError) as exc:
            self._fail(categorize_exception(exc), str(exc) or exc.__class__.__name__)
            return self

        self.state = RequestState.READING_BODY
        pool = self._pool if self._pool is not None else get_pool()
        self._pool = pool
        pool.add(self)
        return self

    def _open(self) -> None:
        parts = self.url_parts
        if parts is None:
            raise ConnectError(self._url_error or "Invalid URL")
        if parts.scheme != "http":
            raise ConnectError(f"Unsupported URL scheme: {parts.scheme}")

        transport = self._transport or get_transport()
        self.connection = transport.connect(parts.host, parts.port, self.settings.connect_timeout)

        set_header(self.header_map, "Host", parts.host_header)
        set_header(self.header_map, "Content-Type", self.settings.content_type)
        set_header(self.header_map, "Content-Length", len(self.body))
        set_header(self.header_map, "Connection", "keep-alive")
        set_header(self.header_map, "User-Agent", self.settings.user_agent)
        for name, value in self.settings.headers.items():
            set_header(self.header_map, name, value)

        try:
            head = build_request_head(self.settings.method, parts.target, self.header_map)
        except UnicodeEncodeError as exc:
            raise SendError(f"Header not encodable as latin-1: {exc.object[exc.start : exc.end]!r}") from exc
        logger.debug("Request head (%s):\n%s", self.url, head.decode("latin-1"))
        self.connection.send(head)
        if self.body:
            self.connection.send(self.body)
        self.state = RequestState.HEADERS_SENT

        self.response = read_response_header(self.connection, self.settings.header_timeout)
        logger.debug("Response header (%s): %s %s", self.url, self.response.status_line, self.response.fields)

        self.content_length = self.response.content_length
        if self.settings.method == self.HEAD or not self.response.has_body:
            self.content_length = 0
        elif self.response.chunked:
            self._chunked = True
        elif self.content_length is None:
            self._until_close = True

    # -- body --------------------------------------------------------------

    def step(self) -> bool:
        """
        Read and decode one slice of available body bytes.

        Returns True while more reads are needed. Never raises for transport or
        decoding failures: those complete the request through the error path.
        """
        if self.complete or self.state is not RequestState.READING_BODY:
            return False

        if self._tracker.deadline_exceeded():
            self._fail(TextStatus.TIMEOUT, "deadline exceeded")
            return False

        if self._body_complete():
            self._finish()
            return False

        if self.connection is None:
            self._fail(TextStatus.ERROR, "closed")
            return False
        try:
            fragment = self.connection.receive_available(self.settings.body_timeout)
        except ReadTimeout as exc:
            if self._tracker.record_timeout():
                self.text_status = TextStatus.TIMEOUT
                logger.warning(
                    "Read timeout (%s), %d/%d", self.url, self.retries, self._tracker.config.max_retries
                )
                return True
            self._fail(TextStatus.ERROR, str(exc))
            return False
        except ConnectionClosed as exc:
            if self._until_close:
                self._finish()
            else:
                self._fail(TextStatus.ERROR, str(exc))
            return False
        except (TransportError, OSError) as exc:
            self._fail(categorize_exception(exc), str(exc) or exc.__class__.__name__)
            return False

        try:
            self._consume(fragment)
        except ChunkedEncodingError as exc:
            self._fail(TextStatus.ERROR, str(exc))
            return False

        if self.text_status is TextStatus.TIMEOUT:
            # data arrived again
            self.text_status = None

        if self.length > 10 * _KBYTE:
            logger.debug("%d kbytes read (%s)", self.length // _KBYTE, self.url)
        else:
            logger.debug("%d bytes read (%s)", self.length, self.url)

        if self._body_complete():
            self._finish()
            return False
        return True

    def _consume(self, fragment: bytes) -> None:
        if not fragment:
            return
        if self._chunked:
            chunks, self.chunk_state = decode_chunked(fragment, self.chunk_state)
            for chunk in chunks:
                self.contents.append(chunk)
                self.length += len(chunk)
            return

        if self.content_length is not None:
            remaining = self.content_length - self.length
            if len(fragment) > remaining:
                logger.debug("Discarding %d bytes past Content-Length (%s)", len(fragment) - remaining, self.url)
                fragment = fragment[:remaining]
        self.contents.append(fragment)
        self.length += len(fragment)

    def _body_complete(self) -> bool:
        if self._chunked:
            return self.chunk_state.finished
        if self._until_close:
            return False
        return self.length >= (self.content_length or 0)

    # -- completion --------------------------------------------------------

    def cancel(self) -> bool:
        """
        Abort the request: release the connection, notify the handler with ABORT
        and leave the pool. Returns False if the request had already completed.
        """
        if self.complete:
            return False
        self._fail(TextStatus.ABORT, "cancelled")
        if self._pool is not None:
            self._pool.discard(self)
        return True

    def _release(self) -> None:
        connection, self.connection = self.connection, None
        if connection is None:
            return
        with suppress(TransportError, OSError):
            connection.close()

    def _fail(self, status: TextStatus, error: str) -> None:
        self.text_status = status
        self.error = error
        self.state = RequestState.FAILED
        if status is TextStatus.ABORT:
            logger.info("%s cancelled", self.url)
        else:
            logger.warning("%s failed: %s", self.url, error)
        self._notify()

    def _finish(self) -> None:
        self.state = RequestState.DECODING
        self._release()

        charset = self.response.charset if self.response is not None else "utf-8"
        try:
            if self.length > 0:
                data, parser_error = decode_content(self.contents, self.data_type, charset)
            else:
                data, parser_error = self._empty_value(), None
        except Exception as exc:  # noqa: BLE001
            logger.exception("Decoding failed for %s", self.url)
            data, parser_error = None, ParserError(str(exc) or exc.__class__.__name__)
        self.data = data

        status_code = self.status_code
        if parser_error is not None:
            self.text_status = categorize_exception(parser_error)
            self.error = str(parser_error)
            self.state = RequestState.FAILED
        elif status_code == 304:
            self.text_status = TextStatus.NOTMODIFIED
            self.state = RequestState.DONE
        elif self.settings.raise_for_status and status_code is not None and not 200 <= status_code < 300:
            self.text_status = TextStatus.ERROR
            self.error = f"HTTP {status_code}"
            self.state = RequestState.FAILED
        else:
            self.text_status = None
            self.state = RequestState.DONE

        logger.info("%s completed: %d bytes, status %s", self.url, self.length, status_code)
        self._notify()

    def _empty_value(self) -> Any:
        if self.data_type is DataType.RAW:
            return []
        if self.data_type in (DataType.JSON, DataType.XML):
            return None
        return ""

    def _notify(self) -> None:
        if self._notified:
            return
        self._notified = True
        self._release()
        self.complete = True

        if self.state is RequestState.FAILED:
            self._call(self.handler.on_error, self, self.text_status, self.error)
        else:
            self._call(self.handler.on_success, self.data, self.text_status, self)
        self._call(self.handler.on_complete, self, self.text_status)

    def _call(self, callback: Callable[..., Any], *args: Any) -> None:
        try:
            callback(*args)
        except Exception:  # noqa: BLE001
            logger.exception("Callback %s failed for %s", getattr(callback, "__name__", callback), self.url)


def send(
    url: str | None = None,
    settings: RequestSettings | None = None,
    *,
    transport: Transport | None = None,
    pool: RequestPool | None = None,
    handler: RequestHandler | None = None,
    **overrides: Any,
) -> Request:
    """Create and start a request using the ambient transport and pool when omitted."""
    request = Request(settings, transport=transport, pool=pool, handler=handler, url=url, **overrides)
    return request.start()


__all__ = ["Request", "send"]
