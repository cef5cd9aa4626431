# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Stream-socket transport abstraction and the default TCP implementation."""

from __future__ import annotations

import logging
import select
import socket
import time
from contextlib import suppress
from typing import Protocol

from ..errors import ConnectError, ConnectionClosed, ReadTimeout, SendError, TransportError

logger = logging.getLogger(__name__)

RECV_SIZE = 64 * 1024
# upper bound for one receive_available call so a fast peer cannot stall a tick
MAX_READ_BYTES = 1024 * 1024


class Connection(Protocol):
    """A connected byte stream owned by exactly one request."""

    def send(self, data: bytes) -> None: ...

    def receive_line(self, timeout: float) -> str | None: ...

    def receive_available(self, timeout: float) -> bytes: ...

    def close(self) -> None: ...


class Transport(Protocol):
    """Creates connections."""

    def connect(self, host: str, port: int, timeout: float) -> Connection: ...


class SocketConnection:
    """Connection over a TCP socket, read with ``select`` so reads never block past their timeout."""

    def __init__(self, sock: socket.socket, send_timeout: float = 0.0):
        self._sock: socket.socket | None = sock
        # 0 waits indefinitely for the socket to become writable
        self._send_timeout = send_timeout
        self._buffer = bytearray()
        sock.setblocking(False)

    @property
    def closed(self) -> bool:
        return self._sock is None

    def _require_socket(self) -> socket.socket:
        if self._sock is None:
            raise TransportError("closed")
        return self._sock

    def send(self, data: bytes) -> None:
        sock = self._require_socket()
        view = memoryview(data)
        wait = self._send_timeout if self._send_timeout > 0 else None
        try:
            while view:
                _, writable, _ = select.select([], [sock], [], wait)
                if not writable:
                    raise SendError("timeout")
                try:
                    sent = sock.send(view)
                except BlockingIOError:
                    continue
                view = view[sent:]
        except OSError as exc:
            raise SendError(str(exc)) from exc

    def _fill(self, timeout: float) -> bool:
        """Wait up to ``timeout`` for readable bytes. Returns False on timeout, raises on EOF."""
        sock = self._require_socket()
        try:
            readable, _, _ = select.select([sock], [], [], max(timeout, 0.0))
            if not readable:
                return False
            data = sock.recv(RECV_SIZE)
        except BlockingIOError:
            return False
        except OSError as exc:
            raise TransportError(str(exc)) from exc
        if not data:
            raise ConnectionClosed()
        self._buffer.extend(data)
        return True

    def receive_line(self, timeout: float) -> str | None:
        """
        Return the next line without its line terminator.

        Returns None when no complete line arrives within ``timeout`` seconds or
        the peer closes the connection first.
        """
        deadline = time.monotonic() + max(timeout, 0.0)
        while True:
            newline = self._buffer.find(b"\n")
            if newline >= 0:
                line = bytes(self._buffer[:newline])
                del self._buffer[: newline + 1]
                return line.rstrip(b"\r").decode("latin-1")
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return None
            try:
                if not self._fill(remaining):
                    return None
            except ConnectionClosed:
                return None

    def receive_available(self, timeout: float) -> bytes:
        """
        Return whatever bytes are available now, waiting at most ``timeout`` seconds for the first.

        Raises ReadTimeout when nothing arrived and ConnectionClosed on EOF.
        """
        if not self._buffer:
            if not self._fill(timeout):
                raise ReadTimeout()
        while len(self._buffer) < MAX_READ_BYTES:
            try:
                if not self._fill(0.0):
                    break
            except ConnectionClosed:
                # hand out what we have; the next call reports the close
                break
        data = bytes(self._buffer)
        self._buffer.clear()
        return data

    def close(self) -> None:
        if self._sock is None:
            return
        with suppress(OSError):
            self._sock.close()
        self._sock = None


class SocketTransport:
    """Plain TCP transport. TLS is not supported."""

    def connect(self, host: str, port: int, timeout: float) -> SocketConnection:
        try:
            sock = socket.create_connection((host, port), timeout=timeout if timeout > 0 else None)
        except OSError as exc:
            raise ConnectError(str(exc) or exc.__class__.__name__) from exc
        logger.debug("Connected to %s:%s", host, port)
        return SocketConnection(sock, send_timeout=timeout)


def create_default_transport() -> Transport:
    """Factory for the default socket-backed transport."""
    return SocketTransport()


__all__ = [
    "Connection",
    "MAX_READ_BYTES",
    "SocketConnection",
    "SocketTransport",
    "Transport",
    "create_default_transport",
]
