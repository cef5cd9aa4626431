# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Deterministic, programmable transport for tests and dry runs."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable

from ..errors import ConnectError, ReadTimeout, SendError, TransportError


class ScriptedConnection:
    """
    Replays scripted header lines and body reads.

    ``reads`` items are returned by ``receive_available`` in order; an
    exception instance in the script is raised instead. Once the script is
    exhausted every read raises ``ReadTimeout``.
    """

    def __init__(
        self,
        lines: Iterable[str] = (),
        reads: Iterable[bytes | Exception] = (),
        *,
        send_error: str | None = None,
    ):
        self._lines = deque(lines)
        self._reads = deque(reads)
        self._send_error = send_error
        self.sent: list[bytes] = []
        self.read_timeouts: list[float] = []
        self.close_calls = 0

    @classmethod
    def from_response(
        cls,
        raw: bytes,
        *,
        fragments: Iterable[bytes | Exception] | None = None,
        send_error: str | None = None,
    ) -> ScriptedConnection:
        """
        Script a raw HTTP response.

        The header block becomes the line script; the body becomes a single read
        unless ``fragments`` gives the reads explicitly.
        """
        head, sep, body = raw.partition(b"\r\n\r\n")
        lines = head.decode("latin-1").split("\r\n") if head else []
        if sep:
            lines.append("")
        reads: list[bytes | Exception]
        if fragments is not None:
            reads = list(fragments)
        else:
            reads = [body] if body else []
        return cls(lines, reads, send_error=send_error)

    @property
    def closed(self) -> bool:
        return self.close_calls > 0

    @property
    def sent_bytes(self) -> bytes:
        return b"".join(self.sent)

    def send(self, data: bytes) -> None:
        if self.closed:
            raise SendError("closed")
        if self._send_error is not None:
            raise SendError(self._send_error)
        self.sent.append(bytes(data))

    def receive_line(self, timeout: float) -> str | None:  # noqa: ARG002
        if not self._lines:
            return None
        return self._lines.popleft()

    def receive_available(self, timeout: float) -> bytes:
        if self.closed:
            raise TransportError("closed")
        self.read_timeouts.append(timeout)
        if not self._reads:
            raise ReadTimeout()
        item = self._reads.popleft()
        if isinstance(item, Exception):
            raise item
        return item

    def close(self) -> None:
        self.close_calls += 1


class ScriptedTransport:
    """Hands out scripted connections in order and records every connect call."""

    def __init__(
        self,
        connections: ScriptedConnection | Iterable[ScriptedConnection] = (),
        *,
        connect_error: str | None = None,
    ):
        if isinstance(connections, ScriptedConnection):
            connections = [connections]
        self._connections = deque(connections)
        self._connect_error = connect_error
        self.connects: list[tuple[str, int, float]] = []

    def add(self, connection: ScriptedConnection) -> None:
        self._connections.append(connection)

    def connect(self, host: str, port: int, timeout: float) -> ScriptedConnection:
        self.connects.append((host, port, timeout))
        if self._connect_error is not None:
            raise ConnectError(self._connect_error)
        if not self._connections:
            raise ConnectError("No scripted connection configured")
        return self._connections.popleft()


__all__ = ["ScriptedConnection", "ScriptedTransport"]
