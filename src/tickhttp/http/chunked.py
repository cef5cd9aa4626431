# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Incremental decoder for ``Transfer-Encoding: chunked`` bodies.

The body arrives in fragments of arbitrary size, one per tick. Each fragment is
fed to ``decode_chunked`` together with the state returned by the previous
call; the function returns the chunk payloads completed by this fragment and
the new state. A size line, a payload or the CRLF that follows a payload may
all be split across fragments.

Example stream::

    4\\r\\nWiki\\r\\n5\\r\\npedia\\r\\n0\\r\\n\\r\\n
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from enum import Enum

from ..errors import ChunkedEncodingError

_HEX_RE = re.compile(rb"^[0-9A-Fa-f]+$")


class ChunkPhase(str, Enum):
    SIZE = "SIZE"
    DATA = "DATA"
    DATA_END = "DATA_END"
    DONE = "DONE"


@dataclass(frozen=True)
class ChunkState:
    phase: ChunkPhase = ChunkPhase.SIZE
    # partial size line carried over from the previous fragment
    line: bytes = b""
    chunk_size: int = 0
    chunk_remaining: int = 0
    # partial payload of the open chunk
    chunk: bytes = b""

    @property
    def finished(self) -> bool:
        return self.phase is ChunkPhase.DONE


def _strip_control(raw: bytes) -> bytes:
    return bytes(b for b in raw if 0x20 < b < 0x7F)


def parse_chunk_size(line: bytes) -> int:
    """Parse a chunk-size line, ignoring chunk extensions and control characters."""
    token = _strip_control(line.split(b";", 1)[0])
    if not _HEX_RE.match(token):
        raise ChunkedEncodingError(f"Invalid chunk size line: {line!r}")
    return int(token, 16)


def decode_chunked(fragment: bytes, state: ChunkState | None = None) -> tuple[list[bytes], ChunkState]:
    """
    Consume one fragment and return ``(completed_chunks, new_state)``.

    Once the terminal zero-size chunk has been read the state is finished and
    further bytes (trailers, the final CRLF) are ignored.
    """
    state = state or ChunkState()
    if state.finished:
        return [], state

    phase = state.phase
    line = state.line
    chunk_size = state.chunk_size
    remaining = state.chunk_remaining
    chunk = state.chunk

    chunks: list[bytes] = []
    data = bytes(fragment)
    pos = 0
    end = len(data)

    while pos < end and phase is not ChunkPhase.DONE:
        if phase is ChunkPhase.SIZE:
            newline = data.find(b"\n", pos)
            if newline < 0:
                line += data[pos:]
                pos = end
                break
            line += data[pos:newline]
            pos = newline + 1
            if not _strip_control(line):
                # stray empty line between chunks
                line = b""
                continue
            chunk_size = parse_chunk_size(line)
            line = b""
            remaining = chunk_size
            phase = ChunkPhase.DONE if chunk_size == 0 else ChunkPhase.DATA

        elif phase is ChunkPhase.DATA:
            available = end - pos
            if available >= remaining:
                chunk += data[pos : pos + remaining]
                pos += remaining
                chunks.append(chunk)
                chunk = b""
                remaining = 0
                phase = ChunkPhase.DATA_END
            else:
                chunk += data[pos:]
                remaining -= available
                pos = end

        else:
            newline = data.find(b"\n", pos)
            tail = data[pos:] if newline < 0 else data[pos:newline]
            if _strip_control(tail):
                raise ChunkedEncodingError("Missing CRLF after chunk data")
            if newline < 0:
                pos = end
            else:
                pos = newline + 1
                phase = ChunkPhase.SIZE

    new_state = replace(
        state,
        phase=phase,
        line=line,
        chunk_size=chunk_size,
        chunk_remaining=remaining,
        chunk=chunk,
    )
    return chunks, new_state


__all__ = ["ChunkPhase", "ChunkState", "decode_chunked", "parse_chunk_size"]
