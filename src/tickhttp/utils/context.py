# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Ambient client context.

A ContextVar-backed ClientContext carries the request defaults, the transport
and the pool. Helpers read from it when explicit arguments are omitted.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any

from ..config import RequestSettings, load_request_settings

if TYPE_CHECKING:
    from ..http.pool import RequestPool
    from ..http.transport import Transport


@dataclass(frozen=True)
class ClientContext:
    settings: RequestSettings | None = None
    transport: Transport | None = None
    pool: RequestPool | None = None


_current_client_context: ContextVar[ClientContext | None] = ContextVar("tickhttp_client_context", default=None)


def get_client_context() -> ClientContext:
    """Return the current ambient client context."""
    return _current_client_context.get() or ClientContext()


def get_request_settings() -> RequestSettings:
    """Return request defaults from context, falling back to the environment."""
    context = get_client_context()
    if context.settings is not None:
        return context.settings
    return load_request_settings()


def get_transport() -> Transport:
    """Return the ambient transport, or a new socket transport."""
    context = get_client_context()
    if context.transport is not None:
        return context.transport
    from ..http.transport import create_default_transport

    return create_default_transport()


def get_pool() -> RequestPool:
    """Return the ambient pool, or the process-wide default pool."""
    context = get_client_context()
    if context.pool is not None:
        return context.pool
    from ..http.pool import default_pool

    return default_pool()


@contextmanager
def client_context(**overrides: Any) -> Iterator[ClientContext]:
    """
    Context manager that layers overrides onto the ambient ClientContext.

    None-valued overrides are ignored to preserve outer context values.
    """
    current = get_client_context()
    filtered = {key: value for key, value in overrides.items() if value is not None}
    new_context = replace(current, **filtered) if filtered else current
    token = _current_client_context.set(new_context)
    try:
        yield new_context
    finally:
        _current_client_context.reset(token)


__all__ = [
    "ClientContext",
    "client_context",
    "get_client_context",
    "get_pool",
    "get_request_settings",
    "get_transport",
]
