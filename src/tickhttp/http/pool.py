# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Request pool and host tick sources."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterator
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from ..config import RequestSettings
    from .handlers import RequestHandler
    from .request import Request
    from .transport import Transport

logger = logging.getLogger(__name__)

Listener = Callable[[], Any]


class TickSource(Protocol):
    """Host notification invoked periodically, e.g. from an idle handler."""

    def add_listener(self, listener: Listener) -> None: ...

    def remove_listener(self, listener: Listener) -> None: ...


class ManualTickSource:
    """Tick source driven by explicit ``tick()`` calls from the host loop."""

    def __init__(self) -> None:
        self._listeners: list[Listener] = []

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def has_listener(self, listener: Listener) -> bool:
        return listener in self._listeners

    def add_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            raise ValueError("Listener already registered")
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener not in self._listeners:
            raise ValueError("Listener not registered")
        self._listeners.remove(listener)

    def tick(self) -> None:
        for listener in list(self._listeners):
            listener()

    def run(
        self,
        until: Callable[[], bool] | None = None,
        *,
        interval: float = 0.01,
        max_ticks: int | None = None,
    ) -> int:
        """
        Tick in a loop for hosts without their own event loop.

        Stops when ``until()`` returns True, or, without ``until``, once no
        listener is left. Returns the number of ticks run.
        """
        ticks = 0
        while True:
            if until is not None:
                if until():
                    break
            elif not self._listeners:
                break
            if max_ticks is not None and ticks >= max_ticks:
                break
            self.tick()
            ticks += 1
            if interval > 0:
                time.sleep(interval)
        return ticks


class RequestPool:
    """
    In-flight requests, advanced by one body read per tick.

    The pool listens to its tick source only while it holds requests.
    """

    def __init__(self, tick_source: TickSource | None = None):
        self.tick_source: TickSource = tick_source or ManualTickSource()
        self._requests: list[Request] = []
        self._subscribed = False

    def __len__(self) -> int:
        return len(self._requests)

    def __contains__(self, request: object) -> bool:
        return any(item is request for item in self._requests)

    def __iter__(self) -> Iterator[Request]:
        return iter(list(self._requests))

    @property
    def is_subscribed(self) -> bool:
        return self._subscribed

    def add(self, request: Request) -> None:
        if request.complete or request in self:
            return
        self._requests.append(request)
        if not self._subscribed:
            self.tick_source.add_listener(self.tick)
            self._subscribed = True
            logger.debug("Request pool attached to tick source")

    def discard(self, request: Request) -> None:
        for index, item in enumerate(self._requests):
            if item is request:
                del self._requests[index]
                logger.debug("Request complete, removed from pool: %s", request.url)
                break
        if not self._requests and self._subscribed:
            self.tick_source.remove_listener(self.tick)
            self._subscribed = False
            logger.debug("Request pool detached from tick source")

    def tick(self) -> None:
        """Give every live request one read step, then evict the completed ones."""
        for request in list(self._requests):
            if request not in self:
                # evicted earlier in this tick, e.g. cancelled from a callback
                continue
            if not request.complete:
                request.step()
            if request.complete:
                self.discard(request)

    def submit(
        self,
        settings: RequestSettings | None = None,
        *,
        transport: Transport | None = None,
        handler: RequestHandler | None = None,
        **overrides: Any,
    ) -> Request:
        """Create a request bound to this pool and start it."""
        from .request import Request

        request = Request(settings, transport=transport, pool=self, handler=handler, **overrides)
        return request.start()

    def cancel_all(self) -> int:
        """Cancel every in-flight request. Returns how many were cancelled."""
        cancelled = 0
        for request in list(self._requests):
            if request.cancel():
                cancelled += 1
            self.discard(request)
        return cancelled


_default_pool: RequestPool | None = None


def default_pool() -> RequestPool:
    """Return the process-wide pool, creating it with a ManualTickSource on first use."""
    global _default_pool
    if _default_pool is None:
        _default_pool = RequestPool(ManualTickSource())
    return _default_pool


__all__ = ["Listener", "ManualTickSource", "RequestPool", "TickSource", "default_pool"]
