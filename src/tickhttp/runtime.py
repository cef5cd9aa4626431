# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""High-level tickhttp facade."""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any

from .config import RequestSettings, load_request_settings
from .http.handlers import RequestHandler
from .http.pool import ManualTickSource, RequestPool, TickSource
from .http.request import Request
from .http.transport import Transport, create_default_transport
from .utils.context import client_context


class TickHttp:
    """
    Convenience wrapper that wires request defaults, a transport and a pool.

    Hosts with their own idle loop pass their tick source; otherwise a
    ManualTickSource is created and driven with ``tick()`` or ``run()``.
    """

    def __init__(
        self,
        settings: RequestSettings | None = None,
        *,
        transport: Transport | None = None,
        tick_source: TickSource | None = None,
    ):
        self.settings = settings or load_request_settings()
        self.transport = transport or create_default_transport()
        self.tick_source = tick_source or ManualTickSource()
        self.pool = RequestPool(self.tick_source)

    def setup(self, **defaults: Any) -> RequestSettings:
        """Replace the defaults used by later requests; in-flight requests keep their copy."""
        self.settings = self.settings.merge(**defaults)
        return self.settings

    def request(self, url: str | None = None, *, handler: RequestHandler | None = None, **overrides: Any) -> Request:
        with client_context(settings=self.settings, transport=self.transport, pool=self.pool):
            return self.pool.submit(self.settings, transport=self.transport, handler=handler, url=url, **overrides)

    def get(self, url: str, **overrides: Any) -> Request:
        return self.request(url, method=Request.GET, **overrides)

    def post(self, url: str, data: dict[str, Any] | None = None, **overrides: Any) -> Request:
        return self.request(url, method=Request.POST, data=data, **overrides)

    def tick(self) -> None:
        """Advance every in-flight request by one read step."""
        if isinstance(self.tick_source, ManualTickSource):
            self.tick_source.tick()
        else:
            self.pool.tick()

    def run(self, until: Callable[[], bool] | None = None, *, interval: float = 0.01, max_ticks: int | None = None) -> int:
        """Tick until the pool is empty (or ``until()`` holds). Returns the number of ticks."""
        ticks = 0
        while True:
            done = until() if until is not None else not self.pool
            if done or (max_ticks is not None and ticks >= max_ticks):
                break
            self.tick()
            ticks += 1
            if interval > 0 and self.pool:
                time.sleep(interval)
        return ticks

    def close(self) -> None:
        """Cancel every in-flight request."""
        self.pool.cancel_all()

    def __enter__(self) -> TickHttp:
        return self

    def __exit__(self, _exc_type, _exc, _tb) -> None:  # noqa: ANN001
        self.close()


__all__ = ["TickHttp"]
