# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Completion callbacks for requests."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Protocol

from ..errors import TextStatus

if TYPE_CHECKING:
    from ..config import RequestSettings
    from .request import Request

logger = logging.getLogger(__name__)


class RequestHandler(Protocol):
    """
    Receives the outcome of a request.

    Exactly one of ``on_success``/``on_error`` is called, then ``on_complete``.
    """

    def on_success(self, data: Any, text_status: TextStatus | None, request: Request) -> None: ...

    def on_error(self, request: Request, text_status: TextStatus | None, error: str | None) -> None: ...

    def on_complete(self, request: Request, text_status: TextStatus | None) -> None: ...


def _log_error(request: Request, text_status: TextStatus | None, error: str | None) -> None:
    logger.error("%s failed (%s): %s", request.url, text_status.value if text_status else "-", error or "[unknown error]")


class CallbackHandler:
    """Adapts plain ``success``/``error``/``complete`` callables to RequestHandler."""

    def __init__(
        self,
        success: Callable[[Any, TextStatus | None, Request], Any] | None = None,
        error: Callable[[Request, TextStatus | None, str | None], Any] | None = None,
        complete: Callable[[Request, TextStatus | None], Any] | None = None,
    ):
        self.success = success
        self.error = error or _log_error
        self.complete = complete

    @classmethod
    def from_settings(cls, settings: RequestSettings) -> CallbackHandler:
        return cls(success=settings.success, error=settings.error, complete=settings.complete)

    def on_success(self, data: Any, text_status: TextStatus | None, request: Request) -> None:
        if self.success is not None:
            self.success(data, text_status, request)

    def on_error(self, request: Request, text_status: TextStatus | None, error: str | None) -> None:
        self.error(request, text_status, error)

    def on_complete(self, request: Request, text_status: TextStatus | None) -> None:
        if self.complete is not None:
            self.complete(request, text_status)


__all__ = ["CallbackHandler", "RequestHandler"]
