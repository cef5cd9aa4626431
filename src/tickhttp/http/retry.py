# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Read-timeout retry policy for the body phase."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass

from ..config import RequestSettings


@dataclass(frozen=True)
class RetryConfig:
    """Retry policy derived from RequestSettings."""

    max_retries: int = 10
    deadline: float = 0.0

    @classmethod
    def from_settings(cls, settings: RequestSettings) -> RetryConfig:
        return cls(
            max_retries=max(1, settings.max_retries),
            deadline=max(0.0, settings.timeout),
        )


class ReadRetryTracker:
    """
    Counts consecutive empty body reads and tracks the optional wall-clock deadline.

    The counter saturates at ``max_retries`` and is never reset during the
    lifetime of a request.
    """

    def __init__(self, config: RetryConfig | None = None, clock: Callable[[], float] | None = None):
        self.config = config or RetryConfig()
        self.retries = 0
        self._clock = clock or time.monotonic
        self._deadline = self._clock() + self.config.deadline if self.config.deadline > 0 else None

    def record_timeout(self) -> bool:
        """Count one empty read. Returns True while the request may keep waiting."""
        if self.retries < self.config.max_retries:
            self.retries += 1
        return not self.exhausted

    @property
    def exhausted(self) -> bool:
        return self.retries >= self.config.max_retries

    def deadline_exceeded(self) -> bool:
        return self._deadline is not None and self._clock() >= self._deadline


__all__ = ["ReadRetryTracker", "RetryConfig"]
