# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Configuration helpers for tickhttp."""

from __future__ import annotations

import os
import platform
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from .version import __version__

DEFAULT_USER_AGENT = f"tickhttp/{__version__} ({platform.system().lower() or 'unknown'})"
DEFAULT_CONTENT_TYPE = "application/x-www-form-urlencoded"

METHODS = frozenset({"GET", "POST", "HEAD", "OPTIONS"})


def _float_env(name: str, default: float) -> float:
    try:
        value = os.getenv(name)
        return float(value) if value is not None else default
    except ValueError:
        return default


def _int_env(name: str, default: int) -> int:
    try:
        value = os.getenv(name)
        return int(value) if value is not None else default
    except ValueError:
        return default


def _bool_env(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _data_type_env(name: str, default: str) -> str:
    from .http.decoders import DataType

    value = os.getenv(name)
    if value is None:
        return default
    try:
        return DataType.parse(value).value
    except ValueError:
        return default


@dataclass(frozen=True)
class RequestSettings:
    """
    Options for one HTTP transaction.

    Instances are immutable: defaults are held in one value and every request
    takes its own copy through ``merge``, so an in-flight request never sees a
    later change to the defaults.
    """

    method: str = "GET"
    url: str = ""
    content_type: str = DEFAULT_CONTENT_TYPE
    # text, json, xml, raw; osc, script and html are accepted but not decoded
    data_type: str = "text"
    data: Mapping[str, Any] = field(default_factory=dict)
    # a=1&a=2 instead of a[]=1&a[]=2 for sequence values
    traditional: bool = False
    headers: Mapping[str, str] = field(default_factory=dict)
    user_agent: str = DEFAULT_USER_AGENT
    connect_timeout: float = 5.0
    header_timeout: float = 1.0
    body_timeout: float = 0.0
    max_retries: int = 10
    # overall deadline in seconds; 0 disables it
    timeout: float = 0.0
    raise_for_status: bool = False
    success: Callable[..., Any] | None = None
    error: Callable[..., Any] | None = None
    complete: Callable[..., Any] | None = None

    def __post_init__(self) -> None:
        method = str(self.method or "GET").upper()
        if method not in METHODS:
            raise ValueError(f"Unsupported HTTP method: {self.method!r}")
        object.__setattr__(self, "method", method)
        object.__setattr__(self, "data_type", str(self.data_type or "text").lower())

    def merge(self, **overrides: Any) -> RequestSettings:
        """
        Return a copy with overrides applied.

        None-valued overrides are ignored to keep the default. Unknown option
        names raise TypeError.
        """
        filtered = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **filtered) if filtered else self

    @classmethod
    def from_env(cls) -> RequestSettings:
        """Create settings from environment variables (evaluated at call time)."""
        max_retries = _int_env("TICKHTTP_MAX_RETRIES", cls.max_retries)
        if max_retries <= 0:
            max_retries = cls.max_retries
        return cls(
            content_type=os.getenv("TICKHTTP_CONTENT_TYPE", cls.content_type),
            data_type=_data_type_env("TICKHTTP_DATA_TYPE", cls.data_type),
            user_agent=os.getenv("TICKHTTP_USER_AGENT", cls.user_agent),
            connect_timeout=_float_env("TICKHTTP_CONNECT_TIMEOUT", cls.connect_timeout),
            header_timeout=_float_env("TICKHTTP_HEADER_TIMEOUT", cls.header_timeout),
            body_timeout=_float_env("TICKHTTP_BODY_TIMEOUT", cls.body_timeout),
            max_retries=max_retries,
            timeout=_float_env("TICKHTTP_TIMEOUT", cls.timeout),
            raise_for_status=_bool_env("TICKHTTP_RAISE_FOR_STATUS", cls.raise_for_status),
        )


def load_request_settings() -> RequestSettings:
    """Load request defaults from environment with sensible fallbacks."""
    return RequestSettings.from_env()
