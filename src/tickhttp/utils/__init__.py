# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Utility exports."""

from .context import (
    ClientContext,
    client_context,
    get_client_context,
    get_pool,
    get_request_settings,
    get_transport,
)

__all__ = [
    "ClientContext",
    "client_context",
    "get_client_context",
    "get_pool",
    "get_request_settings",
    "get_transport",
]
