# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

import dataclasses
import socket

import pytest

from tickhttp import config
from tickhttp.config import DEFAULT_USER_AGENT, RequestSettings
from tickhttp.errors import (
    ConnectionClosed,
    InvalidHeader,
    ParserError,
    ReadTimeout,
    TextStatus,
    TransportError,
    categorize_exception,
    status_to_reason,
)


def test_request_settings_env_overrides(monkeypatch):
    monkeypatch.setenv("TICKHTTP_CONTENT_TYPE", "text/plain")
    monkeypatch.setenv("TICKHTTP_DATA_TYPE", "JSON")
    monkeypatch.setenv("TICKHTTP_USER_AGENT", "CustomAgent/1.0")
    monkeypatch.setenv("TICKHTTP_CONNECT_TIMEOUT", "2.5")
    monkeypatch.setenv("TICKHTTP_HEADER_TIMEOUT", "0.5")
    monkeypatch.setenv("TICKHTTP_BODY_TIMEOUT", "0.05")
    monkeypatch.setenv("TICKHTTP_MAX_RETRIES", "3")
    monkeypatch.setenv("TICKHTTP_TIMEOUT", "30")
    monkeypatch.setenv("TICKHTTP_RAISE_FOR_STATUS", "yes")

    settings = config.load_request_settings()

    assert settings.content_type == "text/plain"
    assert settings.data_type == "json"
    assert settings.user_agent == "CustomAgent/1.0"
    assert settings.connect_timeout == 2.5
    assert settings.header_timeout == 0.5
    assert settings.body_timeout == 0.05
    assert settings.max_retries == 3
    assert settings.timeout == 30.0
    assert settings.raise_for_status is True


def test_request_settings_invalid_env_fall_back(monkeypatch):
    monkeypatch.setenv("TICKHTTP_CONNECT_TIMEOUT", "not-a-number")
    monkeypatch.setenv("TICKHTTP_MAX_RETRIES", "ten")
    monkeypatch.setenv("TICKHTTP_BODY_TIMEOUT", "")
    monkeypatch.setenv("TICKHTTP_RAISE_FOR_STATUS", "maybe")

    settings = config.load_request_settings()

    assert settings.connect_timeout == RequestSettings.connect_timeout
    assert settings.max_retries == RequestSettings.max_retries
    assert settings.body_timeout == RequestSettings.body_timeout
    assert settings.raise_for_status is False
    assert settings.user_agent == DEFAULT_USER_AGENT


def test_non_positive_max_retries_falls_back(monkeypatch):
    monkeypatch.setenv("TICKHTTP_MAX_RETRIES", "0")
    assert config.load_request_settings().max_retries == 10


def test_load_request_settings_reads_env_at_call_time(monkeypatch):
    monkeypatch.setenv("TICKHTTP_TIMEOUT", "7.7")
    assert config.load_request_settings().timeout == 7.7
    monkeypatch.setenv("TICKHTTP_TIMEOUT", "8.8")
    assert config.load_request_settings().timeout == 8.8


def test_defaults_match_documented_values():
    settings = RequestSettings()
    assert settings.method == "GET"
    assert settings.content_type == "application/x-www-form-urlencoded"
    assert settings.data_type == "text"
    assert settings.max_retries == 10
    assert settings.body_timeout == 0.0
    assert settings.headers == {}
    assert DEFAULT_USER_AGENT.startswith("tickhttp/")


def test_merge_returns_copy_and_ignores_none():
    defaults = RequestSettings(url="http://example.com/")
    merged = defaults.merge(method="post", data_type=None, headers={"X-Test": "1"})

    assert merged is not defaults
    assert merged.method == "POST"
    assert merged.data_type == "text"
    assert merged.headers == {"X-Test": "1"}
    assert defaults.method == "GET"
    assert defaults.merge() is defaults
    assert defaults.merge(url=None) is defaults


def test_merge_rejects_unknown_option():
    with pytest.raises(TypeError):
        RequestSettings().merge(no_such_option=1)


def test_settings_are_frozen():
    settings = RequestSettings()
    with pytest.raises(dataclasses.FrozenInstanceError):
        settings.method = "POST"


def test_method_is_validated():
    assert RequestSettings(method="options").method == "OPTIONS"
    with pytest.raises(ValueError):
        RequestSettings(method="DELETE")


def test_categorize_exception():
    assert categorize_exception(ParserError("bad json")) is TextStatus.PARSERERROR
    assert categorize_exception(ReadTimeout()) is TextStatus.TIMEOUT
    assert categorize_exception(socket.timeout()) is TextStatus.TIMEOUT
    assert categorize_exception(ConnectionClosed()) is TextStatus.ERROR
    assert categorize_exception(RuntimeError("boom")) is TextStatus.ERROR


def test_error_default_messages():
    assert str(ReadTimeout()) == "timeout"
    assert str(ConnectionClosed()) == "closed"
    assert str(InvalidHeader()) == "Invalid page header"
    assert isinstance(ReadTimeout(), TransportError)


def test_status_to_reason():
    assert status_to_reason(TextStatus.TIMEOUT) == "Read timed out"
    assert status_to_reason(TextStatus.ABORT) == "Request cancelled"
    assert status_to_reason(None) == ""
    assert TextStatus.ERROR == "ERROR"


def test_invalid_data_type_env_falls_back(monkeypatch):
    monkeypatch.setenv("TICKHTTP_DATA_TYPE", "yaml")
    assert config.load_request_settings().data_type == "text"
