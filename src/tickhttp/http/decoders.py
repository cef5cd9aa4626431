# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Response body decoders keyed by the configured data type."""

from __future__ import annotations

import json
import logging
import xml.etree.ElementTree as ElementTree
from collections.abc import Callable, Sequence
from enum import Enum
from typing import Any

from ..errors import ParserError

logger = logging.getLogger(__name__)

Decoder = Callable[[Sequence[bytes], str], Any]


class DataType(str, Enum):
    TEXT = "text"
    JSON = "json"
    XML = "xml"
    # fragments handed back untouched; the caller knows their shape
    RAW = "raw"
    # accepted, not decoded
    OSC = "osc"
    SCRIPT = "script"
    HTML = "html"

    @classmethod
    def parse(cls, value: DataType | str | None) -> DataType:
        if isinstance(value, DataType):
            return value
        try:
            return cls(str(value or "text").strip().lower())
        except ValueError:
            raise ValueError(f"Unknown data type: {value!r}") from None


def _text(fragments: Sequence[bytes], charset: str) -> str:
    content = b"".join(fragments)
    try:
        return content.decode(charset, errors="replace")
    except LookupError:
        return content.decode("utf-8", errors="replace")


def _decode_json(fragments: Sequence[bytes], charset: str) -> Any:
    text = _text(fragments, charset)
    try:
        return json.loads(text)
    except ValueError as exc:
        raise ParserError(f"Invalid JSON: {exc}") from exc


def _decode_xml(fragments: Sequence[bytes], charset: str) -> Any:  # noqa: ARG001
    # ElementTree honours the encoding declared in the document itself
    try:
        return ElementTree.fromstring(b"".join(fragments))
    except ElementTree.ParseError as exc:
        raise ParserError(f"Invalid XML: {exc}") from exc


def _decode_raw(fragments: Sequence[bytes], charset: str) -> Any:  # noqa: ARG001
    return fragments


_DECODERS: dict[DataType, Decoder] = {
    DataType.TEXT: _text,
    DataType.JSON: _decode_json,
    DataType.XML: _decode_xml,
    DataType.RAW: _decode_raw,
    DataType.OSC: _text,
    DataType.SCRIPT: _text,
    DataType.HTML: _text,
}


def register_decoder(data_type: DataType | str, decoder: Decoder) -> None:
    """Install ``decoder(fragments, charset)`` for a data type, replacing the current one."""
    _DECODERS[DataType.parse(data_type)] = decoder


def get_decoder(data_type: DataType | str) -> Decoder:
    return _DECODERS[DataType.parse(data_type)]


def decode_content(
    fragments: Sequence[bytes],
    data_type: DataType | str,
    charset: str = "utf-8",
) -> tuple[Any, ParserError | None]:
    """
    Decode body fragments for a data type.

    Returns ``(value, None)`` on success. When the decoder rejects the body the
    result is ``(text, error)`` where ``text`` is the body as a string.
    """
    kind = DataType.parse(data_type)
    decoder = _DECODERS[kind]
    try:
        return decoder(fragments, charset), None
    except ParserError as exc:
        logger.error("Unable to decode %s body: %s", kind.value, exc)
        return _text(fragments, charset), exc
    except Exception as exc:  # noqa: BLE001
        # registered decoders may raise anything
        logger.error("Unable to decode %s body: %s", kind.value, exc)
        return _text(fragments, charset), ParserError(f"{exc.__class__.__name__}: {exc}")


__all__ = ["DataType", "Decoder", "decode_content", "get_decoder", "register_decoder"]
