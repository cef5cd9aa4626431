# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

import pytest

from tickhttp.errors import ParserError
from tickhttp.http import decoders
from tickhttp.http.decoders import DataType, decode_content, get_decoder, register_decoder


def test_data_type_parse_is_case_insensitive():
    assert DataType.parse("JSON") is DataType.JSON
    assert DataType.parse(" xml ") is DataType.XML
    assert DataType.parse(None) is DataType.TEXT
    assert DataType.parse(DataType.RAW) is DataType.RAW
    with pytest.raises(ValueError):
        DataType.parse("yaml")


def test_text_joins_fragments_with_charset():
    value, error = decode_content([b"caf", "é".encode("latin-1")], DataType.TEXT, "latin-1")
    assert value == "café"
    assert error is None


def test_text_unknown_charset_falls_back_to_utf8():
    value, error = decode_content([b"ok"], "text", "no-such-charset")
    assert value == "ok"
    assert error is None


def test_json_decoding_is_repeatable():
    body = [b'{"a": [1, 2', b'], "b": null}']
    first, error_first = decode_content(body, DataType.JSON)
    second, error_second = decode_content(body, DataType.JSON)
    assert first == second == {"a": [1, 2], "b": None}
    assert error_first is None and error_second is None


def test_malformed_json_returns_text_and_parser_error():
    value, error = decode_content([b"{not json"], DataType.JSON)
    assert value == "{not json"
    assert isinstance(error, ParserError)


def test_xml_decoding():
    value, error = decode_content([b"<root><item id='1'>x</item></root>"], DataType.XML)
    assert error is None
    assert value.tag == "root"
    assert value.find("item").get("id") == "1"

    value, error = decode_content([b"<root>"], DataType.XML)
    assert value == "<root>"
    assert isinstance(error, ParserError)


def test_raw_passthrough_returns_fragments():
    fragments = [b"a", b"b"]
    value, error = decode_content(fragments, DataType.RAW)
    assert value is fragments
    assert error is None


@pytest.mark.parametrize("data_type", [DataType.OSC, DataType.SCRIPT, DataType.HTML])
def test_inert_data_types_return_text(data_type):
    value, error = decode_content([b"<b>hi</b>"], data_type)
    assert value == "<b>hi</b>"
    assert error is None


def test_register_decoder_replaces_and_wraps_plain_errors(monkeypatch):
    monkeypatch.setattr(decoders, "_DECODERS", dict(decoders._DECODERS))

    def upper(fragments, charset):
        text = b"".join(fragments).decode(charset)
        if not text:
            raise ValueError("empty")
        return text.upper()

    register_decoder("html", upper)
    assert get_decoder(DataType.HTML) is upper
    assert decode_content([b"abc"], DataType.HTML) == ("ABC", None)
    value, error = decode_content([b""], DataType.HTML)
    assert value == ""
    assert isinstance(error, ParserError)


def test_decoder_raising_any_exception_becomes_parser_error(monkeypatch):
    monkeypatch.setattr(decoders, "_DECODERS", dict(decoders._DECODERS))
    register_decoder("html", lambda fragments, charset: {}["missing"])

    value, error = decode_content([b"<p>hi</p>"], "html")

    assert value == "<p>hi</p>"
    assert isinstance(error, ParserError)
    assert "KeyError" in str(error)
