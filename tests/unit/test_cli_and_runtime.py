# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

import json
import xml.etree.ElementTree as ElementTree

from tickhttp.cli import main as cli_main
from tickhttp.cli.main import _jsonable, _pretty_print, _truncate_text_bytes, build_parser
from tickhttp.config import RequestSettings
from tickhttp.errors import TextStatus
from tickhttp.http.adapters import ScriptedConnection, ScriptedTransport
from tickhttp.http.pool import RequestPool
from tickhttp.runtime import TickHttp


def test_build_parser_and_pretty_print(capsys):
    parser = build_parser()
    args = parser.parse_args(["http://example.com", "-X", "post", "-d", "a=1", "-H", "X-Test: yes", "--json"])
    assert args.url == "http://example.com"
    assert args.method == "POST"
    assert args.data == [("a", "1")]
    assert args.header == [("X-Test", "yes")]
    assert args.json is True

    _pretty_print(
        {
            "method": "GET",
            "url": "http://example.com/",
            "ok": True,
            "status_code": 200,
            "text_status": None,
            "error": None,
            "bytes": 5,
            "headers": {},
            "data": "hello",
        }
    )
    output = capsys.readouterr().out
    assert "Status: 200" in output
    assert "Received 5 bytes" in output
    assert "hello" in output

    _pretty_print(
        {
            "method": "GET",
            "url": "http://example.com/",
            "ok": False,
            "status_code": None,
            "text_status": "ERROR",
            "error": "connection refused",
            "bytes": 0,
            "headers": {},
            "data": None,
        }
    )
    output = capsys.readouterr().out
    assert "Failed: ERROR connection refused" in output
    assert "Reason: Request failed" in output


def test_jsonable_and_truncation():
    assert _jsonable(ElementTree.fromstring("<a>1</a>")) == "<a>1</a>"
    assert _jsonable([b"ab", b"c"]) == "abc"
    assert _jsonable({"x": 1}) == {"x": 1}
    assert _truncate_text_bytes("short", 100) == "short"
    truncated = _truncate_text_bytes("x" * 100, 20)
    assert truncated.endswith("...[truncated]")
    assert len(truncated.encode("utf-8")) <= 20


def test_main_json_output(monkeypatch, capsys):
    connection = ScriptedConnection.from_response(
        b'HTTP/1.1 200 OK\r\nContent-Type: application/json\r\nContent-Length: 12\r\n\r\n{"ok": true}'
    )
    transport = ScriptedTransport(connection)
    monkeypatch.setattr(cli_main, "create_default_transport", lambda: transport)

    code = cli_main.main(["http://example.com/api", "--data-type", "json", "-d", "q=1", "-d", "q=2", "--interval", "0", "--json"])

    assert code == 0
    report = json.loads(capsys.readouterr().out)
    assert report["ok"] is True
    assert report["status_code"] == 200
    assert report["data"] == {"ok": True}
    assert report["url"] == "http://example.com/api?q%5B%5D=1&q%5B%5D=2"
    assert connection.sent[0].startswith(b"GET /api?q%5B%5D=1&q%5B%5D=2 HTTP/1.1\r\n")


def test_main_failure_exit_code(monkeypatch, capsys):
    monkeypatch.setattr(cli_main, "create_default_transport", lambda: ScriptedTransport(connect_error="refused"))

    code = cli_main.main(["http://example.com/", "--interval", "0"])

    assert code == 1
    assert "Failed: ERROR refused" in capsys.readouterr().out


def test_tickhttp_facade_methods():
    transport = ScriptedTransport(
        [
            ScriptedConnection.from_response(b"HTTP/1.1 200 OK\r\nContent-Length: 3\r\n\r\none"),
            ScriptedConnection.from_response(b"HTTP/1.1 201 Created\r\nContent-Length: 3\r\n\r\ntwo"),
        ]
    )
    results = []
    with TickHttp(RequestSettings(), transport=transport) as client:
        client.setup(complete=lambda req, status: results.append((req.settings.method, req.data, status)))
        first = client.get("http://example.com/one")
        second = client.post("http://example.com/two", data={"k": "v"})
        assert len(client.pool) == 2
        assert client.run(interval=0) == 1

    assert results == [("GET", "one", None), ("POST", "two", None)]
    assert first.status_code == 200
    assert second.status_code == 201
    assert second.body == b"k=v"


def test_tickhttp_setup_does_not_touch_inflight_requests():
    transport = ScriptedTransport(ScriptedConnection.from_response(b"HTTP/1.1 200 OK\r\nContent-Length: 3\r\n\r\n"))
    client = TickHttp(RequestSettings(), transport=transport)
    request = client.get("http://example.com/")
    client.setup(data_type="json", max_retries=2)

    assert request.settings.data_type == "text"
    assert request.settings.max_retries == 10
    assert client.settings.data_type == "json"


def test_tickhttp_close_cancels_inflight_requests():
    transport = ScriptedTransport(ScriptedConnection.from_response(b"HTTP/1.1 200 OK\r\nContent-Length: 3\r\n\r\n"))
    statuses = []
    client = TickHttp(RequestSettings(), transport=transport)
    client.get("http://example.com/", complete=lambda req, status: statuses.append(status))

    assert client.run(interval=0, max_ticks=3) == 3
    client.close()

    assert statuses == [TextStatus.ABORT]
    assert len(client.pool) == 0


def test_tickhttp_with_external_pool_tick_source():
    class HostLoop:
        def __init__(self):
            self.listeners = []

        def add_listener(self, listener):
            self.listeners.append(listener)

        def remove_listener(self, listener):
            self.listeners.remove(listener)

    loop = HostLoop()
    transport = ScriptedTransport(ScriptedConnection.from_response(b"HTTP/1.1 200 OK\r\nContent-Length: 2\r\n\r\nok"))
    client = TickHttp(RequestSettings(), transport=transport, tick_source=loop)
    request = client.get("http://example.com/")

    assert isinstance(client.pool, RequestPool)
    assert len(loop.listeners) == 1
    client.tick()
    assert request.complete
    assert loop.listeners == []
