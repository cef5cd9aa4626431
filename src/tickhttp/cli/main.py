# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""tickhttp CLI: issue one request, tick until it completes and print the outcome."""

from __future__ import annotations

import argparse
import json
import sys
import xml.etree.ElementTree as ElementTree
from typing import Any

from ..config import METHODS, load_request_settings
from ..errors import TextStatus, status_to_reason
from ..http.decoders import DataType
from ..http.models import RequestState
from ..http.request import Request
from ..http.transport import create_default_transport
from ..log import setup_logging
from ..runtime import TickHttp

CLI_TEXT_TRUNCATION_BYTES = 4096


def _key_value(raw: str) -> tuple[str, str]:
    key, sep, value = raw.partition("=")
    if not sep or not key:
        raise argparse.ArgumentTypeError(f"expected KEY=VALUE, got {raw!r}")
    return key, value


def _header(raw: str) -> tuple[str, str]:
    name, sep, value = raw.partition(":")
    if not sep or not name.strip():
        raise argparse.ArgumentTypeError(f"expected 'Name: value', got {raw!r}")
    return name.strip(), value.strip()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Tick-driven HTTP/1.1 client")
    parser.add_argument("url", help="Target URL (http only)")
    parser.add_argument("-X", "--method", default="GET", choices=sorted(METHODS), type=str.upper)
    parser.add_argument("-d", "--data", action="append", type=_key_value, default=[], metavar="KEY=VALUE", help="Form field; repeat for more")
    parser.add_argument("-H", "--header", action="append", type=_header, default=[], metavar="'Name: value'", help="Extra request header")
    parser.add_argument("--data-type", default=None, choices=[item.value for item in DataType], help="How to decode the response body")
    parser.add_argument("--traditional", action="store_true", help="Serialize repeated fields as a=1&a=2")
    parser.add_argument("--timeout", type=float, default=None, help="Overall deadline in seconds")
    parser.add_argument("--interval", type=float, default=0.01, help="Seconds between ticks")
    parser.add_argument("--json", action="store_true", help="Output JSON instead of human-friendly summary")
    parser.add_argument("--log-level", default=None, help="Logging level (default: TICKHTTP_LOG_LEVEL or WARNING)")
    return parser


def _truncate_text_bytes(text: str, max_bytes: int) -> str:
    raw = text.encode("utf-8")
    if len(raw) <= max_bytes:
        return text
    suffix = "...[truncated]"
    keep = max_bytes - len(suffix.encode("utf-8"))
    if keep <= 0:
        return suffix[:max_bytes]
    return raw[:keep].decode("utf-8", errors="ignore") + suffix


def _jsonable(data: Any) -> Any:
    if isinstance(data, ElementTree.Element):
        return ElementTree.tostring(data, encoding="unicode")
    if isinstance(data, (bytes, bytearray)):
        return bytes(data).decode("utf-8", errors="replace")
    if isinstance(data, list) and data and all(isinstance(item, (bytes, bytearray)) for item in data):
        return b"".join(data).decode("utf-8", errors="replace")
    return data


def build_report(request: Request) -> dict[str, Any]:
    """Summarize a completed request as a plain dict."""
    failed = request.state is RequestState.FAILED
    data = _jsonable(request.data)
    if isinstance(data, str):
        data = _truncate_text_bytes(data, CLI_TEXT_TRUNCATION_BYTES)
    return {
        "url": request.url,
        "method": request.settings.method,
        "ok": not failed,
        "status_code": request.status_code,
        "text_status": request.text_status.value if request.text_status else None,
        "error": request.error,
        "bytes": request.length,
        "headers": dict(request.response.fields) if request.response is not None else {},
        "data": data,
    }


def _print_json(report: dict[str, Any]) -> None:
    json.dump(report, sys.stdout, indent=2, sort_keys=True, default=str)
    sys.stdout.write("\n")


def _pretty_print(report: dict[str, Any]) -> None:
    print(f"[tickhttp] {report['method']} {report['url']}")
    print(f"Status: {report['status_code'] if report['status_code'] is not None else '-'}")
    if report["ok"]:
        print(f"Received {report['bytes']} bytes")
        data = report["data"]
        if data not in (None, ""):
            print(data if isinstance(data, str) else json.dumps(data, indent=2, default=str))
        return
    reason = status_to_reason(TextStatus(report["text_status"])) if report["text_status"] else ""
    print(f"Failed: {report['text_status']} {report['error'] or ''}".rstrip())
    if reason:
        print(f"Reason: {reason}")


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    settings = load_request_settings()
    overrides: dict[str, Any] = {
        "method": args.method,
        "data_type": args.data_type,
        "timeout": args.timeout,
        "traditional": args.traditional or None,
    }
    if args.data:
        data: dict[str, Any] = {}
        for key, value in args.data:
            if key in data:
                existing = data[key]
                data[key] = [*existing, value] if isinstance(existing, list) else [existing, value]
            else:
                data[key] = value
        overrides["data"] = data
    if args.header:
        overrides["headers"] = dict(args.header)

    with TickHttp(settings, transport=create_default_transport()) as client:
        request = client.request(args.url, **overrides)
        client.run(interval=args.interval)

    report = build_report(request)
    if args.json:
        _print_json(report)
    else:
        _pretty_print(report)
    return 0 if report["ok"] else 1


if __name__ == "__main__":
    raise SystemExit(main())
