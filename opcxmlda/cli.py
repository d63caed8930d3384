"""Command line entry point.

Usage:
    opcxmlda --endpoint URL                               # server status
    opcxmlda --endpoint URL --browse-path Channel1        # browse tree
    opcxmlda --endpoint URL --read-path Channel1.Tag1     # read one item

Flags override values from config/*.toml and OPCXMLDA_* variables.
"""

import argparse
import asyncio
import re
import sys
from typing import Any, TextIO

import httpx
from prometheus_client import REGISTRY, write_to_textfile
from pydantic import SecretStr

from opcxmlda.browse import BrowseTree, CancelSignal
from opcxmlda.config import get_settings
from opcxmlda.config.settings import Settings
from opcxmlda.errors import OpcXmlDaError
from opcxmlda.observability.logging import get_logger, setup_logging
from opcxmlda.report import format_tree_line, print_read, print_status
from opcxmlda.service.client import OpcXmlDaClient, fetch_node_value
from opcxmlda.transport.client import build_http_client

logger = get_logger(__name__)

_BARE_SECONDS = re.compile(r"\d+(?:\.\d*)?|\.\d+")
_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|\u00b5s|ms|s|m|h)")
_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "\u00b5s": 1e-6,
    "ms": 0.001,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

_LOG_LEVELS = {
    "debug": "DEBUG",
    "info": "INFO",
    "warn": "WARNING",
    "warning": "WARNING",
    "error": "ERROR",
}


def parse_duration(value: str) -> float:
    """Parse a Go-style duration ("30s", "1m30s", "250ms") into seconds.

    A bare number is taken as seconds.
    """
    text = value.strip()
    if _BARE_SECONDS.fullmatch(text):
        return float(text)

    total = 0.0
    pos = 0
    while pos < len(text):
        match = _DURATION_PART.match(text, pos)
        if match is None:
            raise argparse.ArgumentTypeError(f"invalid duration {value!r}")
        number, unit = match.groups()
        total += float(number) * _DURATION_UNITS[unit]
        pos = match.end()
    if pos == 0:
        raise argparse.ArgumentTypeError(f"invalid duration {value!r}")
    return total


def parse_log_level(value: str) -> str:
    level = _LOG_LEVELS.get(value.strip().lower())
    if level is None:
        raise argparse.ArgumentTypeError(f"unknown log level {value!r}")
    return level


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="opcxmlda",
        description="OPC XML-DA status, browse and read client",
    )
    parser.add_argument("--endpoint", help="OPC XML-DA endpoint URL")
    parser.add_argument("--browse-path", default="", help="Browse path (maps to ItemName)")
    parser.add_argument("--browse-item-path", default="", help="Browse item path (maps to ItemPath)")
    parser.add_argument(
        "--browse-depth",
        type=int,
        help="Max browse depth, 1 = direct children only",
    )
    parser.add_argument("--read-path", default="", help="Item to read (maps to ItemName)")
    parser.add_argument("--read-item-path", default="", help="Item path to read (maps to ItemPath)")
    parser.add_argument(
        "--net-debug",
        action="store_true",
        default=None,
        help="Log HTTP exchanges with redacted headers and body previews",
    )
    parser.add_argument("--log-level", type=parse_log_level, help="debug, info, warn or error")
    parser.add_argument("--locale", help="Locale ID")
    parser.add_argument("--client-handle", help="Client request handle")
    parser.add_argument("--http-timeout", type=parse_duration, help="Connect timeout, e.g. 30s or 1m30s")
    parser.add_argument(
        "--request-timeout",
        type=parse_duration,
        help="End-to-end request timeout, e.g. 90s or 1m30s",
    )
    parser.add_argument("--username", help="Basic auth username")
    parser.add_argument("--password", help="Basic auth password")
    return parser


def _present(**values: Any) -> dict[str, Any]:
    return {key: value for key, value in values.items() if value is not None}


def apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    """Return a copy of settings with every flag the user passed applied."""
    password = None if args.password is None else SecretStr(args.password)
    client = settings.client.model_copy(
        update=_present(
            endpoint=args.endpoint,
            locale_id=args.locale,
            client_request_handle=args.client_handle,
            http_timeout=args.http_timeout,
            request_timeout=args.request_timeout,
            username=args.username,
            password=password,
        )
    )
    browse = settings.browse.model_copy(update=_present(max_depth=args.browse_depth))
    net_debug = settings.net_debug.model_copy(update=_present(enabled=args.net_debug))
    log_cfg = settings.observability.logging.model_copy(update=_present(level=args.log_level))
    observability = settings.observability.model_copy(update={"logging": log_cfg})

    return settings.model_copy(
        update={
            "client": client,
            "browse": browse,
            "net_debug": net_debug,
            "observability": observability,
        }
    )


def select_mode(args: argparse.Namespace) -> str:
    """Browse wins over read; status when neither target is given."""
    if args.browse_path or args.browse_item_path:
        return "browse"
    if args.read_path or args.read_item_path:
        return "read"
    return "status"


async def run(
    settings: Settings,
    args: argparse.Namespace,
    out: TextIO,
    transport: httpx.AsyncBaseTransport | None = None,
) -> None:
    """Execute the selected operation and write its report to out.

    Raises:
        OpcXmlDaError: If the operation fails
    """
    client_cfg = settings.client
    mode = select_mode(args)
    logger.info("opcxmlda_start", mode=mode, endpoint=client_cfg.endpoint)
    logger.debug(
        "timeouts_configured",
        http_timeout=client_cfg.http_timeout,
        request_timeout=client_cfg.request_timeout,
    )

    async with build_http_client(settings, transport=transport) as http:
        client = OpcXmlDaClient(client_cfg.endpoint, http)

        if mode == "browse":
            max_depth = settings.browse.max_depth
            logger.info(
                "browse_requested",
                item_path=args.browse_item_path,
                item_name=args.browse_path,
                max_depth=max_depth,
            )
            cancel = None
            if client_cfg.request_timeout > 0:
                cancel = CancelSignal.after(client_cfg.request_timeout)
            tree = BrowseTree(client, client_cfg.locale_id, client_cfg.client_request_handle)
            async for line in tree.walk(args.browse_item_path, args.browse_path, max_depth, cancel):
                out.write(format_tree_line(line) + "\n")
        elif mode == "read":
            logger.info("read_requested", item_path=args.read_item_path, item_name=args.read_path)
            response = await fetch_node_value(
                client,
                client_cfg.locale_id,
                client_cfg.client_request_handle,
                args.read_item_path,
                args.read_path,
            )
            print_read(out, response)
        else:
            logger.info("get_status_requested")
            status = await client.get_status(client_cfg.locale_id, client_cfg.client_request_handle)
            print_status(out, status)


def _write_metrics(path: str) -> None:
    if not path:
        return
    try:
        write_to_textfile(path, REGISTRY)
    except OSError as e:
        logger.warning("metrics_write_failed", path=path, error=str(e))


def main(argv: list[str] | None = None) -> int:
    """Run the CLI and return the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = apply_overrides(get_settings(), args)
    except (OSError, ValueError) as e:
        print(f"error: configuration: {e}", file=sys.stderr)
        return 1

    log_cfg = settings.observability.logging
    setup_logging(level=log_cfg.level, format=log_cfg.format, redact_secrets=log_cfg.redact_secrets)
    if settings.net_debug.enabled:
        logger.info("network_debug_enabled", max_body_bytes=settings.net_debug.max_body_bytes)

    if not settings.client.endpoint:
        parser.print_usage(sys.stderr)
        print("error: endpoint is required", file=sys.stderr)
        return 1
    if select_mode(args) == "browse" and settings.browse.max_depth < 1:
        print("error: browse-depth must be >= 1", file=sys.stderr)
        return 1

    try:
        asyncio.run(run(settings, args, sys.stdout))
    except OpcXmlDaError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    finally:
        _write_metrics(settings.observability.metrics.textfile_path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
