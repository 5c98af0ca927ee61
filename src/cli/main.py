"""CLI entry point for nettime."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Sequence

import yaml
from pydantic import ValidationError

from nettime.http_date import parse_http_date
from nettime.models import SyncResult, SyncSettings
from nettime.time_sync import ClockSynchronizer
from utils.config_validator import ConfigValidationError, validate_sync_config
from utils.logging_config import setup_logging

LOGGER = logging.getLogger("nettime.cli")

SUPPORTED_FORMATS = (".json", ".yaml", ".yml")
# Extra time allowed for the worker and callback threads beyond the request timeout.
RESULT_GRACE_SECONDS = 5.0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Estimate local clock offset from an HTTP server's Date header."
    )
    parser.add_argument("--version", action="version", version="nettime 0.1.0")
    subparsers = parser.add_subparsers(dest="command", required=True)

    sync_parser = subparsers.add_parser(
        "sync", help="Sync once against an endpoint and report the offset."
    )
    sync_parser.add_argument("--endpoint", help="URL whose Date header is trusted.")
    sync_parser.add_argument(
        "--timeout", type=float, help="Request timeout in seconds."
    )
    sync_parser.add_argument(
        "--ignorable-delay",
        type=float,
        dest="ignorable_network_delay",
        help="Offsets up to this many seconds are treated as noise.",
    )
    sync_parser.add_argument(
        "--method", help="HTTP method to use (HEAD or GET)."
    )
    sync_parser.add_argument("--config", help="Path to a JSON/YAML config file.")
    sync_parser.add_argument(
        "--async",
        dest="use_async",
        action="store_true",
        help="Use the aiohttp client instead of the threaded urllib client.",
    )
    sync_parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (DEBUG, INFO, WARNING, ERROR).",
    )
    sync_parser.add_argument(
        "--json-logs", action="store_true", help="Emit logs as JSON lines."
    )
    sync_parser.add_argument("--log-file", help="Also write logs to this file.")
    sync_parser.set_defaults(handler=run_sync)

    parse_parser = subparsers.add_parser(
        "parse", help="Parse an HTTP Date header value and print it as ISO 8601."
    )
    parse_parser.add_argument("value", help='e.g. "Sun, 12 Jan 2025 17:44:00 GMT"')
    parse_parser.set_defaults(handler=run_parse)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if hasattr(args, "handler"):
        return args.handler(args)
    parser.print_help()
    return 1


def run_sync(args: argparse.Namespace) -> int:
    setup_logging(args.log_level, structured=args.json_logs, log_file=args.log_file)
    try:
        settings = resolve_settings(args)
    except (FileNotFoundError, ConfigValidationError, ValueError) as exc:
        LOGGER.error("Configuration error: %s", exc)
        return 2

    synchronizer = ClockSynchronizer.from_settings(settings)
    try:
        if args.use_async:
            result = asyncio.run(_async_sync(synchronizer))
        else:
            future = synchronizer.update_time()
            result = future.result(timeout=settings.timeout + RESULT_GRACE_SECONDS)
    finally:
        synchronizer.close()

    if not result.ok:
        LOGGER.error("Sync failed (%s): %s", result.kind, result.error)
        return 2

    print(format_report(synchronizer, result))
    return 0


def run_parse(args: argparse.Namespace) -> int:
    parsed = parse_http_date(args.value)
    if parsed is None:
        print(f"Failed to parse date: {args.value!r}")
        return 2
    print(parsed.isoformat())
    return 0


async def _async_sync(synchronizer: ClockSynchronizer) -> SyncResult:
    try:
        return await synchronizer.async_update_time()
    finally:
        await synchronizer.aclose()


def resolve_settings(args: argparse.Namespace) -> SyncSettings:
    config: dict[str, Any] = {}
    if args.config:
        config = load_config(Path(args.config).expanduser())
        validate_sync_config(config)
    for field in ("endpoint", "timeout", "ignorable_network_delay", "method"):
        value = getattr(args, field, None)
        if value is not None:
            config[field] = value
    try:
        return SyncSettings(**config)
    except ValidationError as exc:
        raise ValueError(str(exc)) from exc


def format_report(synchronizer: ClockSynchronizer, result: SyncResult) -> str:
    local_now = datetime.now(timezone.utc)
    offset = result.offset or 0.0
    applied = abs(offset) > synchronizer.ignorable_network_delay
    reference = result.reference_time.isoformat() if result.reference_time else "-"
    lines = [
        f"Endpoint:     {result.endpoint}",
        f"Server Date:  {reference}",
        f"Local time:   {local_now.isoformat()}",
        f"Server time:  {synchronizer.server_time().isoformat()}",
        f"Offset:       {offset:+.3f}s ({'applied' if applied else 'ignored'}, "
        f"threshold {synchronizer.ignorable_network_delay:.3f}s)",
    ]
    return "\n".join(lines)


def load_config(config_path: Path) -> dict[str, Any]:
    if not config_path.exists():
        raise FileNotFoundError(
            f"Config file not found: {config_path}. Ensure the path is correct and readable."
        )
    suffix = config_path.suffix.lower()
    if suffix not in SUPPORTED_FORMATS:
        supported = ", ".join(SUPPORTED_FORMATS)
        raise ValueError(
            f"Unsupported config format '{suffix}'. Supported formats: {supported}."
        )
    text = config_path.read_text(encoding="utf-8")
    try:
        if suffix == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in config file {config_path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in config file {config_path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(
            f"Config file {config_path} must contain a JSON/YAML object mapping."
        )
    return data


if __name__ == "__main__":
    raise SystemExit(main())
