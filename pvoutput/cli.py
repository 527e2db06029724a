"""
Command-line entry point: submit or read a single record.

Credentials come from :class:`~pvoutput.config.PVOutputSettings`
(``PVOUTPUT_API_KEY``, ``PVOUTPUT_SYSTEM_ID``, ...). Logs are written to
stderr as one JSON object per line.

Usage::

    pvoutput add-status --at 20261018T12:30 --generated 5400 --generating 1800
    pvoutput add-output --date 20261017 --generated 21300 --condition Fine
    pvoutput get-status

CHANGELOG:
- 2026-10-19: Tag log entries with the command and system id
- 2026-10-15: Initial creation

TODO:
- None
"""

from __future__ import annotations

import argparse
import asyncio
import datetime as dt
import json
import logging
import sys
from collections.abc import Sequence

from pydantic import ValidationError

from pvoutput.client import Client
from pvoutput.config import PVOutputSettings
from pvoutput.errors import PVOutputError
from pvoutput.output import Output
from pvoutput.status import Cumulative, Status

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Structured JSON logging setup
# ---------------------------------------------------------------------------


class JsonFormatter(logging.Formatter):
    """One JSON object per log record, tagged with the CLI command.

    Args:
        command: Sub-command being run (``"add-status"``, ...). Added to
            every entry as ``"command"`` when set.
    """

    def __init__(self, command: str | None = None) -> None:
        super().__init__()
        self.command = command

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, str] = {
            "ts": dt.datetime.fromtimestamp(record.created, tz=dt.UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if self.command is not None:
            entry["command"] = self.command
        system_id = getattr(record, "system_id", None)
        if system_id is not None:
            entry["system_id"] = str(system_id)
        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def configure_logging(level: int = logging.INFO, *, command: str | None = None) -> None:
    """Route root logs to stderr as JSON lines tagged with *command*."""
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JsonFormatter(command))
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def _parse_at(value: str) -> dt.datetime:
    try:
        return dt.datetime.strptime(value, "%Y%m%dT%H:%M")
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"expected YYYYMMDDTHH:MM, got {value!r}"
        ) from None


def _parse_date(value: str) -> dt.date:
    try:
        return dt.datetime.strptime(value, "%Y%m%d").date()
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected YYYYMMDD, got {value!r}") from None


def _parse_time(value: str) -> dt.time:
    try:
        return dt.datetime.strptime(value, "%H:%M").time()
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected HH:MM, got {value!r}") from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pvoutput",
        description="Submit and read PVOutput records.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    commands = parser.add_subparsers(dest="command", required=True)

    status = commands.add_parser("add-status", help="submit a live status")
    status.add_argument("--at", type=_parse_at, required=True, help="YYYYMMDDTHH:MM")
    status.add_argument("--generated", type=int, help="energy generated, Wh")
    status.add_argument("--generating", type=int, help="power generated, W")
    status.add_argument("--consumed", type=int, help="energy consumed, Wh")
    status.add_argument("--consuming", type=int, help="power consumed, W")
    status.add_argument("--temperature", type=float, help="degrees Celsius")
    status.add_argument("--voltage", type=float, help="volts")
    status.add_argument(
        "--cumulative",
        type=int,
        choices=[c.value for c in Cumulative],
        help="1=all, 2=generation, 3=consumption values are lifetime totals",
    )

    output = commands.add_parser("add-output", help="submit a daily output")
    output.add_argument("--date", type=_parse_date, required=True, help="YYYYMMDD")
    output.add_argument("--generated", type=int, help="energy generated, Wh")
    output.add_argument("--exported", type=int, help="energy exported, Wh")
    output.add_argument("--consumed", type=int, help="energy consumed, Wh")
    output.add_argument("--peak-power", type=int, help="peak power, W")
    output.add_argument("--peak-time", type=_parse_time, help="HH:MM")
    output.add_argument("--condition", help="weather condition")
    output.add_argument("--min-temp", type=float, help="degrees Celsius")
    output.add_argument("--max-temp", type=float, help="degrees Celsius")
    output.add_argument("--comments", help="free text")

    get_status = commands.add_parser("get-status", help="print a status as JSON")
    get_status.add_argument("--at", type=_parse_at, help="YYYYMMDDTHH:MM")

    return parser


def status_from_args(args: argparse.Namespace) -> Status:
    """Build a :class:`Status` from parsed ``add-status`` arguments."""
    return Status(
        date_time=args.at,
        generated=args.generated,
        generating=args.generating,
        consumed=args.consumed,
        consuming=args.consuming,
        temperature=args.temperature,
        voltage=args.voltage,
        cumulative=args.cumulative,
    )


def output_from_args(args: argparse.Namespace) -> Output:
    """Build an :class:`Output` from parsed ``add-output`` arguments."""
    return Output(
        date=args.date,
        generated=args.generated,
        exported=args.exported,
        consumed=args.consumed,
        peak_power=args.peak_power,
        peak_time=args.peak_time,
        condition=args.condition,
        min_temp=args.min_temp,
        max_temp=args.max_temp,
        comments=args.comments,
    )


async def run(args: argparse.Namespace, client: Client) -> None:
    """Execute the selected command against *client*."""
    if args.command == "add-status":
        await client.add_status(status_from_args(args))
        logger.info(
            "Status added for %s.",
            args.at.isoformat(),
            extra={"system_id": client.system_id},
        )
    elif args.command == "add-output":
        await client.add_output(output_from_args(args))
        logger.info(
            "Output added for %s.",
            args.date.isoformat(),
            extra={"system_id": client.system_id},
        )
    elif args.command == "get-status":
        status = await client.get_status(args.at)
        print(status.model_dump_json(exclude_none=True))


def main(argv: Sequence[str] | None = None) -> int:
    """Console entry point. Returns the process exit code."""
    args = build_parser().parse_args(argv)
    configure_logging(
        logging.DEBUG if args.verbose else logging.INFO, command=args.command
    )

    try:
        settings = PVOutputSettings()
    except ValidationError as exc:
        logger.error("Invalid configuration: %s", exc)
        return 1

    client = Client.from_settings(settings)
    try:
        asyncio.run(run(args, client))
    except PVOutputError as exc:
        logger.error("%s failed: %s", args.command, exc)
        return 1
    return 0
