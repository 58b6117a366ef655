"""Command line interface for computing Schedule A support schedules.

Usage:
    schedule-a compute snapshot.json --format text
    schedule-a compute snapshot.json --format csv -o schedule_a_2024.csv

The input file is a JSON object holding the request context and the
ledger snapshot:

    {
      "taxYear": 2024,
      "organizationId": 7,
      "firstFiveYears": false,
      "factsAndCircumstances": false,
      "publicCharityType": 7,
      "disqualifiedContributors": ["donor:12"],
      "transactions": [...],
      "categories": [...]
    }

snake_case keys are accepted as well.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Optional, Sequence

import pydantic
import structlog

from . import __version__
from .config import load_config
from .exceptions import ConfigurationError, ValidationError
from .logging_config import configure_logging
from .models import Category, Transaction
from .report_builder import ScheduleAContext, ScheduleAReportBuilder
from .report_generator import ScheduleAReportGenerator

logger = structlog.get_logger()

EXIT_OK = 0
EXIT_CONFIG_ERROR = 1
EXIT_INVALID_INPUT = 2

OUTPUT_FORMATS = ["json", "text", "markdown", "csv"]


def load_snapshot(path: Path) -> tuple[ScheduleAContext, list[Transaction], list[Category]]:
    """
    Read a request file into the builder's inputs.

    Raises:
        OSError: If the file cannot be read
        json.JSONDecodeError: If the file is not JSON
        pydantic.ValidationError: If a record does not match its model
        ValueError: If the top level is not an object
    """
    with open(path, encoding="utf-8") as f:
        payload: Any = json.load(f)

    if not isinstance(payload, dict):
        raise ValueError("Input must be a JSON object")

    payload = dict(payload)
    transactions = [Transaction.model_validate(item) for item in payload.pop("transactions", [])]
    categories = [Category.model_validate(item) for item in payload.pop("categories", [])]
    context = ScheduleAContext.model_validate(payload)
    return context, transactions, categories


def _write(text: str, output: Optional[Path]) -> None:
    if output is None:
        sys.stdout.write(text)
        if not text.endswith("\n"):
            sys.stdout.write("\n")
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    with open(output, "w", encoding="utf-8", newline="") as f:
        f.write(text)


def cmd_compute(args: argparse.Namespace) -> int:
    """Build a Schedule A report and write it in the requested format."""
    try:
        config = load_config()
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    configure_logging(config)

    try:
        context, transactions, categories = load_snapshot(args.input)
    except (OSError, json.JSONDecodeError, ValueError) as e:
        # pydantic.ValidationError is a ValueError
        print(f"Error reading {args.input}: {e}", file=sys.stderr)
        return EXIT_INVALID_INPUT

    try:
        report = ScheduleAReportBuilder(config).build(context, transactions, categories)
    except ValidationError as e:
        logger.error("schedule_a_request_rejected", error=e.message, **e.details)
        print(f"Invalid request: {e}", file=sys.stderr)
        return EXIT_INVALID_INPUT

    if args.format == "json":
        text = report.data.to_json()
    else:
        text = ScheduleAReportGenerator().generate(report, format=args.format)

    _write(text, args.output)

    logger.info(
        "schedule_a_cli_complete",
        format=args.format,
        output=str(args.output) if args.output else "stdout",
        warnings=len(report.warnings),
    )
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="schedule-a",
        description="Compute IRS Form 990 Schedule A public support schedules",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command", required=True)

    compute = subparsers.add_parser(
        "compute",
        help="Compute Parts II and III from a ledger snapshot",
    )
    compute.add_argument(
        "input",
        type=Path,
        help="Path to the JSON request (context, transactions, categories)",
    )
    compute.add_argument(
        "--format",
        choices=OUTPUT_FORMATS,
        default="json",
        help="Output format (default: json)",
    )
    compute.add_argument(
        "-o", "--output",
        type=Path,
        help="Output file path (default: stdout)",
    )
    compute.set_defaults(func=cmd_compute)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
