# ruff: noqa: T201

from __future__ import annotations

import argparse
import logging
import sys
import time
from dataclasses import replace
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from b2bsync.adapters.sheets import CsvRecordSource
from b2bsync.app import sync_companies, validate_source
from b2bsync.config import ConfigurationError, configure_logging, get_sync_config
from b2bsync.domain.batch import BatchStatus
from b2bsync.domain.errors import BatchValidationError

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from b2bsync.domain.batch import BatchResult, BatchValidationReport
    from b2bsync.domain.ports import RecordSource

log = logging.getLogger(__name__)

EXIT_FAILURE = 1
EXIT_USAGE = 2


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Synchronise the companies sheet into Shopify B2B"
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log every lookup and decision (DEBUG level)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    sync = subparsers.add_parser("sync", help="Create or refresh companies, contacts and locations")
    sync.add_argument(
        "--csv",
        type=Path,
        help="Read rows from a CSV export instead of the Google Sheet",
    )
    sync.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Number of rows processed concurrently (defaults to config)",
    )

    validate = subparsers.add_parser("validate", help="Run pre-flight validation only")
    validate.add_argument(
        "--csv",
        type=Path,
        help="Read rows from a CSV export instead of the Google Sheet",
    )

    return parser.parse_args(list(argv))


def format_validation(messages: Sequence[str]) -> str:
    lines = [f"Validation failed with {len(messages)} error(s):"]
    lines.extend(f"  - {message}" for message in messages)
    return "\n".join(lines)


def format_report(report: BatchValidationReport) -> str:
    if not report.is_valid:
        return format_validation(report.errors)
    return (
        f"Validation passed: {report.total_rows} rows, "
        f"{report.unique_companies} companies, {report.unique_locations} company locations"
    )


def format_summary(result: BatchResult, *, elapsed: float | None = None) -> str:
    counts = result.counts
    headline = {
        BatchStatus.FULL_SUCCESS: "Sync completed successfully",
        BatchStatus.PARTIAL_SUCCESS: "Sync completed with failures",
        BatchStatus.TOTAL_FAILURE: "Sync failed",
    }[result.status]
    lines = [
        headline,
        f"  Rows: {counts.rows_processed} processed, {counts.rows_failed} failed"
        + (f", {counts.rows_cancelled} cancelled" if counts.rows_cancelled else ""),
        f"  Companies: {counts.companies_created} created, {counts.companies_found} found",
        f"  Customers: {counts.customers_created} created, {counts.customers_found} found",
        f"  Locations: {counts.locations_created} created, {counts.locations_found} found",
        f"  Contacts linked: {counts.contacts_linked}",
        f"  Location assignments: {counts.assignments_created} created, "
        f"{counts.assignments_skipped} skipped",
    ]
    if elapsed is not None:
        lines.insert(1, f"  Duration: {elapsed:.2f}s")
    failures = result.failures
    if failures:
        lines.append("Failed rows:")
        lines.extend(f"  - {failure.describe()}" for failure in failures)
    return "\n".join(lines)


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)

    try:
        sync_config = get_sync_config()
        if getattr(parsed_args, "workers", None) is not None:
            if parsed_args.workers < 1:
                raise ValueError("--workers must be at least 1")  # noqa: TRY301
            sync_config = replace(sync_config, max_workers=parsed_args.workers)
        source: RecordSource | None = (
            CsvRecordSource(parsed_args.csv) if parsed_args.csv is not None else None
        )
    except (ValueError, ConfigurationError):
        log.exception("CLI validation error")
        sys.exit(EXIT_USAGE)

    try:
        if parsed_args.command == "validate":
            report = validate_source(source=source, sync_config=sync_config)
            print(format_report(report))
            if not report.is_valid:
                sys.exit(EXIT_USAGE)
            return

        started = time.perf_counter()
        result = sync_companies(source=source, sync_config=sync_config)
    except BatchValidationError as exc:
        print(format_validation(exc.messages))
        sys.exit(EXIT_USAGE)
    except ConfigurationError:
        log.exception("Configuration error")
        sys.exit(EXIT_USAGE)
    except Exception:
        log.exception("Fatal error during sync")
        sys.exit(EXIT_FAILURE)

    print(format_summary(result, elapsed=time.perf_counter() - started))
    if result.status is not BatchStatus.FULL_SUCCESS:
        sys.exit(EXIT_FAILURE)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully outside the sync loop."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(EXIT_FAILURE)


def run() -> None:
    """Console script entry point."""
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
