"""
Command-line interface and main entry point for partition_fetch.

Handles argument parsing, setup, and mapping results to an exit status.
"""

from __future__ import annotations

import argparse
import logging
import signal
import sys
from datetime import date
from pathlib import Path
from typing import Optional, Sequence

from boto3.exceptions import Boto3Error
from botocore.exceptions import BotoCoreError, ClientError

import config as config_module
from partition_fetch.client import create_s3_client
from partition_fetch.config import (
    ConfigurationError,
    load_env_file,
    partition_prefix,
    resolve_settings,
)
from partition_fetch.pipeline import PartitionFetch, RunOptions

EXIT_SETUP_ERROR = 1


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Invalid date (expected YYYY-MM-DD): {value}") from exc


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse CLI arguments for the fetch workflow."""
    parser = argparse.ArgumentParser(
        description=(
            "Download every .json.gz object under an S3 prefix into a local mirror of the "
            "key hierarchy, then decompress the files in place."
        )
    )
    source = parser.add_argument_group("source")
    source.add_argument("--bucket", help=f"S3 bucket (default: {config_module.BUCKET}).")
    source.add_argument("--prefix", help=f"Key prefix to walk (default: {config_module.PREFIX}).")
    source.add_argument("--date", type=_parse_date, help="Partition date YYYY-MM-DD; builds the prefix.")
    source.add_argument("--hour", type=int, help="Partition hour 0-23 (with --date).")
    source.add_argument(
        "--prefix-root",
        default=config_module.PREFIX_ROOT,
        help="Top-level prefix used with --date (default: %(default)s).",
    )
    source.add_argument("--region", help=f"AWS region (default: {config_module.REGION}).")
    source.add_argument(
        "--suffix",
        help=f"Only keys ending with this suffix (default: {config_module.COMPRESSED_SUFFIX}).",
    )

    transfer = parser.add_argument_group("transfer")
    transfer.add_argument("--local-dir", type=Path, help="Local mirror root directory.")
    transfer.add_argument(
        "--concurrency",
        type=int,
        help=f"Maximum concurrent downloads (default: {config_module.MAX_CONCURRENT_DOWNLOADS}).",
    )

    actions = parser.add_argument_group("actions")
    actions.add_argument("--list-only", action="store_true", help="Only list matching keys.")
    actions.add_argument(
        "--skip-decompress", action="store_true", help="Download but leave files compressed."
    )
    actions.add_argument("--archive-key", help="Zip the mirror and upload it to this key.")
    actions.add_argument("--archive-path", type=Path, help="Where to write the zip before upload.")
    actions.add_argument(
        "--strict",
        action="store_true",
        help="Exit with status 2 if any prefix, download, or decompression failed.",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging.")

    args = parser.parse_args(argv)
    if args.hour is not None and args.date is None:
        parser.error("--hour requires --date")
    if args.date is not None and args.prefix:
        parser.error("--date and --prefix are mutually exclusive")
    return args


def _build_overrides(args: argparse.Namespace) -> dict[str, object]:
    prefix = args.prefix
    if args.date is not None:
        prefix = partition_prefix(args.prefix_root, args.date, args.hour)
    return {
        "bucket": args.bucket,
        "prefix": prefix,
        "local_dir": args.local_dir,
        "region": args.region,
        "concurrency": args.concurrency,
        "suffix": args.suffix,
    }


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the partition_fetch CLI."""
    args = parse_args(sys.argv[1:] if argv is None else argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(message)s",
    )

    load_env_file()
    try:
        settings = resolve_settings(_build_overrides(args))
    except ConfigurationError:
        logging.exception("Invalid configuration")
        return EXIT_SETUP_ERROR

    try:
        settings.local_dir.mkdir(parents=True, exist_ok=True)
    except OSError:
        logging.exception("Failed to create local directory %s", settings.local_dir)
        return EXIT_SETUP_ERROR

    try:
        s3 = create_s3_client(settings.region, max_workers=settings.concurrency)
    except (BotoCoreError, ValueError):
        logging.exception("Unable to create S3 client")
        return EXIT_SETUP_ERROR

    fetch = PartitionFetch(s3, settings)

    def _signal_handler(_signum, _frame):
        fetch.interrupt()
        print("\nInterrupted: finishing in-flight downloads, no new work will start.")

    signal.signal(signal.SIGINT, _signal_handler)

    options = RunOptions(
        list_only=args.list_only,
        skip_decompress=args.skip_decompress,
        archive_key=args.archive_key,
        archive_path=args.archive_path,
    )
    try:
        report = fetch.run(options)
    except (ClientError, BotoCoreError, Boto3Error, OSError):
        logging.exception("Archive or upload failed")
        return EXIT_SETUP_ERROR

    if report.has_failures:
        print("Completed with failures; see log for details.")
    else:
        print("Process completed successfully.")
    return report.exit_code(strict=args.strict)
