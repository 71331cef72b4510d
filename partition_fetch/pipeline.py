"""
Three-phase pipeline: enumerate keys, download them, decompress the mirror.

Each phase starts only after the previous one has finished; per-item
failures are collected in the phase reports rather than raised.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from partition_fetch.archive import create_zip, upload_file
from partition_fetch.config import FetchSettings
from partition_fetch.decompress import SweepReport, decompress_tree
from partition_fetch.enumerator import EnumerationResult, PrefixEnumerator
from partition_fetch.transfer import TransferReport, TransferScheduler

EXIT_OK = 0
EXIT_PARTIAL = 2


@dataclass(frozen=True)
class RunOptions:
    """Switches controlling which phases run."""

    list_only: bool = False
    skip_decompress: bool = False
    archive_key: Optional[str] = None
    archive_path: Optional[Path] = None


@dataclass
class PipelineReport:
    enumeration: EnumerationResult = field(default_factory=EnumerationResult)
    transfers: TransferReport = field(default_factory=TransferReport)
    sweep: SweepReport = field(default_factory=SweepReport)
    archived_files: int = 0

    @property
    def has_failures(self) -> bool:
        """True if any prefix, download, or decompression failed."""
        return bool(
            self.enumeration.failed_prefixes
            or self.transfers.failed
            or self.sweep.failed
            or self.sweep.cleanup_failed
        )

    def exit_code(self, strict: bool = False) -> int:
        """Process status: per-item failures only count when `strict`."""
        if strict and self.has_failures:
            return EXIT_PARTIAL
        return EXIT_OK


def _print_phase(title: str) -> None:
    print("=" * 70)
    print(title)
    print("=" * 70)


class PartitionFetch:  # pylint: disable=too-few-public-methods
    """Wires the enumerator, scheduler, and sweep for one bucket/prefix."""

    def __init__(self, s3, settings: FetchSettings):
        self.s3 = s3
        self.settings = settings
        self.enumerator = PrefixEnumerator(s3, settings.bucket, suffix=settings.suffix)
        self.scheduler = TransferScheduler(
            s3,
            settings.bucket,
            settings.local_dir,
            max_workers=settings.concurrency,
            progress_interval=settings.progress_interval,
        )

    def interrupt(self) -> None:
        """Stop handing out new listing and download work."""
        self.enumerator.interrupted = True
        self.scheduler.interrupted = True

    def run(self, options: RunOptions = RunOptions()) -> PipelineReport:
        """Run the phases selected by `options` and return their reports."""
        report = PipelineReport()
        settings = self.settings

        _print_phase("PHASE 1/3: LISTING KEYS")
        print(f"  Source: s3://{settings.bucket}/{settings.prefix}")
        report.enumeration = self.enumerator.collect(settings.prefix)
        self._print_enumeration(report.enumeration)
        if options.list_only:
            for key in report.enumeration.keys:
                print(key)
            return report

        _print_phase("PHASE 2/3: DOWNLOADING")
        print(f"  Destination: {settings.local_dir}")
        print(f"  Concurrent workers: {settings.concurrency}")
        report.transfers = self.scheduler.transfer_all(report.enumeration.keys)
        print()

        if not options.skip_decompress:
            _print_phase("PHASE 3/3: DECOMPRESSING")
            report.sweep = decompress_tree(settings.local_dir, settings.suffix)
            self._print_sweep(report.sweep)

        if options.archive_key:
            zip_path = options.archive_path or settings.local_dir.parent / Path(options.archive_key).name
            report.archived_files = create_zip(settings.local_dir, zip_path)
            upload_file(self.s3, settings.bucket, options.archive_key, zip_path)
            print(f"  Uploaded {report.archived_files:,} file(s) to s3://{settings.bucket}/{options.archive_key}")
        return report

    @staticmethod
    def _print_enumeration(result: EnumerationResult) -> None:
        print(f"  Found {len(result.keys):,} file(s) across {result.prefixes_listed:,} prefix(es)")
        if result.failed_prefixes:
            print(f"  ⚠ {len(result.failed_prefixes):,} prefix(es) could not be fully listed:")
            for failure in result.failed_prefixes:
                print(f"    - {failure.prefix}: {failure.error}")
        print()

    @staticmethod
    def _print_sweep(report: SweepReport) -> None:
        print(f"  Decompressed:   {len(report.decompressed):,}")
        print(f"  Failed:         {len(report.failed):,}")
        print(f"  Cleanup failed: {len(report.cleanup_failed):,}")
        print()


def run_pipeline(s3, settings: FetchSettings, options: RunOptions = RunOptions()) -> PipelineReport:
    """Build a PartitionFetch for `settings` and run it."""
    return PartitionFetch(s3, settings).run(options)
