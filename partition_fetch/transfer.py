"""Phase 2: Downloading discovered keys with a bounded worker pool"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence

from boto3.exceptions import Boto3Error
from botocore.exceptions import BotoCoreError, ClientError
from s3transfer.exceptions import RetriesExceededError

from partition_fetch.mirror import download_to_mirror
from partition_fetch.utils import (
    PathTraversalError,
    ProgressTracker,
    format_duration,
    format_size,
    mirror_path,
)

DEFAULT_MAX_WORKERS = 20


@dataclass(frozen=True)
class TransferOutcome:
    """Result of one download attempt."""

    key: str
    path: Optional[Path]
    ok: bool
    bytes_written: int = 0
    error: Optional[str] = None


@dataclass
class TransferReport:
    """Outcomes of a whole batch, in completion order."""

    outcomes: list[TransferOutcome] = field(default_factory=list)

    @property
    def succeeded(self) -> list[TransferOutcome]:
        """Outcomes whose file is now present locally."""
        return [outcome for outcome in self.outcomes if outcome.ok]

    @property
    def failed(self) -> list[TransferOutcome]:
        """Outcomes whose key is absent locally."""
        return [outcome for outcome in self.outcomes if not outcome.ok]

    @property
    def bytes_written(self) -> int:
        """Total bytes written across successful downloads."""
        return sum(outcome.bytes_written for outcome in self.succeeded)


class TransferScheduler:
    """Runs one download per key on a pool of at most `max_workers` threads."""

    def __init__(
        self,
        s3,
        bucket: str,
        local_root: Path,
        max_workers: int = DEFAULT_MAX_WORKERS,
        progress_interval: float = 2.0,
    ):
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")
        self.s3 = s3
        self.bucket = bucket
        self.local_root = Path(local_root)
        self.max_workers = max_workers
        self.progress_interval = progress_interval
        self.interrupted = False

    def transfer_all(self, keys: Sequence[str]) -> TransferReport:
        """
        Attempt every key exactly once and wait for all of them.

        Failures are logged and returned as outcomes, never raised. Keys that
        had not started when `interrupted` was set come back as failures.
        """
        report = TransferReport()
        if not keys:
            return report
        progress = ProgressTracker(len(keys), "Downloaded", update_interval=self.progress_interval)
        runnable = []
        for key, outcome in self._claim_destinations(keys):
            if outcome is None:
                runnable.append(key)
            else:
                report.outcomes.append(outcome)
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = [executor.submit(self.transfer_one, key) for key in runnable]
            for future in as_completed(futures):
                report.outcomes.append(future.result())
                progress.update(len(report.outcomes))
        progress.finish()
        self._print_summary(report, progress.elapsed())
        return report

    def _claim_destinations(self, keys: Sequence[str]):
        """
        Yield (key, None) for keys to download, or (key, outcome) for keys
        whose local path was already claimed earlier in the batch.

        Empty segments collapse in mirror_path, so `a//x` and `a/x` share a
        destination; only the first is downloaded.
        """
        claimed: dict[Path, str] = {}
        for key in keys:
            try:
                destination = mirror_path(self.local_root, key)
            except PathTraversalError:
                yield key, None
                continue
            owner = claimed.setdefault(destination, key)
            if owner == key:
                yield key, None
                continue
            error = f"same local path as {owner}"
            logging.error("Skipping %s: %s", key, error)
            yield key, TransferOutcome(key=key, path=destination, ok=False, error=error)

    def transfer_one(self, key: str) -> TransferOutcome:
        """Download a single key into the mirror; never raises."""
        if self.interrupted:
            return TransferOutcome(key=key, path=None, ok=False, error="interrupted")
        try:
            destination = mirror_path(self.local_root, key)
        except PathTraversalError as exc:
            logging.error("Skipping %s: %s", key, exc)
            return TransferOutcome(key=key, path=None, ok=False, error=str(exc))
        try:
            size = download_to_mirror(self.s3, self.bucket, key, destination)
        except ClientError as exc:
            error_code = exc.response.get("Error", {}).get("Code", "")
            error_msg = f"{error_code} - {exc}" if error_code else str(exc)
            logging.error("Failed to download %s to %s: %s", key, destination, error_msg)
            return TransferOutcome(key=key, path=destination, ok=False, error=error_msg)
        except (BotoCoreError, Boto3Error, RetriesExceededError, OSError) as exc:
            logging.error("Failed to download %s to %s: %s", key, destination, exc)
            return TransferOutcome(key=key, path=destination, ok=False, error=str(exc))
        logging.info("Downloaded %s to %s", key, destination)
        return TransferOutcome(key=key, path=destination, ok=True, bytes_written=size)

    def _print_summary(self, report: TransferReport, elapsed: float) -> None:
        throughput = report.bytes_written / elapsed if elapsed > 0 else 0
        print(f"  ✓ Completed in {format_duration(elapsed)}")
        print(f"  Downloaded: {len(report.succeeded):,} files, {format_size(report.bytes_written)}")
        print(f"  Throughput: {format_size(throughput)}/s")
        if report.failed:
            print(f"  Failed:     {len(report.failed):,} file(s); see log for details")
