"""Phase 3: Decompressing the mirrored tree in place"""

from __future__ import annotations

import enum
import gzip
import logging
import os
import zlib
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Optional

from partition_fetch.utils import partial_path

CHUNK_SIZE = 1024 * 1024


class SweepStatus(enum.Enum):
    """What happened to one compressed file."""

    DECOMPRESSED = "decompressed"
    FAILED = "failed"
    CLEANUP_FAILED = "cleanup_failed"


@dataclass(frozen=True)
class SweepOutcome:
    source: Path
    target: Path
    status: SweepStatus
    error: Optional[str] = None


@dataclass
class SweepReport:
    """Per-file outcomes of one sweep, in path order."""

    outcomes: list[SweepOutcome] = field(default_factory=list)

    def _with_status(self, status: SweepStatus) -> list[SweepOutcome]:
        return [outcome for outcome in self.outcomes if outcome.status is status]

    @property
    def decompressed(self) -> list[SweepOutcome]:
        return self._with_status(SweepStatus.DECOMPRESSED)

    @property
    def failed(self) -> list[SweepOutcome]:
        return self._with_status(SweepStatus.FAILED)

    @property
    def cleanup_failed(self) -> list[SweepOutcome]:
        return self._with_status(SweepStatus.CLEANUP_FAILED)


def decompressed_target(path: Path) -> Path:
    """Sibling path with the compression extension stripped (x.json.gz -> x.json)."""
    return path.with_name(PurePosixPath(path.name).stem)


def find_compressed_files(root: Path, suffix: str = ".json.gz") -> list[Path]:
    """Snapshot every regular file under `root` whose name ends with `suffix`."""
    matches: list[Path] = []
    for dirpath, _dirnames, filenames in os.walk(root):
        for name in filenames:
            if name.endswith(suffix) and len(name) > len(suffix):
                candidate = Path(dirpath) / name
                if candidate.is_file():
                    matches.append(candidate)
    return sorted(matches)


def _gunzip(source: Path, target: Path) -> None:
    """Stream-decompress `source` onto `target`, replacing it only on success."""
    staging = partial_path(target)
    try:
        with gzip.open(source, "rb") as src, staging.open("wb") as dst:
            for chunk in iter(lambda: src.read(CHUNK_SIZE), b""):
                dst.write(chunk)
        os.replace(staging, target)
    except BaseException:
        staging.unlink(missing_ok=True)
        raise


def decompress_file(source: Path) -> SweepOutcome:
    """
    Decompress one file next to itself and remove the original.

    A decompression failure keeps the original and leaves no target behind.
    A failed removal after a good decompression is only a warning; both
    copies stay, and a later sweep decompresses again and retries removal.
    """
    target = decompressed_target(source)
    try:
        _gunzip(source, target)
    except (OSError, EOFError, zlib.error) as exc:
        logging.error("Failed to decompress %s: %s", source, exc)
        return SweepOutcome(source=source, target=target, status=SweepStatus.FAILED, error=str(exc))
    try:
        source.unlink()
    except OSError as exc:
        logging.warning("Decompressed %s but could not remove it: %s", source, exc)
        return SweepOutcome(
            source=source, target=target, status=SweepStatus.CLEANUP_FAILED, error=str(exc)
        )
    logging.info("Decompressed %s to %s", source, target)
    return SweepOutcome(source=source, target=target, status=SweepStatus.DECOMPRESSED)


def decompress_tree(root: Path, suffix: str = ".json.gz") -> SweepReport:
    """Decompress every matching file under `root`; a missing root yields an empty report."""
    report = SweepReport()
    for source in find_compressed_files(Path(root), suffix):
        report.outcomes.append(decompress_file(source))
    return report
