"""Shared helpers for mirroring keys locally and reporting progress"""

from __future__ import annotations

import time
from pathlib import Path, PurePosixPath

# Constants for time conversions
SECONDS_PER_MINUTE = 60
SECONDS_PER_HOUR = 3600
SECONDS_PER_DAY = 86400

BYTES_PER_UNIT = 1024


class PathTraversalError(ValueError):
    """Raised when an S3 key would escape the local mirror root."""


def mirror_path(local_root: Path, key: str) -> Path:
    """
    Map an S3 key onto the local mirror tree.

    Every `/`-delimited segment of the key becomes one directory level below
    `local_root`; empty and `.` segments are dropped, so keys that differ
    only in those segments share one path.

    Args:
        local_root: Root directory of the local mirror
        key: S3 object key

    Returns:
        Destination path for the object

    Raises:
        PathTraversalError: If the key contains `..` or resolves outside the root
    """
    candidate = Path(local_root)
    parts = [part for part in PurePosixPath(key).parts if part not in ("", ".", "/")]
    if not parts:
        raise PathTraversalError(f"Key does not name a file: {key!r}")
    for part in parts:
        if part == "..":
            raise PathTraversalError(f"Path traversal detected in key: {key}")
        candidate /= part
    try:
        candidate.relative_to(local_root)
    except ValueError as exc:
        raise PathTraversalError(f"Path traversal detected in key: {key}") from exc
    return candidate


def partial_path(path: Path) -> Path:
    """Return the temporary sibling used while `path` is being written."""
    return path.with_name(path.name + ".part")


def format_duration(seconds: float) -> str:
    """Format seconds to human readable duration"""
    if seconds < SECONDS_PER_MINUTE:
        return f"{int(seconds)}s"
    if seconds < SECONDS_PER_HOUR:
        minutes = int(seconds / SECONDS_PER_MINUTE)
        secs = int(seconds % SECONDS_PER_MINUTE)
        return f"{minutes}m {secs}s"
    if seconds < SECONDS_PER_DAY:
        hours = int(seconds / SECONDS_PER_HOUR)
        minutes = int((seconds % SECONDS_PER_HOUR) / SECONDS_PER_MINUTE)
        return f"{hours}h {minutes}m"
    days = int(seconds / SECONDS_PER_DAY)
    hours = int((seconds % SECONDS_PER_DAY) / SECONDS_PER_HOUR)
    return f"{days}d {hours}h"


def format_size(num_bytes: float) -> str:
    """Format bytes to human readable size"""
    value = float(num_bytes)
    for unit in ["B", "KiB", "MiB", "GiB", "TiB"]:
        if value < BYTES_PER_UNIT:
            return f"{value:.2f} {unit}"
        value /= BYTES_PER_UNIT
    return f"{value:.2f} PiB"


class ProgressTracker:
    """Prints `label: current/total` lines, throttled to one per interval."""

    def __init__(self, total: int, label: str, update_interval: float = 2.0):
        self.total = total
        self.label = label
        self.update_interval = update_interval
        self.last_update = time.time()
        self.start = time.time()

    def update(self, current: int) -> None:
        """Update progress display if update interval has elapsed."""
        now = time.time()
        if current == self.total or now - self.last_update >= self.update_interval:
            if self.total:
                pct = (current / self.total) * 100
                status = f"{current:,}/{self.total:,} ({pct:5.1f}%)"
            else:
                status = f"{current:,}"
            print(f"\r  {self.label}: {status}", end="", flush=True)
            self.last_update = now

    def elapsed(self) -> float:
        """Seconds since the tracker was created."""
        return time.time() - self.start

    def finish(self) -> None:
        """Print final newline to complete progress display."""
        print()
