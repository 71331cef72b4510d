"""
Settings resolution for partition_fetch.

Effective values come from CLI flags, then PARTITION_FETCH_* environment
variables (a .env file is honoured), then the repository's config.py.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import date
from pathlib import Path, PurePosixPath
from typing import Mapping, Optional

from dotenv import load_dotenv

import config as config_module

ENV_PREFIX = "PARTITION_FETCH_"
MIN_SUFFIX_PARTS = 2
COMPRESSION_EXTENSION = ".gz"
MAX_HOUR = 23


class ConfigurationError(RuntimeError):
    """Raised when required configuration is missing or invalid."""


@dataclass(frozen=True)
class FetchSettings:
    """Everything one pipeline run needs to know."""

    bucket: str
    prefix: str
    local_dir: Path
    region: str
    concurrency: int = 20
    suffix: str = ".json.gz"
    progress_interval: float = 2.0

    def validate(self) -> "FetchSettings":
        """Return self, or raise ConfigurationError describing the first problem."""
        if not self.bucket:
            raise ConfigurationError("A bucket name is required (--bucket or PARTITION_FETCH_BUCKET).")
        if self.concurrency < 1:
            raise ConfigurationError(f"Concurrency must be at least 1, got {self.concurrency}.")
        suffixes = PurePosixPath("x" + self.suffix).suffixes
        if not self.suffix.startswith(".") or len(suffixes) < MIN_SUFFIX_PARTS:
            raise ConfigurationError(
                f"Suffix {self.suffix!r} must name content and compression, e.g. '.json.gz'."
            )
        if suffixes[-1] != COMPRESSION_EXTENSION:
            raise ConfigurationError(
                f"Suffix {self.suffix!r} must end with {COMPRESSION_EXTENSION}; only gzip is decompressed."
            )
        return self


def _resolve_env_path(env_path: Optional[str] = None) -> str:
    """Explicit path, then AWS_ENV_FILE, then ~/.env."""
    if env_path:
        return env_path
    aws_env_file = os.environ.get("AWS_ENV_FILE")
    if aws_env_file:
        return aws_env_file
    return str(Path.home() / ".env")


def load_env_file(env_path: Optional[str] = None) -> str:
    """Load a .env file into the process environment and return its path."""
    resolved = _resolve_env_path(env_path)
    load_dotenv(resolved)
    return resolved


def partition_prefix(root: str, day: date, hour: Optional[int] = None) -> str:
    """
    Build the date/hour partition prefix, e.g. ``miner_data/2025/10/01/00``.

    Raises:
        ConfigurationError: If hour is outside 0-23
    """
    parts = [root.strip("/"), f"{day.year:04d}", f"{day.month:02d}", f"{day.day:02d}"]
    if hour is not None:
        if not 0 <= hour <= MAX_HOUR:
            raise ConfigurationError(f"Hour must be between 0 and {MAX_HOUR}, got {hour}.")
        parts.append(f"{hour:02d}")
    return "/".join(part for part in parts if part)


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(ENV_PREFIX + name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{ENV_PREFIX}{name} must be an integer, got {raw!r}") from exc


def resolve_settings(
    overrides: Optional[Mapping[str, object]] = None,
    env: Optional[Mapping[str, str]] = None,
) -> FetchSettings:
    """
    Merge CLI overrides, environment, and config.py defaults.

    Args:
        overrides: Values given explicitly (None entries are ignored)
        env: Environment mapping (defaults to os.environ)

    Returns:
        Validated FetchSettings

    Raises:
        ConfigurationError: If the merged settings are invalid
    """
    env = os.environ if env is None else env
    given = {name: value for name, value in (overrides or {}).items() if value is not None}

    settings = FetchSettings(
        bucket=str(given.get("bucket", env.get(ENV_PREFIX + "BUCKET", config_module.BUCKET))),
        prefix=str(given.get("prefix", env.get(ENV_PREFIX + "PREFIX", config_module.PREFIX))),
        local_dir=Path(
            given.get("local_dir", env.get(ENV_PREFIX + "LOCAL_DIR", config_module.LOCAL_BASE_PATH))
        ).expanduser(),
        region=str(given.get("region", env.get(ENV_PREFIX + "REGION", config_module.REGION))),
        concurrency=int(
            given.get(
                "concurrency",
                _env_int(env, "CONCURRENCY", config_module.MAX_CONCURRENT_DOWNLOADS),
            )
        ),
        suffix=str(given.get("suffix", config_module.COMPRESSED_SUFFIX)),
        progress_interval=float(config_module.PROGRESS_UPDATE_INTERVAL),
    )
    return settings.validate()
