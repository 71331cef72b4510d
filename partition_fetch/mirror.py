"""Writes one S3 object into the local mirror tree."""

from __future__ import annotations

import os
from pathlib import Path

from boto3.s3.transfer import TransferConfig

from partition_fetch.utils import partial_path

# One stream per object; the scheduler's pool is the concurrency ceiling.
SINGLE_STREAM_CONFIG = TransferConfig(use_threads=False)


def download_to_mirror(
    s3,
    bucket: str,
    key: str,
    destination: Path,
    transfer_config: TransferConfig = SINGLE_STREAM_CONFIG,
) -> int:
    """
    Stream `key` into `destination`, creating parent directories.

    Bytes are written to a `.part` sibling that is renamed onto `destination`
    only after the stream completes; on any failure the partial file is
    removed and the error propagates.

    Returns:
        Number of bytes written
    """
    destination.parent.mkdir(parents=True, exist_ok=True)
    staging = partial_path(destination)
    try:
        with staging.open("wb") as fh:
            s3.download_fileobj(Bucket=bucket, Key=key, Fileobj=fh, Config=transfer_config)
        size = staging.stat().st_size
        os.replace(staging, destination)
    except BaseException:
        staging.unlink(missing_ok=True)
        raise
    return size
