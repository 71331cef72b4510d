"""Packing the local mirror into a zip and uploading it back to S3."""

from __future__ import annotations

import logging
import os
import zipfile
from pathlib import Path


def create_zip(source_dir: Path, zip_path: Path) -> int:
    """
    Write every file under `source_dir` into `zip_path`.

    Archive member names are relative to `source_dir`. The zip itself is
    skipped when it lives inside the tree.

    Returns:
        Number of files archived
    """
    source_dir = Path(source_dir)
    zip_path = Path(zip_path)
    zip_path.parent.mkdir(parents=True, exist_ok=True)
    archived = 0
    with zipfile.ZipFile(zip_path, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for dirpath, _dirnames, filenames in os.walk(source_dir):
            for name in sorted(filenames):
                path = Path(dirpath) / name
                if path.resolve() == zip_path.resolve():
                    continue
                archive.write(path, arcname=path.relative_to(source_dir).as_posix())
                archived += 1
    logging.info("Archived %d file(s) from %s into %s", archived, source_dir, zip_path)
    return archived


def upload_file(s3, bucket: str, key: str, path: Path) -> None:
    """Upload a local file to s3://bucket/key."""
    s3.upload_file(Filename=str(path), Bucket=bucket, Key=key)
    logging.info("Uploaded %s to s3://%s/%s", path, bucket, key)
