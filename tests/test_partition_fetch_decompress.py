"""Tests for partition_fetch/decompress.py"""

from __future__ import annotations

import gzip
import logging
from pathlib import Path
from unittest import mock

from partition_fetch.decompress import (
    SweepOutcome,
    SweepReport,
    SweepStatus,
    decompress_file,
    decompress_tree,
    decompressed_target,
    find_compressed_files,
)

RECORD = '{"rig": "rig-1", "hashrate": 104.2}\n'


def _write_gz(path: Path, text: str = RECORD) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(gzip.compress(text.encode("utf-8")))
    return path


def test_decompressed_target_strips_compression_extension(tmp_path):
    """x.json.gz becomes x.json next to the original"""
    assert decompressed_target(tmp_path / "a" / "x.json.gz") == tmp_path / "a" / "x.json"


def test_find_compressed_files_snapshot(tmp_path):
    """Only regular files with the suffix are returned, sorted"""
    _write_gz(tmp_path / "b" / "two.json.gz")
    _write_gz(tmp_path / "a" / "one.json.gz")
    (tmp_path / "a" / "notes.txt").write_text("skip")
    (tmp_path / "a" / "plain.gz").write_bytes(b"skip")
    (tmp_path / "dir.json.gz").mkdir()

    found = find_compressed_files(tmp_path)

    assert found == [tmp_path / "a" / "one.json.gz", tmp_path / "b" / "two.json.gz"]


def test_find_compressed_files_missing_root(tmp_path):
    """A root that was never created yields nothing"""
    assert find_compressed_files(tmp_path / "absent") == []


def test_decompress_file_replaces_original(tmp_path):
    """The sibling holds the full decompressed stream and the original is gone"""
    source = _write_gz(tmp_path / "x.json.gz", RECORD * 1000)

    outcome = decompress_file(source)

    assert outcome.status is SweepStatus.DECOMPRESSED
    assert outcome.target == tmp_path / "x.json"
    assert (tmp_path / "x.json").read_text() == RECORD * 1000
    assert not source.exists()


def test_truncated_stream_keeps_original_and_no_target(tmp_path, caplog):
    """A truncated gzip leaves the .json.gz untouched and produces no .json"""
    source = tmp_path / "broken.json.gz"
    payload = gzip.compress((RECORD * 500).encode("utf-8"))
    source.write_bytes(payload[: len(payload) // 2])

    with caplog.at_level(logging.ERROR):
        outcome = decompress_file(source)

    assert outcome.status is SweepStatus.FAILED
    assert source.read_bytes() == payload[: len(payload) // 2]
    assert not (tmp_path / "broken.json").exists()
    assert not (tmp_path / "broken.json.part").exists()
    assert "broken.json.gz" in caplog.text


def test_not_gzip_is_failed(tmp_path):
    """Garbage input is reported as a failure, not raised"""
    source = tmp_path / "garbage.json.gz"
    source.write_bytes(b"this is not gzip data")

    outcome = decompress_file(source)

    assert outcome.status is SweepStatus.FAILED
    assert outcome.error
    assert source.exists()
    assert not (tmp_path / "garbage.json").exists()


def test_cleanup_failure_keeps_both_copies(tmp_path, caplog):
    """If the original cannot be removed, the sweep warns and keeps both files"""
    source = _write_gz(tmp_path / "x.json.gz")

    with mock.patch.object(Path, "unlink", side_effect=PermissionError("read-only")):
        with caplog.at_level(logging.WARNING):
            outcome = decompress_file(source)

    assert outcome.status is SweepStatus.CLEANUP_FAILED
    assert "read-only" in outcome.error
    assert source.exists()
    assert (tmp_path / "x.json").read_text() == RECORD
    assert "could not remove" in caplog.text


def test_rerun_after_cleanup_failure_converges(tmp_path):
    """A later sweep re-decompresses the leftover pair and removes the original"""
    source = _write_gz(tmp_path / "x.json.gz")
    with mock.patch.object(Path, "unlink", side_effect=PermissionError("read-only")):
        decompress_tree(tmp_path)

    report = decompress_tree(tmp_path)

    assert [o.status for o in report.outcomes] == [SweepStatus.DECOMPRESSED]
    assert not source.exists()
    assert (tmp_path / "x.json").read_text() == RECORD


def test_decompress_tree_mixed_outcomes(tmp_path):
    """Good files are swept, bad ones stay, other files are untouched"""
    _write_gz(tmp_path / "2025" / "10" / "a.json.gz", "a\n")
    _write_gz(tmp_path / "2025" / "11" / "b.json.gz", "b\n")
    (tmp_path / "2025" / "10" / "bad.json.gz").write_bytes(b"\x1f\x8b broken")
    (tmp_path / "2025" / "keep.txt").write_text("untouched")

    report = decompress_tree(tmp_path)

    assert len(report.outcomes) == 3
    assert [o.source.name for o in report.decompressed] == ["a.json.gz", "b.json.gz"]
    assert [o.source.name for o in report.failed] == ["bad.json.gz"]
    assert report.cleanup_failed == []
    assert (tmp_path / "2025" / "10" / "a.json").read_text() == "a\n"
    assert (tmp_path / "2025" / "11" / "b.json").read_text() == "b\n"
    assert (tmp_path / "2025" / "10" / "bad.json.gz").exists()
    assert (tmp_path / "2025" / "keep.txt").read_text() == "untouched"


def test_second_sweep_is_noop(tmp_path):
    """Re-running on a swept tree finds nothing and changes nothing"""
    _write_gz(tmp_path / "p" / "a.json.gz", "a\n")
    decompress_tree(tmp_path)
    before = sorted(p.relative_to(tmp_path).as_posix() for p in tmp_path.rglob("*"))

    report = decompress_tree(tmp_path)

    assert report.outcomes == []
    assert sorted(p.relative_to(tmp_path).as_posix() for p in tmp_path.rglob("*")) == before
    assert (tmp_path / "p" / "a.json").read_text() == "a\n"


def test_sweep_report_grouping(tmp_path):
    """SweepReport filters outcomes by status"""
    report = SweepReport(
        outcomes=[
            SweepOutcome(tmp_path / "a", tmp_path / "a2", SweepStatus.DECOMPRESSED),
            SweepOutcome(tmp_path / "b", tmp_path / "b2", SweepStatus.FAILED, "bad"),
            SweepOutcome(tmp_path / "c", tmp_path / "c2", SweepStatus.CLEANUP_FAILED, "perm"),
        ]
    )
    assert [o.source.name for o in report.decompressed] == ["a"]
    assert [o.source.name for o in report.failed] == ["b"]
    assert [o.source.name for o in report.cleanup_failed] == ["c"]
