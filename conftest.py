"""Pytest configuration and shared fixtures for partition_fetch."""

# pylint: disable=wrong-import-position

import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import pytest

from tests.fake_s3 import FakeS3


@pytest.fixture(autouse=True)
def isolated_env_file(tmp_path, monkeypatch):
    """Point AWS_ENV_FILE at an empty temp .env so tests never read ~/.env."""
    env_file = tmp_path / ".env"
    env_file.write_text("")
    monkeypatch.setenv("AWS_ENV_FILE", str(env_file))
    for name in ("BUCKET", "PREFIX", "LOCAL_DIR", "REGION", "CONCURRENCY"):
        monkeypatch.delenv(f"PARTITION_FETCH_{name}", raising=False)
    yield str(env_file)


@pytest.fixture(name="fake_s3")
def fixture_fake_s3():
    """An empty in-memory bucket; tests add objects with put()."""
    return FakeS3()


@pytest.fixture(name="local_root")
def fixture_local_root(tmp_path):
    """Local mirror root inside the test's temp directory."""
    return tmp_path / "mirror"
