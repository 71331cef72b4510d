"""
Configuration for the partition fetch tool.

Performance notes:
- Parallel downloads with ThreadPoolExecutor (20 concurrent workers by default)
- One single-threaded stream per worker so the worker count is the real ceiling
- Reduced progress update frequency to minimize overhead

Any value below can be overridden in config_local.py (not committed to git).
"""

try:
    import config_local as _local
except ImportError:  # config_local.py is optional
    _local = None

__all__ = [
    "BUCKET",
    "PREFIX",
    "PREFIX_ROOT",
    "LOCAL_BASE_PATH",
    "REGION",
    "MAX_CONCURRENT_DOWNLOADS",
    "COMPRESSED_SUFFIX",
    "PROGRESS_UPDATE_INTERVAL",
]

# Source bucket and the partition prefix inside it
BUCKET: str = getattr(_local, "BUCKET", "hashfleet-data-lake-prod")
PREFIX_ROOT: str = getattr(_local, "PREFIX_ROOT", "miner_data")
PREFIX: str = getattr(_local, "PREFIX", "miner_data/2025/10/01/00")

# Local destination directory for the mirrored tree
LOCAL_BASE_PATH: str = getattr(_local, "LOCAL_BASE_PATH", "/tmp/downloads/")

REGION: str = getattr(_local, "REGION", "us-west-2")

# Download settings
MAX_CONCURRENT_DOWNLOADS: int = getattr(_local, "MAX_CONCURRENT_DOWNLOADS", 20)
COMPRESSED_SUFFIX: str = getattr(_local, "COMPRESSED_SUFFIX", ".json.gz")

# Seconds between progress lines
PROGRESS_UPDATE_INTERVAL: float = getattr(_local, "PROGRESS_UPDATE_INTERVAL", 2.0)
