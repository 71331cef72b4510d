"""Package for mirroring a partitioned S3 prefix locally and decompressing it."""

from .decompress import SweepOutcome, SweepReport, SweepStatus, decompress_file, decompress_tree
from .enumerator import EnumerationResult, PrefixEnumerator, PrefixFailure, collect_keys
from .pipeline import PartitionFetch, PipelineReport, RunOptions, run_pipeline
from .transfer import TransferOutcome, TransferReport, TransferScheduler

__all__ = [
    "EnumerationResult",
    "PartitionFetch",
    "PipelineReport",
    "PrefixEnumerator",
    "PrefixFailure",
    "RunOptions",
    "SweepOutcome",
    "SweepReport",
    "SweepStatus",
    "TransferOutcome",
    "TransferReport",
    "TransferScheduler",
    "collect_keys",
    "decompress_file",
    "decompress_tree",
    "run_pipeline",
]
