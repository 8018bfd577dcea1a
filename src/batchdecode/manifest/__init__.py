"""
Batch file loading, parsing and sharding.

Basic usage:
    >>> from batchdecode.manifest import load_manifest, partition, ShardSpec
    >>>
    >>> manifest = load_manifest("batch.txt")
    >>> for record in partition(manifest, ShardSpec(which_batch=1, total_batches=4)):
    ...     print(record.primary, record.reference)
"""

from .models import (
    Manifest,
    Record,
    ShardSpec,
)
from .loaders import (
    load_manifest,
    load_text,
    fetch_text,
)
from .partition import (
    lines_per_shard,
    shard_bounds,
    plan_shards,
    partition,
)
from .validation import (
    ValidationIssue,
    validate_manifest,
)

__all__ = [
    # Models
    "Manifest",
    "Record",
    "ShardSpec",
    # Loaders
    "load_manifest",
    "load_text",
    "fetch_text",
    # Partitioning
    "lines_per_shard",
    "shard_bounds",
    "plan_shards",
    "partition",
    # Validation
    "ValidationIssue",
    "validate_manifest",
]
