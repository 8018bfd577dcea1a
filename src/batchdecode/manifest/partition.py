"""
Shard boundary computation.

Splits a batch file into ``total_batches`` contiguous slices. Every shard but
the last gets ``max(1, n // total_batches)`` lines; the last shard takes
whatever remains, so the shards together cover every line exactly once.
"""

from __future__ import annotations

import logging

from .models import Manifest, Record, ShardSpec

logger = logging.getLogger(__name__)


def lines_per_shard(total_records: int, total_batches: int) -> int:
    """Size of every shard except the last."""
    return max(1, total_records // total_batches)


def shard_bounds(total_records: int, spec: ShardSpec) -> tuple[int, int]:
    """
    Return the ``[start, stop)`` line range owned by ``spec``.

    Ranges may be empty when there are fewer lines than shards. ``start``
    and ``stop`` are both clipped to ``total_records``.

    Example:
        >>> shard_bounds(10, ShardSpec(which_batch=2, total_batches=3))
        (6, 10)
        >>> shard_bounds(10, ShardSpec(which_batch=7, total_batches=3))
        (6, 10)
    """
    if not spec.sharded:
        return (0, total_records)

    per_shard = lines_per_shard(total_records, spec.total_batches)
    start = min(spec.effective_batch * per_shard, total_records)

    if spec.is_last:
        return (start, total_records)
    return (start, min(start + per_shard, total_records))


def plan_shards(total_records: int, total_batches: int) -> list[tuple[int, int]]:
    """Bounds for every shard index, in order."""
    if total_batches <= 1:
        return [(0, total_records)]
    return [
        shard_bounds(total_records, ShardSpec(which_batch=i, total_batches=total_batches))
        for i in range(total_batches)
    ]


def partition(manifest: Manifest, spec: ShardSpec) -> list[Record]:
    """
    Records of ``manifest`` assigned to ``spec``, in file order.

    Parameters:
        manifest: Loaded batch file
        spec: Shard descriptor (clamped if out of range)

    Returns:
        Records with their original file indices
    """
    start, stop = shard_bounds(len(manifest), spec)
    if spec.which_batch != spec.effective_batch:
        logger.warning(
            "shard_index_clamped",
            extra={
                "which_batch": spec.which_batch,
                "effective_batch": spec.effective_batch,
                "total_batches": spec.total_batches,
            },
        )
    logger.info(
        "shard_selected",
        extra={
            "batch_file": manifest.source,
            "which_batch": spec.effective_batch,
            "total_batches": spec.total_batches,
            "start": start,
            "size": stop - start,
        },
    )
    return list(manifest.records(start, stop))
