"""
Shard planning for parallel runs.

Computes the line ranges of every shard of a batch file and writes them as
a plan file suitable for SLURM job arrays or other parallel processing
systems. Each array task then runs ``batchdecode run`` with its own
``--which-batch``.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from batchdecode.manifest import Manifest, plan_shards


@dataclass(frozen=True)
class ShardPlan:
    """
    Line range owned by one shard.

    Attributes:
        which_batch: Shard index
        start: First line index (inclusive)
        stop: Last line index (exclusive)
    """

    which_batch: int
    start: int
    stop: int

    @property
    def size(self) -> int:
        return self.stop - self.start


def prepare_shard_plan(manifest: Manifest, total_batches: int) -> list[ShardPlan]:
    """
    Compute the shard ranges for a batch file.

    Parameters:
        manifest: Loaded batch file
        total_batches: Number of shards (values <= 1 yield a single shard)

    Returns:
        One ShardPlan per shard index, in order

    Example:
        >>> plans = prepare_shard_plan(manifest, 3)   # 10 lines
        >>> [(p.start, p.stop) for p in plans]
        [(0, 3), (3, 6), (6, 10)]
    """
    return [
        ShardPlan(which_batch=i, start=start, stop=stop)
        for i, (start, stop) in enumerate(plan_shards(len(manifest), total_batches))
    ]


def write_shard_plan(plans: list[ShardPlan], plan_path: Path) -> None:
    """
    Write shard plans to a tab-separated file.

    Creates a file with one line per shard:
        which_batch<TAB>start<TAB>stop<TAB>size

    This format is designed to be read by SLURM job arrays using sed.
    """
    plan_path.parent.mkdir(parents=True, exist_ok=True)
    with plan_path.open("w", encoding="utf-8") as f:
        for plan in plans:
            f.write(f"{plan.which_batch}\t{plan.start}\t{plan.stop}\t{plan.size}\n")
