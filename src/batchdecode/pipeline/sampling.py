"""
Stride selection within a shard.

A counter starts at ``skip``. For each record it is incremented, and the
record is selected when the counter reaches ``skip``, which resets it to 0.
Because the counter starts "full", the first record of a shard is always
selected, and the record at shard position ``i`` is selected exactly when
``i % max(skip, 1) == 0``:

    skip <= 1 -> 0, 1, 2, 3, ...
    skip == 3 -> 0, 3, 6, 9, ...
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class StrideSampler:
    """Stateful every-Nth selector, one per run."""

    skip: int = 0
    _count: int = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._count = self.skip

    def select(self) -> bool:
        """Advance by one record and report whether it is selected."""
        self._count += 1
        if self._count >= self.skip:
            self._count = 0
            return True
        return False


def selected_positions(total: int, skip: int) -> list[int]:
    """Shard positions a fresh sampler selects out of ``total`` records."""
    sampler = StrideSampler(skip)
    return [i for i in range(total) if sampler.select()]
