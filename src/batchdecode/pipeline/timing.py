"""Named wall-clock timers for a batch run."""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator


@dataclass
class Timer:
    """Accumulates elapsed time over repeated start/stop cycles."""

    name: str
    count: int = 0
    total: float = 0.0
    min: float | None = None
    max: float | None = None
    _started: float | None = field(default=None, repr=False)

    def start(self) -> None:
        self._started = time.perf_counter()

    def stop(self) -> float:
        if self._started is None:
            raise RuntimeError(f"Timer {self.name!r} stopped without being started")
        elapsed = time.perf_counter() - self._started
        self._started = None
        self.count += 1
        self.total += elapsed
        self.min = elapsed if self.min is None else min(self.min, elapsed)
        self.max = elapsed if self.max is None else max(self.max, elapsed)
        return elapsed

    @property
    def mean(self) -> float:
        return self.total / self.count if self.count else 0.0

    @contextmanager
    def time(self) -> Iterator["Timer"]:
        self.start()
        try:
            yield self
        finally:
            self.stop()


@dataclass
class TimerRegistry:
    """Timers owned by one run, dumped together at the end."""

    timers: dict[str, Timer] = field(default_factory=dict)

    def get(self, name: str) -> Timer:
        if name not in self.timers:
            self.timers[name] = Timer(name)
        return self.timers[name]

    def dump_all(self, logger: logging.Logger) -> None:
        for timer in self.timers.values():
            logger.info(
                "timer",
                extra={
                    "timer": timer.name,
                    "count": timer.count,
                    "total_s": round(timer.total, 4),
                    "mean_s": round(timer.mean, 4),
                    "min_s": round(timer.min or 0.0, 4),
                    "max_s": round(timer.max or 0.0, 4),
                },
            )
