"""
Data types for batch files.

A batch file ("manifest") is an ordered list of lines. Each line names one
input to decode, optionally followed by a reference transcript:

    audio/0001.wav THE QUICK BROWN FOX
    audio/0002.wav
"""

from __future__ import annotations

from dataclasses import dataclass
import re
from typing import Iterator

# Token separators: ASCII space, tab, newline, carriage return and form feed.
# Other Unicode whitespace (e.g. NBSP) is part of a token.
_SEPARATORS = re.compile(r"[ \t\n\r\f]+")


@dataclass(frozen=True)
class Record:
    """
    A single batch file line, split into its parts.

    Attributes:
        index: Zero-based position of the line in the batch file
        primary: Input path or identifier (empty string for a blank line)
        reference: Reference transcript, or None when the line has no
            trailing tokens
    """

    index: int
    primary: str
    reference: str | None = None

    @classmethod
    def parse(cls, index: int, line: str) -> "Record":
        """
        Split a raw line on whitespace.

        Trailing tokens are joined with single spaces. A line with no
        trailing tokens has ``reference=None``, never an empty string.

        Example:
            >>> Record.parse(0, "foo.wav  HELLO   WORLD")
            Record(index=0, primary='foo.wav', reference='HELLO WORLD')
            >>> Record.parse(1, "foo.wav").reference is None
            True
        """
        tokens = [t for t in _SEPARATORS.split(line) if t]
        if not tokens:
            return cls(index=index, primary="", reference=None)
        reference = " ".join(tokens[1:]) if len(tokens) > 1 else None
        return cls(index=index, primary=tokens[0], reference=reference)


@dataclass(frozen=True)
class ShardSpec:
    """
    Which slice of the batch file this run owns.

    Attributes:
        which_batch: Requested shard index (>= 0)
        total_batches: Number of shards; values <= 1 disable sharding
    """

    which_batch: int = 0
    total_batches: int = 1

    def __post_init__(self) -> None:
        if self.which_batch < 0:
            raise ValueError(f"which_batch must be >= 0, got {self.which_batch}")

    @property
    def sharded(self) -> bool:
        return self.total_batches > 1

    @property
    def effective_batch(self) -> int:
        """Shard index after clamping to the last shard."""
        if self.sharded and self.which_batch >= self.total_batches:
            return self.total_batches - 1
        return self.which_batch

    @property
    def is_last(self) -> bool:
        return not self.sharded or self.effective_batch == self.total_batches - 1


@dataclass(frozen=True)
class Manifest:
    """
    Batch file contents, read once and kept in order.

    Attributes:
        source: Path or URL the lines were read from
        lines: Raw lines without line terminators
    """

    source: str
    lines: tuple[str, ...]

    def __len__(self) -> int:
        return len(self.lines)

    def records(self, start: int = 0, stop: int | None = None) -> Iterator[Record]:
        """Yield parsed records for ``lines[start:stop]``, keeping file indices."""
        stop = len(self.lines) if stop is None else stop
        for index in range(start, min(stop, len(self.lines))):
            yield Record.parse(index, self.lines[index])
