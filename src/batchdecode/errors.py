"""Exception hierarchy for batch decoding runs."""

from __future__ import annotations


class BatchDecodeError(Exception):
    """Base class for all batchdecode failures."""


class ConfigurationError(BatchDecodeError):
    """Static misconfiguration: bad properties, unsupported input type, etc."""


class ManifestError(ConfigurationError):
    """The batch file could not be read."""


class InputError(BatchDecodeError):
    """
    A selected record's input could not be opened.

    Attributes:
        index: Position of the record in the batch file
        path: Primary token of the record (may be empty for blank lines)
    """

    def __init__(self, index: int, path: str, message: str) -> None:
        super().__init__(f"record {index} ({path or '<blank>'}): {message}")
        self.index = index
        self.path = path


class DecodeError(BatchDecodeError):
    """The decoder engine failed on an input."""

    def __init__(self, path: str, message: str) -> None:
        super().__init__(f"{path}: {message}")
        self.path = path
