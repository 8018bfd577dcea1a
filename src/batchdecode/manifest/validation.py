"""
Validation for batch files.

Checks that every line can actually be dispatched: a non-empty primary token
and, optionally, an input file that exists on disk. These checks are not
applied during a run; a run surfaces the same problems as errors when it
reaches the offending record.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .models import Manifest


@dataclass(frozen=True)
class ValidationIssue:
    """
    Represents a validation problem.

    Attributes:
        line: Zero-based line index in the batch file
        message: Human-readable description of the issue
    """

    line: int
    message: str


def validate_manifest(manifest: Manifest, *, check_files: bool = True) -> list[ValidationIssue]:
    """
    Validate batch file lines.

    Checks that:
    - The batch file is not empty
    - Each line has a primary token
    - Each primary token names a readable file (when ``check_files``)

    Relative input paths are resolved against the current directory, the
    same way a run opens them.

    Parameters:
        manifest: Loaded batch file
        check_files: Whether to stat each input file

    Returns:
        List of validation issues (empty if valid)

    Example:
        >>> issues = validate_manifest(load_manifest("batch.txt"))
        >>> for issue in issues:
        ...     print(f"line {issue.line}: {issue.message}")
    """
    issues: list[ValidationIssue] = []

    if len(manifest) == 0:
        issues.append(ValidationIssue(-1, "Batch file has no lines."))
        return issues

    for record in manifest.records():
        if not record.primary:
            issues.append(ValidationIssue(record.index, "Blank line has no input path."))
            continue

        if check_files:
            p = Path(record.primary).expanduser()
            if not p.exists():
                issues.append(ValidationIssue(record.index, f"Input not found: {record.primary}"))
            elif not p.is_file():
                issues.append(ValidationIssue(record.index, f"Input is not a file: {record.primary}"))

    return issues
