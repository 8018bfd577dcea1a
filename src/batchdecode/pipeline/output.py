"""
Result output paths and resume tracking.

Each shard writes its decode results to its own JSONL file, named from a
SHA1 of the batch file source plus the shard coordinates, so concurrent
shards never share an output file. Records already present in that file
can be skipped when a run is restarted.
"""

from __future__ import annotations

from pathlib import Path
import hashlib
import json
from typing import Any

from batchdecode.manifest import Record, ShardSpec


def shard_output_path(batch_source: str, spec: ShardSpec, output_dir: Path) -> Path:
    """
    Generate the JSONL output path for one shard of a batch file.

    Parameters:
        batch_source: Batch file path or URL
        spec: Shard descriptor (the clamped index is used)
        output_dir: Base directory for output files

    Returns:
        Path to output JSONL file

    Example:
        >>> shard_output_path("batch.txt", ShardSpec(1, 4), Path("runs"))
        PosixPath('runs/3f1c...9a2e-shard1of4.jsonl')
    """
    sha1_hash = hashlib.sha1(batch_source.encode("utf-8")).hexdigest()
    total = max(spec.total_batches, 1)
    return output_dir / f"{sha1_hash}-shard{spec.effective_batch}of{total}.jsonl"


def record_key(batch_source: str, record: Record) -> str:
    """
    Stable identifier for one decoded record.

    Includes the line index so that the same input listed twice is decoded
    (and resumed) twice.
    """
    return "|".join([batch_source, str(record.index), record.primary])


def load_processed_keys(output_path: Path) -> set[str]:
    """
    Load record_key set from existing JSONL output file.

    Truncated or invalid lines (e.g. a partial last line after a crash) are
    ignored.

    Parameters:
        output_path: Path to JSONL output file

    Returns:
        Set of record keys that have been processed
    """
    processed: set[str] = set()
    if not output_path.exists():
        return processed

    try:
        with output_path.open("r", encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                try:
                    rec = json.loads(line)
                except json.JSONDecodeError:
                    continue
                k = rec.get("record_key") if isinstance(rec, dict) else None
                if isinstance(k, str):
                    processed.add(k)
    except OSError:
        # If the file cannot be read, fall back to reprocessing
        return set()

    return processed


def append_record(output_path: Path, record: dict[str, Any]) -> None:
    """
    Append a record to JSONL output file.

    Creates parent directories if they don't exist.
    """
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("a", encoding="utf-8") as f:
        f.write(json.dumps(record, ensure_ascii=False) + "\n")
