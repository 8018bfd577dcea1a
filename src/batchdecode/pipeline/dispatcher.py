"""
Batch iteration and dispatch.

Walks the records of one shard in order, thins them with the configured
stride, and feeds each selected input to the decoder engine. Designed to be
run once per shard, e.g. from a SLURM job array task.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable
import logging
import time

from batchdecode.config import BatchConfig
from batchdecode.engine import (
    AudioInput,
    CepstrumInput,
    DecodeResult,
    DecoderEngine,
    InputKind,
    Summary,
)
from batchdecode.errors import ConfigurationError, InputError
from batchdecode.manifest import Manifest, Record, partition

from .output import append_record, load_processed_keys, record_key
from .sampling import StrideSampler
from .timing import TimerRegistry

logger = logging.getLogger(__name__)


@dataclass
class RunResult:
    """
    Result of decoding one shard.

    Attributes:
        batch_file: Batch file path or URL
        shard_size: Number of records in this shard
        selected: Records picked by the stride
        decoded: Records passed to the engine
        skipped_missing: Selected records whose input could not be opened
            (only with ``on_missing_input="skip"``)
        skipped_resume: Selected records already present in the output
        elapsed_seconds: Total wall time of the run
        summary: Engine summary requested after the last record
    """

    batch_file: str
    shard_size: int
    selected: int
    decoded: int
    skipped_missing: int
    skipped_resume: int
    elapsed_seconds: float
    summary: Summary


def resolve_route(
    kind: InputKind, engine: DecoderEngine
) -> tuple[type[AudioInput] | type[CepstrumInput], Callable[..., DecodeResult]]:
    """Input variant and engine entry point for a run's input kind."""
    if kind is InputKind.AUDIO:
        return AudioInput, engine.decode_audio
    if kind is InputKind.CEPSTRUM:
        return CepstrumInput, engine.decode_cepstrum
    raise ConfigurationError(
        f"Unsupported input data type: {kind!r}. Only audio and cepstrum are supported."
    )


class BatchDecoder:
    """
    Decodes the records of one shard of a batch file.

    Parameters:
        config: Run configuration (shard, stride, input kind, policies)
        engine: Recognizer the inputs are dispatched to
        output_path: Optional JSONL file receiving one line per decoded record
        resume: Skip records whose key is already in ``output_path``
        timers: Timer registry; a fresh one is created if omitted

    Example:
        >>> decoder = BatchDecoder(config, CommandEngine(audio_command=["recognize", "-"]))
        >>> result = decoder.decode(load_manifest("batch.txt"))
        >>> print(f"Decoded {result.decoded} of {result.shard_size} records")
    """

    def __init__(
        self,
        config: BatchConfig,
        engine: DecoderEngine,
        *,
        output_path: Path | None = None,
        resume: bool = False,
        timers: TimerRegistry | None = None,
    ) -> None:
        self.config = config
        self.engine = engine
        self.output_path = output_path
        self.resume = resume and output_path is not None
        self.timers = timers if timers is not None else TimerRegistry()
        self._input_type, self._entry_point = resolve_route(config.input_data_type, engine)

    def records(self, manifest: Manifest) -> list[Record]:
        """Records of ``manifest`` assigned to this run's shard."""
        return partition(manifest, self.config.shard)

    def decode(self, manifest: Manifest) -> RunResult:
        """
        Decode every selected record of this shard, in order.

        After the last record the timers are dumped and the engine summary is
        requested.

        Raises:
            InputError: If an input cannot be opened and the policy is ``halt``
            DecodeError: If the engine fails (propagated unchanged)
        """
        start_time = time.perf_counter()
        records = self.records(manifest)
        sampler = StrideSampler(self.config.skip)
        processed_keys = load_processed_keys(self.output_path) if self.resume else set()

        selected = 0
        decoded = 0
        skipped_missing = 0
        skipped_resume = 0

        logger.info(
            "batch_start",
            extra={
                "batch_file": manifest.source,
                "shard_size": len(records),
                "skip": self.config.skip,
                "input_data_type": self.config.input_data_type.value,
            },
        )

        for record in records:
            if not sampler.select():
                continue
            selected += 1

            k = record_key(manifest.source, record)
            if self.resume and k in processed_keys:
                skipped_resume += 1
                continue

            try:
                result = self.decode_record(record)
            except InputError as e:
                if self.config.on_missing_input != "skip":
                    raise
                logger.warning(
                    "input_skipped",
                    extra={"index": e.index, "input": e.path, "error": str(e)},
                )
                skipped_missing += 1
                continue

            decoded += 1
            if self.output_path is not None:
                append_record(self.output_path, self._output_record(k, record, result))
                processed_keys.add(k)

        logger.info(
            "batch_complete",
            extra={
                "batch_file": manifest.source,
                "selected": selected,
                "decoded": decoded,
                "skipped_missing": skipped_missing,
                "skipped_resume": skipped_resume,
            },
        )
        self.timers.dump_all(logger)
        summary = self.engine.show_summary()

        return RunResult(
            batch_file=manifest.source,
            shard_size=len(records),
            selected=selected,
            decoded=decoded,
            skipped_missing=skipped_missing,
            skipped_resume=skipped_resume,
            elapsed_seconds=time.perf_counter() - start_time,
            summary=summary,
        )

    def decode_record(self, record: Record) -> DecodeResult:
        """
        Open one record's input and dispatch it to the engine.

        The stream is closed before this returns, whatever the outcome.

        Raises:
            InputError: If the record has no input path or it cannot be opened
        """
        if not record.primary:
            raise InputError(record.index, record.primary, "blank line has no input path")

        logger.info("decode_start", extra={"index": record.index, "input": record.primary})
        try:
            stream = open(Path(record.primary).expanduser(), "rb")
        except OSError as e:
            raise InputError(record.index, record.primary, str(e)) from e

        with stream:
            source = self._input_type(stream=stream, name=record.primary)
            with self.timers.get("decode").time():
                return self._entry_point(source, record.reference)

    def _output_record(self, key: str, record: Record, result: DecodeResult) -> dict[str, Any]:
        spec = self.config.shard
        return {
            "created_at": datetime.now(timezone.utc).isoformat(),
            "record_key": key,
            "index": record.index,
            "input": record.primary,
            "reference": record.reference,
            "hypothesis": result.hypothesis,
            "elapsed_ms": result.elapsed_ms,
            "engine": self.engine.name,
            "input_data_type": self.config.input_data_type.value,
            "which_batch": spec.effective_batch,
            "total_batches": spec.total_batches,
        }
