"""
batchdecode CLI

Commands:
- run: Decode one shard of a batch file
- plan: Show or write the shard ranges of a batch file
- validate: Check a batch file before submitting a run
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import typer

from batchdecode.config import load_config
from batchdecode.engine import CommandEngine, InputKind
from batchdecode.errors import BatchDecodeError, ConfigurationError
from batchdecode.manifest import load_manifest, validate_manifest
from batchdecode.pipeline.coordinator import prepare_shard_plan, write_shard_plan
from batchdecode.pipeline.dispatcher import BatchDecoder
from batchdecode.pipeline.output import shard_output_path

app = typer.Typer(add_completion=False, help="Sharded batch decoding tooling")

EXIT_CONFIG = 1
EXIT_ISSUES = 2
EXIT_RUN_FAILED = 3

_RESERVED = {
    "name", "msg", "args", "levelname", "levelno", "pathname", "filename", "module",
    "exc_info", "exc_text", "stack_info", "lineno", "funcName", "created", "msecs",
    "relativeCreated", "thread", "threadName", "processName", "process", "message",
    "taskName",
}


class JsonFormatter(logging.Formatter):
    """Simple JSON formatter for structured logs."""
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "msg": record.getMessage(),
            "logger": record.name,
        }
        # Include any custom attributes passed via `extra=`.
        for k, v in record.__dict__.items():
            if k in _RESERVED or k.startswith("_"):
                continue
            try:
                json.dumps(v)
                payload[k] = v
            except TypeError:
                payload[k] = repr(v)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def setup_logging(level: str) -> logging.Logger:
    logger = logging.getLogger("batchdecode")
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    logger.handlers[:] = [handler]
    logger.propagate = False
    return logger


LOGGER = logging.getLogger("batchdecode")


@app.command("run")
def run_cmd(
    properties: Path = typer.Argument(..., help="Properties file with batch.* and engine.* settings"),
    batch_file: str = typer.Argument(..., help="Batch file path or URL (one input per line)"),
    skip: int | None = typer.Option(None, "--skip", help="Decode every Nth record of the shard"),
    which_batch: int | None = typer.Option(None, "--which-batch", help="Shard index of this run"),
    total_batches: int | None = typer.Option(None, "--total-batches", help="Number of shards"),
    input_type: InputKind | None = typer.Option(None, "--input-type", help="Input data type"),
    on_missing_input: str | None = typer.Option(
        None, "--on-missing-input", help="What to do with unreadable inputs: halt or skip"
    ),
    output_dir: Path | None = typer.Option(
        None, "--output-dir", help="Write per-shard JSONL results to this directory"
    ),
    resume: bool = typer.Option(
        False, "--resume/--no-resume", help="Skip records already present in the shard output"
    ),
    log_level: str = typer.Option("INFO", "--log-level", help="Log level"),
) -> None:
    """
    Decode one shard of a batch file.

    Options given on the command line override the properties file.

    Example:
        batchdecode run batch.props batch.txt --which-batch 3 --total-batches 8
    """
    global LOGGER
    LOGGER = setup_logging(log_level)

    try:
        config = load_config(
            properties,
            skip=skip,
            which_batch=which_batch,
            total_batches=total_batches,
            input_data_type=input_type,
            on_missing_input=on_missing_input,
        )
        manifest = load_manifest(batch_file)
    except ConfigurationError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=EXIT_CONFIG)

    output_path = None
    if output_dir is not None:
        output_path = shard_output_path(manifest.source, config.shard, output_dir.expanduser())

    engine = CommandEngine(
        audio_command=config.engine.audio_command,
        cepstrum_command=config.engine.cepstrum_command,
        timeout=config.engine.timeout,
        logger=LOGGER,
    )
    try:
        engine.command_for(config.input_data_type)
    except ConfigurationError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=EXIT_CONFIG)
    decoder = BatchDecoder(config, engine, output_path=output_path, resume=resume)

    typer.echo(f"Decoding files in {manifest.source}")
    try:
        result = decoder.decode(manifest)
    except ConfigurationError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=EXIT_CONFIG)
    except BatchDecodeError as e:
        LOGGER.error("batch_failed", extra={"batch_file": manifest.source, "error": str(e)})
        typer.echo(f"Failed: {e}", err=True)
        raise typer.Exit(code=EXIT_RUN_FAILED)

    summary = result.summary
    typer.echo(f"\n{'='*60}")
    typer.echo("Summary:")
    typer.echo(f"  Shard: {config.shard.effective_batch} of {max(config.total_batches, 1)}")
    typer.echo(f"  Records in shard: {result.shard_size}")
    typer.echo(f"  Selected: {result.selected}")
    typer.echo(f"  Decoded: {result.decoded}")
    if result.skipped_missing:
        typer.echo(f"  Skipped (unreadable): {result.skipped_missing}")
    if result.skipped_resume:
        typer.echo(f"  Skipped (already done): {result.skipped_resume}")
    if summary.scored:
        typer.echo(f"  WER: {summary.wer:.2%} ({summary.errors}/{summary.ref_words} words)")
    if output_path is not None:
        typer.echo(f"  Output: {output_path}")


@app.command("plan")
def plan_cmd(
    batch_file: str = typer.Argument(..., help="Batch file path or URL"),
    total_batches: int = typer.Option(..., "--total-batches", "-n", help="Number of shards"),
    write: Path | None = typer.Option(
        None, "--write", "-w", help="Write the plan as TSV (which_batch, start, stop, size)"
    ),
) -> None:
    """Print the line range each shard of a batch file would decode."""
    try:
        manifest = load_manifest(batch_file)
    except ConfigurationError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=EXIT_CONFIG)

    plans = prepare_shard_plan(manifest, total_batches)
    for plan in plans:
        typer.echo(f"shard {plan.which_batch}: lines {plan.start}-{plan.stop} ({plan.size})")

    if write is not None:
        write_shard_plan(plans, write.expanduser())
        typer.echo(f"Wrote {len(plans)} shard(s) to {write}")


@app.command("validate")
def validate_cmd(
    batch_file: str = typer.Argument(..., help="Batch file path or URL"),
    check_files: bool = typer.Option(
        True, "--check-files/--no-check-files", help="Check that every input file exists"
    ),
) -> None:
    """Validate a batch file: blank lines and missing inputs."""
    try:
        manifest = load_manifest(batch_file)
    except ConfigurationError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=EXIT_CONFIG)

    issues = validate_manifest(manifest, check_files=check_files)
    if issues:
        typer.echo(f"Validation failed: {len(issues)} issue(s)\n")
        for i, issue in enumerate(issues, start=1):
            typer.echo(f"  {i:>3}. line {issue.line}: {issue.message}")
        raise typer.Exit(code=EXIT_ISSUES)

    typer.echo(f"Validation passed ({len(manifest)} line(s)).")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
