"""
Run configuration.

Settings come from a Java-style properties file, read once at startup:

    batch.skip = 0
    batch.whichBatch = 2
    batch.totalBatches = 8
    batch.inputDataType = audio
    engine.audioCommand = pocketsphinx single -

The resulting BatchConfig is passed explicitly to the partitioner and the
dispatcher; nothing reads properties after startup.
"""

from __future__ import annotations

import shlex
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from batchdecode.engine import InputKind
from batchdecode.errors import ConfigurationError
from batchdecode.manifest import ShardSpec

BATCH_PREFIX = "batch."
ENGINE_PREFIX = "engine."


class EngineConfig(BaseModel):
    """Settings for the external recognizer command."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    audio_command: list[str] | None = Field(default=None, alias="audioCommand")
    cepstrum_command: list[str] | None = Field(default=None, alias="cepstrumCommand")
    timeout: float | None = Field(default=None, gt=0)

    @field_validator("audio_command", "cepstrum_command", mode="before")
    @classmethod
    def _split_command(cls, value: Any) -> Any:
        if isinstance(value, str):
            return shlex.split(value) or None
        return value


class BatchConfig(BaseModel):
    """
    Settings for one batch run.

    Attributes:
        skip: Stride; every ``skip``-th record of the shard is decoded
            (0 or 1 decode every record; must be >= 0)
        which_batch: Shard index of this run
        total_batches: Number of shards the batch file is split into
        input_data_type: Input kind for the whole run
        on_missing_input: ``halt`` stops the run on an unreadable input,
            ``skip`` logs a warning and moves on
        engine: Recognizer settings
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    skip: int = Field(default=0, ge=0)
    which_batch: int = Field(default=0, ge=0, alias="whichBatch")
    total_batches: int = Field(default=1, alias="totalBatches")
    input_data_type: InputKind = Field(default=InputKind.AUDIO, alias="inputDataType")
    on_missing_input: Literal["halt", "skip"] = Field(default="halt", alias="onMissingInput")
    engine: EngineConfig = Field(default_factory=EngineConfig)

    @property
    def shard(self) -> ShardSpec:
        return ShardSpec(which_batch=self.which_batch, total_batches=self.total_batches)


def load_properties(path: Path) -> dict[str, str]:
    """
    Parse a properties file into a flat dict.

    Supports ``key=value`` and ``key: value`` lines. Lines starting with
    ``#`` or ``!`` and blank lines are ignored. Later keys override earlier
    ones.

    Raises:
        OSError: If the file cannot be read
    """
    props: dict[str, str] = {}
    with path.expanduser().open("r", encoding="utf-8") as f:
        for raw in f:
            line = raw.strip()
            if not line or line.startswith(("#", "!")):
                continue
            eq = line.find("=")
            colon = line.find(":")
            seps = [i for i in (eq, colon) if i >= 0]
            if not seps:
                props[line] = ""
                continue
            i = min(seps)
            props[line[:i].strip()] = line[i + 1 :].strip()
    return props


def _section(props: dict[str, str], prefix: str) -> dict[str, str]:
    return {k[len(prefix) :]: v for k, v in props.items() if k.startswith(prefix)}


def build_config(props: dict[str, str], **overrides: Any) -> BatchConfig:
    """
    Validate properties plus overrides into a BatchConfig.

    Overrides use field names (``which_batch=3``); ``None`` values are
    ignored so CLI options left unset fall through to the file.

    Raises:
        ConfigurationError: If any value is invalid
    """
    data: dict[str, Any] = dict(_section(props, BATCH_PREFIX))
    data["engine"] = _section(props, ENGINE_PREFIX)
    for key, value in overrides.items():
        if value is None:
            continue
        # Aliases take precedence during validation, so store overrides under them.
        field_info = BatchConfig.model_fields.get(key)
        if field_info is not None and field_info.alias:
            key = field_info.alias
        data[key] = value

    try:
        return BatchConfig.model_validate(data)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ConfigurationError(f"Invalid configuration: {problems}") from e


def load_config(path: Path | None = None, **overrides: Any) -> BatchConfig:
    """
    Load a BatchConfig from an optional properties file.

    Example:
        >>> config = load_config(Path("batch.props"), which_batch=3)
        >>> config.shard
        ShardSpec(which_batch=3, total_batches=8)

    Raises:
        ConfigurationError: If the file is unreadable or a value is invalid
    """
    props: dict[str, str] = {}
    if path is not None:
        try:
            props = load_properties(path)
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigurationError(f"Cannot read properties file {path}: {e}") from e
    return build_config(props, **overrides)
