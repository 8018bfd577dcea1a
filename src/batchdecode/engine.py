from __future__ import annotations

import logging
import subprocess
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import BinaryIO, Protocol, Union

from batchdecode.errors import ConfigurationError, DecodeError
from batchdecode.scoring import WerAccumulator, compute_wer


class InputKind(str, Enum):
    """Structural category of the inputs in a run."""

    AUDIO = "audio"
    CEPSTRUM = "cepstrum"


@dataclass(frozen=True)
class AudioInput:
    """Raw audio bytes (e.g. a WAV or headerless PCM file)."""

    stream: BinaryIO
    name: str


@dataclass(frozen=True)
class CepstrumInput:
    """Pre-extracted feature frames (cepstra)."""

    stream: BinaryIO
    name: str


InputSource = Union[AudioInput, CepstrumInput]


@dataclass(frozen=True)
class DecodeResult:
    """Outcome of decoding one input."""

    name: str
    hypothesis: str
    reference: str | None
    elapsed_ms: int


@dataclass(frozen=True)
class Summary:
    """Totals reported by an engine at the end of a run."""

    utterances: int
    scored: int
    errors: int
    ref_words: int
    sentence_errors: int

    @property
    def wer(self) -> float:
        return self.errors / self.ref_words if self.ref_words else 0.0


class DecoderEngine(Protocol):
    """Minimal interface for a recognizer driven by a batch run."""

    name: str

    def decode_audio(self, source: AudioInput, reference: str | None) -> DecodeResult:
        ...

    def decode_cepstrum(self, source: CepstrumInput, reference: str | None) -> DecodeResult:
        ...

    def show_summary(self) -> Summary:
        ...


@dataclass
class CommandEngine:
    """Recognizer implementation backed by an external command.

    The input stream is connected to the command's stdin and the hypothesis
    is read from its stdout, e.g.:

        pocketsphinx single -

    Any ``{name}`` placeholder in the command is replaced with the input
    path, for recognizers that want to open the file themselves.
    """

    audio_command: list[str] | None = None
    cepstrum_command: list[str] | None = None
    timeout: float | None = None
    name: str = "command"
    logger: logging.Logger | None = None
    results: list[DecodeResult] = field(default_factory=list)
    _scores: WerAccumulator = field(default_factory=WerAccumulator, init=False, repr=False)

    def command_for(self, kind: InputKind) -> list[str]:
        """Recognizer command for ``kind``; raises ConfigurationError if unset."""
        command = self.audio_command if kind is InputKind.AUDIO else self.cepstrum_command
        if not command:
            raise ConfigurationError(f"No recognizer command configured for {kind.value} input")
        return command

    def decode_audio(self, source: AudioInput, reference: str | None) -> DecodeResult:
        return self._run(InputKind.AUDIO, source, reference)

    def decode_cepstrum(self, source: CepstrumInput, reference: str | None) -> DecodeResult:
        return self._run(InputKind.CEPSTRUM, source, reference)

    def _run(
        self,
        kind: InputKind,
        source: InputSource,
        reference: str | None,
    ) -> DecodeResult:
        argv = [arg.replace("{name}", source.name) for arg in self.command_for(kind)]
        t0 = time.perf_counter()
        try:
            proc = subprocess.run(
                argv,
                stdin=source.stream,
                capture_output=True,
                check=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise ConfigurationError(
                f"Recognizer command not found: {argv[0]}. Check engine.{kind.value}Command."
            ) from e
        except subprocess.CalledProcessError as e:
            stderr = (e.stderr or b"").decode("utf-8", errors="replace")
            raise DecodeError(source.name, f"recognizer exited with {e.returncode}:\n{stderr}") from e
        except subprocess.TimeoutExpired as e:
            raise DecodeError(source.name, f"recognizer timed out after {e.timeout}s") from e

        elapsed_ms = int((time.perf_counter() - t0) * 1000)
        hypothesis = " ".join(proc.stdout.decode("utf-8", errors="replace").split())
        result = DecodeResult(
            name=source.name,
            hypothesis=hypothesis,
            reference=reference,
            elapsed_ms=elapsed_ms,
        )
        self._record(result)
        return result

    def _record(self, result: DecodeResult) -> None:
        self.results.append(result)
        extra: dict[str, object] = {
            "input": result.name,
            "hypothesis": result.hypothesis,
            "elapsed_ms": result.elapsed_ms,
        }
        if result.reference is not None:
            score = compute_wer(result.reference, result.hypothesis)
            self._scores.add(score)
            extra["reference"] = result.reference
            extra["wer"] = round(score.wer, 4)
        if self.logger:
            self.logger.info("decode_result", extra=extra)

    def show_summary(self) -> Summary:
        """Return run totals and log them."""
        summary = Summary(
            utterances=len(self.results),
            scored=self._scores.utterances,
            errors=self._scores.errors,
            ref_words=self._scores.ref_words,
            sentence_errors=self._scores.sentence_errors,
        )
        if self.logger:
            self.logger.info(
                "decode_summary",
                extra={
                    "engine": self.name,
                    "utterances": summary.utterances,
                    "scored": summary.scored,
                    "word_errors": summary.errors,
                    "ref_words": summary.ref_words,
                    "sentence_errors": summary.sentence_errors,
                    "wer": round(summary.wer, 4),
                },
            )
        return summary
