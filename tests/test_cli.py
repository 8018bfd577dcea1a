"""Tests for the batchdecode CLI."""

from pathlib import Path
import json
import shlex
import sys
import tempfile

import pytest
from typer.testing import CliRunner

from batchdecode.cli import app

runner = CliRunner()

ECHO = shlex.join([sys.executable, "-c", "import sys; sys.stdout.write(sys.stdin.read())"])


@pytest.fixture
def workdir():
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        lines = []
        for i in range(10):
            path = root / f"utt{i}.raw"
            path.write_text(f"word{i}", encoding="utf-8")
            lines.append(f"{path} WORD{i}")
        (root / "batch.txt").write_text("\n".join(lines) + "\n", encoding="utf-8")
        (root / "batch.props").write_text(
            f"batch.inputDataType = audio\nengine.audioCommand = {ECHO}\n", encoding="utf-8"
        )
        yield root


class TestRunCommand:
    def test_missing_arguments_is_usage_error(self):
        result = runner.invoke(app, ["run"])
        assert result.exit_code == 2

    def test_decodes_shard_and_writes_output(self, workdir):
        out_dir = workdir / "out"
        result = runner.invoke(
            app,
            [
                "run",
                str(workdir / "batch.props"),
                str(workdir / "batch.txt"),
                "--which-batch", "2",
                "--total-batches", "3",
                "--output-dir", str(out_dir),
            ],
        )
        assert result.exit_code == 0, result.output
        assert "Decoded: 4" in result.output

        (output_file,) = list(out_dir.glob("*.jsonl"))
        assert output_file.name.endswith("-shard2of3.jsonl")
        rows = [json.loads(line) for line in output_file.read_text().splitlines()]
        assert [r["index"] for r in rows] == [6, 7, 8, 9]
        assert rows[0]["hypothesis"] == "word6"

    def test_skip_option(self, workdir):
        result = runner.invoke(
            app,
            ["run", str(workdir / "batch.props"), str(workdir / "batch.txt"), "--skip", "3"],
        )
        assert result.exit_code == 0, result.output
        assert "Selected: 4" in result.output

    def test_missing_input_exits_with_run_failure(self, workdir):
        (workdir / "utt1.raw").unlink()
        result = runner.invoke(app, ["run", str(workdir / "batch.props"), str(workdir / "batch.txt")])
        assert result.exit_code == 3
        assert "utt1.raw" in result.output

    def test_missing_input_skipped_by_policy(self, workdir):
        (workdir / "utt1.raw").unlink()
        result = runner.invoke(
            app,
            [
                "run", str(workdir / "batch.props"), str(workdir / "batch.txt"),
                "--on-missing-input", "skip",
            ],
        )
        assert result.exit_code == 0, result.output
        assert "Skipped (unreadable): 1" in result.output

    def test_unreadable_batch_file_is_config_error(self, workdir):
        result = runner.invoke(app, ["run", str(workdir / "batch.props"), str(workdir / "nope.txt")])
        assert result.exit_code == 1

    def test_bad_property_is_config_error(self, workdir):
        (workdir / "bad.props").write_text("batch.inputDataType = video\n", encoding="utf-8")
        result = runner.invoke(app, ["run", str(workdir / "bad.props"), str(workdir / "batch.txt")])
        assert result.exit_code == 1
        assert "inputDataType" in result.output


    def test_missing_command_fails_before_decoding(self, workdir):
        """Test that an unset recognizer command is reported even for an empty shard."""
        (workdir / "empty.txt").write_text("", encoding="utf-8")
        result = runner.invoke(
            app,
            [
                "run", str(workdir / "batch.props"), str(workdir / "empty.txt"),
                "--input-type", "cepstrum",
            ],
        )
        assert result.exit_code == 1
        assert "No recognizer command configured for cepstrum input" in result.output


class TestPlanCommand:
    def test_prints_and_writes_plan(self, workdir):
        plan_path = workdir / "shards.tsv"
        result = runner.invoke(
            app, ["plan", str(workdir / "batch.txt"), "--total-batches", "3", "--write", str(plan_path)]
        )
        assert result.exit_code == 0, result.output
        assert "shard 2: lines 6-10 (4)" in result.output
        assert plan_path.read_text().splitlines()[0] == "0\t0\t3\t3"


class TestValidateCommand:
    def test_valid(self, workdir):
        result = runner.invoke(app, ["validate", str(workdir / "batch.txt")])
        assert result.exit_code == 0
        assert "Validation passed (10 line(s))" in result.output

    def test_missing_input(self, workdir):
        (workdir / "utt4.raw").unlink()
        result = runner.invoke(app, ["validate", str(workdir / "batch.txt")])
        assert result.exit_code == 2
        assert "line 4" in result.output
