"""Tests for shard boundary computation."""

from pathlib import Path
import tempfile

import pytest

from batchdecode.errors import ManifestError
from batchdecode.manifest import (
    Manifest,
    ShardSpec,
    load_manifest,
    partition,
    plan_shards,
    shard_bounds,
)


def make_manifest(n: int) -> Manifest:
    return Manifest(source="batch.txt", lines=tuple(f"utt{i:03d}.wav REF {i}" for i in range(n)))


class TestShardBounds:
    """Tests for shard_bounds()."""

    def test_ten_records_three_shards(self):
        """Test that the last shard absorbs the remainder: 3, 3, 4."""
        assert shard_bounds(10, ShardSpec(0, 3)) == (0, 3)
        assert shard_bounds(10, ShardSpec(1, 3)) == (3, 6)
        assert shard_bounds(10, ShardSpec(2, 3)) == (6, 10)

    def test_single_shard_is_whole_file(self):
        assert shard_bounds(10, ShardSpec(0, 1)) == (0, 10)

    def test_zero_total_batches_is_whole_file(self):
        """Test that total_batches <= 1 disables partitioning."""
        assert shard_bounds(10, ShardSpec(5, 0)) == (0, 10)

    def test_clamped_index_gets_last_shard(self):
        """Test that which_batch >= total_batches is treated as the last shard."""
        assert shard_bounds(10, ShardSpec(3, 3)) == shard_bounds(10, ShardSpec(2, 3))
        assert shard_bounds(10, ShardSpec(50, 3)) == (6, 10)

    def test_more_shards_than_records(self):
        """Test that with one line per shard, trailing shards are empty."""
        assert plan_shards(3, 5) == [(0, 1), (1, 2), (2, 3), (3, 3), (3, 3)]

    def test_empty_manifest(self):
        assert plan_shards(0, 4) == [(0, 0)] * 4


class TestPartitionCoverage:
    """Tests that shards together cover the batch file exactly once."""

    @pytest.mark.parametrize("n", [0, 1, 2, 7, 10, 11, 23, 100])
    @pytest.mark.parametrize("total", [2, 3, 4, 7, 16])
    def test_union_is_manifest(self, n, total):
        manifest = make_manifest(n)
        indices = []
        for i in range(total):
            shard = partition(manifest, ShardSpec(which_batch=i, total_batches=total))
            shard_indices = [r.index for r in shard]
            assert shard_indices == sorted(shard_indices)
            indices.extend(shard_indices)

        assert indices == list(range(n))

    def test_single_shard_returns_all_records_in_order(self):
        manifest = make_manifest(5)
        records = partition(manifest, ShardSpec())
        assert [r.primary for r in records] == [f"utt{i:03d}.wav" for i in range(5)]

    def test_records_are_parsed(self):
        manifest = make_manifest(10)
        records = partition(manifest, ShardSpec(1, 3))
        assert records[0].index == 3
        assert records[0].primary == "utt003.wav"
        assert records[0].reference == "REF 3"


class TestLoadManifest:
    """Tests for load_manifest()."""

    def test_preserves_order_and_blank_lines(self):
        with tempfile.NamedTemporaryFile(mode="w", suffix=".txt", delete=False) as f:
            f.write("b.wav\n\na.wav HELLO\nb.wav\n")
            temp_path = Path(f.name)

        try:
            manifest = load_manifest(temp_path)
            assert manifest.lines == ("b.wav", "", "a.wav HELLO", "b.wav")
            assert manifest.source == str(temp_path)
        finally:
            temp_path.unlink()

    def test_missing_file_raises_manifest_error(self):
        with pytest.raises(ManifestError, match="Cannot read batch file"):
            load_manifest("/tmp/does_not_exist_batch_12345.txt")

    def test_separator_characters_stay_inside_a_line(self):
        """Test that form feeds and Unicode line separators do not split a line."""
        with tempfile.NamedTemporaryFile(
            mode="w", suffix=".txt", encoding="utf-8", newline="", delete=False
        ) as f:
            f.write("a.wav HELLO\x0cWORLD\nb.wav THE END\x85\nc.wav\n")
            temp_path = Path(f.name)

        try:
            manifest = load_manifest(temp_path)
            assert len(manifest) == 3
            assert manifest.lines[0] == "a.wav HELLO\x0cWORLD"
            assert [r.primary for r in manifest.records()] == ["a.wav", "b.wav", "c.wav"]
        finally:
            temp_path.unlink()

    def test_crlf_and_trailing_blank_line(self):
        """Test that \\r\\n and \\r end lines and a final blank line is kept."""
        with tempfile.NamedTemporaryFile(
            mode="w", suffix=".txt", encoding="utf-8", newline="", delete=False
        ) as f:
            f.write("a.wav X\r\nb.wav\rc.wav\n\n")
            temp_path = Path(f.name)

        try:
            manifest = load_manifest(temp_path)
            assert manifest.lines == ("a.wav X", "b.wav", "c.wav", "")
        finally:
            temp_path.unlink()

    def test_empty_file_has_no_lines(self):
        with tempfile.NamedTemporaryFile(mode="w", suffix=".txt", delete=False) as f:
            temp_path = Path(f.name)

        try:
            assert load_manifest(temp_path).lines == ()
        finally:
            temp_path.unlink()
