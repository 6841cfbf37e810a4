"""Tests for checkpoint CSV storage."""

import pytest

from perplexica_search.core.orchestrator.checkpoint import (
    CheckpointRecord,
    CheckpointStore,
    load_checkpoint,
    save_checkpoint,
)


class TestCheckpointStore:
    """Tests for CheckpointStore."""

    def test_missing_file_loads_empty(self, tmp_path):
        store = CheckpointStore(tmp_path / "nope.csv")

        assert not store.exists()
        assert store.load() == []

    def test_save_writes_header_and_rows(self, tmp_path):
        """Test the file layout is a query,message CSV."""
        path = tmp_path / "cp.csv"

        count = save_checkpoint(
            [CheckpointRecord("a", "A"), CheckpointRecord("b", "")],
            path,
        )

        assert count == 2
        lines = path.read_text(encoding="utf-8").splitlines()
        assert lines == ["query,message", "a,A", "b,"]

    def test_save_overwrites(self, tmp_path):
        path = tmp_path / "cp.csv"
        save_checkpoint([CheckpointRecord("a", "A"), CheckpointRecord("b", "B")], path)

        save_checkpoint([CheckpointRecord("c", "C")], path)

        assert load_checkpoint(path) == [CheckpointRecord("c", "C")]

    def test_save_creates_parent_directories(self, tmp_path):
        path = tmp_path / "nested" / "dir" / "cp.csv"

        save_checkpoint([CheckpointRecord("a", "A")], path)

        assert path.exists()

    def test_quoting_survives(self, tmp_path):
        """Test commas, quotes and newlines in answers are preserved."""
        path = tmp_path / "cp.csv"
        rows = [
            CheckpointRecord("q, with comma", 'He said "hi"'),
            CheckpointRecord("multi", "line one\nline two"),
        ]

        save_checkpoint(rows, path)

        assert load_checkpoint(path) == rows

    def test_header_order_and_extra_columns(self, tmp_path):
        """Test columns are found by name and extras ignored."""
        path = tmp_path / "cp.csv"
        path.write_text("id,message,query\n1,Answer,Question\n", encoding="utf-8")

        assert load_checkpoint(path) == [CheckpointRecord("Question", "Answer")]

    def test_blank_lines_skipped(self, tmp_path):
        path = tmp_path / "cp.csv"
        path.write_text("query,message\na,A\n\nb,B\n", encoding="utf-8")

        assert [r.query for r in load_checkpoint(path)] == ["a", "b"]

    def test_header_only(self, tmp_path):
        path = tmp_path / "cp.csv"
        save_checkpoint([], path)

        assert load_checkpoint(path) == []

    def test_to_dict(self):
        assert CheckpointRecord("q", "m").to_dict() == {"query": "q", "message": "m"}


class TestAtomicSave:
    """Tests for replacing the checkpoint in one step."""

    def test_no_temporary_files_left(self, tmp_path):
        save_checkpoint([CheckpointRecord("a", "A")], tmp_path / "cp.csv")

        assert [p.name for p in tmp_path.iterdir()] == ["cp.csv"]

    def test_failed_save_keeps_previous_snapshot(self, tmp_path):
        """Test an error while writing leaves the old checkpoint intact."""
        path = tmp_path / "cp.csv"
        save_checkpoint([CheckpointRecord("a", "A")], path)

        def rows():
            yield CheckpointRecord("b", "B")
            raise OSError("No space left on device")

        with pytest.raises(OSError, match="No space"):
            save_checkpoint(rows(), path)

        assert load_checkpoint(path) == [CheckpointRecord("a", "A")]
        assert [p.name for p in tmp_path.iterdir()] == ["cp.csv"]
