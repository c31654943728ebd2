"""Tests for the SyncDecision class."""

import tempfile
from pathlib import Path
from unittest.mock import Mock

import pytest

from treemirror.exceptions import LocalStatError
from treemirror.mirror.decision import SyncDecision
from treemirror.mirror.local_fs import LocalFS


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


class TestShouldCopy:
    """Size comparison between remote and local files."""

    def test_missing_local_file_copies(self, temp_dir):
        """No local a.txt -> copy."""
        decision = SyncDecision(LocalFS(temp_dir))
        assert decision.should_copy("a.txt", 10) is True

    def test_same_size_skips(self, temp_dir):
        """Local a.txt of 10 bytes, remote 10 bytes -> skip."""
        (temp_dir / "a.txt").write_bytes(b"x" * 10)
        decision = SyncDecision(LocalFS(temp_dir))
        assert decision.should_copy("a.txt", 10) is False

    @pytest.mark.parametrize("local_size,remote_size", [(9, 10), (11, 10), (0, 1)])
    def test_size_mismatch_copies(self, temp_dir, local_size, remote_size):
        """Any difference in size triggers a copy."""
        (temp_dir / "a.txt").write_bytes(b"x" * local_size)
        decision = SyncDecision(LocalFS(temp_dir))
        assert decision.should_copy("a.txt", remote_size) is True

    def test_empty_files_match(self, temp_dir):
        """Zero-length files on both sides are identical."""
        (temp_dir / "empty").write_bytes(b"")
        decision = SyncDecision(LocalFS(temp_dir))
        assert decision.should_copy("empty", 0) is False

    def test_unknown_remote_size_always_copies(self, temp_dir):
        """The abstract-file sentinel never compares equal."""
        (temp_dir / "playlist.pla").write_bytes(b"")
        decision = SyncDecision(LocalFS(temp_dir))
        assert decision.should_copy("playlist.pla", None) is True

    def test_resolves_in_entered_directory(self, temp_dir):
        """The local file is looked up in the current directory only."""
        (temp_dir / "sub").mkdir()
        (temp_dir / "b.bin").write_bytes(b"x" * 20)
        fs = LocalFS(temp_dir)
        fs.enter_directory("sub")

        decision = SyncDecision(fs)
        assert decision.should_copy("b.bin", 20) is True

        (temp_dir / "sub" / "b.bin").write_bytes(b"x" * 20)
        assert decision.should_copy("b.bin", 20) is False

    def test_stat_failure_propagates(self):
        """A stat error other than not-found is fatal."""
        fs = Mock(spec=LocalFS)
        fs.stat_by_name.side_effect = LocalStatError("couldn't stat a.txt")
        decision = SyncDecision(fs)

        with pytest.raises(LocalStatError):
            decision.should_copy("a.txt", 10)


class TestExplain:
    """Tests for the explain() diagnostics."""

    def test_reason_for_new_file(self, temp_dir):
        """New files carry no local size."""
        result = SyncDecision(LocalFS(temp_dir)).explain("a.txt", 10)
        assert result.copy is True
        assert result.reason == "New remote file"
        assert result.local_size is None

    def test_reason_for_mismatch(self, temp_dir):
        """Mismatches report both sizes."""
        (temp_dir / "a.txt").write_bytes(b"x" * 5)
        result = SyncDecision(LocalFS(temp_dir)).explain("a.txt", 10)
        assert result.copy is True
        assert result.local_size == 5
        assert "local 5 vs remote 10" in result.reason

    def test_reason_for_identical(self, temp_dir):
        """Identical sizes are skipped."""
        (temp_dir / "a.txt").write_bytes(b"x" * 10)
        result = SyncDecision(LocalFS(temp_dir)).explain("a.txt", 10)
        assert result.copy is False
        assert result.reason == "Files are identical (same size)"
