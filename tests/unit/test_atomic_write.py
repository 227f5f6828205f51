"""Unit tests for atomic_write function."""

import os
import stat
import time

import pytest

from promptfence.services.exceptions import FileModifiedError
from promptfence.services.file_monitor import FileMonitor
from promptfence.services.file_operations import atomic_write


class TestAtomicWrite:
    """Test atomic_write function with concurrent modification detection."""

    def test_atomic_write_creates_new_file(self, tmp_path):
        """Test that atomic_write creates a new file successfully."""
        target = tmp_path / "prompt.json"
        content = '{"text": "Hello"}\n'

        atomic_write(target, content)

        assert target.read_text() == content

    def test_atomic_write_creates_parent_directories(self, tmp_path):
        target = tmp_path / "nested" / "dir" / "prompt.json"

        atomic_write(target, "{}")

        assert target.read_text() == "{}"

    def test_atomic_write_overwrites_existing_file(self, tmp_path):
        """Test that atomic_write overwrites existing file."""
        target = tmp_path / "prompt.json"
        target.write_text("Old content")

        atomic_write(target, "New content")

        assert target.read_text() == "New content"

    def test_atomic_write_with_file_monitor(self, tmp_path):
        """Test atomic_write updates file monitor after successful write."""
        target = tmp_path / "prompt.json"
        target.write_text("Initial content")

        monitor = FileMonitor()
        monitor.record(target)

        atomic_write(target, "Updated content", monitor)

        assert target.read_text() == "Updated content"
        # Our own write must not count as an external modification
        assert not monitor.is_modified(target)

    def test_atomic_write_detects_early_modification(self, tmp_path):
        """Test that atomic_write refuses to write over an externally changed file."""
        target = tmp_path / "prompt.json"
        target.write_text("Initial content")

        monitor = FileMonitor()
        monitor.record(target)

        time.sleep(0.01)
        target.write_text("Modified by external process")

        with pytest.raises(FileModifiedError, match="before write"):
            atomic_write(target, "New content", monitor)

        assert target.read_text() == "Modified by external process"

    def test_atomic_write_detects_late_modification(self, tmp_path, monkeypatch):
        """Test that atomic_write detects file modification during write."""
        target = tmp_path / "prompt.json"
        target.write_text("Initial content")

        monitor = FileMonitor()
        monitor.record(target)

        original_fsync = os.fsync

        def fsync_and_interfere(fd):
            original_fsync(fd)
            target.write_text("Modified during write")

        monkeypatch.setattr(os, "fsync", fsync_and_interfere)

        with pytest.raises(FileModifiedError, match="during write"):
            atomic_write(target, "New content", monitor)

        assert target.read_text() == "Modified during write"
        assert list(tmp_path.glob(".*.tmp.*")) == []

    def test_atomic_write_cleans_up_temp_file_on_error(self, tmp_path, monkeypatch):
        """Test that atomic_write cleans up temporary file on error."""
        target = tmp_path / "prompt.json"

        def failing_fsync(fd):
            raise OSError("Simulated write error")

        monkeypatch.setattr(os, "fsync", failing_fsync)

        with pytest.raises(OSError, match="Simulated write error"):
            atomic_write(target, "Content")

        assert list(tmp_path.glob(".*.tmp.*")) == []
        assert not target.exists()

    def test_atomic_write_with_unicode_content(self, tmp_path):
        """Test that atomic_write handles Unicode content correctly."""
        target = tmp_path / "unicode.json"
        content = '{"text": "日本語 🤖 €£¥"}'

        atomic_write(target, content)

        assert target.read_text(encoding="utf-8") == content

    def test_atomic_write_keeps_file_permissions(self, tmp_path):
        target = tmp_path / "prompt.json"
        target.write_text("{}")
        target.chmod(0o640)

        atomic_write(target, '{"text": "x"}')

        assert stat.S_IMODE(target.stat().st_mode) == 0o640
