"""Unit tests for FileMonitor."""

import time

import pytest

from promptfence.services.file_monitor import FileMonitor


class TestFileMonitor:
    """Test FileMonitor class."""

    def test_record_and_check_unmodified(self, tmp_path):
        """Test recording file and checking it hasn't been modified."""
        monitor = FileMonitor()
        state = tmp_path / "prompt.json"
        state.write_text("{}")

        monitor.record(state)

        assert not monitor.is_modified(state)

    def test_detect_modification(self, tmp_path):
        """Test detecting file modification."""
        monitor = FileMonitor()
        state = tmp_path / "prompt.json"
        state.write_text("{}")
        monitor.record(state)

        time.sleep(0.01)
        state.write_text('{"text": "changed"}')

        assert monitor.is_modified(state)

    def test_refresh_after_write(self, tmp_path):
        """Test refreshing the stamp after writing the file ourselves."""
        monitor = FileMonitor()
        state = tmp_path / "prompt.json"
        state.write_text("{}")
        monitor.record(state)

        time.sleep(0.01)
        state.write_text('{"text": "ours"}')
        monitor.refresh(state)

        assert not monitor.is_modified(state)

    def test_untracked_missing_file_is_not_modified(self, tmp_path):
        monitor = FileMonitor()

        assert not monitor.is_modified(tmp_path / "new.json")

    def test_untracked_existing_file_is_modified(self, tmp_path):
        """A file that appeared without being loaded must not be overwritten."""
        monitor = FileMonitor()
        state = tmp_path / "prompt.json"
        state.write_text("{}")

        assert monitor.is_modified(state)

    def test_deleted_file_is_modified(self, tmp_path):
        monitor = FileMonitor()
        state = tmp_path / "prompt.json"
        state.write_text("{}")
        monitor.record(state)

        state.unlink()

        assert monitor.is_modified(state)

    def test_forget(self, tmp_path):
        monitor = FileMonitor()
        state = tmp_path / "prompt.json"
        state.write_text("{}")
        monitor.record(state)
        state.unlink()

        monitor.forget(state)

        assert not monitor.is_modified(state)

    def test_record_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            FileMonitor().record(tmp_path / "missing.json")
