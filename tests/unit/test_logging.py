"""Unit tests for logging setup helpers."""

import pytest

from versemint.utils.logging import log_file_path, log_level


class TestLogLevel:
    """Test VERSEMINT_LOG_LEVEL handling."""

    def test_defaults_to_info(self, monkeypatch):
        monkeypatch.delenv("VERSEMINT_LOG_LEVEL", raising=False)
        assert log_level() == "INFO"

    @pytest.mark.parametrize("value,expected", [
        ("debug", "DEBUG"),
        ("Warning", "WARNING"),
        ("ERROR", "ERROR"),
    ])
    def test_case_insensitive(self, monkeypatch, value, expected):
        monkeypatch.setenv("VERSEMINT_LOG_LEVEL", value)
        assert log_level() == expected

    def test_unknown_level_falls_back(self, monkeypatch):
        monkeypatch.setenv("VERSEMINT_LOG_LEVEL", "TRACE")
        assert log_level() == "INFO"


class TestLogFilePath:
    """Test log file location."""

    def test_directory_created_under_home(self, monkeypatch, tmp_path):
        monkeypatch.setenv("HOME", str(tmp_path))

        path = log_file_path()

        assert path == tmp_path / ".cache" / "versemint" / "logs" / "versemint.log"
        assert path.parent.is_dir()
