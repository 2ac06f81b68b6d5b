"""Tests for config module."""

import pytest
from pathlib import Path

from dirwatch.config import WatcherConfig


class TestWatcherConfig:
    """Tests for WatcherConfig class."""

    def test_default_values(self):
        config = WatcherConfig()
        assert config.debounce_ms == 50
        assert config.recursive is True
        assert config.follow_symlinks is False
        assert config.ignore_patterns == []
        assert config.use_polling is False
        assert config.polling_interval_s == 1.0
        assert config.stop_timeout_s == 5.0

    def test_custom_values(self):
        config = WatcherConfig(
            debounce_ms=100,
            recursive=False,
            ignore_patterns=["*.tmp"],
        )
        assert config.debounce_ms == 100
        assert config.recursive is False
        assert config.ignore_patterns == ["*.tmp"]

    def test_debounce_seconds(self):
        assert WatcherConfig(debounce_ms=250).debounce_seconds == 0.25
        assert WatcherConfig(debounce_ms=0).debounce_seconds == 0.0

    def test_negative_debounce_rejected(self):
        with pytest.raises(ValueError, match="debounce_ms"):
            WatcherConfig(debounce_ms=-1)

    def test_non_positive_polling_interval_rejected(self):
        with pytest.raises(ValueError, match="polling_interval_s"):
            WatcherConfig(polling_interval_s=0)

    def test_ignore_patterns_not_shared(self):
        a = WatcherConfig()
        b = WatcherConfig()
        a.ignore_patterns.append("*.tmp")
        assert b.ignore_patterns == []


class TestShouldIgnore:
    """Tests for WatcherConfig.should_ignore."""

    def test_nothing_ignored_by_default(self):
        config = WatcherConfig()
        assert config.should_ignore(Path("/path/to/file.tmp")) is False
        assert config.should_ignore(Path("/repo/.git")) is False

    def test_matches_name(self):
        config = WatcherConfig(ignore_patterns=["*.tmp", "*~"])
        assert config.should_ignore(Path("/path/to/file.tmp")) is True
        assert config.should_ignore(Path("/path/to/file~")) is True
        assert config.should_ignore(Path("/path/to/file.txt")) is False

    def test_matches_directory_contents(self):
        config = WatcherConfig(ignore_patterns=[".git", ".git/*"])
        assert config.should_ignore(Path("/repo/.git")) is True
        assert config.should_ignore(Path("/repo/.git/config")) is True
        assert config.should_ignore(Path("/repo/src/main.py")) is False

    def test_matches_full_path(self):
        config = WatcherConfig(ignore_patterns=["/var/log/*"])
        assert config.should_ignore(Path("/var/log/syslog")) is True
        assert config.should_ignore(Path("/var/lib/syslog")) is False


class TestFromEnv:
    """Tests for WatcherConfig.from_env."""

    def test_empty_environment_gives_defaults(self):
        assert WatcherConfig.from_env(environ={}) == WatcherConfig()

    def test_reads_values(self):
        config = WatcherConfig.from_env(environ={
            "DIRWATCH_DEBOUNCE_MS": "200",
            "DIRWATCH_RECURSIVE": "false",
            "DIRWATCH_FOLLOW_SYMLINKS": "yes",
            "DIRWATCH_USE_POLLING": "1",
            "DIRWATCH_POLLING_INTERVAL_S": "0.5",
            "DIRWATCH_IGNORE_PATTERNS": "*.tmp, .git ,,",
        })
        assert config.debounce_ms == 200
        assert config.recursive is False
        assert config.follow_symlinks is True
        assert config.use_polling is True
        assert config.polling_interval_s == 0.5
        assert config.ignore_patterns == ["*.tmp", ".git"]

    def test_custom_prefix(self):
        config = WatcherConfig.from_env(prefix="APP_", environ={
            "APP_DEBOUNCE_MS": "10",
            "DIRWATCH_DEBOUNCE_MS": "999",
        })
        assert config.debounce_ms == 10

    def test_blank_values_ignored(self):
        config = WatcherConfig.from_env(environ={"DIRWATCH_DEBOUNCE_MS": "  "})
        assert config.debounce_ms == 50

    def test_reads_os_environ(self, monkeypatch):
        monkeypatch.setenv("DIRWATCH_DEBOUNCE_MS", "75")
        assert WatcherConfig.from_env().debounce_ms == 75

    def test_invalid_integer(self):
        with pytest.raises(ValueError, match="DIRWATCH_DEBOUNCE_MS"):
            WatcherConfig.from_env(environ={"DIRWATCH_DEBOUNCE_MS": "fast"})

    def test_invalid_boolean(self):
        with pytest.raises(ValueError, match="DIRWATCH_RECURSIVE"):
            WatcherConfig.from_env(environ={"DIRWATCH_RECURSIVE": "maybe"})

    def test_negative_debounce_from_env(self):
        with pytest.raises(ValueError, match="debounce_ms"):
            WatcherConfig.from_env(environ={"DIRWATCH_DEBOUNCE_MS": "-5"})
