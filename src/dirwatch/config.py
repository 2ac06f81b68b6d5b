"""Configuration for the dirwatch package."""

import fnmatch
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _parse_bool(name: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean, got {value!r}")


@dataclass
class WatcherConfig:
    """
    Configuration options for directory and file watchers.

    Attributes:
        debounce_ms: Milliseconds to wait after a directory signals before draining it
        recursive: Whether to watch subdirectories of the root
        follow_symlinks: Whether to descend into symlinked directories
        ignore_patterns: Glob patterns for paths to ignore
        use_polling: Use a polling observer instead of the native OS backend
        polling_interval_s: Seconds between snapshots when polling
        stop_timeout_s: Seconds to wait for the observer thread on shutdown
    """
    debounce_ms: int = 50
    recursive: bool = True
    follow_symlinks: bool = False
    ignore_patterns: List[str] = field(default_factory=list)
    use_polling: bool = False
    polling_interval_s: float = 1.0
    stop_timeout_s: float = 5.0

    def __post_init__(self):
        if self.debounce_ms < 0:
            raise ValueError(f"debounce_ms must be >= 0: {self.debounce_ms}")
        if self.polling_interval_s <= 0:
            raise ValueError(f"polling_interval_s must be > 0: {self.polling_interval_s}")
        if self.stop_timeout_s < 0:
            raise ValueError(f"stop_timeout_s must be >= 0: {self.stop_timeout_s}")

    @property
    def debounce_seconds(self) -> float:
        """Debounce window in seconds."""
        return self.debounce_ms / 1000.0

    def should_ignore(self, path: Path) -> bool:
        """
        Check if a path should be ignored based on ignore patterns.

        Args:
            path: Path to check

        Returns:
            True if the path should be ignored
        """
        path_str = str(path)
        name = path.name

        for pattern in self.ignore_patterns:
            if fnmatch.fnmatch(name, pattern):
                return True
            if fnmatch.fnmatch(path_str, f"*/{pattern}"):
                return True
            if fnmatch.fnmatch(path_str, pattern):
                return True

        return False

    @classmethod
    def from_env(cls, prefix: str = "DIRWATCH_", environ: Optional[dict] = None) -> "WatcherConfig":
        """
        Build a config from environment variables.

        Unset variables keep their defaults. Recognized names (with the
        default prefix): DIRWATCH_DEBOUNCE_MS, DIRWATCH_RECURSIVE,
        DIRWATCH_FOLLOW_SYMLINKS, DIRWATCH_USE_POLLING,
        DIRWATCH_POLLING_INTERVAL_S, DIRWATCH_IGNORE_PATTERNS (comma separated).

        Args:
            prefix: Prefix of the variable names
            environ: Mapping to read instead of os.environ

        Returns:
            A new WatcherConfig
        """
        env = os.environ if environ is None else environ
        kwargs = {}

        def get(key: str) -> Optional[str]:
            value = env.get(prefix + key)
            if value is None or value.strip() == "":
                return None
            return value

        value = get("DEBOUNCE_MS")
        if value is not None:
            try:
                kwargs["debounce_ms"] = int(value)
            except ValueError:
                raise ValueError(f"{prefix}DEBOUNCE_MS must be an integer, got {value!r}") from None

        for key, attr in (
            ("RECURSIVE", "recursive"),
            ("FOLLOW_SYMLINKS", "follow_symlinks"),
            ("USE_POLLING", "use_polling"),
        ):
            value = get(key)
            if value is not None:
                kwargs[attr] = _parse_bool(prefix + key, value)

        value = get("POLLING_INTERVAL_S")
        if value is not None:
            try:
                kwargs["polling_interval_s"] = float(value)
            except ValueError:
                raise ValueError(f"{prefix}POLLING_INTERVAL_S must be a number, got {value!r}") from None

        value = get("IGNORE_PATTERNS")
        if value is not None:
            kwargs["ignore_patterns"] = [p.strip() for p in value.split(",") if p.strip()]

        return cls(**kwargs)
