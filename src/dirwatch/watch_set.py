"""Synchronization of watch registrations with the directory tree."""

import logging
import os
import threading
from pathlib import Path
from typing import Dict, FrozenSet, Optional, Set, Tuple

from .config import WatcherConfig
from .service import WatchKey, WatchService

logger = logging.getLogger(__name__)


class WatchSet:
    """
    Keeps one registration per directory that must be watched.

    For a recursive watch that is the root plus every directory reachable
    from it; otherwise just the root. Mutated only by the owning watcher's
    loop; the lock lets other threads read a consistent snapshot.
    """

    def __init__(
        self,
        service: WatchService,
        root: Path,
        recursive: bool = True,
        config: Optional[WatcherConfig] = None,
    ):
        """
        Initialize the watch set.

        Args:
            service: Service that registrations are made with
            root: Absolute path of the watched root directory
            recursive: Whether subdirectories are included
            config: Watcher configuration
        """
        self.service = service
        self.root = root
        self.recursive = recursive
        self.config = config or WatcherConfig()
        self._keys: Dict[Path, WatchKey] = {}
        self._lock = threading.Lock()

    def desired_directories(self) -> Set[Path]:
        """
        Walk the tree and collect the directories that must be watched.

        Directories that vanish during the walk are skipped.

        Returns:
            Set of absolute directory paths
        """
        directories = {self.root}
        if not self.recursive:
            return directories

        def on_error(error: OSError) -> None:
            logger.debug(f"Skipping directory during scan: {error}")

        for dirpath, dirnames, _ in os.walk(
            self.root, onerror=on_error, followlinks=self.config.follow_symlinks
        ):
            current = Path(dirpath)
            # Prune in place so os.walk does not descend into ignored trees.
            dirnames[:] = [
                name for name in dirnames
                if not self.config.should_ignore(current / name)
            ]
            for name in dirnames:
                directories.add(current / name)

        return directories

    def sync(self) -> Tuple[Set[Path], Set[Path]]:
        """
        Reconcile held registrations with the current directory tree.

        Cancels registrations for directories that are no longer desired
        and registers new ones. Subdirectories that cannot be watched are
        skipped and retried on the next sync.

        Returns:
            (added, removed) directory sets

        Raises:
            OSError: If the root itself cannot be watched
        """
        desired = self.desired_directories()

        with self._lock:
            removed = set(self._keys) - desired
            for directory in removed:
                self._keys.pop(directory).cancel()

            added = set()
            for directory in sorted(desired - set(self._keys)):
                try:
                    self._keys[directory] = self.service.register(directory)
                    added.add(directory)
                except (FileNotFoundError, NotADirectoryError):
                    logger.debug(f"Directory vanished before registration: {directory}")
                except OSError as e:
                    if directory == self.root:
                        raise
                    logger.warning(f"Cannot watch {directory}, skipping: {e}")

        if added or removed:
            logger.debug(
                f"Watch set for {self.root}: +{len(added)} -{len(removed)} "
                f"({len(self._keys)} registered)"
            )
        return added, removed

    def directories(self) -> FrozenSet[Path]:
        """
        Get the directories currently registered.

        Returns:
            Frozen set of directory paths
        """
        with self._lock:
            return frozenset(self._keys)

    def discard(self, path: Path) -> bool:
        """
        Cancel the registration for one directory.

        Args:
            path: Directory to stop watching

        Returns:
            True if a registration was cancelled
        """
        with self._lock:
            key = self._keys.pop(path, None)
        if key is None:
            return False
        key.cancel()
        return True

    def clear(self) -> int:
        """
        Cancel all registrations.

        Returns:
            Number of registrations cancelled
        """
        with self._lock:
            count = len(self._keys)
            for key in self._keys.values():
                key.cancel()
            self._keys.clear()
            return count

    def __len__(self) -> int:
        """Return the number of registrations."""
        with self._lock:
            return len(self._keys)
