"""
BuildWatch File Watcher.

Cross-platform file system monitoring using watchdog.
Requires Python 3.11+.
"""

import fnmatch
import os
import re
from collections.abc import Callable
from pathlib import Path
from typing import Any

from watchdog.events import (
    DirCreatedEvent,
    DirDeletedEvent,
    DirModifiedEvent,
    DirMovedEvent,
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from builder.models import ChangeNotification
from utils.config import FILE_PATTERN, WatcherSettings
from utils.logger import LoggerMixin


def _matches_any(globs: list[str], name: str) -> bool:
    return any(fnmatch.fnmatchcase(name, g) for g in globs)


class ChangeFilter:
    """
    Decides which changed paths trigger a build.

    A path passes when its base name matches an include glob or the whole
    path matches the pattern, its base name matches no exclude glob, and
    none of its directories below the root matches an excluded directory
    glob.
    """

    def __init__(
        self,
        root_path: Path,
        pattern: str = FILE_PATTERN,
        include: list[str] | None = None,
        exclude: list[str] | None = None,
        exclude_dirs: list[str] | None = None,
    ) -> None:
        self._root_path = root_path
        self._pattern = re.compile(pattern)
        self._include = include or []
        self._exclude = exclude or []
        self._exclude_dirs = exclude_dirs or []

    @classmethod
    def from_settings(cls, settings: WatcherSettings) -> "ChangeFilter":
        """Build a filter from watcher settings."""
        return cls(
            root_path=settings.directory,
            pattern=settings.pattern,
            include=settings.include,
            exclude=settings.exclude,
            exclude_dirs=settings.exclude_dirs,
        )

    def _in_excluded_dir(self, path: str) -> bool:
        if not self._exclude_dirs:
            return False
        try:
            relative = Path(os.path.relpath(path, self._root_path))
        except ValueError:
            # Different drive on Windows
            return False
        return any(_matches_any(self._exclude_dirs, part) for part in relative.parent.parts)

    def matches(self, path: str) -> bool:
        """Check whether a change to path should trigger a build."""
        if not path:
            return False

        base = os.path.basename(path)
        if not (_matches_any(self._include, base) or self._pattern.search(path)):
            return False
        if _matches_any(self._exclude, base):
            return False
        return not self._in_excluded_dir(path)


class ChangeEventHandler(FileSystemEventHandler, LoggerMixin):
    """
    Handles file system events for watched files.

    Directory events are ignored; file events that pass the filter are
    forwarded as change notifications.
    """

    def __init__(
        self,
        change_filter: ChangeFilter,
        notify: Callable[[ChangeNotification], Any],
    ) -> None:
        """
        Initialize the file handler.

        Args:
            change_filter: Filter deciding which paths count
            notify: Called from the observer thread for each accepted change
        """
        super().__init__()
        self._filter = change_filter
        self._notify = notify

    def _forward(self, path: str | bytes, change_type: str) -> None:
        path = os.fsdecode(path)
        if not self._filter.matches(path):
            return

        self.log.debug("file_changed", path=path, change_type=change_type)
        self._notify(ChangeNotification(path=Path(path)))

    def on_created(self, event: FileCreatedEvent | DirCreatedEvent) -> None:
        """Handle file/directory creation."""
        if isinstance(event, DirCreatedEvent):
            return
        self._forward(event.src_path, "created")

    def on_modified(self, event: FileModifiedEvent | DirModifiedEvent) -> None:
        """Handle file/directory modification."""
        if isinstance(event, DirModifiedEvent):
            return
        self._forward(event.src_path, "modified")

    def on_deleted(self, event: FileDeletedEvent | DirDeletedEvent) -> None:
        """Handle file/directory deletion."""
        if isinstance(event, DirDeletedEvent):
            return
        self._forward(event.src_path, "deleted")

    def on_moved(self, event: FileMovedEvent | DirMovedEvent) -> None:
        """Handle file/directory move/rename."""
        if isinstance(event, DirMovedEvent):
            return
        self._forward(event.src_path, "moved_from")
        self._forward(event.dest_path, "moved_to")


class FileWatcher(LoggerMixin):
    """
    Watches a directory tree for changes.

    Uses watchdog for cross-platform file system monitoring. Debouncing is
    left to the build debouncer.
    """

    def __init__(
        self,
        root_path: Path,
        notify: Callable[[ChangeNotification], Any],
        change_filter: ChangeFilter | None = None,
        recursive: bool = True,
    ) -> None:
        """
        Initialize the file watcher.

        Args:
            root_path: Root directory to watch
            notify: Called from the observer thread for each accepted change
            change_filter: Filter for changed paths, defaults to the default pattern
            recursive: Whether to watch subdirectories
        """
        self._root_path = root_path
        self._recursive = recursive
        self._filter = change_filter or ChangeFilter(root_path)
        self._handler = ChangeEventHandler(self._filter, notify)
        self._observer: Observer | None = None
        self._running = False

    def start(self) -> None:
        """Start watching for file changes."""
        if self._running:
            return

        self._observer = Observer()
        self._observer.schedule(
            self._handler,
            str(self._root_path),
            recursive=self._recursive,
        )
        self._observer.start()
        self._running = True

        self.log.info(
            "file_watcher_started",
            path=str(self._root_path),
            recursive=self._recursive,
        )

    def stop(self) -> None:
        """Stop watching for file changes."""
        if not self._running:
            return

        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout=5.0)
            self._observer = None

        self._running = False
        self.log.info("file_watcher_stopped")

    @property
    def is_running(self) -> bool:
        """Check if the watcher is running."""
        return self._running

    @property
    def is_alive(self) -> bool:
        """Check if the observer thread is still alive."""
        return self._observer is not None and self._observer.is_alive()

    def __enter__(self) -> "FileWatcher":
        """Context manager entry."""
        self.start()
        return self

    def __exit__(self, *args: Any) -> None:
        """Context manager exit."""
        self.stop()
