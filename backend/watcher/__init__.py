"""
BuildWatch File Watcher Package.

File system monitoring and change filtering.
Requires Python 3.11+.
"""

from watcher.file_watcher import ChangeEventHandler, ChangeFilter, FileWatcher

__all__ = ["ChangeEventHandler", "ChangeFilter", "FileWatcher"]
