"""
WatchCC File Watcher Package.

File system monitoring with per-path debouncing.
Requires Python 3.11+.
"""

from watcher.file_watcher import FileWatcher, WatchDisconnected, WatchSetupError
from watcher.debouncer import ChangeType, Debouncer

__all__ = [
    "FileWatcher",
    "WatchDisconnected",
    "WatchSetupError",
    "ChangeType",
    "Debouncer",
]
