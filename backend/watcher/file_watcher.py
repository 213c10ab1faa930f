"""
WatchCC File Watcher.

Cross-platform file system monitoring using watchdog. Raw observer
notifications are debounced and delivered over a blocking channel.
Requires Python 3.11+.
"""

import fnmatch
import os
import queue
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any

from watchdog.observers import Observer
from watchdog.events import (
    FileSystemEventHandler,
    FileCreatedEvent,
    FileModifiedEvent,
    FileDeletedEvent,
    FileMovedEvent,
    DirCreatedEvent,
    DirDeletedEvent,
    DirModifiedEvent,
    DirMovedEvent,
)

from utils.config import get_settings
from utils.logger import LoggerMixin
from watcher.debouncer import ChangeType, Debouncer
from watcher.events import ChangeEvent, WatchError

# (mode, mtime_ns, size)
FileStat = tuple[int, int, int]


class WatchSetupError(Exception):
    """Raised when the observer cannot be established on the root path."""


class WatchDisconnected(Exception):
    """Raised by receive() when the observer is gone and nothing is queued."""


def _stat(path: str) -> FileStat | None:
    try:
        st = os.stat(path)
    except OSError:
        return None
    return (st.st_mode, st.st_mtime_ns, st.st_size)


class SourceTreeHandler(FileSystemEventHandler, LoggerMixin):
    """
    Translates watchdog events into debouncer operations.

    Directory events are ignored, except for removal of the watched
    root, which is reported straight away as a WatchError.
    """

    def __init__(
        self,
        root_path: Path,
        debouncer: Debouncer,
        emit: Callable[[ChangeEvent], Any],
        ignore_patterns: list[str] | None = None,
    ) -> None:
        """
        Initialize the handler.

        Args:
            root_path: Root directory being watched
            debouncer: Debouncer to accumulate changes
            emit: Sink for events that bypass debouncing
            ignore_patterns: Glob patterns to ignore
        """
        super().__init__()
        self._root_path = root_path
        self._debouncer = debouncer
        self._emit = emit
        self._ignore_patterns = ignore_patterns or []
        # Last known stat per file, used to tell chmod apart from writes
        self._stats: dict[str, FileStat] = {}

    def _should_ignore(self, path: str) -> bool:
        """Check if any component below the watch root matches an ignore pattern."""
        try:
            parts = Path(path).relative_to(self._root_path).parts
        except ValueError:
            parts = Path(path).parts
        return any(
            fnmatch.fnmatch(part, pattern)
            for part in parts
            for pattern in self._ignore_patterns
        )

    def prime(self, recursive: bool = True) -> int:
        """
        Record the current stat of every file under the root.

        Without a baseline the first chmod of a pre-existing file would
        be indistinguishable from a write.

        Returns:
            Number of files recorded
        """
        count = 0
        for dirpath, dirnames, filenames in os.walk(self._root_path):
            dirnames[:] = [
                d for d in dirnames if not self._should_ignore(os.path.join(dirpath, d))
            ]
            if not recursive:
                dirnames.clear()
            for name in filenames:
                path = os.path.join(dirpath, name)
                if self._should_ignore(path):
                    continue
                stat = _stat(path)
                if stat is not None:
                    self._stats[path] = stat
                    count += 1
        return count

    def on_created(self, event: FileCreatedEvent | DirCreatedEvent) -> None:
        """Handle file creation."""
        if isinstance(event, DirCreatedEvent):
            return

        path = str(event.src_path)
        if self._should_ignore(path):
            return

        stat = _stat(path)
        if stat is not None:
            self._stats[path] = stat

        self.log.debug("file_created", path=path)
        self._debouncer.debounce(Path(path), ChangeType.CREATED)

    def on_modified(self, event: FileModifiedEvent | DirModifiedEvent) -> None:
        """Handle file modification, separating permission-only changes."""
        if isinstance(event, DirModifiedEvent):
            return

        path = str(event.src_path)
        if self._should_ignore(path):
            return

        previous = self._stats.get(path)
        current = _stat(path)
        if current is not None:
            self._stats[path] = current

        change_type = ChangeType.MODIFIED
        if (
            previous is not None
            and current is not None
            and previous[0] != current[0]
            and previous[1:] == current[1:]
        ):
            change_type = ChangeType.CHMOD
        elif previous == current and current is not None:
            # Metadata touch with nothing observable changed
            return

        self.log.debug("file_modified", path=path, kind=change_type.value)
        self._debouncer.debounce(Path(path), change_type)

    def on_deleted(self, event: FileDeletedEvent | DirDeletedEvent) -> None:
        """Handle file deletion and removal of the watched root."""
        path = str(event.src_path)

        if isinstance(event, DirDeletedEvent):
            if Path(path) == self._root_path:
                self.log.error("watch_root_removed", path=path)
                self._emit(WatchError("watch root removed", self._root_path))
            return

        if self._should_ignore(path):
            return

        self._stats.pop(path, None)
        self.log.debug("file_deleted", path=path)
        self._debouncer.debounce(Path(path), ChangeType.DELETED)

    def on_moved(self, event: FileMovedEvent | DirMovedEvent) -> None:
        """Handle file move/rename."""
        if isinstance(event, DirMovedEvent):
            return

        src_path = str(event.src_path)
        dest_path = str(event.dest_path)
        src_ignored = self._should_ignore(src_path)
        dest_ignored = self._should_ignore(dest_path)

        stat = self._stats.pop(src_path, None)
        if stat is not None:
            self._stats[dest_path] = stat

        if src_ignored and dest_ignored:
            return
        if src_ignored:
            # Moved in from an ignored location, e.g. an editor swap file
            self._debouncer.debounce(Path(dest_path), ChangeType.CREATED)
            return
        if dest_ignored:
            self._debouncer.debounce(Path(src_path), ChangeType.DELETED)
            return

        self.log.debug("file_moved", src=src_path, dest=dest_path)
        self._debouncer.debounce_move(Path(src_path), Path(dest_path))


class FileWatcher(LoggerMixin):
    """
    Watches a directory tree and hands out debounced change events.

    Uses watchdog for cross-platform file system monitoring. The
    observer runs on its own thread; consumers pull events one at a
    time with receive().
    """

    def __init__(
        self,
        root_path: Path,
        debounce_delay_ms: int | None = None,
        ignore_patterns: list[str] | None = None,
        recursive: bool = True,
        max_pending: int | None = None,
        poll_interval: float = 1.0,
    ) -> None:
        """
        Initialize the file watcher.

        Args:
            root_path: Root directory to watch
            debounce_delay_ms: Debounce delay in milliseconds
            ignore_patterns: Glob patterns to ignore
            recursive: Whether to watch subdirectories
            max_pending: Pending paths before the debouncer requests a rescan
            poll_interval: Seconds between liveness checks while receiving
        """
        settings = get_settings()

        self._root_path = root_path
        self._recursive = recursive
        self._ignore_patterns = (
            ignore_patterns if ignore_patterns is not None else settings.watcher.ignore_patterns
        )
        self._debounce_delay = debounce_delay_ms or settings.watcher.debounce_delay_ms
        self._poll_interval = poll_interval

        self._channel: queue.Queue[ChangeEvent] = queue.Queue()

        self._debouncer = Debouncer(
            delay_ms=self._debounce_delay,
            callback=self._channel.put,
            max_pending=max_pending or settings.watcher.max_pending,
        )

        self._handler = SourceTreeHandler(
            root_path=self._root_path,
            debouncer=self._debouncer,
            emit=self._channel.put,
            ignore_patterns=self._ignore_patterns,
        )

        self._observer: Observer | None = None
        self._running = False

    def start(self) -> None:
        """
        Start watching for file changes.

        Raises:
            WatchSetupError: If the observer cannot watch the root path
        """
        if self._running:
            return

        primed = self._handler.prime(recursive=self._recursive)
        self.log.debug("file_watcher_primed", files=primed)

        observer = Observer()
        try:
            observer.schedule(
                self._handler,
                str(self._root_path),
                recursive=self._recursive,
            )
            observer.start()
        except OSError as e:
            self.log.error("file_watcher_setup_failed", path=str(self._root_path), error=str(e))
            raise WatchSetupError(f"cannot watch {self._root_path}: {e}") from e

        self._observer = observer
        self._running = True

        self.log.info(
            "file_watcher_started",
            path=str(self._root_path),
            recursive=self._recursive,
            debounce_delay_ms=self._debounce_delay,
            ignore_patterns=self._ignore_patterns,
        )

    def stop(self) -> None:
        """Stop watching for file changes."""
        if not self._running:
            return

        # Flush any pending changes
        self._debouncer.flush()

        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout=5.0)
            self._observer = None

        self._running = False
        self.log.info("file_watcher_stopped")

    def receive(self, timeout: float | None = None) -> ChangeEvent:
        """
        Block until the next debounced event is available.

        Args:
            timeout: Give up after this many seconds; None waits forever

        Raises:
            WatchDisconnected: If the observer is not alive and the channel is empty
            TimeoutError: If timeout elapsed without an event
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            wait = self._poll_interval
            if deadline is not None:
                wait = min(wait, max(deadline - time.monotonic(), 0.0))
            try:
                return self._channel.get(timeout=wait)
            except queue.Empty:
                if self._observer is None or not self._observer.is_alive():
                    raise WatchDisconnected("watch channel disconnected") from None
                if deadline is not None and time.monotonic() >= deadline:
                    raise TimeoutError(f"no event within {timeout}s") from None

    def flush(self) -> list[ChangeEvent]:
        """Immediately push any pending changes onto the channel."""
        return self._debouncer.flush()

    @property
    def root_path(self) -> Path:
        """Get the watched root."""
        return self._root_path

    @property
    def is_running(self) -> bool:
        """Check if the watcher is running."""
        return self._running

    @property
    def pending_count(self) -> int:
        """Get number of pending changes."""
        return self._debouncer.pending_count

    def __enter__(self) -> "FileWatcher":
        """Context manager entry."""
        self.start()
        return self

    def __exit__(self, *args: Any) -> None:
        """Context manager exit."""
        self.stop()
