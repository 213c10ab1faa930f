"""
WatchCC Debouncer.

Coalesces rapid file system operations into single change events.
Requires Python 3.11+.
"""

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from utils.logger import LoggerMixin
from watcher.events import (
    ChangeEvent,
    Created,
    PermissionsChanged,
    Removed,
    Renamed,
    RescanRequested,
    Written,
)


class ChangeType(str, Enum):
    """Raw operations reported by the observer."""

    CREATED = "created"
    MODIFIED = "modified"
    CHMOD = "chmod"
    DELETED = "deleted"


@dataclass
class PendingChange:
    """A coalesced change waiting for its path to go quiet."""

    path: Path
    event: ChangeEvent
    timestamp: float
    timer: threading.Timer | None = field(default=None, repr=False)


def coalesce(
    previous: ChangeEvent | None, change_type: ChangeType, path: Path
) -> ChangeEvent | None:
    """
    Fold a new operation into the event already pending for a path.

    Returns None when the operations cancel out (a file created and
    deleted inside one window never existed as far as consumers know).
    """
    if change_type is ChangeType.CREATED:
        if isinstance(previous, (Removed, Written)):
            return Written(path)
        return Created(path)

    if change_type is ChangeType.MODIFIED:
        if isinstance(previous, Created):
            return previous
        return Written(path)

    if change_type is ChangeType.CHMOD:
        if isinstance(previous, (Created, Written, Renamed)):
            return previous
        return PermissionsChanged(path)

    # DELETED
    if isinstance(previous, Created):
        return None
    if isinstance(previous, Renamed):
        return Removed(previous.old_path)
    return Removed(path)


class Debouncer(LoggerMixin):
    """
    Debounces rapid file changes per path.

    Every path gets its own quiet period: the event for a path is
    delivered once no new operation has touched it for delay_ms.
    """

    def __init__(
        self,
        delay_ms: int = 1000,
        callback: Callable[[ChangeEvent], Any] | None = None,
        max_pending: int = 4096,
    ) -> None:
        """
        Initialize the debouncer.

        Args:
            delay_ms: Quiet period in milliseconds before an event is delivered
            callback: Function receiving each debounced event
            max_pending: Distinct pending paths before the buffer is dropped
        """
        self._delay = delay_ms / 1000.0
        self._callback = callback
        self._max_pending = max_pending
        self._pending: dict[Path, PendingChange] = {}
        self._lock = threading.Lock()

    def set_callback(self, callback: Callable[[ChangeEvent], Any]) -> None:
        """Set or update the callback function."""
        self._callback = callback

    def debounce(self, path: Path, change_type: ChangeType) -> None:
        """
        Record an operation on a path.

        Args:
            path: Path to the changed file
            change_type: Raw operation reported by the observer
        """
        ready: list[ChangeEvent] = []

        with self._lock:
            previous = self._take(path)
            previous_event = previous.event if previous is not None else None

            if isinstance(previous_event, Renamed) and change_type in (
                ChangeType.CREATED,
                ChangeType.MODIFIED,
            ):
                # The rename is complete; the new contents start a new window
                ready.append(previous_event)
                event: ChangeEvent | None = Written(path)
            else:
                event = coalesce(previous_event, change_type, path)

            if event is not None:
                ready.extend(self._schedule(path, event))

        for item in ready:
            self._deliver(item)

    def debounce_move(self, src_path: Path, dest_path: Path) -> None:
        """
        Record a move from src_path to dest_path.

        Args:
            src_path: Original location
            dest_path: New location
        """
        ready: list[ChangeEvent] = []

        with self._lock:
            previous = self._take(src_path)
            previous_event = previous.event if previous is not None else None
            self._take(dest_path)

            if isinstance(previous_event, Created):
                event: ChangeEvent = Created(dest_path)
            elif isinstance(previous_event, Renamed):
                event = Renamed(previous_event.old_path, dest_path)
            else:
                event = Renamed(src_path, dest_path)

            ready.extend(self._schedule(dest_path, event))

        for item in ready:
            self._deliver(item)

    def _take(self, path: Path) -> PendingChange | None:
        """Remove and return the pending change for a path. Caller holds the lock."""
        change = self._pending.pop(path, None)
        if change is not None and change.timer is not None:
            change.timer.cancel()
        return change

    def _schedule(self, path: Path, event: ChangeEvent) -> list[ChangeEvent]:
        """Queue an event and start its timer. Caller holds the lock."""
        overflow: list[ChangeEvent] = []
        if len(self._pending) >= self._max_pending:
            self.log.warning("debounce_buffer_overflow", dropped=len(self._pending))
            self._cancel_all()
            overflow.append(RescanRequested())

        change = PendingChange(path=path, event=event, timestamp=time.time())
        change.timer = threading.Timer(self._delay, self._process_pending, args=(change,))
        change.timer.daemon = True
        self._pending[path] = change
        change.timer.start()
        return overflow

    def _cancel_all(self) -> None:
        for change in self._pending.values():
            if change.timer is not None:
                change.timer.cancel()
        self._pending.clear()

    def _process_pending(self, change: PendingChange) -> None:
        """Deliver a change whose quiet period elapsed."""
        with self._lock:
            # A newer operation may have replaced this change while the timer fired
            if self._pending.get(change.path) is not change:
                return
            del self._pending[change.path]

        self.log.debug("debounced_change", path=str(change.path), kind=type(change.event).__name__)
        self._deliver(change.event)

    def _deliver(self, event: ChangeEvent) -> None:
        if self._callback is None:
            return
        try:
            self._callback(event)
        except Exception as e:
            self.log.error("debounce_callback_failed", error=str(e))

    def flush(self) -> list[ChangeEvent]:
        """
        Immediately deliver all pending changes.

        Returns:
            The events that were pending, oldest first
        """
        with self._lock:
            changes = list(self._pending.values())
            self._cancel_all()

        events = [change.event for change in changes]
        for event in events:
            self._deliver(event)

        return events

    def clear(self) -> None:
        """Clear all pending changes without processing."""
        with self._lock:
            self._cancel_all()

    @property
    def pending_count(self) -> int:
        """Get number of pending changes."""
        return len(self._pending)

    @property
    def pending_paths(self) -> list[Path]:
        """Get list of paths with pending changes."""
        return list(self._pending.keys())
