"""
WatchCC Change Events.

Debounced filesystem events delivered by the file watcher.
Requires Python 3.11+.
"""

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True, slots=True)
class Written:
    """Contents of an existing file were written."""

    path: Path


@dataclass(frozen=True, slots=True)
class Created:
    """A new file appeared."""

    path: Path


@dataclass(frozen=True, slots=True)
class Removed:
    """A file was deleted."""

    path: Path


@dataclass(frozen=True, slots=True)
class Renamed:
    """A file was moved from old_path to new_path."""

    old_path: Path
    new_path: Path


@dataclass(frozen=True, slots=True)
class PermissionsChanged:
    """Only the mode bits of a file changed."""

    path: Path


@dataclass(frozen=True, slots=True)
class RescanRequested:
    """Pending events were dropped and the tree should be considered rescanned."""


@dataclass(frozen=True, slots=True)
class WatchError:
    """The watch source hit a problem, optionally tied to a path."""

    cause: str
    path: Path | None = None


ChangeEvent = (
    Written
    | Created
    | Removed
    | Renamed
    | PermissionsChanged
    | RescanRequested
    | WatchError
)
