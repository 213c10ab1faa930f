"""
WatchCC Event Dispatcher.

Reports each change event on the console and compiles written sources.
Requires Python 3.11+.
"""

from compiler.discovery import CompilerChoice
from compiler.invoker import try_compile
from utils.logger import get_logger
from watcher.events import (
    ChangeEvent,
    Created,
    PermissionsChanged,
    Removed,
    Renamed,
    RescanRequested,
    WatchError,
    Written,
)

logger = get_logger(__name__)


def _compile(event: Written | Created, compiler: CompilerChoice) -> None:
    try:
        try_compile(event.path, compiler)
    except Exception:
        logger.exception("compile_failed", path=str(event.path))


def handle(event: ChangeEvent, compiler: CompilerChoice) -> None:
    """
    Handle a single change event.

    Only written and created files are compiled; every other kind is
    reported and left alone. Unknown objects are ignored.
    """
    if isinstance(event, Written):
        print(f'WRITE: "{event.path}" is written')
        _compile(event, compiler)
    elif isinstance(event, Created):
        print(f'CREATE: "{event.path}" is created')
        _compile(event, compiler)
    elif isinstance(event, Removed):
        print(f'REMOVE: "{event.path}" was removed')
    elif isinstance(event, Renamed):
        print(f'RENAME: "{event.old_path}" was renamed to "{event.new_path}"')
    elif isinstance(event, PermissionsChanged):
        print(f'CHMOD: file permissions of "{event.path}" has been changed')
    elif isinstance(event, RescanRequested):
        print("RESCAN: problem detected\nrescanned file/directory.")
    elif isinstance(event, WatchError):
        location = f'"{event.path}"' if event.path is not None else "None"
        print(f"ERROR: error {event.cause} at {location}")
    else:
        logger.debug("event_ignored", event=repr(event))
