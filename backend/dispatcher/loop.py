"""
WatchCC Receive Loop.

Pulls events from the watch source and handles them one at a time.
Requires Python 3.11+.
"""

import threading
from typing import Protocol

from compiler.discovery import CompilerChoice
from dispatcher.handler import handle
from utils.logger import get_logger
from watcher.events import ChangeEvent
from watcher.file_watcher import WatchDisconnected

logger = get_logger(__name__)


class EventSource(Protocol):
    """Anything that hands out change events with a blocking receive."""

    def receive(self, timeout: float | None = None) -> ChangeEvent: ...


# Seconds between stop_event checks while the tree is idle
STOP_CHECK_INTERVAL = 0.5


def run_watch_loop(
    source: EventSource,
    compiler: CompilerChoice,
    *,
    stop_event: threading.Event | None = None,
) -> None:
    """
    Receive and handle events until stop_event is set.

    Without a stop_event the loop runs forever and receive blocks
    indefinitely. With one, receive times out periodically so an idle
    tree still notices the stop request. A disconnected source is
    reported and the loop keeps receiving.
    """
    timeout = None if stop_event is None else STOP_CHECK_INTERVAL
    while stop_event is None or not stop_event.is_set():
        try:
            event = source.receive(timeout=timeout)
        except TimeoutError:
            continue
        except WatchDisconnected as e:
            # TODO: back off or exit once the observer has been dead for a while
            logger.warning("watch_receive_failed", error=str(e))
            print(f"watch error: {e}")
            continue

        handle(event, compiler)
