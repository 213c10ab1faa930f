"""
WatchCC Dispatcher Package.

Event handling and the blocking receive loop.
Requires Python 3.11+.
"""

from dispatcher.handler import handle
from dispatcher.loop import EventSource, run_watch_loop

__all__ = ["handle", "EventSource", "run_watch_loop"]
