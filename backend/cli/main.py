"""
WatchCC Command Line Entry Point.

Watches a directory and recompiles C/C++ sources as they change.
Requires Python 3.11+.

Usage:
    watchcc [path]
"""

import argparse
import os
import sys
from collections.abc import Sequence
from pathlib import Path

from compiler.discovery import CompilerNotFoundError, discover_compiler
from dispatcher.loop import run_watch_loop
from utils.logger import configure_logging, get_logger
from watcher.file_watcher import FileWatcher, WatchSetupError


logger = get_logger("watchcc")


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="watchcc",
        description="Watch a directory and compile C/C++ sources on every save",
    )
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Directory to watch (default: current directory)",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """
    Main entry point.

    Returns:
        Process exit code; 0 after a user interrupt, 1 on a startup failure
    """
    configure_logging()
    args = build_parser().parse_args(argv)

    try:
        os.chdir(args.path)
    except OSError as e:
        logger.error("invalid_root", path=args.path, error=str(e))
        print("Invalid file or directory")
        return 1

    try:
        compiler = discover_compiler()
    except CompilerNotFoundError as e:
        print(f"Error: {e}")
        return 1

    print(f"Using compiler: {compiler.name} ({compiler.executable})")
    print("Setting up watcher.")

    watcher = FileWatcher(Path.cwd())
    try:
        watcher.start()
    except WatchSetupError as e:
        print(f"Error: {e}")
        return 1

    print("Setup success!")

    try:
        run_watch_loop(watcher, compiler)
    except KeyboardInterrupt:
        print("\nStopped watching.")
    finally:
        watcher.stop()

    return 0


if __name__ == "__main__":
    sys.exit(main())
