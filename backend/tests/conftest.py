"""
WatchCC Test Configuration.

Pytest fixtures and configuration.
Requires Python 3.11+.
"""

import subprocess
import sys
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import pytest
import structlog

from compiler.discovery import CompilerChoice, CompilerNotFoundError, discover_compiler
from utils.config import get_settings


def _available_compiler() -> CompilerChoice | None:
    try:
        return discover_compiler()
    except CompilerNotFoundError:
        return None


@pytest.fixture(autouse=True)
def quiet_logging() -> Generator[None, None, None]:
    """Send structured logs to stderr so stdout only carries console notices."""
    structlog.configure(logger_factory=structlog.PrintLoggerFactory(file=sys.stderr))
    get_settings.cache_clear()
    yield
    structlog.reset_defaults()
    get_settings.cache_clear()


@pytest.fixture
def fake_compiler() -> CompilerChoice:
    """A compiler choice that is never actually executed."""
    return CompilerChoice(
        name="fakecc",
        executable="/usr/bin/fakecc",
        flags=("-O2", "-Wall", "-std=c++17"),
    )


@pytest.fixture
def real_compiler() -> CompilerChoice:
    """The compiler discovered on this machine."""
    compiler = _available_compiler()
    if compiler is None:
        pytest.skip("no C/C++ compiler on PATH")
    return compiler


@pytest.fixture
def valid_source() -> str:
    """Smallest program that compiles cleanly."""
    return "int main(){return 0;}\n"


@pytest.fixture
def broken_source() -> str:
    """Program missing its closing brace."""
    return "int main(){return 0;\n"


class RecordingRunner:
    """Stands in for subprocess.run and records every command."""

    def __init__(self, stderr: bytes = b"", returncode: int = 0, error: OSError | None = None) -> None:
        self.stderr = stderr
        self.returncode = returncode
        self.error = error
        self.calls: list[tuple[list[str], dict[str, Any]]] = []

    def __call__(self, command: list[str], **kwargs: Any) -> subprocess.CompletedProcess[bytes]:
        self.calls.append((command, kwargs))
        if self.error is not None:
            raise self.error
        return subprocess.CompletedProcess(command, self.returncode, stdout=None, stderr=self.stderr)


@pytest.fixture
def make_runner() -> Callable[..., RecordingRunner]:
    """Factory for recording subprocess runners."""
    return RecordingRunner


@pytest.fixture
def source_file(tmp_path: Path, valid_source: str) -> Path:
    """A C++ source file on disk."""
    path = tmp_path / "a.cpp"
    path.write_text(valid_source)
    return path
