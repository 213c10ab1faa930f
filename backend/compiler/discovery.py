"""
WatchCC Compiler Discovery.

Selects the C/C++ compiler used for the whole session.
Requires Python 3.11+.
"""

import shutil
from collections.abc import Callable, Sequence
from dataclasses import dataclass, replace

from utils.logger import get_logger

logger = get_logger(__name__)


class CompilerNotFoundError(Exception):
    """Raised when none of the known compilers is on the search path."""


@dataclass(frozen=True, slots=True)
class CompilerChoice:
    """A compiler executable and the fixed flags passed on every invocation."""

    name: str
    executable: str
    flags: tuple[str, ...]


# Flags end with "-x c++" so .c sources are also compiled as C++
GCC = CompilerChoice(
    name="g++",
    executable="g++",
    flags=("-fdiagnostics-color=always", "-O2", "-Wall", "-std=c++17", "-x", "c++"),
)

CLANG = CompilerChoice(
    name="clang++",
    executable="clang++",
    flags=("-fcolor-diagnostics", "-O2", "-Wall", "-std=c++17", "-x", "c++"),
)

# Preference order
KNOWN_COMPILERS: tuple[CompilerChoice, ...] = (GCC, CLANG)


def discover_compiler(
    candidates: Sequence[CompilerChoice] = KNOWN_COMPILERS,
    which: Callable[[str], str | None] = shutil.which,
) -> CompilerChoice:
    """
    Find the first available compiler.

    Args:
        candidates: Compilers to try, most preferred first
        which: Lookup returning the resolved executable path or None

    Returns:
        The selected compiler with its executable resolved

    Raises:
        CompilerNotFoundError: If no candidate is found
    """
    for candidate in candidates:
        resolved = which(candidate.executable)
        if resolved:
            logger.info("compiler_selected", name=candidate.name, executable=resolved)
            return replace(candidate, executable=resolved)
        logger.debug("compiler_not_found", name=candidate.name)

    names = ", ".join(c.name for c in candidates)
    raise CompilerNotFoundError(f"no supported compiler found (tried: {names})")
