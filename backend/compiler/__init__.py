"""
WatchCC Compiler Package.

Compiler discovery and per-file compilation.
Requires Python 3.11+.
"""

from compiler.discovery import (
    CompilerChoice,
    CompilerNotFoundError,
    KNOWN_COMPILERS,
    discover_compiler,
)
from compiler.invoker import CompileResult, SOURCE_EXTENSIONS, try_compile

__all__ = [
    "CompilerChoice",
    "CompilerNotFoundError",
    "KNOWN_COMPILERS",
    "discover_compiler",
    "CompileResult",
    "SOURCE_EXTENSIONS",
    "try_compile",
]
