"""
WatchCC Compile Invoker.

Runs the selected compiler on a single source file and reports the outcome.
Requires Python 3.11+.
"""

import subprocess
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from compiler.discovery import CompilerChoice
from utils.logger import get_logger

logger = get_logger(__name__)

SOURCE_EXTENSIONS: frozenset[str] = frozenset({".c", ".cc", ".cpp"})

Runner = Callable[..., subprocess.CompletedProcess[Any]]


@dataclass(frozen=True, slots=True)
class CompileResult:
    """Outcome of one compiler invocation."""

    path: Path
    output_path: Path
    diagnostics: str
    returncode: int

    @property
    def success(self) -> bool:
        """True when the compiler wrote nothing to stderr."""
        return not self.diagnostics


def is_compilable(path: Path) -> bool:
    """Check that a path is an existing regular file with a C/C++ extension."""
    return path.suffix in SOURCE_EXTENSIONS and path.is_file()


def output_path_for(path: Path) -> Path:
    """Artifact path: the source path with its extension stripped."""
    return path.with_suffix("")


def build_command(path: Path, compiler: CompilerChoice) -> list[str]:
    """Build the compiler command line for a source file."""
    return [
        compiler.executable,
        *compiler.flags,
        str(path),
        "-o",
        str(output_path_for(path)),
    ]


def try_compile(
    path: Path,
    compiler: CompilerChoice,
    *,
    runner: Runner = subprocess.run,
) -> CompileResult | None:
    """
    Compile a source file if it qualifies and print the outcome.

    Paths that are not regular files with a recognized extension are
    skipped silently. Launch failures and undecodable diagnostics are
    reported and swallowed so the caller can move on to the next event.

    Args:
        path: Source file to compile
        compiler: Compiler selected at startup
        runner: subprocess.run-compatible callable

    Returns:
        CompileResult, or None if nothing was compiled or the output was unusable
    """
    if not is_compilable(path):
        return None

    command = build_command(path, compiler)
    logger.debug("compile_started", path=str(path), command=command)

    try:
        completed = runner(
            command,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.PIPE,
            check=False,
        )
    except OSError as e:
        logger.error("compiler_launch_failed", compiler=compiler.name, error=str(e))
        print(f"failed to run the compiler\ndo you even have {compiler.name}?")
        return None

    stderr: bytes = completed.stderr or b""
    try:
        diagnostics = stderr.decode("utf-8")
    except UnicodeDecodeError as e:
        logger.error("compiler_output_not_utf8", path=str(path), error=str(e))
        print("compiler output was not valid UTF-8")
        return None

    result = CompileResult(
        path=path,
        output_path=output_path_for(path),
        diagnostics=diagnostics,
        returncode=completed.returncode,
    )

    if result.success:
        print(f'"{path}" was compiled successfully')
    else:
        print(diagnostics)

    logger.info(
        "compile_finished",
        path=str(path),
        success=result.success,
        returncode=result.returncode,
    )
    return result
