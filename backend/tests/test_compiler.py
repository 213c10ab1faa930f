"""
Tests for Compiler Discovery and the Compile Invoker.

Requires Python 3.11+.
"""

import subprocess
from pathlib import Path

import pytest

from compiler.discovery import (
    CLANG,
    GCC,
    CompilerChoice,
    CompilerNotFoundError,
    discover_compiler,
)
from compiler.invoker import (
    SOURCE_EXTENSIONS,
    build_command,
    is_compilable,
    try_compile,
)


def _which_only(*available: str):
    def which(name: str) -> str | None:
        return f"/usr/bin/{name}" if name in available else None

    return which


class TestDiscovery:
    """Test cases for discover_compiler."""

    def test_prefers_gcc(self):
        compiler = discover_compiler(which=_which_only("g++", "clang++"))
        assert compiler.name == "g++"
        assert compiler.executable == "/usr/bin/g++"
        assert compiler.flags == GCC.flags

    def test_falls_back_to_clang(self):
        compiler = discover_compiler(which=_which_only("clang++"))
        assert compiler.name == "clang++"
        assert "-fcolor-diagnostics" in compiler.flags

    def test_none_found(self):
        with pytest.raises(CompilerNotFoundError, match="g\\+\\+, clang\\+\\+"):
            discover_compiler(which=_which_only())

    def test_looks_up_each_candidate_once(self):
        looked_up: list[str] = []

        def which(name: str) -> str | None:
            looked_up.append(name)
            return None

        with pytest.raises(CompilerNotFoundError):
            discover_compiler(which=which)
        assert looked_up == ["g++", "clang++"]

    def test_flag_families(self):
        """Each compiler carries its own color flag and the shared options."""
        assert "-fdiagnostics-color=always" in GCC.flags
        assert "-fcolor-diagnostics" in CLANG.flags
        for flags in (GCC.flags, CLANG.flags):
            assert {"-O2", "-Wall", "-std=c++17"} <= set(flags)

    def test_sources_forced_to_cxx(self):
        """C inputs go through the C++ frontend without a language warning."""
        for compiler in (GCC, CLANG):
            command = build_command(Path("a.c"), compiler)
            assert command[command.index("-x") + 1] == "c++"
            assert command.index("-x") < command.index("a.c")


class TestInvoker:
    """Test cases for try_compile with a stand-in runner."""

    def test_build_command(self, fake_compiler: CompilerChoice):
        command = build_command(Path("/src/dir/a.cpp"), fake_compiler)
        assert command == [
            "/usr/bin/fakecc",
            "-O2",
            "-Wall",
            "-std=c++17",
            "/src/dir/a.cpp",
            "-o",
            "/src/dir/a",
        ]

    @pytest.mark.parametrize("suffix", sorted(SOURCE_EXTENSIONS))
    def test_recognized_extensions(self, tmp_path: Path, suffix: str):
        path = tmp_path / f"prog{suffix}"
        path.write_text("")
        assert is_compilable(path)

    @pytest.mark.parametrize("name", ["notes.txt", "a.h", "a.hpp", "a.py", "Makefile", "a.CPP"])
    def test_unrecognized_is_noop(self, tmp_path: Path, name: str, fake_compiler, make_runner, capsys):
        path = tmp_path / name
        path.write_text("int main(){return 0;}")
        runner = make_runner()

        assert try_compile(path, fake_compiler, runner=runner) is None
        assert runner.calls == []
        assert capsys.readouterr().out == ""

    def test_missing_file_is_noop(self, tmp_path: Path, fake_compiler, make_runner, capsys):
        runner = make_runner()

        assert try_compile(tmp_path / "gone.cpp", fake_compiler, runner=runner) is None
        assert runner.calls == []
        assert capsys.readouterr().out == ""

    def test_directory_is_noop(self, tmp_path: Path, fake_compiler, make_runner):
        directory = tmp_path / "dir.cpp"
        directory.mkdir()
        runner = make_runner()

        assert try_compile(directory, fake_compiler, runner=runner) is None
        assert runner.calls == []

    def test_success(self, source_file: Path, fake_compiler, make_runner, capsys):
        runner = make_runner()

        result = try_compile(source_file, fake_compiler, runner=runner)

        assert result is not None and result.success
        assert result.output_path == source_file.with_suffix("")
        command, kwargs = runner.calls[0]
        assert command == build_command(source_file, fake_compiler)
        assert kwargs["stderr"] is subprocess.PIPE
        assert kwargs["stdout"] is subprocess.DEVNULL
        assert f'"{source_file}" was compiled successfully' in capsys.readouterr().out

    def test_diagnostics_are_printed(self, source_file: Path, fake_compiler, make_runner, capsys):
        diagnostics = "a.cpp:1:21: error: expected '}' at end of input\n"
        runner = make_runner(stderr=diagnostics.encode(), returncode=1)

        result = try_compile(source_file, fake_compiler, runner=runner)

        out = capsys.readouterr().out
        assert result is not None and not result.success
        assert result.diagnostics == diagnostics
        assert diagnostics in out
        assert "compiled successfully" not in out

    def test_warnings_count_as_diagnostics(self, source_file: Path, fake_compiler, make_runner, capsys):
        """Any stderr output suppresses the success notice, even with exit status 0."""
        runner = make_runner(stderr=b"warning: unused variable 'x'\n", returncode=0)

        result = try_compile(source_file, fake_compiler, runner=runner)

        assert result is not None and not result.success
        assert "compiled successfully" not in capsys.readouterr().out

    def test_launch_failure(self, source_file: Path, fake_compiler, make_runner, capsys):
        runner = make_runner(error=FileNotFoundError(2, "No such file or directory"))

        assert try_compile(source_file, fake_compiler, runner=runner) is None
        assert "failed to run the compiler" in capsys.readouterr().out

    def test_undecodable_output(self, source_file: Path, fake_compiler, make_runner, capsys):
        runner = make_runner(stderr=b"\xff\xfe bad bytes", returncode=1)

        assert try_compile(source_file, fake_compiler, runner=runner) is None
        out = capsys.readouterr().out
        assert "not valid UTF-8" in out
        assert "compiled successfully" not in out

    def test_source_left_untouched(self, source_file: Path, valid_source: str, fake_compiler, make_runner):
        try_compile(source_file, fake_compiler, runner=make_runner(stderr=b"error\n"))
        assert source_file.read_text() == valid_source


class TestRealCompiler:
    """Compile with whatever compiler this machine has."""

    @pytest.mark.parametrize("suffix", sorted(SOURCE_EXTENSIONS))
    def test_valid_source_builds_artifact(self, tmp_path: Path, suffix: str, real_compiler, valid_source, capsys):
        path = tmp_path / f"a{suffix}"
        path.write_text(valid_source)

        result = try_compile(path, real_compiler)

        assert result is not None and result.success
        assert (tmp_path / "a").is_file()
        assert "was compiled successfully" in capsys.readouterr().out

    def test_syntax_error_prints_diagnostics(self, tmp_path: Path, real_compiler, broken_source, capsys):
        path = tmp_path / "a.cpp"
        path.write_text(broken_source)

        result = try_compile(path, real_compiler)

        out = capsys.readouterr().out
        assert result is not None
        assert result.diagnostics.strip()
        assert result.returncode != 0
        assert "compiled successfully" not in out
