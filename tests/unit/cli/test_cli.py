"""Tests for the cbuild command line."""

import json
import sys
from pathlib import Path
from unittest.mock import patch

import pytest

from cbuild.cli import create_parser, main
from cbuild.config.build_script import Action

BUILD_SCRIPT = """
def configure(build):
    main = build.add_binary(
        tool_chain="Clang",
        opt_level=build.default_opt_level(),
        files=["src"],
        output="main",
        cache_dir=".cbuild",
    )
    exe = main.build_and_install()
    if build.wants_run():
        build.run(exe, ["--greeting"])
"""


@pytest.fixture
def project(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    Path("src").mkdir()
    Path("src/main.c").write_text("int main(void) { return 0; }\n")
    Path("build.py").write_text(BUILD_SCRIPT)
    return tmp_path


def run_cli(*argv: str) -> int:
    with patch.object(sys, "argv", ["cbuild", *argv]):
        with pytest.raises(SystemExit) as exc_info:
            main()
    return exc_info.value.code


class TestCli:
    def test_no_command_prints_help(self, capsys):
        assert run_cli() == 0
        assert "usage: cbuild" in capsys.readouterr().out

    def test_build_succeeds(self, project, fake_process, capsys):
        assert run_cli("build", "--no-progress") == 0
        assert Path("main").exists() or Path("main.exe").exists()
        assert "✓" in capsys.readouterr().out

    def test_release_flag_selects_release(self, project, fake_process):
        assert run_cli("build", "-r") == 0
        assert "-DNDEBUG" in fake_process.compiles[0]

    def test_full_rebuild_flag(self, project, fake_process):
        assert run_cli("build") == 0
        fake_process.reset()
        assert run_cli("build", "-B") == 0
        assert len(fake_process.compiles) == 1
        assert len(fake_process.links) == 1

    def test_options_before_the_command(self, project, fake_process):
        assert run_cli("-r", "--no-progress", "build") == 0
        assert "-DNDEBUG" in fake_process.compiles[0]
        fake_process.reset()
        assert run_cli("-B", "build") == 0
        assert len(fake_process.compiles) == 1
        assert len(fake_process.links) == 1

    def test_options_on_both_sides_of_the_command(self, project, fake_process):
        assert run_cli("-r", "build", "-B") == 0
        assert "-DNDEBUG" in fake_process.compiles[0]
        fake_process.reset()
        assert run_cli("-B", "build", "-r") == 0
        assert len(fake_process.compiles) == 1

    def test_compile_failure_exits_1(self, project, fake_process, capsys):
        fake_process.failing.add(Path("src/main.c"))
        assert run_cli("build") == 1
        out = capsys.readouterr().out
        assert "Build failed" in out
        assert "main.c" in out

    def test_missing_build_script_exits_1(self, tmp_path, monkeypatch, capsys):
        monkeypatch.chdir(tmp_path)
        assert run_cli("build") == 1
        assert "build script not found" in capsys.readouterr().out

    def test_custom_build_script(self, project, fake_process):
        Path("build.py").rename("ci_build.py")
        assert run_cli("-i", "ci_build.py", "build") == 0

    def test_run_invokes_the_binary(self, project, fake_process):
        with patch("cbuild.config.build_script.run_binary", return_value=True) as run_binary:
            assert run_cli("run") == 0
        binary, args = run_binary.call_args[0]
        assert binary.name.startswith("main")
        assert args == ["--greeting"]

    def test_gen_database_writes_file(self, project, fake_process):
        assert run_cli("gen-database", "-o", "cc.json") == 0
        entries = json.loads(Path("cc.json").read_text())
        assert entries[0]["file"] == str(Path("src/main.c"))

    def test_jobs_must_be_positive(self, project):
        assert run_cli("build", "-j", "0") == 2

    def test_keyboard_interrupt_exits_130(self, project):
        with patch("cbuild.cli.load_build_script", side_effect=KeyboardInterrupt):
            assert run_cli("build") == 130

    def test_action_values_match_subcommands(self):
        assert {a.value for a in Action} == {"build", "run", "gen-database"}


class TestParser:
    def test_defaults(self):
        args = create_parser().parse_args(["build"])
        assert not args.full_rebuild
        assert not args.release
        assert args.jobs is None
        assert not args.verbose
        assert not args.no_progress

    def test_options_before_the_command_survive(self):
        args = create_parser().parse_args(["-B", "-v", "-j", "3", "gen-database"])
        assert args.full_rebuild
        assert args.verbose
        assert args.jobs == 3
        assert not args.release

    def test_options_after_the_command(self):
        args = create_parser().parse_args(["run", "-r", "--no-progress"])
        assert args.release
        assert args.no_progress
        assert not args.full_rebuild
