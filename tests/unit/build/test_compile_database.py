"""Tests for compile_commands.json generation."""

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from cbuild.build.compile_database import database_entries, write_database
from cbuild.build.errors import FilesystemError
from cbuild.build.target import Target
from cbuild.build.toolchain import CLANG, OptimizationLevel


@pytest.fixture
def target(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    Path("src").mkdir()
    Path("src/a.c").write_text("int a;\n")
    Path("src/b.c").write_text("int b;\n")
    return Target(
        tool_chain=CLANG,
        opt_level=OptimizationLevel.DEBUG,
        files=[Path("src")],
        output=Path("main"),
        cache_dir=Path(".cbuild"),
    )


def test_one_entry_per_source(target, tmp_path):
    entries = database_entries([target], directory=tmp_path)
    assert sorted(e["file"] for e in entries) == [str(Path("src/a.c")), str(Path("src/b.c"))]
    for entry in entries:
        assert entry["directory"] == str(tmp_path.resolve())
        assert entry["arguments"][0] == "clang"
        assert entry["arguments"][1:3] == ["-c", entry["file"]]
        assert entry["output"] in entry["arguments"]


def test_write_database_compiles_nothing(target, tmp_path):
    with patch("cbuild.build.compiler.run_process") as run_process:
        path = write_database([target], tmp_path / "compile_commands.json")
    run_process.assert_not_called()

    entries = json.loads(path.read_text())
    assert len(entries) == 2
    assert not Path(".cbuild").exists()


def test_write_failure(target, tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("")
    with pytest.raises(FilesystemError):
        write_database([target], blocker / "compile_commands.json")
