"""End-to-end builds with a shell-script toolchain."""

import os
import stat
import sys
from pathlib import Path

import pytest

from cbuild.build.errors import ProcessFailure, SpawnError
from cbuild.build.target import Target
from cbuild.build.toolchain import OptimizationLevel, ToolChain

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(sys.platform == "win32", reason="fake toolchain is a POSIX shell script"),
]

FAKE_CC = """#!/bin/sh
echo "$*" >> "{log}"
out=""
src=""
while [ $# -gt 0 ]; do
    case "$1" in
        -o) out="$2"; shift 2 ;;
        -c) src="$2"; shift 2 ;;
        *) shift ;;
    esac
done
if [ -n "$src" ] && grep -q FAIL "$src"; then
    echo "$src: error: requested failure"
    exit 1
fi
echo "built $out"
: > "$out"
"""


@pytest.fixture
def toolchain(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    log = tmp_path / "invocations.log"
    script = tmp_path / "fake-cc"
    script.write_text(FAKE_CC.format(log=log))
    script.chmod(script.stat().st_mode | stat.S_IXUSR)
    Path("src").mkdir()
    Path("src/a.c").write_text("int a;\n")
    Path("src/b.c").write_text("int b;\n")
    return ToolChain.custom(str(script), str(script)), log


def invocations(log: Path):
    if not log.exists():
        return []
    return log.read_text().splitlines()


def make_target(tool_chain, **overrides):
    fields = dict(
        tool_chain=tool_chain,
        opt_level=OptimizationLevel.O2,
        files=[Path("src")],
        output=Path("bin/app"),
        cache_dir=Path(".cbuild"),
    )
    fields.update(overrides)
    return Target(**fields)


def test_build_then_noop_rebuild(toolchain, capsys):
    tool_chain, log = toolchain
    target = make_target(tool_chain)

    artifact = target.build()

    assert artifact == Path("bin/app")
    assert artifact.exists()
    assert len(invocations(log)) == 3
    assert "built bin/app" in capsys.readouterr().out

    # Age every input so the outputs are strictly newer.
    for path in (Path("src/a.c"), Path("src/b.c")):
        st = path.stat()
        os.utime(path, ns=(st.st_atime_ns, st.st_mtime_ns - 10**11))

    target.build()
    assert len(invocations(log)) == 3


def test_failing_compile_aborts_link(toolchain, capsys):
    tool_chain, log = toolchain
    Path("src/b.c").write_text("FAIL\n")

    with pytest.raises(ProcessFailure) as exc_info:
        make_target(tool_chain).build()

    assert exc_info.value.path == Path("src/b.c")
    assert Path(".cbuild/obj/a.o").exists()
    assert not Path("bin/app").exists()
    assert "requested failure" in capsys.readouterr().out
    assert len(invocations(log)) == 2


def test_missing_compiler_is_a_spawn_error(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    Path("a.c").write_text("int a;\n")
    missing = str(tmp_path / "no-such-cc")
    target = make_target(ToolChain.custom(missing, missing), files=[Path("a.c")])

    with pytest.raises(SpawnError) as exc_info:
        target.build()
    assert exc_info.value.path == Path("a.c")
