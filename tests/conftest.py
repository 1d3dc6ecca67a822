"""Pytest configuration and fixtures for cbuild tests.

This conftest addresses Python 3.13 compatibility issues with pytest's capture fixtures.
Python 3.13 changed how stdout/stderr are handled, causing "I/O operation on closed file"
errors during test teardown. This is a known issue: https://github.com/pytest-dev/pytest/issues/11439

It also provides `fake_process`, a stand-in for the compiler/linker spawn
primitive that records every command and creates the file the command would
have produced.
"""

import os
import sys
import threading
import warnings
from pathlib import Path
from typing import List, Optional, Set
from unittest.mock import patch

import pytest

from cbuild import output

# Suppress ResourceWarnings from file cleanup in Python 3.13
if sys.version_info >= (3, 13):
    warnings.filterwarnings("ignore", category=ResourceWarning)

_OUTPUT_PREFIXES = ("/Fo", "/OUT:")
_COMPILE_FLAGS = ("-c", "/c")


def output_of(cmd: List[str]) -> Optional[Path]:
    """Path a compiler/linker command writes to."""
    for i, arg in enumerate(cmd):
        if arg == "-o" and i + 1 < len(cmd):
            return Path(cmd[i + 1])
        for prefix in _OUTPUT_PREFIXES:
            if arg.startswith(prefix):
                return Path(arg[len(prefix) :])
    return None


class FakeProcess:
    """Records spawned commands and creates their outputs."""

    def __init__(self) -> None:
        self.calls: List[List[str]] = []
        self.failing: Set[Path] = set()
        self.returncode_on_failure = 1
        self._lock = threading.Lock()

    def __call__(self, cmd: List[str], path: Optional[Path] = None) -> int:
        with self._lock:
            self.calls.append(list(cmd))
        if path is not None and Path(path) in self.failing:
            return self.returncode_on_failure
        target = output_of(cmd)
        if target is not None:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(b"fake")
        return 0

    @property
    def compiles(self) -> List[List[str]]:
        return [c for c in self.calls if any(flag in c for flag in _COMPILE_FLAGS)]

    @property
    def links(self) -> List[List[str]]:
        return [c for c in self.calls if not any(flag in c for flag in _COMPILE_FLAGS)]

    def compiled_sources(self) -> Set[Path]:
        sources = set()
        for cmd in self.compiles:
            for flag in _COMPILE_FLAGS:
                if flag in cmd:
                    sources.add(Path(cmd[cmd.index(flag) + 1]))
        return sources

    def reset(self) -> None:
        with self._lock:
            self.calls.clear()


@pytest.fixture
def fake_process():
    """Patch process spawning in the compiler and linker."""
    fake = FakeProcess()
    with patch("cbuild.build.compiler.run_process", fake), patch("cbuild.build.linker.run_process", fake):
        yield fake


def _age(*paths: Path, seconds: float = 100.0) -> None:
    for path in paths:
        st = path.stat()
        os.utime(path, ns=(st.st_atime_ns, st.st_mtime_ns - int(seconds * 1e9)))


@pytest.fixture
def age():
    """Move the modification time of files into the past."""
    return _age


@pytest.fixture(autouse=True)
def _reset_output():
    """Keep verbose mode from leaking between tests."""
    output.set_verbose(False)
    yield
    output.set_verbose(False)
    output.init_timer()


@pytest.fixture(autouse=True)
def _restore_stdio():  # noqa: PT004
    """Ensure stdout/stderr are always restored after each test.

    This prevents "I/O operation on closed file" errors in Python 3.13
    when tests raise exceptions that close stdout/stderr.
    """
    yield

    # Restore if they were closed during the test
    if sys.stdout.closed:
        sys.stdout = sys.__stdout__
    if sys.stderr.closed:
        sys.stderr = sys.__stderr__


@pytest.hookimpl(hookwrapper=True, trylast=True)
def pytest_runtest_teardown(item):  # noqa: ARG001
    """Ensure streams are restored during teardown phase."""
    yield

    if hasattr(sys.stdout, "closed") and sys.stdout.closed:
        sys.stdout = sys.__stdout__
    if hasattr(sys.stderr, "closed") and sys.stderr.closed:
        sys.stderr = sys.__stderr__
