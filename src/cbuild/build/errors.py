"""Build errors.

Every failure the compile/link pipeline can report is a subclass of
BuildError, so callers can catch the whole family with one clause:

- ConfigurationError: unsupported toolchain/binary-type combination, a flag
  the toolchain cannot express, or a malformed target description. Raised
  before any process is spawned and aborts the whole build.
- SpawnError: the compiler/linker executable could not be launched.
- ProcessFailure: the process launched but exited non-zero or abnormally.
- FilesystemError: stat/mkdir failures from staleness checks or directory
  creation.
"""

from pathlib import Path
from typing import Optional


class BuildError(Exception):
    """Base class for all build failures."""

    pass


class ConfigurationError(BuildError):
    """Raised when a target description cannot be turned into commands."""

    pass


class SpawnError(BuildError):
    """Raised when an external tool could not be launched."""

    def __init__(self, path: Optional[Path], command: list[str], os_error: OSError):
        self.path = path
        self.command = command
        self.os_error = os_error
        program = command[0] if command else "<empty command>"
        if path is not None:
            message = f"failed to spawn `{program}` for `{path}`: {os_error}"
        else:
            message = f"failed to spawn `{program}`: {os_error}"
        super().__init__(message)


class ProcessFailure(BuildError):
    """Raised when an external tool exits with a non-zero status."""

    def __init__(self, path: Path, action: str, returncode: int):
        self.path = path
        self.action = action
        self.returncode = returncode
        super().__init__(f"failed to {action} `{path}` (exit code {returncode}); compilation aborted")


class FilesystemError(BuildError):
    """Raised when a metadata read or directory creation fails."""

    def __init__(self, path: Path, os_error: OSError):
        self.path = path
        self.os_error = os_error
        super().__init__(f"filesystem error on `{path}`: {os_error}")
