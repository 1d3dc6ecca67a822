"""Subprocess utilities for platform-safe process execution.

This module provides the spawn-and-wait primitive shared by the compiler,
the linker and the run-after-build helper. Every child is started through
safe_popen(), which applies platform-specific flags to prevent console
window flashing on Windows and keeps children off the parent's stdin.
"""

import logging
import shlex
import subprocess
import sys
import threading
from pathlib import Path
from typing import IO, Any, Optional, Sequence

from .build.errors import SpawnError

logger = logging.getLogger(__name__)


def get_subprocess_creation_flags() -> int:
    """Get platform-specific subprocess creation flags.

    Returns:
        - Windows: subprocess.CREATE_NO_WINDOW (prevents console window)
        - Other platforms: 0 (no special flags)
    """
    if sys.platform == "win32":
        return subprocess.CREATE_NO_WINDOW
    return 0


def safe_popen(cmd: list[str], **kwargs: Any) -> subprocess.Popen:
    """Execute subprocess.Popen with platform-specific flags.

    Automatically applies:
    - CREATE_NO_WINDOW on Windows (prevents console window)
    - stdin=DEVNULL (prevents console input handle inheritance)

    Args:
        cmd: Command and arguments (same as subprocess.Popen)
        **kwargs: Additional arguments passed to subprocess.Popen

    Returns:
        Popen process handle

    Note:
        - If 'creationflags' is explicitly provided in kwargs,
          it will be OR'd with platform defaults to preserve custom flags.
        - If 'stdin' is explicitly provided in kwargs, it will be used as-is.
    """
    default_flags = get_subprocess_creation_flags()

    if "creationflags" in kwargs:
        kwargs["creationflags"] = kwargs["creationflags"] | default_flags
    elif default_flags:
        kwargs["creationflags"] = default_flags

    if "stdin" not in kwargs:
        kwargs["stdin"] = subprocess.DEVNULL

    return subprocess.Popen(cmd, **kwargs)


def format_command(cmd: Sequence[str]) -> str:
    """Render a command line for logs, quoting arguments that need it."""
    return " ".join(shlex.quote(str(arg)) for arg in cmd)


def pump_lines(stream: IO[bytes], sink: IO[str], prefix: str = "") -> None:
    """Copy a child's byte stream to a text sink, one line at a time."""
    for raw_line in stream:
        text = raw_line.decode("utf-8", errors="replace").rstrip("\r\n")
        try:
            sink.write(f"{prefix}{text}\n")
            sink.flush()
        except (ValueError, OSError):
            # Sink closed underneath us; keep draining so the child never blocks.
            pass


def run_process(cmd: list[str], path: Optional[Path] = None) -> int:
    """Spawn a tool, relay its combined output to stdout, and wait for it.

    Args:
        cmd: Command and arguments
        path: File the command acts on, attached to a SpawnError

    Returns:
        The process exit code

    Raises:
        SpawnError: If the executable could not be launched
    """
    logger.debug(f"Spawning: {format_command(cmd)}")
    try:
        proc = safe_popen(cmd, stdout=subprocess.PIPE, stderr=subprocess.STDOUT)
    except OSError as e:
        raise SpawnError(path, cmd, e) from e

    assert proc.stdout is not None
    reader = threading.Thread(target=pump_lines, args=(proc.stdout, sys.stdout), daemon=True)
    reader.start()
    returncode = proc.wait()
    reader.join()
    proc.stdout.close()
    logger.debug(f"Process {cmd[0]} exited with code {returncode}")
    return returncode
