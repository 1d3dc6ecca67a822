"""Run-after-build.

Spawns an already-built program and streams its stdout and stderr line by
line, each line prefixed with the program path as it was given:

    [main]: hello world

The result is True/False by exit status, or None when the program could not
be started or waited on.
"""

import logging
import subprocess
import sys
import threading
from pathlib import Path
from typing import Optional, Sequence

from . import output
from .subprocess_utils import pump_lines, safe_popen

logger = logging.getLogger(__name__)


def run_binary(binary: Path, args: Optional[Sequence[str]] = None) -> Optional[bool]:
    """Run a built program, streaming its output.

    Args:
        binary: Program path (relative paths are resolved against cwd)
        args: Program arguments

    Returns:
        True on exit code 0, False on any other exit, None if the process
        could not be spawned or waited on
    """
    args = list(args or [])
    raw_binary = Path(binary)
    resolved = raw_binary.absolute()
    cmd = [str(resolved)] + args

    output.log(f"Running: {', '.join(repr(part) for part in cmd)}")
    try:
        proc = safe_popen(cmd, stdout=subprocess.PIPE, stderr=subprocess.PIPE)
    except OSError as e:
        output.log_error(f"failed to run {resolved}: {e}")
        return None

    prefix = f"[{raw_binary}]: "
    assert proc.stdout is not None and proc.stderr is not None
    readers = [
        threading.Thread(target=pump_lines, args=(proc.stdout, sys.stdout, prefix), daemon=True),
        threading.Thread(target=pump_lines, args=(proc.stderr, sys.stderr, prefix), daemon=True),
    ]
    for reader in readers:
        reader.start()

    try:
        returncode = proc.wait()
    except OSError as e:
        logger.error(f"failed to wait on {resolved}: {e}")
        return None
    for reader in readers:
        reader.join()
    proc.stdout.close()
    proc.stderr.close()
    logger.debug(f"{resolved} exited with code {returncode}")
    return returncode == 0
