"""Compilation database generation.

Writes a compile_commands.json describing how every source of the given
targets is compiled, for editors and language servers. The commands are
exactly the ones the build would run; nothing is compiled.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from .errors import FilesystemError
from .target import Target

logger = logging.getLogger(__name__)


def database_entries(targets: Sequence[Target], directory: Optional[Path] = None) -> List[Dict[str, Any]]:
    """One entry per source file of every target.

    Args:
        targets: Targets to describe
        directory: Working directory commands run in (default: cwd)
    """
    base = (directory or Path.cwd()).resolve()
    entries = []
    for target in targets:
        for input_file in target.input_files():
            entries.append(
                {
                    "directory": str(base),
                    "file": str(input_file.path),
                    "output": str(input_file.output_path),
                    "arguments": input_file.command(),
                }
            )
    return entries


def write_database(targets: Sequence[Target], path: Path, directory: Optional[Path] = None) -> Path:
    """Write compile_commands.json for the targets.

    Returns:
        The path written

    Raises:
        FilesystemError: If the file cannot be written
    """
    entries = database_entries(targets, directory)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(entries, f, indent=2)
    except OSError as e:
        raise FilesystemError(path, e) from e
    logger.debug(f"Wrote {len(entries)} entries to {path}")
    return path
