"""Per-file compilation.

An InputFile is one compilation unit: a source path, its object path, and a
private copy of everything needed to compile it (toolchain, flags, include
paths, optimization level, full-rebuild override). InputFiles never share
mutable state, so any number of them can compile concurrently.

State machine per file:
    UNCHECKED -> SKIPPED   -> COMPLETED   (object reused, no process)
    UNCHECKED -> COMPILING -> COMPLETED   (compiler exited 0)
                           -> FAILED      (spawn failure / non-zero exit)

Staleness:
    - full rebuild requested        -> COMPILING
    - object file missing           -> COMPILING
    - source strictly newer than it -> COMPILING
    - otherwise                     -> SKIPPED
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional

from .. import output
from ..subprocess_utils import format_command, run_process
from .errors import FilesystemError, ProcessFailure
from .flags import CompilerFlags, compile_args
from .toolchain import BinaryType, OptimizationLevel, ToolChain

logger = logging.getLogger(__name__)


class CompileState(Enum):
    """State of a single file's compilation."""

    UNCHECKED = "unchecked"
    SKIPPED = "skipped"
    COMPILING = "compiling"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class OutputFile:
    """Object file produced (or reused) by a successful compilation."""

    path: Path


@dataclass(frozen=True)
class InputFile:
    """One compilation unit and the context needed to compile it."""

    path: Path
    output_path: Path
    tool_chain: ToolChain
    opt_level: OptimizationLevel
    args: CompilerFlags = field(default_factory=CompilerFlags)
    includes: List[Path] = field(default_factory=list)
    full_rebuild: bool = False
    binary_type: BinaryType = BinaryType.EXECUTABLE

    def command(self) -> List[str]:
        """Full compiler command line for this file."""
        return [self.tool_chain.compiler()] + compile_args(
            self.tool_chain,
            self.path,
            self.output_path,
            self.opt_level,
            self.args,
            self.includes,
            self.binary_type,
        )

    def check(self) -> CompileState:
        """Decide whether this file needs compiling.

        Returns:
            CompileState.COMPILING or CompileState.SKIPPED

        Raises:
            FilesystemError: If the source (or an existing object) cannot be stat'ed
        """
        if self.full_rebuild:
            return CompileState.COMPILING
        try:
            source_mtime = self.path.stat().st_mtime_ns
        except OSError as e:
            raise FilesystemError(self.path, e) from e
        try:
            object_mtime = self.output_path.stat().st_mtime_ns
        except FileNotFoundError:
            return CompileState.COMPILING
        except OSError as e:
            raise FilesystemError(self.output_path, e) from e
        if source_mtime > object_mtime:
            return CompileState.COMPILING
        return CompileState.SKIPPED

    def run_compiler(self) -> OutputFile:
        """Spawn the compiler for this file and wait for it.

        Raises:
            SpawnError: If the compiler could not be launched
            ProcessFailure: If the compiler exited non-zero
        """
        cmd = self.command()
        output.log_compile(self.path)
        logger.debug(f"[Compiling]: Command = {format_command(cmd)}")
        returncode = run_process(cmd, self.path)
        if returncode != 0:
            raise ProcessFailure(self.path, "compile", returncode)
        return OutputFile(path=self.output_path)

    def compile(self, on_decision: Optional[Callable[[CompileState], None]] = None) -> OutputFile:
        """Compile this file if it is stale, otherwise reuse its object.

        Args:
            on_decision: Called with SKIPPED or COMPILING before any process runs

        Raises:
            FilesystemError: If the staleness check cannot stat a file
            SpawnError: If the compiler could not be launched
            ProcessFailure: If the compiler exited non-zero
        """
        decision = self.check()
        if on_decision is not None:
            on_decision(decision)
        if decision == CompileState.SKIPPED:
            output.log_cached(self.path)
            return OutputFile(path=self.output_path)
        return self.run_compiler()
