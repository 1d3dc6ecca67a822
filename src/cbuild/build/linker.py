"""Linker.

Links a target's object files into its final artifact, skipping the link
when the artifact is already newer than every object.

State machine per target:
    UNCHECKED -> SKIPPED -> COMPLETED
    UNCHECKED -> LINKING -> COMPLETED | FAILED

Staleness:
    - full rebuild requested                 -> LINKING
    - artifact missing                       -> LINKING
    - any object strictly newer than artifact -> LINKING
    - otherwise                              -> SKIPPED

Artifact naming:
    On Windows hosts the artifact gets the extension of its binary type
    (.exe, .dll, .lib); on every other host the configured output path is
    used unchanged.
"""

import logging
from enum import Enum
from pathlib import Path
from typing import List, Optional, Sequence

from .. import output
from ..subprocess_utils import format_command, run_process
from .compiler import OutputFile
from .errors import FilesystemError, ProcessFailure, SpawnError
from .flags import CompilerFlags, link_args
from .toolchain import BinaryType, Os, ToolChain

logger = logging.getLogger(__name__)


class LinkState(Enum):
    """State of a target's link step."""

    UNCHECKED = "unchecked"
    SKIPPED = "skipped"
    LINKING = "linking"
    COMPLETED = "completed"
    FAILED = "failed"


WINDOWS_EXTENSIONS = {
    BinaryType.EXECUTABLE: ".exe",
    BinaryType.DYNAMIC_LIBRARY: ".dll",
    BinaryType.STATIC_LIBRARY: ".lib",
}


def artifact_path(output_path: Path, binary_type: BinaryType, host: Optional[Os] = None) -> Path:
    """Final artifact path for a configured output path.

    Args:
        output_path: Configured output path (stem)
        binary_type: Kind of artifact
        host: Host OS (default: detected)
    """
    if host is None:
        host = Os.current()
    if host == Os.WINDOWS:
        return output_path.with_suffix(WINDOWS_EXTENSIONS[binary_type])
    return output_path


class Linker:
    """Links one target."""

    def __init__(
        self,
        tool_chain: ToolChain,
        binary_type: BinaryType,
        output_path: Path,
        flags: CompilerFlags,
        libs: Sequence[str],
        lib_paths: Sequence[Path],
        full_rebuild: bool,
    ):
        """Initialize the linker.

        Args:
            tool_chain: Toolchain providing the linker and its flag spellings
            binary_type: Kind of artifact to produce
            output_path: Final artifact path (already extension-adjusted)
            flags: Target flags; only `link` is used here
            libs: Library names to link against
            lib_paths: Library search directories
            full_rebuild: Always link, regardless of timestamps
        """
        self.tool_chain = tool_chain
        self.binary_type = binary_type
        self.output_path = output_path
        self.flags = flags
        self.libs = list(libs)
        self.lib_paths = list(lib_paths)
        self.full_rebuild = full_rebuild
        self.state = LinkState.UNCHECKED
        self.decision: Optional[LinkState] = None

    def command(self, objects: Sequence[Path]) -> List[str]:
        """Full linker command line.

        Raises:
            ConfigurationError: If the toolchain cannot produce this binary
                type or cannot express a requested library flag
        """
        return [self.tool_chain.linker(self.binary_type)] + link_args(
            self.tool_chain,
            self.binary_type,
            self.output_path,
            objects,
            self.flags,
            self.libs,
            self.lib_paths,
        )

    def validate(self) -> None:
        """Fail fast on configuration errors, before anything is compiled."""
        self.command([])

    def check(self, objects: Sequence[OutputFile]) -> LinkState:
        """Decide whether the artifact needs relinking.

        Raises:
            FilesystemError: If an object file cannot be stat'ed
        """
        if self.full_rebuild:
            return LinkState.LINKING
        try:
            artifact_mtime = self.output_path.stat().st_mtime_ns
        except FileNotFoundError:
            return LinkState.LINKING
        except OSError as e:
            raise FilesystemError(self.output_path, e) from e

        for obj in objects:
            try:
                object_mtime = obj.path.stat().st_mtime_ns
            except OSError as e:
                raise FilesystemError(obj.path, e) from e
            if object_mtime > artifact_mtime:
                logger.debug(f"{obj.path} is newer than {self.output_path}")
                return LinkState.LINKING
        return LinkState.SKIPPED

    def link(self, objects: Sequence[OutputFile]) -> Path:
        """Link the objects unless the artifact is up to date.

        Returns:
            The artifact path

        Raises:
            SpawnError: If the linker could not be launched
            ProcessFailure: If the linker exited non-zero
            FilesystemError: On stat/mkdir failures
        """
        self.decision = self.check(objects)
        self.state = self.decision
        if self.decision == LinkState.SKIPPED:
            output.log_up_to_date(self.output_path)
            self.state = LinkState.COMPLETED
            return self.output_path

        cmd = self.command([obj.path for obj in objects])
        parent = self.output_path.parent
        try:
            parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            self.state = LinkState.FAILED
            raise FilesystemError(parent, e) from e

        output.log_link(self.output_path)
        logger.debug(f"[Linking]: Command = {format_command(cmd)}")
        try:
            returncode = run_process(cmd, self.output_path)
        except SpawnError:
            self.state = LinkState.FAILED
            raise
        if returncode != 0:
            self.state = LinkState.FAILED
            raise ProcessFailure(self.output_path, "link", returncode)

        self.state = LinkState.COMPLETED
        return self.output_path
