"""Target - one requested build artifact and its build configuration.

This module defines:
- Target: frozen description of a binary (toolchain, files, flags, ...)
- build(): the single data-in/artifact-out entry point of the core

Design:
    A Target is constructed once per invocation (from a build script, a
    dict, or directly) and consumed by one build() call; nothing mutates it
    during a build. Everything a compile job needs is copied into its own
    InputFile, so jobs share no state.

Build flow:
    validate link configuration -> discover sources -> create object dirs
    -> compile stale files concurrently -> link if any object is newer than
    the artifact -> artifact path
"""

import logging
import time
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Optional

from .. import output
from ..paths import get_cache_dir, get_obj_dir
from .callbacks import CompileProgressCallback
from .compilation_queue import CompilationScheduler
from .compiler import InputFile
from .errors import ConfigurationError, FilesystemError
from .flags import CompilerFlags
from .linker import Linker, artifact_path
from .source_scanner import SourceScanner
from .toolchain import BinaryType, OptimizationLevel, Os, ToolChain

logger = logging.getLogger(__name__)

_KNOWN_KEYS = {
    "tool_chain",
    "opt_level",
    "type",
    "files",
    "output",
    "src_dir",
    "includes",
    "lib_paths",
    "libs",
    "args",
    "excludes",
    "cache_dir",
    "jobs",
}


def _path_list(data: Dict[str, Any], key: str) -> List[Path]:
    value = data.get(key)
    if value is None:
        return []
    if isinstance(value, (str, Path)) or not hasattr(value, "__iter__"):
        raise ConfigurationError(f"`{key}` must be a list of paths, got {value!r}")
    return [Path(v) for v in value]


@dataclass(frozen=True)
class Target:
    """Build configuration of one binary.

    Attributes:
        tool_chain: Compiler family
        opt_level: Optimization level
        files: Source files and directories to compile
        binary_type: Executable, dynamic library or static library
        output: Artifact path stem (extension added on Windows)
        src_dir: Source root stripped from object paths
        excludes: Configured paths to skip, matched verbatim
        includes: Include directories
        lib_paths: Library search directories
        libs: Library names
        args: Warning/custom flags shared by every file
        full_rebuild: Compile and link everything regardless of timestamps
        cache_dir: Build cache root
        jobs: Compile concurrency cap (None: one job per file)
    """

    tool_chain: ToolChain
    opt_level: OptimizationLevel
    files: List[Path]
    binary_type: BinaryType = BinaryType.EXECUTABLE
    output: Path = Path("a")
    src_dir: Path = Path("src")
    excludes: List[Path] = field(default_factory=list)
    includes: List[Path] = field(default_factory=list)
    lib_paths: List[Path] = field(default_factory=list)
    libs: List[str] = field(default_factory=list)
    args: CompilerFlags = field(default_factory=CompilerFlags)
    full_rebuild: bool = False
    cache_dir: Path = field(default_factory=get_cache_dir)
    jobs: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Target":
        """Create a Target from the build-script table spelling.

        Args:
            data: Mapping with at least tool_chain, opt_level and files

        Raises:
            ConfigurationError: On missing keys, unknown keys or bad values
        """
        unknown = set(data) - _KNOWN_KEYS
        if unknown:
            raise ConfigurationError(f"unknown target keys: {sorted(unknown)}")
        for key in ("tool_chain", "opt_level", "files"):
            if key not in data:
                raise ConfigurationError(f"target is missing required key `{key}`")

        args = data.get("args") or {}
        if not isinstance(args, dict):
            raise ConfigurationError(f"`args` must be a table, got {args!r}")
        jobs = data.get("jobs")
        if jobs is not None and (not isinstance(jobs, int) or jobs < 1):
            raise ConfigurationError(f"`jobs` must be a positive integer, got {jobs!r}")

        return cls(
            tool_chain=ToolChain.from_config(data["tool_chain"]),
            opt_level=OptimizationLevel.from_config(data["opt_level"]),
            files=_path_list(data, "files"),
            binary_type=BinaryType.from_config(data.get("type", BinaryType.EXECUTABLE)),
            output=Path(data.get("output", "a")),
            src_dir=Path(data.get("src_dir", "src")),
            excludes=_path_list(data, "excludes"),
            includes=_path_list(data, "includes"),
            lib_paths=_path_list(data, "lib_paths"),
            libs=[str(lib) for lib in data.get("libs") or []],
            args=CompilerFlags.from_dict(args),
            cache_dir=Path(data["cache_dir"]) if data.get("cache_dir") else get_cache_dir(),
            jobs=jobs,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize back to the build-script table spelling."""
        return {
            "tool_chain": self.tool_chain.to_config(),
            "opt_level": self.opt_level.value,
            "type": self.binary_type.value,
            "files": [str(f) for f in self.files],
            "output": str(self.output),
            "src_dir": str(self.src_dir),
            "excludes": [str(e) for e in self.excludes],
            "includes": [str(i) for i in self.includes],
            "lib_paths": [str(p) for p in self.lib_paths],
            "libs": list(self.libs),
            "args": self.args.to_dict(),
            "cache_dir": str(self.cache_dir),
            "jobs": self.jobs,
        }

    def with_overrides(self, full_rebuild: Optional[bool] = None, jobs: Optional[int] = None) -> "Target":
        """Copy with invocation-level overrides applied."""
        changes: Dict[str, Any] = {}
        if full_rebuild is not None:
            changes["full_rebuild"] = full_rebuild
        if jobs is not None:
            changes["jobs"] = jobs
        return replace(self, **changes)

    @property
    def obj_dir(self) -> Path:
        return get_obj_dir(self.cache_dir)

    def artifact_path(self, host: Optional[Os] = None) -> Path:
        return artifact_path(self.output, self.binary_type, host)

    def scanner(self) -> SourceScanner:
        return SourceScanner(
            files=self.files,
            excludes=self.excludes,
            src_dir=self.src_dir,
            obj_dir=self.obj_dir,
            obj_ext=self.tool_chain.obj_file_ext(),
        )

    def input_files(self) -> List[InputFile]:
        """Discover sources and create one compilation unit per source."""
        return [
            InputFile(
                path=source.source,
                output_path=source.object,
                tool_chain=self.tool_chain,
                opt_level=self.opt_level,
                args=self.args,
                includes=list(self.includes),
                full_rebuild=self.full_rebuild,
                binary_type=self.binary_type,
            )
            for source in self.scanner().scan()
        ]

    def linker(self) -> Linker:
        return Linker(
            tool_chain=self.tool_chain,
            binary_type=self.binary_type,
            output_path=self.artifact_path(),
            flags=self.args,
            libs=self.libs,
            lib_paths=self.lib_paths,
            full_rebuild=self.full_rebuild,
        )

    def build(self, callback: Optional[CompileProgressCallback] = None) -> Path:
        """Compile and link this target.

        Args:
            callback: Receives per-file compile state updates

        Returns:
            Path to the (possibly reused) artifact

        Raises:
            ConfigurationError: Before anything runs, on unsupported combinations
            SpawnError, ProcessFailure: When a compile or the link fails
            FilesystemError: On stat/mkdir failures
        """
        start_time = time.time()
        linker = self.linker()
        linker.validate()

        output.log_phase(1, 3, f"Discovering sources for {self.output}...", verbose_only=True)
        _make_dirs(self.obj_dir)
        input_files = self.input_files()
        for input_file in input_files:
            _make_dirs(input_file.output_path.parent)
        output.log_detail(f"{len(input_files)} source files", verbose_only=True)

        scheduler = CompilationScheduler(max_workers=self.jobs, callback=callback)
        with output.TimedLogger(f"Compiling {self.output} with {self.tool_chain}", phase=(2, 3), verbose_only=True) as timed:
            objects = scheduler.run(input_files)
            stats = scheduler.get_statistics()
            timed.detail(f"{stats['compiled']} compiled, {stats['skipped']} up to date")

        output.log_phase(3, 3, f"Linking {linker.output_path}...", verbose_only=True)
        artifact = linker.link(objects)
        output.log_build_complete(time.time() - start_time, verbose_only=True)
        return artifact


def _make_dirs(path: Path) -> None:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise FilesystemError(path, e) from e


def build(target: Target, callback: Optional[CompileProgressCallback] = None) -> Path:
    """Build a target and return the path to its artifact."""
    return target.build(callback)
