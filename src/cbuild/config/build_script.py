"""Build script loading and the API exposed to build scripts.

A build script is a Python file (build.py by default) that defines a
`configure(build)` function. cbuild runs the file, then calls `configure`
with a BuildScriptAPI instance:

    def configure(build):
        main = build.add_binary(
            tool_chain="Clang",
            opt_level=build.default_opt_level(),
            files=["src"],
            output="main",
            args={"warnings": ["All", "Extra"]},
        )
        exe = main.build_and_install()
        if exe and build.wants_run():
            build.run(exe, ["--verbose"])

The script only describes targets as data; everything it asks for goes
through Target.from_dict(), so the same tables work from any other
configuration source.
"""

import logging
import runpy
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence

from .. import output
from ..build.compile_database import write_database
from ..build.errors import BuildError, ConfigurationError
from ..build.progress_display import CompileProgressDisplay
from ..build.target import Target
from ..build.toolchain import OptimizationLevel, Os, ToolChain
from ..paths import DEFAULT_DATABASE_FILE
from ..runner import run_binary

logger = logging.getLogger(__name__)


class Action(Enum):
    """What the invocation was asked to do."""

    BUILD = "build"
    RUN = "run"
    GEN_DATABASE = "gen-database"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class BuildOptions:
    """Invocation-level options passed from the CLI to the build script API.

    Attributes:
        action: Requested action
        full_rebuild: Rebuild every target from scratch
        release: Default optimization level is Release instead of Debug
        jobs: Compile concurrency cap for every target (None: one job per file)
        progress: Show the live compile display for synchronous builds
        database_path: Where gen-database writes compile_commands.json
    """

    action: Action = Action.BUILD
    full_rebuild: bool = False
    release: bool = False
    jobs: Optional[int] = None
    progress: bool = False
    database_path: Path = DEFAULT_DATABASE_FILE


def load_build_script(path: Path) -> Callable[["BuildScriptAPI"], Any]:
    """Execute a build script and return its `configure` function.

    Raises:
        ConfigurationError: If the file does not exist or defines no
            callable `configure`
    """
    if not path.is_file():
        raise ConfigurationError(f"build script not found: {path}")
    logger.debug(f"Loading build script {path}")
    namespace = runpy.run_path(str(path), run_name="__cbuild__")
    configure = namespace.get("configure")
    if not callable(configure):
        raise ConfigurationError(f"build script {path} does not define a `configure(build)` function")
    return configure


class TargetHandle:
    """A target build running in the background."""

    def __init__(self, target: Target, future: "Future[Path]"):
        self.target = target
        self._future = future

    def done(self) -> bool:
        return self._future.done()

    def wait(self) -> Path:
        """Block until the build finishes.

        Raises:
            BuildError: If the build failed
        """
        return self._future.result()


class BinaryHandle:
    """A binary declared by the build script."""

    def __init__(self, target: Target, api: "BuildScriptAPI"):
        self.target = target
        self._api = api

    def build(self) -> TargetHandle:
        """Start building in the background; pass the handle to `install`."""
        return TargetHandle(self.target, self._api.submit(self.target))

    def build_and_install(self) -> Path:
        """Build now and return the artifact path.

        Raises:
            BuildError: If the build failed
        """
        return self._api.build_now(self.target)


class BuildScriptAPI:
    """The `build` object handed to a build script's configure()."""

    def __init__(self, options: BuildOptions):
        self.options = options
        self.binaries: List[BinaryHandle] = []
        self.failures: List[BuildError] = []
        self.database_written = False
        self._executor: Optional[ThreadPoolExecutor] = None

    def add_binary(self, config: Optional[Dict[str, Any]] = None, **kwargs: Any) -> BinaryHandle:
        """Declare a binary from a table and/or keyword arguments.

        Raises:
            ConfigurationError: If the description is invalid
        """
        data = dict(config or {})
        data.update(kwargs)
        target = Target.from_dict(data).with_overrides(
            full_rebuild=self.options.full_rebuild,
            jobs=self.options.jobs,
        )
        handle = BinaryHandle(target, self)
        self.binaries.append(handle)
        return handle

    def submit(self, target: Target) -> "Future[Path]":
        if self._executor is None:
            self._executor = ThreadPoolExecutor(thread_name_prefix="target")
        return self._executor.submit(target.build)

    def build_now(self, target: Target) -> Path:
        if not self.options.progress:
            return target.build()
        with CompileProgressDisplay(console=None, target_name=str(target.output)) as display:
            return target.build(display)

    def install(self, handle: TargetHandle) -> Optional[Path]:
        """Wait for a background build; None if it failed (the error is logged)."""
        try:
            return handle.wait()
        except BuildError as e:
            output.log_error(str(e))
            self.failures.append(e)
            return None

    def default_toolchain(self) -> ToolChain:
        return ToolChain.platform_default()

    def default_opt_level(self) -> OptimizationLevel:
        return OptimizationLevel.RELEASE if self.options.release else OptimizationLevel.DEBUG

    def host_os(self) -> Os:
        return Os.current()

    def wants_run(self) -> bool:
        return self.options.action == Action.RUN

    def run(self, binary: Path, args: Optional[Sequence[str]] = None) -> Optional[bool]:
        """Run a built program, streaming its output prefixed with its path."""
        return run_binary(Path(binary), args)

    def should_generate_database(self) -> bool:
        return self.options.action == Action.GEN_DATABASE

    def generate_database(self, path: Optional[Path] = None) -> Path:
        """Write compile_commands.json for every declared binary."""
        database_path = Path(path) if path is not None else self.options.database_path
        written = write_database([b.target for b in self.binaries], database_path)
        output.log(f"Wrote {written}")
        self.database_written = True
        return written

    def shutdown(self) -> None:
        """Wait for background builds still running."""
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None
