"""cbuild - a build driver for C and C++ projects.

Resolves a toolchain, assembles compiler and linker command lines, compiles
stale sources concurrently and links the result only when something changed.
"""

from .build.errors import BuildError, ConfigurationError, FilesystemError, ProcessFailure, SpawnError
from .build.target import Target
from .build.toolchain import BinaryType, OptimizationLevel, Os, ToolChain, WarningFlag

__version__ = "0.1.0"

__all__ = [
    "BinaryType",
    "BuildError",
    "ConfigurationError",
    "FilesystemError",
    "OptimizationLevel",
    "Os",
    "ProcessFailure",
    "SpawnError",
    "Target",
    "ToolChain",
    "WarningFlag",
]
