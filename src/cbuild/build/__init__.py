"""
Build system components for cbuild.

This module provides the build core:
- Toolchain resolution and flag assembly
- Source file discovery
- Concurrent compilation with timestamp-based staleness
- Linking
"""

from .compilation_queue import CompilationScheduler
from .compiler import CompileState, InputFile, OutputFile
from .linker import Linker
from .source_scanner import SourceFile, SourceScanner
from .target import Target, build

__all__ = [
    "CompilationScheduler",
    "CompileState",
    "InputFile",
    "Linker",
    "OutputFile",
    "SourceFile",
    "SourceScanner",
    "Target",
    "build",
]
