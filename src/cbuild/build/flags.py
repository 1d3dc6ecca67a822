"""Flag Assembler.

Turns a target's declared warnings, suppressed warnings, optimization level,
include paths, libraries and free-form flags into toolchain-correct argument
vectors for the compile and link steps.

Design:
    Everything here is a pure function of its arguments. The compiler and
    linker modules prepend the executable and append nothing; the argument
    order is fixed so that custom flags come after the generated ones and
    can override them.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Sequence

from .errors import ConfigurationError
from .toolchain import BinaryType, OptimizationLevel, ToolChain, ToolChainKind, WarningFlag


@dataclass(frozen=True)
class CompilerFlags:
    """Per-target flags shared by every file in the target.

    Attributes:
        warnings: Warning groups to enable
        no_warnings: Warning groups to suppress
        custom: Free-form flags appended to every compile command and the link command
        link: Free-form flags appended to the link command only
    """

    warnings: List[WarningFlag] = field(default_factory=list)
    no_warnings: List[WarningFlag] = field(default_factory=list)
    custom: List[str] = field(default_factory=list)
    link: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CompilerFlags":
        """Parse the build-script `args` table."""
        unknown = set(data) - {"warnings", "no_warnings", "custom", "link"}
        if unknown:
            raise ConfigurationError(f"unknown keys in args: {sorted(unknown)}")
        return cls(
            warnings=[WarningFlag.from_config(w) for w in data.get("warnings", [])],
            no_warnings=[WarningFlag.from_config(w) for w in data.get("no_warnings", [])],
            custom=[str(f) for f in data.get("custom", [])],
            link=[str(f) for f in data.get("link", [])],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "warnings": [w.value for w in self.warnings],
            "no_warnings": [w.value for w in self.no_warnings],
            "custom": list(self.custom),
            "link": list(self.link),
        }


_UNIX_OPT_FLAGS: Dict[OptimizationLevel, tuple[str, ...]] = {
    OptimizationLevel.DEBUG: ("-O0", "-g"),
    OptimizationLevel.RELEASE: ("-O2", "-DNDEBUG"),
    OptimizationLevel.O0: ("-O0",),
    OptimizationLevel.O1: ("-O1",),
    OptimizationLevel.O2: ("-O2",),
    OptimizationLevel.O3: ("-O3",),
    OptimizationLevel.OSIZE: ("-Os",),
}

_MSVC_OPT_FLAGS: Dict[OptimizationLevel, tuple[str, ...]] = {
    # Per-object debug info: parallel cl.exe runs must not share a PDB.
    OptimizationLevel.DEBUG: ("/Od", "/Z7"),
    OptimizationLevel.RELEASE: ("/O2", "/DNDEBUG"),
    OptimizationLevel.O0: ("/Od",),
    OptimizationLevel.O1: ("/O1",),
    OptimizationLevel.O2: ("/O2",),
    OptimizationLevel.O3: ("/Ox",),
    OptimizationLevel.OSIZE: ("/O1",),
}


def optimization_flags(tool_chain: ToolChain, opt_level: OptimizationLevel) -> List[str]:
    """Compile flags for an optimization level."""
    if tool_chain.kind == ToolChainKind.MSVC:
        return list(_MSVC_OPT_FLAGS[opt_level])
    return list(_UNIX_OPT_FLAGS[opt_level])


def output_args(flag: str, path: Path, tool_chain: ToolChain) -> List[str]:
    """Output flag and path, concatenated for MSVC and separate otherwise."""
    if tool_chain.output_is_prefix:
        return [f"{flag}{path}"]
    return [flag, str(path)]


def warning_args(tool_chain: ToolChain, flags: CompilerFlags) -> List[str]:
    """Enabled then suppressed warning flags. Empty spellings are dropped."""
    args = []
    for warning in flags.warnings:
        arg = f"{tool_chain.compiler_warning_flag()}{warning.to_string(tool_chain)}"
        if arg:
            args.append(arg)
    for warning in flags.no_warnings:
        arg = f"{tool_chain.compiler_no_warning_flag()}{warning.to_string(tool_chain)}"
        if arg:
            args.append(arg)
    return args


def include_args(tool_chain: ToolChain, includes: Sequence[Path]) -> List[str]:
    args = []
    for include in includes:
        args.extend([tool_chain.compiler_include_flag(), str(include)])
    return args


def compile_args(
    tool_chain: ToolChain,
    source: Path,
    output: Path,
    opt_level: OptimizationLevel,
    flags: CompilerFlags,
    includes: Sequence[Path],
    binary_type: BinaryType = BinaryType.EXECUTABLE,
) -> List[str]:
    """Arguments (without the executable) to compile one source file.

    Order: leading args, input, output, banner, position-independent code
    (dynamic libraries only), optimization, warnings, suppressed warnings,
    custom flags, includes.
    """
    args = tool_chain.leading_args()
    args.extend([tool_chain.compiler_input_flag(), str(source)])
    args.extend(output_args(tool_chain.compiler_output_flag(), output, tool_chain))
    args.extend(tool_chain.banner_args())
    if binary_type == BinaryType.DYNAMIC_LIBRARY:
        args.extend(tool_chain.pic_args())
    args.extend(optimization_flags(tool_chain, opt_level))
    args.extend(warning_args(tool_chain, flags))
    args.extend(flags.custom)
    args.extend(include_args(tool_chain, includes))
    return args


def link_args(
    tool_chain: ToolChain,
    binary_type: BinaryType,
    output: Path,
    objects: Sequence[Path],
    flags: CompilerFlags,
    libs: Sequence[str],
    lib_paths: Sequence[Path],
) -> List[str]:
    """Arguments (without the executable) to link objects into an artifact.

    Order: leading args, output, objects, banner, shared flag, custom flags,
    link-only flags, library search paths, libraries.

    Raises:
        ConfigurationError: If libraries are requested from a toolchain
            without library flags (MSVC)
    """
    args = tool_chain.leading_args()
    args.extend(output_args(tool_chain.linker_output_flag(), output, tool_chain))
    args.extend(str(obj) for obj in objects)
    args.extend(tool_chain.banner_args())
    if binary_type == BinaryType.DYNAMIC_LIBRARY:
        args.append(tool_chain.shared_flag())
    args.extend(flags.custom)
    args.extend(flags.link)
    for lib_path in lib_paths:
        args.append(f"{tool_chain.library_path_flag()}{lib_path}")
    for lib in libs:
        args.append(f"{tool_chain.library_flag()}{lib}")
    return args
