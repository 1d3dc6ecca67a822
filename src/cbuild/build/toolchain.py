"""ToolChain Resolver.

This module maps an abstract toolchain identity onto the concrete binary
names and flag spellings used by the rest of the build.

Design:
    Toolchain families form a closed set (ToolChainKind). Every per-family
    decision lives in a single ToolChainFlags record in TOOLCHAIN_FLAGS, so
    adding a family means adding an enum member and a table entry. The
    Custom family carries its own compiler/linker names and otherwise uses
    GCC-style flag spellings.

    MSVC diverges structurally from the Unix-style families: its output
    flags are prefixes concatenated to the path (/Fo<path>, /OUT:<path>)
    rather than a flag followed by a separate value. Callers check
    ToolChain.output_is_prefix instead of assuming "flag, then value".
"""

import sys
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from .errors import ConfigurationError


class ToolChainKind(Enum):
    """Compiler family."""

    GCC = "Gcc"
    CLANG = "Clang"
    MSVC = "Msvc"
    ZIG = "Zig"
    CUSTOM = "Custom"

    def __str__(self) -> str:
        return self.value


class BinaryType(Enum):
    """Kind of artifact produced by the link step."""

    EXECUTABLE = "Executable"
    DYNAMIC_LIBRARY = "DynLib"
    STATIC_LIBRARY = "StaticLib"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def from_config(cls, value: Any) -> "BinaryType":
        """Parse the build-script spelling ("Executable", "DynLib", "StaticLib")."""
        if isinstance(value, BinaryType):
            return value
        for member in cls:
            if isinstance(value, str) and value.lower() in (member.value.lower(), member.name.lower()):
                return member
        raise ConfigurationError(f"unknown binary type: {value!r}")


class OptimizationLevel(Enum):
    """Optimization level requested for a target."""

    DEBUG = "Debug"
    RELEASE = "Release"
    O0 = "O0"
    O1 = "O1"
    O2 = "O2"
    O3 = "O3"
    OSIZE = "OSize"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def from_config(cls, value: Any) -> "OptimizationLevel":
        """Parse the build-script spelling ("Debug", "Release", "O0".."O3", "OSize")."""
        if isinstance(value, OptimizationLevel):
            return value
        for member in cls:
            if isinstance(value, str) and value.lower() == member.value.lower():
                return member
        raise ConfigurationError(f"unknown optimization level: {value!r}")


class WarningFlag(Enum):
    """Warning group that can be enabled or suppressed."""

    ERROR = "Error"
    PEDANTIC = "Pedantic"
    EXTRA = "Extra"
    ALL = "All"
    DEPRECATED_DECLARATIONS = "DeprecatedDeclarations"

    def to_string(self, tool_chain: "ToolChain") -> str:
        """Suffix appended after the toolchain's warning prefix.

        MSVC has no equivalent spelling, so it maps to an empty string and
        no argument is emitted for it.
        """
        if tool_chain.kind == ToolChainKind.MSVC:
            return ""
        return _WARNING_SUFFIXES[self]

    @classmethod
    def from_config(cls, value: Any) -> "WarningFlag":
        if isinstance(value, WarningFlag):
            return value
        for member in cls:
            if isinstance(value, str) and value.lower() == member.value.lower():
                return member
        raise ConfigurationError(f"unknown warning flag: {value!r}")


_WARNING_SUFFIXES: Dict[WarningFlag, str] = {
    WarningFlag.ERROR: "error",
    WarningFlag.PEDANTIC: "pedantic",
    WarningFlag.EXTRA: "extra",
    WarningFlag.ALL: "all",
    WarningFlag.DEPRECATED_DECLARATIONS: "deprecated-declarations",
}


class Os(Enum):
    """Host operating system family."""

    WINDOWS = "Windows"
    LINUX = "Linux"
    MACOS = "MacOs"
    UNIX_LIKE = "UnixLike"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def current(cls) -> "Os":
        """Detect the host operating system."""
        if sys.platform == "win32":
            return cls.WINDOWS
        if sys.platform.startswith("linux"):
            return cls.LINUX
        if sys.platform == "darwin":
            return cls.MACOS
        return cls.UNIX_LIKE


@dataclass(frozen=True)
class ToolChainFlags:
    """Per-family binary names and flag spellings.

    All fields are mandatory - no defaults except the leading/extra args.

    Attributes:
        obj_ext: Object file extension without the dot
        compiler: Compiler executable name ("" for Custom, which names its own)
        linkers: Linker/librarian executable per supported BinaryType
        input_flag: Flag introducing the source file ("-c" / "/c")
        output_flag: Compiler output flag ("-o" / "/Fo")
        include_flag: Include directory flag ("-I" / "/I")
        warning_flag: Prefix for an enabled warning ("-W" / "")
        no_warning_flag: Prefix for a suppressed warning ("-Wno-" / "")
        linker_output_flag: Linker output flag ("-o" / "/OUT:")
        library_flag: Library name flag ("-l"), None when unsupported
        library_path_flag: Library search directory flag ("-L"), None when unsupported
        output_is_prefix: Output flags are concatenated to the path (MSVC)
        shared_flag: Extra link flag for dynamic libraries
        pic_flag: Extra compile flag for objects of dynamic libraries ("" when not needed)
        leading_args: Tokens placed before any other argument ("cc" for Zig)
        banner_args: Tokens that silence the tool's banner ("/nologo")
    """

    obj_ext: str
    compiler: str
    linkers: Dict[BinaryType, str]
    input_flag: str
    output_flag: str
    include_flag: str
    warning_flag: str
    no_warning_flag: str
    linker_output_flag: str
    library_flag: Optional[str]
    library_path_flag: Optional[str]
    output_is_prefix: bool
    shared_flag: str
    pic_flag: str
    leading_args: tuple[str, ...] = field(default=())
    banner_args: tuple[str, ...] = field(default=())


def _unix_flags(compiler: str, linkers: Dict[BinaryType, str], leading_args: tuple[str, ...] = ()) -> ToolChainFlags:
    return ToolChainFlags(
        obj_ext="o",
        compiler=compiler,
        linkers=linkers,
        input_flag="-c",
        output_flag="-o",
        include_flag="-I",
        warning_flag="-W",
        no_warning_flag="-Wno-",
        linker_output_flag="-o",
        library_flag="-l",
        library_path_flag="-L",
        output_is_prefix=False,
        shared_flag="-shared",
        pic_flag="-fPIC",
        leading_args=leading_args,
    )


# Flag tables - keyed by ToolChainKind. Every kind must have an entry.
TOOLCHAIN_FLAGS: Dict[ToolChainKind, ToolChainFlags] = {
    ToolChainKind.GCC: _unix_flags(
        "gcc",
        {BinaryType.EXECUTABLE: "gcc", BinaryType.DYNAMIC_LIBRARY: "gcc"},
    ),
    ToolChainKind.CLANG: _unix_flags(
        "clang",
        {BinaryType.EXECUTABLE: "clang", BinaryType.DYNAMIC_LIBRARY: "clang"},
    ),
    ToolChainKind.ZIG: _unix_flags(
        "zig",
        {BinaryType.EXECUTABLE: "zig", BinaryType.DYNAMIC_LIBRARY: "zig"},
        leading_args=("cc",),
    ),
    ToolChainKind.MSVC: ToolChainFlags(
        obj_ext="obj",
        compiler="cl.exe",
        linkers={
            BinaryType.EXECUTABLE: "link.exe",
            BinaryType.DYNAMIC_LIBRARY: "link.exe",
            BinaryType.STATIC_LIBRARY: "lib.exe",
        },
        input_flag="/c",
        output_flag="/Fo",
        include_flag="/I",
        warning_flag="",
        no_warning_flag="",
        linker_output_flag="/OUT:",
        library_flag=None,
        library_path_flag=None,
        output_is_prefix=True,
        shared_flag="/DLL",
        pic_flag="",
        banner_args=("/nologo",),
    ),
    # Custom names its own binaries; the linker map is never consulted.
    ToolChainKind.CUSTOM: _unix_flags("", {}),
}


@dataclass(frozen=True)
class ToolChain:
    """A compiler family, optionally carrying custom compiler/linker names.

    Use the module constants (GCC, CLANG, MSVC, ZIG) or ToolChain.custom()
    rather than constructing directly.
    """

    kind: ToolChainKind
    custom_compiler: str = ""
    custom_linker: str = ""

    @classmethod
    def custom(cls, compiler: str, linker: str) -> "ToolChain":
        """Create a fully custom compiler/linker pair."""
        if not compiler or not linker:
            raise ConfigurationError("custom toolchain requires both a compiler and a linker")
        return cls(ToolChainKind.CUSTOM, compiler, linker)

    @classmethod
    def platform_default(cls) -> "ToolChain":
        """Default toolchain for the host."""
        host = Os.current()
        if host == Os.WINDOWS:
            return MSVC
        if host == Os.MACOS:
            return CLANG
        return GCC

    @classmethod
    def from_config(cls, value: Any) -> "ToolChain":
        """Parse the build-script spelling.

        Accepts a family name ("Gcc", "Clang", "Msvc", "Zig", any case) or a
        mapping {"compiler": ..., "linker": ...} for a custom pair.
        """
        if isinstance(value, ToolChain):
            return value
        if isinstance(value, dict):
            unknown = set(value) - {"compiler", "linker"}
            if unknown:
                raise ConfigurationError(f"unknown custom toolchain keys: {sorted(unknown)}")
            return cls.custom(str(value.get("compiler", "")), str(value.get("linker", "")))
        if isinstance(value, str):
            for kind in ToolChainKind:
                if kind != ToolChainKind.CUSTOM and value.lower() == kind.value.lower():
                    return cls(kind)
        raise ConfigurationError(f"unknown toolchain: {value!r}")

    def to_config(self) -> Any:
        if self.kind == ToolChainKind.CUSTOM:
            return {"compiler": self.custom_compiler, "linker": self.custom_linker}
        return self.kind.value

    @property
    def flags(self) -> ToolChainFlags:
        return TOOLCHAIN_FLAGS[self.kind]

    @property
    def is_msvc(self) -> bool:
        return self.kind == ToolChainKind.MSVC

    @property
    def output_is_prefix(self) -> bool:
        return self.flags.output_is_prefix

    def obj_file_ext(self) -> str:
        return self.flags.obj_ext

    def compiler(self) -> str:
        if self.kind == ToolChainKind.CUSTOM:
            return self.custom_compiler
        return self.flags.compiler

    def linker(self, binary_type: BinaryType) -> str:
        """Linker (or librarian) executable for the given binary type.

        Raises:
            ConfigurationError: If the family cannot produce this binary type
        """
        if self.kind == ToolChainKind.CUSTOM:
            return self.custom_linker
        linker = self.flags.linkers.get(binary_type)
        if linker is None:
            raise ConfigurationError(f"toolchain {self.kind} cannot produce a {binary_type} binary")
        return linker

    def leading_args(self) -> list[str]:
        return list(self.flags.leading_args)

    def banner_args(self) -> list[str]:
        return list(self.flags.banner_args)

    def compiler_input_flag(self) -> str:
        return self.flags.input_flag

    def compiler_output_flag(self) -> str:
        return self.flags.output_flag

    def compiler_include_flag(self) -> str:
        return self.flags.include_flag

    def compiler_warning_flag(self) -> str:
        return self.flags.warning_flag

    def compiler_no_warning_flag(self) -> str:
        return self.flags.no_warning_flag

    def linker_output_flag(self) -> str:
        return self.flags.linker_output_flag

    def shared_flag(self) -> str:
        return self.flags.shared_flag

    def pic_args(self) -> list[str]:
        """Compile arguments for objects linked into a dynamic library."""
        return [self.flags.pic_flag] if self.flags.pic_flag else []

    def library_flag(self) -> str:
        if self.flags.library_flag is None:
            raise ConfigurationError(f"linking named libraries is not implemented for {self.kind}")
        return self.flags.library_flag

    def library_path_flag(self) -> str:
        if self.flags.library_path_flag is None:
            raise ConfigurationError(f"library search paths are not implemented for {self.kind}")
        return self.flags.library_path_flag

    def __str__(self) -> str:
        if self.kind == ToolChainKind.CUSTOM:
            return f"Custom({self.custom_compiler}, {self.custom_linker})"
        return str(self.kind)


GCC = ToolChain(ToolChainKind.GCC)
CLANG = ToolChain(ToolChainKind.CLANG)
MSVC = ToolChain(ToolChainKind.MSVC)
ZIG = ToolChain(ToolChainKind.ZIG)
