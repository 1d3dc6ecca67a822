"""Tests for toolchain resolution."""

from unittest.mock import patch

import pytest

from cbuild.build.errors import ConfigurationError
from cbuild.build.toolchain import (
    CLANG,
    GCC,
    MSVC,
    TOOLCHAIN_FLAGS,
    ZIG,
    BinaryType,
    OptimizationLevel,
    Os,
    ToolChain,
    ToolChainKind,
    WarningFlag,
)


class TestFlagTables:
    def test_every_kind_has_an_entry(self):
        for kind in ToolChainKind:
            assert kind in TOOLCHAIN_FLAGS

    def test_unix_families_share_spellings(self):
        for tc in (GCC, CLANG, ZIG):
            assert tc.obj_file_ext() == "o"
            assert tc.compiler_input_flag() == "-c"
            assert tc.compiler_output_flag() == "-o"
            assert tc.compiler_include_flag() == "-I"
            assert tc.compiler_warning_flag() == "-W"
            assert tc.compiler_no_warning_flag() == "-Wno-"
            assert tc.linker_output_flag() == "-o"
            assert not tc.output_is_prefix

    def test_msvc_spellings(self):
        assert MSVC.obj_file_ext() == "obj"
        assert MSVC.compiler() == "cl.exe"
        assert MSVC.compiler_input_flag() == "/c"
        assert MSVC.compiler_output_flag() == "/Fo"
        assert MSVC.compiler_include_flag() == "/I"
        assert MSVC.linker_output_flag() == "/OUT:"
        assert MSVC.banner_args() == ["/nologo"]
        assert MSVC.output_is_prefix

    def test_zig_leads_with_cc(self):
        assert ZIG.compiler() == "zig"
        assert ZIG.leading_args() == ["cc"]
        assert GCC.leading_args() == []

    def test_position_independent_code(self):
        for tc in (GCC, CLANG, ZIG, ToolChain.custom("tcc", "tcc")):
            assert tc.pic_args() == ["-fPIC"]
        assert MSVC.pic_args() == []


class TestLinkerSelection:
    @pytest.mark.parametrize("tc,name", [(GCC, "gcc"), (CLANG, "clang"), (ZIG, "zig")])
    def test_unix_executable_and_shared(self, tc, name):
        assert tc.linker(BinaryType.EXECUTABLE) == name
        assert tc.linker(BinaryType.DYNAMIC_LIBRARY) == name

    @pytest.mark.parametrize("tc", [GCC, CLANG, ZIG])
    def test_unix_static_library_is_rejected(self, tc):
        with pytest.raises(ConfigurationError):
            tc.linker(BinaryType.STATIC_LIBRARY)

    def test_msvc_uses_librarian_for_static_libraries(self):
        assert MSVC.linker(BinaryType.EXECUTABLE) == "link.exe"
        assert MSVC.linker(BinaryType.DYNAMIC_LIBRARY) == "link.exe"
        assert MSVC.linker(BinaryType.STATIC_LIBRARY) == "lib.exe"

    def test_custom_names_its_own_binaries(self):
        tc = ToolChain.custom("my-cc", "my-ld")
        assert tc.compiler() == "my-cc"
        for binary_type in BinaryType:
            assert tc.linker(binary_type) == "my-ld"
        assert tc.compiler_output_flag() == "-o"

    def test_custom_requires_both_names(self):
        with pytest.raises(ConfigurationError):
            ToolChain.custom("my-cc", "")


class TestLibraryFlags:
    def test_unix_library_flags(self):
        assert GCC.library_flag() == "-l"
        assert GCC.library_path_flag() == "-L"

    def test_msvc_library_flags_unsupported(self):
        with pytest.raises(ConfigurationError):
            MSVC.library_flag()
        with pytest.raises(ConfigurationError):
            MSVC.library_path_flag()


class TestWarningFlag:
    def test_unix_suffixes(self):
        assert WarningFlag.ERROR.to_string(GCC) == "error"
        assert WarningFlag.DEPRECATED_DECLARATIONS.to_string(CLANG) == "deprecated-declarations"

    def test_msvc_has_no_spelling(self):
        for warning in WarningFlag:
            assert warning.to_string(MSVC) == ""

    def test_from_config(self):
        assert WarningFlag.from_config("Pedantic") == WarningFlag.PEDANTIC
        assert WarningFlag.from_config("all") == WarningFlag.ALL
        with pytest.raises(ConfigurationError):
            WarningFlag.from_config("Everything")


class TestConfigParsing:
    @pytest.mark.parametrize("value,expected", [("Gcc", GCC), ("clang", CLANG), ("MSVC", MSVC), ("Zig", ZIG)])
    def test_family_names(self, value, expected):
        assert ToolChain.from_config(value) == expected

    def test_custom_mapping(self):
        tc = ToolChain.from_config({"compiler": "tcc", "linker": "tcc"})
        assert tc.kind == ToolChainKind.CUSTOM
        assert tc.to_config() == {"compiler": "tcc", "linker": "tcc"}

    def test_unknown_name(self):
        with pytest.raises(ConfigurationError):
            ToolChain.from_config("Borland")

    def test_custom_is_not_a_bare_name(self):
        with pytest.raises(ConfigurationError):
            ToolChain.from_config("Custom")

    def test_binary_type_spellings(self):
        assert BinaryType.from_config("Executable") == BinaryType.EXECUTABLE
        assert BinaryType.from_config("DynLib") == BinaryType.DYNAMIC_LIBRARY
        assert BinaryType.from_config("StaticLib") == BinaryType.STATIC_LIBRARY
        assert BinaryType.from_config("static_library") == BinaryType.STATIC_LIBRARY
        with pytest.raises(ConfigurationError):
            BinaryType.from_config("Firmware")

    def test_opt_level_spellings(self):
        assert OptimizationLevel.from_config("Release") == OptimizationLevel.RELEASE
        assert OptimizationLevel.from_config("osize") == OptimizationLevel.OSIZE
        with pytest.raises(ConfigurationError):
            OptimizationLevel.from_config("O4")


class TestPlatformDefault:
    @pytest.mark.parametrize(
        "platform,expected",
        [("win32", MSVC), ("darwin", CLANG), ("linux", GCC), ("freebsd13", GCC)],
    )
    def test_default_per_host(self, platform, expected):
        with patch("sys.platform", platform):
            assert ToolChain.platform_default() == expected

    def test_os_detection(self):
        with patch("sys.platform", "linux"):
            assert Os.current() == Os.LINUX
        with patch("sys.platform", "freebsd13"):
            assert Os.current() == Os.UNIX_LIKE
