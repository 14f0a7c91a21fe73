"""
Tests for settings detection — compiler, runtime, libcxx and profiles.
"""

import pytest

from cmake_conan.core.errors import UnsupportedEnvironmentError
from cmake_conan.core.models.scope import BuildScope
from cmake_conan.core.services.detection import (
    detect_compiler,
    detect_gnu_libcxx,
    detect_os,
    detect_settings,
    detect_vs_runtime,
    msvc_ide_version,
    select_profile,
)


def _scope(**variables) -> BuildScope:
    return BuildScope(variables=variables, enabled_languages=["C", "CXX"])


def _gnu(version: str) -> BuildScope:
    return _scope(CMAKE_CXX_COMPILER_ID="GNU", CMAKE_CXX_COMPILER_VERSION=version)


def _msvc(**variables) -> BuildScope:
    defaults = {
        "CMAKE_SYSTEM_NAME": "Windows",
        "CMAKE_CXX_COMPILER_ID": "MSVC",
        "CMAKE_CXX_COMPILER_VERSION": "19.16.27045.0",
        "MSVC_VERSION": "1916",
        "MSVC_CXX_ARCHITECTURE_ID": "x64",
        "CMAKE_BUILD_TYPE": "Release",
    }
    defaults.update(variables)
    return _scope(**defaults)


# ── Visual Studio versions ───────────────────────────────────────────


class TestMsvcIdeVersion:
    @pytest.mark.parametrize(
        "msvc_version, ide",
        [("1400", "8"), ("1500", "9"), ("1600", "10"), ("1700", "11"),
         ("1800", "12"), ("1900", "14"), ("1910", "15"), ("1916", "15")],
    )
    def test_known_ranges(self, msvc_version, ide):
        assert msvc_ide_version(msvc_version) == ide

    @pytest.mark.parametrize("msvc_version", ["1920", "1399", "", "abc"])
    def test_unknown_is_fatal(self, msvc_version):
        with pytest.raises(UnsupportedEnvironmentError):
            msvc_ide_version(msvc_version)


# ── Compilers ────────────────────────────────────────────────────────


class TestGnu:
    def test_gcc_5_keeps_minor(self):
        detected = detect_compiler(_gnu("5.4.0"), "CXX")
        assert detected["compiler"] == "gcc"
        assert detected["compiler.version"] == "5.4"

    def test_gcc_6_major_only(self):
        detected = detect_compiler(_gnu("6.3.0"), "CXX")
        assert detected["compiler.version"] == "6"

    def test_gcc_4_keeps_minor(self):
        detected = detect_compiler(_gnu("4.9.2"), "CXX")
        assert detected["compiler.version"] == "4.9"
        assert detected["compiler.libcxx"] == "libstdc++"

    def test_c_only_has_no_libcxx(self):
        scope = _scope(CMAKE_C_COMPILER_ID="GNU", CMAKE_C_COMPILER_VERSION="9.3.0")
        detected = detect_compiler(scope, "C")
        assert "compiler.libcxx" not in detected


class TestClang:
    def test_apple_clang(self):
        detected = detect_compiler(
            _scope(CMAKE_CXX_COMPILER_ID="AppleClang", CMAKE_CXX_COMPILER_VERSION="11.0.0"), "CXX"
        )
        assert detected == {
            "compiler": "apple-clang",
            "compiler.version": "11.0",
            "compiler.libcxx": "libc++",
        }

    def test_clang_on_apple_without_policy_is_apple_clang(self):
        scope = _scope(CMAKE_CXX_COMPILER_ID="Clang", CMAKE_CXX_COMPILER_VERSION="10.0.1", APPLE="1")
        assert detect_compiler(scope, "CXX")["compiler"] == "apple-clang"

    def test_clang_on_apple_with_policy(self):
        scope = _scope(
            CMAKE_CXX_COMPILER_ID="Clang",
            CMAKE_CXX_COMPILER_VERSION="10.0.1",
            APPLE="1",
            CMAKE_POLICY_CMP0025="NEW",
        )
        detected = detect_compiler(scope, "CXX")
        assert detected["compiler"] == "clang"
        assert detected["compiler.version"] == "10.0"

    def test_clang_8_major_only(self):
        scope = _scope(CMAKE_CXX_COMPILER_ID="Clang", CMAKE_CXX_COMPILER_VERSION="8.0.1")
        assert detect_compiler(scope, "CXX")["compiler.version"] == "8"

    def test_clang_7_keeps_minor(self):
        scope = _scope(CMAKE_CXX_COMPILER_ID="Clang", CMAKE_CXX_COMPILER_VERSION="7.1.0")
        detected = detect_compiler(scope, "CXX")
        assert detected["compiler.version"] == "7.1"
        assert detected["compiler.libcxx"] == "libstdc++11"


class TestMsvc:
    def test_visual_studio_2017(self):
        detected = detect_compiler(_msvc(), "CXX")
        assert detected["compiler"] == "Visual Studio"
        assert detected["compiler.version"] == "15"
        assert detected["arch"] == "x86_64"
        assert detected["compiler.runtime"] == "MD"
        assert "compiler.toolset" not in detected

    def test_explicit_arch_wins(self):
        assert detect_compiler(_msvc(), "CXX", arch="x86")["arch"] == "x86"

    @pytest.mark.parametrize("arch_id, arch", [("X86", "x86"), ("x64", "x86_64"), ("ARMV7", "armv6")])
    def test_architecture_ids(self, arch_id, arch):
        assert detect_compiler(_msvc(MSVC_CXX_ARCHITECTURE_ID=arch_id), "CXX")["arch"] == arch

    def test_unknown_architecture_is_fatal(self):
        with pytest.raises(UnsupportedEnvironmentError):
            detect_compiler(_msvc(MSVC_CXX_ARCHITECTURE_ID="Itanium"), "CXX")

    def test_toolset_with_generator_toolset(self):
        scope = _msvc(CMAKE_GENERATOR_TOOLSET="v140", CMAKE_VS_PLATFORM_TOOLSET="v140")
        assert detect_compiler(scope, "CXX")["compiler.toolset"] == "v140"

    def test_toolset_with_ninja(self):
        scope = _msvc(CMAKE_GENERATOR="Ninja", CMAKE_VS_PLATFORM_TOOLSET="v141")
        assert detect_compiler(scope, "CXX")["compiler.toolset"] == "v141"

    def test_unknown_compiler_is_fatal(self):
        with pytest.raises(UnsupportedEnvironmentError, match="Intel"):
            detect_compiler(_scope(CMAKE_CXX_COMPILER_ID="Intel"), "CXX")


# ── Runtime and libcxx ───────────────────────────────────────────────


class TestVsRuntime:
    def test_default_release(self):
        assert detect_vs_runtime(_scope(CMAKE_BUILD_TYPE="Release")) == "MD"

    def test_default_debug(self):
        assert detect_vs_runtime(_scope(CMAKE_BUILD_TYPE="Debug")) == "MDd"

    def test_per_config_flags_win(self):
        scope = _scope(
            CMAKE_BUILD_TYPE="Debug",
            CMAKE_CXX_FLAGS_DEBUG="/Zi /MTd /Od",
            CMAKE_CXX_FLAGS="/MD",
        )
        assert detect_vs_runtime(scope) == "MTd"

    def test_generic_flags(self):
        scope = _scope(CMAKE_BUILD_TYPE="Release", CMAKE_C_FLAGS="/W3 /MT")
        assert detect_vs_runtime(scope) == "MT"


class TestGnuLibcxx:
    def test_explicit_variable(self):
        assert detect_gnu_libcxx(_scope(_GLIBCXX_USE_CXX11_ABI="0")) == "libstdc++"
        assert detect_gnu_libcxx(_scope(_GLIBCXX_USE_CXX11_ABI="1")) == "libstdc++11"

    def test_compile_definition(self):
        scope = _scope(CMAKE_CXX_COMPILER_VERSION="9.3.0")
        scope.compile_definitions.append("_GLIBCXX_USE_CXX11_ABI=0")
        assert detect_gnu_libcxx(scope) == "libstdc++"

    def test_old_compiler(self):
        assert detect_gnu_libcxx(_scope(CMAKE_CXX_COMPILER_VERSION="5.0.9")) == "libstdc++"

    def test_new_compiler(self):
        assert detect_gnu_libcxx(_scope(CMAKE_CXX_COMPILER_VERSION="5.1")) == "libstdc++11"


# ── OS and profiles ──────────────────────────────────────────────────


class TestOs:
    def test_darwin_is_macos(self):
        assert detect_os(_scope(CMAKE_SYSTEM_NAME="Darwin")) == "Macos"

    def test_unset_is_none(self):
        assert detect_os(_scope()) is None

    def test_unsupported_is_fatal(self):
        with pytest.raises(UnsupportedEnvironmentError, match="Haiku"):
            detect_os(_scope(CMAKE_SYSTEM_NAME="Haiku"))


class TestSelectProfile:
    def test_build_type_profile(self):
        profiles = {"DEBUG_PROFILE": "dbg", "PROFILE": "base"}
        assert select_profile("Debug", profiles) == "dbg"

    def test_fallback(self):
        assert select_profile("Release", {"DEBUG_PROFILE": "dbg", "PROFILE": "base"}) == "base"

    def test_none(self):
        assert select_profile("Release", {}) is None


# ── Full detection ───────────────────────────────────────────────────


class TestDetectSettings:
    def test_gcc_linux(self, scope):
        scope.set("CONAN_GENERATORS", "cmake")
        result = detect_settings(scope)
        assert result.settings == [
            "build_type=Release",
            "compiler=gcc",
            "compiler.version=9",
            "compiler.libcxx=libstdc++11",
        ]
        assert result.detected["os"] == "Linux"
        assert result.to_tokens() == [
            "SETTINGS",
            "build_type=Release",
            "compiler=gcc",
            "compiler.version=9",
            "compiler.libcxx=libstdc++11",
            "GENERATOR",
            "cmake",
        ]

    def test_profile_auto_subset(self, scope):
        result = detect_settings(scope, "PROFILE_AUTO", "compiler", "build_type")
        assert result.settings == ["compiler=gcc", "build_type=Release"]

    def test_profile_auto_all(self, scope):
        assert detect_settings(scope, "PROFILE_AUTO", "ALL").settings == detect_settings(scope).settings

    def test_explicit_settings_follow_detected(self, scope):
        result = detect_settings(scope, "ARCH", "armv8", "SETTINGS", "os=Linux")
        assert result.settings[0] == "arch=armv8"
        assert result.settings[-1] == "os=Linux"

    def test_profile_and_unparsed(self, scope):
        result = detect_settings(scope, "RELEASE_PROFILE", "rel", "BUILD", "missing")
        assert result.profile == "rel"
        assert result.unparsed == ["BUILD", "missing"]
        assert result.to_tokens()[:4] == ["BUILD", "missing", "PROFILE", "rel"]

    def test_keywords(self, scope):
        result = detect_settings(scope, profile="base", settings=["os=Linux"])
        assert result.profile == "base"
        assert "os=Linux" in result.settings

    def test_no_language_is_fatal(self, scope):
        scope.enabled_languages.clear()
        with pytest.raises(UnsupportedEnvironmentError):
            detect_settings(scope)

    def test_c_only_project(self):
        scope = BuildScope(
            variables={"CMAKE_C_COMPILER_ID": "GNU", "CMAKE_C_COMPILER_VERSION": "7.5.0"},
            enabled_languages=["C"],
        )
        result = detect_settings(scope)
        assert result.settings == ["compiler=gcc", "compiler.version=7"]
