"""
Tests for discovering CMake state from a configured build tree.
"""

from pathlib import Path

import pytest

from cmake_conan.core.errors import MissingArtifactError
from cmake_conan.core.config.cmake_state import (
    derive_platform_variables,
    discover,
    msvc_version,
    parse_cache,
    platform_dir,
)
from cmake_conan.core.models.scope import BuildScope

CACHE = """\
# This is the CMakeCache file.
# For build in directory: /work/build

//Choose the type of build
CMAKE_BUILD_TYPE:STRING=Release

//No help, variable specified on the command line.
CMAKE_CXX_FLAGS:STRING=-O2 -Wall
CMAKE_CXX_FLAGS-ADVANCED:INTERNAL=1
"WEIRD NAME":BOOL=ON
CMAKE_GENERATOR:INTERNAL=Unix Makefiles
CMAKE_HOME_DIRECTORY:INTERNAL={source}
EMPTY:STRING=
"""

SYSTEM = """\
set(CMAKE_HOST_SYSTEM_NAME "Linux")
set(CMAKE_SYSTEM_NAME "Linux")
set(CMAKE_SYSTEM_PROCESSOR "x86_64")
set(CMAKE_CROSSCOMPILING "FALSE")
set(CMAKE_SYSTEM_LOADED 1)
"""

CXX_COMPILER = """\
set(CMAKE_CXX_COMPILER "/usr/bin/c++")
set(CMAKE_CXX_COMPILER_ID "GNU")
set(CMAKE_CXX_COMPILER_VERSION "9.3.0")
set(CMAKE_CXX_STANDARD_COMPUTED_DEFAULT "14")
set(CMAKE_CXX_COMPILER_LOADED 1)
set(CMAKE_CXX_IGNORE_EXTENSIONS inl;h;hpp;HPP;H;o;O;obj;OBJ;def;DEF;rc;RC)
if(CMAKE_CXX_SIZEOF_DATA_PTR)
  set(CMAKE_SIZEOF_VOID_P "${CMAKE_CXX_SIZEOF_DATA_PTR}")
endif()
"""


def _configured_tree(root: Path, version: str = "3.16.3") -> Path:
    build = root / "build"
    files = build / "CMakeFiles" / version
    files.mkdir(parents=True)
    (build / "CMakeCache.txt").write_text(CACHE.format(source=root), encoding="utf-8")
    (files / "CMakeSystem.cmake").write_text(SYSTEM, encoding="utf-8")
    (files / "CMakeCXXCompiler.cmake").write_text(CXX_COMPILER, encoding="utf-8")
    return build


# ── Cache ────────────────────────────────────────────────────────────


class TestParseCache:
    def test_entries(self):
        entries = parse_cache(CACHE.format(source="/work"))
        assert entries["CMAKE_BUILD_TYPE"] == "Release"
        assert entries["CMAKE_CXX_FLAGS"] == "-O2 -Wall"
        assert entries["CMAKE_GENERATOR"] == "Unix Makefiles"
        assert entries["WEIRD NAME"] == "ON"
        assert entries["EMPTY"] == ""

    def test_properties_and_comments_are_skipped(self):
        entries = parse_cache(CACHE.format(source="/work"))
        assert "CMAKE_CXX_FLAGS-ADVANCED" not in entries
        assert not any(name.startswith(("#", "//")) for name in entries)

    def test_untyped_entry(self):
        assert parse_cache("NAME=value\n") == {"NAME": "value"}


class TestMsvcVersion:
    @pytest.mark.parametrize(
        "compiler_version, expected",
        [("19.16.27045.0", "1916"), ("19.0.24215.1", "1900"), ("18.00.40629", "1800")],
    )
    def test_conversion(self, compiler_version, expected):
        assert msvc_version(compiler_version) == expected

    @pytest.mark.parametrize("compiler_version", ["", "19", "x.y"])
    def test_invalid(self, compiler_version):
        assert msvc_version(compiler_version) is None


# ── Discovery ────────────────────────────────────────────────────────


class TestDiscover:
    def test_configured_tree(self, tmp_path):
        build = _configured_tree(tmp_path)
        scope = discover(build)
        assert scope.get("CMAKE_BINARY_DIR") == str(build.resolve())
        assert scope.get("CMAKE_SOURCE_DIR") == str(tmp_path)
        assert scope.get("CMAKE_SYSTEM_NAME") == "Linux"
        assert scope.get("CMAKE_CXX_COMPILER_ID") == "GNU"
        assert scope.get("CMAKE_CXX_COMPILER_VERSION") == "9.3.0"
        assert scope.enabled_languages == ["CXX"]
        assert not scope.is_defined("CMAKE_SIZEOF_VOID_P")

    def test_newest_version_directory_wins(self, tmp_path):
        build = _configured_tree(tmp_path, "3.9.0")
        newer = build / "CMakeFiles" / "3.16.3"
        newer.mkdir()
        (newer / "CMakeSystem.cmake").write_text('set(CMAKE_SYSTEM_NAME "Darwin")\n')
        (build / "CMakeFiles" / "CMakeTmp").mkdir()
        assert platform_dir(build) == newer
        assert discover(build).is_true("APPLE")

    def test_no_cache_is_fatal(self, tmp_path):
        with pytest.raises(MissingArtifactError, match="CMakeCache.txt"):
            discover(tmp_path)

    def test_cache_only(self, tmp_path):
        (tmp_path / "CMakeCache.txt").write_text("CMAKE_BUILD_TYPE:STRING=Debug\n")
        scope = discover(tmp_path)
        assert scope.build_type == "Debug"
        assert scope.enabled_languages == []


class TestDerivePlatformVariables:
    def test_msvc(self):
        scope = BuildScope(
            variables={"CMAKE_CXX_COMPILER_ID": "MSVC", "CMAKE_CXX_COMPILER_VERSION": "19.16.27045.0"}
        )
        derive_platform_variables(scope)
        assert scope.is_true("MSVC")
        assert scope.get("MSVC_VERSION") == "1916"

    def test_explicit_msvc_version_is_kept(self):
        scope = BuildScope(
            variables={
                "CMAKE_C_COMPILER_ID": "MSVC",
                "CMAKE_C_COMPILER_VERSION": "19.16.27045.0",
                "MSVC_VERSION": "1915",
            }
        )
        derive_platform_variables(scope)
        assert scope.get("MSVC_VERSION") == "1915"

    def test_ios_is_apple(self):
        scope = BuildScope(variables={"CMAKE_SYSTEM_NAME": "iOS"})
        derive_platform_variables(scope)
        assert scope.get("APPLE") == "ON"

    def test_linux_gcc_untouched(self):
        scope = BuildScope(variables={"CMAKE_SYSTEM_NAME": "Linux", "CMAKE_CXX_COMPILER_ID": "GNU"})
        derive_platform_variables(scope)
        assert not scope.is_defined("MSVC")
        assert not scope.is_defined("APPLE")
