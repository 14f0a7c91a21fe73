"""
CMake state discovery — rebuild a BuildScope from a configured build tree.

A build directory CMake has configured carries everything the settings
detection needs:

    CMakeCache.txt                              cache entries
    CMakeFiles/<ver>/CMakeSystem.cmake          target system name
    CMakeFiles/<ver>/CMakeCCompiler.cmake       C compiler id and version
    CMakeFiles/<ver>/CMakeCXXCompiler.cmake     C++ compiler id and version

Variables CMake computes at configure time rather than storing
(``MSVC_VERSION``, ``APPLE``) are derived from the files above.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from cmake_conan.core.errors import ConanError, MissingArtifactError
from cmake_conan.core.models.scope import BuildScope
from cmake_conan.core.parsers.cmake import CMakeParseError, load_script

logger = logging.getLogger(__name__)

CACHE_FILE = "CMakeCache.txt"
LANGUAGES = ("C", "CXX")

# NAME:TYPE=VALUE, NAME may be quoted; TYPE is optional
_CACHE_ENTRY_RE = re.compile(
    r'^(?:"(?P<quoted>[^"]+)"|(?P<name>[^:=]+))(?::(?P<type>[^=]*))?=(?P<value>.*)$'
)

# Entry properties stored next to the entry itself (FOO-ADVANCED, FOO-STRINGS ...)
_PROPERTY_SUFFIXES = ("-ADVANCED", "-STRINGS", "-MODIFIED")


def parse_cache(text: str) -> dict[str, str]:
    """Parse CMakeCache.txt content into ``{name: value}``."""
    entries: dict[str, str] = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith(("#", "//")):
            continue
        match = _CACHE_ENTRY_RE.match(line)
        if not match:
            logger.debug("Ignoring cache line: %s", line)
            continue
        name = match.group("quoted") or match.group("name").strip()
        if name.endswith(_PROPERTY_SUFFIXES):
            continue
        entries[name] = match.group("value")
    return entries


def _version_key(path: Path) -> tuple[int, ...]:
    return tuple(int(p) for p in re.findall(r"\d+", path.name))


def platform_dir(build_dir: Path) -> Path | None:
    """The newest ``CMakeFiles/<version>`` directory, if any."""
    cmake_files = build_dir / "CMakeFiles"
    if not cmake_files.is_dir():
        return None
    candidates = [
        p for p in cmake_files.iterdir() if p.is_dir() and (p / "CMakeSystem.cmake").is_file()
    ]
    if not candidates:
        return None
    return max(candidates, key=_version_key)


def msvc_version(compiler_version: str) -> str | None:
    """``19.16.27045.0`` → ``1916`` (the value of ``MSVC_VERSION``)."""
    parts = compiler_version.split(".")
    if len(parts) < 2 or not parts[0].isdigit() or not parts[1].isdigit():
        return None
    return f"{int(parts[0])}{int(parts[1]):02d}"


def _load(path: Path, variables: dict[str, str]) -> dict[str, str]:
    try:
        return load_script(path, variables).variables
    except CMakeParseError as e:
        raise ConanError(f"Cannot read {path}: {e}") from e


def discover(build_dir: str | Path) -> BuildScope:
    """Build a scope from a configured CMake build directory.

    Raises:
        MissingArtifactError: no CMakeCache.txt in ``build_dir``.
    """
    build_dir = Path(build_dir).resolve()
    cache = build_dir / CACHE_FILE
    if not cache.is_file():
        raise MissingArtifactError(f"{cache} doesn't exist; configure the project with cmake first")

    scope = BuildScope()
    scope.update(parse_cache(cache.read_text(encoding="utf-8", errors="replace")))
    logger.debug("Read %d cache entries from %s", len(scope.variables), cache)

    scope.set("CMAKE_BINARY_DIR", str(build_dir))
    scope.set("CMAKE_CURRENT_BINARY_DIR", str(build_dir))
    source_dir = scope.get("CMAKE_HOME_DIRECTORY")
    if source_dir:
        scope.set("CMAKE_SOURCE_DIR", source_dir)
        scope.set("CMAKE_CURRENT_SOURCE_DIR", source_dir)

    files_dir = platform_dir(build_dir)
    if files_dir is None:
        logger.warning("No CMakeFiles/<version> directory in %s; compiler unknown", build_dir)
        return scope

    scope.update(_load(files_dir / "CMakeSystem.cmake", scope.variables))
    for language in LANGUAGES:
        compiler_file = files_dir / f"CMake{language}Compiler.cmake"
        if not compiler_file.is_file():
            continue
        scope.update(_load(compiler_file, scope.variables))
        scope.enabled_languages.append(language)

    derive_platform_variables(scope)
    return scope


def derive_platform_variables(scope: BuildScope) -> None:
    """Fill in ``MSVC``, ``MSVC_VERSION`` and ``APPLE`` the way CMake would."""
    for language in reversed(LANGUAGES):
        if scope.get(f"CMAKE_{language}_COMPILER_ID") != "MSVC":
            continue
        version = msvc_version(scope.get(f"CMAKE_{language}_COMPILER_VERSION"))
        scope.set("MSVC", True)
        if version and not scope.is_defined("MSVC_VERSION"):
            scope.set("MSVC_VERSION", version)
        break

    if scope.get("CMAKE_SYSTEM_NAME") in ("Darwin", "iOS") and not scope.is_defined("APPLE"):
        scope.set("APPLE", True)
