"""
Build-info loader — bring conan's generated CMake variables into scope.

The ``cmake`` generator writes ``conanbuildinfo.cmake`` (or
``conanbuildinfo_multi.cmake`` under multi-configuration generators).
Loading it evaluates its ``set()`` commands and merges the result into
the build scope, where it stays after the call returns.
"""

from __future__ import annotations

import logging
from pathlib import Path

from cmake_conan.core.errors import ConanError, MissingArtifactError
from cmake_conan.core.models.scope import BuildScope
from cmake_conan.core.parsers.cmake import CMakeParseError, load_script

logger = logging.getLogger(__name__)

BUILDINFO = "conanbuildinfo.cmake"
BUILDINFO_MULTI = "conanbuildinfo_multi.cmake"


def buildinfo_path(scope: BuildScope, working_directory: str | Path | None = None) -> Path:
    """Where conan put the build-info file for this scope."""
    directory = Path(working_directory) if working_directory else scope.current_binary_dir
    name = BUILDINFO_MULTI if scope.is_true("CONAN_CMAKE_MULTI") else BUILDINFO
    return directory / name


def load_buildinfo(
    scope: BuildScope,
    working_directory: str | Path | None = None,
) -> dict[str, str]:
    """Evaluate the build-info file into ``scope``.

    Returns:
        The variables the file set.

    Raises:
        MissingArtifactError: the file does not exist.
        ConanError: the file could not be parsed.
    """
    path = buildinfo_path(scope, working_directory)
    if not path.is_file():
        raise MissingArtifactError(f"{path} doesn't exist")

    logger.info("Conan: Loading %s", path)
    try:
        result = load_script(path, scope.variables, scope.environment)
    except CMakeParseError as e:
        raise ConanError(f"Cannot load {path}: {e}") from e

    for name in result.unset:
        scope.unset(name)
    scope.update(result.variables)
    scope.environment.update(result.environment)
    logger.debug("Loaded %d variables from %s", len(result.variables), path.name)
    return dict(result.variables)
