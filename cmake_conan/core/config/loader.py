"""
Configuration loader — reads conan-cmake.yml and builds the scope.

The config file is optional: without one every setting has a default
and the build scope comes from the command line alone.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path

import yaml
from pydantic import ValidationError

from cmake_conan.core.config.cmake_state import derive_platform_variables, discover
from cmake_conan.core.errors import ConfigError
from cmake_conan.core.models.project import ProjectConfig
from cmake_conan.core.models.scope import BuildScope

logger = logging.getLogger(__name__)

CONFIG_FILE = "conan-cmake.yml"


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Search for conan-cmake.yml from ``start_dir`` (default: cwd) upward."""
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break
        current = parent

    return None


def load_config(path: Path | None = None, required: bool = False) -> ProjectConfig:
    """Load and validate the project configuration.

    Args:
        path: Explicit config path. If None, searches upward from cwd.
        required: Fail instead of returning defaults when no file exists.

    Raises:
        ConfigError: If the file is missing (and required) or invalid.
    """
    if path is None:
        path = find_config_file()
        if path is None:
            if required:
                raise ConfigError(f"No {CONFIG_FILE} found. Specify one with --config.")
            logger.debug("No %s found; using defaults", CONFIG_FILE)
            return ProjectConfig()

    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    try:
        return ProjectConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {path}: {e}") from e


def build_scope(
    config: ProjectConfig,
    base_dir: Path | None = None,
    build_dir: str | Path | None = None,
    overrides: Mapping[str, str] | None = None,
) -> BuildScope:
    """Assemble the build scope a command runs against.

    Layers, later ones winning: state discovered from
    ``cmake_build_dir``, the binary and source directories, the
    config's ``variables``, then ``overrides`` (``-D`` on the CLI).
    Relative paths are resolved against ``base_dir``.
    """
    base = (base_dir or Path.cwd()).resolve()
    binary_dir = (base / (build_dir or config.build_dir)).resolve()

    if config.cmake_build_dir:
        scope = discover(base / config.cmake_build_dir)
    else:
        scope = BuildScope()

    if build_dir or not scope.is_defined("CMAKE_BINARY_DIR"):
        scope.set("CMAKE_BINARY_DIR", str(binary_dir))
        scope.set("CMAKE_CURRENT_BINARY_DIR", str(binary_dir))
    if not scope.is_defined("CMAKE_SOURCE_DIR"):
        source_dir = (base / config.source_dir).resolve()
        scope.set("CMAKE_SOURCE_DIR", str(source_dir))
        scope.set("CMAKE_CURRENT_SOURCE_DIR", str(source_dir))

    scope.update(config.variables)
    if overrides:
        scope.update(overrides)

    for definition in config.compile_definitions:
        if definition not in scope.compile_definitions:
            scope.compile_definitions.append(definition)
    for language in config.enabled_languages:
        if language not in scope.enabled_languages:
            scope.enabled_languages.append(language)

    derive_platform_variables(scope)
    return scope
