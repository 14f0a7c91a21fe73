"""
Session use case — load configuration and wire up a conan client.

Every CLI command starts here: find and load conan-cmake.yml, assemble
the build scope, and build a ``ConanClient`` on top of an adapter
registry (real, dry-run or mock).
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from pathlib import Path

from cmake_conan.adapters.conan import ConanAdapter
from cmake_conan.adapters.mock import MockAdapter
from cmake_conan.adapters.registry import AdapterRegistry
from cmake_conan.core.config.loader import build_scope, find_config_file, load_config
from cmake_conan.core.models.project import ProjectConfig
from cmake_conan.core.models.scope import BuildScope
from cmake_conan.core.services.client import CheckResult, ConanClient

logger = logging.getLogger(__name__)


@dataclass
class Session:
    """A loaded configuration and the client that acts on it."""

    config: ProjectConfig
    scope: BuildScope
    client: ConanClient
    config_path: Path | None = None

    @property
    def root(self) -> Path:
        return self.config_path.parent if self.config_path else Path.cwd()

    def check(self, **overrides) -> CheckResult:
        """Run the availability check with config defaults."""
        tool = self.config.conan
        options = {
            "required": tool.required,
            "version": tool.version,
            "generators": tool.generators,
            "hints": tool.hints,
        }
        options.update({k: v for k, v in overrides.items() if v is not None})
        return self.client.check(**options)


def parse_defines(defines: tuple[str, ...] | list[str]) -> dict[str, str]:
    """``("A=1", "B")`` → ``{"A": "1", "B": "ON"}``."""
    values: dict[str, str] = {}
    for define in defines:
        name, sep, value = define.partition("=")
        name = name.split(":", 1)[0].strip()
        if not name:
            raise ValueError(f"Invalid definition: {define!r}")
        values[name] = value if sep else "ON"
    return values


def open_session(
    config_path: Path | None = None,
    build_dir: str | None = None,
    defines: Mapping[str, str] | None = None,
    dry_run: bool = False,
    mock_mode: bool = False,
    registry: AdapterRegistry | None = None,
    echo: Callable[[str], None] | None = None,
) -> Session:
    """Load config, build the scope and create a client.

    Raises:
        ConfigError: the config file is invalid.
        MissingArtifactError: ``cmake_build_dir`` has no CMake cache.
    """
    if config_path is None:
        config_path = find_config_file()
    config = load_config(config_path)
    base_dir = config_path.parent if config_path else None
    scope = build_scope(config, base_dir=base_dir, build_dir=build_dir, overrides=defines)

    if registry is None:
        registry = AdapterRegistry()
        registry.register(ConanAdapter())
        if mock_mode:
            registry.set_mock_mode(True, MockAdapter(adapter_name="conan"))

    client = ConanClient(
        scope,
        registry=registry,
        executable=config.conan.executable,
        echo=echo,
        dry_run=dry_run,
    )
    logger.debug("Session ready (binary dir %s)", scope.current_binary_dir)
    return Session(config=config, scope=scope, client=client, config_path=config_path)
