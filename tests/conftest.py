"""
Shared test fixtures and configuration.
"""

from pathlib import Path

import pytest

from cmake_conan.adapters.mock import MockAdapter
from cmake_conan.adapters.registry import AdapterRegistry
from cmake_conan.core.models.scope import BuildScope
from cmake_conan.core.services.client import ConanClient


@pytest.fixture
def mock_conan() -> MockAdapter:
    """A mock standing in for the conan executable."""
    return MockAdapter(adapter_name="conan")


@pytest.fixture
def registry(mock_conan: MockAdapter) -> AdapterRegistry:
    registry = AdapterRegistry()
    registry.set_mock_mode(True, mock_conan)
    return registry


@pytest.fixture
def scope(tmp_path: Path) -> BuildScope:
    """A single-configuration GCC build rooted in tmp_path."""
    build = tmp_path / "build"
    build.mkdir()
    return BuildScope(
        variables={
            "CMAKE_BINARY_DIR": str(build),
            "CMAKE_CURRENT_BINARY_DIR": str(build),
            "CMAKE_SOURCE_DIR": str(tmp_path),
            "CMAKE_SYSTEM_NAME": "Linux",
            "CMAKE_BUILD_TYPE": "Release",
            "CMAKE_CXX_COMPILER_ID": "GNU",
            "CMAKE_CXX_COMPILER_VERSION": "9.3.0",
            "CMAKE_SIZEOF_VOID_P": "8",
        },
        enabled_languages=["C", "CXX"],
    )


@pytest.fixture
def echoed() -> list[str]:
    """Lines the client echoed."""
    return []


@pytest.fixture
def client(scope: BuildScope, registry: AdapterRegistry, echoed: list[str]) -> ConanClient:
    return ConanClient(scope, registry=registry, executable="conan", echo=echoed.append)
