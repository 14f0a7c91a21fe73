"""Adapters — bindings to the external tools cmake-conan drives.

Public re-exports for convenient access.
"""

from cmake_conan.adapters.base import Adapter, ExecutionContext
from cmake_conan.adapters.conan import ConanAdapter
from cmake_conan.adapters.mock import MockAdapter
from cmake_conan.adapters.registry import AdapterRegistry

__all__ = [
    "Adapter",
    "AdapterRegistry",
    "ConanAdapter",
    "ExecutionContext",
    "MockAdapter",
]
