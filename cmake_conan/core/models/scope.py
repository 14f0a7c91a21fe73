"""
Build scope — the host build tool's variable space.

CMake keeps everything in string variables, lists are ``;``-joined
strings and truthiness follows CMake's constant rules. ``BuildScope``
mirrors that so the detection and install services can read the same
variables a CMake script would, and write results back where the
caller can see them after the call returns.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from pathlib import Path

from pydantic import BaseModel, Field

# CMake's false constants (compared case-insensitively)
_FALSE_CONSTANTS = frozenset({"", "0", "OFF", "NO", "FALSE", "N", "IGNORE", "NOTFOUND"})


def cmake_bool(value: str | None) -> bool:
    """Evaluate a value the way CMake's ``if(<constant>)`` does."""
    if value is None:
        return False
    text = value.strip().upper()
    if text in _FALSE_CONSTANTS or text.endswith("-NOTFOUND"):
        return False
    return True


def split_list(value: str | None) -> list[str]:
    """Split a CMake ``;``-list, dropping empty elements."""
    if not value:
        return []
    return [item for item in value.split(";") if item != ""]


def join_list(values: Iterable[str]) -> str:
    return ";".join(values)


class BuildScope(BaseModel):
    """The CMake state a configuration run works against.

    Attributes:
        variables:           CMake variables (name → string value).
        compile_definitions: Directory ``COMPILE_DEFINITIONS`` property.
        enabled_languages:   Global ``ENABLED_LANGUAGES`` property.
        environment:         ``ENV{...}`` values exported to subprocesses.
    """

    variables: dict[str, str] = Field(default_factory=dict)
    compile_definitions: list[str] = Field(default_factory=list)
    enabled_languages: list[str] = Field(default_factory=list)
    environment: dict[str, str] = Field(default_factory=dict)

    # ── Variable access ─────────────────────────────────────────

    def is_defined(self, name: str) -> bool:
        return name in self.variables

    def get(self, name: str, default: str = "") -> str:
        return self.variables.get(name, default)

    def get_list(self, name: str) -> list[str]:
        return split_list(self.variables.get(name))

    def is_true(self, name: str) -> bool:
        return cmake_bool(self.variables.get(name))

    def set(self, name: str, value: str | bool | int | Iterable[str] | None) -> None:
        """Set a variable; ``None`` unsets it, bools become ON/OFF."""
        if value is None:
            self.unset(name)
        elif isinstance(value, bool):
            self.variables[name] = "ON" if value else "OFF"
        elif isinstance(value, (str, int)):
            self.variables[name] = str(value)
        else:
            self.variables[name] = join_list(value)

    def unset(self, name: str) -> None:
        self.variables.pop(name, None)

    def update(self, values: Mapping[str, str]) -> None:
        self.variables.update(values)

    # ── Well-known variables ────────────────────────────────────

    @property
    def build_type(self) -> str:
        return self.get("CMAKE_BUILD_TYPE")

    @property
    def configuration_types(self) -> list[str]:
        return self.get_list("CMAKE_CONFIGURATION_TYPES")

    @property
    def multi_config(self) -> bool:
        """Multi-configuration generator with no single build type chosen."""
        return bool(self.configuration_types) and not self.build_type

    @property
    def current_binary_dir(self) -> Path:
        value = self.get("CMAKE_CURRENT_BINARY_DIR") or self.get("CMAKE_BINARY_DIR")
        return Path(value) if value else Path.cwd()

    @property
    def binary_dir(self) -> Path:
        value = self.get("CMAKE_BINARY_DIR") or self.get("CMAKE_CURRENT_BINARY_DIR")
        return Path(value) if value else Path.cwd()
