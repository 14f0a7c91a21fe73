"""
Error taxonomy — everything that aborts a configuration run.

Every error derives from ``ConanError`` so the CLI can turn any of them
into a single red message and a non-zero exit. Nothing here is retried.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from cmake_conan.core.models.invocation import ConanResult


class ConanError(Exception):
    """Base class for fatal cmake-conan errors."""


class ToolNotFoundError(ConanError):
    """The conan executable could not be located."""


class ToolVersionError(ConanError):
    """The conan executable is older than the required minimum."""


class UnsupportedEnvironmentError(ConanError):
    """The host OS, compiler, VS version or architecture is not recognized."""


class CommandFailedError(ConanError):
    """A conan subprocess exited with a non-zero code."""

    def __init__(self, message: str, result: ConanResult | None = None):
        super().__init__(message)
        self.result = result

    @property
    def return_code(self) -> int | None:
        return self.result.return_code if self.result else None


class MissingArtifactError(ConanError):
    """An expected file (build-info, conanfile, template) does not exist."""


class ConfigError(ConanError):
    """Raised when conan-cmake.yml is invalid or missing."""
