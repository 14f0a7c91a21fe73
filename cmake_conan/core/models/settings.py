"""
Detected platform profile — conan settings inferred from CMake state.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class CompilerId(str, Enum):
    """CMake compiler ids the detection knows how to translate."""

    GNU = "GNU"
    APPLE_CLANG = "AppleClang"
    CLANG = "Clang"
    MSVC = "MSVC"


# Settings detected automatically, in the order they are emitted
AUTO_SETTINGS: tuple[str, ...] = (
    "arch",
    "build_type",
    "compiler",
    "compiler.version",
    "compiler.runtime",
    "compiler.libcxx",
    "compiler.toolset",
)

SUPPORTED_PLATFORMS: tuple[str, ...] = (
    "Windows",
    "Linux",
    "Macos",
    "Android",
    "iOS",
    "FreeBSD",
    "WindowsStore",
)


class ConanSettings(BaseModel):
    """Arguments for ``conan install`` derived from the build scope.

    Attributes:
        detected:   Every inferred value (setting name → value), including
                    the ones not selected for ``settings``.
        settings:   ``name=value`` pairs: selected detections, then the
                    caller's explicit settings.
        profile:    Profile chosen for the current build type, if any.
        generators: Generators selected by the availability check.
        unparsed:   Caller tokens that were not settings arguments.
    """

    detected: dict[str, str] = Field(default_factory=dict)
    settings: list[str] = Field(default_factory=list)
    profile: str | None = None
    generators: list[str] = Field(default_factory=list)
    unparsed: list[str] = Field(default_factory=list)

    def to_tokens(self) -> list[str]:
        """Render as a keyword list for the ``install`` façade."""
        tokens = list(self.unparsed)
        if self.profile:
            tokens += ["PROFILE", self.profile]
        if self.settings:
            tokens += ["SETTINGS", *self.settings]
        if self.generators:
            tokens += ["GENERATOR", *self.generators]
        return tokens

    def to_dict(self) -> dict:
        return {
            "detected": self.detected,
            "settings": self.settings,
            "profile": self.profile,
            "generators": self.generators,
            "unparsed": self.unparsed,
        }
