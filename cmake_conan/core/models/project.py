"""
Project configuration model — loaded from conan-cmake.yml.

Describes where the CMake build lives, which CMake variables to assume
on top of what can be discovered there, and how conan should be found
and invoked.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator


class ConanToolConfig(BaseModel):
    """How to locate and check the conan executable."""

    executable: str | None = None
    required: bool = True
    version: str | None = None
    generators: list[str] = Field(default_factory=lambda: ["cmake"])
    hints: list[str] = Field(default_factory=list)


class InstallConfig(BaseModel):
    """Defaults for ``cmake-conan install``."""

    reference: str | None = None
    conanfile: str | None = None

    requires: list[str] = Field(default_factory=list)
    options: list[str] = Field(default_factory=list)
    imports: list[str] = Field(default_factory=list)

    arch: str | None = None
    profile: str | None = None
    debug_profile: str | None = None
    release_profile: str | None = None
    relwithdebinfo_profile: str | None = None
    minsizerel_profile: str | None = None
    profile_auto: list[str] = Field(default_factory=list)
    settings: list[str] = Field(default_factory=list)

    basic_setup: bool = False
    cmake_targets: bool = False
    keep_rpaths: bool = False
    no_output_dirs: bool = False

    def settings_tokens(self) -> list[str]:
        """Settings-detection keywords (ARCH, profiles, PROFILE_AUTO, SETTINGS)."""
        tokens: list[str] = []
        for name in (
            "arch",
            "profile",
            "debug_profile",
            "release_profile",
            "relwithdebinfo_profile",
            "minsizerel_profile",
        ):
            value = getattr(self, name)
            if value:
                tokens += [name.upper(), value]
        if self.profile_auto:
            tokens += ["PROFILE_AUTO", *self.profile_auto]
        if self.settings:
            tokens += ["SETTINGS", *self.settings]
        return tokens

    def to_tokens(self) -> list[str]:
        """Render as the keyword list ``conan_install`` understands.

        ``conanfile`` is left out; it is passed on its own.
        """
        tokens = [
            name.upper()
            for name in ("basic_setup", "cmake_targets", "keep_rpaths", "no_output_dirs")
            if getattr(self, name)
        ]
        return tokens + self.settings_tokens()


class ProjectConfig(BaseModel):
    """Root configuration — the contents of conan-cmake.yml."""

    version: int = 1

    build_dir: str = "build"
    source_dir: str = "."
    cmake_build_dir: str | None = None

    variables: dict[str, str] = Field(default_factory=dict)
    compile_definitions: list[str] = Field(default_factory=list)
    enabled_languages: list[str] = Field(default_factory=list)

    conan: ConanToolConfig = Field(default_factory=ConanToolConfig)
    install: InstallConfig = Field(default_factory=InstallConfig)

    @field_validator("variables", mode="before")
    @classmethod
    def _stringify_variables(cls, value: object) -> object:
        # YAML turns ON/OFF and numbers into bools and ints
        if isinstance(value, dict):
            return {str(k): _cmake_string(v) for k, v in value.items()}
        return value


def _cmake_string(value: object) -> str:
    if isinstance(value, bool):
        return "ON" if value else "OFF"
    if isinstance(value, list):
        return ";".join(str(v) for v in value)
    if value is None:
        return ""
    return str(value)
