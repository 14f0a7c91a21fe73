"""
Conanfile models — manifests and wrapper package descriptions.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class Conanfile(BaseModel):
    """A ``conanfile.txt`` manifest.

    Each list is written one entry per line, in order, under its own
    section header. Nothing is deduplicated.
    """

    generators: list[str] = Field(default_factory=list)
    requires: list[str] = Field(default_factory=list)
    options: list[str] = Field(default_factory=list)
    imports: list[str] = Field(default_factory=list)


class SystemLibrary(BaseModel):
    """A library already installed on the system, to be wrapped for conan.

    Attributes:
        name:            Conan name of the library.
        version:         Library version (required to build a reference).
        includes:        Interface include directories.
        lib_dirs:        Imported library locations.
        deps:            Interface link libraries.
        defines:         Interface compile definitions.
        compile_options: Interface compile options.
        ldflags:         Link flags.
    """

    name: str
    version: str = ""
    includes: list[str] = Field(default_factory=list)
    lib_dirs: list[str] = Field(default_factory=list)
    deps: list[str] = Field(default_factory=list)
    defines: list[str] = Field(default_factory=list)
    compile_options: list[str] = Field(default_factory=list)
    ldflags: list[str] = Field(default_factory=list)

    @property
    def reference(self) -> str:
        return f"{self.name}/{self.version}@wrapper/stable"
