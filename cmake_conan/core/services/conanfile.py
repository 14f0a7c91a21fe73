"""
Conanfile generation — manifests and wrapper packages.

Writes the ``conanfile.txt`` a build directory installs from, resolves
a caller-supplied conanfile, and renders the ``conanfile.py`` recipes
used to wrap a package (to override one of its requirements) or a
library already installed on the system.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from pathlib import Path

from cmake_conan.core.errors import ConanError, MissingArtifactError
from cmake_conan.core.models.conanfile import Conanfile, SystemLibrary
from cmake_conan.core.models.scope import BuildScope

logger = logging.getLogger(__name__)

CONANFILE_TXT = "conanfile.txt"
CONANFILE_PY = "conanfile.py"

WRAPPER_USER_CHANNEL = "wrapper/stable"


# ── Templates ───────────────────────────────────────────────────


_OVERRIDE_WRAPPER = """\
from conans import ConanFile


class {class_name}(ConanFile):
    name = "{name}"
    version = "{version}"
    description = "Pins {reference} for the packages that require it"
    requires = ({requires})
"""

_SYSTEM_LIBRARY_WRAPPER = """\
from conans import ConanFile


class {class_name}(ConanFile):
    name = "{name}"
    version = "{version}"
    description = "System-installed {name}, described for conan"

    def package_id(self):
        self.info.header_only()

    def package_info(self):
        self.cpp_info.includedirs = [{includes}]
        self.cpp_info.libdirs = [{lib_dirs}]
        self.cpp_info.libs = [{deps}]
        self.cpp_info.defines = [{defines}]
        self.cpp_info.cxxflags = [{compile_options}]
        self.cpp_info.cflags = [{compile_options}]
        self.cpp_info.sharedlinkflags = [{ldflags}]
        self.cpp_info.exelinkflags = [{ldflags}]
"""


# ── Manifest ────────────────────────────────────────────────────


def render_conanfile(conanfile: Conanfile) -> str:
    """Render a manifest: one section per list, separated by blank lines."""
    sections = [
        ("generators", conanfile.generators),
        ("requires", conanfile.requires),
        ("options", conanfile.options),
        ("imports", conanfile.imports),
    ]
    blocks = []
    for header, entries in sections:
        lines = [f"[{header}]", *entries]
        blocks.append("".join(f"{line}\n" for line in lines))
    return "\n".join(blocks)


def generate_conanfile(
    scope: BuildScope,
    requires: Sequence[str] = (),
    options: Sequence[str] = (),
    imports: Sequence[str] = (),
    generators: Sequence[str] | None = None,
) -> Path:
    """(Re-)create ``conanfile.txt`` in the current binary directory.

    ``generators`` defaults to the ones chosen by the availability
    check (``CONAN_GENERATORS``). Any previous file is replaced.

    Returns:
        Path of the written manifest.
    """
    if generators is None:
        generators = scope.get_list("CONAN_GENERATORS")

    path = scope.current_binary_dir / CONANFILE_TXT
    logger.info("Generating '%s'", path)
    logger.debug(
        "Generators: %s; Requires: %s; Options: %s; Imports: %s",
        ";".join(generators),
        ";".join(requires),
        ";".join(options),
        ";".join(imports),
    )

    manifest = Conanfile(
        generators=list(generators),
        requires=list(requires),
        options=list(options),
        imports=list(imports),
    )
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_conanfile(manifest), encoding="utf-8")
    return path


def resolve_conanfile(conanfile: str | Path, working_directory: str | Path | None = None) -> Path:
    """Turn a caller-supplied conanfile path into a file path.

    Relative paths are taken from ``working_directory``. A directory
    resolves to its ``conanfile.txt``, or ``conanfile.py`` when there
    is no text manifest.

    Raises:
        MissingArtifactError: the resolved file does not exist.
    """
    path = Path(conanfile)
    if not path.is_absolute() and working_directory:
        path = Path(working_directory) / path

    if path.is_dir():
        text_manifest = path / CONANFILE_TXT
        path = text_manifest if text_manifest.exists() else path / CONANFILE_PY

    if not path.is_file():
        raise MissingArtifactError(f"Conanfile not found: {path}")
    return path


def setup_conanfile(
    scope: BuildScope,
    conanfile: str | Path | None = None,
    working_directory: str | Path | None = None,
    requires: Sequence[str] = (),
    options: Sequence[str] = (),
    imports: Sequence[str] = (),
) -> Path:
    """Use the given conanfile, or generate one when none is given."""
    if conanfile:
        return resolve_conanfile(conanfile, working_directory)
    return generate_conanfile(scope, requires=requires, options=options, imports=imports)


# ── Wrapper packages ────────────────────────────────────────────


def split_reference(reference: str) -> tuple[str, str]:
    """``"zlib/1.2.11@conan/stable"`` → ``("zlib", "1.2.11")``."""
    name, _, rest = reference.partition("/")
    version = rest.split("@", 1)[0]
    if not name or not version:
        raise ConanError(f"Not a conan reference: {reference!r}")
    return name, version


def property_list(entries: Iterable[str]) -> str:
    """Render entries as ``'a','b'`` for a Python list literal."""
    return ",".join(f"'{entry}'" for entry in entries)


def _class_name(name: str) -> str:
    words = name.replace("-", "_").split("_")
    return "".join(word[:1].upper() + word[1:] for word in words if word) + "Conan"


def override_wrapper_name(reference: str) -> str:
    name, _ = split_reference(reference)
    return f"{name}_wrapper"


def render_override_wrapper(reference: str, requires_override: Sequence[str]) -> str:
    """Recipe that requires ``requires_override`` with ``reference`` pinned.

    Every package in ``requires_override`` that depends on the package
    named by ``reference`` resolves it to exactly that version.
    """
    _, version = split_reference(reference)
    wrapper_name = override_wrapper_name(reference)
    requires = [f"'{dep}'" for dep in requires_override]
    requires.append(f"('{reference}', 'override')")
    return _OVERRIDE_WRAPPER.format(
        class_name=_class_name(wrapper_name),
        name=wrapper_name,
        version=version,
        reference=reference,
        requires=", ".join(requires) + ("," if len(requires) == 1 else ""),
    )


def render_system_library_wrapper(library: SystemLibrary) -> str:
    """Recipe describing a system library through ``package_info``.

    Raises:
        MissingArtifactError: the library has no version.
    """
    if not library.version:
        raise MissingArtifactError(f"Could not determine version of library '{library.name}'")
    return _SYSTEM_LIBRARY_WRAPPER.format(
        class_name=_class_name(library.name),
        name=library.name,
        version=library.version,
        includes=property_list(library.includes),
        lib_dirs=property_list(library.lib_dirs),
        deps=property_list(library.deps),
        defines=property_list(library.defines),
        compile_options=property_list(library.compile_options),
        ldflags=property_list(library.ldflags),
    )


def write_wrapper(binary_dir: Path, name: str, recipe: str) -> Path:
    """Write ``recipe`` to ``<binary_dir>/conan-wrappers/<name>/conanfile.py``.

    Returns:
        The wrapper's directory.
    """
    workdir = binary_dir / "conan-wrappers" / name
    workdir.mkdir(parents=True, exist_ok=True)
    (workdir / CONANFILE_PY).write_text(recipe, encoding="utf-8")
    logger.info("Generated wrapper recipe %s", workdir / CONANFILE_PY)
    return workdir
