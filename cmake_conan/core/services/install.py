"""
Install orchestration — detect settings, run ``conan install``, load results.

``conan_install`` is what a CMake project calls once per dependency set:

    client = ConanClient(scope)
    client.check(required=True)
    result = conan_install(client, "zlib/1.2.11@conan/stable", "BUILD", "missing")

Under a multi-configuration generator conan runs once per configuration,
each with its own build type and import path. When a ``cmake`` generator
is in use the generated build-info file is loaded into the scope.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from cmake_conan.core.errors import ConanError
from cmake_conan.core.models.conanfile import SystemLibrary
from cmake_conan.core.models.invocation import ConanResult
from cmake_conan.core.models.settings import ConanSettings
from cmake_conan.core.services.buildinfo import buildinfo_path, load_buildinfo
from cmake_conan.core.services.client import ConanClient
from cmake_conan.core.services.conanfile import (
    WRAPPER_USER_CHANNEL,
    override_wrapper_name,
    render_override_wrapper,
    render_system_library_wrapper,
    split_reference,
    write_wrapper,
)
from cmake_conan.core.services.detection import detect_settings
from cmake_conan.core.services.translator import parse_arguments

logger = logging.getLogger(__name__)

INSTALL_OPTIONS = ("CMAKE_TARGETS", "KEEP_RPATHS", "NO_OUTPUT_DIRS", "BASIC_SETUP")
INSTALL_ONE_VALUES = ("CONANFILE",)
INSTALL_MULTI_VALUES = ("GENERATOR",)

CMAKE_GENERATORS = ("cmake", "cmake_multi")
SETUP_FILE = "conan_setup.cmake"

# conan_install option → conan_basic_setup option
_SETUP_OPTIONS = {
    "CMAKE_TARGETS": "TARGETS",
    "KEEP_RPATHS": "KEEP_RPATHS",
    "NO_OUTPUT_DIRS": "NO_OUTPUT_DIRS",
}


@dataclass
class InstallResult:
    """Everything one ``conan_install`` call did.

    ``results`` and ``settings`` are keyed by configuration name, or by
    ``""`` for a single-configuration build.
    """

    path_or_reference: str
    results: dict[str, ConanResult] = field(default_factory=dict)
    settings: dict[str, ConanSettings] = field(default_factory=dict)
    buildinfo: dict[str, str] = field(default_factory=dict)
    setup_options: list[str] = field(default_factory=list)
    setup_file: Path | None = None

    @property
    def executed(self) -> bool:
        return bool(self.results) and all(r.executed for r in self.results.values())

    def to_dict(self) -> dict:
        return {
            "path_or_reference": self.path_or_reference,
            "results": {k: v.to_dict() for k, v in self.results.items()},
            "settings": {k: v.to_dict() for k, v in self.settings.items()},
            "buildinfo": self.buildinfo,
            "setup_options": self.setup_options,
            "setup_file": str(self.setup_file) if self.setup_file else None,
        }


def is_in_list(search_for: Iterable[str], in_list: Iterable[str]) -> bool:
    """True when any item of ``search_for`` is in ``in_list``."""
    haystack = set(in_list)
    return any(item in haystack for item in search_for)


def write_setup_file(directory: Path, buildinfo: Path, options: Sequence[str]) -> Path:
    """Write a CMake snippet that includes build-info and runs basic setup."""
    path = directory / SETUP_FILE
    lines = [
        f'include("{buildinfo.as_posix()}")',
        f"conan_basic_setup({' '.join(options)})",
    ]
    directory.mkdir(parents=True, exist_ok=True)
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


def conan_install(
    client: ConanClient,
    reference: str | None = None,
    *tokens: str,
    conanfile: str | None = None,
    basic_setup: bool = False,
    cmake_targets: bool = False,
    keep_rpaths: bool = False,
    no_output_dirs: bool = False,
) -> InstallResult:
    """Install ``reference`` (or ``CONANFILE``) for every configuration.

    ``tokens`` is a keyword list: the install options above, settings
    arguments (``ARCH``, ``PROFILE``, ``SETTINGS`` ...), anything
    ``conan install`` accepts, and ``WORKING_DIRECTORY``.

    Raises:
        ConanError: nothing to install, or any failure on the way.
    """
    logger.debug("conan_install(%s)", ";".join([reference or "", *tokens]))
    parsed = parse_arguments(tokens, INSTALL_OPTIONS, INSTALL_ONE_VALUES, INSTALL_MULTI_VALUES)
    if "GENERATOR" in parsed.multi_values:
        logger.warning(
            "Argument 'GENERATOR' should be given to the conan check. It will be ignored here."
        )

    path_or_ref = conanfile or parsed.value("CONANFILE") or reference
    if not path_or_ref:
        raise ConanError("Nothing to install: give a reference or CONANFILE")

    location = parse_arguments(parsed.unparsed, one_values=("WORKING_DIRECTORY",))
    working_directory = location.value("WORKING_DIRECTORY")

    client.ensure_checked()
    scope = client.scope
    result = InstallResult(path_or_reference=path_or_ref)

    if scope.is_true("CONAN_CMAKE_MULTI"):
        for configuration in scope.configuration_types:
            scope.set("CMAKE_BUILD_TYPE", configuration)
            scope.environment["CONAN_IMPORT_PATH"] = configuration
            settings = detect_settings(scope, *parsed.unparsed)
            result.settings[configuration] = settings
            result.results[configuration] = client.install(path_or_ref, *settings.to_tokens())
        scope.unset("CMAKE_BUILD_TYPE")
    else:
        settings = detect_settings(scope, *parsed.unparsed)
        result.settings[""] = settings
        result.results[""] = client.install(path_or_ref, *settings.to_tokens())

    if is_in_list(CMAKE_GENERATORS, scope.get_list("CONAN_GENERATORS")):
        if result.executed:
            result.buildinfo = load_buildinfo(scope, working_directory)
        else:
            logger.info("Conan: install not executed, build-info not loaded")

    if basic_setup or parsed.is_set("BASIC_SETUP"):
        flags = {
            "CMAKE_TARGETS": cmake_targets,
            "KEEP_RPATHS": keep_rpaths,
            "NO_OUTPUT_DIRS": no_output_dirs,
        }
        result.setup_options = [
            setup_name
            for option, setup_name in _SETUP_OPTIONS.items()
            if flags[option] or parsed.is_set(option)
        ]
        directory = Path(working_directory) if working_directory else scope.current_binary_dir
        result.setup_file = write_setup_file(
            directory,
            buildinfo_path(scope, working_directory),
            result.setup_options,
        )

    return result


def install_override_wrapper(
    client: ConanClient,
    reference: str,
    requires_override: Sequence[str],
    *tokens: str,
) -> InstallResult:
    """Install ``requires_override`` with ``reference`` forced on them.

    A wrapper recipe named ``<name>_wrapper`` is generated under
    ``<CMAKE_BINARY_DIR>/conan-wrappers`` and installed from there;
    remaining ``tokens`` go to ``conan_install``.
    """
    parsed = parse_arguments(tokens, one_values=("CONANFILE",))
    if "CONANFILE" in parsed.one_values:
        logger.warning(
            "CONANFILE argument ignored since it is not applicable when REQUIRES_OVERRIDE is given"
        )

    _, version = split_reference(reference)
    wrapper_name = override_wrapper_name(reference)
    recipe = render_override_wrapper(reference, requires_override)
    workdir = write_wrapper(client.scope.binary_dir, wrapper_name, recipe)

    return conan_install(
        client,
        f"{wrapper_name}/{version}@{WRAPPER_USER_CHANNEL}",
        "CONANFILE",
        ".",
        "WORKING_DIRECTORY",
        str(workdir),
        *parsed.unparsed,
    )


def install_system_library(
    client: ConanClient,
    library: SystemLibrary,
    *tokens: str,
) -> InstallResult:
    """Describe a system library as a conan package and install it."""
    recipe = render_system_library_wrapper(library)
    workdir = write_wrapper(client.scope.binary_dir, library.name, recipe)

    return conan_install(
        client,
        library.reference,
        "CONANFILE",
        ".",
        "WORKING_DIRECTORY",
        str(workdir),
        *tokens,
    )
