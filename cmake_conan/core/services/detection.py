"""
Settings detection — translate CMake compiler state into conan settings.

Reads the variables CMake sets while configuring (system name, enabled
languages, compiler id and version, MSVC architecture, flags) and maps
them onto conan's vocabulary: ``os``, ``arch``, ``compiler``,
``compiler.version``, ``compiler.libcxx``, ``compiler.runtime`` and
``compiler.toolset``.
"""

from __future__ import annotations

import logging
import re
from typing import Any

from cmake_conan.core.errors import UnsupportedEnvironmentError
from cmake_conan.core.models.invocation import ArgumentSpec
from cmake_conan.core.models.scope import BuildScope
from cmake_conan.core.models.settings import (
    AUTO_SETTINGS,
    SUPPORTED_PLATFORMS,
    CompilerId,
    ConanSettings,
)
from cmake_conan.core.services.translator import merge_keywords, parse_arguments

logger = logging.getLogger(__name__)

SETTINGS_ARGUMENTS = ArgumentSpec(
    one_values=(
        "ARCH",
        "DEBUG_PROFILE",
        "RELEASE_PROFILE",
        "RELWITHDEBINFO_PROFILE",
        "MINSIZEREL_PROFILE",
        "PROFILE",
    ),
    multi_values=("PROFILE_AUTO", "SETTINGS"),
)

# (lowest MSVC_VERSION, first MSVC_VERSION past the range, Visual Studio version)
MSVC_IDE_VERSIONS: tuple[tuple[int, int, str], ...] = (
    (1400, 1500, "8"),
    (1500, 1600, "9"),
    (1600, 1700, "10"),
    (1700, 1800, "11"),
    (1800, 1900, "12"),
    (1900, 1910, "14"),
    (1910, 1920, "15"),
)

VS_RUNTIME_FLAGS = ("/MD", "/MDd", "/MT", "/MTd")

_BUILD_TYPE_PROFILES = {
    "Debug": "DEBUG_PROFILE",
    "Release": "RELEASE_PROFILE",
    "RelWithDebInfo": "RELWITHDEBINFO_PROFILE",
    "MinSizeRel": "MINSIZEREL_PROFILE",
}


def msvc_ide_version(msvc_version: str | int) -> str:
    """Map ``MSVC_VERSION`` (e.g. 1916) to the Visual Studio version (15).

    Raises:
        UnsupportedEnvironmentError: outside every known range.
    """
    try:
        number = int(str(msvc_version).strip())
    except ValueError:
        raise UnsupportedEnvironmentError(
            f"Conan: Unknown MSVC compiler version [{msvc_version}]"
        ) from None
    for low, high, ide in MSVC_IDE_VERSIONS:
        if low <= number < high:
            return ide
    raise UnsupportedEnvironmentError(f"Conan: Unknown MSVC compiler version [{msvc_version}]")


def _version_parts(version: str) -> tuple[str, str]:
    parts = version.split(".")
    major = parts[0] if parts else ""
    minor = parts[1] if len(parts) > 1 else "0"
    return major, minor


def _less_than(version: str, threshold: str) -> bool:
    def _key(value: str) -> tuple[int, ...]:
        return tuple(int(p) if p.isdigit() else 0 for p in re.split(r"[.\-]", value))

    a, b = _key(version), _key(threshold)
    width = max(len(a), len(b))
    return a + (0,) * (width - len(a)) < b + (0,) * (width - len(b))


def detect_gnu_libcxx(scope: BuildScope) -> str:
    """Pick ``libstdc++`` or ``libstdc++11`` for GCC-compatible compilers.

    In order: an explicit ``_GLIBCXX_USE_CXX11_ABI`` variable, an
    ``add_definitions(-D_GLIBCXX_USE_CXX11_ABI=0)`` in the current
    directory, then the C++ compiler version (5.1 and later default to
    the C++11 ABI).
    """
    if scope.is_defined("_GLIBCXX_USE_CXX11_ABI"):
        return "libstdc++11" if scope.is_true("_GLIBCXX_USE_CXX11_ABI") else "libstdc++"

    for define in scope.compile_definitions:
        if define == "_GLIBCXX_USE_CXX11_ABI=0":
            return "libstdc++"

    if _less_than(scope.get("CMAKE_CXX_COMPILER_VERSION"), "5.1"):
        return "libstdc++"
    return "libstdc++11"


def detect_vs_runtime(scope: BuildScope) -> str:
    """Find the MSVC runtime (MD, MDd, MT, MTd) selected by compiler flags.

    Per-configuration flags are searched before the generic ones; the
    default is ``MDd`` for Debug and ``MD`` otherwise.
    """
    build_type = scope.build_type.upper()
    variables = [
        f"CMAKE_CXX_FLAGS_{build_type}",
        f"CMAKE_C_FLAGS_{build_type}",
        "CMAKE_CXX_FLAGS",
        "CMAKE_C_FLAGS",
    ]
    for variable in variables:
        for flag in scope.get(variable).split():
            if flag in VS_RUNTIME_FLAGS:
                return flag[1:]
    return "MDd" if build_type == "DEBUG" else "MD"


def detect_os(scope: BuildScope) -> str | None:
    system_name = scope.get("CMAKE_SYSTEM_NAME")
    if not system_name:
        return None
    if system_name == "Darwin":
        system_name = "Macos"
    if system_name not in SUPPORTED_PLATFORMS:
        raise UnsupportedEnvironmentError(
            f"cmake system {system_name} is not supported by conan. "
            f"Use one of {';'.join(SUPPORTED_PLATFORMS)}"
        )
    return system_name


def detect_language(scope: BuildScope) -> str:
    if "CXX" in scope.enabled_languages:
        return "CXX"
    if "C" in scope.enabled_languages:
        return "C"
    raise UnsupportedEnvironmentError(
        "Conan: Neither C or C++ was detected as a language for the project. "
        "Unabled to detect compiler version."
    )


def _msvc_arch(architecture_id: str) -> str:
    if "64" in architecture_id:
        return "x86_64"
    if architecture_id.startswith("ARM"):
        logger.warning("Conan: Using default ARM architecture from MSVC")
        return "armv6"
    if "86" in architecture_id:
        return "x86"
    raise UnsupportedEnvironmentError(f"Conan: Unknown MSVC architecture [{architecture_id}]")


def detect_compiler(scope: BuildScope, language: str, arch: str | None = None) -> dict[str, str]:
    """Detect compiler settings for ``language`` (``C`` or ``CXX``).

    Returns a mapping of conan setting names; ``arch`` is included when
    it was given or, for MSVC, derived from the architecture id.
    """
    raw_id = scope.get(f"CMAKE_{language}_COMPILER_ID")
    try:
        compiler_id = CompilerId(raw_id)
    except ValueError:
        raise UnsupportedEnvironmentError(
            f"Conan: compiler setup not recognized [{raw_id or 'unknown'}]"
        ) from None

    version = scope.get(f"CMAKE_{language}_COMPILER_VERSION")
    major, minor = _version_parts(version)
    using_cxx = language == "CXX"
    detected: dict[str, str] = {}
    if arch:
        detected["arch"] = arch

    if compiler_id is CompilerId.GNU:
        detected["compiler"] = "gcc"
        detected["compiler.version"] = major if int(major or 0) > 5 else f"{major}.{minor}"
        if using_cxx:
            detected["compiler.libcxx"] = detect_gnu_libcxx(scope)

    elif compiler_id is CompilerId.APPLE_CLANG:
        detected["compiler"] = "apple-clang"
        detected["compiler.version"] = f"{major}.{minor}"
        if using_cxx:
            detected["compiler.libcxx"] = "libc++"

    elif compiler_id is CompilerId.CLANG and scope.is_true("APPLE"):
        if scope.get("CMAKE_POLICY_CMP0025").upper() != "NEW":
            logger.info(
                "Conan: APPLE and Clang detected. Assuming apple-clang compiler. "
                "Set CMP0025 to avoid it"
            )
            detected["compiler"] = "apple-clang"
        else:
            detected["compiler"] = "clang"
        detected["compiler.version"] = f"{major}.{minor}"
        if using_cxx:
            detected["compiler.libcxx"] = "libc++"

    elif compiler_id is CompilerId.CLANG:
        detected["compiler"] = "clang"
        detected["compiler.version"] = major if int(major or 0) > 7 else f"{major}.{minor}"
        if using_cxx:
            detected["compiler.libcxx"] = detect_gnu_libcxx(scope)

    else:
        detected["compiler"] = "Visual Studio"
        detected["compiler.version"] = msvc_ide_version(scope.get("MSVC_VERSION"))
        if not arch:
            detected["arch"] = _msvc_arch(scope.get(f"MSVC_{language}_ARCHITECTURE_ID"))

        runtime = detect_vs_runtime(scope)
        logger.info("Conan: Detected VS runtime: %s", runtime)
        detected["compiler.runtime"] = runtime

        toolset = scope.get("CMAKE_VS_PLATFORM_TOOLSET")
        if toolset and (
            scope.is_true("CMAKE_GENERATOR_TOOLSET") or scope.get("CMAKE_GENERATOR") == "Ninja"
        ):
            detected["compiler.toolset"] = toolset

    return detected


def select_profile(build_type: str, profiles: dict[str, str]) -> str | None:
    """Choose the profile for ``build_type``, falling back to ``PROFILE``."""
    key = _BUILD_TYPE_PROFILES.get(build_type)
    if key and profiles.get(key):
        return profiles[key]
    return profiles.get("PROFILE") or None


def detect_settings(scope: BuildScope, *tokens: str, **kwargs: Any) -> ConanSettings:
    """Infer conan install arguments from the build scope.

    ``tokens`` is a keyword list (``ARCH x86_64 PROFILE default
    SETTINGS os=Linux``); snake_case keyword arguments work the same.
    Unrecognised tokens are kept in ``unparsed`` for the caller.

    Raises:
        UnsupportedEnvironmentError: the OS, language, compiler,
            Visual Studio version or MSVC architecture is not supported.
    """
    logger.info("Conan: Automatic detection of conan settings from cmake")
    spec = SETTINGS_ARGUMENTS
    parsed = parse_arguments(tokens, spec.options, spec.one_values, spec.multi_values)
    extra = merge_keywords(parsed, spec, kwargs)

    detected: dict[str, str] = {}
    os_name = detect_os(scope)
    if os_name:
        detected["os"] = os_name

    language = detect_language(scope)
    detected.update(detect_compiler(scope, language, arch=parsed.value("ARCH") or None))

    if scope.build_type:
        detected["build_type"] = scope.build_type

    profile = select_profile(scope.build_type, parsed.one_values)

    profile_auto = parsed.values("PROFILE_AUTO")
    if not profile_auto or profile_auto == ["ALL"]:
        profile_auto = list(AUTO_SETTINGS)

    settings = [f"{name}={detected[name]}" for name in profile_auto if detected.get(name)]
    settings.extend(parsed.values("SETTINGS"))

    result = ConanSettings(
        detected=detected,
        settings=settings,
        profile=profile,
        generators=scope.get_list("CONAN_GENERATORS"),
        unparsed=[*parsed.unparsed, *extra],
    )
    logger.info("Conan settings: '%s'", ";".join(result.to_tokens()))
    return result
