"""
Conan subcommand table — which arguments each subcommand accepts.

One entry per subcommand. Multi-word subcommands are keyed with a
space (``"remote add"``). Names are spelled the way a CMake caller
writes them; the translator turns them into ``--kebab-case`` flags.
"""

from __future__ import annotations

from collections.abc import Sequence

from cmake_conan.core.models.invocation import ArgumentSpec


def _spec(options: str = "", one_values: str = "", multi_values: str = "") -> ArgumentSpec:
    return ArgumentSpec(
        options=tuple(options.split()),
        one_values=tuple(one_values.split()),
        multi_values=tuple(multi_values.split()),
    )


_NO_ARGS = ArgumentSpec()


COMMANDS: dict[str, ArgumentSpec] = {
    "install": _spec(
        "NO_IMPORTS UPDATE",
        "INSTALL_FOLDER MANIFESTS MANIFESTS_INTERACTIVE VERIFY JSON REMOTE",
        "GENERATOR BUILD ENV OPTIONS PROFILE SETTINGS",
    ),
    "config rm": _NO_ARGS,
    "config set": _NO_ARGS,
    "config get": _NO_ARGS,
    "config install": _spec("", "VERIFY_SSL TYPE ARGS"),
    "get": _spec("RAW", "PACKAGE REMOTE"),
    "info": _spec(
        "PATHS UPDATE",
        "BUILD_ORDER GRAPH INSTALL_FOLDER JSON PACKAGE_FILTER DRY_BUILD PROFILE REMOTE",
        "ONLY ENV OPTIONS SETTINGS",
    ),
    "search": _spec("OUTDATED CASE_SENSITIVE RAW", "QUERY REMOTE TABLE JSON"),
    "new": _spec(
        "TEST HEADER PURE_C SOURCES BARE CI_SHARED CI_TRAVIS_GCC CI_TRAVIS_CLANG "
        "CI_TRAVIS_OSX CI_APPVEYOR_WIN CI_GITLAB_GCC CI_GITLAB_CLANG CI_CIRCLECI_GCC "
        "CI_CIRCLECI_CLANG CI_CIRCLECI_OSX GITIGNORE",
        "CI_UPLOAD_URL",
    ),
    "create": _spec(
        "KEEP_SOURCE KEEP_BUILD NOT_EXPORT UPDATE",
        "JSON TEST_BUILD_FOLDER TEST_FOLDER MANIFESTS MANIFESTS_INTERACTIVE VERIFY "
        "BUILD PROFILE REMOTE",
        "ENV OPTIONS SETTINGS",
    ),
    "upload": _spec(
        "ALL SKIP_UPLOAD FORCE CHECK CONFIRM",
        "PACKAGE QUERY REMOTE RETRY RETRY_WAIT NO_OVERWRITE JSON",
    ),
    "export": _spec("KEEP_SOURCE"),
    "export-pkg": _spec(
        "FORCE",
        "BUILD_FOLDER INSTALL_FOLDER PROFILE PACKAGE_FOLDER SOURCE_FOLDER JSON",
        "ENV OPTIONS SETTINGS",
    ),
    "test": _spec(
        "UPDATE",
        "TEST_BUILD_FOLDER BUILD PROFILE REMOTE",
        "ENV OPTIONS SETTINGS",
    ),
    "source": _spec("", "SOURCE_FOLDER INSTALL_FOLDER"),
    "build": _spec(
        "BUILD CONFIGURE INSTALL TEST",
        "BUILD_FOLDER INSTALL_FOLDER PACKAGE_FOLDER SOURCE_FOLDER",
    ),
    "package": _spec("", "BUILD_FOLDER INSTALL_FOLDER PACKAGE_FOLDER SOURCE_FOLDER"),
    "profile list": _NO_ARGS,
    "profile show": _NO_ARGS,
    "profile new": _spec("DETECT"),
    "profile update": _NO_ARGS,
    "profile get": _NO_ARGS,
    "profile remove": _NO_ARGS,
    "remote list": _spec("RAW"),
    "remote add": _spec("FORCE", "INSERT"),
    "remote remove": _NO_ARGS,
    "remote update": _spec("", "INSERT"),
    "remote rename": _NO_ARGS,
    "remote list_ref": _NO_ARGS,
    "remote add_ref": _NO_ARGS,
    "remote remove_ref": _NO_ARGS,
    "remote update_ref": _NO_ARGS,
    "remote list_pref": _NO_ARGS,
    "remote add_pref": _NO_ARGS,
    "remote remove_pref": _NO_ARGS,
    "remote update_pref": _NO_ARGS,
    "remote clean": _NO_ARGS,
    "user": _spec("CLEAN", "PASSWORD REMOTE JSON"),
    "imports": _spec("UNDO", "INSTALL_FOLDER IMPORT_FOLDER"),
    "copy": _spec("ALL FORCE", "PACKAGE"),
    "remove": _spec("FORCE OUTDATED SRC LOCKS", "BUILDS PACKAGES QUERY REMOTE"),
    "alias": _NO_ARGS,
    "download": _spec("RECIPE", "PACKAGE REMOTE"),
    "inspect": _spec("", "REMOTE JSON", "ATTRIBUTE"),
}


def get_spec(command: str) -> ArgumentSpec | None:
    """Look up a subcommand, accepting ``remote;add`` or ``remote add``."""
    return COMMANDS.get(" ".join(command.replace(";", " ").split()))


def method_name(command: str) -> str:
    """``"export-pkg"`` → ``export_pkg``; ``"remote add_ref"`` → ``remote_add_ref``."""
    return command.replace(" ", "_").replace("-", "_")


def split_command(words: Sequence[str]) -> tuple[str, list[str]]:
    """Split leading subcommand words from their arguments.

    The longest declared subcommand wins (``remote add`` over ``remote``);
    an undeclared first word is taken as a one-word subcommand.
    """
    words = list(words)
    if not words:
        raise ValueError("No conan subcommand given")
    for length in (2, 1):
        if len(words) >= length and " ".join(words[:length]) in COMMANDS:
            return " ".join(words[:length]), words[length:]
    return words[0], words[1:]
