"""
Conan client — availability check, argument translation and execution.

``ConanClient`` is the single entry point for running conan. It owns
the build scope it reads defaults from and writes results into, and
dispatches every subprocess through the adapter registry::

    client = ConanClient(scope)
    client.check(required=True, version="1.20.0")
    client.install(".", "INSTALL_FOLDER", "build", "GENERATOR", "cmake")
    client.remote_add("center", "https://center.conan.io", insert="0")

Every subcommand in ``COMMANDS`` has a method of its own; ``run()``
accepts any subcommand, declared or not.
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from cmake_conan.adapters.conan import ConanAdapter, find_conan, parse_conan_version
from cmake_conan.adapters.registry import AdapterRegistry
from cmake_conan.core.errors import CommandFailedError, ToolNotFoundError, ToolVersionError
from cmake_conan.core.models.action import Action
from cmake_conan.core.models.invocation import ArgumentSpec, ConanResult, Invocation
from cmake_conan.core.models.scope import BuildScope
from cmake_conan.core.services.commands import get_spec, method_name
from cmake_conan.core.services.translator import (
    CONTROL_ARGUMENTS,
    build_arguments,
    command_words,
    merge_keywords,
    parse_arguments,
)

logger = logging.getLogger(__name__)

Echo = Callable[[str], None]


def version_tuple(version: str) -> tuple[int, ...]:
    """``"1.20.3"`` → ``(1, 20, 3)``; non-numeric parts count as 0."""
    parts = []
    for piece in version.lstrip("v").split(".")[:3]:
        digits = "".join(itertools.takewhile(str.isdigit, piece))
        parts.append(int(digits) if digits else 0)
    return tuple(parts)


def select_generators(generators: Sequence[str], multi_config: bool) -> list[str]:
    """Swap ``cmake`` for ``cmake_multi`` under multi-configuration generators."""
    return [
        "cmake_multi" if generator == "cmake" and multi_config else generator
        for generator in generators
    ]


def _facade(command: str) -> Callable[..., ConanResult]:
    def call(self: ConanClient, *args: str, **kwargs: Any) -> ConanResult:
        return self.run(command, *args, **kwargs)

    name = method_name(command)
    call.__name__ = name
    call.__qualname__ = f"ConanClient.{name}"
    call.__doc__ = f"Run ``conan {command}``."
    return call


@dataclass
class CheckResult:
    """Outcome of the availability check."""

    found: bool = False
    executable: str | None = None
    version: str | None = None
    version_output: str = ""
    multi_config: bool = False
    generators: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "found": self.found,
            "executable": self.executable,
            "version": self.version,
            "multi_config": self.multi_config,
            "generators": self.generators,
        }


class ConanClient:
    """Run conan subcommands against a build scope.

    Args:
        scope:      CMake variable space; defaults and captured values
                    live here.
        registry:   Adapter registry; a registry with the real conan
                    adapter is created when omitted.
        executable: Name or path of the conan executable.
        echo:       Sink for progress lines and conan output
                    (``logger.info`` by default).
        dry_run:    Build command lines without executing them.
    """

    adapter_name = "conan"

    def __init__(
        self,
        scope: BuildScope | None = None,
        registry: AdapterRegistry | None = None,
        executable: str | None = None,
        echo: Echo | None = None,
        dry_run: bool = False,
    ):
        self.scope = scope if scope is not None else BuildScope()
        if registry is None:
            registry = AdapterRegistry()
            registry.register(ConanAdapter())
        self.registry = registry
        self.executable = executable
        self.echo: Echo = echo or logger.info
        self.dry_run = dry_run
        self._checked: CheckResult | None = None
        self._ids = itertools.count(1)

    # ── Availability ────────────────────────────────────────────

    def check(
        self,
        required: bool = False,
        version: str | None = None,
        generators: Sequence[str] | None = None,
        hints: Sequence[str] = (),
    ) -> CheckResult:
        """Locate conan, verify its version and pick generators.

        Caches the executable in ``CONAN_CMD`` and records
        ``CONAN_VERSION``, ``CONAN_CMAKE_MULTI`` and ``CONAN_GENERATORS``
        in the scope.

        Raises:
            ToolNotFoundError: ``required`` and conan is not found.
            ToolVersionError: conan is older than ``version``.
        """
        self.echo("Conan: checking conan executable in path")
        result = CheckResult()

        if self.registry.mock_mode:
            # mock adapters stand in for the binary; nothing to look up
            executable = self.executable or "conan"
        else:
            executable = find_conan(self.executable or "conan", hints)
        if executable is None:
            if required:
                raise ToolNotFoundError("Conan executable not found!")
            logger.warning("Conan executable not found")
            self.scope.set("CONAN_CMD", "CONAN_CMD-NOTFOUND")
        else:
            result.found = True
            result.executable = executable
            self.executable = executable
            self.scope.set("CONAN_CMD", executable)
            self.echo(f"Conan: Found program {executable}")

            receipt = self.registry.execute_action(
                self._action("--version", [executable, "--version"]),
                dry_run=False,
            )
            result.version_output = (
                receipt.output + receipt.metadata.get("stderr", "")
            ).strip()
            result.version = parse_conan_version(result.version_output)
            self.echo(f"Conan: Version found {result.version_output}")
            if result.version:
                self.scope.set("CONAN_VERSION", result.version)

        if version and result.found:
            if result.version is None:
                raise ToolVersionError(
                    f"Cannot determine conan version from {result.version_output!r}"
                )
            if version_tuple(result.version) < version_tuple(version):
                raise ToolVersionError(
                    f"Conan outdated. Installed: {result.version}, required: {version}. "
                    "Consider updating via 'pip install conan --upgrade'."
                )

        result.multi_config = self.scope.multi_config
        if result.multi_config:
            self.echo("Conan: Using cmake-multi generator")
        result.generators = select_generators(generators or ["cmake"], result.multi_config)

        self.scope.set("CONAN_CMAKE_MULTI", result.multi_config)
        self.scope.set("CONAN_GENERATORS", result.generators)
        logger.info("CONAN_GENERATORS: %s", ";".join(result.generators))

        self._checked = result
        return result

    def ensure_checked(self) -> CheckResult:
        """Run a default check unless one already happened."""
        if self._checked is None:
            return self.check()
        return self._checked

    # ── Execution ───────────────────────────────────────────────

    def _action(self, name: str, argv: list[str], env: Mapping[str, str] | None = None) -> Action:
        return Action(
            id=f"conan-{next(self._ids)}",
            name=name,
            adapter=self.adapter_name,
            params={"argv": argv, "env": dict(env or {})},
        )

    def prepare(self, command: str, *args: str, **kwargs: Any) -> tuple[Invocation, dict[str, str]]:
        """Translate a call into an invocation without running it.

        Returns the invocation and the control arguments that were
        intercepted (``OUTPUT_VARIABLE`` and friends).
        """
        spec = get_spec(command)
        if spec is None:
            logger.debug("Undeclared conan subcommand '%s'; forwarding arguments as-is", command)
            spec = ArgumentSpec()

        control_names = [name for name in CONTROL_ARGUMENTS if name not in spec.keywords]
        parsed = parse_arguments(
            args, spec.options, [*spec.one_values, *control_names], spec.multi_values
        )
        controls = {
            name: parsed.one_values.pop(name)
            for name in control_names
            if name in parsed.one_values
        }
        for name in CONTROL_ARGUMENTS:
            value = kwargs.pop(name.lower(), None)
            if value is not None:
                controls[name] = str(value)

        extra = merge_keywords(parsed, spec, kwargs)
        arguments = build_arguments(command, spec, parsed, [*parsed.unparsed, *extra])

        working_directory = controls.get("WORKING_DIRECTORY") or str(self.scope.current_binary_dir)
        invocation = Invocation(
            executable=self.executable or "conan",
            arguments=arguments,
            working_directory=working_directory,
            env=dict(self.scope.environment),
        )
        return invocation, controls

    def run(self, command: str, *args: str, **kwargs: Any) -> ConanResult:
        """Run a conan subcommand.

        ``args`` is a CMake-style keyword list; keyword arguments are
        the snake_case equivalent. ``OUTPUT_VARIABLE``, ``ERROR_VARIABLE``
        and ``RESULT_VARIABLE`` name scope variables to store stdout,
        stderr and the exit code in; ``WORKING_DIRECTORY`` overrides
        where conan runs.

        Raises:
            CommandFailedError: conan exited non-zero and no
                ``RESULT_VARIABLE`` was given.
        """
        self.ensure_checked()
        invocation, controls = self.prepare(command, *args, **kwargs)

        self.echo(
            f"Running: '{invocation.command_line}' "
            f"in directory '{invocation.working_directory}'"
        )
        receipt = self.registry.execute_action(
            self._action(" ".join(command_words(command)), invocation.argv, invocation.env),
            working_dir=invocation.working_directory,
            dry_run=self.dry_run,
        )

        if receipt.status == "skipped":
            self.echo(receipt.output)
            return ConanResult(invocation=invocation, executed=False)

        stderr = receipt.metadata.get("stderr") or (receipt.error if receipt.failed else "") or ""
        result = ConanResult(
            invocation=invocation,
            return_code=receipt.return_code,
            stdout=receipt.output,
            stderr=stderr,
        )

        if result.stdout:
            self.echo(result.stdout.rstrip("\n"))

        if "ERROR_VARIABLE" in controls:
            self.scope.set(controls["ERROR_VARIABLE"], result.stderr)
        elif result.stderr:
            self.echo("Error messages from conan:")
            self.echo(result.stderr.rstrip("\n"))

        if "RESULT_VARIABLE" in controls:
            self.scope.set(controls["RESULT_VARIABLE"], str(result.return_code))
        elif not result.ok:
            raise CommandFailedError(
                f"{invocation.command_line}: Returned error code {result.return_code}",
                result,
            )

        if "OUTPUT_VARIABLE" in controls:
            self.scope.set(controls["OUTPUT_VARIABLE"], result.stdout)

        return result

    # ── Subcommands ─────────────────────────────────────────────

    install = _facade("install")
    config_rm = _facade("config rm")
    config_set = _facade("config set")
    config_get = _facade("config get")
    config_install = _facade("config install")
    get = _facade("get")
    info = _facade("info")
    search = _facade("search")
    new = _facade("new")
    create = _facade("create")
    upload = _facade("upload")
    export = _facade("export")
    export_pkg = _facade("export-pkg")
    test = _facade("test")
    source = _facade("source")
    build = _facade("build")
    package = _facade("package")
    profile_list = _facade("profile list")
    profile_show = _facade("profile show")
    profile_new = _facade("profile new")
    profile_update = _facade("profile update")
    profile_get = _facade("profile get")
    profile_remove = _facade("profile remove")
    remote_list = _facade("remote list")
    remote_add = _facade("remote add")
    remote_remove = _facade("remote remove")
    remote_update = _facade("remote update")
    remote_rename = _facade("remote rename")
    remote_list_ref = _facade("remote list_ref")
    remote_add_ref = _facade("remote add_ref")
    remote_remove_ref = _facade("remote remove_ref")
    remote_update_ref = _facade("remote update_ref")
    remote_list_pref = _facade("remote list_pref")
    remote_add_pref = _facade("remote add_pref")
    remote_remove_pref = _facade("remote remove_pref")
    remote_update_pref = _facade("remote update_pref")
    remote_clean = _facade("remote clean")
    user = _facade("user")
    imports = _facade("imports")
    copy = _facade("copy")
    remove = _facade("remove")
    alias = _facade("alias")
    download = _facade("download")
    inspect = _facade("inspect")
