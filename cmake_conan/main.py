"""
cmake-conan — CLI entrypoint.

Usage:
    cmake-conan --help
    cmake-conan check --required --min-version 1.20.0
    cmake-conan -b build install zlib/1.2.11@conan/stable BUILD missing
    cmake-conan cmd remote add conan-center https://center.conan.io INSERT 0
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from cmake_conan import __version__
from cmake_conan.core.errors import ConanError
from cmake_conan.core.observability.logging_config import resolve_level, setup_logging

_KEYWORD_CHARS = frozenset("ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789_")


@click.group()
@click.version_option(version=__version__, prog_name="cmake-conan")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress conan output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to conan-cmake.yml (default: auto-detect).",
)
@click.option(
    "--build-dir",
    "-b",
    default=None,
    help="CMake binary directory conan runs in (default: from config).",
)
@click.option(
    "--define",
    "-D",
    "defines",
    multiple=True,
    metavar="NAME=VALUE",
    help="Set a CMake variable (repeatable).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
    build_dir: str | None,
    defines: tuple[str, ...],
) -> None:
    """cmake-conan — install conan dependencies for a CMake build."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None
    ctx.obj["build_dir"] = build_dir
    ctx.obj["defines"] = defines

    setup_logging(level=resolve_level(debug=debug, verbose=verbose, quiet=quiet))


# ── Helpers ─────────────────────────────────────────────────────


def _open(ctx: click.Context, as_json: bool = False, dry_run: bool = False, mock: bool = False):
    """Open a session from the global options, exiting on config errors."""
    from cmake_conan.core.use_cases.session import open_session, parse_defines

    quiet = ctx.obj.get("quiet", False)

    def echo(line: str) -> None:
        if not quiet:
            # keep stdout clean for --json
            click.echo(line, err=as_json)

    try:
        defines = parse_defines(ctx.obj.get("defines", ()))
    except ValueError as e:
        _fail(str(e))

    try:
        return open_session(
            config_path=ctx.obj.get("config_path"),
            build_dir=ctx.obj.get("build_dir"),
            defines=defines,
            dry_run=dry_run,
            mock_mode=mock,
            echo=echo,
        )
    except ConanError as e:
        _fail(str(e))


def _fail(message: str) -> None:
    click.secho(f"❌ {message}", fg="red", err=True)
    sys.exit(1)


def _is_keyword(token: str) -> bool:
    return bool(token) and token[0].isalpha() and set(token) <= _KEYWORD_CHARS


def _print_json(data: object) -> None:
    click.echo(json.dumps(data, indent=2))


# ── Commands ────────────────────────────────────────────────────


@cli.command()
@click.option("--required/--optional", default=None, help="Fail when conan is missing.")
@click.option("--min-version", default=None, help="Minimum conan version (X.Y.Z).")
@click.option("--generator", "generators", multiple=True, help="Generator (repeatable).")
@click.option("--mock", is_flag=True, help="Use mock adapter (no real execution).")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def check(
    ctx: click.Context,
    required: bool | None,
    min_version: str | None,
    generators: tuple[str, ...],
    mock: bool,
    as_json: bool,
) -> None:
    """Locate conan and verify its version."""
    session = _open(ctx, as_json=as_json, mock=mock)
    try:
        result = session.check(
            required=required,
            version=min_version,
            generators=list(generators) or None,
        )
    except ConanError as e:
        _fail(str(e))

    if as_json:
        _print_json(result.to_dict())
        return

    if result.found:
        click.secho(f"✅ conan {result.version or '(unknown version)'}", fg="green", bold=True)
        click.echo(f"   Executable: {result.executable}")
    else:
        click.secho("⚠️  conan not found", fg="yellow", bold=True)
    click.echo(f"   Generators: {', '.join(result.generators)}")
    if result.multi_config:
        click.echo("   Multi-configuration build")


@cli.command(context_settings={"ignore_unknown_options": True})
@click.argument("tokens", nargs=-1, type=click.UNPROCESSED)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def settings(ctx: click.Context, tokens: tuple[str, ...], as_json: bool) -> None:
    """Show the conan settings inferred from the CMake build.

    TOKENS take the same keywords as install: ARCH, PROFILE,
    DEBUG_PROFILE ..., PROFILE_AUTO and SETTINGS.

    Examples:

        cmake-conan settings

        cmake-conan settings PROFILE_AUTO compiler build_type SETTINGS os=Linux
    """
    from cmake_conan.core.services.client import select_generators
    from cmake_conan.core.services.detection import detect_settings

    session = _open(ctx, as_json=as_json)
    scope = session.scope
    if not scope.is_defined("CONAN_GENERATORS"):
        scope.set(
            "CONAN_GENERATORS",
            select_generators(session.config.conan.generators, scope.multi_config),
        )

    try:
        result = detect_settings(scope, *session.config.install.settings_tokens(), *tokens)
    except ConanError as e:
        _fail(str(e))

    if as_json:
        _print_json(result.to_dict())
        return

    click.secho("⚙️  Detected", fg="cyan", bold=True)
    for name, value in result.detected.items():
        click.echo(f"   {name} = {value}")
    if result.profile:
        click.echo(f"   profile: {result.profile}")
    click.echo()
    click.echo(" ".join(result.to_tokens()))


@cli.command()
@click.option("--require", "requires", multiple=True, help="Requirement (repeatable).")
@click.option("--option", "options", multiple=True, help="Package option (repeatable).")
@click.option("--import", "imports", multiple=True, help="Import rule (repeatable).")
@click.option("--generator", "generators", multiple=True, help="Generator (repeatable).")
@click.pass_context
def conanfile(
    ctx: click.Context,
    requires: tuple[str, ...],
    options: tuple[str, ...],
    imports: tuple[str, ...],
    generators: tuple[str, ...],
) -> None:
    """Write conanfile.txt into the build directory.

    Without options, the requires, options and imports in
    conan-cmake.yml are used.
    """
    from cmake_conan.core.services.client import select_generators
    from cmake_conan.core.services.conanfile import generate_conanfile

    session = _open(ctx)
    install = session.config.install
    if not generators:
        generators = tuple(
            select_generators(session.config.conan.generators, session.scope.multi_config)
        )

    path = generate_conanfile(
        session.scope,
        requires=list(requires) or install.requires,
        options=list(options) or install.options,
        imports=list(imports) or install.imports,
        generators=list(generators),
    )
    click.secho(f"✅ Generated {path}", fg="green")


@cli.command(context_settings={"ignore_unknown_options": True})
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@click.option("--conanfile", "conanfile_path", default=None, help="Install from this conanfile.")
@click.option("--dry-run", is_flag=True, help="Show the conan commands without running them.")
@click.option("--mock", is_flag=True, help="Use mock adapter (no real execution).")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def install(
    ctx: click.Context,
    args: tuple[str, ...],
    conanfile_path: str | None,
    dry_run: bool,
    mock: bool,
    as_json: bool,
) -> None:
    """Install dependencies for every build configuration.

    ARGS is an optional REFERENCE followed by keyword TOKENS. With no
    reference and no conanfile, a conanfile.txt is generated from the
    requires in conan-cmake.yml.

    Examples:

        cmake-conan install zlib/1.2.11@conan/stable BUILD missing

        cmake-conan install --conanfile . BASIC_SETUP CMAKE_TARGETS

        cmake-conan install --dry-run
    """
    from cmake_conan.core.services.conanfile import generate_conanfile, resolve_conanfile
    from cmake_conan.core.services.install import conan_install

    session = _open(ctx, as_json=as_json, dry_run=dry_run, mock=mock)
    config = session.config.install

    reference = None
    tokens = list(args)
    if tokens and not _is_keyword(tokens[0]):
        reference = tokens.pop(0)

    try:
        session.check()
        conanfile = None
        if conanfile_path:
            conanfile = resolve_conanfile(conanfile_path, Path.cwd())
        elif config.conanfile and not reference:
            conanfile = resolve_conanfile(config.conanfile, session.root)

        reference = reference or config.reference
        if conanfile is None and not reference:
            if not config.requires:
                _fail("Nothing to install: give a REFERENCE, --conanfile or install.requires")
            conanfile = generate_conanfile(
                session.scope,
                requires=config.requires,
                options=config.options,
                imports=config.imports,
            )

        result = conan_install(
            session.client,
            reference,
            *config.to_tokens(),
            *tokens,
            conanfile=str(conanfile) if conanfile else None,
        )
    except ConanError as e:
        _fail(str(e))

    if as_json:
        _print_json(result.to_dict())
        return

    mode_label = "[dry-run] " if dry_run else "[mock] " if mock else ""
    click.secho(f"\n📦 {mode_label}{result.path_or_reference}", fg="cyan", bold=True)
    for configuration, conan_result in result.results.items():
        label = configuration or session.scope.build_type or "default"
        if not conan_result.executed:
            click.secho(f"   ⊘ {label}", fg="yellow")
        else:
            click.secho(f"   ✓ {label}", fg="green")
        if ctx.obj.get("verbose") or dry_run:
            click.echo(f"     │ {conan_result.invocation.command_line}")
    if result.buildinfo:
        click.echo(f"   Build-info: {len(result.buildinfo)} variables loaded")
    if result.setup_file:
        click.echo(f"   Setup: {result.setup_file}")
    click.echo()


@cli.command()
@click.option("--working-directory", "-w", default=None, help="Where conan wrote build-info.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def buildinfo(ctx: click.Context, working_directory: str | None, as_json: bool) -> None:
    """Load conanbuildinfo.cmake and print the variables it sets."""
    from cmake_conan.core.services.buildinfo import load_buildinfo

    session = _open(ctx, as_json=as_json)
    try:
        variables = load_buildinfo(session.scope, working_directory)
    except ConanError as e:
        _fail(str(e))

    if as_json:
        _print_json(variables)
        return

    for name, value in sorted(variables.items()):
        click.echo(f"{name}={value}")


@cli.command(context_settings={"ignore_unknown_options": True})
@click.argument("args", nargs=-1, required=True, type=click.UNPROCESSED)
@click.option("--dry-run", is_flag=True, help="Show the conan command without running it.")
@click.option("--mock", is_flag=True, help="Use mock adapter (no real execution).")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def cmd(ctx: click.Context, args: tuple[str, ...], dry_run: bool, mock: bool, as_json: bool) -> None:
    """Run any conan subcommand with CMake-style keyword arguments.

    Examples:

        cmake-conan cmd remote add conan-center https://center.conan.io INSERT 0

        cmake-conan cmd search "zlib*" REMOTE conan-center RAW
    """
    from cmake_conan.core.services.commands import split_command

    session = _open(ctx, as_json=as_json, dry_run=dry_run, mock=mock)
    command, tokens = split_command(args)

    try:
        session.check()
        result = session.client.run(command, *tokens, result_variable="CONAN_RESULT")
    except ConanError as e:
        _fail(str(e))

    if as_json:
        _print_json(result.to_dict())
    elif dry_run:
        click.echo(result.invocation.command_line)

    if not result.ok:
        sys.exit(result.return_code)


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def commands(as_json: bool) -> None:
    """List the conan subcommands and the keywords each accepts."""
    from cmake_conan.core.services.commands import COMMANDS

    if as_json:
        _print_json({name: spec.model_dump() for name, spec in COMMANDS.items()})
        return

    for name, spec in COMMANDS.items():
        click.secho(name, fg="cyan", bold=True)
        if spec.options:
            click.echo(f"   options:  {' '.join(spec.options)}")
        if spec.one_values:
            click.echo(f"   values:   {' '.join(spec.one_values)}")
        if spec.multi_values:
            click.echo(f"   lists:    {' '.join(spec.multi_values)}")


if __name__ == "__main__":
    cli()
