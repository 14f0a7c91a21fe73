"""
Argument translation — CMake keyword lists to conan command lines.

CMake callers pass arguments as a flat keyword list::

    install . NO_IMPORTS INSTALL_FOLDER build GENERATOR cmake cmake_find_package

``parse_arguments`` splits such a list the way ``cmake_parse_arguments``
does, and ``build_arguments`` turns the result into conan's syntax::

    install . --no-imports --install-folder=build --generator=cmake --generator=cmake_find_package

Values are never inspected, only names are mapped. Anything that is
not a declared keyword is forwarded verbatim, in its original order.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from cmake_conan.core.models.invocation import ArgumentSpec, ParsedArguments

# Arguments consumed by the wrapper itself, never forwarded to conan
CONTROL_ARGUMENTS: tuple[str, ...] = (
    "OUTPUT_VARIABLE",
    "ERROR_VARIABLE",
    "RESULT_VARIABLE",
    "WORKING_DIRECTORY",
)


def flag_name(name: str) -> str:
    """``INSTALL_FOLDER`` → ``--install-folder``."""
    return "--" + name.lower().replace("_", "-")


def parse_arguments(
    tokens: Iterable[str],
    options: Sequence[str] = (),
    one_values: Sequence[str] = (),
    multi_values: Sequence[str] = (),
) -> ParsedArguments:
    """Split a keyword list into options, one-values and multi-values.

    Follows ``cmake_parse_arguments``: a keyword switches the active
    slot, a one-value keyword takes at most the next token, a multi-value
    keyword takes tokens up to the next keyword. Tokens not claimed by
    any keyword end up in ``unparsed``. A keyword given without a value
    is still recorded, with an empty value.
    """
    option_set = set(options)
    one_set = set(one_values)
    multi_set = set(multi_values)

    parsed = ParsedArguments(options={name: False for name in options})
    active_one: str | None = None
    active_multi: str | None = None

    for token in tokens:
        if token in option_set:
            parsed.options[token] = True
            active_one = active_multi = None
        elif token in one_set:
            parsed.one_values[token] = ""
            active_one, active_multi = token, None
        elif token in multi_set:
            parsed.multi_values.setdefault(token, [])
            active_one, active_multi = None, token
        elif active_one is not None:
            parsed.one_values[active_one] = token
            active_one = None
        elif active_multi is not None:
            parsed.multi_values[active_multi].append(token)
        else:
            parsed.unparsed.append(token)

    return parsed


def merge_keywords(
    parsed: ParsedArguments,
    spec: ArgumentSpec,
    kwargs: Mapping[str, Any],
) -> list[str]:
    """Fold Python keyword arguments into ``parsed``.

    ``install_folder="build"`` is the same as the tokens
    ``INSTALL_FOLDER build``. Keywords naming no declared argument are
    returned as extra ``--kebab[=value]`` tokens to forward.
    """
    extra: list[str] = []
    for key, value in kwargs.items():
        name = key.upper()
        if name in spec.options:
            parsed.options[name] = bool(value)
        elif name in spec.one_values:
            if value is not None:
                parsed.one_values[name] = str(value)
        elif name in spec.multi_values:
            if value is None:
                continue
            values = [value] if isinstance(value, str) else [str(v) for v in value]
            parsed.multi_values.setdefault(name, []).extend(values)
        elif value is True:
            extra.append(flag_name(name))
        elif value not in (None, False):
            extra.append(f"{flag_name(name)}={value}")
    return extra


def _flag_with_value(name: str, value: str) -> str:
    flag = flag_name(name)
    return flag if value == "" else f"{flag}={value}"


def command_words(command: str) -> list[str]:
    """``"remote add"`` → ``["remote", "add"]``."""
    return command.replace(";", " ").split()


def build_arguments(
    command: str,
    spec: ArgumentSpec,
    parsed: ParsedArguments,
    passthrough: Sequence[str] = (),
) -> list[str]:
    """Assemble the conan argument vector (executable not included).

    Order: subcommand words, options, one-values, multi-values, then
    the pass-through tokens as given.
    """
    arguments = command_words(command)

    for name in spec.options:
        if parsed.options.get(name):
            arguments.append(flag_name(name))

    for name in spec.one_values:
        if name in parsed.one_values:
            arguments.append(_flag_with_value(name, parsed.one_values[name]))

    for name in spec.multi_values:
        for value in parsed.multi_values.get(name, []):
            arguments.append(_flag_with_value(name, value))

    arguments.extend(passthrough)
    return arguments
