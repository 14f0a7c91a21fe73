"""
CMake script parser — read the variable definitions out of .cmake files.

Conan writes its build information as a CMake script, and CMake writes
compiler detection results the same way. Neither needs a CMake
interpreter to be useful: top-level ``set()``, ``unset()`` and
``list(APPEND ...)`` carry all the values. This module tokenises
command invocations and evaluates just those commands.

Supported syntax:
    - line comments and bracket comments (``#[[ ... ]]``)
    - quoted arguments with escapes and line continuations
    - bracket arguments (``[[ ... ]]``, ``[=[ ... ]=]``)
    - unquoted arguments, including nested parentheses
    - ``${VAR}`` and ``$ENV{VAR}`` references, nested ones included

Commands inside function/macro bodies and control-flow blocks are
collected but not evaluated. Top-level ``include()`` is followed.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

logger = logging.getLogger(__name__)

ArgKind = Literal["quoted", "unquoted", "bracket"]

_IDENT_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_BRACKET_OPEN_RE = re.compile(r"\[(=*)\[")
_VAR_REF_RE = re.compile(r"\$(ENV)?\{([^${}]*)\}")

_BLOCK_OPENERS = {"if", "foreach", "while", "function", "macro", "block"}
_BLOCK_CLOSERS = {"endif", "endforeach", "endwhile", "endfunction", "endmacro", "endblock"}

_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "0": "\0", ";": "\\;"}


class CMakeParseError(ValueError):
    """The script is not syntactically valid CMake."""


@dataclass
class CMakeArgument:
    text: str
    kind: ArgKind


@dataclass
class CMakeCommand:
    name: str
    arguments: list[CMakeArgument] = field(default_factory=list)
    line: int = 0

    @property
    def identifier(self) -> str:
        return self.name.lower()


@dataclass
class ScriptResult:
    """Outcome of evaluating a script.

    Attributes:
        variables:   Variables defined or changed by the script.
        unset:       Variables the script removed.
        environment: ``ENV{...}`` values the script set.
        commands:    Every command in the file, evaluated or not.
    """

    variables: dict[str, str] = field(default_factory=dict)
    unset: list[str] = field(default_factory=list)
    environment: dict[str, str] = field(default_factory=dict)
    commands: list[CMakeCommand] = field(default_factory=list)


# ── Tokeniser ───────────────────────────────────────────────────


class _Scanner:
    def __init__(self, text: str):
        self.text = text
        self.pos = 0
        self.line = 1

    def eof(self) -> bool:
        return self.pos >= len(self.text)

    def peek(self, offset: int = 0) -> str:
        index = self.pos + offset
        return self.text[index] if index < len(self.text) else ""

    def advance(self, count: int = 1) -> str:
        chunk = self.text[self.pos:self.pos + count]
        self.line += chunk.count("\n")
        self.pos += count
        return chunk

    def skip_space_and_comments(self) -> None:
        while not self.eof():
            ch = self.peek()
            if ch.isspace():
                self.advance()
            elif ch == "#":
                self._skip_comment()
            else:
                return

    def _skip_comment(self) -> None:
        self.advance()  # '#'
        match = _BRACKET_OPEN_RE.match(self.text, self.pos)
        if match:
            self.advance(len(match.group(0)))
            self._read_bracket_body(match.group(1))
            return
        end = self.text.find("\n", self.pos)
        self.advance((len(self.text) if end == -1 else end) - self.pos)

    def _read_bracket_body(self, equals: str) -> str:
        closer = f"]{equals}]"
        end = self.text.find(closer, self.pos)
        if end == -1:
            raise CMakeParseError(f"line {self.line}: unterminated bracket")
        body = self.advance(end - self.pos)
        self.advance(len(closer))
        return body

    def read_bracket_argument(self) -> str:
        match = _BRACKET_OPEN_RE.match(self.text, self.pos)
        assert match is not None
        self.advance(len(match.group(0)))
        body = self._read_bracket_body(match.group(1))
        # A newline right after the opening bracket is not part of the content
        if body.startswith("\r\n"):
            return body[2:]
        if body.startswith("\n"):
            return body[1:]
        return body

    def read_quoted_argument(self) -> str:
        self.advance()  # opening quote
        out: list[str] = []
        while True:
            if self.eof():
                raise CMakeParseError(f"line {self.line}: unterminated quoted argument")
            ch = self.advance()
            if ch == '"':
                return "".join(out)
            if ch == "\\":
                nxt = self.advance()
                if nxt == "\n":
                    continue  # line continuation
                out.append(_ESCAPES.get(nxt, nxt))
            else:
                out.append(ch)

    def read_unquoted_argument(self) -> str:
        out: list[str] = []
        depth = 0
        while not self.eof():
            ch = self.peek()
            if ch.isspace() or ch == "#":
                break
            if ch == "(":
                depth += 1
            elif ch == ")":
                if depth == 0:
                    break
                depth -= 1
            if ch == "\\":
                self.advance()
                nxt = self.advance()
                out.append(_ESCAPES.get(nxt, nxt))
                continue
            out.append(self.advance())
        return "".join(out)


def parse_commands(text: str) -> list[CMakeCommand]:
    """Split a CMake script into command invocations."""
    scanner = _Scanner(text)
    commands: list[CMakeCommand] = []

    while True:
        scanner.skip_space_and_comments()
        if scanner.eof():
            return commands

        match = _IDENT_RE.match(text, scanner.pos)
        if not match:
            raise CMakeParseError(
                f"line {scanner.line}: expected a command name, got {scanner.peek()!r}"
            )
        command = CMakeCommand(name=match.group(0), line=scanner.line)
        scanner.advance(len(match.group(0)))

        while scanner.peek() in (" ", "\t"):
            scanner.advance()
        if scanner.peek() != "(":
            raise CMakeParseError(f"line {scanner.line}: expected '(' after {command.name}")
        scanner.advance()

        depth = 0
        while True:
            scanner.skip_space_and_comments()
            if scanner.eof():
                raise CMakeParseError(f"line {command.line}: unterminated {command.name}()")
            ch = scanner.peek()
            if ch == ")":
                scanner.advance()
                if depth == 0:
                    break
                depth -= 1
                command.arguments.append(CMakeArgument(")", "unquoted"))
            elif ch == "(":
                scanner.advance()
                depth += 1
                command.arguments.append(CMakeArgument("(", "unquoted"))
            elif ch == '"':
                command.arguments.append(
                    CMakeArgument(scanner.read_quoted_argument(), "quoted")
                )
            elif _BRACKET_OPEN_RE.match(text, scanner.pos):
                command.arguments.append(
                    CMakeArgument(scanner.read_bracket_argument(), "bracket")
                )
            else:
                command.arguments.append(
                    CMakeArgument(scanner.read_unquoted_argument(), "unquoted")
                )

        commands.append(command)


# ── Evaluation ──────────────────────────────────────────────────


def expand_references(
    text: str,
    variables: Mapping[str, str],
    environment: Mapping[str, str] | None = None,
) -> str:
    """Replace ``${VAR}``/``$ENV{VAR}`` references, innermost first."""
    environment = environment or {}

    def _sub(match: re.Match[str]) -> str:
        if match.group(1):
            return environment.get(match.group(2), "")
        return variables.get(match.group(2), "")

    while True:
        expanded = _VAR_REF_RE.sub(_sub, text)
        if expanded == text:
            return expanded
        text = expanded


def _split_unquoted(value: str) -> list[str]:
    # Unquoted arguments split on unescaped semicolons, dropping empties
    parts = re.split(r"(?<!\\);", value)
    return [part.replace("\\;", ";") for part in parts if part != ""]


def expand_arguments(
    arguments: list[CMakeArgument],
    variables: Mapping[str, str],
    environment: Mapping[str, str] | None = None,
) -> list[str]:
    """Evaluate arguments into the flat list a command receives."""
    values: list[str] = []
    for arg in arguments:
        if arg.kind == "bracket":
            values.append(arg.text)
        elif arg.kind == "quoted":
            values.append(expand_references(arg.text, variables, environment).replace("\\;", ";"))
        else:
            values.extend(_split_unquoted(expand_references(arg.text, variables, environment)))
    return values


def evaluate(
    commands: list[CMakeCommand],
    variables: Mapping[str, str] | None = None,
    environment: Mapping[str, str] | None = None,
    source: Path | None = None,
    includes: tuple[Path, ...] = (),
) -> ScriptResult:
    """Evaluate top-level variable commands against ``variables``.

    ``variables`` is read for reference expansion and never modified;
    the returned ``ScriptResult.variables`` holds what the script set.
    ``include()`` paths are resolved against the directory of
    ``source`` (the cwd when evaluating text that has no file), and
    what the included file sets counts as set by this script.
    ``includes`` lists the files already being evaluated.
    """
    scope = dict(variables or {})
    env = dict(environment or {})
    result = ScriptResult(commands=commands)
    depth = 0

    for command in commands:
        ident = command.identifier
        if ident in _BLOCK_OPENERS:
            depth += 1
            continue
        if ident in _BLOCK_CLOSERS:
            depth = max(depth - 1, 0)
            continue
        if depth:
            continue

        args = expand_arguments(command.arguments, scope, env)
        if ident == "set":
            _eval_set(args, scope, env, result)
        elif ident == "unset":
            _eval_unset(args, scope, result)
        elif ident == "list" and len(args) >= 2 and args[0] == "APPEND":
            name = args[1]
            items = scope.get(name, "").split(";") if scope.get(name) else []
            items.extend(args[2:])
            _assign(name, ";".join(items), scope, result)
        elif ident == "include":
            _eval_include(args, scope, env, result, source, includes)
        else:
            logger.debug("Skipping %s() at line %d", command.name, command.line)

    return result


def _assign(name: str, value: str, scope: dict[str, str], result: ScriptResult) -> None:
    scope[name] = value
    result.variables[name] = value
    if name in result.unset:
        result.unset.remove(name)


def _eval_set(
    args: list[str],
    scope: dict[str, str],
    env: dict[str, str],
    result: ScriptResult,
) -> None:
    if not args:
        return
    name, values = args[0], args[1:]

    env_match = re.fullmatch(r"ENV\{(.+)\}", name)
    if env_match:
        env[env_match.group(1)] = values[0] if values else ""
        result.environment[env_match.group(1)] = env[env_match.group(1)]
        return

    if values and values[-1] == "PARENT_SCOPE":
        values = values[:-1]

    if "CACHE" in values:
        index = values.index("CACHE")
        force = values[-1] == "FORCE"
        cached = values[:index]
        if name in scope and not force:
            return
        _assign(name, ";".join(cached), scope, result)
        return

    if not values:
        _eval_unset([name], scope, result)
        return

    _assign(name, ";".join(values), scope, result)


def _eval_unset(args: list[str], scope: dict[str, str], result: ScriptResult) -> None:
    if not args:
        return
    name = args[0]
    scope.pop(name, None)
    result.variables.pop(name, None)
    if name not in result.unset:
        result.unset.append(name)


def _eval_include(
    args: list[str],
    scope: dict[str, str],
    env: dict[str, str],
    result: ScriptResult,
    source: Path | None,
    includes: tuple[Path, ...],
) -> None:
    if not args:
        return
    path = Path(args[0])
    if not path.is_absolute():
        path = (source.parent if source else Path.cwd()) / path
    if not path.is_file():
        if "OPTIONAL" in args[1:]:
            logger.debug("Optional include %s not found", path)
            return
        raise CMakeParseError(f"include could not find file: {args[0]}")

    stack = (*includes, source) if source else includes
    if path.resolve() in {p.resolve() for p in stack}:
        raise CMakeParseError(f"Recursive include of {path}")

    included = load_script(path, scope, env, includes=stack)
    for name in included.unset:
        _eval_unset([name], scope, result)
    for name, value in included.variables.items():
        _assign(name, value, scope, result)
    env.update(included.environment)
    result.environment.update(included.environment)


def load_script(
    path: Path,
    variables: Mapping[str, str] | None = None,
    environment: Mapping[str, str] | None = None,
    includes: tuple[Path, ...] = (),
) -> ScriptResult:
    """Parse and evaluate a .cmake file.

    ``CMAKE_CURRENT_LIST_FILE`` and ``CMAKE_CURRENT_LIST_DIR`` refer to
    ``path`` while it is evaluated.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise CMakeParseError(f"{path}: {e}") from e
    try:
        commands = parse_commands(text)
    except CMakeParseError as e:
        raise CMakeParseError(f"{path}: {e}") from e

    current = Path(path).absolute()
    scope = {
        **(variables or {}),
        "CMAKE_CURRENT_LIST_FILE": current.as_posix(),
        "CMAKE_CURRENT_LIST_DIR": current.parent.as_posix(),
    }
    return evaluate(commands, scope, environment, source=path, includes=includes)
