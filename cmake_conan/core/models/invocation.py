"""
Argument shapes, invocations and results for conan subcommands.
"""

from __future__ import annotations

import shlex

from pydantic import BaseModel, ConfigDict, Field


class ArgumentSpec(BaseModel):
    """The argument names one conan subcommand accepts.

    Names are UPPER_SNAKE, as a CMake caller would spell them.
    ``options`` are flags, ``one_values`` take a single value and
    ``multi_values`` take any number of values.
    """

    model_config = ConfigDict(frozen=True)

    options: tuple[str, ...] = ()
    one_values: tuple[str, ...] = ()
    multi_values: tuple[str, ...] = ()

    @property
    def keywords(self) -> tuple[str, ...]:
        return self.options + self.one_values + self.multi_values


class ParsedArguments(BaseModel):
    """Result of keyword-list parsing.

    A name appears in ``one_values``/``multi_values`` only if its keyword
    was present, so "given but empty" and "not given" stay distinct.
    """

    options: dict[str, bool] = Field(default_factory=dict)
    one_values: dict[str, str] = Field(default_factory=dict)
    multi_values: dict[str, list[str]] = Field(default_factory=dict)
    unparsed: list[str] = Field(default_factory=list)

    def is_set(self, name: str) -> bool:
        return self.options.get(name, False)

    def value(self, name: str, default: str | None = None) -> str | None:
        return self.one_values.get(name, default)

    def values(self, name: str) -> list[str]:
        return self.multi_values.get(name, [])


class Invocation(BaseModel):
    """A resolved conan command line and where to run it."""

    executable: str
    arguments: list[str] = Field(default_factory=list)
    working_directory: str
    env: dict[str, str] = Field(default_factory=dict)

    @property
    def argv(self) -> list[str]:
        return [self.executable, *self.arguments]

    @property
    def command_line(self) -> str:
        return " ".join(shlex.quote(part) for part in self.argv)


class ConanResult(BaseModel):
    """What one conan subcommand produced."""

    invocation: Invocation
    return_code: int = 0
    stdout: str = ""
    stderr: str = ""
    executed: bool = True

    @property
    def ok(self) -> bool:
        return self.return_code == 0

    def to_dict(self) -> dict:
        return {
            "command": self.invocation.argv,
            "working_directory": self.invocation.working_directory,
            "return_code": self.return_code,
            "stdout": self.stdout,
            "stderr": self.stderr,
            "executed": self.executed,
        }
