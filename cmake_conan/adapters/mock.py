"""
Mock adapter — test double for the conan executable.

Used in mock mode to simulate conan without touching the system.
Responses are configured per subcommand (the action name, e.g.
``install`` or ``remote add``); everything else succeeds.
"""

from __future__ import annotations

from cmake_conan.adapters.base import Adapter, ExecutionContext
from cmake_conan.core.models.action import Receipt

DEFAULT_VERSION_OUTPUT = "Conan version 1.20.0"


class MockAdapter(Adapter):
    """Universal mock adapter for testing.

    By default, returns success for everything and answers
    ``--version`` with ``Conan version 1.20.0``.
    """

    def __init__(
        self,
        adapter_name: str = "mock",
        default_output: str = "[mock] executed",
        version_output: str = DEFAULT_VERSION_OUTPUT,
    ):
        self._name = adapter_name
        self._default_output = default_output
        self._version_output = version_output
        self._responses: dict[str, Receipt] = {}
        self._call_log: list[ExecutionContext] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def call_log(self) -> list[ExecutionContext]:
        """All execution contexts this mock has received."""
        return self._call_log

    @property
    def call_count(self) -> int:
        """Number of times execute has been called."""
        return len(self._call_log)

    @property
    def commands(self) -> list[list[str]]:
        """argv of every call, executable dropped."""
        return [ctx.argv[1:] for ctx in self._call_log]

    def set_output(self, command: str, stdout: str, stderr: str = "") -> None:
        """Configure a subcommand to succeed with the given output."""
        self._responses[command] = Receipt.success(
            adapter=self._name,
            action_id=command,
            output=stdout,
            metadata={"return_code": 0, "stderr": stderr},
        )

    def set_failure(
        self,
        command: str,
        error: str = "Mock failure",
        return_code: int = 1,
        stdout: str = "",
    ) -> None:
        """Configure a subcommand to fail."""
        self._responses[command] = Receipt.failure(
            adapter=self._name,
            action_id=command,
            error=error,
            output=stdout,
            metadata={"return_code": return_code, "stderr": error},
        )

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        self._call_log.append(context)

        if context.action.name in self._responses:
            return self._responses[context.action.name]

        if context.action.name == "--version":
            output = self._version_output
        else:
            output = self._default_output

        return Receipt.success(
            adapter=self._name,
            action_id=context.action.id,
            output=output,
            metadata={"mock": True, "return_code": 0, "stderr": ""},
        )
