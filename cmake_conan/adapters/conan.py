"""
Conan adapter — run the conan executable and capture its output.

Locates the executable, reads its version, and executes fully
resolved command lines. Argument translation happens before an
action reaches this adapter; here argv is opaque.
"""

from __future__ import annotations

import logging
import os
import re
import shutil
import subprocess
import time
from collections.abc import Sequence
from pathlib import Path

from cmake_conan.adapters.base import Adapter, ExecutionContext
from cmake_conan.core.models.action import Receipt

logger = logging.getLogger(__name__)

_VERSION_RE = re.compile(r"Conan version (\d+\.\d+\.\d+)")


def find_conan(
    executable: str = "conan",
    hints: Sequence[str] = (),
) -> str | None:
    """Resolve the conan executable, searching ``hints`` before PATH.

    ``executable`` may be a bare name or a path. Returns the resolved
    path, or None if nothing was found.
    """
    candidate = Path(executable)
    if candidate.parent != Path(".") and candidate.is_file():
        return str(candidate)

    for hint in hints:
        found = shutil.which(executable, path=hint)
        if found:
            return found

    return shutil.which(executable)


def parse_conan_version(output: str) -> str | None:
    """Extract ``X.Y.Z`` from ``conan --version`` output."""
    match = _VERSION_RE.search(output)
    return match.group(1) if match else None


class ConanAdapter(Adapter):
    """Execute conan command lines.

    Action params:
        argv (list[str]): Full command line, executable first.
        env (dict[str, str]): Extra environment variables.
    """

    @property
    def name(self) -> str:
        return "conan"

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        if not context.argv:
            return False, "Missing required param: 'argv'"
        if not Path(context.working_dir).is_dir():
            return False, f"Working directory does not exist: {context.working_dir}"
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        argv = context.argv
        command = " ".join(argv)
        env = {**os.environ, **context.params.get("env", {})}

        logger.debug("Executing: %s (cwd=%s)", command, context.working_dir)
        start = time.monotonic()

        try:
            result = subprocess.run(
                argv,
                cwd=context.working_dir,
                env=env,
                capture_output=True,
                text=True,
            )
        except OSError as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"Command execution error: {e}",
                metadata={"command": command, "return_code": 127, "stderr": str(e)},
            )

        elapsed_ms = int((time.monotonic() - start) * 1000)
        metadata = {
            "command": command,
            "return_code": result.returncode,
            "stderr": result.stderr,
        }

        if result.returncode == 0:
            return Receipt.success(
                adapter=self.name,
                action_id=context.action.id,
                output=result.stdout,
                duration_ms=elapsed_ms,
                metadata=metadata,
            )
        return Receipt.failure(
            adapter=self.name,
            action_id=context.action.id,
            error=result.stderr.strip() or f"Command exited with code {result.returncode}",
            output=result.stdout,
            duration_ms=elapsed_ms,
            metadata=metadata,
        )
