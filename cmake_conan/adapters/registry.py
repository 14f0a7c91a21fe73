"""
Adapter registry — dispatch of conan actions to an adapter.

The conan client never calls an adapter itself; it hands an ``Action``
to the registry and gets a ``Receipt`` back. In mock mode every action
goes to the mock adapter instead of the one named by the action.
"""

from __future__ import annotations

import logging
import time

from cmake_conan.adapters.base import Adapter, ExecutionContext
from cmake_conan.core.models.action import Action, Receipt

logger = logging.getLogger(__name__)


class AdapterRegistry:
    """Adapters by name, plus an optional mock that shadows them all."""

    def __init__(self):
        self._adapters: dict[str, Adapter] = {}
        self._mock_adapter: Adapter | None = None

    @property
    def mock_mode(self) -> bool:
        return self._mock_adapter is not None

    def set_mock_mode(self, enabled: bool, mock_adapter: Adapter | None = None) -> None:
        """Route every action to ``mock_adapter`` (or stop doing so)."""
        if enabled and mock_adapter is None:
            raise ValueError("Mock mode needs a mock adapter")
        self._mock_adapter = mock_adapter if enabled else None

    def register(self, adapter: Adapter) -> None:
        if adapter.name in self._adapters:
            logger.warning("Overwriting existing adapter: %s", adapter.name)
        self._adapters[adapter.name] = adapter
        logger.debug("Registered adapter: %s", adapter.name)

    def get(self, name: str) -> Adapter | None:
        return self._adapters.get(name)

    def execute_action(
        self,
        action: Action,
        working_dir: str = ".",
        dry_run: bool = False,
    ) -> Receipt:
        """Validate and run ``action``; never raises.

        A dry run validates the action and returns a skipped receipt
        carrying the command line that would have run.
        """
        start_time = time.monotonic()
        context = ExecutionContext(
            action=action,
            working_dir=working_dir,
            dry_run=dry_run,
            params=action.params,
        )

        adapter = self._mock_adapter or self._adapters.get(action.adapter)
        if adapter is None:
            return Receipt.failure(
                adapter=action.adapter,
                action_id=action.id,
                error=f"No adapter registered for '{action.adapter}'",
            )

        try:
            is_valid, error_msg = adapter.validate(context)
        except Exception as e:
            is_valid, error_msg = False, str(e)
        if not is_valid:
            return Receipt.failure(
                adapter=action.adapter,
                action_id=action.id,
                error=f"Validation failed: {error_msg}",
            )

        if dry_run:
            return Receipt.skip(
                adapter=action.adapter,
                action_id=action.id,
                reason=f"[dry-run] Would execute {' '.join(context.argv)}",
                metadata={"dry_run": True},
            )

        try:
            receipt = adapter.execute(context)
        except Exception as e:
            logger.error("Adapter %s raised while running %s: %s", adapter.name, action.name, e)
            receipt = Receipt.failure(
                adapter=action.adapter,
                action_id=action.id,
                error=f"Unexpected error: {e}",
            )

        receipt.duration_ms = int((time.monotonic() - start_time) * 1000)
        return receipt
