from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from protocol_executors.core.context import StepContext
from protocol_executors.core.errors import StepDecodeError
from protocol_executors.core.interfaces import ProtocolExecutor
from protocol_executors.core.models import ExecutorResult
from protocol_executors.services.dns_executor import DnsExecutor
from protocol_executors.services.radius_executor import RadiusExecutor


class ExecutorRegistry:
    """Routes a step to the executor named by its ``type`` key."""

    def __init__(self, executors: Iterable[ProtocolExecutor] = (), logger: logging.Logger | None = None) -> None:
        self._executors: dict[str, ProtocolExecutor] = {}
        self._logger = logger or logging.getLogger(__name__)
        for executor in executors:
            self.register(executor)

    def register(self, executor: ProtocolExecutor) -> None:
        if executor.name in self._executors:
            raise ValueError(f"Executor '{executor.name}' is already registered.")
        self._executors[executor.name] = executor

    def names(self) -> list[str]:
        return sorted(self._executors)

    def get(self, name: str) -> ProtocolExecutor:
        executor = self._executors.get(name)
        if executor is None:
            raise StepDecodeError(
                "UNKNOWN_EXECUTOR",
                f"No executor registered for type '{name}'. Available: {', '.join(self.names())}",
            )
        return executor

    async def run_step(self, step: Mapping[str, Any], context: StepContext | None = None) -> ExecutorResult:
        step_type = step.get("type")
        if not isinstance(step_type, str) or not step_type.strip():
            raise StepDecodeError("STEP_DECODE_FAILED", "Step must include a non-empty 'type'.")

        executor = self.get(step_type.strip())
        self._logger.info("Running %s step.", executor.name)
        return await executor.run(step, context)


def build_default_registry() -> ExecutorRegistry:
    return ExecutorRegistry([RadiusExecutor(), DnsExecutor()])
