from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol

from protocol_executors.core.context import StepContext
from protocol_executors.core.models import ExecutorResult


class ProtocolExecutor(Protocol):
    name: str

    def zero_value_result(self) -> ExecutorResult:
        ...

    def get_default_assertions(self) -> list[str]:
        ...

    async def run(self, step: Mapping[str, Any], context: StepContext | None = None) -> ExecutorResult:
        ...
