from __future__ import annotations

from collections.abc import Mapping
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, ValidationError

from protocol_executors.core.errors import StepDecodeError


DEFAULT_ASSERTIONS: tuple[str, ...] = ("result.err ShouldBeEmpty",)

# Keys owned by the surrounding runner; every executor ignores them.
RESERVED_STEP_KEYS = frozenset({"type", "name", "assertions", "info", "vars", "retry", "retry_if", "delay", "skip"})

ConfigT = TypeVar("ConfigT", bound=BaseModel)


class StepConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)


class ExecutorResult(BaseModel):
    """Envelope shared by every executor result."""

    systemout: str = ""
    systemoutjson: Any = None
    systemerr: str = ""
    systemerrjson: Any = None
    err: str = ""
    timeseconds: float = 0.0

    def to_step_output(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


def decode_step(step: Mapping[str, Any], model: type[ConfigT]) -> ConfigT:
    if not isinstance(step, Mapping):
        raise StepDecodeError("STEP_DECODE_FAILED", f"Step must be a mapping, got {type(step).__name__}.")

    payload = {key: value for key, value in step.items() if key not in RESERVED_STEP_KEYS}
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc']) or '<step>'}: {error['msg']}" for error in exc.errors()
        )
        raise StepDecodeError("STEP_DECODE_FAILED", f"invalid step: {problems}") from exc
