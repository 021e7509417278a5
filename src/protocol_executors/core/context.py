from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field


@dataclass(slots=True)
class StepContext:
    """Deadline and cancellation signal shared by one or more step runs.

    ``deadline`` is an absolute ``time.monotonic()`` value. Executors narrow it
    with their own timeout and never extend it.
    """

    deadline: float | None = None
    _cancelled: asyncio.Event = field(default_factory=asyncio.Event, repr=False)

    @classmethod
    def with_timeout(cls, seconds: float) -> "StepContext":
        return cls(deadline=time.monotonic() + seconds)

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    async def wait_cancelled(self) -> None:
        await self._cancelled.wait()

    def narrow(self, timeout_seconds: float) -> float:
        """Return the effective deadline for an operation bounded by ``timeout_seconds``."""
        local_deadline = time.monotonic() + timeout_seconds
        if self.deadline is None:
            return local_deadline
        return min(self.deadline, local_deadline)
