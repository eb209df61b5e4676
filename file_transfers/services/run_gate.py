"""Single-flight gate and completion barrier for transfer jobs.

Each transfer kind owns one RunGate, so at most one porklock process per
kind runs at a time, and one CompletionBarrier that blocking requests
await until the in-flight job of that kind finishes.
"""

import asyncio
from typing import Callable, Optional

import structlog

from file_transfers.models.transfer import TransferKind

logger = structlog.get_logger(__name__)

Precondition = Callable[[], bool]


class RunGate:
    """Per-kind exclusivity flag with atomic check-and-set."""

    def __init__(self, kind: TransferKind) -> None:
        self.kind = kind
        self._running = False
        self._lock = asyncio.Lock()

    @property
    def running(self) -> bool:
        return self._running

    async def try_acquire(self, precondition: Optional[Precondition] = None) -> bool:
        """Mark the gate as running if it is free and the precondition holds.

        The precondition is evaluated while the gate lock is held, so the
        check and the flag update form one critical section.

        Args:
            precondition: Optional callable that must return True for a
                launch to be allowed (e.g. the download path list exists).

        Returns:
            True if the caller now owns the gate, False otherwise. A False
            result leaves the gate untouched.
        """
        async with self._lock:
            if self._running:
                logger.debug("run_gate_busy", kind=self.kind.value)
                return False

            if precondition is not None and not precondition():
                logger.info("run_gate_precondition_failed", kind=self.kind.value)
                return False

            self._running = True

        logger.debug("run_gate_acquired", kind=self.kind.value)
        return True

    async def release(self) -> None:
        """Mark the gate as free. Called once per successful try_acquire."""
        async with self._lock:
            if not self._running:
                logger.warning("run_gate_released_while_free", kind=self.kind.value)
            self._running = False

        logger.debug("run_gate_released", kind=self.kind.value)


class CompletionBarrier:
    """Counting barrier that blocking requests wait on.

    The count is incremented before a job is launched and decremented when
    the job finishes. All waiters are released together once the count
    returns to zero; waiting on an idle barrier returns immediately.
    """

    def __init__(self) -> None:
        self._count = 0
        self._idle = asyncio.Event()
        self._idle.set()

    @property
    def count(self) -> int:
        return self._count

    def add(self, delta: int = 1) -> None:
        self._count += delta
        if self._count < 0:
            raise ValueError("CompletionBarrier count cannot be negative")
        if self._count == 0:
            self._idle.set()
        else:
            self._idle.clear()

    def done(self) -> None:
        self.add(-1)

    async def wait(self) -> None:
        await self._idle.wait()
