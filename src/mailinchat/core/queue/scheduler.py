from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable


class IntervalScheduler:
    """Fires ``job`` every ``interval`` seconds.

    Each firing runs as its own task, so a slow cycle does not delay the next
    one and cycles may overlap.
    """

    def __init__(
        self,
        interval: float,
        job: Callable[[], Awaitable[Any]],
        logger: logging.Logger | logging.LoggerAdapter,
        name: str = "fetch",
    ):
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self.interval = interval
        self.job = job
        self.logger = logger
        self.name = name
        self.fired = 0
        self._active: set[asyncio.Task[Any]] = set()

    @property
    def active_cycles(self) -> int:
        return len(self._active)

    def _on_done(self, task: asyncio.Task[Any]) -> None:
        self._active.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self.logger.error("Scheduled %s cycle failed: %s", self.name, exc, exc_info=exc)

    def fire(self) -> asyncio.Task[Any]:
        self.fired += 1
        task = asyncio.create_task(self.job(), name=f"{self.name}-cycle-{self.fired}")
        self._active.add(task)
        task.add_done_callback(self._on_done)
        return task

    async def run(self, iterations: int | None = None) -> None:
        try:
            while iterations is None or self.fired < iterations:
                self.fire()
                if iterations is not None and self.fired >= iterations:
                    break
                await asyncio.sleep(self.interval)
        finally:
            await self.drain()

    async def drain(self) -> None:
        if self._active:
            await asyncio.gather(*list(self._active), return_exceptions=True)
