from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable

TaskFactory = Callable[[], Awaitable[Any]]


class WorkQueue:
    """Fixed pool of asyncio workers draining a FIFO of task factories.

    A failing task is logged and dropped; it never stops its worker or the
    other tasks of the batch. There is no retry.
    """

    def __init__(self, workers: int, logger: logging.Logger | logging.LoggerAdapter):
        if workers < 1:
            raise ValueError(f"workers must be positive, got {workers}")
        self.workers = workers
        self.logger = logger
        self._queue: asyncio.Queue[tuple[str, TaskFactory]] = asyncio.Queue()
        self._worker_tasks: list[asyncio.Task[None]] = []
        self.stats = {"submitted": 0, "succeeded": 0, "failed": 0}

    async def __aenter__(self) -> WorkQueue:
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        await self.stop()

    @property
    def running(self) -> bool:
        return bool(self._worker_tasks)

    def start(self) -> None:
        if self._worker_tasks:
            return
        self._worker_tasks = [
            asyncio.create_task(self._work(index), name=f"mailinchat-worker-{index}")
            for index in range(self.workers)
        ]

    async def stop(self) -> None:
        for task in self._worker_tasks:
            task.cancel()
        await asyncio.gather(*self._worker_tasks, return_exceptions=True)
        self._worker_tasks = []

    def submit(self, name: str, factory: TaskFactory) -> None:
        if not self._worker_tasks:
            raise RuntimeError("WorkQueue is not started")
        self.stats["submitted"] += 1
        self._queue.put_nowait((name, factory))

    async def join(self) -> None:
        await self._queue.join()

    async def _work(self, index: int) -> None:
        while True:
            name, factory = await self._queue.get()
            try:
                await factory()
                self.stats["succeeded"] += 1
            except asyncio.CancelledError:
                raise
            except Exception:  # noqa: BLE001
                self.stats["failed"] += 1
                self.logger.error("Task %s failed on worker %s", name, index, exc_info=True)
            finally:
                self._queue.task_done()
