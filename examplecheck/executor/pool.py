from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Protocol, cast

from examplecheck.config import RunnerConfig
from examplecheck.discovery import Task

from .executor import Executor
from .types import PoolStats, RunResult, TaskResult

logger = logging.getLogger(__name__)

StartCallback = Callable[[int, int, Task], None]
FinishCallback = Callable[[int, int, TaskResult], None]


class SupportsExecute(Protocol):
    async def execute(self, task: Task) -> TaskResult: ...


class ProgressListener(Protocol):
    def task_started(self, index: int, total: int, task: Task) -> None: ...

    def task_finished(self, index: int, total: int, result: TaskResult) -> None: ...


class WorkerPool:
    """Runs tasks with at most ``concurrency`` executions in flight.

    Workers pull the next unclaimed index from a shared cursor, so a slot
    freed by a fast task is reused immediately. Results are stored by index
    and keep discovery order whatever the completion order.
    """

    def __init__(
        self,
        executor: SupportsExecute,
        concurrency: int,
        *,
        on_start: StartCallback | None = None,
        on_finish: FinishCallback | None = None,
    ):
        if concurrency < 1:
            raise ValueError(f"concurrency must be at least 1, got {concurrency}")

        self.executor = executor
        self.concurrency = concurrency
        self.on_start = on_start
        self.on_finish = on_finish
        self.stats = PoolStats()
        self._next_index = 0

    async def run(self, tasks: list[Task]) -> list[TaskResult]:
        total = len(tasks)
        results: list[TaskResult | None] = [None] * total
        self._next_index = 0
        self.stats = PoolStats()

        async def worker() -> None:
            while True:
                # No await between the read and the increment.
                index = self._next_index
                self._next_index += 1
                if index >= total:
                    return

                task = tasks[index]
                if self.on_start is not None:
                    self.on_start(index, total, task)

                result = await self._execute_one(task)
                results[index] = result
                self.stats.record(result)

                if self.on_finish is not None:
                    self.on_finish(index, total, result)

        workers = [worker() for _ in range(min(self.concurrency, total))]
        await asyncio.gather(*workers)

        return collect_results(results)

    async def _execute_one(self, task: Task) -> TaskResult:
        start = time.monotonic()
        try:
            return await self.executor.execute(task)
        except Exception as exc:
            logger.exception("Unexpected error while running %s", task.path)
            return TaskResult(
                task.path,
                False,
                int((time.monotonic() - start) * 1000),
                f"Unexpected error: {exc}",
            )


def collect_results(results: list[TaskResult | None]) -> list[TaskResult]:
    missing = [index for index, result in enumerate(results) if result is None]
    if missing:
        raise RuntimeError(f"No result recorded for task indexes {missing}")
    return cast(list[TaskResult], results)


def run_tasks(
    tasks: list[Task],
    config: RunnerConfig,
    listener: ProgressListener | None = None,
    executor: SupportsExecute | None = None,
) -> RunResult:
    pool = WorkerPool(
        executor or Executor(config),
        config.concurrency,
        on_start=listener.task_started if listener is not None else None,
        on_finish=listener.task_finished if listener is not None else None,
    )

    start = time.monotonic()
    results = asyncio.run(pool.run(tasks))
    duration_ms = int((time.monotonic() - start) * 1000)

    return RunResult(tasks, results, duration_ms, pool.stats)
