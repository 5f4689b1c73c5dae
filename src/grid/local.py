from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional

from common.context import RunContext
from common.logging import get_logger
from grid.base import TaskGrid
from tasks.run_task import RunTask

logger = get_logger("grid.local")


class SequentialGrid(TaskGrid):
    """Runs tasks one after another on the calling thread."""

    name = "sequential"

    def _execute_batch(self, batch: dict[int, RunTask]) -> list[RunTask]:
        return [self._execute_one(handle, task) for handle, task in batch.items()]


class ThreadPoolGrid(TaskGrid):
    """Runs tasks concurrently on a pool created by :meth:`deploy`."""

    name = "threads"

    def __init__(self, workers: int = 2, context: Optional[RunContext] = None) -> None:
        super().__init__(context)
        if workers < 1:
            raise ValueError("workers must be >= 1")
        self.workers = workers
        self._pool: Optional[ThreadPoolExecutor] = None

    def deploy(self) -> None:
        super().deploy()
        if self._pool is None:
            self._pool = ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix="bubble-grid")
            logger.debug("Deployed thread pool with %d workers", self.workers)

    def _execute_batch(self, batch: dict[int, RunTask]) -> list[RunTask]:
        if self._pool is None:
            raise RuntimeError(f"{self.name} grid is not deployed")
        futures: dict[int, Future] = {}
        done: list[RunTask] = []
        for handle, task in batch.items():
            try:
                futures[handle] = self._pool.submit(self._execute_one, handle, task)
            except RuntimeError as exc:
                logger.error("Could not schedule task %d: %s", handle, exc, extra={"extra_data": dict(task.log.extra)})
                task.mark_failed(f"Worker failure: {exc}")
                done.append(task)
        for handle, future in futures.items():
            task = batch[handle]
            try:
                done.append(future.result())
            except Exception as exc:
                logger.exception("Worker for task %d failed", handle, extra={"extra_data": dict(task.log.extra)})
                task.mark_failed(f"Worker failure: {exc}")
                done.append(task)
        return done

    def shutdown(self) -> None:
        if self._pool is not None:
            self._pool.shutdown(wait=True)
            self._pool = None
            logger.debug("Thread pool shut down")
        super().shutdown()
