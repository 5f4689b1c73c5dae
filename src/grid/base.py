"""Task distribution contract.

A grid holds one batch of run tasks keyed by caller-chosen integer handles.
``execute_all`` returns every submitted task exactly once, in no particular
order, and never raises because of a single task.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from common.context import RunContext
from common.errors import DuplicateHandleError
from common.logging import get_logger
from tasks.run_task import RunTask, TaskStatus

logger = get_logger("grid")


class TaskGrid(ABC):
    name: str = "base"

    def __init__(self, context: Optional[RunContext] = None) -> None:
        self.context = context
        self._batch: dict[int, RunTask] = {}
        self._deployed = False
        self._closed = False

    @property
    def pending(self) -> int:
        return len(self._batch)

    @property
    def handles(self) -> list[int]:
        return list(self._batch)

    def submit(self, handle: int, task: RunTask) -> None:
        """Register ``task`` under ``handle``.

        Raises:
            DuplicateHandleError: if ``handle`` is already in the batch; the
                first task stays registered.
        """
        if handle in self._batch:
            raise DuplicateHandleError(f"Handle {handle} already submitted", context={"handle": handle})
        self._batch[handle] = task

    def deploy(self) -> None:
        """Prepare workers; implicit on the first ``execute_all``."""
        if self._closed:
            raise RuntimeError(f"{self.name} grid has been shut down")
        self._deployed = True

    def _stop_requested(self, task: RunTask) -> bool:
        ctx = self.context or task.context
        return ctx.stop_requested

    def _execute_one(self, handle: int, task: RunTask) -> RunTask:
        if self._stop_requested(task):
            task.cancel()
            return task
        try:
            task.run()
            task.write_output()
        except Exception as exc:
            logger.exception("Task %d failed", handle, extra={"extra_data": dict(task.log.extra)})
            task.mark_failed(f"Unexpected failure: {exc}")
        return task

    @abstractmethod
    def _execute_batch(self, batch: dict[int, RunTask]) -> list[RunTask]:
        """Run every task of ``batch`` and return them."""

    def execute_all(self) -> list[RunTask]:
        if not self._deployed:
            self.deploy()
        batch, self._batch = self._batch, {}
        if not batch:
            return []
        logger.info("Executing %d tasks on %s grid", len(batch), self.name)
        done = self._execute_batch(batch)
        failed = sum(1 for t in done if t.status == TaskStatus.FAILED)
        logger.info("Batch finished: %d tasks, %d failed", len(done), failed)
        return done

    def shutdown(self) -> None:
        """Release workers; idempotent."""
        self._closed = True
        self._deployed = False

    def __enter__(self) -> "TaskGrid":
        self.deploy()
        return self

    def __exit__(self, *exc: object) -> None:
        self.shutdown()
