"""One unit of bubble index work: a category, an instrument and a window.

Lifecycle::

    task = RunTask(params, "Stocks", "TSLA", cache, layout, context)
    task.run()           # scan the series, results or None
    task.write_output()  # append only rows beyond the prior output

Failures never leave the task. They set ``results`` to ``None``, mark the
status and keep a diagnostic message for the caller.
"""
from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Optional

import numpy as np

from common.config import ModelParameters
from common.context import RunContext
from common.errors import BubbleIndexError, DomainError, ExecutionError, FitError, OutputWriteError
from common.logging import task_logger
from data.cache import DailyDataCache
from data.layout import InstrumentPaths, PathResolver
from data.reader import read_price_series
from data.series import PriceSeries
from output.snapshot import entry_name_for, restore, snapshot
from output.writer import AppendOutcome, OutputRow, append_results, read_prior_rows
from scan.base import WindowScanEngine, result_length
from scan.factory import build_engine


class TaskStatus(str, Enum):
    PENDING = "pending"
    SKIPPED = "skipped"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class RunTask:
    def __init__(
        self,
        params: ModelParameters,
        category: str,
        selection: str,
        daily_cache: DailyDataCache,
        layout: PathResolver,
        context: RunContext,
        engine: Optional[WindowScanEngine] = None,
    ) -> None:
        self.params = params
        self.category = category
        self.selection = selection
        self.context = context
        self._engine = engine
        self.log = task_logger("run_task", category, selection, params.window)

        self.messages: list[str] = []
        self.error: Optional[str] = None
        self.status = TaskStatus.PENDING
        self.results: Optional[np.ndarray] = None
        self.persisted = False
        self.outcome: Optional[AppendOutcome] = None
        self.paths: Optional[InstrumentPaths] = None
        self.series = PriceSeries.empty(selection)
        self._prior_blob: Optional[bytes] = None
        self._prior_rows: list[OutputRow] = []

        self._publish(
            f"Initializing The Bubble Index. Category Name = {category}, Selection Name = {selection}, "
            f"Omega = {params.omega}, M = {params.m_coeff}, TCrit = {params.t_crit}, Window = {params.window}"
        )
        if context.stop_requested:
            self.status = TaskStatus.CANCELLED
            return

        self.paths = layout.resolve(category, selection, params.window)
        self._publish(f"Output File Path: {self.paths.output_file}")

        if selection in daily_cache:
            self.log.debug("Reusing cached prices for %s", selection)
        try:
            self.series = daily_cache.get_or_load(
                selection, lambda: read_price_series(self.paths.price_file, selection)
            )
        except BubbleIndexError as exc:
            self.mark_failed(f"Failed to load prices for {selection}: {exc}")
            return
        self._prior_blob = self._snapshot_prior_output(self.paths.output_file)

    @property
    def window(self) -> int:
        return self.params.window

    @property
    def total_periods(self) -> int:
        return result_length(len(self.series), self.window)

    @property
    def has_prior_output(self) -> bool:
        return self._prior_blob is not None

    def _publish(self, text: str) -> None:
        self.messages.append(text)
        self.context.publish(text)

    def _snapshot_prior_output(self, path: Path) -> Optional[bytes]:
        try:
            raw = path.read_bytes()
        except OSError:
            # no prior run for this window
            return None
        if not raw:
            return None
        return snapshot(raw, entry_name_for(self.selection))

    def mark_failed(self, message: str) -> None:
        self.results = None
        self.error = message
        self.status = TaskStatus.FAILED
        self.log.error("Task failed: %s", message)
        self._publish(f"Error: {message}")

    def cancel(self) -> None:
        self.results = None
        self._prior_blob = None
        if self.status != TaskStatus.FAILED:
            self.status = TaskStatus.CANCELLED

    def run(self) -> Optional[np.ndarray]:
        """Scan the series with the configured engine.

        Returns the result vector, or ``None`` if the task was skipped,
        cancelled or failed.
        """
        try:
            if self.status in (TaskStatus.FAILED, TaskStatus.CANCELLED):
                return None
            if self.context.stop_requested:
                self.cancel()
                return None
            if len(self.series) <= self.window:
                self.status = TaskStatus.SKIPPED
                self._publish(
                    f"Skipping {self.selection}: {len(self.series)} prices do not exceed window {self.window}"
                )
                return None

            self._prior_rows = read_prior_rows(restore(self._prior_blob))
            if self.context.stop_requested:
                self.cancel()
                return None

            engine = self._engine or build_engine(self.context)
            self._publish(
                f"Executing {engine.name.upper()} Run. Category Name = {self.category}, "
                f"Selection Name = {self.selection}"
            )
            try:
                self.results = engine.scan(self.series.prices, self.params)
            except (FitError, DomainError, ExecutionError) as exc:
                self.mark_failed(str(exc))
                return None

            if self.context.stop_requested:
                self.cancel()
                return None

            self.status = TaskStatus.COMPLETED
            self._publish(
                f"Completed processing for category: {self.category}, selection: {self.selection}, "
                f"window: {self.window}"
            )
            return self.results
        finally:
            self._prior_blob = None

    def write_output(self) -> Optional[AppendOutcome]:
        """Write the rows not yet present in the output file.

        I/O failures are recorded on the task (``persisted`` stays False).
        """
        if self.context.stop_requested:
            self.cancel()
            return None
        if self.results is None or self.results.size == 0 or self.paths is None:
            return None

        self._publish(f"Writing output file: {self.paths.output_file}")
        try:
            self.outcome = append_results(
                self.paths.output_file,
                self.results,
                self.series.date_strings(),
                self.total_periods,
                self._prior_rows,
            )
        except OutputWriteError as exc:
            self.error = str(exc)
            self.log.error("Failed to write csv output. Save path = %s. %s", self.paths.output_dir, exc)
            self._publish(f"Failed to write csv output. {exc}")
            return None
        finally:
            self._prior_rows = []

        self.persisted = True
        return self.outcome

    def summary(self) -> str:
        count = 0 if self.results is None else int(self.results.size)
        return (
            f"{self.category}/{self.selection} window={self.window} status={self.status.value} "
            f"results={count}" + (f" error={self.error}" if self.error else "")
        )

    def __repr__(self) -> str:
        return f"RunTask({self.summary()})"
