"""Host-parallel window scan.

Rows of the trailing-window view are split into contiguous chunks, one per
worker thread. Every row writes only its own slot of the pre-allocated
result array, so the scan needs no locking beyond the join at the end.
"""
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import numpy as np

from common.config import ModelParameters
from common.errors import BubbleIndexError, ExecutionError
from common.logging import get_logger
from kernel.arrays import trailing_windows
from kernel.linalg import check_design_rank, design_matrix
from scan.base import WindowScanEngine, fit_window, result_length
from scan.regressors import Regressors, build_regressors

logger = get_logger("scan.host")


class HostScanEngine(WindowScanEngine):
    name = "host"

    def __init__(self, thread_count: int = 4) -> None:
        if thread_count < 1:
            raise ExecutionError(
                f"thread_count must be >= 1, got {thread_count}",
                context={"thread_count": thread_count},
            )
        self.thread_count = thread_count

    def _scan_chunk(
        self,
        windows: np.ndarray,
        regressors: Regressors,
        rows: np.ndarray,
        out: np.ndarray,
    ) -> None:
        for j in rows:
            out[j] = fit_window(windows[j], regressors).bubble_index

    def scan(self, prices: np.ndarray, params: ModelParameters) -> np.ndarray:
        prices = np.asarray(prices, dtype=np.float64)
        window = params.window
        n_out = result_length(prices.shape[0], window)
        out = np.empty(n_out, dtype=np.float64)
        if n_out == 0:
            return out

        regressors = build_regressors(params)
        check_design_rank(design_matrix(regressors.time_power, regressors.cos_term))

        # row j is the window ending at day window + j
        windows = trailing_windows(prices, window)
        chunks = [c for c in np.array_split(np.arange(n_out), min(self.thread_count, n_out)) if c.size]
        logger.debug(
            "Host scan: %d windows of %d days on %d threads", n_out, window, len(chunks)
        )

        try:
            with ThreadPoolExecutor(max_workers=self.thread_count, thread_name_prefix="bubble-scan") as pool:
                futures = [pool.submit(self._scan_chunk, windows, regressors, chunk, out) for chunk in chunks]
                for future in futures:
                    future.result()
        except BubbleIndexError:
            raise
        except Exception as exc:
            raise ExecutionError(
                f"Host scan failed: {exc}",
                context={"thread_count": self.thread_count, "window": window},
            ) from exc
        return out
