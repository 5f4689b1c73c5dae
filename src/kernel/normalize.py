"""Return normalisation.

A price window is turned into simple returns, re-accumulated into a
synthetic series that starts at 100.0, and log transformed. The result does
not depend on the price level of the instrument, only on its returns.
"""
from __future__ import annotations

from typing import Any, Sequence

import numpy as np

from common.errors import DomainError

BASE_LEVEL = 100.0


def _check_prices(prices: np.ndarray) -> None:
    if not np.all(np.isfinite(prices)):
        raise DomainError("Non-finite price in series")
    if np.any(prices <= 0.0):
        raise DomainError(
            "Non-positive price in series",
            context={"min_price": float(prices.min())},
        )


def growth_factors(windows: Any) -> Any:
    """``1 + r_i`` for ``i >= 1`` along the last axis.

    Uses only slicing and arithmetic, so numpy arrays and torch tensors both
    work; the accelerator path normalises with the same definition.
    """
    return 1.0 + (windows[..., 1:] - windows[..., :-1]) / windows[..., :-1]


def normalize_log_returns_batch(windows: np.ndarray) -> np.ndarray:
    """Row-wise normalisation of a ``(n_windows, window)`` matrix.

    ``r_i = (p_i - p_{i-1}) / p_{i-1}``, ``v_0 = 100``,
    ``v_i = v_{i-1} + v_{i-1} * r_i``; each row becomes ``ln(v)``.

    Raises:
        DomainError: if any price is not strictly positive.
    """
    w = np.asarray(windows, dtype=np.float64)
    if w.ndim != 2:
        raise ValueError("windows must be two-dimensional")
    if w.size == 0:
        return np.empty_like(w)
    _check_prices(w)

    growth = np.empty_like(w)
    growth[:, 0] = BASE_LEVEL
    growth[:, 1:] = growth_factors(w)
    return np.log(np.multiply.accumulate(growth, axis=1))


def normalize_log_returns(prices: Sequence[float] | np.ndarray) -> np.ndarray:
    """Log of the synthetic 100-based price series implied by ``prices``.

    Index 0 is always ``ln(100)``; an empty input gives an empty result.
    """
    p = np.asarray(prices, dtype=np.float64)
    if p.ndim != 1:
        raise ValueError("prices must be one-dimensional")
    return normalize_log_returns_batch(p[np.newaxis, :])[0]
