from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

import numpy as np

from common.config import ModelParameters
from kernel.arrays import reverse
from kernel.linalg import fit_three_parameter
from kernel.normalize import normalize_log_returns
from scan.regressors import Regressors


@dataclass(frozen=True)
class WindowFit:
    """Per-window fit artifact; never persisted."""

    log_price: np.ndarray
    time_power: np.ndarray
    cos_term: np.ndarray
    intercept: float
    power_coeff: float
    cos_coeff: float

    @property
    def bubble_index(self) -> float:
        return bubble_index(self.power_coeff)


def bubble_index(power_coeff: float) -> float:
    """Daily statistic: the negated coefficient of ``tau ** m``.

    A negative power coefficient means log prices rise as the critical time
    approaches, so positive values flag bubble-like acceleration.
    """
    return -power_coeff


def result_length(n_prices: int, window: int) -> int:
    return max(0, n_prices - window)


def fit_window(window_prices: np.ndarray, regressors: Regressors) -> WindowFit:
    """Normalise one chronological window (walked from its last day) and fit it."""
    log_price = normalize_log_returns(reverse(window_prices))
    coef = fit_three_parameter(log_price, regressors.time_power, regressors.cos_term)
    return WindowFit(
        log_price=log_price,
        time_power=regressors.time_power,
        cos_term=regressors.cos_term,
        intercept=coef.a,
        power_coeff=coef.b,
        cos_coeff=coef.c,
    )


class WindowScanEngine(ABC):
    """Computes one bubble index value per admissible day of a price series."""

    name: str = "base"

    @abstractmethod
    def scan(self, prices: np.ndarray, params: ModelParameters) -> np.ndarray:
        """Return ``max(0, len(prices) - window)`` values, one per window end.

        Entry ``j`` belongs to the window ending at day ``window + j``.
        """
