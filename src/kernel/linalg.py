"""Three-parameter ordinary least squares.

Fits ``y ~ a + b * x1 + c * x2``. The engines call this once per window, so
it stays allocation-light and raises instead of returning partial results.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np

from common.errors import FitError

N_COEFFS = 3


@dataclass(frozen=True)
class FitCoefficients:
    """Solution of one window fit.

    Attributes:
        a: Intercept.
        b: Coefficient of the time-power regressor.
        c: Coefficient of the log-periodic cosine regressor.
    """

    a: float
    b: float
    c: float

    def as_array(self) -> np.ndarray:
        return np.array([self.a, self.b, self.c], dtype=np.float64)


def design_matrix(x1: Sequence[float] | np.ndarray, x2: Sequence[float] | np.ndarray) -> np.ndarray:
    """``(n, 3)`` design with an intercept column followed by ``x1`` and ``x2``."""
    x1 = np.asarray(x1, dtype=np.float64)
    x2 = np.asarray(x2, dtype=np.float64)
    if x1.ndim != 1 or x1.shape != x2.shape:
        raise FitError(
            "Regressors must be one-dimensional and of equal length",
            context={"x1_shape": x1.shape, "x2_shape": x2.shape},
        )
    return np.column_stack([np.ones_like(x1), x1, x2])


def check_design_rank(design: np.ndarray) -> None:
    """Raise :class:`FitError` unless ``design`` has full column rank."""
    n = design.shape[0]
    if n < N_COEFFS:
        raise FitError(f"Need at least {N_COEFFS} observations, got {n}", context={"n": n})
    if not np.all(np.isfinite(design)):
        raise FitError("Design matrix contains non-finite values")
    rank = int(np.linalg.matrix_rank(design))
    if rank < N_COEFFS:
        raise FitError(
            f"Design matrix is rank deficient (rank {rank})",
            context={"rank": rank, "n": n},
        )


def fit_three_parameter(
    y: Sequence[float] | np.ndarray,
    x1: Sequence[float] | np.ndarray,
    x2: Sequence[float] | np.ndarray,
) -> FitCoefficients:
    """Least-squares ``{a, b, c}`` for ``y ~ a + b * x1 + c * x2``.

    Raises:
        FitError: fewer than three observations, mismatched lengths,
            non-finite inputs or a rank-deficient design.
    """
    y = np.asarray(y, dtype=np.float64)
    design = design_matrix(x1, x2)
    if y.shape != (design.shape[0],):
        raise FitError(
            "Response length does not match regressors",
            context={"y_shape": y.shape, "n": design.shape[0]},
        )
    if not np.all(np.isfinite(y)):
        raise FitError("Response contains non-finite values")
    check_design_rank(design)

    coef, _, rank, _ = np.linalg.lstsq(design, y, rcond=None)
    if rank < N_COEFFS:
        raise FitError(f"Design matrix is rank deficient (rank {rank})", context={"rank": int(rank)})
    return FitCoefficients(a=float(coef[0]), b=float(coef[1]), c=float(coef[2]))

