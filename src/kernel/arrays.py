"""Array and date helpers shared by the scan engines and the I/O layer."""
from __future__ import annotations

from typing import Iterable, Sequence

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view


def reverse(values: Sequence[float] | np.ndarray) -> np.ndarray:
    """Return a reversed float64 copy; the input is left untouched."""
    return np.asarray(values, dtype=np.float64)[::-1].copy()


def trailing_windows(values: np.ndarray, window: int) -> np.ndarray:
    """Read-only 2-D view with one row per trailing window.

    Row ``j`` holds ``values[j + 1 : j + 1 + window]``, i.e. the window ending
    at day ``t = window + j``. There are ``max(0, len(values) - window)`` rows,
    matching the number of admissible window ends.
    """
    values = np.asarray(values, dtype=np.float64)
    if window <= 0:
        raise ValueError("window must be positive")
    n_rows = max(0, values.shape[0] - window)
    if n_rows == 0:
        return np.empty((0, window), dtype=np.float64)
    return sliding_window_view(values[1:], window)[:n_rows]


def date_to_int(date_str: str) -> int:
    """``"YYYY-MM-DD"`` -> ``YYYYMMDD``."""
    digits = date_str.strip().replace("-", "")
    if len(digits) != 8 or not digits.isdigit():
        raise ValueError(f"Unsupported date: {date_str!r}")
    return int(digits)


def int_to_date(value: int) -> str:
    """``YYYYMMDD`` -> ``"YYYY-MM-DD"``."""
    raw = f"{int(value):08d}"
    return f"{raw[:4]}-{raw[4:6]}-{raw[6:]}"


def dates_to_ints(dates: Iterable[str]) -> np.ndarray:
    return np.array([date_to_int(d) for d in dates], dtype=np.int64)


def ints_to_dates(values: Iterable[int]) -> list[str]:
    return [int_to_date(v) for v in values]
