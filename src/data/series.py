from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np

from kernel.arrays import dates_to_ints, ints_to_dates


@dataclass(frozen=True)
class PriceSeries:
    """Daily closes keyed by ``YYYYMMDD`` dates, strictly increasing.

    Arrays are made read-only on construction; several run tasks share one
    instance through the daily data cache.
    """

    selection: str
    dates: np.ndarray
    prices: np.ndarray

    def __post_init__(self) -> None:
        dates = np.asarray(self.dates, dtype=np.int64)
        prices = np.asarray(self.prices, dtype=np.float64)
        if dates.ndim != 1 or dates.shape != prices.shape:
            raise ValueError("dates and prices must be one-dimensional and of equal length")
        if dates.size > 1 and not np.all(np.diff(dates) > 0):
            raise ValueError(f"Dates for {self.selection} must be unique and strictly increasing")
        dates.flags.writeable = False
        prices.flags.writeable = False
        object.__setattr__(self, "dates", dates)
        object.__setattr__(self, "prices", prices)

    @classmethod
    def from_strings(cls, selection: str, dates: Sequence[str], prices: Sequence[str | float]) -> "PriceSeries":
        return cls(
            selection=selection,
            dates=dates_to_ints(dates),
            prices=np.array([float(p) for p in prices], dtype=np.float64),
        )

    @classmethod
    def empty(cls, selection: str) -> "PriceSeries":
        return cls(selection=selection, dates=np.empty(0, dtype=np.int64), prices=np.empty(0, dtype=np.float64))

    def __len__(self) -> int:
        return int(self.prices.shape[0])

    def date_strings(self) -> list[str]:
        return ints_to_dates(self.dates)
