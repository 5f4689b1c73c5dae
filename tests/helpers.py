from __future__ import annotations

import datetime as dt
from pathlib import Path
from typing import Sequence

import numpy as np


def make_dates(n: int, start: tuple[int, int, int] = (2015, 1, 1)) -> list[str]:
    first = dt.date(*start)
    return [(first + dt.timedelta(days=i)).isoformat() for i in range(n)]


def random_walk(n: int, seed: int = 7, drift: float = 0.001, vol: float = 0.02) -> np.ndarray:
    rng = np.random.default_rng(seed)
    return 100.0 * np.exp(np.cumsum(rng.normal(drift, vol, n)))


def write_price_file(path: Path, dates: Sequence[str], prices: Sequence[float], sep: str = ",") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        for d, p in zip(dates, prices):
            f.write(f"{d}{sep}{float(p)!r}\n")
    return path
