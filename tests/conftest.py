"""Shared fixtures. Puts ``src/`` on ``sys.path`` so tests run from a checkout."""
from __future__ import annotations

import sys
from pathlib import Path
from typing import Callable, Sequence

import pytest

ROOT = Path(__file__).resolve().parents[1]
for extra in (ROOT / "src", Path(__file__).resolve().parent):
    if str(extra) not in sys.path:
        sys.path.insert(0, str(extra))

from common.config import ModelParameters  # noqa: E402
from common.context import RunContext  # noqa: E402
from helpers import make_dates, write_price_file  # noqa: E402


@pytest.fixture
def params() -> ModelParameters:
    return ModelParameters(omega=6.28, m_coeff=0.38, t_crit=21.0, window=52)


@pytest.fixture
def host_context() -> RunContext:
    return RunContext(force_host=True, thread_count=3)


@pytest.fixture
def price_writer(tmp_path: Path) -> Callable[..., Path]:
    """Write ``<tmp>/<category>/<selection>/<selection>dailydata.csv``."""

    def _write(category: str, selection: str, prices: Sequence[float], dates: Sequence[str] | None = None) -> Path:
        dates = list(dates) if dates is not None else make_dates(len(prices))
        path = tmp_path / category / selection / f"{selection}dailydata.csv"
        return write_price_file(path, dates, prices)

    return _write
