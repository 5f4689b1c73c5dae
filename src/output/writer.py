"""Append protocol for bubble index output files.

Rows are ``<period>,<value>,<date>``. For a series of ``n`` prices and a
window ``w`` there are ``total = n - w`` periods and row ``i`` of a result
vector of length ``k`` gets period ``total - k + i + 1``. When the existing
file already holds the leading periods, only the tail is appended and prior
rows are never renumbered.
"""
from __future__ import annotations

import io
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Sequence

import numpy as np
import polars as pl

from common.errors import OutputWriteError
from common.logging import get_logger

logger = get_logger("writer")

HEADER = "Period Number,Value,Date\n"


class WriteMode(str, Enum):
    CREATED = "created"
    APPENDED = "appended"
    UNCHANGED = "unchanged"
    REWRITTEN = "rewritten"


@dataclass(frozen=True)
class OutputRow:
    period: int
    value: float
    date: str


@dataclass(frozen=True)
class AppendOutcome:
    rows_written: int
    mode: WriteMode


def period_numbers(total_periods: int, n_results: int) -> np.ndarray:
    return np.arange(total_periods - n_results + 1, total_periods + 1, dtype=np.int64)


def format_value(value: float) -> str:
    return repr(float(value))


def format_rows(values: Sequence[float] | np.ndarray, dates: Sequence[str], total_periods: int) -> list[str]:
    """Output lines for ``values``, aligned to the last ``len(values)`` dates."""
    n = len(values)
    if n > len(dates):
        raise ValueError(f"{n} results but only {len(dates)} dates")
    periods = period_numbers(total_periods, n)
    offset = len(dates) - n
    return [
        f"{int(periods[i])},{format_value(values[i])},{dates[offset + i]}\n"
        for i in range(n)
    ]


def read_prior_rows(raw: Optional[bytes]) -> list[OutputRow]:
    """Parse a previous output file; the header line is optional."""
    if not raw or not raw.strip():
        return []
    try:
        frame = pl.read_csv(
            io.BytesIO(raw),
            has_header=False,
            infer_schema=False,
            truncate_ragged_lines=True,
        )
    except pl.exceptions.PolarsError as exc:
        logger.warning("Prior output is unreadable, ignoring it: %s", exc)
        return []
    if frame.width < 3:
        logger.warning("Prior output has %d columns, ignoring it", frame.width)
        return []
    period_col, value_col, date_col = frame.columns[:3]
    parsed = frame.select(
        pl.col(period_col).str.strip_chars().cast(pl.Int64, strict=False).alias("period"),
        pl.col(value_col).str.strip_chars().cast(pl.Float64, strict=False).alias("value"),
        pl.col(date_col).str.strip_chars().alias("date"),
    )
    valid = parsed.drop_nulls()
    skipped = parsed.height - valid.height
    if skipped and frame[period_col][0] == HEADER.split(",")[0]:
        skipped -= 1
    if skipped:
        logger.warning("Skipped %d malformed rows in prior output", skipped)
    return [OutputRow(period=p, value=v, date=d) for p, v, d in valid.iter_rows()]


def _prior_is_prefix(prior: Sequence[OutputRow], periods: np.ndarray, dates: Sequence[str]) -> bool:
    if len(prior) > len(periods):
        return False
    offset = len(dates) - len(periods)
    for j, row in enumerate(prior):
        if row.period != int(periods[j]) or row.date != dates[offset + j]:
            return False
    return True


def append_results(
    path: str | Path,
    values: Sequence[float] | np.ndarray,
    dates: Sequence[str],
    total_periods: int,
    prior_rows: Optional[Sequence[OutputRow]] = None,
) -> AppendOutcome:
    """Write ``values`` to ``path`` following the append protocol.

    * no prior rows: write header and every row;
    * prior rows are a prefix of this result: append only the rows after them;
    * anything else: rewrite the whole file.

    Raises:
        OutputWriteError: on any I/O failure.
    """
    path = Path(path)
    lines = format_rows(values, dates, total_periods)
    prior = list(prior_rows or [])

    if not prior:
        mode, text = WriteMode.CREATED, HEADER + "".join(lines)
        to_write = len(lines)
    elif path.exists() and _prior_is_prefix(prior, period_numbers(total_periods, len(values)), dates):
        tail = lines[len(prior):]
        if not tail:
            logger.debug("No new rows for %s", path)
            return AppendOutcome(rows_written=0, mode=WriteMode.UNCHANGED)
        mode, text = WriteMode.APPENDED, "".join(tail)
        to_write = len(tail)
    else:
        logger.warning("Prior output %s does not match the current history; rewriting it", path)
        mode, text = WriteMode.REWRITTEN, HEADER + "".join(lines)
        to_write = len(lines)

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "a" if mode == WriteMode.APPENDED else "w", encoding="utf-8", newline="") as f:
            f.write(text)
    except OSError as exc:
        raise OutputWriteError(f"Failed to write csv output: {exc}", target=str(path)) from exc

    logger.info("Wrote %d rows to %s (%s)", to_write, path, mode.value)
    return AppendOutcome(rows_written=to_write, mode=mode)
