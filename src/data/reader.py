"""Two-column price file reader.

Files hold ``date,price`` rows; each line may use a comma or a tab. Bubble
index output files can be read back in ``update`` mode, which skips the
leading period-number column.
"""
from __future__ import annotations

import io
from pathlib import Path

import polars as pl

from common.errors import SeriesReadError
from common.logging import get_logger
from data.series import PriceSeries

logger = get_logger("reader")


def _unify_separators(raw: bytes) -> bytes:
    # any line may use a comma or a tab
    return raw.replace(b"\t", b",")


def read_price_bytes(
    raw: bytes,
    selection: str,
    *,
    header: bool = False,
    update: bool = False,
    source: str = "<bytes>",
) -> PriceSeries:
    """Parse price rows from raw bytes.

    Rows with an unparsable date or a missing, non-numeric or non-finite
    price are skipped and counted in a warning. Duplicate dates keep their
    first row; rows are sorted by date.

    Raises:
        SeriesReadError: if the bytes cannot be parsed as delimited text.
    """
    if not raw.strip():
        logger.warning("Price source %s is empty", source)
        return PriceSeries.empty(selection)

    try:
        frame = pl.read_csv(
            io.BytesIO(_unify_separators(raw)),
            has_header=False,
            separator=",",
            skip_rows=1 if header else 0,
            infer_schema=False,
            truncate_ragged_lines=True,
        )
    except pl.exceptions.NoDataError:
        return PriceSeries.empty(selection)
    except pl.exceptions.PolarsError as exc:
        raise SeriesReadError(f"Error while reading file = {source}", context={"error": str(exc)}) from exc

    offset = 1 if update else 0
    if frame.width < offset + 2:
        raise SeriesReadError(
            f"Expected at least {offset + 2} columns in {source}, found {frame.width}",
            context={"columns": frame.width},
        )
    date_col, price_col = frame.columns[offset], frame.columns[offset + 1]

    parsed = frame.select(
        pl.col(date_col).str.strip_chars().str.replace_all("-", "").alias("date_raw"),
        pl.col(price_col).str.strip_chars().cast(pl.Float64, strict=False).alias("price"),
    ).with_columns(
        pl.when(pl.col("date_raw").str.contains(r"^\d{8}$"))
        .then(pl.col("date_raw").cast(pl.Int64, strict=False))
        .otherwise(None)
        .alias("date")
    )
    valid = parsed.drop_nulls(["date", "price"]).filter(pl.col("price").is_finite())
    skipped = parsed.height - valid.height
    if skipped:
        logger.warning("Skipped %d malformed rows in %s", skipped, source)

    valid = valid.unique(subset="date", keep="first", maintain_order=True)
    duplicates = parsed.height - skipped - valid.height
    if duplicates:
        logger.warning("Dropped %d duplicate dates in %s", duplicates, source)
    valid = valid.sort("date")

    return PriceSeries(
        selection=selection,
        dates=valid["date"].to_numpy(),
        prices=valid["price"].to_numpy(),
    )


def read_price_series(
    path: str | Path,
    selection: str,
    *,
    header: bool = False,
    update: bool = False,
) -> PriceSeries:
    """Read a price file from disk.

    Raises:
        SeriesReadError: if the file is missing or unreadable.
    """
    path = Path(path)
    try:
        raw = path.read_bytes()
    except OSError as exc:
        raise SeriesReadError(f"Error while reading file = {path}", context={"error": str(exc)}) from exc
    series = read_price_bytes(raw, selection, header=header, update=update, source=str(path))
    logger.debug("Read %d prices for %s from %s", len(series), selection, path)
    return series
