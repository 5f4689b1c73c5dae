"""Tests for price series, the price file reader, the daily cache and the layout."""
from __future__ import annotations

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import numpy as np
import pytest

from common.config import DataConfig
from common.errors import SeriesReadError
from data.cache import DailyDataCache
from data.layout import DataLayout
from data.reader import read_price_bytes, read_price_series
from data.series import PriceSeries


class TestPriceSeries:
    def test_from_strings(self) -> None:
        series = PriceSeries.from_strings("X", ["2020-01-02", "2020-01-03"], ["10.5", "11"])
        assert series.dates.tolist() == [20200102, 20200103]
        assert series.prices.tolist() == [10.5, 11.0]
        assert series.date_strings() == ["2020-01-02", "2020-01-03"]
        assert len(series) == 2

    def test_read_only(self) -> None:
        series = PriceSeries.from_strings("X", ["2020-01-02"], ["1"])
        with pytest.raises(ValueError):
            series.prices[0] = 2.0

    def test_rejects_unsorted_dates(self) -> None:
        with pytest.raises(ValueError):
            PriceSeries.from_strings("X", ["2020-01-03", "2020-01-02"], ["1", "2"])

    def test_rejects_duplicate_dates(self) -> None:
        with pytest.raises(ValueError):
            PriceSeries.from_strings("X", ["2020-01-03", "2020-01-03"], ["1", "2"])

    def test_empty(self) -> None:
        assert len(PriceSeries.empty("X")) == 0


class TestReader:
    def test_comma_separated(self, tmp_path: Path) -> None:
        path = tmp_path / "p.csv"
        path.write_text("2020-01-01,10\n2020-01-02,11.5\n")
        series = read_price_series(path, "X")
        assert series.selection == "X"
        assert series.dates.tolist() == [20200101, 20200102]
        assert series.prices.tolist() == [10.0, 11.5]

    def test_tab_separated(self) -> None:
        series = read_price_bytes(b"2020-01-01\t10\n2020-01-02\t12\n", "X")
        assert series.prices.tolist() == [10.0, 12.0]

    def test_separator_may_change_between_lines(self) -> None:
        raw = b"Date,Close\n2020-01-01\t10\n2020-01-02,11\n2020-01-03\t12\n"
        series = read_price_bytes(raw, "X", header=True)
        assert series.dates.tolist() == [20200101, 20200102, 20200103]
        assert series.prices.tolist() == [10.0, 11.0, 12.0]

    @pytest.mark.parametrize("bad", [b"nan", b"inf", b"-inf", b"NaN"])
    def test_non_finite_prices_are_skipped(self, bad: bytes, caplog: pytest.LogCaptureFixture) -> None:
        raw = b"2015-01-01,10\n2015-01-02," + bad + b"\n2015-01-03,11\n"
        with caplog.at_level("WARNING", logger="bubble_index.reader"):
            series = read_price_bytes(raw, "X")
        assert series.dates.tolist() == [20150101, 20150103]
        assert series.prices.tolist() == [10.0, 11.0]
        assert "Skipped 1 malformed rows" in caplog.text

    def test_header_line(self) -> None:
        series = read_price_bytes(b"Date,Close\n2020-01-01,10\n", "X", header=True)
        assert series.dates.tolist() == [20200101]

    def test_update_mode_skips_identifier_column(self) -> None:
        raw = b"TSLA,2020-01-01,10\nTSLA,2020-01-02,11\n"
        series = read_price_bytes(raw, "TSLA", update=True)
        assert series.dates.tolist() == [20200101, 20200102]
        assert series.prices.tolist() == [10.0, 11.0]

    def test_malformed_rows_are_skipped(self, caplog: pytest.LogCaptureFixture) -> None:
        raw = b"2020-01-01,10\n2020-01-02,abc\nnot-a-date,12\n2020-01-04,13\n"
        with caplog.at_level("WARNING", logger="bubble_index.reader"):
            series = read_price_bytes(raw, "X")
        assert series.dates.tolist() == [20200101, 20200104]
        assert "Skipped 2 malformed rows" in caplog.text

    def test_sorted_and_deduplicated(self) -> None:
        raw = b"2020-01-02,11\n2020-01-01,10\n2020-01-02,12\n"
        series = read_price_bytes(raw, "X")
        assert series.dates.tolist() == [20200101, 20200102]
        assert series.prices.tolist() == [10.0, 11.0]

    def test_empty_source(self) -> None:
        assert len(read_price_bytes(b"", "X")) == 0
        assert len(read_price_bytes(b"\n\n", "X")) == 0

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(SeriesReadError, match="Error while reading file"):
            read_price_series(tmp_path / "missing.csv", "X")

    def test_too_few_columns(self) -> None:
        with pytest.raises(SeriesReadError):
            read_price_bytes(b"2020-01-01,10\n", "X", update=True)


class TestDailyDataCache:
    def test_loader_called_once(self) -> None:
        cache = DailyDataCache()
        calls = []

        def loader() -> PriceSeries:
            calls.append(1)
            return PriceSeries.from_strings("X", ["2020-01-01"], ["1"])

        first = cache.get_or_load("X", loader)
        second = cache.get_or_load("X", loader)
        assert first is second
        assert len(calls) == 1
        assert "X" in cache and len(cache) == 1

    def test_empty_cache_is_truthy(self) -> None:
        cache = DailyDataCache()
        assert len(cache) == 0
        assert cache
        assert "X" not in cache

    def test_concurrent_requests_share_first_load(self) -> None:
        cache = DailyDataCache()
        lock = threading.Lock()
        calls = []

        def loader() -> PriceSeries:
            with lock:
                calls.append(1)
            time.sleep(0.05)
            return PriceSeries.from_strings("X", ["2020-01-01"], ["1"])

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(lambda _: cache.get_or_load("X", loader), range(16)))
        assert len(calls) == 1
        assert all(r is results[0] for r in results)

    def test_first_writer_wins(self) -> None:
        cache = DailyDataCache()
        a = PriceSeries.from_strings("X", ["2020-01-01"], ["1"])
        b = PriceSeries.from_strings("X", ["2020-01-01"], ["2"])
        assert cache.put(a) is a
        assert cache.put(b) is a
        assert cache.get("X") is a

    def test_failed_load_is_not_cached(self) -> None:
        cache = DailyDataCache()

        def broken() -> PriceSeries:
            raise SeriesReadError("boom")

        with pytest.raises(SeriesReadError):
            cache.get_or_load("X", broken)
        assert cache.get("X") is None
        series = cache.get_or_load("X", lambda: PriceSeries.from_strings("X", ["2020-01-01"], ["1"]))
        assert np.array_equal(series.prices, [1.0])


class TestDataLayout:
    def test_paths(self, tmp_path: Path) -> None:
        paths = DataLayout(root=tmp_path).resolve("Stocks", "TSLA", 52)
        assert paths.price_file == tmp_path / "Stocks" / "TSLA" / "TSLAdailydata.csv"
        assert paths.output_dir == tmp_path / "Stocks" / "TSLA"
        assert paths.output_file == tmp_path / "Stocks" / "TSLA" / "TSLA52days.csv"

    def test_from_config(self) -> None:
        layout = DataLayout.from_config(DataConfig(root="ProgramData"))
        assert layout.resolve("A", "B", 7).output_file == Path("ProgramData/A/B/B7days.csv")
