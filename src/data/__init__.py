from data.cache import DailyDataCache
from data.layout import DataLayout, InstrumentPaths, PathResolver
from data.reader import read_price_bytes, read_price_series
from data.series import PriceSeries

__all__ = [
    "DailyDataCache",
    "DataLayout",
    "InstrumentPaths",
    "PathResolver",
    "PriceSeries",
    "read_price_bytes",
    "read_price_series",
]
