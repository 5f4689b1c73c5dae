"""Default on-disk layout for price and output files.

``<root>/<category>/<selection>/<selection>dailydata.csv`` holds the prices;
results for a window go to ``<selection><window>days.csv`` next to it.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from common.config import DataConfig


@dataclass(frozen=True)
class InstrumentPaths:
    price_file: Path
    output_dir: Path
    output_file: Path


class PathResolver(Protocol):
    def resolve(self, category: str, selection: str, window: int) -> InstrumentPaths:
        ...


@dataclass(frozen=True)
class DataLayout:
    root: Path
    price_suffix: str = "dailydata.csv"
    output_suffix: str = "days.csv"

    @classmethod
    def from_config(cls, cfg: DataConfig) -> "DataLayout":
        return cls(root=Path(cfg.root), price_suffix=cfg.price_suffix, output_suffix=cfg.output_suffix)

    def resolve(self, category: str, selection: str, window: int) -> InstrumentPaths:
        folder = self.root / category / selection
        return InstrumentPaths(
            price_file=folder / f"{selection}{self.price_suffix}",
            output_dir=folder,
            output_file=folder / f"{selection}{window}{self.output_suffix}",
        )
