from __future__ import annotations

from typing import Optional

from common.config import GridConfig
from common.context import RunContext
from grid.base import TaskGrid
from grid.local import SequentialGrid, ThreadPoolGrid


def build_grid(cfg: GridConfig, context: Optional[RunContext] = None) -> TaskGrid:
    if cfg.mode == "threads":
        return ThreadPoolGrid(workers=cfg.workers, context=context)
    return SequentialGrid(context=context)
