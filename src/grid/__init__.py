from grid.base import TaskGrid
from grid.factory import build_grid
from grid.local import SequentialGrid, ThreadPoolGrid

__all__ = ["SequentialGrid", "TaskGrid", "ThreadPoolGrid", "build_grid"]
