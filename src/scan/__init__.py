from scan.accelerator import AcceleratorScanEngine, resolve_device
from scan.base import WindowFit, WindowScanEngine, bubble_index, fit_window, result_length
from scan.factory import build_engine
from scan.host import HostScanEngine
from scan.regressors import Regressors, build_regressors

__all__ = [
    "AcceleratorScanEngine",
    "HostScanEngine",
    "Regressors",
    "WindowFit",
    "WindowScanEngine",
    "bubble_index",
    "build_engine",
    "build_regressors",
    "fit_window",
    "resolve_device",
    "result_length",
]
