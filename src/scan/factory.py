from __future__ import annotations

from common.context import RunContext
from scan.accelerator import AcceleratorScanEngine
from scan.base import WindowScanEngine
from scan.host import HostScanEngine


def build_engine(context: RunContext) -> WindowScanEngine:
    """Accelerator engine unless the context forces host execution."""
    if context.force_host:
        return HostScanEngine(thread_count=context.thread_count)
    return AcceleratorScanEngine(device=context.accelerator_device)
