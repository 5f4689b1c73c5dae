"""Run context shared by every task and grid of one batch run.

Holds the cooperative stop flag and the execution switches. The stop flag is
a ``threading.Event`` so any worker can poll it without locking.
"""
from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Callable, Optional

from common.config import ContextConfig
from common.logging import get_logger

logger = get_logger("context")

ProgressSink = Callable[[str], None]


@dataclass
class RunContext:
    """Execution switches plus the stop flag.

    Attributes:
        force_host: Skip the accelerator path and scan on host threads.
        thread_count: Worker threads for the host-parallel scan.
        headless: Batch mode; only changes how progress text is surfaced.
        accelerator_device: torch device string for the accelerator path.
        progress: Optional sink receiving human-readable status lines.
    """

    force_host: bool = False
    thread_count: int = 4
    headless: bool = True
    accelerator_device: str = "cuda"
    progress: Optional[ProgressSink] = None
    _stop: threading.Event = field(default_factory=threading.Event, init=False, repr=False)

    @classmethod
    def from_config(cls, cfg: ContextConfig, progress: Optional[ProgressSink] = None) -> "RunContext":
        return cls(
            force_host=cfg.force_host,
            thread_count=cfg.thread_count,
            headless=cfg.headless,
            accelerator_device=cfg.accelerator_device,
            progress=progress,
        )

    @property
    def stop_requested(self) -> bool:
        return self._stop.is_set()

    def request_stop(self) -> None:
        if not self._stop.is_set():
            logger.info("Stop requested")
        self._stop.set()

    def publish(self, text: str) -> None:
        """Forward a status line to the progress sink (or the log in headless mode)."""
        if self.progress is not None:
            self.progress(text)
        elif self.headless:
            logger.info(text)
        else:
            logger.debug(text)
