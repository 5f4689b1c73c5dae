"""Error taxonomy for bubble index runs.

Input errors, numerical errors, execution errors and output I/O errors are
kept apart so callers can decide how to react (retry on the host path, skip
an instrument, report "no bubble index available").
"""
from __future__ import annotations

from typing import Any, Optional


class BubbleIndexError(Exception):
    """Base class for every failure raised by the bubble index core."""

    def __init__(self, message: str, context: Optional[dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.context = context or {}


class SeriesReadError(BubbleIndexError):
    """Price source is missing or entirely unreadable."""


class DomainError(BubbleIndexError, ValueError):
    """Input outside the domain of a numeric primitive (e.g. price <= 0)."""


class FitError(BubbleIndexError, ArithmeticError):
    """Least-squares system could not be solved for a window."""


class ExecutionError(BubbleIndexError, RuntimeError):
    """Execution substrate (thread pool or accelerator) failed."""


class AcceleratorUnavailableError(ExecutionError):
    """Requested accelerator device cannot be initialised."""


class AcceleratorError(ExecutionError):
    """A batched accelerator kernel failed while running."""


class OutputWriteError(BubbleIndexError):
    """Result file could not be written."""

    def __init__(self, message: str, target: Optional[str] = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.target = target


class DuplicateHandleError(BubbleIndexError, KeyError):
    """A task handle was submitted twice to the same grid batch."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""
