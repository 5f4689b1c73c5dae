"""Accelerator window scan on a torch device.

All windows of a series are gathered on the device with ``unfold``,
normalised in one pass and solved against the shared design through a single
QR factorisation, in batches of ``batch_size`` windows. Work stays in
float64 so results match the host path.

An unusable device is reported as :class:`AcceleratorUnavailableError` and a
failing kernel as :class:`AcceleratorError`; this engine never falls back to
the host on its own.
"""
from __future__ import annotations

from typing import Any

import numpy as np

from common.config import ModelParameters
from common.errors import AcceleratorError, AcceleratorUnavailableError, DomainError, FitError
from common.logging import get_logger
from kernel.linalg import N_COEFFS
from kernel.normalize import BASE_LEVEL, growth_factors
from scan.base import WindowScanEngine, bubble_index, result_length
from scan.regressors import build_regressors

logger = get_logger("scan.accelerator")

DEFAULT_BATCH_SIZE = 4096


def _import_torch() -> Any:
    try:
        import torch
    except ImportError as exc:
        raise AcceleratorUnavailableError(
            "torch is required for the accelerator path; install torch or force host execution."
        ) from exc
    return torch


def resolve_device(device: str) -> Any:
    """Return a usable ``torch.device`` or raise :class:`AcceleratorUnavailableError`."""
    torch = _import_torch()
    try:
        dev = torch.device(device)
    except (RuntimeError, ValueError, TypeError) as exc:
        raise AcceleratorUnavailableError(f"Unknown accelerator device {device!r}") from exc

    if dev.type == "cuda" and not torch.cuda.is_available():
        raise AcceleratorUnavailableError("CUDA device requested but CUDA is not available", context={"device": device})
    if dev.type == "mps" and not torch.backends.mps.is_available():
        raise AcceleratorUnavailableError("MPS device requested but MPS is not available", context={"device": device})
    return dev


class AcceleratorScanEngine(WindowScanEngine):
    name = "accelerator"

    def __init__(self, device: str = "cuda", batch_size: int = DEFAULT_BATCH_SIZE) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self.device_name = device
        self.batch_size = batch_size

    def scan(self, prices: np.ndarray, params: ModelParameters) -> np.ndarray:
        prices = np.asarray(prices, dtype=np.float64)
        window = params.window
        n_out = result_length(prices.shape[0], window)
        if n_out == 0:
            return np.empty(0, dtype=np.float64)

        torch = _import_torch()
        device = resolve_device(self.device_name)
        regressors = build_regressors(params)

        try:
            return self._run(torch, device, prices, window, n_out, regressors)
        except (FitError, DomainError):
            raise
        except RuntimeError as exc:
            raise AcceleratorError(
                f"Accelerator kernel failed on {self.device_name}: {exc}",
                context={"device": self.device_name, "window": window},
            ) from exc

    def _run(self, torch: Any, device: Any, prices: np.ndarray, window: int, n_out: int, regressors: Any) -> np.ndarray:
        dtype = torch.float64
        series = torch.as_tensor(prices, dtype=dtype, device=device)
        if not bool(torch.isfinite(series[1:]).all()) or bool((series[1:] <= 0.0).any()):
            raise DomainError("Non-positive or non-finite price in series")

        design = torch.stack(
            [
                torch.ones(window, dtype=dtype, device=device),
                torch.as_tensor(regressors.time_power, dtype=dtype, device=device),
                torch.as_tensor(regressors.cos_term, dtype=dtype, device=device),
            ],
            dim=1,
        )
        singular = torch.linalg.svdvals(design)
        tol = float(singular.max()) * max(design.shape) * float(torch.finfo(dtype).eps)
        rank = int((singular > tol).sum())
        if rank < N_COEFFS:
            raise FitError(f"Design matrix is rank deficient (rank {rank})", context={"rank": rank})
        q, r = torch.linalg.qr(design, mode="reduced")

        # row j is the window ending at day window + j
        windows = series[1:].unfold(0, window, 1)[:n_out]
        out = torch.empty(n_out, dtype=dtype, device=device)
        for start in range(0, n_out, self.batch_size):
            stop = min(start + self.batch_size, n_out)
            batch = torch.flip(windows[start:stop], dims=[1])
            growth = torch.empty_like(batch)
            growth[:, 0] = BASE_LEVEL
            growth[:, 1:] = growth_factors(batch)
            log_price = torch.log(torch.cumprod(growth, dim=1))
            coef = torch.linalg.solve_triangular(r, q.T @ log_price.T, upper=True)
            out[start:stop] = bubble_index(coef[1])

        logger.debug("Accelerator scan: %d windows of %d days on %s", n_out, window, device)
        return out.cpu().numpy()
