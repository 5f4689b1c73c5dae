"""Log-periodic regressors.

Positions inside a window are counted backward from its most recent day
(``k = 0`` is the last day). The time left to the critical point at position
``k`` is ``tau_k = t_crit + k``.
"""
from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from common.config import ModelParameters
from common.errors import FitError


@dataclass(frozen=True)
class Regressors:
    time_power: np.ndarray
    cos_term: np.ndarray


def time_to_critical(params: ModelParameters) -> np.ndarray:
    return params.t_crit + np.arange(params.window, dtype=np.float64)


def build_regressors(params: ModelParameters) -> Regressors:
    """``tau ** m`` and ``cos(omega * ln(tau))`` for every window position.

    Raises:
        FitError: if any ``tau`` is not strictly positive; power and log are
            undefined there and the whole scan is abandoned.
    """
    tau = time_to_critical(params)
    if tau[0] <= 0.0:
        raise FitError(
            f"t_crit must be positive, got {params.t_crit}",
            context={"t_crit": params.t_crit, "window": params.window},
        )
    time_power = np.power(tau, params.m_coeff)
    cos_term = np.cos(params.omega * np.log(tau))
    time_power.flags.writeable = False
    cos_term.flags.writeable = False
    return Regressors(time_power=time_power, cos_term=cos_term)
