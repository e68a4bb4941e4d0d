"""
Run-time configuration for integrations, corrections and amplitude sweeps.

The integrator tolerances control how accurately trajectories are
propagated; the corrector tolerance decides when a half-period crossing is
symmetric enough to call the orbit periodic. The two are set independently.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

import numpy as np


@dataclass(frozen=True)
class IntegratorConfig:
    """Tolerances and method handed to :func:`scipy.integrate.solve_ivp`."""
    rtol: float = 3e-14
    atol: float = 1e-14
    method: str = "DOP853"
    max_step: float = np.inf

    def __post_init__(self):
        if self.rtol <= 0 or self.atol <= 0:
            raise ValueError(f"Tolerances must be positive, got rtol={self.rtol}, atol={self.atol}")

    def solver_kwargs(self) -> Dict[str, Any]:
        return {
            "rtol": self.rtol,
            "atol": self.atol,
            "method": self.method,
            "max_step": self.max_step,
        }


@dataclass(frozen=True)
class CorrectorConfig:
    """
    Settings of the half-period differential corrector.

    Attributes
    ----------
    tol : float
        Convergence threshold on |vx| and |vz| at the y = 0 crossing.
    max_iter : int
        Maximum number of Newton corrections.
    singular_tol : float
        Ratio of smallest to largest singular value below which the
        correction matrix is declared singular.
    skip_fraction : float
        Fraction of the expected half period integrated before the y = 0
        crossing event is armed, so the departure from y = 0 at t = 0 is
        never reported as a crossing.
    """
    tol: float = 1e-12
    max_iter: int = 20
    singular_tol: float = 1e-12
    skip_fraction: float = 0.5

    def __post_init__(self):
        if self.tol <= 0:
            raise ValueError(f"Corrector tolerance must be positive, got {self.tol}")
        if self.max_iter < 1:
            raise ValueError(f"max_iter must be at least 1, got {self.max_iter}")
        if not (0 < self.skip_fraction < 1):
            raise ValueError(f"skip_fraction must be in (0, 1), got {self.skip_fraction}")


@dataclass(frozen=True)
class SweepConfig:
    """Amplitude grid and acceptance policy of a Halo family sweep."""
    az_start: float = 0.0
    az_stop: float = 0.01
    az_step: float = 1e-6
    lagrange_points: Tuple[int, ...] = (1, 2)
    max_consecutive_failures: Optional[int] = 10
    min_period: float = 1.0
    periodicity_tol: float = 1e-6
    n_workers: int = 1
    show_progress: bool = False
    corrector: CorrectorConfig = field(default_factory=CorrectorConfig)
    integrator: IntegratorConfig = field(default_factory=IntegratorConfig)

    def __post_init__(self):
        if self.az_step <= 0:
            raise ValueError(f"az_step must be positive, got {self.az_step}")
        if self.az_stop < self.az_start:
            raise ValueError(f"az_stop ({self.az_stop}) must not be below az_start ({self.az_start})")
        if any(L not in (1, 2) for L in self.lagrange_points):
            raise ValueError(f"Only L1 and L2 Halo families are supported, got {self.lagrange_points}")

    def amplitudes(self) -> np.ndarray:
        """Grid of z-amplitudes, inclusive of ``az_stop`` up to rounding."""
        return np.arange(self.az_start, self.az_stop + 0.5 * self.az_step, self.az_step)
