"""
Differential correction of symmetric periodic orbits in the CR3BP.

A periodic orbit symmetric about the x-z plane starts perpendicular to it,

    x0 = [x0, 0, z0, 0, vy0, 0],

and crosses it perpendicularly again after half a period. The corrector
shoots from ``x0`` to the next y = 0 crossing and applies Newton updates to
two of the initial coordinates and to the half period until the crossing
velocities ``vx`` and ``vz`` vanish.

Two formulations are provided, selected by :class:`CorrectionTarget`:

- ``SPATIAL``: hold ``z0`` fixed, correct ``x0``, ``vy0`` and ``T/2``
- ``PLANAR``: hold ``x0`` fixed, correct ``z0``, ``vy0`` and ``T/2``

Holding ``z0 = 0`` fixed decouples the out-of-plane row of the correction
matrix entirely, so planar seeds must use ``PLANAR``; :func:`select_target`
makes that choice from the z-amplitude.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Union

import numpy as np

from halos.algorithms.dynamics.equations import crtbp_accel
from halos.algorithms.errors import SingularCorrectionError
from halos.algorithms.orbits.utils import find_y_crossing


logger = logging.getLogger(__name__)


class CorrectionTarget(Enum):
    """Which initial coordinates the corrector frees."""
    SPATIAL = "spatial"
    PLANAR = "planar"

    @property
    def free_index(self):
        """Index of the corrected position coordinate (x0 or z0)."""
        return 0 if self is CorrectionTarget.SPATIAL else 2


def select_target(Az):
    """
    Choose the correction formulation for a z-amplitude.

    Returns
    -------
    CorrectionTarget
        ``PLANAR`` if ``Az == 0``, ``SPATIAL`` otherwise.
    """
    return CorrectionTarget.PLANAR if Az == 0 else CorrectionTarget.SPATIAL


@dataclass(frozen=True)
class Converged:
    """Successful correction."""
    initial_state: np.ndarray
    period: float
    half_period: float
    iterations: int
    residual: float

    @property
    def converged(self):
        return True


@dataclass(frozen=True)
class Failed:
    """Unsuccessful correction, with the last iterate for diagnostics."""
    reason: str
    last_residual: float
    iterations: int
    initial_state: np.ndarray

    @property
    def converged(self):
        return False


CorrectionResult = Union[Converged, Failed]


def correction_matrix(phi, state, mu, free_index):
    """
    Assemble the 3x3 Newton matrix at a y = 0 crossing.

    Parameters
    ----------
    phi : ndarray
        6x6 STM Φ(t1, 0) at the crossing
    state : ndarray
        State [x, y, z, vx, vy, vz] at the crossing
    mu : float
        Mass parameter of the CR3BP system
    free_index : int
        Column of the freed position coordinate (0 for x0, 2 for z0)

    Returns
    -------
    ndarray
        Rows are the sensitivities of (y, vx, vz) at the crossing; columns
        correspond to (free coordinate, vy0, half period).
    """
    deriv = crtbp_accel(np.asarray(state, dtype=np.float64), mu)
    vy, ax, az = deriv[1], deriv[3], deriv[5]
    p = free_index
    return np.array([
        [phi[1, p], phi[1, 4], vy],
        [phi[3, p], phi[3, 4], ax],
        [phi[5, p], phi[5, 4], az],
    ], dtype=np.float64)


def _check_singular(A, singular_tol):
    s = np.linalg.svd(A, compute_uv=False)
    if not np.all(np.isfinite(s)) or s[0] == 0.0 or s[-1] / s[0] < singular_tol:
        ratio = 0.0 if s[0] == 0.0 else s[-1] / s[0]
        raise SingularCorrectionError(
            f"singular correction matrix (singular value ratio {ratio:.3e}) - "
            f"wrong formula for this configuration"
        )


def differential_correction(x0, mu, target, half_period_guess, tol=1e-12, max_iter=20,
                            integrator=None, singular_tol=1e-12, skip_fraction=0.5):
    """
    Correct a symmetric initial state until it is periodic.

    Parameters
    ----------
    x0 : array_like, shape (6,)
        Initial state guess [x0, 0, z0, 0, vy0, 0].
    mu : float
        Three-body mass parameter.
    target : CorrectionTarget
        Which of ``x0``/``z0`` is corrected (the other is held fixed).
    half_period_guess : float
        Expected time of the half-period crossing.
    tol : float, optional
        Convergence tolerance on |vx| and |vz| at the crossing. (Default: 1e-12)
    max_iter : int, optional
        Maximum number of Newton corrections. (Default: 20)
    integrator : IntegratorConfig, optional
        Tolerances and method of the propagations.
    singular_tol : float, optional
        Smallest acceptable ratio of smallest to largest singular value of
        the correction matrix. (Default: 1e-12)
    skip_fraction : float, optional
        Fraction of the current half-period estimate propagated before the
        crossing event is armed. (Default: 0.5)

    Returns
    -------
    Converged or Failed
        ``Converged`` carries the corrected state and the full period,
        ``Failed`` the reason and the last iterate.

    Raises
    ------
    SingularCorrectionError
        If the correction matrix is numerically singular. This signals a
        formulation that cannot work for the configuration (e.g.
        ``SPATIAL`` on a planar state); it is never regularised.
    """
    target = CorrectionTarget(target)
    if half_period_guess <= 0 or not np.isfinite(half_period_guess):
        raise ValueError(f"half_period_guess must be positive and finite, got {half_period_guess}")

    X0 = np.array(x0, dtype=np.float64, copy=True)
    if X0.shape != (6,):
        raise ValueError(f"Initial state must have shape (6,), got {X0.shape}")

    free = target.free_index
    t_half = float(half_period_guess)
    residual = np.inf

    for iteration in range(max_iter + 1):
        t1, x1, phi = find_y_crossing(X0, mu, t_half, skip_fraction=skip_fraction,
                                      integrator=integrator)
        if t1 is None:
            return Failed("no y = 0 crossing found", residual, iteration, X0)
        if not (np.all(np.isfinite(x1)) and np.all(np.isfinite(phi))):
            return Failed("non-finite state at crossing", residual, iteration, X0)

        residual = max(abs(x1[3]), abs(x1[5]))
        logger.debug("Iteration %d: t1=%.12f, |vx|=%.3e, |vz|=%.3e",
                     iteration, t1, abs(x1[3]), abs(x1[5]))

        if residual <= tol:
            return Converged(X0, 2.0 * t1, t1, iteration, residual)
        if iteration == max_iter:
            break

        A = correction_matrix(phi, x1, mu, free)
        _check_singular(A, singular_tol)

        b = -np.array([x1[1], x1[3], x1[5]], dtype=np.float64)
        dp, dvy0, dt = np.linalg.solve(A, b)

        X0[free] += dp
        X0[4] += dvy0
        t_half = t1 + dt
        if not (np.isfinite(t_half) and t_half > 0):
            return Failed("half-period estimate left the admissible range", residual, iteration + 1, X0)

    logger.debug("Corrector stopped after %d iterations with residual %.3e", max_iter, residual)
    return Failed("corrector did not converge", residual, max_iter, X0)
