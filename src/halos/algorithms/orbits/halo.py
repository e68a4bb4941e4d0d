"""
This module provides functions for generating and analyzing Halo orbits in the Circular Restricted Three-Body Problem (CR3BP).

Key functionalities:
- Third-order analytical (Richardson) approximation of Halo orbits near L1 and L2
- Differential correction of the analytical seed to a periodic orbit
- The :class:`HaloOrbit` object tying a corrected orbit to its system
"""

import logging
from enum import Enum

import numpy as np

from halos.algorithms.core.lagrange_points import gamma_L
from halos.algorithms.errors import ConvergenceError
from halos.algorithms.orbits.base import PeriodicOrbit
from halos.algorithms.orbits.corrector import (
    CorrectionTarget,
    Converged,
    differential_correction,
    select_target,
)
from halos.config import CorrectorConfig
from halos.models.system import CR3BPSystem


logger = logging.getLogger(__name__)


class Hemisphere(Enum):
    """Halo family branch, by the sign of z at tau1 = 0."""
    NORTHERN = "northern"
    SOUTHERN = "southern"

    @property
    def sign(self):
        return 1 if self is Hemisphere.NORTHERN else -1


class HaloOrbit(PeriodicOrbit):
    """
    Halo orbit implementation for the CR3BP.

    Halo orbits are three-dimensional periodic orbits around the collinear
    libration points L1 and L2, symmetric about the x-z plane.

    Attributes
    ----------
    system : CR3BPSystem
        The three-body system
    initial_state : ndarray
        Initial state vector [x, 0, z, 0, vy, 0]
    period : float
        Orbital period
    lagrange_point : int
        Libration point index (1 or 2)
    z_amplitude : float
        Nondimensional z-amplitude the orbit was seeded with
    hemisphere : Hemisphere
        Northern (z > 0 at t = 0) or southern family
    """

    def __init__(self, system, initial_state, period, lagrange_point=1, z_amplitude=0.0,
                 hemisphere=Hemisphere.NORTHERN):
        if lagrange_point not in (1, 2):
            raise ValueError(f"Halo orbits only supported for L1 and L2 (got L{lagrange_point})")
        super().__init__(system, initial_state, period, lagrange_point)
        self.z_amplitude = float(z_amplitude)
        self.hemisphere = Hemisphere(hemisphere)

    def __repr__(self):
        return (f"HaloOrbit(system={self.system}, L{self.lagrange_point}, "
                f"Az={self.z_amplitude:.6g}, {self.hemisphere.value}, period={self.period:.10g})")

    @classmethod
    def initial_guess(cls, system, L_i, amplitude, hemisphere=Hemisphere.NORTHERN, **kwargs):
        """
        Generate an uncorrected Halo orbit from the analytical approximation.

        Parameters
        ----------
        system : CR3BPSystem
            The three-body system
        L_i : int
            Libration point index (1 or 2)
        amplitude : float
            z-amplitude of the orbit (nondimensional, >= 0)
        hemisphere : Hemisphere or str, optional
            Family branch

        Returns
        -------
        HaloOrbit
            A new HaloOrbit object with the initial guess
        """
        hemisphere = Hemisphere(hemisphere)
        state, period = halo_initial_guess(system.mu, L=L_i, Az=amplitude,
                                           hemisphere=hemisphere.value, **kwargs)
        return cls(system, state, period, lagrange_point=L_i, z_amplitude=amplitude,
                   hemisphere=hemisphere)

    def differential_correction(self, target=None, tol=1e-12, max_iter=20, integrator=None,
                                corrector=None):
        """
        Correct this orbit's initial state to a periodic one.

        Parameters
        ----------
        target : CorrectionTarget, optional
            Defaults to :func:`select_target` applied to ``z_amplitude``.
        tol : float, optional
            Tolerance for the differential corrector. Default is 1e-12.
        max_iter : int, optional
            Maximum number of iterations. Default is 20.
        integrator : IntegratorConfig, optional
            Tolerances and method
        corrector : CorrectorConfig, optional
            When given, overrides ``tol`` and ``max_iter``.

        Returns
        -------
        HaloOrbit
            A new, corrected orbit

        Raises
        ------
        ConvergenceError
            If the corrector fails. The ``Failed`` result is attached.
        SingularCorrectionError
            If the correction matrix is singular for ``target``.
        """
        if corrector is None:
            corrector = CorrectorConfig(tol=tol, max_iter=max_iter)
        if target is None:
            target = select_target(self.z_amplitude)

        result = differential_correction(
            self.initial_state, self.mu, target, self.half_period,
            tol=corrector.tol, max_iter=corrector.max_iter, integrator=integrator,
            singular_tol=corrector.singular_tol, skip_fraction=corrector.skip_fraction,
        )
        if not isinstance(result, Converged):
            raise ConvergenceError(
                f"Halo L{self.lagrange_point} Az={self.z_amplitude:.6g} in {self.system}: "
                f"{result.reason} after {result.iterations} iterations "
                f"(residual {result.last_residual:.3e})",
                result=result,
            )
        return HaloOrbit(self.system, result.initial_state, result.period,
                         lagrange_point=self.lagrange_point, z_amplitude=self.z_amplitude,
                         hemisphere=self.hemisphere)


def _richardson_coefficients(mu, L):
    """
    Coefficients of the third-order Richardson expansion about L1 or L2.

    Returns
    -------
    dict
        gamma, c2..c4, lam, k, delta, the a/b/d expansion coefficients,
        s1, s2, l1 and l2.
    """
    if L not in (1, 2):
        raise ValueError(f"Halo orbits only supported for L1 and L2 (got L{L})")

    gamma = gamma_L(mu, L)
    won = 1 if L == 1 else -1

    c = [0.0] * 5
    for N in (2, 3, 4):
        c[N] = (1 / gamma**3) * (
            (won**N) * mu
            + ((-1)**N) * ((1 - mu) * gamma**(N + 1) / ((1 - won * gamma)**(N + 1)))
        )
    c2, c3, c4 = c[2], c[3], c[4]

    # In-plane frequency: positive root of lam^4 + (c2-2) lam^2 - (c2-1)(1+2c2) = 0
    lam2 = 0.5 * (-(c2 - 2) + np.sqrt((c2 - 2)**2 + 4 * (c2 - 1) * (1 + 2 * c2)))
    lam = np.sqrt(lam2)

    k = 2 * lam / (lam**2 + 1 - c2)
    delta = lam**2 - c2

    d1 = (3 * lam**2 / k) * (k * (6 * lam**2 - 1) - 2 * lam)
    d2 = (8 * lam**2 / k) * (k * (11 * lam**2 - 1) - 2 * lam)

    a21 = (3 * c3 * (k**2 - 2)) / (4 * (1 + 2 * c2))
    a22 = (3 * c3) / (4 * (1 + 2 * c2))
    a23 = -(3 * c3 * lam / (4 * k * d1)) * (3 * k**3 * lam - 6 * k * (k - lam) + 4)
    a24 = -(3 * c3 * lam / (4 * k * d1)) * (2 + 3 * k * lam)

    b21 = -(3 * c3 * lam / (2 * d1)) * (3 * k * lam - 4)
    b22 = (3 * c3 * lam) / d1

    d21 = -c3 / (2 * lam**2)

    a31 = (
        -(9 * lam / (4 * d2)) * (4 * c3 * (k * a23 - b21) + k * c4 * (4 + k**2))
        + ((9 * lam**2 + 1 - c2) / (2 * d2)) * (3 * c3 * (2 * a23 - k * b21) + c4 * (2 + 3 * k**2))
    )
    a32 = -(1 / d2) * (
        (9 * lam / 4) * (4 * c3 * (k * a24 - b22) + k * c4)
        + 1.5 * (9 * lam**2 + 1 - c2) * (c3 * (k * b22 + d21 - 2 * a24) - c4)
    )

    b31 = (0.375 / d2) * (
        8 * lam * (3 * c3 * (k * b21 - 2 * a23) - c4 * (2 + 3 * k**2))
        + (9 * lam**2 + 1 + 2 * c2) * (4 * c3 * (k * a23 - b21) + k * c4 * (4 + k**2))
    )
    b32 = (1 / d2) * (
        9 * lam * (c3 * (k * b22 + d21 - 2 * a24) - c4)
        + 0.375 * (9 * lam**2 + 1 + 2 * c2) * (4 * c3 * (k * a24 - b22) + k * c4)
    )

    d31 = (3 / (64 * lam**2)) * (4 * c3 * a24 + c4)
    d32 = (3 / (64 * lam**2)) * (4 * c3 * (a23 - d21) + c4 * (4 + k**2))

    denom = 2 * lam * (lam * (1 + k**2) - 2 * k)
    s1 = (1 / denom) * (
        1.5 * c3 * (2 * a21 * (k**2 - 2) - a23 * (k**2 + 2) - 2 * k * b21)
        - 0.375 * c4 * (3 * k**4 - 8 * k**2 + 8)
    )
    s2 = (1 / denom) * (
        1.5 * c3 * (2 * a22 * (k**2 - 2) + a24 * (k**2 + 2) + 2 * k * b22 + 5 * d21)
        + 0.375 * c4 * (12 - k**2)
    )

    a1 = -1.5 * c3 * (2 * a21 + a23 + 5 * d21) - 0.375 * c4 * (12 - k**2)
    a2 = 1.5 * c3 * (a24 - 2 * a22) + 1.125 * c4

    l1 = a1 + 2 * lam**2 * s1
    l2 = a2 + 2 * lam**2 * s2

    return dict(
        gamma=gamma, won=won, c2=c2, c3=c3, c4=c4, lam=lam, k=k, delta=delta,
        a21=a21, a22=a22, a23=a23, a24=a24, a31=a31, a32=a32,
        b21=b21, b22=b22, b31=b31, b32=b32,
        d21=d21, d31=d31, d32=d32,
        s1=s1, s2=s2, l1=l1, l2=l2,
    )


def halo_analytic(mu, L=1, Az=0.0, hemisphere="northern", steps=1, phase=0.0):
    """
    Third-order analytical approximation of a Halo orbit.

    Parameters
    ----------
    mu : float
        Mass parameter of the CR3BP system
    L : int, optional
        Libration point index (1 or 2). Default is 1.
    Az : float, optional
        z-amplitude in units of the primaries' separation, >= 0. Default is 0
        (the planar, Lyapunov-like branch).
    hemisphere : {"northern", "southern"} or Hemisphere, optional
        Family branch; northern orbits have z > 0 at ``tau1 = 0``.
    steps : int, optional
        Number of samples over one period. ``1`` returns the ``t = 0`` point only.
    phase : float, optional
        Phase offset added to ``tau1``.

    Returns
    -------
    positions : ndarray
        Shape (steps, 3), synodic frame
    velocities : ndarray
        Shape (steps, 3), synodic frame
    period : float
        Approximate period ``2 pi / (lam nu)``

    Notes
    -----
    ``Az`` is divided by ``gamma`` (the distance from the libration point to
    the nearest primary) before entering the expansion, whose length unit is
    ``gamma``. The in-plane amplitude ``Ax`` follows from the amplitude
    constraint ``l1 Ax^2 + l2 Az^2 + delta = 0`` and the frequency correction
    is ``nu = 1 + s1 Ax^2 + s2 Az^2``.

    The result is only a seed: propagated for ``period`` it does not close.
    """
    if Az < 0:
        raise ValueError(f"Az must be non-negative (use hemisphere for the sign), got {Az}")
    if steps < 1:
        raise ValueError(f"steps must be at least 1, got {steps}")
    deltan = Hemisphere(hemisphere).sign

    co = _richardson_coefficients(mu, L)
    gamma, lam, k = co["gamma"], co["lam"], co["k"]
    a21, a22, a23, a24 = co["a21"], co["a22"], co["a23"], co["a24"]
    a31, a32 = co["a31"], co["a32"]
    b21, b22, b31, b32 = co["b21"], co["b22"], co["b31"], co["b32"]
    d21, d31, d32 = co["d21"], co["d31"], co["d32"]

    Az_n = Az / gamma
    Ax2 = (-co["delta"] - co["l2"] * Az_n**2) / co["l1"]
    if Ax2 < 0:
        raise ValueError(f"No real in-plane amplitude for Az={Az} at L{L} (mu={mu})")
    Ax = np.sqrt(Ax2)

    nu = 1 + co["s1"] * Ax**2 + co["s2"] * Az_n**2
    period = 2 * np.pi / (lam * nu)

    t = np.linspace(0.0, period, steps) if steps > 1 else np.zeros(1)
    tau1 = lam * nu * t + phase

    x = (
        a21 * Ax**2 + a22 * Az_n**2
        - Ax * np.cos(tau1)
        + (a23 * Ax**2 - a24 * Az_n**2) * np.cos(2 * tau1)
        + (a31 * Ax**3 - a32 * Ax * Az_n**2) * np.cos(3 * tau1)
    )
    y = (
        k * Ax * np.sin(tau1)
        + (b21 * Ax**2 - b22 * Az_n**2) * np.sin(2 * tau1)
        + (b31 * Ax**3 - b32 * Ax * Az_n**2) * np.sin(3 * tau1)
    )
    z = (
        deltan * Az_n * np.cos(tau1)
        + deltan * d21 * Ax * Az_n * (np.cos(2 * tau1) - 3)
        + deltan * (d32 * Az_n * Ax**2 - d31 * Az_n**3) * np.cos(3 * tau1)
    )

    # Derivatives with respect to tau1
    xdot = (
        Ax * np.sin(tau1)
        - 2 * (a23 * Ax**2 - a24 * Az_n**2) * np.sin(2 * tau1)
        - 3 * (a31 * Ax**3 - a32 * Ax * Az_n**2) * np.sin(3 * tau1)
    )
    ydot = (
        k * Ax * np.cos(tau1)
        + 2 * (b21 * Ax**2 - b22 * Az_n**2) * np.cos(2 * tau1)
        + 3 * (b31 * Ax**3 - b32 * Ax * Az_n**2) * np.cos(3 * tau1)
    )
    zdot = (
        - deltan * Az_n * np.sin(tau1)
        - 2 * deltan * d21 * Ax * Az_n * np.sin(2 * tau1)
        - 3 * deltan * (d32 * Az_n * Ax**2 - d31 * Az_n**3) * np.sin(3 * tau1)
    )

    # Back to the synodic frame: lengths scale with gamma, d/dt = lam * nu * d/dtau1
    rate = gamma * lam * nu
    positions = np.column_stack((
        (1 - mu) + gamma * (-co["won"] + x),
        gamma * y,
        gamma * z,
    ))
    velocities = np.column_stack((rate * xdot, rate * ydot, rate * zdot))

    return positions, velocities, float(period)


def halo_initial_guess(mu, L=1, Az=0.0, hemisphere="northern", phase=0.0):
    """
    Analytical seed state at ``t = 0`` and its approximate period.

    Returns
    -------
    state : ndarray
        6D state vector [x, y, z, vx, vy, vz] in the rotating frame
    period : float
    """
    positions, velocities, period = halo_analytic(mu, L=L, Az=Az, hemisphere=hemisphere,
                                                  steps=1, phase=phase)
    state = np.concatenate((positions[0], velocities[0]))
    return state, period


def halo(system, Az, L=1, hemisphere=Hemisphere.NORTHERN, tol=1e-12, max_iter=20,
         nan_on_fail=False, target=None, integrator=None, corrector=None):
    """
    Compute a periodic Halo orbit: analytical seed then differential correction.

    Parameters
    ----------
    system : CR3BPSystem
        The three-body system
    Az : float
        z-amplitude (nondimensional, >= 0). ``0`` yields the planar orbit.
    L : int, optional
        Libration point index (1 or 2). Default is 1.
    hemisphere : Hemisphere or str, optional
        Family branch. Default is northern.
    tol : float, optional
        Corrector tolerance. Default is 1e-12.
    max_iter : int, optional
        Maximum corrector iterations. Default is 20.
    nan_on_fail : bool, optional
        Return an orbit with NaN state and period instead of raising
        ``ConvergenceError``. Default is False.
    target : CorrectionTarget, optional
        Defaults to ``select_target(Az)``.
    integrator : IntegratorConfig, optional
    corrector : CorrectorConfig, optional
        When given, overrides ``tol`` and ``max_iter``.

    Returns
    -------
    HaloOrbit

    Raises
    ------
    ConvergenceError
        If the corrector fails and ``nan_on_fail`` is False.
    SingularCorrectionError
        If ``target`` does not suit the configuration. Never masked by
        ``nan_on_fail``.
    """
    if not isinstance(system, CR3BPSystem):
        system = CR3BPSystem(system)
    seed = HaloOrbit.initial_guess(system, L, Az, hemisphere=hemisphere)
    logger.debug("Seed for %r: %s", seed, seed.initial_state)

    try:
        return seed.differential_correction(target=target, tol=tol, max_iter=max_iter,
                                            integrator=integrator, corrector=corrector)
    except ConvergenceError as exc:
        if not nan_on_fail:
            raise
        logger.warning("%s", exc)
        return HaloOrbit(system, np.full(6, np.nan), np.nan, lagrange_point=L,
                         z_amplitude=Az, hemisphere=hemisphere)

