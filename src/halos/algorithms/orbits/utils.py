"""
Orbital utilities for the Circular Restricted Three-Body Problem (CR3BP).

This module provides the helpers shared by the periodic-orbit code:

- locating the next crossing of the x-z plane (y = 0) together with the
  state transition matrix at the crossing
- checking that a state returns to itself after one period

Both rely on the symmetry of Halo and Lyapunov orbits about the x-z plane.
"""

import logging

import numpy as np

from halos.algorithms.dynamics.propagator import augment_state, propagate_crtbp, split_augmented


logger = logging.getLogger(__name__)


def _y_plane_event(t, y):
    return y[1]


_y_plane_event.terminal = True


def find_y_crossing(x0, mu, t_guess, skip_fraction=0.5, forward=1, integrator=None):
    """
    Find the time, state and STM at which an orbit next crosses the y = 0 plane.

    Parameters
    ----------
    x0 : array_like
        Initial state vector [x, y, z, vx, vy, vz] in the rotating frame
    mu : float
        Mass parameter of the CR3BP system (ratio of smaller to total mass)
    t_guess : float
        Expected crossing time (typically half the orbital period)
    skip_fraction : float, optional
        The trajectory is first propagated for ``skip_fraction * t_guess``
        without event detection, so the departure from y = 0 at t = 0 is
        never taken for the crossing. Default is 0.5.
    forward : {1, -1}, optional
        Direction of time integration
    integrator : IntegratorConfig, optional
        Tolerances and method

    Returns
    -------
    t1 : float or None
        Time at which the orbit crosses the y = 0 plane (unsigned), or
        ``None`` when no crossing occurs before ``2 * t_guess`` or the
        integration fails
    x1 : ndarray or None
        State vector [x, y, z, vx, vy, vz] at the crossing
    phi1 : ndarray or None
        6x6 state transition matrix Φ(t1, 0)

    Notes
    -----
    The event is terminal and its time is located by the integrator's root
    finder on the dense output, so no separate bracketing step is needed.
    """
    t_skip = skip_fraction * t_guess

    sol = propagate_crtbp(augment_state(x0), 0.0, t_skip, mu, forward=forward, steps=None,
                          integrator=integrator)
    if not sol.success or not np.all(np.isfinite(sol.y[:, -1])):
        logger.debug("Propagation to skip time %.6f failed: %s", t_skip, sol.message)
        return None, None, None

    sol = propagate_crtbp(sol.y[:, -1], t_skip, 2.0 * t_guess, mu, forward=forward, steps=None,
                          integrator=integrator, events=_y_plane_event)
    if sol.status == -1 or len(sol.t_events[0]) == 0:
        logger.debug("No y = 0 crossing before t = %.6f (status %d)", 2.0 * t_guess, sol.status)
        return None, None, None

    t1 = float(sol.t_events[0][0])
    x1, phi1 = split_augmented(sol.y_events[0][0])
    return t1, x1, phi1


def periodicity_error(state, period, mu, integrator=None):
    """
    Largest component of the state mismatch after one period.

    Returns
    -------
    float
        ``max |x(T) - x(0)|``, or ``inf`` when the propagation fails or
        produces non-finite values.
    """
    state = np.asarray(state, dtype=np.float64)
    if not (np.all(np.isfinite(state)) and np.isfinite(period) and period > 0):
        return np.inf

    sol = propagate_crtbp(state, 0.0, period, mu, steps=None, integrator=integrator)
    final = sol.y[:, -1]
    if not sol.success or not np.all(np.isfinite(final)):
        return np.inf
    return float(np.max(np.abs(final - state)))


def is_periodic(state, period, mu, tol=1e-6, integrator=None):
    """
    Check whether ``state`` returns to itself after ``period``.

    Parameters
    ----------
    state : array_like
        Initial state vector [x, y, z, vx, vy, vz]
    period : float
        Candidate period
    mu : float
        Mass parameter of the CR3BP system
    tol : float, optional
        Allowed mismatch on every state component. Default is 1e-6.
    integrator : IntegratorConfig, optional
        Tolerances and method

    Returns
    -------
    bool
    """
    return periodicity_error(state, period, mu, integrator=integrator) <= tol
