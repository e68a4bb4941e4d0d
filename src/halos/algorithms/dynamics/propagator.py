"""
Numerical propagation functions for CR3BP trajectories.

This module wraps :func:`scipy.integrate.solve_ivp` for:
- Propagation of a bare 6-element state
- Propagation of a state together with its state transition matrix (STM)
- Event-terminated propagation (e.g. stop at the next x-z plane crossing)

Backward propagation follows the ``forward`` convention used throughout the
package:

1. Integration always occurs over a positive time span [|t0|, |tf|]
2. The derivative is multiplied by ``forward`` to control direction
3. The output time array is scaled by ``forward`` to reflect actual times
"""

import numpy as np
from scipy.integrate import solve_ivp

from halos.config import IntegratorConfig
from .equations import crtbp_rhs


def augment_state(state, stm=None):
    """
    Build the 42-element augmented state ``[state, Phi.ravel()]``.

    Parameters
    ----------
    state : array_like
        State vector [x, y, z, vx, vy, vz]
    stm : array_like, optional
        Initial 6x6 STM. Defaults to the identity.

    Returns
    -------
    ndarray
        A new 42-element array; the inputs are not modified.
    """
    state = np.asarray(state, dtype=np.float64)
    if state.shape != (6,):
        raise ValueError(f"State must have shape (6,), got {state.shape}")
    if stm is None:
        stm = np.eye(6, dtype=np.float64)
    stm = np.asarray(stm, dtype=np.float64)
    if stm.shape != (6, 6):
        raise ValueError(f"STM must have shape (6, 6), got {stm.shape}")
    return np.concatenate((state, stm.ravel()))


def split_augmented(y):
    """
    Split augmented solution values into states and STMs.

    Parameters
    ----------
    y : ndarray
        Either a single 42-vector or a (42, n_times) array as returned in
        ``sol.y``.

    Returns
    -------
    states : ndarray
        Shape (6,) or (n_times, 6)
    stms : ndarray
        Shape (6, 6) or (n_times, 6, 6)
    """
    y = np.asarray(y, dtype=np.float64)
    if y.ndim == 1:
        return y[:6].copy(), y[6:].reshape((6, 6)).copy()
    return y[:6, :].T.copy(), y[6:, :].T.reshape((-1, 6, 6))


def _solver_kwargs(integrator, solve_kwargs):
    if integrator is None:
        integrator = IntegratorConfig()
    kwargs = integrator.solver_kwargs()
    kwargs.update(solve_kwargs)
    return kwargs


def propagate_crtbp(state0, t0, tf, mu, forward=1, steps=1000, integrator=None, **solve_kwargs):
    """
    Propagate a state in the CR3BP from initial to final time.

    Parameters
    ----------
    state0 : array_like
        Initial state vector, either 6 elements or 42 elements (state
        followed by the flattened STM)
    t0 : float
        Initial time
    tf : float
        Final time
    mu : float
        Mass parameter of the CR3BP system (ratio of smaller to total mass)
    forward : int, optional
        Direction of integration (1 for forward, -1 for backward). Default is 1.
    steps : int, optional
        Number of output samples between t0 and tf. Default is 1000. Pass
        ``None`` to keep the integrator's own steps.
    integrator : IntegratorConfig, optional
        Tolerances and method. Defaults to ``IntegratorConfig()``
        (DOP853, rtol=3e-14, atol=1e-14).
    **solve_kwargs
        Additional keyword arguments passed to scipy.integrate.solve_ivp
        (``events``, ``dense_output``, ``t_eval`` ...), overriding the
        integrator settings.

    Returns
    -------
    sol : OdeResult
        Solution object from scipy.integrate.solve_ivp. ``sol.t`` runs from
        ``forward*|t0|`` to ``forward*|tf|``.
    """
    if forward not in (1, -1):
        raise ValueError(f"forward must be 1 or -1, got {forward}")

    y0 = np.array(state0, dtype=np.float64, copy=True)
    if y0.shape not in ((6,), (42,)):
        raise ValueError(f"State vector must have length 6 or 42, got {y0.size}")

    t0 = abs(t0)
    tf = abs(tf)
    if 't_eval' not in solve_kwargs and steps is not None:
        solve_kwargs['t_eval'] = np.linspace(t0, tf, steps)

    def ode_func(t, y):
        return crtbp_rhs(t, y, mu, forward)

    sol = solve_ivp(ode_func, [t0, tf], y0, **_solver_kwargs(integrator, solve_kwargs))

    sol.t = forward * sol.t
    return sol


def propagate_with_stm(initial_state, mu, tf, forward=1, initial_stm=None, t_eval=None,
                       events=None, dense_output=False, integrator=None):
    """
    Propagate an orbit with its State Transition Matrix (STM) in the CR3BP.

    Parameters
    ----------
    initial_state : array_like
        Initial state vector [x, y, z, vx, vy, vz]
    mu : float
        Mass parameter of the CR3BP system
    tf : float
        Propagation duration (its sign is ignored; use ``forward``)
    forward : int, optional
        Direction of integration (1 for forward, -1 for backward)
    initial_stm : array_like, optional
        Initial STM (6x6 identity matrix by default)
    t_eval : array_like, optional
        Non-negative times at which to store the solution
    events : callable or list of callables, optional
        Events to detect during integration (see scipy.integrate.solve_ivp)
    dense_output : bool, optional
        Whether to compute a continuous solution
    integrator : IntegratorConfig, optional
        Tolerances and method

    Returns
    -------
    sol : OdeResult
        Solution object with the integrated augmented state
    states : ndarray
        Shape (n_times, 6)
    stm_history : ndarray
        Array of STMs at each time point, shape (n_times, 6, 6)
    """
    y0 = augment_state(initial_state, initial_stm)
    sol = propagate_crtbp(y0, 0.0, tf, mu, forward=forward, steps=None, integrator=integrator,
                          t_eval=t_eval, events=events, dense_output=dense_output)
    states, stm_history = split_augmented(sol.y)
    return sol, states, stm_history


def propagate_orbit(initial_state, mu, duration, forward=1, steps=1000, integrator=None):
    """
    Propagate a bare state and return the sampled trajectory.

    Returns
    -------
    times : ndarray
        Shape (n_times,), signed by ``forward``
    states : ndarray
        Shape (n_times, 6)
    success : bool
        Whether the integrator reached the final time
    """
    sol = propagate_crtbp(initial_state, 0.0, duration, mu, forward=forward, steps=steps,
                          integrator=integrator)
    return sol.t, sol.y.T.copy(), bool(sol.success)
