"""
State Transition Matrix (STM) computations for the CR3BP.

The state transition matrix maps how small perturbations in initial
conditions evolve over time, which is needed for:

1. Differential correction of periodic orbits
2. Stability analysis through the monodromy matrix
3. Mapping eigendirections along an orbit to construct invariant manifolds
"""

import numpy as np

from .propagator import augment_state, propagate_crtbp, split_augmented


def compute_stm(x0, mu, tf, forward=1, t_eval=None, integrator=None):
    """
    Compute the State Transition Matrix (STM) for the CR3BP.

    This function integrates the combined CR3BP equations of motion and
    variational equations from t=0 to t=tf to obtain Φ(tf, 0).

    Parameters
    ----------
    x0 : array_like
        Initial state vector [x, y, z, vx, vy, vz] in the rotating frame
    mu : float
        Mass parameter of the CR3BP system (ratio of smaller to total mass)
    tf : float
        Final integration time (must be positive)
    forward : int, optional
        Direction of integration (1 for forward, -1 for backward). Default is 1.
    t_eval : array_like, optional
        Times in [0, tf] at which to store the solution. The last entry must
        be ``tf`` for ``phi_T`` to be Φ(tf, 0). By default the integrator's
        own steps are returned.
    integrator : IntegratorConfig, optional
        Tolerances and method

    Returns
    -------
    x : ndarray
        Array of shape (n_times, 6) containing the state trajectory
    t : ndarray
        Array of shape (n_times,) containing the time points
        (If forward=-1, times are negated to reflect backward integration)
    phi_T : ndarray
        The 6x6 state transition matrix Φ(tf, 0) at the final time
    PHI : ndarray
        Array of shape (n_times, 42) containing the full integrated
        solution at each time point, where each row is [state(6), flattened STM(36)]

    Notes
    -----
    The STM is initialized as the 6x6 identity matrix at t=0 and obeys
    δx(t) = Φ(t, 0)·δx(0).
    """
    if tf <= 0:
        raise ValueError(f"Final time must be positive, got {tf}")

    y0 = augment_state(x0)
    sol = propagate_crtbp(y0, 0.0, tf, mu, forward=forward, steps=None,
                          integrator=integrator, t_eval=t_eval)

    PHI = sol.y.T
    x, stms = split_augmented(sol.y)
    phi_T = stms[-1].copy()

    return x, sol.t, phi_T, PHI


def monodromy_matrix(x0, mu, period, integrator=None):
    """
    Compute the monodromy matrix for a periodic orbit.

    The monodromy matrix is the state transition matrix evaluated over one
    orbital period of a periodic orbit. Its eigenvalues (the Floquet
    multipliers) determine the stability properties of the orbit.

    Parameters
    ----------
    x0 : array_like
        Initial state vector [x, y, z, vx, vy, vz] representing a point on the periodic orbit
    mu : float
        Mass parameter of the CR3BP system
    period : float
        Period of the orbit
    integrator : IntegratorConfig, optional
        Tolerances and method

    Returns
    -------
    M : ndarray
        6x6 monodromy matrix
    """
    _, _, M, _ = compute_stm(x0, mu, period, integrator=integrator)
    return M


def stability_indices(monodromy):
    """
    Compute stability indices from the monodromy matrix eigenvalues.

    Parameters
    ----------
    monodromy : ndarray
        6x6 monodromy matrix

    Returns
    -------
    nu : tuple of complex
        ``0.5 * (lambda + 1/lambda)`` for the dominant eigenvalue and for the
        non-trivial pair among the four middle eigenvalues (the one farthest
        from +1). An index with magnitude above 1 marks an unstable mode.
    eigenvalues : ndarray
        The eigenvalues of the monodromy matrix, sorted by decreasing magnitude
    """
    eigs = np.linalg.eigvals(monodromy)
    eigs = np.array(sorted(eigs, key=abs, reverse=True))

    # The trivial pair sits at +1; skip it
    middle = eigs[1:5]
    second = middle[np.argmax(np.abs(middle - 1.0))]

    nu1 = 0.5 * (eigs[0] + 1/eigs[0])
    nu2 = 0.5 * (second + 1/second)

    return (nu1, nu2), eigs
