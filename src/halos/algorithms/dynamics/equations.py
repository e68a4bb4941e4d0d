"""
Equations of motion of the Circular Restricted Three-Body Problem (CR3BP).

All kernels are compiled with numba and work in the nondimensional synodic
frame, in which the larger primary sits at (-mu, 0, 0) and the smaller one at
(1-mu, 0, 0).

Two layouts are used:

- a 6-element state ``[x, y, z, vx, vy, vz]``
- a 42-element augmented state: the 6-element state followed by the
  row-major flattened 6x6 state transition matrix (STM)

A trajectory that reaches a primary produces ``inf``/``nan`` values; these
propagate through the integration instead of raising.
"""

import numba
import numpy as np


@numba.njit(fastmath=True, cache=True, error_model="numpy")
def crtbp_accel(state, mu):
    """
    State = [x, y, z, vx, vy, vz]
    Returns the time derivative of the state vector for the CR3BP.
    """
    x, y, z, vx, vy, vz = state[0], state[1], state[2], state[3], state[4], state[5]

    # Distances to each primary
    r1 = np.sqrt((x + mu)**2 + y**2 + z**2)       # from m1 at (-mu, 0, 0)
    r2 = np.sqrt((x - (1 - mu))**2 + y**2 + z**2)  # from m2 at (1-mu, 0, 0)

    ax = 2*vy + x - (1 - mu)*(x + mu) / r1**3 - mu*(x - 1 + mu) / r2**3
    ay = -2*vx + y - (1 - mu)*y / r1**3 - mu*y / r2**3
    az = -(1 - mu)*z / r1**3 - mu*z / r2**3

    return np.array([vx, vy, vz, ax, ay, az], dtype=np.float64)


@numba.njit(fastmath=True, cache=True, error_model="numpy")
def jacobian_crtbp(x, y, z, mu):
    """
    Returns the 6x6 Jacobian matrix F of the CR3BP vector field.

    The matrix F is structured as:
         [ 0     0     0      1   0   0 ]
         [ 0     0     0      0   1   0 ]
         [ 0     0     0      0   0   1 ]
         [ Uxx   Uxy   Uxz    0   2   0 ]
         [ Uxy   Uyy   Uyz   -2   0   0 ]
         [ Uxz   Uyz   Uzz    0   0   0 ]

    where U is the effective potential. Indices: x=0, y=1, z=2, vx=3, vy=4, vz=5.
    """
    mu2 = 1.0 - mu

    # Squared distances to the larger (r) and smaller (R) primary
    r2 = (x + mu)**2 + y**2 + z**2
    R2 = (x - mu2)**2 + y**2 + z**2
    r3 = r2**1.5
    r5 = r2**2.5
    R3 = R2**1.5
    R5 = R2**2.5

    omgxx = 1.0 \
        + mu2/r5 * 3.0*(x + mu)**2 \
        + mu/R5 * 3.0*(x - mu2)**2 \
        - (mu2/r3 + mu/R3)

    omgyy = 1.0 \
        + mu2/r5 * 3.0*(y**2) \
        + mu/R5 * 3.0*(y**2) \
        - (mu2/r3 + mu/R3)

    omgzz = 0.0 \
        + mu2/r5 * 3.0*(z**2) \
        + mu/R5 * 3.0*(z**2) \
        - (mu2/r3 + mu/R3)

    omgxy = 3.0*y * (mu2*(x + mu)/r5 + mu*(x - mu2)/R5)
    omgxz = 3.0*z * (mu2*(x + mu)/r5 + mu*(x - mu2)/R5)
    omgyz = 3.0*y*z*(mu2/r5 + mu/R5)

    F = np.zeros((6, 6), dtype=np.float64)

    F[0, 3] = 1.0
    F[1, 4] = 1.0
    F[2, 5] = 1.0

    F[3, 0] = omgxx
    F[3, 1] = omgxy
    F[3, 2] = omgxz

    F[4, 0] = omgxy
    F[4, 1] = omgyy
    F[4, 2] = omgyz

    F[5, 0] = omgxz
    F[5, 1] = omgyz
    F[5, 2] = omgzz

    # Coriolis terms
    F[3, 4] = 2.0
    F[4, 3] = -2.0

    return F


@numba.njit(fastmath=True, cache=True, error_model="numpy")
def variational_equations(t, y, mu, forward=1):
    """
    Vector field of the state together with its state transition matrix.

    ``y`` is a 42-element vector:
      - y[:6]  = the state [x, y, z, vx, vy, vz]
      - y[6:]  = the row-major flattened 6x6 STM (Phi)

    Returns ``forward * [f(x), F(x) Phi]`` with the same layout, so that an
    integration over a positive time span with ``forward = -1`` runs the
    state and the STM backwards in time together.
    """
    x, yy, z = y[0], y[1], y[2]
    Phi = y[6:].reshape((6, 6))

    F = jacobian_crtbp(x, yy, z, mu)

    # dPhi/dt = F * Phi, written out to keep numba happy
    phidot = np.zeros((6, 6), dtype=np.float64)
    for i in range(6):
        for j in range(6):
            s = 0.0
            for k in range(6):
                s += F[i, k] * Phi[k, j]
            phidot[i, j] = s

    dy = np.empty(42, dtype=np.float64)
    dy[:6] = forward * crtbp_accel(y[:6], mu)
    dy[6:] = forward * phidot.ravel()
    return dy


def crtbp_rhs(t, y, mu, forward=1):
    """
    Right-hand side for :func:`scipy.integrate.solve_ivp`.

    Dispatches on the length of ``y``: 6 for a bare state, 42 for a state
    augmented with its STM.

    Raises
    ------
    ValueError
        If ``y`` has any other length.
    """
    n = len(y)
    if n == 6:
        return forward * crtbp_accel(np.asarray(y, dtype=np.float64), mu)
    if n == 42:
        return variational_equations(t, np.asarray(y, dtype=np.float64), mu, forward)
    raise ValueError(f"State vector must have length 6 or 42, got {n}")
