"""
Energy and Jacobi-constant functions for the Circular Restricted Three-Body Problem (CR3BP).

This module provides:
- The Jacobi constant of a state, the single integral of motion of the CR3BP
- The energy of a state and conversions between energy and Jacobi constant
- The effective potential used by both
"""

import numpy as np


def effective_potential(position, mu):
    """
    Compute the effective potential Omega at a position in the rotating frame.

    Parameters
    ----------
    position : array_like
        Position [x, y, z] in the rotating frame
    mu : float
        Mass parameter of the CR3BP system

    Returns
    -------
    float
        Omega = (1-mu)/r1 + mu/r2 + (x^2 + y^2)/2

    Notes
    -----
    The centrifugal term only involves the in-plane coordinates: the frame
    rotates about the z-axis.
    """
    x, y, z = position[0], position[1], position[2]
    r1 = np.sqrt((x + mu)**2 + y**2 + z**2)
    r2 = np.sqrt((x - 1 + mu)**2 + y**2 + z**2)
    return (1 - mu) / r1 + mu / r2 + 0.5 * (x*x + y*y)


def jacobi_constant(state, mu):
    """
    Compute the Jacobi constant of a state.

    Parameters
    ----------
    state : array_like
        State vector [x, y, z, vx, vy, vz] in the rotating frame
    mu : float
        Mass parameter of the CR3BP system

    Returns
    -------
    float
        C = 2 Omega(x, y, z) - (vx^2 + vy^2 + vz^2)
    """
    state = np.asarray(state, dtype=np.float64)
    v2 = state[3]**2 + state[4]**2 + state[5]**2
    return 2.0 * effective_potential(state[:3], mu) - v2


def crtbp_energy(state, mu):
    """
    Compute the energy of a state in the CR3BP, E = -C/2.

    Parameters
    ----------
    state : array_like
        State vector [x, y, z, vx, vy, vz] in the rotating frame
    mu : float
        Mass parameter of the CR3BP system

    Returns
    -------
    float
        The energy value (scalar)
    """
    return jacobi_to_energy(jacobi_constant(state, mu))


def energy_to_jacobi(energy):
    """Convert energy to Jacobi constant, C = -2E."""
    return -2.0 * energy


def jacobi_to_energy(C):
    """Convert Jacobi constant to energy, E = -C/2."""
    return -C / 2.0
