"""
Computation of Lagrange (libration) points in the CR3BP.

This module provides functions for calculating the positions of the five
Lagrange points in the Circular Restricted Three-Body Problem (CR3BP), and
the distance gamma between a collinear point and its nearest primary, which
sets the length scale of the Richardson expansion.
"""

import numpy as np
import mpmath as mp

# Set mpmath precision to 50 digits for root finding
mp.mp.dps = 50


def lagrange_point_locations(mu):
    """
    Compute all five libration points in the CR3BP.

    Parameters
    ----------
    mu : float
        Mass parameter of the CR3BP system (ratio of smaller to total mass)

    Returns
    -------
    tuple
        A tuple containing the positions of L1, L2, L3, L4, and L5 as ndarrays

    Notes
    -----
    The three collinear points (L1, L2, L3) lie on the x-axis; L4 and L5 form
    equilateral triangles with the primary bodies.
    """
    return _l1(mu), _l2(mu), _l3(mu), _l4(mu), _l5(mu)


def get_lagrange_point(mu, point_index):
    """
    Get the position of a specific Lagrange point.

    Parameters
    ----------
    mu : float
        Mass parameter of the CR3BP system (ratio of smaller to total mass)
    point_index : int
        Lagrange point index (1-5)

    Returns
    -------
    ndarray
        3D vector [x, y, z] giving the position of the specified Lagrange point
    """
    if point_index == 1:
        return _l1(mu)
    elif point_index == 2:
        return _l2(mu)
    elif point_index == 3:
        return _l3(mu)
    elif point_index == 4:
        return _l4(mu)
    elif point_index == 5:
        return _l5(mu)
    else:
        raise ValueError(f"Invalid Lagrange point index {point_index}. Must be 1-5.")


def gamma_L(mu, L_i):
    """
    Distance from a collinear libration point to its nearest primary.

    Parameters
    ----------
    mu : float
        Mass parameter of the CR3BP system
    L_i : int
        Libration point index (1, 2 or 3)

    Returns
    -------
    float
        gamma, normalised by the distance between the primaries. For L1 and
        L2 it is measured from the smaller primary, for L3 from the larger.

    Notes
    -----
    gamma is the real positive root of the quintic for the chosen point:

    - L1: x^5 - (3-mu)x^4 + (3-2mu)x^3 - mu x^2 + 2mu x - mu = 0
    - L2: x^5 + (3-mu)x^4 + (3-2mu)x^3 - mu x^2 - 2mu x - mu = 0
    - L3: x^5 + (2+mu)x^4 + (1+2mu)x^3 - (1-mu)x^2 - 2(1-mu)x - (1-mu) = 0
    """
    mu2 = 1 - mu

    if L_i == 1:
        poly = [1, -1*(3-mu), (3-2*mu), -mu, 2*mu, -mu]
    elif L_i == 2:
        poly = [1, (3-mu), (3-2*mu), -mu, -2*mu, -mu]
    elif L_i == 3:
        poly = [1, (2+mu), (1+2*mu), -mu2, -2*mu2, -mu2]
    else:
        raise ValueError(f"gamma is only defined for collinear points L1-L3 (got L{L_i})")

    roots = np.roots(poly)
    real_roots = [r.real for r in roots if abs(r.imag) < 1e-12 and r.real > 0]
    if not real_roots:
        raise ValueError(f"No real positive root found for the L{L_i} quintic with mu={mu}")

    return min(real_roots)


def _hill_radius(mu):
    return (mu / 3.0) ** (1.0 / 3.0)


def _l1(mu):
    """
    Compute the position of the L1 libration point.

    L1 is located between the two primary bodies.

    Parameters
    ----------
    mu : float
        Mass parameter of the CR3BP system (ratio of smaller to total mass)

    Returns
    -------
    ndarray
        3D vector [x, 0, 0] giving the position of L1
    """
    h = _hill_radius(mu)
    bracket = (max(-mu + 1e-9, 1 - mu - 3 * h), 1 - mu - 0.1 * h)
    x = mp.findroot(lambda x: _dOmega_dx(x, mu), bracket, solver='anderson')
    x = float(x)
    return np.array([x, 0, 0], dtype=np.float64)


def _l2(mu):
    """
    Compute the position of the L2 libration point.

    L2 is located beyond the smaller primary body.
    """
    h = _hill_radius(mu)
    bracket = (1 - mu + 0.1 * h, 1 - mu + 3 * h)
    x = mp.findroot(lambda x: _dOmega_dx(x, mu), bracket, solver='anderson')
    x = float(x)
    return np.array([x, 0, 0], dtype=np.float64)


def _l3(mu):
    """
    Compute the position of the L3 libration point.

    L3 is located beyond the larger primary body.
    """
    x = mp.findroot(lambda x: _dOmega_dx(x, mu), (-mu - 2.0, -mu - 0.05), solver='anderson')
    x = float(x)
    return np.array([x, 0, 0], dtype=np.float64)


def _l4(mu):
    x = 1 / 2 - mu
    y = np.sqrt(3) / 2
    return np.array([x, y, 0], dtype=np.float64)


def _l5(mu):
    x = 1 / 2 - mu
    y = -np.sqrt(3) / 2
    return np.array([x, y, 0], dtype=np.float64)


def _dOmega_dx(x, mu):
    """
    Compute the derivative of the effective potential with respect to x on
    the x-axis. The collinear points are its zeros.
    """
    r1 = abs(x + mu)
    r2 = abs(x - (1 - mu))
    return x - (1 - mu) * (x + mu) / (r1**3)  -  mu * (x - (1 - mu)) / (r2**3)
