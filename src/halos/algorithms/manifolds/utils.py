"""
Utility functions for numerical operations on eigenvalues and eigenvectors.

These helpers clean up round-off in the output of :func:`numpy.linalg.eig`
so that eigenvalues that are real up to numerical noise can be recognised
and used as real directions.
"""

import numpy as np


def _zero_small_imag_part(eig_val, tol=1e-12):
    """
    Drop the imaginary part of a number when it is negligible.

    Parameters
    ----------
    eig_val : complex
        Eigenvalue to clean
    tol : float, optional
        Threshold relative to ``max(1, |eig_val|)``. Default is 1e-12.

    Returns
    -------
    complex
    """
    if abs(eig_val.imag) < tol * max(1.0, abs(eig_val)):
        return complex(eig_val.real, 0.0)
    return complex(eig_val)


def _first_significant_index(vec, rel_tol=1e-8):
    """Index of the first entry whose magnitude exceeds ``rel_tol * max|vec|``."""
    mags = np.abs(vec)
    scale = mags.max()
    if scale == 0.0:
        raise ValueError("Cannot normalise a zero vector")
    return int(np.argmax(mags > rel_tol * scale))


def _normalize_real_direction(vec):
    """
    Real unit vector with a deterministic sign.

    The first significant component is made positive, so that the same
    eigendirection is returned regardless of the arbitrary sign chosen by
    the eigen-solver.
    """
    v = np.real(np.asarray(vec)).astype(np.float64)
    v = v / np.linalg.norm(v)
    if v[_first_significant_index(v)] < 0:
        v = -v
    return v
