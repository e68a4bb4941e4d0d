"""
Stability analysis of periodic orbits in the Circular Restricted Three-Body Problem (CR3BP).

This module classifies monodromy eigenvalues by modulus and extracts the
real stable/unstable eigendirection pair that seeds the invariant manifolds
of a Halo orbit.
"""

import logging
from dataclasses import dataclass

import numpy as np

from halos.algorithms.errors import NonPeriodicOrbitError
from halos.algorithms.manifolds.utils import (
    _normalize_real_direction,
    _zero_small_imag_part,
)


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EigendirectionPair:
    """
    Real saddle pair of a monodromy matrix.

    Attributes
    ----------
    stable : ndarray
        Unit eigenvector of ``stable_value``
    unstable : ndarray
        Unit eigenvector of ``unstable_value``
    stable_value : float
        Real eigenvalue of smallest magnitude, ``|stable_value| < 1``
    unstable_value : float
        Real eigenvalue of largest magnitude, ``|unstable_value| > 1``
    eigenvalues : ndarray
        All six eigenvalues
    """
    stable: np.ndarray
    unstable: np.ndarray
    stable_value: float
    unstable_value: float
    eigenvalues: np.ndarray


def has_unit_pair(eigenvalues, tol=1e-3):
    """
    Check for the trivial pair of monodromy eigenvalues at +1.

    Every periodic orbit of an autonomous Hamiltonian system has two
    eigenvalues equal to one (the flow direction and the energy direction).

    Returns
    -------
    bool
        True if at least two eigenvalues satisfy ``||lambda| - 1| < tol``.
    """
    eigenvalues = np.asarray(eigenvalues)
    return int(np.sum(np.abs(np.abs(eigenvalues) - 1.0) < tol)) >= 2


def stable_unstable_eigenvectors(M, delta=1e-3):
    """
    Extract the real stable/unstable eigendirections of a monodromy matrix.

    Parameters
    ----------
    M : ndarray
        6x6 monodromy matrix
    delta : float, optional
        The unstable eigenvalue must satisfy ``|lambda_u| > 1 + delta`` and
        the stable one ``|lambda_s| < 1 - delta``. Default is 1e-3.

    Returns
    -------
    EigendirectionPair

    Raises
    ------
    NonPeriodicOrbitError
        If the matrix is not finite or has no real eigenvalue pair split
        around the unit circle.
    """
    M = np.asarray(M, dtype=np.float64)
    if M.shape != (6, 6):
        raise ValueError(f"Monodromy matrix must have shape (6, 6), got {M.shape}")
    if not np.all(np.isfinite(M)):
        raise NonPeriodicOrbitError("monodromy matrix is not finite - orbit likely not periodic")

    eigvals, eigvecs = np.linalg.eig(M)
    cleaned = np.array([_zero_small_imag_part(ev, tol=1e-8) for ev in eigvals])
    real_idx = [k for k in range(len(cleaned)) if cleaned[k].imag == 0.0]
    if not real_idx:
        raise NonPeriodicOrbitError("no real eigenstructure - orbit likely not periodic")

    mags = np.abs(cleaned.real[real_idx])
    iu = real_idx[int(np.argmax(mags))]
    is_ = real_idx[int(np.argmin(mags))]
    lam_u = float(cleaned[iu].real)
    lam_s = float(cleaned[is_].real)

    if not (abs(lam_u) > 1 + delta and abs(lam_s) < 1 - delta):
        logger.debug("Real eigenvalues %s do not form a saddle pair", cleaned.real[real_idx])
        raise NonPeriodicOrbitError("no real eigenstructure - orbit likely not periodic")

    logger.debug("Saddle pair: lambda_u=%.6e, lambda_s=%.6e, product=%.6e",
                 lam_u, lam_s, lam_u * lam_s)

    return EigendirectionPair(
        stable=_normalize_real_direction(eigvecs[:, is_]),
        unstable=_normalize_real_direction(eigvecs[:, iu]),
        stable_value=lam_s,
        unstable_value=lam_u,
        eigenvalues=eigvals,
    )


def stable_eigenvector(M, delta=1e-3):
    """Real unit eigenvector of the stable eigenvalue of ``M``."""
    return stable_unstable_eigenvectors(M, delta=delta).stable


def unstable_eigenvector(M, delta=1e-3):
    """Real unit eigenvector of the unstable eigenvalue of ``M``."""
    return stable_unstable_eigenvectors(M, delta=delta).unstable


def orbit_eigenstructure(orbit, delta=1e-3, periodicity_tol=1e-6):
    """
    Eigendirection pair of a periodic orbit's monodromy matrix.

    The same one-period propagation that yields the monodromy matrix is used
    to check that the orbit closes on itself; the eigen-decomposition is
    only meaningful for a periodic orbit.

    Parameters
    ----------
    orbit : PeriodicOrbit
        The orbit
    delta : float, optional
        See :func:`stable_unstable_eigenvectors`
    periodicity_tol : float, optional
        Allowed state mismatch after one period. Default is 1e-6.

    Returns
    -------
    EigendirectionPair

    Raises
    ------
    NonPeriodicOrbitError
        If the orbit is not periodic or has no real saddle pair.
    """
    if not orbit.is_valid:
        raise NonPeriodicOrbitError(f"{orbit!r} has a non-finite state or period")

    x, _, monodromy, _ = orbit.propagate_with_stm()
    mismatch = np.max(np.abs(x[-1] - orbit.initial_state))
    if not np.isfinite(mismatch) or mismatch > periodicity_tol:
        raise NonPeriodicOrbitError(
            f"orbit does not close after one period (mismatch {mismatch:.3e} > {periodicity_tol:.1e})"
        )

    return stable_unstable_eigenvectors(monodromy, delta=delta)
