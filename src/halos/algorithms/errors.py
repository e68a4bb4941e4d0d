"""
Custom exceptions for the algorithms package.
"""


class HaloError(Exception):
    """Base exception for Halo orbit and manifold computations.

    Parameters
    ----------
    message : str
        The error message.
    """

    def __init__(self, message: str):
        super().__init__(message)


class ConvergenceError(HaloError):
    """Raised when the differential corrector fails to converge.

    Parameters
    ----------
    message : str
        The error message.
    result : object, optional
        The failed correction result, kept for diagnostics.
    """

    def __init__(self, message: str, result=None):
        super().__init__(message)
        self.result = result


class SingularCorrectionError(HaloError):
    """Raised when the differential-correction matrix is numerically singular.

    This points at a formula/configuration mismatch (e.g. holding ``z0`` fixed
    while targeting a planar orbit), not at a sensitivity limit.
    """

    def __init__(self, message: str):
        super().__init__(message)


class NonPeriodicOrbitError(HaloError):
    """Raised when an orbit fails the periodicity check or lacks a real
    stable/unstable eigenvalue pair."""

    def __init__(self, message: str):
        super().__init__(message)
