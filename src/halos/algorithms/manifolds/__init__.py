"""
Invariant manifolds of periodic orbits in the CR3BP.
"""

from .analysis import (
    EigendirectionPair,
    has_unit_pair,
    stable_unstable_eigenvectors,
    stable_eigenvector,
    unstable_eigenvector,
    orbit_eigenstructure,
)
from .manifold import (
    ManifoldDirection,
    ManifoldTrajectory,
    Manifold,
    perturb,
    compute_manifold,
)

__all__ = [
    'EigendirectionPair',
    'has_unit_pair',
    'stable_unstable_eigenvectors',
    'stable_eigenvector',
    'unstable_eigenvector',
    'orbit_eigenstructure',
    'ManifoldDirection',
    'ManifoldTrajectory',
    'Manifold',
    'perturb',
    'compute_manifold',
]
