"""
Astrodynamics algorithms for the Circular Restricted Three-Body Problem (CR3BP).

This package provides tools for computing Halo orbits and their invariant
manifolds, organized into several submodules:

- core:      Libration points and integrals of motion
- dynamics:  Equations of motion, numerical propagation and the STM
- orbits:    Analytical seeds, differential correction and family sweeps
- manifolds: Monodromy eigenstructure and invariant manifold generation
"""

from .errors import HaloError, ConvergenceError, SingularCorrectionError, NonPeriodicOrbitError
from .core.energy import jacobi_constant, crtbp_energy, energy_to_jacobi, jacobi_to_energy
from .core.lagrange_points import lagrange_point_locations, get_lagrange_point
from .dynamics.equations import crtbp_accel
from .dynamics.propagator import propagate_crtbp, propagate_with_stm
from .dynamics.stm import compute_stm, monodromy_matrix, stability_indices

__all__ = [
    # Errors
    'HaloError',
    'ConvergenceError',
    'SingularCorrectionError',
    'NonPeriodicOrbitError',

    # Core math functions
    'jacobi_constant',
    'crtbp_energy',
    'energy_to_jacobi',
    'jacobi_to_energy',
    'lagrange_point_locations',
    'get_lagrange_point',

    # Dynamics
    'crtbp_accel',
    'propagate_crtbp',
    'propagate_with_stm',
    'compute_stm',
    'monodromy_matrix',
    'stability_indices',
]
