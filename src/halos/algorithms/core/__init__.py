"""
Core mathematical functions for the Circular Restricted Three-Body Problem (CR3BP).

This package contains the libration point locations and the integrals of
motion used throughout the orbit and manifold computations.
"""

from .lagrange_points import lagrange_point_locations, get_lagrange_point, gamma_L
from .energy import (
    effective_potential,
    jacobi_constant,
    crtbp_energy,
    energy_to_jacobi,
    jacobi_to_energy,
)

__all__ = [
    'lagrange_point_locations',
    'get_lagrange_point',
    'gamma_L',
    'effective_potential',
    'jacobi_constant',
    'crtbp_energy',
    'energy_to_jacobi',
    'jacobi_to_energy',
]
