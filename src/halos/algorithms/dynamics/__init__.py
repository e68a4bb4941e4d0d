"""
Dynamics of the CR3BP: equations of motion, propagation and the state
transition matrix.
"""

from .equations import crtbp_accel, jacobian_crtbp, variational_equations, crtbp_rhs
from .propagator import (
    augment_state,
    split_augmented,
    propagate_crtbp,
    propagate_with_stm,
    propagate_orbit,
)
from .stm import compute_stm, monodromy_matrix, stability_indices

__all__ = [
    'crtbp_accel',
    'jacobian_crtbp',
    'variational_equations',
    'crtbp_rhs',
    'augment_state',
    'split_augmented',
    'propagate_crtbp',
    'propagate_with_stm',
    'propagate_orbit',
    'compute_stm',
    'monodromy_matrix',
    'stability_indices',
]
