"""
Periodic orbit computation for the Circular Restricted Three-Body Problem (CR3BP).

This package provides:

- The third-order analytical Halo approximation
- The differential corrector for symmetric periodic orbits
- The :class:`HaloOrbit` object and the end-to-end :func:`halo` solver
- Amplitude sweeps of Halo families and their tabular export
"""

from .base import PeriodicOrbit
from .corrector import (
    CorrectionTarget,
    Converged,
    Failed,
    select_target,
    differential_correction,
)
from .halo import Hemisphere, HaloOrbit, halo_analytic, halo_initial_guess, halo
from .utils import find_y_crossing, is_periodic
from .family import HALO_TABLE_COLUMNS, halo_table, sweep_halos, write_halo_table

__all__ = [
    'PeriodicOrbit',
    'CorrectionTarget',
    'Converged',
    'Failed',
    'select_target',
    'differential_correction',
    'Hemisphere',
    'HaloOrbit',
    'halo_analytic',
    'halo_initial_guess',
    'halo',
    'find_y_crossing',
    'is_periodic',
    'HALO_TABLE_COLUMNS',
    'halo_table',
    'sweep_halos',
    'write_halo_table',
]
