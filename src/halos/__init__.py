"""
Halo orbits and their invariant manifolds in the Circular Restricted Three-Body Problem.
"""

from halos.models.system import CR3BPSystem, NAMED_SYSTEMS
from halos.config import IntegratorConfig, CorrectorConfig, SweepConfig
from halos.algorithms.errors import (
    HaloError,
    ConvergenceError,
    SingularCorrectionError,
    NonPeriodicOrbitError,
)
from halos.algorithms.orbits import (
    CorrectionTarget,
    Hemisphere,
    HaloOrbit,
    halo,
    halo_analytic,
    differential_correction,
    sweep_halos,
    write_halo_table,
)
from halos.algorithms.manifolds import ManifoldDirection, compute_manifold

__version__ = "0.1.0"

__all__ = [
    'CR3BPSystem',
    'NAMED_SYSTEMS',
    'IntegratorConfig',
    'CorrectorConfig',
    'SweepConfig',
    'HaloError',
    'ConvergenceError',
    'SingularCorrectionError',
    'NonPeriodicOrbitError',
    'CorrectionTarget',
    'Hemisphere',
    'HaloOrbit',
    'halo',
    'halo_analytic',
    'differential_correction',
    'sweep_halos',
    'write_halo_table',
    'ManifoldDirection',
    'compute_manifold',
]
