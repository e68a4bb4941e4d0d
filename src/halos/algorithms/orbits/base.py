"""
Base class for periodic orbits in the Circular Restricted Three-Body Problem.

This module defines the interface shared by periodic orbit types: propagation,
the monodromy matrix and its eigenstructure, integrals of motion, the
periodicity check and the invariant manifolds.
"""

from abc import ABC, abstractmethod

import numpy as np

from halos.algorithms.core.energy import crtbp_energy, jacobi_constant
from halos.algorithms.dynamics.propagator import augment_state, propagate_crtbp, propagate_orbit, split_augmented
from halos.algorithms.dynamics.stm import compute_stm, stability_indices
from halos.algorithms.orbits.utils import is_periodic, periodicity_error
from halos.models.system import CR3BPSystem


class PeriodicOrbit(ABC):
    """
    Abstract base class for periodic orbits in the CR3BP.

    Attributes
    ----------
    system : CR3BPSystem
        The three-body system the orbit lives in
    initial_state : ndarray
        Initial state vector [x, y, z, vx, vy, vz]
    period : float
        Orbital period
    lagrange_point : int
        Libration point index the orbit is associated with
    """

    def __init__(self, system, initial_state, period, lagrange_point=None):
        if not isinstance(system, CR3BPSystem):
            raise TypeError(f"system must be a CR3BPSystem, got {type(system).__name__}")
        state = np.array(initial_state, dtype=np.float64)
        if state.shape != (6,):
            raise ValueError(f"Initial state must have shape (6,), got {state.shape}")
        state.flags.writeable = False

        self.system = system
        self.initial_state = state
        self.period = float(period)
        self.lagrange_point = lagrange_point
        self._stm_solution = None
        self._eigenstructure = {}

    @property
    def mu(self):
        return self.system.mu

    @property
    def half_period(self):
        return 0.5 * self.period

    @property
    def is_valid(self):
        """False for placeholder orbits carrying NaN values."""
        return bool(np.all(np.isfinite(self.initial_state)) and np.isfinite(self.period))

    @property
    def energy(self):
        """Compute the energy (Hamiltonian) value of the orbit."""
        return crtbp_energy(self.initial_state, self.mu)

    @property
    def jacobi_constant(self):
        """Compute the Jacobi constant of the orbit."""
        return jacobi_constant(self.initial_state, self.mu)

    def propagate(self, steps=1000, duration=None, integrator=None):
        """
        Propagate the orbit.

        Parameters
        ----------
        steps : int, optional
            Number of output samples. Default is 1000.
        duration : float, optional
            Propagation time. Defaults to one period.
        integrator : IntegratorConfig, optional
            Tolerances and method

        Returns
        -------
        tuple
            (t, trajectory) containing the time and state arrays
        """
        self._require_valid()
        if duration is None:
            duration = self.period
        t, states, _ = propagate_orbit(self.initial_state, self.mu, duration,
                                       steps=steps, integrator=integrator)
        return t, states

    def propagate_with_stm(self, integrator=None):
        """
        Propagate state and STM over one period with dense output.

        The result is cached for the default integrator, since the monodromy
        matrix, the periodicity check and the manifold sampling all reuse it.

        Returns
        -------
        x : ndarray
            States at the integrator steps, shape (n_times, 6)
        t : ndarray
            Integrator step times
        monodromy : ndarray
            Φ(T, 0)
        sol : OdeResult
            Solution with ``sol.sol`` the dense interpolant of the
            augmented state
        """
        self._require_valid()
        if integrator is None and self._stm_solution is not None:
            return self._stm_solution

        sol = propagate_crtbp(augment_state(self.initial_state), 0.0, self.period, self.mu,
                              steps=None, integrator=integrator, dense_output=True)
        x, stms = split_augmented(sol.y)
        result = (x, sol.t, stms[-1].copy(), sol)
        if integrator is None:
            self._stm_solution = result
        return result

    def monodromy(self, integrator=None):
        """Monodromy matrix Φ(T, 0) of the orbit."""
        return self.propagate_with_stm(integrator=integrator)[2]

    def stm(self, t, integrator=None):
        """State transition matrix Φ(t, 0) for ``0 <= t <= T``."""
        self._require_valid()
        if t == 0:
            return np.eye(6)
        _, _, phi_t, _ = compute_stm(self.initial_state, self.mu, t, integrator=integrator)
        return phi_t

    def stability_indices(self):
        """Stability indices of the monodromy matrix (see :func:`stability_indices`)."""
        return stability_indices(self.monodromy())

    def periodicity_error(self, integrator=None):
        """Largest state mismatch after one period."""
        return periodicity_error(self.initial_state, self.period, self.mu, integrator=integrator)

    def is_periodic(self, tol=1e-6, integrator=None):
        """Whether the orbit returns to its initial state within ``tol`` after one period."""
        return is_periodic(self.initial_state, self.period, self.mu, tol=tol, integrator=integrator)

    def eigenstructure(self, delta=1e-3, periodicity_tol=1e-6):
        """
        Stable/unstable eigendirections of the monodromy matrix.

        Returns
        -------
        EigendirectionPair

        Raises
        ------
        NonPeriodicOrbitError
            If the orbit is not periodic or has no real saddle pair.
        """
        from halos.algorithms.manifolds.analysis import orbit_eigenstructure

        key = (delta, periodicity_tol)
        if key not in self._eigenstructure:
            self._eigenstructure[key] = orbit_eigenstructure(self, delta=delta,
                                                             periodicity_tol=periodicity_tol)
        return self._eigenstructure[key]

    def manifold(self, direction, **kwargs):
        """
        Compute the stable or unstable invariant manifold of the orbit.

        Parameters
        ----------
        direction : ManifoldDirection or str
            ``"stable"`` or ``"unstable"``
        **kwargs
            Passed to :func:`compute_manifold`

        Returns
        -------
        Manifold
        """
        from halos.algorithms.manifolds.manifold import compute_manifold

        return compute_manifold(self, direction, **kwargs)

    def _require_valid(self):
        if not self.is_valid:
            raise ValueError(f"{type(self).__name__} has a non-finite state or period")

    @abstractmethod
    def differential_correction(self, **kwargs):
        """
        Apply differential correction to the initial state.

        Returns
        -------
        PeriodicOrbit
            A new, corrected orbit
        """
        pass

    @classmethod
    @abstractmethod
    def initial_guess(cls, system, L_i, amplitude, **kwargs):
        """
        Generate an initial guess for an orbit of this type.

        Parameters
        ----------
        system : CR3BPSystem
            The three-body system
        L_i : int
            Libration point index
        amplitude : float
            Characteristic amplitude of the orbit
        **kwargs
            Additional keyword arguments specific to the orbit type

        Returns
        -------
        PeriodicOrbit
            A new, uncorrected orbit
        """
        pass
