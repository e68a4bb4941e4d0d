"""
CR3BP system model.

A :class:`CR3BPSystem` carries the single parameter of the nondimensional
Circular Restricted Three-Body Problem, the mass parameter ``mu``. It is an
immutable value passed explicitly to every computation, so independent
computations on different systems never share state.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional

import numpy as np

from halos.algorithms.core.lagrange_points import get_lagrange_point, gamma_L
from halos.utils.constants import SYSTEM_MASSES


@dataclass(frozen=True)
class CR3BPSystem:
    """
    Circular Restricted Three-Body Problem with mass parameter ``mu``.

    Parameters
    ----------
    mu : float
        Mass ratio m2 / (m1 + m2) of the smaller primary, ``0 < mu <= 0.5``.
    name : str, optional
        Display name, e.g. ``"Earth-Moon"``.

    Notes
    -----
    The larger primary sits at (-mu, 0, 0) and the smaller one at
    (1-mu, 0, 0) in the rotating frame. Lagrange point positions are
    computed on first access and cached.
    """
    mu: float
    name: Optional[str] = None
    _points: Dict[int, np.ndarray] = field(default_factory=dict, init=False,
                                           repr=False, compare=False)

    def __post_init__(self):
        mu = float(self.mu)
        if not np.isfinite(mu) or not (0.0 < mu <= 0.5):
            raise ValueError(f"Mass parameter must satisfy 0 < mu <= 0.5, got {self.mu}")
        object.__setattr__(self, 'mu', mu)

    @classmethod
    def from_masses(cls, m1, m2, name=None):
        """
        Build a system from the masses of its two primaries.

        Parameters
        ----------
        m1 : float
            Mass of the larger primary
        m2 : float
            Mass of the smaller primary
        name : str, optional
            Display name

        Returns
        -------
        CR3BPSystem
        """
        if m1 <= 0 or m2 <= 0:
            raise ValueError(f"Primary masses must be positive, got m1={m1}, m2={m2}")
        return cls(mu=float(m2 / (m1 + m2)), name=name)

    @property
    def primary_position(self):
        return np.array([-self.mu, 0.0, 0.0], dtype=np.float64)

    @property
    def secondary_position(self):
        return np.array([1.0 - self.mu, 0.0, 0.0], dtype=np.float64)

    def lagrange_point(self, L_i):
        """Position of libration point ``L_i`` (1-5) in the rotating frame."""
        if L_i not in self._points:
            self._points[L_i] = get_lagrange_point(self.mu, L_i)
        return self._points[L_i].copy()

    def gamma(self, L_i):
        """Distance from collinear point ``L_i`` to its nearest primary."""
        return gamma_L(self.mu, L_i)

    def __str__(self):
        label = self.name if self.name is not None else "CR3BP"
        return f"{label} (mu={self.mu:.10g})"


#: dict: Named systems keyed by name, ordered as in ``SYSTEM_MASSES``
NAMED_SYSTEMS = {
    name: CR3BPSystem.from_masses(m1, m2, name=name)
    for name, (m1, m2) in SYSTEM_MASSES.items()
}
