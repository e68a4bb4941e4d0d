"""
Manifold computation module for the Circular Restricted Three-Body Problem (CR3BP).

This module computes the stable and unstable invariant manifolds of periodic
orbits. Points are sampled along the orbit, displaced along the stable or
unstable eigendirection carried to that point by the state transition
matrix, and propagated: forward in time for the unstable manifold, backward
for the stable one.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

import numpy as np
import pandas as pd
from tqdm import tqdm

from halos.algorithms.dynamics.propagator import propagate_crtbp, split_augmented
from halos.algorithms.errors import NonPeriodicOrbitError
from halos.algorithms.manifolds.analysis import EigendirectionPair


logger = logging.getLogger(__name__)


class ManifoldDirection(Enum):
    """Stable manifolds approach the orbit forward in time, unstable ones leave it."""
    STABLE = "stable"
    UNSTABLE = "unstable"

    @property
    def forward(self):
        """Integration direction used to grow the manifold away from the orbit."""
        return -1 if self is ManifoldDirection.STABLE else 1


@dataclass(frozen=True)
class ManifoldTrajectory:
    """One propagated manifold trajectory."""
    time_fraction: float
    initial_state: np.ndarray
    times: np.ndarray
    states: np.ndarray

    @property
    def final_state(self):
        return self.states[-1]


@dataclass
class Manifold:
    """
    Container for manifold computation results.

    Attributes
    ----------
    direction : ManifoldDirection
        Stable or unstable
    eps : float
        Signed displacement along the eigendirection
    duration : float
        Propagation time of every trajectory
    trajectories : list of ManifoldTrajectory
        Ordered by sample time along the orbit
    num_requested : int
        Number of sample points attempted
    eigenpair : EigendirectionPair, optional
        The eigendirections the manifold was seeded from
    """
    direction: ManifoldDirection
    eps: float
    duration: float
    trajectories: List[ManifoldTrajectory]
    num_requested: int
    eigenpair: Optional[EigendirectionPair] = None

    def __len__(self):
        return len(self.trajectories)

    def __iter__(self):
        return iter(self.trajectories)

    def __getitem__(self, idx):
        return self.trajectories[idx]

    @property
    def success_rate(self) -> float:
        """Fraction of sample points that produced a finite trajectory."""
        return len(self.trajectories) / max(1, self.num_requested)

    def to_df(self) -> pd.DataFrame:
        """Return every trajectory sample as a row of a DataFrame."""
        frames = []
        for idx, traj in enumerate(self.trajectories):
            frame = pd.DataFrame(traj.states, columns=["x", "y", "z", "vx", "vy", "vz"])
            frame.insert(0, "time", traj.times)
            frame.insert(0, "time_fraction", traj.time_fraction)
            frame.insert(0, "trajectory", idx)
            frames.append(frame)
        if not frames:
            return pd.DataFrame(columns=["trajectory", "time_fraction", "time",
                                         "x", "y", "z", "vx", "vy", "vz"])
        return pd.concat(frames, ignore_index=True)

    def to_csv(self, filepath, **kwargs):
        """Write :meth:`to_df` to a CSV file."""
        self.to_df().to_csv(filepath, index=False, **kwargs)
        logger.info("Manifold trajectories exported to %s", filepath)


def perturb(state, stm, vector, eps):
    """
    Displace a state along an eigendirection carried by the STM.

    Parameters
    ----------
    state : array_like
        State x(t) on the orbit
    stm : array_like
        6x6 state transition matrix Φ(t, 0)
    vector : array_like
        Eigendirection at t = 0
    eps : float
        Displacement magnitude (signed; the sign picks the branch)

    Returns
    -------
    ndarray
        ``x(t) + eps * d`` with ``d = Φ(t, 0) v / ||Φ(t, 0) v||``
    """
    direction = np.asarray(stm, dtype=np.float64) @ np.asarray(vector, dtype=np.float64)
    norm = np.linalg.norm(direction)
    if not np.isfinite(norm) or norm == 0.0:
        raise ValueError(f"Cannot normalise mapped eigendirection (norm={norm})")
    return np.asarray(state, dtype=np.float64) + eps * direction / norm


def _orbit_samples(orbit, times, integrator):
    """States and STMs of the orbit at ``times`` from one dense propagation."""
    sol = orbit.propagate_with_stm(integrator=integrator)[3]
    return split_augmented(sol.sol(times))


def compute_manifold(orbit, direction, eps=1e-6, duration=None, num_trajectories=50,
                     eigenpair=None, steps=1000, integrator=None, n_workers=1,
                     show_progress=False, branch=1):
    """
    Computes the stable or unstable manifold of a periodic orbit in the CR3BP.

    Parameters
    ----------
    orbit : PeriodicOrbit
        A corrected periodic orbit
    direction : ManifoldDirection or {"stable", "unstable"}
        Manifold type
    eps : float, optional
        Signed displacement along the normalised eigendirection; a negative
        value puts the trajectories on the other side of the orbit.
        Default is 1e-6.
    duration : float, optional
        Propagation time of each trajectory. Defaults to one orbit period.
    num_trajectories : int, optional
        Number of sample points ``t_i = i T / N`` along the orbit. Default is 50.
    eigenpair : EigendirectionPair, optional
        Precomputed eigendirections; computed from the orbit's monodromy
        matrix when omitted.
    steps : int, optional
        Number of output samples per trajectory. Default is 1000.
    integrator : IntegratorConfig, optional
        Tolerances and method
    n_workers : int, optional
        Number of threads propagating trajectories. Default is 1.
    show_progress : bool, optional
        Whether to display a progress bar during computation.
    branch : {1, -1}, optional
        Multiplies ``eps``; ``-1`` flips the side of the orbit the
        displacement points to. Default is 1.

    Returns
    -------
    Manifold
        Trajectories ordered by sample time along the orbit. Trajectories
        that leave the domain of the integrator or become non-finite are
        logged and left out.

    Raises
    ------
    NonPeriodicOrbitError
        If the orbit is not periodic or lacks a real saddle pair.
    ValueError
        If parameters are outside valid ranges.
    """
    direction = ManifoldDirection(direction)
    if num_trajectories < 1:
        raise ValueError(f"num_trajectories must be at least 1, got {num_trajectories}")
    if eps == 0 or not np.isfinite(eps):
        raise ValueError(f"eps must be nonzero and finite, got {eps}")
    if branch not in (1, -1):
        raise ValueError(f"branch must be 1 or -1, got {branch}")
    if not orbit.is_valid:
        raise NonPeriodicOrbitError(f"{orbit!r} has a non-finite state or period")

    if eigenpair is None:
        eigenpair = orbit.eigenstructure()
    vector = eigenpair.stable if direction is ManifoldDirection.STABLE else eigenpair.unstable

    period = orbit.period
    if duration is None:
        duration = period
    if duration <= 0:
        raise ValueError(f"duration must be positive, got {duration}")

    forward = direction.forward
    fractions = np.arange(num_trajectories) / num_trajectories
    states, stms = _orbit_samples(orbit, fractions * period, integrator)

    logger.info("Computing %s manifold of %r: %d trajectories over %.4f time units",
                direction.value, orbit, num_trajectories, duration)

    def _worker(i):
        x0 = perturb(states[i], stms[i], vector, branch * eps)
        sol = propagate_crtbp(x0, 0.0, duration, orbit.mu, forward=forward, steps=steps,
                              integrator=integrator)
        traj = sol.y.T
        if not sol.success or not np.all(np.isfinite(traj)):
            logger.warning("Manifold trajectory at fraction %.3f failed: %s", fractions[i], sol.message)
            return None
        return ManifoldTrajectory(float(fractions[i]), x0, sol.t, traj)

    indices = range(num_trajectories)
    if n_workers > 1:
        with ThreadPoolExecutor(max_workers=n_workers) as ex:
            # map preserves submission order
            results = list(tqdm(ex.map(_worker, indices), total=num_trajectories,
                                desc=f"{direction.value} manifold", disable=not show_progress))
    else:
        results = [_worker(i) for i in tqdm(indices, desc=f"{direction.value} manifold",
                                            disable=not show_progress)]

    trajectories = [traj for traj in results if traj is not None]
    logger.info("Manifold computation completed: %d/%d trajectories",
                len(trajectories), num_trajectories)

    return Manifold(direction=direction, eps=eps, duration=duration, trajectories=trajectories,
                    num_requested=num_trajectories, eigenpair=eigenpair)
