"""
Halo families over a grid of z-amplitudes, and their tabular export.

A sweep runs, for every system and libration point, the end-to-end Halo
solver over an amplitude grid. Each ``(system, L)`` pair is an independent
unit of work; the units run on a thread pool and their rows are combined
afterwards in a fixed order, so the resulting table does not depend on
scheduling.
"""

import logging
import os
from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pandas as pd
from tqdm import tqdm

from halos.algorithms.errors import HaloError, SingularCorrectionError
from halos.algorithms.orbits.halo import Hemisphere, halo
from halos.config import SweepConfig


logger = logging.getLogger(__name__)

#: Columns of a Halo table, in order
HALO_TABLE_COLUMNS = [
    "mass_parameter", "lagrange_point", "z_amplitude", "jacobi_constant", "period",
    "x", "y", "z", "vx", "vy", "vz",
]


def halo_row(orbit):
    """Table row of one orbit, keyed by :data:`HALO_TABLE_COLUMNS`."""
    x, y, z, vx, vy, vz = orbit.initial_state
    return {
        "mass_parameter": orbit.mu,
        "lagrange_point": int(orbit.lagrange_point),
        "z_amplitude": orbit.z_amplitude,
        "jacobi_constant": orbit.jacobi_constant,
        "period": orbit.period,
        "x": x, "y": y, "z": z,
        "vx": vx, "vy": vy, "vz": vz,
    }


def halo_table(orbits):
    """
    Summarise orbits as a DataFrame.

    Parameters
    ----------
    orbits : iterable of HaloOrbit

    Returns
    -------
    pandas.DataFrame
        One row per orbit with columns :data:`HALO_TABLE_COLUMNS` and the
        default integer index ``0..n-1``.
    """
    rows = [halo_row(orbit) for orbit in orbits]
    df = pd.DataFrame(rows, columns=HALO_TABLE_COLUMNS)
    df["lagrange_point"] = df["lagrange_point"].astype(int)
    return df


def accept_orbit(orbit, config):
    """
    Acceptance test of the sweep.

    An orbit is kept when its state and period are finite, its period is at
    least ``config.min_period`` and it closes on itself within
    ``config.periodicity_tol`` after one period.
    """
    if not orbit.is_valid:
        return False
    if orbit.period < config.min_period:
        return False
    return orbit.is_periodic(tol=config.periodicity_tol, integrator=config.integrator)


def sweep_lagrange_point(system, L, config=None, hemisphere=Hemisphere.NORTHERN, position=None):
    """
    Sweep the amplitude grid at one libration point of one system.

    Parameters
    ----------
    system : CR3BPSystem
        The three-body system
    L : int
        Libration point index (1 or 2)
    config : SweepConfig, optional
        Amplitude grid and acceptance policy
    hemisphere : Hemisphere or str, optional
        Family branch
    position : int, optional
        Progress bar line, when several sweeps report at once

    Returns
    -------
    list of HaloOrbit
        Accepted orbits in order of increasing amplitude.

    Notes
    -----
    The sweep stops once ``config.max_consecutive_failures`` amplitudes in a
    row were rejected (``None`` disables the early stop). A rejected
    amplitude is one whose corrector failed, raised, or produced an orbit
    failing :func:`accept_orbit`.
    """
    if config is None:
        config = SweepConfig()

    accepted = []
    failures = 0
    amplitudes = config.amplitudes()
    label = f"{system.name or system.mu} L{L}"

    for Az in tqdm(amplitudes, desc=label, position=position, leave=False,
                   disable=not config.show_progress):
        if config.max_consecutive_failures is not None and failures >= config.max_consecutive_failures:
            logger.info("%s: stopping at Az=%.6g after %d consecutive failures", label, Az, failures)
            break

        try:
            orbit = halo(system, Az, L=L, hemisphere=hemisphere, nan_on_fail=True,
                         integrator=config.integrator, corrector=config.corrector)
        except SingularCorrectionError as exc:
            logger.error("%s Az=%.6g: %s", label, Az, exc)
            failures += 1
            continue
        except (HaloError, ValueError, ArithmeticError) as exc:
            logger.warning("%s Az=%.6g: %s", label, Az, exc)
            failures += 1
            continue

        if accept_orbit(orbit, config):
            accepted.append(orbit)
            failures = 0
        else:
            logger.debug("%s Az=%.6g rejected (period=%s)", label, Az, orbit.period)
            failures += 1

    logger.info("%s: %d of %d amplitudes accepted", label, len(accepted), len(amplitudes))
    return accepted


def sweep_halos(systems, config=None, hemisphere=Hemisphere.NORTHERN):
    """
    Sweep Halo families for one or more systems.

    Parameters
    ----------
    systems : CR3BPSystem or iterable of CR3BPSystem
    config : SweepConfig, optional
        Amplitude grid, acceptance policy and worker count
    hemisphere : Hemisphere or str, optional
        Family branch

    Returns
    -------
    pandas.DataFrame
        Accepted orbits of all systems, ordered by system, then libration
        point, then amplitude, with a fresh ``0..n-1`` index.
    """
    if config is None:
        config = SweepConfig()
    if hasattr(systems, "mu"):
        systems = [systems]

    units = [(system, L) for system in systems for L in config.lagrange_points]

    def _worker(item):
        idx, (system, L) = item
        position = idx if config.n_workers > 1 else None
        return sweep_lagrange_point(system, L, config, hemisphere=hemisphere, position=position)

    if config.n_workers <= 1 or len(units) <= 1:
        results = [_worker(item) for item in enumerate(units)]
    else:
        with ThreadPoolExecutor(max_workers=config.n_workers) as ex:
            # map preserves submission order
            results = list(ex.map(_worker, enumerate(units)))

    orbits = [orbit for unit in results for orbit in unit]
    return halo_table(orbits)


def write_halo_table(df, path, **kwargs):
    """
    Write a Halo table to CSV.

    Parameters
    ----------
    df : pandas.DataFrame
        Table as returned by :func:`halo_table` or :func:`sweep_halos`
    path : str
        Destination file; parent directories are created.
    **kwargs
        Passed to :meth:`pandas.DataFrame.to_csv`
    """
    missing = [col for col in HALO_TABLE_COLUMNS if col not in df.columns]
    if missing:
        raise ValueError(f"Halo table is missing columns {missing}")

    directory = os.path.dirname(os.path.abspath(path))
    os.makedirs(directory, exist_ok=True)

    df.loc[:, HALO_TABLE_COLUMNS].to_csv(path, index=False, **kwargs)
    logger.info("Wrote %d orbits to %s", len(df), path)


def read_halo_table(path):
    """Read a table written by :func:`write_halo_table`."""
    df = pd.read_csv(path)
    return df.loc[:, HALO_TABLE_COLUMNS].astype({"lagrange_point": np.int64})
