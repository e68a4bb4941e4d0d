import random
import time
from types import SimpleNamespace

import numpy as np
import pandas as pd
import pytest

import halos.algorithms.orbits.family as family
from halos.algorithms.errors import SingularCorrectionError
from halos.algorithms.orbits.family import (
    HALO_TABLE_COLUMNS,
    accept_orbit,
    halo_table,
    read_halo_table,
    sweep_halos,
    sweep_lagrange_point,
    write_halo_table,
)
from halos.algorithms.orbits.halo import HaloOrbit
from halos.config import CorrectorConfig, SweepConfig
from halos.models.system import CR3BPSystem

MU = 0.0121505856
SYSTEM = CR3BPSystem(MU, name="Earth-Moon")


def fake_orbit(system, Az, L):
    return SimpleNamespace(
        mu=system.mu, lagrange_point=L, z_amplitude=Az, jacobi_constant=3.0, period=2.5,
        initial_state=np.array([0.8, 0.0, Az, 0.0, 0.1, 0.0]), is_valid=True,
    )


@pytest.fixture(scope="module")
def coarse_table():
    config = SweepConfig(az_start=0.0, az_stop=0.01, az_step=0.005, lagrange_points=(1,),
                         corrector=CorrectorConfig(tol=1e-10))
    return sweep_halos(SYSTEM, config)


def test_coarse_sweep_table(coarse_table):
    df = coarse_table

    assert list(df.columns) == HALO_TABLE_COLUMNS
    assert len(df) > 0
    assert isinstance(df.index, pd.RangeIndex) and df.index[0] == 0
    assert not df.isna().any().any()
    assert (df["lagrange_point"] == 1).all()
    assert (df["mass_parameter"] == MU).all()
    assert (df["period"] >= 1.0).all()
    assert df["z_amplitude"].is_monotonic_increasing


def test_table_round_trip(coarse_table, tmp_path):
    path = tmp_path / "nested" / "earth-moon-halos.csv"
    write_halo_table(coarse_table, str(path))

    assert path.exists()
    with open(path) as f:
        assert f.readline().strip() == ",".join(HALO_TABLE_COLUMNS)

    df = read_halo_table(str(path))
    assert len(df) == len(coarse_table)
    assert np.allclose(df["x"].values, coarse_table["x"].values, rtol=0, atol=1e-15)


def test_write_rejects_incomplete_table(tmp_path):
    df = pd.DataFrame({"x": [1.0]})
    with pytest.raises(ValueError):
        write_halo_table(df, str(tmp_path / "bad.csv"))


def test_empty_table_has_all_columns():
    df = halo_table([])
    assert list(df.columns) == HALO_TABLE_COLUMNS
    assert len(df) == 0


def test_accept_orbit_rejects_placeholders_and_short_periods():
    config = SweepConfig()
    nan_orbit = HaloOrbit(SYSTEM, np.full(6, np.nan), np.nan, lagrange_point=1)
    assert not accept_orbit(nan_orbit, config)

    L1 = SYSTEM.lagrange_point(1)
    short = HaloOrbit(SYSTEM, np.concatenate((L1, np.zeros(3))), 0.5, lagrange_point=1)
    assert not accept_orbit(short, config)

    # An equilibrium is trivially periodic for any period
    resting = HaloOrbit(SYSTEM, np.concatenate((L1, np.zeros(3))), 2.0, lagrange_point=1)
    assert accept_orbit(resting, config)


def test_sweep_stops_after_consecutive_failures(monkeypatch):
    calls = []

    def failing_halo(system, Az, **kwargs):
        calls.append(Az)
        return HaloOrbit(system, np.full(6, np.nan), np.nan, lagrange_point=kwargs["L"],
                         z_amplitude=Az)

    monkeypatch.setattr(family, "halo", failing_halo)
    config = SweepConfig(az_stop=0.01, az_step=0.001, max_consecutive_failures=3)

    assert sweep_lagrange_point(SYSTEM, 1, config) == []
    assert len(calls) == 3


def test_failure_counter_resets_on_acceptance(monkeypatch):
    calls = []
    good = {0.0, 0.003, 0.006}

    def flaky_halo(system, Az, **kwargs):
        calls.append(Az)
        return fake_orbit(system, Az, kwargs["L"])

    monkeypatch.setattr(family, "halo", flaky_halo)
    monkeypatch.setattr(family, "accept_orbit",
                        lambda orbit, config: round(orbit.z_amplitude, 9) in good)
    config = SweepConfig(az_stop=0.01, az_step=0.001, max_consecutive_failures=3)

    accepted = sweep_lagrange_point(SYSTEM, 1, config)

    # Two failures between accepted amplitudes never reach the limit
    assert [round(o.z_amplitude, 9) for o in accepted] == [0.0, 0.003, 0.006]
    assert len(calls) == 10


def test_early_stop_can_be_disabled(monkeypatch):
    calls = []

    def raising_halo(system, Az, **kwargs):
        calls.append(Az)
        raise SingularCorrectionError("singular correction matrix")

    monkeypatch.setattr(family, "halo", raising_halo)
    config = SweepConfig(az_stop=0.01, az_step=0.001, max_consecutive_failures=None)

    assert sweep_lagrange_point(SYSTEM, 1, config) == []
    assert len(calls) == 11


def test_parallel_sweep_preserves_order(monkeypatch):
    systems = [CR3BPSystem(0.0121505856, name="Earth-Moon"),
               CR3BPSystem(9.537e-4, name="Sun-Jupiter")]

    def slow_halo(system, Az, **kwargs):
        time.sleep(random.uniform(0.0, 0.002))
        return fake_orbit(system, Az, kwargs["L"])

    monkeypatch.setattr(family, "halo", slow_halo)
    monkeypatch.setattr(family, "accept_orbit", lambda orbit, config: True)

    serial = sweep_halos(systems, SweepConfig(az_stop=0.004, az_step=0.001, n_workers=1))
    parallel = sweep_halos(systems, SweepConfig(az_stop=0.004, az_step=0.001, n_workers=4))

    pd.testing.assert_frame_equal(serial, parallel)
    assert len(parallel) == 2 * 2 * 5
    assert list(parallel["mass_parameter"].unique()) == [0.0121505856, 9.537e-4]
    first = parallel[parallel["mass_parameter"] == 0.0121505856]
    assert list(first["lagrange_point"]) == [1] * 5 + [2] * 5
    assert list(parallel.index) == list(range(20))


if __name__ == "__main__":
    config = SweepConfig(az_stop=0.01, az_step=0.001, lagrange_points=(1,), show_progress=True)
    print(sweep_halos(SYSTEM, config))
