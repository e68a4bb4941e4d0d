import numpy as np
import pytest

from halos.algorithms.errors import NonPeriodicOrbitError
from halos.algorithms.manifolds.analysis import (
    EigendirectionPair,
    has_unit_pair,
    stable_eigenvector,
    stable_unstable_eigenvectors,
    unstable_eigenvector,
)
from halos.algorithms.manifolds.utils import (
    _normalize_real_direction,
    _zero_small_imag_part,
)
from halos.algorithms.orbits.halo import HaloOrbit, halo
from halos.models.system import CR3BPSystem

MU = 0.0121505856
SYSTEM = CR3BPSystem(MU, name="Earth-Moon")


def _rotation(theta):
    c, s = np.cos(theta), np.sin(theta)
    return np.array([[c, -s], [s, c]])


def _conjugate(D, seed=0):
    rng = np.random.default_rng(seed)
    Q, _ = np.linalg.qr(rng.normal(size=(6, 6)))
    return Q @ D @ Q.T, Q


def _saddle_matrix():
    D = np.zeros((6, 6))
    D[0, 0] = 500.0
    D[1, 1] = 1 / 500.0
    D[2, 2] = 1.0
    D[3, 3] = 1.0
    D[4:, 4:] = _rotation(0.7)
    return _conjugate(D)


@pytest.fixture(scope="module")
def l1_halo():
    return halo(SYSTEM, 0.01, L=1, tol=1e-10)


def test_saddle_pair_of_synthetic_matrix():
    M, Q = _saddle_matrix()
    pair = stable_unstable_eigenvectors(M)

    assert isinstance(pair, EigendirectionPair)
    assert pair.unstable_value == pytest.approx(500.0)
    assert pair.stable_value == pytest.approx(1 / 500.0)

    for value, vec in ((pair.unstable_value, pair.unstable), (pair.stable_value, pair.stable)):
        assert vec.dtype == np.float64
        assert np.linalg.norm(vec) == pytest.approx(1.0)
        assert np.allclose(M @ vec, value * vec, atol=1e-9 * max(1.0, abs(value)))
        # first significant component is positive
        assert vec[np.argmax(np.abs(vec) > 1e-8)] > 0

    assert abs(pair.unstable @ Q[:, 0]) == pytest.approx(1.0)
    assert abs(pair.stable @ Q[:, 1]) == pytest.approx(1.0)


def test_eigenvector_sign_is_deterministic():
    M, _ = _saddle_matrix()
    assert np.array_equal(unstable_eigenvector(M), unstable_eigenvector(M))
    assert np.allclose(stable_eigenvector(M), _normalize_real_direction(-stable_eigenvector(M)))


def test_negative_saddle_eigenvalues_are_accepted():
    D = np.diag([-300.0, -1 / 300.0, 1.0, 1.0, 1.0, 1.0])
    D[4:, 4:] = _rotation(1.3)
    M, _ = _conjugate(D, seed=3)

    pair = stable_unstable_eigenvectors(M)
    assert pair.unstable_value == pytest.approx(-300.0)
    assert pair.stable_value == pytest.approx(-1 / 300.0)


def test_no_saddle_pair_raises():
    D = np.eye(6)
    D[2:4, 2:4] = _rotation(0.4)
    D[4:, 4:] = _rotation(1.1)
    M, _ = _conjugate(D, seed=1)

    with pytest.raises(NonPeriodicOrbitError, match="no real eigenstructure"):
        stable_unstable_eigenvectors(M)


def test_saddle_within_delta_raises():
    D = np.diag([1.0005, 1 / 1.0005, 1.0, 1.0, 1.0, 1.0])
    M, _ = _conjugate(D, seed=2)

    with pytest.raises(NonPeriodicOrbitError):
        stable_unstable_eigenvectors(M, delta=1e-3)
    assert stable_unstable_eigenvectors(M, delta=1e-4).unstable_value == pytest.approx(1.0005)


def test_invalid_monodromy_matrices():
    M, _ = _saddle_matrix()
    M[0, 0] = np.nan
    with pytest.raises(NonPeriodicOrbitError):
        stable_unstable_eigenvectors(M)
    with pytest.raises(ValueError):
        stable_unstable_eigenvectors(np.eye(4))


def test_has_unit_pair():
    assert has_unit_pair([500.0, 0.002, 1.0, 1.0, np.exp(0.3j), np.exp(-0.3j)])
    assert has_unit_pair([500.0, 0.002, 1.0001, 0.9999, 2.0, 0.5])
    assert not has_unit_pair([500.0, 0.002, 1.1, 0.9, 2.0, 0.5])


def test_zero_small_imag_part():
    assert _zero_small_imag_part(2.0 + 1e-14j).imag == 0.0
    assert _zero_small_imag_part(2.0 + 1e-3j).imag == 1e-3
    # relative to the magnitude for large eigenvalues
    assert _zero_small_imag_part(1e6 + 1e-7j, tol=1e-12).imag == 0.0


def test_halo_monodromy_eigenstructure(l1_halo):
    pair = l1_halo.eigenstructure()
    M = l1_halo.monodromy()

    assert has_unit_pair(pair.eigenvalues)
    assert abs(pair.unstable_value) > 10
    assert pair.unstable_value * pair.stable_value == pytest.approx(1.0, rel=1e-3)
    assert np.allclose(M @ pair.unstable, pair.unstable_value * pair.unstable,
                       atol=1e-6 * abs(pair.unstable_value))
    # cached per (delta, periodicity_tol)
    assert l1_halo.eigenstructure() is pair


def test_stability_indices_flag_instability(l1_halo):
    (nu1, _), eigs = l1_halo.stability_indices()
    assert abs(nu1) > 1
    assert abs(eigs[0]) == pytest.approx(abs(l1_halo.eigenstructure().unstable_value))


def test_seed_orbit_is_rejected():
    seed = HaloOrbit.initial_guess(SYSTEM, 1, 0.01)
    with pytest.raises(NonPeriodicOrbitError, match="does not close"):
        seed.eigenstructure()


if __name__ == "__main__":
    test_saddle_pair_of_synthetic_matrix()
    test_no_saddle_pair_raises()
