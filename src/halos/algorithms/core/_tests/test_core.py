import numpy as np
import pytest

from halos.algorithms.core.energy import (
    crtbp_energy,
    effective_potential,
    energy_to_jacobi,
    jacobi_constant,
    jacobi_to_energy,
)
from halos.algorithms.core.lagrange_points import (
    _dOmega_dx,
    gamma_L,
    get_lagrange_point,
    lagrange_point_locations,
)

MU_EM = 0.0121505856
MU_SE = 3.0034806e-06


def test_earth_moon_collinear_points():
    L1, L2, L3, L4, L5 = lagrange_point_locations(MU_EM)

    assert L1[0] == pytest.approx(0.836915, abs=1e-5)
    assert L2[0] == pytest.approx(1.155682, abs=1e-5)
    assert L3[0] == pytest.approx(-1.005063, abs=1e-5)
    for point in (L1, L2, L3):
        assert point[1] == 0.0 and point[2] == 0.0
        assert abs(_dOmega_dx(point[0], MU_EM)) < 1e-12


def test_triangular_points_form_equilateral_triangles():
    _, _, _, L4, L5 = lagrange_point_locations(MU_EM)
    primary = np.array([-MU_EM, 0.0, 0.0])
    secondary = np.array([1 - MU_EM, 0.0, 0.0])

    for point in (L4, L5):
        assert np.linalg.norm(point - primary) == pytest.approx(1.0)
        assert np.linalg.norm(point - secondary) == pytest.approx(1.0)
    assert L4[1] == pytest.approx(-L5[1])


def test_sun_earth_points_are_bracketed():
    L1 = get_lagrange_point(MU_SE, 1)
    L2 = get_lagrange_point(MU_SE, 2)

    # Both lie about one Hill radius (~0.01) from the Earth
    assert 0.98 < L1[0] < 1 - MU_SE
    assert 1 - MU_SE < L2[0] < 1.02
    assert abs(_dOmega_dx(L1[0], MU_SE)) < 1e-10
    assert abs(_dOmega_dx(L2[0], MU_SE)) < 1e-10


@pytest.mark.parametrize("mu", [MU_EM, MU_SE, 9.537e-4])
def test_gamma_matches_lagrange_point_distance(mu):
    L1 = get_lagrange_point(mu, 1)
    L2 = get_lagrange_point(mu, 2)
    L3 = get_lagrange_point(mu, 3)

    assert gamma_L(mu, 1) == pytest.approx((1 - mu) - L1[0], rel=1e-8)
    assert gamma_L(mu, 2) == pytest.approx(L2[0] - (1 - mu), rel=1e-8)
    assert gamma_L(mu, 3) == pytest.approx(-mu - L3[0], rel=1e-8)


def test_invalid_point_index():
    with pytest.raises(ValueError):
        get_lagrange_point(MU_EM, 6)
    with pytest.raises(ValueError):
        gamma_L(MU_EM, 4)


def test_jacobi_constant_at_rest_is_twice_the_potential():
    L1 = get_lagrange_point(MU_EM, 1)
    state = np.concatenate((L1, np.zeros(3)))

    C = jacobi_constant(state, MU_EM)

    assert C == pytest.approx(2 * effective_potential(L1, MU_EM))
    # Earth-Moon L1 energy level
    assert C == pytest.approx(3.1883, abs=1e-3)


def test_jacobi_constant_ignores_z_in_centrifugal_term():
    state = np.array([0.8, 0.0, 0.0, 0.0, 0.1, 0.0])
    lifted = state.copy()
    lifted[2] = 0.05

    r1 = np.sqrt((0.8 + MU_EM)**2 + 0.05**2)
    r2 = np.sqrt((0.8 - 1 + MU_EM)**2 + 0.05**2)
    expected = 2 * (1 - MU_EM) / r1 + 2 * MU_EM / r2 + 0.8**2 - 0.1**2

    assert jacobi_constant(lifted, MU_EM) == pytest.approx(expected)


def test_energy_jacobi_conversions():
    state = np.array([1.1, 0.02, 0.01, 0.003, -0.15, 0.002])
    E = crtbp_energy(state, MU_EM)

    assert E == pytest.approx(-jacobi_constant(state, MU_EM) / 2)
    assert energy_to_jacobi(E) == pytest.approx(jacobi_constant(state, MU_EM))
    assert jacobi_to_energy(energy_to_jacobi(E)) == pytest.approx(E)


if __name__ == "__main__":
    test_earth_moon_collinear_points()
    test_jacobi_constant_at_rest_is_twice_the_potential()
