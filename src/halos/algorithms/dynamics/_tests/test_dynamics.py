import numpy as np
import pytest

from halos.algorithms.core.energy import jacobi_constant
from halos.algorithms.core.lagrange_points import get_lagrange_point
from halos.algorithms.dynamics.equations import (
    crtbp_accel,
    crtbp_rhs,
    jacobian_crtbp,
    variational_equations,
)
from halos.algorithms.dynamics.propagator import (
    augment_state,
    propagate_crtbp,
    propagate_with_stm,
    split_augmented,
)
from halos.algorithms.dynamics.stm import compute_stm, monodromy_matrix, stability_indices
from halos.config import IntegratorConfig

MU = 0.0121505856
# Near-circular orbit about the larger primary, well away from both singularities
X0 = np.array([0.5, 0.0, 0.05, 0.0, 0.88, 0.02])


def test_accel_vanishes_at_lagrange_points():
    for L in (1, 2, 3, 4, 5):
        state = np.concatenate((get_lagrange_point(MU, L), np.zeros(3)))
        assert np.allclose(crtbp_accel(state, MU), 0.0, atol=1e-12)


def test_rhs_dispatches_on_length():
    y42 = augment_state(X0)

    assert crtbp_rhs(0.0, X0, MU).shape == (6,)
    assert crtbp_rhs(0.0, y42, MU).shape == (42,)
    assert np.allclose(crtbp_rhs(0.0, y42, MU)[:6], crtbp_rhs(0.0, X0, MU))
    assert np.allclose(crtbp_rhs(0.0, X0, MU, -1), -crtbp_rhs(0.0, X0, MU))

    for bad in (np.zeros(5), np.zeros(7), np.zeros(36)):
        with pytest.raises(ValueError):
            crtbp_rhs(0.0, bad, MU)


def test_singularity_yields_non_finite_values():
    at_primary = np.array([-MU, 0.0, 0.0, 0.0, 0.0, 0.0])
    at_secondary = np.array([1 - MU, 0.0, 0.0, 0.0, 0.0, 0.0])

    with np.errstate(divide="ignore", invalid="ignore"):
        assert not np.all(np.isfinite(crtbp_accel(at_primary, MU)))
        assert not np.all(np.isfinite(crtbp_accel(at_secondary, MU)))


def test_jacobian_matches_finite_differences():
    state = np.array([0.85, 0.03, 0.02, 0.01, 0.2, -0.01])
    J = jacobian_crtbp(state[0], state[1], state[2], MU)

    h = 1e-7
    J_fd = np.zeros((6, 6))
    for k in range(6):
        dx = np.zeros(6)
        dx[k] = h
        J_fd[:, k] = (crtbp_accel(state + dx, MU) - crtbp_accel(state - dx, MU)) / (2 * h)

    assert np.allclose(J, J_fd, atol=1e-6)
    assert J[3, 4] == 2.0 and J[4, 3] == -2.0
    assert np.allclose(J[:3, 3:], np.eye(3))


def test_variational_equations_layout():
    y = augment_state(X0)
    dy = variational_equations(0.0, y, MU, 1)

    J = jacobian_crtbp(X0[0], X0[1], X0[2], MU)
    assert np.allclose(dy[:6], crtbp_accel(X0, MU))
    # Phi = I, so dPhi/dt = J
    assert np.allclose(dy[6:].reshape((6, 6)), J)


def test_augment_and_split_are_inverse():
    stm = np.arange(36, dtype=float).reshape((6, 6))
    y = augment_state(X0, stm)
    state, phi = split_augmented(y)

    assert y.shape == (42,)
    assert np.array_equal(state, X0)
    assert np.array_equal(phi, stm)

    with pytest.raises(ValueError):
        augment_state(np.zeros(5))


def test_propagation_does_not_mutate_input():
    x0 = X0.copy()
    propagate_crtbp(x0, 0.0, 1.0, MU, steps=10)
    assert np.array_equal(x0, X0)


def test_forward_backward_round_trip():
    sol = propagate_crtbp(X0, 0.0, 2.0, MU, steps=50)
    back = propagate_crtbp(sol.y[:, -1], 0.0, 2.0, MU, forward=-1, steps=50)

    assert sol.t[-1] == pytest.approx(2.0)
    assert back.t[-1] == pytest.approx(-2.0)
    assert np.allclose(back.y[:, -1], X0, atol=1e-9)


def test_jacobi_constant_is_conserved():
    sol = propagate_crtbp(X0, 0.0, 5.0, MU, steps=20)
    C0 = jacobi_constant(X0, MU)
    for state in sol.y.T:
        assert jacobi_constant(state, MU) == pytest.approx(C0, abs=1e-10)


def test_stm_matches_finite_differences():
    tf = 1.5
    _, t, phi, PHI = compute_stm(X0, MU, tf)

    assert t[-1] == pytest.approx(tf)
    assert PHI.shape[1] == 42

    h = 1e-6
    integrator = IntegratorConfig()
    phi_fd = np.zeros((6, 6))
    for k in range(6):
        dx = np.zeros(6)
        dx[k] = h
        plus = propagate_crtbp(X0 + dx, 0.0, tf, MU, steps=2, integrator=integrator).y[:, -1]
        minus = propagate_crtbp(X0 - dx, 0.0, tf, MU, steps=2, integrator=integrator).y[:, -1]
        phi_fd[:, k] = (plus - minus) / (2 * h)

    assert np.allclose(phi, phi_fd, rtol=1e-5, atol=1e-6)


def test_stm_is_symplectic():
    _, _, phi, _ = compute_stm(X0, MU, 2.0)
    # The CR3BP flow preserves volume
    assert np.linalg.det(phi) == pytest.approx(1.0, rel=1e-8)


def test_backward_stm_inverts_forward_stm():
    x, _, phi_f, _ = compute_stm(X0, MU, 1.0)
    _, t_b, phi_b, _ = compute_stm(x[-1], MU, 1.0, forward=-1)

    assert t_b[-1] == pytest.approx(-1.0)
    assert np.allclose(phi_b @ phi_f, np.eye(6), atol=1e-8)


def test_propagate_with_stm_samples():
    t_eval = np.linspace(0.0, 1.0, 5)
    sol, states, stms = propagate_with_stm(X0, MU, 1.0, t_eval=t_eval)

    assert states.shape == (5, 6)
    assert stms.shape == (5, 6, 6)
    assert np.allclose(stms[0], np.eye(6))
    assert np.allclose(states[0], X0)


def test_monodromy_and_stability_indices_shapes():
    M = monodromy_matrix(X0, MU, 1.0)
    (nu1, nu2), eigs = stability_indices(M)

    assert M.shape == (6, 6)
    assert len(eigs) == 6
    assert np.all(np.diff(np.abs(eigs)) <= 1e-12)
    assert np.isfinite(nu1) and np.isfinite(nu2)


def test_compute_stm_rejects_non_positive_time():
    with pytest.raises(ValueError):
        compute_stm(X0, MU, 0.0)


if __name__ == "__main__":
    test_jacobian_matches_finite_differences()
    test_stm_matches_finite_differences()
