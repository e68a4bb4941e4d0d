import dataclasses

import numpy as np
import pytest

from halos.models.system import CR3BPSystem, NAMED_SYSTEMS


def test_mass_parameter_validation():
    for bad in (0.0, -0.1, 0.6, np.nan, np.inf):
        with pytest.raises(ValueError):
            CR3BPSystem(bad)
    assert CR3BPSystem(0.5).mu == 0.5


def test_from_masses():
    system = CR3BPSystem.from_masses(5.972e24, 7.348e22, name="Earth-Moon")

    assert system.mu == pytest.approx(0.012156, abs=1e-5)
    assert system.name == "Earth-Moon"
    assert str(system).startswith("Earth-Moon (mu=")

    with pytest.raises(ValueError):
        CR3BPSystem.from_masses(1.0, 0.0)


def test_named_systems():
    assert list(NAMED_SYSTEMS) == [
        "Sun-Venus", "Sun-Earth", "Earth-Moon", "Sun-Mars",
        "Sun-Jupiter", "Sun-Saturn", "Sun-Uranus", "Sun-Neptune",
    ]
    for name, system in NAMED_SYSTEMS.items():
        assert system.name == name
        assert 0 < system.mu < 0.02
    assert NAMED_SYSTEMS["Sun-Earth"].mu == pytest.approx(3.0e-6, rel=0.01)


def test_system_is_an_immutable_value():
    a = CR3BPSystem(0.0121505856, name="Earth-Moon")
    b = CR3BPSystem(0.0121505856, name="Earth-Moon")

    with pytest.raises(dataclasses.FrozenInstanceError):
        a.mu = 0.1
    assert a == b
    assert hash(a) == hash(b)
    assert len({a, b}) == 1


def test_primary_positions():
    system = CR3BPSystem(0.1)
    assert np.allclose(system.primary_position, [-0.1, 0.0, 0.0])
    assert np.allclose(system.secondary_position, [0.9, 0.0, 0.0])


def test_lagrange_point_is_cached_but_copied():
    system = CR3BPSystem(0.0121505856)
    L1 = system.lagrange_point(1)
    L1[0] = 99.0

    assert system.lagrange_point(1)[0] == pytest.approx(0.836915, abs=1e-5)
    # Cached positions do not affect equality
    assert system == CR3BPSystem(0.0121505856)
    assert system.gamma(1) == pytest.approx(1 - system.mu - system.lagrange_point(1)[0])


if __name__ == "__main__":
    test_named_systems()
