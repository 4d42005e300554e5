import math

import pytest

from phasefv.definitions import (
    Dimension,
    Parameters,
    from_flat_index,
    minmod,
    positive_modulo,
    to_flat_index,
)


def test_default_model_constants():
    p = Parameters()
    assert p.friction == 0.1
    assert p.sigma == 1.0
    assert p.rho == 0.8
    assert p.alpha == 0.3
    assert p.diffusion_constant == 0.01
    assert p.num_cells_omega == 400
    assert p.dt == 0.005
    assert math.isclose(p.phi_size, 2.0 * math.pi)


def test_grid_sizes():
    p = Parameters()
    assert p.num_cells_phi == 2 ** p.bits
    assert p.size == p.num_cells_phi * p.num_cells_omega
    assert math.isclose(p.dphi * p.num_cells_phi, p.phi_size)
    assert math.isclose(p.domega * p.num_cells_omega, p.omega_size)


def test_inverse_dt_matches_dt():
    p = Parameters()
    assert math.isclose(p.inverse_dt * p.dt, 1.0)


def test_phi_spans_circle():
    p = Parameters()
    assert p.phi(0) == 0.0
    assert math.isclose(p.phi(p.num_cells_phi), p.phi_size)


def test_omega_centred_on_zero():
    p = Parameters()
    assert math.isclose(p.omega(0), -p.omega_size / 2.0)
    assert p.omega(p.num_cells_omega // 2) == 0.0
    assert math.isclose(p.omega(p.num_cells_omega), p.omega_size / 2.0)


def test_implementation_constants():
    p = Parameters()
    assert math.isclose(p.c0, p.dphi / 2.0)
    assert math.isclose(p.c2 ** 2 + p.c3 ** 2, 1.0)
    assert math.isclose(p.c1 * p.c0, p.c3)
    assert 0.99 < p.c1 < 1.0


def test_custom_parameters():
    p = Parameters(bits=3, num_cells_omega=10, omega_size=4.0)
    assert p.num_cells_phi == 8
    assert p.size == 80
    assert math.isclose(p.omega(0), -2.0)


@pytest.mark.parametrize(
    "kwargs", [{"bits": 0}, {"num_cells_omega": 0}, {"dt": 0.0}, {"omega_size": -1.0}]
)
def test_invalid_parameters(kwargs):
    with pytest.raises(ValueError):
        Parameters(**kwargs)


def test_positive_modulo():
    n = 128
    assert positive_modulo(-1, n) == n - 1
    assert positive_modulo(n, n) == 0
    assert positive_modulo(n + 3, n) == 3
    assert positive_modulo(5, n) == 5
    assert positive_modulo(0, n) == 0


def test_flat_index_round_trip():
    n_phi, n_omega = 8, 5
    seen = set()
    for omega in range(n_omega):
        for phi in range(n_phi):
            idx = to_flat_index(phi, omega, n_phi)
            assert from_flat_index(idx, n_phi) == (phi, omega)
            seen.add(idx)
    assert seen == set(range(n_phi * n_omega))


def test_flat_index_phi_fastest():
    assert to_flat_index(1, 0, 8) == to_flat_index(0, 0, 8) + 1
    assert to_flat_index(0, 1, 8) == to_flat_index(0, 0, 8) + 8


def test_minmod():
    assert minmod(1.0, 2.0, 3.0) == 1.0
    assert minmod(3.0, 0.5, 2.0) == 0.5
    assert minmod(-1.0, -2.0, -3.0) == -1.0
    assert minmod(1.0, -2.0, 3.0) == 0.0
    assert minmod(0.0, 1.0, 2.0) == 0.0


@pytest.mark.parametrize("name", ["PHI", "OMEGA"])
def test_dimension_lookup_by_value(name):
    member = Dimension[name]
    assert Dimension(member.value) is member
    assert {d.name for d in Dimension} == {"PHI", "OMEGA"}