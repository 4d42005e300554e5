import math

import numpy as np
import pytest

from phasefv.definitions import Parameters
from phasefv.initial_conditions import read_state_from_file
from phasefv.observer import BinaryObserver, output_file_stem
from phasefv.parallel import Thread


@pytest.fixture
def params():
    return Parameters(bits=2, num_cells_omega=4, dt=0.5)


def _state(params, value=1.0):
    return np.full(params.size, value)


def test_default_stem_matches_run_file_name():
    assert output_file_stem(Parameters()) == (
        "dt_0.005_v0_1_xi_0.1_sigma_1_rho_0.8_alpha_0.3_Dphi_0.01_128_400"
    )


def test_files_are_created_and_old_ones_removed(tmp_path, params):
    stem = output_file_stem(params)
    stale = tmp_path / f"{stem}.bin"
    stale.write_bytes(b"old contents")
    with BinaryObserver(params, tmp_path) as observer:
        assert observer.output_path == stale
        assert observer.summary_statistics_path == tmp_path / f"{stem}.txt"
        assert observer.flux_limiter_activity_path == tmp_path / f"flux_limiter_{stem}.txt"
    assert stale.read_bytes() == b""
    assert (tmp_path / f"flux_limiter_{stem}.txt").exists()


def test_states_saved_once_per_unit_time_round_trip(tmp_path, params):
    rng = np.random.default_rng(1)
    states = [rng.uniform(0.1, 1.0, params.size) for _ in range(3)]
    with BinaryObserver(params, tmp_path) as observer:
        for step, state in enumerate(states):
            observer.save_system_state(state, step * params.dt)
        path = observer.output_path
    record_bytes = (1 + params.size) * 8
    assert path.stat().st_size == 2 * record_bytes
    t0, first = read_state_from_file(path, params, 0)
    t1, second = read_state_from_file(path, params, 1)
    assert t0 == 0.0
    assert np.array_equal(first, states[0])
    assert t1 == 2 * params.dt
    assert np.array_equal(second, states[2])


@pytest.mark.parametrize("bad", [math.nan, math.inf, -1e-3])
def test_invalid_density_requests_termination(tmp_path, params, bad):
    state = _state(params)
    state[3] = bad
    with BinaryObserver(params, tmp_path) as observer:
        assert observer.validate_solution(state) is False
        assert observer.should_terminate is True


def test_valid_density_keeps_running(tmp_path, params):
    with BinaryObserver(params, tmp_path) as observer:
        observer.save_system_state(_state(params), 0.0)
        assert observer.validate_solution(_state(params)) is True
        assert observer.should_terminate is False


def _summary_rows(path):
    return [
        [float(x) for x in line.split("\t")]
        for line in path.read_text().splitlines()
    ]


def test_order_parameters_for_concentrated_density(tmp_path, params):
    state = np.zeros(params.size)
    state[0] = 5.0  # all mass at phi = 0
    with BinaryObserver(params, tmp_path) as observer:
        observer.save_summary_statistics(state, 0.0)
        path = observer.summary_statistics_path
    (row,) = _summary_rows(path)
    assert row[0] == 0.0
    assert row[1] == pytest.approx(1.0, abs=1e-5)
    assert row[2] == pytest.approx(0.0, abs=1e-5)
    assert row[3] == pytest.approx(1.0, abs=1e-5)
    assert row[4] == pytest.approx(0.0, abs=1e-5)


def test_order_parameters_for_quarter_turn(tmp_path, params):
    state = np.zeros(params.size)
    state[1] = 2.0  # all mass at phi = pi / 2
    with BinaryObserver(params, tmp_path) as observer:
        observer.save_summary_statistics(state, 0.0)
        path = observer.summary_statistics_path
    (row,) = _summary_rows(path)
    assert row[1] == pytest.approx(1.0, abs=1e-5)
    assert row[2] == pytest.approx(math.pi / 2, abs=1e-5)
    assert abs(row[4]) == pytest.approx(math.pi, abs=1e-5)


def test_uniform_density_has_no_polar_order(tmp_path, params):
    with BinaryObserver(params, tmp_path) as observer:
        observer.save_summary_statistics(_state(params), 0.0)
        observer.save_summary_statistics(_state(params), 0.5)
        observer.save_summary_statistics(_state(params), 1.0)
        path = observer.summary_statistics_path
    rows = _summary_rows(path)
    assert [row[0] for row in rows] == [0.0, 1.0]
    assert all(row[1] < 1e-5 and row[3] < 1e-5 for row in rows)


def test_additional_information_line_format(tmp_path, params):
    with BinaryObserver(params, tmp_path) as observer:
        observer.save_additional_information([3, 4], 1.5, 2.5, 0.5)
        observer.save_additional_information([7, 8], 1.0, 1.0, 1.0)
        path = observer.flux_limiter_activity_path
    assert path.read_text() == "0.5\t3\t4\t1.5\t2.5\n"


def test_non_root_writes_nothing(tmp_path, params):
    thread = Thread(params.num_cells_phi, params.num_cells_omega, rank=1, number_of_threads=2)
    observer = BinaryObserver(params, tmp_path, thread)
    observer.save_system_state(_state(params), 0.0)
    observer.save_summary_statistics(_state(params), 0.0)
    observer.save_additional_information([1, 2], 1.0, 1.0, 0.0)
    observer.close()
    assert list(tmp_path.iterdir()) == []


def test_close_prevents_further_writes(tmp_path, params):
    observer = BinaryObserver(params, tmp_path)
    observer.close()
    with pytest.raises(ValueError):
        observer.save_system_state(_state(params), 0.0)