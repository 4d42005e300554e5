import pytest

from phasefv.parallel import Thread


def test_single_thread_owns_everything():
    thread = Thread(8, 10)
    assert thread.is_root
    assert list(thread.loop_indices) == list(range(8 * 10))
    assert list(thread.angular_velocity_loop_indices) == list(range(10))
    assert thread.elements_per_thread == 8 * 10


def test_threads_partition_grid():
    n_phi, n_omega, workers = 4, 12, 3
    threads = [Thread(n_phi, n_omega, rank, workers) for rank in range(workers)]
    cells = [idx for t in threads for idx in t.loop_indices]
    assert sorted(cells) == list(range(n_phi * n_omega))
    assert len(cells) == len(set(cells))
    omegas = [j for t in threads for j in t.angular_velocity_loop_indices]
    assert sorted(omegas) == list(range(n_omega))


def test_thread_owns_whole_omega_rows():
    n_phi = 4
    thread = Thread(n_phi, 12, 1, 3)
    rows = {idx // n_phi for idx in thread.loop_indices}
    assert rows == set(thread.angular_velocity_loop_indices)


def test_only_rank_zero_is_root():
    roots = [Thread(4, 12, rank, 4).is_root for rank in range(4)]
    assert roots == [True, False, False, False]


def test_uneven_split_rejected():
    with pytest.raises(ValueError):
        Thread(4, 10, 0, 3)


@pytest.mark.parametrize("rank", [-1, 2])
def test_rank_out_of_range(rank):
    with pytest.raises(ValueError):
        Thread(4, 10, rank, 2)


def test_zero_threads_rejected():
    with pytest.raises(ValueError):
        Thread(4, 10, 0, 0)