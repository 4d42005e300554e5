"""Radix-2 inverse discrete Fourier transform and circular convolution."""

from __future__ import annotations

from functools import lru_cache

import numpy as np


def _bit_count(n: int) -> int:
    if n < 1 or n & (n - 1):
        raise ValueError(f"length must be a positive power of two, got {n}")
    return n.bit_length() - 1


@lru_cache(maxsize=None)
def _tables(bits: int) -> tuple[np.ndarray, np.ndarray]:
    """Roots of unity and bit-reversed indices for a transform of length 2**bits."""
    n = 1 << bits
    basic = np.empty(bits, dtype=complex)
    if bits > 0:
        basic[0] = -1.0
    if bits > 1:
        basic[1] = 1j
    for r in range(2, bits):
        re = np.sqrt((1.0 + basic[r - 1].real) / 2.0)
        basic[r] = complex(re, basic[r - 1].imag / (2.0 * re))

    indices = np.arange(n)
    omega = np.ones(n, dtype=complex)
    reversed_indices = np.zeros(n, dtype=np.int64)
    for i in range(bits):
        bit_set = ((indices >> i) & 1).astype(bool)
        omega[bit_set] *= basic[bits - i - 1]
        reversed_indices |= ((indices >> i) & 1) << (bits - i - 1)
    omega.flags.writeable = False
    reversed_indices.flags.writeable = False
    return omega, reversed_indices


def inverse_fourier_transform(values) -> np.ndarray:
    """Unnormalised inverse DFT: ``X[k] = sum_t x[t] exp(2*pi*i*k*t/n)``.

    The length of ``values`` must be a power of two.
    """
    data = np.asarray(values, dtype=complex).ravel()
    bits = _bit_count(data.size)
    omega, reversed_indices = _tables(bits)
    indices = np.arange(data.size)

    current = data.copy()
    for step in range(1, bits + 1):
        shift = bits - step
        bit = 1 << shift
        low = indices & ~bit
        high = indices | bit
        twiddle = omega[reversed_indices[indices >> shift]]
        current = current[low] + twiddle * current[high]

    result = np.empty_like(current)
    result[reversed_indices] = current
    return result


def fast_convolution(f, g) -> np.ndarray:
    """Circular convolution ``c[p] = sum_t f[t] g[p - t]`` of two real sequences."""
    f_arr = np.asarray(f, dtype=float).ravel()
    g_arr = np.asarray(g, dtype=float).ravel()
    if f_arr.size != g_arr.size:
        raise ValueError(f"sequences differ in length: {f_arr.size} and {g_arr.size}")
    n = f_arr.size
    product = inverse_fourier_transform(f_arr) * inverse_fourier_transform(g_arr)
    double_transform = inverse_fourier_transform(product)
    result = np.empty(n, dtype=float)
    result[(-np.arange(n)) % n] = double_transform.real / n
    return result