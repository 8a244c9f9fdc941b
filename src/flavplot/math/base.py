"""Numba JIT compiled implementation of cumulative sums.

Cut-scan curves (efficiency, purity, leakage) integrate a histogram from a
given bin to the last one, while integral plots integrate from the first bin
to a given one. Both are single pass, O(bins) operations.
"""

import numba as nb
import numpy as np

__all__ = ["reverse_cumsum", "forward_cumsum"]


@nb.njit(cache=True)
def reverse_cumsum(x: nb.float64[:]) -> nb.float64[:]:
    """Sum of the array from each index to the last element.

    Parameters
    ----------
    x : np.ndarray
        (N) array of values

    Returns
    -------
    np.ndarray
        (N) array where element i is `x[i:].sum()`
    """
    result = np.empty(len(x), dtype=np.float64)
    total = 0.0
    for i in range(len(x) - 1, -1, -1):
        total += x[i]
        result[i] = total

    return result


@nb.njit(cache=True)
def forward_cumsum(x: nb.float64[:]) -> nb.float64[:]:
    """Sum of the array from the first element to each index.

    Parameters
    ----------
    x : np.ndarray
        (N) array of values

    Returns
    -------
    np.ndarray
        (N) array where element i is `x[:i+1].sum()`
    """
    result = np.empty(len(x), dtype=np.float64)
    total = 0.0
    for i in range(len(x)):
        total += x[i]
        result[i] = total

    return result
