"""Numba JIT compiled implementation of distance computation routines.

Positions come from two geometry sources: reconstructed vertices are stored
in single precision while the true decay vertices are stored in double
precision. Numba compiles one specialization per input precision.
"""

import numba as nb
import numpy as np

__all__ = ["euclidean"]


@nb.njit(cache=True)
def euclidean(x: nb.float32[:], y: nb.float32[:]) -> nb.float32:
    """Compute the Euclidean distance (L2) between two 3D points.

    Parameters
    ----------
    x : np.ndarray
        (3) Coordinates of the first point
    y : np.ndarray
        (3) Coordinates of the second point

    Returns
    -------
    float
        Euclidean distance
    """
    return np.sqrt((y[0] - x[0]) ** 2 + (y[1] - x[1]) ** 2 + (y[2] - x[2]) ** 2)
