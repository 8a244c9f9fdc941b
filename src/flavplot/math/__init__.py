"""Module with fast, Numba-accelerated, compiled math routines.

This includes two submodules:
- `base.py` includes cumulative sums used to build cut-scan curves
- `distance.py` includes the Euclidean distance between 3D points
"""

from .base import *
from .distance import *
