"""Histogram backends.

- `HistogramBackend`: interface through which all accumulators are created,
  filled and read
- `MemoryBackend`: numpy implementation, with its `Histogram1D`,
  `Histogram2D`, `PointSet` and `Tuple` objects
"""

from .base import HistogramBackend
from .factories import backend_factory
from .memory import Histogram1D, Histogram2D, MemoryBackend, PointSet, Tuple
