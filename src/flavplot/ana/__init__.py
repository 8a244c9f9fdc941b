"""Flavour tag plotting core.

- `classify`: per-jet classification functions
- `cuts`: kinematic jet selection
- `bank`: registry of the accumulator handles and run lifecycle
- `counters`: dense vertex charge and track origin confusion tables
- `aggregate`: per-event filling of the accumulators
- `derive`: end-of-run efficiency, purity and leakage curves
- `manager`: lifecycle entry points exposed to the host
"""

from .bank import HistogramBank
from .cuts import JetCuts
from .manager import PlotManager
