"""Data structures which describe one event and one run header.

- `RunHeader`: declares the variable names of the per-jet collections
- `Event`: named collections of one event
- `Jet`, `Vertex`: reconstructed objects
- `FloatVecCollection`: per-jet float vectors (tags, inputs, charges, truth)
- `TrueDecay`, `TrueDecayChain`, `DecayChain`: true and reconstructed decay
  chains of a jet
"""

from .event import *
