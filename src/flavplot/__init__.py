"""Top-level module of the flavplot source code."""

# Import main workflow entry point
from .driver import Driver
from .version import __version__

# Import commonly used data structures
from .data import Event, RunHeader
