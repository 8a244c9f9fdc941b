"""Typed exceptions raised by the flavplot package.

Configuration errors are fatal and are raised while setting up the plots
(or when an event does not provide a configured collection). Numeric
degeneracies in derived curves are never raised; they are annotated on the
derived point sets instead.
"""


class FlavplotError(Exception):
    """Base exception for all flavplot errors."""


class ConfigurationError(FlavplotError):
    """Raised when the plot configuration is inconsistent with the input."""


class MissingCollectionError(ConfigurationError):
    """Raised when a configured collection is absent from the input."""


class UnregisteredKeyError(ConfigurationError, KeyError):
    """Raised when an accumulator is requested through an unknown key."""


class RunStateError(ConfigurationError):
    """Raised when an entry point is called in the wrong lifecycle state."""


class ShapeMismatchError(FlavplotError, ValueError):
    """Raised when two accumulators or point sets have incompatible shapes."""
