"""Base class of all histogram backends.

The plotting code never owns histogram memory. It receives opaque integer
handles from a backend and only ever writes through the backend interface,
which allows to swap the in-memory implementation for any other store.
"""

from abc import ABC, abstractmethod

__all__ = ["HistogramBackend"]


class HistogramBackend(ABC):
    """Parent class of all histogram backends.

    Attributes
    ----------
    name : str
        Name of the backend (to call it from a configuration file)
    """

    # Name of the backend (as specified in the configuration)
    name = None

    @abstractmethod
    def create_histogram1d(self, path, bins, low, high, title=None):
        """Create a 1D histogram with equal-width bins, return its handle."""
        raise NotImplementedError("Must define the `create_histogram1d` function")

    @abstractmethod
    def create_histogram2d(
        self, path, xbins, xlow, xhigh, ybins, ylow, yhigh, title=None
    ):
        """Create a 2D histogram with equal-width bins, return its handle."""
        raise NotImplementedError("Must define the `create_histogram2d` function")

    @abstractmethod
    def create_point_set(self, path, size, title=None):
        """Create a set of `size` (x, y, error) points, return its handle."""
        raise NotImplementedError("Must define the `create_point_set` function")

    @abstractmethod
    def create_tuple(self, path, columns, title=None):
        """Create a row store with the given columns, return its handle."""
        raise NotImplementedError("Must define the `create_tuple` function")

    @abstractmethod
    def fill(self, handle, x, y=None, weight=1.0):
        """Fill a 1D (or 2D, if `y` is provided) histogram."""
        raise NotImplementedError("Must define the `fill` function")

    @abstractmethod
    def fill_row(self, handle, values):
        """Append one row to a tuple."""
        raise NotImplementedError("Must define the `fill_row` function")

    @abstractmethod
    def set_point(self, handle, index, x, y, y_error=0.0, x_error=0.0):
        """Set the coordinates of one point of a point set."""
        raise NotImplementedError("Must define the `set_point` function")

    @abstractmethod
    def get(self, handle):
        """Fetch the object behind a handle (read access)."""
        raise NotImplementedError("Must define the `get` function")

    @abstractmethod
    def find(self, path):
        """Fetch the handle of an object from its path."""
        raise NotImplementedError("Must define the `find` function")

    @abstractmethod
    def divide(self, path, numerator, denominator):
        """Create a histogram as the bin-by-bin ratio of two histograms."""
        raise NotImplementedError("Must define the `divide` function")
