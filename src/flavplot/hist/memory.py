"""In-memory histogram backend.

Histograms are stored as `hist.Hist` objects with regular axes, under/overflow
bins and weighted storage. Point sets and tuples are plain numpy containers.

The backend is not thread-safe: fills on a single accumulator must be
serialized by the caller if events are ever processed concurrently.
"""

import hist
import numpy as np
from hist import Hist

from flavplot.utils.errors import ShapeMismatchError, UnregisteredKeyError

from .base import HistogramBackend

__all__ = ["MemoryBackend", "Histogram1D", "Histogram2D", "PointSet", "Tuple"]


def locate_bin(edges, x):
    """Find the bin of a value on an axis.

    Bins are half-open, `[low_i, high_i)`, except for the last bin which also
    includes the upper edge of the axis. A value sitting exactly on an edge
    always belongs to the bin which starts at that edge.

    Parameters
    ----------
    edges : np.ndarray
        (B + 1) Bin edges
    x : float
        Value to locate

    Returns
    -------
    int
        Bin index, -1 for underflow and B for overflow
    """
    num_bins = len(edges) - 1
    if x < edges[0]:
        return -1
    if x > edges[-1]:
        return num_bins

    return min(int(np.searchsorted(edges, x, side="right")) - 1, num_bins - 1)


def check_fill(path, weight, *values):
    """Reject NaN values and negative weights."""
    if any(np.isnan(v) for v in values):
        raise ValueError(f"Cannot fill histogram `{path}` with NaN.")
    if weight < 0.0:
        raise ValueError(f"Cannot fill histogram `{path}` with a negative weight.")


class Histogram1D:
    """Histogram with equal-width bins and under/overflow accounting.

    Attributes
    ----------
    path : str
        Unique path of the histogram in its backend
    title : str
        Title of the histogram
    hist : hist.Hist
        Underlying histogram (one regular axis, weighted storage)
    entries : int
        Number of fills, including under/overflow
    errors_valid : bool
        `False` if the bin errors are known not to be statistically meaningful
    """

    def __init__(self, path, bins, low, high, title=None):
        """Initialize the histogram axis and its accumulators.

        Parameters
        ----------
        path : str
            Unique path of the histogram in its backend
        bins : int
            Number of bins
        low : float
            Lower edge of the axis
        high : float
            Upper edge of the axis
        title : str, optional
            Title of the histogram
        """
        assert bins > 0, "A histogram must have at least one bin."
        assert high > low, "The upper edge of the axis must exceed the lower edge."
        self.path = path
        self.title = title or path
        self.hist = Hist(
            hist.axis.Regular(bins, low, high, underflow=True, overflow=True),
            storage=hist.storage.Weight(),
        )
        self.entries = 0
        self.errors_valid = True

    def __len__(self):
        return self.hist.axes[0].size

    @property
    def edges(self):
        """(B + 1) Bin edges."""
        return self.hist.axes[0].edges

    @property
    def low(self):
        """Lower edge of the axis."""
        return self.edges[0]

    @property
    def high(self):
        """Upper edge of the axis."""
        return self.edges[-1]

    @property
    def bin_centers(self):
        """(B) Center of each bin."""
        return self.hist.axes[0].centers

    @property
    def heights(self):
        """(B) Sum of weights in each bin."""
        return self.hist.values()

    @property
    def sumw2(self):
        """(B) Sum of squared weights in each bin."""
        return self.hist.variances()

    @property
    def errors(self):
        """(B) Statistical error of each bin, sqrt(sum of squared weights)."""
        return np.sqrt(self.sumw2)

    @property
    def underflow(self):
        """Sum of weights below the axis."""
        return float(self.hist.values(flow=True)[0])

    @property
    def overflow(self):
        """Sum of weights above the axis."""
        return float(self.hist.values(flow=True)[-1])

    def sum_bin_heights(self):
        """Sum of weights in the bins, excluding under/overflow."""
        return float(np.sum(self.heights))

    def find_bin(self, x):
        """Find the bin index of a value (see :func:`locate_bin`)."""
        return locate_bin(self.edges, x)

    def fill(self, x, weight=1.0):
        """Fill the histogram with one value.

        Parameters
        ----------
        x : float
            Value to fill
        weight : float, default 1.0
            Weight of the entry
        """
        check_fill(self.path, weight, x)
        index = self.find_bin(x)
        if 0 <= index < len(self):
            # Fill at the bin center, the bin is resolved against the edges
            x = self.bin_centers[index]

        self.hist.fill(x, weight=weight)
        self.entries += 1

    def same_binning(self, other):
        """Check that another histogram has the exact same axis.

        Parameters
        ----------
        other : Histogram1D
            Other histogram

        Returns
        -------
        bool
            `True` if both axes are identical
        """
        return self.edges.shape == other.edges.shape and np.allclose(
            self.edges, other.edges
        )


class Histogram2D:
    """Two-dimensional histogram with equal-width bins.

    Attributes
    ----------
    path : str
        Unique path of the histogram in its backend
    title : str
        Title of the histogram
    hist : hist.Hist
        Underlying histogram (two regular axes, weighted storage)
    entries : int
        Number of fills
    """

    def __init__(self, path, xbins, xlow, xhigh, ybins, ylow, yhigh, title=None):
        """Initialize both axes and the accumulators.

        Parameters
        ----------
        path : str
            Unique path of the histogram in its backend
        xbins, ybins : int
            Number of bins along each axis
        xlow, ylow : float
            Lower edge of each axis
        xhigh, yhigh : float
            Upper edge of each axis
        title : str, optional
            Title of the histogram
        """
        self.path = path
        self.title = title or path
        self.hist = Hist(
            hist.axis.Regular(xbins, xlow, xhigh, name="x"),
            hist.axis.Regular(ybins, ylow, yhigh, name="y"),
            storage=hist.storage.Weight(),
        )
        self.entries = 0

    @property
    def xedges(self):
        """Bin edges along x."""
        return self.hist.axes[0].edges

    @property
    def yedges(self):
        """Bin edges along y."""
        return self.hist.axes[1].edges

    @property
    def heights(self):
        """(BX, BY) Sum of weights in each bin."""
        return self.hist.values()

    @property
    def sumw2(self):
        """(BX, BY) Sum of squared weights in each bin."""
        return self.hist.variances()

    @property
    def outside(self):
        """Sum of weights falling outside of the axes."""
        return float(np.sum(self.hist.values(flow=True)) - np.sum(self.heights))

    def fill(self, x, y, weight=1.0):
        """Fill the histogram with one (x, y) pair.

        Parameters
        ----------
        x, y : float
            Values to fill
        weight : float, default 1.0
            Weight of the entry
        """
        check_fill(self.path, weight, x, y)
        ix, iy = locate_bin(self.xedges, x), locate_bin(self.yedges, y)
        if 0 <= ix < len(self.xedges) - 1 and 0 <= iy < len(self.yedges) - 1:
            x = self.hist.axes[0].centers[ix]
            y = self.hist.axes[1].centers[iy]

        self.hist.fill(x, y, weight=weight)
        self.entries += 1


class PointSet:
    """Ordered set of (x, y) points with errors, representing a derived curve.

    Attributes
    ----------
    path : str
        Unique path of the point set in its backend
    title : str
        Title of the point set
    x, y, x_error, y_error : np.ndarray
        (N) Point coordinates and their errors
    annotation : dict
        Free-form annotations (e.g. list of degenerate points)
    errors_valid : bool
        `False` if the errors are known not to be statistically meaningful
    """

    def __init__(self, path, size, title=None):
        """Initialize the points to zero.

        Parameters
        ----------
        path : str
            Unique path of the point set in its backend
        size : int
            Number of points
        title : str, optional
            Title of the point set
        """
        self.path = path
        self.title = title or path
        self.x = np.zeros(size, dtype=np.float64)
        self.y = np.zeros(size, dtype=np.float64)
        self.x_error = np.zeros(size, dtype=np.float64)
        self.y_error = np.zeros(size, dtype=np.float64)
        self.annotation = {}
        self.errors_valid = True

    def __len__(self):
        return len(self.x)

    def set_point(self, index, x, y, y_error=0.0, x_error=0.0):
        """Set the coordinates of one point.

        Parameters
        ----------
        index : int
            Index of the point
        x, y : float
            Coordinates of the point
        y_error : float, default 0.0
            Error on y
        x_error : float, default 0.0
            Error on x
        """
        self.x[index] = x
        self.y[index] = y
        self.x_error[index] = x_error
        self.y_error[index] = y_error


class Tuple:
    """Simple row store.

    Attributes
    ----------
    path : str
        Unique path of the tuple in its backend
    columns : List[str]
        Names of the columns
    rows : List[np.ndarray]
        Rows filled so far
    """

    def __init__(self, path, columns, title=None):
        """Initialize an empty tuple.

        Parameters
        ----------
        path : str
            Unique path of the tuple in its backend
        columns : List[str]
            Names of the columns
        title : str, optional
            Title of the tuple
        """
        self.path = path
        self.title = title or path
        self.columns = list(columns)
        self.rows = []

    def __len__(self):
        return len(self.rows)

    def fill_row(self, values):
        """Append one row.

        Parameters
        ----------
        values : List[float]
            One value per column
        """
        if len(values) != len(self.columns):
            raise ShapeMismatchError(
                f"Tuple `{self.path}` has {len(self.columns)} columns, "
                f"got a row with {len(values)} values."
            )
        self.rows.append(np.asarray(values, dtype=np.float64))

    def to_array(self):
        """(R, C) array of all the rows."""
        if not self.rows:
            return np.empty((0, len(self.columns)), dtype=np.float64)

        return np.vstack(self.rows)


class MemoryBackend(HistogramBackend):
    """Histogram backend which keeps every object in memory.

    Typical configuration should look like:

    .. code-block:: yaml

        backend:
          name: memory
    """

    # Name of the backend (as specified in the configuration)
    name = "memory"

    def __init__(self):
        """Initialize an empty store."""
        self._objects = []
        self._handles = {}

    def __len__(self):
        return len(self._objects)

    @property
    def paths(self):
        """List of registered paths, in creation order."""
        return list(self._handles)

    def _register(self, obj):
        """Store a new object, return its handle.

        Parameters
        ----------
        obj : object
            Histogram, point set or tuple

        Returns
        -------
        int
            Handle of the object
        """
        if obj.path in self._handles:
            raise ValueError(f"An object already exists at path `{obj.path}`.")

        handle = len(self._objects)
        self._objects.append(obj)
        self._handles[obj.path] = handle

        return handle

    def create_histogram1d(self, path, bins, low, high, title=None):
        return self._register(Histogram1D(path, bins, low, high, title))

    def create_histogram2d(
        self, path, xbins, xlow, xhigh, ybins, ylow, yhigh, title=None
    ):
        return self._register(
            Histogram2D(path, xbins, xlow, xhigh, ybins, ylow, yhigh, title)
        )

    def create_point_set(self, path, size, title=None):
        return self._register(PointSet(path, size, title))

    def create_tuple(self, path, columns, title=None):
        return self._register(Tuple(path, columns, title))

    def fill(self, handle, x, y=None, weight=1.0):
        obj = self.get(handle)
        if isinstance(obj, Histogram2D):
            assert y is not None, f"Histogram `{obj.path}` needs an (x, y) pair."
            obj.fill(x, y, weight)
        else:
            assert y is None, f"Histogram `{obj.path}` is one dimensional."
            obj.fill(x, weight)

    def fill_row(self, handle, values):
        self.get(handle).fill_row(values)

    def set_point(self, handle, index, x, y, y_error=0.0, x_error=0.0):
        self.get(handle).set_point(index, x, y, y_error, x_error)

    def get(self, handle):
        if not 0 <= handle < len(self._objects):
            raise UnregisteredKeyError(f"No object registered with handle {handle}.")

        return self._objects[handle]

    def find(self, path):
        if path not in self._handles:
            raise UnregisteredKeyError(f"No object registered at path `{path}`.")

        return self._handles[path]

    def divide(self, path, numerator, denominator):
        """Create a histogram as the bin-by-bin ratio of two histograms.

        Errors are propagated assuming both histograms are independent, which
        is not correct for efficiencies (use a binomial point set instead).
        Bins with an empty denominator are set to zero.

        Parameters
        ----------
        path : str
            Path of the new histogram
        numerator : int
            Handle of the numerator histogram
        denominator : int
            Handle of the denominator histogram

        Returns
        -------
        int
            Handle of the ratio histogram
        """
        num, den = self.get(numerator), self.get(denominator)
        if not num.same_binning(den):
            raise ShapeMismatchError(
                f"Cannot divide `{num.path}` by `{den.path}`: different binning."
            )

        handle = self.create_histogram1d(path, len(num), num.low, num.high)
        ratio = self.get(handle)
        valid = den.heights > 0.0
        n, d = num.heights[valid], den.heights[valid]
        view = ratio.hist.view()
        view.value[valid] = n / d
        view.variance[valid] = (
            num.sumw2[valid] / d**2 + n**2 * den.sumw2[valid] / d**4
        )
        ratio.entries = num.entries

        return handle
