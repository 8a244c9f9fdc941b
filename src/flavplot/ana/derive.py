"""End-of-run derived statistics: efficiency, purity and leakage curves.

The array functions (:func:`tag_efficiency`, :func:`tag_purity`) are pure.
The `create_*` functions read histograms from a backend and write a new
point set (or histogram) to it, returning its handle.

Point `i` of an efficiency, purity or leakage curve corresponds to a cut on
the neural net output at the lower edge of bin `i`: it counts the jets in
bins `i` through `B - 1`.
"""

import numpy as np

from flavplot.math import forward_cumsum, reverse_cumsum
from flavplot.utils.enums import ChargeHypothesis, Flavour, TagType, VertexCategory
from flavplot.utils.errors import ShapeMismatchError
from flavplot.utils.globals import VERTEX_CAT_DIRS
from flavplot.utils.logger import logger

__all__ = [
    "tag_efficiency",
    "tag_purity",
    "create_efficiency_plot",
    "create_efficiency_plot2",
    "create_purity_plot",
    "create_leakage_rate_plot",
    "create_integral_histogram",
    "create_integral_plot",
    "create_xy_plot",
    "create_vertex_charge_leakage_plot",
    "DerivedStatistics",
]


def tag_efficiency(signal):
    """Fraction of signal jets above each cut value.

    Parameters
    ----------
    signal : np.ndarray
        (B) Bin contents of the signal histogram

    Returns
    -------
    np.ndarray
        (B) Efficiency at the lower edge of each bin
    np.ndarray
        (B) Binomial error on the efficiency
    """
    signal = np.asarray(signal, dtype=np.float64)
    total = np.sum(signal)
    if total <= 0.0:
        return np.zeros(len(signal)), np.zeros(len(signal))

    efficiency = reverse_cumsum(signal) / total
    variance = np.clip(efficiency * (1.0 - efficiency), 0.0, None) / total

    return efficiency, np.sqrt(variance)


def tag_purity(signal, background):
    """Fraction of signal jets among all jets above each cut value.

    Parameters
    ----------
    signal : np.ndarray
        (B) Bin contents of the signal histogram
    background : np.ndarray
        (B) Bin contents of the background histogram

    Returns
    -------
    np.ndarray
        (B) Purity at the lower edge of each bin, 0 where no jet passes
    np.ndarray
        (B) Binomial error on the purity
    """
    signal = np.asarray(signal, dtype=np.float64)
    background = np.asarray(background, dtype=np.float64)
    if signal.shape != background.shape:
        raise ShapeMismatchError(
            f"Signal ({signal.shape}) and background ({background.shape}) "
            "histograms must have the same binning."
        )

    passed = reverse_cumsum(signal)
    total = passed + reverse_cumsum(background)
    purity = np.zeros(len(signal), dtype=np.float64)
    error = np.zeros(len(signal), dtype=np.float64)
    valid = total > 0.0
    purity[valid] = passed[valid] / total[valid]
    error[valid] = np.sqrt(
        np.clip(purity[valid] * (1.0 - purity[valid]), 0.0, None) / total[valid]
    )

    return purity, error


def _fill_point_set(backend, path, x, y, y_error, x_error=None, degenerate=None):
    """Create a point set from arrays, annotate its degenerate points."""
    handle = backend.create_point_set(path, len(x))
    for i in range(len(x)):
        backend.set_point(
            handle, i, x[i], y[i], y_error[i], 0.0 if x_error is None else x_error[i]
        )

    if degenerate is not None:
        backend.get(handle).annotation["degenerate_bins"] = [
            int(i) for i in np.flatnonzero(degenerate)
        ]

    return handle


def create_efficiency_plot(backend, signal, path):
    """Create the efficiency curve of a signal histogram.

    Parameters
    ----------
    backend : HistogramBackend
        Histogram backend
    signal : int
        Handle of the signal histogram
    path : str
        Path of the new point set

    Returns
    -------
    int
        Handle of the efficiency point set
    """
    hist = backend.get(signal)
    efficiency, error = tag_efficiency(hist.heights)
    degenerate = np.full(len(hist), hist.sum_bin_heights() <= 0.0)

    return _fill_point_set(
        backend, path, hist.edges[:-1], efficiency, error, degenerate=degenerate
    )


def create_efficiency_plot2(backend, all_jets, passed_jets, path):
    """Create a bin-by-bin efficiency curve from two histograms.

    Parameters
    ----------
    backend : HistogramBackend
        Histogram backend
    all_jets : int
        Handle of the histogram of all the jets
    passed_jets : int
        Handle of the histogram of the jets which pass the selection
    path : str
        Path of the new point set

    Returns
    -------
    int
        Handle of the efficiency point set
    """
    total, passed = backend.get(all_jets), backend.get(passed_jets)
    if not total.same_binning(passed):
        raise ShapeMismatchError(
            f"Cannot compute the efficiency of `{passed.path}` with respect "
            f"to `{total.path}`: different binning."
        )

    efficiency = np.zeros(len(total), dtype=np.float64)
    error = np.zeros(len(total), dtype=np.float64)
    valid = total.heights > 0.0
    efficiency[valid] = passed.heights[valid] / total.heights[valid]
    error[valid] = np.sqrt(
        np.clip(efficiency[valid] * (1.0 - efficiency[valid]), 0.0, None)
        / total.heights[valid]
    )
    half_width = 0.5 * np.diff(total.edges)

    return _fill_point_set(
        backend,
        path,
        total.bin_centers,
        efficiency,
        error,
        x_error=half_width,
        degenerate=~valid,
    )


def create_purity_plot(backend, signal, background, path):
    """Create the purity curve of a signal histogram against its background.

    Parameters
    ----------
    backend : HistogramBackend
        Histogram backend
    signal : int
        Handle of the signal histogram
    background : int
        Handle of the background histogram
    path : str
        Path of the new point set

    Returns
    -------
    int
        Handle of the purity point set
    """
    sig, bkg = backend.get(signal), backend.get(background)
    if not sig.same_binning(bkg):
        raise ShapeMismatchError(
            f"Cannot compute the purity of `{sig.path}` against `{bkg.path}`: "
            "different binning."
        )

    purity, error = tag_purity(sig.heights, bkg.heights)
    total = reverse_cumsum(sig.heights) + reverse_cumsum(bkg.heights)

    return _fill_point_set(
        backend, path, sig.edges[:-1], purity, error, degenerate=total <= 0.0
    )


def create_leakage_rate_plot(backend, background, path):
    """Create the number of background jets above each cut value.

    The count is not normalized. Its error is the Poisson error on the
    number of entries above the cut.

    Parameters
    ----------
    backend : HistogramBackend
        Histogram backend
    background : int
        Handle of the background histogram
    path : str
        Path of the new point set

    Returns
    -------
    int
        Handle of the leakage point set
    """
    hist = backend.get(background)
    leakage = reverse_cumsum(hist.heights)
    error = np.sqrt(reverse_cumsum(hist.sumw2))

    return _fill_point_set(backend, path, hist.edges[:-1], leakage, error)


def create_integral_histogram(backend, source, path):
    """Create the forward cumulative sum of a histogram, as a histogram.

    The bin errors of the result are set to the bin contents: they are not
    statistically meaningful and the histogram is flagged as such
    (`errors_valid` set to `False`). They must not be used in any other
    derived quantity.

    Parameters
    ----------
    backend : HistogramBackend
        Histogram backend
    source : int
        Handle of the source histogram
    path : str
        Path of the new histogram

    Returns
    -------
    int
        Handle of the integral histogram
    """
    hist = backend.get(source)
    integral = forward_cumsum(hist.heights)
    handle = backend.create_histogram1d(path, len(hist), hist.low, hist.high)
    for x, value in zip(hist.bin_centers, integral):
        backend.fill(handle, x, weight=value)
    backend.get(handle).errors_valid = False

    return handle


def create_integral_plot(backend, source, path):
    """Create the forward cumulative sum of a histogram, as a point set.

    Point `i` sits at the upper edge of bin `i` and counts the entries in
    bins `0` through `i`. As for :func:`create_integral_histogram`, the
    errors are flagged as invalid.

    Parameters
    ----------
    backend : HistogramBackend
        Histogram backend
    source : int
        Handle of the source histogram
    path : str
        Path of the new point set

    Returns
    -------
    int
        Handle of the integral point set
    """
    hist = backend.get(source)
    integral = forward_cumsum(hist.heights)
    handle = _fill_point_set(backend, path, hist.edges[1:], integral, integral)
    backend.get(handle).errors_valid = False

    return handle


def create_xy_plot(backend, x_points, y_points, path):
    """Pair two point sets index by index (e.g. purity vs efficiency).

    Parameters
    ----------
    backend : HistogramBackend
        Histogram backend
    x_points : int
        Handle of the point set which provides the x coordinates
    y_points : int
        Handle of the point set which provides the y coordinates
    path : str
        Path of the new point set

    Returns
    -------
    int
        Handle of the paired point set
    """
    ps0, ps1 = backend.get(x_points), backend.get(y_points)
    if len(ps0) != len(ps1):
        raise ShapeMismatchError(
            f"Cannot pair `{ps0.path}` ({len(ps0)} points) with `{ps1.path}` "
            f"({len(ps1)} points)."
        )

    degenerate = np.zeros(len(ps0), dtype=bool)
    for ps in (ps0, ps1):
        degenerate[ps.annotation.get("degenerate_bins", [])] = True

    handle = _fill_point_set(
        backend, path, ps0.y, ps1.y, ps1.y_error, ps0.y_error, degenerate
    )
    backend.get(handle).errors_valid = ps0.errors_valid and ps1.errors_valid

    return handle


def create_vertex_charge_leakage_plot(backend, table, b_path, c_path):
    """Create the vertex charge leakage rate as a function of |cos(theta)|.

    The leakage rate is the fraction of charged hadrons for which the
    reconstructed vertex charge is neutral.

    Parameters
    ----------
    backend : HistogramBackend
        Histogram backend
    table : VertexChargeTable
        Vertex charge counts
    b_path : str
        Path of the b-jet point set
    c_path : str
        Path of the c-jet point set

    Returns
    -------
    int
        Handle of the b-jet point set
    int
        Handle of the c-jet point set
    """
    num_bins = table.n_angle_bins
    x = (np.arange(num_bins) + 0.5) / num_bins
    x_error = np.full(num_bins, 0.5 / num_bins)
    handles = []
    for hypothesis, path in zip(ChargeHypothesis, (b_path, c_path)):
        rate, error, total = table.leakage(hypothesis)
        handles.append(
            _fill_point_set(backend, path, x, rate, error, x_error, total <= 0)
        )

    return tuple(handles)


class DerivedStatistics:
    """Computes every derived curve once the event loop is over.

    Curves are registered in the backend next to the histograms they are
    derived from, and their handles are recorded in :attr:`curves`, keyed by
    path.
    """

    def __init__(self, bank, vertex_charge_table, make_purity_efficiency_plots=True):
        """Store the bank and the tables to derive statistics from.

        Parameters
        ----------
        bank : HistogramBank
            Bank of filled accumulators
        vertex_charge_table : VertexChargeTable
            Filled vertex charge table
        make_purity_efficiency_plots : bool, default True
            Compute the efficiency, purity and leakage curves
        """
        self.bank = bank
        self.backend = bank.backend
        self.vertex_charge_table = vertex_charge_table
        self.make_purity_efficiency_plots = make_purity_efficiency_plots
        self.curves = {}

    def run(self):
        """Compute all the derived statistics.

        Returns
        -------
        Dict[str, int]
            Handles of the derived curves, keyed by path
        """
        if self.make_purity_efficiency_plots:
            self.calculate_efficiency_purity_plots()
        self.calculate_integral_and_background_plots()
        if self.bank.make_additional_plots:
            self.calculate_additional_plots()
        self.create_vertex_charge_leakage_plots()

        return self.curves

    def _register(self, handle):
        """Record a derived curve."""
        self.curves[self.backend.get(handle).path] = handle
        return handle

    def _pair(self, x_points, y_points, path):
        """Pair two curves, a mismatch only drops that pair."""
        try:
            return self._register(
                create_xy_plot(self.backend, x_points, y_points, path)
            )
        except ShapeMismatchError as err:
            logger.error("Skipping `%s`: %s", path, err)

    def calculate_efficiency_purity_plots(self):
        """Efficiency, purity and leakage curves of every tag and category."""
        for i, name in enumerate(self.bank.tag_collections):
            for category in VertexCategory:
                directory = f"{name}/{VERTEX_CAT_DIRS[category]}"
                for tag in TagType:
                    # Efficiency of every flavour (mistag rate for non-targets)
                    efficiency = {}
                    for flavour in Flavour.strata():
                        efficiency[flavour] = self._register(
                            create_efficiency_plot(
                                self.backend,
                                self.bank.tag_handle(i, flavour, tag, category),
                                f"{directory}/{flavour.label}Jet{tag.var_name}Efficiency",
                            )
                        )

                    # Purity and leakage of the tag target
                    signal = self.bank.tag_handle(i, tag.target, tag, category)
                    background = self.bank.background_handle(i, tag, category)
                    purity = self._register(
                        create_purity_plot(
                            self.backend,
                            signal,
                            background,
                            f"{directory}/{tag.var_name}Purity",
                        )
                    )
                    leakage = self._register(
                        create_leakage_rate_plot(
                            self.backend,
                            background,
                            f"{directory}/{tag.var_name}LeakageRate",
                        )
                    )

                    # Performance curves
                    self._pair(
                        efficiency[tag.target],
                        purity,
                        f"{directory}/{tag.var_name}PurityVsEfficiency",
                    )
                    self._pair(
                        efficiency[tag.target],
                        leakage,
                        f"{directory}/{tag.var_name}LeakageRateVsEfficiency",
                    )

    def calculate_integral_and_background_plots(self):
        """Integrals of the neural net output and background histograms."""
        for i, name in enumerate(self.bank.tag_collections):
            for category in VertexCategory:
                directory = f"{name}/{VERTEX_CAT_DIRS[category]}"
                for tag in TagType:
                    for flavour in Flavour.strata():
                        self._register(
                            create_integral_histogram(
                                self.backend,
                                self.bank.tag_handle(i, flavour, tag, category),
                                f"{directory}/{flavour.label}Jet{tag.var_name}Integral",
                            )
                        )
                    self._register(
                        create_integral_plot(
                            self.backend,
                            self.bank.background_handle(i, tag, category),
                            f"{directory}/{tag.var_name}BackgroundIntegral",
                        )
                    )

    def calculate_additional_plots(self):
        """Vertex finding efficiency as a function of the true decay length."""
        for i, name in enumerate(self.bank.tag_collections):
            for prefix in ("B", "C"):
                all_jets = self.bank.plot_handle(f"{prefix}DecayLengthAll", i)
                two_vertices = self.bank.plot_handle(
                    f"{prefix}DecayLengthTwoVertices", i
                )
                directory = f"{name}/DecayLength"
                self._register(
                    create_efficiency_plot2(
                        self.backend,
                        all_jets,
                        two_vertices,
                        f"{directory}/{prefix}VertexFindingEfficiency",
                    )
                )
                self._register(
                    self.backend.divide(
                        f"{directory}/{prefix}VertexFindingRatio",
                        two_vertices,
                        all_jets,
                    )
                )

    def create_vertex_charge_leakage_plots(self):
        """Vertex charge leakage rate of b- and c-jets."""
        for handle in create_vertex_charge_leakage_plot(
            self.backend,
            self.vertex_charge_table,
            "VertexCharge/BJetLeakageRate",
            "VertexCharge/CJetLeakageRate",
        ):
            self._register(handle)
