"""Tests for the end-of-run derived statistics."""

import numpy as np
import pytest

from flavplot.ana.counters import VertexChargeTable
from flavplot.ana.derive import (
    create_efficiency_plot,
    create_efficiency_plot2,
    create_integral_histogram,
    create_integral_plot,
    create_leakage_rate_plot,
    create_purity_plot,
    create_vertex_charge_leakage_plot,
    create_xy_plot,
    tag_efficiency,
    tag_purity,
)
from flavplot.utils.enums import ChargeBucket, ChargeHypothesis, VertexChargeSign
from flavplot.utils.errors import ShapeMismatchError, UnregisteredKeyError


def fill_counts(backend, path, counts, low=0.0, high=1.0):
    """Create a histogram with the requested bin contents."""
    handle = backend.create_histogram1d(path, len(counts), low, high)
    hist = backend.get(handle)
    for x, count in zip(hist.bin_centers, counts):
        for _ in range(count):
            backend.fill(handle, x)

    return handle


class TestArrayFunctions:
    """Test the pure efficiency and purity computations."""

    def test_reference_values(self):
        """Signal [10, 20, 30] against background [5, 5, 5]."""
        signal, background = [10, 20, 30], [5, 5, 5]
        efficiency, _ = tag_efficiency(signal)
        purity, _ = tag_purity(signal, background)

        assert purity[0] == pytest.approx(0.8)
        assert efficiency[1] == pytest.approx(50.0 / 60.0)

    def test_efficiency_bounds(self):
        """Efficiency starts at one and decreases to the last bin content."""
        signal = np.array([3.0, 0.0, 2.0, 5.0])
        efficiency, error = tag_efficiency(signal)

        assert efficiency[0] == 1.0
        assert error[0] == 0.0
        assert (np.diff(efficiency) <= 0.0).all()
        assert efficiency[-1] == pytest.approx(0.5)
        assert error[-1] == pytest.approx(np.sqrt(0.25 / 10.0))

    def test_empty_efficiency(self):
        """An empty histogram has a zero efficiency everywhere."""
        efficiency, error = tag_efficiency(np.zeros(5))
        np.testing.assert_array_equal(efficiency, np.zeros(5))
        np.testing.assert_array_equal(error, np.zeros(5))

    def test_purity_bounds(self):
        """Purity is within [0, 1] and zero where no jet passes."""
        rng = np.random.default_rng(seed=1)
        signal = rng.integers(0, 10, 20).astype(float)
        background = rng.integers(0, 10, 20).astype(float)
        signal[-3:] = background[-3:] = 0.0
        purity, _ = tag_purity(signal, background)

        assert (purity >= 0.0).all() and (purity <= 1.0).all()
        np.testing.assert_array_equal(purity[-3:], 0.0)

    def test_purity_shape_mismatch(self):
        """Signal and background must have the same binning."""
        with pytest.raises(ShapeMismatchError):
            tag_purity(np.ones(3), np.ones(4))


class TestCurves:
    """Test the point sets written to the backend."""

    def test_efficiency_plot(self, backend):
        """Points sit at the lower edge of each bin."""
        signal = fill_counts(backend, "signal", [10, 20, 30])
        points = backend.get(create_efficiency_plot(backend, signal, "eff"))

        np.testing.assert_allclose(points.x, [0.0, 1.0 / 3.0, 2.0 / 3.0])
        np.testing.assert_allclose(points.y, [1.0, 50.0 / 60.0, 0.5])
        assert points.annotation["degenerate_bins"] == []

    def test_empty_efficiency_plot(self, backend):
        """An empty signal histogram flags every point as degenerate."""
        signal = fill_counts(backend, "signal", [0, 0, 0])
        points = backend.get(create_efficiency_plot(backend, signal, "eff"))

        np.testing.assert_array_equal(points.y, 0.0)
        assert points.annotation["degenerate_bins"] == [0, 1, 2]

    def test_purity_plot(self, backend):
        """Degenerate bins are annotated."""
        signal = fill_counts(backend, "signal", [10, 20, 0])
        background = fill_counts(backend, "background", [5, 5, 0])
        points = backend.get(create_purity_plot(backend, signal, background, "pur"))

        assert points.y[0] == pytest.approx(30.0 / 40.0)
        assert points.y[2] == 0.0
        assert points.annotation["degenerate_bins"] == [2]

    def test_purity_plot_mismatch(self, backend):
        """Histograms with different binning are rejected."""
        signal = fill_counts(backend, "signal", [1, 2, 3])
        background = fill_counts(backend, "background", [1, 2])
        with pytest.raises(ShapeMismatchError):
            create_purity_plot(backend, signal, background, "pur")

    def test_leakage_rate_plot(self, backend):
        """Un-normalized count of background jets above each cut."""
        background = fill_counts(backend, "background", [5, 0, 4])
        points = backend.get(create_leakage_rate_plot(backend, background, "leak"))

        np.testing.assert_allclose(points.y, [9.0, 4.0, 4.0])
        np.testing.assert_allclose(points.y_error, [3.0, 2.0, 2.0])

    def test_efficiency_plot2(self, backend):
        """Bin-by-bin ratio with binomial errors."""
        total = fill_counts(backend, "all", [4, 0, 2], 0.0, 3.0)
        passed = fill_counts(backend, "passed", [2, 0, 2], 0.0, 3.0)
        points = backend.get(create_efficiency_plot2(backend, total, passed, "eff2"))

        np.testing.assert_allclose(points.x, [0.5, 1.5, 2.5])
        np.testing.assert_allclose(points.y, [0.5, 0.0, 1.0])
        np.testing.assert_allclose(points.y_error, [0.25, 0.0, 0.0])
        assert points.annotation["degenerate_bins"] == [1]

    def test_integral_histogram(self, backend):
        """Forward cumulative sum, errors flagged as invalid."""
        source = fill_counts(backend, "source", [1, 2, 3])
        hist = backend.get(create_integral_histogram(backend, source, "int"))

        np.testing.assert_allclose(hist.heights, [1.0, 3.0, 6.0])
        np.testing.assert_allclose(hist.errors, [1.0, 3.0, 6.0])
        assert not hist.errors_valid
        assert backend.get(source).errors_valid

    def test_integral_plot(self, backend):
        """Point i counts the entries up to the upper edge of bin i."""
        source = fill_counts(backend, "source", [1, 2, 3])
        points = backend.get(create_integral_plot(backend, source, "int"))

        np.testing.assert_allclose(points.x, [1.0 / 3.0, 2.0 / 3.0, 1.0])
        np.testing.assert_allclose(points.y, [1.0, 3.0, 6.0])
        assert not points.errors_valid

    def test_xy_plot(self, backend):
        """Two curves are paired index by index."""
        signal = fill_counts(backend, "signal", [10, 20, 30])
        background = fill_counts(backend, "background", [5, 5, 5])
        efficiency = create_efficiency_plot(backend, signal, "eff")
        purity = create_purity_plot(backend, signal, background, "pur")
        points = backend.get(create_xy_plot(backend, efficiency, purity, "xy"))

        np.testing.assert_allclose(points.x, backend.get(efficiency).y)
        np.testing.assert_allclose(points.y, backend.get(purity).y)
        assert points.y[0] == pytest.approx(0.8)

    def test_xy_plot_mismatch(self, backend):
        """Point sets of different lengths cannot be paired."""
        ps0 = backend.create_point_set("ps0", 5)
        ps1 = backend.create_point_set("ps1", 7)
        with pytest.raises(ShapeMismatchError):
            create_xy_plot(backend, ps0, ps1, "xy")
        with pytest.raises(UnregisteredKeyError):
            backend.find("xy")

    def test_vertex_charge_leakage_plot(self, backend):
        """One point per |cos(theta)| bin, per hypothesis."""
        table = VertexChargeTable()
        table.fill(ChargeHypothesis.B, ChargeBucket.PLUS, VertexChargeSign.NEUTRAL, 2)
        table.fill(ChargeHypothesis.B, ChargeBucket.MINUS, VertexChargeSign.MINUS, 2)
        b_handle, c_handle = create_vertex_charge_leakage_plot(
            backend, table, "b_leak", "c_leak"
        )

        b_points, c_points = backend.get(b_handle), backend.get(c_handle)
        assert len(b_points) == 10
        assert b_points.x[2] == pytest.approx(0.25)
        assert b_points.y[2] == pytest.approx(0.5)
        assert 2 not in b_points.annotation["degenerate_bins"]
        assert c_points.annotation["degenerate_bins"] == list(range(10))


def test_score_on_cut_value(backend):
    """A jet scored exactly at a cut value passes that cut."""
    handle = backend.create_histogram1d("scores", 100, 0.0, 1.0)
    for score in (0.29, 0.58):
        backend.fill(handle, score)

    efficiency = backend.get(create_efficiency_plot(backend, handle, "eff"))
    assert efficiency.x[29] == pytest.approx(0.29)
    assert efficiency.y[29] == pytest.approx(1.0)
    assert efficiency.y[58] == pytest.approx(0.5)
    assert efficiency.y[59] == 0.0
