"""Tests for the flavplot.math.base module."""

import numpy as np
import pytest

from flavplot.math.base import forward_cumsum, reverse_cumsum


class TestCumulativeSums:
    """Test the numba cumulative sums used by the cut-scan curves."""

    def test_reverse_cumsum(self):
        """Element i sums the array from i to the end."""
        x = np.array([10.0, 20.0, 30.0])
        np.testing.assert_allclose(reverse_cumsum(x), [60.0, 50.0, 30.0])

    def test_forward_cumsum(self):
        """Element i sums the array from the start to i."""
        x = np.array([10.0, 20.0, 30.0])
        np.testing.assert_allclose(forward_cumsum(x), [10.0, 30.0, 60.0])

    @pytest.mark.parametrize("size", [1, 7, 100])
    def test_matches_numpy(self, size):
        """Both sums agree with their numpy equivalent."""
        rng = np.random.default_rng(seed=size)
        x = rng.random(size)
        np.testing.assert_allclose(forward_cumsum(x), np.cumsum(x))
        np.testing.assert_allclose(reverse_cumsum(x), np.cumsum(x[::-1])[::-1])

    def test_empty(self):
        """An empty array gives an empty sum."""
        x = np.empty(0, dtype=np.float64)
        assert len(reverse_cumsum(x)) == 0
        assert len(forward_cumsum(x)) == 0

    def test_output_dtype(self):
        """The sums are always accumulated in double precision."""
        x = np.ones(4, dtype=np.float64)
        assert reverse_cumsum(x).dtype == np.float64
        assert forward_cumsum(x).dtype == np.float64
