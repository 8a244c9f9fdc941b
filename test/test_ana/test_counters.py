"""Tests for the dense confusion tables."""

import numpy as np
import pytest

from flavplot.ana.counters import TrackOriginTable, VertexChargeTable
from flavplot.utils.enums import (
    ChargeBucket,
    ChargeHypothesis,
    TrackOrigin,
    TrackVertex,
    VertexCategory,
    VertexChargeSign,
)


class TestVertexChargeTable:
    """Test the vertex charge table."""

    def test_fill_and_counts(self):
        """Counts are summed over the angle bins."""
        table = VertexChargeTable()
        table.fill(ChargeHypothesis.B, ChargeBucket.PLUS, VertexChargeSign.PLUS, 0)
        table.fill(ChargeHypothesis.B, ChargeBucket.PLUS, VertexChargeSign.PLUS, 3)
        table.fill(ChargeHypothesis.B, ChargeBucket.MINUS, VertexChargeSign.NEUTRAL, 3)

        counts = table.counts(ChargeHypothesis.B)
        assert counts.shape == (5, 3)
        assert counts[ChargeBucket.PLUS, VertexChargeSign.PLUS] == 2
        assert counts[ChargeBucket.MINUS, VertexChargeSign.NEUTRAL] == 1
        assert table.true_counts(ChargeHypothesis.B).sum() == 3
        assert table.counts(ChargeHypothesis.C).sum() == 0
        assert table.angle_counts(ChargeHypothesis.B).shape == (5, 3, 10)

    def test_leakage(self):
        """Fraction of charged hadrons reconstructed as neutral, per bin."""
        table = VertexChargeTable(n_angle_bins=2)
        hyp = ChargeHypothesis.C
        for _ in range(3):
            table.fill(hyp, ChargeBucket.PLUS, VertexChargeSign.PLUS, 0)
        table.fill(hyp, ChargeBucket.MINUS2, VertexChargeSign.NEUTRAL, 0)

        # Neutral hadrons do not enter the leakage
        table.fill(hyp, ChargeBucket.NEUTRAL, VertexChargeSign.NEUTRAL, 0)

        rate, error, total = table.leakage(hyp)
        np.testing.assert_allclose(rate, [0.25, 0.0])
        np.testing.assert_allclose(error, [np.sqrt(0.25 * 0.75 / 4), 0.0])
        np.testing.assert_array_equal(total, [4, 0])

    def test_as_dict(self):
        """Flat counters keyed by hypothesis, true bucket and reco sign."""
        table = VertexChargeTable()
        table.fill(ChargeHypothesis.B, ChargeBucket.PLUS2, VertexChargeSign.MINUS, 1)

        result = table.as_dict()
        assert result["b_jet/true_plus2"] == 1
        assert result["b_jet/true_plus2/reco_minus"] == 1
        assert result["c_jet/true_plus2/reco_minus"] == 0
        assert len(result) == 2 * 5 * 4


class TestTrackOriginTable:
    """Test the track origin table."""

    def test_fill(self):
        """Tracks are counted per jet flavour, multiplicity, origin, vertex."""
        table = TrackOriginTable()
        table.fill(
            ChargeHypothesis.B,
            VertexCategory.TWO,
            TrackOrigin.C,
            TrackVertex.SECONDARY,
        )
        table.fill(
            ChargeHypothesis.C,
            VertexCategory.THREE_PLUS,
            TrackOrigin.NO_MCP,
            TrackVertex.ISOLATED,
        )

        counts = table.counts
        assert counts.shape == (2, 2, 4, 4)
        assert counts.sum() == 2
        result = table.as_dict()
        assert result["b_jet/two_vertices/c_track/secondary"] == 1
        assert result["c_jet/three_or_more_vertices/no_mcp_track/isolated"] == 1

    def test_single_vertex_rejected(self):
        """Jets with a single vertex are not counted."""
        table = TrackOriginTable()
        with pytest.raises(AssertionError):
            table.fill(
                ChargeHypothesis.B,
                VertexCategory.ONE,
                TrackOrigin.B,
                TrackVertex.PRIMARY,
            )

    def test_counts_copy(self):
        """The table cannot be modified through its counts."""
        table = TrackOriginTable()
        table.counts[0, 0, 0, 0] = 10
        assert table.counts.sum() == 0
