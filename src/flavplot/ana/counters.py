"""Dense confusion tables filled alongside the histograms.

Two tables replace the long lists of individually named counters one would
otherwise need:
- :class:`VertexChargeTable` counts jets per (charge hypothesis, true charge
  bucket, reconstructed vertex charge sign, |cos(theta)| bin);
- :class:`TrackOriginTable` counts decay chain tracks per (jet flavour,
  vertex multiplicity, true track origin, reconstructed vertex assignment).
"""

import numpy as np

from flavplot.utils.enums import (
    ChargeBucket,
    ChargeHypothesis,
    TrackOrigin,
    TrackVertex,
    VertexCategory,
    VertexChargeSign,
)
from flavplot.utils.globals import N_JETANGLE_BINS

__all__ = ["VertexChargeTable", "TrackOriginTable"]


class VertexChargeTable:
    """Counts of jets passing the vertex charge selection.

    Index space: `[ChargeHypothesis, ChargeBucket, VertexChargeSign, angle]`
    with `angle` in `[0, n_angle_bins)`.
    """

    def __init__(self, n_angle_bins=N_JETANGLE_BINS):
        """Initialize the table to zero.

        Parameters
        ----------
        n_angle_bins : int, default 10
            Number of |cos(theta)| bins
        """
        self.n_angle_bins = n_angle_bins
        self._counts = np.zeros(
            (
                len(ChargeHypothesis),
                len(ChargeBucket),
                len(VertexChargeSign),
                n_angle_bins,
            ),
            dtype=np.int64,
        )

    def fill(self, hypothesis, true_bucket, reco_sign, angle_bin):
        """Count one jet.

        Parameters
        ----------
        hypothesis : ChargeHypothesis
            Vertex charge hypothesis (b-tuned or c-tuned)
        true_bucket : ChargeBucket
            True hadron charge bucket
        reco_sign : VertexChargeSign
            Sign of the reconstructed vertex charge
        angle_bin : int
            |cos(theta)| bin of the jet
        """
        self._counts[hypothesis, true_bucket, reco_sign, angle_bin] += 1

    def counts(self, hypothesis):
        """(5, 3) counts per true bucket and reconstructed sign."""
        return self._counts[hypothesis].sum(axis=-1)

    def true_counts(self, hypothesis):
        """(5) counts per true bucket."""
        return self.counts(hypothesis).sum(axis=-1)

    def angle_counts(self, hypothesis):
        """(5, 3, A) counts per true bucket, reconstructed sign and angle bin."""
        return self._counts[hypothesis].copy()

    def leakage(self, hypothesis):
        """Fraction of charged hadrons reconstructed as neutral, per angle bin.

        Parameters
        ----------
        hypothesis : ChargeHypothesis
            Vertex charge hypothesis

        Returns
        -------
        np.ndarray
            (A) Leakage rate, 0 in bins without charged hadrons
        np.ndarray
            (A) Binomial error on the leakage rate
        np.ndarray
            (A) Number of charged hadrons in each bin
        """
        charged = [b for b in ChargeBucket if b.charged]
        counts = self._counts[hypothesis][charged]
        total = counts.sum(axis=(0, 1)).astype(np.float64)
        neutral = counts[:, VertexChargeSign.NEUTRAL].sum(axis=0)

        rate = np.zeros(self.n_angle_bins, dtype=np.float64)
        error = np.zeros(self.n_angle_bins, dtype=np.float64)
        valid = total > 0
        rate[valid] = neutral[valid] / total[valid]
        error[valid] = np.sqrt(rate[valid] * (1.0 - rate[valid]) / total[valid])

        return rate, error, total

    def as_dict(self):
        """Flat dictionary of every counter.

        Returns
        -------
        Dict[str, int]
            Counts keyed as `<hyp>_jet/true_<bucket>` and
            `<hyp>_jet/true_<bucket>/reco_<sign>`
        """
        result = {}
        for hyp in ChargeHypothesis:
            counts = self.counts(hyp)
            prefix = f"{hyp.name.lower()}_jet"
            for bucket in ChargeBucket:
                key = f"{prefix}/true_{bucket.name.lower()}"
                result[key] = int(counts[bucket].sum())
                for sign in VertexChargeSign:
                    result[f"{key}/reco_{sign.name.lower()}"] = int(
                        counts[bucket, sign]
                    )

        return result


class TrackOriginTable:
    """Counts of decay chain tracks in jets with two or more vertices.

    Index space: `[ChargeHypothesis, multiplicity, TrackOrigin, TrackVertex]`
    where the jet flavour is expressed as a `ChargeHypothesis` (b or c jet)
    and `multiplicity` is 0 for two vertices and 1 for three or more.
    """

    # Vertex buckets which are counted, in table order
    _categories = (VertexCategory.TWO, VertexCategory.THREE_PLUS)

    def __init__(self):
        """Initialize the table to zero."""
        self._counts = np.zeros(
            (
                len(ChargeHypothesis),
                len(self._categories),
                len(TrackOrigin),
                len(TrackVertex),
            ),
            dtype=np.int64,
        )

    @property
    def counts(self):
        """Copy of the full table."""
        return self._counts.copy()

    def fill(self, hypothesis, category, origin, vertex):
        """Count one track.

        Parameters
        ----------
        hypothesis : ChargeHypothesis
            True flavour of the jet (b or c)
        category : VertexCategory
            `TWO` or `THREE_PLUS`
        origin : TrackOrigin
            True origin of the track
        vertex : TrackVertex
            Reconstructed vertex the track is attached to
        """
        assert category in self._categories, (
            "Only jets with two or more vertices enter the track origin table."
        )
        index = self._categories.index(category)
        self._counts[hypothesis, index, origin, vertex] += 1

    def as_dict(self):
        """Flat dictionary of every counter.

        Returns
        -------
        Dict[str, int]
            Counts keyed as `<hyp>_jet/<multiplicity>/<origin>_track/<vertex>`
        """
        names = ("two_vertices", "three_or_more_vertices")
        result = {}
        for hyp in ChargeHypothesis:
            for i, name in enumerate(names):
                for origin in TrackOrigin:
                    for vertex in TrackVertex:
                        key = (
                            f"{hyp.name.lower()}_jet/{name}/"
                            f"{origin.name.lower()}_track/{vertex.name.lower()}"
                        )
                        result[key] = int(self._counts[hyp, i, origin, vertex])

        return result
