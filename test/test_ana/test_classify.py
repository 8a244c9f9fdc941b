"""Tests for the per-jet classification functions."""

import numpy as np
import pytest

from flavplot.ana.classify import (
    calculate_distance,
    find_b_q_vtx,
    find_jet_variable,
    find_num_vertex,
    find_track_origin,
    find_true_jet_decay_length,
    find_true_jet_decay_length2,
    find_true_jet_flavour,
    find_true_jet_hadron_charge,
    find_true_jet_pdg_code,
    find_true_jet_type,
    get_pdg_flavour,
    jet_angle_bin,
    true_charge_bucket,
    variable_index,
    vertex_category,
    vertex_charge_sign,
)
from flavplot.data import FloatVecCollection, TrueDecay, TrueDecayChain
from flavplot.utils.enums import (
    ChargeBucket,
    Flavour,
    TrackOrigin,
    VertexCategory,
    VertexChargeSign,
)


@pytest.mark.parametrize(
    "code, flavour",
    [
        (5, 5),
        (-4, 4),
        (511, 5),
        (-521, 5),
        (421, 4),
        (211, 2),
        (5122, 5),
        (4122, 4),
        (10521, 5),
        (-20523, 5),
        (100443, 4),
        (0, 0),
        (22, 0),
    ],
)
def test_get_pdg_flavour(code, flavour):
    """Quark content of quarks, mesons and baryons."""
    assert get_pdg_flavour(code) == flavour


def test_variable_index():
    """Undeclared variables are flagged with -1."""
    names = ["BTag", "CTag", "BCTag"]
    assert variable_index(names, "CTag") == 1
    assert variable_index(names, "Missing") == -1


def test_find_jet_variable():
    """Missing jets or variables give NaN."""
    coll = FloatVecCollection([[0.1, 0.2]])
    assert find_jet_variable(coll, 0, 1) == pytest.approx(0.2)
    assert np.isnan(find_jet_variable(coll, 0, 2))
    assert np.isnan(find_jet_variable(coll, 1, 0))
    assert np.isnan(find_jet_variable(coll, 0, -1))


class TestTrueFlavour:
    """Test the true flavour lookup, which never raises on missing truth."""

    def test_flavours(self):
        """5 -> b, 4 -> c, any other positive code -> light."""
        truth = FloatVecCollection([[5], [4], [1], [21], [0], [-1], [np.nan]])
        expected = [
            Flavour.B,
            Flavour.C,
            Flavour.LIGHT,
            Flavour.LIGHT,
            Flavour.UNDEFINED,
            Flavour.UNDEFINED,
            Flavour.UNDEFINED,
        ]
        for jet, flavour in enumerate(expected):
            assert find_true_jet_flavour(truth, jet, 0) == flavour

    def test_missing_truth(self):
        """A jet beyond the truth collection or an undeclared variable."""
        truth = FloatVecCollection([[5]])
        assert find_true_jet_flavour(truth, 3, 0) == Flavour.UNDEFINED
        assert find_true_jet_flavour(truth, 0, -1) == Flavour.UNDEFINED
        assert find_true_jet_type(truth, 3, 0) == 0

    def test_codes_and_charges(self):
        """Raw codes and charges."""
        truth = FloatVecCollection([[5, -1.0, -1.0 / 3.0, 521]])
        assert find_true_jet_type(truth, 0, 0) == 5
        assert find_true_jet_pdg_code(truth, 0, 3) == 521
        assert find_true_jet_hadron_charge(truth, 0, 1) == -1.0
        assert np.isnan(find_true_jet_hadron_charge(truth, 0, -1))


class TestCharges:
    """Test the charge bucketing."""

    @pytest.mark.parametrize(
        "charge, bucket",
        [
            (2.0, ChargeBucket.PLUS2),
            (1.0, ChargeBucket.PLUS),
            (0.0, ChargeBucket.NEUTRAL),
            (-0.0, ChargeBucket.NEUTRAL),
            (-1.0, ChargeBucket.MINUS),
            (-2.0, ChargeBucket.MINUS2),
        ],
    )
    def test_true_charge_bucket(self, charge, bucket):
        """Integer charges map one to one onto the five buckets."""
        assert true_charge_bucket(charge) == bucket

    def test_true_charge_symmetry(self):
        """Bucketing is symmetric about zero."""
        for charge in np.linspace(0.0, 3.0, 31):
            plus, minus = true_charge_bucket(charge), true_charge_bucket(-charge)
            assert int(plus) + int(minus) == 2 * int(ChargeBucket.NEUTRAL)

    def test_true_charge_missing(self):
        """NaN charges have no bucket."""
        assert true_charge_bucket(np.nan) is None

    def test_true_charge_thresholds(self):
        """Thresholds are configurable."""
        assert true_charge_bucket(0.6, (0.7, 1.2)) == ChargeBucket.NEUTRAL
        assert true_charge_bucket(-1.3, (0.7, 1.2)) == ChargeBucket.MINUS2

    def test_vertex_charge_sign(self):
        """Signs of the reconstructed vertex charge."""
        assert vertex_charge_sign(1.0, 0.5) == VertexChargeSign.PLUS
        assert vertex_charge_sign(-2.0, 0.5) == VertexChargeSign.MINUS
        assert vertex_charge_sign(0.0, 0.5) == VertexChargeSign.NEUTRAL
        assert vertex_charge_sign(0.5, 0.5) == VertexChargeSign.NEUTRAL
        assert vertex_charge_sign(np.nan, 0.5) is None

    def test_find_q_vtx(self):
        """Vertex charges are stored as one value per jet."""
        charges = FloatVecCollection([[1.0], [-2.0]])
        assert find_b_q_vtx(charges, 1) == -2.0
        assert np.isnan(find_b_q_vtx(charges, 2))


class TestVertices:
    """Test the vertex counting and bucketing."""

    @pytest.mark.parametrize(
        "count, category",
        [
            (0, VertexCategory.ONE),
            (1, VertexCategory.ONE),
            (2, VertexCategory.TWO),
            (3, VertexCategory.THREE_PLUS),
            (7, VertexCategory.THREE_PLUS),
        ],
    )
    def test_vertex_category(self, count, category):
        """Vertex counts collapse onto three buckets."""
        assert vertex_category(count) == category

    def test_find_num_vertex(self):
        """Counts are rounded, missing counts are zero."""
        inputs = FloatVecCollection([[0.3, 2.0], [0.1, np.nan]])
        assert find_num_vertex(inputs, 0, 1) == 2
        assert find_num_vertex(inputs, 1, 1) == 0
        assert find_num_vertex(inputs, 0, -1) == 0


class TestDistances:
    """Test the decay length computations."""

    def test_calculate_distance_precision(self):
        """The result has the precision of the inputs."""
        p1 = np.zeros(3, dtype=np.float32)
        p2 = np.array([3.0, 4.0, 0.0], dtype=np.float32)
        d32 = calculate_distance(p1, p2)
        d64 = calculate_distance(p1.astype(np.float64), p2.astype(np.float64))

        assert isinstance(d32, np.float32)
        assert isinstance(d64, np.float64)
        assert d32 == pytest.approx(5.0)
        assert d64 == pytest.approx(5.0)

    def test_calculate_distance_mixed(self):
        """Mixed precision inputs are computed in double precision."""
        p1 = np.zeros(3, dtype=np.float32)
        p2 = np.array([1.0, 0.0, 0.0], dtype=np.float64)

        assert isinstance(calculate_distance(p1, p2), np.float64)

    def test_true_decay_lengths(self):
        """b and c decay lengths along a b -> c chain."""
        chain = TrueDecayChain(
            decays=[
                TrueDecay(pdg=511, position=[0.0, 0.0, 3.0]),
                TrueDecay(pdg=411, position=[0.0, 4.0, 3.0]),
                TrueDecay(pdg=211, position=[0.0, 9.0, 9.0]),
            ]
        )
        ip = np.zeros(3)
        lengths, b_lengths, c_lengths = find_true_jet_decay_length(chain, ip)

        assert lengths == pytest.approx([3.0, 5.0])
        assert b_lengths == pytest.approx([3.0])
        assert c_lengths == pytest.approx([5.0])
        assert find_true_jet_decay_length2(chain, ip) == pytest.approx((3.0, 5.0))

    def test_no_true_decay(self):
        """A chain without heavy hadrons has zero decay lengths."""
        chain = TrueDecayChain()
        assert find_true_jet_decay_length2(chain, np.zeros(3)) == (0.0, 0.0)


def test_find_track_origin():
    """Track origins from the parent hadron code."""
    assert find_track_origin(-1) == TrackOrigin.NO_MCP
    assert find_track_origin(521) == TrackOrigin.B
    assert find_track_origin(421) == TrackOrigin.C
    assert find_track_origin(10521) == TrackOrigin.B
    assert find_track_origin(0) == TrackOrigin.LIGHT


def test_jet_angle_bin():
    """|cos(theta)| bins, the last bin includes 1."""
    assert jet_angle_bin(0.0) == 0
    assert jet_angle_bin(-0.05) == 0
    assert jet_angle_bin(0.55) == 5
    assert jet_angle_bin(-0.95) == 9
    assert jet_angle_bin(1.0) == 9
