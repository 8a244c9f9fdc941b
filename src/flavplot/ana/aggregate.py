"""Per-event filling of the flavour tag accumulators."""

import numpy as np

from flavplot.utils.enums import (
    ChargeHypothesis,
    Flavour,
    TagType,
    TrackVertex,
    VertexCategory,
)
from flavplot.utils.errors import ConfigurationError
from flavplot.utils.globals import (
    TRUE_CHARGE_THRESHOLDS,
    TRUE_HADRON_CHARGE_NAME,
    TRUE_JET_FLAVOUR_NAME,
    VERTEX_CHARGE_CUT,
)

from .classify import (
    calculate_distance,
    find_b_q_vtx,
    find_c_q_vtx,
    find_jet_variable,
    find_num_vertex,
    find_track_origin,
    find_true_jet_decay_length2,
    find_true_jet_flavour,
    find_true_jet_hadron_charge,
    find_true_jet_type,
    jet_angle_bin,
    true_charge_bucket,
    vertex_category,
    vertex_charge_sign,
)
from .counters import TrackOriginTable, VertexChargeTable

__all__ = ["FlavourTagAggregator"]


class FlavourTagAggregator:
    """Fills the accumulators of a :class:`HistogramBank` event by event.

    For each event which passes the event cuts, and for each jet which
    passes the jet cuts, the aggregator:
    - classifies the jet (true flavour, vertex multiplicity);
    - fills the neural net output histograms of every flavour tag
      collection, at the jet vertex bucket and at the `ANY` bucket, as well as
      the background histogram of each tag the jet is not a signal for;
    - fills the tag input histograms (and their zoomed-in variants);
    - fills the tuple row of the designated input collection;
    - fills the vertex charge plots and the vertex charge table;
    - fills the decay chain plots and the track origin table.

    The vertex plots describe the event structure rather than individual
    jets: they are filled for every event, regardless of the event cuts.
    """

    def __init__(
        self,
        bank,
        cuts,
        jet_collection,
        vertex_collection=None,
        b_vertex_charge_collection=None,
        c_vertex_charge_collection=None,
        decay_chain_collection=None,
        true_decay_chain_collection=None,
        b_tag_nn_cut=0.7,
        c_tag_nn_cut=0.7,
        vertex_charge_tag_collection=0,
        true_charge_thresholds=TRUE_CHARGE_THRESHOLDS,
        b_vertex_charge_cut=VERTEX_CHARGE_CUT,
        c_vertex_charge_cut=VERTEX_CHARGE_CUT,
    ):
        """Store the collection names and the selection parameters.

        Parameters
        ----------
        bank : HistogramBank
            Bank of accumulators to fill
        cuts : JetCuts
            Kinematic jet selection
        jet_collection : str
            Name of the jet collection
        vertex_collection : str, optional
            Name of the vertex collection (additional plots only)
        b_vertex_charge_collection : str, optional
            Name of the b-tuned vertex charge collection
        c_vertex_charge_collection : str, optional
            Name of the c-tuned vertex charge collection
        decay_chain_collection : str, optional
            Name of the reconstructed decay chain collection
        true_decay_chain_collection : str, optional
            Name of the true decay chain collection
        b_tag_nn_cut : float, default 0.7
            B-tag score above which a true b-jet enters the vertex charge plots
        c_tag_nn_cut : float, default 0.7
            C-tag score above which a true c-jet enters the vertex charge plots
        vertex_charge_tag_collection : int, default 0
            Index of the flavour tag collection used for the vertex charge
            selection
        true_charge_thresholds : Tuple[float, float], default (0.5, 1.5)
            Boundaries of the true charge buckets
        b_vertex_charge_cut : float, default 0.5
            |vertex charge| above which a b-tuned vertex is charged
        c_vertex_charge_cut : float, default 0.5
            |vertex charge| above which a c-tuned vertex is charged
        """
        if not 0 <= vertex_charge_tag_collection < bank.num_collections:
            raise ConfigurationError(
                f"Vertex charge tag collection index {vertex_charge_tag_collection} "
                f"is out of range ({bank.num_collections} collections)."
            )
        self.bank = bank
        self.backend = bank.backend
        self.cuts = cuts
        self.jet_collection = jet_collection
        self.vertex_collection = vertex_collection
        self.vertex_charge_collections = (
            b_vertex_charge_collection,
            c_vertex_charge_collection,
        )
        self.decay_chain_collection = decay_chain_collection
        self.true_decay_chain_collection = true_decay_chain_collection
        self.tag_nn_cuts = (b_tag_nn_cut, c_tag_nn_cut)
        self.vertex_charge_tag_collection = vertex_charge_tag_collection
        self.true_charge_thresholds = tuple(true_charge_thresholds)
        if len(self.true_charge_thresholds) != 2 or not (
            0.0 < self.true_charge_thresholds[0] < self.true_charge_thresholds[1]
        ):
            raise ConfigurationError(
                "The true charge thresholds must be two positive, increasing "
                f"values, got {list(true_charge_thresholds)}."
            )
        self.vertex_charge_cuts = (b_vertex_charge_cut, c_vertex_charge_cut)

        # Initialize the confusion tables and the event counters
        self.vertex_charge_table = VertexChargeTable()
        self.track_origin_table = TrackOriginTable()
        self.num_events = 0
        self.num_passed_events = 0
        self.num_jets = 0

    def process(self, event):
        """Fill the accumulators with the content of one event.

        Parameters
        ----------
        event : Event
            Event content

        Returns
        -------
        bool
            `True` if the event passed the event cuts
        """
        # Event-structural plots are filled for every event
        self.num_events += 1
        jets = event.get(self.jet_collection)
        if self.bank.make_additional_plots and self.vertex_collection is not None:
            self.fill_vertex_plots(event)

        # Every jet must pass the kinematic cuts for the event to be used
        if not self.cuts.passes_event_cuts(jets):
            return False
        self.num_passed_events += 1

        # Fetch the collections once per event
        truth = event.get(self.bank.truth_collection)
        tags = [event.get(name) for name in self.bank.tag_collections]
        inputs = [event.get(name) for name in self.bank.input_collections]

        # Loop over the jets, fill
        flavour_index = self.bank.truth_indexes[TRUE_JET_FLAVOUR_NAME]
        for jet_index, jet in enumerate(jets):
            if not self.cuts.passes_jet_cuts(jet):
                continue

            self.num_jets += 1
            flavour = find_true_jet_flavour(truth, jet_index, flavour_index)
            for i in range(self.bank.num_collections):
                self.fill_tag_plots(i, tags[i], inputs[i], jet_index, flavour)
                self.fill_input_plots(i, inputs[i], jet_index, flavour)

            if self.bank.make_tuple:
                self.fill_tuple(inputs, truth, jet_index)

            self.fill_vertex_charge_plots(event, tags, truth, jet_index, jet, flavour)

            if self.bank.make_additional_plots:
                self.fill_decay_chain_plots(event, inputs, jet_index, flavour)

        return True

    def fill_tag_plots(self, collection, tags, inputs, jet, flavour):
        """Fill the neural net output histograms of one collection for one jet.

        Parameters
        ----------
        collection : int
            Index of the flavour tag collection
        tags : FloatVecCollection
            Flavour tag collection
        inputs : FloatVecCollection
            Flavour tag input collection
        jet : int
            Index of the jet
        flavour : Flavour
            True flavour of the jet
        """
        # A jet without truth information does not belong to any stratum
        if flavour == Flavour.UNDEFINED:
            return

        num_vertex = find_num_vertex(
            inputs, jet, self.bank.num_vertex_indexes[collection]
        )
        categories = (vertex_category(num_vertex), VertexCategory.ANY)
        indexes = self.bank.tag_indexes[collection]
        for tag in TagType:
            score = find_jet_variable(tags, jet, indexes[tag])
            if np.isnan(score):
                continue

            for category in categories:
                self.backend.fill(
                    self.bank.tag_handle(collection, flavour, tag, category), score
                )
                if flavour != tag.target:
                    self.backend.fill(
                        self.bank.background_handle(collection, tag, category), score
                    )

    def fill_input_plots(self, collection, inputs, jet, flavour):
        """Fill the tag input histograms of one collection for one jet.

        Parameters
        ----------
        collection : int
            Index of the flavour tag input collection
        inputs : FloatVecCollection
            Flavour tag input collection
        jet : int
            Index of the jet
        flavour : Flavour
            True flavour of the jet
        """
        if flavour == Flavour.UNDEFINED:
            return

        zoomed = self.bank.zoomed_indexes[collection]
        for i in range(len(self.bank.input_names[collection])):
            value = find_jet_variable(inputs, jet, i)
            if np.isnan(value):
                continue

            self.backend.fill(self.bank.input_handle(collection, i, flavour), value)
            if i in zoomed:
                self.backend.fill(
                    self.bank.zoomed_handle(collection, i, flavour), value
                )

    def fill_tuple(self, inputs, truth, jet):
        """Append the tag inputs of one jet to the tuple.

        Parameters
        ----------
        inputs : List[FloatVecCollection]
            Flavour tag input collections
        truth : FloatVecCollection
            True jet flavour collection
        jet : int
            Index of the jet
        """
        collection = self.bank.tuple_collection
        num_inputs = len(self.bank.input_names[collection])
        row = [find_jet_variable(inputs[collection], jet, i) for i in range(num_inputs)]
        row.append(
            find_true_jet_type(
                truth, jet, self.bank.truth_indexes[TRUE_JET_FLAVOUR_NAME]
            )
        )
        self.backend.fill_row(self.bank.tuple_handle, row)

    def fill_vertex_charge_plots(self, event, tags, truth, jet_index, jet, flavour):
        """Fill the vertex charge plots and table for one jet.

        Only true b-jets (resp. c-jets) with a b-tag (resp. c-tag) score above
        the configured cut, using the designated flavour tag collection, are
        considered.

        Parameters
        ----------
        event : Event
            Event content
        tags : List[FloatVecCollection]
            Flavour tag collections
        truth : FloatVecCollection
            True jet flavour collection
        jet_index : int
            Index of the jet
        jet : Jet
            Reconstructed jet
        flavour : Flavour
            True flavour of the jet
        """
        # Pick the hypothesis which matches the true flavour
        if flavour == Flavour.B:
            hypothesis, tag, find_q_vtx = ChargeHypothesis.B, TagType.B, find_b_q_vtx
        elif flavour == Flavour.C:
            hypothesis, tag, find_q_vtx = ChargeHypothesis.C, TagType.C, find_c_q_vtx
        else:
            return

        collection = self.vertex_charge_tag_collection
        score = find_jet_variable(
            tags[collection], jet_index, self.bank.tag_indexes[collection][tag]
        )
        if not score > self.tag_nn_cuts[hypothesis]:
            return

        charge_collection = self.vertex_charge_collections[hypothesis]
        if charge_collection is None:
            return

        vertex_charge = find_q_vtx(event.get(charge_collection), jet_index)
        if np.isnan(vertex_charge):
            return

        prefix = "BJet" if hypothesis == ChargeHypothesis.B else "CJet"
        self.backend.fill(
            self.bank.plot_handle(f"{prefix}VertexCharge"), vertex_charge
        )

        # The truth is needed for the 2D plot and the table
        true_charge = find_true_jet_hadron_charge(
            truth, jet_index, self.bank.truth_indexes[TRUE_HADRON_CHARGE_NAME]
        )
        bucket = true_charge_bucket(true_charge, self.true_charge_thresholds)
        if bucket is None:
            return

        self.backend.fill(
            self.bank.plot_handle(f"{prefix}Charge2D"), true_charge, vertex_charge
        )
        sign = vertex_charge_sign(vertex_charge, self.vertex_charge_cuts[hypothesis])
        angle_bin = jet_angle_bin(jet.cos_theta, self.vertex_charge_table.n_angle_bins)
        self.vertex_charge_table.fill(hypothesis, bucket, sign, angle_bin)

    def fill_vertex_plots(self, event):
        """Fill the vertex position plots of one event.

        Parameters
        ----------
        event : Event
            Event content
        """
        for vertex in event.get(self.vertex_collection):
            if vertex.primary:
                for i, axis in enumerate("XYZ"):
                    self.backend.fill(
                        self.bank.plot_handle(f"PrimaryVertexPosition{axis}"),
                        vertex.position[i],
                    )

                # Pulls need the true primary vertex and a non-zero error
                if event.true_primary_vertex is None:
                    continue
                for i, axis in enumerate("XYZ"):
                    if vertex.position_error[i] > 0.0:
                        pull = (
                            vertex.position[i] - event.true_primary_vertex[i]
                        ) / vertex.position_error[i]
                        self.backend.fill(
                            self.bank.plot_handle(f"PrimaryVertexPull{axis}"), pull
                        )

            else:
                for i, axis in enumerate("XYZ"):
                    self.backend.fill(
                        self.bank.plot_handle(f"VertexPosition{axis}"),
                        vertex.position[i],
                    )
                self.backend.fill(
                    self.bank.plot_handle("VertexDistanceFromIP"),
                    calculate_distance(event.ip, vertex.position),
                )

    def fill_decay_chain_plots(self, event, inputs, jet, flavour):
        """Fill the decay chain plots and the track origin table for one jet.

        Parameters
        ----------
        event : Event
            Event content
        inputs : List[FloatVecCollection]
            Flavour tag input collections
        jet : int
            Index of the jet
        flavour : Flavour
            True flavour of the jet
        """
        if flavour == Flavour.UNDEFINED:
            return

        # Reconstructed decay chain
        reco_length = 0.0
        num_vertices = 0
        if self.decay_chain_collection is not None:
            chain = event.get(self.decay_chain_collection)[jet]
            num_vertices = chain.num_vertices
            self.fill_reco_decay_chain_plots(chain, flavour)
            if num_vertices >= 2:
                reco_length = float(
                    calculate_distance(chain.vertices[0], chain.vertices[1])
                )

        # True decay chain
        if self.true_decay_chain_collection is None:
            return

        true_chain = event.get(self.true_decay_chain_collection)[jet]
        b_length, c_length = find_true_jet_decay_length2(true_chain, event.ip)
        if flavour == Flavour.B:
            self.backend.fill(self.bank.plot_handle("DecayLengthBJetTrue"), b_length)
            if c_length > 0.0:
                self.backend.fill(
                    self.bank.plot_handle("DecayLengthBCJetTrue"), c_length
                )
            if num_vertices >= 2:
                self.backend.fill(
                    self.bank.plot_handle("DecayLengthBJet2D"), b_length, reco_length
                )

        elif flavour == Flavour.C:
            self.backend.fill(self.bank.plot_handle("DecayLengthCJetTrue"), c_length)
            if num_vertices >= 2:
                self.backend.fill(
                    self.bank.plot_handle("DecayLengthCJet2D"), c_length, reco_length
                )

        else:
            return

        # Vertex finding as a function of the true decay length, per collection
        prefix, length = ("B", b_length) if flavour == Flavour.B else ("C", c_length)
        for i in range(self.bank.num_collections):
            self.backend.fill(
                self.bank.plot_handle(f"{prefix}DecayLengthAll", i), length
            )
            count = find_num_vertex(inputs[i], jet, self.bank.num_vertex_indexes[i])
            if count >= 2:
                self.backend.fill(
                    self.bank.plot_handle(f"{prefix}DecayLengthTwoVertices", i),
                    length,
                )

    def fill_reco_decay_chain_plots(self, chain, flavour):
        """Fill the reconstructed decay chain plots of one jet.

        Parameters
        ----------
        chain : DecayChain
            Reconstructed decay chain of the jet
        flavour : Flavour
            True flavour of the jet
        """
        num_vertices = chain.num_vertices
        self.backend.fill(
            self.bank.plot_handle("NumberOfSecondaryVertices"), max(num_vertices - 1, 0)
        )
        self.backend.fill(
            self.bank.plot_handle("NumberOfJetsDC"), int(flavour), num_vertices
        )
        self.backend.fill(
            self.bank.plot_handle(f"NVertices{flavour.label}Jet"), num_vertices
        )
        if num_vertices < 2:
            return

        # Decay lengths are measured from the primary vertex
        length = calculate_distance(chain.vertices[0], chain.vertices[1])
        self.backend.fill(
            self.bank.plot_handle("ReconstructedSecondaryDecayLength"), length
        )
        self.backend.fill(
            self.bank.plot_handle(f"RecoDecayLength{flavour.label}Jet"), length
        )
        if num_vertices >= 3:
            self.backend.fill(
                self.bank.plot_handle("ReconstructedSecTerDecayLength"),
                calculate_distance(chain.vertices[0], chain.vertices[2]),
            )

        # Track origin table, b- and c-jets only
        if flavour == Flavour.LIGHT:
            return

        hypothesis = ChargeHypothesis.B if flavour == Flavour.B else ChargeHypothesis.C
        category = vertex_category(num_vertices)
        for code, vertex in zip(chain.track_origin, chain.track_vertex):
            self.track_origin_table.fill(
                hypothesis, category, find_track_origin(code), TrackVertex(vertex)
            )
