"""Manages the lifecycle of the flavour tag plots."""

import numpy as np

from flavplot.utils.enums import (
    ChargeBucket,
    ChargeHypothesis,
    RunState,
    VertexChargeSign,
    enum_factory,
)
from flavplot.utils.errors import RunStateError
from flavplot.utils.globals import (
    NUMBER_OF_POINTS,
    TRUE_CHARGE_THRESHOLDS,
    VERTEX_CAT_DIRS,
    VERTEX_CHARGE_CUT,
)
from flavplot.utils.logger import logger

from .aggregate import FlavourTagAggregator
from .bank import HistogramBank
from .cuts import JetCuts
from .derive import DerivedStatistics

__all__ = ["PlotManager"]


class PlotManager:
    """Manager class which drives the flavour tag plots through a job.

    It exposes three entry points to its host:
    - :meth:`process_run_header`: the first run header creates every
      accumulator, later ones are checked for compatibility;
    - :meth:`process_event`: fills the accumulators with one event;
    - :meth:`end`: computes the derived curves (exactly once) and returns the
      scalar summary of the job.

    Typical configuration should look like:

    .. code-block:: yaml

        plot:
          flavour_tag_collections: [FlavourTag]
          tag_input_collections: [FlavourTagInputs]
          jet_collection: FTSelectedJets
          b_tag_nn_cut: 0.7
          make_additional_plots: false
    """

    def __init__(
        self,
        backend,
        flavour_tag_collections,
        tag_input_collections,
        jet_collection="FTSelectedJets",
        vertex_collection="ZVRESVertices",
        b_vertex_charge_collection="BCharge",
        c_vertex_charge_collection="CCharge",
        true_jet_flavour_collection="TrueJetFlavour",
        decay_chain_collection="ZVRESDecayChains",
        true_decay_chain_collection="TrueJetDecayChains",
        cos_theta_jet_min=-1.0,
        cos_theta_jet_max=1.0,
        p_jet_min=0.0,
        p_jet_max=float("inf"),
        b_tag_nn_cut=0.7,
        c_tag_nn_cut=0.7,
        vertex_charge_tag_collection=0,
        number_of_points=NUMBER_OF_POINTS,
        make_tuple=False,
        make_additional_plots=False,
        make_purity_efficiency_plots=True,
        zoomed_variables=(),
        input_ranges=None,
        true_charge_thresholds=TRUE_CHARGE_THRESHOLDS,
        b_vertex_charge_cut=VERTEX_CHARGE_CUT,
        c_vertex_charge_cut=VERTEX_CHARGE_CUT,
    ):
        """Initialize the bank, the cuts and the aggregator.

        Parameters
        ----------
        backend : HistogramBackend
            Backend which holds the accumulators
        flavour_tag_collections : List[str]
            Names of the flavour tag collections
        tag_input_collections : List[str]
            Names of the flavour tag input collections, one per tag collection
        jet_collection : str, default 'FTSelectedJets'
            Name of the jet collection
        vertex_collection : str, default 'ZVRESVertices'
            Name of the vertex collection
        b_vertex_charge_collection : str, default 'BCharge'
            Name of the b-tuned vertex charge collection
        c_vertex_charge_collection : str, default 'CCharge'
            Name of the c-tuned vertex charge collection
        true_jet_flavour_collection : str, default 'TrueJetFlavour'
            Name of the true jet flavour collection
        decay_chain_collection : str, default 'ZVRESDecayChains'
            Name of the reconstructed decay chain collection
        true_decay_chain_collection : str, default 'TrueJetDecayChains'
            Name of the true decay chain collection
        cos_theta_jet_min, cos_theta_jet_max : float
            Range of the jet cos(theta)
        p_jet_min, p_jet_max : float
            Range of the jet momentum
        b_tag_nn_cut, c_tag_nn_cut : float, default 0.7
            Tag score cuts of the vertex charge plots
        vertex_charge_tag_collection : int, default 0
            Index of the flavour tag collection used by the vertex charge plots
        number_of_points : int, default 100
            Number of bins of the neural net output histograms
        make_tuple : bool, default False
            Fill a tuple of the tag inputs of the vertex charge collection
        make_additional_plots : bool, default False
            Fill the vertex and decay chain plots
        make_purity_efficiency_plots : bool, default True
            Compute the efficiency, purity and leakage curves at the end
        zoomed_variables : List[str], optional
            Input variables which get a zoomed-in histogram
        input_ranges : Dict[str, List], optional
            Binning overrides of the input histograms
        true_charge_thresholds : Tuple[float, float], default (0.5, 1.5)
            Boundaries of the true charge buckets
        b_vertex_charge_cut, c_vertex_charge_cut : float, default 0.5
            |vertex charge| above which a vertex is charged
        """
        # Initialize the bank (no accumulator exists until the first header)
        self.bank = HistogramBank(
            backend,
            flavour_tag_collections,
            tag_input_collections,
            truth_collection=true_jet_flavour_collection,
            number_of_points=number_of_points,
            zoomed_variables=zoomed_variables,
            input_ranges=input_ranges,
            make_additional_plots=make_additional_plots,
            make_tuple=make_tuple,
            tuple_collection=vertex_charge_tag_collection,
        )

        # Initialize the selection and the aggregator
        self.cuts = JetCuts(cos_theta_jet_min, cos_theta_jet_max, p_jet_min, p_jet_max)
        self.aggregator = FlavourTagAggregator(
            self.bank,
            self.cuts,
            jet_collection,
            vertex_collection=vertex_collection,
            b_vertex_charge_collection=b_vertex_charge_collection,
            c_vertex_charge_collection=c_vertex_charge_collection,
            decay_chain_collection=decay_chain_collection,
            true_decay_chain_collection=true_decay_chain_collection,
            b_tag_nn_cut=b_tag_nn_cut,
            c_tag_nn_cut=c_tag_nn_cut,
            vertex_charge_tag_collection=vertex_charge_tag_collection,
            true_charge_thresholds=true_charge_thresholds,
            b_vertex_charge_cut=b_vertex_charge_cut,
            c_vertex_charge_cut=c_vertex_charge_cut,
        )
        self.derived = DerivedStatistics(
            self.bank,
            self.aggregator.vertex_charge_table,
            make_purity_efficiency_plots=make_purity_efficiency_plots,
        )

        self.backend = backend
        self.summary = None

    @property
    def state(self):
        """Lifecycle state of the bank."""
        return self.bank.state

    @property
    def finalized(self):
        """Whether :meth:`end` has been called."""
        return self.summary is not None

    def process_run_header(self, run_header):
        """Process one run header.

        Parameters
        ----------
        run_header : RunHeader
            Run header

        Returns
        -------
        bool
            `True` if the events of this run will be processed
        """
        if self.finalized:
            raise RunStateError("Cannot process a run header after the end of the job.")

        return self.bank.initialize(run_header)

    def process_event(self, event):
        """Process one event.

        Events which belong to a run whose output is suppressed are ignored.

        Parameters
        ----------
        event : Event
            Event content

        Returns
        -------
        bool
            `True` if the event was used in the jet-level plots
        """
        if self.finalized:
            raise RunStateError("Cannot process an event after the end of the job.")
        if self.state == RunState.UNINITIALIZED:
            raise RunStateError(
                "Must process a run header before the first event, to create "
                "the accumulators."
            )
        if self.state == RunState.SUPPRESSED:
            return False

        return self.aggregator.process(event)

    def end(self):
        """Compute the derived statistics and summarize the job.

        The derived statistics are computed exactly once: subsequent calls
        return the summary of the first call.

        Returns
        -------
        Dict[str, int]
            Event counters and flattened confusion tables
        """
        if self.finalized:
            logger.warning("The plot manager has already been finalized.")
            return self.summary

        # Derived curves need the accumulators
        if self.bank.initialized:
            self.derived.run()
            logger.info("Computed %d derived curves.", len(self.derived.curves))
        else:
            logger.warning("No run header was processed, no plot was produced.")

        # Summarize
        summary = {
            "num_events": self.aggregator.num_events,
            "num_passed_events": self.aggregator.num_passed_events,
            "num_jets": self.aggregator.num_jets,
        }
        summary.update(
            {
                f"vertex_charge/{k}": v
                for k, v in self.aggregator.vertex_charge_table.as_dict().items()
            }
        )
        if self.bank.make_additional_plots:
            summary.update(
                {
                    f"track_origin/{k}": v
                    for k, v in self.aggregator.track_origin_table.as_dict().items()
                }
            )

        self.log_vertex_charge_table()
        self.summary = summary

        return summary

    def log_vertex_charge_table(self):
        """Dump the vertex charge confusion tables to the logger."""
        table = self.aggregator.vertex_charge_table
        signs = [s.name.lower() for s in VertexChargeSign]
        for hypothesis in ChargeHypothesis:
            counts = table.counts(hypothesis)
            lines = [f"{hypothesis.name}-jet vertex charge (true \\ reco):"]
            lines.append(" " * 10 + "".join(f"{s:>10}" for s in signs))
            for bucket in ChargeBucket:
                row = "".join(f"{c:>10d}" for c in counts[bucket])
                lines.append(f"{bucket.name.lower():>10}{row}")

            rate, _, total = table.leakage(hypothesis)
            if np.sum(total) > 0:
                overall = np.sum(rate * total) / np.sum(total)
                lines.append(f"Leakage of charged hadrons: {overall:.4f}")

            logger.info("\n".join(lines))

    def curve(self, name, collection=None, category=None):
        """Fetch a derived curve by name.

        Parameters
        ----------
        name : str
            Name of the curve (e.g. `BJetBTagEfficiency`)
        collection : int, optional
            Index of the flavour tag collection, for per-collection curves
        category : Union[VertexCategory, str], optional
            Vertex category (member or name), for per-category curves

        Returns
        -------
        object
            Point set or histogram held by the backend
        """
        path = name
        if isinstance(category, str):
            category = enum_factory("vertex", category)
        if category is not None:
            path = f"{VERTEX_CAT_DIRS[category]}/{path}"
        if collection is not None:
            path = f"{self.bank.tag_collections[collection]}/{path}"

        return self.backend.get(self.backend.find(path))
