"""Registry of every accumulator filled by the flavour tag plots.

The bank creates all the accumulators once, when the first run header is
processed, and records their handles in dense tables:

- per collection index, a `(Flavour, TagType, VertexCategory)` table of the
  neural net output histograms;
- per collection index, a `(TagType, VertexCategory)` table of the background
  histograms (jets whose true flavour is not the tag target);
- per input collection index, an `(input variable, Flavour)` table of the
  tag input histograms and of their zoomed-in variants;
- named singletons for the vertex charge and the additional plots.

The tables are read-only once built: lookups in the event loop are plain
array indexing, without any string formatting.
"""

import numpy as np

from flavplot.utils.enums import Flavour, RunState, TagType, VertexCategory
from flavplot.utils.errors import ConfigurationError, RunStateError, UnregisteredKeyError
from flavplot.utils.globals import (
    DECAY_LENGTH_RANGE,
    DEFAULT_INPUT_RANGE,
    INPUT_RANGES,
    NUM_VERTICES_NAME,
    NUMBER_OF_POINTS,
    TRUE_CHARGE_RANGE,
    TRUE_HADRON_CHARGE_NAME,
    TRUE_JET_FLAVOUR_NAME,
    TRUE_JET_PDG_CODE_NAME,
    TRUE_PARTON_CHARGE_NAME,
    VERTEX_CAT_DIRS,
    VERTEX_CHARGE_RANGE,
    ZOOMED_INPUT_RANGES,
)
from flavplot.utils.logger import logger

from .classify import variable_index

__all__ = ["HistogramBank"]


class HistogramBank:
    """Owns the handles of all the accumulators and the run lifecycle state.

    Attributes
    ----------
    backend : HistogramBackend
        Backend which holds the accumulators
    state : RunState
        Lifecycle state: no run header seen yet, initialized, or output
        suppressed for the current run
    tag_collections : List[str]
        Names of the flavour tag collections
    input_collections : List[str]
        Names of the flavour tag input collections (one per tag collection)
    truth_collection : str
        Name of the true jet flavour collection
    """

    # Vertex charge plots as (name, binning) pairs
    _vertex_charge_plots = (
        ("BJetCharge2D", TRUE_CHARGE_RANGE + VERTEX_CHARGE_RANGE),
        ("CJetCharge2D", TRUE_CHARGE_RANGE + VERTEX_CHARGE_RANGE),
        ("BJetVertexCharge", VERTEX_CHARGE_RANGE),
        ("CJetVertexCharge", VERTEX_CHARGE_RANGE),
    )

    # Event-level vertex plots as (name, binning) pairs
    _vertex_plots = (
        ("VertexDistanceFromIP", (100, 0.0, 10.0)),
        ("VertexPositionX", (100, -2.0, 2.0)),
        ("VertexPositionY", (100, -2.0, 2.0)),
        ("VertexPositionZ", (100, -10.0, 10.0)),
        ("PrimaryVertexPositionX", (100, -0.05, 0.05)),
        ("PrimaryVertexPositionY", (100, -0.05, 0.05)),
        ("PrimaryVertexPositionZ", (100, -0.5, 0.5)),
        ("PrimaryVertexPullX", (100, -5.0, 5.0)),
        ("PrimaryVertexPullY", (100, -5.0, 5.0)),
        ("PrimaryVertexPullZ", (100, -5.0, 5.0)),
    )

    # Jet-level decay chain plots as (name, binning) pairs
    _decay_chain_plots = (
        ("ReconstructedSecondaryDecayLength", DECAY_LENGTH_RANGE),
        ("ReconstructedSecTerDecayLength", DECAY_LENGTH_RANGE),
        ("NumberOfSecondaryVertices", (5, -0.5, 4.5)),
        ("NumberOfJetsDC", (3, -0.5, 2.5, 6, -0.5, 5.5)),
        ("RecoDecayLengthBJet", DECAY_LENGTH_RANGE),
        ("RecoDecayLengthCJet", DECAY_LENGTH_RANGE),
        ("RecoDecayLengthLightJet", DECAY_LENGTH_RANGE),
        ("NVerticesBJet", (6, -0.5, 5.5)),
        ("NVerticesCJet", (6, -0.5, 5.5)),
        ("NVerticesLightJet", (6, -0.5, 5.5)),
        ("DecayLengthBJetTrue", DECAY_LENGTH_RANGE),
        ("DecayLengthBCJetTrue", DECAY_LENGTH_RANGE),
        ("DecayLengthCJetTrue", DECAY_LENGTH_RANGE),
        ("DecayLengthBJet2D", (50, 0.0, 20.0, 50, 0.0, 20.0)),
        ("DecayLengthCJet2D", (50, 0.0, 20.0, 50, 0.0, 20.0)),
    )

    # Per collection decay length plots
    _collection_plots = (
        "BDecayLengthAll",
        "BDecayLengthTwoVertices",
        "CDecayLengthAll",
        "CDecayLengthTwoVertices",
    )

    def __init__(
        self,
        backend,
        tag_collections,
        input_collections,
        truth_collection="TrueJetFlavour",
        number_of_points=NUMBER_OF_POINTS,
        zoomed_variables=(),
        input_ranges=None,
        make_additional_plots=False,
        make_tuple=False,
        tuple_collection=0,
    ):
        """Check the configuration, no accumulator is created yet.

        Parameters
        ----------
        backend : HistogramBackend
            Backend which holds the accumulators
        tag_collections : List[str]
            Names of the flavour tag collections
        input_collections : List[str]
            Names of the flavour tag input collections, one per tag collection
        truth_collection : str, default 'TrueJetFlavour'
            Name of the true jet flavour collection
        number_of_points : int, default 100
            Number of bins of the neural net output histograms
        zoomed_variables : List[str], optional
            Input variables which get an additional zoomed-in histogram
        input_ranges : Dict[str, List], optional
            (bins, low, high) binning overrides of the input histograms
        make_additional_plots : bool, default False
            Create the vertex and decay chain plots
        make_tuple : bool, default False
            Create a tuple of the tag inputs
        tuple_collection : int, default 0
            Index of the input collection stored in the tuple
        """
        # Check the collection lists
        if isinstance(tag_collections, str):
            tag_collections = [tag_collections]
        if isinstance(input_collections, str):
            input_collections = [input_collections]
        if not len(tag_collections):
            raise ConfigurationError("Must provide at least one flavour tag collection.")
        if len(tag_collections) != len(input_collections):
            raise ConfigurationError(
                f"Got {len(tag_collections)} flavour tag collections but "
                f"{len(input_collections)} tag input collections. Must "
                "provide one input collection per flavour tag collection."
            )
        if len(set(tag_collections)) != len(tag_collections):
            raise ConfigurationError("The flavour tag collection names must be unique.")
        if len(set(input_collections)) != len(input_collections):
            raise ConfigurationError("The tag input collection names must be unique.")
        if number_of_points < 1:
            raise ConfigurationError("The neural net plots need at least one bin.")
        if make_tuple and not 0 <= tuple_collection < len(input_collections):
            raise ConfigurationError(
                f"Tuple collection index {tuple_collection} is out of range."
            )

        # Store the configuration
        self.backend = backend
        self.tag_collections = list(tag_collections)
        self.input_collections = list(input_collections)
        self.truth_collection = truth_collection
        self.number_of_points = number_of_points
        self.zoomed_variables = list(zoomed_variables)
        self.input_ranges = {k: tuple(v) for k, v in (input_ranges or {}).items()}
        self.make_additional_plots = make_additional_plots
        self.make_tuple = make_tuple
        self.tuple_collection = tuple_collection

        # Initialize the lifecycle state and the (empty) handle tables
        self.state = RunState.UNINITIALIZED
        self._variables = {}
        self.tag_indexes = []
        self.num_vertex_indexes = []
        self.input_names = []
        self.zoomed_indexes = []
        self.truth_indexes = {}
        self._tag = []
        self._background = []
        self._inputs = []
        self._zoomed = []
        self._plots = {}
        self._coll_plots = []
        self.tuple_handle = None

    @property
    def num_collections(self):
        """Number of flavour tag collections analyzed in parallel."""
        return len(self.tag_collections)

    @property
    def initialized(self):
        """Whether the accumulators exist."""
        return self.state != RunState.UNINITIALIZED

    def initialize(self, run_header):
        """Process a run header.

        The first run header resolves the variable layout of every collection
        and creates all the accumulators. Subsequent run headers are only
        checked for compatibility with the first one: if the layout differs,
        the output is suppressed until a compatible run header is seen.

        Parameters
        ----------
        run_header : RunHeader
            Run header

        Returns
        -------
        bool
            `True` if the events of this run can be processed
        """
        if self.state == RunState.UNINITIALIZED:
            self._resolve_variables(run_header)
            self._create_accumulators()
            self.state = RunState.INITIALIZED
            logger.info(
                "Created the accumulators of %d flavour tag collection(s) "
                "from the header of run %d.",
                self.num_collections,
                run_header.run,
            )

            return True

        if self.is_compatible(run_header):
            self.state = RunState.INITIALIZED
            return True

        self.state = RunState.SUPPRESSED
        logger.warning(
            "The collections of run %d are not compatible with those of the "
            "first run processed. Output is suppressed for this run.",
            run_header.run,
        )

        return False

    def is_compatible(self, run_header):
        """Check that a run header declares the same variables as the first.

        Parameters
        ----------
        run_header : RunHeader
            Run header

        Returns
        -------
        bool
            `True` if every collection has the same variable layout
        """
        for name, variables in self._variables.items():
            declared = run_header.parameters.get(name)
            if declared is None or tuple(declared) != variables:
                logger.warning(
                    "Collection `%s` in run %d declares %s, expected %s.",
                    name,
                    run_header.run,
                    declared,
                    list(variables),
                )
                return False

        return True

    def _resolve_variables(self, run_header):
        """Resolve the index of every variable used from the run header.

        Nothing is recorded unless every collection passes its checks.

        Parameters
        ----------
        run_header : RunHeader
            First run header
        """
        variables = {}

        # Flavour tag collections: all three neural net outputs are required
        tag_indexes = []
        for name in self.tag_collections:
            names = run_header.variable_names(name)
            indexes = np.array([variable_index(names, t.var_name) for t in TagType])
            if (indexes < 0).any():
                missing = [t.var_name for t in TagType if indexes[t] < 0]
                raise ConfigurationError(
                    f"Flavour tag collection `{name}` does not declare {missing}."
                )
            indexes.setflags(write=False)
            tag_indexes.append(indexes)
            variables[name] = tuple(names)

        # Tag input collections: the vertex count is required
        num_vertex_indexes, input_names, zoomed_indexes = [], [], []
        for name in self.input_collections:
            names = run_header.variable_names(name)
            index = variable_index(names, NUM_VERTICES_NAME)
            if index < 0:
                raise ConfigurationError(
                    f"Tag input collection `{name}` does not declare "
                    f"`{NUM_VERTICES_NAME}`."
                )
            num_vertex_indexes.append(index)
            input_names.append(tuple(names))
            zoomed_indexes.append(
                tuple(i for i, n in enumerate(names) if n in self.zoomed_variables)
            )
            variables[name] = tuple(names)

        # True jet flavour collection: only the flavour itself is required
        names = run_header.variable_names(self.truth_collection)
        truth_indexes = {
            var: variable_index(names, var)
            for var in (
                TRUE_JET_FLAVOUR_NAME,
                TRUE_JET_PDG_CODE_NAME,
                TRUE_HADRON_CHARGE_NAME,
                TRUE_PARTON_CHARGE_NAME,
            )
        }
        if truth_indexes[TRUE_JET_FLAVOUR_NAME] < 0:
            raise ConfigurationError(
                f"True jet flavour collection `{self.truth_collection}` does "
                f"not declare `{TRUE_JET_FLAVOUR_NAME}`."
            )
        variables[self.truth_collection] = tuple(names)

        self.tag_indexes = tag_indexes
        self.num_vertex_indexes = num_vertex_indexes
        self.input_names = input_names
        self.zoomed_indexes = zoomed_indexes
        self.truth_indexes = truth_indexes
        self._variables = variables

    def _create_accumulators(self):
        """Create every accumulator, fill the handle tables."""
        for i in range(self.num_collections):
            self._create_tag_plots(i)
            self._create_flavour_tag_input_plots(i)

        self._create_vertex_charge_plots()
        if self.make_tuple:
            self._create_flavour_tag_tuple()
        if self.make_additional_plots:
            self._create_additional_plots()

    def _create_tag_plots(self, collection):
        """Create the neural net output and background histograms.

        Parameters
        ----------
        collection : int
            Index of the flavour tag collection
        """
        name = self.tag_collections[collection]
        bins = self.number_of_points
        tag = -np.ones(
            (len(Flavour.strata()), len(TagType), len(VertexCategory)), dtype=np.int64
        )
        background = -np.ones((len(TagType), len(VertexCategory)), dtype=np.int64)
        for category in VertexCategory:
            directory = f"{name}/{VERTEX_CAT_DIRS[category]}"
            for t in TagType:
                for flavour in Flavour.strata():
                    tag[flavour, t, category] = self.backend.create_histogram1d(
                        f"{directory}/{flavour.label}Jet{t.var_name}", bins, 0.0, 1.0
                    )
                background[t, category] = self.backend.create_histogram1d(
                    f"{directory}/{t.var_name}Background", bins, 0.0, 1.0
                )

        tag.setflags(write=False)
        background.setflags(write=False)
        self._tag.append(tag)
        self._background.append(background)

    def input_range(self, variable, zoomed=False):
        """Binning of the histogram of one input variable.

        Parameters
        ----------
        variable : str
            Name of the input variable
        zoomed : bool, default False
            Whether to return the binning of the zoomed-in variant

        Returns
        -------
        Tuple[int, float, float]
            (bins, low, high)
        """
        if zoomed:
            return ZOOMED_INPUT_RANGES.get(variable, self.input_range(variable))
        if variable in self.input_ranges:
            return self.input_ranges[variable]

        return INPUT_RANGES.get(variable, DEFAULT_INPUT_RANGE)

    def _create_flavour_tag_input_plots(self, collection):
        """Create the tag input histograms, one per variable and flavour.

        Parameters
        ----------
        collection : int
            Index of the tag input collection
        """
        name = self.input_collections[collection]
        names = self.input_names[collection]
        inputs = -np.ones((len(names), len(Flavour.strata())), dtype=np.int64)
        zoomed = -np.ones_like(inputs)
        for i, var in enumerate(names):
            for flavour in Flavour.strata():
                directory = f"{name}/Inputs/{flavour.label}Jets"
                inputs[i, flavour] = self.backend.create_histogram1d(
                    f"{directory}/{var}", *self.input_range(var)
                )
                if i in self.zoomed_indexes[collection]:
                    directory = f"{name}/ZoomedInputs/{flavour.label}Jets"
                    zoomed[i, flavour] = self.backend.create_histogram1d(
                        f"{directory}/{var}", *self.input_range(var, zoomed=True)
                    )

        inputs.setflags(write=False)
        zoomed.setflags(write=False)
        self._inputs.append(inputs)
        self._zoomed.append(zoomed)

    def _create_vertex_charge_plots(self):
        """Create the vertex charge plots."""
        for name, binning in self._vertex_charge_plots:
            self._plots[name] = self._create(f"VertexCharge/{name}", binning)

    def _create_flavour_tag_tuple(self):
        """Create the tuple of tag inputs of the designated collection."""
        name = self.input_collections[self.tuple_collection]
        columns = list(self.input_names[self.tuple_collection])
        columns.append(TRUE_JET_FLAVOUR_NAME)
        self.tuple_handle = self.backend.create_tuple(f"{name}/TagInputsTuple", columns)

    def _create_additional_plots(self):
        """Create the vertex, decay chain and per collection decay length plots."""
        for name, binning in self._vertex_plots:
            self._plots[name] = self._create(f"Vertices/{name}", binning)
        for name, binning in self._decay_chain_plots:
            self._plots[name] = self._create(f"DecayChains/{name}", binning)
        for coll in self.tag_collections:
            self._coll_plots.append(
                {
                    name: self._create(f"{coll}/DecayLength/{name}", DECAY_LENGTH_RANGE)
                    for name in self._collection_plots
                }
            )

    def _create(self, path, binning):
        """Create a 1D or 2D histogram depending on the size of its binning."""
        if len(binning) == 3:
            return self.backend.create_histogram1d(path, *binning)

        return self.backend.create_histogram2d(path, *binning)

    def _lookup(self, tables, collection, key):
        """Fetch a handle from a table, with checks.

        Parameters
        ----------
        tables : List[np.ndarray]
            One table per collection
        collection : int
            Index of the collection
        key : Tuple[int]
            Index in the table

        Returns
        -------
        int
            Handle of the accumulator
        """
        if not self.initialized:
            raise RunStateError("The accumulators have not been created yet.")
        if collection < 0 or any(k < 0 for k in key):
            raise UnregisteredKeyError(f"No accumulator registered for {key}.")
        try:
            handle = int(tables[collection][key])
        except IndexError as err:
            raise UnregisteredKeyError(
                f"No accumulator registered for collection {collection}, key {key}."
            ) from err
        if handle < 0:
            raise UnregisteredKeyError(
                f"No accumulator registered for collection {collection}, key {key}."
            )

        return handle

    def tag_handle(self, collection, flavour, tag, category):
        """Handle of the neural net output histogram of a flavour stratum."""
        return self._lookup(self._tag, collection, (flavour, tag, category))

    def background_handle(self, collection, tag, category):
        """Handle of the neural net output histogram of non-target jets."""
        return self._lookup(self._background, collection, (tag, category))

    def input_handle(self, collection, variable, flavour):
        """Handle of a tag input histogram of a flavour stratum."""
        return self._lookup(self._inputs, collection, (variable, flavour))

    def zoomed_handle(self, collection, variable, flavour):
        """Handle of a zoomed-in tag input histogram of a flavour stratum."""
        return self._lookup(self._zoomed, collection, (variable, flavour))

    def plot_handle(self, name, collection=None):
        """Handle of a named plot (collection-wide if `collection` is given).

        Parameters
        ----------
        name : str
            Name of the plot
        collection : int, optional
            Index of the collection, for per collection plots

        Returns
        -------
        int
            Handle of the accumulator
        """
        if not self.initialized:
            raise RunStateError("The accumulators have not been created yet.")
        plots = self._plots
        if collection is not None:
            if not 0 <= collection < len(self._coll_plots):
                raise UnregisteredKeyError(
                    f"No plot registered for collection {collection}."
                )
            plots = self._coll_plots[collection]
        if name not in plots:
            raise UnregisteredKeyError(f"No plot registered under `{name}`.")

        return plots[name]
