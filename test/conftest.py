"""Sets up fixtures general to the entire test suite of this package.

This file is read during the collection phase of pytest when running anything
inside this directory. It provides synthetic run headers and events which
mimic the output of the flavour tag processors.
"""

import numpy as np
import pytest

from flavplot.data import (
    DecayChain,
    Event,
    FloatVecCollection,
    Jet,
    RunHeader,
    TrueDecay,
    TrueDecayChain,
    Vertex,
)
from flavplot.hist import MemoryBackend

# Variables declared by the synthetic run header
TAG_VARIABLES = ["BTag", "CTag", "BCTag"]
INPUT_VARIABLES = ["D0Significance1", "NumVertices", "DecayLength"]
TRUTH_VARIABLES = [
    "TrueJetFlavour",
    "TrueHadronCharge",
    "TruePartonCharge",
    "TrueJetPDGCode",
]

# PDG code of the heavy hadron which produces a jet of each flavour
HADRON_CODES = {5: 521, 4: 421, 1: 1}


@pytest.fixture(name="backend")
def fixture_backend():
    """Empty in-memory histogram backend."""
    return MemoryBackend()


@pytest.fixture(name="run_header")
def fixture_run_header():
    """Run header declaring one tag, one input and one truth collection."""
    return RunHeader(
        run=1,
        parameters={
            "FlavourTag": list(TAG_VARIABLES),
            "FlavourTagInputs": list(INPUT_VARIABLES),
            "TrueJetFlavour": list(TRUTH_VARIABLES),
        },
    )


@pytest.fixture(name="plot_cfg")
def fixture_plot_cfg():
    """Minimal plot manager configuration matching the run header."""
    return {
        "flavour_tag_collections": ["FlavourTag"],
        "tag_input_collections": ["FlavourTagInputs"],
        "jet_collection": "Jets",
        "b_vertex_charge_collection": "BCharge",
        "c_vertex_charge_collection": "CCharge",
        "number_of_points": 10,
    }


def make_event(jets, event=0, run=1, vertices=None, true_primary_vertex=None):
    """Build a synthetic event from a list of jet descriptions.

    Each jet is a dictionary with the following (optional) keys:
    - `momentum`: (3) jet momentum, defaults to a central 50 GeV jet;
    - `tags`: (b, c, bc) neural net outputs;
    - `num_vertices`: vertex count stored in the inputs;
    - `flavour`: true flavour code (5, 4, 1, 0 for missing truth);
    - `charge`: true hadron charge;
    - `b_charge`, `c_charge`: reconstructed vertex charges;
    - `chain`: list of reconstructed vertex positions;
    - `true_decays`: list of (pdg, position) true decays.

    Parameters
    ----------
    jets : List[dict]
        Jet descriptions
    event : int, default 0
        Event number
    run : int, default 1
        Run number
    vertices : List[Vertex], optional
        Event vertices
    true_primary_vertex : np.ndarray, optional
        (3) True primary vertex position

    Returns
    -------
    Event
        Synthetic event
    """
    jet_list, tags, inputs, truth = [], [], [], []
    b_charges, c_charges, chains, true_chains = [], [], [], []
    for jet in jets:
        jet_list.append(Jet(momentum=jet.get("momentum", [50.0, 0.0, 0.0])))
        tags.append(jet.get("tags", (0.5, 0.5, 0.5)))
        num_vertices = jet.get("num_vertices", 1)
        inputs.append([1.0, num_vertices, 0.1 * num_vertices])
        flavour = jet.get("flavour", 1)
        truth.append(
            [
                flavour,
                jet.get("charge", 0.0),
                jet.get("charge", 0.0) / 3.0,
                HADRON_CODES.get(flavour, 0),
            ]
        )
        b_charges.append([jet.get("b_charge", 0.0)])
        c_charges.append([jet.get("c_charge", 0.0)])

        positions = jet.get("chain", [[0.0, 0.0, 0.0]])
        num_tracks = jet.get("num_tracks", 0)
        chains.append(
            DecayChain(
                vertices=positions,
                track_vertex=np.ones(num_tracks, dtype=np.int64),
                track_origin=np.full(num_tracks, HADRON_CODES.get(flavour, 0)),
            )
        )
        true_chains.append(
            TrueDecayChain(
                decays=[
                    TrueDecay(pdg=pdg, position=pos)
                    for pdg, pos in jet.get("true_decays", [])
                ]
            )
        )

    return Event(
        run=run,
        event=event,
        collections={
            "Jets": jet_list,
            "FlavourTag": FloatVecCollection(tags),
            "FlavourTagInputs": FloatVecCollection(inputs),
            "TrueJetFlavour": FloatVecCollection(truth),
            "BCharge": FloatVecCollection(b_charges),
            "CCharge": FloatVecCollection(c_charges),
            "ZVRESVertices": vertices or [],
            "ZVRESDecayChains": chains,
            "TrueJetDecayChains": true_chains,
        },
        true_primary_vertex=true_primary_vertex,
    )


@pytest.fixture(name="event_factory")
def fixture_event_factory():
    """Factory which builds synthetic events, see :func:`make_event`."""
    return make_event


@pytest.fixture(name="two_jet_event")
def fixture_two_jet_event():
    """One true b-jet with a high b-tag, one light jet with a low b-tag."""
    return make_event(
        [
            {"tags": (0.9, 0.2, 0.1), "num_vertices": 2, "flavour": 5, "charge": 1.0},
            {"tags": (0.1, 0.1, 0.5), "num_vertices": 1, "flavour": 1},
        ]
    )


@pytest.fixture(name="primary_vertex")
def fixture_primary_vertex():
    """Primary vertex slightly displaced from the origin."""
    return Vertex(
        position=[0.01, -0.01, 0.1],
        position_error=[0.008, 0.008, 0.05],
        primary=True,
    )
