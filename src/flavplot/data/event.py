"""Data classes which represent the content of one event and of a run header.

The event content mirrors what the flavour tag processors write out:
- jets as reconstructed particles (only their momentum is used);
- named collections of per-jet float vectors (flavour tags, tag inputs,
  vertex charges, true jet flavour). The names of the variables stored in
  each vector are not part of the event; they are declared once in the run
  header;
- vertices of the event;
- reconstructed and true decay chains associated with each jet.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

import numpy as np

from flavplot.utils.errors import MissingCollectionError

from .base import DataBase

__all__ = [
    "RunHeader",
    "Jet",
    "FloatVecCollection",
    "Vertex",
    "TrueDecay",
    "TrueDecayChain",
    "DecayChain",
    "Event",
]


@dataclass(eq=False)
class RunHeader(DataBase):
    """Run header information.

    Attributes
    ----------
    run : int
        Run number
    parameters : Dict[str, List[str]]
        Maps a collection name onto the ordered list of variable names stored
        in each per-jet vector of that collection
    """

    run: int = -1
    parameters: Dict[str, List[str]] = field(default_factory=dict)

    def variable_names(self, name):
        """Returns the variable names declared for a collection.

        Parameters
        ----------
        name : str
            Name of the collection

        Returns
        -------
        List[str]
            Ordered list of variable names

        Raises
        ------
        MissingCollectionError
            If the run header does not declare the collection
        """
        if name not in self.parameters:
            raise MissingCollectionError(
                f"Collection `{name}` is not declared in the header of run "
                f"{self.run}. Declared collections: {list(self.parameters)}."
            )

        return list(self.parameters[name])


@dataclass(eq=False)
class Jet(DataBase):
    """Reconstructed jet.

    Attributes
    ----------
    momentum : np.ndarray
        (3) Momentum vector of the jet
    """

    momentum: np.ndarray = None

    _fixed_length_attrs = (("momentum", (3, np.float64)),)

    @property
    def p(self):
        """Magnitude of the jet momentum.

        Returns
        -------
        float
            Momentum magnitude
        """
        return float(np.linalg.norm(self.momentum))

    @property
    def cos_theta(self):
        """Cosine of the polar angle of the jet momentum.

        Returns
        -------
        float
            cos(theta), 0 for a jet with no momentum
        """
        p = self.p
        if p == 0.0:
            return 0.0

        return float(self.momentum[2] / p)


@dataclass(eq=False)
class FloatVecCollection:
    """Ordered list of per-jet float vectors.

    Attributes
    ----------
    values : List[np.ndarray]
        One float vector per jet
    """

    values: List[np.ndarray] = field(default_factory=list)

    def __post_init__(self):
        """Casts every vector to a numpy array."""
        self.values = [np.asarray(v, dtype=np.float64) for v in self.values]

    def __len__(self):
        return len(self.values)

    def __getitem__(self, jet):
        return self.values[jet]


@dataclass(eq=False)
class Vertex(DataBase):
    """Reconstructed vertex.

    Attributes
    ----------
    position : np.ndarray
        (3) Vertex position (single precision)
    position_error : np.ndarray
        (3) Uncertainty on each coordinate of the position
    primary : bool
        Whether the vertex is the event primary vertex
    """

    position: np.ndarray = None
    position_error: np.ndarray = None
    primary: bool = False

    _fixed_length_attrs = (
        ("position", (3, np.float32)),
        ("position_error", (3, np.float32)),
    )


@dataclass(eq=False)
class TrueDecay(DataBase):
    """True decay of a heavy hadron.

    Attributes
    ----------
    pdg : int
        PDG code of the decaying hadron
    position : np.ndarray
        (3) Decay vertex position (double precision)
    """

    pdg: int = 0
    position: np.ndarray = None

    _fixed_length_attrs = (("position", (3, np.float64)),)


@dataclass(eq=False)
class TrueDecayChain:
    """True decay chain associated with one jet.

    Attributes
    ----------
    decays : List[TrueDecay]
        Heavy hadron decays along the chain
    """

    decays: List[TrueDecay] = field(default_factory=list)


@dataclass(eq=False)
class DecayChain(DataBase):
    """Reconstructed decay chain associated with one jet.

    Attributes
    ----------
    vertices : List[np.ndarray]
        Positions of the vertices along the chain, the first one being the
        primary vertex
    track_vertex : np.ndarray
        (T) Vertex each track is attached to (:class:`TrackVertex` values)
    track_origin : np.ndarray
        (T) PDG code of the heavy hadron each track comes from (0 for a light
        track, -1 for a track without associated MC particle)
    """

    vertices: List[np.ndarray] = field(default_factory=list)
    track_vertex: np.ndarray = None
    track_origin: np.ndarray = None

    _var_length_attrs = (("track_vertex", np.int64), ("track_origin", np.int64))

    def __post_init__(self):
        """Casts the vertex positions, checks the track attributes."""
        super().__post_init__()
        self.vertices = [np.asarray(v, dtype=np.float32) for v in self.vertices]
        assert len(self.track_vertex) == len(self.track_origin), (
            "Must provide one vertex assignment and one origin per track."
        )

    @property
    def num_vertices(self):
        """Number of vertices in the chain, including the primary."""
        return len(self.vertices)


@dataclass(eq=False)
class Event:
    """Content of one event.

    Attributes
    ----------
    run : int
        Run number
    event : int
        Event number
    collections : Dict[str, object]
        Maps collection names onto their content
    ip : np.ndarray
        (3) True interaction point
    true_primary_vertex : np.ndarray, optional
        (3) True primary vertex position, if known
    """

    run: int = -1
    event: int = -1
    collections: Dict[str, object] = field(default_factory=dict)
    ip: np.ndarray = None
    true_primary_vertex: Optional[np.ndarray] = None

    def __post_init__(self):
        """Provides the default interaction point."""
        if self.ip is None:
            self.ip = np.zeros(3, dtype=np.float64)
        else:
            self.ip = np.asarray(self.ip, dtype=np.float64)
        if self.true_primary_vertex is not None:
            self.true_primary_vertex = np.asarray(
                self.true_primary_vertex, dtype=np.float64
            )

    def get(self, name):
        """Fetch a collection by name.

        Parameters
        ----------
        name : str
            Name of the collection

        Returns
        -------
        object
            Collection content

        Raises
        ------
        MissingCollectionError
            If the event does not contain the collection
        """
        if name not in self.collections:
            raise MissingCollectionError(
                f"Collection `{name}` is missing from event {self.event} "
                f"of run {self.run}. Available collections: "
                f"{list(self.collections)}."
            )

        return self.collections[name]
