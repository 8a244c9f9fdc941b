"""Module which contains enumerated variables shared across the project."""

from enum import Enum, IntEnum

__all__ = [
    "enum_factory",
    "Flavour",
    "TagType",
    "VertexCategory",
    "ChargeBucket",
    "VertexChargeSign",
    "ChargeHypothesis",
    "TrackOrigin",
    "TrackVertex",
    "RunState",
]


def enum_factory(enum, value):
    """Parses an enumerated object from string name(s) to value(s).

    Parameters
    ----------
    enum : str
        Name of the enumerated type
    value : Union[str, List[str]]
        Name or names of the enumerated objects (from config)

    Returns
    -------
    Union[IntEnum, List[IntEnum]]
        Member or members of the enumerated type
    """
    # Get the enumerated type
    ENUM_DICT = {
        "flavour": Flavour,
        "tag": TagType,
        "vertex": VertexCategory,
        "hypothesis": ChargeHypothesis,
    }
    assert enum in ENUM_DICT, (
        f"Enumerated type not recognized: {enum}. Must be one of "
        f"{list(ENUM_DICT.keys())}."
    )
    enum = ENUM_DICT[enum]

    # Translate enumerated strings into members
    if isinstance(value, str):
        if not hasattr(enum, value.upper()):
            raise ValueError(
                f"Enumerated object not recognized: {value}. Must be one "
                f"of {[e.name for e in enum]}."
            )

        return getattr(enum, value.upper())

    else:
        values = []
        for v in value:
            if not hasattr(enum, v.upper()):
                raise ValueError(
                    f"Enumerated object not recognized: {v}. Must be one "
                    f"of {[e.name for e in enum]}."
                )
            values.append(getattr(enum, v.upper()))

        return values


class Flavour(IntEnum):
    """Enumerates the true jet flavour strata.

    `UNDEFINED` is returned when the truth information is missing. It never
    indexes an accumulator table.
    """

    UNDEFINED = -1
    B = 0
    C = 1
    LIGHT = 2

    @classmethod
    def strata(cls):
        """Flavours which own a set of accumulators."""
        return (cls.B, cls.C, cls.LIGHT)

    @property
    def label(self):
        """Short name used in accumulator paths."""
        return {-1: "Undefined", 0: "B", 1: "C", 2: "Light"}[int(self)]


class TagType(IntEnum):
    """Enumerates the neural net tag outputs."""

    B = 0
    C = 1
    BC = 2

    @property
    def var_name(self):
        """Name of the tag in the flavour tag collection parameters."""
        return ("BTag", "CTag", "BCTag")[int(self)]

    @property
    def target(self):
        """Flavour considered as signal by this tag.

        The BC-tag separates c-jets from b-jets, its signal is the c-jet.
        """
        return Flavour.B if self == TagType.B else Flavour.C


class VertexCategory(IntEnum):
    """Enumerates the vertex multiplicity buckets of a jet."""

    ONE = 0
    TWO = 1
    THREE_PLUS = 2
    ANY = 3

    @classmethod
    def specific(cls):
        """Buckets a jet can be assigned to (every bucket but `ANY`)."""
        return (cls.ONE, cls.TWO, cls.THREE_PLUS)


class ChargeBucket(IntEnum):
    """Enumerates the five true charge categories, symmetric about zero."""

    MINUS2 = 0
    MINUS = 1
    NEUTRAL = 2
    PLUS = 3
    PLUS2 = 4

    @property
    def charged(self):
        """Whether the bucket corresponds to a non-zero charge."""
        return self != ChargeBucket.NEUTRAL


class VertexChargeSign(IntEnum):
    """Enumerates the sign of a reconstructed vertex charge."""

    MINUS = 0
    NEUTRAL = 1
    PLUS = 2


class ChargeHypothesis(IntEnum):
    """Enumerates the vertex charge flavour hypotheses (b-tuned, c-tuned)."""

    B = 0
    C = 1


class TrackOrigin(IntEnum):
    """Enumerates the true origin of a track in a jet decay chain."""

    B = 0
    C = 1
    LIGHT = 2
    NO_MCP = 3


class TrackVertex(IntEnum):
    """Enumerates the reconstructed vertex a track is attached to."""

    PRIMARY = 0
    SECONDARY = 1
    TERTIARY = 2
    ISOLATED = 3


class RunState(Enum):
    """Lifecycle state of the histogram bank."""

    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"
    SUPPRESSED = "suppressed"
