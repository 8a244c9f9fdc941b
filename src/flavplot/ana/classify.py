"""Per-jet classification functions.

Every function is pure: it maps the truth or reconstruction information of a
single jet onto a category. Missing truth information is expected for some
samples, it is never an error; the functions return a documented sentinel
(`Flavour.UNDEFINED`, NaN, `None` or 0) instead of raising.

Collections of per-jet float vectors are accessed through the index of a
variable in each vector, which is resolved once from the run header (see
:func:`variable_index`).
"""

import numpy as np

from flavplot.math import euclidean
from flavplot.utils.enums import (
    ChargeBucket,
    Flavour,
    TrackOrigin,
    VertexCategory,
    VertexChargeSign,
)
from flavplot.utils.globals import (
    B_JET,
    C_JET,
    N_JETANGLE_BINS,
    NO_MCP_CODE,
    TRUE_CHARGE_THRESHOLDS,
)

__all__ = [
    "variable_index",
    "find_jet_variable",
    "get_pdg_flavour",
    "find_true_jet_type",
    "find_true_jet_pdg_code",
    "find_true_jet_flavour",
    "find_true_jet_hadron_charge",
    "find_true_jet_parton_charge",
    "true_charge_bucket",
    "find_b_q_vtx",
    "find_c_q_vtx",
    "vertex_charge_sign",
    "find_num_vertex",
    "vertex_category",
    "calculate_distance",
    "find_true_jet_decay_length",
    "find_true_jet_decay_length2",
    "find_track_origin",
    "jet_angle_bin",
]


def variable_index(names, name):
    """Index of a variable in a per-jet vector, -1 if it is not declared.

    Parameters
    ----------
    names : List[str]
        Ordered variable names declared in the run header
    name : str
        Name of the variable

    Returns
    -------
    int
        Index of the variable
    """
    return names.index(name) if name in names else -1


def find_jet_variable(collection, jet, index):
    """Value of one variable of a per-jet vector, NaN if it cannot be found."""
    if index < 0 or jet >= len(collection):
        return np.nan

    vector = collection[jet]
    if index >= len(vector):
        return np.nan

    return float(vector[index])


def get_pdg_flavour(code):
    """Heaviest quark content of a particle from its PDG code.

    Quarks (1-6) map onto themselves, mesons onto the hundreds digit and
    baryons onto the thousands digit of their code. Excited states carry an
    extra leading digit (e.g. 10521) which is ignored.

    Parameters
    ----------
    code : int
        PDG code

    Returns
    -------
    int
        Quark code (5 for b, 4 for c, ...), 0 if it cannot be determined
    """
    code = abs(int(code)) % 10000
    if code <= 6:
        return code
    if 100 <= code < 1000:
        return (code // 100) % 10
    if 1000 <= code < 10000:
        return (code // 1000) % 10

    return 0


def find_true_jet_type(truth, jet, index):
    """Raw true flavour code of a jet (5 for b, 4 for c, ...).

    Parameters
    ----------
    truth : FloatVecCollection
        True jet flavour collection
    jet : int
        Index of the jet
    index : int
        Index of the `TrueJetFlavour` variable

    Returns
    -------
    int
        True flavour code, 0 if it is not available
    """
    value = find_jet_variable(truth, jet, index)

    return 0 if np.isnan(value) else int(value)


def find_true_jet_pdg_code(truth, jet, index):
    """PDG code of the hadron which produced a jet, 0 if not available."""
    value = find_jet_variable(truth, jet, index)

    return 0 if np.isnan(value) else int(value)


def find_true_jet_flavour(truth, jet, index):
    """True flavour stratum of a jet.

    Parameters
    ----------
    truth : FloatVecCollection
        True jet flavour collection
    jet : int
        Index of the jet
    index : int
        Index of the `TrueJetFlavour` variable

    Returns
    -------
    Flavour
        `B`, `C` or `LIGHT`; `UNDEFINED` if the truth is missing
    """
    code = find_true_jet_type(truth, jet, index)
    if code <= 0:
        return Flavour.UNDEFINED

    flavour = get_pdg_flavour(code)
    if flavour == B_JET:
        return Flavour.B
    if flavour == C_JET:
        return Flavour.C

    return Flavour.LIGHT


def find_true_jet_hadron_charge(truth, jet, index):
    """Charge of the hadron which produced a jet, NaN if not available."""
    return find_jet_variable(truth, jet, index)


def find_true_jet_parton_charge(truth, jet, index):
    """Charge of the parton which produced a jet, NaN if not available."""
    return find_jet_variable(truth, jet, index)


def true_charge_bucket(charge, thresholds=TRUE_CHARGE_THRESHOLDS):
    """Assign a true charge to one of five buckets, symmetric about zero.

    Parameters
    ----------
    charge : float
        True charge
    thresholds : Tuple[float, float], default (0.5, 1.5)
        |charge| from which a charge is single (resp. double) charged

    Returns
    -------
    ChargeBucket
        Charge bucket, `None` if the charge is not available
    """
    if np.isnan(charge):
        return None

    single, double = thresholds
    magnitude = abs(charge)
    if magnitude < single:
        return ChargeBucket.NEUTRAL
    if magnitude < double:
        return ChargeBucket.PLUS if charge > 0 else ChargeBucket.MINUS

    return ChargeBucket.PLUS2 if charge > 0 else ChargeBucket.MINUS2


def find_b_q_vtx(charges, jet):
    """Vertex charge of a jet, reconstructed with the b-tuned cuts.

    Parameters
    ----------
    charges : FloatVecCollection
        B vertex charge collection (one value per jet)
    jet : int
        Index of the jet

    Returns
    -------
    float
        Vertex charge, NaN if not available
    """
    return find_jet_variable(charges, jet, 0)


def find_c_q_vtx(charges, jet):
    """Vertex charge of a jet, reconstructed with the c-tuned cuts.

    Parameters
    ----------
    charges : FloatVecCollection
        C vertex charge collection (one value per jet)
    jet : int
        Index of the jet

    Returns
    -------
    float
        Vertex charge, NaN if not available
    """
    return find_jet_variable(charges, jet, 0)


def vertex_charge_sign(charge, cut):
    """Sign of a reconstructed vertex charge.

    Parameters
    ----------
    charge : float
        Reconstructed vertex charge
    cut : float
        |charge| above which the vertex is considered charged

    Returns
    -------
    VertexChargeSign
        Sign bucket, `None` if the charge is not available
    """
    if np.isnan(charge):
        return None
    if charge > cut:
        return VertexChargeSign.PLUS
    if charge < -cut:
        return VertexChargeSign.MINUS

    return VertexChargeSign.NEUTRAL


def find_num_vertex(inputs, jet, index):
    """Number of vertices found in a jet (including the primary vertex).

    Parameters
    ----------
    inputs : FloatVecCollection
        Flavour tag input collection
    jet : int
        Index of the jet
    index : int
        Index of the `NumVertices` variable

    Returns
    -------
    int
        Number of vertices, 0 if not available
    """
    value = find_jet_variable(inputs, jet, index)

    return 0 if np.isnan(value) else int(round(value))


def vertex_category(count):
    """Vertex multiplicity bucket of a jet.

    A jet with only the primary vertex (or no vertex information) belongs to
    the `ONE` bucket.

    Parameters
    ----------
    count : int
        Number of vertices

    Returns
    -------
    VertexCategory
        `ONE`, `TWO` or `THREE_PLUS`
    """
    if count <= 1:
        return VertexCategory.ONE
    if count == 2:
        return VertexCategory.TWO

    return VertexCategory.THREE_PLUS


def calculate_distance(pos1, pos2):
    """Euclidean distance between two 3D points.

    The computation is carried out in the precision of the inputs: two
    single precision positions give a single precision distance, anything
    else is computed in double precision.

    Parameters
    ----------
    pos1, pos2 : np.ndarray
        (3) Point coordinates

    Returns
    -------
    Union[np.float32, np.float64]
        Distance between the two points
    """
    dtype = np.result_type(np.asarray(pos1), np.asarray(pos2))
    if dtype != np.float32:
        dtype = np.dtype(np.float64)

    x = np.ascontiguousarray(pos1, dtype=dtype)
    y = np.ascontiguousarray(pos2, dtype=dtype)

    return dtype.type(euclidean(x, y))


def find_true_jet_decay_length(chain, ip):
    """Decay lengths of the heavy hadrons along the true decay chain of a jet.

    Parameters
    ----------
    chain : TrueDecayChain
        True decay chain of the jet
    ip : np.ndarray
        (3) Interaction point

    Returns
    -------
    List[float]
        Decay length of every heavy hadron in the chain
    List[float]
        Decay lengths of the b-hadrons
    List[float]
        Decay lengths of the c-hadrons
    """
    lengths, b_lengths, c_lengths = [], [], []
    for decay in chain.decays:
        flavour = get_pdg_flavour(decay.pdg)
        if flavour not in (B_JET, C_JET):
            continue

        length = float(calculate_distance(ip, decay.position))
        lengths.append(length)
        if flavour == B_JET:
            b_lengths.append(length)
        else:
            c_lengths.append(length)

    return lengths, b_lengths, c_lengths


def find_true_jet_decay_length2(chain, ip):
    """Decay length of the most displaced b- and c-hadron decays of a jet.

    Parameters
    ----------
    chain : TrueDecayChain
        True decay chain of the jet
    ip : np.ndarray
        (3) Interaction point

    Returns
    -------
    float
        Largest b-hadron decay length, 0 if there is none
    float
        Largest c-hadron decay length, 0 if there is none
    """
    _, b_lengths, c_lengths = find_true_jet_decay_length(chain, ip)

    return max(b_lengths, default=0.0), max(c_lengths, default=0.0)


def find_track_origin(code):
    """True origin of a track from the PDG code of its parent heavy hadron.

    Parameters
    ----------
    code : int
        PDG code of the heavy hadron the track comes from, 0 for a track
        which does not come from a heavy hadron, -1 if the track has no
        associated MC particle

    Returns
    -------
    TrackOrigin
        Origin of the track
    """
    if code == NO_MCP_CODE:
        return TrackOrigin.NO_MCP

    flavour = get_pdg_flavour(code)
    if flavour == B_JET:
        return TrackOrigin.B
    if flavour == C_JET:
        return TrackOrigin.C

    return TrackOrigin.LIGHT


def jet_angle_bin(cos_theta, nbins=N_JETANGLE_BINS):
    """Bin of the jet |cos(theta)| used by the vertex charge leakage plots.

    Parameters
    ----------
    cos_theta : float
        Cosine of the jet polar angle
    nbins : int, default 10
        Number of bins spanning [0, 1]

    Returns
    -------
    int
        Bin index in [0, nbins)
    """
    return min(int(abs(cos_theta) * nbins), nbins - 1)
