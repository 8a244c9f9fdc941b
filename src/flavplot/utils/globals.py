"""Defines constants used throughout the package."""

# Quark content codes returned by the PDG flavour lookup
B_JET = 5
C_JET = 4

# Number of |cos(theta)| bins used in the vertex charge leakage plots
N_JETANGLE_BINS = 10

# Default number of bins of the neural net output plots
NUMBER_OF_POINTS = 100

# Name of the vertex count variable in a flavour tag input collection
NUM_VERTICES_NAME = "NumVertices"

# Names of the variables stored in the true jet flavour collection
TRUE_JET_FLAVOUR_NAME = "TrueJetFlavour"
TRUE_JET_PDG_CODE_NAME = "TrueJetPDGCode"
TRUE_HADRON_CHARGE_NAME = "TrueHadronCharge"
TRUE_PARTON_CHARGE_NAME = "TruePartonCharge"

# Default true charge boundaries between the neutral, single and double
# charge buckets
TRUE_CHARGE_THRESHOLDS = (0.5, 1.5)

# Default |vertex charge| above which a vertex is considered charged
VERTEX_CHARGE_CUT = 0.5

# Origin code of a track which has no associated MC particle
NO_MCP_CODE = -1

# Directory names of the vertex categories (1, 2, >=3, any)
VERTEX_CAT_DIRS = (
    "OneVertex",
    "TwoVertices",
    "ThreeOrMoreVertices",
    "AnyNumberOfVertices",
)

# Binning (bins, low, high) of the flavour tag input plots
INPUT_RANGES = {
    "BQVtx": (9, -4.5, 4.5),
    "CQVtx": (9, -4.5, 4.5),
    "D0Significance1": (100, -10.0, 100.0),
    "D0Significance2": (100, -10.0, 80.0),
    "DecayLength": (100, 0.0, 8.0),
    "DecayLength(SeedToIP)": (100, 0.0, 3.0),
    "DecayLengthSignificance": (100, 0.0, 300.0),
    "JointProbRPhi": (100, 0.0, 1.0),
    "JointProbZ": (100, 0.0, 1.0),
    "Momentum1": (100, 0.0, 50.0),
    "Momentum2": (100, 0.0, 50.0),
    "NumTracksInVertices": (11, -0.5, 10.5),
    "NumVertices": (5, 0.5, 5.5),
    "PTCorrectedMass": (100, 0.0, 10.0),
    "RawMomentum": (100, 0.0, 50.0),
    "SecondaryVertexProbability": (100, 0.0, 1.0),
    "Z0Significance1": (100, -50.0, 80.0),
    "Z0Significance2": (100, -50.0, 50.0),
}

# Binning of the zoomed-in flavour tag input plots
ZOOMED_INPUT_RANGES = {
    "D0Significance1": (100, -10.0, 20.0),
    "D0Significance2": (100, -10.0, 20.0),
    "DecayLength": (100, 0.0, 1.0),
    "DecayLengthSignificance": (100, 0.0, 50.0),
    "Z0Significance1": (100, -10.0, 20.0),
    "Z0Significance2": (100, -10.0, 20.0),
}

# Fallback binning of input plots for variables absent from the tables above
DEFAULT_INPUT_RANGE = (100, 0.0, 1.0)

# Binning of the vertex charge plots
VERTEX_CHARGE_RANGE = (9, -4.5, 4.5)
TRUE_CHARGE_RANGE = (5, -2.5, 2.5)

# Binning of the decay length plots
DECAY_LENGTH_RANGE = (100, 0.0, 20.0)
