"""Layout constants used across pipeline stages.

Centralizes the tolerances, search budgets and caps used by the
quantizer, synthesizer, corrector, compactor and weight passes. None of
these values has a derivation beyond "works on real transit networks";
every one can be overridden through :class:`PipelineConfig`.
"""

# ---------------------------------------------------------------------------
# Coordinate tolerances
# ---------------------------------------------------------------------------
KEY_EPSILON: float = 1e-4
"""Quantization step for point keys in adjacency and dedup maps."""

GRID_EPSILON: float = 1e-4
"""Grid unit substituted when the nearest station pair coincides."""

STITCH_TOLERANCE: float = 1e-5
"""Distance under which two segment endpoints are considered joined."""

AXIS_TOLERANCE: float = 1e-6
"""Max off-axis delta for a segment to count as horizontal/vertical."""

OVERLAP_TOLERANCE: float = 1e-4
"""Minimum shared length for two collinear segments to overlap."""

COLLINEAR_TOLERANCE: float = 1e-5
"""Cross-product tolerance when walking a straight run."""

ORTHO_TOLERANCE: float = 0.1
"""Tolerance for axis checks on grid-scale layouts (corrector, compactor)."""

ROUND_DIGITS: int = 2
"""Decimal places kept after compaction moves and normalization."""

# ---------------------------------------------------------------------------
# Quantization
# ---------------------------------------------------------------------------
COARSE_GRID: int = 5
"""Cell size of the coarse snap applied to transfer nodes."""

DEFAULT_ROUTE_NAME: str = "unknown"
"""Route name used when a feature carries none."""

DEFAULT_ROUTE_COLOR: str = "#2c7bb6"
"""Route color used when a feature carries none."""

# ---------------------------------------------------------------------------
# Path synthesis
# ---------------------------------------------------------------------------
MAX_ATTEMPTS: int = 500
"""Randomized global placement attempts before keeping the best."""

Z_SAMPLES: int = 15
"""Z-path candidates sampled per bend order for each link."""

Z_RATIO_MIN: float = 0.1
"""Lower bound of the Z corner offset, as a fraction of the span."""

Z_RATIO_MAX: float = 0.9
"""Upper bound of the Z corner offset, as a fraction of the span."""

INTERSECT_MARGIN: float = 0.001
"""Intersection parameters within this margin of 0 or 1 are not illegal."""

ENDPOINT_CLEARANCE: float = 0.01
"""Intersections this close to a segment endpoint are ignored."""

# ---------------------------------------------------------------------------
# Flip optimizer
# ---------------------------------------------------------------------------
FLIP_EPOCHS: int = 150
"""Maximum optimizer epochs."""

FLIP_SAMPLES: int = 25
"""Z-path pairs sampled per link per epoch."""

FLIP_THRESHOLD: float = 20.0
"""A replacement must beat the current score by more than this."""

TABU_EPOCHS: int = 3
"""Epochs a link is frozen after being flipped."""

COLLISION_PENALTY: float = 1e9
OVERLAP_PENALTY: float = 1e7
TURN_PENALTY: float = 5e4

# ---------------------------------------------------------------------------
# Topology correction
# ---------------------------------------------------------------------------
U_SHAPE_CAP: float = 2.5
"""Longest bridge segment that is collapsed as a U-shape artifact."""

U_SHAPE_PASSES: int = 10
"""Maximum correction passes (one collapse per pass)."""

ANTIPARALLEL_DOT: float = -0.9
"""Unit-vector dot product below which two legs are antiparallel."""

TURN_DOT: float = 0.99
"""Unit-vector dot product below which a polyline is considered to turn."""

# ---------------------------------------------------------------------------
# Compaction
# ---------------------------------------------------------------------------
COMPACTION_ITERATIONS: int = 100
"""Maximum ghost moves applied."""

NODE_CLEARANCE: float = 0.5
"""A ghost corner this close to another point collides with it."""

MIN_MOVE: float = 0.1
"""Ghost moves shorter than this are not worth applying."""

# ---------------------------------------------------------------------------
# Sequencing
# ---------------------------------------------------------------------------
SHRINK_ROUNDS: int = 50
"""Maximum rounds of one-cell station moves toward the map centre."""

# ---------------------------------------------------------------------------
# Weights
# ---------------------------------------------------------------------------
WEIGHT_VALUES: tuple[int, ...] = (1, 2, 3, 4, 5, 6, 7, 8, 9)
"""Possible random demand weights."""

WEIGHT_PROBABILITIES: tuple[int, ...] = (729, 512, 343, 216, 125, 64, 27, 8, 1)
"""Relative frequency of each weight (cubes, heaviest weights rarest)."""

EQUAL_MERGE_ROUNDS: int = 5
"""Rounds of equal-weight merging before giving up on a fixpoint."""

WEIGHT_TOLERANCES: tuple[int, ...] = (1, 2)
"""Successive gap tolerances for near-equal weight merging."""

EXPONENT_CAP: int = 8
"""Largest exponent used for exponential grid cell sizes."""

STRUCTURE_WALK_LIMIT: int = 2000
"""Step cap when walking degree-2 chains to classify segments."""

PLACEHOLDER_COLOR: str = "#555555"
"""Color that loses to any other color when unifying a route."""
