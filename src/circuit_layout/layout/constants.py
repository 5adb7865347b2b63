"""Layout constants used across layout modules.

Centralizes magic numbers from placement.py, patterns.py, routing/,
labels.py and engine.py.
"""

# ---------------------------------------------------------------------------
# Numeric tolerances
# ---------------------------------------------------------------------------
EPSILON: float = 1e-6
"""Distances below this are treated as zero."""

PARALLEL_EPSILON: float = 1e-10
"""Determinant threshold for parallel segments."""

# ---------------------------------------------------------------------------
# Force-directed placement
# ---------------------------------------------------------------------------
LINK_LENGTH: float = 150.0
"""Preferred (rest) length of a spring along a branch."""

SPRING_STRENGTH: float = 0.1
"""Spring constant for branch attraction."""

REPULSION_STRENGTH: float = 5000.0
"""Coulomb constant for pairwise node repulsion."""

CENTERING_STRENGTH: float = 0.1
"""Pull of every node toward the origin."""

DAMPING: float = 0.9
"""Velocity damping applied each iteration."""

MAX_ITERATIONS: int = 300
"""Iteration cap for the force simulation."""

ENERGY_THRESHOLD: float = 0.1
"""Stop when total force changes by less than this between iterations."""

MAX_STEP: float = 50.0
"""Largest distance a node may travel in one iteration."""

INITIAL_RADIUS: float = 200.0
"""Radius of the circle nodes start on."""

# ---------------------------------------------------------------------------
# Grid, alignment, crowding
# ---------------------------------------------------------------------------
GRID_SIZE: float = 50.0
"""Grid unit for snapping."""

ALIGNMENT_TOLERANCE: float = 20.0
"""Coordinates closer than this on one axis are merged."""

REGION_SIZE: float = 100.0
"""Radius of a local region for crowding detection."""

CROWDING_THRESHOLD: float = 0.5
"""Branch density (branches per 1000 square units) that marks a crowded region."""

BASE_EXPANSION: float = 1.2
"""Minimum spread factor applied to a crowded region."""

EXPANSION_PER_DENSITY: float = 0.3
"""Extra spread per unit of density over the threshold."""

MAX_DENSITY_RATIO: float = 3.0
"""Cap on density / threshold when computing the spread factor."""

# ---------------------------------------------------------------------------
# Simulated annealing
# ---------------------------------------------------------------------------
ANNEALING_ITERATIONS: int = 300
"""Default number of annealing steps."""

INITIAL_TEMPERATURE: float = 100.0
"""Starting temperature of the annealing schedule."""

COOLING_RATE: float = 0.995
"""Geometric cooling factor per step."""

CROSSING_PENALTY: float = 1000.0
"""Planarity score per pairwise straight-line edge crossing."""

LENGTH_PENALTY: float = 10.0
"""Annealing energy per unit of relative deviation from LINK_LENGTH."""

MIN_NODE_DISTANCE: float = 25.0
"""Annealing rejects moves that bring two nodes closer than this."""

DEFAULT_SEED: int = 0
"""Seed for the annealing random source."""

REFINE_ITERATIONS: int = 0
"""Force refinement steps after pattern expansion (0 disables)."""

# ---------------------------------------------------------------------------
# Candidate optimisation
# ---------------------------------------------------------------------------
OPTIMIZATION_SEEDS: tuple[int, ...] = (123, 456)
"""Seeds of the jittered start circles tried by the optimiser."""

OPTIMIZATION_GRID_FACTORS: tuple[float, ...] = (1.0, 0.5, 2.0)
"""Grid sizes tried by the optimiser, as multiples of the configured grid."""

INITIAL_JITTER: float = 25.0
"""Largest per-axis offset added to a start position by a seeded placement."""

MIRROR_TOLERANCE: float = 10.0
"""Two nodes mirror each other when both coordinates agree within this."""

# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------
TEMPLATE_SIZE: float = 100.0
"""Extent of a pattern template in template units."""

PATTERN_SCALE: float = 1.5
"""Scale applied to templates when expanding super-nodes."""

MAX_PATH_LENGTH: int = 10
"""Maximum number of nodes in a path enumerated by the path search."""

SUPER_NODE_PREFIX: str = "__super_"
"""Prefix for generated super-node ids."""

# ---------------------------------------------------------------------------
# Routing
# ---------------------------------------------------------------------------
NODE_RADIUS: float = 5.0
"""Radius within which a path is considered to pass through a node."""

PROXIMITY_THRESHOLD: float = 15.0
"""Distance from a non-endpoint node below which a path is penalised."""

PROXIMITY_SAMPLES: int = 10
"""Number of intervals sampled along a path for proximity scoring."""

INTERSECTION_PENALTY: float = 1000.0
"""Score per node or routed edge a candidate intersects."""

PROXIMITY_PENALTY: float = 100.0
"""Score per unit of proximity violation."""

CURVE_PENALTY: float = 10.0
"""Score added to every curved candidate (straight-line bias)."""

SYMMETRY_BONUS: float = 50.0
"""Score removed when a candidate mirrors a routed parallel sibling."""

LOW_ARC_OFFSET: float = 30.0
"""Perpendicular control-point offset of a low arc."""

HIGH_ARC_OFFSET: float = 60.0
"""Perpendicular control-point offset of a high arc."""

MIN_PARALLEL_CLEARANCE: float = 24.0
"""Minimum distance between arrow points of adjacent parallel branches."""

SELF_LOOP_SIZE: float = 40.0
"""Height of a self-loop teardrop."""

FLATTEN_SEGMENTS: int = 16
"""Line segments used to approximate a curve for intersection tests."""

# ---------------------------------------------------------------------------
# Labels
# ---------------------------------------------------------------------------
WAYPOINT_CLEARANCE: float = 30.0
"""Minimum distance from a label anchor to any waypoint."""

ENDPOINT_CLEARANCE: float = 40.0
"""Minimum distance from an edge label anchor to the edge endpoints."""

NODE_LABEL_OFFSET: float = 14.0
"""Distance from node centre to its label anchor."""

NODE_LABEL_CLEARANCE: float = 12.0
"""Minimum distance from a node label anchor to other obstacles."""

LABEL_SEGMENTS: int = 4
"""Segments a curved path is split into when generating label candidates."""

LABEL_CHAR_WIDTH: float = 8.0
"""Estimated width of one label character."""

LABEL_LINE_HEIGHT: float = 14.0
"""Estimated height of a label text line."""

# ---------------------------------------------------------------------------
# Canvas
# ---------------------------------------------------------------------------
CANVAS_PADDING: float = 40.0
"""Padding around the drawing when computing width and height."""
