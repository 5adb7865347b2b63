"""Node placement: force relaxation, grid snapping, alignment, symmetry,
crowding correction and simulated-annealing planarity refinement.
"""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass

from circuit_layout.layout.constants import (
    ALIGNMENT_TOLERANCE,
    ANNEALING_ITERATIONS,
    BASE_EXPANSION,
    CENTERING_STRENGTH,
    COOLING_RATE,
    CROSSING_PENALTY,
    CROWDING_THRESHOLD,
    DAMPING,
    DEFAULT_SEED,
    ENERGY_THRESHOLD,
    EPSILON,
    EXPANSION_PER_DENSITY,
    GRID_SIZE,
    INITIAL_JITTER,
    INITIAL_RADIUS,
    INITIAL_TEMPERATURE,
    LENGTH_PENALTY,
    LINK_LENGTH,
    MAX_DENSITY_RATIO,
    MAX_ITERATIONS,
    MAX_STEP,
    MIN_NODE_DISTANCE,
    MIRROR_TOLERANCE,
    OPTIMIZATION_GRID_FACTORS,
    OPTIMIZATION_SEEDS,
    REGION_SIZE,
    REPULSION_STRENGTH,
    SPRING_STRENGTH,
)
from circuit_layout.layout.geometry import (
    bounding_box,
    centroid,
    distance,
    midpoint,
    segments_intersect,
)
from circuit_layout.layout.graph_theory import adjacency, spanning_forest_order
from circuit_layout.layout.symmetry import mirror_twins
from circuit_layout.parser.model import Branch, ElectricalNode, Point

logger = logging.getLogger(__name__)


@dataclass
class PlacementResult:
    """Final node positions and their bounding box (min_x, min_y, max_x, max_y)."""

    positions: dict[str, Point]
    bounds: tuple[float, float, float, float]


@dataclass
class CrowdedRegion:
    """A local cluster of nodes whose branch density exceeds the threshold."""

    center: Point
    node_ids: list[str]
    density: float
    expansion_factor: float


# ---------------------------------------------------------------------------
# Force relaxation
# ---------------------------------------------------------------------------


def _initial_circle(order: list[str], seed: int | None = None) -> dict[str, Point]:
    """Nodes on a circle, starting at the left and going clockwise on screen.

    With a ``seed`` every start position is jittered by up to INITIAL_JITTER
    on each axis.
    """
    count = len(order)
    if count == 1:
        return {order[0]: Point(0.0, 0.0)}
    rng = random.Random(seed) if seed is not None else None
    positions = {}
    for i, node_id in enumerate(order):
        angle = math.pi + 2 * math.pi * i / count
        x, y = INITIAL_RADIUS * math.cos(angle), INITIAL_RADIUS * math.sin(angle)
        if rng is not None:
            x += rng.uniform(-INITIAL_JITTER, INITIAL_JITTER)
            y += rng.uniform(-INITIAL_JITTER, INITIAL_JITTER)
        positions[node_id] = Point(x, y)
    return positions


def _relax(
    positions: dict[str, Point],
    branches: list[Branch],
    max_iterations: int,
    radii: dict[str, float] | None = None,
) -> dict[str, Point]:
    """Run the spring/repulsion simulation and return the relaxed positions.

    ``radii`` gives nodes a physical size (super-nodes): springs grow by the
    radii of both ends and repulsion acts on the gap between the discs.
    """
    radii = radii or {}
    ids = list(positions)
    index = {node_id: i for i, node_id in enumerate(ids)}
    xs = [positions[n].x for n in ids]
    ys = [positions[n].y for n in ids]
    vx = [0.0] * len(ids)
    vy = [0.0] * len(ids)
    springs = [
        (index[b.from_node_id], index[b.to_node_id])
        for b in branches
        if not b.is_self_loop and b.from_node_id in index and b.to_node_id in index
    ]
    size = [radii.get(n, 0.0) for n in ids]

    previous_energy = math.inf
    iterations = 0
    for iteration in range(max_iterations):
        iterations = iteration + 1
        cooling = 1 - iteration / max_iterations
        fx = [-x * CENTERING_STRENGTH for x in xs]
        fy = [-y * CENTERING_STRENGTH for y in ys]

        for i in range(len(ids)):
            for j in range(i + 1, len(ids)):
                dx = xs[i] - xs[j]
                dy = ys[i] - ys[j]
                dist = math.hypot(dx, dy)
                if dist < EPSILON:
                    # Coincident: push apart along a fixed direction per pair
                    angle = 2 * math.pi * ((i * 7 + j * 13) % 360) / 360
                    dx, dy, dist = math.cos(angle), math.sin(angle), 1.0
                gap = max(dist - size[i] - size[j], 1.0)
                force = REPULSION_STRENGTH / (gap * gap)
                fx[i] += force * dx / dist
                fy[i] += force * dy / dist
                fx[j] -= force * dx / dist
                fy[j] -= force * dy / dist

        for i, j in springs:
            dx = xs[j] - xs[i]
            dy = ys[j] - ys[i]
            dist = math.hypot(dx, dy)
            if dist < EPSILON:
                continue
            rest = LINK_LENGTH + size[i] + size[j]
            force = SPRING_STRENGTH * (dist - rest)
            fx[i] += force * dx / dist
            fy[i] += force * dy / dist
            fx[j] -= force * dx / dist
            fy[j] -= force * dy / dist

        energy = 0.0
        for i in range(len(ids)):
            energy += math.hypot(fx[i], fy[i])
            vx[i] = (vx[i] + fx[i]) * DAMPING * cooling
            vy[i] = (vy[i] + fy[i]) * DAMPING * cooling
            speed = math.hypot(vx[i], vy[i])
            if speed > MAX_STEP:
                vx[i] *= MAX_STEP / speed
                vy[i] *= MAX_STEP / speed
            xs[i] += vx[i]
            ys[i] += vy[i]

        if abs(previous_energy - energy) < ENERGY_THRESHOLD:
            break
        previous_energy = energy

    logger.debug("Force relaxation stopped after %d iteration(s)", iterations)
    return {node_id: Point(xs[i], ys[i]) for i, node_id in enumerate(ids)}


# ---------------------------------------------------------------------------
# Grid, alignment, crowding
# ---------------------------------------------------------------------------


def snap_to_grid(positions: dict[str, Point], grid_size: float = GRID_SIZE) -> dict[str, Point]:
    """Snap every node to the nearest free grid cell."""
    occupied: set[tuple[int, int]] = set()
    snapped: dict[str, Point] = {}
    for node_id, pos in positions.items():
        cell = (round(pos.x / grid_size), round(pos.y / grid_size))
        radius = 0
        while cell in occupied:
            radius += 1
            ring = [
                (cell[0] + dx, cell[1] + dy)
                for dx in range(-radius, radius + 1)
                for dy in range(-radius, radius + 1)
                if max(abs(dx), abs(dy)) == radius
            ]
            free = [c for c in ring if c not in occupied]
            if free:
                cell = min(
                    free,
                    key=lambda c: (
                        math.hypot(c[0] * grid_size - pos.x, c[1] * grid_size - pos.y),
                        c,
                    ),
                )
        occupied.add(cell)
        snapped[node_id] = Point(cell[0] * grid_size, cell[1] * grid_size)
    return snapped


def align_nodes(
    positions: dict[str, Point], tolerance: float = ALIGNMENT_TOLERANCE
) -> dict[str, Point]:
    """Merge near-equal coordinates on each axis to their mean.

    A cluster is skipped if merging it would make two nodes coincide.
    """
    result = dict(positions)
    for axis in ("x", "y"):
        ordered = sorted(result, key=lambda n: (getattr(result[n], axis), n))
        clusters: list[list[str]] = []
        for node_id in ordered:
            value = getattr(result[node_id], axis)
            if clusters and value - getattr(result[clusters[-1][-1]], axis) <= tolerance:
                clusters[-1].append(node_id)
            else:
                clusters.append([node_id])

        for cluster in clusters:
            if len(cluster) < 2:
                continue
            mean = sum(getattr(result[n], axis) for n in cluster) / len(cluster)
            moved = {
                n: Point(mean, result[n].y) if axis == "x" else Point(result[n].x, mean)
                for n in cluster
            }
            others = [p for n, p in result.items() if n not in moved]
            candidates = list(moved.values())
            clash = any(
                distance(a, b) < EPSILON
                for i, a in enumerate(candidates)
                for b in candidates[i + 1:] + others
            )
            if not clash:
                result.update(moved)
    return result


def detect_crowding(
    positions: dict[str, Point],
    branches: list[Branch],
    region_size: float = REGION_SIZE,
    threshold: float = CROWDING_THRESHOLD,
    grid_size: float = GRID_SIZE,
) -> list[CrowdedRegion]:
    """Find local regions whose branch density exceeds ``threshold``.

    Density is branches per 1000 square units of the region's padded
    bounding box. Each node belongs to at most one region.
    """
    assigned: set[str] = set()
    regions = []
    for seed_id, seed_pos in positions.items():
        if seed_id in assigned:
            continue
        members = [
            n
            for n, p in positions.items()
            if n not in assigned and distance(p, seed_pos) <= region_size
        ]
        if len(members) < 2:
            continue
        member_set = set(members)
        count = sum(
            1
            for b in branches
            if b.from_node_id in member_set and b.to_node_id in member_set
        )
        min_x, min_y, max_x, max_y = bounding_box([positions[n] for n in members])
        area = (max_x - min_x + grid_size) * (max_y - min_y + grid_size)
        density = count / area * 1000
        assigned.update(members)
        if density <= threshold:
            continue
        factor = BASE_EXPANSION + min(density / threshold, MAX_DENSITY_RATIO) * EXPANSION_PER_DENSITY
        regions.append(
            CrowdedRegion(
                center=centroid([positions[n] for n in members]),
                node_ids=members,
                density=density,
                expansion_factor=factor,
            )
        )
    return regions


def expand_regions(
    positions: dict[str, Point], regions: list[CrowdedRegion]
) -> dict[str, Point]:
    """Spread the nodes of each crowded region about its centre."""
    result = dict(positions)
    for region in regions:
        c = region.center
        for node_id in region.node_ids:
            p = result[node_id]
            result[node_id] = Point(
                c.x + (p.x - c.x) * region.expansion_factor,
                c.y + (p.y - c.y) * region.expansion_factor,
            )
    return result


def center_positions(positions: dict[str, Point]) -> dict[str, Point]:
    """Translate so that the centroid sits at the origin."""
    c = centroid(list(positions.values()))
    return {n: Point(p.x - c.x, p.y - c.y) for n, p in positions.items()}


# ---------------------------------------------------------------------------
# Public entry points
# ---------------------------------------------------------------------------


def place_nodes(
    nodes: list[ElectricalNode],
    branches: list[Branch],
    grid_size: float = GRID_SIZE,
    alignment_tolerance: float = ALIGNMENT_TOLERANCE,
    max_iterations: int = MAX_ITERATIONS,
    radii: dict[str, float] | None = None,
    seed: int | None = None,
) -> PlacementResult:
    """Place nodes with a force simulation followed by the aesthetic passes.

    Without a ``seed`` the start circle is exact and the result fully
    deterministic; a seed jitters the start circle reproducibly.
    """
    if not nodes:
        return PlacementResult(positions={}, bounds=(0.0, 0.0, 0.0, 0.0))

    order = spanning_forest_order(nodes, branches)
    positions = _relax(_initial_circle(order, seed), branches, max_iterations, radii)
    positions = snap_to_grid(positions, grid_size)
    positions = align_nodes(positions, alignment_tolerance)
    positions = mirror_twins(positions, adjacency(nodes, branches))

    regions = detect_crowding(positions, branches, grid_size=grid_size)
    if regions:
        logger.debug("Expanding %d crowded region(s)", len(regions))
        positions = expand_regions(positions, regions)

    positions = center_positions(positions)
    # Keep input order for stable downstream iteration
    positions = {node.id: positions[node.id] for node in nodes}
    return PlacementResult(
        positions=positions, bounds=bounding_box(list(positions.values()))
    )


def refine_layout(
    positions: dict[str, Point],
    nodes: list[ElectricalNode],
    branches: list[Branch],
    iterations: int,
) -> dict[str, Point]:
    """Short force pass over already-expanded positions."""
    if iterations <= 0:
        return dict(positions)
    start = {node.id: positions.get(node.id, Point(0.0, 0.0)) for node in nodes}
    return center_positions(_relax(start, branches, iterations))


def calculate_planarity_score(positions: dict[str, Point], branches: list[Branch]) -> float:
    """Penalty of CROSSING_PENALTY per crossing of straight branch segments.

    Pairs of branches sharing an endpoint never count, nor do self-loops
    or branches with an unplaced endpoint.
    """
    segments = [
        (b, positions[b.from_node_id], positions[b.to_node_id])
        for b in branches
        if not b.is_self_loop
        and b.from_node_id in positions
        and b.to_node_id in positions
    ]
    crossings = 0
    for i, (b1, p1, p2) in enumerate(segments):
        ends = {b1.from_node_id, b1.to_node_id}
        for b2, p3, p4 in segments[i + 1:]:
            if b2.from_node_id in ends or b2.to_node_id in ends:
                continue
            if segments_intersect(p1, p2, p3, p4):
                crossings += 1
    return CROSSING_PENALTY * crossings


def _length_energy(
    positions: dict[str, Point], branches: list[Branch], radii: dict[str, float]
) -> float:
    total = 0.0
    for b in branches:
        if b.is_self_loop or b.from_node_id not in positions or b.to_node_id not in positions:
            continue
        rest = LINK_LENGTH + radii.get(b.from_node_id, 0.0) + radii.get(b.to_node_id, 0.0)
        dist = distance(positions[b.from_node_id], positions[b.to_node_id])
        total += abs(dist - rest) / rest
    return LENGTH_PENALTY * total


def _layout_energy(
    positions: dict[str, Point], branches: list[Branch], radii: dict[str, float]
) -> float:
    return calculate_planarity_score(positions, branches) + _length_energy(
        positions, branches, radii
    )


def place_nodes_for_planarity(
    nodes: list[ElectricalNode],
    branches: list[Branch],
    iterations: int = ANNEALING_ITERATIONS,
    seed: int = DEFAULT_SEED,
    initial: dict[str, Point] | None = None,
    radii: dict[str, float] | None = None,
) -> dict[str, Point]:
    """Reduce crossings by simulated annealing and return the best layout seen.

    Starts from ``initial`` (or a fresh place_nodes() result). One random
    node moves per step; moves landing closer than MIN_NODE_DISTANCE to
    another node are rejected outright. ``radii`` widens both the rejection
    distance and the preferred branch length of units that stand for a
    collapsed pattern.
    """
    if initial is None:
        initial = place_nodes(nodes, branches, radii=radii).positions
    radii = radii or {}
    current = {node.id: initial.get(node.id, Point(0.0, 0.0)) for node in nodes}
    if len(current) < 2 or iterations <= 0:
        return current

    rng = random.Random(seed)
    ids = list(current)
    current_energy = _layout_energy(current, branches, radii)
    best, best_energy = dict(current), current_energy
    temperature = INITIAL_TEMPERATURE

    for _ in range(iterations):
        node_id = rng.choice(ids)
        old = current[node_id]
        moved = Point(
            old.x + (rng.random() - 0.5) * 2 * temperature,
            old.y + (rng.random() - 0.5) * 2 * temperature,
        )
        if any(
            distance(moved, p) < MIN_NODE_DISTANCE + radii.get(node_id, 0.0) + radii.get(n, 0.0)
            for n, p in current.items()
            if n != node_id
        ):
            temperature *= COOLING_RATE
            continue

        current[node_id] = moved
        energy = _layout_energy(current, branches, radii)
        delta = energy - current_energy
        if delta < 0 or (
            temperature > EPSILON and rng.random() < math.exp(-delta / temperature)
        ):
            current_energy = energy
            if energy < best_energy:
                best, best_energy = dict(current), energy
        else:
            current[node_id] = old
        temperature *= COOLING_RATE

    logger.debug("Annealing best energy %.2f", best_energy)
    return best


# ---------------------------------------------------------------------------
# Candidate optimisation
# ---------------------------------------------------------------------------


@dataclass
class LayoutScore:
    """Quality of one placement. Compare with ``key``: lower is better."""

    crossings: int
    spacing: float
    symmetry: float

    @property
    def key(self) -> tuple[int, float, float]:
        return (self.crossings, -round(self.spacing, 2), -round(self.symmetry, 2))


def _spacing(positions: dict[str, Point], branches: list[Branch]) -> float:
    """Mean distance between branch midpoints, relative to mean branch length."""
    ends = [
        (positions[b.from_node_id], positions[b.to_node_id])
        for b in branches
        if not b.is_self_loop and b.from_node_id in positions and b.to_node_id in positions
    ]
    if len(ends) < 2:
        return 1.0
    mean_length = sum(distance(a, b) for a, b in ends) / len(ends)
    if mean_length < EPSILON:
        return 0.0
    mids = [midpoint(a, b) for a, b in ends]
    gaps = [distance(m, n) for i, m in enumerate(mids) for n in mids[i + 1:]]
    return sum(gaps) / len(gaps) / mean_length


def _symmetry(positions: dict[str, Point]) -> float:
    """Share of nodes with a mirror image across the vertical centre line."""
    points = list(positions.values())
    if len(points) < 2:
        return 0.0
    axis = centroid(points).x
    mirrored = 0
    for p in points:
        mirror_x = 2 * axis - p.x
        if any(
            abs(q.x - mirror_x) < MIRROR_TOLERANCE and abs(q.y - p.y) < MIRROR_TOLERANCE
            for q in points
        ):
            mirrored += 1
    return mirrored / len(points)


def score_layout(positions: dict[str, Point], branches: list[Branch]) -> LayoutScore:
    """Crossings first, then branch spacing, then mirror symmetry."""
    crossings = round(calculate_planarity_score(positions, branches) / CROSSING_PENALTY)
    return LayoutScore(
        crossings=crossings,
        spacing=_spacing(positions, branches),
        symmetry=_symmetry(positions),
    )


def optimize_placement(
    nodes: list[ElectricalNode],
    branches: list[Branch],
    grid_size: float = GRID_SIZE,
    alignment_tolerance: float = ALIGNMENT_TOLERANCE,
    radii: dict[str, float] | None = None,
    seeds: tuple[int, ...] = OPTIMIZATION_SEEDS,
    grid_factors: tuple[float, ...] = OPTIMIZATION_GRID_FACTORS,
) -> PlacementResult:
    """Run place_nodes over several (seed, grid size) variants, keep the best.

    The plain place_nodes() result on ``grid_size`` is always the first
    candidate and wins ties, so the choice never scores worse than it.
    """
    variants: list[tuple[int | None, float]] = [(None, grid_size)]
    variants.extend((None, grid_size * f) for f in grid_factors if f != 1.0)
    variants.extend((s, grid_size) for s in seeds)

    best: PlacementResult | None = None
    best_key = None
    for seed, size in variants:
        result = place_nodes(
            nodes,
            branches,
            grid_size=size,
            alignment_tolerance=alignment_tolerance,
            radii=radii,
            seed=seed,
        )
        key = score_layout(result.positions, branches).key
        logger.debug("Candidate seed=%s grid=%.0f scored %s", seed, size, key)
        if best is None or key < best_key:
            best, best_key = result, key
    return best
