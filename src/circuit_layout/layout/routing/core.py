"""Edge routing: candidate generation and path scoring."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from circuit_layout.layout.constants import (
    CURVE_PENALTY,
    EPSILON,
    HIGH_ARC_OFFSET,
    INTERSECTION_PENALTY,
    LOW_ARC_OFFSET,
    MIN_PARALLEL_CLEARANCE,
    NODE_RADIUS,
    PROXIMITY_PENALTY,
    PROXIMITY_SAMPLES,
    PROXIMITY_THRESHOLD,
    SYMMETRY_BONUS,
)
from circuit_layout.layout.geometry import distance, point_polyline_distance, polylines_intersect
from circuit_layout.layout.routing.common import PathGeometry, RoutedPath
from circuit_layout.layout.routing.parallel import (
    canonical_normal,
    offset_geometry,
    parallel_offsets,
    self_loop_geometry,
)
from circuit_layout.parser.model import Branch, Point

logger = logging.getLogger(__name__)

# Control-point offsets tried for a branch with no parallel siblings,
# straight first so that ties keep the straight line.
SINGLE_CANDIDATES: tuple[float, ...] = (0.0, LOW_ARC_OFFSET, -LOW_ARC_OFFSET, HIGH_ARC_OFFSET)

# ---------------------------------------------------------------------------
# Routing context: state shared by the routing handlers
# ---------------------------------------------------------------------------


@dataclass
class _RoutingCtx:
    """State shared by the routing handlers during one route_edges() call."""

    positions: dict[str, Point]
    clearance: float
    arrow_offsets: dict[str, float]
    routed: dict[str, RoutedPath] = field(default_factory=dict)
    # Control offsets already used per unordered endpoint pair
    taken: dict[tuple[str, str], list[float]] = field(default_factory=dict)
    loop_counts: dict[str, int] = field(default_factory=dict)


def _pair_key(branch: Branch) -> tuple[str, str]:
    a, b = sorted((branch.from_node_id, branch.to_node_id))
    return (a, b)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def route_edges(
    branches: list[Branch],
    node_positions: dict[str, Point],
    min_parallel_clearance: float = MIN_PARALLEL_CLEARANCE,
) -> dict[str, RoutedPath]:
    """Route every branch, in input order, against the placed nodes.

    Each branch gets the lowest-scoring candidate path. Earlier routes are
    obstacles for later ones.
    """
    ctx = _RoutingCtx(
        positions=node_positions,
        clearance=min_parallel_clearance,
        arrow_offsets=parallel_offsets(branches, min_parallel_clearance),
    )

    for branch in branches:
        source = _position(ctx, branch.from_node_id)
        target = _position(ctx, branch.to_node_id)

        # Try each routing handler in priority order.
        result = _route_self_loop(branch, source, ctx)
        if result is None:
            result = _route_degenerate(branch, source, target)
        if result is None:
            result = _route_parallel(branch, source, target, ctx)
        if result is None:
            result = _route_single(branch, source, target, ctx)

        ctx.routed[branch.id] = result
        ctx.taken.setdefault(_pair_key(branch), []).append(result.offset)

    return ctx.routed


def _position(ctx: _RoutingCtx, node_id: str) -> Point:
    pos = ctx.positions.get(node_id)
    if pos is None:
        logger.warning("Node %s has no position, routing from origin", node_id)
        return Point(0.0, 0.0)
    return pos


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


def _route_self_loop(branch: Branch, source: Point, ctx: _RoutingCtx) -> RoutedPath | None:
    if not branch.is_self_loop:
        return None
    index = ctx.loop_counts.get(branch.from_node_id, 0)
    ctx.loop_counts[branch.from_node_id] = index + 1
    return RoutedPath(
        branch_id=branch.id,
        source_id=branch.from_node_id,
        target_id=branch.to_node_id,
        geometry=self_loop_geometry(source, index, ctx.clearance),
    )


def _route_degenerate(branch: Branch, source: Point, target: Point) -> RoutedPath | None:
    """Distinct nodes drawn at the same spot get a zero-length line."""
    if distance(source, target) >= EPSILON:
        return None
    return RoutedPath(
        branch_id=branch.id,
        source_id=branch.from_node_id,
        target_id=branch.to_node_id,
        geometry=PathGeometry(start=source, end=target),
    )


def _route_parallel(
    branch: Branch, source: Point, target: Point, ctx: _RoutingCtx
) -> RoutedPath | None:
    """Members of a parallel group choose between +/- their assigned offset."""
    if branch.id not in ctx.arrow_offsets:
        return None
    control = 2 * ctx.arrow_offsets[branch.id]
    options = [control] if abs(control) < EPSILON else [control, -control]
    taken = ctx.taken.get(_pair_key(branch), [])
    free = [o for o in options if all(abs(o - t) >= EPSILON for t in taken)]
    return _best_candidate(branch, source, target, free or [control], ctx)


def _route_single(
    branch: Branch, source: Point, target: Point, ctx: _RoutingCtx
) -> RoutedPath:
    return _best_candidate(branch, source, target, list(SINGLE_CANDIDATES), ctx)


def _best_candidate(
    branch: Branch,
    source: Point,
    target: Point,
    offsets: list[float],
    ctx: _RoutingCtx,
) -> RoutedPath:
    normal = canonical_normal(branch.from_node_id, branch.to_node_id, source, target)
    best: RoutedPath | None = None
    for offset in offsets:
        candidate = RoutedPath(
            branch_id=branch.id,
            source_id=branch.from_node_id,
            target_id=branch.to_node_id,
            geometry=offset_geometry(source, target, normal, offset),
            offset=offset,
        )
        candidate.score = score_path(candidate, branch, ctx)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("Branch %s offset %.1f scores %.1f", branch.id, offset, candidate.score)
        if best is None or candidate.score < best.score:
            best = candidate
    return best


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------


def score_path(candidate: RoutedPath, branch: Branch, ctx: _RoutingCtx) -> float:
    """Lower is better.

    Penalises passing through or near non-endpoint nodes, crossing
    already-routed branches that share no endpoint with this one, and
    curvature. Mirroring a routed parallel sibling earns a bonus.
    """
    ends = {branch.from_node_id, branch.to_node_id}
    geometry = candidate.geometry
    samples = [geometry.point_at(i / PROXIMITY_SAMPLES) for i in range(PROXIMITY_SAMPLES + 1)]
    score = 0.0

    for node_id, pos in ctx.positions.items():
        if node_id in ends:
            continue
        if point_polyline_distance(pos, candidate.points) <= NODE_RADIUS:
            score += INTERSECTION_PENALTY
        nearest = min(distance(pos, s) for s in samples)
        score += PROXIMITY_PENALTY * max(0.0, PROXIMITY_THRESHOLD - nearest)

    for other in ctx.routed.values():
        if other.source_id in ends or other.target_id in ends:
            continue
        if polylines_intersect(candidate.points, other.points):
            score += INTERSECTION_PENALTY

    if geometry.is_curved:
        score += CURVE_PENALTY

    if abs(candidate.offset) >= EPSILON:
        key = _pair_key(branch)
        for other in ctx.routed.values():
            if other.source_id == other.target_id:
                continue
            if tuple(sorted((other.source_id, other.target_id))) != key:
                continue
            if abs(other.offset + candidate.offset) < EPSILON:
                score -= SYMMETRY_BONUS
                break

    return score
