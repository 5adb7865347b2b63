"""Structural symmetry: twin detection and reflection about an axis."""

from __future__ import annotations

import logging

from circuit_layout.layout.constants import EPSILON
from circuit_layout.layout.geometry import distance, midpoint
from circuit_layout.layout.graph_theory import neighbours
from circuit_layout.parser.model import Point

logger = logging.getLogger(__name__)


def side_of(p: Point, a: Point, b: Point) -> float:
    """Signed area of (a, b, p): >0 on one side of line a-b, <0 on the other."""
    return (b.x - a.x) * (p.y - a.y) - (b.y - a.y) * (p.x - a.x)


def reflect(p: Point, a: Point, b: Point) -> Point:
    """Mirror ``p`` across the line through ``a`` and ``b``."""
    dx = b.x - a.x
    dy = b.y - a.y
    len_sq = dx * dx + dy * dy
    if len_sq < EPSILON:
        # Degenerate axis: point reflection through a
        return Point(2 * a.x - p.x, 2 * a.y - p.y)
    t = ((p.x - a.x) * dx + (p.y - a.y) * dy) / len_sq
    foot = Point(a.x + t * dx, a.y + t * dy)
    return Point(2 * foot.x - p.x, 2 * foot.y - p.y)


def central_axis(positions: dict[str, Point], axis_ids: tuple[str, str]) -> tuple[Point, Point]:
    """The line through two nodes, used as the mirror axis for their twins."""
    return positions[axis_ids[0]], positions[axis_ids[1]]


def find_twins(
    adj: dict[str, list[tuple[str, str]]],
) -> list[tuple[str, str, tuple[str, str]]]:
    """Find structural twins: non-adjacent nodes with identical neighbour sets.

    Only nodes with at least two neighbours qualify, so that an axis can be
    drawn through two common neighbours. Each node belongs to at most one
    pair. Returns ``(a, b, (axis_a, axis_b))`` tuples.
    """
    order = list(adj)
    neighbour_sets = {node_id: neighbours(adj, node_id) for node_id in order}
    paired: set[str] = set()
    twins = []
    for i, a in enumerate(order):
        if a in paired or len(neighbour_sets[a]) < 2:
            continue
        set_a = set(neighbour_sets[a])
        for b in order[i + 1:]:
            if b in paired or b in set_a:
                continue
            if set(neighbour_sets[b]) != set_a:
                continue
            axis = tuple(neighbour_sets[a][:2])
            twins.append((a, b, axis))
            paired.update((a, b))
            break
    return twins


def mirror_twins(
    positions: dict[str, Point],
    adj: dict[str, list[tuple[str, str]]],
) -> dict[str, Point]:
    """Make every twin pair a mirror image about the axis of its common neighbours.

    A pair on the same side of the axis (or touching it) is left alone, as
    is any pair whose mirrored positions would land on another node.
    """
    result = dict(positions)
    for a, b, axis_ids in find_twins(adj):
        if any(n not in result for n in (a, b, *axis_ids)):
            continue
        axis_a, axis_b = central_axis(result, axis_ids)
        side_a = side_of(result[a], axis_a, axis_b)
        side_b = side_of(result[b], axis_a, axis_b)
        if side_a * side_b >= 0:
            continue

        new_a = midpoint(result[a], reflect(result[b], axis_a, axis_b))
        new_b = reflect(new_a, axis_a, axis_b)
        if distance(new_a, new_b) < EPSILON:
            continue
        others = [p for n, p in result.items() if n not in (a, b)]
        if any(distance(new_a, p) < EPSILON or distance(new_b, p) < EPSILON for p in others):
            continue

        logger.debug("Mirroring twins %s/%s about %s-%s", a, b, *axis_ids)
        result[a] = new_a
        result[b] = new_b
    return result
