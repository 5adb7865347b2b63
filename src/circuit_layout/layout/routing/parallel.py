"""Offsets for parallel branches and self-loops."""

from __future__ import annotations

from circuit_layout.layout.constants import EPSILON, MIN_PARALLEL_CLEARANCE, SELF_LOOP_SIZE
from circuit_layout.layout.geometry import normalize, perpendicular, sub
from circuit_layout.layout.graph_theory import parallel_groups
from circuit_layout.layout.routing.common import PathGeometry
from circuit_layout.parser.model import Branch, Point


def arrow_offsets(count: int, clearance: float = MIN_PARALLEL_CLEARANCE) -> list[float]:
    """Arrow-point offsets for ``count`` branches sharing both endpoints.

    Signs alternate so the group fans out symmetrically about the chord,
    with adjacent arrows exactly ``clearance`` apart. An odd group keeps
    its first member on the chord.
    """
    offsets: list[float] = []
    if count % 2 == 0:
        for k in range(count // 2):
            offsets.extend(((k + 0.5) * clearance, -(k + 0.5) * clearance))
    else:
        offsets.append(0.0)
        for k in range(1, count // 2 + 1):
            offsets.extend((k * clearance, -k * clearance))
    return offsets


def parallel_offsets(
    branches: list[Branch], clearance: float = MIN_PARALLEL_CLEARANCE
) -> dict[str, float]:
    """Map branch id -> arrow offset for every branch in a parallel group.

    Branches that are alone between their endpoints, and self-loops, are
    not included.
    """
    result: dict[str, float] = {}
    for (a, b), group in parallel_groups(branches).items():
        if a == b or len(group) < 2:
            continue
        for branch, offset in zip(group, arrow_offsets(len(group), clearance)):
            result[branch.id] = offset
    return result


def canonical_normal(
    source_id: str, target_id: str, source: Point, target: Point
) -> Point | None:
    """Unit normal of the chord drawn from the smaller to the larger node id.

    Returns None when the endpoints coincide.
    """
    if source_id <= target_id:
        start, end = source, target
    else:
        start, end = target, source
    direction = normalize(sub(end, start))
    if abs(direction.x) < EPSILON and abs(direction.y) < EPSILON:
        return None
    return perpendicular(direction)


def offset_geometry(source: Point, target: Point, normal: Point | None, offset: float) -> PathGeometry:
    """A quadratic whose midpoint sits ``offset / 2`` off the chord along ``normal``.

    ``offset`` is the control-point offset; zero (or no normal) gives a line.
    """
    if normal is None or abs(offset) < EPSILON:
        return PathGeometry(start=source, end=target)
    mid = Point((source.x + target.x) / 2, (source.y + target.y) / 2)
    control = Point(mid.x + normal.x * offset, mid.y + normal.y * offset)
    return PathGeometry(start=source, end=target, controls=(control,))


def self_loop_geometry(center: Point, index: int = 0, clearance: float = MIN_PARALLEL_CLEARANCE) -> PathGeometry:
    """Teardrop cubic above ``center``; its apex is SELF_LOOP_SIZE + index * clearance high."""
    size = SELF_LOOP_SIZE + index * clearance
    # Cubic midpoint height is 3/4 of the control height
    rise = size * 4 / 3
    spread = size * 0.75
    return PathGeometry(
        start=center,
        end=center,
        controls=(
            Point(center.x - spread, center.y - rise),
            Point(center.x + spread, center.y - rise),
        ),
    )
