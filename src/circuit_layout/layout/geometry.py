"""Pure 2D geometry helpers shared by placement, routing and labels."""

from __future__ import annotations

import math

from circuit_layout.layout.constants import EPSILON, FLATTEN_SEGMENTS, PARALLEL_EPSILON
from circuit_layout.parser.model import Point


def add(a: Point, b: Point) -> Point:
    return Point(a.x + b.x, a.y + b.y)


def sub(a: Point, b: Point) -> Point:
    return Point(a.x - b.x, a.y - b.y)


def scale(p: Point, factor: float) -> Point:
    return Point(p.x * factor, p.y * factor)


def length(p: Point) -> float:
    return math.hypot(p.x, p.y)


def distance(a: Point, b: Point) -> float:
    return math.hypot(a.x - b.x, a.y - b.y)


def midpoint(a: Point, b: Point) -> Point:
    return Point((a.x + b.x) / 2, (a.y + b.y) / 2)


def normalize(p: Point) -> Point:
    """Unit vector in the direction of ``p``; zero vector stays zero."""
    n = length(p)
    if n < EPSILON:
        return Point(0.0, 0.0)
    return Point(p.x / n, p.y / n)


def perpendicular(p: Point) -> Point:
    """Rotate ``p`` by +90 degrees (left normal in screen coordinates)."""
    return Point(-p.y, p.x)


def centroid(points: list[Point]) -> Point:
    if not points:
        return Point(0.0, 0.0)
    return Point(
        sum(p.x for p in points) / len(points),
        sum(p.y for p in points) / len(points),
    )


def _cross(o: Point, a: Point, b: Point) -> float:
    return (a.x - o.x) * (b.y - o.y) - (a.y - o.y) * (b.x - o.x)


def segments_intersect(p1: Point, p2: Point, p3: Point, p4: Point) -> bool:
    """True if segment p1-p2 properly crosses segment p3-p4.

    Touching at an endpoint and collinear overlap do not count as a
    crossing.
    """
    denom = (p2.x - p1.x) * (p4.y - p3.y) - (p2.y - p1.y) * (p4.x - p3.x)
    if abs(denom) < PARALLEL_EPSILON:
        return False
    t = ((p3.x - p1.x) * (p4.y - p3.y) - (p3.y - p1.y) * (p4.x - p3.x)) / denom
    u = ((p3.x - p1.x) * (p2.y - p1.y) - (p3.y - p1.y) * (p2.x - p1.x)) / denom
    return EPSILON < t < 1 - EPSILON and EPSILON < u < 1 - EPSILON


def point_segment_distance(p: Point, a: Point, b: Point) -> float:
    """Shortest distance from ``p`` to segment a-b."""
    dx = b.x - a.x
    dy = b.y - a.y
    seg_len_sq = dx * dx + dy * dy
    if seg_len_sq < EPSILON:
        return distance(p, a)
    t = ((p.x - a.x) * dx + (p.y - a.y) * dy) / seg_len_sq
    t = max(0.0, min(1.0, t))
    return distance(p, Point(a.x + t * dx, a.y + t * dy))


def point_polyline_distance(p: Point, points: list[Point]) -> float:
    if len(points) == 1:
        return distance(p, points[0])
    return min(
        point_segment_distance(p, points[i], points[i + 1])
        for i in range(len(points) - 1)
    )


def polylines_intersect(a: list[Point], b: list[Point]) -> bool:
    """True if any segment of polyline ``a`` crosses any segment of ``b``."""
    for i in range(len(a) - 1):
        for j in range(len(b) - 1):
            if segments_intersect(a[i], a[i + 1], b[j], b[j + 1]):
                return True
    return False


# ---------------------------------------------------------------------------
# Bezier curves
# ---------------------------------------------------------------------------


def quadratic_point(p0: Point, c: Point, p1: Point, t: float) -> Point:
    mt = 1 - t
    return Point(
        mt * mt * p0.x + 2 * mt * t * c.x + t * t * p1.x,
        mt * mt * p0.y + 2 * mt * t * c.y + t * t * p1.y,
    )


def quadratic_tangent(p0: Point, c: Point, p1: Point, t: float) -> Point:
    mt = 1 - t
    return Point(
        2 * mt * (c.x - p0.x) + 2 * t * (p1.x - c.x),
        2 * mt * (c.y - p0.y) + 2 * t * (p1.y - c.y),
    )


def cubic_point(p0: Point, c1: Point, c2: Point, p1: Point, t: float) -> Point:
    mt = 1 - t
    a = mt * mt * mt
    b = 3 * mt * mt * t
    c = 3 * mt * t * t
    d = t * t * t
    return Point(
        a * p0.x + b * c1.x + c * c2.x + d * p1.x,
        a * p0.y + b * c1.y + c * c2.y + d * p1.y,
    )


def cubic_tangent(p0: Point, c1: Point, c2: Point, p1: Point, t: float) -> Point:
    mt = 1 - t
    return Point(
        3 * mt * mt * (c1.x - p0.x) + 6 * mt * t * (c2.x - c1.x) + 3 * t * t * (p1.x - c2.x),
        3 * mt * mt * (c1.y - p0.y) + 6 * mt * t * (c2.y - c1.y) + 3 * t * t * (p1.y - c2.y),
    )


def flatten_quadratic(
    p0: Point, c: Point, p1: Point, segments: int = FLATTEN_SEGMENTS
) -> list[Point]:
    return [quadratic_point(p0, c, p1, i / segments) for i in range(segments + 1)]


def flatten_cubic(
    p0: Point, c1: Point, c2: Point, p1: Point, segments: int = FLATTEN_SEGMENTS
) -> list[Point]:
    return [cubic_point(p0, c1, c2, p1, i / segments) for i in range(segments + 1)]


def angle_of(v: Point) -> float:
    """Direction of ``v`` in radians; 0 for a zero vector."""
    if length(v) < EPSILON:
        return 0.0
    return math.atan2(v.y, v.x)


def bounding_box(points: list[Point]) -> tuple[float, float, float, float]:
    """Return (min_x, min_y, max_x, max_y) of ``points``."""
    if not points:
        return (0.0, 0.0, 0.0, 0.0)
    xs = [p.x for p in points]
    ys = [p.y for p in points]
    return (min(xs), min(ys), max(xs), max(ys))


Box = tuple[float, float, float, float]


def box_around(p: Point, half: float) -> Box:
    """Square box of half-size ``half`` centred on ``p``."""
    return (p.x - half, p.y - half, p.x + half, p.y + half)


def box_overlap_area(a: Box, b: Box) -> float:
    """Area shared by two (min_x, min_y, max_x, max_y) boxes."""
    w = min(a[2], b[2]) - max(a[0], b[0])
    h = min(a[3], b[3]) - max(a[1], b[1])
    if w <= 0 or h <= 0:
        return 0.0
    return w * h


def boxes_overlap(a: Box, b: Box) -> bool:
    return a[0] < b[2] and b[0] < a[2] and a[1] < b[3] and b[1] < a[3]


def clip_segment_length(a: Point, b: Point, box: Box) -> float:
    """Length of segment a-b lying inside ``box`` (Liang-Barsky clipping)."""
    dx, dy = b.x - a.x, b.y - a.y
    t0, t1 = 0.0, 1.0
    for p, q in (
        (-dx, a.x - box[0]),
        (dx, box[2] - a.x),
        (-dy, a.y - box[1]),
        (dy, box[3] - a.y),
    ):
        if abs(p) < EPSILON:
            if q < 0:
                return 0.0
            continue
        t = q / p
        if p < 0:
            t0 = max(t0, t)
        else:
            t1 = min(t1, t)
        if t0 > t1:
            return 0.0
    return (t1 - t0) * math.hypot(dx, dy)


def polyline_length_in_box(points: list[Point], box: Box) -> float:
    """Total length of a polyline lying inside ``box``."""
    return sum(
        clip_segment_length(points[i], points[i + 1], box) for i in range(len(points) - 1)
    )
