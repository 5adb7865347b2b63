"""Label placement for node and branch labels.

Each label is sized from its text (a fixed width per character and one
line height). A candidate is accepted as soon as its anchor keeps its
clearances and its text box touches no node, foreign path or earlier
label. When every candidate collides, the one with the least overlap
wins, ties going to the one farthest from every obstacle.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from circuit_layout.layout.constants import (
    ENDPOINT_CLEARANCE,
    LABEL_CHAR_WIDTH,
    LABEL_LINE_HEIGHT,
    LABEL_SEGMENTS,
    NODE_LABEL_CLEARANCE,
    NODE_LABEL_OFFSET,
    NODE_RADIUS,
    WAYPOINT_CLEARANCE,
)
from circuit_layout.layout.geometry import (
    Box,
    box_around,
    box_overlap_area,
    distance,
    midpoint,
    point_polyline_distance,
    polyline_length_in_box,
)
from circuit_layout.layout.routing.common import RoutedPath
from circuit_layout.parser.model import Point


def label_box(anchor: Point, text: str, side: str = "on") -> Box:
    """Estimated text extent of a label drawn at ``anchor``.

    Left labels end at the anchor, right labels start at it, all others
    are centred on it. Text is vertically centred on the anchor.
    """
    width = len(text) * LABEL_CHAR_WIDTH
    half_h = LABEL_LINE_HEIGHT / 2
    if side == "left":
        left = anchor.x - width
    elif side == "right":
        left = anchor.x
    else:
        left = anchor.x - width / 2
    return (left, anchor.y - half_h, left + width, anchor.y + half_h)


@dataclass
class LabelPlacement:
    """Placement information for a node or branch label."""

    element_id: str
    text: str
    x: float
    y: float
    side: str = "on"  # above / below / left / right for nodes, on for branches

    @property
    def point(self) -> Point:
        return Point(self.x, self.y)

    @property
    def text_anchor(self) -> str:
        return {"left": "end", "right": "start"}.get(self.side, "middle")

    @property
    def box(self) -> Box:
        return label_box(self.point, self.text, self.side)


def _overlap(
    box: Box,
    nodes: list[Point],
    boxes: list[Box],
    paths: list[list[Point]],
) -> float:
    """Area of ``box`` covered by nodes, other label boxes and path strokes.

    A path counts as a stroke one text line thick.
    """
    area = sum(box_overlap_area(box, box_around(p, NODE_RADIUS)) for p in nodes)
    area += sum(box_overlap_area(box, other) for other in boxes)
    area += sum(polyline_length_in_box(path, box) for path in paths) * LABEL_LINE_HEIGHT
    return area


def path_midpoint(points: list[Point]) -> Point:
    """Point halfway along the polyline by arc length."""
    if len(points) == 1:
        return points[0]
    lengths = [distance(points[i], points[i + 1]) for i in range(len(points) - 1)]
    remaining = sum(lengths) / 2
    for i, seg in enumerate(lengths):
        if remaining <= seg and seg > 0:
            t = remaining / seg
            a, b = points[i], points[i + 1]
            return Point(a.x + (b.x - a.x) * t, a.y + (b.y - a.y) * t)
        remaining -= seg
    return points[-1]


def _min_distance(p: Point, waypoints: list[Point]) -> float:
    return min((distance(p, w) for w in waypoints), default=math.inf)


def place_label(
    points: list[Point],
    waypoints: list[Point],
    source: Point,
    target: Point,
    text: str = "",
    boxes: list[Box] | None = None,
    paths: list[list[Point]] | None = None,
) -> Point:
    """Pick a label anchor along a path.

    Candidates are the path midpoint followed by the midpoint of every
    segment of ``points``. The first one clear of every waypoint and of
    both endpoints, whose text box also stays off ``boxes`` and ``paths``,
    is returned. Otherwise the candidate with the least overlap wins,
    then the one maximising its distance to the nearest waypoint.
    """
    boxes = boxes or []
    paths = paths or []
    candidates = [path_midpoint(points)]
    candidates.extend(midpoint(points[i], points[i + 1]) for i in range(len(points) - 1))

    def overlap(candidate: Point) -> float:
        return _overlap(label_box(candidate, text), [], boxes, paths)

    for candidate in candidates:
        if _min_distance(candidate, waypoints) <= WAYPOINT_CLEARANCE:
            continue
        if distance(candidate, source) <= ENDPOINT_CLEARANCE:
            continue
        if distance(candidate, target) <= ENDPOINT_CLEARANCE:
            continue
        if overlap(candidate) > 0:
            continue
        return candidate

    return min(
        candidates,
        key=lambda c: (overlap(c), -_min_distance(c, waypoints)),
    )


_NODE_SIDES: tuple[tuple[str, float, float], ...] = (
    ("above", 0.0, -1.0),
    ("below", 0.0, 1.0),
    ("left", -1.0, 0.0),
    ("right", 1.0, 0.0),
)


def place_node_label(
    center: Point,
    obstacles: list[Point],
    paths: list[list[Point]] | None = None,
    offset: float = NODE_LABEL_OFFSET,
    clearance: float = NODE_LABEL_CLEARANCE,
    text: str = "",
    boxes: list[Box] | None = None,
) -> tuple[Point, str]:
    """Pick a label anchor above, below, left or right of a node.

    ``obstacles`` are other nodes, ``boxes`` the text boxes of labels
    already placed. Returns the anchor and the chosen side.
    """
    paths = paths or []
    boxes = boxes or []

    def gap(p: Point) -> float:
        nearest = _min_distance(p, obstacles)
        for path in paths:
            nearest = min(nearest, point_polyline_distance(p, path))
        return nearest

    def overlap(p: Point, side: str) -> float:
        return _overlap(label_box(p, text, side), obstacles, boxes, paths)

    options = [
        (Point(center.x + dx * offset, center.y + dy * offset), side)
        for side, dx, dy in _NODE_SIDES
    ]
    for candidate, side in options:
        if gap(candidate) > clearance and overlap(candidate, side) == 0:
            return candidate, side
    return min(options, key=lambda option: (overlap(*option), -gap(option[0])))


def place_labels(
    node_positions: dict[str, Point],
    routes: dict[str, RoutedPath],
    node_labels: dict[str, str] | None = None,
    edge_labels: dict[str, str] | None = None,
) -> tuple[dict[str, LabelPlacement], dict[str, LabelPlacement]]:
    """Place every node label, then every branch label.

    Each placed label becomes an obstacle for the ones after it. Branch
    labels also avoid other branches' arrowheads and strokes.
    """
    node_labels = node_labels or {}
    edge_labels = edge_labels or {}
    polylines = [r.points for r in routes.values()]
    placed: list[Point] = []
    placed_boxes: list[Box] = []

    node_placements: dict[str, LabelPlacement] = {}
    for node_id, center in node_positions.items():
        others = [p for n, p in node_positions.items() if n != node_id]
        text = node_labels.get(node_id, node_id)
        anchor, side = place_node_label(
            center, others + placed, polylines, text=text, boxes=placed_boxes
        )
        placement = LabelPlacement(
            element_id=node_id,
            text=text,
            x=anchor.x,
            y=anchor.y,
            side=side,
        )
        node_placements[node_id] = placement
        placed.append(anchor)
        placed_boxes.append(placement.box)

    arrows = {branch_id: r.arrow_point for branch_id, r in routes.items()}
    edge_placements: dict[str, LabelPlacement] = {}
    for branch_id, route in routes.items():
        waypoints = [
            p
            for n, p in node_positions.items()
            if n not in (route.source_id, route.target_id)
        ]
        waypoints.extend(placed)
        waypoints.extend(
            Point(a.x, a.y) for other_id, a in arrows.items() if other_id != branch_id
        )
        text = edge_labels.get(branch_id, branch_id)
        anchor = place_label(
            route.geometry.flatten(LABEL_SEGMENTS),
            waypoints,
            route.geometry.start,
            route.geometry.end,
            text=text,
            boxes=placed_boxes,
            paths=[r.points for other_id, r in routes.items() if other_id != branch_id],
        )
        placement = LabelPlacement(
            element_id=branch_id,
            text=text,
            x=anchor.x,
            y=anchor.y,
        )
        edge_placements[branch_id] = placement
        placed.append(anchor)
        placed_boxes.append(placement.box)

    return node_placements, edge_placements
