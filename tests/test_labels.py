"""Tests for label placement."""

import pytest

from circuit_layout.layout.geometry import distance
from circuit_layout.layout.labels import (
    path_midpoint,
    place_label,
    place_labels,
    place_node_label,
)
from circuit_layout.layout.routing import route_edges
from circuit_layout.parser.model import Branch, Point


def _line(n=4, length=200.0):
    return [Point(length * i / n, 0.0) for i in range(n + 1)]


def test_path_midpoint_by_arc_length():
    assert path_midpoint([Point(0, 0), Point(100, 0), Point(100, 100)]) == Point(100, 0)
    assert path_midpoint([Point(7, 7)]) == Point(7, 7)


def test_label_prefers_path_midpoint():
    pts = _line()
    anchor = place_label(pts, [], pts[0], pts[-1])
    assert anchor == Point(100, 0)


def test_label_avoids_waypoints():
    pts = _line(length=400.0)
    anchor = place_label(pts, [Point(200, 10)], pts[0], pts[-1])
    assert distance(anchor, Point(200, 10)) > 30
    assert distance(anchor, pts[0]) > 40
    assert distance(anchor, pts[-1]) > 40


def test_label_fallback_maximises_clearance():
    pts = _line(length=60.0)
    waypoints = [Point(30, 0)]
    anchor = place_label(pts, waypoints, pts[0], pts[-1])
    # No candidate is clear of the short edge's endpoints, so take the farthest
    assert anchor in (Point(7.5, 0), Point(52.5, 0))


def test_node_label_defaults_above():
    anchor, side = place_node_label(Point(0, 0), [])
    assert side == "above"
    assert anchor == Point(0, -14)


def test_node_label_moves_away_from_path():
    vertical = [Point(0, 0), Point(0, -100)]
    anchor, side = place_node_label(Point(0, 0), [], [vertical])
    assert side == "below"
    assert anchor.y > 0


def test_node_label_fallback_picks_clearest_side():
    obstacles = [Point(0, -14), Point(0, 14), Point(-14, 0), Point(20, 0)]
    _, side = place_node_label(Point(0, 0), obstacles)
    assert side == "right"


def test_place_labels_covers_every_element():
    positions = {"a": Point(0, 0), "b": Point(150, 0)}
    branches = [
        Branch(id="R1", kind="r", from_node_id="a", to_node_id="b"),
        Branch(id="R2", kind="r", from_node_id="a", to_node_id="b"),
    ]
    routes = route_edges(branches, positions)
    node_labels, edge_labels = place_labels(positions, routes, edge_labels={"R1": "10k"})

    assert set(node_labels) == {"a", "b"}
    assert set(edge_labels) == {"R1", "R2"}
    assert edge_labels["R1"].text == "10k"
    assert edge_labels["R2"].text == "R2"
    assert node_labels["a"].text_anchor in ("middle", "start", "end")
    # Labels of the parallel pair do not sit on top of each other
    assert distance(edge_labels["R1"].point, edge_labels["R2"].point) > 0
    # Every label anchor is distinct from every node
    for label in list(node_labels.values()) + list(edge_labels.values()):
        for p in positions.values():
            assert distance(label.point, p) > 0


def test_text_anchor_follows_side():
    positions = {"a": Point(0, 0)}
    node_labels, _ = place_labels(positions, {})
    assert node_labels["a"].side == "above"
    assert node_labels["a"].text_anchor == "middle"


@pytest.mark.parametrize("side,anchor", [("left", "end"), ("right", "start"), ("on", "middle")])
def test_label_text_anchor_values(side, anchor):
    from circuit_layout.layout.labels import LabelPlacement

    assert LabelPlacement("x", "x", 0, 0, side).text_anchor == anchor


def test_label_box_follows_side():
    from circuit_layout.layout.labels import LabelPlacement

    assert LabelPlacement("n", "abcd", 100, 50, "right").box == (100, 43, 132, 57)
    assert LabelPlacement("n", "abcd", 100, 50, "left").box == (68, 43, 100, 57)
    assert LabelPlacement("n", "abcd", 100, 50, "above").box == (84, 43, 116, 57)


def test_long_labels_on_adjacent_nodes_do_not_overlap():
    from circuit_layout.layout.geometry import boxes_overlap, polyline_length_in_box

    positions = {"a": Point(0, 0), "b": Point(60, 0)}
    branches = [Branch(id="R1", kind="r", from_node_id="a", to_node_id="b")]
    routes = route_edges(branches, positions)
    node_labels, edge_labels = place_labels(
        positions,
        routes,
        node_labels={"a": "input terminal", "b": "output terminal"},
        edge_labels={"R1": "R"},
    )
    a, b = node_labels["a"], node_labels["b"]
    # Both would sit above their node; the second one has to move
    assert a.side == "above"
    assert b.side != "above"
    assert not boxes_overlap(a.box, b.box)
    for label in (a, b):
        assert polyline_length_in_box(routes["R1"].points, label.box) == 0


def test_node_label_fallback_takes_least_overlap():
    # A wide label on the left would cover the neighbour's text box
    neighbour_box = (-200.0, -30.0, -5.0, 30.0)
    obstacles = [Point(0, -14), Point(0, 14), Point(14, 0)]
    anchor, side = place_node_label(
        Point(0, 0), obstacles, text="long label", boxes=[neighbour_box]
    )
    assert side == "right"
    assert anchor == Point(14, 0)


def test_edge_label_avoids_other_paths():
    pts = _line(length=400.0)
    crossing = [Point(200, -50), Point(200, 50)]
    anchor = place_label(pts, [], pts[0], pts[-1], text="R1", paths=[crossing])
    assert anchor != Point(200, 0)
    assert distance(anchor, pts[0]) > 40
