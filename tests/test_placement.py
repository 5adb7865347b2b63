"""Tests for node placement and planarity refinement."""

import pytest

from circuit_layout.layout.constants import CROSSING_PENALTY
from circuit_layout.layout.placement import (
    align_nodes,
    calculate_planarity_score,
    center_positions,
    detect_crowding,
    expand_regions,
    optimize_placement,
    place_nodes,
    place_nodes_for_planarity,
    refine_layout,
    score_layout,
    snap_to_grid,
)
from circuit_layout.layout.symmetry import find_twins, mirror_twins, reflect
from circuit_layout.layout.graph_theory import adjacency
from circuit_layout.parser.model import Branch, ElectricalNode, Point


def _graph(node_ids, edges):
    nodes = [ElectricalNode(id=n) for n in node_ids]
    branches = [Branch(id=b, kind="r", from_node_id=u, to_node_id=v) for b, u, v in edges]
    return nodes, branches


def _k4():
    ids = ["a", "b", "c", "d"]
    edges = [
        (f"{u}{v}", u, v) for i, u in enumerate(ids) for v in ids[i + 1:]
    ]
    return _graph(ids, edges)


def test_place_nodes_places_every_node_on_grid():
    nodes, branches = _k4()
    result = place_nodes(nodes, branches, grid_size=50)
    assert set(result.positions) == {"a", "b", "c", "d"}
    points = list(result.positions.values())
    assert len(set(points)) == 4
    min_x, min_y, max_x, max_y = result.bounds
    assert min_x <= max_x and min_y <= max_y


def test_single_node_sits_at_origin():
    nodes, branches = _graph(["only"], [])
    assert place_nodes(nodes, branches).positions == {"only": Point(0.0, 0.0)}


def test_place_nodes_is_deterministic():
    nodes, branches = _k4()
    assert place_nodes(nodes, branches).positions == place_nodes(nodes, branches).positions


def test_two_nodes_are_separated():
    nodes, branches = _graph(["a", "b"], [("r1", "a", "b")])
    pos = place_nodes(nodes, branches).positions
    assert abs(pos["a"].x - pos["b"].x) + abs(pos["a"].y - pos["b"].y) >= 50


def test_snap_to_grid_resolves_collisions():
    snapped = snap_to_grid({"a": Point(1, 1), "b": Point(-2, 3), "c": Point(60, 0)}, 50)
    assert snapped["a"] == Point(0, 0)
    assert snapped["b"] != Point(0, 0)
    assert snapped["c"] == Point(50, 0)
    assert len(set(snapped.values())) == 3
    for p in snapped.values():
        assert p.x % 50 == 0 and p.y % 50 == 0


def test_align_merges_close_coordinates():
    aligned = align_nodes({"a": Point(0, 0), "b": Point(10, 100), "c": Point(200, 5)}, 20)
    assert aligned["a"].x == aligned["b"].x == 5
    assert aligned["a"].y == aligned["c"].y == 2.5


def test_align_skips_clusters_that_would_coincide():
    aligned = align_nodes({"a": Point(0, 0), "b": Point(10, 0)}, 20)
    assert aligned["a"] != aligned["b"]


def test_reflect_across_vertical_axis():
    assert reflect(Point(-3, 7), Point(0, 0), Point(0, 10)) == Point(3, 7)


def test_twins_are_mirrored():
    nodes, branches = _graph(
        ["top", "left", "right", "bottom"],
        [("r1", "top", "left"), ("r2", "top", "right"),
         ("r3", "left", "bottom"), ("r4", "right", "bottom")],
    )
    adj = adjacency(nodes, branches)
    twins = find_twins(adj)
    assert ("top", "bottom", ("left", "right")) in twins

    skewed = {
        "top": Point(0, -100),
        "bottom": Point(0, 100),
        "left": Point(-80, 0),
        "right": Point(120, 20),
    }
    mirrored = mirror_twins(skewed, adj)
    axis_a, axis_b = mirrored["top"], mirrored["bottom"]
    assert reflect(mirrored["left"], axis_a, axis_b).x == pytest.approx(mirrored["right"].x)
    assert reflect(mirrored["left"], axis_a, axis_b).y == pytest.approx(mirrored["right"].y)


def test_crowding_detects_dense_cluster_only():
    nodes, branches = _k4()
    dense = {"a": Point(0, 0), "b": Point(50, 0), "c": Point(0, 50), "d": Point(50, 50)}
    regions = detect_crowding(dense, branches)
    assert len(regions) == 1
    assert set(regions[0].node_ids) == {"a", "b", "c", "d"}
    assert regions[0].expansion_factor > 1.2

    sparse = {"a": Point(0, 0), "b": Point(500, 0), "c": Point(0, 500), "d": Point(500, 500)}
    assert detect_crowding(sparse, branches) == []


def test_expand_regions_spreads_about_centre():
    nodes, branches = _k4()
    dense = {"a": Point(0, 0), "b": Point(50, 0), "c": Point(0, 50), "d": Point(50, 50)}
    regions = detect_crowding(dense, branches)
    spread = expand_regions(dense, regions)
    assert spread["b"].x - spread["a"].x > 50


def test_center_positions_moves_centroid_to_origin():
    centred = center_positions({"a": Point(100, 100), "b": Point(200, 300)})
    assert centred["a"] == Point(-50, -100)
    assert centred["b"] == Point(50, 100)


# --- Planarity ---


def _crossed_square():
    nodes, branches = _graph(
        ["a", "b", "c", "d"], [("r1", "a", "b"), ("r2", "c", "d")]
    )
    crossed = {"a": Point(0, 0), "b": Point(100, 100), "c": Point(0, 100), "d": Point(100, 0)}
    planar = {"a": Point(0, 0), "b": Point(100, 0), "c": Point(0, 100), "d": Point(100, 100)}
    return nodes, branches, crossed, planar


def test_planarity_score_counts_crossings():
    _, branches, crossed, planar = _crossed_square()
    assert calculate_planarity_score(planar, branches) == 0
    assert calculate_planarity_score(crossed, branches) == CROSSING_PENALTY


def test_planarity_score_is_pure():
    _, branches, crossed, _ = _crossed_square()
    before = dict(crossed)
    first = calculate_planarity_score(crossed, branches)
    assert calculate_planarity_score(crossed, branches) == first
    assert crossed == before


def test_planarity_ignores_branches_sharing_an_endpoint():
    nodes, branches = _graph(["a", "b", "c"], [("r1", "a", "b"), ("r2", "a", "c")])
    pos = {"a": Point(0, 0), "b": Point(100, 0), "c": Point(50, 0)}
    assert calculate_planarity_score(pos, branches) == 0


def test_annealing_never_returns_a_worse_layout():
    nodes, branches, crossed, _ = _crossed_square()
    result = place_nodes_for_planarity(nodes, branches, iterations=200, seed=3, initial=crossed)
    assert set(result) == {"a", "b", "c", "d"}
    assert calculate_planarity_score(result, branches) <= calculate_planarity_score(
        crossed, branches
    )


def test_annealing_is_seeded():
    nodes, branches = _k4()
    first = place_nodes_for_planarity(nodes, branches, iterations=100, seed=7)
    second = place_nodes_for_planarity(nodes, branches, iterations=100, seed=7)
    assert first == second


def test_annealing_keeps_wide_units_apart():
    nodes, branches = _graph(["big", "x", "y"], [("r1", "x", "y")])
    start = {"big": Point(0, 0), "x": Point(300, 0), "y": Point(300, 150)}
    result = place_nodes_for_planarity(
        nodes, branches, iterations=300, seed=1, initial=start, radii={"big": 100.0}
    )
    for other in ("x", "y"):
        d = ((result[other].x - result["big"].x) ** 2 + (result[other].y - result["big"].y) ** 2) ** 0.5
        assert d >= 125 - 1e-9


def test_refine_layout_keeps_every_node():
    nodes, branches = _k4()
    start = place_nodes(nodes, branches).positions
    refined = refine_layout(start, nodes, branches, iterations=20)
    assert set(refined) == set(start)
    assert refine_layout(start, nodes, branches, iterations=0) == start


# --- Candidate optimisation ---


def test_seeded_placement_is_reproducible():
    nodes, branches = _k4()
    first = place_nodes(nodes, branches, seed=123).positions
    assert place_nodes(nodes, branches, seed=123).positions == first
    assert set(first) == {"a", "b", "c", "d"}


def test_score_orders_crossings_first():
    _, branches, crossed, planar = _crossed_square()
    assert score_layout(crossed, branches).crossings == 1
    assert score_layout(planar, branches).crossings == 0
    assert score_layout(planar, branches).key < score_layout(crossed, branches).key


def test_score_rewards_mirror_symmetry():
    nodes, branches = _graph(["a", "b", "c"], [("r1", "a", "b"), ("r2", "b", "c")])
    symmetric = {"a": Point(-100, 0), "b": Point(0, -50), "c": Point(100, 0)}
    skewed = {"a": Point(-100, 0), "b": Point(0, -50), "c": Point(100, 40)}
    assert score_layout(symmetric, branches).symmetry == pytest.approx(1.0)
    assert score_layout(skewed, branches).symmetry < 1.0


@pytest.mark.parametrize("fixture", [_k4, lambda: _graph(
    ["a", "b", "c", "d", "e"],
    [("r1", "a", "b"), ("r2", "b", "c"), ("r3", "c", "d"), ("r4", "d", "a"),
     ("r5", "a", "c"), ("r6", "b", "e"), ("r7", "e", "d")],
)])
def test_optimized_placement_is_no_worse_than_default(fixture):
    nodes, branches = fixture()
    default = place_nodes(nodes, branches).positions
    chosen = optimize_placement(nodes, branches).positions
    assert set(chosen) == set(default)
    assert score_layout(chosen, branches).key <= score_layout(default, branches).key


def test_optimizer_keeps_default_without_variants():
    nodes, branches = _k4()
    chosen = optimize_placement(nodes, branches, seeds=(), grid_factors=(1.0,))
    assert chosen.positions == place_nodes(nodes, branches).positions
