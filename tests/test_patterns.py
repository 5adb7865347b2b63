"""Tests for pattern recognition, collapse and expansion."""

from pathlib import Path

import pytest

from circuit_layout.layout.patterns import (
    BRIDGE_TEMPLATE,
    collapse_patterns,
    expand_patterns,
    find_patterns,
    series_template,
    super_node_radius,
)
from circuit_layout.parser.model import Branch, ElectricalNode, PatternType, Point
from circuit_layout.parser.topology import parse_topology

TOPOLOGIES_DIR = Path(__file__).parent / "fixtures" / "topologies"


def _load(name):
    topology = parse_topology((TOPOLOGIES_DIR / f"{name}.json").read_text())
    return topology.nodes, topology.branches


def _graph(node_ids, edges):
    nodes = [ElectricalNode(id=n) for n in node_ids]
    branches = [Branch(id=b, kind="r", from_node_id=u, to_node_id=v) for b, u, v in edges]
    return nodes, branches


# --- Detection ---


def test_diamond_is_a_bridge():
    nodes, branches = _load("diamond_bridge")
    matches = find_patterns(nodes, branches)
    assert len(matches) == 1
    pattern = matches[0].pattern
    assert pattern.type == PatternType.BRIDGE
    assert set(pattern.nodes) == {"a", "b", "c", "d"}
    # Non-adjacent pair ends up left and right
    assert {pattern.nodes[0], pattern.nodes[3]} == {"a", "d"}
    assert pattern.geometric_template == BRIDGE_TEMPLATE


def test_wheatstone_detector_is_not_a_template_branch():
    nodes, branches = _load("wheatstone")
    matches = find_patterns(nodes, branches)
    bridges = [m for m in matches if m.pattern.type == PatternType.BRIDGE]
    assert len(bridges) == 1
    assert "G1" not in bridges[0].branch_mapping


def test_triangle_is_a_pi():
    nodes, branches = _load("pi")
    matches = find_patterns(nodes, branches)
    assert [m.pattern.type for m in matches] == [PatternType.PI]
    assert len(matches[0].pattern.branches) == 3


def test_triangle_with_terminals_is_a_pi():
    nodes, branches = _load("pi_network")
    matches = find_patterns(nodes, branches)
    assert [m.pattern.type for m in matches] == [PatternType.PI]
    assert set(matches[0].pattern.nodes) == {"x", "y", "z"}
    assert set(matches[0].pattern.branches) == {"C1", "L1", "C2"}


def test_pi_network_collapses_and_expands():
    nodes, branches = _load("pi_network")
    simplified = collapse_patterns(nodes, branches, find_patterns(nodes, branches))
    super_node = simplified.super_nodes[0]
    assert {c.branch_id for c in super_node.external_connections} == {"Vs", "RL"}
    assert sorted(super_node.internal_branch_ids) == ["C1", "C2", "L1"]

    units, unit_branches = simplified.placement_units()
    assert {u.id for u in units} == {"src", "load", "__super_0"}
    assert len(unit_branches) == 2

    unit_positions = {"src": Point(-300.0, 0.0), "load": Point(300.0, 0.0),
                      "__super_0": Point(0.0, 0.0)}
    positions = expand_patterns(simplified, unit_positions, scale=1.5)
    assert set(positions) == {n.id for n in nodes}
    assert positions["src"] == Point(-300.0, 0.0)
    assert positions["load"] == Point(300.0, 0.0)
    for node_id in ("x", "y", "z"):
        p = positions[node_id]
        assert (p.x ** 2 + p.y ** 2) ** 0.5 == pytest.approx(
            super_node_radius(super_node, scale=1.5)
        )


def test_star_is_a_t():
    nodes, branches = _load("t")
    matches = find_patterns(nodes, branches)
    assert [m.pattern.type for m in matches] == [PatternType.T]
    assert matches[0].pattern.nodes[0] == "c"
    assert matches[0].pattern.geometric_template[0] == Point(0.0, 0.0)


def test_chain_is_a_series():
    nodes, branches = _load("series")
    matches = find_patterns(nodes, branches)
    assert len(matches) == 1
    assert matches[0].pattern.type == PatternType.SERIES
    assert matches[0].pattern.nodes == ("s1", "s2", "s3", "s4")
    assert matches[0].pattern.branches == ("R1", "R2", "R3")


def test_series_stops_before_branch_point():
    nodes, branches = _graph(
        ["a", "b", "c", "hub", "x", "y", "z"],
        [("r1", "a", "b"), ("r2", "b", "c"), ("r3", "c", "hub"),
         ("r4", "hub", "x"), ("r5", "hub", "y"), ("r6", "hub", "z")],
    )
    series = [m for m in find_patterns(nodes, branches) if m.pattern.type == PatternType.SERIES]
    assert len(series) == 1
    assert series[0].pattern.nodes == ("a", "b", "c")


def test_two_node_chain_is_not_a_series():
    nodes, branches = _load("single_branch")
    assert find_patterns(nodes, branches) == []


def test_complete_graph_yields_one_pi():
    nodes, branches = _load("k5")
    matches = find_patterns(nodes, branches)
    # Only one disjoint triangle fits in five nodes
    assert [m.pattern.type for m in matches] == [PatternType.PI]
    assert matches[0].pattern.nodes == ("n1", "n2", "n3")


@pytest.mark.parametrize(
    "name", ["ladder", "k33", "k5", "wheatstone", "disconnected", "rc_filter", "pi_network"]
)
def test_matches_are_mutually_exclusive(name):
    nodes, branches = _load(name)
    matches = find_patterns(nodes, branches)
    seen_nodes: set[str] = set()
    seen_branches: set[str] = set()
    for match in matches:
        assert not seen_nodes & set(match.node_mapping)
        assert not seen_branches & set(match.branch_mapping)
        seen_nodes.update(match.node_mapping)
        seen_branches.update(match.branch_mapping)


def test_ladder_yields_bridges():
    nodes, branches = _load("ladder")
    matches = find_patterns(nodes, branches)
    assert matches
    assert matches[0].pattern.type == PatternType.BRIDGE


def test_series_template_is_centred():
    template = series_template(3)
    assert [p.x for p in template] == [-50.0, 0.0, 50.0]
    assert all(p.y == 0.0 for p in template)


# --- Collapse / expand ---


def test_collapse_partitions_branches():
    nodes, branches = _load("wheatstone")
    matches = find_patterns(nodes, branches)
    simplified = collapse_patterns(nodes, branches, matches)

    super_node = simplified.super_nodes[0]
    assert super_node.id == "__super_0"
    assert "G1" in super_node.internal_branch_ids

    ordinary = {b.id for b in simplified.branches}
    internal = {b for s in simplified.super_nodes for b in s.internal_branch_ids}
    external = {c.branch_id for s in simplified.super_nodes for c in s.external_connections}
    assert ordinary | internal | external == {b.id for b in branches}
    assert not ordinary & internal
    assert not internal & external


def test_placement_units_rewire_external_branches():
    nodes, branches = _load("wheatstone")
    simplified = collapse_patterns(nodes, branches, find_patterns(nodes, branches))
    units, unit_branches = simplified.placement_units()

    unit_ids = {u.id for u in units}
    assert "__super_0" in unit_ids
    for branch in unit_branches:
        assert branch.from_node_id in unit_ids
        assert branch.to_node_id in unit_ids
    super_unit = next(u for u in units if u.id == "__super_0")
    assert super_unit.connected_branch_ids


def test_collapse_expand_round_trip():
    nodes, branches = _load("ladder")
    simplified = collapse_patterns(nodes, branches, find_patterns(nodes, branches))
    units, _ = simplified.placement_units()
    unit_positions = {u.id: Point(float(i * 300), 0.0) for i, u in enumerate(units)}

    positions = expand_patterns(simplified, unit_positions, scale=1.0)
    assert set(positions) == {n.id for n in nodes}
    for node in simplified.nodes:
        assert positions[node.id] == unit_positions[node.id]


def test_expand_applies_template_and_scale():
    nodes, branches = _load("diamond_bridge")
    matches = find_patterns(nodes, branches)
    simplified = collapse_patterns(nodes, branches, matches)
    positions = expand_patterns(simplified, {"__super_0": Point(100.0, 100.0)}, scale=2.0)

    left, top, bottom, right = matches[0].pattern.nodes
    assert positions[left] == Point(0.0, 100.0)
    assert positions[top] == Point(100.0, 0.0)
    assert positions[bottom] == Point(100.0, 200.0)
    assert positions[right] == Point(200.0, 100.0)


def test_expand_missing_super_position_uses_origin():
    nodes, branches = _load("t")
    simplified = collapse_patterns(nodes, branches, find_patterns(nodes, branches))
    positions = expand_patterns(simplified, {}, scale=1.0)
    assert positions["c"] == Point(0.0, 0.0)
    assert len(positions) == 4


def test_super_node_radius():
    nodes, branches = _load("diamond_bridge")
    simplified = collapse_patterns(nodes, branches, find_patterns(nodes, branches))
    assert super_node_radius(simplified.super_nodes[0], scale=1.5) == pytest.approx(75.0)


def test_external_connections_point_outwards():
    nodes, branches = _load("wheatstone")
    simplified = collapse_patterns(nodes, branches, find_patterns(nodes, branches))
    conns = {
        c.branch_id: (c.external_node_id, c.internal_node_id)
        for c in simplified.super_nodes[0].external_connections
    }
    assert conns == {"V1": ("s", "a"), "Rs": ("s", "d")}
    assert simplified.super_node_for("a") is simplified.super_nodes[0]
    assert simplified.super_node_for("s") is None


def test_branches_between_patterns_join_super_nodes():
    nodes, branches = _load("ladder")
    simplified = collapse_patterns(nodes, branches, find_patterns(nodes, branches))
    units, unit_branches = simplified.placement_units()

    assert {u.id for u in units} == {"__super_0", "__super_1"}
    joined = {b.id: {b.from_node_id, b.to_node_id} for b in unit_branches}
    assert joined == {
        "R2": {"__super_0", "__super_1"},
        "R5": {"__super_0", "__super_1"},
    }
