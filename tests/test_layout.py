"""Tests for the layout engine."""

import math

import pytest

from circuit_layout.layout.engine import LayoutEngine, LayoutOptions, compute_layout
from circuit_layout.parser.model import (
    Branch,
    ElectricalNode,
    InvalidGraphError,
    Point,
    Topology,
)
from circuit_layout.parser.topology import topology_from_dict


def _topology(node_ids, edges):
    topology = Topology()
    for n in node_ids:
        topology.add_node(ElectricalNode(id=n))
    for b, u, v in edges:
        topology.add_branch(Branch(id=b, kind="resistor", from_node_id=u, to_node_id=v))
    return topology


def _arrow(edge):
    return Point(edge.arrow_point.x, edge.arrow_point.y)


# --- Validation ---


def test_empty_nodes_rejected():
    with pytest.raises(InvalidGraphError):
        compute_layout(Topology())


def test_empty_branches_rejected():
    with pytest.raises(InvalidGraphError):
        compute_layout(_topology(["a", "b"], []))


def test_unknown_endpoint_rejected():
    with pytest.raises(InvalidGraphError, match="ghost"):
        compute_layout(_topology(["a"], [("r1", "a", "ghost")]))


def test_invalid_graph_error_is_value_error():
    assert issubclass(InvalidGraphError, ValueError)


def test_unknown_option_rejected():
    with pytest.raises(TypeError):
        LayoutEngine(no_such_option=True)


# --- Scenarios ---


def test_single_branch_layout():
    layout = compute_layout(_topology(["n1", "n2"], [("R1", "n1", "n2")]))
    assert len(layout.nodes) == 2
    assert len(layout.edges) == 1
    edge = layout.edges[0]
    assert edge.is_curved is False
    assert edge.path.startswith("M ")
    assert edge.source_id == "n1" and edge.target_id == "n2"


def test_parallel_pair_layout():
    layout = compute_layout(_topology(["n1", "n2"], [("R1", "n1", "n2"), ("R2", "n1", "n2")]))
    assert len(layout.nodes) == 2
    assert len(layout.edges) == 2
    assert any(e.is_curved for e in layout.edges)
    a, b = (_arrow(e) for e in layout.edges)
    assert math.hypot(a.x - b.x, a.y - b.y) >= 24 - 1e-6


def test_self_loop_does_not_crash():
    layout = compute_layout(_topology(["n1", "n2"], [("R1", "n1", "n2"), ("L1", "n2", "n2")]))
    loop = layout.edge("L1")
    assert loop.is_curved
    assert " C " in loop.path


def test_disconnected_components_do_not_overlap():
    layout = compute_layout(
        _topology(["a", "b", "c", "d"], [("r1", "a", "b"), ("r2", "c", "d")])
    )
    points = {(round(n.x), round(n.y)) for n in layout.nodes}
    assert len(points) == 4


def test_layout_starts_at_padding():
    layout = compute_layout(_topology(["n1", "n2"], [("R1", "n1", "n2")]), padding=25)
    assert min(n.x for n in layout.nodes) == pytest.approx(25)
    assert min(n.y for n in layout.nodes) == pytest.approx(25)
    assert layout.width >= max(n.x for n in layout.nodes) + 25
    assert layout.height >= max(n.y for n in layout.nodes) + 25


def test_layout_is_deterministic():
    topology = _topology(
        ["a", "b", "c", "d", "e"],
        [("r1", "a", "b"), ("r2", "b", "c"), ("r3", "c", "a"), ("r4", "c", "d"), ("r5", "d", "e")],
    )
    first = compute_layout(topology, prioritize_planarity=True, seed=11)
    second = compute_layout(topology, prioritize_planarity=True, seed=11)
    assert first.to_dict() == second.to_dict()


def test_pattern_recognition_can_be_disabled():
    topology = _topology(
        ["a", "b", "c", "d"],
        [("r1", "a", "b"), ("r2", "b", "d"), ("r3", "d", "c"), ("r4", "c", "a")],
    )
    layout = LayoutEngine(LayoutOptions(use_pattern_recognition=False)).calculate_layout(topology)
    assert len(layout.nodes) == 4
    assert len(layout.edges) == 4


def test_labels_default_to_ids():
    layout = compute_layout(_topology(["n1", "n2"], [("R1", "n1", "n2")]))
    assert layout.node("n1").label == "n1"
    assert layout.edge("R1").label == "R1"


def test_refine_iterations_keep_every_node():
    topology = _topology(
        ["a", "b", "c", "d"],
        [("r1", "a", "b"), ("r2", "b", "c"), ("r3", "c", "d"), ("r4", "d", "a"), ("r5", "a", "c")],
    )
    layout = compute_layout(topology, refine_iterations=30)
    assert {n.id for n in layout.nodes} == {"a", "b", "c", "d"}


def test_to_dict_uses_camel_case():
    layout = compute_layout(_topology(["n1", "n2"], [("R1", "n1", "n2")]))
    data = layout.to_dict()
    edge = data["edges"][0]
    assert set(edge) == {
        "id", "sourceId", "targetId", "path", "arrowPoint", "label", "labelPos", "isCurved",
    }
    assert set(edge["arrowPoint"]) == {"x", "y", "angle"}
    assert set(data["nodes"][0]) == {"id", "x", "y", "label", "labelPos"}


def test_dict_input_round_trip():
    topology = topology_from_dict(
        {
            "nodes": [{"id": "a", "connectedBranchIds": ["b1"]}, {"id": "b"}],
            "branches": [{"id": "b1", "type": "capacitor", "from": "a", "to": "b"}],
        }
    )
    layout = compute_layout(topology)
    assert [e.id for e in layout.edges] == ["b1"]


def test_optimization_option_lays_out_every_node():
    topology = _topology(
        ["a", "b", "c", "d", "e"],
        [("r1", "a", "b"), ("r2", "b", "c"), ("r3", "c", "d"), ("r4", "d", "e"), ("r5", "e", "a"),
         ("r6", "a", "c")],
    )
    first = compute_layout(topology, use_optimization=True)
    assert {n.id for n in first.nodes} == {"a", "b", "c", "d", "e"}
    assert first.to_dict() == compute_layout(topology, use_optimization=True).to_dict()


def test_canvas_covers_long_labels():
    topology = _topology(["n1", "n2"], [("R1", "n1", "n2")])
    topology.node("n2").label = "a rather long output terminal name"
    layout = compute_layout(topology)
    text_width = len(topology.node("n2").label) * 8
    node = layout.node("n2")
    assert layout.width >= node.x + text_width / 2
