"""Graph-theory helpers over circuit topologies.

Topologies are undirected multigraphs: parallel branches are distinct
edges keyed by branch id. Everything here is rebuilt per call from the
node and branch lists, nothing mutates the input objects.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable

import networkx as nx

from circuit_layout.layout.constants import MAX_PATH_LENGTH
from circuit_layout.parser.model import Branch, ElectricalNode


def build_graph(nodes: Iterable[ElectricalNode], branches: Iterable[Branch]) -> nx.MultiGraph:
    """Build a networkx multigraph with one edge per branch (key = branch id)."""
    graph = nx.MultiGraph()
    for node in nodes:
        graph.add_node(node.id)
    for branch in branches:
        graph.add_edge(branch.from_node_id, branch.to_node_id, key=branch.id)
    return graph


def adjacency(
    nodes: Iterable[ElectricalNode], branches: Iterable[Branch]
) -> dict[str, list[tuple[str, str]]]:
    """Map node id -> [(neighbour id, branch id), ...] in branch order."""
    adj: dict[str, list[tuple[str, str]]] = {node.id: [] for node in nodes}
    for branch in branches:
        adj.setdefault(branch.from_node_id, []).append((branch.to_node_id, branch.id))
        if not branch.is_self_loop:
            adj.setdefault(branch.to_node_id, []).append((branch.from_node_id, branch.id))
    return adj


def degree_map(
    nodes: Iterable[ElectricalNode], branches: Iterable[Branch]
) -> dict[str, int]:
    """Branch incidences per node. A self-loop counts twice."""
    return dict(build_graph(nodes, branches).degree)


def neighbours(adj: dict[str, list[tuple[str, str]]], node_id: str) -> list[str]:
    """Distinct neighbours of ``node_id`` in first-seen order (no self)."""
    seen: dict[str, None] = {}
    for other, _ in adj.get(node_id, []):
        if other != node_id:
            seen[other] = None
    return list(seen)


def bfs_order(graph: nx.MultiGraph, start: str) -> list[str]:
    """Breadth-first visiting order from ``start``.

    Neighbours are visited in the order their first branch was added.
    """
    return [start] + [v for _, v in nx.bfs_edges(graph, start)]


def dfs_order(graph: nx.MultiGraph, start: str) -> list[str]:
    """Depth-first (preorder) visiting order from ``start``."""
    return list(nx.dfs_preorder_nodes(graph, start))


def connected_components(graph: nx.MultiGraph) -> list[list[str]]:
    """Connected components, each listed in graph insertion order."""
    position = {node_id: i for i, node_id in enumerate(graph.nodes)}
    components = [
        sorted(component, key=position.__getitem__)
        for component in nx.connected_components(graph)
    ]
    components.sort(key=lambda comp: position[comp[0]])
    return components


def has_cycle(graph: nx.MultiGraph) -> bool:
    """True if the multigraph contains any cycle (parallel pairs and self-loops included)."""
    return graph.number_of_edges() > graph.number_of_nodes() - nx.number_connected_components(graph)


def spanning_forest_order(
    nodes: list[ElectricalNode], branches: list[Branch]
) -> list[str]:
    """Node ids in BFS order over a spanning forest.

    Each component starts from its highest-degree node (first in input
    order on ties). Neighbouring nodes therefore end up close together
    when the order is laid out around a circle.
    """
    graph = build_graph(nodes, branches)
    degree = dict(graph.degree)
    rank = {node.id: i for i, node in enumerate(nodes)}

    order: list[str] = []
    for component in connected_components(graph):
        root = max(component, key=lambda n: (degree[n], -rank[n]))
        order.extend(bfs_order(graph, root))
    return order


def simple_paths(
    graph: nx.MultiGraph,
    source: str,
    target: str,
    cutoff: int = MAX_PATH_LENGTH - 1,
) -> list[tuple[list[str], list[str]]]:
    """All simple paths up to ``cutoff`` branches long.

    Returns ``(node ids, branch ids)`` pairs. Parallel branches yield
    distinct paths.
    """
    paths = []
    for edge_path in nx.all_simple_edge_paths(graph, source, target, cutoff=cutoff):
        node_path = [source]
        branch_path = []
        for u, v, key in edge_path:
            node_path.append(v if u == node_path[-1] else u)
            branch_path.append(key)
        paths.append((node_path, branch_path))
    return paths


def find_disjoint_paths(
    graph: nx.MultiGraph,
    source: str,
    target: str,
    cutoff: int = MAX_PATH_LENGTH - 1,
) -> list[tuple[tuple[list[str], list[str]], tuple[list[str], list[str]]]]:
    """Pairs of internally node-disjoint, branch-disjoint paths between two nodes."""
    paths = simple_paths(graph, source, target, cutoff)
    pairs = []
    for i, (nodes_a, branches_a) in enumerate(paths):
        inner_a = set(nodes_a[1:-1])
        for nodes_b, branches_b in paths[i + 1:]:
            if inner_a & set(nodes_b[1:-1]):
                continue
            if set(branches_a) & set(branches_b):
                continue
            pairs.append(((nodes_a, branches_a), (nodes_b, branches_b)))
    return pairs


def induced_branches(branches: Iterable[Branch], node_ids: set[str]) -> list[Branch]:
    """Branches with both endpoints inside ``node_ids``."""
    return [
        b for b in branches if b.from_node_id in node_ids and b.to_node_id in node_ids
    ]


def degree_sequence(branches: Iterable[Branch], node_ids: Iterable[str]) -> list[int]:
    """Sorted (descending) degree sequence of the subgraph induced by ``node_ids``."""
    ids = set(node_ids)
    counts: dict[str, int] = defaultdict(int)
    for node_id in ids:
        counts[node_id] = 0
    for branch in induced_branches(branches, ids):
        counts[branch.from_node_id] += 1
        counts[branch.to_node_id] += 1
    return sorted(counts.values(), reverse=True)


def matches_structure(
    branches: Iterable[Branch], node_ids: Iterable[str], expected: list[int]
) -> bool:
    """True if the induced subgraph has exactly the ``expected`` degree sequence."""
    return degree_sequence(branches, node_ids) == sorted(expected, reverse=True)


def parallel_groups(branches: Iterable[Branch]) -> dict[tuple[str, str], list[Branch]]:
    """Group branches by unordered endpoint pair, in branch order."""
    groups: dict[tuple[str, str], list[Branch]] = defaultdict(list)
    for branch in branches:
        a, b = sorted((branch.from_node_id, branch.to_node_id))
        groups[(a, b)].append(branch)
    return dict(groups)
