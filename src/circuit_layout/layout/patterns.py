"""Recognition of textbook sub-topologies and their collapse into super-nodes.

Detection runs in a fixed priority order (bridge, pi, T, series). A node or
branch claimed by one match is never reused by a later one; the claim sets
live for a single find_patterns() call.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass, field
from itertools import combinations

from circuit_layout.layout.constants import PATTERN_SCALE, SUPER_NODE_PREFIX, TEMPLATE_SIZE
from circuit_layout.layout.graph_theory import (
    adjacency,
    build_graph,
    degree_map,
    find_disjoint_paths,
    induced_branches,
    matches_structure,
    neighbours,
)
from circuit_layout.parser.model import (
    Branch,
    CircuitPattern,
    ElectricalNode,
    ExternalConnection,
    PatternMatch,
    PatternType,
    Point,
    SimplifiedGraph,
    SuperNode,
)

logger = logging.getLogger(__name__)

_HALF = TEMPLATE_SIZE / 2

BRIDGE_TEMPLATE: tuple[Point, ...] = (
    Point(-_HALF, 0.0),  # left
    Point(0.0, -_HALF),  # top
    Point(0.0, _HALF),  # bottom
    Point(_HALF, 0.0),  # right
)

# Equilateral triangle of side TEMPLATE_SIZE around its centroid
_TRI_HEIGHT = TEMPLATE_SIZE * math.sqrt(3) / 2
PI_TEMPLATE: tuple[Point, ...] = (
    Point(0.0, -_TRI_HEIGHT * 2 / 3),
    Point(-_HALF, _TRI_HEIGHT / 3),
    Point(_HALF, _TRI_HEIGHT / 3),
)

T_TEMPLATE: tuple[Point, ...] = (
    Point(0.0, 0.0),  # centre
    Point(-_HALF, 0.0),
    Point(_HALF, 0.0),
    Point(0.0, -_HALF),
)


def series_template(count: int) -> tuple[Point, ...]:
    """Evenly spaced horizontal row of ``count`` points centred on the origin."""
    step = _HALF
    start = -step * (count - 1) / 2
    return tuple(Point(start + i * step, 0.0) for i in range(count))


@dataclass
class _MatchCtx:
    """Scratch state shared by the detectors of one find_patterns() call."""

    nodes: list[ElectricalNode]
    branches: list[Branch]
    adj: dict[str, list[tuple[str, str]]]
    degree: dict[str, int]
    used_nodes: set[str] = field(default_factory=set)
    used_branches: set[str] = field(default_factory=set)

    def is_free(self, node_ids, branch_ids=()) -> bool:
        return not (set(node_ids) & self.used_nodes) and not (
            set(branch_ids) & self.used_branches
        )

    def claim(self, match: PatternMatch) -> None:
        self.used_nodes.update(match.node_mapping)
        self.used_branches.update(match.branch_mapping)


def _make_match(
    kind: PatternType,
    node_ids: list[str],
    branch_ids: list[str],
    template: tuple[Point, ...],
) -> PatternMatch:
    pattern = CircuitPattern(
        type=kind,
        nodes=tuple(node_ids),
        branches=tuple(branch_ids),
        geometric_template=template,
    )
    return PatternMatch(
        pattern=pattern,
        node_mapping={n: i for i, n in enumerate(node_ids)},
        branch_mapping={b: i for i, b in enumerate(branch_ids)},
    )


def _detect_bridges(ctx: _MatchCtx) -> list[PatternMatch]:
    """Diamonds: two non-adjacent nodes joined by two disjoint two-branch paths."""
    graph = build_graph(ctx.nodes, ctx.branches)
    matches = []
    node_ids = [n.id for n in ctx.nodes]
    for a, b in combinations(node_ids, 2):
        if not ctx.is_free((a, b)):
            continue
        if graph.has_edge(a, b):
            continue
        # A union of 4 nodes and 4 branches bounds each path at two branches
        for (nodes_a, branches_a), (nodes_b, branches_b) in find_disjoint_paths(
            graph, a, b, cutoff=2
        ):
            members = [a, nodes_a[1], nodes_b[1], b]
            branch_ids = [branches_a[0], branches_a[1], branches_b[0], branches_b[1]]
            if len(set(members)) != 4 or len(set(branch_ids)) != 4:
                continue
            if not ctx.is_free(members, branch_ids):
                continue
            match = _make_match(PatternType.BRIDGE, members, branch_ids, BRIDGE_TEMPLATE)
            ctx.claim(match)
            matches.append(match)
            break
    return matches


def _detect_pis(ctx: _MatchCtx) -> list[PatternMatch]:
    """Triangles: three nodes whose induced subgraph is a 3-cycle.

    Degrees are counted inside the triple, so a pi network keeps its
    terminals to the rest of the circuit.
    """
    matches = []
    for triple in combinations([n.id for n in ctx.nodes], 3):
        if not ctx.is_free(triple):
            continue
        inner = induced_branches(ctx.branches, set(triple))
        if len(inner) != 3 or any(b.is_self_loop for b in inner):
            continue
        if not matches_structure(inner, triple, [2, 2, 2]):
            continue
        branch_ids = [b.id for b in inner]
        if not ctx.is_free((), branch_ids):
            continue
        match = _make_match(PatternType.PI, list(triple), branch_ids, PI_TEMPLATE)
        ctx.claim(match)
        matches.append(match)
    return matches


def _detect_ts(ctx: _MatchCtx) -> list[PatternMatch]:
    """Stars: a degree-3 centre whose three distinct neighbours are leaves of the star."""
    matches = []
    for node in ctx.nodes:
        centre = node.id
        if centre in ctx.used_nodes or ctx.degree[centre] != 3:
            continue
        spokes = neighbours(ctx.adj, centre)
        if len(spokes) != 3:
            continue
        members = [centre, *spokes]
        if not ctx.is_free(members):
            continue
        inner = induced_branches(ctx.branches, set(members))
        if len(inner) != 3 or not matches_structure(inner, members, [3, 1, 1, 1]):
            continue
        branch_ids = [b.id for b in inner]
        if not ctx.is_free((), branch_ids):
            continue
        match = _make_match(PatternType.T, members, branch_ids, T_TEMPLATE)
        ctx.claim(match)
        matches.append(match)
    return matches


def _detect_series(ctx: _MatchCtx) -> list[PatternMatch]:
    """Chains: walk from a degree-1 node through nodes with at most two neighbours."""
    matches = []
    for node in ctx.nodes:
        start = node.id
        if start in ctx.used_nodes or ctx.degree[start] != 1:
            continue

        chain = [start]
        chain_branches: list[str] = []
        current = start
        while True:
            step = next(
                (
                    (other, branch_id)
                    for other, branch_id in ctx.adj[current]
                    if other not in chain and branch_id not in ctx.used_branches
                ),
                None,
            )
            if step is None:
                break
            other, branch_id = step
            if other in ctx.used_nodes or len(neighbours(ctx.adj, other)) > 2:
                break
            chain.append(other)
            chain_branches.append(branch_id)
            current = other
            if ctx.degree[other] == 1:
                break

        if len(chain) < 3:
            continue
        match = _make_match(
            PatternType.SERIES, chain, chain_branches, series_template(len(chain))
        )
        ctx.claim(match)
        matches.append(match)
    return matches


_DETECTORS: dict[PatternType, Callable[[_MatchCtx], list[PatternMatch]]] = {
    PatternType.BRIDGE: _detect_bridges,
    PatternType.PI: _detect_pis,
    PatternType.T: _detect_ts,
    PatternType.SERIES: _detect_series,
}


def find_patterns(nodes: list[ElectricalNode], branches: list[Branch]) -> list[PatternMatch]:
    """Detect non-overlapping bridge, pi, T and series patterns."""
    ctx = _MatchCtx(
        nodes=list(nodes),
        branches=list(branches),
        adj=adjacency(nodes, branches),
        degree=degree_map(nodes, branches),
    )
    matches: list[PatternMatch] = []
    for kind in PatternType:
        found = _DETECTORS[kind](ctx)
        if found:
            logger.debug("Found %d %s pattern(s)", len(found), kind.value)
        matches.extend(found)
    return matches


def collapse_patterns(
    nodes: list[ElectricalNode],
    branches: list[Branch],
    matches: list[PatternMatch],
) -> SimplifiedGraph:
    """Replace every match with a super-node.

    Branches with both ends in one match become internal to it; branches
    with exactly one end inside become external connections.
    """
    owner: dict[str, SuperNode] = {}
    super_nodes: list[SuperNode] = []
    for i, match in enumerate(matches):
        super_node = SuperNode(id=f"{SUPER_NODE_PREFIX}{i}", pattern_match=match)
        super_nodes.append(super_node)
        for node_id in match.node_mapping:
            owner[node_id] = super_node

    ordinary_branches: list[Branch] = []
    for branch in branches:
        src_owner = owner.get(branch.from_node_id)
        tgt_owner = owner.get(branch.to_node_id)
        if src_owner is None and tgt_owner is None:
            ordinary_branches.append(branch)
        elif src_owner is tgt_owner:
            src_owner.internal_branch_ids.append(branch.id)
        else:
            if src_owner is not None:
                src_owner.external_connections.append(
                    ExternalConnection(
                        external_node_id=branch.other_end(branch.from_node_id),
                        internal_node_id=branch.from_node_id,
                        branch_id=branch.id,
                    )
                )
            if tgt_owner is not None:
                tgt_owner.external_connections.append(
                    ExternalConnection(
                        external_node_id=branch.other_end(branch.to_node_id),
                        internal_node_id=branch.to_node_id,
                        branch_id=branch.id,
                    )
                )

    ordinary_ids = {b.id for b in ordinary_branches}
    ordinary_nodes = [
        ElectricalNode(
            id=node.id,
            connected_branch_ids=[b for b in node.connected_branch_ids if b in ordinary_ids],
        )
        for node in nodes
        if node.id not in owner
    ]
    return SimplifiedGraph(
        nodes=ordinary_nodes, branches=ordinary_branches, super_nodes=super_nodes
    )


def super_node_radius(super_node: SuperNode, scale: float = PATTERN_SCALE) -> float:
    """Distance from a super-node centre to its farthest expanded member."""
    template = super_node.pattern_match.pattern.geometric_template
    return max((math.hypot(p.x, p.y) for p in template), default=0.0) * scale


def expand_patterns(
    simplified: SimplifiedGraph,
    super_node_positions: dict[str, Point],
    scale: float = PATTERN_SCALE,
) -> dict[str, Point]:
    """Map placed units back to original node positions.

    ``super_node_positions`` holds the position of every placement unit.
    Ordinary nodes pass through unchanged; members of a super-node land at
    ``centre + template[index] * scale``.
    """
    positions: dict[str, Point] = {}
    for node in simplified.nodes:
        if node.id in super_node_positions:
            positions[node.id] = super_node_positions[node.id]

    for super_node in simplified.super_nodes:
        centre = super_node_positions.get(super_node.id)
        if centre is None:
            logger.warning("No position for %s, expanding at origin", super_node.id)
            centre = Point(0.0, 0.0)
        template = super_node.pattern_match.pattern.geometric_template
        for node_id, index in super_node.pattern_match.node_mapping.items():
            offset = template[index]
            positions[node_id] = Point(
                centre.x + offset.x * scale, centre.y + offset.y * scale
            )
    return positions
