"""Data model for circuit topologies and their computed layouts."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class InvalidGraphError(ValueError):
    """Raised when a topology cannot be laid out."""


@dataclass(frozen=True)
class Point:
    """A 2D coordinate."""

    x: float
    y: float


@dataclass
class ElectricalNode:
    """A node of the circuit topology."""

    id: str
    connected_branch_ids: list[str] = field(default_factory=list)
    # Display text; the id is drawn when unset
    label: str | None = None


@dataclass
class Branch:
    """An undirected edge between two electrical nodes.

    ``kind`` only distinguishes branches from each other; the layout never
    reads electrical values.
    """

    id: str
    kind: str
    from_node_id: str
    to_node_id: str
    label: str | None = None

    @property
    def is_self_loop(self) -> bool:
        return self.from_node_id == self.to_node_id

    def other_end(self, node_id: str) -> str:
        """Return the endpoint opposite ``node_id``."""
        return self.to_node_id if self.from_node_id == node_id else self.from_node_id


@dataclass
class Topology:
    """Complete circuit topology (undirected multigraph)."""

    nodes: list[ElectricalNode] = field(default_factory=list)
    branches: list[Branch] = field(default_factory=list)

    def add_node(self, node: ElectricalNode) -> None:
        self.nodes.append(node)

    def add_branch(self, branch: Branch) -> None:
        self.branches.append(branch)
        for node in self.nodes:
            if node.id in (branch.from_node_id, branch.to_node_id):
                if branch.id not in node.connected_branch_ids:
                    node.connected_branch_ids.append(branch.id)

    def node_ids(self) -> set[str]:
        return {node.id for node in self.nodes}

    def node(self, node_id: str) -> ElectricalNode | None:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def branch(self, branch_id: str) -> Branch | None:
        for branch in self.branches:
            if branch.id == branch_id:
                return branch
        return None


# ---------------------------------------------------------------------------
# Pattern recognition
# ---------------------------------------------------------------------------


class PatternType(Enum):
    """Kind of recognised sub-topology, in detection priority order."""

    BRIDGE = "bridge"
    PI = "pi"
    T = "t"
    SERIES = "series"


@dataclass(frozen=True)
class CircuitPattern:
    """A recognised sub-topology with its ideal relative layout.

    ``nodes[i]`` is drawn at ``geometric_template[i]``, relative to the
    position of the super-node that stands in for the pattern.
    """

    type: PatternType
    nodes: tuple[str, ...]
    branches: tuple[str, ...]
    geometric_template: tuple[Point, ...]


@dataclass
class PatternMatch:
    """A concrete occurrence of a pattern in the topology."""

    pattern: CircuitPattern
    node_mapping: dict[str, int]
    branch_mapping: dict[str, int]


@dataclass(frozen=True)
class ExternalConnection:
    """A branch crossing the boundary of a collapsed pattern."""

    external_node_id: str
    internal_node_id: str
    branch_id: str


@dataclass
class SuperNode:
    """Placeholder for a collapsed pattern during placement."""

    id: str
    pattern_match: PatternMatch
    external_connections: list[ExternalConnection] = field(default_factory=list)
    # Branches with both ends inside the pattern (template branches + chords)
    internal_branch_ids: list[str] = field(default_factory=list)


@dataclass
class SimplifiedGraph:
    """Topology with every matched pattern replaced by a super-node."""

    nodes: list[ElectricalNode] = field(default_factory=list)
    branches: list[Branch] = field(default_factory=list)
    super_nodes: list[SuperNode] = field(default_factory=list)

    def super_node_for(self, node_id: str) -> SuperNode | None:
        """Return the super-node that swallowed ``node_id``, if any."""
        for super_node in self.super_nodes:
            if node_id in super_node.pattern_match.node_mapping:
                return super_node
        return None

    def placement_units(self) -> tuple[list[ElectricalNode], list[Branch]]:
        """Return the units and branches to hand to the node placer.

        External-connection branches are rewired so that their inner end
        points at the owning super-node. Each rewired branch keeps its id.
        """
        branches = list(self.branches)
        seen: set[str] = {b.id for b in branches}
        for super_node in self.super_nodes:
            for conn in super_node.external_connections:
                if conn.branch_id in seen:
                    continue
                seen.add(conn.branch_id)
                # Branches between two patterns join the two super-nodes
                far = self.super_node_for(conn.external_node_id)
                branches.append(
                    Branch(
                        id=conn.branch_id,
                        kind="external",
                        from_node_id=super_node.id,
                        to_node_id=far.id if far is not None else conn.external_node_id,
                    )
                )

        unit_ids = [n.id for n in self.nodes] + [s.id for s in self.super_nodes]
        units = [
            ElectricalNode(
                id=unit_id,
                connected_branch_ids=[
                    b.id for b in branches if unit_id in (b.from_node_id, b.to_node_id)
                ],
            )
            for unit_id in unit_ids
        ]
        return units, branches


# ---------------------------------------------------------------------------
# Layout output
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ArrowPoint:
    """Arrowhead anchor and orientation (radians) on an edge."""

    x: float
    y: float
    angle: float


@dataclass
class LayoutNode:
    """Positioned node ready for drawing."""

    id: str
    x: float
    y: float
    label: str
    label_pos: Point

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "x": self.x,
            "y": self.y,
            "label": self.label,
            "labelPos": {"x": self.label_pos.x, "y": self.label_pos.y},
        }


@dataclass
class LayoutEdge:
    """Routed edge ready for drawing."""

    id: str
    source_id: str
    target_id: str
    path: str
    arrow_point: ArrowPoint
    label: str
    label_pos: Point
    is_curved: bool

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sourceId": self.source_id,
            "targetId": self.target_id,
            "path": self.path,
            "arrowPoint": {
                "x": self.arrow_point.x,
                "y": self.arrow_point.y,
                "angle": self.arrow_point.angle,
            },
            "label": self.label,
            "labelPos": {"x": self.label_pos.x, "y": self.label_pos.y},
            "isCurved": self.is_curved,
        }


@dataclass
class LayoutGraph:
    """Complete geometric representation of a topology."""

    width: float
    height: float
    nodes: list[LayoutNode] = field(default_factory=list)
    edges: list[LayoutEdge] = field(default_factory=list)

    def node(self, node_id: str) -> LayoutNode | None:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def edge(self, edge_id: str) -> LayoutEdge | None:
        for edge in self.edges:
            if edge.id == edge_id:
                return edge
        return None

    def to_dict(self) -> dict:
        return {
            "width": self.width,
            "height": self.height,
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
        }
