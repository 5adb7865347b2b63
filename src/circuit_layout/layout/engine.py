"""Layout coordinator: validates a topology and runs the layout pipeline.

collapse patterns -> place -> (anneal) -> expand -> (refine) -> route ->
translate to canvas space -> place labels -> assemble the LayoutGraph.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields, replace

from circuit_layout.layout.constants import (
    ALIGNMENT_TOLERANCE,
    ANNEALING_ITERATIONS,
    CANVAS_PADDING,
    DEFAULT_SEED,
    GRID_SIZE,
    MIN_PARALLEL_CLEARANCE,
    PATTERN_SCALE,
    REFINE_ITERATIONS,
)
from circuit_layout.layout.geometry import bounding_box
from circuit_layout.layout.labels import place_labels
from circuit_layout.layout.patterns import (
    collapse_patterns,
    expand_patterns,
    find_patterns,
    super_node_radius,
)
from circuit_layout.layout.placement import (
    optimize_placement,
    place_nodes,
    place_nodes_for_planarity,
    refine_layout,
)
from circuit_layout.layout.routing import RoutedPath, route_edges
from circuit_layout.parser.model import (
    InvalidGraphError,
    LayoutEdge,
    LayoutGraph,
    LayoutNode,
    Point,
    Topology,
)

logger = logging.getLogger(__name__)


@dataclass
class LayoutOptions:
    """Tunable knobs of the layout pipeline."""

    use_pattern_recognition: bool = True
    prioritize_planarity: bool = False
    use_optimization: bool = False
    annealing_iterations: int = ANNEALING_ITERATIONS
    seed: int = DEFAULT_SEED
    grid_size: float = GRID_SIZE
    alignment_tolerance: float = ALIGNMENT_TOLERANCE
    min_parallel_clearance: float = MIN_PARALLEL_CLEARANCE
    pattern_scale: float = PATTERN_SCALE
    refine_iterations: int = REFINE_ITERATIONS
    padding: float = CANVAS_PADDING


def validate_topology(topology: Topology) -> None:
    """Raise InvalidGraphError if the topology cannot be laid out."""
    if not topology.nodes:
        raise InvalidGraphError("Topology has no nodes")
    if not topology.branches:
        raise InvalidGraphError("Topology has no branches")
    known = topology.node_ids()
    for branch in topology.branches:
        for endpoint in (branch.from_node_id, branch.to_node_id):
            if endpoint not in known:
                raise InvalidGraphError(
                    f"Branch '{branch.id}' references unknown node '{endpoint}'"
                )


class LayoutEngine:
    """Computes a LayoutGraph for a circuit topology."""

    def __init__(self, options: LayoutOptions | None = None, **overrides) -> None:
        options = options or LayoutOptions()
        known = {f.name for f in fields(LayoutOptions)}
        unknown = set(overrides) - known
        if unknown:
            raise TypeError(f"Unknown layout option(s): {', '.join(sorted(unknown))}")
        self.options = replace(options, **overrides)

    def calculate_layout(self, topology: Topology) -> LayoutGraph:
        validate_topology(topology)
        opts = self.options

        positions = self._place(topology)
        routes = route_edges(topology.branches, positions, opts.min_parallel_clearance)

        # Translate so the drawing (nodes and paths) starts at the padding offset
        extent_points = list(positions.values())
        for route in routes.values():
            extent_points.extend(route.points)
        min_x, min_y, _, _ = bounding_box(extent_points)
        dx = opts.padding - min_x
        dy = opts.padding - min_y
        positions = {n: Point(p.x + dx, p.y + dy) for n, p in positions.items()}
        routes = {b: r.translated(dx, dy) for b, r in routes.items()}

        node_labels, edge_labels = place_labels(
            positions,
            routes,
            node_labels={n.id: n.label for n in topology.nodes if n.label is not None},
            edge_labels={b.id: b.label for b in topology.branches if b.label is not None},
        )

        extent_points = list(positions.values())
        for route in routes.values():
            extent_points.extend(route.points)
        for label in [*node_labels.values(), *edge_labels.values()]:
            left, top, right, bottom = label.box
            extent_points.extend([Point(left, top), Point(right, bottom)])
        _, _, max_x, max_y = bounding_box(extent_points)

        return LayoutGraph(
            width=max_x + opts.padding,
            height=max_y + opts.padding,
            nodes=[
                LayoutNode(
                    id=node.id,
                    x=positions[node.id].x,
                    y=positions[node.id].y,
                    label=node_labels[node.id].text,
                    label_pos=node_labels[node.id].point,
                )
                for node in topology.nodes
            ],
            edges=[
                _layout_edge(routes[branch.id], edge_labels[branch.id].text,
                             edge_labels[branch.id].point)
                for branch in topology.branches
            ],
        )

    def _place(self, topology: Topology) -> dict[str, Point]:
        """Node positions centred on the origin, one per topology node."""
        opts = self.options
        nodes, branches = topology.nodes, topology.branches

        simplified = None
        radii: dict[str, float] = {}
        if opts.use_pattern_recognition:
            matches = find_patterns(nodes, branches)
            if matches:
                simplified = collapse_patterns(nodes, branches, matches)
                nodes, branches = simplified.placement_units()
                radii = {
                    s.id: super_node_radius(s, opts.pattern_scale)
                    for s in simplified.super_nodes
                }
                logger.debug(
                    "Collapsed %d pattern(s): %d placement unit(s)", len(matches), len(nodes)
                )

        place = optimize_placement if opts.use_optimization else place_nodes
        placement = place(
            nodes,
            branches,
            grid_size=opts.grid_size,
            alignment_tolerance=opts.alignment_tolerance,
            radii=radii,
        )
        positions = placement.positions
        if opts.prioritize_planarity:
            positions = place_nodes_for_planarity(
                nodes,
                branches,
                iterations=opts.annealing_iterations,
                seed=opts.seed,
                initial=positions,
                radii=radii,
            )

        if simplified is not None:
            positions = expand_patterns(simplified, positions, opts.pattern_scale)

        if opts.refine_iterations > 0:
            positions = refine_layout(
                positions, topology.nodes, topology.branches, opts.refine_iterations
            )

        result = {}
        for node in topology.nodes:
            if node.id not in positions:
                logger.warning("Node %s was not placed, using origin", node.id)
            result[node.id] = positions.get(node.id, Point(0.0, 0.0))
        return result


def _layout_edge(route: RoutedPath, label: str, label_pos: Point) -> LayoutEdge:
    return LayoutEdge(
        id=route.branch_id,
        source_id=route.source_id,
        target_id=route.target_id,
        path=route.path,
        arrow_point=route.arrow_point,
        label=label,
        label_pos=label_pos,
        is_curved=route.is_curved,
    )


def compute_layout(topology: Topology, **options) -> LayoutGraph:
    """Functional wrapper around LayoutEngine(**options).calculate_layout()."""
    return LayoutEngine(**options).calculate_layout(topology)
