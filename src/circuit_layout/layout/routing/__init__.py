"""Edge routing subpackage for circuit layout.

Public API:
- route_edges: Main edge routing dispatcher
- RoutedPath: Routed path dataclass
- PathGeometry: One line/quadratic/cubic drawing segment
- parse_path_data / path_points: Decode path strings
- parallel_offsets: Arrow offsets for parallel branch groups
"""

from circuit_layout.layout.routing.common import (
    PathGeometry,
    RoutedPath,
    parse_path_data,
    path_points,
)
from circuit_layout.layout.routing.core import route_edges
from circuit_layout.layout.routing.parallel import arrow_offsets, parallel_offsets

__all__ = [
    "PathGeometry",
    "RoutedPath",
    "arrow_offsets",
    "parallel_offsets",
    "parse_path_data",
    "path_points",
    "route_edges",
]
