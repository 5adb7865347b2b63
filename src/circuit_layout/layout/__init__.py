"""Layout engine: pattern recognition, placement, routing and labels."""

from circuit_layout.layout.engine import (
    LayoutEngine,
    LayoutOptions,
    compute_layout,
    validate_topology,
)

__all__ = ["LayoutEngine", "LayoutOptions", "compute_layout", "validate_topology"]
