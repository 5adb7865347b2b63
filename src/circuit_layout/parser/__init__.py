"""Topology readers and the shared data model."""

from circuit_layout.parser.topology import parse_topology, topology_from_dict

__all__ = ["parse_topology", "topology_from_dict"]
