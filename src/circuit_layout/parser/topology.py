"""Reader for JSON circuit topology documents.

Accepts camelCase (``fromNodeId``) or snake_case (``from_node_id``) keys,
and ``type`` as an alias of ``kind``. Node ``connectedBranchIds`` are
derived from the branches when absent. An optional ``label`` on a node or
branch replaces its id as display text.
"""

from __future__ import annotations

import json

from circuit_layout.parser.model import Branch, ElectricalNode, Topology

_BRANCH_KEYS = {
    "from_node_id": ("fromNodeId", "from_node_id", "from", "source"),
    "to_node_id": ("toNodeId", "to_node_id", "to", "target"),
}


def _pick(entry: dict, aliases: tuple[str, ...], what: str):
    for key in aliases:
        if key in entry:
            return entry[key]
    raise ValueError(f"{what} is missing '{aliases[0]}'")


def _as_id(value, what: str) -> str:
    if isinstance(value, bool) or not isinstance(value, (str, int)):
        raise ValueError(f"{what} must be a string id, got {value!r}")
    return str(value)


def _label(entry: dict) -> str | None:
    label = entry.get("label")
    return None if label is None else str(label)


def topology_from_dict(data: dict) -> Topology:
    """Build a Topology from an already-decoded JSON document."""
    if not isinstance(data, dict):
        raise ValueError("Topology document must be a JSON object")
    raw_nodes = data.get("nodes", [])
    raw_branches = data.get("branches", data.get("edges", []))
    if not isinstance(raw_nodes, list) or not isinstance(raw_branches, list):
        raise ValueError("'nodes' and 'branches' must be lists")

    topology = Topology()
    for i, entry in enumerate(raw_nodes):
        if isinstance(entry, (str, int)) and not isinstance(entry, bool):
            entry = {"id": entry}
        if not isinstance(entry, dict):
            raise ValueError(f"Node #{i} must be an object or an id")
        node_id = _as_id(_pick(entry, ("id",), f"Node #{i}"), f"Node #{i} id")
        connected = entry.get("connectedBranchIds", entry.get("connected_branch_ids", []))
        topology.add_node(
            ElectricalNode(
                id=node_id,
                connected_branch_ids=[str(b) for b in connected],
                label=_label(entry),
            )
        )

    seen: set[str] = set()
    for i, entry in enumerate(raw_branches):
        if not isinstance(entry, dict):
            raise ValueError(f"Branch #{i} must be an object")
        what = f"Branch #{i}"
        branch_id = _as_id(_pick(entry, ("id",), what), f"{what} id")
        if branch_id in seen:
            raise ValueError(f"Duplicate branch id '{branch_id}'")
        seen.add(branch_id)
        topology.add_branch(
            Branch(
                id=branch_id,
                kind=str(entry.get("kind", entry.get("type", "branch"))),
                from_node_id=_as_id(
                    _pick(entry, _BRANCH_KEYS["from_node_id"], what), f"{what} source"
                ),
                to_node_id=_as_id(
                    _pick(entry, _BRANCH_KEYS["to_node_id"], what), f"{what} target"
                ),
                label=_label(entry),
            )
        )

    ids = [n.id for n in topology.nodes]
    if len(ids) != len(set(ids)):
        raise ValueError("Duplicate node ids in topology")
    return topology


def parse_topology(text: str) -> Topology:
    """Parse a JSON topology document."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid topology JSON: {e}") from e
    return topology_from_dict(data)
