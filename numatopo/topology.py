"""Hardware NUMA topology of a node: nodes, cores and distances."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Optional


def _int_field(data: Mapping[str, Any], key: str, default: int = 0) -> int:
    value = data.get(key, default)
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"field {key} must be an integer, got {value!r}")
    return value


def _int_list(data: Mapping[str, Any], key: str) -> list[int]:
    values = data.get(key) or []
    if not isinstance(values, list):
        raise ValueError(f"field {key} must be a list")
    result = []
    for value in values:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"field {key} must hold integers, got {value!r}")
        result.append(value)
    return result


def _mapping_list(data: Mapping[str, Any], key: str) -> list[Mapping[str, Any]]:
    values = data.get(key) or []
    if not isinstance(values, list) or not all(isinstance(v, Mapping) for v in values):
        raise ValueError(f"field {key} must be a list of objects")
    return values


@dataclass
class TopologyCore:
    """A physical core and the logical processors it runs."""

    id: int
    index: int = 0
    total_threads: int = 0
    logical_processors: list[int] = field(default_factory=list)

    @classmethod
    def _from_dict(cls, data: Mapping[str, Any]) -> "TopologyCore":
        return cls(
            id=_int_field(data, "id"),
            index=_int_field(data, "index"),
            total_threads=_int_field(data, "total_threads"),
            logical_processors=_int_list(data, "logical_processors"),
        )


@dataclass
class TopologyNode:
    """A NUMA node with its cores and its distances to every node."""

    id: int
    cores: list[TopologyCore] = field(default_factory=list)
    distances: list[int] = field(default_factory=list)

    @classmethod
    def _from_dict(cls, data: Mapping[str, Any]) -> "TopologyNode":
        return cls(
            id=_int_field(data, "id"),
            cores=[TopologyCore._from_dict(core) for core in _mapping_list(data, "cores")],
            distances=_int_list(data, "distances"),
        )


@dataclass
class NodeTopology:
    """The NUMA nodes of a machine."""

    nodes: list[TopologyNode] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "NodeTopology":
        """Build a topology from its JSON document."""
        if not isinstance(data, Mapping):
            raise ValueError("topology must be an object")
        return cls(nodes=[TopologyNode._from_dict(node) for node in _mapping_list(data, "nodes")])

    def find_node(self, node_id: int) -> Optional[TopologyNode]:
        """Return the node with the given ID, or None."""
        return next((node for node in self.nodes if node.id == node_id), None)


def make_logical_core_id_to_node_id_map(topology: NodeTopology) -> dict[int, int]:
    """Map every logical processor ID to the ID of its NUMA node."""
    return {
        proc_id: node.id
        for node in topology.nodes
        for core in node.cores
        for proc_id in core.logical_processors
    }