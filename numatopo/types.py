"""Data types shared by the resource scanner and aggregator."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional

from numatopo.quantity import Quantity


@dataclass
class Args:
    """Command line arguments used for resource monitoring."""

    pod_resource_socket_path: str = ""
    sleep_interval: float = 0.0
    namespace: str = ""
    kubelet_config_uri: str = ""
    api_auth_token_file: str = ""


@dataclass
class ResourceInfo:
    """A resource and the IDs assigned to it, as reported by the pod resources API."""

    name: str
    data: list[str] = field(default_factory=list)
    numa_node_ids: list[int] = field(default_factory=list)


@dataclass
class ContainerResources:
    """Node resources assigned to a container."""

    name: str
    resources: list[ResourceInfo] = field(default_factory=list)


@dataclass
class PodResources:
    """Node resources assigned to a pod."""

    name: str
    namespace: str
    containers: list[ContainerResources] = field(default_factory=list)


@dataclass
class CostInfo:
    """Cost of reaching a NUMA zone."""

    name: str
    value: int


@dataclass
class ZoneResourceInfo:
    """Amounts of one resource inside a zone."""

    name: str
    available: Quantity
    allocatable: Quantity
    capacity: Quantity


@dataclass
class Zone:
    """A topology zone with its costs and resources."""

    name: str
    type: str = ""
    costs: list[CostInfo] = field(default_factory=list)
    resources: list[ZoneResourceInfo] = field(default_factory=list)


@dataclass
class NUMANode:
    """A NUMA node reference in a topology hint."""

    id: int


@dataclass
class TopologyInfo:
    """NUMA affinity of a device or memory block."""

    nodes: list[Optional[NUMANode]] = field(default_factory=list)

    def node_ids(self) -> list[int]:
        """Return the IDs of the nodes that are present."""
        return [node.id for node in self.nodes if node is not None]


@dataclass
class ContainerDevices:
    """Devices of one resource type with their NUMA affinity."""

    resource_name: str
    device_ids: list[str] = field(default_factory=list)
    topology: Optional[TopologyInfo] = None


@dataclass
class ContainerMemory:
    """A memory block of a given type with its NUMA affinity."""

    memory_type: str
    size: int = 0
    topology: Optional[TopologyInfo] = None


@dataclass
class ContainerAllocation:
    """Resources the kubelet assigned to a single container."""

    name: str
    devices: list[ContainerDevices] = field(default_factory=list)
    cpu_ids: list[int] = field(default_factory=list)
    memory: list[ContainerMemory] = field(default_factory=list)


@dataclass
class PodResourcesEntry:
    """Resources the kubelet assigned to a pod."""

    name: str
    namespace: str
    containers: list[ContainerAllocation] = field(default_factory=list)


@dataclass
class AllocatableResourcesResponse:
    """Resources the kubelet can allocate on this node."""

    devices: list[ContainerDevices] = field(default_factory=list)
    cpu_ids: list[int] = field(default_factory=list)
    memory: list[ContainerMemory] = field(default_factory=list)


class ResourcesScanner(ABC):
    """Gathers the resources assigned to pods on the node."""

    @abstractmethod
    def scan(self) -> list[PodResources]:
        """Return the resources assigned to the watched pods."""


class ResourcesAggregator(ABC):
    """Aggregates node resources into per-NUMA zones."""

    @abstractmethod
    def aggregate(self, pod_res_data: list[PodResources]) -> list[Zone]:
        """Return the zones of the node given the pod allocations."""