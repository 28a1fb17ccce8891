"""Aggregation of node resources and pod allocations into NUMA zones."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from numatopo.memory_resources import NumaMemoryResources, get_numa_memory_resources
from numatopo.quantity import DECIMAL_SI, Quantity
from numatopo.topology import NodeTopology, make_logical_core_id_to_node_id_map
from numatopo.types import (
    AllocatableResourcesResponse,
    ContainerDevices,
    ContainerMemory,
    CostInfo,
    NUMANode,
    PodResources,
    ResourceInfo,
    ResourcesAggregator,
    TopologyInfo,
    Zone,
    ZoneResourceInfo,
)

logger = logging.getLogger(__name__)

DEFAULT_POD_RESOURCES_TIMEOUT = 10.0

RESOURCE_CPU = "cpu"
RESOURCE_MEMORY = "memory"
HUGEPAGES_PREFIX = "hugepages-"

_INT_RE = re.compile(r"[+-]?[0-9]+")


class AllocatableResourcesError(RuntimeError):
    """Raised when the kubelet does not report its allocatable resources."""


@dataclass
class _ResourceData:
    available: int
    allocatable: int
    capacity: int


def _is_memory(name: str) -> bool:
    return name == RESOURCE_MEMORY or name.startswith(HUGEPAGES_PREFIX)


def _topology_nodes(topology: Optional[TopologyInfo]) -> list[NUMANode]:
    if topology is None:
        return []
    return [node for node in topology.nodes if node is not None]


def make_zone_name(node_id: int) -> str:
    """Return the canonical name of a NUMA zone."""
    return f"node-{node_id}"


@dataclass
class NodeResources(ResourcesAggregator):
    """Allocatable resources of a node, split by NUMA node."""

    topology: NodeTopology
    per_numa_allocatable: dict[int, dict[str, int]] = field(default_factory=dict)
    resource_id_to_numa_id: dict[str, dict[str, int]] = field(default_factory=dict)
    reserved_cpu_ids_per_numa: dict[int, list[str]] = field(default_factory=dict)
    memory_capacity_per_numa: NumaMemoryResources = field(default_factory=dict)

    def _memory_capacity(self, node_id: int, name: str, allocatable: int) -> int:
        return self.memory_capacity_per_numa.get(node_id, {}).get(name, allocatable)

    def _initial_data(self) -> dict[int, dict[str, _ResourceData]]:
        per_numa: dict[int, dict[str, _ResourceData]] = {}
        for node_id, _ in enumerate(self.topology.nodes):
            reserved = len(self.reserved_cpu_ids_per_numa.get(node_id, ()))
            node_res = self.per_numa_allocatable.get(node_id)
            if node_res is None:
                # the node exists but has nothing allocatable: all its CPUs are reserved
                per_numa[node_id] = {RESOURCE_CPU: _ResourceData(0, 0, reserved)}
                continue
            resources = {}
            for name, allocatable in node_res.items():
                if name == RESOURCE_CPU:
                    capacity = allocatable + reserved
                elif _is_memory(name):
                    capacity = self._memory_capacity(node_id, name, allocatable)
                else:
                    capacity = allocatable
                resources[name] = _ResourceData(allocatable, allocatable, capacity)
            per_numa[node_id] = resources
        return per_numa

    def aggregate(self, pod_res_data: Optional[Iterable[PodResources]]) -> list[Zone]:
        """Return one zone per NUMA node, with what the pods left available."""
        per_numa = self._initial_data()

        for pod_res in pod_res_data or ():
            for cont_res in pod_res.containers:
                for res in cont_res.resources:
                    if _is_memory(res.name):
                        self._update_memory_available(per_numa, res)
                    else:
                        self._update_available(per_numa, res)

        zones = []
        for node_id, res_list in per_numa.items():
            zone = Zone(name=make_zone_name(node_id), type="Node")
            try:
                zone.costs = self._costs(node_id)
            except LookupError as err:
                logger.info("cannot find costs for NUMA node %d: %s", node_id, err)
            zone.resources = [
                ZoneResourceInfo(
                    name=name,
                    available=Quantity(data.available, DECIMAL_SI),
                    allocatable=Quantity(data.allocatable, DECIMAL_SI),
                    capacity=Quantity(data.capacity, DECIMAL_SI),
                )
                for name, data in res_list.items()
            ]
            zones.append(zone)
        return zones

    def _costs(self, node_id: int) -> list[CostInfo]:
        node = self.topology.find_node(node_id)
        if node is None:
            raise LookupError(f"unknown node: {node_id}")
        # assumes there are no holes (offline nodes) in the distance vector
        return [
            CostInfo(name=make_zone_name(dst), value=dist)
            for dst, dist in enumerate(node.distances)
        ]

    def _update_available(self, numa_data: dict[int, dict[str, _ResourceData]],
                          info: ResourceInfo) -> None:
        for res_id in info.data:
            res_map = self.resource_id_to_numa_id.get(info.name)
            if res_map is None:
                logger.info("unknown resource %r", info.name)
                continue
            node_id = res_map.get(res_id)
            if node_id is None:
                logger.info("unknown resource %r: %r", info.name, res_id)
                continue
            if node_id not in numa_data:
                logger.info("unknown node id: %r", node_id)
                continue
            numa_data[node_id][info.name].available -= 1

    def _update_memory_available(self, numa_data: dict[int, dict[str, _ResourceData]],
                                 info: ResourceInfo) -> None:
        if not info.numa_node_ids:
            logger.warning("no NUMA nodes information is available for device %r", info.name)
            return
        if len(info.data) != 1:
            logger.warning("no size information is available for the device %r", info.name)
            return
        if not _INT_RE.fullmatch(info.data[0]):
            logger.error("failed to parse resource requested size: %r", info.data[0])
            return
        requested = int(info.data[0])

        # Memory is taken from the NUMA nodes in the given order, draining each
        # before moving to the next, as the kubelet memory manager does.
        for numa_id in info.numa_node_ids:
            if requested == 0:
                return
            node_data = numa_data.get(numa_id)
            if node_data is None:
                logger.warning("failed to find NUMA node ID %d under the node topology", numa_id)
                continue
            data = node_data.get(info.name)
            if data is None:
                logger.warning("failed to find resource %r under the node topology", info.name)
                return
            if data.available == 0:
                logger.debug("no available memory on the node %d for the resource %r",
                             numa_id, info.name)
                continue
            if requested >= data.available:
                requested -= data.available
                data.available = 0
            else:
                data.available -= requested
                requested = 0

        if requested > 0:
            logger.warning("the resource %r requested size was not fully satisfied by NUMA nodes",
                           info.name)


def _container_devices_from_allocatable(resp: AllocatableResourcesResponse,
                                        topology: NodeTopology) -> list[ContainerDevices]:
    """Represent allocatable CPUs as devices too, next to the real devices."""
    devices = list(resp.devices)
    cpu_to_node = make_logical_core_id_to_node_id_map(topology)

    cpus_per_numa: dict[int, list[str]] = {}
    for cpu_id in resp.cpu_ids:
        node_id = cpu_to_node.get(cpu_id)
        if node_id is None:
            logger.info("cannot find the NUMA node for CPU %d", cpu_id)
            continue
        cpus_per_numa.setdefault(node_id, []).append(str(cpu_id))

    devices.extend(
        ContainerDevices(
            resource_name=RESOURCE_CPU,
            device_ids=cpu_list,
            topology=TopologyInfo(nodes=[NUMANode(id=node_id)]),
        )
        for node_id, cpu_list in cpus_per_numa.items()
    )
    return devices


def _make_node_allocatable(devices: list[ContainerDevices],
                           memory_blocks: list[ContainerMemory]) -> dict[int, dict[str, int]]:
    allocatable: dict[int, dict[str, int]] = {}
    for device in devices:
        for node in _topology_nodes(device.topology):
            node_res = allocatable.setdefault(node.id, {})
            node_res[device.resource_name] = (
                node_res.get(device.resource_name, 0) + len(device.device_ids)
            )

    for block in memory_blocks:
        if block.topology is None:
            continue
        for node in _topology_nodes(block.topology):
            node_res = allocatable.setdefault(node.id, {})
            node_res[block.memory_type] = node_res.get(block.memory_type, 0) + block.size
    return allocatable


def _make_resource_map(devices: list[ContainerDevices]) -> dict[str, dict[str, int]]:
    """Map resource name -> device ID -> NUMA node ID."""
    resource_map: dict[str, dict[str, int]] = {}
    for device in devices:
        by_id = resource_map.setdefault(device.resource_name, {})
        for node in _topology_nodes(device.topology):
            for device_id in device.device_ids:
                by_id[device_id] = node.id
    return resource_map


def _make_reserved_cpu_map(topology: NodeTopology,
                           devices: list[ContainerDevices]) -> dict[int, list[str]]:
    allocatable_cpus = {
        device_id
        for device in devices
        if device.resource_name == RESOURCE_CPU
        for device_id in device.device_ids
    }
    reserved: dict[int, list[str]] = {}
    for node in topology.nodes:
        for core in node.cores:
            for cpu in core.logical_processors:
                cpu_id = str(cpu)
                if cpu_id not in allocatable_cpus:
                    reserved.setdefault(node.id, []).append(cpu_id)
    return reserved


def new_resources_aggregator_from_data(topology: NodeTopology,
                                       resp: AllocatableResourcesResponse,
                                       memory_capacity: NumaMemoryResources) -> NodeResources:
    """Build an aggregator from the hardware topology and the kubelet's allocatable data."""
    all_devices = _container_devices_from_allocatable(resp, topology)
    return NodeResources(
        topology=topology,
        per_numa_allocatable=_make_node_allocatable(all_devices, resp.memory),
        resource_id_to_numa_id=_make_resource_map(all_devices),
        reserved_cpu_ids_per_numa=_make_reserved_cpu_map(topology, all_devices),
        memory_capacity_per_numa=memory_capacity,
    )


def new_resources_aggregator(client: Any, topology: NodeTopology) -> NodeResources:
    """Build an aggregator, asking the pod resources client what is allocatable."""
    memory_capacity = get_memory_resources_capacity(None)
    try:
        resp = client.get_allocatable_resources(timeout=DEFAULT_POD_RESOURCES_TIMEOUT)
    except Exception as err:
        if "API GetAllocatableResources disabled" in str(err):
            logger.error(
                "Kubelet's pod resources 'GetAllocatableResources' functionality is disabled. "
                "Ensure feature flag 'KubeletPodResourcesGetAllocatable' is set to true."
            )
        raise AllocatableResourcesError(
            "failed to get allocatable resources (ensure that "
            f"KubeletPodResourcesGetAllocatable feature gate is enabled): {err}"
        ) from err
    return new_resources_aggregator_from_data(topology, resp, memory_capacity)


def get_memory_resources_capacity(base_path: Optional[str] = None) -> NumaMemoryResources:
    """Return the memory and hugepages capacity, in bytes, of every NUMA node."""
    capacity: NumaMemoryResources = {}
    for numa_id, resources in get_numa_memory_resources(base_path).items():
        node_capacity = capacity.setdefault(numa_id, {})
        for name, value in resources.items():
            node_capacity[name] = node_capacity.get(name, 0) + value
    return capacity