"""Scanning of the resources the kubelet assigned to the pods of the node."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from numatopo.aggregator import DEFAULT_POD_RESOURCES_TIMEOUT, RESOURCE_CPU
from numatopo.quantity import Quantity
from numatopo.types import (
    ContainerResources,
    PodResources,
    PodResourcesEntry,
    ResourceInfo,
    ResourcesScanner,
    TopologyInfo,
)

logger = logging.getLogger(__name__)

ALL_NAMESPACES = "*"


class ScanError(RuntimeError):
    """Raised when the pod resources cannot be gathered."""


@dataclass
class Container:
    """A container of a pod specification with its resource requests."""

    name: str
    requests: dict[str, Quantity] = field(default_factory=dict)
    limits: dict[str, Quantity] = field(default_factory=dict)


@dataclass
class Pod:
    """The parts of a pod specification needed to judge CPU exclusivity."""

    name: str
    namespace: str
    containers: list[Container] = field(default_factory=list)
    init_containers: list[Container] = field(default_factory=list)


def has_integral_cpus(container: Container) -> bool:
    """Tell whether the container requests a whole number of CPUs."""
    cpu = container.requests.get(RESOURCE_CPU, Quantity(0))
    return cpu.value() * 1000 == cpu.milli_value()


def has_exclusive_cpus(pod: Pod) -> bool:
    """Tell whether a guaranteed pod is allocated exclusive CPUs.

    Only requests are checked: the pod is assumed to be guaranteed, so its
    requests equal its limits.
    """
    total_cpu = 0
    for container in (*pod.init_containers, *pod.containers):
        cpu = container.requests.get(RESOURCE_CPU)
        if cpu is None:
            continue
        total_cpu += cpu.value()
        if not has_integral_cpus(container):
            return False
    # no CPUs requested by any container of the pod
    return total_cpu != 0


def has_device(pod_resource: PodResourcesEntry) -> bool:
    """Tell whether any container of the pod has devices assigned."""
    if any(container.devices for container in pod_resource.containers):
        return True
    logger.info("pod:%s doesn't have devices", pod_resource.name)
    return False


def get_numa_node_ids(topology_info: Optional[TopologyInfo]) -> list[int]:
    """Return the NUMA node IDs of a topology hint; empty when there is none."""
    if topology_info is None:
        return []
    return topology_info.node_ids()


class PodResourcesScanner(ResourcesScanner):
    """Gathers pod resources through a pod resources client.

    The client offers ``list(timeout=...)`` returning the pod resource entries;
    the API helper offers ``get_client()`` and ``get_pod(client, namespace, name)``.
    """

    def __init__(self, namespace: str, pod_resource_client: Any, api_helper: Any) -> None:
        self.namespace = namespace
        self.pod_resource_client = pod_resource_client
        self.api_helper = api_helper
        if namespace != ALL_NAMESPACES:
            logger.info("watching namespace %r", namespace)
        else:
            logger.info("watching all namespaces")

    def _is_watchable(self, pod_namespace: str, pod_name: str,
                      with_device: bool) -> tuple[bool, bool]:
        cli = self.api_helper.get_client()
        pod = self.api_helper.get_pod(cli, pod_namespace, pod_name)

        logger.info("podresource: %s", pod_name)
        integral_guaranteed = has_exclusive_cpus(pod)
        relevant = integral_guaranteed or with_device

        if self.namespace == ALL_NAMESPACES and relevant:
            return True, integral_guaranteed
        return self.namespace == pod_namespace and relevant, integral_guaranteed

    def scan(self) -> list[PodResources]:
        """Return the resources of the watched pods that have any assigned."""
        try:
            entries = self.pod_resource_client.list(timeout=DEFAULT_POD_RESOURCES_TIMEOUT)
        except Exception as err:
            raise ScanError(f"can't receive response: {err}") from err

        pod_res_data: list[PodResources] = []
        for entry in entries or ():
            logger.info("podresource iter: %s", entry.name)
            try:
                watchable, integral_guaranteed = self._is_watchable(
                    entry.namespace, entry.name, has_device(entry)
                )
            except Exception as err:
                raise ScanError(
                    "checking if pod in a namespace is watchable, "
                    f"namespace:{entry.namespace}, pod name {entry.name}: {err}"
                ) from err
            if not watchable:
                continue

            pod_res = PodResources(name=entry.name, namespace=entry.namespace)
            for container in entry.containers:
                cont_res = ContainerResources(name=container.name)

                if integral_guaranteed and container.cpu_ids:
                    cont_res.resources.append(ResourceInfo(
                        name=RESOURCE_CPU,
                        data=[str(cpu_id) for cpu_id in container.cpu_ids],
                    ))

                cont_res.resources.extend(
                    ResourceInfo(
                        name=device.resource_name,
                        data=list(device.device_ids),
                        numa_node_ids=get_numa_node_ids(device.topology),
                    )
                    for device in container.devices
                )

                cont_res.resources.extend(
                    ResourceInfo(
                        name=block.memory_type,
                        data=[str(block.size)],
                        numa_node_ids=get_numa_node_ids(block.topology),
                    )
                    for block in container.memory
                    if block.size != 0
                )

                if cont_res.resources:
                    pod_res.containers.append(cont_res)

            if pod_res.containers:
                pod_res_data.append(pod_res)

        return pod_res_data