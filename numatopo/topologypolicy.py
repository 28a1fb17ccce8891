"""Mapping of kubelet topology manager settings to a topology policy."""

from __future__ import annotations

from enum import Enum

SINGLE_NUMA_NODE_POLICY = "single-numa-node"
RESTRICTED_POLICY = "restricted"
BEST_EFFORT_POLICY = "best-effort"
NONE_POLICY = "none"

POD_SCOPE = "pod"
CONTAINER_SCOPE = "container"


class TopologyManagerPolicy(str, Enum):
    """Topology manager policy combined with its scope."""

    SINGLE_NUMA_NODE_CONTAINER_LEVEL = "SingleNUMANodeContainerLevel"
    SINGLE_NUMA_NODE_POD_LEVEL = "SingleNUMANodePodLevel"
    BEST_EFFORT = "BestEffort"
    RESTRICTED = "Restricted"
    NONE = "None"


def detect_topology_policy(policy: str, scope: str) -> TopologyManagerPolicy:
    """Return the policy that represents both the manager policy and scope."""
    if policy == SINGLE_NUMA_NODE_POLICY:
        if scope == POD_SCOPE:
            return TopologyManagerPolicy.SINGLE_NUMA_NODE_POD_LEVEL
        # container is also the default scope for single-numa-node
        return TopologyManagerPolicy.SINGLE_NUMA_NODE_CONTAINER_LEVEL
    if policy == RESTRICTED_POLICY:
        return TopologyManagerPolicy.RESTRICTED
    if policy == BEST_EFFORT_POLICY:
        return TopologyManagerPolicy.BEST_EFFORT
    return TopologyManagerPolicy.NONE