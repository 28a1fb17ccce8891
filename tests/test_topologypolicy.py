import pytest

from numatopo.topologypolicy import TopologyManagerPolicy, detect_topology_policy


@pytest.mark.parametrize(
    "policy, scope, expected",
    [
        ("single-numa-node", "pod", TopologyManagerPolicy.SINGLE_NUMA_NODE_POD_LEVEL),
        ("single-numa-node", "container", TopologyManagerPolicy.SINGLE_NUMA_NODE_CONTAINER_LEVEL),
        ("single-numa-node", "", TopologyManagerPolicy.SINGLE_NUMA_NODE_CONTAINER_LEVEL),
        ("restricted", "pod", TopologyManagerPolicy.RESTRICTED),
        ("best-effort", "container", TopologyManagerPolicy.BEST_EFFORT),
        ("none", "", TopologyManagerPolicy.NONE),
        ("unknown-policy", "pod", TopologyManagerPolicy.NONE),
    ],
)
def test_detect_topology_policy(policy, scope, expected):
    assert detect_topology_policy(policy, scope) is expected


def test_policy_values_are_strings():
    assert detect_topology_policy("none", "") == "None"
    assert detect_topology_policy("restricted", "") == "Restricted"