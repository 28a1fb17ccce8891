import pytest

from numatopo.types import (
    AllocatableResourcesResponse,
    Args,
    ContainerResources,
    NUMANode,
    PodResources,
    ResourceInfo,
    ResourcesAggregator,
    ResourcesScanner,
    TopologyInfo,
    Zone,
)


def test_node_ids_lists_present_nodes():
    topo = TopologyInfo(nodes=[NUMANode(id=0), NUMANode(id=1)])
    assert topo.node_ids() == [0, 1]


def test_node_ids_skips_missing_nodes():
    topo = TopologyInfo(nodes=[None, NUMANode(id=3)])
    assert topo.node_ids() == [3]


def test_node_ids_empty():
    assert TopologyInfo().node_ids() == []


def test_resource_info_defaults_to_no_numa_nodes():
    info = ResourceInfo(name="cpu", data=["0", "1"])
    assert info.numa_node_ids == []
    assert info == ResourceInfo(name="cpu", data=["0", "1"], numa_node_ids=[])


def test_default_lists_are_independent():
    first = PodResources(name="a", namespace="default")
    second = PodResources(name="b", namespace="default")
    first.containers.append(ContainerResources(name="c"))
    assert second.containers == []
    assert len(first.containers) == 1


def test_allocatable_response_defaults():
    resp = AllocatableResourcesResponse()
    assert resp.devices == [] and resp.cpu_ids == [] and resp.memory == []


def test_args_defaults():
    args = Args(namespace="*")
    assert args.namespace == "*"
    assert args.sleep_interval == 0.0


def test_scanner_is_abstract():
    with pytest.raises(TypeError):
        ResourcesScanner()


def test_aggregator_is_abstract():
    with pytest.raises(TypeError):
        ResourcesAggregator()


def test_concrete_scanner_and_aggregator():
    pods = [PodResources(name="p", namespace="ns")]

    class Scanner(ResourcesScanner):
        def scan(self):
            return pods

    class Aggregator(ResourcesAggregator):
        def aggregate(self, pod_res_data):
            return [Zone(name=p.name, type="Node") for p in pod_res_data]

    assert Scanner().scan() == pods
    assert Aggregator().aggregate(pods) == [Zone(name="p", type="Node")]