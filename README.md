# numatopo

`numatopo` builds a per-NUMA-zone view of a node's resources: CPUs, devices,
memory and hugepages. For every zone it reports the capacity, the allocatable
amount and what is still available once the pods' allocations are subtracted.

## Installation

```
pip install numatopo
```

With the test dependencies:

```
pip install "numatopo[test]"
```

## Modules

- `numatopo.topology` – the hardware topology. `NodeTopology.from_dict` builds
  it from a dictionary of NUMA nodes, each with its cores (`TopologyCore`,
  with `logical_processors`) and its `distances` vector.
  `NodeTopology.find_node` looks a node up by ID, and
  `make_logical_core_id_to_node_id_map` maps every logical CPU to its node.
- `numatopo.types` – the data classes passed around: `ResourceInfo`,
  `ContainerResources`, `PodResources`, `Zone`, `ZoneResourceInfo`,
  `CostInfo`, and the kubelet-side records `AllocatableResourcesResponse`,
  `PodResourcesEntry`, `ContainerAllocation`, `ContainerDevices`,
  `ContainerMemory`, `TopologyInfo`, `NUMANode`. Also `Args`, and the abstract
  `ResourcesScanner` and `ResourcesAggregator`.
- `numatopo.memory_resources` – `get_numa_memory_resources(base_path)` reads
  the total memory (from each node's `meminfo`) and the hugepages (from
  `hugepages/hugepages-<size>kB/nr_hugepages`) of every `node<N>` directory,
  in bytes. Without a path it reads `/sys/bus/node/devices`.
  `read_total_memory_from_meminfo` and `get_hugepages_bytes` are the pieces.
- `numatopo.aggregator` – `new_resources_aggregator_from_data(topology, resp,
  memory_capacity)` returns a `NodeResources`; its `aggregate(pod_resources)`
  returns one `Zone` per NUMA node, named by `make_zone_name` (`node-0`,
  `node-1`, ...), with costs taken from the distance vector. CPUs not reported
  as allocatable count as reserved and are added to the CPU capacity; memory
  and hugepages capacity comes from the given capacity map.
  `new_resources_aggregator(client, topology)` does the same with memory
  capacity read from sysfs and the allocatable resources from
  `client.get_allocatable_resources(timeout=...)`; a failure there raises
  `AllocatableResourcesError`. `get_memory_resources_capacity` sums the sysfs
  figures per node.
- `numatopo.scanner` – `PodResourcesScanner(namespace, pod_resource_client,
  api_helper).scan()` calls `pod_resource_client.list(timeout=...)` and, for
  each pod, `api_helper.get_client()` and `api_helper.get_pod(client,
  namespace, name)` (returning a `Pod` of `Container`s). It keeps pods that
  have devices or exclusive integral CPUs, in the given namespace or in every
  namespace for `"*"`. Failures raise `ScanError`. Helpers: `has_exclusive_cpus`,
  `has_integral_cpus`, `has_device`, `get_numa_node_ids`.
- `numatopo.topologypolicy` – `detect_topology_policy(policy, scope)` returns
  a `TopologyManagerPolicy`.
- `numatopo.kubeconf` – `get_kubelet_config_from_local_file(path)` loads a
  YAML kubelet configuration into a `KubeletConfiguration` (topology manager
  policy and scope, plus the whole document in `raw`).
  `insecure_config(host, token_file)` builds a `RestConfig` that skips
  certificate checks and carries the token from the file;
  `get_kubelet_configuration(rest_config)` fetches the `host` URL (with
  `https://` added when no scheme is given) and reads its `kubeletconfig`
  object.
- `numatopo.quantity` – `Quantity` and `parse_quantity` for quantities such as
  `1500m`, `2Mi` or `1e3`; `hugepage_resource_name` gives names like
  `hugepages-2Mi`. Malformed input raises `QuantityError`.
- `numatopo.fswatcher` – `FsWatcher(ratelimit, *paths)` watches files and
  every directory above them; `wait_event(timeout)` returns `True` once a
  rate-limited change has been seen. It is a context manager and has
  `watched_paths()` and `close()`.
- `numatopo.tls` – `TlsConfig.update_config(cert_file, key_file, ca_file)`
  builds a TLS 1.3 server context that requires client certificates;
  `get_config()` returns the current one, and new connections pick up the
  latest context.
- `numatopo.flags` – flag value types: `RegexpVal`, `StringSetVal`,
  `StringSliceVal`, and `LogFlagVal` wrapping a `Flag`.
- `numatopo.dump` – `dump(obj)` renders dataclasses, mappings and lists as
  YAML; `log_dump(level, heading, prefix, obj)` logs it line by line.
- `numatopo.version` – `get()` and `undefined()`; the version is `"undefined"`
  unless set.

## Example

```python
from numatopo.topology import NodeTopology
from numatopo.aggregator import new_resources_aggregator_from_data
from numatopo.types import (
    AllocatableResourcesResponse, ContainerDevices, TopologyInfo, NUMANode,
)

topology = NodeTopology.from_dict({
    "nodes": [
        {"id": 0, "cores": [{"id": 0, "logical_processors": [0, 2]}], "distances": [10, 20]},
        {"id": 1, "cores": [{"id": 0, "logical_processors": [1, 3]}], "distances": [20, 10]},
    ]
})
resp = AllocatableResourcesResponse(
    devices=[ContainerDevices("example.com/gpu", ["gpu0"], TopologyInfo([NUMANode(1)]))],
    cpu_ids=[1, 2, 3],
)
aggregator = new_resources_aggregator_from_data(topology, resp, {})
for zone in aggregator.aggregate([]):
    print(zone.name, [(r.name, str(r.available), str(r.capacity)) for r in zone.resources])
```

## What the package does not do

- It has no command and no long-running service; it is a library.
- It does not talk to the kubelet's pod resources socket itself: the scanner
  and `new_resources_aggregator` take client objects that you supply.
- It does not discover the hardware topology; you pass it in as a dictionary.
- It does not publish the zones anywhere; `aggregate` only returns them.

## Running the tests

```
pytest
```