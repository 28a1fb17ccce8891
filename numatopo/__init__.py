"""Per-NUMA-zone node resources: topology, memory capacity, pod scanning and zone aggregation."""

__version__ = "0.1.0"