"""Memory and hugepages capacity of the NUMA nodes, read from sysfs."""

from __future__ import annotations

import logging
import os
from typing import Optional

from numatopo.hostpath import SYSFS_DIR
from numatopo.quantity import QuantityError, hugepage_resource_name, parse_quantity

logger = logging.getLogger(__name__)

RESOURCE_MEMORY = "memory"

SYS_BUS_NODE_BASEPATH = SYSFS_DIR.path("bus/node/devices")

NumaMemoryResources = dict[int, dict[str, int]]


def get_numa_memory_resources(base_path: Optional[str] = None) -> NumaMemoryResources:
    """Return the total memory and hugepages, in bytes, of every NUMA node."""
    base = SYS_BUS_NODE_BASEPATH if base_path is None else base_path
    memory_resources: NumaMemoryResources = {}
    for numa_node in sorted(os.listdir(base)):
        try:
            node_id = int(numa_node[4:])
        except ValueError as err:
            raise ValueError(f"failed to parse NUMA node ID of {numa_node!r}") from err

        node_dir = os.path.join(base, numa_node)
        info = {RESOURCE_MEMORY: read_total_memory_from_meminfo(os.path.join(node_dir, "meminfo"))}
        info.update(get_hugepages_bytes(os.path.join(node_dir, "hugepages")))
        memory_resources[node_id] = info
    return memory_resources


def get_hugepages_bytes(path: str) -> dict[str, int]:
    """Return the bytes reserved for each hugepage size found under ``path``."""
    hugepages_bytes: dict[str, int] = {}
    for entry in sorted(os.listdir(path)):
        prefix, sep, page_size = entry.partition("-")
        if not sep or prefix != "hugepages":
            logger.warning("malformed hugepages entry %r", entry)
            continue

        quantity = parse_quantity(page_size.replace("kB", "Ki", 1))

        with open(os.path.join(path, entry, "nr_hugepages"), encoding="utf-8") as handle:
            nr_pages = int(handle.read().strip())

        try:
            size = quantity.as_int()
        except QuantityError:
            size = 0
        hugepages_bytes[hugepage_resource_name(quantity)] = nr_pages * size
    return hugepages_bytes


def read_total_memory_from_meminfo(path: str) -> int:
    """Return the MemTotal value of a meminfo file, in bytes."""
    with open(path, encoding="utf-8") as handle:
        data = handle.read()

    for line in data.split("\n"):
        key, sep, value = line.partition(":")
        if not sep:
            continue
        if "MemTotal" in key:
            mem_value = value.strip("\t\n kB")
            try:
                converted = int(mem_value)
            except ValueError as err:
                raise ValueError(f"failed to convert value: {mem_value}") from err
            return 1024 * converted

    raise ValueError(f"failed to find MemTotal field under the file {path!r}")