import pytest

from numatopo.memory_resources import (
    get_hugepages_bytes,
    get_numa_memory_resources,
    read_total_memory_from_meminfo,
)

SIZE_2MI_KB = 2048
SIZE_1GI_KB = 1048576
MEM_TOTAL_KB = 32718644

_MEMINFO_FIELDS = [
    ("MemTotal", f"{MEM_TOTAL_KB} kB"),
    ("MemFree", "2915988 kB"),
    ("MemUsed", "29802656 kB"),
    ("Active", "19631832 kB"),
    ("Dirty", "1140 kB"),
    ("AnonHugePages", "26624 kB"),
    ("HugePages_Total", "0"),
    ("HugePages_Free", "0"),
]


def meminfo_text(node_id=0, fields=_MEMINFO_FIELDS):
    return "\n".join(f"Node {node_id} {name}:\t{value}" for name, value in fields)


def hugepage_dir(root, node_id, size_kb):
    return root / f"node{node_id}" / "hugepages" / f"hugepages-{size_kb}kB"


def write_page_count(root, node_id, size_kb, count):
    (hugepage_dir(root, node_id, size_kb) / "nr_hugepages").write_text(str(count))


def build_sysfs(root, page_counts):
    """Create a fake per-node tree; page_counts maps node id to {size_kb: count}."""
    for node_id, counts in page_counts.items():
        for size_kb in (SIZE_2MI_KB, SIZE_1GI_KB):
            hugepage_dir(root, node_id, size_kb).mkdir(parents=True)
            write_page_count(root, node_id, size_kb, counts.get(size_kb, 0))
        (root / f"node{node_id}" / "meminfo").write_text(meminfo_text(node_id))


@pytest.fixture
def fake_tree(tmp_path):
    build_sysfs(tmp_path, {0: {SIZE_2MI_KB: 6}, 1: {SIZE_2MI_KB: 8}})
    return tmp_path


def test_get_memory_resource_counters(fake_tree):
    counters = get_numa_memory_resources(str(fake_tree))
    assert counters[0]["hugepages-2Mi"] == 12582912
    assert counters[1]["hugepages-2Mi"] == 16777216
    assert counters[0].get("hugepages-1Gi", 0) == 0
    assert counters[1].get("hugepages-1Gi", 0) == 0
    assert counters[0]["memory"] == MEM_TOTAL_KB * 1024
    assert counters[1]["memory"] == MEM_TOTAL_KB * 1024


def test_node_ids_are_keys(fake_tree):
    assert set(get_numa_memory_resources(str(fake_tree))) == {0, 1}


def test_hugepages_bytes_names_by_size(fake_tree):
    result = get_hugepages_bytes(str(fake_tree / "node1" / "hugepages"))
    assert result == {"hugepages-2Mi": 16777216, "hugepages-1Gi": 0}


def test_malformed_hugepages_entry_is_skipped(fake_tree):
    hp_dir = fake_tree / "node0" / "hugepages"
    (hp_dir / "bogus").mkdir()
    result = get_hugepages_bytes(str(hp_dir))
    assert set(result) == {"hugepages-2Mi", "hugepages-1Gi"}


def test_meminfo_total(tmp_path):
    path = tmp_path / "meminfo"
    path.write_text(meminfo_text())
    assert read_total_memory_from_meminfo(str(path)) == MEM_TOTAL_KB * 1024


def test_meminfo_without_total(tmp_path):
    path = tmp_path / "meminfo"
    path.write_text(meminfo_text(fields=[("MemFree", "100 kB")]) + "\n")
    with pytest.raises(ValueError, match="failed to find MemTotal"):
        read_total_memory_from_meminfo(str(path))


def test_meminfo_bad_value(tmp_path):
    path = tmp_path / "meminfo"
    path.write_text(meminfo_text(fields=[("MemTotal", "lots kB")]) + "\n")
    with pytest.raises(ValueError, match="failed to convert value"):
        read_total_memory_from_meminfo(str(path))


def test_bad_node_name(fake_tree):
    (fake_tree / "nodeX").mkdir()
    with pytest.raises(ValueError, match="failed to parse NUMA node ID"):
        get_numa_memory_resources(str(fake_tree))


def test_missing_base_path(tmp_path):
    with pytest.raises(FileNotFoundError):
        get_numa_memory_resources(str(tmp_path / "absent"))