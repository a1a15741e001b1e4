"""Pytest fixtures shared across all test modules."""

import pytest
import zstandard

from gtbuilder import MapType, ValueType, gt_file, prop


# Header bytes for the two-vertex graph 0 -> 1 with no properties
SAMPLE_BYTES = bytes.fromhex(
    "e29bbe206774"        # magic
    "01"                  # version
    "00"                  # little endian
    "0000000000000000"    # comment length
    "00"                  # undirected
    "0200000000000000"    # 2 vertices
    "0100000000000000" "01"  # vertex 0: [1]
    "0000000000000000"    # vertex 1: []
    "0000000000000000"    # 0 properties
)


@pytest.fixture
def sample_bytes():
    """The smallest useful gt file: 2 vertices, one edge 0 -> 1."""
    return SAMPLE_BYTES


@pytest.fixture
def rich_bytes():
    """A directed 4-vertex graph with graph, vertex and edge properties.

    Edges in adjacency order: 0->1, 0->2, 1->2, 2->0, 2->2 (5 edges).
    """
    lists = [[1, 2], [2], [0, 2], []]
    properties = [
        prop(MapType.GRAPH, "title", ValueType.STRING, ["toy"]),
        prop(MapType.VERTEX, "name", ValueType.STRING, ["a", "b", "c", "d"]),
        prop(MapType.VERTEX, "age", ValueType.INT32, [10, -20, 30, 40]),
        prop(MapType.EDGE, "weight", ValueType.DOUBLE, [0.5, 1.5, 2.5, 3.5, 4.5]),
        prop(MapType.EDGE, "name", ValueType.INT16, [1, 2, 3, 4, 5]),
        prop(MapType.VERTEX, "name", ValueType.INT64, [7, 8, 9, 10]),
    ]
    return gt_file(lists, properties, directed=True, comment="rich test graph")


@pytest.fixture
def zstd_compress():
    """Compress bytes into a single zstd frame."""
    cctx = zstandard.ZstdCompressor()
    return cctx.compress
