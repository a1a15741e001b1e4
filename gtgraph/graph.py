"""Read-only query layer over a decoded gt file."""

from pathlib import Path
from typing import Optional, Union

import numpy as np

from gtgraph.decompress import DEFAULT_BATCH_SIZE, decompress_buffer
from gtgraph.errors import MalformedHeader
from gtgraph.graph_file import MIN_FILE_SIZE, GraphFile
from gtgraph.io import DEFAULT_TIMEOUT, fetch_url, read_file
from gtgraph.properties import MapType, Property


def decode(
    data,
    validate_neighbors: bool = True,
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> GraphFile:
    """Decompress (if needed) and parse a complete gt buffer.

    Returns a fully decoded GraphFile or raises exactly one
    ``GTFormatError`` subclass.
    """
    if len(data) < MIN_FILE_SIZE:
        raise MalformedHeader(
            f"file is too short: {len(data)} bytes, need at least {MIN_FILE_SIZE}"
        )
    plain = decompress_buffer(data, batch_size=batch_size)
    return GraphFile.from_bytes(plain, validate_neighbors=validate_neighbors)


class Graph:
    """Accessors over an immutable GraphFile.

    Vertices are the integers ``0..num_vertices-1``. Nothing here decodes;
    use ``from_bytes``, ``from_file`` or ``from_url`` to build one.
    """

    __slots__ = ("file",)

    def __init__(self, file: GraphFile):
        self.file = file

    @classmethod
    def from_bytes(cls, data, validate_neighbors: bool = True, **kwargs) -> "Graph":
        return cls(decode(data, validate_neighbors=validate_neighbors, **kwargs))

    @classmethod
    def from_file(
        cls, path: Union[str, Path], validate_neighbors: bool = True, **kwargs
    ) -> "Graph":
        return cls.from_bytes(
            read_file(path), validate_neighbors=validate_neighbors, **kwargs
        )

    @classmethod
    def from_url(
        cls,
        url: str,
        timeout: float = DEFAULT_TIMEOUT,
        validate_neighbors: bool = True,
        client=None,
        **kwargs,
    ) -> "Graph":
        data = fetch_url(url, timeout=timeout, client=client)
        return cls.from_bytes(data, validate_neighbors=validate_neighbors, **kwargs)

    def __repr__(self):
        kind = "directed" if self.directed else "undirected"
        return (
            f"<Graph {kind}, {self.num_vertices:,} vertices, "
            f"{self.num_edges:,} edges, {len(self.file.properties)} properties>"
        )

    # ------------------------------------------------------------------
    # Structure
    # ------------------------------------------------------------------

    @property
    def num_vertices(self) -> int:
        return self.file.num_vertices

    @property
    def num_edges(self) -> int:
        return self.file.num_edges

    @property
    def directed(self) -> bool:
        return self.file.directed

    @property
    def comment(self) -> str:
        return self.file.comment

    def vertices(self) -> np.ndarray:
        return np.arange(self.num_vertices, dtype=np.uint64)

    def edges(self) -> np.ndarray:
        """All edges as an (E, 2) array of (source, target), adjacency order."""
        degrees = np.diff(self.file.out_offsets)
        sources = np.repeat(np.arange(self.num_vertices, dtype=np.uint64), degrees)
        return np.column_stack((sources, self.file.out_targets)).astype(np.uint64)

    def _check_vertex(self, v):
        if not 0 <= v < self.num_vertices:
            raise IndexError(
                f"vertex {v} out of range for graph with {self.num_vertices} vertices"
            )

    def out_neighbors(self, v: int) -> np.ndarray:
        """Read-only view of the adjacency entry of ``v``."""
        self._check_vertex(v)
        start = self.file.out_offsets[v]
        end = self.file.out_offsets[v + 1]
        return self.file.out_targets[start:end]

    def out_degree(self, v: int) -> int:
        self._check_vertex(v)
        return int(self.file.out_offsets[v + 1] - self.file.out_offsets[v])

    def in_neighbors(self, v: int) -> np.ndarray:
        """Vertices whose adjacency lists contain ``v``, each listed once.

        Scans every adjacency list on each call; nothing is cached.
        """
        self._check_vertex(v)
        positions = np.flatnonzero(self.file.out_targets == v)
        if positions.size == 0:
            return np.empty(0, dtype=np.uint64)
        sources = np.searchsorted(self.file.out_offsets, positions, side="right") - 1
        return np.unique(sources).astype(np.uint64)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    def property(self, name: str, map_type: Optional[MapType] = None) -> Property:
        """First property named ``name`` (optionally of ``map_type``).

        Raises ``PropertyNotFound`` when there is no match.
        """
        return self.file.find_property(name, map_type)

    def graph_property(self, name: str) -> Property:
        return self.property(name, MapType.GRAPH)

    def vertex_property(self, name: str) -> Property:
        return self.property(name, MapType.VERTEX)

    def edge_property(self, name: str) -> Property:
        return self.property(name, MapType.EDGE)

    def property_names(self, map_type: Optional[MapType] = None) -> list:
        return self.file.property_names(map_type)

    def graph_property_names(self) -> list:
        return self.property_names(MapType.GRAPH)

    def vertex_property_names(self) -> list:
        return self.property_names(MapType.VERTEX)

    def edge_property_names(self) -> list:
        return self.property_names(MapType.EDGE)


def load(path: Union[str, Path], **kwargs) -> Graph:
    """Load a ``.gt`` / ``.gt.zst`` file from disk."""
    return Graph.from_file(path, **kwargs)


def load_url(url: str, **kwargs) -> Graph:
    """Download and load a ``.gt`` / ``.gt.zst`` file."""
    return Graph.from_url(url, **kwargs)
