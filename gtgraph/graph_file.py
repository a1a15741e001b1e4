"""The GraphFile record and the parser for the gt binary layout.

See https://graph-tool.skewed.de/static/doc/gt_format.html. All integers are
little-endian:

    [6]   magic  E2 9B BE 20 67 74
    [1]   version (1)
    [1]   endianness (0 = little)
    [8]   comment length c, then c bytes of UTF-8
    [1]   directed (0/1)
    [8]   vertex count N
          for each vertex: [8] neighbor count k, then k ids of width w(N)
    [8]   property count P, then P property maps (see properties.py)

The neighbor id width w(N) is 1, 2, 4 or 8 bytes depending on whether N
fits in u8, u16, u32 or u64. It depends only on N, never on the ids present.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from gtgraph.cursor import BufferExhausted, ByteCursor
from gtgraph.errors import (
    MalformedAdjacency,
    MalformedHeader,
    MalformedProperty,
    PropertyNotFound,
)
from gtgraph.properties import MapType, Property


logger = logging.getLogger(__name__)

MAGIC = b"\xe2\x9b\xbe\x20\x67\x74"
SUPPORTED_VERSION = 1
LITTLE_ENDIAN = 0
MIN_FILE_SIZE = 14

# map tag (1) + name length (8) + value tag (1)
_MIN_PROPERTY_SIZE = 10


def neighbor_dtype(num_vertices: int) -> np.dtype:
    """Wire dtype of neighbor ids for a graph with ``num_vertices`` vertices."""
    if num_vertices <= 0xFF:
        return np.dtype("<u1")
    if num_vertices <= 0xFFFF:
        return np.dtype("<u2")
    if num_vertices <= 0xFFFFFFFF:
        return np.dtype("<u4")
    return np.dtype("<u8")


@dataclass(frozen=True, eq=False, repr=False)
class GraphFile:
    """Immutable contents of one gt file.

    Adjacency is stored in CSR form: the out-neighbors of vertex ``v`` are
    ``out_targets[out_offsets[v]:out_offsets[v + 1]]``. Both arrays are
    read-only.
    """

    version_number: int
    endianness: int
    comment: str
    directed: bool
    num_vertices: int
    out_offsets: np.ndarray
    out_targets: np.ndarray
    properties: tuple

    @property
    def num_edges(self) -> int:
        return len(self.out_targets)

    @property
    def adjacency(self) -> list:
        """One read-only neighbor array per vertex, in vertex order."""
        if self.num_vertices == 0:
            return []
        return np.split(self.out_targets, self.out_offsets[1:-1])

    def __repr__(self):
        return (
            f"GraphFile(version_number={self.version_number}, "
            f"endianness={self.endianness}, comment={self.comment!r}, "
            f"directed={self.directed}, num_vertices={self.num_vertices}, "
            f"num_edges={self.num_edges}, properties={list(self.properties)!r})"
        )

    # ------------------------------------------------------------------
    # Property lookup
    # ------------------------------------------------------------------

    def find_property(self, name: str, map_type: Optional[MapType] = None) -> Property:
        """Return the first declared property called ``name``.

        When ``map_type`` is given only properties of exactly that map type
        match. Raises ``PropertyNotFound`` if nothing matches.
        """
        for prop in self.properties:
            if prop.name == name and (map_type is None or prop.map_type == map_type):
                return prop
        raise PropertyNotFound(name, map_type)

    def property_names(self, map_type: Optional[MapType] = None) -> list:
        """Names in declaration order, duplicates included."""
        return [
            prop.name
            for prop in self.properties
            if map_type is None or prop.map_type == map_type
        ]

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------

    @classmethod
    def from_bytes(cls, data, validate_neighbors: bool = True) -> "GraphFile":
        """Parse an uncompressed gt buffer.

        Args:
            data: Complete, already decompressed file contents.
            validate_neighbors: Reject neighbor ids >= vertex count.

        Raises:
            MalformedHeader, MalformedAdjacency, MalformedProperty
        """
        if len(data) < MIN_FILE_SIZE:
            raise MalformedHeader(
                f"file is too short: {len(data)} bytes, need at least {MIN_FILE_SIZE}"
            )

        cursor = ByteCursor(data)
        version, endianness, comment, directed, num_vertices = _read_header(cursor)

        out_offsets, out_targets = _read_adjacency(
            cursor, num_vertices, validate_neighbors
        )
        num_edges = len(out_targets)

        properties = _read_properties(cursor, num_vertices, num_edges)

        if cursor.remaining:
            logger.debug("Ignoring %d trailing bytes after properties", cursor.remaining)

        graph_file = cls(
            version_number=version,
            endianness=endianness,
            comment=comment,
            directed=directed,
            num_vertices=num_vertices,
            out_offsets=out_offsets,
            out_targets=out_targets,
            properties=properties,
        )
        logger.info(
            "Decoded graph: %d vertices, %d edges, %d properties (directed=%s)",
            num_vertices, num_edges, len(properties), directed,
        )
        return graph_file


def _read_header(cursor):
    try:
        magic = cursor.read_bytes(len(MAGIC))
        if magic != MAGIC:
            raise MalformedHeader(f"invalid magic bytes {magic.hex(' ')}")

        version = cursor.read_u8()
        if version != SUPPORTED_VERSION:
            raise MalformedHeader(f"unsupported format version {version}")

        endianness = cursor.read_u8()
        if endianness != LITTLE_ENDIAN:
            raise MalformedHeader(
                f"unsupported endianness flag {endianness}, only little-endian files are supported"
            )

        comment = cursor.read_text()

        offset = cursor.position
        flag = cursor.read_u8()
        if flag not in (0, 1):
            raise MalformedHeader(f"invalid directed flag {flag} at offset {offset}")

        num_vertices = cursor.read_u64()
    except BufferExhausted as exc:
        raise MalformedHeader(f"truncated header: {exc}") from exc

    return version, endianness, comment, flag == 1, num_vertices


def _read_adjacency(cursor, num_vertices, validate_neighbors):
    """Read the out-neighbor lists and return CSR (offsets, targets)."""
    dtype = neighbor_dtype(num_vertices)
    try:
        # Every vertex carries at least its 8-byte neighbor count
        cursor.ensure(num_vertices * 8)

        offsets = np.zeros(num_vertices + 1, dtype=np.int64)
        chunks = []
        total = 0
        for v in range(num_vertices):
            k = cursor.read_u64()
            chunks.append(cursor.read_array(dtype, k))
            total += k
            offsets[v + 1] = total
    except BufferExhausted as exc:
        raise MalformedAdjacency(f"truncated adjacency list: {exc}") from exc

    if chunks:
        targets = np.concatenate(chunks).astype(np.uint64)
    else:
        targets = np.empty(0, dtype=np.uint64)

    if validate_neighbors and targets.size:
        bad = np.flatnonzero(targets >= num_vertices)
        if bad.size:
            pos = int(bad[0])
            src = int(np.searchsorted(offsets, pos, side="right")) - 1
            raise MalformedAdjacency(
                f"vertex {src} lists neighbor {int(targets[pos])}, "
                f"but the graph has only {num_vertices} vertices"
            )

    offsets.flags.writeable = False
    targets.flags.writeable = False
    return offsets, targets


def _read_properties(cursor, num_vertices, num_edges):
    try:
        count = cursor.read_u64()
        cursor.ensure(count * _MIN_PROPERTY_SIZE)
    except BufferExhausted as exc:
        raise MalformedProperty(f"truncated property count: {exc}") from exc

    return tuple(
        Property.from_cursor(cursor, num_vertices, num_edges) for _ in range(count)
    )
