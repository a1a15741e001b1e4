"""Typed property maps of a gt file.

A property map is a named attribute table scoped to the graph, its
vertices, or its edges. Each map holds values of exactly one of fifteen
value types; the decoded payload shape is fixed per value type:

    scalar kinds        one numpy array of length ``cardinality``
    STRING              tuple of str
    VECTOR_<scalar>     tuple of numpy arrays, one per entry
    VECTOR_STRING       tuple of tuples of str
    PYOBJECT            tuple of bytes (opaque pickled payloads)

Numpy arrays are copies of the input and are flagged read-only.
"""

import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Any

import numpy as np

from gtgraph.cursor import BufferExhausted, ByteCursor
from gtgraph.errors import MalformedProperty


logger = logging.getLogger(__name__)


class MapType(IntEnum):
    """Scope of a property map; the wire tag is the enum value."""

    GRAPH = 0
    VERTEX = 1
    EDGE = 2

    def cardinality(self, num_vertices: int, num_edges: int) -> int:
        if self is MapType.GRAPH:
            return 1
        if self is MapType.VERTEX:
            return num_vertices
        return num_edges


class ValueType(IntEnum):
    """Value kind of a property map; the wire tag is the enum value."""

    BOOL = 0
    INT16 = 1
    INT32 = 2
    INT64 = 3
    DOUBLE = 4
    LONG_DOUBLE = 5
    STRING = 6
    VECTOR_BOOL = 7
    VECTOR_INT16 = 8
    VECTOR_INT32 = 9
    VECTOR_INT64 = 10
    VECTOR_DOUBLE = 11
    VECTOR_LONG_DOUBLE = 12
    VECTOR_STRING = 13
    PYOBJECT = 14

    @property
    def is_vector(self) -> bool:
        return ValueType.VECTOR_BOOL <= self <= ValueType.VECTOR_STRING

    @property
    def element_type(self) -> "ValueType":
        """Scalar kind stored inside a vector kind (identity for non-vectors)."""
        if self.is_vector:
            return ValueType(self - ValueType.VECTOR_BOOL)
        return self


# Wire dtypes of the fixed-width scalar kinds
_SCALAR_DTYPES = {
    ValueType.BOOL: np.dtype("<u1"),
    ValueType.INT16: np.dtype("<i2"),
    ValueType.INT32: np.dtype("<i4"),
    ValueType.INT64: np.dtype("<i8"),
    ValueType.DOUBLE: np.dtype("<f8"),
}

_LONG_DOUBLE_SIZE = 16

# Smallest number of bytes one entry can occupy on the wire; used to reject
# counts that cannot possibly fit in the remaining buffer before allocating.
_MIN_ENTRY_SIZE = {value_type: 8 for value_type in ValueType}  # u64 prefix
_MIN_ENTRY_SIZE.update({
    ValueType.BOOL: 1,
    ValueType.INT16: 2,
    ValueType.INT32: 4,
    ValueType.INT64: 8,
    ValueType.DOUBLE: 8,
    ValueType.LONG_DOUBLE: _LONG_DOUBLE_SIZE,
})


def _frozen(arr):
    arr.flags.writeable = False
    return arr


def _read_scalars(cursor: ByteCursor, value_type: ValueType, count: int) -> np.ndarray:
    """Read ``count`` fixed-width scalars of ``value_type``."""
    cursor.ensure(count * _MIN_ENTRY_SIZE[value_type])

    if value_type is ValueType.LONG_DOUBLE:
        # 16-byte little-endian unsigned integer, widened to float64.
        # Anything beyond float64 precision is dropped.
        halves = cursor.read_array("<u8", 2 * count).reshape(count, 2)
        values = [float((int(hi) << 64) | int(lo)) for lo, hi in halves]
        return _frozen(np.array(values, dtype=np.float64))

    offset = cursor.position
    raw = cursor.read_array(_SCALAR_DTYPES[value_type], count)
    if value_type is ValueType.BOOL:
        bad = np.flatnonzero(raw > 1)
        if bad.size:
            raise MalformedProperty(
                f"invalid bool byte 0x{int(raw[bad[0]]):02x} at offset "
                f"{offset + int(bad[0])}"
            )
        return _frozen(raw.astype(np.bool_))
    return _frozen(raw.astype(raw.dtype.newbyteorder("="), copy=False))


def _read_strings(cursor: ByteCursor, count: int) -> tuple:
    cursor.ensure(count * _MIN_ENTRY_SIZE[ValueType.STRING])
    return tuple(cursor.read_text() for _ in range(count))


def _decode_scalar(value_type):
    def decode(cursor, count):
        return _read_scalars(cursor, value_type, count)
    return decode


def _decode_string(cursor, count):
    return _read_strings(cursor, count)


def _decode_vector(value_type):
    element_type = value_type.element_type

    def decode(cursor, count):
        cursor.ensure(count * _MIN_ENTRY_SIZE[value_type])
        entries = []
        for _ in range(count):
            length = cursor.read_u64()
            if element_type is ValueType.STRING:
                entries.append(_read_strings(cursor, length))
            else:
                entries.append(_read_scalars(cursor, element_type, length))
        return tuple(entries)
    return decode


def _decode_pyobject(cursor, count):
    cursor.ensure(count * _MIN_ENTRY_SIZE[ValueType.PYOBJECT])
    return tuple(cursor.read_blob() for _ in range(count))


_DECODERS = {
    ValueType.BOOL: _decode_scalar(ValueType.BOOL),
    ValueType.INT16: _decode_scalar(ValueType.INT16),
    ValueType.INT32: _decode_scalar(ValueType.INT32),
    ValueType.INT64: _decode_scalar(ValueType.INT64),
    ValueType.DOUBLE: _decode_scalar(ValueType.DOUBLE),
    ValueType.LONG_DOUBLE: _decode_scalar(ValueType.LONG_DOUBLE),
    ValueType.STRING: _decode_string,
    ValueType.VECTOR_BOOL: _decode_vector(ValueType.VECTOR_BOOL),
    ValueType.VECTOR_INT16: _decode_vector(ValueType.VECTOR_INT16),
    ValueType.VECTOR_INT32: _decode_vector(ValueType.VECTOR_INT32),
    ValueType.VECTOR_INT64: _decode_vector(ValueType.VECTOR_INT64),
    ValueType.VECTOR_DOUBLE: _decode_vector(ValueType.VECTOR_DOUBLE),
    ValueType.VECTOR_LONG_DOUBLE: _decode_vector(ValueType.VECTOR_LONG_DOUBLE),
    ValueType.VECTOR_STRING: _decode_vector(ValueType.VECTOR_STRING),
    ValueType.PYOBJECT: _decode_pyobject,
}
assert set(_DECODERS) == set(ValueType), "every ValueType needs a decoder"


@dataclass(frozen=True, eq=False)
class Property:
    """One decoded property map.

    ``data`` always has ``map_type.cardinality(...)`` entries and its shape
    is determined by ``value_type`` (see the module docstring).
    """

    name: str
    map_type: MapType
    value_type: ValueType
    data: Any

    def __len__(self):
        return len(self.data)

    def __repr__(self):
        return (
            f"Property(name={self.name!r}, map_type={self.map_type.name}, "
            f"value_type={self.value_type.name}, len={len(self)})"
        )

    def tolist(self) -> list:
        """Return the values as plain Python objects."""
        if isinstance(self.data, np.ndarray):
            return self.data.tolist()
        if self.value_type is ValueType.VECTOR_STRING:
            return [list(entry) for entry in self.data]
        if self.value_type.is_vector:
            return [entry.tolist() for entry in self.data]
        return list(self.data)

    @classmethod
    def from_cursor(cls, cursor: ByteCursor, num_vertices: int, num_edges: int):
        """Decode one property map entry at the cursor position.

        Args:
            cursor: Shared cursor positioned at the map-type tag.
            num_vertices: Vertex count from the header (vertex cardinality).
            num_edges: Edge count derived from the adjacency (edge cardinality).

        Raises:
            MalformedProperty: unknown tag, invalid bool byte, or truncation.
        """
        start = cursor.position
        try:
            tag = cursor.read_u8()
            try:
                map_type = MapType(tag)
            except ValueError:
                raise MalformedProperty(
                    f"unsupported property map type 0x{tag:02x} at offset {start}"
                ) from None

            name = cursor.read_text()

            tag_offset = cursor.position
            tag = cursor.read_u8()
            try:
                value_type = ValueType(tag)
            except ValueError:
                raise MalformedProperty(
                    f"unsupported value type 0x{tag:02x} for property '{name}' "
                    f"at offset {tag_offset}"
                ) from None

            count = map_type.cardinality(num_vertices, num_edges)
            data = _DECODERS[value_type](cursor, count)
        except BufferExhausted as exc:
            raise MalformedProperty(
                f"truncated property starting at offset {start}: {exc}"
            ) from exc

        logger.debug(
            "Decoded %s property '%s' (%s, %d entries)",
            map_type.name.lower(), name, value_type.name, count,
        )
        return cls(name=name, map_type=map_type, value_type=value_type, data=data)
