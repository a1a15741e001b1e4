"""Unit tests for gtgraph.properties module."""

import numpy as np
import pytest

from gtbuilder import MapType, ValueType, gt_file, prop, text, u64, u8
from gtgraph.cursor import ByteCursor
from gtgraph.errors import MalformedProperty
from gtgraph.graph_file import GraphFile
from gtgraph.properties import Property


# Three vertices, edges 0->1, 0->2, 2->0
LISTS = [[1, 2], [], [0]]


def _decode_one(map_type, value_type, entries=None, payload=None):
    data = gt_file(LISTS, [prop(map_type, "p", value_type, entries, payload)])
    (decoded,) = GraphFile.from_bytes(data).properties
    return decoded


class TestMapTypes:
    """Map type fixes the number of entries."""

    def test_graph_property_has_one_entry(self):
        p = _decode_one(MapType.GRAPH, ValueType.INT32, [42])
        assert p.map_type is MapType.GRAPH
        assert p.tolist() == [42]

    def test_vertex_property_has_vertex_count_entries(self):
        p = _decode_one(MapType.VERTEX, ValueType.INT32, [1, 2, 3])
        assert len(p) == 3

    def test_edge_property_uses_derived_edge_count(self):
        p = _decode_one(MapType.EDGE, ValueType.INT32, [10, 20, 30])
        assert p.map_type is MapType.EDGE
        assert p.tolist() == [10, 20, 30]

    def test_cardinality(self):
        assert MapType.GRAPH.cardinality(5, 9) == 1
        assert MapType.VERTEX.cardinality(5, 9) == 5
        assert MapType.EDGE.cardinality(5, 9) == 9

    def test_unknown_map_type_tag(self):
        data = gt_file(LISTS, [u8(3) + text("p") + u8(0) + b"\x00"])
        with pytest.raises(MalformedProperty, match="map type 0x03"):
            GraphFile.from_bytes(data)


class TestScalarValues:
    """Fixed-width scalar kinds."""

    def test_bool(self):
        p = _decode_one(MapType.VERTEX, ValueType.BOOL, [1, 0, 1])
        assert p.data.dtype == np.bool_
        assert p.tolist() == [True, False, True]

    def test_invalid_bool_byte(self):
        with pytest.raises(MalformedProperty, match="invalid bool byte 0x02"):
            _decode_one(MapType.VERTEX, ValueType.BOOL, [1, 2, 0])

    def test_int16_signed(self):
        p = _decode_one(MapType.VERTEX, ValueType.INT16, [-32768, 0, 32767])
        assert p.data.dtype == np.int16
        assert p.tolist() == [-32768, 0, 32767]

    def test_int32_signed(self):
        p = _decode_one(MapType.VERTEX, ValueType.INT32, [-1, 2**31 - 1, -(2**31)])
        assert p.tolist() == [-1, 2**31 - 1, -(2**31)]

    def test_int64_signed(self):
        p = _decode_one(MapType.VERTEX, ValueType.INT64, [-1, 2**63 - 1, 0])
        assert p.data.dtype == np.int64
        assert p.tolist() == [-1, 2**63 - 1, 0]

    def test_double(self):
        p = _decode_one(MapType.EDGE, ValueType.DOUBLE, [0.25, -1e300, float("inf")])
        assert p.tolist() == [0.25, -1e300, float("inf")]

    def test_long_double_widened(self):
        """16-byte unsigned values are widened to float64."""
        p = _decode_one(MapType.VERTEX, ValueType.LONG_DOUBLE, [0, 7, 2**64 + 2**65])
        assert p.data.dtype == np.float64
        assert p.tolist() == [0.0, 7.0, float(2**64 + 2**65)]

    def test_long_double_precision_dropped(self):
        p = _decode_one(MapType.GRAPH, ValueType.LONG_DOUBLE, [2**100 + 1])
        assert p.tolist() == [float(2**100)]

    def test_arrays_read_only(self):
        p = _decode_one(MapType.VERTEX, ValueType.INT32, [1, 2, 3])
        with pytest.raises(ValueError):
            p.data[0] = 9


class TestTextAndBlobValues:
    """String and opaque payloads."""

    def test_string(self):
        p = _decode_one(MapType.VERTEX, ValueType.STRING, ["alpha", "", "gamma"])
        assert p.data == ("alpha", "", "gamma")

    def test_string_lossy_utf8(self):
        payload = text("ok") + text(b"\xc3\x28") + text("é")
        p = _decode_one(MapType.VERTEX, ValueType.STRING, payload=payload)
        assert p.data == ("ok", "\ufffd(", "é")

    def test_pyobject_raw_bytes(self):
        blob = b"\x80\x04\x95\x00\xff"
        p = _decode_one(MapType.GRAPH, ValueType.PYOBJECT, [blob])
        assert p.data == (blob,)


class TestVectorValues:
    """Vector kinds hold one variable-length sequence per entry."""

    def test_vector_int32(self):
        p = _decode_one(MapType.VERTEX, ValueType.VECTOR_INT32, [[1, 2], [], [-3]])
        assert [entry.dtype for entry in p.data] == [np.int32] * 3
        assert p.tolist() == [[1, 2], [], [-3]]

    def test_vector_bool(self):
        p = _decode_one(MapType.EDGE, ValueType.VECTOR_BOOL, [[1, 0], [0], [1, 1, 1]])
        assert p.tolist() == [[True, False], [False], [True, True, True]]

    def test_vector_bool_invalid_byte(self):
        with pytest.raises(MalformedProperty, match="bool"):
            _decode_one(MapType.GRAPH, ValueType.VECTOR_BOOL, [[1, 5]])

    def test_vector_double(self):
        p = _decode_one(MapType.GRAPH, ValueType.VECTOR_DOUBLE, [[1.5, -2.5]])
        assert p.tolist() == [[1.5, -2.5]]

    def test_vector_int16_and_int64(self):
        p16 = _decode_one(MapType.GRAPH, ValueType.VECTOR_INT16, [[-2, 3]])
        p64 = _decode_one(MapType.GRAPH, ValueType.VECTOR_INT64, [[2**40]])
        assert p16.tolist() == [[-2, 3]]
        assert p64.tolist() == [[2**40]]

    def test_vector_long_double(self):
        p = _decode_one(MapType.GRAPH, ValueType.VECTOR_LONG_DOUBLE, [[1, 2**70]])
        assert p.tolist() == [[1.0, float(2**70)]]

    def test_vector_string(self):
        p = _decode_one(MapType.VERTEX, ValueType.VECTOR_STRING, [["a", "b"], [], ["c"]])
        assert p.data == (("a", "b"), (), ("c",))
        assert p.tolist() == [["a", "b"], [], ["c"]]

    def test_element_type(self):
        assert ValueType.VECTOR_BOOL.element_type is ValueType.BOOL
        assert ValueType.VECTOR_STRING.element_type is ValueType.STRING
        assert ValueType.INT32.element_type is ValueType.INT32
        assert not ValueType.PYOBJECT.is_vector


class TestPropertyErrors:
    """Malformed property entries abort the whole decode."""

    def test_unknown_value_type_tag(self):
        data = gt_file(LISTS, [u8(0) + text("p") + u8(15) + b"\x00" * 8])
        with pytest.raises(MalformedProperty, match="value type 0x0f"):
            GraphFile.from_bytes(data)

    def test_truncated_scalar_payload(self):
        data = gt_file(LISTS, [prop(MapType.VERTEX, "p", ValueType.INT64, [1, 2])])
        with pytest.raises(MalformedProperty, match="truncated"):
            GraphFile.from_bytes(data)

    def test_truncated_name(self):
        data = gt_file(LISTS, [u8(0) + u64(50) + b"abc"])
        with pytest.raises(MalformedProperty):
            GraphFile.from_bytes(data)

    def test_truncated_string(self):
        payload = text("a") + text("b") + u64(10) + b"xy"
        data = gt_file(LISTS, [prop(MapType.VERTEX, "p", ValueType.STRING, payload=payload)])
        with pytest.raises(MalformedProperty):
            GraphFile.from_bytes(data)

    def test_huge_vector_length(self):
        payload = u64(2**60) + b"\x00" * 32
        data = gt_file(LISTS, [prop(MapType.GRAPH, "p", ValueType.VECTOR_DOUBLE, payload=payload)])
        with pytest.raises(MalformedProperty):
            GraphFile.from_bytes(data)

    def test_second_property_failure_discards_first(self):
        good = prop(MapType.GRAPH, "ok", ValueType.INT32, [1])
        bad = u8(1) + text("bad") + u8(99)
        with pytest.raises(MalformedProperty):
            GraphFile.from_bytes(gt_file(LISTS, [good, bad]))

    def test_declared_count_exceeds_entries(self):
        good = prop(MapType.GRAPH, "ok", ValueType.INT32, [1])
        data = gt_file(LISTS, [good])
        # Claim two properties while only one is present
        count_offset = len(data) - len(good) - 8
        data = data[:count_offset] + u64(2) + good
        with pytest.raises(MalformedProperty):
            GraphFile.from_bytes(data)


class TestFromCursor:
    """Property.from_cursor consumes exactly one entry."""

    def test_cursor_advances_past_entry(self):
        entry = prop(MapType.VERTEX, "w", ValueType.INT16, [5, 6])
        cursor = ByteCursor(entry + b"NEXT")
        p = Property.from_cursor(cursor, num_vertices=2, num_edges=0)
        assert p.name == "w"
        assert p.tolist() == [5, 6]
        assert cursor.read_bytes(4) == b"NEXT"

    def test_repr_omits_data(self):
        p = Property.from_cursor(
            ByteCursor(prop(MapType.EDGE, "w", ValueType.DOUBLE, [1.0])), 0, 1
        )
        assert repr(p) == "Property(name='w', map_type=EDGE, value_type=DOUBLE, len=1)"
