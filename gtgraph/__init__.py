"""
gtgraph - Decoder for graph-tool's binary ``.gt`` / ``.gt.zst`` graph files
"""

__version__ = "0.1.0"

from gtgraph.decompress import (
    Compression,
    decompress_buffer,
    decompress_zstd,
    detect_compression,
)
from gtgraph.errors import (
    CompressionUnsupported,
    DecompressionFailed,
    GTFormatError,
    MalformedAdjacency,
    MalformedHeader,
    MalformedProperty,
    PropertyNotFound,
)
from gtgraph.graph import Graph, decode, load, load_url
from gtgraph.graph_file import GraphFile, neighbor_dtype
from gtgraph.properties import MapType, Property, ValueType

__all__ = [
    # Core classes
    "Graph",
    "GraphFile",
    "Property",
    "MapType",
    "ValueType",
    # Loading
    "decode",
    "load",
    "load_url",
    # Decompression
    "Compression",
    "detect_compression",
    "decompress_buffer",
    "decompress_zstd",
    # Wire helpers
    "neighbor_dtype",
    # Errors
    "GTFormatError",
    "CompressionUnsupported",
    "DecompressionFailed",
    "MalformedHeader",
    "MalformedAdjacency",
    "MalformedProperty",
    "PropertyNotFound",
]
