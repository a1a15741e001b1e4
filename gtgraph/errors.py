"""Exception types raised while decoding gt files.

Every decode failure is a subclass of ``GTFormatError`` so callers can catch
the whole family at once. Lookup misses in the query layer raise
``PropertyNotFound``, which is a ``KeyError`` rather than a format error.
"""


class GTFormatError(Exception):
    """Base class for all gt decoding failures."""


class CompressionUnsupported(GTFormatError):
    """The buffer is wrapped in a recognized but unsupported container."""

    def __init__(self, kind):
        self.kind = kind
        super().__init__(f"{kind} compression is not supported")


class DecompressionFailed(GTFormatError):
    """A zstd frame or block could not be decoded."""

    def __init__(self, detail):
        self.detail = detail
        super().__init__(f"zstd decompression failed: {detail}")


class MalformedHeader(GTFormatError):
    """Bad magic, unsupported version/endianness or a truncated header."""


class MalformedAdjacency(GTFormatError):
    """Truncated or out-of-range neighbor data."""


class MalformedProperty(GTFormatError):
    """Unsupported map/value type tag or a truncated property payload."""


class PropertyNotFound(KeyError):
    """No property matches the requested name and map type."""

    def __init__(self, name, map_type=None):
        self.name = name
        self.map_type = map_type
        if map_type is None:
            message = f"Property '{name}' not found"
        else:
            message = f"{map_type.name.lower()} property '{name}' not found"
        super().__init__(message)

    def __str__(self):
        return self.args[0]
