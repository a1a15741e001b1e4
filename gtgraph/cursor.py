"""Sequential little-endian reader over a decompressed gt buffer."""

import struct

import numpy as np


_U64 = struct.Struct("<Q")


class BufferExhausted(Exception):
    """Raised when a read runs past the end of the buffer.

    Parsers catch this and re-raise the error type of the section they
    were reading (header, adjacency or property).
    """

    def __init__(self, offset, wanted, available):
        self.offset = offset
        self.wanted = wanted
        self.available = available
        super().__init__(
            f"needed {wanted} bytes at offset {offset}, only {available} left"
        )


class ByteCursor:
    """Single read position shared by every step of one decode call.

    All multi-byte values are little-endian. Arrays returned by
    ``read_array`` are copies, so nothing handed out aliases the input
    buffer once decoding finishes.
    """

    __slots__ = ("_buf", "_pos")

    def __init__(self, data):
        self._buf = memoryview(data).cast("B")
        self._pos = 0

    @property
    def position(self) -> int:
        return self._pos

    @property
    def remaining(self) -> int:
        return len(self._buf) - self._pos

    def ensure(self, nbytes: int) -> None:
        """Fail unless at least ``nbytes`` are left, without consuming them."""
        if nbytes > self.remaining:
            raise BufferExhausted(self._pos, nbytes, self.remaining)

    def read_bytes(self, n: int) -> bytes:
        self.ensure(n)
        start = self._pos
        self._pos += n
        return self._buf[start:self._pos].tobytes()

    def read_u8(self) -> int:
        self.ensure(1)
        value = self._buf[self._pos]
        self._pos += 1
        return value

    def read_u64(self) -> int:
        self.ensure(8)
        (value,) = _U64.unpack_from(self._buf, self._pos)
        self._pos += 8
        return value

    def read_text(self) -> str:
        """Read a u64 length prefix and that many bytes as lossy UTF-8."""
        length = self.read_u64()
        return self.read_bytes(length).decode("utf-8", errors="replace")

    def read_blob(self) -> bytes:
        """Read a u64 length prefix and that many raw bytes."""
        return self.read_bytes(self.read_u64())

    def read_array(self, dtype, count: int) -> np.ndarray:
        """Read ``count`` packed values of ``dtype`` into a fresh array."""
        dtype = np.dtype(dtype)
        self.ensure(count * dtype.itemsize)
        if count == 0:
            return np.empty(0, dtype=dtype)
        arr = np.frombuffer(self._buf, dtype=dtype, count=count, offset=self._pos)
        self._pos += count * dtype.itemsize
        return arr.copy()
