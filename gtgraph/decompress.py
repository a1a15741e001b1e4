"""Compression detection and zstd decompression for gt buffers.

Graph files in the wild are usually shipped as ``.gt.zst``. The first six
bytes of the buffer select one of four known containers; only zstd is
decoded, the others are recognized so the caller gets a precise error
instead of a confusing header failure further down.
"""

import logging
import struct
from enum import Enum

import zstandard

from gtgraph.errors import CompressionUnsupported, DecompressionFailed


logger = logging.getLogger(__name__)

# Upper bound on input fed to the frame decoder per step (10 MiB)
DEFAULT_BATCH_SIZE = 10 * 1024 * 1024

_PROBE_SIZE = 6
_ZSTD_FRAME_MAGIC = 0xFD2FB528
_SKIPPABLE_MAGIC_MIN = 0x184D2A50
_SKIPPABLE_MAGIC_MAX = 0x184D2A5F
_U32 = struct.Struct("<I")


class Compression(Enum):
    NONE = "none"
    XZ = "xz"
    ZSTD = "zstd"
    GZIP = "gzip"
    ZIP = "zip"


# (signature prefix, kind); bytes past the prefix in the 6-byte probe are ignored
_SIGNATURES = (
    (b"\xfd\x37\x7a\x58\x5a\x00", Compression.XZ),
    (b"\x28\xb5\x2f\xfd", Compression.ZSTD),
    (b"\x1f\x8b\x08", Compression.GZIP),
    (b"\x50\x4b\x03\x04", Compression.ZIP),
)


def detect_compression(data) -> Compression:
    """Identify the container from the first six bytes of ``data``."""
    probe = bytes(data[:_PROBE_SIZE])
    if len(probe) < _PROBE_SIZE:
        return Compression.NONE
    for signature, kind in _SIGNATURES:
        if probe.startswith(signature):
            return kind
    return Compression.NONE


def decompress_buffer(data, batch_size: int = DEFAULT_BATCH_SIZE) -> bytes:
    """Return the plain gt bytes contained in ``data``.

    Uncompressed buffers are returned unchanged. xz, gzip and zip raise
    ``CompressionUnsupported``; zstd is decoded frame by frame.
    """
    kind = detect_compression(data)
    if kind is Compression.NONE:
        logger.debug("No compression detected")
        return data
    if kind is Compression.ZSTD:
        logger.debug("zstd compression detected")
        return decompress_zstd(data, batch_size=batch_size)
    logger.debug("%s compression detected", kind.value)
    raise CompressionUnsupported(kind.value)


def decompress_zstd(data, batch_size: int = DEFAULT_BATCH_SIZE) -> bytes:
    """Decode a stream of concatenated zstd frames into one buffer.

    Skippable frames are stepped over by their declared length. Regular
    frames are fed to the decoder at most ``batch_size`` input bytes at a
    time and their output appended as each batch completes. Any malformed
    frame aborts the whole stream.

    Args:
        data: Complete compressed buffer.
        batch_size: Maximum input bytes handed to the frame decoder per step.

    Returns:
        The concatenated output of every non-skippable frame.
    """
    if batch_size <= 0:
        raise ValueError(f"batch_size must be positive, got {batch_size}")

    view = memoryview(data).cast("B")
    total = len(view)
    dctx = zstandard.ZstdDecompressor()
    result = bytearray()

    pos = 0
    frames = 0
    skipped = 0
    while pos < total:
        if total - pos < 4:
            raise DecompressionFailed(f"truncated frame magic at offset {pos}")
        (magic,) = _U32.unpack_from(view, pos)

        if _SKIPPABLE_MAGIC_MIN <= magic <= _SKIPPABLE_MAGIC_MAX:
            if total - pos < 8:
                raise DecompressionFailed(
                    f"truncated skippable frame header at offset {pos}"
                )
            (skip_size,) = _U32.unpack_from(view, pos + 4)
            end = pos + 8 + skip_size
            if end > total:
                raise DecompressionFailed(
                    f"skippable frame at offset {pos} declares {skip_size} bytes, "
                    f"only {total - pos - 8} left"
                )
            logger.debug("Skipping %d-byte skippable frame at offset %d", skip_size, pos)
            pos = end
            skipped += 1
            continue

        if magic != _ZSTD_FRAME_MAGIC:
            raise DecompressionFailed(
                f"unknown frame magic 0x{magic:08x} at offset {pos}"
            )

        logger.debug("Decoding zstd frame %d at offset %d", frames, pos)
        pos = _decode_frame(dctx, view, pos, batch_size, result)
        frames += 1

    logger.info(
        "zstd: %d frame(s), %d skipped, %d -> %d bytes",
        frames, skipped, total, len(result),
    )
    return bytes(result)


def _decode_frame(dctx, view, pos, batch_size, out):
    """Decode one regular frame starting at ``pos``; return the next offset."""
    dobj = dctx.decompressobj()
    total = len(view)
    try:
        while pos < total:
            chunk = view[pos:pos + batch_size]
            out += dobj.decompress(chunk)
            if dobj.eof:
                # The frame ended inside this batch; the rest belongs to
                # the next frame.
                return pos + len(chunk) - len(dobj.unused_data)
            pos += len(chunk)
    except zstandard.ZstdError as exc:
        raise DecompressionFailed(f"{exc} (batch at offset {pos})") from exc
    raise DecompressionFailed(f"frame truncated at offset {total}")
