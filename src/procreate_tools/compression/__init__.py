"""
Tile compression.

Tiles are raw LZO1X streams without the ``python-lzo`` length header, so the
decompressed size has to be supplied by the caller; it is derived from the
tile dimensions (``width * height * 4`` bytes of RGBA8).

Example usage::

    from procreate_tools.compression import compress, decompress

    data = compress(pixels)
    pixels = decompress(data, width * height * 4)
"""

import logging

import lzo

logger = logging.getLogger(__name__)


def compress(data: bytes, level: int = 1) -> bytes:
    """Compress raw tile data.

    :param data: raw data bytes to write.
    :param level: LZO compression level.
    :return: compressed data bytes.
    """
    return lzo.compress(data, level, False)


def decompress(data: bytes, length: int) -> bytes:
    """Decompress tile data.

    :param data: compressed data bytes.
    :param length: exact expected length of the output.
    :return: decompressed data bytes.
    :raise ValueError: when the stream is corrupt or the output length
        differs from ``length``.
    """
    try:
        result = lzo.decompress(data, False, length)
    except lzo.error as e:
        raise ValueError("Corrupt LZO stream: %s" % e) from e
    if len(result) != length:
        raise ValueError(
            "Decompressed length mismatch: expected %d, got %d" % (length, len(result))
        )
    return result
