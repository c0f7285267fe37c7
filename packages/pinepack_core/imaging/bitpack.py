"""Packing of palette indices into 1, 4 or 8 bits per pixel.

Within a byte the pixel with the smaller offset occupies the more significant
bits, so a 4bpp byte holds the first pixel in its high nibble.
"""

from __future__ import annotations

from typing import Sequence

from ..errors import EncodingError
from .raster import SUPPORTED_DEPTHS


def _pixels_per_byte(bpp: int) -> int:
    if bpp not in SUPPORTED_DEPTHS:
        raise EncodingError(f"Unsupported bit depth: {bpp}")
    return 8 // bpp


def _pack_into(out: bytearray, base: int, values: Sequence[int], bpp: int) -> None:
    ppb = 8 // bpp
    limit = 1 << bpp
    for i, value in enumerate(values):
        if not 0 <= value < limit:
            raise EncodingError(f"Index {value} at position {i} does not fit in {bpp} bits")
        shift = (ppb - 1 - i % ppb) * bpp
        out[base + i // ppb] |= value << shift


def pack_indices(values: Sequence[int], bpp: int) -> bytes:
    """Pack indices back to back; rows are not byte aligned."""
    ppb = _pixels_per_byte(bpp)
    out = bytearray((len(values) + ppb - 1) // ppb)
    _pack_into(out, 0, values, bpp)
    return bytes(out)


def pack_rows(values: Sequence[int], width: int, bpp: int) -> bytes:
    """Pack indices row by row, padding every row to a byte boundary."""
    ppb = _pixels_per_byte(bpp)
    if width <= 0:
        return b""
    if len(values) % width:
        raise EncodingError(f"{len(values)} indices do not form rows of width {width}")
    stride = (width + ppb - 1) // ppb
    height = len(values) // width
    out = bytearray(stride * height)
    for y in range(height):
        _pack_into(out, y * stride, values[y * width:(y + 1) * width], bpp)
    return bytes(out)


def _unpack_from(data: bytes, base: int, count: int, bpp: int) -> list[int]:
    ppb = 8 // bpp
    mask = (1 << bpp) - 1
    out = []
    for i in range(count):
        shift = (ppb - 1 - i % ppb) * bpp
        out.append((data[base + i // ppb] >> shift) & mask)
    return out


def unpack_indices(data: bytes, count: int, bpp: int) -> list[int]:
    ppb = _pixels_per_byte(bpp)
    if len(data) * ppb < count:
        raise EncodingError(f"{len(data)} bytes cannot hold {count} pixels at {bpp}bpp")
    return _unpack_from(data, 0, count, bpp)


def unpack_rows(data: bytes, width: int, height: int, bpp: int) -> list[int]:
    ppb = _pixels_per_byte(bpp)
    stride = (width + ppb - 1) // ppb
    if len(data) < stride * height:
        raise EncodingError(f"{len(data)} bytes cannot hold {height} rows of {stride} bytes")
    out: list[int] = []
    for y in range(height):
        out.extend(_unpack_from(data, y * stride, width, bpp))
    return out
