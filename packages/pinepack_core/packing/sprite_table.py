"""Flat sprite table: every sprite at 8bpp, addressed by hash.

Layout (little endian)::

    [u32 count] { pad-to-4 [u32 hash][u16 0][u8 w][u8 h][w*h indices] }*
"""

from __future__ import annotations

import struct
from typing import Sequence

from ..errors import PackFormatError
from ..imaging.raster import EncodedImage

COUNT_SIZE = 4
RECORD_HEADER_SIZE = 6


def _align4(offset: int) -> int:
    return (offset + 3) & ~3


def _record_offsets(images: Sequence[EncodedImage]) -> tuple[list[int], int]:
    offsets: list[int] = []
    pos = COUNT_SIZE
    for image in images:
        pos = _align4(pos)
        offsets.append(pos)
        pos += RECORD_HEADER_SIZE + 2 + len(image.pixels)
    return offsets, pos


def build_sprite_table(records: Sequence[tuple[int, EncodedImage]]) -> bytes:
    """Serialize ``(key, image)`` pairs in the given order."""
    images = [image for _, image in records]
    offsets, total = _record_offsets(images)
    out = bytearray(total)
    struct.pack_into("<I", out, 0, len(records))
    for (key, image), offset in zip(records, offsets):
        raw = image.raw_bytes()
        struct.pack_into("<IH", out, offset, key, 0)
        start = offset + RECORD_HEADER_SIZE
        out[start:start + len(raw)] = raw
    return bytes(out)


def read_sprite_table(blob: bytes) -> list[tuple[int, EncodedImage]]:
    if len(blob) < COUNT_SIZE:
        raise PackFormatError("Sprite table is missing its count header")
    (count,) = struct.unpack_from("<I", blob, 0)
    out: list[tuple[int, EncodedImage]] = []
    pos = COUNT_SIZE
    for i in range(count):
        pos = _align4(pos)
        if pos + RECORD_HEADER_SIZE + 2 > len(blob):
            raise PackFormatError(f"Sprite record {i} is truncated")
        key, _reserved = struct.unpack_from("<IH", blob, pos)
        width, height = blob[pos + RECORD_HEADER_SIZE], blob[pos + RECORD_HEADER_SIZE + 1]
        start = pos + RECORD_HEADER_SIZE + 2
        end = start + width * height
        if end > len(blob):
            raise PackFormatError(f"Sprite record {i} pixels are truncated")
        out.append((key, EncodedImage(width=width, height=height, bits_per_pixel=8, pixels=blob[start:end])))
        pos = end
    return out


def sprite_table_header(symbol: str = "assets", blob_name: str = "assets.bin") -> str:
    """C++ header that embeds the table blob under ``symbol``."""
    return (
        "\n"
        'extern "C" {\n'
        f"    extern const char {symbol}[];\n"
        "}\n"
        "\n"
        f'__asm__(".global {symbol}\\n.align\\n{symbol}:\\n.incbin \\"{blob_name}\\"");\n'
    )
