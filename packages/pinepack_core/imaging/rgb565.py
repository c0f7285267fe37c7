"""Direct RGBA to RGB565 conversion for full-screen backgrounds."""

from __future__ import annotations

import struct

from ..errors import EncodingError
from .raster import ALPHA_THRESHOLD, RasterImage

# R=B=0x1F, G=0: the transparency marker understood by the blitter.
TRANSPARENT_565 = (0x1F << 11) | 0x1F


def pack_rgb565(r: int, g: int, b: int) -> int:
    r5 = int(r / 255.0 * 0x1F)
    g6 = int(g / 255.0 * 0x3F)
    b5 = int(b / 255.0 * 0x1F)
    return (r5 << 11) | (g6 << 5) | b5


def to_rgb565(image: RasterImage) -> list[int]:
    """``[w, h, pixel...]`` as 16-bit values, row-major."""
    out = [image.width, image.height]
    data = image.rgba
    for i in range(0, len(data), 4):
        if data[i + 3] < ALPHA_THRESHOLD:
            out.append(TRANSPARENT_565)
        else:
            out.append(pack_rgb565(data[i], data[i + 1], data[i + 2]))
    return out


def rgb565_bytes(image: RasterImage) -> bytes:
    if image.width > 0xFFFF or image.height > 0xFFFF:
        raise EncodingError(f"Image {image.width}x{image.height} is too large for a 565 dump")
    values = to_rgb565(image)
    return struct.pack(f"<{len(values)}H", *values)
