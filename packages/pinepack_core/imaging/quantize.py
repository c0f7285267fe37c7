"""Nearest-palette-color quantization of RGBA images."""

from __future__ import annotations

from logging import getLogger

from ..errors import EncodingError
from .raster import (
    ALPHA_THRESHOLD,
    MAX_PALETTE_SIZE,
    TRANSPARENT_INDEX,
    EncodedImage,
    Palette,
    RasterImage,
)

logger = getLogger("pinepack_core.imaging.quantize")

Region = tuple[int, int, int, int]


def nearest_index(r: int, g: int, b: int, palette: Palette) -> int:
    closest = TRANSPARENT_INDEX
    closest_dist: int | None = None
    for c in range(min(len(palette), MAX_PALETTE_SIZE)):
        if c == TRANSPARENT_INDEX:
            continue
        pr, pg, pb = palette[c]
        dist = (r - pr) * (r - pr) + (g - pg) * (g - pg) + (b - pb) * (b - pb)
        if closest_dist is None or dist < closest_dist:
            closest = c
            closest_dist = dist
    return closest


def _resolve_region(image: RasterImage, region: Region | None) -> Region:
    if region is None:
        return 0, 0, image.width, image.height
    x0, y0, x1, y1 = region
    if x0 < 0 or y0 < 0 or x1 > image.width or y1 > image.height or x1 < x0 or y1 < y0:
        raise EncodingError(f"Region {region} is outside the {image.width}x{image.height} image")
    return x0, y0, x1, y1


def quantize(
    image: RasterImage,
    palette: Palette,
    *,
    region: Region | None = None,
    use_cache: bool = True,
) -> EncodedImage:
    """Map every pixel of ``region`` to a palette index (8bpp, row-major).

    Pixels with alpha below 128 always map to the transparent index 0. The
    previous opaque pixel's color is remembered so runs of one color skip the
    palette search.
    """

    x0, y0, x1, y1 = _resolve_region(image, region)
    width = x1 - x0
    height = y1 - y0
    data = image.rgba
    out = bytearray(width * height)

    prev_color: int | None = None
    prev_index = TRANSPARENT_INDEX
    searches = 0
    o = 0
    for y in range(y0, y1):
        i = (y * image.width + x0) * 4
        for _ in range(width):
            r, g, b, a = data[i], data[i + 1], data[i + 2], data[i + 3]
            i += 4
            if a < ALPHA_THRESHOLD:
                index = TRANSPARENT_INDEX
            else:
                color = (r << 16) | (g << 8) | b
                if use_cache and color == prev_color:
                    index = prev_index
                else:
                    index = nearest_index(r, g, b, palette)
                    searches += 1
                    prev_color = color
                    prev_index = index
            out[o] = index
            o += 1

    logger.debug("[QUANTIZE] %dx%d region quantized with %d palette searches", width, height, searches)
    return EncodedImage(width=width, height=height, bits_per_pixel=8, pixels=bytes(out))
