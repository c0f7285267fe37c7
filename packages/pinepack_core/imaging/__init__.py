"""Image encoding primitives: quantization, bit packing and depth selection."""

from .bitpack import pack_indices, pack_rows, unpack_indices, unpack_rows
from .depth import DepthPlan, decode_indices, index_range, is_narrow, optimize_depth, plan_variants
from .quantize import nearest_index, quantize
from .raster import (
    EncodedImage,
    Palette,
    RasterImage,
    normalize_palette,
    parse_raw,
    parse_tagged,
)
from .rgb565 import TRANSPARENT_565, rgb565_bytes, to_rgb565

__all__ = [
    "EncodedImage",
    "Palette",
    "RasterImage",
    "normalize_palette",
    "parse_raw",
    "parse_tagged",
    "nearest_index",
    "quantize",
    "pack_indices",
    "pack_rows",
    "unpack_indices",
    "unpack_rows",
    "DepthPlan",
    "decode_indices",
    "index_range",
    "is_narrow",
    "optimize_depth",
    "plan_variants",
    "TRANSPARENT_565",
    "rgb565_bytes",
    "to_rgb565",
]
