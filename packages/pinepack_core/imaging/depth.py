"""Re-encoding of 8bpp index images at the narrowest sufficient depth.

An image whose non-zero indices all share one value becomes a 1bpp mask, a
narrow index range is shifted down by ``bias`` and stored as nibbles, and
anything wider stays at 8bpp. ``bias`` is the smallest non-zero index minus
one, so stored non-zero values start at 1 and 0 keeps meaning transparent.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..errors import EncodingError
from .bitpack import pack_indices, pack_rows, unpack_indices, unpack_rows
from .raster import TRANSPARENT_INDEX, EncodedImage

# Largest index range whose shifted values (1 .. range + 1) fit in a nibble.
MAX_NARROW_RANGE = 14
DEFAULT_VARIANT_MAX_AREA = 128 * 128


def _require_8bpp(image: EncodedImage) -> None:
    if image.bits_per_pixel != 8:
        raise EncodingError(f"Expected an 8bpp image, got {image.bits_per_pixel}bpp")


def index_range(image: EncodedImage) -> tuple[int, int] | None:
    _require_8bpp(image)
    used = [c for c in image.pixels if c != TRANSPARENT_INDEX]
    if not used:
        return None
    return min(used), max(used)


def is_narrow(image: EncodedImage) -> bool:
    bounds = index_range(image)
    if bounds is None:
        return True
    return bounds[1] - bounds[0] <= MAX_NARROW_RANGE


def optimize_depth(image: EncodedImage) -> EncodedImage:
    bounds = index_range(image)
    if bounds is None:
        return _to_mask(image, bias=0)

    min_index, max_index = bounds
    span = max_index - min_index
    if span == 0:
        return _to_mask(image, bias=min_index - 1)
    if span <= MAX_NARROW_RANGE:
        return _to_nibbles(image, bias=min_index - 1)
    return image


def _to_mask(image: EncodedImage, *, bias: int) -> EncodedImage:
    bits = [1 if c != TRANSPARENT_INDEX else 0 for c in image.pixels]
    return EncodedImage(
        width=image.width,
        height=image.height,
        bits_per_pixel=1,
        pixels=pack_rows(bits, image.width, 1),
        bias=bias,
    )


def _to_nibbles(image: EncodedImage, *, bias: int) -> EncodedImage:
    shifted = [c - bias if c != TRANSPARENT_INDEX else 0 for c in image.pixels]
    return EncodedImage(
        width=image.width,
        height=image.height,
        bits_per_pixel=4,
        pixels=pack_indices(shifted, 4),
        bias=bias,
    )


def decode_indices(image: EncodedImage) -> list[int]:
    """Recover the per-pixel 8bpp indices of any depth-optimized image."""
    count = image.area
    if image.bits_per_pixel == 8:
        return list(image.pixels)
    if image.bits_per_pixel == 4:
        values = unpack_indices(image.pixels, count, 4)
    elif image.bits_per_pixel == 1:
        values = unpack_rows(image.pixels, image.width, image.height, 1)
    else:
        raise EncodingError(f"Unsupported bit depth: {image.bits_per_pixel}")
    return [v + image.bias if v else TRANSPARENT_INDEX for v in values]


@dataclass(frozen=True)
class DepthPlan:
    primary: EncodedImage
    variant: EncodedImage | None = None
    alias: bool = False


def plan_variants(image: EncodedImage, *, max_area: int = DEFAULT_VARIANT_MAX_AREA) -> DepthPlan:
    """Decide the primary encoding and the secondary key's target.

    Small images get a secondary key: a separate full 8bpp variant when the
    primary was narrowed, otherwise an alias of the primary itself.
    """

    primary = optimize_depth(image)
    if image.area >= max_area:
        return DepthPlan(primary=primary)
    if is_narrow(image):
        return DepthPlan(primary=primary, variant=image)
    return DepthPlan(primary=primary, alias=True)
