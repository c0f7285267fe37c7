"""Pixel buffers, palettes and encoded image containers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from ..errors import EncodingError, PaletteError

TRANSPARENT_INDEX = 0
ALPHA_THRESHOLD = 128
MAX_PALETTE_SIZE = 256
SUPPORTED_DEPTHS = (1, 4, 8)

RGB = tuple[int, int, int]
Palette = tuple[RGB, ...]


def normalize_palette(colors: Iterable[Iterable[int]]) -> Palette:
    out: list[RGB] = []
    for i, color in enumerate(colors):
        try:
            components = tuple(int(c) for c in color)
        except (TypeError, ValueError) as exc:
            raise PaletteError(f"Palette entry {i} is not a color: {color!r}") from exc
        if len(components) < 3:
            raise PaletteError(f"Palette entry {i} has {len(components)} components, expected 3")
        r, g, b = components[:3]
        if not all(0 <= c <= 255 for c in (r, g, b)):
            raise PaletteError(f"Palette entry {i} out of range: {(r, g, b)}")
        out.append((r, g, b))
    if len(out) > MAX_PALETTE_SIZE:
        raise PaletteError(f"Palette has {len(out)} entries, limit is {MAX_PALETTE_SIZE}")
    return tuple(out)


@dataclass(frozen=True)
class RasterImage:
    """Interleaved RGBA pixels, row-major."""

    width: int
    height: int
    rgba: bytes

    def __post_init__(self) -> None:
        if self.width < 0 or self.height < 0:
            raise EncodingError(f"Invalid image size {self.width}x{self.height}")
        expected = self.width * self.height * 4
        if len(self.rgba) != expected:
            raise EncodingError(
                f"RGBA buffer has {len(self.rgba)} bytes, expected {expected} for {self.width}x{self.height}"
            )

    def pixel(self, x: int, y: int) -> tuple[int, int, int, int]:
        i = (y * self.width + x) * 4
        r, g, b, a = self.rgba[i:i + 4]
        return r, g, b, a


def expected_pixel_bytes(width: int, height: int, bits_per_pixel: int) -> int:
    if bits_per_pixel == 8:
        return width * height
    if bits_per_pixel == 4:
        return (width * height + 1) // 2
    if bits_per_pixel == 1:
        return (width + 7) // 8 * height
    raise EncodingError(f"Unsupported bit depth: {bits_per_pixel}")


def _check_byte_dimension(name: str, value: int) -> None:
    if not 0 <= value <= 0xFF:
        raise EncodingError(f"Image {name} {value} does not fit in one byte")


@dataclass(frozen=True)
class EncodedImage:
    width: int
    height: int
    bits_per_pixel: int
    pixels: bytes
    bias: int = 0

    def __post_init__(self) -> None:
        _check_byte_dimension("width", self.width)
        _check_byte_dimension("height", self.height)
        if not 0 <= self.bias <= 0xFF:
            raise EncodingError(f"Bias {self.bias} does not fit in one byte")
        expected = expected_pixel_bytes(self.width, self.height, self.bits_per_pixel)
        if len(self.pixels) != expected:
            raise EncodingError(
                f"{self.bits_per_pixel}bpp payload for {self.width}x{self.height} "
                f"must be {expected} bytes, got {len(self.pixels)}"
            )

    @property
    def area(self) -> int:
        return self.width * self.height

    def raw_bytes(self) -> bytes:
        """``[w][h][indices...]``, the unoptimized 8bpp layout."""
        if self.bits_per_pixel != 8:
            raise EncodingError("Only 8bpp images have a raw layout")
        return bytes((self.width, self.height)) + self.pixels

    def tagged_bytes(self) -> bytes:
        """``[bias][depth][w][h][pixels...]``, the depth-tagged layout."""
        return bytes((self.bias, self.bits_per_pixel, self.width, self.height)) + self.pixels


def parse_raw(data: bytes) -> EncodedImage:
    if len(data) < 2:
        raise EncodingError("Raw image is missing its width/height header")
    return EncodedImage(width=data[0], height=data[1], bits_per_pixel=8, pixels=bytes(data[2:]))


def parse_tagged(data: bytes) -> EncodedImage:
    if len(data) < 4:
        raise EncodingError("Tagged image is missing its 4-byte header")
    bias, depth, width, height = data[:4]
    if depth not in SUPPORTED_DEPTHS:
        raise EncodingError(f"Unknown depth tag: {depth}")
    return EncodedImage(width=width, height=height, bits_per_pixel=depth, pixels=bytes(data[4:]), bias=bias)
