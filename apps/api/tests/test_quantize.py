#!/usr/bin/env python3

from __future__ import annotations

import unittest

from packages.pinepack_core.errors import EncodingError
from packages.pinepack_core.imaging.depth import optimize_depth
from packages.pinepack_core.imaging.quantize import nearest_index, quantize
from packages.pinepack_core.imaging.raster import RasterImage, parse_raw

PALETTE = (
    (0, 0, 0),
    (255, 0, 0),
    (0, 255, 0),
    (0, 0, 255),
    (255, 255, 255),
)

RED = (255, 0, 0, 255)
GREEN = (0, 255, 0, 255)
BLUE = (0, 0, 255, 255)


def _raster(width: int, height: int, pixels: list[tuple[int, int, int, int]]) -> RasterImage:
    return RasterImage(width=width, height=height, rgba=bytes(c for px in pixels for c in px))


class QuantizeTests(unittest.TestCase):
    def test_transparent_pixels_always_map_to_zero(self) -> None:
        pixels = [(255, 0, 0, 0), (0, 255, 0, 127), (255, 255, 255, 64), (0, 0, 255, 1), (9, 9, 9, 100), (1, 2, 3, 0)]
        image = quantize(_raster(3, 2, pixels), PALETTE)
        self.assertEqual(list(image.pixels), [0] * 6)

    def test_alpha_threshold_is_128(self) -> None:
        image = quantize(_raster(2, 1, [(0, 255, 0, 127), (0, 255, 0, 128)]), PALETTE)
        self.assertEqual(list(image.pixels), [0, 2])

    def test_solid_palette_color_with_and_without_cache(self) -> None:
        raster = _raster(4, 3, [GREEN] * 12)
        cached = quantize(raster, PALETTE)
        uncached = quantize(raster, PALETTE, use_cache=False)
        self.assertEqual(list(cached.pixels), [2] * 12)
        self.assertEqual(cached, uncached)

    def test_cache_matches_full_search_on_mixed_runs(self) -> None:
        pixels = [RED, RED, (250, 240, 245, 255), (250, 240, 245, 10), (250, 240, 245, 255), BLUE, BLUE, RED]
        raster = _raster(4, 2, pixels)
        self.assertEqual(quantize(raster, PALETTE), quantize(raster, PALETTE, use_cache=False))
        self.assertEqual(list(quantize(raster, PALETTE).pixels), [1, 1, 4, 0, 4, 3, 3, 1])

    def test_ties_resolve_to_lowest_index_and_skip_zero(self) -> None:
        # Black is equidistant from red, green and blue; index 0 is never chosen.
        self.assertEqual(nearest_index(0, 0, 0, PALETTE), 1)
        self.assertEqual(nearest_index(250, 10, 10, PALETTE), 1)

    def test_two_by_two_scenario(self) -> None:
        image = quantize(_raster(2, 2, [RED, GREEN, BLUE, RED]), PALETTE)
        raw = image.raw_bytes()
        self.assertEqual(len(raw), 6)
        self.assertEqual(raw, bytes([2, 2, 1, 2, 3, 1]))
        self.assertEqual(parse_raw(raw), image)

        optimized = optimize_depth(image)
        self.assertEqual(optimized.bits_per_pixel, 4)
        self.assertEqual(optimized.tagged_bytes(), bytes([0, 4, 2, 2, 0x12, 0x31]))

    def test_region_extracts_sub_rectangle(self) -> None:
        raster = _raster(4, 2, [RED, GREEN, BLUE, RED, BLUE, BLUE, GREEN, GREEN])
        image = quantize(raster, PALETTE, region=(1, 0, 3, 2))
        self.assertEqual((image.width, image.height), (2, 2))
        self.assertEqual(list(image.pixels), [2, 3, 3, 2])

    def test_region_outside_image_is_rejected(self) -> None:
        with self.assertRaises(EncodingError):
            quantize(_raster(1, 1, [RED]), PALETTE, region=(0, 0, 2, 1))

    def test_palette_with_only_transparent_entry_maps_everything_to_zero(self) -> None:
        image = quantize(_raster(2, 1, [RED, GREEN]), ((10, 10, 10),))
        self.assertEqual(list(image.pixels), [0, 0])

    def test_output_indices_stay_within_palette(self) -> None:
        pixels = [(x * 40 % 256, x * 70 % 256, x * 90 % 256, 255) for x in range(12)]
        image = quantize(_raster(6, 2, pixels), PALETTE)
        self.assertTrue(all(0 <= c < len(PALETTE) for c in image.pixels))

    def test_images_wider_than_255_cannot_be_encoded(self) -> None:
        with self.assertRaises(EncodingError):
            quantize(_raster(256, 1, [RED] * 256), PALETTE)

    def test_raster_buffer_length_is_checked(self) -> None:
        with self.assertRaises(EncodingError):
            RasterImage(width=2, height=2, rgba=bytes(15))


if __name__ == "__main__":
    unittest.main()
