#!/usr/bin/env python3

from __future__ import annotations

import struct
import unittest

from packages.pinepack_core.errors import PackFormatError
from packages.pinepack_core.imaging.raster import EncodedImage
from packages.pinepack_core.packing.sprite_table import (
    build_sprite_table,
    read_sprite_table,
    sprite_table_header,
)


def _image(width: int, height: int, indices: list[int]) -> EncodedImage:
    return EncodedImage(width=width, height=height, bits_per_pixel=8, pixels=bytes(indices))


class SpriteTableTests(unittest.TestCase):
    def test_layout_pads_each_hash_to_four_bytes(self) -> None:
        records = [(0x11223344, _image(2, 1, [1, 2])), (0xAABBCCDD, _image(1, 1, [3]))]
        blob = build_sprite_table(records)

        self.assertEqual(len(blob), 25)
        self.assertEqual(blob[0:4], struct.pack("<I", 2))
        self.assertEqual(blob[4:8], bytes([0x44, 0x33, 0x22, 0x11]))
        self.assertEqual(blob[8:10], b"\x00\x00")
        self.assertEqual(blob[10:14], bytes([2, 1, 1, 2]))
        self.assertEqual(blob[14:16], b"\x00\x00")
        self.assertEqual(blob[16:20], struct.pack("<I", 0xAABBCCDD))
        self.assertEqual(blob[20:22], b"\x00\x00")
        self.assertEqual(blob[22:25], bytes([1, 1, 3]))

    def test_aligned_records_need_no_padding(self) -> None:
        blob = build_sprite_table([(1, _image(2, 1, [0, 0])), (2, _image(1, 1, [9]))])
        # First record is 4 + 2 + 2 + 2 = 10 bytes, so the second starts at 16.
        self.assertEqual(struct.unpack_from("<I", blob, 16)[0], 2)

    def test_empty_table(self) -> None:
        self.assertEqual(build_sprite_table([]), b"\x00\x00\x00\x00")

    def test_reader_recovers_records_in_order(self) -> None:
        records = [(7, _image(3, 1, [1, 2, 3])), (3, _image(1, 2, [4, 0])), (5, _image(1, 1, [6]))]
        self.assertEqual(read_sprite_table(build_sprite_table(records)), records)

    def test_reader_rejects_truncated_blob(self) -> None:
        blob = build_sprite_table([(7, _image(3, 1, [1, 2, 3]))])
        with self.assertRaises(PackFormatError):
            read_sprite_table(blob[:-1])

    def test_header_embeds_blob(self) -> None:
        header = sprite_table_header()
        self.assertIn("extern const char assets[];", header)
        self.assertIn('.incbin \\"assets.bin\\"', header)


if __name__ == "__main__":
    unittest.main()
