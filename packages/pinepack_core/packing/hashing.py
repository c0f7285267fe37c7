"""32-bit content keys for asset names.

Keys are a DJB2-style hash (seed 5381, multiplier 31) over the name with a
leading double quote, matching the lookup done by the device runtime. They
are stable but not collision free.
"""

from __future__ import annotations

import struct

SEED = 5381
MULTIPLIER = 31
MASK = 0xFFFFFFFF


def _utf16_units(text: str) -> tuple[int, ...]:
    raw = text.encode("utf-16-le", "surrogatepass")
    return struct.unpack(f"<{len(raw) // 2}H", raw)


def content_hash(name: str) -> int:
    v = SEED
    for unit in _utf16_units('"' + name):
        v = (((v * MULTIPLIER) & MASK) + unit) & MASK
    return v


def asset_stem(filename: str) -> str:
    """Strip everything from the first dot: ``hero.idle.png`` -> ``hero``."""
    return filename.split(".", 1)[0]


def image_key(filename: str) -> int:
    return content_hash(asset_stem(filename))


def variant_key(filename: str, suffix: str = ":8") -> int:
    return content_hash(asset_stem(filename) + suffix)


def file_key(filename: str) -> int:
    return content_hash(filename)
