"""Indexed resource pack layout.

Layout (little endian)::

    [u32 count]
    { [u32 key][u32 offset] }*count      sorted by key
    { [u32 length][payload] }*           sorted by (length, primary key)

``count`` is the number of keys; a secondary key that aliases its primary
entry gets its own index record but shares the payload. Offsets point at the
length prefix and are absolute within the pack, so the first payload sits at
``4 + 8 * count``.
"""

from __future__ import annotations

from bisect import bisect_left
from dataclasses import dataclass
from logging import getLogger
import struct

from ..errors import PackFormatError
from .entries import AssetEntry, ResourceBatch
from .hashing import content_hash

logger = getLogger("pinepack_core.packing.resource_pack")

HEADER_SIZE = 4
INDEX_RECORD_SIZE = 8
LENGTH_PREFIX_SIZE = 4


def index_size(key_count: int) -> int:
    return HEADER_SIZE + key_count * INDEX_RECORD_SIZE


def layout_entries(batch: ResourceBatch) -> list[AssetEntry]:
    """First pass: order payloads by size and assign their offsets."""
    ordered = sorted(batch.entries(), key=lambda e: (len(e.payload), e.primary_key))
    pos = index_size(len(batch))
    for entry in ordered:
        entry.position = pos
        pos += LENGTH_PREFIX_SIZE + len(entry.payload)
    return ordered


def build_resource_pack(batch: ResourceBatch) -> bytes:
    ordered = layout_entries(batch)
    keys = batch.keys()
    total = index_size(len(keys)) + sum(LENGTH_PREFIX_SIZE + len(e.payload) for e in ordered)
    out = bytearray(total)

    struct.pack_into("<I", out, 0, len(keys))
    for i, key in enumerate(keys):
        entry = batch.get(key)
        struct.pack_into("<II", out, HEADER_SIZE + i * INDEX_RECORD_SIZE, key, entry.position)

    for entry in ordered:
        pos = entry.position
        struct.pack_into("<I", out, pos, len(entry.payload))
        start = pos + LENGTH_PREFIX_SIZE
        out[start:start + len(entry.payload)] = entry.payload

    logger.debug("[PACK] Laid out '%s': keys=%d, payloads=%d, bytes=%d",
                 batch.name, len(keys), len(ordered), total)
    return bytes(out)


@dataclass(frozen=True)
class PackRecord:
    key: int
    offset: int
    payload: bytes


class ResourcePack:
    """Read-only view over a serialized pack."""

    def __init__(self, records: list[PackRecord]) -> None:
        self.records = records
        self._keys = [r.key for r in records]

    def __len__(self) -> int:
        return len(self.records)

    @classmethod
    def parse(cls, blob: bytes) -> "ResourcePack":
        if len(blob) < HEADER_SIZE:
            raise PackFormatError("Pack is missing its count header")
        (count,) = struct.unpack_from("<I", blob, 0)
        if index_size(count) > len(blob):
            raise PackFormatError(f"Pack index for {count} keys exceeds blob size {len(blob)}")

        records: list[PackRecord] = []
        previous: int | None = None
        for i in range(count):
            key, offset = struct.unpack_from("<II", blob, HEADER_SIZE + i * INDEX_RECORD_SIZE)
            if previous is not None and key <= previous:
                raise PackFormatError(f"Index record {i} is not sorted by key")
            previous = key
            if offset < index_size(count) or offset + LENGTH_PREFIX_SIZE > len(blob):
                raise PackFormatError(f"Offset {offset} for key {key:#010x} is outside the payload area")
            (length,) = struct.unpack_from("<I", blob, offset)
            start = offset + LENGTH_PREFIX_SIZE
            if start + length > len(blob):
                raise PackFormatError(f"Payload for key {key:#010x} is truncated")
            records.append(PackRecord(key=key, offset=offset, payload=bytes(blob[start:start + length])))
        return cls(records)

    def find(self, key: int) -> bytes | None:
        i = bisect_left(self._keys, key)
        if i < len(self._keys) and self._keys[i] == key:
            return self.records[i].payload
        return None

    def lookup(self, name: str) -> bytes | None:
        return self.find(content_hash(name))
