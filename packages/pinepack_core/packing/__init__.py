"""Content hashing and binary container layouts."""

from .entries import AssetEntry, ResourceBatch
from .hashing import asset_stem, content_hash, file_key, image_key, variant_key
from .resource_pack import PackRecord, ResourcePack, build_resource_pack, layout_entries
from .sprite_table import build_sprite_table, read_sprite_table, sprite_table_header

__all__ = [
    "AssetEntry",
    "ResourceBatch",
    "asset_stem",
    "content_hash",
    "file_key",
    "image_key",
    "variant_key",
    "PackRecord",
    "ResourcePack",
    "build_resource_pack",
    "layout_entries",
    "build_sprite_table",
    "read_sprite_table",
    "sprite_table_header",
]
