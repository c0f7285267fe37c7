"""Batch orchestration and the ports it talks to."""

from .adapters import (
    DirectoryByteSink,
    DirectoryCatalog,
    FilePaletteSupplier,
    MemoryByteSink,
    MemoryCatalog,
    MemoryImageSource,
    PillowImageSource,
    StaticPaletteSupplier,
)
from .batch import AssetPipeline, BatchResult, PackRunSummary, gather_or_cancel, run
from .ports import AssetCatalog, ByteSink, ImageSource, PaletteSupplier

__all__ = [
    "AssetCatalog",
    "ByteSink",
    "ImageSource",
    "PaletteSupplier",
    "DirectoryByteSink",
    "DirectoryCatalog",
    "FilePaletteSupplier",
    "MemoryByteSink",
    "MemoryCatalog",
    "MemoryImageSource",
    "PillowImageSource",
    "StaticPaletteSupplier",
    "AssetPipeline",
    "BatchResult",
    "PackRunSummary",
    "gather_or_cancel",
    "run",
]
