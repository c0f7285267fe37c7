"""Interfaces through which the pipeline reaches its host environment."""

from __future__ import annotations

from abc import ABC, abstractmethod

from ..imaging.raster import Palette, RasterImage


class PaletteSupplier(ABC):
    @abstractmethod
    def get(self) -> Palette | None:
        """Return the active palette, or None when no palette is available."""
        raise NotImplementedError


class ImageSource(ABC):
    @abstractmethod
    async def read(self, identifier: str) -> RasterImage:
        raise NotImplementedError

    @abstractmethod
    async def read_bytes(self, identifier: str) -> bytes:
        raise NotImplementedError


class ByteSink(ABC):
    @abstractmethod
    def write(self, name: str, data: bytes) -> None:
        raise NotImplementedError


class AssetCatalog(ABC):
    @abstractmethod
    def list_files(self, directory: str) -> list[str]:
        raise NotImplementedError

    @abstractmethod
    def list_dirs(self, directory: str) -> list[str]:
        raise NotImplementedError
