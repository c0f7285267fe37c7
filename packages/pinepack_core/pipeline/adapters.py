"""Filesystem and in-memory implementations of the pipeline ports."""

from __future__ import annotations

import asyncio
import json
import os
import tempfile
from logging import getLogger
from pathlib import Path
from typing import Any, Iterable, Mapping

from PIL import Image

from ..errors import PaletteError
from ..imaging.raster import Palette, RasterImage, normalize_palette
from .ports import AssetCatalog, ByteSink, ImageSource, PaletteSupplier

logger = getLogger("pinepack_core.pipeline.adapters")


class StaticPaletteSupplier(PaletteSupplier):
    def __init__(self, colors: Iterable[Iterable[int]] | None) -> None:
        self._palette = normalize_palette(colors) if colors is not None else None

    def get(self) -> Palette | None:
        return self._palette


def _parse_hex_color(value: str) -> tuple[int, int, int]:
    text = value.strip().lstrip("#")
    if len(text) != 6:
        raise PaletteError(f"Expected #rrggbb color, got {value!r}")
    try:
        return int(text[0:2], 16), int(text[2:4], 16), int(text[4:6], 16)
    except ValueError as exc:
        raise PaletteError(f"Expected #rrggbb color, got {value!r}") from exc


def parse_gpl(text: str) -> Palette:
    colors: list[tuple[int, int, int]] = []
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or line.startswith("GIMP"):
            continue
        if line.startswith(("Name:", "Columns:")):
            continue
        parts = line.split()
        if len(parts) < 3:
            continue
        try:
            colors.append((int(parts[0]), int(parts[1]), int(parts[2])))
        except ValueError as exc:
            raise PaletteError(f"Bad GIMP palette line: {line!r}") from exc
    return normalize_palette(colors)


def parse_pal(data: bytes) -> Palette:
    """JASC-PAL text or raw RGB triples."""
    if data.startswith(b"JASC-PAL"):
        lines = data.decode("ascii").splitlines()
        return normalize_palette(line.split()[:3] for line in lines[3:] if line.strip())
    if len(data) % 3:
        raise PaletteError(f"Raw palette size {len(data)} is not a multiple of 3")
    return normalize_palette(data[i:i + 3] for i in range(0, len(data), 3))


def parse_json_palette(raw: Any) -> Palette:
    if not isinstance(raw, list):
        raise PaletteError("JSON palette must be a list")
    return normalize_palette(_parse_hex_color(c) if isinstance(c, str) else c for c in raw)


def palette_from_image(img: Image.Image) -> Palette:
    if img.mode == "P":
        flat = img.getpalette() or []
        return normalize_palette(flat[i:i + 3] for i in range(0, len(flat) - len(flat) % 3, 3))
    data = img.convert("RGB").tobytes()
    seen: dict[tuple[int, int, int], None] = {}
    for i in range(0, len(data), 3):
        seen.setdefault((data[i], data[i + 1], data[i + 2]), None)
    return normalize_palette(seen)


class FilePaletteSupplier(PaletteSupplier):
    """Palette read from a .gpl, .pal, .json or image file."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def get(self) -> Palette | None:
        if not self.path.is_file():
            logger.info("[PALETTE] No palette file at '%s'", self.path)
            return None
        suffix = self.path.suffix.lower()
        if suffix == ".gpl":
            palette = parse_gpl(self.path.read_text(encoding="utf-8"))
        elif suffix == ".pal":
            palette = parse_pal(self.path.read_bytes())
        elif suffix == ".json":
            palette = parse_json_palette(json.loads(self.path.read_text(encoding="utf-8")))
        else:
            with Image.open(self.path) as img:
                palette = palette_from_image(img)
        logger.debug("[PALETTE] Loaded %d colors from '%s'", len(palette), self.path)
        return palette


class PillowImageSource(ImageSource):
    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def _decode(self, identifier: str) -> RasterImage:
        with Image.open(self.root / identifier) as img:
            rgba = img.convert("RGBA")
        return RasterImage(width=rgba.width, height=rgba.height, rgba=rgba.tobytes())

    async def read(self, identifier: str) -> RasterImage:
        return await asyncio.to_thread(self._decode, identifier)

    async def read_bytes(self, identifier: str) -> bytes:
        return await asyncio.to_thread((self.root / identifier).read_bytes)


class MemoryImageSource(ImageSource):
    """Images and files held in memory.

    ``delays`` maps an identifier to a number of event-loop turns to yield
    before answering, which lets callers reorder task completion.
    """

    def __init__(
        self,
        images: Mapping[str, RasterImage] | None = None,
        files: Mapping[str, bytes] | None = None,
        *,
        delays: Mapping[str, int] | None = None,
    ) -> None:
        self.images = dict(images or {})
        self.files = dict(files or {})
        self.delays = dict(delays or {})

    async def _wait(self, identifier: str) -> None:
        for _ in range(self.delays.get(identifier, 0)):
            await asyncio.sleep(0)

    async def read(self, identifier: str) -> RasterImage:
        await self._wait(identifier)
        if identifier not in self.images:
            raise FileNotFoundError(identifier)
        return self.images[identifier]

    async def read_bytes(self, identifier: str) -> bytes:
        await self._wait(identifier)
        if identifier not in self.files:
            raise FileNotFoundError(identifier)
        return self.files[identifier]


class DirectoryByteSink(ByteSink):
    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def write(self, name: str, data: bytes) -> None:
        path = self.root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.debug("[SINK] Wrote %d bytes to '%s'", len(data), path)


class MemoryByteSink(ByteSink):
    def __init__(self) -> None:
        self.written: dict[str, bytes] = {}

    def write(self, name: str, data: bytes) -> None:
        self.written[name] = bytes(data)


class DirectoryCatalog(AssetCatalog):
    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def _children(self, directory: str) -> list[Path]:
        base = self.root / directory
        if not base.is_dir():
            return []
        return sorted((p for p in base.iterdir() if not p.name.startswith(".")), key=lambda p: p.name)

    def list_files(self, directory: str) -> list[str]:
        return [p.name for p in self._children(directory) if p.is_file()]

    def list_dirs(self, directory: str) -> list[str]:
        return [p.name for p in self._children(directory) if p.is_dir()]


class MemoryCatalog(AssetCatalog):
    """Catalog over slash-separated paths, preserving their given order."""

    def __init__(self, paths: Iterable[str]) -> None:
        self.paths = [p.strip("/") for p in paths]

    def _entries(self, directory: str) -> list[tuple[str, bool]]:
        prefix = directory.strip("/")
        out: dict[str, bool] = {}
        for path in self.paths:
            if prefix:
                if not path.startswith(prefix + "/"):
                    continue
                rest = path[len(prefix) + 1:]
            else:
                rest = path
            head, sep, _ = rest.partition("/")
            out[head] = out.get(head, False) or bool(sep)
        return list(out.items())

    def list_files(self, directory: str) -> list[str]:
        return [name for name, is_dir in self._entries(directory) if not is_dir]

    def list_dirs(self, directory: str) -> list[str]:
        return [name for name, is_dir in self._entries(directory) if is_dir]

