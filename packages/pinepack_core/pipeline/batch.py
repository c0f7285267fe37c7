"""Batch conversion of project assets into sprite tables, packs and 565 dumps.

Each file of a batch is read and encoded by its own asyncio task. The batch
waits for all of them before laying anything out, and the first failure
cancels the remaining tasks and aborts the batch before the sink is touched.
Output order never depends on task completion: sprite tables follow catalog
order, packs sort by key and payload size.
"""

from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass, field
from logging import getLogger
from pathlib import Path
from typing import Any, Awaitable, Coroutine, Iterable, TypeVar

from ..config import PipelineConfig, load_config
from ..imaging.depth import plan_variants
from ..imaging.quantize import quantize
from ..imaging.raster import EncodedImage, Palette
from ..imaging.rgb565 import rgb565_bytes
from ..packing.entries import AssetEntry, ResourceBatch
from ..packing.hashing import asset_stem, file_key, image_key, variant_key
from ..packing.resource_pack import build_resource_pack
from ..packing.sprite_table import build_sprite_table, sprite_table_header
from .adapters import (
    DirectoryByteSink,
    DirectoryCatalog,
    FilePaletteSupplier,
    PillowImageSource,
    StaticPaletteSupplier,
)
from .ports import AssetCatalog, ByteSink, ImageSource, PaletteSupplier

logger = getLogger("pinepack_core.pipeline.batch")

T = TypeVar("T")

_PNG_RE = re.compile(r"\.png$", re.IGNORECASE)


def is_png(name: str) -> bool:
    return bool(_PNG_RE.search(name))


def _join(directory: str, name: str) -> str:
    directory = directory.strip("/")
    return f"{directory}/{name}" if directory else name


async def gather_or_cancel(aws: Iterable[Awaitable[T]]) -> list[T]:
    """Run awaitables concurrently; on the first error cancel the rest and re-raise."""
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


def run(coro: Coroutine[Any, Any, T]) -> T:
    return asyncio.run(coro)


@dataclass(frozen=True)
class BatchResult:
    name: str
    key_count: int
    payload_count: int
    size: int

    def as_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "key_count": self.key_count,
            "payload_count": self.payload_count,
            "size": self.size,
        }


@dataclass
class PackRunSummary:
    written: list[BatchResult] = field(default_factory=list)
    empty: list[str] = field(default_factory=list)
    failures: dict[str, str] = field(default_factory=dict)
    palette_missing: bool = False

    @property
    def ok(self) -> bool:
        return not self.failures

    def as_dict(self) -> dict[str, Any]:
        return {
            "ok": self.ok,
            "palette_missing": self.palette_missing,
            "written": [r.as_dict() for r in self.written],
            "empty": list(self.empty),
            "failures": dict(self.failures),
        }


class AssetPipeline:
    def __init__(
        self,
        *,
        palette_supplier: PaletteSupplier,
        image_source: ImageSource,
        sink: ByteSink,
        catalog: AssetCatalog,
        config: PipelineConfig | None = None,
    ) -> None:
        self._palette_supplier = palette_supplier
        self._source = image_source
        self._sink = sink
        self._catalog = catalog
        self.config = config or load_config()

    @classmethod
    def for_workspace(
        cls,
        config: PipelineConfig | None = None,
        *,
        palette_path: str | Path | None = None,
    ) -> "AssetPipeline":
        config = config or load_config()
        root = config.workspace_root
        palette_path = palette_path or config.palette_path
        if palette_path:
            palette_supplier: PaletteSupplier = FilePaletteSupplier(root / palette_path)
        else:
            palette_supplier = StaticPaletteSupplier(None)
        return cls(
            palette_supplier=palette_supplier,
            image_source=PillowImageSource(root),
            sink=DirectoryByteSink(root),
            catalog=DirectoryCatalog(root),
            config=config,
        )

    def _palette(self, batch: str) -> Palette | None:
        palette = self._palette_supplier.get()
        if palette is None:
            logger.debug("[BATCH] No palette available; skipping '%s'", batch)
        return palette

    async def _quantize_file(self, path: str, palette: Palette) -> EncodedImage:
        raster = await self._source.read(path)
        return await asyncio.to_thread(quantize, raster, palette)

    async def build_sprite_table(self, directory: str | None = None) -> BatchResult | None:
        directory = self.config.sprites_dir if directory is None else directory
        palette = self._palette(directory)
        if palette is None:
            return None

        files = [f for f in self._catalog.list_files(directory) if is_png(f)]
        if len(files) > self.config.max_sprites:
            logger.warning("[SPRITES] %d sprites found in '%s', keeping the first %d",
                           len(files), directory, self.config.max_sprites)
            files = files[:self.config.max_sprites]
        if not files:
            logger.info("[SPRITES] No sprites in '%s'; nothing written", directory)
            return None

        images = await gather_or_cancel(self._quantize_file(_join(directory, f), palette) for f in files)

        batch = ResourceBatch(name=directory)
        records: list[tuple[int, EncodedImage]] = []
        for name, image in zip(files, images):
            entry = AssetEntry(name=name, primary_key=image_key(name), payload=image.raw_bytes())
            batch.add(entry)
            records.append((entry.primary_key, image))

        blob = build_sprite_table(records)
        self._sink.write(self.config.sprite_table_name, blob)
        if self.config.write_sprite_header:
            symbol = Path(self.config.sprite_table_name).stem
            header = sprite_table_header(symbol=symbol, blob_name=Path(self.config.sprite_table_name).name)
            self._sink.write(self.config.sprite_header_name, header.encode("utf-8"))

        logger.info("[SPRITES] Sprite conversion complete: '%s', sprites=%d, bytes=%d",
                    self.config.sprite_table_name, len(records), len(blob))
        return BatchResult(
            name=self.config.sprite_table_name,
            key_count=len(records),
            payload_count=len(records),
            size=len(blob),
        )

    async def _load_entries(self, pack_dir: str, name: str, palette: Palette) -> list[AssetEntry]:
        path = _join(pack_dir, name)
        if not is_png(name):
            data = await self._source.read_bytes(path)
            return [AssetEntry(name=name, primary_key=file_key(name), payload=data)]

        image = await self._quantize_file(path, palette)
        plan = plan_variants(image, max_area=self.config.variant_max_area)
        secondary = variant_key(name, self.config.variant_suffix)
        primary = AssetEntry(
            name=name,
            primary_key=image_key(name),
            payload=plan.primary.tagged_bytes(),
            secondary_key=secondary if plan.alias else None,
        )
        if plan.variant is None:
            return [primary]
        variant = AssetEntry(
            name=name + self.config.variant_suffix,
            primary_key=secondary,
            payload=plan.variant.tagged_bytes(),
        )
        return [primary, variant]

    async def build_resource_pack(self, pack_dir: str) -> BatchResult | None:
        palette = self._palette(pack_dir)
        if palette is None:
            return None

        files = self._catalog.list_files(pack_dir)
        if not files:
            logger.info("[PACK] '%s' is empty; nothing written", pack_dir)
            return None

        loaded = await gather_or_cancel(self._load_entries(pack_dir, f, palette) for f in files)

        batch = ResourceBatch(name=pack_dir)
        for _, entries in sorted(zip(files, loaded), key=lambda item: item[0]):
            for entry in entries:
                batch.add(entry)

        blob = build_resource_pack(batch)
        out_name = f"{pack_dir.rstrip('/')}.res"
        self._sink.write(out_name, blob)
        logger.info("[PACK] %s packaged: keys=%d, payloads=%d, bytes=%d",
                    pack_dir, len(batch), len(batch.entries()), len(blob))
        return BatchResult(
            name=out_name,
            key_count=len(batch),
            payload_count=len(batch.entries()),
            size=len(blob),
        )

    async def build_all_resource_packs(self, root: str | None = None) -> PackRunSummary:
        """Package every ``<root>/<project>/<pack>`` directory as its own batch."""
        root = self.config.resources_dir if root is None else root
        summary = PackRunSummary()
        if self._palette(root) is None:
            summary.palette_missing = True
            return summary

        for project in self._catalog.list_dirs(root):
            project_dir = _join(root, project)
            for pack in self._catalog.list_dirs(project_dir):
                pack_dir = _join(project_dir, pack)
                try:
                    result = await self.build_resource_pack(pack_dir)
                except Exception as exc:
                    message = f"{exc.__class__.__name__}: {exc}"
                    logger.warning("[PACK] Packaging failed for '%s': %s", pack_dir, message)
                    summary.failures[pack_dir] = message
                    continue
                if result is None:
                    summary.empty.append(pack_dir)
                else:
                    summary.written.append(result)
        return summary

    async def _convert_background(self, path: str) -> bytes:
        raster = await self._source.read(path)
        return await asyncio.to_thread(rgb565_bytes, raster)

    async def convert_backgrounds(self, root: str | None = None) -> list[str]:
        """Write ``<stem>.565`` next to every PNG in each project directory."""
        root = self.config.resources_dir if root is None else root
        targets: list[tuple[str, str]] = []
        for project in self._catalog.list_dirs(root):
            project_dir = _join(root, project)
            for name in self._catalog.list_files(project_dir):
                if is_png(name):
                    targets.append((_join(project_dir, name), _join(project_dir, asset_stem(name) + ".565")))

        dumps = await gather_or_cancel(self._convert_background(src) for src, _ in targets)
        for (_, out_name), data in zip(targets, dumps):
            self._sink.write(out_name, data)
        logger.info("[565] Conversion complete: %d backgrounds", len(targets))
        return [out_name for _, out_name in targets]
