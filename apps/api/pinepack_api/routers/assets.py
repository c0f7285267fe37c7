"""Asset conversion, packing and inspection endpoints."""

from __future__ import annotations

import base64
import binascii
import logging
from pathlib import Path
from typing import Any, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from packages.pinepack_core.config import PipelineConfig, load_config
from packages.pinepack_core.imaging.depth import decode_indices, index_range, plan_variants
from packages.pinepack_core.imaging.quantize import quantize
from packages.pinepack_core.imaging.raster import RasterImage, normalize_palette
from packages.pinepack_core.imaging.rgb565 import rgb565_bytes
from packages.pinepack_core.packing.hashing import content_hash, image_key, variant_key
from packages.pinepack_core.packing.resource_pack import ResourcePack
from packages.pinepack_core.pipeline.batch import AssetPipeline, run

logger = logging.getLogger("pinepack_api.assets")

router = APIRouter(prefix="/api/v1/assets", tags=["assets"])


class HashNamesRequest(BaseModel):
    names: list[str] = Field(description="Asset names or filenames to hash")


class InlineImage(BaseModel):
    width: int = Field(ge=0)
    height: int = Field(ge=0)
    rgba_b64: str = Field(description="Base64 of the interleaved RGBA buffer")


class EncodeImageRequest(InlineImage):
    palette: list[list[int]] = Field(description="Ordered [r, g, b] entries; index 0 is transparent")


class BuildSpritesRequest(BaseModel):
    palette_path: str = Field(description="Workspace-relative .gpl/.pal/.json/image palette")
    sprites_dir: Optional[str] = None
    out_name: Optional[str] = None


class BuildPacksRequest(BaseModel):
    palette_path: str
    resources_dir: Optional[str] = None


class ConvertBackgroundsRequest(BaseModel):
    resources_dir: Optional[str] = None


class InspectPackRequest(BaseModel):
    pack_path: str


def _resolve_workspace_path(config: PipelineConfig, path_str: str) -> Path:
    root = config.workspace_root
    candidate = Path(path_str)
    if not candidate.is_absolute():
        candidate = (root / candidate).resolve()
    else:
        candidate = candidate.resolve()

    if candidate != root and root not in candidate.parents:
        raise HTTPException(status_code=400, detail="Path must be within workspace")
    return candidate


def _rel_workspace(config: PipelineConfig, path: Path) -> str:
    return str(path.relative_to(config.workspace_root))


def _decode_raster(req: InlineImage) -> RasterImage:
    try:
        rgba = base64.b64decode(req.rgba_b64, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise HTTPException(status_code=400, detail=f"Invalid base64 RGBA data: {exc}") from exc
    return RasterImage(width=req.width, height=req.height, rgba=rgba)


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def _pipeline(config: PipelineConfig, palette_path: Optional[str]) -> AssetPipeline:
    if palette_path is not None:
        palette_file = _resolve_workspace_path(config, palette_path)
        if not palette_file.is_file():
            raise HTTPException(status_code=404, detail=f"Palette file not found: {palette_file}")
        palette_path = _rel_workspace(config, palette_file)
    return AssetPipeline.for_workspace(config, palette_path=palette_path)


@router.post("/hash")
def hash_names(req: HashNamesRequest) -> dict[str, Any]:
    suffix = load_config().variant_suffix
    return {
        "keys": [
            {
                "name": name,
                "key": content_hash(name),
                "image_key": image_key(name),
                "variant_key": variant_key(name, suffix),
            }
            for name in req.names
        ]
    }


@router.post("/encode")
def encode_image(req: EncodeImageRequest) -> dict[str, Any]:
    raster = _decode_raster(req)
    palette = normalize_palette(req.palette)
    image = quantize(raster, palette)
    plan = plan_variants(image, max_area=load_config().variant_max_area)
    bounds = index_range(image)
    logger.info("[ASSETS] Inline encode: %dx%d -> %dbpp", image.width, image.height,
                plan.primary.bits_per_pixel)
    return {
        "width": image.width,
        "height": image.height,
        "raw_b64": _b64(image.raw_bytes()),
        "indices": decode_indices(plan.primary),
        "index_range": list(bounds) if bounds else None,
        "optimized": {
            "bits_per_pixel": plan.primary.bits_per_pixel,
            "bias": plan.primary.bias,
            "payload_b64": _b64(plan.primary.tagged_bytes()),
        },
        "variant_b64": _b64(plan.variant.tagged_bytes()) if plan.variant else None,
        "alias": plan.alias,
    }


@router.post("/rgb565")
def convert_inline_rgb565(req: InlineImage) -> dict[str, Any]:
    data = rgb565_bytes(_decode_raster(req))
    return {"size": len(data), "payload_b64": _b64(data)}


@router.post("/sprites/build")
def build_sprites(req: BuildSpritesRequest) -> dict[str, Any]:
    config = load_config().with_overrides(sprite_table_name=req.out_name)
    logger.info("[ASSETS] Sprite table build request: palette='%s'", req.palette_path)
    pipeline = _pipeline(config, req.palette_path)
    result = run(pipeline.build_sprite_table(req.sprites_dir))
    if result is None:
        return {"ok": True, "written": None}
    return {"ok": True, "written": result.as_dict()}


@router.post("/respacks/build")
def build_resource_packs(req: BuildPacksRequest) -> dict[str, Any]:
    config = load_config()
    logger.info("[ASSETS] Resource pack build request: palette='%s'", req.palette_path)
    pipeline = _pipeline(config, req.palette_path)
    summary = run(pipeline.build_all_resource_packs(req.resources_dir))
    logger.info("[ASSETS] Resource packs complete: written=%d, failed=%d",
                len(summary.written), len(summary.failures))
    return summary.as_dict()


@router.post("/backgrounds/convert")
def convert_backgrounds(req: ConvertBackgroundsRequest) -> dict[str, Any]:
    pipeline = _pipeline(load_config(), None)
    written = run(pipeline.convert_backgrounds(req.resources_dir))
    return {"ok": True, "written": written}


@router.post("/respacks/inspect")
def inspect_pack(req: InspectPackRequest) -> dict[str, Any]:
    config = load_config()
    pack_path = _resolve_workspace_path(config, req.pack_path)
    if not pack_path.is_file():
        raise HTTPException(status_code=404, detail=f"Pack file not found: {pack_path}")
    pack = ResourcePack.parse(pack_path.read_bytes())
    return {
        "pack_path": _rel_workspace(config, pack_path),
        "count": len(pack),
        "records": [
            {"key": r.key, "offset": r.offset, "length": len(r.payload)}
            for r in pack.records
        ],
    }
