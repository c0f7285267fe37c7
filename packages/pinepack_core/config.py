"""Environment-driven settings for the asset pipeline."""

from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
import os

from .imaging.depth import DEFAULT_VARIANT_MAX_AREA


DEFAULT_SPRITES_DIR = "assets"
DEFAULT_RESOURCES_DIR = "pine-2k"
DEFAULT_SPRITE_TABLE_NAME = "assets.bin"
DEFAULT_MAX_SPRITES = 3000
DEFAULT_VARIANT_SUFFIX = ":8"


def _truthy_env(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _first_non_empty(*values: str | None) -> str | None:
    for value in values:
        if value and value.strip():
            return value.strip()
    return None


def _int_env(name: str, default: int) -> int:
    raw = _first_non_empty(os.environ.get(name))
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")
    return value


@dataclass(frozen=True)
class PipelineConfig:
    workspace_root: Path
    sprites_dir: str = DEFAULT_SPRITES_DIR
    resources_dir: str = DEFAULT_RESOURCES_DIR
    sprite_table_name: str = DEFAULT_SPRITE_TABLE_NAME
    write_sprite_header: bool = True
    max_sprites: int = DEFAULT_MAX_SPRITES
    variant_max_area: int = DEFAULT_VARIANT_MAX_AREA
    variant_suffix: str = DEFAULT_VARIANT_SUFFIX
    palette_path: str | None = None

    @property
    def sprite_header_name(self) -> str:
        return str(Path(self.sprite_table_name).with_suffix(".h"))

    def with_overrides(self, **changes) -> "PipelineConfig":
        return replace(self, **{k: v for k, v in changes.items() if v is not None})


def load_config() -> PipelineConfig:
    root = _first_non_empty(os.environ.get("PINEPACK_WORKSPACE_ROOT"))
    return PipelineConfig(
        workspace_root=Path(root).resolve() if root else Path.cwd().resolve(),
        sprites_dir=_first_non_empty(os.environ.get("PINEPACK_SPRITES_DIR")) or DEFAULT_SPRITES_DIR,
        resources_dir=_first_non_empty(os.environ.get("PINEPACK_RESOURCES_DIR")) or DEFAULT_RESOURCES_DIR,
        sprite_table_name=(
            _first_non_empty(os.environ.get("PINEPACK_SPRITE_TABLE_NAME")) or DEFAULT_SPRITE_TABLE_NAME
        ),
        write_sprite_header=_truthy_env("PINEPACK_SPRITE_HEADER", True),
        max_sprites=_int_env("PINEPACK_MAX_SPRITES", DEFAULT_MAX_SPRITES),
        variant_max_area=_int_env("PINEPACK_VARIANT_MAX_AREA", DEFAULT_VARIANT_MAX_AREA),
        variant_suffix=_first_non_empty(os.environ.get("PINEPACK_VARIANT_SUFFIX")) or DEFAULT_VARIANT_SUFFIX,
        palette_path=_first_non_empty(os.environ.get("PINEPACK_PALETTE_PATH")),
    )
