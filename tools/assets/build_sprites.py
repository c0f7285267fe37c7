#!/usr/bin/env python3
"""Convert every PNG in the sprites folder into one flat sprite table."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
import sys

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from packages.pinepack_core.config import load_config
from packages.pinepack_core.errors import PinepackError
from packages.pinepack_core.pipeline.batch import AssetPipeline, run


def main() -> int:
    parser = argparse.ArgumentParser(description="Build assets.bin/assets.h from a folder of sprites")
    parser.add_argument("palette", help="Palette file (.gpl, .pal, .json or image), workspace-relative")
    parser.add_argument("--workspace", type=Path, default=None, help="Project root (default: cwd)")
    parser.add_argument("--sprites-dir", default=None, help="Sprites folder (default: assets)")
    parser.add_argument("--out", default=None, help="Sprite table name (default: assets.bin)")
    parser.add_argument("--no-header", action="store_true", help="Do not write the C++ companion header")
    parser.add_argument("--log-level", default="WARNING", help="Logging level")
    args = parser.parse_args()

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    config = load_config().with_overrides(
        workspace_root=args.workspace.resolve() if args.workspace else None,
        sprite_table_name=args.out,
        write_sprite_header=False if args.no_header else None,
    )
    pipeline = AssetPipeline.for_workspace(config, palette_path=args.palette)

    try:
        result = run(pipeline.build_sprite_table(args.sprites_dir))
    except (PinepackError, OSError) as exc:
        print(f"ERR: {exc}")
        return 1

    if result is None:
        print("OK: nothing to convert (no palette or no sprites)")
        return 0
    print(f"OK: wrote {result.name} ({result.key_count} sprites, {result.size} bytes)")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
