#!/usr/bin/env python3
"""Convert every PNG in each project folder into a raw RGB565 .565 dump."""

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
    parser = argparse.ArgumentParser(description="Convert project backgrounds to RGB565")
    parser.add_argument("--workspace", type=Path, default=None, help="Project root (default: cwd)")
    parser.add_argument("--resources-dir", default=None, help="Resource root (default: pine-2k)")
    parser.add_argument("--log-level", default="WARNING", help="Logging level")
    args = parser.parse_args()

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    config = load_config().with_overrides(
        workspace_root=args.workspace.resolve() if args.workspace else None,
    )
    pipeline = AssetPipeline.for_workspace(config)

    try:
        written = run(pipeline.convert_backgrounds(args.resources_dir))
    except (PinepackError, OSError) as exc:
        print(f"ERR: {exc}")
        return 1

    for name in written:
        print(f"OK: {name}")
    print(f"Conversion complete: {len(written)} files")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
