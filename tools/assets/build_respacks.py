#!/usr/bin/env python3
"""Package every <resources>/<project>/<pack> folder into <pack>.res."""

from __future__ import annotations

import argparse
import json
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
    parser = argparse.ArgumentParser(description="Build hash-indexed resource packs")
    parser.add_argument("palette", help="Palette file (.gpl, .pal, .json or image), workspace-relative")
    parser.add_argument("--workspace", type=Path, default=None, help="Project root (default: cwd)")
    parser.add_argument("--resources-dir", default=None, help="Resource root (default: pine-2k)")
    parser.add_argument("--json", action="store_true", help="Emit machine-readable JSON output")
    parser.add_argument("--log-level", default="WARNING", help="Logging level")
    args = parser.parse_args()

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    config = load_config().with_overrides(
        workspace_root=args.workspace.resolve() if args.workspace else None,
    )
    pipeline = AssetPipeline.for_workspace(config, palette_path=args.palette)
    try:
        summary = run(pipeline.build_all_resource_packs(args.resources_dir))
    except PinepackError as exc:
        print(f"ERR: {exc}")
        return 1

    if args.json:
        print(json.dumps(summary.as_dict(), indent=2))
    else:
        if summary.palette_missing:
            print("WARN: no palette available; nothing packaged")
        for result in summary.written:
            print(f"OK: {result.name} packaged ({result.key_count} keys, {result.size} bytes)")
        for pack_dir in summary.empty:
            print(f"WARN: {pack_dir} is empty")
        for pack_dir, message in summary.failures.items():
            print(f"ERR: {pack_dir}: {message}")

    return 0 if summary.ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
