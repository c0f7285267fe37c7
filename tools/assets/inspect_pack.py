#!/usr/bin/env python3
"""List the index of a .res resource pack, optionally resolving names."""

from __future__ import annotations

import argparse
import json
from pathlib import Path
import sys

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from packages.pinepack_core.errors import PackFormatError
from packages.pinepack_core.packing.hashing import content_hash
from packages.pinepack_core.packing.resource_pack import ResourcePack


def main() -> int:
    parser = argparse.ArgumentParser(description="Inspect a resource pack")
    parser.add_argument("pack_path", type=Path, help="Path to a .res file")
    parser.add_argument(
        "--name",
        action="append",
        default=[],
        help="Asset name to look up (repeatable); images use their stem, e.g. 'hero' or 'hero:8'",
    )
    parser.add_argument("--json", action="store_true", help="Emit machine-readable JSON output")
    args = parser.parse_args()

    try:
        pack = ResourcePack.parse(args.pack_path.read_bytes())
    except (PackFormatError, OSError) as exc:
        print(f"ERR: {exc}")
        return 1

    lookups = {name: pack.lookup(name) for name in args.name}
    if args.json:
        payload = {
            "count": len(pack),
            "records": [{"key": r.key, "offset": r.offset, "length": len(r.payload)} for r in pack.records],
            "lookups": {
                name: {"key": content_hash(name), "length": None if data is None else len(data)}
                for name, data in lookups.items()
            },
        }
        print(json.dumps(payload, indent=2))
    else:
        print(f"{len(pack)} keys")
        for record in pack.records:
            print(f"  {record.key:#010x} @ {record.offset:>8}  {len(record.payload)} bytes")
        for name, data in lookups.items():
            if data is None:
                print(f"WARN: {name} ({content_hash(name):#010x}) not found")
            else:
                print(f"OK: {name} ({content_hash(name):#010x}) {len(data)} bytes")

    return 0 if all(data is not None for data in lookups.values()) else 1


if __name__ == "__main__":
    raise SystemExit(main())
