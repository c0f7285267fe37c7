#!/usr/bin/env python3

from __future__ import annotations

import base64
import inspect
import os
import tempfile
import unittest
from pathlib import Path

from fastapi.testclient import TestClient
from PIL import Image

from apps.api.pinepack_api.main import app
from packages.pinepack_core.packing.hashing import content_hash, image_key, variant_key
from packages.pinepack_core.packing.resource_pack import ResourcePack

PALETTE_GPL = """GIMP Palette
Name: Test
  0   0   0	Transparent
255   0   0	Red
  0 255   0	Green
  0   0 255	Blue
"""

RED = (255, 0, 0, 255)
GREEN = (0, 255, 0, 255)
BLUE = (0, 0, 255, 255)
CLEAR = (0, 0, 0, 0)


def _b64(pixels: list[tuple[int, int, int, int]]) -> str:
    return base64.b64encode(bytes(c for px in pixels for c in px)).decode("ascii")


def _save_png(path: Path, width: int, height: int, pixels: list[tuple[int, int, int, int]]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    img = Image.new("RGBA", (width, height))
    img.putdata(pixels)
    img.save(path)


class AssetsApiTests(unittest.TestCase):
    def setUp(self) -> None:
        self._workspace = tempfile.TemporaryDirectory()
        self.root = Path(self._workspace.name).resolve()
        self._env_backup = os.environ.get("PINEPACK_WORKSPACE_ROOT")
        os.environ["PINEPACK_WORKSPACE_ROOT"] = str(self.root)
        (self.root / "palette.gpl").write_text(PALETTE_GPL, encoding="utf-8")
        self.client = TestClient(app)

    def tearDown(self) -> None:
        if self._env_backup is None:
            os.environ.pop("PINEPACK_WORKSPACE_ROOT", None)
        else:
            os.environ["PINEPACK_WORKSPACE_ROOT"] = self._env_backup
        self._workspace.cleanup()

    def test_healthz(self) -> None:
        resp = self.client.get("/healthz")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json().get("status"), "ok")

    def test_hash_names(self) -> None:
        resp = self.client.post("/api/v1/assets/hash", json={"names": ["sprite1", "hero.png"]})
        self.assertEqual(resp.status_code, 200)
        keys = resp.json()["keys"]
        self.assertEqual(keys[0]["key"], 3613166511)
        self.assertEqual(keys[1]["image_key"], image_key("hero.png"))
        self.assertEqual(keys[1]["variant_key"], content_hash("hero:8"))

    def test_hash_uses_configured_variant_suffix(self) -> None:
        previous = os.environ.get("PINEPACK_VARIANT_SUFFIX")
        os.environ["PINEPACK_VARIANT_SUFFIX"] = ":full"
        try:
            resp = self.client.post("/api/v1/assets/hash", json={"names": ["hero.png"]})
        finally:
            if previous is None:
                os.environ.pop("PINEPACK_VARIANT_SUFFIX", None)
            else:
                os.environ["PINEPACK_VARIANT_SUFFIX"] = previous
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["keys"][0]["variant_key"], content_hash("hero:full"))

    def test_build_endpoints_run_off_the_event_loop(self) -> None:
        build_paths = {
            "/api/v1/assets/sprites/build",
            "/api/v1/assets/respacks/build",
            "/api/v1/assets/backgrounds/convert",
        }
        endpoints = {route.path: route.endpoint for route in app.routes if getattr(route, "path", None) in build_paths}
        self.assertEqual(set(endpoints), build_paths)
        for path, endpoint in endpoints.items():
            self.assertFalse(inspect.iscoroutinefunction(endpoint), msg=path)

    def test_encode_inline_image(self) -> None:
        resp = self.client.post(
            "/api/v1/assets/encode",
            json={
                "width": 2,
                "height": 2,
                "rgba_b64": _b64([RED, GREEN, BLUE, RED]),
                "palette": [[0, 0, 0], [255, 0, 0], [0, 255, 0], [0, 0, 255]],
            },
        )
        self.assertEqual(resp.status_code, 200, msg=resp.text)
        payload = resp.json()
        self.assertEqual(base64.b64decode(payload["raw_b64"]), bytes([2, 2, 1, 2, 3, 1]))
        self.assertEqual(payload["indices"], [1, 2, 3, 1])
        self.assertEqual(payload["index_range"], [1, 3])
        self.assertEqual(payload["optimized"]["bits_per_pixel"], 4)
        self.assertEqual(
            base64.b64decode(payload["optimized"]["payload_b64"]),
            bytes([0, 4, 2, 2, 0x12, 0x31]),
        )
        self.assertIsNotNone(payload["variant_b64"])
        self.assertFalse(payload["alias"])

    def test_encode_rejects_bad_input(self) -> None:
        palette = [[0, 0, 0], [255, 0, 0]]
        bad_b64 = self.client.post(
            "/api/v1/assets/encode",
            json={"width": 1, "height": 1, "rgba_b64": "!!!", "palette": palette},
        )
        self.assertEqual(bad_b64.status_code, 400)

        short_buffer = self.client.post(
            "/api/v1/assets/encode",
            json={"width": 2, "height": 1, "rgba_b64": _b64([RED]), "palette": palette},
        )
        self.assertEqual(short_buffer.status_code, 400)
        self.assertEqual(short_buffer.json()["error_code"], "encoding_failed")

        bad_palette = self.client.post(
            "/api/v1/assets/encode",
            json={"width": 1, "height": 1, "rgba_b64": _b64([RED]), "palette": [[0, 0, 300]]},
        )
        self.assertEqual(bad_palette.status_code, 400)
        self.assertEqual(bad_palette.json()["error_code"], "invalid_palette")

    def test_inline_rgb565(self) -> None:
        resp = self.client.post(
            "/api/v1/assets/rgb565",
            json={"width": 2, "height": 1, "rgba_b64": _b64([(255, 255, 255, 255), CLEAR])},
        )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["size"], 8)
        self.assertEqual(base64.b64decode(resp.json()["payload_b64"]), b"\x02\x00\x01\x00\xff\xff\x1f\xf8")

    def test_build_and_inspect_resource_packs(self) -> None:
        pack_dir = self.root / "pine-2k/game/pack1"
        _save_png(pack_dir / "hero.png", 2, 2, [RED, GREEN, CLEAR, RED])
        (pack_dir / "level.txt").write_bytes(b"L1")

        resp = self.client.post("/api/v1/assets/respacks/build", json={"palette_path": "palette.gpl"})
        self.assertEqual(resp.status_code, 200, msg=resp.text)
        summary = resp.json()
        self.assertTrue(summary["ok"])
        self.assertEqual(summary["written"][0]["name"], "pine-2k/game/pack1.res")
        self.assertEqual(summary["written"][0]["key_count"], 3)

        pack = ResourcePack.parse((self.root / "pine-2k/game/pack1.res").read_bytes())
        self.assertEqual(pack.lookup("level.txt"), b"L1")
        self.assertEqual(pack.find(variant_key("hero.png"))[:2], bytes([0, 8]))

        resp = self.client.post("/api/v1/assets/respacks/inspect", json={"pack_path": "pine-2k/game/pack1.res"})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["count"], 3)
        keys = [r["key"] for r in resp.json()["records"]]
        self.assertEqual(keys, sorted(keys))

    def test_build_sprites_and_collision(self) -> None:
        _save_png(self.root / "assets/hero.png", 1, 1, [BLUE])
        resp = self.client.post("/api/v1/assets/sprites/build", json={"palette_path": "palette.gpl"})
        self.assertEqual(resp.status_code, 200, msg=resp.text)
        self.assertEqual(resp.json()["written"]["key_count"], 1)
        self.assertTrue((self.root / "assets.bin").exists())
        self.assertTrue((self.root / "assets.h").exists())

        _save_png(self.root / "assets/Aa.png", 1, 1, [RED])
        _save_png(self.root / "assets/BB.png", 1, 1, [GREEN])
        resp = self.client.post("/api/v1/assets/sprites/build", json={"palette_path": "palette.gpl"})
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.json()["error_code"], "hash_collision")
        self.assertEqual(sorted(resp.json()["names"]), ["Aa.png", "BB.png"])

    def test_convert_backgrounds(self) -> None:
        _save_png(self.root / "pine-2k/game/title.png", 1, 1, [(255, 255, 255, 255)])
        resp = self.client.post("/api/v1/assets/backgrounds/convert", json={})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["written"], ["pine-2k/game/title.565"])
        self.assertEqual((self.root / "pine-2k/game/title.565").read_bytes(), b"\x01\x00\x01\x00\xff\xff")

    def test_paths_outside_workspace_are_rejected(self) -> None:
        resp = self.client.post("/api/v1/assets/respacks/inspect", json={"pack_path": "../outside.res"})
        self.assertEqual(resp.status_code, 400)

    def test_missing_palette_or_pack_is_not_found(self) -> None:
        resp = self.client.post("/api/v1/assets/respacks/build", json={"palette_path": "missing.gpl"})
        self.assertEqual(resp.status_code, 404)
        resp = self.client.post("/api/v1/assets/respacks/inspect", json={"pack_path": "pine-2k/none.res"})
        self.assertEqual(resp.status_code, 404)

    def test_directories_are_not_palettes_or_packs(self) -> None:
        (self.root / "pine-2k/game.res").mkdir(parents=True)
        (self.root / "palettes.gpl").mkdir()
        resp = self.client.post("/api/v1/assets/respacks/inspect", json={"pack_path": "pine-2k/game.res"})
        self.assertEqual(resp.status_code, 404)
        resp = self.client.post("/api/v1/assets/sprites/build", json={"palette_path": "palettes.gpl"})
        self.assertEqual(resp.status_code, 404)


if __name__ == "__main__":
    unittest.main()
