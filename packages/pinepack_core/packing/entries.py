"""Hash-addressed entries collected for one output pack."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import Iterator

from ..errors import HashCollisionError

logger = getLogger("pinepack_core.packing.entries")


@dataclass(eq=False)
class AssetEntry:
    name: str
    primary_key: int
    payload: bytes
    secondary_key: int | None = None
    position: int | None = None

    def keys(self) -> tuple[int, ...]:
        if self.secondary_key is None:
            return (self.primary_key,)
        return (self.primary_key, self.secondary_key)


class ResourceBatch:
    """Key -> entry mapping; a key may be claimed by only one entry."""

    def __init__(self, name: str = "<batch>") -> None:
        self.name = name
        self._by_key: dict[int, AssetEntry] = {}

    def __len__(self) -> int:
        return len(self._by_key)

    def __contains__(self, key: int) -> bool:
        return key in self._by_key

    def __iter__(self) -> Iterator[int]:
        return iter(self.keys())

    def get(self, key: int) -> AssetEntry | None:
        return self._by_key.get(key)

    def add(self, entry: AssetEntry) -> None:
        keys = entry.keys()
        if len(set(keys)) != len(keys):
            raise HashCollisionError(entry.primary_key, entry.name, entry.name)
        for key in keys:
            existing = self._by_key.get(key)
            if existing is not None and existing is not entry:
                logger.warning(
                    "[BATCH] Collision in '%s': key=%#010x '%s' vs '%s'",
                    self.name, key, entry.name, existing.name,
                )
                raise HashCollisionError(key, entry.name, existing.name)
        for key in keys:
            self._by_key[key] = entry

    def keys(self) -> list[int]:
        return sorted(self._by_key)

    def entries(self) -> list[AssetEntry]:
        seen: dict[int, AssetEntry] = {}
        for entry in self._by_key.values():
            seen.setdefault(id(entry), entry)
        return list(seen.values())
