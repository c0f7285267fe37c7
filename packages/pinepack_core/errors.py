"""Error types raised by the asset conversion core."""

from __future__ import annotations


class PinepackError(RuntimeError):
    def __init__(self, message: str, *, error_code: str) -> None:
        super().__init__(message)
        self.error_code = error_code


class PaletteError(PinepackError):
    def __init__(self, message: str) -> None:
        super().__init__(message, error_code="invalid_palette")


class EncodingError(PinepackError):
    def __init__(self, message: str) -> None:
        super().__init__(message, error_code="encoding_failed")


class PackFormatError(PinepackError):
    def __init__(self, message: str) -> None:
        super().__init__(message, error_code="malformed_pack")


class HashCollisionError(PinepackError):
    """Two distinct assets in one batch resolved to the same 32-bit key."""

    def __init__(self, key: int, name: str, existing_name: str) -> None:
        super().__init__(
            f"Hash collision on key {key:#010x}: '{name}' and '{existing_name}'",
            error_code="hash_collision",
        )
        self.key = key
        self.name = name
        self.existing_name = existing_name
