from __future__ import annotations

import hashlib
from datetime import datetime, timezone


def sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def utc_now_rfc3339() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def strip_hex_prefix(value: str) -> str:
    if value[:2] in ("0x", "0X"):
        return value[2:]
    return value


def add_hex_prefix(value: str) -> str:
    if value[:2] in ("0x", "0X"):
        return value
    return "0x" + value


def decrypt_quantity(value: str | int | None) -> int:
    """Decode a JSON-RPC hex quantity ("0x5208") into an int.

    An empty quantity ("0x" or "") decodes to 0.
    """
    if value is None:
        raise ValueError("Quantity must not be None")
    if isinstance(value, int):
        return value
    digits = strip_hex_prefix(value.strip())
    if not digits:
        return 0
    return int(digits, 16)


def encode_quantity(value: int) -> str:
    if value < 0:
        raise ValueError(f"Quantity must be non-negative: {value}")
    return hex(value)

