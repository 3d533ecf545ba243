from __future__ import annotations

import zlib
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

MAX_HASH_BYTES = 128 * 1024  # files above this size are identified by length only
_CHUNK_SIZE = 8192


def crc32_file(p: Path) -> str:
    """Stream a file through CRC-32 and return the 8-digit lowercase hex digest."""
    crc = 0
    with p.open("rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
            crc = zlib.crc32(chunk, crc)
    return f"{crc & 0xFFFFFFFF:08x}"


def crc32_bytes(data: bytes) -> str:
    return f"{zlib.crc32(data) & 0xFFFFFFFF:08x}"


def content_identity(
    p: Path, size: int, enable_hash: bool = True
) -> Tuple[Optional[str], Optional[int]]:
    """
    Return ``(crc32_hash, file_size)`` with exactly one of the two set.

    Small files are hashed in full; anything larger than MAX_HASH_BYTES (or
    every file when hashing is disabled) is identified by its byte length.
    """
    if enable_hash and size <= MAX_HASH_BYTES:
        return crc32_file(p), None
    return None, size


def normalize_columns(columns: Iterable[str]) -> List[str]:
    """Lowercase, keep alphanumerics only, drop empties, sort."""
    out = []
    for col in columns:
        cleaned = "".join(c for c in col.lower() if c.isalnum())
        if cleaned:
            out.append(cleaned)
    return sorted(out)


def column_similarity_hash(columns: Iterable[str]) -> int:
    """
    Exact-match identity of a column set.

    Column order and casing do not matter: ``["Name", "Age"]`` and
    ``["age", "name"]`` hash to the same value. Uses the same CRC-32 as the
    content hash, but the two values are never compared with each other.
    """
    joined = ",".join(normalize_columns(columns))
    return zlib.crc32(joined.encode("utf-8")) & 0xFFFFFFFF
