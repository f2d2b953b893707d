from __future__ import annotations

import hashlib


def hash_bytes(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def hash_content(content: str) -> str:
    """Hash template text exactly as it is written to disk (UTF-8, no newline translation)."""
    return hash_bytes(content.encode("utf-8"))
