"""On-disk cache helpers.

The cache directory holds small per-user state such as authentication
tokens. Writes go through a temporary sibling and ``os.replace`` so a
reader never observes a half-written file.
"""

from __future__ import annotations

import hashlib
import os
import tempfile
from pathlib import Path


def cache_key(*parts: str) -> str:
    """Compute a 16-char hex key from string parts.

    Parts are hashed, never stored, so secrets can be used as key material.
    """
    digest = hashlib.sha256("\0".join(parts).encode()).hexdigest()
    return digest[:16]


def atomic_write_text(path: Path, text: str) -> None:
    """Write text to path atomically (temp file in the same directory + rename)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
