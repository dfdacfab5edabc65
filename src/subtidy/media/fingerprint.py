"""OpenSubtitles-compatible video fingerprint.

The catalogue identifies a release by a 64-bit checksum over the file size
and the first and last 64 KiB of the file, read as little-endian unsigned
words. The value must match the server's byte for byte.
"""

from __future__ import annotations

import struct
from pathlib import Path

from rich.markup import escape

from subtidy.core.errors import FingerprintError
from subtidy.utils.console import console

_CHUNK_SIZE = 64 * 1024
_WORD = struct.Struct("<Q")
_MASK = 0xFFFFFFFFFFFFFFFF


def _sum_words(data: bytes) -> int:
    usable = len(data) - len(data) % _WORD.size
    return sum(word for (word,) in _WORD.iter_unpack(data[:usable]))


def compute_fingerprint(path: Path) -> str:
    """Compute the 16-hex-digit fingerprint of a video file.

    Files shorter than 64 KiB are summed over whatever is there; a trailing
    partial word is ignored.

    Raises:
        FingerprintError: If the file cannot be read.
    """
    path = Path(path)
    try:
        with open(path, "rb") as f:
            size = f.seek(0, 2)
            value = size

            f.seek(0)
            value = (value + _sum_words(f.read(_CHUNK_SIZE))) & _MASK

            f.seek(max(0, size - _CHUNK_SIZE))
            value = (value + _sum_words(f.read(_CHUNK_SIZE))) & _MASK
    except OSError as e:
        raise FingerprintError(f"Cannot fingerprint {path.name}: {e}") from e

    return f"{value:016x}"


def try_fingerprint(path: Path) -> str | None:
    """Best-effort fingerprint: logs and returns None on failure."""
    try:
        return compute_fingerprint(path)
    except FingerprintError as e:
        console.print(f"[yellow]Fingerprint unavailable:[/yellow] {escape(str(e))}")
        return None
