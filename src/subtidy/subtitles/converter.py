"""Subtitle payload conversion.

Downloaded subtitles arrive as raw bytes in an unknown encoding and, despite
asking for SRT, occasionally in another format. This module decodes the
payload, parses it with pysubs2 and writes a clean SubRip file.
"""

from __future__ import annotations

from pathlib import Path

import pysubs2

# Tried in order after BOM sniffing; latin-1 is the final fallback
_ENCODINGS = ("utf-8-sig", "cp1252")


def decode_subtitle(content: bytes) -> str:
    """Decode subtitle bytes, sniffing a BOM and falling back to legacy codepages."""
    if content.startswith((b"\xff\xfe", b"\xfe\xff")):
        return content.decode("utf-16")
    for encoding in _ENCODINGS:
        try:
            return content.decode(encoding)
        except UnicodeDecodeError:
            continue
    return content.decode("latin-1")


def parse_subtitle(content: bytes) -> pysubs2.SSAFile:
    """Parse subtitle bytes in any format pysubs2 recognizes.

    Raises:
        ValueError: If the payload is not a subtitle or has no events.
    """
    text = decode_subtitle(content)
    try:
        subs = pysubs2.SSAFile.from_string(text)
    except (pysubs2.exceptions.Pysubs2Error, ValueError) as e:
        raise ValueError(f"Unrecognized subtitle payload: {e}") from e
    if not subs.events:
        raise ValueError("Subtitle payload contains no events")
    return subs


def save_srt(content: bytes, path: Path) -> Path:
    """Parse a downloaded payload and save it as UTF-8 SRT.

    Raises:
        ValueError: If the payload cannot be parsed.
    """
    subs = parse_subtitle(content)
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    subs.save(str(path), encoding="utf-8", format_="srt")
    return path
