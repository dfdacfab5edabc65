"""Shared CLI utilities."""

from __future__ import annotations

from pathlib import Path

from subtidy.core.languages import dedupe_languages


def expand_inputs(inputs: list[str]) -> list[str]:
    """Expand glob patterns and path list files into individual paths."""
    expanded = []
    for inp in inputs:
        path = Path(inp)

        # .txt file: read as path list (one per line)
        if path.suffix == ".txt" and path.is_file():
            for line in path.read_text().splitlines():
                line = line.strip()
                if line and not line.startswith("#"):
                    expanded.append(line)
            continue

        # Try as glob pattern if it contains wildcards
        if any(c in inp for c in "*?["):
            matches = sorted(Path(".").glob(inp))
            if matches:
                expanded.extend(str(m) for m in matches)
                continue

        # Regular file/path
        expanded.append(inp)

    return expanded


def split_languages(values: list[str] | None) -> list[str] | None:
    """Flatten repeated and comma-separated language options.

    Returns None when no option was given, so config defaults apply.
    """
    if not values:
        return None
    codes = [part for value in values for part in value.split(",")]
    return dedupe_languages(codes) or None
