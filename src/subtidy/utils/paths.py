"""Filesystem layout helpers: video discovery, subtitle targets, summaries."""

from __future__ import annotations

import json
import re
from datetime import datetime, timezone
from pathlib import Path

from subtidy.core.models import RunSummary, TargetState

_EPISODE_RE = re.compile(r"(?:^|[^a-z0-9])s\d{1,2}[ ._-]?e\d{1,3}(?:[^0-9]|$)", re.IGNORECASE)
_SAMPLE_RE = re.compile(r"(?:^|[^a-z])sample(?:[^a-z]|$)", re.IGNORECASE)


def find_videos(
    root: Path,
    extensions: list[str],
    min_size: int = 0,
) -> list[Path]:
    """Find video files under root, recursively, in sorted order.

    Hidden files (including our own remux temporaries), samples and files
    smaller than ``min_size`` bytes are skipped. A root that is itself a
    video file is returned as the single result.
    """
    root = Path(root)
    wanted = {ext.lower() for ext in extensions}
    if root.is_file():
        return [root] if root.suffix.lower() in wanted else []

    videos = []
    for path in sorted(root.rglob("*")):
        if not path.is_file() or path.suffix.lower() not in wanted:
            continue
        if any(part.startswith(".") for part in path.relative_to(root).parts):
            continue
        if _SAMPLE_RE.search(path.stem):
            continue
        if min_size and path.stat().st_size < min_size:
            continue
        videos.append(path)
    return videos


def check_target(path: Path) -> TargetState:
    """Classify a subtitle target before any mutating action."""
    if Path(path).exists():
        return TargetState.ALREADY_PRESENT
    return TargetState.NEEDS_FETCH


def guess_media_type(name: str) -> str:
    """Return "episode" for SxxEyy-style names, "movie" otherwise."""
    return "episode" if _EPISODE_RE.search(name) else "movie"


def save_summary(summary: RunSummary, path: Path) -> Path:
    """Write a run summary as JSON for external reporting."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    data = {"created_at": datetime.now(timezone.utc).isoformat()}
    data.update(summary.to_dict())
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
    return path
