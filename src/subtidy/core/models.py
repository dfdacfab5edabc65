"""Shared data models for SubTidy."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


@dataclass(frozen=True)
class VideoFile:
    """A discovered video file. Identity is the absolute path."""

    path: Path
    size: int

    @classmethod
    def from_path(cls, path: Path) -> VideoFile:
        # Symlinks are kept: sidecars belong beside the link, not its target
        path = Path(path).absolute()
        return cls(path=path, size=path.stat().st_size)

    @property
    def stem(self) -> str:
        return self.path.stem

    @property
    def directory(self) -> Path:
        return self.path.parent

    def subtitle_path(self, language: str) -> Path:
        """Path of the sidecar subtitle for a language: <stem>.<lang>.srt."""
        return self.directory / f"{self.stem}.{language}.srt"


@dataclass(frozen=True)
class SubtitleTrack:
    """A subtitle track as reported by the container metadata."""

    id: int
    codec: str
    codec_id: str | None = None
    name: str | None = None
    language: str | None = None


@dataclass(frozen=True)
class OtherTrack:
    """A non-subtitle track (video, audio, buttons)."""

    id: int
    type: str
    codec: str


Track = SubtitleTrack | OtherTrack


@dataclass
class ContainerInfo:
    """Parsed container identification."""

    path: Path
    tracks: list[Track]
    attachments: int = 0

    @property
    def subtitle_tracks(self) -> list[SubtitleTrack]:
        return [t for t in self.tracks if isinstance(t, SubtitleTrack)]


class TrackDisposition(Enum):
    EXTRACT = "extract"
    REMOVE = "remove"
    IGNORE = "ignore"


@dataclass
class Classification:
    """Outcome of classifying a container's tracks.

    Attributes:
        dispositions: Track id to disposition, one entry per track.
        extract: Track id to output path, for EXTRACT tracks.
        remove_ids: Ids of REMOVE tracks.
    """

    dispositions: dict[int, TrackDisposition] = field(default_factory=dict)
    extract: dict[int, Path] = field(default_factory=dict)
    remove_ids: set[int] = field(default_factory=set)


class TargetState(Enum):
    """Pre-check result for a subtitle file we might create."""

    ALREADY_PRESENT = "already_present"
    NEEDS_FETCH = "needs_fetch"


@dataclass
class DownloadAggregate:
    """Download counters accumulated across one pipeline run."""

    downloaded: Counter = field(default_factory=Counter)
    failed: int = 0
    already_present: int = 0
    not_found: Counter = field(default_factory=Counter)
    remaining: int | None = None

    @property
    def total_downloaded(self) -> int:
        return sum(self.downloaded.values())

    def to_dict(self) -> dict:
        return {
            "downloaded": dict(self.downloaded),
            "total_downloaded": self.total_downloaded,
            "failed": self.failed,
            "already_present": self.already_present,
            "not_found": dict(self.not_found),
            "remaining": self.remaining,
        }


@dataclass
class VideoResult:
    """Per-video outcome of a pipeline pass."""

    path: Path
    downloaded: list[str] = field(default_factory=list)
    extracted: int = 0
    removed: int = 0
    renamed: int = 0
    skipped: bool = False
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict:
        return {
            "path": str(self.path),
            "downloaded": self.downloaded,
            "extracted": self.extracted,
            "removed": self.removed,
            "renamed": self.renamed,
            "skipped": self.skipped,
            "errors": self.errors,
        }


class RetrievalStatus(Enum):
    DISABLED = "disabled"
    OK = "ok"
    AUTH_FAILED = "auth_failed"  # credentials rejected at first login
    UNAVAILABLE = "unavailable"  # first login failed for another reason


@dataclass
class RunSummary:
    """Everything a pipeline run hands to reporting."""

    root: Path
    videos: list[VideoResult] = field(default_factory=list)
    downloads: DownloadAggregate = field(default_factory=DownloadAggregate)
    retrieval: RetrievalStatus = RetrievalStatus.DISABLED

    @property
    def ok(self) -> bool:
        return self.retrieval in (RetrievalStatus.DISABLED, RetrievalStatus.OK) and all(
            v.ok for v in self.videos
        )

    def to_dict(self) -> dict:
        return {
            "root": str(self.root),
            "ok": self.ok,
            "retrieval": self.retrieval.value,
            "downloads": self.downloads.to_dict(),
            "videos": [v.to_dict() for v in self.videos],
        }
