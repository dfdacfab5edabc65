"""Progress events emitted by the pipeline.

A run emits ``discover`` once before scanning, ``video`` once per finished
video with that video's counters, and ``done`` with the download totals.
Consumers (progress displays, report writers) register a callback instead of
reading console output.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

from subtidy.core.models import VideoResult


@dataclass
class PipelineEvent:
    """A progress event emitted during pipeline execution.

    Attributes:
        stage: Pipeline stage name (discover, video, done).
        progress: Fraction of videos finished, 0.0 to 1.0.
        message: Human-readable status message.
        data: Stage payload. ``video`` events carry ``VideoResult.to_dict()``,
            ``done`` carries ``DownloadAggregate.to_dict()``.
    """

    stage: str
    progress: float
    message: str
    data: dict | None = field(default=None)

    @classmethod
    def for_video(cls, result: VideoResult, index: int, total: int) -> PipelineEvent:
        """Build the event for the ``index``-th (1-based) of ``total`` finished videos."""
        if result.skipped:
            detail = "skipped"
        else:
            detail = (
                f"{len(result.downloaded)} downloaded, {result.extracted} extracted, "
                f"{result.removed} removed, {result.renamed} renamed"
            )
        if result.errors:
            detail += f", {len(result.errors)} error(s)"
        return cls(
            stage="video",
            progress=index / total if total else 1.0,
            message=f"{result.path.name}: {detail}",
            data=result.to_dict(),
        )

    @property
    def failed(self) -> bool:
        """True for a ``video`` event whose video reported errors."""
        return bool(self.data and self.data.get("errors"))


EventCallback = Callable[[PipelineEvent], None]
