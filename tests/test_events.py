"""Tests for pipeline progress events."""

from pathlib import Path

from subtidy.core.events import EventCallback, PipelineEvent
from subtidy.core.models import VideoResult


def test_video_event_carries_counters():
    result = VideoResult(
        path=Path("/media/Show.S01E02.mkv"), downloaded=["nl"], extracted=2, removed=1, renamed=3
    )
    event = PipelineEvent.for_video(result, 2, 4)
    assert event.stage == "video"
    assert event.progress == 0.5
    assert event.message == "Show.S01E02.mkv: 1 downloaded, 2 extracted, 1 removed, 3 renamed"
    assert event.data == result.to_dict()
    assert event.data["path"] == "/media/Show.S01E02.mkv"
    assert event.data["downloaded"] == ["nl"]
    assert not event.failed


def test_skipped_video_event_reports_errors():
    result = VideoResult(path=Path("gone.mkv"), skipped=True, errors=["No such file"])
    event = PipelineEvent.for_video(result, 1, 1)
    assert event.progress == 1.0
    assert event.message == "gone.mkv: skipped, 1 error(s)"
    assert event.failed
    assert event.data["skipped"] is True


def test_done_event_is_not_failed():
    event = PipelineEvent(stage="done", progress=1.0, message="Done", data={"failed": 0})
    assert not event.failed
    assert not PipelineEvent(stage="discover", progress=0.0, message="Scanning").failed


def test_event_callback_collects_video_events():
    collected: list[PipelineEvent] = []
    cb: EventCallback = collected.append
    for i, name in enumerate(["a.mkv", "b.mkv"], 1):
        cb(PipelineEvent.for_video(VideoResult(path=Path(name), extracted=i), i, 2))
    assert [e.data["extracted"] for e in collected] == [1, 2]
    assert [e.progress for e in collected] == [0.5, 1.0]
