"""
Shared fixtures: a headless Qt core application, deterministic frame
scheduling and in-memory media sinks.
"""

from typing import Callable, List, Optional

import pytest
from PySide6.QtCore import QCoreApplication

from vn_editor.models.project import MediaAsset, MediaType, Project
from vn_editor.timeline.context import TimelineContext


@pytest.fixture(scope="session", autouse=True)
def qt_core_app():
    """QObject signals need a core application instance; no display required."""
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


class FakeScheduler:
    """Frame scheduler driven by hand: advance the clock, then fire."""

    def __init__(self, start: float = 100.0):
        self.time = start
        self.pending: Optional[Callable[[], None]] = None
        self.cancelled = 0

    def now(self) -> float:
        return self.time

    def schedule(self, callback: Callable[[], None]) -> None:
        self.pending = callback

    def cancel(self) -> None:
        self.pending = None
        self.cancelled += 1

    def step(self, seconds: float) -> None:
        """Let ``seconds`` of wall-clock time pass and deliver the next frame."""
        self.time += seconds
        callback, self.pending = self.pending, None
        if callback:
            callback()


class FakeSink:
    """In-memory media sink; loads complete when ``finish_load`` is called."""

    def __init__(self, auto_ready: bool = True):
        self.source: Optional[str] = None
        self.is_ready = False
        self.position = 0.0
        self.is_paused = True
        self.auto_ready = auto_ready
        self.loads: List[str] = []
        self.seeks: List[float] = []

    def load(self, source: str) -> None:
        self.source = source
        self.loads.append(source)
        self.position = 0.0
        self.is_ready = self.auto_ready

    def finish_load(self) -> None:
        self.is_ready = True

    def seek(self, seconds: float) -> None:
        self.seeks.append(seconds)
        self.position = seconds

    def play(self) -> None:
        self.is_paused = False

    def pause(self) -> None:
        self.is_paused = True


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def project():
    return Project(name="Test Project")


@pytest.fixture
def context(project):
    return TimelineContext(project=project, scale=40.0)


@pytest.fixture
def video_asset(project):
    asset = MediaAsset.create_new(MediaType.VIDEO, "file:///clips/a.mp4", "a.mp4", duration=10.0)
    project.add_asset(asset)
    return asset


@pytest.fixture
def long_video_asset(project):
    asset = MediaAsset.create_new(MediaType.VIDEO, "file:///clips/long.mp4", "long.mp4", duration=30.0)
    project.add_asset(asset)
    return asset


@pytest.fixture
def image_asset(project):
    asset = MediaAsset.create_new(MediaType.IMAGE, "file:///stills/b.png", "b.png")
    project.add_asset(asset)
    return asset
