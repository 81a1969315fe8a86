"""
Playback Engine

Advances the global playhead of a timeline. The engine does not decode
anything: it only moves ``current_time`` forward on every frame tick and
announces the change, and the SyncController pushes that time into the
per-track media sinks.

The per-frame timing source is injectable. In the application it is a
QTimer; tests drive a fake scheduler with deterministic time.

Architecture:
    PlaybackClock
    ├── FrameScheduler (QtFrameScheduler or a fake)
    ├── TimelineContext (current_time, is_playing)
    └── Signals (position_changed, state_changed, playback_finished)
"""

import logging
import time
from typing import Callable, Optional, Protocol

from PySide6.QtCore import QObject, Signal, QTimer

from vn_editor.timeline.context import TimelineContext

logger = logging.getLogger(__name__)


class FrameScheduler(Protocol):
    """Source of frame ticks and wall-clock time."""

    def now(self) -> float:
        """Monotonic time in seconds."""
        ...

    def schedule(self, callback: Callable[[], None]) -> None:
        """Run ``callback`` once, on the next frame."""
        ...

    def cancel(self) -> None:
        """Drop a pending callback, if any."""
        ...


class QtFrameScheduler(QObject):
    """
    Frame scheduler backed by a single-shot QTimer.

    Needs a running Qt event loop, which the host application provides.
    """

    def __init__(self, interval_ms: int = 16, parent=None):
        super().__init__(parent)
        self._callback: Optional[Callable[[], None]] = None
        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.setInterval(interval_ms)
        self._timer.timeout.connect(self._fire)

    def now(self) -> float:
        return time.perf_counter()

    def schedule(self, callback: Callable[[], None]) -> None:
        self._callback = callback
        self._timer.start()

    def cancel(self) -> None:
        self._timer.stop()
        self._callback = None

    def _fire(self) -> None:
        callback, self._callback = self._callback, None
        if callback:
            callback()


class PlaybackClock(QObject):
    """
    The global playhead.

    Signals:
        position_changed: Emitted when the playhead moves (seconds)
        state_changed: Emitted when play/pause state changes (is_playing)
        playback_finished: Emitted when playback stops at the end
    """

    position_changed = Signal(float)
    state_changed = Signal(bool)
    playback_finished = Signal()

    def __init__(self, context: TimelineContext, scheduler: Optional[FrameScheduler] = None, parent=None):
        super().__init__(parent)

        self.context = context
        self._scheduler = scheduler if scheduler is not None else QtFrameScheduler(parent=self)
        self._last_tick: Optional[float] = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def is_playing(self) -> bool:
        """Whether playback is currently active."""
        return self.context.is_playing

    @property
    def current_time(self) -> float:
        """Current playhead position in seconds."""
        return self.context.current_time

    @property
    def total_duration(self) -> float:
        """Timeline length, read live since clips change during playback."""
        return self.context.project.duration

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def play(self) -> None:
        """Start playback from the playhead."""
        if self.context.is_playing:
            return

        total = self.total_duration
        if total > 0 and self.context.current_time >= total:
            self._set_time(0.0)

        self.context.is_playing = True
        self._last_tick = self._scheduler.now()
        self._scheduler.schedule(self._on_tick)
        self.state_changed.emit(True)

    def pause(self) -> None:
        """Pause playback."""
        self._scheduler.cancel()
        self._last_tick = None
        if not self.context.is_playing:
            return
        self.context.is_playing = False
        self.state_changed.emit(False)

    def toggle_playback(self) -> None:
        """Toggle between play and pause."""
        if self.context.is_playing:
            self.pause()
        else:
            self.play()

    def stop(self) -> None:
        """Stop playback and reset to beginning."""
        self.pause()
        self._set_time(0.0)

    def seek(self, time_seconds: float, pause: bool = True) -> None:
        """
        Move the playhead.

        Args:
            time_seconds: Target time; negative values clamp to 0
            pause: Stop playback as part of the seek (pointer seeks do)
        """
        if pause:
            self.pause()
        self._set_time(max(0.0, time_seconds))

    def seek_relative(self, delta_seconds: float) -> None:
        """Seek relative to current position."""
        self.seek(self.context.current_time + delta_seconds)

    def seek_to_start(self) -> None:
        self._set_time(0.0)

    def seek_to_end(self) -> None:
        self._set_time(self.total_duration)

    # ------------------------------------------------------------------
    # Frame loop
    # ------------------------------------------------------------------

    def advance(self, delta: float) -> None:
        """
        Move the playhead forward by ``delta`` seconds of wall-clock time.

        Reaching the end of a non-empty timeline clamps to the end and
        stops; there is no looping.
        """
        next_time = self.context.current_time + delta
        total = self.total_duration

        if total > 0 and next_time >= total:
            self._set_time(total)
            self.pause()
            logger.debug("Playback reached the end of the timeline")
            self.playback_finished.emit()
            return

        self._set_time(next_time)

    def _on_tick(self) -> None:
        """Called on each frame while playing."""
        if not self.context.is_playing:
            return

        now = self._scheduler.now()
        delta = now - self._last_tick if self._last_tick is not None else 0.0
        self._last_tick = now

        self.advance(delta)

        if self.context.is_playing:
            self._scheduler.schedule(self._on_tick)

    def _set_time(self, seconds: float) -> None:
        self.context.current_time = seconds
        self.position_changed.emit(seconds)
