"""
Media Sync

Keeps the per-track media sinks in step with the global playhead.

On every tick each track resolves at most one active clip (a 4-layer
compositing model: main, overlay, text, audio). Sinks bound to the
main, overlay and audio tracks are then loaded, drift-corrected and
played or paused to match the clock. Text is rendered from the active
layer, never synced.

Loading a new source is asynchronous from the controller's point of
view: while a sink is not ready the track is skipped, and the next tick
re-evaluates. A late load for an asset that is no longer active is
replaced on the next tick by the source comparison.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Protocol

from PySide6.QtCore import QObject, Signal, QUrl

from vn_editor.models.project import MediaAsset, MediaType, Project, TimelineClip, Track
from vn_editor.timeline.context import TimelineContext

logger = logging.getLogger(__name__)

# Drift beyond this many seconds forces a seek; below it native playback runs free
DRIFT_TOLERANCE = 0.3


class MediaSink(Protocol):
    """A seekable, opaque media handle the engine schedules but never decodes."""

    @property
    def source(self) -> Optional[str]:
        """Locator of the loaded (or loading) media."""
        ...

    @property
    def is_ready(self) -> bool:
        """Whether the loaded media can be seeked and played."""
        ...

    @property
    def position(self) -> float:
        """Playback position inside the media, in seconds."""
        ...

    @property
    def is_paused(self) -> bool:
        ...

    def load(self, source: str) -> None:
        ...

    def seek(self, seconds: float) -> None:
        ...

    def play(self) -> None:
        ...

    def pause(self) -> None:
        ...


class QtMediaSink(QObject):
    """
    MediaSink backed by a QMediaPlayer.

    Connect ``player`` to a QVideoWidget/QAudioOutput for display.
    QtMultimedia is imported on first use so the engine loads without
    a multimedia backend.
    """

    def __init__(self, player=None, parent=None):
        super().__init__(parent)
        from PySide6.QtMultimedia import QMediaPlayer

        self._playing_state = QMediaPlayer.PlaybackState.PlayingState
        self._ready_states = (
            QMediaPlayer.MediaStatus.LoadedMedia,
            QMediaPlayer.MediaStatus.BufferingMedia,
            QMediaPlayer.MediaStatus.BufferedMedia,
            QMediaPlayer.MediaStatus.EndOfMedia,
        )
        self.player = player if player is not None else QMediaPlayer(self)
        self._source: Optional[str] = None
        self.player.errorOccurred.connect(self._on_error)

    @property
    def source(self) -> Optional[str]:
        return self._source

    @property
    def is_ready(self) -> bool:
        return self.player.mediaStatus() in self._ready_states

    @property
    def position(self) -> float:
        return self.player.position() / 1000.0

    @property
    def is_paused(self) -> bool:
        return self.player.playbackState() != self._playing_state

    def load(self, source: str) -> None:
        self._source = source
        self.player.setSource(QUrl.fromUserInput(source))

    def seek(self, seconds: float) -> None:
        self.player.setPosition(int(seconds * 1000))

    def play(self) -> None:
        self.player.play()

    def pause(self) -> None:
        self.player.pause()

    def _on_error(self, error, message: str) -> None:
        # Playback errors degrade to a silent/black track, never to an exception
        logger.warning(f"Media sink error for {self._source}: {message}")


@dataclass(frozen=True)
class ActiveLayer:
    """The clip a track shows at the current playhead time."""
    track: Track
    clip: TimelineClip
    asset: MediaAsset

    @property
    def is_playable(self) -> bool:
        return self.asset.kind.is_playable

    @property
    def text(self) -> Optional[str]:
        """Text to draw for text layers."""
        if self.asset.kind == MediaType.TEXT:
            return self.asset.text_content
        return None

    def local_time(self, time: float) -> float:
        return self.clip.local_time(time)


def resolve_active_layers(project: Project, time: float) -> Dict[Track, ActiveLayer]:
    """
    Resolve, independently for every track, the clip under the playhead.

    Clips whose asset is missing from the catalog are skipped.
    """
    layers: Dict[Track, ActiveLayer] = {}
    for track in Track:
        clip = project.get_active_clip(track, time)
        if clip is None:
            continue
        asset = project.get_asset(clip.asset_id)
        if asset is None:
            logger.debug(f"Clip {clip.id} references missing asset {clip.asset_id}")
            continue
        layers[track] = ActiveLayer(track, clip, asset)
    return layers


class SyncController(QObject):
    """
    Pushes the clock's time and play state into bound media sinks.

    Signals:
        drift_corrected: Emitted after a forced seek (track, target seconds)
    """

    drift_corrected = Signal(int, float)

    def __init__(self, context: TimelineContext, parent=None):
        super().__init__(parent)
        self.context = context
        self._sinks: Dict[Track, MediaSink] = {}

    def bind(self, track: int, sink: MediaSink) -> None:
        """Attach a media sink to a track. Text tracks cannot be bound."""
        track = Track(track)
        if track == Track.TEXT:
            raise ValueError("The text track is rendered, not synced to a media sink")
        self._sinks[track] = sink

    def unbind(self, track: int) -> Optional[MediaSink]:
        return self._sinks.pop(Track(track), None)

    def sink_for(self, track: int) -> Optional[MediaSink]:
        return self._sinks.get(Track(track))

    def attach(self, clock) -> None:
        """Re-sync whenever the clock moves or changes play state."""
        clock.position_changed.connect(self._on_position_changed)
        clock.state_changed.connect(self._on_state_changed)

    def _on_position_changed(self, seconds: float) -> None:
        self.sync()

    def _on_state_changed(self, is_playing: bool) -> None:
        self.sync()

    def sync(self) -> None:
        """Bring every bound sink in line with the current tick."""
        for track, sink in self._sinks.items():
            self._sync_sink(track, sink)

    def _sync_sink(self, track: Track, sink: MediaSink) -> None:
        project = self.context.project
        now = self.context.current_time

        clip = project.get_active_clip(track, now)
        asset = project.get_asset(clip.asset_id) if clip is not None else None

        if clip is None or asset is None or not asset.kind.is_playable:
            if not sink.is_paused:
                sink.pause()
            return

        if sink.source != asset.source:
            logger.debug(f"Loading {asset.name} on {track.label}")
            sink.load(asset.source)
            return

        if not sink.is_ready:
            return

        target = clip.local_time(now)
        if abs(sink.position - target) > DRIFT_TOLERANCE:
            logger.debug(f"Drift on {track.label}: {sink.position:.3f}s -> {target:.3f}s")
            sink.seek(target)
            self.drift_corrected.emit(int(track), target)

        if self.context.is_playing and sink.is_paused:
            sink.play()
        elif not self.context.is_playing and not sink.is_paused:
            sink.pause()
