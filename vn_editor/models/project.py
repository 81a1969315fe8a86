"""
Project Data Model

This module defines the core data structures for the VN editor engine.
All timeline operations modify these data structures, which are then
rendered by the preview and kept in step by the playback sync controller.

The data model follows a time-based approach where:
- Assets are immutable catalog entries (video, image, audio, text)
- Clips place a portion of an asset on one of four fixed tracks
- Timeline positions are stored in seconds
- Clips may overlap on a track; gaps are ordinary timeline state

Architecture:
    Project
    ├── assets: List[MediaAsset]
    └── timeline: List[TimelineClip]   (insertion order)
"""

from dataclasses import dataclass, fields, replace
from enum import Enum, IntEnum
from typing import List, Dict, Optional, Any
import logging
import mimetypes
import os
import time
import uuid

logger = logging.getLogger(__name__)

# Shortest clip any trim or update may produce (seconds)
MIN_CLIP_DURATION = 0.5


class MediaType(Enum):
    """Kind of a media asset, with the capabilities the engine relies on."""
    VIDEO = "video"
    IMAGE = "image"
    AUDIO = "audio"
    TEXT = "text"

    @property
    def is_time_bounded(self) -> bool:
        """Whether the asset's own duration limits how much of it can play."""
        return self in (MediaType.VIDEO, MediaType.AUDIO)

    @property
    def is_playable(self) -> bool:
        """Whether the asset drives a seekable media sink."""
        return self in (MediaType.VIDEO, MediaType.AUDIO)

    @property
    def default_duration(self) -> Optional[float]:
        return _DEFAULT_DURATIONS.get(self)


_DEFAULT_DURATIONS = {
    MediaType.IMAGE: 5.0,
    MediaType.TEXT: 3.0,
}


class Track(IntEnum):
    """
    The four fixed-role lanes of the timeline.

    Tracks compose by layering: main at the bottom, then the
    picture-in-picture overlay, then text. Audio is not drawn.
    """
    MAIN = 0
    OVERLAY = 1
    TEXT = 2
    AUDIO = 3

    @property
    def label(self) -> str:
        return _TRACK_LABELS[self]

    @staticmethod
    def for_media_type(kind: MediaType) -> "Track":
        """Default track for newly added clips of a given kind."""
        if kind == MediaType.TEXT:
            return Track.TEXT
        if kind == MediaType.AUDIO:
            return Track.AUDIO
        return Track.MAIN


_TRACK_LABELS = {
    Track.MAIN: "Main",
    Track.OVERLAY: "PIP",
    Track.TEXT: "Text",
    Track.AUDIO: "Audio",
}


@dataclass(frozen=True)
class MediaAsset:
    """
    An immutable entry in the project's media catalog.

    Attributes:
        id: Unique identifier
        kind: Video, image, audio or text
        source: Opaque locator (file path, blob or data URL)
        name: Display name
        duration: Length in seconds; authoritative only for video/audio
        text_content: The text to render, only for text assets
        thumbnail: Optional preview locator
    """
    id: str
    kind: MediaType
    source: str
    name: str
    duration: float
    text_content: Optional[str] = None
    thumbnail: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary for JSON storage."""
        return {
            "id": self.id,
            "kind": self.kind.value,
            "source": self.source,
            "name": self.name,
            "duration": self.duration,
            "text_content": self.text_content,
            "thumbnail": self.thumbnail
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MediaAsset":
        """Deserialize from dictionary."""
        return cls(
            id=data["id"],
            kind=MediaType(data["kind"]),
            source=data.get("source", ""),
            name=data.get("name", ""),
            duration=float(data["duration"]),
            text_content=data.get("text_content"),
            thumbnail=data.get("thumbnail")
        )

    @staticmethod
    def create_new(
        kind: MediaType,
        source: str,
        name: str,
        duration: Optional[float] = None,
        text_content: Optional[str] = None
    ) -> "MediaAsset":
        """Factory method to create a new asset with a generated ID."""
        if duration is None:
            duration = kind.default_duration
        if duration is None:
            raise ValueError(f"A duration is required for {kind.value} assets")
        return MediaAsset(
            id=str(uuid.uuid4()),
            kind=kind,
            source=source,
            name=name,
            duration=float(duration),
            text_content=text_content
        )

    @staticmethod
    def create_text(text: str, duration: float = 3.0) -> "MediaAsset":
        """Text assets carry their content instead of a source locator."""
        return MediaAsset.create_new(
            MediaType.TEXT,
            source="",
            name=text,
            duration=duration,
            text_content=text
        )

    @staticmethod
    def from_file(file_path: str, duration: Optional[float] = None) -> "MediaAsset":
        """
        Build an asset for an imported file.

        The kind is guessed from the MIME type. Video and audio need the
        duration from the caller's metadata probe; images default to 5s.
        """
        mime, _ = mimetypes.guess_type(file_path)
        if mime and mime.startswith("image"):
            kind = MediaType.IMAGE
        elif mime and mime.startswith("audio"):
            kind = MediaType.AUDIO
        else:
            kind = MediaType.VIDEO
        return MediaAsset.create_new(
            kind,
            source=file_path,
            name=os.path.basename(file_path),
            duration=duration
        )


@dataclass
class TimelineClip:
    """
    A placement of one asset on the timeline.

    Attributes:
        id: Unique identifier for this clip
        asset_id: The MediaAsset this clip plays (may dangle)
        track_index: Which track the clip sits on (see Track)
        start_offset: Position on the global timeline (seconds)
        media_start: Offset into the asset's own content (seconds)
        duration: How long the clip plays (seconds)
    """
    id: str
    asset_id: str
    track_index: int
    start_offset: float
    media_start: float
    duration: float

    @property
    def end_offset(self) -> float:
        """End position on the timeline."""
        return self.start_offset + self.duration

    def contains_time(self, time: float) -> bool:
        """Check if a timeline time falls within this clip."""
        return self.start_offset <= time < self.end_offset

    def local_time(self, time: float) -> float:
        """Map a timeline time to a position inside the asset."""
        return self.media_start + (time - self.start_offset)

    def copy(self) -> "TimelineClip":
        return replace(self)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary for JSON storage."""
        return {
            "id": self.id,
            "asset_id": self.asset_id,
            "track_index": self.track_index,
            "start_offset": self.start_offset,
            "media_start": self.media_start,
            "duration": self.duration
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TimelineClip":
        """Deserialize from dictionary."""
        return cls(
            id=data["id"],
            asset_id=data["asset_id"],
            track_index=data.get("track_index", Track.MAIN),
            start_offset=data.get("start_offset", 0.0),
            media_start=data.get("media_start", 0.0),
            duration=data["duration"]
        )

    @staticmethod
    def create_new(
        asset_id: str,
        track_index: int,
        start_offset: float,
        duration: float,
        media_start: float = 0.0
    ) -> "TimelineClip":
        """Factory method to create a new clip with a generated ID."""
        return TimelineClip(
            id=str(uuid.uuid4()),
            asset_id=asset_id,
            track_index=track_index,
            start_offset=start_offset,
            media_start=media_start,
            duration=duration
        )


_CLIP_FIELDS = frozenset(f.name for f in fields(TimelineClip)) - {"id"}


def clamp_clip(clip: TimelineClip, asset: Optional[MediaAsset]) -> TimelineClip:
    """
    Pull a clip back into its legal geometry, in place.

    Applying this twice gives the same result as applying it once, so
    callers that already clamped (the drag transforms) and the store
    can both run it without fighting each other.
    """
    clip.start_offset = max(0.0, clip.start_offset)
    clip.media_start = max(0.0, clip.media_start)
    clip.duration = max(MIN_CLIP_DURATION, clip.duration)

    if asset is not None and asset.kind.is_time_bounded and asset.duration > 0:
        limit = asset.duration
        # Leave room for a minimum-length clip before the end of the media
        clip.media_start = min(clip.media_start, max(0.0, limit - MIN_CLIP_DURATION))
        clip.duration = min(clip.duration, limit - clip.media_start)

    return clip


class Project:
    """
    The main project container and clip store.

    Holds the asset catalog and every clip placement. This is the single
    source of truth for the timeline state; geometry invariants are
    enforced here whenever a clip is created or changed.
    """

    def __init__(self, name: str = "Untitled Project"):
        self.id = str(uuid.uuid4())
        self.name = name
        self.last_modified = time.time()

        self.assets: List[MediaAsset] = []
        self.timeline: List[TimelineClip] = []

    @property
    def duration(self) -> float:
        """
        Total duration of the timeline: the furthest clip end,
        or 0 for an empty timeline.
        """
        return max((clip.end_offset for clip in self.timeline), default=0.0)

    # ------------------------------------------------------------------
    # Assets
    # ------------------------------------------------------------------

    def add_asset(self, asset: MediaAsset) -> None:
        """Add an asset to the catalog."""
        self.assets.append(asset)

    def get_asset(self, asset_id: str) -> Optional[MediaAsset]:
        """Find an asset by its ID. Dangling references return None."""
        for asset in self.assets:
            if asset.id == asset_id:
                return asset
        return None

    def get_asset_for_clip(self, clip: TimelineClip) -> Optional[MediaAsset]:
        return self.get_asset(clip.asset_id)

    # ------------------------------------------------------------------
    # Clip queries
    # ------------------------------------------------------------------

    def get_clip_by_id(self, clip_id: str) -> Optional[TimelineClip]:
        """Find a clip by its ID."""
        for clip in self.timeline:
            if clip.id == clip_id:
                return clip
        return None

    def clips_on_track(self, track_index: int) -> List[TimelineClip]:
        """All clips on a track, in timeline order."""
        return [clip for clip in self.timeline if clip.track_index == track_index]

    def get_clips_at_time(self, time: float) -> List[TimelineClip]:
        """Get all clips, on any track, that are active at a specific time."""
        return [clip for clip in self.timeline if clip.contains_time(time)]

    def get_active_clip(self, track_index: int, time: float) -> Optional[TimelineClip]:
        """
        The clip on a track whose span contains the given time.

        Clips may overlap; the most recently placed one wins.
        """
        for clip in reversed(self.timeline):
            if clip.track_index == track_index and clip.contains_time(time):
                return clip
        return None

    def track_end(self, track_index: int) -> float:
        """Where the next appended clip on a track would start: after the last one placed there."""
        clips = self.clips_on_track(track_index)
        return clips[-1].end_offset if clips else 0.0

    # ------------------------------------------------------------------
    # Clip mutations
    # ------------------------------------------------------------------

    def add_clip(self, asset: MediaAsset, track_index: Optional[int] = None) -> TimelineClip:
        """
        Append a clip for an asset at the end of its track.

        Args:
            asset: The asset to place
            track_index: Target track; defaults to the kind's fixed track

        Returns:
            The new clip
        """
        if track_index is None:
            track = Track.for_media_type(asset.kind)
        else:
            track = Track(track_index)

        clip = TimelineClip.create_new(
            asset_id=asset.id,
            track_index=int(track),
            start_offset=self.track_end(track),
            duration=asset.duration
        )
        clamp_clip(clip, asset)
        self.timeline.append(clip)
        logger.info(f"Added clip '{asset.name}' to {track.label} at {clip.start_offset:.2f}s")
        return clip

    def add_to_timeline(self, asset_id: str) -> Optional[TimelineClip]:
        """Place a catalog asset on the timeline; unknown ids are ignored."""
        asset = self.get_asset(asset_id)
        if asset is None:
            logger.warning(f"Cannot add unknown asset {asset_id} to the timeline")
            return None
        return self.add_clip(asset)

    def update_clip(self, clip_id: str, **updates: Any) -> Optional[TimelineClip]:
        """
        Merge fields into a clip and re-apply the geometry clamps.

        Args:
            clip_id: The clip to change
            **updates: Any of asset_id, track_index, start_offset,
                media_start, duration

        Returns:
            The updated clip, or None if no clip has that ID
        """
        unknown = set(updates) - _CLIP_FIELDS
        if unknown:
            raise TypeError(f"Unknown clip fields: {', '.join(sorted(unknown))}")

        clip = self.get_clip_by_id(clip_id)
        if clip is None:
            return None

        for name, value in updates.items():
            setattr(clip, name, value)

        return clamp_clip(clip, self.get_asset(clip.asset_id))

    def delete_clip(self, clip_id: str) -> bool:
        """Remove a clip by ID. The gap it leaves is kept."""
        for i, clip in enumerate(self.timeline):
            if clip.id == clip_id:
                self.timeline.pop(i)
                logger.info(f"Deleted clip {clip_id}")
                return True
        return False

    def split_clip(self, clip_id: str, at_time: float) -> Optional[TimelineClip]:
        """
        Split a clip in two at a timeline time.

        The first part keeps the original ID; the second part gets a new
        one and is inserted right after it. Splitting outside the clip,
        exactly on an edge, or so close to an edge that one part would be
        shorter than MIN_CLIP_DURATION changes nothing.

        Returns:
            The second part, or None if nothing was split
        """
        for index, clip in enumerate(self.timeline):
            if clip.id == clip_id:
                break
        else:
            return None

        if not (clip.start_offset < at_time < clip.end_offset):
            return None

        offset = at_time - clip.start_offset
        remainder = clip.duration - offset
        if offset < MIN_CLIP_DURATION or remainder < MIN_CLIP_DURATION:
            logger.debug(f"Split of {clip_id} at {at_time:.2f}s would leave a part under the minimum")
            return None

        second = TimelineClip.create_new(
            asset_id=clip.asset_id,
            track_index=clip.track_index,
            start_offset=at_time,
            duration=remainder,
            media_start=clip.media_start + offset
        )
        clip.duration = offset
        self.timeline.insert(index + 1, second)

        logger.info(f"Split clip {clip_id} at {at_time:.2f}s")
        return second

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self, include_assets: bool = True) -> Dict[str, Any]:
        """Serialize the project to a dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "last_modified": self.last_modified,
            "assets": [asset.to_dict() for asset in self.assets] if include_assets else [],
            "timeline": [clip.to_dict() for clip in self.timeline]
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Project":
        """Deserialize a project from a dictionary."""
        project = cls(name=data.get("name", "Untitled Project"))
        project.id = data.get("id", project.id)
        project.last_modified = data.get("last_modified", project.last_modified)

        project.assets = [
            MediaAsset.from_dict(asset_data)
            for asset_data in data.get("assets", [])
        ]
        project.timeline = [
            TimelineClip.from_dict(clip_data)
            for clip_data in data.get("timeline", [])
        ]
        return project

    def __repr__(self) -> str:
        return (
            f"Project(name='{self.name}', "
            f"assets={len(self.assets)}, "
            f"clips={len(self.timeline)}, "
            f"duration={self.duration:.2f}s)"
        )
