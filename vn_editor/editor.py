"""
Editor

Wires one timeline together: the project, its context, the playback
clock and sync controller, the drag/trim and scrub controllers, the
project store and the AI asset generator. The surrounding UI only talks
to this object.

Usage:
    editor = Editor()
    editor.sync.bind(Track.MAIN, QtMediaSink())
    asset = editor.import_asset(MediaAsset.from_file("intro.mp4", duration=12.0))
    editor.add_to_timeline(asset.id)
    editor.toggle_playback()
"""

import logging
from typing import Dict, Optional

from vn_editor.config import get_setting
from vn_editor.models.project import MediaAsset, Project, TimelineClip, Track
from vn_editor.playback.engine import FrameScheduler, PlaybackClock
from vn_editor.playback.sync import ActiveLayer, SyncController, resolve_active_layers
from vn_editor.services.generation import AssetGenerator
from vn_editor.services.project_io import ProjectStore
from vn_editor.timeline.context import TimelineContext
from vn_editor.timeline.geometry import PIXELS_PER_SECOND, SNAP_THRESHOLD_PX, format_timecode
from vn_editor.timeline.manipulation import ClipManipulator
from vn_editor.timeline.scrub import ScrubController

logger = logging.getLogger(__name__)


class Editor:
    """A single editable timeline with its playback machinery."""

    def __init__(
        self,
        project: Optional[Project] = None,
        scheduler: Optional[FrameScheduler] = None,
        store: Optional[ProjectStore] = None,
        generator: Optional[AssetGenerator] = None,
        scale: Optional[float] = None,
        snap_threshold_px: Optional[float] = None
    ):
        self.project = project if project is not None else Project()
        if scale is None:
            scale = float(get_setting("pixels_per_second", PIXELS_PER_SECOND))

        self.context = TimelineContext(project=self.project, scale=scale)

        self.clock = PlaybackClock(self.context, scheduler)
        self.sync = SyncController(self.context)
        self.sync.attach(self.clock)

        if snap_threshold_px is None:
            snap_threshold_px = float(get_setting("snap_threshold_px", SNAP_THRESHOLD_PX))
        self.manipulator = ClipManipulator(self.context, snap_threshold_px=snap_threshold_px)
        self.scrub = ScrubController(self.context, self.clock)

        self.store = store if store is not None else ProjectStore()
        self.generator = generator if generator is not None else AssetGenerator(self.project)

    # ------------------------------------------------------------------
    # Assets and clips
    # ------------------------------------------------------------------

    def import_asset(self, asset: MediaAsset) -> MediaAsset:
        """Add an ingested asset to the catalog."""
        self.project.add_asset(asset)
        return asset

    def add_to_timeline(self, asset_id: str) -> Optional[TimelineClip]:
        return self.project.add_to_timeline(asset_id)

    def select_clip(self, clip_id: Optional[str]) -> None:
        self.context.select_clip(clip_id)

    @property
    def selected_clip(self) -> Optional[TimelineClip]:
        if self.context.selected_clip_id is None:
            return None
        return self.project.get_clip_by_id(self.context.selected_clip_id)

    def delete_clip(self, clip_id: str) -> bool:
        """Delete a clip, dropping the selection if it pointed at it."""
        removed = self.project.delete_clip(clip_id)
        if removed and self.context.selected_clip_id == clip_id:
            self.context.select_clip(None)
        return removed

    def split_selected(self) -> Optional[TimelineClip]:
        """Split the selected clip at the playhead and select the second part."""
        clip_id = self.context.selected_clip_id
        if clip_id is None:
            return None
        second = self.project.split_clip(clip_id, self.context.current_time)
        if second is not None:
            self.context.select_clip(second.id)
        return second

    # ------------------------------------------------------------------
    # Playback
    # ------------------------------------------------------------------

    def toggle_playback(self) -> None:
        self.clock.toggle_playback()

    def active_layers(self) -> Dict[Track, ActiveLayer]:
        """What the preview shows at the playhead, per track."""
        return resolve_active_layers(self.project, self.context.current_time)

    def time_display(self) -> str:
        """Current time and total length, as shown under the preview."""
        return f"{format_timecode(self.context.current_time)} / {format_timecode(self.project.duration)}"

    # ------------------------------------------------------------------
    # External collaborators
    # ------------------------------------------------------------------

    def save(self) -> bool:
        """Best-effort save; editing continues whatever the outcome."""
        return self.store.save_project(self.project)

    async def generate_asset(self, prompt: str) -> Optional[MediaAsset]:
        return await self.generator.generate(prompt)

    @property
    def generation_error(self) -> Optional[str]:
        return self.generator.last_error
