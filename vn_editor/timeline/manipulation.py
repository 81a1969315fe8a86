"""
Clip Manipulation

The pointer-driven drag/trim controller of the timeline. It is a small
finite-state machine with two states:

    Idle ──press──▶ Dragging ──move──▶ Dragging ──release──▶ Idle

Every move recomputes the clip geometry from the snapshot taken on press
plus the total pointer delta, so rounding never accumulates over a long
drag. The resulting fields go through Project.update_clip, which clamps
them again.

The machine knows nothing about widgets or event delivery: callers feed
it plain pointer x coordinates, which keeps it testable without a
rendering surface.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Dict, Any, List
import logging

from vn_editor.models.project import MIN_CLIP_DURATION, MediaAsset, TimelineClip
from vn_editor.timeline.context import TimelineContext
from vn_editor.timeline.geometry import (
    SNAP_THRESHOLD_PX, SnapResult, pixel_threshold_to_time, resolve_snap, time_to_pixel
)

logger = logging.getLogger(__name__)


class DragHandle(Enum):
    """Which part of a clip the pointer grabbed."""
    BODY = "body"
    LEFT = "left"
    RIGHT = "right"


@dataclass(frozen=True)
class DragSession:
    """
    An active drag.

    Attributes:
        clip_id: The clip being dragged
        handle: Body move or one of the trim edges
        anchor_x: Pointer x at press time (pixels)
        original: Snapshot of the clip at press time
    """
    clip_id: str
    handle: DragHandle
    anchor_x: float
    original: TimelineClip


class ClipManipulator:
    """
    Turns press/move/release sequences into clip updates.

    Only one drag may be active per timeline; presses during a drag (or
    during a ruler scrub) are ignored until release.
    """

    def __init__(self, context: TimelineContext, snap_threshold_px: float = SNAP_THRESHOLD_PX):
        self.context = context
        self.snap_threshold_px = snap_threshold_px
        self._snap_time: Optional[float] = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def session(self) -> Optional[DragSession]:
        return self.context.drag

    @property
    def is_dragging(self) -> bool:
        return self.context.drag is not None

    @property
    def snap_time(self) -> Optional[float]:
        """Time of the edge the last move snapped to, or None."""
        return self._snap_time

    @property
    def snap_line_x(self) -> Optional[float]:
        """Pixel position of the snap indicator, or None when hidden."""
        if self._snap_time is None:
            return None
        return time_to_pixel(self._snap_time, self.context.scale)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def press(self, clip_id: str, handle: DragHandle, pointer_x: float) -> bool:
        """
        Start a drag on a clip.

        Pressing the body selects the clip. The trim edges are only
        exposed on the selected clip, so a LEFT/RIGHT press on any other
        clip is ignored.

        Returns:
            True if a drag session started
        """
        if self.context.is_busy:
            return False

        clip = self.context.project.get_clip_by_id(clip_id)
        if clip is None:
            return False

        if handle == DragHandle.BODY:
            self.context.select_clip(clip_id)
        elif self.context.selected_clip_id != clip_id:
            return False

        self.context.drag = DragSession(
            clip_id=clip_id,
            handle=handle,
            anchor_x=pointer_x,
            original=clip.copy()
        )
        self._snap_time = None
        logger.debug(f"Drag started: {handle.value} of {clip_id}")
        return True

    def move(self, pointer_x: float) -> Optional[Dict[str, Any]]:
        """
        Apply the pointer position to the dragged clip.

        Returns:
            The fields sent to the store, or None when idle or when the
            clip's asset is missing from the catalog
        """
        session = self.context.drag
        if session is None:
            return None

        project = self.context.project
        asset = project.get_asset(session.original.asset_id)
        if asset is None:
            logger.warning(f"Clip {session.clip_id} references a missing asset; drag skipped")
            return None

        delta_time = (pointer_x - session.anchor_x) / self.context.scale

        if session.handle == DragHandle.BODY:
            updates = self._move_body(session, delta_time)
        elif session.handle == DragHandle.LEFT:
            updates = self._trim_left(session, delta_time)
        else:
            updates = self._trim_right(session, asset, delta_time)

        if project.update_clip(session.clip_id, **updates) is None:
            return None
        return updates

    def release(self) -> None:
        """End the drag, wherever the pointer is."""
        if self.context.drag is not None:
            logger.debug(f"Drag finished: {self.context.drag.clip_id}")
        self.context.drag = None
        self._snap_time = None

    # ------------------------------------------------------------------
    # Snapping
    # ------------------------------------------------------------------

    def snap_candidates(self, exclude_clip_id: str) -> List[float]:
        """Zero, the playhead, then both edges of every other clip."""
        points = [0.0, self.context.current_time]
        for clip in self.context.project.timeline:
            if clip.id == exclude_clip_id:
                continue
            points.append(clip.start_offset)
            points.append(clip.end_offset)
        return points

    def get_snap_time(self, proposed_time: float, exclude_clip_id: str) -> SnapResult:
        threshold = pixel_threshold_to_time(self.snap_threshold_px, self.context.scale)
        return resolve_snap(proposed_time, self.snap_candidates(exclude_clip_id), threshold)

    # ------------------------------------------------------------------
    # Handle transforms
    # ------------------------------------------------------------------

    def _move_body(self, session: DragSession, delta_time: float) -> Dict[str, Any]:
        original = session.original
        new_start = original.start_offset + delta_time

        # Left edge has priority over the right edge
        snap_left = self.get_snap_time(new_start, session.clip_id)
        snap_right = self.get_snap_time(new_start + original.duration, session.clip_id)

        self._snap_time = None
        if snap_left.snapped:
            new_start = snap_left.time
            self._snap_time = snap_left.time
        elif snap_right.snapped:
            new_start = snap_right.time - original.duration
            self._snap_time = snap_right.time

        return {"start_offset": max(0.0, new_start)}

    def _trim_left(self, session: DragSession, delta_time: float) -> Dict[str, Any]:
        original = session.original
        snap = self.get_snap_time(original.start_offset + delta_time, session.clip_id)
        self._snap_time = snap.time if snap.snapped else None

        new_start = snap.time
        actual_delta = new_start - original.start_offset
        new_media_start = original.media_start + actual_delta
        new_duration = original.duration - actual_delta

        # Cannot reveal media before the asset's first frame
        if new_media_start < 0:
            correction = -new_media_start
            new_media_start = 0.0
            new_start += correction
            new_duration -= correction

        # Nor move the left edge before the timeline origin
        if new_start < 0:
            correction = -new_start
            new_start = 0.0
            new_media_start += correction
            new_duration -= correction

        if new_duration < MIN_CLIP_DURATION:
            new_duration = MIN_CLIP_DURATION
            new_start = original.end_offset - MIN_CLIP_DURATION
            new_media_start = original.media_start + original.duration - MIN_CLIP_DURATION

        return {
            "start_offset": new_start,
            "media_start": new_media_start,
            "duration": new_duration
        }

    def _trim_right(self, session: DragSession, asset: MediaAsset, delta_time: float) -> Dict[str, Any]:
        original = session.original
        snap = self.get_snap_time(original.end_offset + delta_time, session.clip_id)

        if snap.snapped:
            new_duration = snap.time - original.start_offset
            self._snap_time = snap.time
        else:
            new_duration = original.duration + delta_time
            self._snap_time = None

        new_duration = max(MIN_CLIP_DURATION, new_duration)
        if asset.kind.is_time_bounded:
            new_duration = min(new_duration, asset.duration - original.media_start)

        return {"duration": new_duration}
