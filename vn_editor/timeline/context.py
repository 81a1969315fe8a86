"""
Per-timeline engine state.

The playhead, the play flag, the selection, the active drag and the
scrub flag live on one context object, so several timelines can coexist
and tests can build one directly.
"""

from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING

from vn_editor.models.project import Project
from vn_editor.timeline.geometry import PIXELS_PER_SECOND

if TYPE_CHECKING:
    from vn_editor.timeline.manipulation import DragSession


@dataclass
class TimelineContext:
    """
    Mutable state shared by the controllers of a single timeline.

    Attributes:
        project: The project being edited
        current_time: Playhead position in seconds (never negative)
        is_playing: Whether the playback clock is running
        selected_clip_id: The clip exposing trim handles, if any
        drag: The active clip drag session, if any
        scrubbing: Whether a ruler press-and-hold is in progress
        scale: Zoom level in pixels per second
    """
    project: Project
    current_time: float = 0.0
    is_playing: bool = False
    selected_clip_id: Optional[str] = None
    drag: Optional["DragSession"] = None
    scrubbing: bool = False
    scale: float = PIXELS_PER_SECOND

    @property
    def is_busy(self) -> bool:
        """Whether a pointer gesture currently owns the timeline."""
        return self.drag is not None or self.scrubbing

    def select_clip(self, clip_id: Optional[str]) -> None:
        self.selected_clip_id = clip_id
