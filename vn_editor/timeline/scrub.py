"""
Scrub/seek input for the ruler and the track area.

A press on the ruler starts a press-and-hold scrub that re-seeks on every
move until release. A plain click on the track area seeks once. Every
seek pauses playback. Neither starts while a clip drag owns the pointer.
"""

import logging
from typing import TYPE_CHECKING

from vn_editor.timeline.context import TimelineContext
from vn_editor.timeline.geometry import HEADER_WIDTH

if TYPE_CHECKING:
    from vn_editor.playback.engine import PlaybackClock

logger = logging.getLogger(__name__)


class ScrubController:
    """Translates pointer x positions on the timeline into playhead seeks."""

    def __init__(self, context: TimelineContext, clock: "PlaybackClock", header_width: float = HEADER_WIDTH):
        self.context = context
        self.clock = clock
        self.header_width = header_width

    @property
    def is_scrubbing(self) -> bool:
        return self.context.scrubbing

    def pointer_to_time(self, pointer_x: float, origin_x: float = 0.0, scroll_left: float = 0.0) -> float:
        """
        Map a pointer position to a timeline time.

        Args:
            pointer_x: Pointer x in the same space as ``origin_x``
            origin_x: Left edge of the timeline container
            scroll_left: Horizontal scroll offset of the container
        """
        pixel_x = pointer_x - origin_x + scroll_left - self.header_width
        return max(0.0, pixel_x / self.context.scale)

    def press_ruler(self, pointer_x: float, origin_x: float = 0.0, scroll_left: float = 0.0) -> bool:
        """Begin scrubbing. Ignored while a clip drag is active."""
        if self.context.drag is not None:
            return False
        self.context.scrubbing = True
        self._seek(pointer_x, origin_x, scroll_left)
        return True

    def move(self, pointer_x: float, origin_x: float = 0.0, scroll_left: float = 0.0) -> bool:
        """Re-seek while the ruler is held."""
        if not self.context.scrubbing:
            return False
        self._seek(pointer_x, origin_x, scroll_left)
        return True

    def release(self) -> None:
        self.context.scrubbing = False

    def click_track(self, pointer_x: float, origin_x: float = 0.0, scroll_left: float = 0.0) -> bool:
        """Seek once from a click on the track area."""
        if self.context.is_busy:
            return False
        self._seek(pointer_x, origin_x, scroll_left)
        return True

    def _seek(self, pointer_x: float, origin_x: float, scroll_left: float) -> None:
        seconds = self.pointer_to_time(pointer_x, origin_x, scroll_left)
        logger.debug(f"Seek to {seconds:.3f}s")
        self.clock.seek(seconds)
