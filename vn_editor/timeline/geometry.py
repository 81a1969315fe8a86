"""
Timeline geometry.

Pure helpers that map between timeline seconds and pixels and resolve
magnetic snapping. Nothing here keeps state.
"""

from typing import Iterable, NamedTuple

# Timeline dimensions
PIXELS_PER_SECOND = 40.0
SNAP_THRESHOLD_PX = 15.0
HEADER_WIDTH = 100
RULER_HEIGHT = 32
TRACK_HEIGHT = 56


class SnapResult(NamedTuple):
    time: float
    snapped: bool


def time_to_pixel(seconds: float, scale: float = PIXELS_PER_SECOND) -> float:
    return seconds * scale


def pixel_to_time(pixels: float, scale: float = PIXELS_PER_SECOND) -> float:
    return pixels / scale


def pixel_threshold_to_time(
    threshold_px: float = SNAP_THRESHOLD_PX,
    scale: float = PIXELS_PER_SECOND
) -> float:
    """Convert a snap radius on screen into a radius in seconds at the current zoom."""
    return threshold_px / scale


def resolve_snap(proposed: float, candidates: Iterable[float], threshold: float) -> SnapResult:
    """
    Snap a proposed time to the closest candidate within the threshold.

    Candidates further than ``threshold`` (or exactly on it) are ignored.
    On equal distance the first candidate enumerated wins. Without any
    candidate in range the proposed time comes back unchanged.
    """
    best = proposed
    best_diff = float("inf")
    snapped = False

    for point in candidates:
        diff = abs(proposed - point)
        if diff < threshold and diff < best_diff:
            best_diff = diff
            best = point
            snapped = True

    return SnapResult(best, snapped)


def format_timecode(seconds: float) -> str:
    """Format seconds as MM:SS or H:MM:SS."""
    seconds = max(0.0, seconds)
    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    secs = int(seconds % 60)

    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"
