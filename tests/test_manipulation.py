"""
Drag/trim state machine, driven with synthetic press/move/release input.

The context uses 40 px/s, so the default 15 px snap radius is 0.375 s.
"""

import pytest

from vn_editor.models.project import MIN_CLIP_DURATION, TimelineClip, Track
from vn_editor.timeline.manipulation import ClipManipulator, DragHandle

PPS = 40.0


@pytest.fixture
def manipulator(context):
    return ClipManipulator(context)


def _drag(manipulator, clip, handle, delta_seconds, anchor_x=500.0):
    assert manipulator.press(clip.id, handle, anchor_x)
    updates = manipulator.move(anchor_x + delta_seconds * PPS)
    manipulator.release()
    return updates


class TestTransitions:
    def test_body_press_selects_and_starts_drag(self, manipulator, context, project, video_asset):
        clip = project.add_clip(video_asset)
        assert manipulator.press(clip.id, DragHandle.BODY, 10.0)
        assert manipulator.is_dragging
        assert context.selected_clip_id == clip.id
        assert manipulator.session.original == clip
        assert manipulator.session.original is not clip

    def test_trim_handles_require_selection(self, manipulator, context, project, video_asset):
        clip = project.add_clip(video_asset)
        assert not manipulator.press(clip.id, DragHandle.LEFT, 0.0)
        assert not manipulator.press(clip.id, DragHandle.RIGHT, 0.0)
        assert not manipulator.is_dragging

        context.select_clip(clip.id)
        assert manipulator.press(clip.id, DragHandle.RIGHT, 0.0)

    def test_second_press_is_ignored_until_release(self, manipulator, project, video_asset, image_asset):
        first = project.add_clip(video_asset)
        second = project.add_clip(image_asset)
        assert manipulator.press(first.id, DragHandle.BODY, 0.0)
        assert not manipulator.press(second.id, DragHandle.BODY, 0.0)
        assert manipulator.session.clip_id == first.id

        manipulator.release()
        assert not manipulator.is_dragging
        assert manipulator.press(second.id, DragHandle.BODY, 0.0)

    def test_press_ignored_while_scrubbing(self, manipulator, context, project, video_asset):
        clip = project.add_clip(video_asset)
        context.scrubbing = True
        assert not manipulator.press(clip.id, DragHandle.BODY, 0.0)

    def test_press_on_unknown_clip(self, manipulator):
        assert not manipulator.press("missing", DragHandle.BODY, 0.0)

    def test_move_while_idle_does_nothing(self, manipulator):
        assert manipulator.move(100.0) is None

    def test_release_is_safe_when_idle(self, manipulator):
        manipulator.release()
        assert not manipulator.is_dragging

    def test_moves_use_total_delta(self, manipulator, project, long_video_asset, context):
        clip = project.add_clip(long_video_asset)
        project.update_clip(clip.id, start_offset=20.0, duration=5.0)
        context.current_time = 50.0

        manipulator.press(clip.id, DragHandle.BODY, 300.0)
        for x in (340.0, 380.0, 420.0, 310.0):
            manipulator.move(x)
        assert clip.start_offset == pytest.approx(20.25)

        manipulator.move(300.0)
        assert clip.start_offset == pytest.approx(20.0)

    def test_dangling_asset_skips_update(self, manipulator, project):
        clip = TimelineClip.create_new("ghost", Track.MAIN, 4.0, 2.0)
        project.timeline.append(clip)
        manipulator.press(clip.id, DragHandle.BODY, 0.0)
        assert manipulator.move(200.0) is None
        assert clip.start_offset == 4.0


class TestBodyDrag:
    def test_moves_start_only(self, manipulator, project, long_video_asset, context):
        clip = project.add_clip(long_video_asset)
        context.current_time = 100.0
        updates = _drag(manipulator, clip, DragHandle.BODY, 3.0)
        assert updates == {"start_offset": pytest.approx(3.0)}
        assert clip.duration == 30.0

    def test_clamps_at_zero(self, manipulator, project, video_asset):
        clip = project.add_clip(video_asset)
        _drag(manipulator, clip, DragHandle.BODY, -2.5)
        assert clip.start_offset == 0

    def test_left_edge_snaps_to_neighbour(self, manipulator, project, video_asset, image_asset):
        project.add_clip(video_asset)
        image_clip = project.add_clip(image_asset)
        project.update_clip(image_clip.id, start_offset=14.0)

        manipulator.press(image_clip.id, DragHandle.BODY, 500.0)
        manipulator.move(500.0 - 3.8 * PPS)
        assert image_clip.start_offset == 10.0
        assert manipulator.snap_time == 10.0
        assert manipulator.snap_line_x == 400.0

        manipulator.release()
        assert manipulator.snap_time is None
        assert manipulator.snap_line_x is None

    def test_right_edge_snaps_to_playhead(self, manipulator, project, video_asset, image_asset, context):
        project.add_clip(video_asset)
        image_clip = project.add_clip(image_asset)
        context.current_time = 20.0

        _drag(manipulator, image_clip, DragHandle.BODY, 5.1)
        assert image_clip.start_offset == pytest.approx(15.0)

    def test_no_snap_outside_threshold(self, manipulator, project, video_asset, image_asset, context):
        project.add_clip(video_asset)
        image_clip = project.add_clip(image_asset)
        context.current_time = 40.0

        manipulator.press(image_clip.id, DragHandle.BODY, 500.0)
        manipulator.move(500.0 + 2.0 * PPS)
        assert image_clip.start_offset == pytest.approx(12.0)
        assert manipulator.snap_time is None


class TestLeftTrim:
    def test_extends_back_to_media_start(self, manipulator, project, long_video_asset, context):
        clip = project.add_clip(long_video_asset)
        project.update_clip(clip.id, start_offset=5.0, media_start=5.0, duration=5.0)
        context.select_clip(clip.id)

        _drag(manipulator, clip, DragHandle.LEFT, -5.0)
        assert clip.media_start == 0
        assert clip.start_offset == 0
        assert clip.duration == pytest.approx(10.0)

    def test_media_start_correction_keeps_right_edge(self, manipulator, project, long_video_asset, context):
        clip = project.add_clip(long_video_asset)
        project.update_clip(clip.id, start_offset=8.0, media_start=2.0, duration=5.0)
        context.select_clip(clip.id)
        context.current_time = 30.0

        updates = _drag(manipulator, clip, DragHandle.LEFT, -5.0)
        assert set(updates) == {"start_offset", "media_start", "duration"}
        assert clip.media_start == 0
        assert clip.start_offset == pytest.approx(6.0)
        assert clip.duration == pytest.approx(7.0)
        assert clip.end_offset == pytest.approx(13.0)

    def test_trim_in_moves_media_start(self, manipulator, project, long_video_asset, context):
        clip = project.add_clip(long_video_asset)
        context.select_clip(clip.id)
        context.current_time = 100.0

        _drag(manipulator, clip, DragHandle.LEFT, 4.0)
        assert clip.start_offset == pytest.approx(4.0)
        assert clip.media_start == pytest.approx(4.0)
        assert clip.duration == pytest.approx(26.0)

    def test_repins_to_minimum_duration(self, manipulator, project, video_asset, context):
        clip = project.add_clip(video_asset)
        context.select_clip(clip.id)
        context.current_time = 100.0

        _drag(manipulator, clip, DragHandle.LEFT, 12.0)
        assert clip.duration == MIN_CLIP_DURATION
        assert clip.start_offset == pytest.approx(9.5)
        assert clip.media_start == pytest.approx(9.5)

    def test_never_moves_before_timeline_origin(self, manipulator, project, long_video_asset, context):
        clip = project.add_clip(long_video_asset)
        project.update_clip(clip.id, start_offset=2.0, media_start=10.0, duration=5.0)
        context.select_clip(clip.id)
        context.current_time = 100.0

        _drag(manipulator, clip, DragHandle.LEFT, -6.0)
        assert clip.start_offset == 0
        assert clip.media_start == pytest.approx(8.0)
        assert clip.end_offset == pytest.approx(7.0)


class TestRightTrim:
    def test_clamps_to_asset_length(self, manipulator, project, video_asset, context):
        clip = project.add_clip(video_asset)
        context.select_clip(clip.id)

        updates = _drag(manipulator, clip, DragHandle.RIGHT, 20.0)
        assert updates == {"duration": 10.0}
        assert clip.duration == 10.0

    def test_clamps_after_split(self, manipulator, project, video_asset, context):
        clip = project.add_clip(video_asset)
        second = project.split_clip(clip.id, 4.0)
        context.select_clip(second.id)

        _drag(manipulator, second, DragHandle.RIGHT, 20.0)
        assert second.duration == pytest.approx(6.0)

    def test_minimum_duration(self, manipulator, project, video_asset, context):
        clip = project.add_clip(video_asset)
        context.select_clip(clip.id)
        context.current_time = 50.0

        _drag(manipulator, clip, DragHandle.RIGHT, -20.0)
        assert clip.duration == MIN_CLIP_DURATION

    def test_images_extend_freely(self, manipulator, project, image_asset, context):
        clip = project.add_clip(image_asset)
        context.select_clip(clip.id)
        context.current_time = 50.0

        _drag(manipulator, clip, DragHandle.RIGHT, 10.0)
        assert clip.duration == pytest.approx(15.0)

    def test_end_snaps_to_playhead(self, manipulator, project, image_asset, context):
        clip = project.add_clip(image_asset)
        context.select_clip(clip.id)
        context.current_time = 8.0

        manipulator.press(clip.id, DragHandle.RIGHT, 200.0)
        manipulator.move(200.0 + 2.8 * PPS)
        assert clip.duration == pytest.approx(8.0)
        assert manipulator.snap_time == 8.0


def test_store_invariants_hold_after_random_drags(manipulator, project, video_asset, image_asset, context):
    clips = [project.add_clip(video_asset), project.add_clip(image_asset), project.add_clip(video_asset)]
    deltas = [-30.0, -7.3, -0.2, 0.0, 0.4, 3.3, 11.0, 42.0]
    for clip in clips:
        for handle in DragHandle:
            for delta in deltas:
                context.select_clip(clip.id)
                _drag(manipulator, clip, handle, delta)
                for c in project.timeline:
                    assert c.duration >= MIN_CLIP_DURATION
                    assert c.start_offset >= 0
                    assert c.media_start >= 0
                    asset = project.get_asset(c.asset_id)
                    if asset.kind.is_time_bounded:
                        assert c.media_start + c.duration <= asset.duration + 1e-9


def test_new_clip_follows_last_placed_clip_after_drag(manipulator, project, video_asset, image_asset):
    first = project.add_clip(video_asset)
    second = project.add_clip(image_asset)

    _drag(manipulator, first, DragHandle.BODY, 20.0)
    assert first.start_offset == pytest.approx(20.0)

    third = project.add_clip(image_asset)
    assert third.start_offset == pytest.approx(second.end_offset)
    assert third.start_offset == pytest.approx(15.0)
