"""
VN Editor Engine

The timeline manipulation and playback-synchronization core of the
VN browser editor: the track/clip data model, the drag/trim/snap state
machine, and the clock that keeps per-track media sinks in step with a
single global playhead.

Usage:
    from vn_editor.editor import Editor

    editor = Editor()
    asset = editor.import_asset(MediaAsset.create_text("Hello"))
    editor.add_to_timeline(asset.id)
"""

__version__ = "1.0.0"
__author__ = "VN Editor Team"
