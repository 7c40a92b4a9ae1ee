"""Overlay rendering."""

from pose_overlay.render.overlay import (
    STYLE_PRESETS,
    OverlayStyle,
    draw_angle_labels,
    draw_keypoints,
    draw_skeleton,
    get_style,
    render_pose,
)

__all__ = [
    "STYLE_PRESETS",
    "OverlayStyle",
    "draw_angle_labels",
    "draw_keypoints",
    "draw_skeleton",
    "get_style",
    "render_pose",
]
