"""Overlay loop and result export."""

from pose_overlay.pipeline.render_loop import (
    FrameOutput,
    LoopStats,
    OverlayLoop,
    create_overlay_loop,
)
from pose_overlay.pipeline.export import (
    ResultRecorder,
    export_angles_csv,
    export_json,
    resolve_format,
    results_to_records,
)

__all__ = [
    "FrameOutput",
    "LoopStats",
    "OverlayLoop",
    "create_overlay_loop",
    "ResultRecorder",
    "export_angles_csv",
    "export_json",
    "resolve_format",
    "results_to_records",
]
