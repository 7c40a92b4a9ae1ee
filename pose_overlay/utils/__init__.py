"""Utility modules for pose overlay."""

from pose_overlay.utils.logging_config import setup_logging, get_logger
from pose_overlay.utils.video_utils import VideoProcessor, VideoWriter, get_video_info

__all__ = [
    "setup_logging",
    "get_logger",
    "VideoProcessor",
    "VideoWriter",
    "get_video_info",
]
