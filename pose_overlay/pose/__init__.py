"""Pose estimation module with pluggable backends."""

from pose_overlay.pose.base import KeypointData, PoseBackend, PoseResult
from pose_overlay.pose.mediapipe_backend import MediaPipeBackend
from pose_overlay.pose.movenet_backend import MoveNetBackend
from pose_overlay.pose.skeleton import KEYPOINT_NAMES, SKELETON_EDGES

BACKENDS = {
    "movenet": MoveNetBackend,
    "mediapipe": MediaPipeBackend,
}


def create_backend(name: str, **options) -> PoseBackend:
    """
    Build a pose backend by name.

    Args:
        name: Backend name ("movenet" or "mediapipe").
        **options: Keyword arguments forwarded to the backend constructor.
    """
    try:
        backend_cls = BACKENDS[name]
    except KeyError:
        raise ValueError(f"Unknown pose backend: {name}") from None
    return backend_cls(**options)


__all__ = [
    "PoseBackend",
    "PoseResult",
    "KeypointData",
    "MediaPipeBackend",
    "MoveNetBackend",
    "KEYPOINT_NAMES",
    "SKELETON_EDGES",
    "BACKENDS",
    "create_backend",
]
