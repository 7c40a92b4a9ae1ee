"""Keypoint names and skeleton adjacency for COCO-17 style models."""

from typing import Dict, Tuple

# MoveNet and COCO share this order; index i of the model output is KEYPOINT_NAMES[i]
KEYPOINT_NAMES: Tuple[str, ...] = (
    "nose",
    "left_eye",
    "right_eye",
    "left_ear",
    "right_ear",
    "left_shoulder",
    "right_shoulder",
    "left_elbow",
    "right_elbow",
    "left_wrist",
    "right_wrist",
    "left_hip",
    "right_hip",
    "left_knee",
    "right_knee",
    "left_ankle",
    "right_ankle",
)

KEYPOINT_INDEX: Dict[str, int] = {name: idx for idx, name in enumerate(KEYPOINT_NAMES)}

# Pairs of joints connected by a drawn line
SKELETON_EDGES: Tuple[Tuple[str, str], ...] = (
    ("left_shoulder", "left_elbow"),
    ("left_elbow", "left_wrist"),
    ("right_shoulder", "right_elbow"),
    ("right_elbow", "right_wrist"),
    ("left_hip", "left_knee"),
    ("left_knee", "left_ankle"),
    ("right_hip", "right_knee"),
    ("right_knee", "right_ankle"),
    ("left_shoulder", "right_shoulder"),
    ("left_hip", "right_hip"),
)

DEFAULT_SCORE_THRESHOLD = 0.5


def is_confident(score: float, threshold: float = DEFAULT_SCORE_THRESHOLD) -> bool:
    """Keypoints are accepted only when their score is strictly above the threshold."""
    return score > threshold
