"""Joint angle calculation from 2D keypoints."""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence, Tuple

import numpy as np

from pose_overlay.pose.base import PoseResult
from pose_overlay.pose.skeleton import DEFAULT_SCORE_THRESHOLD, is_confident

logger = logging.getLogger(__name__)

# Segments shorter than this are treated as zero length
MIN_SEGMENT_LENGTH = 1e-9

ARM_ANGLE_TRIPLES: Dict[str, Tuple[str, str, str]] = {
    "left_arm": ("left_shoulder", "left_elbow", "left_wrist"),
    "right_arm": ("right_shoulder", "right_elbow", "right_wrist"),
}

JOINT_ANGLE_TRIPLES: Dict[str, Tuple[str, str, str]] = {
    **ARM_ANGLE_TRIPLES,
    "left_knee": ("left_hip", "left_knee", "left_ankle"),
    "right_knee": ("right_hip", "right_knee", "right_ankle"),
}

ANGLE_LABELS = {
    "left_arm": "Left Arm Angle",
    "right_arm": "Right Arm Angle",
    "left_knee": "Left Knee Angle",
    "right_knee": "Right Knee Angle",
}


class DegenerateAngleError(ValueError):
    """Raised when a segment of the angle has zero length."""


def _as_xy(point: Any) -> np.ndarray:
    if hasattr(point, "x") and hasattr(point, "y"):
        return np.array([float(point.x), float(point.y)])
    x, y = point[0], point[1]
    return np.array([float(x), float(y)])


def calculate_angle(point_a: Any, point_b: Any, point_c: Any) -> float:
    """
    Calculate the angle at point_b formed by points A-B-C.

    Args:
        point_a: First point, with x/y attributes or an (x, y) sequence.
        point_b: Vertex of the angle.
        point_c: Third point.

    Returns:
        Angle in degrees in [0, 180].

    Raises:
        DegenerateAngleError: If A or C coincides with B.
    """
    b = _as_xy(point_b)
    ba = _as_xy(point_a) - b
    bc = _as_xy(point_c) - b

    norm_ba = np.linalg.norm(ba)
    norm_bc = np.linalg.norm(bc)
    if norm_ba < MIN_SEGMENT_LENGTH or norm_bc < MIN_SEGMENT_LENGTH:
        raise DegenerateAngleError(
            f"Zero-length segment: |BA|={norm_ba:.3g}, |BC|={norm_bc:.3g}"
        )

    cosine_angle = np.dot(ba, bc) / (norm_ba * norm_bc)
    cosine_angle = np.clip(cosine_angle, -1.0, 1.0)
    return float(np.degrees(np.arccos(cosine_angle)))


def joint_angle(
    pose_result: PoseResult,
    point_a: str,
    point_b: str,
    point_c: str,
    threshold: float = DEFAULT_SCORE_THRESHOLD,
) -> Optional[float]:
    """
    Angle at a named joint, or None if it cannot be measured on this frame.

    Args:
        pose_result: Pose estimation result.
        point_a: First point name.
        point_b: Center point name (vertex of angle).
        point_c: Third point name.
        threshold: Keypoints must score above this to be used.
    """
    points = [pose_result.get_keypoint(n) for n in (point_a, point_b, point_c)]
    if any(p is None or not is_confident(p.confidence, threshold) for p in points):
        return None

    try:
        return calculate_angle(*points)
    except DegenerateAngleError as e:
        logger.debug(f"Skipping {point_b} angle on frame {pose_result.frame_number}: {e}")
        return None


@dataclass
class JointAngles:
    """Named joint angles (degrees) measured on one frame."""
    left_arm: Optional[float] = None
    right_arm: Optional[float] = None
    left_knee: Optional[float] = None
    right_knee: Optional[float] = None

    def to_dict(self) -> Dict[str, Optional[float]]:
        return {
            "left_arm": self.left_arm,
            "right_arm": self.right_arm,
            "left_knee": self.left_knee,
            "right_knee": self.right_knee,
        }

    def available(self, names: Optional[Sequence[str]] = None) -> Dict[str, float]:
        """Only the angles that were measured, optionally restricted to names."""
        values = self.to_dict()
        keys = names if names is not None else values.keys()
        return {k: values[k] for k in keys if values.get(k) is not None}


def compute_joint_angles(
    pose_result: PoseResult,
    threshold: float = DEFAULT_SCORE_THRESHOLD,
) -> JointAngles:
    """
    Measure the arm and knee angles of a pose.

    Args:
        pose_result: Pose estimation result.
        threshold: Minimum keypoint confidence (exclusive).

    Returns:
        JointAngles with None for every joint that could not be measured.
    """
    if not pose_result.is_valid:
        return JointAngles()

    return JointAngles(**{
        name: joint_angle(pose_result, *triple, threshold=threshold)
        for name, triple in JOINT_ANGLE_TRIPLES.items()
    })
