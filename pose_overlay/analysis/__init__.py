"""Geometric measurements derived from detected keypoints."""

from pose_overlay.analysis.angles import (
    DegenerateAngleError,
    JointAngles,
    calculate_angle,
    compute_joint_angles,
    joint_angle,
)

__all__ = [
    "DegenerateAngleError",
    "JointAngles",
    "calculate_angle",
    "compute_joint_angles",
    "joint_angle",
]
