import math

import pytest

from pose_overlay.analysis.angles import (
    DegenerateAngleError,
    JointAngles,
    calculate_angle,
    compute_joint_angles,
    joint_angle,
)
from pose_overlay.pose.base import KeypointData


def test_collinear_points_give_straight_angle():
    assert calculate_angle((0, 0), (1, 0), (2, 0)) == pytest.approx(180.0)
    assert calculate_angle((3, 3), (2, 2), (-5, -5)) == pytest.approx(180.0)


def test_right_angle():
    assert calculate_angle((1, 0), (0, 0), (0, 1)) == pytest.approx(90.0)


def test_angle_is_symmetric_and_bounded():
    a, b, c = (4.0, 1.0), (1.0, 1.0), (2.0, 5.0)
    assert calculate_angle(a, b, c) == pytest.approx(calculate_angle(c, b, a))
    assert 0.0 <= calculate_angle(a, b, c) <= 180.0


def test_folded_segments_give_zero():
    assert calculate_angle((2, 0), (0, 0), (5, 0)) == pytest.approx(0.0)


def test_known_oblique_angle():
    angle = calculate_angle((1, 0), (0, 0), (1, math.sqrt(3)))
    assert angle == pytest.approx(60.0)


def test_accepts_keypoint_objects():
    a = KeypointData("left_shoulder", 0.0, 0.0)
    b = KeypointData("left_elbow", 0.0, 10.0)
    c = KeypointData("left_wrist", 10.0, 10.0)
    assert calculate_angle(a, b, c) == pytest.approx(90.0)


def test_nearly_collinear_does_not_produce_nan():
    angle = calculate_angle((1e8, 0.0), (0.0, 0.0), (-1e8, 1e-9))
    assert not math.isnan(angle)
    assert angle == pytest.approx(180.0)


@pytest.mark.parametrize("points", [
    ((1, 1), (1, 1), (2, 2)),
    ((0, 0), (3, 4), (3, 4)),
    ((5, 5), (5, 5), (5, 5)),
])
def test_duplicate_points_raise(points):
    with pytest.raises(DegenerateAngleError):
        calculate_angle(*points)


def test_degenerate_error_is_value_error():
    assert issubclass(DegenerateAngleError, ValueError)


def test_joint_angle_from_pose(pose_factory):
    pose = pose_factory()
    assert joint_angle(pose, "left_shoulder", "left_elbow", "left_wrist") == pytest.approx(90.0)
    assert joint_angle(pose, "right_shoulder", "right_elbow", "right_wrist") == pytest.approx(180.0)


def test_joint_angle_skips_low_confidence(pose_factory):
    pose = pose_factory(scores={"left_wrist": 0.2})
    assert joint_angle(pose, "left_shoulder", "left_elbow", "left_wrist") is None


def test_joint_angle_threshold_is_exclusive(pose_factory):
    pose = pose_factory(scores={"left_elbow": 0.5})
    assert joint_angle(pose, "left_shoulder", "left_elbow", "left_wrist", threshold=0.5) is None
    assert joint_angle(pose, "left_shoulder", "left_elbow", "left_wrist", threshold=0.49) == pytest.approx(90.0)


def test_joint_angle_missing_keypoint(pose_factory):
    pose = pose_factory()
    pose.keypoints = [kp for kp in pose.keypoints if kp.name != "right_wrist"]
    assert joint_angle(pose, "right_shoulder", "right_elbow", "right_wrist") is None


def test_joint_angle_degenerate_returns_none(pose_factory):
    pose = pose_factory()
    elbow = pose.get_keypoint("left_elbow")
    wrist = pose.get_keypoint("left_wrist")
    wrist.x, wrist.y = elbow.x, elbow.y
    assert joint_angle(pose, "left_shoulder", "left_elbow", "left_wrist") is None


def test_compute_joint_angles(pose_factory):
    angles = compute_joint_angles(pose_factory(scores={"right_ankle": 0.1}))
    assert angles.left_arm == pytest.approx(90.0)
    assert angles.right_arm == pytest.approx(180.0)
    assert angles.left_knee == pytest.approx(180.0)
    assert angles.right_knee is None


def test_compute_joint_angles_invalid_pose(pose_factory):
    pose = pose_factory()
    pose.is_valid = False
    assert compute_joint_angles(pose) == JointAngles()


def test_available_filters_missing_and_names():
    angles = JointAngles(left_arm=45.0, right_knee=170.0)
    assert angles.available() == {"left_arm": 45.0, "right_knee": 170.0}
    assert angles.available(["left_arm", "right_arm"]) == {"left_arm": 45.0}
