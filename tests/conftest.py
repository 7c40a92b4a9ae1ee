import cv2
import numpy as np
import pytest

from pose_overlay.pose.base import KeypointData, PoseBackend, PoseResult
from pose_overlay.pose.skeleton import KEYPOINT_NAMES

# Relative (x, y) of every keypoint for a standing figure with a bent left arm
STANDING_POSE = {
    "nose": (0.50, 0.10),
    "left_eye": (0.52, 0.08),
    "right_eye": (0.48, 0.08),
    "left_ear": (0.55, 0.09),
    "right_ear": (0.45, 0.09),
    "left_shoulder": (0.60, 0.25),
    "right_shoulder": (0.40, 0.25),
    "left_elbow": (0.60, 0.45),
    "right_elbow": (0.30, 0.25),
    "left_wrist": (0.80, 0.45),
    "right_wrist": (0.20, 0.25),
    "left_hip": (0.58, 0.55),
    "right_hip": (0.42, 0.55),
    "left_knee": (0.58, 0.75),
    "right_knee": (0.42, 0.75),
    "left_ankle": (0.58, 0.95),
    "right_ankle": (0.42, 0.95),
}


def make_pose(width=100, height=100, scores=None, frame_number=0, default_score=0.9):
    """PoseResult of STANDING_POSE scaled to the frame size."""
    scores = scores or {}
    keypoints = [
        KeypointData(
            name=name,
            x=STANDING_POSE[name][0] * width,
            y=STANDING_POSE[name][1] * height,
            confidence=scores.get(name, default_score),
        )
        for name in KEYPOINT_NAMES
    ]
    return PoseResult(
        frame_number=frame_number,
        timestamp_ms=0.0,
        keypoints=keypoints,
        model_name="fake",
        width=width,
        height=height,
    )


class FakeBackend(PoseBackend):
    """Returns STANDING_POSE for every frame and records its lifecycle."""

    def __init__(self, scores=None, delay=0.0):
        super().__init__()
        self.scores = scores
        self.delay = delay
        self.frames_seen = 0
        self.init_calls = 0
        self.cleaned_up = False

    @property
    def name(self):
        return "fake"

    def initialize(self):
        self.init_calls += 1
        self._is_initialized = True

    def process_frame(self, frame, frame_number=0, timestamp_ms=0.0):
        if self.delay:
            import time
            time.sleep(self.delay)
        self.frames_seen += 1
        h, w = frame.shape[:2]
        pose = make_pose(w, h, self.scores, frame_number)
        pose.timestamp_ms = timestamp_ms
        return pose

    def cleanup(self):
        self.cleaned_up = True
        super().cleanup()


@pytest.fixture
def pose_factory():
    return make_pose


@pytest.fixture
def fake_backend():
    return FakeBackend()


@pytest.fixture
def fake_backend_cls():
    return FakeBackend


@pytest.fixture
def sample_video_path(tmp_path):
    """Eight 64x48 MJPG frames of increasing brightness."""
    path = tmp_path / "sample.avi"
    w, h = 64, 48
    writer = cv2.VideoWriter(str(path), cv2.VideoWriter_fourcc(*"MJPG"), 10, (w, h))
    for i in range(8):
        writer.write(np.full((h, w, 3), 20 * i, dtype=np.uint8))
    writer.release()
    return path
