"""MediaPipe Pose estimation backend using the Tasks API."""

import logging
from typing import Dict, Optional

import numpy as np

from pose_overlay.pose.base import KeypointData, PoseBackend, PoseResult
from pose_overlay.pose.model_cache import get_mediapipe_model_path

logger = logging.getLogger(__name__)


class MediaPipeBackend(PoseBackend):
    """
    MediaPipe Pose estimation backend using the Tasks API.

    The Pose Landmarker produces 33 body landmarks; only the 17 that have a
    COCO counterpart are reported, so the shared skeleton table applies.
    """

    # Index of each COCO-17 keypoint within the 33 MediaPipe landmarks
    COCO_TO_MEDIAPIPE: Dict[str, int] = {
        "nose": 0,
        "left_eye": 2,
        "right_eye": 5,
        "left_ear": 7,
        "right_ear": 8,
        "left_shoulder": 11,
        "right_shoulder": 12,
        "left_elbow": 13,
        "right_elbow": 14,
        "left_wrist": 15,
        "right_wrist": 16,
        "left_hip": 23,
        "right_hip": 24,
        "left_knee": 25,
        "right_knee": 26,
        "left_ankle": 27,
        "right_ankle": 28,
    }

    def __init__(
        self,
        min_detection_confidence: float = 0.5,
        min_tracking_confidence: float = 0.5,
        model_complexity: int = 1,
        model_path: Optional[str] = None,
        cache_dir: Optional[str] = None,
    ):
        """
        Initialize the MediaPipe backend.

        Args:
            min_detection_confidence: Minimum confidence for pose detection.
            min_tracking_confidence: Minimum confidence for pose tracking.
            model_complexity: Model complexity (0=lite, 1=full, 2=heavy).
            model_path: Local .task file; downloaded by complexity when omitted.
            cache_dir: Where downloaded models are stored.
        """
        super().__init__(min_detection_confidence)
        self.min_tracking_confidence = min_tracking_confidence
        self.model_complexity = model_complexity
        self.model_path = model_path
        self.cache_dir = cache_dir
        self._landmarker = None
        self._mp = None

    @property
    def name(self) -> str:
        """Name of the pose estimation backend."""
        return "mediapipe"

    def initialize(self) -> None:
        """Initialize the MediaPipe Pose Landmarker."""
        if self._is_initialized:
            return

        try:
            import mediapipe as mp
            from mediapipe.tasks import python
            from mediapipe.tasks.python import vision
        except ImportError as e:
            raise ImportError(
                f"mediapipe package error: {e}. "
                "Install with: pip install mediapipe"
            ) from e

        try:
            self._mp = mp
            model_path = self.model_path or get_mediapipe_model_path(
                self.model_complexity, self.cache_dir
            )

            base_options = python.BaseOptions(model_asset_path=model_path)
            options = vision.PoseLandmarkerOptions(
                base_options=base_options,
                running_mode=vision.RunningMode.IMAGE,
                num_poses=1,
                min_pose_detection_confidence=self.min_detection_confidence,
                min_tracking_confidence=self.min_tracking_confidence,
                output_segmentation_masks=False,
            )

            self._landmarker = vision.PoseLandmarker.create_from_options(options)
            self._is_initialized = True
            logger.info("MediaPipe Pose Landmarker initialized successfully")

        except Exception as e:
            logger.error(f"Failed to initialize MediaPipe: {e}")
            raise

    def process_frame(
        self,
        frame: np.ndarray,
        frame_number: int = 0,
        timestamp_ms: float = 0.0,
    ) -> PoseResult:
        """
        Process a single frame and return pose estimation results.

        Args:
            frame: Input frame (BGR format from OpenCV).
            frame_number: Frame index for result tracking.
            timestamp_ms: Timestamp in milliseconds.

        Returns:
            PoseResult containing detected keypoints.
        """
        if not self._is_initialized:
            self.initialize()

        import cv2

        frame_rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        mp_image = self._mp.Image(
            image_format=self._mp.ImageFormat.SRGB,
            data=frame_rgb
        )

        detection_result = self._landmarker.detect(mp_image)

        h, w = frame.shape[:2]
        pose_result = PoseResult(
            frame_number=frame_number,
            timestamp_ms=timestamp_ms,
            model_name=self.name,
            width=w,
            height=h,
        )

        if not detection_result.pose_landmarks:
            pose_result.is_valid = False
            logger.debug(f"No pose detected in frame {frame_number}")
            return pose_result

        landmarks = detection_result.pose_landmarks[0]

        for name, idx in self.COCO_TO_MEDIAPIPE.items():
            if idx >= len(landmarks):
                continue
            landmark = landmarks[idx]
            visibility = getattr(landmark, "visibility", None)
            pose_result.keypoints.append(KeypointData(
                name=name,
                x=float(landmark.x) * w,
                y=float(landmark.y) * h,
                confidence=float(visibility) if visibility is not None else 1.0,
            ))

        return pose_result

    def cleanup(self) -> None:
        """Clean up MediaPipe resources."""
        if self._landmarker is not None:
            self._landmarker.close()
            self._landmarker = None
        self._is_initialized = False
        logger.debug("MediaPipe Pose Landmarker resources cleaned up")
