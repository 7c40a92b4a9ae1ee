"""Abstract base class for pose estimation backends."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import numpy as np

from pose_overlay.pose.skeleton import DEFAULT_SCORE_THRESHOLD, KEYPOINT_NAMES, is_confident

logger = logging.getLogger(__name__)


@dataclass
class KeypointData:
    """
    A single detected body joint.

    Attributes:
        name: Name of the keypoint (e.g., "left_shoulder").
        x: X coordinate in pixels.
        y: Y coordinate in pixels.
        confidence: Detection confidence (0-1).
    """
    name: str
    x: float
    y: float
    confidence: float = 1.0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary format for export."""
        return {
            "name": self.name,
            "x": self.x,
            "y": self.y,
            "confidence": self.confidence,
        }


@dataclass
class PoseResult:
    """
    Result of pose estimation for a single frame.

    Attributes:
        frame_number: Frame index in the video.
        timestamp_ms: Timestamp in milliseconds.
        keypoints: List of detected keypoints.
        is_valid: Whether pose detection was successful.
        model_name: Name of the model that produced this result.
        width: Width of the frame the keypoints refer to.
        height: Height of the frame the keypoints refer to.
    """
    frame_number: int
    timestamp_ms: float
    keypoints: List[KeypointData] = field(default_factory=list)
    is_valid: bool = True
    model_name: str = ""
    width: int = 0
    height: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary format."""
        return {
            "frame_number": self.frame_number,
            "timestamp_ms": self.timestamp_ms,
            "keypoints": [kp.to_dict() for kp in self.keypoints],
            "is_valid": self.is_valid,
            "model_name": self.model_name,
        }

    def get_keypoint(self, name: str) -> Optional[KeypointData]:
        """Get a keypoint by name."""
        for kp in self.keypoints:
            if kp.name == name:
                return kp
        return None

    def confident_keypoints(
        self,
        threshold: float = DEFAULT_SCORE_THRESHOLD,
    ) -> List[KeypointData]:
        """Keypoints whose confidence is strictly above the threshold."""
        return [kp for kp in self.keypoints if is_confident(kp.confidence, threshold)]


class PoseBackend(ABC):
    """
    Abstract base class for pose estimation backends.

    All pose estimation implementations should inherit from this class
    and implement the required abstract methods. Backends report keypoints
    in pixel coordinates using the COCO-17 names from
    ``pose_overlay.pose.skeleton``.
    """

    def __init__(self, min_detection_confidence: float = DEFAULT_SCORE_THRESHOLD):
        """
        Initialize the pose backend.

        Args:
            min_detection_confidence: Minimum confidence for pose detection.
        """
        self.min_detection_confidence = min_detection_confidence
        self._is_initialized = False

    @property
    @abstractmethod
    def name(self) -> str:
        """Name of the pose estimation backend."""
        pass

    @property
    def keypoint_names(self) -> List[str]:
        """List of keypoint names produced by this backend."""
        return list(KEYPOINT_NAMES)

    @property
    def is_initialized(self) -> bool:
        return self._is_initialized

    @abstractmethod
    def initialize(self) -> None:
        """
        Load the pose estimation model.

        This should be called before processing any frames.
        """
        pass

    @abstractmethod
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
        pass

    def process_video(
        self,
        video_path: str,
        show_progress: bool = True,
    ) -> List[PoseResult]:
        """
        Process all frames in a video.

        Args:
            video_path: Path to the video file.
            show_progress: Whether to show progress bar.

        Returns:
            List of PoseResult for each frame.
        """
        from pose_overlay.utils.video_utils import VideoProcessor

        if not self._is_initialized:
            self.initialize()

        results = []
        with VideoProcessor(video_path) as video:
            for frame_number, timestamp_ms, frame in video.iterate_frames(show_progress=show_progress):
                results.append(self.process_frame(frame, frame_number, timestamp_ms))

        logger.info(f"Processed {len(results)} frames with {self.name}")

        return results

    def cleanup(self) -> None:
        """
        Clean up resources.

        Override this method to release any resources held by the backend.
        """
        self._is_initialized = False

    def __enter__(self):
        """Context manager entry."""
        self.initialize()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.cleanup()
        return False
