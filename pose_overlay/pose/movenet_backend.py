"""MoveNet single-pose backend loaded from TensorFlow Hub."""

import logging
from typing import Dict, Optional, Tuple

import cv2
import numpy as np

from pose_overlay.pose.base import KeypointData, PoseBackend, PoseResult
from pose_overlay.pose.skeleton import KEYPOINT_NAMES

logger = logging.getLogger(__name__)

MOVENET_MODEL_URLS: Dict[str, str] = {
    "singlepose/lightning": "https://tfhub.dev/google/movenet/singlepose/lightning/4",
    "singlepose/thunder": "https://tfhub.dev/google/movenet/singlepose/thunder/4",
}

MOVENET_INPUT_SIZES: Dict[str, int] = {
    "singlepose/lightning": 192,
    "singlepose/thunder": 256,
}

DEFAULT_MODEL_TYPE = "singlepose/lightning"


def letterbox(
    image: np.ndarray,
    size: int,
) -> Tuple[np.ndarray, float, int, int]:
    """
    Resize an image to a square input keeping its aspect ratio.

    Args:
        image: HxWx3 image.
        size: Side of the square output.

    Returns:
        Tuple of (padded image, scale, pad_x, pad_y).
    """
    h, w = image.shape[:2]
    scale = size / float(max(h, w))
    new_w = max(1, int(round(w * scale)))
    new_h = max(1, int(round(h * scale)))
    resized = cv2.resize(image, (new_w, new_h))

    pad_x = (size - new_w) // 2
    pad_y = (size - new_h) // 2
    padded = np.zeros((size, size, 3), dtype=image.dtype)
    padded[pad_y:pad_y + new_h, pad_x:pad_x + new_w] = resized
    return padded, scale, pad_x, pad_y


def keypoints_from_output(
    raw: np.ndarray,
    size: int,
    scale: float,
    pad_x: int,
    pad_y: int,
) -> list:
    """
    Convert a MoveNet output tensor to pixel-space keypoints.

    MoveNet returns shape [1, 1, 17, 3] with rows of (y, x, score)
    normalized to the padded square input.
    """
    rows = np.asarray(raw, dtype=np.float64).reshape(-1, 3)
    keypoints = []
    for name, (y_norm, x_norm, score) in zip(KEYPOINT_NAMES, rows):
        keypoints.append(KeypointData(
            name=name,
            x=(x_norm * size - pad_x) / scale,
            y=(y_norm * size - pad_y) / scale,
            confidence=float(score),
        ))
    return keypoints


class MoveNetBackend(PoseBackend):
    """
    MoveNet single-pose estimation backend.

    The model is either addressed by type (``singlepose/lightning``,
    ``singlepose/thunder``) or loaded directly from a registry URL or a
    local SavedModel directory.
    """

    def __init__(
        self,
        model_type: str = DEFAULT_MODEL_TYPE,
        model_url: Optional[str] = None,
        input_size: Optional[int] = None,
        min_detection_confidence: float = 0.5,
    ):
        """
        Initialize the MoveNet backend.

        Args:
            model_type: Named MoveNet variant, used when model_url is not given.
            model_url: TF Hub URL or SavedModel path to load directly.
            input_size: Square model input side; derived from the variant if omitted.
            min_detection_confidence: Minimum keypoint score.
        """
        super().__init__(min_detection_confidence)

        if model_url is None and model_type not in MOVENET_MODEL_URLS:
            raise ValueError(
                f"Unknown MoveNet model type: {model_type}. "
                f"Choose from {sorted(MOVENET_MODEL_URLS)}"
            )

        self.model_type = model_type
        self.model_url = model_url or MOVENET_MODEL_URLS[model_type]
        self.input_size = input_size or self._infer_input_size()
        self._model = None
        self._tf = None

    def _infer_input_size(self) -> int:
        if "thunder" in self.model_url:
            return MOVENET_INPUT_SIZES["singlepose/thunder"]
        if "lightning" in self.model_url:
            return MOVENET_INPUT_SIZES["singlepose/lightning"]
        return MOVENET_INPUT_SIZES.get(self.model_type, 192)

    @property
    def name(self) -> str:
        """Name of the pose estimation backend."""
        return "movenet"

    def initialize(self) -> None:
        """Load the MoveNet model from the hub."""
        if self._is_initialized:
            return

        try:
            import tensorflow as tf
            import tensorflow_hub as hub
        except ImportError as e:
            raise ImportError(
                f"tensorflow package error: {e}. "
                "Install with: pip install 'pose-overlay[movenet]'"
            ) from e

        try:
            logger.info(f"Loading MoveNet model from {self.model_url}...")
            module = hub.load(self.model_url)
            self._model = module.signatures["serving_default"]
            self._tf = tf
            self._is_initialized = True
            logger.info("MoveNet model loaded")
        except Exception as e:
            logger.error(f"Failed to load MoveNet model: {e}")
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
            PoseResult containing all 17 keypoints with their scores.
        """
        if not self._is_initialized:
            self.initialize()

        h, w = frame.shape[:2]
        frame_rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        padded, scale, pad_x, pad_y = letterbox(frame_rgb, self.input_size)

        input_tensor = self._tf.convert_to_tensor(padded[np.newaxis, ...], dtype=self._tf.int32)
        outputs = self._model(input_tensor)
        raw = np.asarray(outputs["output_0"])
        # one input tensor per frame; drop it before the next one is built
        del input_tensor, outputs

        keypoints = keypoints_from_output(raw, self.input_size, scale, pad_x, pad_y)

        return PoseResult(
            frame_number=frame_number,
            timestamp_ms=timestamp_ms,
            keypoints=keypoints,
            is_valid=any(kp.confidence > self.min_detection_confidence for kp in keypoints),
            model_name=self.name,
            width=w,
            height=h,
        )

    def cleanup(self) -> None:
        """Release the loaded model."""
        self._model = None
        self._is_initialized = False
        logger.debug("MoveNet model released")
