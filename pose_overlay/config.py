"""Configuration for the overlay loop and command-line tools."""

import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config/config.yaml"


def load_config(config_path: str = DEFAULT_CONFIG_PATH) -> dict:
    """Load configuration from YAML file; a missing file yields an empty dict."""
    config_file = Path(config_path)
    if config_file.exists():
        with open(config_file) as f:
            return yaml.safe_load(f) or {}
    logger.debug(f"No config file at {config_path}, using defaults")
    return {}


@dataclass
class OverlayConfig:
    """
    Settings for one overlay run.

    Attributes:
        backend: Pose backend name ("movenet" or "mediapipe").
        model_type: MoveNet variant, e.g. "singlepose/lightning".
        model_url: Registry URL or local path overriding model_type.
        model_complexity: MediaPipe model complexity (0-2).
        score_threshold: Keypoints must score above this to be drawn or measured.
        style: Overlay style preset ("movenet" or "body_detection").
        canvas_only: Draw on a blank canvas instead of the video frame.
        display: Show frames in a window.
        window_name: Title of the display window.
        output_path: Optional path of an annotated output video.
        max_frames: Stop after this many frames.
        drop_late_frames: Skip frames that arrived while inference was running (live sources).
        resize: Optional (width, height) applied to every frame.
        log_level: Logging level name.
        log_file: Optional log file path.
    """
    backend: str = "movenet"
    model_type: str = "singlepose/lightning"
    model_url: Optional[str] = None
    model_complexity: int = 1
    score_threshold: float = 0.5
    style: str = "movenet"
    canvas_only: bool = False
    display: bool = True
    window_name: str = "Pose Overlay"
    output_path: Optional[str] = None
    max_frames: Optional[int] = None
    drop_late_frames: bool = True
    resize: Optional[Tuple[int, int]] = None
    log_level: str = "INFO"
    log_file: Optional[str] = None

    def __post_init__(self) -> None:
        if not 0.0 <= float(self.score_threshold) <= 1.0:
            raise ValueError(f"score_threshold must be in [0, 1], got {self.score_threshold}")
        if self.max_frames is not None and int(self.max_frames) < 1:
            raise ValueError(f"max_frames must be positive, got {self.max_frames}")
        if self.resize is not None:
            self.resize = (int(self.resize[0]), int(self.resize[1]))

    @classmethod
    def from_dict(cls, cfg: Dict[str, Any], **overrides) -> "OverlayConfig":
        """
        Build a config from a parsed YAML mapping.

        The mapping may use sections (``pose``, ``overlay``, ``loop``,
        ``logging``) as in config/config.yaml; keyword overrides that are
        not None take precedence over file values.
        """
        flat: Dict[str, Any] = {}
        pose = cfg.get("pose", {}) or {}
        overlay = cfg.get("overlay", {}) or {}
        loop = cfg.get("loop", {}) or {}
        log = cfg.get("logging", {}) or {}

        for key in ("backend", "model_type", "model_url", "model_complexity", "score_threshold"):
            if key in pose:
                flat[key] = pose[key]
        for key in ("style", "canvas_only", "window_name"):
            if key in overlay:
                flat[key] = overlay[key]
        for key in ("display", "output_path", "max_frames", "drop_late_frames", "resize"):
            if key in loop:
                flat[key] = loop[key]
        if "level" in log:
            flat["log_level"] = log["level"]
        if "file" in log:
            flat["log_file"] = log["file"]

        known = {f.name for f in fields(cls)}
        flat.update({k: v for k, v in overrides.items() if v is not None and k in known})
        return cls(**flat)

    def backend_options(self) -> Dict[str, Any]:
        """Constructor keyword arguments for the configured backend."""
        if self.backend == "movenet":
            return {
                "model_type": self.model_type,
                "model_url": self.model_url,
                "min_detection_confidence": self.score_threshold,
            }
        if self.backend == "mediapipe":
            return {
                "model_complexity": self.model_complexity,
                "model_path": self.model_url,
                "min_detection_confidence": self.score_threshold,
            }
        return {}
