"""Drawing of keypoints, skeleton edges and angle labels onto frames."""

from dataclasses import dataclass, replace
from typing import Dict, Optional, Sequence, Tuple

import cv2
import numpy as np

from pose_overlay.analysis.angles import ANGLE_LABELS, ARM_ANGLE_TRIPLES, JointAngles
from pose_overlay.pose.base import KeypointData, PoseResult
from pose_overlay.pose.skeleton import DEFAULT_SCORE_THRESHOLD, SKELETON_EDGES, is_confident

Color = Tuple[int, int, int]

# BGR
RED: Color = (0, 0, 255)
GREEN: Color = (0, 255, 0)
WHITE: Color = (255, 255, 255)


@dataclass(frozen=True)
class OverlayStyle:
    """
    How a pose is drawn.

    Attributes:
        point_color: BGR color of keypoint circles.
        point_radius: Radius of keypoint circles in pixels.
        line_color: BGR color of skeleton edges.
        line_thickness: Thickness of skeleton edges.
        draw_skeleton: Whether skeleton edges are drawn.
        draw_angles: Whether joint angle labels are drawn.
        angle_names: Which angles are labelled.
        text_color: BGR color of angle labels.
        text_scale: Font scale of angle labels.
    """
    point_color: Color = RED
    point_radius: int = 5
    line_color: Color = GREEN
    line_thickness: int = 2
    draw_skeleton: bool = True
    draw_angles: bool = True
    angle_names: Tuple[str, ...] = tuple(ARM_ANGLE_TRIPLES)
    text_color: Color = WHITE
    text_scale: float = 0.6


STYLE_PRESETS: Dict[str, OverlayStyle] = {
    # dots, skeleton and arm angles
    "movenet": OverlayStyle(),
    # dots only
    "body_detection": OverlayStyle(draw_skeleton=False, draw_angles=False),
}


def get_style(name: str, **overrides) -> OverlayStyle:
    """Look up a style preset, optionally overriding some of its fields."""
    try:
        style = STYLE_PRESETS[name]
    except KeyError:
        raise ValueError(
            f"Unknown overlay style: {name}. Choose from {sorted(STYLE_PRESETS)}"
        ) from None
    return replace(style, **overrides) if overrides else style


def _point(kp: KeypointData) -> Tuple[int, int]:
    return int(round(kp.x)), int(round(kp.y))


def draw_keypoints(
    image: np.ndarray,
    pose_result: PoseResult,
    style: OverlayStyle = STYLE_PRESETS["movenet"],
    threshold: float = DEFAULT_SCORE_THRESHOLD,
) -> int:
    """
    Draw accepted keypoints as filled circles, in place.

    Returns:
        Number of keypoints drawn.
    """
    keypoints = pose_result.confident_keypoints(threshold)
    for kp in keypoints:
        cv2.circle(image, _point(kp), style.point_radius, style.point_color, -1)
    return len(keypoints)


def draw_skeleton(
    image: np.ndarray,
    pose_result: PoseResult,
    style: OverlayStyle = STYLE_PRESETS["movenet"],
    threshold: float = DEFAULT_SCORE_THRESHOLD,
    edges: Sequence[Tuple[str, str]] = SKELETON_EDGES,
) -> int:
    """
    Draw skeleton edges whose two endpoints are both accepted, in place.

    Returns:
        Number of edges drawn.
    """
    kp_map = {kp.name: kp for kp in pose_result.keypoints}
    drawn = 0
    for start_name, end_name in edges:
        start = kp_map.get(start_name)
        end = kp_map.get(end_name)
        if start is None or end is None:
            continue
        if not (is_confident(start.confidence, threshold) and is_confident(end.confidence, threshold)):
            continue
        cv2.line(image, _point(start), _point(end), style.line_color, style.line_thickness)
        drawn += 1
    return drawn


def format_angle_label(name: str, value: float) -> str:
    """e.g. ``Left Arm Angle: 91.25 deg``."""
    label = ANGLE_LABELS.get(name, name.replace("_", " ").title())
    # Hershey fonts have no degree glyph
    return f"{label}: {value:.2f} deg"


def draw_angle_labels(
    image: np.ndarray,
    angles: JointAngles,
    style: OverlayStyle = STYLE_PRESETS["movenet"],
    origin: Tuple[int, int] = (10, 25),
) -> int:
    """
    Write measured angles as text lines starting at origin, in place.

    Returns:
        Number of labels drawn.
    """
    x, y = origin
    line_height = int(30 * style.text_scale) + 6
    drawn = 0
    for name, value in angles.available(style.angle_names).items():
        cv2.putText(
            image,
            format_angle_label(name, value),
            (x, y + drawn * line_height),
            cv2.FONT_HERSHEY_SIMPLEX,
            style.text_scale,
            style.text_color,
            1,
            cv2.LINE_AA,
        )
        drawn += 1
    return drawn


def render_pose(
    frame: np.ndarray,
    pose_result: Optional[PoseResult],
    style: OverlayStyle = STYLE_PRESETS["movenet"],
    threshold: float = DEFAULT_SCORE_THRESHOLD,
    angles: Optional[JointAngles] = None,
    canvas_only: bool = False,
) -> np.ndarray:
    """
    Render a pose overlay for one frame.

    The input frame is never modified. Each call starts from a clean
    surface: a copy of the frame, or a black canvas of the same size when
    canvas_only is set.

    Args:
        frame: Source frame (BGR).
        pose_result: Pose for this frame; None draws nothing.
        style: Drawing style.
        threshold: Minimum keypoint confidence (exclusive).
        angles: Joint angles to label when the style draws angles.
        canvas_only: Draw on a blank canvas instead of the frame.

    Returns:
        The rendered image.
    """
    output = np.zeros_like(frame) if canvas_only else frame.copy()

    if pose_result is None or not pose_result.keypoints:
        return output

    if style.draw_skeleton:
        draw_skeleton(output, pose_result, style, threshold)

    draw_keypoints(output, pose_result, style, threshold)

    if style.draw_angles and angles is not None:
        draw_angle_labels(output, angles, style)

    return output
