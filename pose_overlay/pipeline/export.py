"""Export of per-frame poses and angles."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List

import pandas as pd

from pose_overlay.analysis.angles import JOINT_ANGLE_TRIPLES
from pose_overlay.pipeline.render_loop import FrameOutput

logger = logging.getLogger(__name__)

EXPORT_FORMATS = ("csv", "json")

CSV_COLUMNS = ["frame_number", "timestamp_ms", "pose_detected", *JOINT_ANGLE_TRIPLES]


def resolve_format(output_path: str, fmt: str = "") -> str:
    """
    Pick the export format for a destination file.

    Args:
        output_path: Destination file.
        fmt: "csv" or "json"; taken from the file suffix when empty.

    Raises:
        ValueError: If the format is not supported.
    """
    fmt = (fmt or Path(output_path).suffix.lstrip(".") or "json").lower()
    if fmt not in EXPORT_FORMATS:
        raise ValueError(f"Unsupported export format: {fmt}")
    return fmt


def frame_record(output: FrameOutput) -> Dict[str, Any]:
    """Serializable view of one frame: the pose plus its angles."""
    record = output.pose.to_dict()
    record["angles"] = output.angles.to_dict()
    record["inference_ms"] = output.inference_ms
    return record


def angle_row(output: FrameOutput) -> Dict[str, Any]:
    """Flat row with a column per joint angle."""
    row = {
        "frame_number": output.frame_number,
        "timestamp_ms": output.timestamp_ms,
        "pose_detected": output.pose.is_valid,
    }
    row.update(output.angles.to_dict())
    return row


def results_to_records(outputs: Iterable[FrameOutput]) -> List[Dict[str, Any]]:
    """Keypoints and angles of every frame, without the rendered images."""
    return [frame_record(output) for output in outputs]


class ResultRecorder:
    """
    Per-frame callback that keeps serializable results without the images.

    Example:
        recorder = ResultRecorder()
        create_overlay_loop(path, config, on_frame=recorder).run()
        recorder.save("angles.csv")
    """

    def __init__(self):
        self.records: List[Dict[str, Any]] = []
        self.rows: List[Dict[str, Any]] = []

    def __call__(self, output: FrameOutput) -> None:
        self.records.append(frame_record(output))
        self.rows.append(angle_row(output))

    def __len__(self) -> int:
        return len(self.records)

    def save(self, output_path: str, fmt: str = "") -> str:
        """
        Write the recorded frames.

        Args:
            output_path: Destination file.
            fmt: "csv" or "json"; taken from the file suffix when empty.

        Returns:
            Path of the written file.
        """
        fmt = resolve_format(output_path, fmt)
        path = Path(output_path)

        path.parent.mkdir(parents=True, exist_ok=True)
        if fmt == "json":
            with open(path, "w", encoding="utf-8") as f:
                json.dump({"frames": self.records}, f, indent=2)
        else:
            # unmeasured angles are left empty
            df = pd.DataFrame(self.rows, columns=CSV_COLUMNS)
            df.to_csv(path, index=False, float_format="%.2f")

        logger.info(f"Exported {len(self.records)} frames to {path}")
        return str(path)


def _record_all(outputs: Iterable[FrameOutput]) -> ResultRecorder:
    recorder = ResultRecorder()
    for output in outputs:
        recorder(output)
    return recorder


def export_json(outputs: Iterable[FrameOutput], output_path: str) -> str:
    """Write keypoints and angles of every frame as JSON."""
    return _record_all(outputs).save(output_path, "json")


def export_angles_csv(outputs: Iterable[FrameOutput], output_path: str) -> str:
    """Write one CSV row per frame with the measured joint angles."""
    return _record_all(outputs).save(output_path, "csv")
