import json

import numpy as np
import pandas as pd
import pytest

from pose_overlay.analysis.angles import compute_joint_angles
from pose_overlay.pipeline.export import (
    ResultRecorder,
    export_angles_csv,
    export_json,
    frame_record,
    resolve_format,
    results_to_records,
)
from pose_overlay.pipeline.render_loop import FrameOutput


@pytest.fixture
def outputs(pose_factory):
    frames = []
    for n, scores in enumerate([None, {"left_wrist": 0.1}]):
        pose = pose_factory(frame_number=n, scores=scores)
        pose.timestamp_ms = n * 33.3
        frames.append(FrameOutput(
            frame_number=n,
            timestamp_ms=pose.timestamp_ms,
            pose=pose,
            angles=compute_joint_angles(pose),
            image=np.zeros((4, 4, 3), dtype=np.uint8),
            inference_ms=12.5,
        ))
    return frames


def test_frame_record_has_keypoints_and_angles(outputs):
    record = frame_record(outputs[0])
    assert record["frame_number"] == 0
    assert len(record["keypoints"]) == 17
    assert record["angles"]["left_arm"] == pytest.approx(90.0)
    assert "image" not in record


def test_export_json(outputs, tmp_path):
    path = export_json(outputs, str(tmp_path / "out" / "poses.json"))
    data = json.loads(open(path).read())
    assert [f["frame_number"] for f in data["frames"]] == [0, 1]
    assert data["frames"][1]["angles"]["left_arm"] is None


def test_export_angles_csv(outputs, tmp_path):
    path = export_angles_csv(outputs, str(tmp_path / "angles.csv"))
    df = pd.read_csv(path)
    assert list(df.columns) == [
        "frame_number", "timestamp_ms", "pose_detected",
        "left_arm", "right_arm", "left_knee", "right_knee",
    ]
    assert df.loc[0, "left_arm"] == pytest.approx(90.0)
    assert pd.isna(df.loc[1, "left_arm"])
    assert df.loc[1, "right_arm"] == pytest.approx(180.0)


def test_recorder_format_from_suffix(outputs, tmp_path):
    recorder = ResultRecorder()
    for output in outputs:
        recorder(output)
    assert len(recorder) == 2
    assert recorder.save(str(tmp_path / "a.csv")).endswith("a.csv")
    assert pd.read_csv(tmp_path / "a.csv").shape[0] == 2
    with pytest.raises(ValueError):
        recorder.save(str(tmp_path / "a.parquet"))


def test_results_to_records(outputs):
    records = results_to_records(outputs)
    assert [r["frame_number"] for r in records] == [0, 1]
    assert records[0]["angles"]["right_arm"] == pytest.approx(180.0)
    assert records[1]["inference_ms"] == 12.5
    assert all("image" not in r for r in records)
    assert results_to_records([]) == []


@pytest.mark.parametrize("path, fmt, expected", [
    ("angles.csv", "", "csv"),
    ("poses.JSON", "", "json"),
    ("no_suffix", "", "json"),
    ("angles.out", "csv", "csv"),
])
def test_resolve_format(path, fmt, expected):
    assert resolve_format(path, fmt) == expected


def test_resolve_format_rejects_unknown():
    with pytest.raises(ValueError, match="Unsupported export format: txt"):
        resolve_format("angles.txt")
