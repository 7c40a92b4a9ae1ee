import sys
import types

import numpy as np
import pytest

from pose_overlay.pose import MoveNetBackend, create_backend
from pose_overlay.pose.movenet_backend import (
    MOVENET_MODEL_URLS,
    keypoints_from_output,
    letterbox,
)


class FakeSignature:
    def __init__(self, raw):
        self.raw = raw
        self.inputs = []

    def __call__(self, input_tensor):
        self.inputs.append(input_tensor)
        return {"output_0": self.raw}


@pytest.fixture
def fake_hub(monkeypatch):
    """Installs fake tensorflow / tensorflow_hub modules; returns the load log."""
    raw = np.zeros((1, 1, 17, 3), dtype=np.float32)
    raw[..., :] = [0.5, 0.5, 0.9]
    raw[0, 0, 0] = [0.25, 0.75, 0.1]
    signature = FakeSignature(raw)
    loaded = []

    def load(url):
        loaded.append(url)
        return types.SimpleNamespace(signatures={"serving_default": signature})

    fake_tf = types.SimpleNamespace(
        int32=np.int32,
        convert_to_tensor=lambda value, dtype=None: np.asarray(value, dtype=dtype),
    )
    monkeypatch.setitem(sys.modules, "tensorflow", fake_tf)
    monkeypatch.setitem(sys.modules, "tensorflow_hub", types.SimpleNamespace(load=load))
    return types.SimpleNamespace(loaded=loaded, signature=signature)


def test_letterbox_keeps_aspect_ratio():
    image = np.full((100, 200, 3), 255, dtype=np.uint8)
    padded, scale, pad_x, pad_y = letterbox(image, 192)
    assert padded.shape == (192, 192, 3)
    assert scale == pytest.approx(0.96)
    assert (pad_x, pad_y) == (0, 48)
    assert not padded[:48].any()
    assert padded[96, 96].all()


def test_keypoints_from_output_undoes_padding():
    raw = np.zeros((1, 1, 17, 3))
    raw[0, 0, 5] = [0.5, 0.5, 0.8]
    keypoints = keypoints_from_output(raw, size=192, scale=0.96, pad_x=0, pad_y=48)
    assert len(keypoints) == 17
    left_shoulder = keypoints[5]
    assert left_shoulder.name == "left_shoulder"
    assert left_shoulder.x == pytest.approx(100.0)
    assert left_shoulder.y == pytest.approx(50.0)
    assert left_shoulder.confidence == pytest.approx(0.8)


def test_model_type_resolves_url():
    backend = MoveNetBackend(model_type="singlepose/thunder")
    assert backend.model_url == MOVENET_MODEL_URLS["singlepose/thunder"]
    assert backend.input_size == 256
    assert MoveNetBackend().input_size == 192


def test_model_url_overrides_type():
    url = "https://tfhub.dev/google/movenet/singlepose/lightning/4"
    backend = MoveNetBackend(model_url=url)
    assert backend.model_url == url
    assert backend.input_size == 192
    assert MoveNetBackend(model_url="/models/custom", input_size=224).input_size == 224


def test_unknown_model_type():
    with pytest.raises(ValueError):
        MoveNetBackend(model_type="multipose/lightning")


def test_process_frame_maps_to_pixels(fake_hub):
    backend = MoveNetBackend()
    frame = np.zeros((100, 200, 3), dtype=np.uint8)
    result = backend.process_frame(frame, frame_number=4, timestamp_ms=400.0)

    assert fake_hub.loaded == [MOVENET_MODEL_URLS["singlepose/lightning"]]
    model_input = fake_hub.signature.inputs[0]
    assert model_input.shape == (1, 192, 192, 3)
    assert model_input.dtype == np.int32

    assert result.frame_number == 4
    assert result.timestamp_ms == 400.0
    assert result.model_name == "movenet"
    assert (result.width, result.height) == (200, 100)
    assert result.is_valid

    nose = result.get_keypoint("nose")
    assert nose.x == pytest.approx(150.0)
    assert nose.y == pytest.approx(0.0)
    assert nose.confidence == pytest.approx(0.1)

    wrist = result.get_keypoint("left_wrist")
    assert wrist.x == pytest.approx(100.0)
    assert wrist.y == pytest.approx(50.0)


def test_pose_invalid_when_all_scores_low(fake_hub):
    fake_hub.signature.raw[..., 2] = 0.2
    result = MoveNetBackend().process_frame(np.zeros((64, 64, 3), dtype=np.uint8))
    assert not result.is_valid
    assert len(result.keypoints) == 17


def test_initialize_once_and_cleanup(fake_hub):
    backend = MoveNetBackend()
    with backend:
        assert backend.is_initialized
        backend.initialize()
    assert len(fake_hub.loaded) == 1
    assert not backend.is_initialized


def test_missing_tensorflow_raises_import_error(monkeypatch):
    monkeypatch.setitem(sys.modules, "tensorflow", None)
    with pytest.raises(ImportError, match="movenet"):
        MoveNetBackend().initialize()


def test_load_failure_propagates(monkeypatch):
    def load(url):
        raise OSError("hub unreachable")

    monkeypatch.setitem(sys.modules, "tensorflow", types.SimpleNamespace())
    monkeypatch.setitem(sys.modules, "tensorflow_hub", types.SimpleNamespace(load=load))
    backend = MoveNetBackend()
    with pytest.raises(OSError):
        backend.initialize()
    assert not backend.is_initialized


def test_create_backend():
    assert isinstance(create_backend("movenet", model_type="singlepose/lightning"), MoveNetBackend)
    with pytest.raises(ValueError):
        create_backend("openpose")
