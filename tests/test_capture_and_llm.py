import base64

import cv2
import numpy as np
import pytest

import config
from features.maintenance import CaptureUnavailable
from features.maintenance.capture import CameraCaptureSource, UploadedFrameSource, make_preview
from utils import llm


def _jpeg(width=640, height=480) -> bytes:
    frame = np.full((height, width, 3), 127, dtype=np.uint8)
    ok, buf = cv2.imencode(".jpg", frame)
    assert ok
    return buf.tobytes()


def test_uploaded_frame_produces_jpeg_and_preview():
    frame = UploadedFrameSource(_jpeg()).capture_frame()

    assert frame.full_image[:2] == b"\xff\xd8"
    assert frame.preview_reference.startswith("data:image/jpeg;base64,")
    preview = base64.b64decode(frame.preview_reference.split(",", 1)[1])
    decoded = cv2.imdecode(np.frombuffer(preview, dtype=np.uint8), cv2.IMREAD_COLOR)
    assert decoded.shape[1] == config.PREVIEW_MAX_WIDTH
    assert decoded.shape[0] == 240


def test_small_frames_are_not_upscaled():
    preview = make_preview(np.zeros((100, 200, 3), dtype=np.uint8))
    raw = base64.b64decode(preview.split(",", 1)[1])
    assert cv2.imdecode(np.frombuffer(raw, dtype=np.uint8), cv2.IMREAD_COLOR).shape[:2] == (100, 200)


def test_uploaded_garbage_is_rejected():
    with pytest.raises(ValueError):
        UploadedFrameSource(b"not an image").capture_frame()


def test_disabled_camera_is_unavailable():
    with pytest.raises(CaptureUnavailable):
        CameraCaptureSource(-1).capture_frame()


def test_chat_json_parses_object(monkeypatch):
    monkeypatch.setattr(llm, "chat", lambda system, user, **kw: '{"steps": ["a"]}')
    assert llm.chat_json("sys", "user") == {"steps": ["a"]}


@pytest.mark.parametrize("raw", ["not json", "[1, 2]", ""])
def test_chat_json_raises_on_bad_reply(monkeypatch, raw):
    monkeypatch.setattr(llm, "chat", lambda system, user, **kw: raw)
    with pytest.raises(ValueError):
        llm.chat_json("sys", "user")


def test_image_content_is_data_url():
    part = llm.image_content(b"abc")
    assert part == {"type": "image_url", "image_url": {"url": "data:image/jpeg;base64,YWJj"}}
