"""
Frame capture — supplies a still frame and a low-resolution preview.

Two sources: the server-attached camera (OpenCV VideoCapture) and frames
uploaded by the browser, which captures them itself with getUserMedia.
"""

from __future__ import annotations

import base64
import logging
import threading
from dataclasses import dataclass
from typing import Protocol

import cv2
import numpy as np

import config
from features.maintenance.errors import CaptureUnavailable

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Frame:
    full_image: bytes  # JPEG
    preview_reference: str  # data: URL


class CaptureSource(Protocol):
    def capture_frame(self) -> Frame: ...


def _encode_jpeg(frame: np.ndarray, quality: int) -> bytes:
    ok, buf = cv2.imencode(".jpg", frame, [cv2.IMWRITE_JPEG_QUALITY, quality])
    if not ok:
        raise ValueError("JPEG encoding failed")
    return buf.tobytes()


def make_preview(frame: np.ndarray) -> str:
    """Downscale ``frame`` and return it as a JPEG data URL."""
    height, width = frame.shape[:2]
    if width > config.PREVIEW_MAX_WIDTH:
        scale = config.PREVIEW_MAX_WIDTH / width
        frame = cv2.resize(
            frame, (config.PREVIEW_MAX_WIDTH, max(1, int(height * scale))),
            interpolation=cv2.INTER_AREA,
        )
    jpeg = _encode_jpeg(frame, config.PREVIEW_JPEG_QUALITY)
    return "data:image/jpeg;base64," + base64.b64encode(jpeg).decode("ascii")


def frame_from_array(frame: np.ndarray) -> Frame:
    return Frame(
        full_image=_encode_jpeg(frame, config.FRAME_JPEG_QUALITY),
        preview_reference=make_preview(frame),
    )


class UploadedFrameSource:
    """Wraps an image the client already captured."""

    def __init__(self, image: bytes):
        self.image = image

    def capture_frame(self) -> Frame:
        decoded = cv2.imdecode(np.frombuffer(self.image, dtype=np.uint8), cv2.IMREAD_COLOR)
        if decoded is None:
            raise ValueError("Uploaded frame is not a decodable image")
        return frame_from_array(decoded)


class CameraCaptureSource:
    """OpenCV VideoCapture on a local device index."""

    def __init__(self, device_index: int = 0):
        self.device_index = device_index
        self._cap: cv2.VideoCapture | None = None
        self._lock = threading.Lock()

    @property
    def ok(self) -> bool:
        return self._cap is not None and self._cap.isOpened()

    def _open(self) -> None:
        if self.device_index < 0:
            raise CaptureUnavailable("Server-side camera is disabled")
        cap = cv2.VideoCapture(self.device_index)
        if not cap.isOpened():
            cap.release()
            log.warning("Camera: could not open /dev/video%d", self.device_index)
            raise CaptureUnavailable("Camera access denied or unavailable.")
        self._cap = cap
        log.info("Camera: opened /dev/video%d", self.device_index)

    def capture_frame(self) -> Frame:
        with self._lock:
            if not self.ok:
                self._open()
            ret, frame = self._cap.read()  # type: ignore[union-attr]
            if not ret or frame is None:
                self._release()
                raise CaptureUnavailable("Camera returned no frame")
        return frame_from_array(frame)

    def _release(self) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None

    def stop(self) -> None:
        with self._lock:
            self._release()
