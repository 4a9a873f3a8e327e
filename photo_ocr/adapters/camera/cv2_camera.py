"""
OpenCV webcam adapter for still capture and the live recognition feed.

CAMERA_INDEX env var (default 0) selects the device. The driver buffer is kept
at one frame and read_frame() skips anything already buffered, so the live
analyzer always sees the newest picture.
"""
import os

import cv2

from photo_ocr.adapters.camera.base import CameraAdapter
from photo_ocr.orchestrator.contracts import Frame

CAPTURE_SIZE = (1280, 720)
JPEG_QUALITY = 90
STALE_GRABS = 2


class CV2Camera(CameraAdapter):
    def __init__(self, status_store, index: int | None = None):
        self.status = status_store
        self.index = index if index is not None else int(os.getenv("CAMERA_INDEX", "0"))
        self._cap = None
        self.frames_read = 0

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.release()

    def _device(self):
        if self._cap is not None and self._cap.isOpened():
            return self._cap
        cap = cv2.VideoCapture(self.index)
        if not cap.isOpened():
            self.status.log(f"cv2_camera: cannot open device {self.index}")
            return None
        width, height = CAPTURE_SIZE
        cap.set(cv2.CAP_PROP_FRAME_WIDTH, width)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, height)
        cap.set(cv2.CAP_PROP_BUFFERSIZE, 1)
        self._cap = cap
        self.status.log(f"cv2_camera: device {self.index} open")
        return cap

    def _read_jpeg(self, cap) -> bytes | None:
        ok, pixels = cap.read()
        if not ok or pixels is None:
            self.status.log("cv2_camera: read failed")
            return None
        ok, buf = cv2.imencode(".jpg", pixels, [cv2.IMWRITE_JPEG_QUALITY, JPEG_QUALITY])
        if not ok:
            self.status.log("cv2_camera: jpeg encode failed")
            return None
        self.frames_read += 1
        return bytes(buf)

    def capture_bytes(self) -> bytes | None:
        cap = self._device()
        return self._read_jpeg(cap) if cap is not None else None

    def read_frame(self) -> Frame | None:
        cap = self._device()
        if cap is None:
            return None
        for _ in range(STALE_GRABS):
            if not cap.grab():
                break
        data = self._read_jpeg(cap)
        return Frame(data) if data is not None else None

    def release(self):
        if self._cap is not None:
            self._cap.release()
            self._cap = None
