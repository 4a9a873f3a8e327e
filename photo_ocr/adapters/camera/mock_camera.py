"""Mock camera: serves fixed images, or JPEGs from a directory, in rotation."""
import itertools
from pathlib import Path

from photo_ocr.adapters.camera.base import CameraAdapter


class MockCamera(CameraAdapter):
    def __init__(self, status_store, images: list[bytes] | None = None, images_dir=None):
        self.status = status_store
        if images is None and images_dir is not None:
            images = [p.read_bytes() for p in sorted(Path(images_dir).glob("*.jpg"))]
        self._images = list(images or [])
        self._cycle = itertools.cycle(self._images) if self._images else None

    def capture_bytes(self) -> bytes | None:
        if self._cycle is None:
            self.status.log("mock_camera: no images available")
            return None
        return next(self._cycle)
