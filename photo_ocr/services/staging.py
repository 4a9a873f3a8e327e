"""
Temporary file staging for captured / selected images.

Each recognition attempt gets its own JPEG_<yyyyMMdd_HHmmss>_<random>.jpg in the
cache dir. Files carry no durability guarantee and are discarded once the
attempt ends.
"""
import os
import tempfile
import time
from pathlib import Path

from photo_ocr.orchestrator.contracts import CapturedImage, ImageSource
from photo_ocr.orchestrator.errors import InvalidImageError


def _prefix() -> str:
    return "JPEG_" + time.strftime("%Y%m%d_%H%M%S") + "_"


def _cache_dir(cache_dir) -> Path:
    path = Path(cache_dir) if cache_dir else Path(tempfile.gettempdir()) / "photo_ocr"
    path.mkdir(parents=True, exist_ok=True)
    return path


def stage_image(data: bytes, source: ImageSource = ImageSource.CAMERA, cache_dir=None) -> CapturedImage:
    if not data:
        raise InvalidImageError("empty image data")
    fd, name = tempfile.mkstemp(prefix=_prefix(), suffix=".jpg", dir=_cache_dir(cache_dir))
    with os.fdopen(fd, "wb") as fh:
        fh.write(data)
    return CapturedImage(data=data, source=source, path=Path(name))


def discard(image: CapturedImage):
    if image.path is not None:
        image.path.unlink(missing_ok=True)
