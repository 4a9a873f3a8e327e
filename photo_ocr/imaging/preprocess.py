"""
Image preprocessing for the local recognition engine.

Pipeline (pure, deterministic, BGR uint8 in / BGR uint8 out):
  1. Resize so the larger side is TARGET_MAX_DIM (other side proportional, >= 1px)
  2. Desaturate to grayscale
  3. Binarize against the global mean of the red channel
     (post-grayscale red == green == blue)

Already-binarized images come out unchanged on a second pass.
"""
import cv2
import numpy as np

from photo_ocr.orchestrator.errors import InvalidImageError

TARGET_MAX_DIM = 1200
JPEG_QUALITY = 90

BLACK = 0
WHITE = 255


# ── Codec helpers ───────────────────────────────────────────────────────────

def decode_image(image_bytes: bytes) -> np.ndarray:
    if not image_bytes:
        raise InvalidImageError("empty image data")
    arr = np.frombuffer(image_bytes, dtype=np.uint8)
    img = cv2.imdecode(arr, cv2.IMREAD_COLOR)
    if img is None:
        raise InvalidImageError("image data could not be decoded")
    return img


def encode_jpeg(img: np.ndarray) -> bytes:
    ok, buf = cv2.imencode(".jpg", img, [cv2.IMWRITE_JPEG_QUALITY, JPEG_QUALITY])
    if not ok:
        raise InvalidImageError("image could not be encoded as JPEG")
    return bytes(buf)


# ── Pipeline steps ──────────────────────────────────────────────────────────

def _check(img) -> np.ndarray:
    if not isinstance(img, np.ndarray) or img.ndim < 2:
        raise InvalidImageError("expected a 2D or 3D pixel array")
    if img.dtype != np.uint8:
        raise InvalidImageError(f"expected uint8 pixels, got {img.dtype}")
    if img.ndim > 3 or (img.ndim == 3 and img.shape[2] not in (1, 3, 4)):
        raise InvalidImageError(f"unsupported pixel layout {img.shape}")
    h, w = img.shape[:2]
    if h == 0 or w == 0:
        raise InvalidImageError(f"zero-area image ({w}x{h})")
    if img.ndim == 3 and img.shape[2] == 1:
        img = img[:, :, 0]
    if img.ndim == 2:
        img = cv2.cvtColor(img, cv2.COLOR_GRAY2BGR)
    elif img.shape[2] == 4:
        img = cv2.cvtColor(img, cv2.COLOR_BGRA2BGR)
    return img


def target_size(width: int, height: int, max_dim: int = TARGET_MAX_DIM) -> tuple[int, int]:
    ratio = max_dim / width if width >= height else max_dim / height
    return max(1, round(width * ratio)), max(1, round(height * ratio))


def resize(img: np.ndarray, max_dim: int = TARGET_MAX_DIM) -> np.ndarray:
    h, w = img.shape[:2]
    tw, th = target_size(w, h, max_dim)
    if (tw, th) == (w, h):
        return img.copy()
    interp = cv2.INTER_AREA if tw < w else cv2.INTER_LINEAR
    return cv2.resize(img, (tw, th), interpolation=interp)


def to_grayscale(img: np.ndarray) -> np.ndarray:
    gray = cv2.cvtColor(img, cv2.COLOR_BGR2GRAY)
    return cv2.cvtColor(gray, cv2.COLOR_GRAY2BGR)


def threshold(img: np.ndarray) -> np.ndarray:
    red = img[:, :, 2]
    # widened accumulator, integer mean
    avg = int(red.sum(dtype=np.uint64)) // red.size
    mask = red < avg
    out = np.full(img.shape, WHITE, dtype=np.uint8)
    out[mask] = BLACK
    return out


def preprocess(img: np.ndarray) -> np.ndarray:
    img = _check(img)
    return threshold(to_grayscale(resize(img)))


def preprocess_bytes(image_bytes: bytes) -> bytes:
    return encode_jpeg(preprocess(decode_image(image_bytes)))
