from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Literal, Optional, Union

StateKind = Literal["idle", "loading", "success", "error"]


class ImageSource(str, Enum):
    CAMERA = "camera"
    GALLERY = "gallery"


class ThemeMode(str, Enum):
    LIGHT = "LIGHT"
    DARK = "DARK"
    SYSTEM = "SYSTEM"


@dataclass(frozen=True)
class RecognitionResult:
    text: Optional[str]


# ── Upload state (exactly one active at a time) ────────────────────────────

@dataclass(frozen=True)
class Idle:
    kind: StateKind = field(default="idle", init=False)


@dataclass(frozen=True)
class Loading:
    attempt: int
    kind: StateKind = field(default="loading", init=False)


@dataclass(frozen=True)
class Success:
    text: Optional[str]
    kind: StateKind = field(default="success", init=False)


@dataclass(frozen=True)
class Error:
    message: str
    kind: StateKind = field(default="error", init=False)


UploadState = Union[Idle, Loading, Success, Error]


@dataclass(frozen=True)
class ServiceEndpoint:
    host: str
    scheme: str = "http"
    port: int = 5000

    @property
    def url(self) -> str:
        return f"{self.scheme}://{self.host}:{self.port}"

    @property
    def base_url(self) -> str:
        return f"{self.url}/"


@dataclass
class CapturedImage:
    data: bytes
    source: ImageSource = ImageSource.CAMERA
    path: Optional[Path] = None     # staged temp file, owned by one attempt

    @property
    def filename(self) -> str:
        return self.path.name if self.path is not None else "capture.jpg"


class Frame:
    """Live-feed frame handle. release() must be called exactly once."""

    def __init__(self, data: bytes, on_release: Optional[Callable[["Frame"], None]] = None):
        self.data = data
        self._on_release = on_release
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    def release(self):
        if self._released:
            raise RuntimeError("frame already released")
        self._released = True
        if self._on_release is not None:
            self._on_release(self)
