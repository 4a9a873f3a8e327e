from abc import ABC, abstractmethod

from photo_ocr.orchestrator.contracts import Frame


class CameraAdapter(ABC):
    @abstractmethod
    def capture_bytes(self) -> bytes | None:
        """Capture one still. Returns JPEG bytes or None on failure."""
        ...

    def read_frame(self) -> Frame | None:
        """Next live-feed frame; the consumer must release() it."""
        data = self.capture_bytes()
        if data is None:
            return None
        return Frame(data)
