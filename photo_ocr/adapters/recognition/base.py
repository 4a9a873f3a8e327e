from abc import ABC, abstractmethod

from photo_ocr.orchestrator.contracts import CapturedImage, RecognitionResult


class RecognitionAdapter(ABC):
    @abstractmethod
    def recognize(self, image_bytes: bytes) -> RecognitionResult:
        """Return recognized text for one encoded image. Raises OcrError subclasses."""
        ...

    def recognize_image(self, image: CapturedImage) -> RecognitionResult:
        """Used by the upload state machine; default ignores everything but the bytes."""
        return self.recognize(image.data)

    def shutdown(self):
        """Release engine resources. No-op for stateless backends."""
