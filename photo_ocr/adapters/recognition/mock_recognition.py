from photo_ocr.adapters.recognition.base import RecognitionAdapter
from photo_ocr.orchestrator.contracts import RecognitionResult


class MockRecognizer(RecognitionAdapter):
    def __init__(self, status_store, text: str = "mock text"):
        self.status = status_store
        self.text = text

    def recognize(self, image_bytes: bytes) -> RecognitionResult:
        self.status.log(f"mock_recognizer: {len(image_bytes)} bytes -> {self.text!r}")
        return RecognitionResult(text=self.text)
