"""
Local Tesseract engine (via pytesseract).

Lifecycle:
  initialize(data_dir, language)  -> must precede recognize()
  shutdown()                      -> drops the handle; recognize() fails afterwards

Images are decoded and run through imaging.preprocess before recognition.
"""
import threading
from pathlib import Path

import pytesseract

from photo_ocr.adapters.recognition.base import RecognitionAdapter
from photo_ocr.adapters.recognition.tessdata import TESSDATA, model_path
from photo_ocr.imaging.preprocess import decode_image, preprocess
from photo_ocr.orchestrator.contracts import RecognitionResult
from photo_ocr.orchestrator.errors import EngineError

DEFAULT_LANGUAGE = "ben"


class LocalTesseract(RecognitionAdapter):
    def __init__(self, status_store):
        self.status = status_store
        self._lock = threading.Lock()
        self._config: str | None = None
        self._language: str | None = None

    @property
    def initialized(self) -> bool:
        return self._config is not None

    def initialize(self, data_dir, language: str = DEFAULT_LANGUAGE):
        model = model_path(data_dir, language)
        if not model.is_file():
            raise EngineError(f"missing language data: {model}")
        tessdata_dir = Path(data_dir) / TESSDATA
        with self._lock:
            self._config = f'--tessdata-dir "{tessdata_dir}"'
            self._language = language
        self.status.log(f"tesseract: ready lang={language} data={tessdata_dir}")

    def shutdown(self):
        with self._lock:
            self._config = None
            self._language = None
        self.status.log("tesseract: shut down")

    def recognize(self, image_bytes: bytes) -> RecognitionResult:
        with self._lock:
            config, language = self._config, self._language
        if config is None:
            raise EngineError("tesseract engine is not initialized")

        img = preprocess(decode_image(image_bytes))
        try:
            text = pytesseract.image_to_string(img, lang=language, config=config)
        except (pytesseract.TesseractError, pytesseract.TesseractNotFoundError, OSError) as e:
            raise EngineError(f"tesseract failed: {e}") from e
        text = (text or "").strip()
        self.status.log(f"tesseract: extracted {len(text)} chars")
        return RecognitionResult(text=text)
