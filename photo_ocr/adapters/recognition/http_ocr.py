"""
HTTP adapter for the remote OCR service.

Contract:
  Request:  POST {scheme}://{host}:{port}/extract_text
            multipart/form-data, one part named "image" (JPEG bytes + filename)
  Response: 2xx {"text": "..."}
            anything else -> ServiceError carrying status + body text

The endpoint is resolved on every call so a host change in settings applies to
the next attempt.
"""
from typing import Callable, Optional

import httpx

from photo_ocr.adapters.recognition.base import RecognitionAdapter
from photo_ocr.orchestrator.contracts import CapturedImage, RecognitionResult, ServiceEndpoint
from photo_ocr.orchestrator.errors import NetworkError, ServiceError

EXTRACT_PATH = "/extract_text"
MAX_BODY_IN_MESSAGE = 300


class RemoteOCR(RecognitionAdapter):
    def __init__(
        self,
        status_store,
        endpoint: Callable[[], ServiceEndpoint],
        timeout: float = 30.0,
        client: Optional[httpx.Client] = None,
    ):
        self.status = status_store
        self._endpoint = endpoint
        self.timeout = timeout
        self._client = client

    def _post(self, url: str, files: dict) -> httpx.Response:
        if self._client is not None:
            return self._client.post(url, files=files, timeout=self.timeout)
        return httpx.post(url, files=files, timeout=self.timeout)

    def recognize(self, image_bytes: bytes, filename: str = "capture.jpg") -> RecognitionResult:
        url = f"{self._endpoint().url}{EXTRACT_PATH}"
        self.status.log(f"http_ocr: POST {url} ({len(image_bytes)} bytes)")
        files = {"image": (filename, image_bytes, "image/jpeg")}
        try:
            resp = self._post(url, files)
        except httpx.TimeoutException as e:
            raise NetworkError(f"Upload failed: timed out ({e})") from e
        except httpx.TransportError as e:
            raise NetworkError(f"Upload failed: {e}") from e

        if not resp.is_success:
            body = resp.text.strip()[:MAX_BODY_IN_MESSAGE]
            msg = f"Upload failed: {resp.status_code} {resp.reason_phrase}"
            if body:
                msg = f"{msg}: {body}"
            self.status.log(f"http_ocr: {msg}")
            raise ServiceError(msg, status_code=resp.status_code)

        try:
            data = resp.json()
        except ValueError as e:
            raise ServiceError(f"Upload failed: response is not JSON ({e})", status_code=resp.status_code) from e
        if not isinstance(data, dict):
            raise ServiceError("Upload failed: unexpected response body", status_code=resp.status_code)

        text = data.get("text")
        self.status.log(f"http_ocr: extracted {len(text or '')} chars")
        return RecognitionResult(text=text)

    def recognize_image(self, image: CapturedImage) -> RecognitionResult:
        return self.recognize(image.data, filename=image.filename)
