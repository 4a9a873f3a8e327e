"""
Cloud text recognizer backed by the Anthropic messages API.

Sends the JPEG as a base64 image block and asks for a verbatim transcription.
Requires ANTHROPIC_API_KEY (photo_ocr/.env or system env); CLAUDE_OCR_MODEL
overrides the model.
"""
import base64
import os

from photo_ocr.adapters.recognition.base import RecognitionAdapter
from photo_ocr.orchestrator.contracts import RecognitionResult
from photo_ocr.orchestrator.errors import EngineError

DEFAULT_MODEL = "claude-haiku-4-5-20251001"

_PROMPT = (
    "Transcribe all text visible in this image exactly as written, "
    "preserving line breaks. Do not translate or explain. "
    "If there is no text, reply with an empty message."
)


class ClaudeOCR(RecognitionAdapter):
    def __init__(self, status_store, client=None, model: str | None = None, max_tokens: int = 1024):
        self.status = status_store
        self.model = model or os.getenv("CLAUDE_OCR_MODEL", DEFAULT_MODEL)
        self.max_tokens = max_tokens
        self._client = client
        self._ready = client is not None
        if not self._ready:
            self._init_client()

    def _init_client(self):
        api_key = os.getenv("ANTHROPIC_API_KEY")
        if not api_key:
            self.status.log("claude_ocr: ANTHROPIC_API_KEY not set")
            return
        try:
            import anthropic
        except ImportError:
            self.status.log("claude_ocr: anthropic package not installed — run: pip install anthropic")
            return
        self._client = anthropic.Anthropic(api_key=api_key)
        self._ready = True
        self.status.log(f"claude_ocr: ready ({self.model})")

    def recognize(self, image_bytes: bytes) -> RecognitionResult:
        if not self._ready or self._client is None:
            raise EngineError("cloud recognizer is not configured (ANTHROPIC_API_KEY)")

        b64 = base64.standard_b64encode(image_bytes).decode("utf-8")
        try:
            message = self._client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {
                                "type": "image",
                                "source": {
                                    "type": "base64",
                                    "media_type": "image/jpeg",
                                    "data": b64,
                                },
                            },
                            {"type": "text", "text": _PROMPT},
                        ],
                    }
                ],
            )
        except Exception as e:
            self.status.log(f"claude_ocr: API error: {e}")
            raise EngineError(f"cloud recognition failed: {e}") from e

        text = "".join(
            getattr(block, "text", "") for block in message.content if getattr(block, "type", "text") == "text"
        ).strip()
        self.status.log(f"claude_ocr: extracted {len(text)} chars")
        return RecognitionResult(text=text)
