"""
Fake OCR server for exercising RemoteOCR without the real recognition service.

Serves POST /extract_text (multipart part "image") on port 5000 and answers
{"text": ...}. FAKE_OCR_FAIL_STATUS=500 makes every request fail instead.

Usage:
    python photo_ocr/scripts/fake_ocr_server.py
"""
import os
import time

import uvicorn
from fastapi import FastAPI, File, UploadFile
from fastapi.responses import PlainTextResponse


def create_app(text: str = "hello", fail_status: int | None = None, delay: float = 0.0) -> FastAPI:
    app = FastAPI(title="fake-ocr-server")
    app.state.received = []

    @app.post("/extract_text")
    async def extract_text(image: UploadFile = File(...)):
        data = await image.read()
        app.state.received.append((image.filename, image.content_type, len(data)))
        print(f"[ocr] received {image.filename} ({len(data)} bytes)")
        if delay:
            time.sleep(delay)
        if fail_status is not None:
            return PlainTextResponse("recognition backend unavailable", status_code=fail_status)
        return {"text": text}

    return app


if __name__ == "__main__":
    fail = os.getenv("FAKE_OCR_FAIL_STATUS")
    app = create_app(
        text=os.getenv("FAKE_OCR_TEXT", "hello"),
        fail_status=int(fail) if fail else None,
    )
    print("Fake OCR server starting on http://localhost:5000")
    uvicorn.run(app, host="0.0.0.0", port=5000)
