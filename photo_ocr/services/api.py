"""
HTTP surface of the recognition pipeline: submit an image, poll the upload
state, reset it, and manage the service host / theme preferences.

Run with:  uvicorn photo_ocr.services.api:create_app --factory
"""
import base64
import binascii
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.responses import JSONResponse

from photo_ocr.adapters.recognition.base import RecognitionAdapter
from photo_ocr.imaging.preprocess import preprocess_bytes
from photo_ocr.orchestrator import errors
from photo_ocr.orchestrator.contracts import ImageSource, ThemeMode
from photo_ocr.orchestrator.errors import InvalidImageError, ValidationError
from photo_ocr.orchestrator.state_machine import UploadStateMachine
from photo_ocr.services.models import (
    HostUpdate, ResetResponse, SettingsOut, StateOut, SubmitRequest, SubmitResponse,
    ThemeUpdate, ValidationErrorOut,
)
from photo_ocr.services.settings_store import PreferencesStore
from photo_ocr.services.staging import stage_image
from photo_ocr.services.status_store import StatusStore

load_dotenv(dotenv_path="photo_ocr/.env", override=False)


def build_recognizer(kind: str, status: StatusStore, store: PreferencesStore) -> RecognitionAdapter:
    """Pick the recognition backend. Values: remote | local | claude | mock."""
    kind = kind.lower()
    if kind == "local":
        from photo_ocr.adapters.recognition.tessdata import copy_tessdata_if_needed
        from photo_ocr.adapters.recognition.tesseract_local import DEFAULT_LANGUAGE, LocalTesseract
        data_dir = os.getenv("OCR_DATA_DIR", os.path.expanduser("~/.photo_ocr"))
        assets_dir = os.getenv("OCR_ASSETS_DIR", "photo_ocr/assets")
        copied = copy_tessdata_if_needed(assets_dir, data_dir)
        if copied:
            status.log(f"tessdata: copied {', '.join(copied)}")
        engine = LocalTesseract(status)
        engine.initialize(data_dir, os.getenv("OCR_LANG", DEFAULT_LANGUAGE))
        return engine
    if kind == "claude":
        from photo_ocr.adapters.recognition.claude_ocr import ClaudeOCR
        return ClaudeOCR(status)
    if kind == "mock":
        from photo_ocr.adapters.recognition.mock_recognition import MockRecognizer
        return MockRecognizer(status)

    from photo_ocr.adapters.recognition.http_ocr import RemoteOCR
    timeout = float(os.getenv("OCR_HTTP_TIMEOUT", "30"))
    return RemoteOCR(status, endpoint=store.get_endpoint, timeout=timeout)


def create_app(recognizer: RecognitionAdapter | None = None,
               store: PreferencesStore | None = None,
               status: StatusStore | None = None,
               cache_dir=None) -> FastAPI:
    status = status or StatusStore()
    store = store or PreferencesStore.get_instance()
    cache_dir = cache_dir or os.getenv("OCR_CACHE_DIR")
    if recognizer is None:
        recognizer = build_recognizer(os.getenv("OCR_RECOGNIZER", "remote"), status, store)
    status.log(f"recognizer: {type(recognizer).__name__}")

    machine = UploadStateMachine(recognizer, status)

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        yield
        machine.shutdown()

    app = FastAPI(title="photo-ocr", lifespan=lifespan)
    app.state.machine = machine
    app.state.store = store
    app.state.status = status

    def _state_out() -> StateOut:
        return StateOut.from_state(machine.state, machine.attempt)

    def _settings_out() -> SettingsOut:
        return SettingsOut(
            host=store.get_host(),
            endpoint=store.get_endpoint().url,
            custom_host=store.is_custom_host(),
            theme=store.get_theme().value,
        )

    @app.get("/state", response_model=StateOut)
    def get_state():
        return _state_out()

    @app.post("/submit", response_model=SubmitResponse)
    def submit(req: SubmitRequest):
        try:
            image_bytes = base64.b64decode(req.image, validate=True)
        except (binascii.Error, ValueError) as e:
            status.log(f"SUBMIT decode error: {e}")
            return SubmitResponse(ok=False, error_code=errors.ERR_INVALID_IMAGE, error="base64 decode failed")
        try:
            if req.preprocess:
                image_bytes = preprocess_bytes(image_bytes)
            image = stage_image(image_bytes, ImageSource(req.source), cache_dir)
        except InvalidImageError as e:
            status.log(f"SUBMIT rejected: {e}")
            return SubmitResponse(ok=False, error_code=e.code, error=str(e))
        attempt = machine.submit(image)
        return SubmitResponse(ok=True, attempt=attempt)

    @app.post("/reset", response_model=ResetResponse)
    def reset():
        changed = machine.reset()
        return ResetResponse(ok=changed, state=_state_out())

    @app.get("/settings", response_model=SettingsOut)
    def get_settings():
        return _settings_out()

    @app.post("/settings/host", response_model=SettingsOut,
              responses={400: {"model": ValidationErrorOut}})
    def set_host(req: HostUpdate):
        try:
            store.set_host(req.host)
        except ValidationError as e:
            status.log(f"SETTINGS rejected {e.field}: {e}")
            body = ValidationErrorOut(error_code=e.code, field=e.field, error=str(e))
            return JSONResponse(status_code=400, content=body.model_dump())
        status.log(f"SETTINGS host={req.host}")
        return _settings_out()

    @app.post("/settings/reset", response_model=SettingsOut)
    def reset_settings():
        store.reset_to_default()
        status.log("SETTINGS host reset to default")
        return _settings_out()

    @app.post("/settings/theme", response_model=SettingsOut)
    def set_theme(req: ThemeUpdate):
        store.set_theme(ThemeMode(req.theme))
        return _settings_out()

    @app.get("/logs")
    def logs():
        return {"logs": status.snapshot()}

    @app.get("/health")
    def health():
        checks = {
            "api": True,
            "recognizer": type(recognizer).__name__,
            "endpoint": store.get_endpoint().url,
            "busy": machine.busy,
        }
        if hasattr(recognizer, "initialized"):
            checks["engine_ready"] = recognizer.initialized
        return checks

    return app
