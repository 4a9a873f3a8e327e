from typing import Literal, Optional

from pydantic import BaseModel

from photo_ocr.orchestrator.contracts import Error, Loading, Success, UploadState


class SubmitRequest(BaseModel):
    image: str  # base64 JPEG
    source: Literal["camera", "gallery"] = "camera"
    preprocess: bool = False


class StateOut(BaseModel):
    state: Literal["idle", "loading", "success", "error"]
    attempt: int
    text: Optional[str] = None
    message: Optional[str] = None

    @classmethod
    def from_state(cls, state: UploadState, attempt: int) -> "StateOut":
        out = cls(state=state.kind, attempt=attempt)
        if isinstance(state, Success):
            out.text = state.text
        elif isinstance(state, Error):
            out.message = state.message
        elif isinstance(state, Loading):
            out.attempt = state.attempt
        return out


class SubmitResponse(BaseModel):
    ok: bool
    attempt: Optional[int] = None
    error_code: Optional[str] = None
    error: Optional[str] = None


class ResetResponse(BaseModel):
    ok: bool
    state: StateOut


class SettingsOut(BaseModel):
    host: str
    endpoint: str
    custom_host: bool
    theme: Literal["LIGHT", "DARK", "SYSTEM"]


class HostUpdate(BaseModel):
    host: str


class ThemeUpdate(BaseModel):
    theme: Literal["LIGHT", "DARK", "SYSTEM"]


class ValidationErrorOut(BaseModel):
    ok: bool = False
    error_code: str
    field: str
    error: str
