"""Error taxonomy for the recognition pipeline.

Every recoverable failure ends the current attempt in the Error state with the
exception message; nothing here is retried automatically.
"""
from typing import Optional

ERR_INVALID_IMAGE = "INVALID_IMAGE"
ERR_VALIDATION = "VALIDATION"
ERR_NETWORK = "NETWORK"
ERR_SERVICE = "SERVICE"
ERR_ENGINE = "ENGINE"
ERR_UNKNOWN = "UNKNOWN"


class OcrError(Exception):
    code = ERR_UNKNOWN


class InvalidImageError(OcrError):
    """Malformed, undecodable or zero-area image."""
    code = ERR_INVALID_IMAGE


class NetworkError(OcrError):
    """Transport failure, timeout or DNS failure while uploading."""
    code = ERR_NETWORK


class ServiceError(OcrError):
    """Recognition service answered with a non-2xx status or a bad body."""
    code = ERR_SERVICE

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ValidationError(OcrError):
    """Rejected configuration input. `field` names the offending setting."""
    code = ERR_VALIDATION

    def __init__(self, message: str, field: str):
        super().__init__(message)
        self.field = field


class EngineError(OcrError):
    """Local or cloud recognition engine failure (missing model data, API error...)."""
    code = ERR_ENGINE
