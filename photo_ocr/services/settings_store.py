"""
Persisted app preferences: OCR service host and theme.

A small JSON key-value file under the "ocr_app_preferences" namespace. Writes are
serialized under a lock and replace the file atomically (last write wins).
"""
import json
import os
import re
import tempfile
import threading
from pathlib import Path
from typing import Optional

from photo_ocr.orchestrator.contracts import ServiceEndpoint, ThemeMode
from photo_ocr.orchestrator.errors import ValidationError

PREFS_NAME = "ocr_app_preferences"
KEY_BASE_IP = "base_ip_address"
KEY_THEME_MODE = "theme_mode"
DEFAULT_IP = "192.168.103.82"
SCHEME = "http"
PORT = 5000

_IP_PATTERN = re.compile(r"([0-9]{1,3})\.([0-9]{1,3})\.([0-9]{1,3})\.([0-9]{1,3})")


def default_path() -> Path:
    return Path(os.getenv("OCR_PREFS_PATH", Path.home() / ".photo_ocr" / "preferences.json"))


class PreferencesStore:
    _instance: Optional["PreferencesStore"] = None
    _instance_lock = threading.Lock()

    def __init__(self, path=None):
        self.path = Path(path) if path else default_path()
        self._lock = threading.Lock()

    @classmethod
    def get_instance(cls, path=None) -> "PreferencesStore":
        """Process-wide store, created lazily on first use."""
        if cls._instance is None:
            with cls._instance_lock:
                if cls._instance is None:
                    cls._instance = cls(path)
        return cls._instance

    # ── raw key-value access ───────────────────────────────────────────────

    def _read_all(self) -> dict:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            return {}
        ns = data.get(PREFS_NAME) if isinstance(data, dict) else None
        return dict(ns) if isinstance(ns, dict) else {}

    def get(self, key: str, default: str) -> str:
        value = self._read_all().get(key)
        return value if isinstance(value, str) else default

    def put(self, key: str, value: str):
        with self._lock:
            values = self._read_all()
            values[key] = value
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(prefix=".prefs_", dir=self.path.parent)
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump({PREFS_NAME: values}, fh, indent=2)
            os.replace(tmp, self.path)

    # ── host / endpoint ────────────────────────────────────────────────────

    @staticmethod
    def is_valid_ip(candidate: str) -> bool:
        if not isinstance(candidate, str) or not candidate.strip():
            return False
        m = _IP_PATTERN.fullmatch(candidate)
        if m is None:
            return False
        return all(0 <= int(octet) <= 255 for octet in m.groups())

    def get_host(self) -> str:
        return self.get(KEY_BASE_IP, DEFAULT_IP) or DEFAULT_IP

    def set_host(self, candidate: str):
        if not self.is_valid_ip(candidate):
            raise ValidationError(f"invalid IPv4 address: {candidate!r}", field="host")
        self.put(KEY_BASE_IP, candidate)

    def get_endpoint(self) -> ServiceEndpoint:
        return ServiceEndpoint(host=self.get_host(), scheme=SCHEME, port=PORT)

    def get_base_url(self) -> str:
        return self.get_endpoint().base_url

    def is_custom_host(self) -> bool:
        host = self.get_host()
        return host != DEFAULT_IP and host != ""

    def reset_to_default(self):
        self.put(KEY_BASE_IP, DEFAULT_IP)

    # ── theme ──────────────────────────────────────────────────────────────

    def get_theme(self) -> ThemeMode:
        name = self.get(KEY_THEME_MODE, ThemeMode.SYSTEM.value)
        try:
            return ThemeMode(name)
        except ValueError:
            return ThemeMode.SYSTEM

    def set_theme(self, theme: ThemeMode):
        self.put(KEY_THEME_MODE, ThemeMode(theme).value)
