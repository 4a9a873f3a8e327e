import logging
import threading
from dataclasses import dataclass, field
from typing import List

logger = logging.getLogger("photo_ocr")

MAX_LOG_LINES = 200


@dataclass
class StatusStore:
    logs: List[str] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def log(self, msg: str):
        logger.info(msg)
        with self._lock:
            self.logs.append(msg)
            if len(self.logs) > MAX_LOG_LINES:
                self.logs = self.logs[-MAX_LOG_LINES:]

    def snapshot(self) -> List[str]:
        with self._lock:
            return list(self.logs)
