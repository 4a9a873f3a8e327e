"""
Continuous (live feed) recognition session.

Display policy is "sticky last result": nothing is shown until the first
non-blank recognition lands; after that every recognition replaces the text.
If nothing has been recognized ADVISORY_AFTER_S seconds after start(), a
one-shot advisory message is shown instead. It is not a retry trigger.
"""
import threading
import time
from typing import Optional

from photo_ocr.orchestrator.contracts import Frame
from photo_ocr.orchestrator.frame_policy import KeepLatestAnalyzer

ADVISORY_AFTER_S = 15.0

INITIAL_MESSAGE = "Point the camera at some text."
ADVISORY_MESSAGE = (
    "Recognition is taking a while. Please check the network connection "
    "and that the recognition service is reachable."
)


class LiveSession:
    def __init__(self, recognizer, status_store, advisory_after: float = ADVISORY_AFTER_S,
                 analyzer: Optional[KeepLatestAnalyzer] = None):
        self.recognizer = recognizer
        self.status = status_store
        self.advisory_after = advisory_after
        self.analyzer = analyzer or KeepLatestAnalyzer(self._analyze, status_store)
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._recognized_once = False
        self._text = ""

    @property
    def recognized_once(self) -> bool:
        with self._lock:
            return self._recognized_once

    @property
    def display_text(self) -> str:
        with self._lock:
            if not self._recognized_once and not self._text:
                return INITIAL_MESSAGE
            return self._text

    def start(self):
        with self._lock:
            if self._timer is not None:
                return
            self._timer = threading.Timer(self.advisory_after, self._advise)
            self._timer.daemon = True
            self._timer.start()
        self.status.log(f"live: started (advisory after {self.advisory_after:.0f}s)")

    def _advise(self):
        with self._lock:
            if self._recognized_once:
                return
            self._text = ADVISORY_MESSAGE
        self.status.log("live: no recognition yet, showing advisory")

    def on_text(self, text: Optional[str]):
        text = text or ""
        with self._lock:
            if text.strip() and not self._recognized_once:
                self._recognized_once = True
            if self._recognized_once:
                self._text = text

    def _analyze(self, frame: Frame):
        result = self.recognizer.recognize(frame.data)
        self.on_text(result.text)

    def offer(self, frame: Frame) -> bool:
        return self.analyzer.offer(frame)

    def run(self, camera, stop_event: threading.Event, interval: float = 0.05):
        """Pump frames from a camera adapter until stop_event is set."""
        self.start()
        while not stop_event.is_set():
            frame = camera.read_frame()
            if frame is not None:
                self.offer(frame)
            time.sleep(interval)

    def stop(self):
        with self._lock:
            timer, self._timer = self._timer, None
        if timer is not None:
            timer.cancel()
        self.analyzer.shutdown()
        self.status.log("live: stopped")
