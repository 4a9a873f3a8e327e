"""
Keep-only-latest backpressure for live frame analysis.

While one frame is being analyzed, incoming frames are released and dropped,
never queued. A frame is always released before the analyzer accepts the next.
"""
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional

from photo_ocr.orchestrator.contracts import Frame


class KeepLatestAnalyzer:
    def __init__(self, analyze: Callable[[Frame], None], status_store,
                 executor: Optional[ThreadPoolExecutor] = None):
        self.analyze = analyze
        self.status = status_store
        self._executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="analyzer")
        self._owns_executor = executor is None
        self._lock = threading.Lock()
        self._idle = threading.Event()
        self._idle.set()
        self._busy = False
        self.accepted = 0
        self.dropped = 0

    @property
    def busy(self) -> bool:
        with self._lock:
            return self._busy

    def offer(self, frame: Frame) -> bool:
        with self._lock:
            if self._busy:
                self.dropped += 1
                drop = True
            else:
                self._busy = True
                self._idle.clear()
                self.accepted += 1
                drop = False
        if drop:
            frame.release()
            return False
        try:
            self._executor.submit(self._process, frame)
        except RuntimeError:
            # executor already shut down
            self._done(frame)
            raise
        return True

    def _process(self, frame: Frame):
        try:
            self.analyze(frame)
        except Exception as e:
            self.status.log(f"analyzer: frame failed {type(e).__name__}: {e}")
        finally:
            self._done(frame)

    def _done(self, frame: Frame):
        try:
            frame.release()
        finally:
            with self._lock:
                self._busy = False
                self._idle.set()

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        return self._idle.wait(timeout)

    def shutdown(self):
        if self._owns_executor:
            self._executor.shutdown(wait=True)
