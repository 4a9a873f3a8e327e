"""
Upload/recognition state machine.

    Idle --submit--> Loading --succeed--> Success --reset--> Idle
                             --fail-----> Error   --reset--> Idle

Policies:
  * submit while Loading supersedes: a new attempt starts, the old attempt's
    outcome is dropped when it lands.
  * reset while Loading cancels: state goes back to Idle, the in-flight outcome
    is dropped.
Every attempt carries a monotonically increasing number; only the outcome of
the active attempt may change state.
"""
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, List, Optional

from photo_ocr.orchestrator.contracts import (
    CapturedImage, Error, Idle, Loading, RecognitionResult, Success, UploadState,
)
from photo_ocr.orchestrator.errors import OcrError
from photo_ocr.services.staging import discard

Listener = Callable[[UploadState], None]


class UploadStateMachine:
    def __init__(self, recognizer, status_store, executor: Optional[ThreadPoolExecutor] = None,
                 clear_on_submit: bool = True):
        self.recognizer = recognizer
        self.status = status_store
        self.clear_on_submit = clear_on_submit
        self._executor = executor or ThreadPoolExecutor(max_workers=2, thread_name_prefix="ocr")
        self._owns_executor = executor is None
        self._lock = threading.RLock()
        self._state: UploadState = Idle()
        self._attempt = 0
        self._future: Optional[Future] = None
        self._image: Optional[CapturedImage] = None
        self._last_text: Optional[str] = None
        self._listeners: List[Listener] = []

    # ── read side ──────────────────────────────────────────────────────────

    @property
    def state(self) -> UploadState:
        with self._lock:
            return self._state

    @property
    def attempt(self) -> int:
        with self._lock:
            return self._attempt

    @property
    def busy(self) -> bool:
        return isinstance(self.state, Loading)

    @property
    def display_text(self) -> Optional[str]:
        """Text the display should show: last success unless cleared on submit."""
        with self._lock:
            if isinstance(self._state, Success):
                return self._state.text
            return self._last_text

    def subscribe(self, listener: Listener):
        self._listeners.append(listener)

    # ── transitions ────────────────────────────────────────────────────────

    def submit(self, image: CapturedImage) -> int:
        with self._lock:
            prev = self._state
            attempt = self._attempt + 1
            # the worker cannot record an outcome before the lock is released
            try:
                future = self._executor.submit(self._run, attempt, image)
            except RuntimeError:
                discard(image)
                raise
            self._attempt = attempt
            if isinstance(prev, Loading):
                self._cancel_pending()
            if self.clear_on_submit:
                self._last_text = None
            self._image = image
            self._future = future
            self._set(Loading(attempt=attempt))

        if isinstance(prev, Loading):
            self.status.log(f"upload: attempt {attempt} supersedes attempt {prev.attempt}")
        else:
            self.status.log(f"upload: attempt {attempt} started source={image.source.value}")
        return attempt

    def succeed(self, attempt: int, result: RecognitionResult) -> bool:
        return self._finish(attempt, Success(text=result.text))

    def fail(self, attempt: int, message: str) -> bool:
        return self._finish(attempt, Error(message=message))

    def reset(self) -> bool:
        with self._lock:
            prev = self._state
            if isinstance(prev, Idle):
                return False
            if isinstance(prev, Loading):
                # invalidate the in-flight attempt; its outcome will be dropped
                self._attempt += 1
                self._cancel_pending()
            self._image = None
            self._last_text = None
            self._set(Idle())
        self.status.log(f"upload: reset from {prev.kind}")
        return True

    # ── worker ─────────────────────────────────────────────────────────────

    def _run(self, attempt: int, image: CapturedImage):
        try:
            result = self.recognizer.recognize_image(image)
        except OcrError as e:
            self.fail(attempt, str(e))
        except Exception as e:
            self.status.log(f"upload: attempt {attempt} error {type(e).__name__}: {e}")
            self.fail(attempt, f"Upload failed: {e}")
        else:
            self.succeed(attempt, result)
        finally:
            discard(image)

    def _finish(self, attempt: int, outcome: UploadState) -> bool:
        with self._lock:
            state = self._state
            if not isinstance(state, Loading) or state.attempt != attempt:
                stale = True
            else:
                stale = False
                if isinstance(outcome, Success):
                    self._last_text = outcome.text
                self._image = None
                self._set(outcome)
        if stale:
            self.status.log(f"upload: dropped stale {outcome.kind} of attempt {attempt} (state={state.kind})")
            return False
        self.status.log(f"upload: attempt {attempt} -> {outcome.kind}")
        return True

    def _cancel_pending(self):
        # caller holds self._lock; a worker that never started will not clean up its file
        if self._future is not None and self._future.cancel() and self._image is not None:
            discard(self._image)

    def _set(self, state: UploadState):
        # caller holds self._lock
        self._state = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception as e:
                self.status.log(f"upload: listener error {type(e).__name__}: {e}")

    # ── lifecycle ──────────────────────────────────────────────────────────

    def wait(self, timeout: Optional[float] = None) -> UploadState:
        """Block until the current attempt's worker has finished."""
        with self._lock:
            future = self._future
        if future is not None and not future.cancelled():
            future.result(timeout=timeout)
        return self.state

    def shutdown(self):
        if self._owns_executor:
            self._executor.shutdown(wait=False, cancel_futures=True)
        self.recognizer.shutdown()
