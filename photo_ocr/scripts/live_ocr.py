"""
Live recognition from a webcam using the keep-latest frame analyzer.

Usage:
    OCR_RECOGNIZER=remote python photo_ocr/scripts/live_ocr.py
Ctrl+C to stop.
"""
import os
import sys
import threading
import time
from pathlib import Path

ROOT = Path(__file__).parents[2]
sys.path.insert(0, str(ROOT))

from photo_ocr.adapters.camera.cv2_camera import CV2Camera
from photo_ocr.orchestrator.live_session import LiveSession
from photo_ocr.services.api import build_recognizer
from photo_ocr.services.settings_store import PreferencesStore
from photo_ocr.services.status_store import StatusStore


def main():
    status = StatusStore()
    store = PreferencesStore.get_instance()
    recognizer = build_recognizer(os.getenv("OCR_RECOGNIZER", "remote"), status, store)
    camera = CV2Camera(status)
    session = LiveSession(recognizer, status)
    stop = threading.Event()
    pump = threading.Thread(target=session.run, args=(camera, stop), daemon=True)
    pump.start()

    last = None
    try:
        while True:
            text = session.display_text
            if text != last:
                print(f"\n--- {time.strftime('%H:%M:%S')} (dropped={session.analyzer.dropped}) ---\n{text}")
                last = text
            time.sleep(0.5)
    except KeyboardInterrupt:
        pass
    finally:
        stop.set()
        pump.join(timeout=2)
        session.stop()
        camera.release()
        recognizer.shutdown()


if __name__ == "__main__":
    main()
