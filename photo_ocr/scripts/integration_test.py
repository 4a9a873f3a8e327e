"""
Integration test script — hits the service endpoints and verifies responses.

Usage:
    python photo_ocr/scripts/fake_ocr_server.py                           (terminal 1)
    uvicorn photo_ocr.services.api:create_app --factory --port 8000       (terminal 2)
    python photo_ocr/scripts/integration_test.py                          (terminal 3)

Settings are pointed at 127.0.0.1 for the run and reset to default afterwards.
"""

import base64
import sys
import time

import cv2
import httpx
import numpy as np

BASE = "http://localhost:8000"
TIMEOUT = 30.0
passed = 0
failed = 0

# small white JPEG
_ok, _buf = cv2.imencode(".jpg", np.full((16, 16, 3), 255, dtype=np.uint8))
TINY_JPEG = base64.b64encode(bytes(_buf)).decode()


def test(name: str, method: str, path: str, body: dict | None = None, checks: dict | None = None,
         expect_status: int = 200) -> dict | None:
    global passed, failed
    url = f"{BASE}{path}"
    checks = checks or {}
    try:
        if method == "GET":
            r = httpx.get(url, timeout=TIMEOUT)
        else:
            r = httpx.post(url, json=body or {}, timeout=TIMEOUT)

        if r.status_code != expect_status:
            print(f"  FAIL  {name} — HTTP {r.status_code}")
            failed += 1
            return None

        data = r.json()
        for key, expected in checks.items():
            actual = data.get(key)
            if actual != expected:
                print(f"  FAIL  {name} — {key}: expected {expected!r}, got {actual!r}")
                failed += 1
                return None

        print(f"  OK    {name}")
        passed += 1
        return data

    except httpx.ConnectError:
        print(f"  FAIL  {name} — connection refused (is the server running?)")
        failed += 1
    except Exception as e:
        print(f"  FAIL  {name} — {type(e).__name__}: {e}")
        failed += 1
    return None


def wait_terminal(timeout: float = 10.0) -> dict:
    deadline = time.time() + timeout
    data = {}
    while time.time() < deadline:
        data = httpx.get(f"{BASE}/state", timeout=TIMEOUT).json()
        if data.get("state") in ("success", "error"):
            break
        time.sleep(0.2)
    return data


def main():
    global passed, failed
    print(f"\nIntegration tests against {BASE}\n")
    print("--- Health & Settings ---")
    test("GET /health", "GET", "/health", None, {"api": True})
    test("POST /settings/host (invalid)", "POST", "/settings/host", {"host": "192.168.1.256"},
         {"field": "host"}, expect_status=400)
    test("POST /settings/host", "POST", "/settings/host", {"host": "127.0.0.1"}, {"host": "127.0.0.1"})

    print("\n--- Recognition ---")
    test("POST /reset (idle)", "POST", "/reset")
    test("POST /submit", "POST", "/submit", {"image": TINY_JPEG}, {"ok": True})
    final = wait_terminal()
    if final.get("state") == "success":
        print(f"  OK    recognition -> {final.get('text')!r}")
        passed += 1
    else:
        print(f"  FAIL  recognition -> {final}")
        failed += 1
    test("POST /reset", "POST", "/reset", None, {"ok": True})
    test("GET /state (idle)", "GET", "/state", None, {"state": "idle"})

    print("\n--- Cleanup ---")
    test("POST /settings/reset", "POST", "/settings/reset")

    total = passed + failed
    print(f"\n{'='*40}")
    print(f"  {passed}/{total} passed, {failed} failed")
    print(f"{'='*40}\n")

    sys.exit(1 if failed else 0)


if __name__ == "__main__":
    main()
