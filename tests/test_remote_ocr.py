from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

import httpx
from fastapi.testclient import TestClient

from photo_ocr.adapters.recognition.http_ocr import RemoteOCR
from photo_ocr.orchestrator.contracts import Error, Idle, ServiceEndpoint, Success
from photo_ocr.orchestrator.errors import NetworkError, ServiceError
from photo_ocr.orchestrator.state_machine import UploadStateMachine
from photo_ocr.scripts.fake_ocr_server import create_app as create_fake_server
from photo_ocr.services.settings_store import PreferencesStore
from photo_ocr.services.staging import stage_image
from photo_ocr.services.status_store import StatusStore


def _client(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


class TestRemoteOCR(unittest.TestCase):
    def setUp(self) -> None:
        self.status = StatusStore()
        self.endpoint = lambda: ServiceEndpoint(host="10.0.0.2")

    def test_posts_multipart_image_and_parses_text(self) -> None:
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["url"] = str(request.url)
            seen["content_type"] = request.headers["content-type"]
            seen["body"] = request.read()
            return httpx.Response(200, json={"text": "hello"})

        ocr = RemoteOCR(self.status, self.endpoint, client=_client(handler))
        result = ocr.recognize(b"\xff\xd8jpeg-bytes", filename="JPEG_20240101_000000_x.jpg")

        self.assertEqual(result.text, "hello")
        self.assertEqual(seen["method"], "POST")
        self.assertEqual(seen["url"], "http://10.0.0.2:5000/extract_text")
        self.assertTrue(seen["content_type"].startswith("multipart/form-data"))
        self.assertIn(b'name="image"', seen["body"])
        self.assertIn(b'filename="JPEG_20240101_000000_x.jpg"', seen["body"])
        self.assertIn(b"\xff\xd8jpeg-bytes", seen["body"])

    def test_non_2xx_raises_service_error_with_status_and_body(self) -> None:
        ocr = RemoteOCR(
            self.status, self.endpoint,
            client=_client(lambda req: httpx.Response(500, text="model crashed")),
        )
        with self.assertRaises(ServiceError) as ctx:
            ocr.recognize(b"img")
        self.assertEqual(ctx.exception.status_code, 500)
        self.assertIn("500", str(ctx.exception))
        self.assertIn("model crashed", str(ctx.exception))

    def test_error_without_body_still_has_status(self) -> None:
        ocr = RemoteOCR(self.status, self.endpoint, client=_client(lambda req: httpx.Response(404)))
        with self.assertRaises(ServiceError) as ctx:
            ocr.recognize(b"img")
        self.assertIn("404", str(ctx.exception))

    def test_transport_failure_raises_network_error(self) -> None:
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        ocr = RemoteOCR(self.status, self.endpoint, client=_client(handler))
        with self.assertRaises(NetworkError) as ctx:
            ocr.recognize(b"img")
        self.assertIn("connection refused", str(ctx.exception))

    def test_timeout_raises_network_error(self) -> None:
        def handler(request):
            raise httpx.ReadTimeout("too slow", request=request)

        ocr = RemoteOCR(self.status, self.endpoint, client=_client(handler))
        with self.assertRaises(NetworkError) as ctx:
            ocr.recognize(b"img")
        self.assertIn("timed out", str(ctx.exception))

    def test_malformed_json_raises_service_error(self) -> None:
        ocr = RemoteOCR(self.status, self.endpoint, client=_client(lambda req: httpx.Response(200, text="<html>")))
        with self.assertRaises(ServiceError):
            ocr.recognize(b"img")
        ocr = RemoteOCR(self.status, self.endpoint, client=_client(lambda req: httpx.Response(200, json=["x"])))
        with self.assertRaises(ServiceError):
            ocr.recognize(b"img")

    def test_null_text_is_allowed(self) -> None:
        ocr = RemoteOCR(self.status, self.endpoint, client=_client(lambda req: httpx.Response(200, json={"text": None})))
        self.assertIsNone(ocr.recognize(b"img").text)

    def test_endpoint_is_resolved_per_call(self) -> None:
        hosts = []

        def handler(request):
            hosts.append(request.url.host)
            return httpx.Response(200, json={"text": ""})

        with tempfile.TemporaryDirectory() as tmp:
            store = PreferencesStore(Path(tmp) / "prefs.json")
            ocr = RemoteOCR(self.status, store.get_endpoint, client=_client(handler))
            store.set_host("192.168.1.5")
            ocr.recognize(b"img")
            store.set_host("192.168.1.6")
            ocr.recognize(b"img")
        self.assertEqual(hosts, ["192.168.1.5", "192.168.1.6"])


class TestEndToEndWithFakeServer(unittest.TestCase):
    def setUp(self) -> None:
        self.status = StatusStore()
        self._tmp = tempfile.TemporaryDirectory()
        self.cache = Path(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _run(self, server_app):
        with TestClient(server_app) as client:
            ocr = RemoteOCR(self.status, lambda: ServiceEndpoint(host="127.0.0.1"), client=client)
            machine = UploadStateMachine(ocr, self.status)
            try:
                machine.submit(stage_image(b"\xff\xd8fake-jpeg", cache_dir=self.cache))
                state = machine.wait(10)
                return machine, state
            finally:
                machine.shutdown()

    def test_success_then_reset(self) -> None:
        server = create_fake_server(text="hello")
        machine, state = self._run(server)
        self.assertEqual(state, Success(text="hello"))
        self.assertEqual(len(server.state.received), 1)
        name, content_type, size = server.state.received[0]
        self.assertTrue(name.startswith("JPEG_"))
        self.assertEqual(content_type, "image/jpeg")
        self.assertEqual(size, len(b"\xff\xd8fake-jpeg"))

        self.assertTrue(machine.reset())
        self.assertEqual(machine.state, Idle())

    def test_server_error_becomes_error_state(self) -> None:
        _machine, state = self._run(create_fake_server(fail_status=500))
        self.assertIsInstance(state, Error)
        self.assertIn("500", state.message)
        self.assertIn("recognition backend unavailable", state.message)


if __name__ == "__main__":
    unittest.main()
