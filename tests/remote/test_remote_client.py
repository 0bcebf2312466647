"""Tests for the remote generation client."""

from __future__ import annotations

import http.client
import io
import json
from urllib.error import HTTPError, URLError

import pytest

from qtest.errors import RemoteProtocolError, TransportError
from qtest.models import GenerationOptions
from qtest.remote import client as client_module
from qtest.remote import RemoteGenerationClient
from qtest.remote.client import parse_response


class FakeResponse:
    def __init__(self, payload) -> None:
        self._payload = payload

    def read(self) -> bytes:
        if isinstance(self._payload, bytes):
            return self._payload
        return json.dumps(self._payload).encode("utf-8")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        return False


def test_generate_posts_payload(monkeypatch, make_file) -> None:
    captured = {}

    def fake_urlopen(request, timeout):
        captured["url"] = request.full_url
        captured["method"] = request.get_method()
        captured["timeout"] = timeout
        captured["payload"] = json.loads(request.data.decode("utf-8"))
        return FakeResponse(
            {
                "success": True,
                "generatedTest": "describe('x', () => {});",
                "metadata": {"method": "cline"},
            }
        )

    monkeypatch.setattr(client_module, "urlopen", fake_urlopen)
    client = RemoteGenerationClient("http://example.test/", timeout=5)
    file = make_file("math.js", "export function add() {}", relative_path="src/math.js")

    result = client.generate(file, "vitest", GenerationOptions(generate_edge_cases=False))

    assert result.content == "describe('x', () => {});"
    assert result.method == "cline"
    assert captured["url"] == "http://example.test/analyze"
    assert captured["method"] == "POST"
    assert captured["timeout"] == 5
    assert captured["payload"] == {
        "file": {
            "name": "math.js",
            "content": "export function add() {}",
            "path": "src/math.js",
        },
        "framework": "vitest",
        "options": {"generateEdgeCases": False, "includeSetup": True},
    }


def test_http_error_becomes_protocol_error(monkeypatch, make_file) -> None:
    def fake_urlopen(request, timeout):
        body = io.BytesIO(json.dumps({"error": "Agent crashed"}).encode("utf-8"))
        raise HTTPError(request.full_url, 500, "Internal Server Error", {}, body)

    monkeypatch.setattr(client_module, "urlopen", fake_urlopen)
    client = RemoteGenerationClient("http://example.test")

    with pytest.raises(RemoteProtocolError) as excinfo:
        client.generate(make_file("a.js"), "jest")

    assert excinfo.value.status == 500
    assert excinfo.value.message == "Agent crashed"


def test_connection_refused_is_flagged(monkeypatch, make_file) -> None:
    def fake_urlopen(request, timeout):
        raise URLError(ConnectionRefusedError(111, "Connection refused"))

    monkeypatch.setattr(client_module, "urlopen", fake_urlopen)
    client = RemoteGenerationClient("http://127.0.0.1:9")

    with pytest.raises(TransportError) as excinfo:
        client.generate(make_file("a.js"), "jest")

    assert excinfo.value.refused is True


def test_timeout_is_a_transport_error(monkeypatch, make_file) -> None:
    def fake_urlopen(request, timeout):
        raise TimeoutError("timed out")

    monkeypatch.setattr(client_module, "urlopen", fake_urlopen)
    client = RemoteGenerationClient("http://example.test")

    with pytest.raises(TransportError) as excinfo:
        client.generate(make_file("a.js"), "jest")

    assert excinfo.value.refused is False


@pytest.mark.parametrize(
    "raw, message",
    [
        (b"not json", "Server returned invalid JSON"),
        (b'{"success": true}', "Server returned success but no test content"),
        (b'{"success": true, "generatedTest": ""}', "Server returned success but no test content"),
        (b'{"success": false, "error": "quota"}', "quota"),
        (b"[1, 2]", "Server returned an unexpected payload"),
    ],
)
def test_parse_response_rejects_unusable_bodies(raw: bytes, message: str) -> None:
    with pytest.raises(RemoteProtocolError) as excinfo:
        parse_response(raw)
    assert excinfo.value.message == message


def test_parse_response_defaults_method() -> None:
    result = parse_response(b'{"success": true, "generatedTest": "test();"}')
    assert result.method == "API"


@pytest.mark.parametrize(
    "error",
    [http.client.IncompleteRead(b"partial"), http.client.RemoteDisconnected("closed")],
)
def test_truncated_response_is_a_transport_error(monkeypatch, make_file, error) -> None:
    class BrokenResponse(FakeResponse):
        def read(self) -> bytes:
            raise error

    monkeypatch.setattr(client_module, "urlopen", lambda request, timeout: BrokenResponse({}))
    client = RemoteGenerationClient("http://example.test")

    with pytest.raises(TransportError) as excinfo:
        client.generate(make_file("a.js"), "jest")

    assert excinfo.value.refused is False
