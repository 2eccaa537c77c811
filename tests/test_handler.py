import importlib
import json
from pathlib import Path

# Target under test: src/handler.lambda_handler
# We monkeypatch:
#  - handler.build_session (HTTP to OneSignal / Alexa)
#  - ONESIGNAL_APP_ID / ATTRIBUTES_TABLE environment

EVENTS = Path(__file__).parent / "events"


class StubResponse:
    def __init__(self, status_code=200, body=None):
        self.status_code = status_code
        self.ok = 200 <= status_code < 300
        self._body = body

    def json(self):
        return self._body


class StubHttp:
    def __init__(self, responses=None):
        self.calls = []
        self._responses = list(responses or [])

    def request(self, method, url, json=None, headers=None, timeout=None):
        self.calls.append({"method": method, "url": url, "json": json, "timeout": timeout})
        if self._responses:
            return self._responses.pop(0)
        return StubResponse(200, {"success": True})


def _load_event(name):
    with open(EVENTS / name, "r", encoding="utf-8") as f:
        return json.load(f)


def _fresh_handler(monkeypatch, stub_http):
    handler = importlib.reload(importlib.import_module("handler"))
    monkeypatch.setattr(handler, "build_session", lambda: stub_http)
    return handler


def test_launch_registers_and_returns_session_attributes(monkeypatch):
    monkeypatch.setenv("ONESIGNAL_APP_ID", "app-123")
    monkeypatch.setenv("HTTP_TIMEOUT_SECONDS", "5")
    monkeypatch.delenv("ATTRIBUTES_TABLE", raising=False)

    stub = StubHttp(responses=[StubResponse(200, {"success": True, "id": "abc"})])
    handler = _fresh_handler(monkeypatch, stub)

    resp = handler.lambda_handler(_load_event("launch_request.json"), None)

    assert resp["version"] == "1.0"
    assert resp["sessionAttributes"] == {"onesignal_sdk": {"userId": "abc"}}
    assert len(stub.calls) == 1
    assert stub.calls[0]["json"]["app_id"] == "app-123"
    assert stub.calls[0]["timeout"] == 5.0


def test_host_is_built_once_per_container(monkeypatch):
    monkeypatch.setenv("ONESIGNAL_APP_ID", "app-123")
    monkeypatch.delenv("HTTP_TIMEOUT_SECONDS", raising=False)
    monkeypatch.delenv("ATTRIBUTES_TABLE", raising=False)

    handler = _fresh_handler(monkeypatch, StubHttp())

    assert handler.get_skill_builder() is handler.get_skill_builder()
    assert handler._adapter.state.app_id == "app-123"


def test_message_received_sends_notification(monkeypatch):
    monkeypatch.setenv("ONESIGNAL_APP_ID", "app-123")
    monkeypatch.delenv("HTTP_TIMEOUT_SECONDS", raising=False)
    monkeypatch.delenv("ATTRIBUTES_TABLE", raising=False)

    stub = StubHttp()
    handler = _fresh_handler(monkeypatch, stub)

    resp = handler.lambda_handler(_load_event("message_received.json"), None)

    assert resp["version"] == "1.0"
    assert len(stub.calls) == 1
    assert stub.calls[0]["url"].endswith("/v2/notifications")


def test_misconfiguration_returns_empty_response(monkeypatch):
    monkeypatch.delenv("ONESIGNAL_APP_ID", raising=False)
    monkeypatch.delenv("ONESIGNAL_SECRET_NAME", raising=False)

    stub = StubHttp()
    handler = _fresh_handler(monkeypatch, stub)

    resp = handler.lambda_handler(_load_event("launch_request.json"), None)

    assert resp == {"version": "1.0", "response": {}}
    assert stub.calls == []


def test_invalid_timeout_returns_empty_response(monkeypatch):
    monkeypatch.setenv("ONESIGNAL_APP_ID", "app-123")
    monkeypatch.setenv("HTTP_TIMEOUT_SECONDS", "soon")

    stub = StubHttp()
    handler = _fresh_handler(monkeypatch, stub)

    resp = handler.lambda_handler(_load_event("launch_request.json"), None)

    assert resp == {"version": "1.0", "response": {}}
    assert stub.calls == []
