import json

import pytest
from fastapi.testclient import TestClient

from pagebot.core.config import settings
from pagebot.infrastructure.messenger.mock_platform import MockMessengerPlatform
from pagebot.infrastructure.messenger.webhook_verify import sign_body, verify_post_signature
from pagebot.main import app
from pagebot.wiring.dependencies import get_config_store, get_event_router, get_message_platform

from conftest import FakeConfigStore


class RecordingRouter:
    def __init__(self) -> None:
        self.batches: list[list] = []

    async def dispatch_all(self, events) -> None:
        self.batches.append(list(events))


@pytest.fixture
def recording_router():
    router = RecordingRouter()
    app.dependency_overrides[get_event_router] = lambda: router
    yield router
    app.dependency_overrides.clear()


@pytest.fixture
def client():
    return TestClient(app)


def _message_body(text="price"):
    return {
        "object": "page",
        "entry": [{"id": "page_1", "messaging": [{"sender": {"id": "u1"}, "message": {"mid": "m1", "text": text}}]}],
    }


def test_verify_handshake(client, monkeypatch):
    monkeypatch.setattr(settings, "VERIFY_TOKEN", "secret-token")
    params = {"hub.mode": "subscribe", "hub.verify_token": "secret-token", "hub.challenge": "12345"}
    resp = client.get("/webhook", params=params)
    assert resp.status_code == 200
    assert resp.text == "12345"

    params["hub.verify_token"] = "wrong"
    assert client.get("/webhook", params=params).status_code == 403


def test_verify_rejects_when_token_unset(client, monkeypatch):
    monkeypatch.setattr(settings, "VERIFY_TOKEN", "")
    params = {"hub.mode": "subscribe", "hub.verify_token": "", "hub.challenge": "1"}
    assert client.get("/webhook", params=params).status_code == 403


def test_post_dispatches_events_in_background(client, recording_router):
    resp = client.post("/webhook", json=_message_body())
    assert resp.status_code == 200
    [batch] = recording_router.batches
    assert batch[0].text == "price"


def test_post_rejects_bad_json(client, recording_router):
    resp = client.post("/webhook", content=b"{not json", headers={"Content-Type": "application/json"})
    assert resp.status_code == 400


def test_post_unsupported_object(client, recording_router):
    resp = client.post("/webhook", json={"object": "user", "entry": []})
    assert resp.status_code == 404
    assert recording_router.batches == []


def test_post_checks_signature_outside_dev(client, recording_router, monkeypatch):
    monkeypatch.setattr(settings, "ENV", "prod")
    monkeypatch.setattr(settings, "META_APP_SECRET", "app-secret")
    body = json.dumps(_message_body()).encode("utf-8")

    unsigned = client.post("/webhook", content=body, headers={"Content-Type": "application/json"})
    assert unsigned.status_code == 403

    signed = client.post(
        "/webhook",
        content=body,
        headers={"Content-Type": "application/json", "X-Hub-Signature-256": sign_body(body, "app-secret")},
    )
    assert signed.status_code == 200
    assert len(recording_router.batches) == 1


def test_wrong_signature_rejected_even_in_dev(client, recording_router, monkeypatch):
    monkeypatch.setattr(settings, "META_APP_SECRET", "app-secret")
    body = json.dumps(_message_body()).encode("utf-8")
    resp = client.post(
        "/webhook",
        content=body,
        headers={"Content-Type": "application/json", "X-Hub-Signature-256": "sha256=deadbeef"},
    )
    assert resp.status_code == 403


def test_verify_post_signature_rules():
    body = b"{}"
    assert verify_post_signature(body, sign_body(body, "s"), "s")
    assert not verify_post_signature(body, "sha1=abc", "s")
    assert not verify_post_signature(body, None, "s")
    assert not verify_post_signature(body, None, None)
    assert verify_post_signature(body, None, None, allow_unsigned=True)


def test_health_and_subscriptions(client):
    app.dependency_overrides[get_config_store] = lambda: FakeConfigStore()
    app.dependency_overrides[get_message_platform] = lambda: MockMessengerPlatform()
    try:
        assert client.get("/health").json() == {"status": "ok"}
        assert client.get("/subscriptions").json() == [
            {"page_id": "page_1", "subscribed_fields": [], "has_feed": False}
        ]
        assert client.post("/subscriptions").json() == [{"page_id": "page_1", "success": True}]
    finally:
        app.dependency_overrides.clear()


def test_health_reports_unreachable_store(client):
    class DownStore(FakeConfigStore):
        async def ping(self) -> bool:
            return False

    app.dependency_overrides[get_config_store] = lambda: DownStore()
    try:
        assert client.get("/health").status_code == 503
    finally:
        app.dependency_overrides.clear()
