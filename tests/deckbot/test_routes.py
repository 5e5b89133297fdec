import pytest
from unittest.mock import AsyncMock, MagicMock
from fastapi import FastAPI
from fastapi.testclient import TestClient

from deckbot.main import app as main_app
from deckbot.models import DrawOutcome, DrawStatus, Session
from deckbot.routers.ingress import router as ingress_router
from deckbot.routers.ops import router as ops_router

INGRESS_HEADERS = {"X-Internal-Auth": "local-dev-secret"}
OPS_HEADERS = {"X-Ops-Key": "local-ops-key"}


@pytest.fixture
def fake_bot():
    bot = MagicMock()
    bot.handle_message_event = AsyncMock(return_value=None)
    bot.session_state.current.return_value = None
    return bot


@pytest.fixture
def client(settings, fake_bot):
    app = FastAPI()
    app.include_router(ingress_router)
    app.include_router(ops_router)
    app.state.settings = settings
    app.state.bot = fake_bot
    return TestClient(app)


def test_routes_registered():
    """Every route answers on the real app (auth/validation errors, never 404)."""
    client = TestClient(main_app)
    assert client.get("/ping").status_code != 404
    assert client.post("/ingress/message", json={}).status_code == 422
    assert client.get("/ops/session").status_code == 422
    assert client.post("/ops/intro").status_code == 422
    assert client.get("/no-such-route").status_code == 404


def test_ingress_rejects_bad_key(client):
    response = client.post("/ingress/message", json={"channel_id": "C", "message_id": "1"},
                           headers={"X-Internal-Auth": "wrong"})
    assert response.status_code == 403


def test_ingress_validates_payload(client):
    response = client.post("/ingress/message", json={"bad": "payload"}, headers=INGRESS_HEADERS)
    assert response.status_code == 422


def test_ingress_forwards_event(client, fake_bot):
    fake_bot.handle_message_event.return_value = DrawOutcome(
        status=DrawStatus.DRAWN, actor_key="U1", card_id="sun", hand=["sun"])

    response = client.post("/ingress/message", headers=INGRESS_HEADERS, json={
        "channel_id": "C-TEST",
        "thread_id": "500",
        "message_id": "501",
        "user_id": "U1",
        "content": "draw",
    })

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.json()["outcome"]["card_id"] == "sun"

    event = fake_bot.handle_message_event.await_args.args[0]
    assert event.thread_ts == "500"
    assert event.ts == "501"
    assert event.is_bot is False


def test_ingress_ignored_event(client):
    response = client.post("/ingress/message", headers=INGRESS_HEADERS,
                           json={"channel_id": "C-TEST", "message_id": "1", "content": "hi"})
    assert response.json() == {"status": "ignored"}


def test_ops_requires_key(client):
    assert client.get("/ops/session").status_code == 422
    assert client.get("/ops/session", headers={"X-Ops-Key": "nope"}).status_code == 403


def test_ops_session_reports_current(client, fake_bot):
    assert client.get("/ops/session", headers=OPS_HEADERS).json() == {"status": "empty"}

    fake_bot.session_state.current.return_value = Session(channel_id="C-TEST", message_ts="42")
    body = client.get("/ops/session", headers=OPS_HEADERS).json()
    assert body == {"status": "active", "session": {"channelId": "C-TEST", "messageTs": "42"}}


def test_ops_intro_starts_sequence(client, fake_bot):
    response = client.post("/ops/intro", headers=OPS_HEADERS)
    assert response.json() == {"status": "started"}
    fake_bot.begin_session.assert_called_once()


def test_ping_without_discord_is_unhealthy():
    # No lifespan here, so no gateway client was ever attached
    response = TestClient(main_app).get("/ping")
    assert response.status_code == 500
    assert response.json()["discord"] == "disconnected"
