"""Tests for the FastAPI surface, using an injected core with a manual scheduler."""

import random
from datetime import timezone

import pytest
from fastapi.testclient import TestClient

from daylog.api.server import app, get_core
from daylog.core.chat import DailyChatCore
from daylog.core.responses import ResponseComposer
from daylog.core.scheduler import ManualReplyScheduler
from daylog.memory.stores import ContentStatusTracker, SessionStore

DAY = "2026-10-17"


@pytest.fixture
def api_scheduler():
    return ManualReplyScheduler()


@pytest.fixture
def client(api_scheduler):
    sessions = SessionStore()
    core = DailyChatCore(
        sessions=sessions,
        statuses=ContentStatusTracker(sessions),
        composer=ResponseComposer(random.Random(11)),
        scheduler=api_scheduler,
        tz=timezone.utc,
    )
    app.dependency_overrides[get_core] = lambda: core
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_bad_day_is_rejected(client):
    resp = client.get("/days/yesterday/messages")
    assert resp.status_code == 400
    assert "YYYY-MM-DD" in resp.json()["detail"]


def test_unknown_mode_is_rejected(client):
    resp = client.put(f"/days/{DAY}/mode", json={"mode": "shout"})
    assert resp.status_code == 422


def test_send_message_then_reply_arrives(client, api_scheduler):
    resp = client.post(f"/days/{DAY}/messages", json={"text": "Long day at the office"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["message"]["content"] == "Long day at the office"
    assert body["message"]["is_user"] is True
    assert body["mode"] == "chat"
    assert body["reply_pending"] is True

    assert len(client.get(f"/days/{DAY}/messages").json()) == 2
    api_scheduler.run_pending()
    messages = client.get(f"/days/{DAY}/messages").json()
    assert len(messages) == 3
    assert messages[-1]["is_user"] is False


def test_log_mode_over_http(client, api_scheduler):
    resp = client.put(f"/days/{DAY}/mode", json={"mode": "log"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["mode"] == "log"
    assert body["notification"]["is_system_notification"] is True
    assert body["notification"]["notification_title"] == "Log Mode"

    again = client.put(f"/days/{DAY}/mode", json={"mode": "log"}).json()
    assert again["notification"] is None

    sent = client.post(f"/days/{DAY}/messages", json={"text": "Bought groceries"}).json()
    assert sent["reply_pending"] is False
    assert api_scheduler.run_pending() == 0


def test_entry_and_status_flow(client):
    status = client.get(f"/days/{DAY}/status").json()
    assert status["entry_action"] == "generate_entry"
    assert status["has_entry"] is False

    client.post(f"/days/{DAY}/messages", json={"text": "Went hiking"})
    entry = client.post(f"/days/{DAY}/entry").json()
    assert entry["action"] == "generate_entry"
    assert entry["body"] == "Went hiking"
    assert entry["title"] == "Saturday, October 17"
    assert entry["message_count"] == 1

    status = client.get(f"/days/{DAY}/status").json()
    assert status["entry_action"] == "view_entry"
    assert status["has_new_messages"] is False

    client.post(f"/days/{DAY}/messages", json={"text": "Pizza after"})
    status = client.get(f"/days/{DAY}/status").json()
    assert status["entry_action"] == "update_entry"
    assert status["user_message_count"] == 2

    status = client.delete(f"/days/{DAY}/entry").json()
    assert status["entry_action"] == "generate_entry"


def test_toggle_ignore_and_remove(client):
    first = client.post(f"/days/{DAY}/messages", json={"text": "keep"}).json()["message"]
    second = client.post(f"/days/{DAY}/messages", json={"text": "drop"}).json()["message"]

    messages = client.post(f"/days/{DAY}/messages/{first['id']}/toggle_ignore").json()
    toggled = [m for m in messages if m["id"] == first["id"]][0]
    assert toggled["is_ignored_in_entry"] is True

    assert client.delete(f"/days/{DAY}/messages/{second['id']}").status_code == 200
    ids = [m["id"] for m in client.get(f"/days/{DAY}/messages").json()]
    assert second["id"] not in ids


def test_summary_and_clear(client, api_scheduler):
    client.post(f"/days/{DAY}/messages", json={"text": "Hike in the morning, work all afternoon"})
    summary = client.post(f"/days/{DAY}/summary").json()
    assert summary["day"] == DAY
    assert "staying active" in summary["summary"]
    assert client.get(f"/days/{DAY}/status").json()["summary_generated"] is True

    assert client.delete(f"/days/{DAY}/messages").json() == {"status": "ok", "day": DAY}
    assert api_scheduler.run_pending() == 0
    assert client.get(f"/days/{DAY}/messages").json() == []
    status = client.get(f"/days/{DAY}/status").json()
    assert status["summary_generated"] is False
    assert status["has_summary"] is True


def test_regenerate(client, api_scheduler):
    assert client.post(f"/days/{DAY}/regenerate").json() == {"scheduled": False}

    client.post(f"/days/{DAY}/messages", json={"text": "hello"})
    api_scheduler.run_pending()
    assert client.post(f"/days/{DAY}/regenerate").json() == {"scheduled": True}
    api_scheduler.run_pending()
    assert len(client.get(f"/days/{DAY}/messages").json()) == 3
