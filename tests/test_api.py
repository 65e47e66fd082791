"""HTTP tests: routing, session header, status codes and camelCase bodies."""

import pytest
from fastapi.testclient import TestClient

from reddoor.container import build_container
from reddoor.main import create_app
from reddoor.sessions import InMemorySessionStore

from tests.conftest import HOUR_MS, guest, make_session


@pytest.fixture
def container(clock):
    sessions = InMemorySessionStore()
    for session in (
        make_session("alice"),
        make_session("bob"),
        make_session("carol", mode="cruise"),
        make_session("minor", age_verified=False),
        guest("ga"),
        guest("gb"),
    ):
        sessions.put(session)
    return build_container(clock=clock, sessions=sessions)


@pytest.fixture
def client(container):
    with TestClient(create_app(container=container)) as test_client:
        yield test_client


def as_user(token):
    return {"x-session-token": token}


def send(client, token, chat_kind, to_key, text="hello", **extra):
    body = {"chatKind": chat_kind, "toKey": to_key, "text": text, **extra}
    return client.post("/chat/send", json=body, headers=as_user(token))


def test_healthz(client):
    resp = client.get("/healthz")
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"
    assert resp.json()["persistence"] is None


def test_request_id_is_echoed(client):
    resp = client.get("/healthz", headers={"x-request-id": "req-1"})
    assert resp.headers["x-request-id"] == "req-1"


class TestSessionHeader:
    def test_missing_token(self, client):
        resp = client.get("/chat/threads", params={"chatKind": "cruise"})
        assert resp.status_code == 401
        assert resp.json() == {"error": {"code": "INVALID_SESSION", "message": "Invalid session."}}

    def test_unknown_token(self, client):
        resp = client.get("/favorites", headers=as_user("nobody"))
        assert resp.status_code == 401

    def test_age_gate(self, client):
        resp = send(client, "minor", "cruise", "session:ga")
        assert resp.status_code == 403
        body = resp.json()["error"]
        assert body["code"] == "AGE_GATE_REQUIRED"
        assert body["context"] == {"minimumAge": 18}


class TestMatchingApi:
    def test_mutual_like_creates_match(self, client):
        first = client.post(
            "/matching/swipe", json={"toUserId": "bob", "direction": "like"}, headers=as_user("alice")
        )
        second = client.post(
            "/matching/swipe", json={"toUserId": "alice", "direction": "like"}, headers=as_user("bob")
        )

        assert first.status_code == 200
        assert first.json()["matchCreated"] is False
        assert second.json()["matchCreated"] is True
        assert second.json()["match"]["userA"] == "alice"

        matches = client.get("/matching/matches", headers=as_user("alice")).json()["matches"]
        assert [m["matchId"] for m in matches] == [second.json()["match"]["matchId"]]

    def test_cruise_mode_cannot_swipe(self, client):
        resp = client.post(
            "/matching/swipe", json={"toUserId": "bob", "direction": "like"}, headers=as_user("carol")
        )
        assert resp.status_code == 403
        assert resp.json()["error"]["code"] == "MATCHING_NOT_ALLOWED"

    def test_guest_cannot_swipe(self, client):
        resp = client.post(
            "/matching/swipe", json={"toUserId": "bob", "direction": "like"}, headers=as_user("ga")
        )
        assert resp.status_code == 403
        assert resp.json()["error"]["code"] == "ANONYMOUS_FORBIDDEN"

    def test_bad_direction(self, client):
        resp = client.post(
            "/matching/swipe", json={"toUserId": "bob", "direction": "meh"}, headers=as_user("alice")
        )
        assert resp.status_code == 400


class TestChatApi:
    def test_send_and_list(self, client):
        resp = send(client, "ga", "cruise", "session:gb")

        assert resp.status_code == 200
        message = resp.json()["message"]
        assert message["fromKey"] == "session:ga"
        assert message["chatId"] == "cruise::session:ga::session:gb"
        assert "expiresAtMs" in message
        assert "readAtMs" not in message

        listed = client.get(
            "/chat/messages",
            params={"chatKind": "cruise", "otherKey": "session:ga"},
            headers=as_user("gb"),
        )
        assert [m["messageId"] for m in listed.json()["messages"]] == [message["messageId"]]

    def test_date_chat_requires_match(self, client):
        resp = send(client, "alice", "date", "user:bob")
        assert resp.status_code == 400
        assert resp.json()["error"]["message"] == "Match required before Date chat."

    def test_rate_limit(self, client):
        for _ in range(20):
            assert send(client, "ga", "cruise", "session:gb").status_code == 200

        resp = send(client, "ga", "cruise", "session:gb")
        assert resp.status_code == 429
        assert resp.json()["error"]["context"] == {"limitPerMinute": 20}

    def test_expired_thread_reports_once(self, client, clock):
        send(client, "ga", "cruise", "session:gb")
        clock.advance(72 * HOUR_MS)
        params = {"chatKind": "cruise", "otherKey": "session:ga"}

        first = client.get("/chat/messages", params=params, headers=as_user("gb"))
        second = client.get("/chat/messages", params=params, headers=as_user("gb"))

        assert first.status_code == 410
        assert first.json()["error"]["code"] == "CHAT_EXPIRED"
        assert second.status_code == 200
        assert second.json() == {"messages": []}

    def test_blocked_send(self, client):
        assert client.post("/block", json={"targetKey": "session:ga"}, headers=as_user("gb")).status_code == 200

        resp = send(client, "ga", "cruise", "session:gb")
        assert resp.status_code == 403
        assert resp.json()["error"]["code"] == "USER_BLOCKED"

        blocked = client.get("/blocked", headers=as_user("gb")).json()
        assert blocked == {"blocked": ["session:ga"]}

        client.post("/unblock", json={"targetKey": "session:ga"}, headers=as_user("gb"))
        assert send(client, "ga", "cruise", "session:gb").status_code == 200

    def test_read_receipt(self, client, clock):
        send(client, "ga", "cruise", "session:gb")
        clock.advance(5000)

        receipt = client.post(
            "/chat/read", json={"chatKind": "cruise", "otherKey": "session:ga"}, headers=as_user("gb")
        ).json()
        listed = client.get(
            "/chat/messages",
            params={"chatKind": "cruise", "otherKey": "session:gb"},
            headers=as_user("ga"),
        ).json()

        assert listed["messages"][0]["readAtMs"] == receipt["readAtMs"]

    def test_threads(self, client):
        send(client, "ga", "cruise", "session:gb")
        threads = client.get(
            "/chat/threads", params={"chatKind": "cruise"}, headers=as_user("gb")
        ).json()["threads"]
        assert [t["otherKey"] for t in threads] == ["session:ga"]

    def test_metrics(self, client):
        send(client, "ga", "cruise", "session:gb")
        assert client.get("/chat/metrics").json()["messages"]["sent"] == 1


class TestFavoritesApi:
    def test_toggle_and_list(self, client):
        toggled = client.post(
            "/favorites/toggle", json={"targetUserId": "bob"}, headers=as_user("alice")
        ).json()
        assert toggled == {"targetUserId": "bob", "isFavorite": True, "favorites": ["bob"]}

        listed = client.get("/favorites", headers=as_user("alice")).json()
        assert listed == {"favorites": ["bob"]}

    def test_guest_forbidden(self, client):
        resp = client.get("/favorites", headers=as_user("ga"))
        assert resp.status_code == 403
