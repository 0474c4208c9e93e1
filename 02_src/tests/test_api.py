"""Tests for the HTTP and WebSocket API."""

import pytest
from fastapi.testclient import TestClient

from messenger.api import create_fastapi_app
from messenger.app import Application

SEED = [
    {"id": "alice", "phoneNumber": "+15550001", "name": "Alice"},
    {"id": "bob", "phoneNumber": "+15550002", "name": "Bob"},
    {"id": "carol", "phoneNumber": "+15550003", "name": "Carol"},
]


def as_user(user_id: str) -> dict:
    return {"X-User-Id": user_id}


@pytest.fixture
def client():
    application = Application(db_path=":memory:", delivery_delay=0.01)
    with TestClient(create_fastapi_app(application)) as test_client:
        response = test_client.post("/api/control/users", json=SEED)
        assert response.status_code == 201
        yield test_client


def send(client: TestClient, sender: str, recipient: str, text: str = "hi") -> dict:
    response = client.post(
        "/api/chat/send",
        json={"recipientId": recipient, "text": text},
        headers=as_user(sender),
    )
    assert response.status_code == 201, response.text
    return response.json()


class TestSendAndHistory:
    """Tests for sending and reading messages."""

    def test_send_and_fetch(self, client):
        message = send(client, "alice", "bob", "hello bob")
        assert message["status"] == "sent"
        assert message["senderId"] == "alice"

        chats = client.get("/api/chat/", headers=as_user("bob")).json()
        assert chats[0]["unreadCount"] == 1
        assert chats[0]["otherParticipant"]["id"] == "alice"

        history = client.get("/api/chat/alice", headers=as_user("bob")).json()
        assert [m["text"] for m in history] == ["hello bob"]
        assert history[0]["status"] == "read"

        chats = client.get("/api/chat/", headers=as_user("bob")).json()
        assert chats[0]["unreadCount"] == 0

    def test_send_media(self, client):
        response = client.post(
            "/api/chat/send",
            json={
                "recipientId": "bob",
                "type": "image",
                "media": {"url": "https://cdn/cat.png", "mimeType": "image/png", "size": 5},
            },
            headers=as_user("alice"),
        )
        assert response.status_code == 201
        assert response.json()["media"]["url"] == "https://cdn/cat.png"

    def test_missing_identity(self, client):
        response = client.post("/api/chat/send", json={"recipientId": "bob", "text": "x"})
        assert response.status_code == 401

    def test_validation_error(self, client):
        response = client.post(
            "/api/chat/send",
            json={"recipientId": "bob", "text": "   "},
            headers=as_user("alice"),
        )
        assert response.status_code == 400

    def test_unknown_recipient(self, client):
        response = client.post(
            "/api/chat/send",
            json={"recipientId": "ghost", "text": "x"},
            headers=as_user("alice"),
        )
        assert response.status_code == 404

    def test_forward_reports_successes(self, client):
        original = send(client, "bob", "alice", "pass it on")
        response = client.post(
            "/api/chat/forward",
            json={"messageId": original["id"], "recipientIds": ["carol", "ghost"]},
            headers=as_user("alice"),
        )
        assert response.status_code == 201
        assert response.json()["count"] == 1


class TestMessageActions:
    """Tests for status, reactions and deletion routes."""

    def test_status_update(self, client):
        message = send(client, "alice", "bob")
        response = client.put(
            "/api/chat/status",
            json={"messageId": message["id"], "status": "delivered"},
            headers=as_user("bob"),
        )
        assert response.status_code == 200
        assert response.json()["status"] == "delivered"

    def test_sender_status_update_forbidden(self, client):
        message = send(client, "alice", "bob")
        response = client.put(
            "/api/chat/status",
            json={"messageId": message["id"], "status": "read"},
            headers=as_user("alice"),
        )
        assert response.status_code == 403

    def test_reactions(self, client):
        message = send(client, "alice", "bob")
        for emoji in ("👍", "👎"):
            response = client.post(
                "/api/chat/reaction",
                json={"messageId": message["id"], "emoji": emoji},
                headers=as_user("bob"),
            )
            assert response.status_code == 200
        assert response.json()["reactions"] == [{"userId": "bob", "emoji": "👎"}]

        response = client.request(
            "DELETE",
            "/api/chat/reaction",
            json={"messageId": message["id"]},
            headers=as_user("bob"),
        )
        assert response.json()["reactions"] == []

    def test_delete_for_everyone(self, client):
        message = send(client, "alice", "bob", "oops")
        response = client.post(
            "/api/chat/message/delete",
            json={"messageId": message["id"], "deleteForEveryone": True},
            headers=as_user("bob"),
        )
        assert response.status_code == 403

        response = client.post(
            "/api/chat/message/delete",
            json={"messageId": message["id"], "deleteForEveryone": True},
            headers=as_user("alice"),
        )
        assert response.status_code == 200

        history = client.get("/api/chat/alice", headers=as_user("bob")).json()
        assert history[0]["text"] == "This message was deleted"
        assert history[0]["isDeleted"] is True


class TestChatsAndContacts:
    """Tests for chat list management and contacts."""

    def test_search_and_start(self, client):
        response = client.post(
            "/api/chat/search", json={"phoneNumber": "+15550003"}, headers=as_user("alice")
        )
        assert response.status_code == 200
        assert response.json()["user"]["id"] == "carol"
        assert response.json()["chatId"] is None

        response = client.post("/api/chat/start", json={"userId": "carol"}, headers=as_user("alice"))
        assert response.status_code == 200
        chat_id = response.json()["id"]

        response = client.post(
            "/api/chat/search", json={"phoneNumber": "+15550003"}, headers=as_user("alice")
        )
        assert response.json()["chatId"] == chat_id

    def test_archive_hide_clear(self, client):
        message = send(client, "alice", "bob")
        chat_id = message["chatId"]

        response = client.post("/api/chat/archive", json={"chatId": chat_id}, headers=as_user("bob"))
        assert response.json()["archived"] is True
        archived = client.get("/api/chat/?archived=true", headers=as_user("bob")).json()
        assert [c["id"] for c in archived] == [chat_id]

        response = client.post("/api/chat/delete", json={"chatId": chat_id}, headers=as_user("alice"))
        assert response.status_code == 200
        assert client.get("/api/chat/", headers=as_user("alice")).json() == []

        response = client.post("/api/chat/clear", json={"chatId": chat_id}, headers=as_user("carol"))
        assert response.status_code == 403

    def test_contact_names(self, client):
        response = client.post(
            "/api/chat/contact/save",
            json={"contactUserId": "bob", "savedName": "Bobby"},
            headers=as_user("alice"),
        )
        assert response.status_code == 200
        assert response.json()["savedName"] == "Bobby"

        response = client.post(
            "/api/chat/contact/delete", json={"contactUserId": "bob"}, headers=as_user("alice")
        )
        assert response.status_code == 200
        response = client.post(
            "/api/chat/contact/delete", json={"contactUserId": "bob"}, headers=as_user("alice")
        )
        assert response.status_code == 404


class TestRealtime:
    """Tests for the WebSocket transport."""

    def test_join_and_receive_new_message(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.send_json({"event": "join", "data": {"userId": "bob"}})
            assert ws.receive_json()["event"] == "joined"

            message = send(client, "alice", "bob", "live")

            frame = ws.receive_json()
            assert frame["event"] == "newMessage"
            assert frame["data"]["id"] == message["id"]

    def test_commands_require_join(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.send_json({"event": "typing", "data": {"recipientId": "bob"}})
            assert ws.receive_json() == {"event": "error", "data": {"message": "Join first"}}

            ws.send_json({"event": "ping"})
            assert ws.receive_json() == {"event": "pong", "data": {}}

    def test_unknown_user_join(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.send_json({"event": "join", "data": {"userId": "ghost"}})
            frame = ws.receive_json()
            assert frame["event"] == "error"

    def test_typing_relay(self, client):
        with client.websocket_connect("/ws") as bob_ws:
            bob_ws.send_json({"event": "join", "data": {"userId": "bob"}})
            bob_ws.receive_json()
            with client.websocket_connect("/ws") as alice_ws:
                alice_ws.send_json({"event": "join", "data": {"userId": "alice"}})
                alice_ws.receive_json()
                alice_ws.send_json({"event": "typing", "data": {"recipientId": "bob"}})

                frame = bob_ws.receive_json()
                assert frame == {
                    "event": "typing",
                    "data": {"senderId": "alice", "isTyping": True},
                }


class TestObservabilityAndControl:
    """Tests for trace events and control routes."""

    def test_trace_events(self, client):
        send(client, "alice", "bob")
        events = client.get("/api/trace-events?event_type=message_sent").json()
        assert len(events) == 1
        assert events[0]["actor"] == "alice"

    def test_invalid_after(self, client):
        assert client.get("/api/trace-events?after=yesterday").status_code == 422

    def test_presence(self, client):
        assert client.get("/api/presence").json() == {"online": [], "sessions": {}}
        with client.websocket_connect("/ws") as ws:
            ws.send_json({"event": "join", "data": {"userId": "bob"}})
            ws.receive_json()
            assert client.get("/api/presence").json() == {
                "online": ["bob"],
                "sessions": {"bob": 1},
            }

    def test_reset(self, client):
        send(client, "alice", "bob")
        assert client.post("/api/control/reset").json() == {"status": "ok"}
        assert client.get("/api/chat/", headers=as_user("alice")).json() == []

    def test_duplicate_phone_rejected(self, client):
        response = client.post(
            "/api/control/users", json=[{"id": "mallory", "phoneNumber": "+15550001"}]
        )
        assert response.status_code == 400

    def test_seed_batch_is_all_or_nothing(self, client):
        response = client.post(
            "/api/control/users",
            json=[
                {"id": "dave", "phoneNumber": "+15550004", "name": "Dave"},
                {"id": "erin", "phoneNumber": "+15550001", "name": "Erin"},
            ],
        )
        assert response.status_code == 400

        response = client.post(
            "/api/chat/search", json={"phoneNumber": "+15550004"}, headers=as_user("alice")
        )
        assert response.status_code == 404

    def test_seed_duplicate_phone_in_batch(self, client):
        response = client.post(
            "/api/control/users",
            json=[
                {"phoneNumber": "+15550009"},
                {"phoneNumber": "+15550009"},
            ],
        )
        assert response.status_code == 400

    def test_seed_update_keeps_camel_case_fields(self, client):
        response = client.post(
            "/api/control/users",
            json=[
                {
                    "id": "bob",
                    "phoneNumber": "+15550002",
                    "name": "Robert",
                    "lastSeenVisibility": "nobody",
                }
            ],
        )
        assert response.status_code == 201
        assert response.json()[0]["name"] == "Robert"

    def test_sim_not_configured(self, client):
        assert client.post("/api/control/sim/start").status_code == 404
