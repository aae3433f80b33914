"""
Tests for the FastAPI surface (api/app.py, routes.py, websocket.py).

The session manager is swapped for one built on a fake provider chain,
so no provider is ever contacted.
"""

import asyncio
import logging

import pytest
from fastapi import WebSocketDisconnect
from fastapi.testclient import TestClient

from mindful.api import routes, websocket
from mindful.api.app import app
from mindful.api.session import SessionManager
from mindful.api.websocket import exercise_endpoint
from mindful.content.exercises import ExerciseDefinition, Phase
from mindful.llm.chain import FALLBACK_REPLY, ProviderChain


class CannedProvider:
    name = "canned"

    def generate(self, prompt):
        return "yeah, I hear you"


class DeadProvider:
    name = "dead"

    def generate(self, prompt):
        raise ConnectionError("offline")


@pytest.fixture
def client(monkeypatch):
    manager = SessionManager(chain=ProviderChain([CannedProvider()]))
    monkeypatch.setattr(routes, "session_manager", manager)
    return TestClient(app)


@pytest.fixture
def quick_exercise(monkeypatch):
    """Two cycles of two 20 ms phases, served for any exercise key."""
    definition = ExerciseDefinition(
        key="quick",
        name="Quick",
        total_cycles=2,
        phases=(Phase("In", 20, "in"), Phase("Out", 20, "out")),
    )
    monkeypatch.setattr(websocket, "get_exercise", lambda key: definition)
    return definition


@pytest.fixture
def session_id(client):
    resp = client.post("/api/session/start", json={"persona": "older_sister", "name": "Ana"})
    assert resp.status_code == 200
    return resp.json()["session_id"]


class TestSessions:
    def test_status(self, client):
        data = client.get("/api/status").json()
        assert data["providers"] == ["canned"]
        assert "friend" in data["personas"]

    def test_start_session(self, client):
        data = client.post("/api/session/start", json={"persona": "older_sister", "name": "Ana"}).json()
        assert data["persona"] == "older_sister"
        assert data["message"].startswith("Hello Ana!")

    def test_start_session_defaults(self, client):
        data = client.post("/api/session/start", json={}).json()
        assert data["persona"] == "friend"

    def test_unknown_persona_falls_back(self, client):
        data = client.post("/api/session/start", json={"persona": "pirate"}).json()
        assert data["persona"] == "friend"

    def test_end_session(self, client, session_id):
        assert client.delete(f"/api/session/{session_id}").status_code == 204
        assert client.get(f"/api/session/{session_id}/messages").status_code == 404
        assert client.delete(f"/api/session/{session_id}").status_code == 404


class TestChat:
    def test_chat_turn(self, client, session_id):
        resp = client.post(f"/api/session/{session_id}/chat", json={"message": "so worried and excited"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["user_message"]["emotion"] == "stressed"
        assert data["user_message"]["sender"] == "user"
        assert data["reply"]["content"] == "yeah, I hear you"
        assert data["reply"]["sender"] == "assistant"
        assert data["reply"]["suggested_actions"]

    def test_messages_log(self, client, session_id):
        for text in ("hi", "feeling down", "thanks"):
            client.post(f"/api/session/{session_id}/chat", json={"message": text})
        log = client.get(f"/api/session/{session_id}/messages").json()
        assert len(log) == 6
        assert [m["sender"] for m in log] == ["user", "assistant"] * 3

    @pytest.mark.parametrize("text", ["", "   ", "\n\t"])
    def test_empty_message_rejected(self, client, session_id, text):
        resp = client.post(f"/api/session/{session_id}/chat", json={"message": text})
        assert resp.status_code == 422
        assert client.get(f"/api/session/{session_id}/messages").json() == []

    def test_unknown_session(self, client):
        assert client.post("/api/session/nope/chat", json={"message": "hi"}).status_code == 404
        assert client.get("/api/session/nope/messages").status_code == 404
        assert client.post("/api/session/nope/persona", json={"persona": "friend"}).status_code == 404

    def test_set_persona(self, client, session_id):
        resp = client.post(f"/api/session/{session_id}/persona", json={"persona": "stoic_bestie"})
        assert resp.json() == {"persona": "stoic_bestie"}

    def test_dead_providers_give_fallback(self, monkeypatch):
        manager = SessionManager(chain=ProviderChain([DeadProvider()]))
        monkeypatch.setattr(routes, "session_manager", manager)
        client = TestClient(app)
        sid = client.post("/api/session/start", json={}).json()["session_id"]
        data = client.post(f"/api/session/{sid}/chat", json={"message": "hello"}).json()
        assert data["reply"]["content"] == FALLBACK_REPLY


class TestExercises:
    def test_catalog(self, client):
        data = client.get("/api/exercises").json()
        assert {ex["key"] for ex in data["breathing"]} == {"four_seven_eight", "box"}
        assert len(data["grounding"]) == 5

    def test_ws_unknown_exercise(self, client):
        with client.websocket_connect("/ws/exercise/nope") as ws:
            msg = ws.receive_json()
            assert msg["type"] == "error"

    def test_ws_first_phase_then_stop(self, client):
        with client.websocket_connect("/ws/exercise/box") as ws:
            first = ws.receive_json()
            assert first["type"] == "phase"
            assert (first["cycle"], first["phase_index"]) == (0, 0)
            assert first["instruction"] == "Breathe in slowly"

            ws.send_json({"type": "stop"})
            cancelled = ws.receive_json()
            assert cancelled["type"] == "cancelled"
            assert 0.0 <= cancelled["progress"] < 100.0

            ws.send_json({"type": "progress"})
            progress = ws.receive_json()
            assert progress["type"] == "progress"
            assert progress["status"] == "cancelled"

    def test_ws_full_run_then_restart(self, client, quick_exercise):
        with client.websocket_connect("/ws/exercise/quick") as ws:
            events = [ws.receive_json() for _ in range(5)]
            assert [e["type"] for e in events] == ["phase"] * 4 + ["complete"]
            assert [(e["cycle"], e["phase_index"]) for e in events[:4]] == [(0, 0), (0, 1), (1, 0), (1, 1)]
            assert [e["progress"] for e in events[:4]] == pytest.approx([0.0, 25.0, 50.0, 75.0], abs=1.0)
            assert events[4]["progress"] == 100.0

            ws.send_json({"type": "restart"})
            again = ws.receive_json()
            assert again["type"] == "phase"
            assert (again["cycle"], again["phase_index"]) == (0, 0)
            assert again["progress"] == pytest.approx(0.0, abs=1.0)

    def test_ws_non_object_frame(self, client):
        with client.websocket_connect("/ws/exercise/box") as ws:
            assert ws.receive_json()["type"] == "phase"

            ws.send_json([])
            assert ws.receive_json()["type"] == "error"

            ws.send_json({"type": "progress"})
            progress = ws.receive_json()
            assert progress["type"] == "progress"
            assert progress["status"] == "running"


class ClosedSocket:
    """A client that vanished: every send fails, the next receive disconnects."""

    def __init__(self):
        self.accepted = False

    async def accept(self):
        self.accepted = True

    async def send_json(self, data):
        raise RuntimeError("Cannot call send once a close message has been sent")

    async def receive_json(self):
        await asyncio.sleep(0.01)
        raise WebSocketDisconnect(code=1001)

    async def close(self):
        pass


def test_ws_handler_survives_send_after_disconnect(caplog):
    caplog.set_level(logging.INFO, logger="mindful.api.websocket")
    socket = ClosedSocket()

    # Returns normally: the send failure is contained by the pump task
    asyncio.run(exercise_endpoint(socket, "box"))

    assert socket.accepted
    assert any("Client left" in r.getMessage() for r in caplog.records)
