import asyncio
import json
from uuid import uuid4

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlmodel import select
from starlette.websockets import WebSocketDisconnect

from booking_calendar.api.deps import get_change_sink
from booking_calendar.main import app
from booking_calendar.models import Booking
from booking_calendar.schemas import ChangeEvent
from booking_calendar.services.change_events import (
    RedisChangeSink,
    WebSocketChangeSink,
    change_message,
    emit_change,
)
from booking_calendar.services.redis_pubsub import RedisPubSubService
from booking_calendar.services.websocket_manager import ConnectionManager

from conftest import auth_headers


class FakeRedis:
    def __init__(self):
        self.published = []

    def publish(self, channel, message):
        self.published.append((channel, message))
        return 1


class BrokenSink:
    def publish(self, event):
        raise RedisConnectionError("Connection refused")


class FaultySink:
    def publish(self, event):
        raise ValueError("unexpected payload")


class FakeConnections:
    def __init__(self):
        self.messages = []

    async def broadcast(self, message):
        self.messages.append(message)


class FakeSocket:
    def __init__(self, fail=False):
        self.fail = fail
        self.sent = []

    async def accept(self):
        pass

    async def send_json(self, message):
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(message)


def make_event(**overrides):
    fields = {"entity_type": "booking", "action": "create", "entity_id": uuid4()}
    fields.update(overrides)
    return ChangeEvent(**fields)


def test_emit_change_survives_delivery_failure():
    entity_id = uuid4()

    event = emit_change(BrokenSink(), entity_type="booking", action="delete", entity_id=entity_id)

    assert event.entity_id == entity_id
    assert event.entity is None


def test_emit_change_survives_unexpected_sink_error():
    event = emit_change(FaultySink(), entity_type="booking", action="create", entity_id=uuid4())

    assert event.action == "create"


def test_booking_is_saved_when_sink_fails(client, session, user, workday_window):
    app.dependency_overrides[get_change_sink] = lambda: FaultySink()

    response = client.post(
        "/api/v1/bookings/",
        json={
            "title": "Review",
            "starts_at": "2024-06-10T10:00:00",
            "ends_at": "2024-06-10T11:00:00",
        },
        headers=auth_headers(user),
    )

    assert response.status_code == 201
    assert len(session.exec(select(Booking)).all()) == 1


def test_redis_sink_publishes_json_on_channel():
    client = FakeRedis()
    event = make_event(entity={"title": "Review"})

    RedisChangeSink(client, "changes").publish(event)

    channel, raw = client.published[0]
    assert channel == "changes"
    assert ChangeEvent.model_validate(json.loads(raw)) == event


def test_websocket_sink_without_loop_drops_event():
    connections = FakeConnections()

    WebSocketChangeSink(connections).publish(make_event())

    assert connections.messages == []


def test_relay_broadcasts_redis_messages():
    connections = FakeConnections()
    service = RedisPubSubService(connections=connections, channel="changes")
    event = make_event(action="update", entity={"status": "confirmed"})

    asyncio.run(service.handle_message(event.model_dump_json()))

    assert connections.messages == [change_message(event)]
    assert connections.messages[0]["data"]["entity_id"] == str(event.entity_id)


def test_broadcast_drops_dead_sockets():
    async def scenario():
        manager = ConnectionManager()
        alive, dead = FakeSocket(), FakeSocket(fail=True)
        await manager.connect(alive, uuid4())
        await manager.connect(dead, uuid4())

        await manager.broadcast({"type": "change"})
        return manager, alive

    manager, alive = asyncio.run(scenario())

    assert alive.sent == [{"type": "change"}]
    assert manager.get_connection_count() == 1


def test_websocket_rejects_invalid_token(live_client):
    with pytest.raises(WebSocketDisconnect):
        with live_client.websocket_connect("/api/v1/ws/changes?token=garbage") as websocket:
            websocket.receive_json()


def test_websocket_receives_committed_changes(live_client, admin):
    headers = auth_headers(admin)
    token = headers["Authorization"].split()[1]

    with live_client.websocket_connect(f"/api/v1/ws/changes?token={token}") as websocket:
        assert websocket.receive_json()["type"] == "connected"

        websocket.send_text("ping")
        assert websocket.receive_json() == {"type": "pong"}

        response = live_client.post(
            "/api/v1/availability/",
            json={"starts_at": "2024-06-10T09:00:00", "ends_at": "2024-06-10T17:00:00"},
            headers=headers,
        )
        assert response.status_code == 201

        message = websocket.receive_json()
        assert message["type"] == "change"
        assert message["data"]["entity_type"] == "availability_window"
        assert message["data"]["action"] == "create"
        assert message["data"]["entity_id"] == response.json()["id"]
        assert message["data"]["actor_id"] == str(admin.id)
