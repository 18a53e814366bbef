"""Tests for the FCM push dispatcher."""
import json
from datetime import datetime

import pytest

from pitchnet.domain.accounts.models import User, UserRole
from pitchnet.domain.notifications.models import PushPayload
from pitchnet.infra.push import sender


class FakeDevices:
    def __init__(self, tokens):
        self.tokens = tokens
        self.calls = 0

    async def list_tokens_by_user(self, user_id):
        self.calls += 1
        return list(self.tokens)


def make_user(push_enabled: bool = True) -> User:
    now = datetime.utcnow()
    return User(
        id="user-1",
        email="ada@pitchnet.io",
        name="Ada",
        role=UserRole.FOUNDER,
        push_notifications_enabled=push_enabled,
        created_at=now,
        updated_at=now,
    )


PAYLOAD = PushPayload(title="Pitchnet", body="Ada has requested a meeting!", data={"id": "n-1"})


@pytest.fixture
def spawned(monkeypatch):
    calls = []
    monkeypatch.setattr(sender, "_get_firebase_app", lambda: object())
    monkeypatch.setattr(sender, "build_message", lambda tokens, payload, badge: (tokens, payload, badge))
    monkeypatch.setattr(sender, "_spawn", lambda user_id, app, message: calls.append((user_id, message)))
    return calls


async def test_sends_to_every_device(spawned):
    devices = FakeDevices(["token-a", "token-b"])

    await sender.PushDispatcher(devices).dispatch(make_user(), PAYLOAD, 3)

    [(user_id, (tokens, payload, badge))] = spawned
    assert user_id == "user-1"
    assert tokens == ["token-a", "token-b"]
    assert payload is PAYLOAD
    assert badge == 3


async def test_noop_when_user_disabled_push(spawned):
    devices = FakeDevices(["token-a"])

    await sender.PushDispatcher(devices).dispatch(make_user(push_enabled=False), PAYLOAD, 1)

    assert spawned == []
    assert devices.calls == 0


async def test_noop_without_devices(spawned):
    await sender.PushDispatcher(FakeDevices([])).dispatch(make_user(), PAYLOAD, 1)

    assert spawned == []


async def test_noop_when_push_not_configured(monkeypatch):
    monkeypatch.setattr(sender, "_get_firebase_app", lambda: None)
    devices = FakeDevices(["token-a"])

    await sender.PushDispatcher(devices).dispatch(make_user(), PAYLOAD, 1)

    assert devices.calls == 0


async def test_failures_are_swallowed(monkeypatch):
    monkeypatch.setattr(sender, "_get_firebase_app", lambda: object())

    class BrokenDevices:
        async def list_tokens_by_user(self, user_id):
            raise RuntimeError("database gone")

    await sender.PushDispatcher(BrokenDevices()).dispatch(make_user(), PAYLOAD, 1)


def test_send_swallows_transport_errors(monkeypatch):
    from firebase_admin import messaging

    def boom(message, app=None):
        raise ValueError("invalid credentials")

    monkeypatch.setattr(messaging, "send_each_for_multicast", boom)

    sender._send(object(), sender.build_message(["token-a"], PAYLOAD, 1), "user-1")


def test_build_message_with_body_is_visible():
    message = sender.build_message(["token-a"], PAYLOAD, 2)

    assert message.tokens == ["token-a"]
    assert message.notification.title == "Pitchnet"
    assert message.notification.body == "Ada has requested a meeting!"
    assert message.data["badgeCount"] == "2"
    assert json.loads(message.data["payload"]) == {"id": "n-1"}
    assert message.apns.payload.aps.badge == 2


def test_build_message_without_body_is_silent():
    message = sender.build_message(["token-a"], PushPayload(title="Pitchnet", body=None, data={}), 0)

    assert message.notification is None
    assert message.data["badgeCount"] == "0"
