from __future__ import annotations

import json

import pytest

from chat_overlay.config import OverlaySettings
from chat_overlay.overlay.registry import ConnectionRegistry
from chat_overlay.overlay.router import EventRouter
from chat_overlay.overlay.state import StateStore


class FakeSession:
    """Session stand-in recording every payload it is asked to send."""

    def __init__(self, session_id: str = "s1", is_open: bool = True):
        self.id = session_id
        self.is_open = is_open
        self.sent: list[str] = []
        self.closed = None
        self.fail_send = False
        self.fail_close = False

    def send(self, payload: str) -> bool:
        if self.fail_send:
            raise RuntimeError("transport broken")
        self.sent.append(payload)
        return True

    async def close(self, code: int = 1000, reason: str = "") -> None:
        if self.fail_close:
            raise RuntimeError("close failed")
        self.closed = (code, reason)
        self.is_open = False

    def messages(self) -> list[dict]:
        return [json.loads(p) for p in self.sent]


@pytest.fixture
def settings():
    return OverlaySettings()


@pytest.fixture
def store(settings):
    return StateStore(settings)


@pytest.fixture
def registry():
    return ConnectionRegistry()


@pytest.fixture
def router(store):
    return EventRouter(store)


@pytest.fixture
def make_session():
    counter = {"n": 0}

    def _make(is_open: bool = True) -> FakeSession:
        counter["n"] += 1
        return FakeSession(f"s{counter['n']}", is_open=is_open)

    return _make
