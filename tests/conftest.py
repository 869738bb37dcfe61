"""
Pytest configuration and fixtures for the bus chat tests.
"""

import json
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from models.route_record import RouteRecord, ScheduleRecord
from services.realtime.connection_hub import ConnectionHub
from services.realtime.session_store import SessionStore
from services.realtime.ws_chat import ChatConnectionHandler
from utils.settings import ChatSettings

TZ = ZoneInfo("Asia/Jerusalem")

# 2026-10-19 is a Monday (weekday 1 with Sunday = 0)
MONDAY_0800 = datetime(2026, 10, 19, 8, 0, tzinfo=TZ)


class FakeClock:
    """Settable wall clock returning aware datetimes."""

    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)

    def set(self, value: datetime) -> None:
        self.current = value


class Ticker:
    """Settable monotonic clock, in seconds."""

    def __init__(self, start: float = 1000.0):
        self.value = start

    def __call__(self) -> float:
        return self.value

    def advance(self, seconds: float) -> None:
        self.value += seconds


class FakeWebSocket:
    """Records outbound frames the way a browser would receive them."""

    def __init__(self):
        self.sent = []
        self.closed = False
        self.close_code = None

    async def send_text(self, text: str) -> None:
        if self.closed:
            raise RuntimeError("WebSocket is closed")
        self.sent.append(json.loads(text))

    async def close(self, code: int = 1000) -> None:
        self.closed = True
        self.close_code = code

    def types(self):
        return [frame["type"] for frame in self.sent]

    def last(self, frame_type: str):
        for frame in reversed(self.sent):
            if frame["type"] == frame_type:
                return frame
        return None


@pytest.fixture
def settings():
    return ChatSettings(timezone="Asia/Jerusalem")


@pytest.fixture
def clock():
    return FakeClock(MONDAY_0800)


@pytest.fixture
def ticker():
    return Ticker()


@pytest.fixture
def store(clock):
    return SessionStore(TZ, clock=clock)


@pytest.fixture
def hub():
    return ConnectionHub()


@pytest.fixture
def route():
    return RouteRecord(id="42", name="Line 42")


@pytest.fixture
def schedule(route):
    return ScheduleRecord(
        id="sched-1",
        route_id=route.id,
        days_of_week=[1],
        start_time="08:00",
        end_time="09:00",
        chat_name="Morning 42",
    )


@pytest.fixture
def open_session(store, route, schedule):
    return store.open(route, schedule)


@pytest.fixture
def connect(store, hub, settings, ticker):
    """Return a factory producing (handler, socket) pairs for fresh connections."""

    def _connect():
        websocket = FakeWebSocket()
        connection_id = hub.register(websocket)
        handler = ChatConnectionHandler(store, hub, settings, connection_id, clock=ticker)
        return handler, websocket

    return _connect


async def join(handler, username: str, route_id: str = "42") -> None:
    await handler.handle({"type": "chat.join", "route_id": route_id, "username": username})


async def send(handler, text: str) -> None:
    await handler.handle({"type": "message.send", "text": text})
