"""Shared fixtures: an in-memory websocket standing in for the memory server."""

import asyncio
import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest

TEST_URL = "ws://127.0.0.1:35353/"


class FakeWebSocket:
    """Mock aiohttp.ClientWebSocketResponse with a controllable inbox.

    ``responder`` (optional) is called with every decoded request frame and
    may return a response frame to deliver back.
    """

    def __init__(self):
        self.sent: list[str] = []
        self.closed = False
        self.close_code = None
        self.responder = None
        self._inbox: asyncio.Queue = asyncio.Queue()

    @property
    def frames(self) -> list:
        return [json.loads(s) for s in self.sent]

    async def send_str(self, data: str) -> None:
        if self.closed:
            raise ConnectionResetError("Cannot write to closing transport")
        self.sent.append(data)
        if self.responder:
            response = self.responder(json.loads(data))
            if response is not None:
                self.push_json(response)

    async def receive(self):
        return await self._inbox.get()

    async def close(self) -> bool:
        if self.closed:
            return False
        self.closed = True
        self.close_code = 1000
        self._inbox.put_nowait(SimpleNamespace(type=aiohttp.WSMsgType.CLOSED, data=None))
        return True

    def exception(self):
        return None

    # ── Server side ──────────────────────────────────────────

    def push(self, text: str) -> None:
        self._inbox.put_nowait(SimpleNamespace(type=aiohttp.WSMsgType.TEXT, data=text))

    def push_json(self, data) -> None:
        self.push(json.dumps(data))

    def push_binary(self, data: bytes) -> None:
        self._inbox.put_nowait(SimpleNamespace(type=aiohttp.WSMsgType.BINARY, data=data))

    def server_close(self, code: int = 1001) -> None:
        self.closed = True
        self.close_code = code
        self._inbox.put_nowait(SimpleNamespace(type=aiohttp.WSMsgType.CLOSE, data=code))

    async def drain(self, rounds: int = 5) -> None:
        """Let the reader task and request tasks run."""
        for _ in range(rounds):
            await asyncio.sleep(0)


@pytest.fixture
def fake_ws():
    return FakeWebSocket()


@pytest.fixture
def session(fake_ws):
    """Patch aiohttp.ClientSession so ws_connect yields ``fake_ws``."""
    mock_session = MagicMock()
    mock_session.ws_connect = AsyncMock(return_value=fake_ws)
    mock_session.close = AsyncMock()
    with patch("smsac.connection.aiohttp.ClientSession", return_value=mock_session):
        yield mock_session


@pytest.fixture
def fake_ws_factory():
    return FakeWebSocket
