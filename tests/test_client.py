"""Tests for RpcClient request/response correlation (mocked websocket)."""

import asyncio

import aiohttp
import pytest
from unittest.mock import AsyncMock

from smsac.client import RpcClient
from smsac.errors import (
    ChannelError,
    DisconnectedError,
    NotConnectedError,
    RemoteError,
)

URL = "ws://127.0.0.1:35353/"


@pytest.fixture
def client():
    return RpcClient()


class TestConnect:
    @pytest.mark.asyncio
    async def test_connect(self, client, session, fake_ws):
        assert client.ws is None
        assert not client.is_connected

        await client.connect(URL)

        assert client.ws is fake_ws
        assert client.is_connected
        session.ws_connect.assert_awaited_once_with(URL, protocols=())
        await client.close()

    @pytest.mark.asyncio
    async def test_connect_with_protocol(self, client, session):
        await client.connect(URL, "smsac")
        session.ws_connect.assert_awaited_once_with(URL, protocols=("smsac",))
        await client.close()

    @pytest.mark.asyncio
    async def test_connect_failure(self, client, session):
        session.ws_connect = AsyncMock(side_effect=aiohttp.ClientConnectionError("refused"))

        with pytest.raises(ChannelError, match="refused"):
            await client.connect(URL)

        session.close.assert_awaited_once()
        assert client.ws is None

    @pytest.mark.asyncio
    async def test_close(self, client, session, fake_ws):
        await client.connect(URL)
        await client.close()

        assert fake_ws.closed
        assert client.ws is None
        assert not client.is_connected
        session.close.assert_awaited()

    @pytest.mark.asyncio
    async def test_on_close_called_once(self, session, fake_ws):
        codes = []
        client = RpcClient(on_close=codes.append)
        await client.connect(URL)

        fake_ws.server_close(1001)
        await fake_ws.drain()

        assert codes == [1001]
        assert client.ws is None


class TestRequest:
    @pytest.mark.asyncio
    async def test_request_before_connect(self, client, fake_ws):
        with pytest.raises(NotConnectedError):
            await client.request("init")
        assert fake_ws.sent == []
        assert client.pending_count == 0

    @pytest.mark.asyncio
    async def test_request_after_close(self, client, session, fake_ws):
        await client.connect(URL)
        await client.close()

        with pytest.raises(NotConnectedError):
            await client.request("init")
        assert fake_ws.sent == []

    @pytest.mark.asyncio
    async def test_request_frame(self, client, session, fake_ws):
        await client.connect(URL)

        task = asyncio.create_task(client.request("read", {"addr": [1], "size": 4}))
        await fake_ws.drain()

        assert fake_ws.sent == ['[1,"read",{"addr":[1],"size":4}]']
        assert client.pending_count == 1

        fake_ws.push_json([1, "deadbeef"])
        assert await task == "deadbeef"
        assert client.pending_count == 0
        await client.close()

    @pytest.mark.asyncio
    async def test_payload_defaults_to_null(self, client, session, fake_ws):
        fake_ws.responder = lambda req: [req[0], 1234]
        await client.connect(URL)

        assert await client.request("init") == 1234
        assert fake_ws.frames == [[1, "init", None]]
        await client.close()

    @pytest.mark.asyncio
    async def test_ids_strictly_increasing(self, client, session, fake_ws):
        fake_ws.responder = lambda req: [req[0], None]
        await client.connect(URL)

        for _ in range(3):
            await client.request("init")
        await asyncio.gather(*(client.request("getVersion") for _ in range(3)))

        ids = [frame[0] for frame in fake_ws.frames]
        assert ids == [1, 2, 3, 4, 5, 6]
        await client.close()

    @pytest.mark.asyncio
    async def test_failure_rejects_with_body(self, client, session, fake_ws):
        fake_ws.responder = lambda req: [-req[0], "Dolphin is not running"]
        await client.connect(URL)

        with pytest.raises(RemoteError) as exc_info:
            await client.request("init")

        assert exc_info.value.body == "Dolphin is not running"
        assert exc_info.value.request_id == 1
        assert exc_info.value.action == "init"
        assert client.pending_count == 0
        await client.close()

    @pytest.mark.asyncio
    async def test_out_of_order_responses(self, client, session, fake_ws):
        fake_ws.responder = lambda req: [req[0], None]
        await client.connect(URL)
        for _ in range(4):
            await client.request("init")
        fake_ws.responder = None

        t5 = asyncio.create_task(client.request("read", {"addr": [1], "type": "float"}))
        t6 = asyncio.create_task(client.request("read", {"addr": [0], "type": "float"}))
        await fake_ws.drain()
        assert [f[0] for f in fake_ws.frames[-2:]] == [5, 6]

        fake_ws.push_json([-6, "bad address"])
        fake_ws.push_json([5, "0.0"])

        with pytest.raises(RemoteError) as exc_info:
            await t6
        assert exc_info.value.body == "bad address"
        assert await t5 == "0.0"
        await client.close()

    @pytest.mark.asyncio
    async def test_duplicate_response_ignored(self, client, session, fake_ws):
        await client.connect(URL)

        t1 = asyncio.create_task(client.request("getVersion"))
        await fake_ws.drain()
        fake_ws.push_json([1, "GMSJ01"])
        fake_ws.push_json([1, "GMSE01"])
        fake_ws.push_json([-1, "late failure"])

        assert await t1 == "GMSJ01"
        await fake_ws.drain()
        assert client.pending_count == 0
        assert client.is_connected
        await client.close()

    @pytest.mark.asyncio
    async def test_unsolicited_and_malformed_frames_ignored(self, client, session, fake_ws):
        await client.connect(URL)

        task = asyncio.create_task(client.request("getVersion"))
        await fake_ws.drain()
        fake_ws.push_json([99, "nobody asked"])
        fake_ws.push("not json")
        fake_ws.push_json({"id": 1})
        fake_ws.push_json([0, "zero"])
        fake_ws.push_binary(b"\x00\x01")
        fake_ws.push_json([1, "GMSP01"])

        assert await task == "GMSP01"
        await client.close()

    @pytest.mark.asyncio
    async def test_send_failure(self, client, session, fake_ws):
        await client.connect(URL)
        fake_ws.send_str = AsyncMock(side_effect=ConnectionResetError("reset"))

        with pytest.raises(ChannelError):
            await client.request("init")
        assert client.pending_count == 0
        await client.close()

    @pytest.mark.asyncio
    async def test_cancelled_request_is_removed(self, client, session, fake_ws):
        await client.connect(URL)

        task = asyncio.create_task(client.request("init"))
        await fake_ws.drain()
        assert client.pending_count == 1

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert client.pending_count == 0

        # A late response for the cancelled id is simply dropped
        fake_ws.push_json([1, 1234])
        await fake_ws.drain()
        assert client.is_connected
        await client.close()


class TestDisconnect:
    """Outstanding requests are rejected when the channel closes."""

    @pytest.mark.asyncio
    async def test_close_rejects_outstanding(self, client, session, fake_ws):
        await client.connect(URL)

        tasks = [asyncio.create_task(client.request("init")) for _ in range(3)]
        await fake_ws.drain()
        assert client.pending_count == 3

        fake_ws.server_close()
        results = await asyncio.gather(*tasks, return_exceptions=True)

        assert all(isinstance(r, DisconnectedError) for r in results)
        assert client.pending_count == 0

    @pytest.mark.asyncio
    async def test_reconnect_keeps_id_counter(self, client, session, fake_ws, fake_ws_factory):
        second = fake_ws_factory()
        session.ws_connect = AsyncMock(side_effect=[fake_ws, second])
        fake_ws.responder = lambda req: [req[0], None]
        second.responder = lambda req: [req[0], None]

        await client.connect(URL)
        await client.request("init")
        await client.request("init")

        # Connecting again replaces the first channel
        await client.connect(URL)
        assert fake_ws.closed
        assert client.ws is second

        await client.request("init")
        assert [f[0] for f in second.frames] == [3]
        await client.close()
