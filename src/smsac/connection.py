"""Websocket connection to the memory server.

Owns one aiohttp websocket at a time. A reader task delivers text frames to
the message callback; when the channel ends, the close callback runs once.
There is no automatic reconnection.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

import aiohttp

from smsac.errors import ChannelError, NotConnectedError

logger = logging.getLogger(__name__)

# Called with each inbound text frame
MessageCallback = Callable[[str], None]
# Called once per closed channel with the websocket close code (if any)
CloseCallback = Callable[[int | None], None]


class Connection:
    """A single duplex text channel (websocket) with explicit lifecycle."""

    def __init__(
        self,
        *,
        on_message: MessageCallback | None = None,
        on_close: CloseCallback | None = None,
        connect_timeout: float = 10.0,
    ) -> None:
        self._on_message = on_message
        self._on_close = on_close
        self._connect_timeout = connect_timeout
        self._session: aiohttp.ClientSession | None = None
        self._ws: aiohttp.ClientWebSocketResponse | None = None
        self._reader: asyncio.Task | None = None

    @property
    def ws(self) -> aiohttp.ClientWebSocketResponse | None:
        """The current channel, or None when disconnected."""
        return self._ws

    @property
    def is_open(self) -> bool:
        return self._ws is not None and not self._ws.closed

    async def connect(self, url: str, protocol: str | list[str] | None = None) -> None:
        """Open a channel to ``url``, replacing the current one if any.

        Raises ChannelError if the channel cannot be opened.
        """
        if self._ws is not None:
            await self.close()

        if protocol is None:
            protocols: tuple[str, ...] = ()
        elif isinstance(protocol, str):
            protocols = (protocol,)
        else:
            protocols = tuple(protocol)

        session = aiohttp.ClientSession()
        try:
            ws = await asyncio.wait_for(
                session.ws_connect(url, protocols=protocols),
                timeout=self._connect_timeout,
            )
        except (aiohttp.ClientError, OSError, asyncio.TimeoutError) as e:
            await session.close()
            raise ChannelError(f"Failed to connect to {url}: {str(e) or type(e).__name__}") from e

        self._session = session
        self._ws = ws
        self._reader = asyncio.create_task(self._read_loop(ws, session))
        logger.info("Connected to %s", url)

    async def send(self, data: str) -> None:
        """Send one text frame on the current channel."""
        ws = self._ws
        if ws is None or ws.closed:
            raise NotConnectedError("Connection is not open")
        logger.debug("> %s", data[:200])
        try:
            await ws.send_str(data)
        except (ConnectionError, aiohttp.ClientError) as e:
            raise ChannelError(f"Failed to send frame: {e}") from e

    async def close(self) -> None:
        """Close the current channel and wait for the reader to finish."""
        ws = self._ws
        reader = self._reader
        if ws is None:
            return
        await ws.close()
        if reader is not None and reader is not asyncio.current_task():
            await reader

    # ── Reader ───────────────────────────────────────────────

    async def _read_loop(
        self, ws: aiohttp.ClientWebSocketResponse, session: aiohttp.ClientSession
    ) -> None:
        try:
            while True:
                msg = await ws.receive()

                if msg.type == aiohttp.WSMsgType.TEXT:
                    logger.debug("< %s", msg.data[:200])
                    if self._on_message:
                        self._on_message(msg.data)
                    continue

                # Binary frames are not part of the protocol
                if msg.type == aiohttp.WSMsgType.BINARY:
                    logger.debug("Ignoring binary frame (%d bytes)", len(msg.data))
                    continue

                if msg.type == aiohttp.WSMsgType.ERROR:
                    logger.warning("Channel error: %s", ws.exception())
                break
        finally:
            if self._ws is ws:
                self._ws = None
                self._session = None
                self._reader = None
            # Finish the close handshake before the session drops the transport
            await ws.close()
            await session.close()
            logger.info("Disconnected (code=%s)", ws.close_code)
            if self._on_close:
                self._on_close(ws.close_code)
