"""Request/response multiplexing over one websocket connection.

Every request gets a fresh positive id. Responses are matched back to their
request by id alone, so any number of requests may be in flight and replies
may arrive in any order.
"""

from __future__ import annotations

import logging
from typing import Any

from smsac.connection import CloseCallback, Connection
from smsac.errors import DisconnectedError, NotConnectedError, ProtocolError, RemoteError
from smsac.protocol import Success, format_request, parse_response
from smsac.registry import PendingRequest, RequestRegistry

logger = logging.getLogger(__name__)


class RpcClient:
    """JSON RPC client for the memory server."""

    def __init__(
        self,
        *,
        on_close: CloseCallback | None = None,
        connect_timeout: float = 10.0,
    ) -> None:
        self._on_close = on_close
        self._registry = RequestRegistry()
        self._next_id = 1
        self._connection = Connection(
            on_message=self._dispatch,
            on_close=self._handle_close,
            connect_timeout=connect_timeout,
        )

    @property
    def ws(self):
        """The current websocket, or None."""
        return self._connection.ws

    @property
    def is_connected(self) -> bool:
        return self._connection.is_open

    @property
    def pending_count(self) -> int:
        return len(self._registry)

    async def connect(self, url: str, protocol: str | list[str] | None = None) -> None:
        await self._connection.connect(url, protocol)

    async def close(self) -> None:
        await self._connection.close()

    async def request(self, action: str, payload: Any = None) -> Any:
        """Send ``[id, action, payload]`` and wait for the matching response.

        Raises NotConnectedError before anything is sent if there is no open
        channel, RemoteError when the server reports failure, and
        DisconnectedError if the channel closes first.
        """
        if not self._connection.is_open:
            raise NotConnectedError(
                "Client is not connected to server. Use `connect()` first."
            )

        request_id = self._allocate_id()
        pending = self._registry.add(request_id, action)
        try:
            await self._connection.send(format_request(request_id, action, payload))
            return await pending.future
        finally:
            self._registry.discard(request_id)

    def _allocate_id(self) -> int:
        request_id = self._next_id
        self._next_id += 1
        return request_id

    # ── Inbound ──────────────────────────────────────────────

    def _dispatch(self, text: str) -> None:
        try:
            response = parse_response(text)
        except ProtocolError as e:
            logger.warning("Dropping malformed frame: %s", e)
            return

        pending = self._registry.pop(response.id)
        if pending is None:
            logger.debug("No pending request for id %d", response.id)
            return

        if isinstance(response, Success):
            pending.resolve(response.body)
        else:
            pending.reject(RemoteError(response.id, response.body, pending.action))

    def _handle_close(self, code: int | None) -> None:
        def _disconnected(pending: PendingRequest) -> DisconnectedError:
            return DisconnectedError(
                f"Connection closed before {pending.action} #{pending.id} completed"
            )

        rejected = self._registry.reject_all(_disconnected)
        if rejected:
            logger.warning("Connection closed with %d outstanding request(s)", rejected)
        if self._on_close:
            self._on_close(code)
