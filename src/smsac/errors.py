"""Client error types."""

from __future__ import annotations

from typing import Any


class SmsacError(Exception):
    """Base class for all client errors."""


class NotConnectedError(SmsacError, RuntimeError):
    """A request was issued while no channel is open."""


class ChannelError(SmsacError, ConnectionError):
    """The channel could not be opened or written to."""


class DisconnectedError(SmsacError, ConnectionError):
    """The channel closed while a request was still outstanding."""


class ProtocolError(SmsacError, ValueError):
    """An inbound frame does not match the wire format."""


class RemoteError(SmsacError):
    """The server answered a request with a failure response.

    ``body`` is the server-supplied error value, passed through untouched.
    """

    def __init__(self, request_id: int, body: Any, action: str | None = None) -> None:
        self.request_id = request_id
        self.body = body
        self.action = action
        where = f"{action} #{request_id}" if action else f"#{request_id}"
        super().__init__(f"{where} failed: {body}")
