"""Wire protocol — frame types + parse/format (no I/O).

Frames are JSON text:
- Request (client -> server):  [id, action, payload]   with id > 0
- Response (server -> client): [signed_id, body]
  A positive id means the request succeeded and ``body`` is its result;
  a negative id means request ``-signed_id`` failed and ``body`` is the error.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from smsac.errors import ProtocolError


# ── Parsed response types (server -> client) ──────────────────


@dataclass(frozen=True)
class Success:
    """Positive-id response: the request produced ``body``."""

    id: int
    body: Any = None


@dataclass(frozen=True)
class Failure:
    """Negative-id response. ``id`` is stored positive."""

    id: int
    body: Any = None


Response = Success | Failure


# ── Formatting (client -> server) ─────────────────────────────


def format_request(request_id: int, action: str, payload: Any = None) -> str:
    """Format a request frame as compact JSON text."""
    if isinstance(request_id, bool) or not isinstance(request_id, int) or request_id <= 0:
        raise ValueError(f"Request id must be a positive integer, got {request_id!r}")
    return json.dumps([request_id, action, payload], separators=(",", ":"))


# ── Parsing (server -> client) ────────────────────────────────


def parse_response(text: str) -> Response:
    """Parse a response frame and decode the sign of its id.

    Raises ProtocolError for anything that is not ``[non-zero int, body]``.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ProtocolError(f"Invalid JSON: {e}") from e

    if not isinstance(data, list) or len(data) != 2:
        raise ProtocolError(f"Expected [id, body], got: {text[:200]}")

    signed_id, body = data
    if isinstance(signed_id, bool) or not isinstance(signed_id, int) or signed_id == 0:
        raise ProtocolError(f"Invalid response id: {signed_id!r}")

    if signed_id > 0:
        return Success(id=signed_id, body=body)
    return Failure(id=-signed_id, body=body)
