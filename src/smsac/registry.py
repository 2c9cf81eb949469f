"""Outstanding request registry — request id -> pending future."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any


@dataclass
class PendingRequest:
    """One in-flight request, settled exactly once."""

    id: int
    action: str
    future: asyncio.Future

    def resolve(self, body: Any) -> None:
        if not self.future.done():
            self.future.set_result(body)

    def reject(self, exc: BaseException) -> None:
        if not self.future.done():
            self.future.set_exception(exc)


class RequestRegistry:
    """Plain id -> PendingRequest map, mutated only from the event loop."""

    def __init__(self) -> None:
        self._pending: dict[int, PendingRequest] = {}

    def __len__(self) -> int:
        return len(self._pending)

    def __contains__(self, request_id: object) -> bool:
        return request_id in self._pending

    def add(self, request_id: int, action: str) -> PendingRequest:
        if request_id in self._pending:
            raise ValueError(f"Request id {request_id} is already pending")
        pending = PendingRequest(
            id=request_id,
            action=action,
            future=asyncio.get_running_loop().create_future(),
        )
        self._pending[request_id] = pending
        return pending

    def pop(self, request_id: int) -> PendingRequest | None:
        return self._pending.pop(request_id, None)

    def discard(self, request_id: int) -> None:
        self._pending.pop(request_id, None)

    def reject_all(self, exc_factory) -> int:
        """Reject and remove every pending request. Returns how many there were.

        ``exc_factory`` is called with each PendingRequest to build its exception.
        """
        pending = list(self._pending.values())
        self._pending.clear()
        for entry in pending:
            entry.reject(exc_factory(entry))
        return len(pending)
