"""Two-level live object graph: managers, each owning a list of managees.

The manager list is fetched once per load. A manager's managees are fetched
on its first expansion and kept for the lifetime of its node.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from smsac.models import Managee, Manager

if TYPE_CHECKING:
    from smsac.api import MemoryApi

logger = logging.getLogger(__name__)


@dataclass
class ManagerNode:
    """A manager plus its lazily loaded managees."""

    manager: Manager
    expanded: bool = False
    _managees: list[Managee] | None = field(default=None, repr=False)

    @property
    def loaded(self) -> bool:
        return self._managees is not None

    @property
    def managees(self) -> list[Managee]:
        return list(self._managees or [])

    async def expand(self, api: MemoryApi) -> list[Managee]:
        if self._managees is None:
            self._managees = await api.get_managees(self.manager.addr)
            logger.debug(
                "Loaded %d managees for %s", len(self._managees), self.manager.label
            )
        self.expanded = True
        return self.managees

    def collapse(self) -> None:
        self.expanded = False

    async def toggle(self, api: MemoryApi) -> bool:
        """Flip between expanded and collapsed. Returns the new state."""
        if self.expanded:
            self.collapse()
        else:
            await self.expand(api)
        return self.expanded


class ObjectGraph:
    """Manager tree of the inspected process."""

    def __init__(self, api: MemoryApi) -> None:
        self._api = api
        self._nodes: list[ManagerNode] = []

    @property
    def nodes(self) -> list[ManagerNode]:
        return list(self._nodes)

    async def load(self) -> list[ManagerNode]:
        """Fetch the manager list, dropping any previously loaded nodes."""
        managers = await self._api.get_managers()
        self._nodes = [ManagerNode(m) for m in managers]
        logger.info("Loaded %d managers", len(self._nodes))
        return self.nodes

    def find(self, addr: int) -> ManagerNode | None:
        for node in self._nodes:
            if node.manager.addr == addr:
                return node
        return None

    async def expand(self, addr: int) -> list[Managee]:
        node = self.find(addr)
        if node is None:
            raise KeyError(f"No manager at {addr:#x}")
        return await node.expand(self._api)
