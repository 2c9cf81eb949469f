"""Live field viewer. Polls one target's field values at a bounded rate.

Only one target is watched at a time. Viewing another target cancels the
previous poll; each tick issues exactly one ``read``.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from smsac.api import MemoryApi
from smsac.errors import SmsacError
from smsac.models import Field, Target

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 0.033  # ~30 refreshes per second

# Receives the target and its field values (positionally aligned to the fields)
ValuesCallback = Callable[[Target, list], None]


class FieldWatcher:
    """Views a manager or managee and keeps its field values fresh."""

    def __init__(
        self,
        api: MemoryApi,
        *,
        interval: float = DEFAULT_INTERVAL,
        on_values: ValuesCallback | None = None,
    ) -> None:
        self._api = api
        self._interval = interval
        self._on_values = on_values
        self._target: Target | None = None
        self._fields: list[Field] = []
        self._task: asyncio.Task | None = None

    @property
    def target(self) -> Target | None:
        return self._target

    @property
    def fields(self) -> list[Field]:
        return list(self._fields)

    @property
    def is_polling(self) -> bool:
        return self._task is not None and not self._task.done()

    async def view(self, target: Target) -> list[Field]:
        """Switch to ``target``: load its fields and start polling.

        If another target is viewed while the fields are loading, the newer
        view wins and this call leaves the watcher's state untouched.
        """
        if target.type_name is None:
            raise ValueError(f"Cannot view {target.name}: unknown type")

        self.cancel()
        self._target = target
        fields = await self._api.get_fields(target.type_name)
        if self._target is not target:
            return list(fields)

        self._fields = fields
        if fields:
            self._task = asyncio.create_task(self._poll(target))
        return self.fields

    async def read_values(self) -> list:
        target = self._target
        if target is None:
            return []
        values = await self._api.read([target.addr], target.type_name)
        return values if isinstance(values, list) else [values]

    async def reload(self) -> None:
        """Reload the server's type database, then view the target again."""
        await self._api.reload()
        if self._target is not None:
            await self.view(self._target)

    def cancel(self) -> None:
        """Stop polling the current target."""
        if self._task is not None:
            self._task.cancel()
            self._task = None

    async def _poll(self, target: Target) -> None:
        loop = asyncio.get_running_loop()
        logger.debug("Polling %s every %.3fs", target.name, self._interval)
        while self._target is target:
            started = loop.time()
            try:
                values = await self.read_values()
            except SmsacError as e:
                logger.error("Stopped polling %s: %s", target.name, e)
                return

            if self._on_values:
                try:
                    self._on_values(target, values)
                except Exception as e:
                    logger.error("Stopped polling %s: values callback failed: %s", target.name, e)
                    return

            elapsed = loop.time() - started
            await asyncio.sleep(max(0.0, self._interval - elapsed))
