"""Typed memory operations built on the RPC client.

Each method normalizes its address, sends one request, and decodes the
result into Python types.
"""

from __future__ import annotations

import logging

from smsac.client import RpcClient
from smsac.codec import Address, decode_hex, encode_hex, normalize_address
from smsac.models import Field, Managee, Manager, Version

logger = logging.getLogger(__name__)

ReadResult = str | list[str | None] | None


class MemoryApi:
    """Memory introspection operations (read, write, classes, managers)."""

    def __init__(self, client: RpcClient) -> None:
        self._client = client

    @property
    def client(self) -> RpcClient:
        return self._client

    async def init(self) -> int | None:
        """Attach to the game process. Returns its pid, or None."""
        return await self._client.request("init")

    async def read(
        self,
        addr: Address,
        type_name: str | None = None,
        *,
        size: int | None = None,
    ) -> ReadResult:
        """Read formatted values at ``addr``.

        With ``type_name`` the server formats every field of that type and
        returns one string per field in declaration order (a single string for
        primitive types). With ``size`` it returns the raw bytes as hex text.
        Exactly one of the two must be given.
        """
        if (type_name is None) == (size is None):
            raise ValueError("Exactly one of type_name or size must be given")

        payload: dict = {"addr": normalize_address(addr)}
        if type_name is not None:
            payload["type"] = type_name
        else:
            payload["size"] = size
        return await self._client.request("read", payload)

    async def read_bytes(self, addr: Address, size: int) -> bytes | None:
        """Read ``size`` raw bytes, or None if the memory is unreadable."""
        text = await self.read(addr, size=size)
        if text is None:
            return None
        return decode_hex(text)

    async def read_string(self, addr: Address) -> str | None:
        return await self._client.request("readString", {"addr": normalize_address(addr)})

    async def read_field(self, base: int, field: Field) -> ReadResult:
        """Read a single field of the object at ``base``."""
        return await self.read(field.address(base), field.type_name)

    async def write(self, addr: Address, payload: str | bytes | bytearray | memoryview) -> bool:
        """Write bytes at ``addr``. A str payload is sent as-is (hex text)."""
        if not isinstance(payload, str):
            payload = encode_hex(payload)
        result = await self._client.request(
            "write", {"addr": normalize_address(addr), "payload": payload}
        )
        return bool(result)

    async def get_class(self, addr: Address) -> str | None:
        """Resolve the runtime class name of the object at ``addr``."""
        return await self._client.request("getClass", {"addr": normalize_address(addr)})

    async def get_fields(self, type_name: str) -> list[Field]:
        rows = await self._client.request("getFields", type_name)
        return [Field.from_row(row) for row in rows or []]

    async def get_managers(self) -> list[Manager]:
        rows = await self._client.request("getManagers")
        if rows is None:
            logger.debug("getManagers returned null")
            return []
        return [Manager.from_row(row) for row in rows]

    async def get_managees(self, addr: Address) -> list[Managee]:
        # Sent as an address list; servers that only take a bare number reject it
        rows = await self._client.request("getManagees", normalize_address(addr))
        if rows is None:
            return []
        return [Managee.from_row(row, index=i) for i, row in enumerate(rows)]

    async def get_version(self) -> Version:
        return Version(await self._client.request("getVersion"))

    async def reload(self) -> None:
        """Ask the server to reload its type database."""
        await self._client.request("reload")
