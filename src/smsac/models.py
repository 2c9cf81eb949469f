"""Live object graph types — managers, managees, field descriptors, versions."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

from smsac.codec import ADDR_MASK, format_address


class Version(str, Enum):
    """Game build identifier reported by the server."""

    GMSJ01 = "GMSJ01"
    GMSE01 = "GMSE01"
    GMSP01 = "GMSP01"
    GMSJ0A = "GMSJ0A"


@dataclass(frozen=True)
class Manager:
    """A long-lived top-level object that owns managees."""

    addr: int
    type_name: str
    name: str
    count: int

    @classmethod
    def from_row(cls, row: Sequence[Any]) -> Manager:
        """Build from a wire row ``[addr, type, name, count]``."""
        return cls(addr=row[0], type_name=row[1], name=row[2], count=row[3])

    @property
    def label(self) -> str:
        return f"{self.name} ({self.count})"

    def __str__(self) -> str:
        return f"{self.label} {self.type_name} @{format_address(self.addr)}"


@dataclass(frozen=True)
class Managee:
    """An object owned by a manager.

    ``type_name`` is None when the server cannot resolve the object's vtable.
    """

    addr: int
    type_name: str | None
    name: str
    index: int | None = None

    @classmethod
    def from_row(cls, row: Sequence[Any], index: int | None = None) -> Managee:
        """Build from a wire row ``[addr, type, name]``."""
        return cls(addr=row[0], type_name=row[1], name=row[2], index=index)

    @property
    def label(self) -> str:
        if self.index is None:
            return f"({self.name})"
        return f"{self.index}: ({self.name})"

    def __str__(self) -> str:
        return f"{self.label} {self.type_name or '?'} @{format_address(self.addr)}"


@dataclass(frozen=True)
class Field:
    """One member of a runtime type, as reported by ``getFields``.

    ``offset`` is the server's offset path: comma separated hex numbers where
    every element after the first is applied after dereferencing a pointer.
    """

    offset: str
    name: str
    notes: str
    type_name: str
    class_name: str

    @classmethod
    def from_row(cls, row: Sequence[Any]) -> Field:
        """Build from a wire row ``[offset, name, notes, type, class]``."""
        return cls(
            offset=str(row[0]),
            name=row[1],
            notes=row[2],
            type_name=row[3],
            class_name=row[4],
        )

    @property
    def offsets(self) -> tuple[int, ...]:
        return tuple(int(part, 16) for part in self.offset.split(","))

    def address(self, base: int) -> list[int]:
        """Pointer chain locating this field in the object at ``base``."""
        first, *rest = self.offsets
        return [(base + first) & ADDR_MASK, *rest]


# Object whose fields can be viewed
Target = Manager | Managee
