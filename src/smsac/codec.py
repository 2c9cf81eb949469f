"""Hex and address codec — pure functions, no I/O.

Byte payloads travel as lowercase hex text (two characters per byte, no
separators). Addresses are either a single location or a pointer chain; both
are sent as a list of integers.
"""

from __future__ import annotations

from collections.abc import Sequence

Address = int | Sequence[int]

ADDR_MASK = 0xFFFFFFFF


def encode_hex(data: bytes | bytearray | memoryview) -> str:
    """Encode raw bytes as lowercase, zero-padded hex text."""
    return bytes(data).hex()


def decode_hex(text: str) -> bytes:
    """Decode hex text (either case) into bytes.

    Raises ValueError on odd length or non-hex characters.
    """
    if len(text) % 2:
        raise ValueError(f"Hex string has odd length: {len(text)}")
    try:
        return bytes.fromhex(text)
    except ValueError as e:
        raise ValueError(f"Invalid hex string: {text[:32]!r}") from e


def normalize_address(addr: Address) -> list[int]:
    """Coerce an address into the list form used on the wire.

    A bare int becomes a one-element list; a sequence is copied unchanged.
    """
    if isinstance(addr, bool):
        raise TypeError("Address must be an int or a sequence of ints, not bool")
    if isinstance(addr, int):
        return [addr]
    if isinstance(addr, (str, bytes)):
        raise TypeError(f"Address must be an int or a sequence of ints, not {type(addr).__name__}")

    chain = list(addr)
    if not chain:
        raise ValueError("Address chain must not be empty")
    for part in chain:
        if isinstance(part, bool) or not isinstance(part, int):
            raise TypeError(f"Address chain elements must be ints, got {part!r}")
    return chain


def format_address(addr: int) -> str:
    """Uppercase hex without prefix, e.g. 0x80001000 -> '80001000'."""
    return f"{addr & ADDR_MASK:X}"
