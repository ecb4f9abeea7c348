"""
linktrue.types.address — account addresses.

Addresses are 20-byte account identifiers. Internally they are always the
canonical text form `0x` + 40 lowercase hex characters, so they can be used
directly as dict keys and compared with `==`.

Accepted inputs
---------------
* hex strings, with or without `0x`, any case ("0xAbC…", "abc…")
* raw 20-byte `bytes` / `bytearray` / `memoryview`

Anything else raises `ValueError` (bad shape) or `TypeError` (bad type).
"""

from __future__ import annotations

from typing import NewType, Union

ADDRESS_BYTES = 20

Address = NewType("Address", str)
AddressLike = Union[str, bytes, bytearray, memoryview]

ZERO_ADDRESS: Address = Address("0x" + "00" * ADDRESS_BYTES)


def to_address(value: AddressLike) -> Address:
    """Normalize `value` to the canonical `0x…` lowercase form."""
    if isinstance(value, (bytes, bytearray, memoryview)):
        raw = bytes(value)
    elif isinstance(value, str):
        s = value.strip()
        if s.startswith(("0x", "0X")):
            s = s[2:]
        if len(s) != ADDRESS_BYTES * 2:
            raise ValueError(f"address must be {ADDRESS_BYTES} bytes of hex: {value!r}")
        try:
            raw = bytes.fromhex(s)
        except ValueError as e:
            raise ValueError(f"invalid hex address: {value!r}") from e
    else:
        raise TypeError(f"expected address-like value, got {type(value).__name__}")

    if len(raw) != ADDRESS_BYTES:
        raise ValueError(f"address must be {ADDRESS_BYTES} bytes, got {len(raw)}")
    return Address("0x" + raw.hex())


def is_address(value: object) -> bool:
    try:
        to_address(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return False
    return True


def looks_like_address(value: object) -> bool:
    """
    True for values that should be *looked up* as an address rather than a
    username: raw bytes, or a well-formed `0x` hex string.
    """
    if isinstance(value, (bytes, bytearray, memoryview)):
        return True
    return isinstance(value, str) and value.startswith(("0x", "0X")) and is_address(value)


__all__ = [
    "ADDRESS_BYTES",
    "Address",
    "AddressLike",
    "ZERO_ADDRESS",
    "to_address",
    "is_address",
    "looks_like_address",
]
