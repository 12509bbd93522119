import re

from eth_utils import decode_hex

from gastimator.models.error import StringNotHex

ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")
HEX_RE = re.compile(r"^(0x|0X)?([0-9a-fA-F]{2})*$")
QUANTITY_RE = re.compile(r"^0x[0-9a-fA-F]+$")


def validate_address(address: str) -> str:
    address = address.strip()
    if not ADDRESS_RE.match(address):
        raise ValueError(
            f"Invalid address '{address}'. Expected 42-char hex string starting with 0x."
        )
    return address.lower()


def validate_quantity(value: int | str) -> int:
    """Accept a non-negative integer or a 0x-prefixed hex quantity."""
    if isinstance(value, bool):
        raise ValueError("Expected an integer or hex quantity, got a boolean.")
    if isinstance(value, str):
        value = value.strip()
        if not QUANTITY_RE.match(value):
            raise ValueError(f"Invalid hex quantity '{value}'.")
        value = int(value, 16)
    if value < 0:
        raise ValueError("Quantity must be non-negative.")
    return value


def validate_hex_data(value: str | bytes) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    value = value.strip()
    if not HEX_RE.match(value):
        raise ValueError(f"Invalid hex data '{value[:20]}'. Expected an even-length hex string.")
    return decode_hex(value)


def hex_to_bytes(value: str) -> bytes:
    """Decode user supplied hex, with or without 0x, raising ``StringNotHex``."""
    stripped = value.strip()
    if not HEX_RE.match(stripped):
        raise StringNotHex(value)
    return decode_hex(stripped)
