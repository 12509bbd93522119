from __future__ import annotations

from typing import Annotated

from pydantic import Field

U64_MAX = 2**64 - 1

# Amount of gas, an unsigned 64-bit quantity.
Gas = Annotated[int, Field(ge=0, le=U64_MAX)]

# Sentinel for "no declared limit".
GAS_MAX: int = U64_MAX

# Fixed cost of a pure native token (ETH) transfer.
EXACT_NATIVE_TOKEN_TRANSFER = 21_000


def parse_gas_hex(hex_str: str) -> int:
    """Parse a hex quantity with or without a ``0x`` prefix into gas."""
    digits = hex_str[2:] if hex_str.startswith(("0x", "0X")) else hex_str
    value = int(digits, 16)
    if value < 0 or value > U64_MAX:
        raise ValueError(f"gas value {value} does not fit in 64 bits")
    return value
