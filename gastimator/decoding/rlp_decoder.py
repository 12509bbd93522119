"""
EIP-1559 transaction decoding.

Accepts either the signed, typed envelope (``0x02 || rlp([...12 fields])``)
or the bare unsigned payload (``rlp([...9 fields])``).
"""

from __future__ import annotations

import logging
from typing import Optional

import rlp
from pydantic import ValidationError
from rlp.exceptions import RLPException
from rlp.sedes import Binary, CountableList, List, big_endian_int, binary

from gastimator.models.error import TransactionDecodeError
from gastimator.models.transaction import Transaction

logger = logging.getLogger(__name__)

EIP1559_TX_TYPE = 0x02
ADDRESS_LEN = 20

access_list_sedes = CountableList(
    List([Binary.fixed_length(ADDRESS_LEN), CountableList(Binary.fixed_length(32))])
)


_UNSIGNED_FIELDS = [
    ("chain_id", big_endian_int),
    ("nonce", big_endian_int),
    ("max_priority_fee_per_gas", big_endian_int),
    ("max_fee_per_gas", big_endian_int),
    ("gas_limit", big_endian_int),
    ("to", Binary.fixed_length(ADDRESS_LEN, allow_empty=True)),
    ("value", big_endian_int),
    ("data", binary),
    ("access_list", access_list_sedes),
]


class UnsignedEip1559Transaction(rlp.Serializable):
    fields = _UNSIGNED_FIELDS

    chain_id: int
    nonce: int
    max_priority_fee_per_gas: int
    max_fee_per_gas: int
    gas_limit: int
    to: bytes
    value: int
    data: bytes
    access_list: tuple


class SignedEip1559Transaction(rlp.Serializable):
    fields = _UNSIGNED_FIELDS + [
        ("y_parity", big_endian_int),
        ("r", big_endian_int),
        ("s", big_endian_int),
    ]

    chain_id: int
    nonce: int
    max_priority_fee_per_gas: int
    max_fee_per_gas: int
    gas_limit: int
    to: bytes
    value: int
    data: bytes
    access_list: tuple
    y_parity: int
    r: int
    s: int


def _decode_signed(raw_tx: bytes) -> SignedEip1559Transaction:
    buf = raw_tx[1:] if raw_tx[:1] == bytes([EIP1559_TX_TYPE]) else raw_tx
    return rlp.decode(buf, sedes=SignedEip1559Transaction)


def _decode_unsigned(raw_tx: bytes) -> UnsignedEip1559Transaction:
    return rlp.decode(raw_tx, sedes=UnsignedEip1559Transaction)


def decode_eip1559_transaction(raw_tx: bytes) -> UnsignedEip1559Transaction | SignedEip1559Transaction:
    try:
        return _decode_signed(raw_tx)
    except RLPException as signed_exc:
        logger.debug("Not a signed EIP-1559 transaction (%s), trying unsigned", signed_exc)
    try:
        return _decode_unsigned(raw_tx)
    except RLPException as exc:
        raise TransactionDecodeError(exc) from exc


def to_transaction(decoded: UnsignedEip1559Transaction | SignedEip1559Transaction) -> Transaction:
    # A zero gas limit means none was declared.
    gas_limit: Optional[int] = decoded.gas_limit or None
    to = "0x" + decoded.to.hex() if decoded.to else None
    return Transaction(
        nonce=decoded.nonce,
        to=to,
        value=decoded.value,
        gas_limit=gas_limit,
        input=bytes(decoded.data),
    )


def decode_transaction(raw_tx: bytes) -> Transaction:
    """Decode RLP bytes into a ``Transaction``, trying the signed form first."""
    decoded = decode_eip1559_transaction(raw_tx)
    try:
        tx = to_transaction(decoded)
    except ValidationError as exc:
        # RLP integers are unbounded, the transaction fields are not.
        raise TransactionDecodeError(exc) from exc
    logger.info("Decoded RLP transaction: %s", tx)
    return tx
