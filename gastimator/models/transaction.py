from __future__ import annotations

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_serializer, field_validator

from gastimator.classifiers.transaction_classifier import classify
from gastimator.models.gas import GAS_MAX, U64_MAX, Gas
from gastimator.models.transaction_kind import TransactionKind
from gastimator.validation.input import (
    hex_to_bytes,
    validate_address,
    validate_hex_data,
    validate_quantity,
)

U256_MAX = 2**256 - 1


class Transaction(BaseModel):
    """An unsigned transaction as submitted for estimation.

    ``to`` is ``None`` for contract creation. Equality and hashing are
    structural over every field, so the value itself is the cache key.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    nonce: int | None = Field(default=None, ge=0, le=U64_MAX)
    from_: str | None = Field(default=None, alias="from")
    to: str | None = None
    value: int = Field(default=0, ge=0, le=U256_MAX)
    gas_limit: Gas | None = None
    input: bytes = Field(default=b"", validation_alias=AliasChoices("input", "data"))

    @field_validator("from_", "to", mode="before")
    @classmethod
    def _check_address(cls, v):
        if v is None:
            return None
        return validate_address(v)

    @field_validator("value", mode="before")
    @classmethod
    def _check_value(cls, v):
        if v is None:
            return 0
        return validate_quantity(v)

    @field_validator("input", mode="before")
    @classmethod
    def _check_input(cls, v):
        if v is None:
            return b""
        return validate_hex_data(v)

    @field_serializer("value", when_used="json")
    def _serialize_value(self, value: int) -> str:
        return hex(value)

    @field_serializer("input", when_used="json")
    def _serialize_input(self, value: bytes) -> str:
        return "0x" + value.hex()

    @property
    def is_contract_creation(self) -> bool:
        return self.to is None

    @property
    def is_cacheable(self) -> bool:
        # Without both nonce and sender we cannot tell two submissions of the
        # "same" transaction apart.
        return self.nonce is not None and self.from_ is not None

    @property
    def gas_limit_else_max(self) -> int:
        return self.gas_limit if self.gas_limit is not None else GAS_MAX

    @property
    def kind(self) -> TransactionKind:
        return classify(self)

    def __str__(self) -> str:
        return (
            f"Transaction(nonce={self.nonce}, from={self.from_}, to={self.to or 'CREATE'}, "
            f"value={self.value}, gas_limit={self.gas_limit}, input_len={len(self.input)})"
        )


class RawTransaction(BaseModel):
    """An RLP encoded transaction, hex encoded with or without ``0x``."""

    rlp: str

    def to_bytes(self) -> bytes:
        return hex_to_bytes(self.rlp)
