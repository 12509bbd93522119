from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict

KindType = Literal["native_token_transfer", "contract_creation", "contract_call", "unknown"]


class TransactionKind(BaseModel):
    """Classification of a transaction based on its fields.

    - ``native_token_transfer``: only moves ETH, fixed cost of 21_000 gas.
    - ``contract_creation``: deploys init code, at least 32_000 gas on top of
      the base cost, plus whatever the constructor executes.
    - ``contract_call``: invokes contract code, optionally with an ETH
      transfer (``with_native_token_transfer``).
    - ``unknown``: anything else, e.g. a creation without init code.
    """

    model_config = ConfigDict(frozen=True)

    type: KindType
    with_native_token_transfer: bool | None = None

    @classmethod
    def native_token_transfer(cls) -> TransactionKind:
        return cls(type="native_token_transfer")

    @classmethod
    def contract_creation(cls) -> TransactionKind:
        return cls(type="contract_creation")

    @classmethod
    def contract_call(cls, with_native_token_transfer: bool) -> TransactionKind:
        return cls(type="contract_call", with_native_token_transfer=with_native_token_transfer)

    @classmethod
    def unknown(cls) -> TransactionKind:
        return cls(type="unknown")

    @property
    def is_native_token_transfer(self) -> bool:
        return self.type == "native_token_transfer"

    def __str__(self) -> str:
        if self.type == "contract_call":
            return f"contract_call(with_native_token_transfer={self.with_native_token_transfer})"
        return self.type
