from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from gastimator.models.gas import Gas
from gastimator.models.transaction_kind import TransactionKind


class _GasUsageBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: TransactionKind

    @property
    def transaction_kind(self) -> TransactionKind:
        return self.kind


class Exact(_GasUsageBase):
    """The gas usage of the transaction is known exactly."""

    type: Literal["exact"] = "exact"
    gas: Gas

    def __str__(self) -> str:
        return f"exact({self.gas})"


class Estimate(_GasUsageBase):
    """A single best-effort estimate. Actual usage may be higher or lower."""

    type: Literal["estimate"] = "estimate"
    gas: Gas

    def __str__(self) -> str:
        return f"estimate({self.gas})"


class EstimateWithRange(_GasUsageBase):
    """An estimated range. Actual usage is NOT guaranteed to fall inside it."""

    type: Literal["estimate_with_range"] = "estimate_with_range"
    low: Gas
    high: Gas

    def __str__(self) -> str:
        return f"estimate_with_range({self.low} - {self.high})"


GasUsage = Annotated[Union[Exact, Estimate, EstimateWithRange], Field(discriminator="type")]


class GasEstimateResponse(BaseModel):
    gas_usage: GasUsage
    time_elapsed_in_millis: int
