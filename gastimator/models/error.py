"""Errors raised while estimating the gas cost of a transaction."""

from __future__ import annotations

from typing import Any


class GastimatorError(Exception):
    message = "Gas estimation error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)

    @property
    def name(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.name, "detail": str(self)}


class GasExceedsLimit(GastimatorError):
    """Gas usage of the transaction exceeds its declared gas limit."""

    message = "Gas exceeds limit"

    def __init__(self, estimated_cost: int | None, gas_limit: int):
        self.estimated_cost = estimated_cost
        self.gas_limit = gas_limit
        super().__init__(
            f"Gas exceeds limit: estimated_cost={estimated_cost}, gas_limit={gas_limit}"
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GasExceedsLimit):
            return NotImplemented
        return (self.estimated_cost, self.gas_limit) == (other.estimated_cost, other.gas_limit)

    def __hash__(self) -> int:
        return hash((self.estimated_cost, self.gas_limit))

    def __repr__(self) -> str:
        return f"GasExceedsLimit(estimated_cost={self.estimated_cost!r}, gas_limit={self.gas_limit!r})"

    def to_dict(self) -> dict[str, Any]:
        return {
            **super().to_dict(),
            "estimated_cost": self.estimated_cost,
            "gas_limit": self.gas_limit,
        }


class FailedToCalculateGasEstimate(GastimatorError):
    """Both the local simulation and the remote estimate failed."""

    message = "Failed to calculate gas"


class LocalSimulationFailed(GastimatorError):
    message = "Local TX simulation failed"

    def __init__(self, underlying: object):
        super().__init__(f"Local TX simulation failed: {underlying}")


class RemoteGasEstimateFailed(GastimatorError):
    message = "Remote gas estimate failed"

    def __init__(self, underlying: object):
        super().__init__(f"Remote gas estimate failed: {underlying}")


class TransactionDecodeError(GastimatorError):
    """Bytes could not be RLP decoded into an EIP-1559 transaction."""

    def __init__(self, underlying: object):
        self.underlying = str(underlying)
        super().__init__(
            f"Failed to RLP decode bytes into EIP1559 transaction, underlying error: `{underlying}`"
        )


class StringNotHex(GastimatorError):
    def __init__(self, bad_value: str):
        self.bad_value = bad_value
        super().__init__(f"String not hex: {bad_value}")


class NoAlchemyApiKey(GastimatorError):
    message = (
        "No Alchemy API Key provided, unable to start server. Set the `ALCHEMY_API_KEY` "
        "environment variable, e.g. `export ALCHEMY_API_KEY=your_key`, or put it in a "
        "`.env` file, or pass it with `--key`."
    )
