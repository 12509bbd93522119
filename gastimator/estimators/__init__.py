from typing import Protocol

from gastimator.estimators.local_simulator import EvmTxSimulator
from gastimator.estimators.remote_estimator import AlchemyRpcClient
from gastimator.models.transaction import Transaction


class LocalSimulator(Protocol):
    """Simulates a transaction in-process and returns the gas it used.

    Implementations are synchronous and need not be reentrant. Raises
    ``GasExceedsLimit`` when the declared limit cannot cover the cost.
    """

    def simulate(self, tx: Transaction) -> int: ...


class RemoteGasEstimator(Protocol):
    async def estimate_gas(self, tx: Transaction) -> int: ...


__all__ = [
    "AlchemyRpcClient",
    "EvmTxSimulator",
    "LocalSimulator",
    "RemoteGasEstimator",
]
