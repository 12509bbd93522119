"""
Gas estimate reconciliation.

Combines a local simulation and a remote estimate of the same transaction into
a single answer bounded by the transaction's declared gas limit.
"""

from __future__ import annotations

import asyncio
import logging
import time

from gastimator.cache.manager import GasUsageCache
from gastimator.config import Settings
from gastimator.estimators import (
    AlchemyRpcClient,
    EvmTxSimulator,
    LocalSimulator,
    RemoteGasEstimator,
)
from gastimator.models.error import FailedToCalculateGasEstimate, GasExceedsLimit
from gastimator.models.gas import EXACT_NATIVE_TOKEN_TRANSFER
from gastimator.models.gas_usage import (
    Estimate,
    EstimateWithRange,
    Exact,
    GasEstimateResponse,
    GasUsage,
)
from gastimator.models.transaction import Transaction
from gastimator.models.transaction_kind import TransactionKind

logger = logging.getLogger(__name__)


def _elapsed_millis(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


class Reconciler:
    def __init__(
        self,
        local_simulator: LocalSimulator,
        remote_estimator: RemoteGasEstimator,
        cache: GasUsageCache | None = None,
    ):
        self.local_simulator = local_simulator
        self.remote_estimator = remote_estimator
        self.cache = cache if cache is not None else GasUsageCache()

    @classmethod
    def from_settings(cls, settings: Settings) -> Reconciler:
        return cls(
            local_simulator=EvmTxSimulator(),
            remote_estimator=AlchemyRpcClient.from_settings(settings),
        )

    async def estimate_gas(self, tx: Transaction) -> GasEstimateResponse:
        """Estimate the gas usage of ``tx``.

        Raises ``GasExceedsLimit`` when the declared limit is provably too
        low, and ``FailedToCalculateGasEstimate`` when neither the local nor
        the remote estimator produced a value.
        """
        start = time.monotonic()
        logger.info("Received transaction: %s", tx)
        kind = tx.kind

        if kind.is_native_token_transfer:
            return self._native_transfer_response(tx, kind, start)

        cached = self.cache.get(tx)
        if cached is not None:
            logger.debug("Found cached estimate: %s", cached)
            return self._response(cached, start)

        local, remote = await self._compute_estimates(tx)
        gas_usage = self._merge(tx, kind, local, remote)
        self.cache.put(tx, gas_usage)
        return self._response(gas_usage, start)

    def _native_transfer_response(
        self, tx: Transaction, kind: TransactionKind, start: float
    ) -> GasEstimateResponse:
        # Constant cost; never cached.
        exact = EXACT_NATIVE_TOKEN_TRANSFER
        gas_limit = tx.gas_limit_else_max
        if gas_limit < exact:
            raise GasExceedsLimit(estimated_cost=exact, gas_limit=gas_limit)
        return self._response(Exact(kind=kind, gas=exact), start)

    async def _compute_estimates(
        self, tx: Transaction
    ) -> tuple[int | BaseException, int | BaseException]:
        """Run local and remote estimation concurrently, awaiting both."""
        local, remote = await asyncio.gather(
            self._simulate_locally(tx),
            self.remote_estimator.estimate_gas(tx),
            return_exceptions=True,
        )
        for side, outcome in (("Local", local), ("Remote", remote)):
            # Cancellation and interpreter exits are not provider failures.
            if isinstance(outcome, BaseException) and not isinstance(outcome, Exception):
                raise outcome
            if isinstance(outcome, Exception):
                logger.warning("%s estimate failed: %r", side, outcome)
        return local, remote

    async def _simulate_locally(self, tx: Transaction) -> int:
        start_local = time.monotonic()
        try:
            return await asyncio.to_thread(self.local_simulator.simulate, tx)
        finally:
            logger.debug("Local estimate took: %dms", _elapsed_millis(start_local))

    @staticmethod
    def _merge(
        tx: Transaction,
        kind: TransactionKind,
        local: int | BaseException,
        remote: int | BaseException,
    ) -> GasUsage:
        gas_limit = tx.gas_limit_else_max
        local_failed = isinstance(local, BaseException)
        remote_failed = isinstance(remote, BaseException)

        if local_failed and remote_failed:
            if isinstance(local, GasExceedsLimit):
                # The local simulator knows the estimated cost, the remote does not.
                raise local
            logger.error("Local err: %r, Remote err: %r", local, remote)
            raise FailedToCalculateGasEstimate()

        if local_failed:
            logger.warning("Local failed, using remote: %d", remote)
            return Estimate(kind=kind, gas=min(remote, gas_limit))

        if remote_failed:
            logger.warning("Remote failed, using local: %d", local)
            return Estimate(kind=kind, gas=min(local, gas_limit))

        logger.info("Local: %d, Remote: %d", local, remote)
        return EstimateWithRange(
            kind=kind,
            low=min(local, remote),
            high=min(max(local, remote), gas_limit),
        )

    @staticmethod
    def _response(gas_usage: GasUsage, start: float) -> GasEstimateResponse:
        return GasEstimateResponse(
            gas_usage=gas_usage,
            time_elapsed_in_millis=_elapsed_millis(start),
        )
