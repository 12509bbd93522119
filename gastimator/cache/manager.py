import logging
import threading
from contextlib import ExitStack, contextmanager

from gastimator.models.gas_usage import GasUsage
from gastimator.models.transaction import Transaction

logger = logging.getLogger(__name__)

LOCK_STRIPES = 16


class GasUsageCache:
    """Memoizes the gas usage computed for a transaction.

    Keyed on the full transaction value. Only cacheable transactions (nonce and
    sender present) are ever stored. Entries live as long as the cache does:
    no TTL, no eviction. Keys are spread over striped locks so unrelated
    transactions never wait on each other.
    """

    def __init__(self, stripes: int = LOCK_STRIPES):
        self._store: dict[Transaction, GasUsage] = {}
        self._locks = [threading.Lock() for _ in range(stripes)]

    def _lock_for(self, tx: Transaction) -> threading.Lock:
        return self._locks[hash(tx) % len(self._locks)]

    @contextmanager
    def _all_locks(self):
        with ExitStack() as stack:
            for lock in self._locks:
                stack.enter_context(lock)
            yield

    def get(self, tx: Transaction) -> GasUsage | None:
        if not tx.is_cacheable:
            return None
        with self._lock_for(tx):
            return self._store.get(tx)

    def put(self, tx: Transaction, gas_usage: GasUsage) -> None:
        if not tx.is_cacheable:
            return
        with self._lock_for(tx):
            self._store[tx] = gas_usage
        logger.debug("Cached %s for nonce=%s from=%s", gas_usage, tx.nonce, tx.from_)

    def clear(self) -> None:
        with self._all_locks():
            self._store.clear()

    def __len__(self) -> int:
        with self._all_locks():
            return len(self._store)

    def __contains__(self, tx: Transaction) -> bool:
        with self._lock_for(tx):
            return tx in self._store
