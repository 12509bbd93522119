import asyncio
import threading

import pytest

from gastimator.models.error import GasExceedsLimit, RemoteGasEstimateFailed
from gastimator.models.transaction import Transaction

SENDER = "0x" + "11" * 20
RECIPIENT = "0x" + "22" * 20
USDT = "0xdac17f958d2ee523a2206206994597c13d831ec7"
UNISWAP_ROUTER = "0x66a9893cc07d91d95644aedd05d03f95e1dba8af"

# ERC-20 transfer(address,uint256)
TRANSFER_CALLDATA = bytes.fromhex(
    "a9059cbb"
    "00000000000000000000000068f9950010075a94924c22eb3598781facbc5bab"
    "00000000000000000000000000000000000000000000000000000000515c3f40"
)


# --- RLP encoded transactions ---

# Uniswap universal router swap, signed, with value.
UNISWAP_SWAP_RLP = "02f902db01820168841dcd6500843d831e6783027a6d9466a9893cc07d91d95644aedd05d03f95e1dba8af8803bbae1324948000b9026424856bc30000000000000000000000000000000000000000000000000000000000000040000000000000000000000000000000000000000000000000000000000000008000000000000000000000000000000000000000000000000000000000000000020b080000000000000000000000000000000000000000000000000000000000000000000000000000000000000000000000000000000000000000000000000002000000000000000000000000000000000000000000000000000000000000004000000000000000000000000000000000000000000000000000000000000000a00000000000000000000000000000000000000000000000000000000000000040000000000000000000000000000000000000000000000000000000000000000200000000000000000000000000000000000000000000000003bbae1324948000000000000000000000000000000000000000000000000000000000000000010000000000000000000000000096cdea52111684fd74ec6cdf31dd97f395737a5d00000000000000000000000000000000000000000000000003bbae132494800000000000000000000000000000000000000000000000001e28ba62f4e8c66e7b00000000000000000000000000000000000000000000000000000000000000a000000000000000000000000000000000000000000000000000000000000000000000000000000000000000000000000000000000000000000000000000000002000000000000000000000000c02aaa39b223fe8d0a0e5c4f27ead9083c756cc20000000000000000000000000aff507ac29b8cea2fb10d2ad14408c2d79a35adc001a0ff907e592e412943d4f7136aeb55f9fcf701ef295c7cd620be07ffe037de5b58a05889a72e62156c986ccc657bcdba1f91c481e817ee607408320d312416fa3a67"

# USDT transfer, signed.
USDT_TRANSFER_RLP = (
    "0x02f8b00154842e942ba9846a0022a283030d4094dac17f958d2ee523a2206206994597c13d831ec780b844"
    "a9059cbb00000000000000000000000068f9950010075a94924c22eb3598781facbc5bab0000000000000000"
    "0000000000000000000000000000000000000000515c3f40c001a052f02bf5b79d535c820184ea1339d64b08"
    "ca6c1bec91e79ac39924ab5dfaaf25a067f6b8035977434570c70351c215e3e71b7805c3a8014f5eb29d614c"
    "b6592302"
)

# 0.005 ETH transfer, signed, and the same transaction without signature.
NATIVE_TRANSFER_SIGNED_RLP = (
    "02f87201824f4c83142ebf842d441366825208942e575fe17124f7ef2d22bbfb33cf3dbfc3f002d68711c379"
    "37e0800080c001a0152c51f0aa71d7698b486a34f8ffc9b61cc7a000c34d48e1cf9361d8973ba518a024216a"
    "87cb193b7e502ad9ddbcfc9674c40fe98bd4a7bda575ba03185621cd13"
)
NATIVE_TRANSFER_UNSIGNED_RLP = (
    "ef01824f4c83142ebf842d441366825208942e575fe17124f7ef2d22bbfb33cf3dbfc3f002d68711c37937e0"
    "800080c0"
)


# --- Sample transactions ---


def make_contract_call(**overrides) -> Transaction:
    fields = {
        "nonce": 84,
        "from": SENDER,
        "to": USDT,
        "value": 0,
        "gas_limit": 200_000,
        "input": TRANSFER_CALLDATA,
    }
    fields.update(overrides)
    return Transaction(**fields)


def make_native_transfer(**overrides) -> Transaction:
    fields = {
        "nonce": 1,
        "from": SENDER,
        "to": RECIPIENT,
        "value": 5_000_000_000_000_000,
    }
    fields.update(overrides)
    return Transaction(**fields)


def make_contract_creation(**overrides) -> Transaction:
    fields = {
        "nonce": 2,
        "from": SENDER,
        "to": None,
        "input": bytes.fromhex("60" * 64),
    }
    fields.update(overrides)
    return Transaction(**fields)


# --- Fake estimators ---


class HardcodedLocal:
    def __init__(self, gas: int):
        self.gas = gas
        self.calls = 0

    def simulate(self, tx: Transaction) -> int:
        self.calls += 1
        return self.gas


class FailingLocal:
    def __init__(self, error: Exception):
        self.error = error
        self.calls = 0

    def simulate(self, tx: Transaction) -> int:
        self.calls += 1
        raise self.error


class LimitCheckingLocal:
    """Uses a fixed cost and fails like a real simulator when the limit is too low."""

    def __init__(self, gas: int):
        self.gas = gas
        self.calls = 0

    def simulate(self, tx: Transaction) -> int:
        self.calls += 1
        if tx.gas_limit is not None and tx.gas_limit < self.gas:
            raise GasExceedsLimit(estimated_cost=self.gas, gas_limit=tx.gas_limit)
        return self.gas


class HardcodedRemote:
    def __init__(self, gas: int, delay: float = 0.0):
        self.gas = gas
        self.delay = delay
        self.calls = 0

    async def estimate_gas(self, tx: Transaction) -> int:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        return self.gas


class FailingRemote:
    def __init__(self, error: Exception | None = None):
        self.error = error or RemoteGasEstimateFailed("boom")
        self.calls = 0

    async def estimate_gas(self, tx: Transaction) -> int:
        self.calls += 1
        raise self.error


class BlockingLocal:
    """Blocks until the remote side has started, proving both run at once."""

    def __init__(self, gas: int, started: threading.Event):
        self.gas = gas
        self.started = started

    def simulate(self, tx: Transaction) -> int:
        if not self.started.wait(timeout=5):
            raise RuntimeError("remote estimate never started")
        return self.gas


class SignallingRemote:
    def __init__(self, gas: int, started: threading.Event):
        self.gas = gas
        self.started = started

    async def estimate_gas(self, tx: Transaction) -> int:
        self.started.set()
        await asyncio.sleep(0)
        return self.gas


@pytest.fixture
def contract_call() -> Transaction:
    return make_contract_call()


@pytest.fixture
def native_transfer() -> Transaction:
    return make_native_transfer()
