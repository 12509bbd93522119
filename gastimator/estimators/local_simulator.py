"""
Local, deterministic transaction simulator.

Replays a transaction on a py-evm VM over an empty in-memory world state: no
account has code or storage, balance and nonce checks are skipped. Init code
and precompiles execute for real; every replay is reverted afterwards so the
state stays empty. Transaction-level accounting (intrinsic cost, code deposit,
refund cap and the EIP-7623 calldata floor) is applied on top of the VM's
execution gas.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass

import rlp
from eth.chains.base import MiningChain
from eth.db.atomic import AtomicDB
from eth.exceptions import OutOfGas, Revert
from eth.vm.forks import CancunVM
from eth_utils import keccak, to_canonical_address

from gastimator.models.error import GasExceedsLimit, LocalSimulationFailed
from gastimator.models.transaction import Transaction

logger = logging.getLogger(__name__)

MAINNET_CHAIN_ID = 1
BLOCK_GAS_LIMIT = 30_000_000
ZERO_ADDRESS = b"\x00" * 20

TX_BASE_COST = 21_000
TX_CREATE_COST = 32_000

# EIP-3860
INITCODE_WORD_COST = 2
MAX_INITCODE_SIZE = 49_152

# EIP-170
MAX_CODE_SIZE = 24_576
CODE_DEPOSIT_COST_PER_BYTE = 200

# EIP-3529
MAX_REFUND_QUOTIENT = 5

# EIP-7623
STANDARD_TOKEN_COST = 4
TOTAL_COST_FLOOR_PER_TOKEN = 10

GENESIS_PARAMS = {
    "difficulty": 0,
    "gas_limit": BLOCK_GAS_LIMIT,
    "timestamp": 1_710_338_135,
}


def calldata_tokens(data: bytes) -> int:
    zero_bytes = data.count(0)
    return zero_bytes + 4 * (len(data) - zero_bytes)


def intrinsic_gas(data: bytes, is_create: bool) -> int:
    gas = TX_BASE_COST + STANDARD_TOKEN_COST * calldata_tokens(data)
    if is_create:
        words = (len(data) + 31) // 32
        gas += TX_CREATE_COST + INITCODE_WORD_COST * words
    return gas


def floor_data_gas(data: bytes) -> int:
    return TX_BASE_COST + TOTAL_COST_FLOOR_PER_TOKEN * calldata_tokens(data)


def contract_address(sender: bytes, nonce: int) -> bytes:
    return keccak(rlp.encode([sender, nonce]))[12:]


def _build_vm():
    chain_class = MiningChain.configure(
        __name__="EmptyMainnetChain",
        vm_configuration=((0, CancunVM),),
        chain_id=MAINNET_CHAIN_ID,
    )
    chain = chain_class.from_genesis(AtomicDB(), GENESIS_PARAMS)
    return chain.get_vm()


@dataclass
class _ExecutionContext:
    """The mutable environment the simulator executes in."""

    vm: object
    tx: Transaction | None = None
    replays: int = 0


class EvmTxSimulator:
    def __init__(self):
        self._context = _ExecutionContext(vm=_build_vm())
        # The VM and its state journal are single-writer.
        self._lock = threading.Lock()

    @property
    def replays(self) -> int:
        return self._context.replays

    def simulate(self, tx: Transaction) -> int:
        with self._lock:
            self._context.tx = tx
            try:
                return self._replay()
            finally:
                self._context.tx = None
                self._context.replays += 1

    def _replay(self) -> int:
        tx = self._context.tx
        is_create = tx.is_contract_creation

        if is_create and len(tx.input) > MAX_INITCODE_SIZE:
            logger.error("Init code of %d bytes exceeds %d", len(tx.input), MAX_INITCODE_SIZE)
            raise LocalSimulationFailed(
                f"init code size {len(tx.input)} exceeds limit {MAX_INITCODE_SIZE}"
            )

        initial_gas = intrinsic_gas(tx.input, is_create)
        floor_gas = floor_data_gas(tx.input)

        # The intrinsic cost is checked before the calldata floor.
        for required in (initial_gas, floor_gas):
            if tx.gas_limit is not None and tx.gas_limit < required:
                logger.warning("Gas limit %d less than required %d", tx.gas_limit, required)
                raise GasExceedsLimit(estimated_cost=required, gas_limit=tx.gas_limit)

        if tx.gas_limit is None:
            return self._unbounded_gas_used(tx, initial_gas, floor_gas)

        try:
            return self._gas_used(tx, initial_gas, floor_gas, tx.gas_limit - initial_gas)
        except OutOfGas:
            required = self._unbounded_gas_used(tx, initial_gas, floor_gas)
            logger.warning("Gas limit %d less than required %d", tx.gas_limit, required)
            raise GasExceedsLimit(estimated_cost=required, gas_limit=tx.gas_limit)

    def _unbounded_gas_used(self, tx: Transaction, initial_gas: int, floor_gas: int) -> int:
        try:
            return self._gas_used(tx, initial_gas, floor_gas, BLOCK_GAS_LIMIT)
        except OutOfGas as exc:
            logger.error("Out of gas with the full block gas limit")
            raise LocalSimulationFailed(exc) from exc

    def _gas_used(self, tx: Transaction, initial_gas: int, floor_gas: int, execution_gas: int) -> int:
        """Total gas of one replay given ``execution_gas`` for the VM.

        Raises ``OutOfGas`` when the VM runs out, any other VM failure except
        a revert becomes ``LocalSimulationFailed``.
        """
        execution_used, refund = self._execute(tx, execution_gas)
        used = initial_gas + execution_used
        used -= min(refund, used // MAX_REFUND_QUOTIENT)
        gas_used = max(used, floor_gas)
        logger.debug(
            "Simulated tx: intrinsic=%d execution=%d refund=%d floor=%d gas_used=%d",
            initial_gas,
            execution_used,
            refund,
            floor_gas,
            gas_used,
        )
        return gas_used

    def _execute(self, tx: Transaction, execution_gas: int) -> tuple[int, int]:
        vm = self._context.vm
        sender = to_canonical_address(tx.from_) if tx.from_ else ZERO_ADDRESS

        if tx.is_contract_creation:
            target = contract_address(sender, tx.nonce or 0)
            code = tx.input
        else:
            target = to_canonical_address(tx.to)
            code = vm.state.get_code(target)

        snapshot = vm.state.snapshot()
        try:
            computation = vm.execute_bytecode(
                origin=sender,
                gas_price=0,
                gas=execution_gas,
                to=target,
                sender=sender,
                value=tx.value,
                data=b"" if tx.is_contract_creation else tx.input,
                code=code,
            )
        finally:
            vm.state.revert(snapshot)

        if computation.is_error:
            if isinstance(computation.error, OutOfGas):
                raise computation.error
            if not isinstance(computation.error, Revert):
                logger.error("Error while simulating transaction: %r", computation.error)
                raise LocalSimulationFailed(computation.error)
            # Reverts consume gas like any other completed execution.
            return computation.get_gas_used(), 0

        used = computation.get_gas_used()
        if tx.is_contract_creation:
            runtime_code = computation.output
            if len(runtime_code) > MAX_CODE_SIZE:
                raise LocalSimulationFailed(
                    f"deployed code size {len(runtime_code)} exceeds limit {MAX_CODE_SIZE}"
                )
            used += CODE_DEPOSIT_COST_PER_BYTE * len(runtime_code)
            if used > execution_gas:
                raise OutOfGas("insufficient gas for code deposit")
        return used, computation.get_gas_refund()
