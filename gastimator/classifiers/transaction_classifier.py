"""
Transaction classifier.

Derives the semantic kind of a transaction purely from its shape: whether it
has a recipient, whether it moves value, and whether it carries input data.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from gastimator.models.transaction_kind import TransactionKind

if TYPE_CHECKING:
    from gastimator.models.transaction import Transaction


def classify(tx: Transaction) -> TransactionKind:
    has_recipient = tx.to is not None
    moves_value = tx.value > 0
    has_input = len(tx.input) > 0

    # Pure ETH transfer
    if has_recipient and moves_value and not has_input:
        return TransactionKind.native_token_transfer()

    # Contract creation must carry init code
    if not has_recipient and has_input:
        return TransactionKind.contract_creation()

    if has_recipient:
        return TransactionKind.contract_call(with_native_token_transfer=moves_value)

    # Creation without init code
    return TransactionKind.unknown()
