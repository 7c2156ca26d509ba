"""
Use case: List a user's journal entries, newest first.

Also serves the swap history by filtering on TransactionType.SWAP.
"""

from typing import Optional

from app.domain.trading.entities import Transaction, TransactionType
from app.domain.trading.ports import BalanceLedgerRepository


class GetTransactionsUseCase:
    """Read side of the transaction journal."""

    def __init__(self, balances: BalanceLedgerRepository) -> None:
        self._balances = balances

    def execute(
        self, user_id: str, type: Optional[TransactionType] = None
    ) -> list[Transaction]:
        return self._balances.list_transactions(user_id, type=type)
