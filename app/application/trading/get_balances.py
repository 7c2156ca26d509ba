"""
Use case: List a user's balances.
"""

from app.domain.trading.entities import Balance
from app.domain.trading.ports import BalanceLedgerRepository


class GetBalancesUseCase:
    """Read side of the balance ledger."""

    def __init__(self, balances: BalanceLedgerRepository) -> None:
        self._balances = balances

    def execute(self, user_id: str) -> list[Balance]:
        return self._balances.list_balances(user_id)
