"""
Use case: Admin profit/loss override for one order.

Input: AdminSettleCommand (order_id, action)
Output: SettlementResult
Side effects: Order terminal transition, one ledger entry.
Failure cases: InvalidSettlementActionError, OrderNotFoundError,
    BalanceNotFoundError.
"""

import logging

from app.application.trading.dtos import AdminSettleCommand
from app.domain.trading.settlement import SettlementEngine, SettlementResult

logger = logging.getLogger(__name__)


class AdminSettleOrderUseCase:
    """Applies an explicit outcome without consulting any price."""

    def __init__(self, engine: SettlementEngine) -> None:
        self._engine = engine

    def execute(self, command: AdminSettleCommand) -> SettlementResult:
        logger.info(
            "Admin override requested: order=%s action=%s",
            command.order_id,
            command.action,
        )
        return self._engine.settle_manual(
            command.order_id, command.action.strip().lower()
        )
