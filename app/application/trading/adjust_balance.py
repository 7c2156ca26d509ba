"""
Use case: Admin balance adjustment.

Input: AdjustBalanceCommand (user id or email, currency, amount, operation)
Output: AdjustBalanceResult
Side effects: One ledger entry of type admin_deposit.
Failure cases: UserNotFoundError, InvalidLedgerOperationError.
"""

import logging

from app.application.trading.dtos import AdjustBalanceCommand, AdjustBalanceResult
from app.domain.trading.entities import TransactionStatus, TransactionType
from app.domain.trading.errors import UserNotFoundError
from app.domain.trading.ledger import BalanceLedger
from app.domain.trading.ports import UserDirectory

logger = logging.getLogger(__name__)


class AdjustBalanceUseCase:
    """Credits or debits a user's balance on behalf of an admin."""

    def __init__(self, users: UserDirectory, ledger: BalanceLedger) -> None:
        self._users = users
        self._ledger = ledger

    def execute(self, command: AdjustBalanceCommand) -> AdjustBalanceResult:
        user = self._users.find(command.user_ref)
        if user is None:
            raise UserNotFoundError(command.user_ref)

        entry = self._ledger.apply(
            user_id=user.id,
            currency=command.currency,
            amount=command.amount,
            operation=command.operation.strip().lower(),
            type=TransactionType.ADMIN_DEPOSIT,
            status=TransactionStatus.COMPLETED,
            network=command.network,
            reason=command.reason,
        )
        logger.info(
            "Admin %s of %s %s for %s",
            command.operation,
            command.amount,
            entry.balance.currency,
            user.email,
        )
        return AdjustBalanceResult(user_id=user.id, email=user.email, entry=entry)
