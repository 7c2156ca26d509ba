"""
Domain service: balance ledger.

The single sanctioned entry point for mutating a user's balance.
Every call validates its input, delegates the atomic balance update
plus journal insert to the BalanceLedgerRepository port, and logs
the named outcome (created / applied / clamped).
"""

import logging
from decimal import Decimal
from typing import Optional

from app.domain.trading.entities import (
    LedgerEntry,
    LedgerOperation,
    LedgerOutcome,
    TransactionStatus,
    TransactionType,
)
from app.domain.trading.errors import InvalidLedgerOperationError
from app.domain.trading.ports import BalanceLedgerRepository

logger = logging.getLogger(__name__)


class BalanceLedger:
    """Funnel for every balance mutation in the system."""

    def __init__(self, repository: BalanceLedgerRepository) -> None:
        self._repository = repository

    @property
    def repository(self) -> BalanceLedgerRepository:
        return self._repository

    def apply(
        self,
        user_id: str,
        currency: str,
        amount: Decimal,
        operation: LedgerOperation | str,
        type: TransactionType,
        status: TransactionStatus,
        network: Optional[str] = None,
        reason: Optional[str] = None,
        from_currency: Optional[str] = None,
        to_currency: Optional[str] = None,
        clamp: bool = True,
    ) -> LedgerEntry:
        """Apply one add/subtract to (user, currency) and journal it.

        Subtractions that exceed the balance floor it at zero; the result
        carries LedgerOutcome.CLAMPED and a warning is logged. With
        ``clamp`` off they are rejected instead.

        Raises:
            InvalidLedgerOperationError: For a non-positive amount, an
                unknown operation or an empty currency. Nothing is written.
            InsufficientFundsError: For an unclamped subtraction the balance
                cannot cover. Nothing is written.
        """
        if not isinstance(operation, LedgerOperation):
            try:
                operation = LedgerOperation(operation)
            except ValueError:
                raise InvalidLedgerOperationError(
                    f"unknown operation {operation!r}, valid options: add, subtract"
                ) from None
        if amount <= 0:
            raise InvalidLedgerOperationError(f"amount must be positive, got {amount}")
        if not currency or not currency.strip():
            raise InvalidLedgerOperationError("currency is required")

        entry = self._repository.apply(
            user_id=user_id,
            currency=currency.strip().upper(),
            amount=amount,
            operation=operation,
            type=type,
            status=status,
            network=network.upper() if network else None,
            reason=reason,
            from_currency=from_currency,
            to_currency=to_currency,
            clamp=clamp,
        )

        if entry.outcome is LedgerOutcome.CLAMPED:
            logger.warning(
                "Ledger subtract clamped to zero: user=%s currency=%s requested=%s type=%s",
                user_id,
                entry.balance.currency,
                amount,
                type.value,
            )
        else:
            logger.info(
                "Ledger %s %s %s for user=%s (%s) -> balance %s",
                operation.value,
                amount,
                entry.balance.currency,
                user_id,
                entry.outcome.value,
                entry.balance.amount,
            )
        return entry
