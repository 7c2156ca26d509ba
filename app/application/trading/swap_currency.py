"""
Use case: Swap an amount of one currency into another.

Input: SwapCommand (user_id, from, to, amount)
Output: SwapResult
Side effects: Two ledger entries of type swap (debit ``from``, credit ``to``),
    committed together or not at all.
Failure cases: InvalidSwapError, InsufficientFundsError, PriceUnavailableError.

The rate is looked up as FROM+TO first and, when that pair has no
price, as TO+FROM with the reciprocal taken. Live tiers are tried in
both directions before the static table is consulted.

The balance check up front only avoids price lookups for callers who
cannot pay. The debit itself is conditional on the balance still
covering the amount, so a withdrawal landing in between rejects the
swap instead of crediting against a short debit.
"""

import logging
from decimal import Decimal

from app.application.trading.dtos import SwapCommand, SwapResult
from app.domain.trading.entities import (
    LedgerOperation,
    ResolvedPrice,
    TransactionStatus,
    TransactionType,
)
from app.domain.trading.errors import (
    InsufficientFundsError,
    InvalidSwapError,
    PriceUnavailableError,
)
from app.domain.trading.ledger import BalanceLedger
from app.domain.trading.ports import UnitOfWork
from app.domain.trading.price_resolver import PriceResolver

logger = logging.getLogger(__name__)

ONE = Decimal("1")


class SwapCurrencyUseCase:
    """Converts between two of the caller's balances through the ledger."""

    def __init__(
        self, ledger: BalanceLedger, resolver: PriceResolver, unit_of_work: UnitOfWork
    ) -> None:
        self._ledger = ledger
        self._resolver = resolver
        self._unit_of_work = unit_of_work

    def execute(self, command: SwapCommand) -> SwapResult:
        """Run the swap use case.

        Args:
            command: Currencies and the amount of ``from`` to give up.

        Returns:
            Both ledger entries and the rate applied.
        """
        from_currency = (command.from_currency or "").strip().upper()
        to_currency = (command.to_currency or "").strip().upper()
        if not from_currency or not to_currency:
            raise InvalidSwapError("from and to currencies are required")
        if from_currency == to_currency:
            raise InvalidSwapError("cannot swap a currency into itself")
        if command.amount is None or command.amount <= 0:
            raise InvalidSwapError("amount must be positive")

        balance = self._ledger.repository.get_balance(command.user_id, from_currency)
        available = balance.amount if balance is not None else Decimal("0")
        if available < command.amount:
            raise InsufficientFundsError(
                currency=from_currency,
                required=str(command.amount),
                available=str(available),
            )

        rate, source = self._rate(from_currency, to_currency)
        received = command.amount * rate

        reason = f"swap {command.amount} {from_currency} to {received} {to_currency}"
        with self._unit_of_work.atomic():
            debit = self._ledger.apply(
                user_id=command.user_id,
                currency=from_currency,
                amount=command.amount,
                operation=LedgerOperation.SUBTRACT,
                type=TransactionType.SWAP,
                status=TransactionStatus.COMPLETED,
                reason=reason,
                from_currency=from_currency,
                to_currency=to_currency,
                clamp=False,
            )
            credit = self._ledger.apply(
                user_id=command.user_id,
                currency=to_currency,
                amount=received,
                operation=LedgerOperation.ADD,
                type=TransactionType.SWAP,
                status=TransactionStatus.COMPLETED,
                reason=reason,
                from_currency=from_currency,
                to_currency=to_currency,
            )

        logger.info(
            "Swap for user %s: %s %s -> %s %s at %s (%s)",
            command.user_id,
            command.amount,
            from_currency,
            received,
            to_currency,
            rate,
            source,
        )
        return SwapResult(
            from_currency=from_currency,
            to_currency=to_currency,
            from_amount=command.amount,
            to_amount=received,
            rate=rate,
            price_source=source,
            debit=debit,
            credit=credit,
        )

    def _rate(self, from_currency: str, to_currency: str) -> tuple[Decimal, str]:
        """Return (units of TO per FROM, source name)."""
        direct = f"{from_currency}{to_currency}"
        reverse = f"{to_currency}{from_currency}"

        resolved = self._resolver.resolve_live(direct)
        if resolved is not None:
            return resolved.price, resolved.source
        resolved = self._resolver.resolve_live(reverse)
        if resolved is not None:
            return _reciprocal(resolved), resolved.source

        try:
            resolved = self._resolver.resolve_static(direct, strict=True)
            return resolved.price, resolved.source
        except PriceUnavailableError:
            logger.info("No price for %s, trying reverse pair %s", direct, reverse)
        resolved = self._resolver.resolve_static(reverse, strict=True)
        return _reciprocal(resolved), resolved.source


def _reciprocal(resolved: ResolvedPrice) -> Decimal:
    return ONE / resolved.price
