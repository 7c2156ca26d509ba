"""
Adapter: Balance ledger repository.

Implements BalanceLedgerRepository port on top of SQLAlchemy Core.

Each ``apply`` runs in one database transaction, or in the caller's
when called inside ``SqlUnitOfWork.atomic()``:
    1. atomic UPDATE ... SET amount = amount +/- :delta (clamped at zero,
       or rejected with InsufficientFundsError when ``clamp`` is off),
       or INSERT when the balance does not exist yet,
    2. INSERT of the journal entry carrying the resulting amount.
"""

import logging
from decimal import Decimal
from typing import Optional
from uuid import uuid4

from sqlalchemy import and_, case, insert, select, update
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import IntegrityError

from app.domain.trading.entities import (
    Balance,
    LedgerEntry,
    LedgerOperation,
    LedgerOutcome,
    Transaction,
    TransactionStatus,
    TransactionType,
    utc_now,
)
from app.domain.trading.errors import InsufficientFundsError
from app.domain.trading.ports import BalanceLedgerRepository
from app.infrastructure.database import as_utc, begin, connect, in_transaction
from app.infrastructure.trading.tables import balances, transactions

logger = logging.getLogger(__name__)

DEFAULT_NETWORK = "TRC20"
ZERO = Decimal("0")


class BalanceLedgerRepositoryAdapter(BalanceLedgerRepository):
    """SQL implementation of the balance ledger.

    Balance arithmetic happens inside the UPDATE statement, never as a
    read-then-write in Python, so concurrent settlements cannot lose
    each other's update.
    """

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def apply(
        self,
        user_id: str,
        currency: str,
        amount: Decimal,
        operation: LedgerOperation,
        type: TransactionType,
        status: TransactionStatus,
        network: Optional[str] = None,
        reason: Optional[str] = None,
        from_currency: Optional[str] = None,
        to_currency: Optional[str] = None,
        clamp: bool = True,
    ) -> LedgerEntry:
        """Mutate one balance and append one journal entry atomically.

        A concurrent first insert of the same balance loses on the unique
        constraint; the whole transaction is then retried once as an update.
        Inside a caller's transaction the conflict is raised instead, since
        the caller's earlier writes are already gone with the rollback.
        """
        args = (
            user_id,
            currency,
            amount,
            operation,
            type,
            status,
            network,
            reason,
            from_currency,
            to_currency,
            clamp,
        )
        if in_transaction(self._engine):
            return self._apply_once(*args)
        try:
            return self._apply_once(*args)
        except IntegrityError:
            logger.info(
                "Balance %s/%s created concurrently, retrying as update.",
                user_id,
                currency,
            )
        return self._apply_once(*args)

    def get_balance(self, user_id: str, currency: str) -> Optional[Balance]:
        """Return the balance for (user, currency), or None."""
        query = select(balances).where(
            and_(balances.c.user_id == user_id, balances.c.currency == currency.upper())
        )
        with connect(self._engine) as conn:
            row = conn.execute(query).mappings().first()
        return _row_to_balance(row) if row else None

    def list_balances(self, user_id: str) -> list[Balance]:
        """Return every balance held by a user, ordered by currency."""
        query = (
            select(balances)
            .where(balances.c.user_id == user_id)
            .order_by(balances.c.currency)
        )
        with connect(self._engine) as conn:
            rows = conn.execute(query).mappings().all()
        return [_row_to_balance(row) for row in rows]

    def list_transactions(
        self, user_id: str, type: Optional[TransactionType] = None
    ) -> list[Transaction]:
        """Return a user's journal entries, newest first."""
        query = select(transactions).where(transactions.c.user_id == user_id)
        if type is not None:
            query = query.where(transactions.c.type == type.value)
        query = query.order_by(transactions.c.created_at.desc())
        with connect(self._engine) as conn:
            rows = conn.execute(query).mappings().all()
        return [_row_to_transaction(row) for row in rows]

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _apply_once(
        self,
        user_id: str,
        currency: str,
        amount: Decimal,
        operation: LedgerOperation,
        type: TransactionType,
        status: TransactionStatus,
        network: Optional[str],
        reason: Optional[str],
        from_currency: Optional[str],
        to_currency: Optional[str],
        clamp: bool,
    ) -> LedgerEntry:
        with begin(self._engine) as conn:
            balance, outcome = self._mutate(
                conn, user_id, currency, amount, operation, network, clamp
            )
            transaction = self._journal(
                conn,
                balance,
                amount,
                type,
                status,
                network,
                reason,
                from_currency,
                to_currency,
            )
        return LedgerEntry(balance=balance, transaction=transaction, outcome=outcome)

    def _mutate(
        self,
        conn: Connection,
        user_id: str,
        currency: str,
        amount: Decimal,
        operation: LedgerOperation,
        network: Optional[str],
        clamp: bool,
    ) -> tuple[Balance, LedgerOutcome]:
        now = utc_now()
        key = and_(balances.c.user_id == user_id, balances.c.currency == currency)
        returning = (
            balances.c.user_id,
            balances.c.currency,
            balances.c.network,
            balances.c.amount,
            balances.c.created_at,
        )

        if operation is LedgerOperation.ADD:
            row = conn.execute(
                update(balances)
                .where(key)
                .values(amount=balances.c.amount + amount, updated_at=now)
                .returning(*returning)
            ).mappings().first()
            if row is not None:
                return _row_to_balance(row), LedgerOutcome.APPLIED
        else:
            row = conn.execute(
                update(balances)
                .where(and_(key, balances.c.amount >= amount))
                .values(amount=balances.c.amount - amount, updated_at=now)
                .returning(*returning)
            ).mappings().first()
            if row is not None:
                return _row_to_balance(row), LedgerOutcome.APPLIED

            if not clamp:
                held = conn.execute(select(balances.c.amount).where(key)).scalar()
                raise InsufficientFundsError(
                    currency=currency,
                    required=str(amount),
                    available=str(Decimal(held) if held is not None else ZERO),
                )

            # Not enough funds (or no row): floor at zero, still in one statement.
            row = conn.execute(
                update(balances)
                .where(key)
                .values(
                    amount=case(
                        (balances.c.amount >= amount, balances.c.amount - amount),
                        else_=ZERO,
                    ),
                    updated_at=now,
                )
                .returning(*returning)
            ).mappings().first()
            if row is not None:
                balance = _row_to_balance(row)
                outcome = (
                    LedgerOutcome.CLAMPED if balance.amount == 0 else LedgerOutcome.APPLIED
                )
                return balance, outcome

        initial = amount if operation is LedgerOperation.ADD else ZERO
        conn.execute(
            insert(balances).values(
                user_id=user_id,
                currency=currency,
                network=network,
                amount=initial,
                created_at=now,
                updated_at=now,
            )
        )
        logger.info("Created %s balance for user %s.", currency, user_id)
        balance = Balance(
            user_id=user_id,
            currency=currency,
            amount=initial,
            network=network,
            created_at=now,
        )
        return balance, LedgerOutcome.CREATED

    def _journal(
        self,
        conn: Connection,
        balance: Balance,
        amount: Decimal,
        type: TransactionType,
        status: TransactionStatus,
        network: Optional[str],
        reason: Optional[str],
        from_currency: Optional[str],
        to_currency: Optional[str],
    ) -> Transaction:
        transaction = Transaction(
            id=str(uuid4()),
            user_id=balance.user_id,
            currency=balance.currency,
            network=network or DEFAULT_NETWORK,
            amount=amount,
            balance_after=balance.amount,
            type=type,
            status=status,
            created_at=utc_now(),
            reason=reason or None,
            from_currency=from_currency,
            to_currency=to_currency,
        )
        conn.execute(
            insert(transactions).values(
                id=transaction.id,
                user_id=transaction.user_id,
                currency=transaction.currency,
                network=transaction.network,
                amount=transaction.amount,
                balance_after=transaction.balance_after,
                type=transaction.type.value,
                status=transaction.status.value,
                reason=transaction.reason,
                from_currency=transaction.from_currency,
                to_currency=transaction.to_currency,
                created_at=transaction.created_at,
            )
        )
        return transaction


def _row_to_balance(row) -> Balance:
    return Balance(
        user_id=row["user_id"],
        currency=row["currency"],
        amount=Decimal(row["amount"]),
        network=row["network"],
        created_at=as_utc(row["created_at"]),
    )


def _row_to_transaction(row) -> Transaction:
    return Transaction(
        id=row["id"],
        user_id=row["user_id"],
        currency=row["currency"],
        network=row["network"],
        amount=Decimal(row["amount"]),
        balance_after=Decimal(row["balance_after"]),
        type=TransactionType(row["type"]),
        status=TransactionStatus(row["status"]),
        created_at=as_utc(row["created_at"]),
        reason=row["reason"],
        from_currency=row["from_currency"],
        to_currency=row["to_currency"],
    )
