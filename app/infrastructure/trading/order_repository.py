"""
Adapter: Order repository.

Implements OrderRepository port on top of SQLAlchemy Core.
Terminal transitions are conditional updates on the current status,
so exactly one concurrent settlement of an order can succeed.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import insert, select, update
from sqlalchemy.engine import Engine

from app.domain.trading.entities import (
    Direction,
    Order,
    OrderSettlement,
    OrderStatus,
    SettledBy,
    outcome_amount,
    outcome_from_parts,
    utc_now,
)
from app.domain.trading.ports import OrderRepository
from app.infrastructure.database import as_utc, begin, connect
from app.infrastructure.trading.tables import orders

logger = logging.getLogger(__name__)


class OrderRepositoryAdapter(OrderRepository):
    """SQL implementation of the order store."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def add(self, order: Order) -> None:
        """Persist a newly submitted order."""
        with begin(self._engine) as conn:
            conn.execute(
                insert(orders).values(
                    id=order.id,
                    user_id=order.user_id,
                    direction=order.direction.value,
                    ticker=order.ticker,
                    entry_price=order.entry_price,
                    current_price=order.current_price,
                    exit_price=order.exit_price,
                    duration=order.duration,
                    display_duration=order.display_duration,
                    percentage=order.percentage,
                    quantity=order.quantity,
                    outcome=order.outcome.kind,
                    amount=order.amount,
                    pnl=order.pnl,
                    status=order.status.value,
                    settled_by=order.settled_by.value if order.settled_by else None,
                    created_at=order.created_at,
                    updated_at=order.updated_at,
                )
            )
        logger.debug("Saved order %s.", order.id)

    def get(self, order_id: str) -> Optional[Order]:
        """Return an order by id, or None."""
        with connect(self._engine) as conn:
            row = conn.execute(
                select(orders).where(orders.c.id == order_id)
            ).mappings().first()
        return _row_to_order(row) if row else None

    def list_active(self) -> list[Order]:
        """Return every active order, oldest first."""
        query = (
            select(orders)
            .where(orders.c.status == OrderStatus.ACTIVE.value)
            .order_by(orders.c.created_at.asc())
        )
        with connect(self._engine) as conn:
            rows = conn.execute(query).mappings().all()
        return [_row_to_order(row) for row in rows]

    def list_for_user(
        self, user_id: str, status: Optional[OrderStatus] = None
    ) -> list[Order]:
        """Return a user's orders, newest first."""
        query = select(orders).where(orders.c.user_id == user_id)
        if status is not None:
            query = query.where(orders.c.status == status.value)
        query = query.order_by(orders.c.created_at.desc())
        with connect(self._engine) as conn:
            rows = conn.execute(query).mappings().all()
        return [_row_to_order(row) for row in rows]

    def search(
        self,
        status: Optional[OrderStatus] = None,
        direction: Optional[str] = None,
        ticker: Optional[str] = None,
        outcome: Optional[str] = None,
        user_id: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        min_pnl: Optional[Decimal] = None,
        max_pnl: Optional[Decimal] = None,
        min_percentage: Optional[int] = None,
        max_percentage: Optional[int] = None,
    ) -> list[Order]:
        """Return orders matching every given filter, newest first.

        ``ticker`` matches case-insensitively as a substring.
        """
        query = select(orders)
        if status is not None:
            query = query.where(orders.c.status == status.value)
        if direction:
            query = query.where(orders.c.direction == direction)
        if ticker:
            query = query.where(orders.c.ticker.ilike(f"%{ticker}%"))
        if outcome:
            query = query.where(orders.c.outcome == outcome)
        if user_id:
            query = query.where(orders.c.user_id == user_id)
        if start is not None:
            query = query.where(orders.c.created_at >= as_utc(start))
        if end is not None:
            query = query.where(orders.c.created_at <= as_utc(end))
        if min_pnl is not None:
            query = query.where(orders.c.pnl >= min_pnl)
        if max_pnl is not None:
            query = query.where(orders.c.pnl <= max_pnl)
        if min_percentage is not None:
            query = query.where(orders.c.percentage >= min_percentage)
        if max_percentage is not None:
            query = query.where(orders.c.percentage <= max_percentage)
        query = query.order_by(orders.c.created_at.desc())

        with connect(self._engine) as conn:
            rows = conn.execute(query).mappings().all()
        return [_row_to_order(row) for row in rows]

    def settle(
        self,
        order_id: str,
        settlement: OrderSettlement,
        from_statuses: tuple[OrderStatus, ...],
    ) -> bool:
        """Apply a terminal transition only if the order is in ``from_statuses``."""
        values = {
            "status": settlement.status.value,
            "outcome": settlement.outcome.kind,
            "amount": outcome_amount(settlement.outcome),
            "pnl": settlement.pnl,
            "settled_by": settlement.settled_by.value,
            "updated_at": utc_now(),
        }
        if settlement.current_price is not None:
            values["current_price"] = settlement.current_price
        if settlement.exit_price is not None:
            values["exit_price"] = settlement.exit_price

        statement = (
            update(orders)
            .where(orders.c.id == order_id)
            .where(orders.c.status.in_([s.value for s in from_statuses]))
            .values(**values)
        )
        with begin(self._engine) as conn:
            result = conn.execute(statement)
        won = result.rowcount == 1
        if won:
            logger.debug(
                "Order %s -> %s by %s.",
                order_id,
                settlement.status.value,
                settlement.settled_by.value,
            )
        return won


def _optional_decimal(value) -> Optional[Decimal]:
    return Decimal(value) if value is not None else None


def _row_to_order(row) -> Order:
    return Order(
        id=row["id"],
        user_id=row["user_id"],
        direction=Direction(row["direction"]),
        ticker=row["ticker"],
        entry_price=Decimal(row["entry_price"]),
        current_price=_optional_decimal(row["current_price"]),
        exit_price=_optional_decimal(row["exit_price"]),
        duration=row["duration"],
        display_duration=as_utc(row["display_duration"]),
        percentage=row["percentage"],
        quantity=Decimal(row["quantity"]),
        outcome=outcome_from_parts(row["outcome"], Decimal(row["amount"])),
        pnl=Decimal(row["pnl"]),
        status=OrderStatus(row["status"]),
        settled_by=SettledBy(row["settled_by"]) if row["settled_by"] else None,
        created_at=as_utc(row["created_at"]),
        updated_at=as_utc(row["updated_at"]),
    )
