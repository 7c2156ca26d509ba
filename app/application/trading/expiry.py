"""
In-line expiry shared by the order read paths.

Reading orders settles every active order whose duration has
elapsed as a loss of its stake before the list is returned.
"""

import logging
from datetime import datetime

from app.domain.trading.entities import Order, OrderStatus
from app.domain.trading.order_rules import is_expired
from app.domain.trading.settlement import SettlementEngine

logger = logging.getLogger(__name__)


def settle_elapsed_orders(
    engine: SettlementEngine, orders: list[Order], now: datetime
) -> list[Order]:
    """Return ``orders`` with every elapsed active order settled.

    Orders that could not be settled (no settlement balance, or closed
    concurrently by another path) are returned unchanged.
    """
    refreshed: list[Order] = []
    settled = 0
    for order in orders:
        if order.status is OrderStatus.ACTIVE and is_expired(order, now):
            result = engine.settle_expired(order)
            if result is not None:
                refreshed.append(result.order)
                settled += 1
                continue
        refreshed.append(order)

    if settled:
        logger.info("Settled %d elapsed orders in-line", settled)
    return refreshed
