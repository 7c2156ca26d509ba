"""
Adapter: Price tracker repository.

Implements PriceTrackerRepository port on top of SQLAlchemy Core.
Keeps the latest price per ticker plus a history capped at
``history_size`` samples; the oldest samples are evicted first.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import delete, insert, select, update
from sqlalchemy.engine import Engine

from app.domain.trading.entities import PricePoint, PriceTracker
from app.domain.trading.ports import PriceTrackerRepository
from app.infrastructure.database import as_utc, begin, connect
from app.infrastructure.trading.tables import price_history, price_trackers

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_SIZE = 100


class PriceTrackerRepositoryAdapter(PriceTrackerRepository):
    """SQL implementation of the observed-price cache."""

    def __init__(self, engine: Engine, history_size: int = DEFAULT_HISTORY_SIZE) -> None:
        self._engine = engine
        self._history_size = history_size

    def record(self, ticker: str, price: Decimal, at: datetime) -> None:
        """Upsert the tracker and append one history sample."""
        with begin(self._engine) as conn:
            updated = conn.execute(
                update(price_trackers)
                .where(price_trackers.c.ticker == ticker)
                .values(current_price=price, last_updated=at)
            )
            if updated.rowcount == 0:
                conn.execute(
                    insert(price_trackers).values(
                        ticker=ticker, current_price=price, last_updated=at
                    )
                )
            conn.execute(
                insert(price_history).values(ticker=ticker, price=price, recorded_at=at)
            )

            # Id of the oldest sample still inside the window.
            cutoff = conn.execute(
                select(price_history.c.id)
                .where(price_history.c.ticker == ticker)
                .order_by(price_history.c.id.desc())
                .offset(self._history_size - 1)
                .limit(1)
            ).scalar()
            if cutoff is not None:
                trimmed = conn.execute(
                    delete(price_history)
                    .where(price_history.c.ticker == ticker)
                    .where(price_history.c.id < cutoff)
                )
                if trimmed.rowcount:
                    logger.debug(
                        "Evicted %d old price samples for %s", trimmed.rowcount, ticker
                    )

    def get(self, ticker: str) -> Optional[PriceTracker]:
        """Return the tracker and its history (oldest first), or None."""
        with connect(self._engine) as conn:
            row = conn.execute(
                select(price_trackers).where(price_trackers.c.ticker == ticker)
            ).mappings().first()
            if row is None:
                return None
            samples = conn.execute(
                select(price_history.c.price, price_history.c.recorded_at)
                .where(price_history.c.ticker == ticker)
                .order_by(price_history.c.id.asc())
            ).mappings().all()

        return PriceTracker(
            ticker=row["ticker"],
            current_price=Decimal(row["current_price"]),
            last_updated=as_utc(row["last_updated"]),
            history=[
                PricePoint(price=Decimal(s["price"]), timestamp=as_utc(s["recorded_at"]))
                for s in samples
            ],
        )
