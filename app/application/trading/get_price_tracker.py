"""
Use case: Read the observed-price cache for one pair.

Input: base and quote currency
Output: PriceTracker (current price + bounded history)
Failure cases: PriceTrackerNotFoundError.
"""

from app.domain.trading.entities import PriceTracker
from app.domain.trading.errors import PriceTrackerNotFoundError
from app.domain.trading.order_rules import validate_ticker
from app.domain.trading.ports import PriceTrackerRepository


class GetPriceTrackerUseCase:
    """Returns what the sweeps have observed for a ticker."""

    def __init__(self, trackers: PriceTrackerRepository) -> None:
        self._trackers = trackers

    def execute(self, base: str, quote: str) -> PriceTracker:
        ticker = validate_ticker(f"{base}/{quote}")
        tracker = self._trackers.get(ticker)
        if tracker is None:
            raise PriceTrackerNotFoundError(ticker)
        return tracker
