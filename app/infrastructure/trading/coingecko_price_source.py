"""
Adapter: CoinGecko aggregator price source.

Last live tier of the resolver. Trading pairs are translated to
(coin id, unit) by the pure helpers in price_symbols; inverted
pairs are answered with the reciprocal.
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Optional

import httpx

from app.domain.trading.entities import PriceTier
from app.domain.trading.errors import PriceSourceError
from app.domain.trading.ports import PriceSource
from app.domain.trading.price_symbols import aggregator_query, apply_inversion

logger = logging.getLogger(__name__)

DEFAULT_AGGREGATOR_URL = "https://api.coingecko.com/api/v3"
DEFAULT_TIMEOUT_SECONDS = 10.0


class CoinGeckoPriceSourceAdapter(PriceSource):
    """Reads simple prices from the CoinGecko public API."""

    name = "coingecko"
    tier = PriceTier.AGGREGATOR

    def __init__(
        self,
        base_url: str = DEFAULT_AGGREGATOR_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._client = client or httpx.Client(timeout=timeout)

    def fetch_price(self, symbol: str) -> Decimal:
        query = aggregator_query(symbol)
        try:
            resp = self._client.get(
                f"{self._base_url}/simple/price",
                params={"ids": query.coin_id, "vs_currencies": query.vs_currency},
                timeout=self._timeout,
            )
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            raise PriceSourceError(self.name, symbol, f"request failed: {exc}") from exc

        try:
            raw = resp.json()[query.coin_id][query.vs_currency]
            price = Decimal(str(raw))
        except (ValueError, KeyError, TypeError, InvalidOperation) as exc:
            raise PriceSourceError(
                self.name,
                symbol,
                f"no {query.vs_currency} price for {query.coin_id}",
            ) from exc

        if price <= 0:
            raise PriceSourceError(self.name, symbol, f"non-positive price {price}")

        logger.debug(
            "Aggregator priced %s via %s/%s (inverted=%s)",
            symbol,
            query.coin_id,
            query.vs_currency,
            query.inverted,
        )
        return apply_inversion(price, query.inverted)
