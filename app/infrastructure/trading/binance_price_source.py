"""
Adapter: Binance-compatible ticker price source.

One instance per endpoint. The first configured endpoint is the
primary tier, the rest are mirrors tried in order by the resolver.

    GET {endpoint}/ticker/price?symbol=BTCUSDT  ->  {"symbol": ..., "price": "..."}
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Optional, Sequence

import httpx

from app.domain.trading.entities import PriceTier
from app.domain.trading.errors import PriceSourceError
from app.domain.trading.ports import PriceSource

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINTS = (
    "https://api.binance.com/api/v3",
    "https://api1.binance.com/api/v3",
    "https://api2.binance.com/api/v3",
    "https://api3.binance.com/api/v3",
)
DEFAULT_TIMEOUT_SECONDS = 10.0
BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
HTTP_UNAVAILABLE_FOR_LEGAL_REASONS = 451


class BinancePriceSourceAdapter(PriceSource):
    """Reads the spot ticker price from one Binance-compatible endpoint."""

    def __init__(
        self,
        endpoint: str,
        tier: PriceTier = PriceTier.PRIMARY,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        client: Optional[httpx.Client] = None,
    ) -> None:
        """Initialize the adapter.

        Args:
            endpoint: Base URL ending in the API version, e.g.
                ``https://api1.binance.com/api/v3``.
            tier: PRIMARY for the main endpoint, MIRROR for the others.
            timeout: Hard per-request timeout in seconds.
            client: Optional shared httpx client (tests inject a
                MockTransport-backed one).
        """
        self._endpoint = endpoint.rstrip("/")
        self._timeout = timeout
        self._client = client or httpx.Client(
            timeout=timeout, headers={"User-Agent": BROWSER_USER_AGENT}
        )
        self.name = httpx.URL(self._endpoint).host or self._endpoint
        self.tier = tier

    def fetch_price(self, symbol: str) -> Decimal:
        try:
            resp = self._client.get(
                f"{self._endpoint}/ticker/price",
                params={"symbol": symbol},
                headers={"User-Agent": BROWSER_USER_AGENT},
                timeout=self._timeout,
            )
        except httpx.HTTPError as exc:
            raise PriceSourceError(self.name, symbol, f"request failed: {exc}") from exc

        if resp.status_code == HTTP_UNAVAILABLE_FOR_LEGAL_REASONS:
            logger.warning("%s is blocked (HTTP 451) for %s", self.name, symbol)
            raise PriceSourceError(self.name, symbol, "blocked (HTTP 451)")
        if resp.status_code != 200:
            raise PriceSourceError(self.name, symbol, f"HTTP {resp.status_code}")

        try:
            return Decimal(str(resp.json()["price"]))
        except (ValueError, KeyError, TypeError, InvalidOperation) as exc:
            raise PriceSourceError(
                self.name, symbol, f"malformed response: {exc!r}"
            ) from exc


def build_binance_sources(
    endpoints: Sequence[str] = DEFAULT_ENDPOINTS,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    client: Optional[httpx.Client] = None,
) -> list[BinancePriceSourceAdapter]:
    """Build the primary adapter followed by one mirror per extra endpoint."""
    return [
        BinancePriceSourceAdapter(
            endpoint,
            tier=PriceTier.PRIMARY if index == 0 else PriceTier.MIRROR,
            timeout=timeout,
            client=client,
        )
        for index, endpoint in enumerate(endpoints)
    ]
