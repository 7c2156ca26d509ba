"""
Domain service: tiered price resolution.

Walks an ordered list of PriceSource strategies (primary, mirrors,
aggregator) and stops at the first one that answers with a positive
price. When every live source fails, the static default table is the
backstop. Upstream failures are logged and never reach the caller.

Only a strict resolution of a symbol that the static table does not
know raises PriceUnavailableError.
"""

import logging
from decimal import Decimal
from typing import Optional, Sequence

from app.domain.trading.entities import PriceTier, ResolvedPrice
from app.domain.trading.errors import PriceSourceError, PriceUnavailableError
from app.domain.trading.ports import PriceSource
from app.domain.trading.price_symbols import (
    UNKNOWN_SYMBOL_PRICE,
    default_price,
    normalize_symbol,
)

logger = logging.getLogger(__name__)

STATIC_SOURCE_NAME = "static-defaults"


class PriceResolver:
    """Resolves a symbol to a price through an ordered fallback chain."""

    def __init__(self, sources: Sequence[PriceSource]) -> None:
        """Initialize the resolver.

        Args:
            sources: Live price sources in priority order. Each one is tried
                only if every previous one failed.
        """
        self._sources = tuple(sources)

    @property
    def sources(self) -> tuple[PriceSource, ...]:
        return self._sources

    def resolve(self, symbol: str, strict: bool = False) -> ResolvedPrice:
        """Return the current price for ``symbol``.

        Args:
            symbol: Trading pair, with or without the "/" separator.
            strict: If True, refuse to invent a price for a symbol the static
                table does not know.

        Returns:
            The price and the tier that produced it.

        Raises:
            PriceUnavailableError: Only when ``strict`` is set and no tier,
                including the static table, knows the symbol.
        """
        normalized = normalize_symbol(symbol)
        resolved = self.resolve_live(normalized)
        if resolved is not None:
            return resolved
        return self.resolve_static(normalized, strict)

    def resolve_live(self, symbol: str) -> Optional[ResolvedPrice]:
        """Try only the live tiers. Returns None when every one of them fails."""
        normalized = normalize_symbol(symbol)

        for source in self._sources:
            try:
                price = source.fetch_price(normalized)
            except PriceSourceError as exc:
                logger.warning(
                    "Price tier %s (%s) failed for %s: %s",
                    source.tier.value,
                    source.name,
                    normalized,
                    exc.reason,
                )
                continue

            if price <= 0:
                logger.warning(
                    "Price tier %s (%s) returned non-positive price %s for %s",
                    source.tier.value,
                    source.name,
                    price,
                    normalized,
                )
                continue

            logger.debug("Resolved %s=%s via %s", normalized, price, source.name)
            return ResolvedPrice(
                symbol=normalized, price=price, source=source.name, tier=source.tier
            )

        return None

    def resolve_static(self, symbol: str, strict: bool = False) -> ResolvedPrice:
        """Answer from the static default table only."""
        normalized = normalize_symbol(symbol)
        price = default_price(normalized)
        if price is None:
            if strict:
                raise PriceUnavailableError(normalized)
            price = UNKNOWN_SYMBOL_PRICE
            logger.warning(
                "All price tiers failed for unknown symbol %s, using constant %s",
                normalized,
                price,
            )
        else:
            logger.warning(
                "All live price tiers failed for %s, using default price %s",
                normalized,
                price,
            )
        return ResolvedPrice(
            symbol=normalized,
            price=Decimal(price),
            source=STATIC_SOURCE_NAME,
            tier=PriceTier.STATIC,
        )
