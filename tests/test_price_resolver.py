"""
Tests for tiered price resolution.

The resolver is exercised with in-memory sources; the HTTP adapters
are exercised against httpx.MockTransport so no network is touched.
"""

from decimal import Decimal

import httpx
import pytest

from app.domain.trading.entities import PriceTier
from app.domain.trading.errors import PriceSourceError, PriceUnavailableError
from app.domain.trading.price_resolver import STATIC_SOURCE_NAME, PriceResolver
from app.infrastructure.trading.binance_price_source import (
    BinancePriceSourceAdapter,
    build_binance_sources,
)
from app.infrastructure.trading.coingecko_price_source import (
    CoinGeckoPriceSourceAdapter,
)


def _client(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


class TestPriceResolver:
    """Tests for the fallback chain."""

    def test_first_answering_source_wins(self, make_source) -> None:
        primary = make_source({"BTCUSDT": "51000"}, name="primary")
        mirror = make_source({"BTCUSDT": "1"}, name="mirror", tier=PriceTier.MIRROR)
        resolved = PriceResolver([primary, mirror]).resolve("BTC/USDT")

        assert resolved.price == Decimal("51000")
        assert resolved.source == "primary"
        assert resolved.tier is PriceTier.PRIMARY
        assert mirror.calls == []

    def test_falls_through_to_next_tier(self, make_source) -> None:
        """A failing source moves the chain on without surfacing an error."""
        primary = make_source({}, name="primary")
        mirror = make_source({"ETHUSDT": "2600"}, name="mirror", tier=PriceTier.MIRROR)
        resolved = PriceResolver([primary, mirror]).resolve("ETHUSDT")

        assert resolved.price == Decimal("2600")
        assert resolved.tier is PriceTier.MIRROR
        assert primary.calls == ["ETHUSDT"]

    def test_non_positive_price_is_skipped(self, make_source) -> None:
        zero = make_source({"BTCUSDT": "0"}, name="zero")
        good = make_source({"BTCUSDT": "50000"}, name="good")
        resolved = PriceResolver([zero, good]).resolve("BTCUSDT")
        assert resolved.source == "good"

    def test_static_table_backstops_known_symbol(self, make_source) -> None:
        resolved = PriceResolver([make_source({})]).resolve("BTC/USDT", strict=True)
        assert resolved.price == Decimal("45000")
        assert resolved.tier is PriceTier.STATIC
        assert resolved.source == STATIC_SOURCE_NAME

    def test_unknown_symbol_non_strict_is_one(self, make_source) -> None:
        resolved = PriceResolver([make_source({})]).resolve("FOOBAR")
        assert resolved.price == Decimal("1")
        assert resolved.tier is PriceTier.STATIC

    def test_unknown_symbol_strict_raises(self, make_source) -> None:
        with pytest.raises(PriceUnavailableError) as exc_info:
            PriceResolver([make_source({})]).resolve("FOO/BAR", strict=True)
        assert exc_info.value.symbol == "FOOBAR"

    def test_resolve_live_returns_none_when_all_fail(self, make_source) -> None:
        resolver = PriceResolver([make_source({}), make_source({})])
        assert resolver.resolve_live("BTCUSDT") is None

    def test_full_chain_through_http_tiers(self) -> None:
        """Primary blocked, mirror down, aggregator answers."""

        def handler(request: httpx.Request) -> httpx.Response:
            host = request.url.host
            if host == "api.binance.com":
                return httpx.Response(451)
            if host == "api1.binance.com":
                raise httpx.ConnectError("refused", request=request)
            return httpx.Response(200, json={"solana": {"usd": 101.5}})

        client = _client(handler)
        sources = build_binance_sources(
            ("https://api.binance.com/api/v3", "https://api1.binance.com/api/v3"),
            client=client,
        )
        sources.append(CoinGeckoPriceSourceAdapter(client=client))
        resolved = PriceResolver(sources).resolve("SOL/USDT")

        assert resolved.price == Decimal("101.5")
        assert resolved.tier is PriceTier.AGGREGATOR
        assert resolved.source == "coingecko"


class TestBinancePriceSource:
    """Tests for the Binance-compatible adapter."""

    def test_reads_ticker_price(self) -> None:
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["symbol"] = request.url.params["symbol"]
            return httpx.Response(200, json={"symbol": "BTCUSDT", "price": "50123.45"})

        source = BinancePriceSourceAdapter(
            "https://api.binance.com/api/v3", client=_client(handler)
        )
        assert source.fetch_price("BTCUSDT") == Decimal("50123.45")
        assert seen == {"path": "/api/v3/ticker/price", "symbol": "BTCUSDT"}
        assert source.name == "api.binance.com"

    def test_blocked_endpoint_raises_source_error(self) -> None:
        source = BinancePriceSourceAdapter(
            "https://api.binance.com/api/v3",
            client=_client(lambda request: httpx.Response(451)),
        )
        with pytest.raises(PriceSourceError) as exc_info:
            source.fetch_price("BTCUSDT")
        assert "451" in exc_info.value.reason

    def test_malformed_body_raises_source_error(self) -> None:
        source = BinancePriceSourceAdapter(
            "https://api.binance.com/api/v3",
            client=_client(lambda request: httpx.Response(200, json={"msg": "?"})),
        )
        with pytest.raises(PriceSourceError):
            source.fetch_price("BTCUSDT")

    def test_mirrors_follow_primary(self) -> None:
        sources = build_binance_sources(client=_client(lambda r: httpx.Response(500)))
        assert [s.tier for s in sources] == [
            PriceTier.PRIMARY,
            PriceTier.MIRROR,
            PriceTier.MIRROR,
            PriceTier.MIRROR,
        ]


class TestCoinGeckoPriceSource:
    """Tests for the aggregator adapter."""

    def test_direct_pair(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.params["ids"] == "ethereum"
            assert request.url.params["vs_currencies"] == "btc"
            return httpx.Response(200, json={"ethereum": {"btc": 0.05}})

        source = CoinGeckoPriceSourceAdapter(client=_client(handler))
        assert source.fetch_price("ETHBTC") == Decimal("0.05")

    def test_inverted_pair_returns_reciprocal(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.params["ids"] == "bitcoin"
            assert request.url.params["vs_currencies"] == "usd"
            return httpx.Response(200, json={"bitcoin": {"usd": 50000}})

        source = CoinGeckoPriceSourceAdapter(client=_client(handler))
        assert source.fetch_price("USDTBTC") == Decimal("0.00002")

    def test_missing_coin_raises_source_error(self) -> None:
        source = CoinGeckoPriceSourceAdapter(
            client=_client(lambda request: httpx.Response(200, json={}))
        )
        with pytest.raises(PriceSourceError):
            source.fetch_price("BTCUSDT")

    def test_http_error_raises_source_error(self) -> None:
        source = CoinGeckoPriceSourceAdapter(
            client=_client(lambda request: httpx.Response(429))
        )
        with pytest.raises(PriceSourceError):
            source.fetch_price("BTCUSDT")
