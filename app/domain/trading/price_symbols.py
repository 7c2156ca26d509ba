"""
Domain service: trading-pair symbol translation.

Pure functions used by the price resolver. No IO.

    - normalize_symbol:     "BTC/USDT" -> "BTCUSDT"
    - split_pair:           "BTCETH"   -> ("BTC", "ETH")
    - aggregator_query:     pair -> coin id, quote unit, inversion flag
    - apply_inversion:      reciprocal for inverted pairs
    - default_price:        static backstop table
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

ONE = Decimal("1")

# Quote assets recognised when a symbol arrives without a separator.
# Longest first so "USDT" wins over "USD".
KNOWN_QUOTES: tuple[str, ...] = ("USDT", "USDC", "BUSD", "USD", "BTC", "ETH", "BNB")

# Dollar-pegged assets. A pair quoted with one of these first is a
# reverse pair: the other coin is priced in usd and inverted.
STABLECOINS: tuple[str, ...] = ("USDT", "USDC", "BUSD", "USD")

# Units the aggregator can price in.
AGGREGATOR_UNITS: dict[str, str] = {
    "USDT": "usd",
    "USDC": "usd",
    "BUSD": "usd",
    "USD": "usd",
    "BTC": "btc",
    "ETH": "eth",
    "BNB": "bnb",
}

AGGREGATOR_COIN_IDS: dict[str, str] = {
    "BTC": "bitcoin",
    "ETH": "ethereum",
    "USDT": "tether",
    "BNB": "binancecoin",
    "ADA": "cardano",
    "SOL": "solana",
    "DOT": "polkadot",
    "DOGE": "dogecoin",
    "MATIC": "matic-network",
    "LINK": "chainlink",
    "UNI": "uniswap",
    "LTC": "litecoin",
    "BCH": "bitcoin-cash",
    "XRP": "ripple",
    "TRX": "tron",
    "EOS": "eos",
    "NEO": "neo",
    "VET": "vechain",
    "ICP": "internet-computer",
    "FIL": "filecoin",
}

DEFAULT_USDT_PRICES: dict[str, Decimal] = {
    "BTC": Decimal("45000"),
    "ETH": Decimal("2500"),
    "BNB": Decimal("300"),
    "ADA": Decimal("0.5"),
    "SOL": Decimal("100"),
    "DOT": Decimal("7"),
    "DOGE": Decimal("0.08"),
    "MATIC": Decimal("0.8"),
    "LINK": Decimal("15"),
    "UNI": Decimal("7"),
    "LTC": Decimal("70"),
    "BCH": Decimal("250"),
    "XRP": Decimal("0.5"),
    "TRX": Decimal("0.08"),
    "EOS": Decimal("0.7"),
    "NEO": Decimal("12"),
    "VET": Decimal("0.02"),
    "ICP": Decimal("12"),
    "FIL": Decimal("5"),
}

DEFAULT_BTC_PRICES: dict[str, Decimal] = {
    "ETH": Decimal("0.055"),
    "BNB": Decimal("0.0067"),
    "ADA": Decimal("0.000011"),
    "SOL": Decimal("0.0022"),
    "DOT": Decimal("0.00016"),
    "DOGE": Decimal("0.0000018"),
    "MATIC": Decimal("0.000018"),
    "LINK": Decimal("0.00033"),
    "UNI": Decimal("0.00016"),
    "LTC": Decimal("0.0016"),
    "BCH": Decimal("0.0056"),
    "XRP": Decimal("0.000011"),
    "TRX": Decimal("0.0000018"),
    "EOS": Decimal("0.000016"),
    "NEO": Decimal("0.00027"),
    "VET": Decimal("0.00000044"),
    "ICP": Decimal("0.00027"),
    "FIL": Decimal("0.00011"),
}

UNKNOWN_SYMBOL_PRICE = ONE


def _build_default_table() -> dict[str, Decimal]:
    table: dict[str, Decimal] = {}
    for quote, prices in (("USDT", DEFAULT_USDT_PRICES), ("BTC", DEFAULT_BTC_PRICES)):
        for base, price in prices.items():
            table[f"{base}{quote}"] = price
            # Reverse pairs are queried by swaps in either direction.
            table[f"{quote}{base}"] = ONE / price
    return table


DEFAULT_PRICES: dict[str, Decimal] = _build_default_table()


@dataclass(frozen=True)
class AggregatorQuery:
    """What to ask the aggregator for, and how to read the answer."""

    coin_id: str
    vs_currency: str
    inverted: bool


def normalize_symbol(symbol: str) -> str:
    """Strip the pair separator and upper-case: "btc/usdt" -> "BTCUSDT"."""
    return symbol.replace("/", "").strip().upper()


def split_pair(symbol: str) -> Optional[tuple[str, str]]:
    """Split a symbol into (base, quote).

    Uses the "/" separator when present, otherwise a known quote suffix,
    otherwise a known quote prefix. Returns None if no split is possible.
    """
    raw = symbol.strip().upper()
    if "/" in raw:
        base, _, quote = raw.partition("/")
        return (base, quote) if base and quote else None

    for quote in KNOWN_QUOTES:
        if raw.endswith(quote) and len(raw) > len(quote):
            return raw[: -len(quote)], quote
    for base in KNOWN_QUOTES:
        if raw.startswith(base) and len(raw) > len(base):
            return base, raw[len(base):]
    return None


def aggregator_query(symbol: str) -> AggregatorQuery:
    """Translate a trading pair into an aggregator request.

    Stablecoin-first pairs such as USDTBTC price the coin in usd and
    are inverted. Otherwise QUOTE-per-BASE pairs whose quote is a
    supported unit are asked directly. When only the base is a supported unit the pair is
    inverted: the quote coin is priced in the base unit and the caller
    must take the reciprocal.
    """
    pair = split_pair(symbol)
    if pair is None:
        raw = normalize_symbol(symbol)
        return AggregatorQuery(
            coin_id=AGGREGATOR_COIN_IDS.get(raw, raw.lower()),
            vs_currency="usd",
            inverted=False,
        )

    base, quote = pair
    if base in STABLECOINS and quote not in STABLECOINS:
        return AggregatorQuery(
            coin_id=AGGREGATOR_COIN_IDS.get(quote, quote.lower()),
            vs_currency="usd",
            inverted=True,
        )
    if quote in AGGREGATOR_UNITS:
        return AggregatorQuery(
            coin_id=AGGREGATOR_COIN_IDS.get(base, base.lower()),
            vs_currency=AGGREGATOR_UNITS[quote],
            inverted=False,
        )
    if base in AGGREGATOR_UNITS:
        return AggregatorQuery(
            coin_id=AGGREGATOR_COIN_IDS.get(quote, quote.lower()),
            vs_currency=AGGREGATOR_UNITS[base],
            inverted=True,
        )
    return AggregatorQuery(
        coin_id=AGGREGATOR_COIN_IDS.get(base, base.lower()),
        vs_currency="usd",
        inverted=False,
    )


def apply_inversion(price: Decimal, inverted: bool) -> Decimal:
    """Return ``1 / price`` for inverted pairs, ``price`` otherwise."""
    return ONE / price if inverted else price


def default_price(symbol: str) -> Optional[Decimal]:
    """Return the static default price for an exact symbol, or None."""
    return DEFAULT_PRICES.get(normalize_symbol(symbol))
