"""Price oracle: live CoinMarketCap quotes with a fixed fallback table."""

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Optional

import requests

from app.config import settings
from app.trade_math import FALLBACK_PRICES, WALLET_COINS

logger = logging.getLogger(__name__)

QUOTES_PATH = "/v1/cryptocurrency/quotes/latest"


class PriceUnavailable(Exception):
    """The oracle could not produce a price for a symbol."""


@dataclass(frozen=True)
class PriceQuote:
    symbol: str
    price: Decimal
    source: str  # live | fallback


class CoinMarketCapOracle:
    """Spot prices from the CoinMarketCap quotes endpoint."""

    def __init__(
        self,
        api_key: str = settings.COINMARKETCAP_API_KEY,
        base_url: str = settings.COINMARKETCAP_BASE_URL,
        timeout: float = settings.PRICE_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def get_spot_price(self, symbol: str) -> Decimal:
        """Fetch the USD spot price. Raises PriceUnavailable on any failure."""
        if not self.api_key:
            raise PriceUnavailable("CoinMarketCap API key not configured")
        try:
            resp = self.session.get(
                self.base_url + QUOTES_PATH,
                params={"symbol": symbol},
                headers={"X-CMC_PRO_API_KEY": self.api_key, "Accept": "application/json"},
                timeout=self.timeout,
            )
            resp.raise_for_status()
            raw = resp.json()["data"][symbol]
            # v2-style payloads wrap each symbol in a list
            if isinstance(raw, list):
                raw = raw[0]
            price = Decimal(str(raw["quote"]["USD"]["price"]))
        except (requests.RequestException, ValueError, KeyError, IndexError, TypeError, InvalidOperation) as e:
            raise PriceUnavailable(f"{symbol}: {e}") from e
        if price <= 0:
            raise PriceUnavailable(f"{symbol}: non-positive price {price}")
        return price


class StaticPriceOracle:
    """Prices from a fixed table."""

    def __init__(self, prices: Optional[dict] = None):
        self.prices = dict(FALLBACK_PRICES if prices is None else prices)

    def get_spot_price(self, symbol: str) -> Decimal:
        try:
            return Decimal(str(self.prices[symbol]))
        except KeyError:
            raise PriceUnavailable(f"No price for {symbol}")


class FallbackPriceOracle:
    """Primary oracle first, the fallback table when it fails.

    Supported coins therefore always resolve to a price: availability wins
    over accuracy.
    """

    def __init__(self, primary, fallback: Optional[StaticPriceOracle] = None):
        self.primary = primary
        self.fallback = fallback or StaticPriceOracle()

    def quote(self, symbol: str) -> PriceQuote:
        symbol = symbol.upper()
        try:
            return PriceQuote(symbol, self.primary.get_spot_price(symbol), "live")
        except PriceUnavailable as e:
            logger.warning("Live price unavailable, using fallback: %s", e)
        return PriceQuote(symbol, self.fallback.get_spot_price(symbol), "fallback")

    def get_spot_price(self, symbol: str) -> Decimal:
        return self.quote(symbol).price

    def quote_all(self, symbols=WALLET_COINS) -> dict[str, PriceQuote]:
        return {s: self.quote(s) for s in symbols}


_oracle: Optional[FallbackPriceOracle] = None


def get_price_oracle() -> FallbackPriceOracle:
    """FastAPI dependency returning the process-wide oracle."""
    global _oracle
    if _oracle is None:
        _oracle = FallbackPriceOracle(CoinMarketCapOracle())
    return _oracle
