"""Prices router: spot prices with fallback."""

from fastapi import APIRouter, Depends, HTTPException

from app.schemas.balance import PriceResponse, PricesResponse
from app.services.price_service import PriceUnavailable, get_price_oracle
from app.trade_math import WALLET_COINS

router = APIRouter(prefix="/api", tags=["prices"])


@router.get("/prices", response_model=PricesResponse)
def all_prices(oracle=Depends(get_price_oracle)):
    """Prices for every wallet coin."""
    quotes = oracle.quote_all(WALLET_COINS)
    return PricesResponse(
        prices={s: q.price for s, q in quotes.items()},
        sources={s: q.source for s, q in quotes.items()},
    )


@router.get("/price/{symbol}", response_model=PriceResponse)
def one_price(symbol: str, oracle=Depends(get_price_oracle)):
    try:
        q = oracle.quote(symbol)
    except PriceUnavailable:
        raise HTTPException(status_code=404, detail="Not found")
    return PriceResponse(symbol=q.symbol, price=q.price, source=q.source)
