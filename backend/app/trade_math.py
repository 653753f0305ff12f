"""
Timed-trade arithmetic.

Pure functions shared by the trade engine, the ledger and the routers. Nothing
in here touches the database or the network, so every rule can be exercised
directly in unit tests.

Key rules:
    Payout rate:  linear from 5% at 5s to 40% at 120s, clamped, 2 dp
    WIN profit:   amount * rate / 100, rounded once (2 dp, half-up)
    LOSE profit:  -amount (the stake was already taken at open)
"""

import random
import re
from decimal import Context, Decimal, InvalidOperation, ROUND_HALF_UP

from app.config import settings

# Coins a timed trade can be placed on
SUPPORTED_COINS = ("BTC", "ETH", "SOL", "XRP", "TON")
# Coins every wallet shows, settlement currency first
WALLET_COINS = ("USDT",) + SUPPORTED_COINS

# Demo prices used whenever the live oracle is unavailable
FALLBACK_PRICES = {
    "BTC": Decimal("65000"),
    "ETH": Decimal("3400"),
    "SOL": Decimal("140"),
    "XRP": Decimal("0.6"),
    "TON": Decimal("7.0"),
    "USDT": Decimal("1"),
}

BUY = "BUY"
SELL = "SELL"

PENDING = "PENDING"
WIN = "WIN"
LOSE = "LOSE"

GLOBAL_MODES = ("AUTO", "ALL_WIN", "ALL_LOSE")
USER_MODES = (WIN, LOSE)
DEFAULT_MODE = "AUTO"

_BUY_WORDS = (BUY, "LONG", "UP", "CALL")
_SELL_WORDS = (SELL, "SHORT", "DOWN", "PUT")

# Max display drift of the synthesized settlement price (0.3%)
SETTLEMENT_DRIFT = 0.003

CENT = Decimal("0.01")
SATOSHI = Decimal("0.00000001")

# Wide enough that quantizing any parsed amount cannot overflow
_QUANTIZE_CTX = Context(prec=80)


def to_decimal(value) -> Decimal:
    """Parse a client-supplied number. Raises ValueError unless it is finite."""
    try:
        number = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValueError(f"not a number: {value!r}")
    if not number.is_finite():
        raise ValueError(f"not a finite number: {value!r}")
    return number


def quantize(value, quantum: Decimal) -> Decimal:
    """Round half-up to `quantum`, whatever the magnitude of `value`."""
    return Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP, context=_QUANTIZE_CTX)


def money(value) -> Decimal:
    """Round a money amount to 2 dp, half-up."""
    return quantize(value, CENT)


def clamp_duration(
    value,
    lo: int = settings.TRADE_MIN_DURATION,
    hi: int = settings.TRADE_MAX_DURATION,
) -> int:
    """Round a requested duration to whole seconds and clamp it into [lo, hi]."""
    seconds = quantize(to_decimal(value), Decimal(1))
    return int(max(lo, min(hi, seconds)))


def normalize_amount(value, minimum=settings.TRADE_MIN_AMOUNT) -> Decimal:
    """Coerce a stake to Decimal, floored at the minimum stake."""
    amount = to_decimal(value)
    floor = Decimal(str(minimum))
    return money(max(floor, amount))


def normalize_direction(text) -> str:
    """Map free-form direction text onto BUY or SELL.

    Exact synonyms win first (LONG -> BUY, SHORT -> SELL), then any text that
    contains a sell synonym as a whole word is a SELL. Everything else is a BUY.
    """
    token = str(text or "").strip().upper()
    if token in _BUY_WORDS:
        return BUY
    if token in _SELL_WORDS:
        return SELL
    if any(word in _SELL_WORDS for word in re.split(r"[^A-Z]+", token)):
        return SELL
    return BUY


def payout_pct(
    duration,
    min_sec: int = settings.TRADE_MIN_DURATION,
    max_sec: int = settings.TRADE_MAX_DURATION,
    min_pct: float = settings.TRADE_MIN_PAYOUT_PCT,
    max_pct: float = settings.TRADE_MAX_PAYOUT_PCT,
) -> Decimal:
    """Payout percentage for a hold of `duration` seconds.

    Args:
        duration: Requested trade duration in seconds.
        min_sec, max_sec: Duration bounds of the interpolation.
        min_pct, max_pct: Percentages paid at the bounds.

    Returns:
        Percentage in [min_pct, max_pct], rounded to 2 dp.
    """
    lo_pct = Decimal(str(min_pct))
    hi_pct = Decimal(str(max_pct))
    span = Decimal(max_sec - min_sec)
    pct = lo_pct + (Decimal(str(duration)) - min_sec) * (hi_pct - lo_pct) / span
    pct = max(lo_pct, min(hi_pct, pct))
    return pct.quantize(CENT, rounding=ROUND_HALF_UP)


def profit_for(result: str, amount: Decimal, pct: Decimal) -> Decimal:
    """Signed profit of a settled trade."""
    if result == WIN:
        return money(amount * pct / 100)
    return -money(amount)


def decide_result(mode: str, rng: random.Random) -> str:
    """Pick WIN or LOSE for an effective mode.

    Forced modes never consult the RNG. AUTO is an unbiased coin flip.
    """
    if mode in (WIN, "ALL_WIN"):
        return WIN
    if mode in (LOSE, "ALL_LOSE"):
        return LOSE
    return WIN if rng.random() < 0.5 else LOSE


def price_precision(symbol: str) -> int:
    """Decimal places used when displaying a coin price."""
    return 4 if symbol in ("XRP", "TON") else 2


def synthesize_settlement_price(
    entry_price: Decimal,
    direction: str,
    result: str,
    symbol: str,
    rng: random.Random,
) -> Decimal:
    """Display price for a settled trade, moved in the direction of the outcome.

    BUY-WIN and SELL-LOSE move up, BUY-LOSE and SELL-WIN move down, by at most
    SETTLEMENT_DRIFT of the entry price.
    """
    entry = Decimal(str(entry_price))
    change = entry * Decimal(str(rng.uniform(0, SETTLEMENT_DRIFT)))
    moves_up = (direction == BUY) == (result == WIN)
    price = entry + change if moves_up else entry - change
    quantum = Decimal(1).scaleb(-price_precision(symbol))
    return price.quantize(quantum, rounding=ROUND_HALF_UP)
