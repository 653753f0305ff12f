"""Tests for timed-trade arithmetic (unit-level, no DB dependency)."""

from decimal import Decimal

import pytest

from app.trade_math import (
    BUY,
    SELL,
    WIN,
    LOSE,
    clamp_duration,
    decide_result,
    money,
    normalize_amount,
    normalize_direction,
    payout_pct,
    profit_for,
    synthesize_settlement_price,
)
from conftest import FixedRandom


class TestPayoutCurve:
    """Payout rate as a function of hold duration."""

    def test_bounds(self):
        assert payout_pct(5) == Decimal("5.00")
        assert payout_pct(120) == Decimal("40.00")

    def test_midpoint_interpolation(self):
        # 5 + (60 - 5) * 35 / 115 = 21.739...
        assert payout_pct(60) == Decimal("21.74")

    def test_monotonic_and_bounded(self):
        values = [payout_pct(d) for d in range(5, 121)]
        assert all(a <= b for a, b in zip(values, values[1:]))
        assert all(Decimal("5") <= v <= Decimal("40") for v in values)

    def test_out_of_range_clamped(self):
        assert payout_pct(0) == Decimal("5.00")
        assert payout_pct(600) == Decimal("40.00")


class TestInputNormalization:
    """Permissive coercion of trade inputs."""

    @pytest.mark.parametrize("raw, expected", [
        ("BUY", BUY),
        ("buy", BUY),
        ("LONG", BUY),
        ("up", BUY),
        ("SELL", SELL),
        ("Short", SELL),
        ("put", SELL),
        ("go short now", SELL),
        ("INPUT", BUY),
        ("compute", BUY),
        ("sell-off", SELL),
        ("sideways", BUY),
        ("", BUY),
        (None, BUY),
    ])
    def test_direction(self, raw, expected):
        assert normalize_direction(raw) == expected

    def test_duration_clamped(self):
        assert clamp_duration(1) == 5
        assert clamp_duration(60) == 60
        assert clamp_duration("90") == 90
        assert clamp_duration(999) == 120

    def test_fractional_duration_rounded(self):
        assert clamp_duration(5.9) == 6
        assert clamp_duration("59.5") == 60
        assert clamp_duration(30.4) == 30

    @pytest.mark.parametrize("raw", ["abc", "NaN", "Infinity", object()])
    def test_non_numeric_rejected(self, raw):
        with pytest.raises(ValueError):
            normalize_amount(raw)
        with pytest.raises(ValueError):
            clamp_duration(raw)

    def test_amount_floored_at_minimum(self):
        assert normalize_amount("0.2") == Decimal("1.00")
        assert normalize_amount(-5) == Decimal("1.00")
        assert normalize_amount("10.005") == Decimal("10.01")

    def test_money_rounds_half_up(self):
        assert money("2.425") == Decimal("2.43")
        assert money("2.424") == Decimal("2.42")

    def test_huge_amounts_do_not_overflow(self):
        assert money(Decimal("1e30")) == Decimal("1e30")
        assert normalize_amount(1e30) > Decimal("1e29")


class TestOutcome:
    """Outcome decision and profit."""

    def test_forced_modes_ignore_rng(self):
        lose_flip = FixedRandom(flip=0.9)
        win_flip = FixedRandom(flip=0.1)
        assert decide_result("ALL_WIN", lose_flip) == WIN
        assert decide_result("WIN", lose_flip) == WIN
        assert decide_result("ALL_LOSE", win_flip) == LOSE
        assert decide_result("LOSE", win_flip) == LOSE

    def test_auto_is_coin_flip(self):
        assert decide_result("AUTO", FixedRandom(flip=0.1)) == WIN
        assert decide_result("AUTO", FixedRandom(flip=0.7)) == LOSE

    def test_profit(self):
        assert profit_for(WIN, Decimal("10"), Decimal("21.74")) == Decimal("2.17")
        assert profit_for(LOSE, Decimal("10"), Decimal("21.74")) == Decimal("-10.00")


class TestSettlementPrice:
    """Display price moves the way the outcome says."""

    @pytest.mark.parametrize("direction, result, moves_up", [
        (BUY, WIN, True),
        (BUY, LOSE, False),
        (SELL, WIN, False),
        (SELL, LOSE, True),
    ])
    def test_direction_of_move(self, direction, result, moves_up):
        entry = Decimal("65000")
        price = synthesize_settlement_price(entry, direction, result, "BTC", FixedRandom(drift=0.002))
        assert (price > entry) == moves_up
        assert abs(price - entry) == Decimal("130.00")

    def test_precision_by_coin(self):
        price = synthesize_settlement_price(Decimal("0.6"), BUY, WIN, "XRP", FixedRandom(drift=0.002))
        assert price == Decimal("0.6012")
        assert price.as_tuple().exponent == -4

    def test_bounded_drift(self):
        entry = Decimal("3400")
        price = synthesize_settlement_price(entry, BUY, LOSE, "ETH", FixedRandom(drift=0.003))
        assert entry * Decimal("0.997") <= price < entry
