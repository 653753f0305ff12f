"""Tests for the balance ledger and conversions."""

from decimal import Decimal

import pytest

from app.errors import TradeError
from app.config import settings
from app.models.balance import Balance, BalanceSnapshot
from app.models.conversion import Conversion
from app.services import coin_service
from app.services.user_service import create_user, get_user, seed_demo_accounts
from app.trade_math import WALLET_COINS


class TestLedger:
    """Atomic debit/credit and snapshots."""

    def test_debit_within_balance(self, db, alice):
        assert coin_service.debit(db, alice.id, Decimal("40")) is True
        db.commit()
        assert coin_service.get_balance(db, alice.id) == Decimal("60")

    def test_debit_beyond_balance_changes_nothing(self, db, bob):
        assert coin_service.debit(db, bob.id, Decimal("5.01")) is False
        db.commit()
        assert coin_service.get_balance(db, bob.id) == Decimal("5")

    def test_debit_exact_balance(self, db, bob):
        assert coin_service.debit(db, bob.id, Decimal("5")) is True
        db.commit()
        assert coin_service.get_balance(db, bob.id) == Decimal("0")

    def test_credit_existing_and_missing_rows(self, db, alice):
        coin_service.credit(db, alice.id, Decimal("2.5"))
        coin_service.credit(db, alice.id, Decimal("1"), coin="DOT")
        db.commit()
        assert coin_service.get_balance(db, alice.id) == Decimal("102.5")
        assert coin_service.get_balance(db, alice.id, "DOT") == Decimal("1")

    def test_snapshot_appends_history(self, db, alice):
        assert coin_service.snapshot(db, alice.id) == Decimal("100")
        coin_service.debit(db, alice.id, Decimal("30"))
        assert coin_service.snapshot(db, alice.id) == Decimal("70")
        db.commit()

        history = coin_service.get_history(db, alice.id)
        assert len(history) == 2
        assert db.query(BalanceSnapshot).filter(BalanceSnapshot.coin == "USDT").count() == 2

    def test_assets_zero_filled(self, db, alice):
        wallet = coin_service.get_assets(db, alice.id)
        assert [a["symbol"] for a in wallet["assets"]] == ["USDT", "BTC", "ETH", "SOL", "XRP", "TON"]
        assert wallet["total_usd"] == Decimal("100")
        assert all(a["balance"] == 0 for a in wallet["assets"][1:])

    def test_assets_unknown_user(self, db):
        with pytest.raises(TradeError) as exc:
            coin_service.get_assets(db, "ghost")
        assert exc.value.code == "user_not_found"


class TestConvert:
    """USDT <-> coin swaps at oracle prices."""

    def test_usdt_to_coin(self, db, oracle, alice):
        conversion = coin_service.convert(db, oracle, alice.id, "USDT", "BTC", Decimal("65"))
        assert conversion.rate == Decimal("65000")
        assert conversion.received == Decimal("0.001")
        assert coin_service.get_balance(db, alice.id) == Decimal("35")
        assert coin_service.get_balance(db, alice.id, "BTC") == Decimal("0.001")

    def test_coin_to_usdt(self, db, oracle, alice):
        coin_service.credit(db, alice.id, Decimal("10"), coin="SOL")
        db.commit()
        conversion = coin_service.convert(db, oracle, alice.id, "sol", "usdt", Decimal("2"))
        assert conversion.received == Decimal("280")
        assert coin_service.get_balance(db, alice.id) == Decimal("380")
        assert coin_service.get_balance(db, alice.id, "SOL") == Decimal("8")

    @pytest.mark.parametrize("from_coin, to_coin", [
        ("BTC", "ETH"),
        ("USDT", "USDT"),
        ("USDT", "DOGE"),
    ])
    def test_invalid_pairs(self, db, oracle, alice, from_coin, to_coin):
        with pytest.raises(TradeError) as exc:
            coin_service.convert(db, oracle, alice.id, from_coin, to_coin, Decimal("1"))
        assert exc.value.code == "invalid_conversion"

    def test_insufficient_balance_rolls_back(self, db, oracle, bob):
        with pytest.raises(TradeError) as exc:
            coin_service.convert(db, oracle, bob.id, "USDT", "ETH", Decimal("50"))
        assert exc.value.code == "insufficient_balance"
        assert coin_service.get_balance(db, bob.id) == Decimal("5")
        assert db.query(Conversion).count() == 0

    @pytest.mark.parametrize("from_coin, to_coin", [("USDT", "BTC"), ("ETH", "USDT")])
    def test_huge_amount_is_insufficient_balance(self, db, oracle, alice, from_coin, to_coin):
        with pytest.raises(TradeError) as exc:
            coin_service.convert(db, oracle, alice.id, from_coin, to_coin, Decimal("1e30"))
        assert exc.value.code == "insufficient_balance"
        assert db.query(Conversion).count() == 0

    def test_non_numeric_amount_rejected(self, db, oracle, alice):
        with pytest.raises(TradeError) as exc:
            coin_service.convert(db, oracle, alice.id, "USDT", "BTC", "lots")
        assert exc.value.code == "invalid_number"


class TestUsers:
    """Account creation and demo seeding."""

    def test_new_user_has_every_wallet_coin(self, db):
        user = create_user(db, "carol", "carol@example.com")
        coins = {b.coin for b in db.query(Balance).filter(Balance.user_id == user.id)}
        assert coins == set(WALLET_COINS)
        assert coin_service.get_balance(db, user.id) == Decimal("0")

    def test_get_user(self, db, alice):
        assert get_user(db, alice.id).username == "alice"
        assert get_user(db, "ghost") is None

    def test_seed_is_idempotent(self, db):
        first = seed_demo_accounts(db)
        second = seed_demo_accounts(db)
        assert [u.id for u in first] == [u.id for u in second]
        assert coin_service.get_balance(db, first[0].id) == Decimal(str(settings.DEMO_STARTING_USDT))
