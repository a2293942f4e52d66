"""
Integration Tests - Repositories

Runs against a temporary SQLite database.
"""

from dataclasses import replace
from datetime import timedelta
from decimal import Decimal

import pytest

from finedu.domain.models import (
    Holding,
    PricePoint,
    Product,
    ProductCategory,
    ProductType,
    RiskLevel,
    Transaction,
    TransactionStatus,
    TransactionType,
)
from finedu.infrastructure.db.repositories.holding_repository import HoldingRepository
from finedu.infrastructure.db.repositories.portfolio_repository import PortfolioRepository
from finedu.infrastructure.db.repositories.price_history_repository import PriceHistoryRepository
from finedu.infrastructure.db.repositories.product_repository import ProductRepository
from finedu.infrastructure.db.repositories.progress_repository import LessonProgressRepository
from finedu.infrastructure.db.repositories.setting_repository import SystemSettingRepository
from finedu.infrastructure.db.repositories.transaction_repository import TransactionRepository
from finedu.infrastructure.db.repositories.watchlist_repository import WatchlistRepository
from finedu.utils.time import now_utc_naive


def make_product(name="Fund", price="1000", is_active=True):
    return Product(
        name=name,
        type=ProductType.MUTUAL_FUND,
        category=ProductCategory.MONEY_MARKET,
        risk_level=RiskLevel.CONSERVATIVE,
        expected_return=Decimal("4.5"),
        min_investment=Decimal("10000"),
        current_price=Decimal(price),
        initial_price=Decimal(price),
        is_active=is_active,
    )


def make_transaction(user_id, product_id, status=TransactionStatus.COMPLETED, kind=TransactionType.BUY):
    return Transaction(
        user_id=user_id,
        product_id=product_id,
        type=kind,
        units=Decimal("10"),
        price=Decimal("1000"),
        amount=Decimal("10000"),
        total_value=Decimal("10000"),
        status=status,
    )


@pytest.mark.integration
class TestProductRepository:

    async def test_create_and_get(self, db_session):
        repo = ProductRepository(db_session)
        created = await repo.create(make_product(price="1234.56789"))

        fetched = await repo.get(created.id)

        assert fetched.current_price == Decimal("1234.5679")
        assert fetched.initial_price == Decimal("1234.5679")
        assert fetched.created_at is not None

    async def test_list_active_excludes_inactive(self, db_session):
        repo = ProductRepository(db_session)
        await repo.create(make_product("A"))
        await repo.create(make_product("B", is_active=False))

        assert [p.name for p in await repo.list_active()] == ["A"]
        assert len(await repo.list_all()) == 2
        assert await repo.count() == 2

    async def test_update_rejects_unknown_field(self, db_session):
        repo = ProductRepository(db_session)
        created = await repo.create(make_product())

        with pytest.raises(ValueError):
            await repo.update(created.id, initial_price=Decimal("1"))

    async def test_update_price(self, db_session):
        repo = ProductRepository(db_session)
        created = await repo.create(make_product())

        await repo.update_price(created.id, Decimal("1010.12345"))
        await db_session.flush()

        assert (await repo.get(created.id)).current_price == Decimal("1010.1235")

    async def test_delete_removes_history_and_watchlist(self, db_session):
        repo = ProductRepository(db_session)
        created = await repo.create(make_product())
        await PriceHistoryRepository(db_session).append(
            PricePoint(
                product_id=created.id,
                price=Decimal("1001"),
                change=Decimal("1"),
                change_percent=Decimal("0.1"),
                timestamp=now_utc_naive(),
            )
        )
        await WatchlistRepository(db_session).add("u1", created.id)

        assert await repo.delete(created.id) is True
        assert await repo.get(created.id) is None
        assert await WatchlistRepository(db_session).list_for_user("u1") == []
        assert await repo.delete(created.id) is False


@pytest.mark.integration
class TestPortfolioAndHoldings:

    async def test_get_or_create_is_idempotent(self, db_session):
        repo = PortfolioRepository(db_session)

        first = await repo.get_or_create("u1", Decimal("1000000"))
        second = await repo.get_or_create("u1", Decimal("5"))

        assert first.id == second.id
        assert second.rdn_balance == Decimal("1000000.00")
        assert second.risk_profile == RiskLevel.CONSERVATIVE
        assert await repo.list_user_ids() == ["u1"]

    async def test_holding_upsert_and_delete(self, db_session):
        product = await ProductRepository(db_session).create(make_product())
        portfolio = await PortfolioRepository(db_session).get_or_create("u1", Decimal("1000000"))
        repo = HoldingRepository(db_session)

        holding = Holding(
            portfolio_id=portfolio.id,
            product_id=product.id,
            units=Decimal("10"),
            average_price=Decimal("1000"),
            current_value=Decimal("10000"),
            gain=Decimal("0"),
            gain_percent=Decimal("0"),
        )
        saved = await repo.save(holding)
        updated = await repo.save(replace(holding, units=Decimal("12.5")))

        assert saved.id == updated.id
        assert (await repo.get(portfolio.id, product.id)).units == Decimal("12.5000")
        assert len(await repo.list_for_portfolio(portfolio.id)) == 1

        await repo.delete(updated)
        assert await repo.get(portfolio.id, product.id) is None


@pytest.mark.integration
class TestTransactionRepository:

    async def test_list_newest_first_with_filters(self, db_session):
        repo = TransactionRepository(db_session)
        product = await ProductRepository(db_session).create(make_product())
        await repo.append(make_transaction("u1", product.id))
        await repo.append(make_transaction("u1", product.id, status=TransactionStatus.PENDING))
        await repo.append(make_transaction("u2", product.id))

        rows = await repo.list_for_user("u1")
        assert [t.status for t in rows] == [TransactionStatus.PENDING, TransactionStatus.COMPLETED]

        pending = await repo.list_for_user("u1", statuses=[TransactionStatus.PENDING])
        assert len(pending) == 1
        assert len(await repo.list_for_user("u1", limit=1)) == 1
        assert await repo.count_for_product(product.id) == 3

    async def test_deposit_without_product(self, db_session):
        repo = TransactionRepository(db_session)
        saved = await repo.append(make_transaction("u1", None, kind=TransactionType.DEPOSIT))
        assert saved.product_id is None
        assert saved.type == TransactionType.DEPOSIT


@pytest.mark.integration
class TestPriceHistoryRepository:

    async def test_window_and_order(self, db_session):
        product = await ProductRepository(db_session).create(make_product())
        repo = PriceHistoryRepository(db_session)
        now = now_utc_naive()
        for hours_ago, value in ((30, "990"), (2, "1000"), (1, "1010")):
            await repo.append(
                PricePoint(
                    product_id=product.id,
                    price=Decimal(value),
                    change=Decimal("0"),
                    change_percent=Decimal("0"),
                    timestamp=now - timedelta(hours=hours_ago),
                )
            )
        await db_session.flush()

        points = await repo.list_for_product(product.id, since=now - timedelta(hours=24), until=now)

        assert [p.price for p in points] == [Decimal("1000"), Decimal("1010")]


@pytest.mark.integration
class TestSettingsProgressWatchlist:

    async def test_settings_json_round_trip(self, db_session):
        repo = SystemSettingRepository(db_session)
        await repo.upsert("market_config_random_factor", 0.4)
        await repo.upsert("market_config_risk_volatility", {"CONSERVATIVE": 0.01})
        await repo.upsert("market_config_random_factor", 0.2)
        await repo.upsert("other_key", "x")

        assert await repo.get("market_config_random_factor") == 0.2
        assert await repo.get("missing") is None
        assert await repo.get_by_prefix("market_config_") == {
            "random_factor": 0.2,
            "risk_volatility": {"CONSERVATIVE": 0.01},
        }

    async def test_progress_upsert_per_day(self, db_session):
        repo = LessonProgressRepository(db_session)
        now = now_utc_naive()
        await repo.upsert("u1", 1, 50, 1, now - timedelta(days=1))
        await repo.upsert("u1", 2, 70, 2, now)
        await repo.upsert("u1", 1, 90, 2, now + timedelta(seconds=1))

        rows = await repo.list_for_user("u1")
        assert [(r.lesson_day, r.quiz_score) for r in rows] == [(1, 90), (2, 70)]
        assert (await repo.latest("u1")).lesson_day == 1

    async def test_watchlist(self, db_session):
        product = await ProductRepository(db_session).create(make_product())
        repo = WatchlistRepository(db_session)

        await repo.add("u1", product.id)

        assert (await repo.get("u1", product.id)) is not None
        assert await repo.get("u2", product.id) is None
        assert await repo.remove("u1", product.id) == 1
        assert await repo.list_for_user("u1") == []


@pytest.mark.integration
class TestAdminQueries:

    async def test_counts_and_listings(self, db_session):
        product = await ProductRepository(db_session).create(make_product())
        portfolios = PortfolioRepository(db_session)
        await portfolios.get_or_create("u1", Decimal("1000000"))
        await portfolios.get_or_create("u2", Decimal("1000000"))

        transactions = TransactionRepository(db_session)
        await transactions.append(make_transaction("u1", product.id))
        await transactions.append(make_transaction("u1", None, kind=TransactionType.DEPOSIT))
        await transactions.append(make_transaction("u2", None, kind=TransactionType.DEPOSIT))
        await LessonProgressRepository(db_session).upsert("u2", 1, 80, 1, now_utc_naive())

        assert [p.user_id for p in await portfolios.list_all()] == ["u2", "u1"]
        assert await portfolios.count() == 2
        assert await transactions.count() == 3
        assert await transactions.count_by_user() == {"u1": 2, "u2": 1}

        deposits = await transactions.list_by_type(TransactionType.DEPOSIT)
        assert [t.user_id for t in deposits] == ["u2", "u1"]
        assert len(await transactions.list_by_type(TransactionType.DEPOSIT, limit=1)) == 1
        assert [t.type for t in await transactions.list_recent(2)] == [TransactionType.DEPOSIT] * 2

        progress = LessonProgressRepository(db_session)
        assert await progress.count() == 1
        assert await progress.count_by_user() == {"u2": 1}
