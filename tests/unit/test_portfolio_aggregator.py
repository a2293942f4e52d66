"""
Unit Tests for PortfolioAggregator

✅ Position valuation
✅ Totals equal sum of holdings
✅ Allocation by product type
"""

from decimal import Decimal

import pytest

from finedu.domain.models import (
    Holding,
    Portfolio,
    Product,
    ProductCategory,
    ProductType,
    RiskLevel,
)
from finedu.domain.services.portfolio_aggregator import PortfolioAggregator, value_position


def make_product(product_id, product_type, price):
    return Product(
        id=product_id,
        name=f"P{product_id}",
        type=product_type,
        category=ProductCategory.MIXED,
        risk_level=RiskLevel.MODERATE,
        expected_return=Decimal("8"),
        min_investment=Decimal("0"),
        current_price=Decimal(price),
        initial_price=Decimal(price),
    )


def make_holding(product_id, units, average_price):
    return Holding(
        id=product_id,
        portfolio_id=1,
        product_id=product_id,
        units=Decimal(units),
        average_price=Decimal(average_price),
        current_value=Decimal("0"),
        gain=Decimal("0"),
        gain_percent=Decimal("0"),
    )


@pytest.fixture
def portfolio():
    return Portfolio(
        id=1,
        user_id="u1",
        rdn_balance=Decimal("500000.00"),
        trading_balance=Decimal("0"),
        total_value=Decimal("0"),
        total_gain=Decimal("0"),
        total_gain_percent=Decimal("0"),
        risk_profile=RiskLevel.MODERATE,
    )


class TestValuePosition:

    def test_gain(self):
        assert value_position(Decimal("100"), Decimal("1000"), Decimal("1100")) == (
            Decimal("110000.00"), Decimal("10000.00"), Decimal("10.00")
        )

    def test_loss(self):
        current_value, gain, gain_percent = value_position(
            Decimal("40"), Decimal("250"), Decimal("200")
        )
        assert current_value == Decimal("8000.00")
        assert gain == Decimal("-2000.00")
        assert gain_percent == Decimal("-20.00")

    def test_zero_units(self):
        assert value_position(Decimal("0"), Decimal("1000"), Decimal("1100"))[2] == Decimal("0.00")


class TestPortfolioAggregator:

    def test_snapshot_totals_match_holdings(self, portfolio):
        products = {
            1: make_product(1, ProductType.MUTUAL_FUND, "1100"),
            2: make_product(2, ProductType.BOND, "90"),
        }
        holdings = [make_holding(1, "100", "1000"), make_holding(2, "500", "100")]

        snapshot = PortfolioAggregator().snapshot(portfolio, holdings, products)

        assert snapshot.portfolio.total_value == Decimal("155000.00")
        assert snapshot.portfolio.total_gain == Decimal("5000.00")
        assert snapshot.portfolio.total_value == sum(h.current_value for h in snapshot.holdings)
        assert snapshot.total_cost == Decimal("150000.00")
        # gain over cost: 5000 / 150000
        assert snapshot.portfolio.total_gain_percent == Decimal("3.33")
        # Cash is untouched
        assert snapshot.portfolio.rdn_balance == Decimal("500000.00")

    def test_empty_portfolio(self, portfolio):
        snapshot = PortfolioAggregator().snapshot(portfolio, [], {})
        assert snapshot.portfolio.total_value == Decimal("0.00")
        assert snapshot.portfolio.total_gain_percent == Decimal("0.00")
        assert set(snapshot.allocation.values()) == {Decimal("0.00")}

    def test_missing_product_keeps_stored_valuation(self, portfolio):
        holding = make_holding(9, "10", "100")
        stored = PortfolioAggregator.revalue_holding(holding, Decimal("120"))

        snapshot = PortfolioAggregator().snapshot(portfolio, [stored], {})

        assert snapshot.holdings[0].current_value == Decimal("1200.00")

    def test_allocation_by_type(self):
        products = {
            1: make_product(1, ProductType.MUTUAL_FUND, "100"),
            2: make_product(2, ProductType.CRYPTO, "100"),
        }
        holdings = [
            PortfolioAggregator.revalue_holding(make_holding(1, "75", "100"), Decimal("100")),
            PortfolioAggregator.revalue_holding(make_holding(2, "25", "100"), Decimal("100")),
        ]

        allocation = PortfolioAggregator.allocation(holdings, products)

        assert allocation["MUTUAL_FUND"] == Decimal("75.00")
        assert allocation["CRYPTO"] == Decimal("25.00")
        assert allocation["BOND"] == Decimal("0.00")
