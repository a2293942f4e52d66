"""
PORTFOLIO AGGREGATOR
Recompute holding valuations and portfolio totals from the holding ledger

RESPONSIBILITIES:
- Revalue a holding against the visible product price
- Sum holdings into portfolio totals (2 dp)
- Asset allocation by product type

RULES:
✅ total_value == sum(holding.current_value)
✅ total_gain == sum(holding.gain)
✅ Gain percent is measured against cost basis
❌ No persistence, callers store the result
"""

from dataclasses import replace
from decimal import Decimal
from typing import Dict, Iterable, Mapping, Tuple

from finedu.domain.models import (
    Holding,
    Portfolio,
    PortfolioSnapshot,
    PortfolioTotals,
    Product,
    ProductType,
)
from finedu.domain.money import ZERO, money, percent, ratio_percent


def value_position(
    units: Decimal,
    average_price: Decimal,
    current_price: Decimal,
) -> Tuple[Decimal, Decimal, Decimal]:
    """
    Valuation of a position

    Returns:
        Tuple of (current_value, gain, gain_percent)
    """
    current_value = money(units * current_price)
    cost = money(average_price * units)
    gain = current_value - cost
    return current_value, gain, ratio_percent(gain, cost)


class PortfolioAggregator:
    """
    Portfolio Aggregator
    Single place where derived valuation fields are computed
    """

    @staticmethod
    def revalue_holding(holding: Holding, current_price: Decimal) -> Holding:
        current_value, gain, gain_percent = value_position(
            holding.units, holding.average_price, current_price
        )
        return replace(
            holding,
            current_value=current_value,
            gain=gain,
            gain_percent=gain_percent,
        )

    @staticmethod
    def compute_totals(holdings: Iterable[Holding]) -> PortfolioTotals:
        """
        Sum holdings into portfolio totals

        total_gain_percent = total_gain / (total_value - total_gain) * 100,
        i.e. gain over the cost basis of everything still held.
        """
        total_value = ZERO
        total_gain = ZERO
        for holding in holdings:
            total_value += holding.current_value
            total_gain += holding.gain

        total_value = money(total_value)
        total_gain = money(total_gain)
        return PortfolioTotals(
            total_value=total_value,
            total_gain=total_gain,
            total_gain_percent=ratio_percent(total_gain, total_value - total_gain),
        )

    @staticmethod
    def allocation(
        holdings: Iterable[Holding],
        products: Mapping[int, Product],
    ) -> Dict[str, Decimal]:
        """Percent of invested value per product type"""
        buckets: Dict[str, Decimal] = {t.value: ZERO for t in ProductType}
        holdings = list(holdings)
        total = sum((h.current_value for h in holdings), ZERO)
        if total <= ZERO:
            return {key: percent(ZERO) for key in buckets}

        for holding in holdings:
            product = products.get(holding.product_id)
            if product is None:
                continue
            buckets[product.type.value] += holding.current_value

        return {key: ratio_percent(value, total) for key, value in buckets.items()}

    def apply_totals(self, portfolio: Portfolio, holdings: Iterable[Holding]) -> Portfolio:
        totals = self.compute_totals(holdings)
        return replace(
            portfolio,
            total_value=totals.total_value,
            total_gain=totals.total_gain,
            total_gain_percent=totals.total_gain_percent,
        )

    def snapshot(
        self,
        portfolio: Portfolio,
        holdings: Iterable[Holding],
        products: Mapping[int, Product],
    ) -> PortfolioSnapshot:
        """
        Revalue every holding at current prices and recompute totals

        Args:
            portfolio: Stored portfolio (aggregates may be stale)
            holdings: Stored holdings of this portfolio
            products: product_id -> Product with the visible current price

        Returns:
            PortfolioSnapshot whose totals match its holdings
        """
        revalued = []
        for holding in holdings:
            product = products.get(holding.product_id)
            if product is None:
                # Product vanished; keep last stored valuation
                revalued.append(holding)
                continue
            revalued.append(self.revalue_holding(holding, product.current_price))

        updated = self.apply_totals(portfolio, revalued)
        return PortfolioSnapshot(
            portfolio=updated,
            holdings=tuple(revalued),
            products=dict(products),
            allocation=self.allocation(revalued, products),
        )
