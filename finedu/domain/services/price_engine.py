"""
PRICE ENGINE
Pure next-price computation for the market simulator

RESPONSIBILITIES:
- Volatility from risk level x category
- Annual expected return spread over simulation intervals (trend)
- Gaussian noise (random component)
- Mean reversion for conservative products
- Price floor

RULES:
❌ No database access
❌ No wall clock
✅ Deterministic for a seeded RNG
"""

import random
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from finedu.domain.models import MarketConfig, Product, RiskLevel
from finedu.domain.money import ZERO, percent, price as quantize_price, ratio_percent


@dataclass(frozen=True)
class PriceMove:
    """Result of one price step"""
    product_id: Optional[int]
    old_price: Decimal
    new_price: Decimal

    @property
    def change(self) -> Decimal:
        return self.new_price - self.old_price

    @property
    def change_percent(self) -> Decimal:
        if self.old_price == ZERO:
            return percent(ZERO)
        return ratio_percent(self.change, self.old_price)


class PriceEngine:
    """
    Price Engine
    Computes the next price of a product for one simulation interval
    """

    def __init__(self, config: MarketConfig, rng: Optional[random.Random] = None):
        self.config = config
        self._rng = rng or random.Random()

    def trend_component(self, product: Product) -> float:
        current = float(product.current_price)
        annual_return = float(product.expected_return) / 100
        return (
            current
            * annual_return
            / self.config.intervals_per_year
            * self.config.market_trend_factor
        )

    def random_component(self, product: Product) -> float:
        volatility = self.config.volatility_for(product.risk_level, product.category)
        return (
            float(product.current_price)
            * volatility
            * self._rng.gauss(0.0, 1.0)
            * self.config.random_factor
        )

    def mean_reversion_component(self, product: Product) -> float:
        """Pull conservative products back toward their listing price"""
        if product.risk_level != RiskLevel.CONSERVATIVE:
            return 0.0
        anchor = float(product.initial_price)
        if anchor <= 0:
            return 0.0
        current = float(product.current_price)
        deviation = (current - anchor) / anchor
        return -deviation * self.config.mean_reversion_factor * current

    def next_price(self, product: Product) -> PriceMove:
        """
        Compute the next price for ``product``

        Args:
            product: Product with its current visible price

        Returns:
            PriceMove with the new price quantized to 4 dp and floored
            at current_price * min_price_floor
        """
        current = float(product.current_price)
        raw = (
            current
            + self.trend_component(product)
            + self.random_component(product)
            + self.mean_reversion_component(product)
        )
        floor = current * self.config.min_price_floor
        new_price = quantize_price(max(raw, floor))
        if new_price <= ZERO:
            # Floor of 0 with a crash; keep the smallest representable price
            new_price = Decimal("0.0001")

        return PriceMove(
            product_id=product.id,
            old_price=product.current_price,
            new_price=new_price,
        )
