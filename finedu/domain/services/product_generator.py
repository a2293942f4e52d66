"""
PRODUCT GENERATOR
Random catalogue products for classroom and demo markets

RULES:
✅ 1..50 products per request
✅ At least one product type
✅ Risk score 1..10 -> CONSERVATIVE (<=3) / MODERATE (<=7) / AGGRESSIVE
✅ Seedable RNG, no database access
"""

import random
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional, Sequence, Tuple

from finedu.domain.models import Product, ProductCategory, ProductType, RiskLevel
from finedu.domain.money import money

MAX_GENERATED = 50

NAME_PREFIXES = ("Alpha", "Beta", "Delta", "Gamma", "Omega", "Sigma", "Prime", "Ultra", "Mega", "Hyper")
NAME_KINDS = ("Fund", "Bond", "Stock", "ETF", "Index", "Portfolio", "Trust", "Venture", "Capital", "Investment")
NAME_SUFFIXES = ("Plus", "Pro", "Elite", "Select", "Premium", "Choice", "Advantage", "Growth", "Income", "Value")

RISK_DESCRIPTIONS = (
    "very low risk", "low risk", "relatively safe", "balanced risk",
    "moderate risk", "calculated risk", "somewhat risky",
    "high risk", "aggressive", "very high risk",
)


@dataclass(frozen=True)
class GeneratorRequest:
    count: int = 5
    return_range: Tuple[float, float] = (1.0, 15.0)
    risk_range: Tuple[int, int] = (1, 10)
    duration_range: Tuple[int, int] = (30, 365)
    investment_range: Tuple[int, int] = (50, 1000)
    investment_fixed: bool = False
    price_range: Tuple[float, float] = (10.0, 100.0)
    product_types: Sequence[ProductType] = field(default_factory=lambda: tuple(ProductType))

    def validate(self) -> None:
        if self.count < 1 or self.count > MAX_GENERATED:
            raise ValueError(f"Count must be between 1 and {MAX_GENERATED}")
        if not self.product_types:
            raise ValueError("At least one product type must be selected")
        for label, (low, high) in (
            ("return_range", self.return_range),
            ("risk_range", self.risk_range),
            ("duration_range", self.duration_range),
            ("investment_range", self.investment_range),
            ("price_range", self.price_range),
        ):
            if low > high:
                raise ValueError(f"{label} min must not exceed max")
        if self.risk_range[0] < 1 or self.risk_range[1] > 10:
            raise ValueError("risk_range must stay within 1..10")
        if self.price_range[0] <= 0:
            raise ValueError("price_range must be positive")
        if self.investment_range[0] < 0:
            raise ValueError("investment_range cannot be negative")


def risk_level_for_score(score: int) -> RiskLevel:
    if score <= 3:
        return RiskLevel.CONSERVATIVE
    if score <= 7:
        return RiskLevel.MODERATE
    return RiskLevel.AGGRESSIVE


def category_for(product_type: ProductType, risk_level: RiskLevel) -> ProductCategory:
    """Asset mix implied by instrument family (and risk, for funds)"""
    if product_type in (ProductType.BOND, ProductType.GOVERNMENT_SECURITY):
        return ProductCategory.FIXED_INCOME
    if product_type == ProductType.CRYPTO:
        return ProductCategory.EQUITY
    return {
        RiskLevel.CONSERVATIVE: ProductCategory.MONEY_MARKET,
        RiskLevel.MODERATE: ProductCategory.MIXED,
        RiskLevel.AGGRESSIVE: ProductCategory.EQUITY,
    }[risk_level]


class ProductGenerator:
    """Generates unsaved Product entities"""

    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng or random.Random()

    def _name(self) -> str:
        prefix = self._rng.choice(NAME_PREFIXES)
        kind = self._rng.choice(NAME_KINDS)
        if self._rng.random() > 0.5:
            return f"{prefix} {kind} {self._rng.choice(NAME_SUFFIXES)}"
        return f"{prefix} {kind}"

    @staticmethod
    def _description(name: str, return_rate: float, risk_score: int, duration: int) -> str:
        if duration <= 90:
            horizon = "short-term"
        elif duration <= 365:
            horizon = "medium-term"
        else:
            horizon = "long-term"

        if return_rate <= 3:
            returns = "conservative"
        elif return_rate <= 8:
            returns = "moderate"
        else:
            returns = "high"

        risk = RISK_DESCRIPTIONS[min(risk_score - 1, len(RISK_DESCRIPTIONS) - 1)]
        return (
            f"{name} is a {horizon} {risk} investment product offering {returns} returns. "
            f"With an expected annual return of approximately {return_rate:.2f}%, this product is designed "
            f"for investors seeking {horizon} growth opportunities with a {risk} profile. "
            f"The investment period is {duration} days."
        )

    def generate(self, request: GeneratorRequest) -> List[Product]:
        request.validate()

        products = []
        for _ in range(request.count):
            return_rate = round(self._rng.uniform(*request.return_range), 2)
            risk_score = self._rng.randint(*request.risk_range)
            duration = self._rng.randint(*request.duration_range)
            name = self._name()

            if request.investment_fixed:
                min_investment = request.investment_range[0]
            else:
                min_investment = self._rng.randint(*request.investment_range)

            low_cents = int(round(request.price_range[0] * 100))
            high_cents = int(round(request.price_range[1] * 100))
            current_price = money(Decimal(self._rng.randint(low_cents, high_cents)) / 100)

            product_type = self._rng.choice(list(request.product_types))
            risk_level = risk_level_for_score(risk_score)

            products.append(
                Product(
                    name=name,
                    type=product_type,
                    category=category_for(product_type, risk_level),
                    risk_level=risk_level,
                    expected_return=Decimal(str(return_rate)),
                    min_investment=money(min_investment),
                    current_price=current_price,
                    initial_price=current_price,
                    description=self._description(name, return_rate, risk_score, duration),
                )
            )
        return products
