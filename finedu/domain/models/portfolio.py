"""
DOMAIN MODELS: PORTFOLIO VALUATION

Immutable structures representing recomputed portfolio state.
No database access. No price generation.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Tuple

from finedu.domain.models.entities import Holding, Portfolio, Product


@dataclass(frozen=True)
class PortfolioTotals:
    """Aggregates derived from the holding ledger."""
    total_value: Decimal
    total_gain: Decimal
    total_gain_percent: Decimal


@dataclass(frozen=True)
class PortfolioSnapshot:
    """
    Portfolio with freshly revalued holdings and matching totals.
    """
    portfolio: Portfolio
    holdings: Tuple[Holding, ...]
    products: Dict[int, Product] = field(default_factory=dict)
    allocation: Dict[str, Decimal] = field(default_factory=dict)

    @property
    def total_cost(self) -> Decimal:
        return sum((h.cost_basis for h in self.holdings), Decimal("0"))
