"""
Domain Models - Entities
Pure domain objects with no infrastructure dependencies
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, Tuple

from finedu.domain.money import ZERO, money


class RiskLevel(str, Enum):
    """Risk tier of a product or a portfolio's risk profile"""
    CONSERVATIVE = "CONSERVATIVE"
    MODERATE = "MODERATE"
    AGGRESSIVE = "AGGRESSIVE"


class ProductType(str, Enum):
    """Marketplace instrument family"""
    MUTUAL_FUND = "MUTUAL_FUND"
    BOND = "BOND"
    GOVERNMENT_SECURITY = "GOVERNMENT_SECURITY"
    CRYPTO = "CRYPTO"


class ProductCategory(str, Enum):
    """Underlying asset mix, drives simulator volatility"""
    MONEY_MARKET = "MONEY_MARKET"
    FIXED_INCOME = "FIXED_INCOME"
    MIXED = "MIXED"
    EQUITY = "EQUITY"


class TransactionType(str, Enum):
    BUY = "BUY"
    SELL = "SELL"
    DEPOSIT = "DEPOSIT"


class TransactionStatus(str, Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


@dataclass(frozen=True)
class Product:
    """Investment product. Only the market simulator moves current_price."""
    name: str
    type: ProductType
    category: ProductCategory
    risk_level: RiskLevel
    expected_return: Decimal
    min_investment: Decimal
    current_price: Decimal
    initial_price: Decimal
    description: str = ""
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    id: Optional[int] = None

    def __post_init__(self):
        if not self.name:
            raise ValueError("Product name cannot be empty")
        if self.current_price <= ZERO:
            raise ValueError("Product price must be positive")
        if self.min_investment < ZERO:
            raise ValueError("Minimum investment cannot be negative")


@dataclass(frozen=True)
class Portfolio:
    """A user's cash balances and aggregate valuation"""
    user_id: str
    rdn_balance: Decimal
    trading_balance: Decimal
    total_value: Decimal
    total_gain: Decimal
    total_gain_percent: Decimal
    risk_profile: RiskLevel
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    id: Optional[int] = None


@dataclass(frozen=True)
class Holding:
    """Position in one product (units + cost basis + derived valuation)"""
    portfolio_id: int
    product_id: int
    units: Decimal
    average_price: Decimal
    current_value: Decimal
    gain: Decimal
    gain_percent: Decimal
    id: Optional[int] = None

    @property
    def cost_basis(self) -> Decimal:
        return money(self.average_price * self.units)


@dataclass(frozen=True)
class Transaction:
    """Append-only settlement record"""
    user_id: str
    product_id: Optional[int]
    type: TransactionType
    units: Decimal
    price: Decimal
    amount: Decimal
    total_value: Decimal
    status: TransactionStatus
    created_at: Optional[datetime] = None
    id: Optional[int] = None


@dataclass(frozen=True)
class PricePoint:
    """One simulator price change"""
    product_id: int
    price: Decimal
    change: Decimal
    change_percent: Decimal
    timestamp: datetime
    id: Optional[int] = None


@dataclass(frozen=True)
class QuizQuestion:
    question: str
    options: Tuple[str, ...]
    correct_answer: int
    explanation: str = ""

    def __post_init__(self):
        if len(self.options) < 2:
            raise ValueError("Quiz needs at least two options")
        if not 0 <= self.correct_answer < len(self.options):
            raise ValueError("Quiz correct_answer is out of range")


@dataclass(frozen=True)
class Lesson:
    day: int
    title: str
    content: str
    quiz: QuizQuestion


@dataclass(frozen=True)
class LessonProgress:
    user_id: str
    lesson_day: int
    quiz_score: int
    streak: int
    completed_at: datetime
    id: Optional[int] = None


@dataclass(frozen=True)
class WatchlistItem:
    user_id: str
    product_id: int
    created_at: Optional[datetime] = None
    id: Optional[int] = None
