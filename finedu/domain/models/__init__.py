"""
Domain Models Package
Export all domain entities
"""

from .entities import (
    # Enums
    ProductCategory,
    ProductType,
    RiskLevel,
    TransactionStatus,
    TransactionType,

    # Entities
    Holding,
    Lesson,
    LessonProgress,
    Portfolio,
    PricePoint,
    Product,
    QuizQuestion,
    Transaction,
    WatchlistItem,
)
from .market import MarketConfig
from .portfolio import PortfolioSnapshot, PortfolioTotals

__all__ = [
    # Enums
    "ProductCategory",
    "ProductType",
    "RiskLevel",
    "TransactionStatus",
    "TransactionType",

    # Entities
    "Holding",
    "Lesson",
    "LessonProgress",
    "MarketConfig",
    "Portfolio",
    "PortfolioSnapshot",
    "PortfolioTotals",
    "PricePoint",
    "Product",
    "QuizQuestion",
    "Transaction",
    "WatchlistItem",
]
