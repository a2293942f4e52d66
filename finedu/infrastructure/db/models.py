"""
Database Models (SQLAlchemy ORM)
Transactions and price history are append-only
"""

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from finedu.domain.models import (
    ProductCategory,
    ProductType,
    RiskLevel,
    TransactionStatus,
    TransactionType,
)
from finedu.infrastructure.db.database import Base
from finedu.utils.time import now_utc_naive


# Tables

class ProductModel(Base):
    """Investment product (price store lives in current_price)"""
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    type = Column(SQLEnum(ProductType), nullable=False)
    category = Column(SQLEnum(ProductCategory), nullable=False)
    risk_level = Column(SQLEnum(RiskLevel), nullable=False)
    expected_return = Column(Numeric(8, 2), nullable=False)
    min_investment = Column(Numeric(18, 2), nullable=False)
    current_price = Column(Numeric(18, 4), nullable=False)
    initial_price = Column(Numeric(18, 4), nullable=False)
    description = Column(Text, nullable=False, default="")
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=now_utc_naive)
    updated_at = Column(DateTime, nullable=False, default=now_utc_naive, onupdate=now_utc_naive)

    __table_args__ = (
        Index("idx_products_active_created", "is_active", "created_at"),
    )


class PortfolioModel(Base):
    """One portfolio per user"""
    __tablename__ = "portfolios"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(100), nullable=False, unique=True, index=True)
    rdn_balance = Column(Numeric(18, 2), nullable=False)
    trading_balance = Column(Numeric(18, 2), nullable=False, default=0)
    total_value = Column(Numeric(18, 2), nullable=False, default=0)
    total_gain = Column(Numeric(18, 2), nullable=False, default=0)
    total_gain_percent = Column(Numeric(10, 2), nullable=False, default=0)
    risk_profile = Column(SQLEnum(RiskLevel), nullable=False, default=RiskLevel.CONSERVATIVE)
    created_at = Column(DateTime, nullable=False, default=now_utc_naive)
    updated_at = Column(DateTime, nullable=False, default=now_utc_naive, onupdate=now_utc_naive)

    # Relationships
    holdings = relationship("HoldingModel", back_populates="portfolio", cascade="all, delete-orphan")


class HoldingModel(Base):
    """Holding ledger row: one per (portfolio, product)"""
    __tablename__ = "holdings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    portfolio_id = Column(Integer, ForeignKey("portfolios.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    units = Column(Numeric(18, 4), nullable=False)
    average_price = Column(Numeric(18, 4), nullable=False)
    current_value = Column(Numeric(18, 2), nullable=False, default=0)
    gain = Column(Numeric(18, 2), nullable=False, default=0)
    gain_percent = Column(Numeric(10, 2), nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, default=now_utc_naive)
    updated_at = Column(DateTime, nullable=False, default=now_utc_naive, onupdate=now_utc_naive)

    # Relationships
    portfolio = relationship("PortfolioModel", back_populates="holdings")

    __table_args__ = (
        UniqueConstraint("portfolio_id", "product_id", name="uq_holding_portfolio_product"),
    )


class TransactionModel(Base):
    """Append-only settlement log"""
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(100), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=True, index=True)
    type = Column(SQLEnum(TransactionType), nullable=False)
    units = Column(Numeric(18, 4), nullable=False, default=0)
    price = Column(Numeric(18, 4), nullable=False, default=0)
    amount = Column(Numeric(18, 2), nullable=False)
    total_value = Column(Numeric(18, 2), nullable=False)
    status = Column(SQLEnum(TransactionStatus), nullable=False, default=TransactionStatus.COMPLETED)
    created_at = Column(DateTime, nullable=False, default=now_utc_naive, index=True)

    __table_args__ = (
        Index("idx_transactions_user_created", "user_id", "created_at"),
    )


class PriceHistoryModel(Base):
    """Append-only price changes written by the market simulator"""
    __tablename__ = "price_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False)
    price = Column(Numeric(18, 4), nullable=False)
    change = Column(Numeric(18, 4), nullable=False)
    change_percent = Column(Numeric(10, 2), nullable=False)
    timestamp = Column(DateTime, nullable=False, default=now_utc_naive)

    __table_args__ = (
        Index("idx_price_history_product_time", "product_id", "timestamp"),
    )


class SystemSettingModel(Base):
    """Key/value settings (market config overrides, JSON encoded)"""
    __tablename__ = "system_settings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    key = Column(String(100), nullable=False, unique=True, index=True)
    value = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    updated_at = Column(DateTime, nullable=False, default=now_utc_naive, onupdate=now_utc_naive)


class LessonProgressModel(Base):
    """Quiz completion per (user, lesson day)"""
    __tablename__ = "lesson_progress"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(100), nullable=False, index=True)
    lesson_day = Column(Integer, nullable=False)
    quiz_score = Column(Integer, nullable=False)
    streak = Column(Integer, nullable=False, default=1)
    completed_at = Column(DateTime, nullable=False, default=now_utc_naive)

    __table_args__ = (
        UniqueConstraint("user_id", "lesson_day", name="uq_progress_user_day"),
    )


class WatchlistModel(Base):
    """Products a user follows"""
    __tablename__ = "watchlist"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(100), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, nullable=False, default=now_utc_naive)

    __table_args__ = (
        UniqueConstraint("user_id", "product_id", name="uq_watchlist_user_product"),
    )
