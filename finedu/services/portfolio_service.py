"""
Portfolio Service
Read paths and balance changes outside buy/sell settlement

Every read recomputes holding valuations and totals and persists them,
so a returned portfolio always matches its holdings.
"""

import logging
from dataclasses import replace
from decimal import Decimal
from typing import Callable, Optional, Tuple

from finedu.domain.errors import InvalidOrderError
from finedu.domain.models import (
    Portfolio,
    PortfolioSnapshot,
    RiskLevel,
    Transaction,
    TransactionStatus,
    TransactionType,
)
from finedu.domain.money import ZERO, format_rupiah, money, to_decimal
from finedu.domain.services.portfolio_aggregator import PortfolioAggregator
from finedu.domain.services.settlement_engine import LockRegistry, SettlementStore, reaggregate

logger = logging.getLogger(__name__)


class PortfolioService:
    """Portfolio reads, risk profile and balance injection"""

    def __init__(
        self,
        store_factory: Callable[[], SettlementStore],
        locks: LockRegistry,
        starting_balance: Decimal,
        max_injection: Optional[Decimal] = None,
        aggregator: Optional[PortfolioAggregator] = None,
    ):
        self._store_factory = store_factory
        self._locks = locks
        self._starting_balance = money(starting_balance)
        self._max_injection = money(max_injection) if max_injection is not None else None
        self._aggregator = aggregator or PortfolioAggregator()

    async def get_snapshot(self, user_id: str) -> PortfolioSnapshot:
        """Current portfolio (created on first access) with fresh aggregates"""
        async with self._locks.hold(user_id):
            async with self._store_factory() as store:
                portfolio = await store.portfolios.get_or_create(
                    user_id, self._starting_balance, for_update=True
                )
                return await reaggregate(store, portfolio, self._aggregator)

    async def revalue(self, user_id: str) -> Optional[PortfolioSnapshot]:
        """Re-aggregate an existing portfolio; None if the user has none"""
        async with self._locks.hold(user_id):
            async with self._store_factory() as store:
                portfolio = await store.portfolios.get_by_user(user_id, for_update=True)
                if portfolio is None:
                    return None
                return await reaggregate(store, portfolio, self._aggregator)

    async def update_risk_profile(self, user_id: str, risk_profile: RiskLevel) -> PortfolioSnapshot:
        async with self._locks.hold(user_id):
            async with self._store_factory() as store:
                portfolio = await store.portfolios.get_or_create(
                    user_id, self._starting_balance, for_update=True
                )
                portfolio = await store.portfolios.save(replace(portfolio, risk_profile=risk_profile))
                snapshot = await reaggregate(store, portfolio, self._aggregator)

        logger.info("Risk profile updated | user=%s profile=%s", user_id, risk_profile.value)
        return snapshot

    async def inject_balance(self, user_id: str, amount: Decimal) -> Tuple[Transaction, Portfolio]:
        """
        Credit cash to a user's portfolio (admin)

        Args:
            user_id: Target user (portfolio created if missing)
            amount: 0 < amount <= max injection

        Returns:
            (DEPOSIT transaction, updated portfolio)
        """
        amount = to_decimal(amount)
        if self._max_injection is not None and amount > self._max_injection:
            raise InvalidOrderError(
                f"Amount cannot exceed {format_rupiah(self._max_injection)}"
            )
        amount = money(amount)
        if amount <= ZERO:
            raise InvalidOrderError("Amount must be greater than zero")

        async with self._locks.hold(user_id):
            async with self._store_factory() as store:
                portfolio = await store.portfolios.get_or_create(
                    user_id, self._starting_balance, for_update=True
                )
                previous = portfolio.rdn_balance
                portfolio = await store.portfolios.save(
                    replace(portfolio, rdn_balance=money(previous + amount))
                )
                transaction = await store.transactions.append(
                    Transaction(
                        user_id=user_id,
                        product_id=None,
                        type=TransactionType.DEPOSIT,
                        units=ZERO,
                        price=ZERO,
                        amount=amount,
                        total_value=amount,
                        status=TransactionStatus.COMPLETED,
                    )
                )

        logger.info(
            "Balance injected | user=%s amount=%s previous=%s new=%s",
            user_id, amount, previous, portfolio.rdn_balance,
        )
        return transaction, portfolio
