"""
Portfolio Repository
Portfolio rows (balances + aggregates), one per user
"""

from decimal import Decimal
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from finedu.domain.models import Portfolio, RiskLevel
from finedu.domain.money import ZERO, money, percent
from finedu.infrastructure.db.models import PortfolioModel
from finedu.utils.time import now_utc_naive


class PortfolioRepository:
    """Repository for Portfolio"""

    def __init__(self, session: AsyncSession):
        """Initialize with database session"""
        self.session = session

    async def _get_model(self, user_id: str, for_update: bool = False) -> Optional[PortfolioModel]:
        stmt = select(PortfolioModel).where(PortfolioModel.user_id == user_id)
        if for_update:
            # Ignored by SQLite, row lock on PostgreSQL
            stmt = stmt.with_for_update()
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_user(self, user_id: str, for_update: bool = False) -> Optional[Portfolio]:
        model = await self._get_model(user_id, for_update=for_update)
        return self._to_domain(model) if model else None

    async def get_or_create(
        self,
        user_id: str,
        starting_balance: Decimal,
        for_update: bool = False,
    ) -> Portfolio:
        """
        Get the user's portfolio, creating it with the starting balance

        Args:
            user_id: Owner
            starting_balance: Cash for a brand-new portfolio
            for_update: Lock the row for the rest of the transaction
        """
        model = await self._get_model(user_id, for_update=for_update)
        if model is None:
            model = PortfolioModel(
                user_id=user_id,
                rdn_balance=money(starting_balance),
                trading_balance=ZERO,
                total_value=ZERO,
                total_gain=ZERO,
                total_gain_percent=ZERO,
                risk_profile=RiskLevel.CONSERVATIVE,
            )
            self.session.add(model)
            await self.session.flush()
        return self._to_domain(model)

    async def save(self, portfolio: Portfolio) -> Portfolio:
        """Persist balances, aggregates and risk profile"""
        model = await self.session.get(PortfolioModel, portfolio.id)
        if model is None:
            raise ValueError(f"Portfolio {portfolio.id} does not exist")

        model.rdn_balance = money(portfolio.rdn_balance)
        model.trading_balance = money(portfolio.trading_balance)
        model.total_value = money(portfolio.total_value)
        model.total_gain = money(portfolio.total_gain)
        model.total_gain_percent = percent(portfolio.total_gain_percent)
        model.risk_profile = portfolio.risk_profile
        model.updated_at = now_utc_naive()

        await self.session.flush()
        return self._to_domain(model)

    async def list_all(self) -> List[Portfolio]:
        """All portfolios, newest first"""
        result = await self.session.execute(
            select(PortfolioModel).order_by(PortfolioModel.created_at.desc(), PortfolioModel.id.desc())
        )
        return [self._to_domain(m) for m in result.scalars().all()]

    async def count(self) -> int:
        result = await self.session.execute(select(func.count(PortfolioModel.id)))
        return int(result.scalar() or 0)

    async def list_user_ids(self) -> List[str]:
        result = await self.session.execute(
            select(PortfolioModel.user_id).order_by(PortfolioModel.id)
        )
        return list(result.scalars().all())

    @staticmethod
    def _to_domain(model: PortfolioModel) -> Portfolio:
        return Portfolio(
            id=model.id,
            user_id=model.user_id,
            rdn_balance=money(model.rdn_balance),
            trading_balance=money(model.trading_balance or 0),
            total_value=money(model.total_value or 0),
            total_gain=money(model.total_gain or 0),
            total_gain_percent=percent(model.total_gain_percent or 0),
            risk_profile=model.risk_profile,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )
