"""
Holding Repository
Holding ledger: one row per (portfolio, product)
"""

from typing import Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from finedu.domain.models import Holding
from finedu.domain.money import money, percent, price, units
from finedu.infrastructure.db.models import HoldingModel
from finedu.utils.time import now_utc_naive


class HoldingRepository:
    """Repository for Holding"""

    def __init__(self, session: AsyncSession):
        """Initialize with database session"""
        self.session = session

    async def get(self, portfolio_id: int, product_id: int) -> Optional[Holding]:
        model = await self._get_model(portfolio_id, product_id)
        return self._to_domain(model) if model else None

    async def _get_model(self, portfolio_id: int, product_id: int) -> Optional[HoldingModel]:
        result = await self.session.execute(
            select(HoldingModel).where(
                HoldingModel.portfolio_id == portfolio_id,
                HoldingModel.product_id == product_id,
            )
        )
        return result.scalar_one_or_none()

    async def list_for_portfolio(self, portfolio_id: int) -> List[Holding]:
        result = await self.session.execute(
            select(HoldingModel)
            .where(HoldingModel.portfolio_id == portfolio_id)
            .order_by(HoldingModel.id)
        )
        return [self._to_domain(m) for m in result.scalars().all()]

    async def save(self, holding: Holding) -> Holding:
        """Insert or update the (portfolio, product) row"""
        model = await self._get_model(holding.portfolio_id, holding.product_id)
        if model is None:
            model = HoldingModel(
                portfolio_id=holding.portfolio_id,
                product_id=holding.product_id,
            )
            self.session.add(model)

        model.units = units(holding.units)
        model.average_price = price(holding.average_price)
        model.current_value = money(holding.current_value)
        model.gain = money(holding.gain)
        model.gain_percent = percent(holding.gain_percent)
        model.updated_at = now_utc_naive()

        await self.session.flush()
        return self._to_domain(model)

    async def save_valuations(self, holdings: Iterable[Holding]) -> None:
        """Write derived valuation fields only (units and cost untouched)"""
        for holding in holdings:
            model = await self.session.get(HoldingModel, holding.id)
            if model is None:
                continue
            model.current_value = money(holding.current_value)
            model.gain = money(holding.gain)
            model.gain_percent = percent(holding.gain_percent)
        await self.session.flush()

    async def delete(self, holding: Holding) -> None:
        model = await self._get_model(holding.portfolio_id, holding.product_id)
        if model is not None:
            await self.session.delete(model)
            await self.session.flush()

    @staticmethod
    def _to_domain(model: HoldingModel) -> Holding:
        return Holding(
            id=model.id,
            portfolio_id=model.portfolio_id,
            product_id=model.product_id,
            units=units(model.units),
            average_price=price(model.average_price),
            current_value=money(model.current_value or 0),
            gain=money(model.gain or 0),
            gain_percent=percent(model.gain_percent or 0),
        )
