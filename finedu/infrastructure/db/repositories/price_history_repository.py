"""
Price History Repository
Append-only PricePoint log
"""

from datetime import datetime
from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from finedu.domain.models import PricePoint
from finedu.domain.money import percent, price
from finedu.infrastructure.db.models import PriceHistoryModel


class PriceHistoryRepository:
    """Repository for PricePoint"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def append(self, point: PricePoint) -> None:
        self.session.add(
            PriceHistoryModel(
                product_id=point.product_id,
                price=price(point.price),
                change=price(point.change),
                change_percent=percent(point.change_percent),
                timestamp=point.timestamp,
            )
        )

    async def list_for_product(
        self,
        product_id: int,
        since: datetime,
        until: datetime,
        limit: int = 100,
    ) -> List[PricePoint]:
        """Points in [since, until], oldest first"""
        result = await self.session.execute(
            select(PriceHistoryModel)
            .where(
                PriceHistoryModel.product_id == product_id,
                PriceHistoryModel.timestamp >= since,
                PriceHistoryModel.timestamp <= until,
            )
            .order_by(PriceHistoryModel.timestamp.asc(), PriceHistoryModel.id.asc())
            .limit(limit)
        )
        return [
            PricePoint(
                id=m.id,
                product_id=m.product_id,
                price=price(m.price),
                change=price(m.change),
                change_percent=percent(m.change_percent),
                timestamp=m.timestamp,
            )
            for m in result.scalars().all()
        ]
