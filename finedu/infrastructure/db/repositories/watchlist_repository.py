"""
Watchlist Repository
"""

from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from finedu.domain.models import WatchlistItem
from finedu.infrastructure.db.models import WatchlistModel


class WatchlistRepository:
    """Repository for WatchlistItem"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, user_id: str, product_id: int) -> Optional[WatchlistItem]:
        result = await self.session.execute(
            select(WatchlistModel).where(
                WatchlistModel.user_id == user_id,
                WatchlistModel.product_id == product_id,
            )
        )
        model = result.scalar_one_or_none()
        return self._to_domain(model) if model else None

    async def list_for_user(self, user_id: str) -> List[WatchlistItem]:
        result = await self.session.execute(
            select(WatchlistModel)
            .where(WatchlistModel.user_id == user_id)
            .order_by(WatchlistModel.created_at.desc(), WatchlistModel.id.desc())
        )
        return [self._to_domain(m) for m in result.scalars().all()]

    async def add(self, user_id: str, product_id: int) -> WatchlistItem:
        model = WatchlistModel(user_id=user_id, product_id=product_id)
        self.session.add(model)
        await self.session.flush()
        return self._to_domain(model)

    async def remove(self, user_id: str, product_id: int) -> int:
        result = await self.session.execute(
            delete(WatchlistModel).where(
                WatchlistModel.user_id == user_id,
                WatchlistModel.product_id == product_id,
            )
        )
        return result.rowcount or 0

    @staticmethod
    def _to_domain(model: WatchlistModel) -> WatchlistItem:
        return WatchlistItem(
            id=model.id,
            user_id=model.user_id,
            product_id=model.product_id,
            created_at=model.created_at,
        )
