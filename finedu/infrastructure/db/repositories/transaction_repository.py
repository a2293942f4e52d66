"""
Transaction Repository
Append-only settlement log
"""

from typing import Dict, List, Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from finedu.domain.models import Transaction, TransactionStatus, TransactionType
from finedu.domain.money import money, price, units
from finedu.infrastructure.db.models import TransactionModel
from finedu.utils.time import now_utc_naive


class TransactionRepository:
    """Repository for Transaction (insert-only)"""

    def __init__(self, session: AsyncSession):
        """Initialize with database session"""
        self.session = session

    async def append(self, transaction: Transaction) -> Transaction:
        model = TransactionModel(
            user_id=transaction.user_id,
            product_id=transaction.product_id,
            type=transaction.type,
            units=units(transaction.units),
            price=price(transaction.price),
            amount=money(transaction.amount),
            total_value=money(transaction.total_value),
            status=transaction.status,
            created_at=transaction.created_at or now_utc_naive(),
        )
        self.session.add(model)
        await self.session.flush()
        return self._to_domain(model)

    async def list_for_user(
        self,
        user_id: str,
        statuses: Optional[Sequence[TransactionStatus]] = None,
        limit: Optional[int] = None,
    ) -> List[Transaction]:
        """
        Transactions of a user, newest first

        Args:
            user_id: Owner
            statuses: Restrict to these statuses (None = all)
            limit: Max rows
        """
        stmt = select(TransactionModel).where(TransactionModel.user_id == user_id)
        if statuses:
            stmt = stmt.where(TransactionModel.status.in_(list(statuses)))
        stmt = stmt.order_by(TransactionModel.created_at.desc(), TransactionModel.id.desc())
        if limit:
            stmt = stmt.limit(limit)

        result = await self.session.execute(stmt)
        return [self._to_domain(m) for m in result.scalars().all()]

    async def list_by_type(self, kind: TransactionType, limit: Optional[int] = None) -> List[Transaction]:
        """Transactions of one type across all users, newest first"""
        stmt = (
            select(TransactionModel)
            .where(TransactionModel.type == kind)
            .order_by(TransactionModel.created_at.desc(), TransactionModel.id.desc())
        )
        if limit:
            stmt = stmt.limit(limit)

        result = await self.session.execute(stmt)
        return [self._to_domain(m) for m in result.scalars().all()]

    async def list_recent(self, limit: int) -> List[Transaction]:
        result = await self.session.execute(
            select(TransactionModel)
            .order_by(TransactionModel.created_at.desc(), TransactionModel.id.desc())
            .limit(limit)
        )
        return [self._to_domain(m) for m in result.scalars().all()]

    async def count(self) -> int:
        result = await self.session.execute(select(func.count(TransactionModel.id)))
        return int(result.scalar() or 0)

    async def count_by_user(self) -> Dict[str, int]:
        result = await self.session.execute(
            select(TransactionModel.user_id, func.count(TransactionModel.id))
            .group_by(TransactionModel.user_id)
        )
        return {user_id: int(total) for user_id, total in result.all()}

    async def count_for_product(self, product_id: int) -> int:
        result = await self.session.execute(
            select(func.count(TransactionModel.id)).where(TransactionModel.product_id == product_id)
        )
        return int(result.scalar() or 0)

    @staticmethod
    def _to_domain(model: TransactionModel) -> Transaction:
        return Transaction(
            id=model.id,
            user_id=model.user_id,
            product_id=model.product_id,
            type=model.type,
            units=units(model.units),
            price=price(model.price),
            amount=money(model.amount),
            total_value=money(model.total_value),
            status=model.status,
            created_at=model.created_at,
        )
