"""
Product Repository
Catalogue CRUD and price store writes
"""

from typing import Dict, Iterable, List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from finedu.domain.models import Product
from finedu.domain.money import money, price
from finedu.infrastructure.db.models import PriceHistoryModel, ProductModel, WatchlistModel
from finedu.utils.time import now_utc_naive

UPDATABLE_FIELDS = (
    "name",
    "type",
    "category",
    "risk_level",
    "expected_return",
    "min_investment",
    "current_price",
    "description",
    "is_active",
)


class ProductRepository:
    """Repository for Product"""

    def __init__(self, session: AsyncSession):
        """Initialize with database session"""
        self.session = session

    async def get(self, product_id: int) -> Optional[Product]:
        model = await self.session.get(ProductModel, product_id)
        return self._to_domain(model) if model else None

    async def get_many(self, product_ids: Iterable[int]) -> Dict[int, Product]:
        ids = set(product_ids)
        if not ids:
            return {}
        result = await self.session.execute(
            select(ProductModel).where(ProductModel.id.in_(ids))
        )
        return {m.id: self._to_domain(m) for m in result.scalars().all()}

    async def list_active(self) -> List[Product]:
        """Active products, newest first"""
        result = await self.session.execute(
            select(ProductModel)
            .where(ProductModel.is_active.is_(True))
            .order_by(ProductModel.created_at.desc(), ProductModel.id.desc())
        )
        return [self._to_domain(m) for m in result.scalars().all()]

    async def list_all(self) -> List[Product]:
        result = await self.session.execute(
            select(ProductModel).order_by(ProductModel.created_at.desc(), ProductModel.id.desc())
        )
        return [self._to_domain(m) for m in result.scalars().all()]

    async def count(self) -> int:
        result = await self.session.execute(select(func.count(ProductModel.id)))
        return int(result.scalar() or 0)

    async def create(self, product: Product) -> Product:
        """
        Insert a product

        Returns:
            Product with its generated id
        """
        model = ProductModel(
            name=product.name,
            type=product.type,
            category=product.category,
            risk_level=product.risk_level,
            expected_return=product.expected_return,
            min_investment=money(product.min_investment),
            current_price=price(product.current_price),
            initial_price=price(product.initial_price),
            description=product.description,
            is_active=product.is_active,
        )
        self.session.add(model)
        await self.session.flush()
        return self._to_domain(model)

    async def create_many(self, products: Iterable[Product]) -> List[Product]:
        return [await self.create(p) for p in products]

    async def update(self, product_id: int, **changes) -> Optional[Product]:
        model = await self.session.get(ProductModel, product_id)
        if model is None:
            return None

        for field, value in changes.items():
            if field not in UPDATABLE_FIELDS:
                raise ValueError(f"Field cannot be updated: {field}")
            if field == "current_price":
                value = price(value)
            elif field == "min_investment":
                value = money(value)
            setattr(model, field, value)
        model.updated_at = now_utc_naive()

        await self.session.flush()
        return self._to_domain(model)

    async def update_price(self, product_id: int, new_price) -> None:
        model = await self.session.get(ProductModel, product_id)
        if model is None:
            return
        model.current_price = price(new_price)
        model.updated_at = now_utc_naive()

    async def delete(self, product_id: int) -> bool:
        model = await self.session.get(ProductModel, product_id)
        if model is None:
            return False

        await self.session.execute(
            delete(PriceHistoryModel).where(PriceHistoryModel.product_id == product_id)
        )
        await self.session.execute(
            delete(WatchlistModel).where(WatchlistModel.product_id == product_id)
        )
        await self.session.delete(model)
        await self.session.flush()
        return True

    @staticmethod
    def _to_domain(model: ProductModel) -> Product:
        return Product(
            id=model.id,
            name=model.name,
            type=model.type,
            category=model.category,
            risk_level=model.risk_level,
            expected_return=money(model.expected_return),
            min_investment=money(model.min_investment),
            current_price=price(model.current_price),
            initial_price=price(model.initial_price),
            description=model.description or "",
            is_active=bool(model.is_active),
            created_at=model.created_at,
            updated_at=model.updated_at,
        )
