"""
Shared API response models
"""

from typing import Optional

from pydantic import BaseModel

from finedu.domain.models import Product, Transaction
from finedu.utils.time import to_iso_db


class ProductResponse(BaseModel):
    id: int
    name: str
    type: str
    category: str
    risk_level: str
    expected_return: float
    min_investment: float
    current_price: float
    initial_price: float
    description: str
    is_active: bool
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_domain(cls, product: Product) -> "ProductResponse":
        return cls(
            id=product.id,
            name=product.name,
            type=product.type.value,
            category=product.category.value,
            risk_level=product.risk_level.value,
            expected_return=float(product.expected_return),
            min_investment=float(product.min_investment),
            current_price=float(product.current_price),
            initial_price=float(product.initial_price),
            description=product.description,
            is_active=product.is_active,
            created_at=to_iso_db(product.created_at) if product.created_at else None,
            updated_at=to_iso_db(product.updated_at) if product.updated_at else None,
        )


class TransactionResponse(BaseModel):
    id: int
    user_id: str
    product_id: Optional[int] = None
    type: str
    units: float
    price: float
    amount: float
    total_value: float
    status: str
    created_at: Optional[str] = None
    product: Optional[ProductResponse] = None

    @classmethod
    def from_domain(
        cls,
        transaction: Transaction,
        product: Optional[Product] = None,
    ) -> "TransactionResponse":
        return cls(
            id=transaction.id,
            user_id=transaction.user_id,
            product_id=transaction.product_id,
            type=transaction.type.value,
            units=float(transaction.units),
            price=float(transaction.price),
            amount=float(transaction.amount),
            total_value=float(transaction.total_value),
            status=transaction.status.value,
            created_at=to_iso_db(transaction.created_at) if transaction.created_at else None,
            product=ProductResponse.from_domain(product) if product else None,
        )
