"""
Product Routes
Public catalogue and price history
"""

from datetime import timedelta
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from finedu.api.schemas import ProductResponse
from finedu.infrastructure.db.database import get_db
from finedu.infrastructure.db.repositories.price_history_repository import PriceHistoryRepository
from finedu.infrastructure.db.repositories.product_repository import ProductRepository
from finedu.utils.time import now_utc_naive, to_iso_db

router = APIRouter()


class PricePointResponse(BaseModel):
    price: float
    change: float
    change_percent: float
    timestamp: str


class PriceHistoryResponse(BaseModel):
    product: ProductResponse
    hours: int
    points: List[PricePointResponse]


@router.get("", response_model=List[ProductResponse])
async def list_products(db: AsyncSession = Depends(get_db)):
    """Active products, newest first"""
    products = await ProductRepository(db).list_active()
    return [ProductResponse.from_domain(p) for p in products]


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(product_id: int, db: AsyncSession = Depends(get_db)):
    product = await ProductRepository(db).get(product_id)
    if product is None:
        raise HTTPException(status_code=404, detail={"code": "not_found", "message": "Product not found"})
    return ProductResponse.from_domain(product)


@router.get("/{product_id}/history", response_model=PriceHistoryResponse)
async def get_price_history(
    product_id: int,
    hours: int = Query(24, ge=1, le=24 * 365),
    limit: int = Query(100, ge=1, le=5000),
    db: AsyncSession = Depends(get_db),
):
    """Price points within the look-back window, oldest first"""
    product = await ProductRepository(db).get(product_id)
    if product is None:
        raise HTTPException(status_code=404, detail={"code": "not_found", "message": "Product not found"})

    until = now_utc_naive()
    points = await PriceHistoryRepository(db).list_for_product(
        product_id,
        since=until - timedelta(hours=hours),
        until=until,
        limit=limit,
    )
    return PriceHistoryResponse(
        product=ProductResponse.from_domain(product),
        hours=hours,
        points=[
            PricePointResponse(
                price=float(p.price),
                change=float(p.change),
                change_percent=float(p.change_percent),
                timestamp=to_iso_db(p.timestamp),
            )
            for p in points
        ],
    )
