"""
Watchlist Routes
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from finedu.api.dependencies import get_current_user_id
from finedu.api.errors import to_http_exception
from finedu.api.schemas import ProductResponse
from finedu.domain.errors import DuplicateWatchlistError, NotFoundError
from finedu.infrastructure.db.database import get_db
from finedu.infrastructure.db.repositories.product_repository import ProductRepository
from finedu.infrastructure.db.repositories.watchlist_repository import WatchlistRepository
from finedu.utils.time import to_iso_db

logger = logging.getLogger(__name__)
router = APIRouter()


class WatchlistRequest(BaseModel):
    product_id: int


class WatchlistItemResponse(BaseModel):
    id: int
    product_id: int
    created_at: Optional[str] = None
    product: Optional[ProductResponse] = None


@router.get("", response_model=List[WatchlistItemResponse])
async def list_watchlist(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    items = await WatchlistRepository(db).list_for_user(user_id)
    products = await ProductRepository(db).get_many(i.product_id for i in items)
    return [
        WatchlistItemResponse(
            id=item.id,
            product_id=item.product_id,
            created_at=to_iso_db(item.created_at) if item.created_at else None,
            product=ProductResponse.from_domain(products[item.product_id]) if item.product_id in products else None,
        )
        for item in items
    ]


@router.post("", response_model=WatchlistItemResponse, status_code=201)
async def add_to_watchlist(
    request: WatchlistRequest,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    product = await ProductRepository(db).get(request.product_id)
    if product is None:
        raise to_http_exception(NotFoundError("Product not found"))

    repo = WatchlistRepository(db)
    if await repo.get(user_id, request.product_id) is not None:
        raise to_http_exception(DuplicateWatchlistError("Product already in watchlist"))

    item = await repo.add(user_id, request.product_id)
    logger.info("Watchlist add | user=%s product=%s", user_id, request.product_id)
    return WatchlistItemResponse(
        id=item.id,
        product_id=item.product_id,
        created_at=to_iso_db(item.created_at) if item.created_at else None,
        product=ProductResponse.from_domain(product),
    )


@router.delete("")
async def remove_from_watchlist(
    product_id: int = Query(...),
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    removed = await WatchlistRepository(db).remove(user_id, product_id)
    return {"success": True, "removed": removed}
