"""
Transaction Routes
Caller's settlement log, newest first
"""

from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from finedu.api.dependencies import get_current_user_id
from finedu.api.schemas import TransactionResponse
from finedu.domain.models import TransactionStatus
from finedu.infrastructure.db.database import get_db
from finedu.infrastructure.db.repositories.product_repository import ProductRepository
from finedu.infrastructure.db.repositories.transaction_repository import TransactionRepository

router = APIRouter()

# "order" = open orders, "history" = finished ones
STATUSES_BY_KIND = {
    "order": (TransactionStatus.PENDING,),
    "history": (TransactionStatus.COMPLETED, TransactionStatus.CANCELLED),
}


@router.get("", response_model=List[TransactionResponse])
async def list_transactions(
    kind: Optional[Literal["order", "history"]] = Query(None),
    status: Optional[TransactionStatus] = Query(None),
    limit: Optional[int] = Query(None, ge=1, le=1000),
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """
    Transactions of the caller

    An explicit status overrides the kind filter.
    """
    statuses = None
    if kind:
        statuses = STATUSES_BY_KIND[kind]
    if status:
        statuses = (status,)

    transactions = await TransactionRepository(db).list_for_user(user_id, statuses=statuses, limit=limit)
    products = await ProductRepository(db).get_many(
        t.product_id for t in transactions if t.product_id is not None
    )
    return [TransactionResponse.from_domain(t, products.get(t.product_id)) for t in transactions]
